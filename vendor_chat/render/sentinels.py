"""Sentinel-delimited JSON payloads embedded in assistant text.

Older assistant messages carry structured data (vendor hits, vendor details,
reviews, guides) inside the text itself, between fixed marker strings. The
visible text must never show those blocks; the payload is recovered for card
rendering instead.
"""
import json
import re
from typing import Any, Dict, List, Optional, Tuple

SENTINEL_MARKERS: Dict[str, Tuple[str, str]] = {
    "vendor_hits": ("__VENDOR_HITS_JSON__", "__END_VENDOR_HITS_JSON__"),
    "vendor_details": ("__VENDOR_DETAILS_JSON__", "__END_VENDOR_DETAILS_JSON__"),
    "vendor_reviews": ("__VENDOR_REVIEWS_JSON__", "__END_VENDOR_REVIEWS_JSON__"),
    "guide": ("___GUIDE_JSON___", "___END_GUIDE_JSON___"),
}

_END_MARKERS = re.compile("|".join(re.escape(end) for _, end in SENTINEL_MARKERS.values()))


def _block_spans(text: str) -> List[Tuple[int, int]]:
    """(begin, end) of every block, each start paired with its own end marker."""
    spans = []
    for start, end in SENTINEL_MARKERS.values():
        position = 0
        while True:
            begin = text.find(start, position)
            if begin == -1:
                break
            finish = text.find(end, begin + len(start))
            if finish == -1:
                # End not streamed in yet: hide everything after the start
                spans.append((begin, len(text)))
                break
            position = finish + len(end)
            spans.append((begin, position))
    return spans


def _merge(spans: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
    merged: List[Tuple[int, int]] = []
    for begin, end in sorted(spans):
        if merged and begin <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((begin, end))
    return merged


def strip_payloads(text: str) -> str:
    """Remove every sentinel block from text; marker-free text comes back unchanged."""
    if not text:
        return text or ""
    pieces = []
    cursor = 0
    # Blocks of different kinds may overlap; their union is hidden
    for begin, end in _merge(_block_spans(text)):
        pieces.append(text[cursor:begin])
        cursor = end
    pieces.append(text[cursor:])
    stripped = _END_MARKERS.sub("", "".join(pieces))
    if stripped == text:
        return text
    return stripped.strip()


def _parse(raw: str) -> Optional[Any]:
    try:
        return json.loads(raw)
    except ValueError:
        pass
    first, last = raw.find("{"), raw.rfind("}")
    if first == -1 or last <= first:
        return None
    try:
        return json.loads(raw[first:last + 1])
    except ValueError:
        return None


def extract_payload(text: str) -> Optional[Tuple[str, Any]]:
    """
    Recover the first embedded payload.

    Args:
        text: Message text that may contain sentinel blocks

    Returns:
        (kind, parsed JSON) for the earliest complete marker pair, or None
        when there is none or its content cannot be parsed
    """
    if not text:
        return None

    earliest = None
    for kind, (start, end) in SENTINEL_MARKERS.items():
        begin = text.find(start)
        if begin == -1:
            continue
        finish = text.find(end, begin + len(start))
        if finish == -1:
            continue
        if earliest is None or begin < earliest[1]:
            earliest = (kind, begin, text[begin + len(start):finish])

    if earliest is None:
        return None
    kind, _, raw = earliest
    payload = _parse(raw)
    if payload is None:
        return None
    return kind, payload


def embed_payload(kind: str, payload: Any) -> str:
    start, end = SENTINEL_MARKERS[kind]
    return f"{start}{json.dumps(payload, ensure_ascii=False)}{end}"
