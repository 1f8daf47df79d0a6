"""Rule-based intent routing: vendor search vs. general chat."""
from typing import List, Optional

VENDOR = ["vendor", "vendors", "caterer", "caterers", "venue", "venues", "wedding",
          "photographer", "photographers", "makeup", "decorator", "decor", "dj", "banquet"]
LOCALITY = ["mumbai", "bombay"]


def _contains_any(q: str, vocab: List[str]) -> bool:
    ql = q.lower()
    return any(word in ql for word in vocab)


def is_vendor_query(query: Optional[str]) -> bool:
    if not query:
        return False
    return _contains_any(query, VENDOR) or _contains_any(query, LOCALITY)


def route_intent(query: Optional[str]) -> str:
    return "vendor_search" if is_vendor_query(query) else "general"
