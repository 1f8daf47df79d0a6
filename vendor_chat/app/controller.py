"""Controller / chat router: moderates a turn, picks a response path and streams it.

Three paths, exactly one per turn:
- denial: the latest utterance is flagged by moderation
- vendor: the utterance mentions a vendor or locality keyword; answered
  straight from the vector index, no language model involved
- general: everything else; streamed from the language model with tools
"""
from typing import Iterator, List, Optional

from .config import Config
from .generate import GenerationClient
from .moderation import DEFAULT_DENIAL, ModerationGate
from .retrieval import VendorRetriever
from .stream import StreamWriter
from ..nlu.rules import route_intent
from ..schemas.io_models import Message, ModerationResult, VendorRecord
from ..schemas.stream_events import StreamEvent
from ..utils.errors import BackendStreamError, ModerationError
from ..utils.logger import get_logger
from ..utils.security import preview

logger = get_logger()

DENIAL_TEXT_ID = "moderation-denial-text"
VENDOR_TEXT_ID = "vendor-response"

VENDOR_HEADER = "Here are some vendors in Mumbai based on your request:\n\n"
NO_VENDORS_MESSAGE = (
    "I couldn’t find any vendors in my database for that request. Try specifying the type "
    "of vendor (e.g., photographers, caterers) or a different area in Mumbai."
)
VENDOR_FAILURE_MESSAGE = "Something went wrong while fetching vendors. Please try again in a moment."
BACKEND_FAILURE_MESSAGE = "Sorry, I couldn't finish that answer. Please try again in a moment."

MAX_VENDOR_LINES = 5


def latest_user_text(messages: List[Message]) -> str:
    """Text of the most recent user message, or "" when there is none."""
    for message in reversed(messages):
        if message.role == "user":
            return message.text()
    return ""


def format_vendor_line(rank: int, vendor: VendorRecord) -> str:
    name = vendor.name or "Unnamed vendor"
    category = vendor.category or "Vendor"
    location = vendor.location or "Mumbai"
    price = f", approx {vendor.price_range}" if vendor.price_range else ""
    return f"{rank}. {name} – {category}, {location}{price}"


def format_vendor_list(vendors: List[VendorRecord]) -> str:
    lines = [format_vendor_line(i, v) for i, v in enumerate(vendors[:MAX_VENDOR_LINES], 1)]
    return VENDOR_HEADER + "\n".join(lines)


class ChatRouter:
    def __init__(self, moderation: Optional[ModerationGate] = None,
                 retriever: Optional[VendorRetriever] = None,
                 generator: Optional[GenerationClient] = None,
                 top_k: int = Config.VENDOR_TOP_K,
                 fail_closed: Optional[bool] = None,
                 emit_vendor_payload: Optional[bool] = None):
        self.moderation = moderation or ModerationGate()
        self.retriever = retriever or VendorRetriever()
        self.generator = generator or GenerationClient()
        self.top_k = top_k
        self.fail_closed = Config.MODERATION_FAIL_CLOSED if fail_closed is None else fail_closed
        self.emit_vendor_payload = Config.EMIT_VENDOR_PAYLOAD if emit_vendor_payload is None else emit_vendor_payload

    def route(self, messages: List[Message]) -> Iterator[StreamEvent]:
        utterance = latest_user_text(messages)
        logger.info(f"[WORKFLOW] 1. Router received {len(messages)} messages, latest: '{preview(utterance)}'")

        if utterance:
            verdict = self._moderate(utterance)
            if verdict.flagged:
                logger.info("[WORKFLOW] 2. Utterance flagged, sending denial")
                yield from self._deny(verdict)
                return

        intent = route_intent(utterance)
        logger.info(f"[WORKFLOW] 3. Intent: {intent}")
        if intent == "vendor_search":
            yield from self._vendor_path(utterance)
        else:
            yield from self._general_path(messages)

    def _moderate(self, utterance: str) -> ModerationResult:
        try:
            return self.moderation.classify(utterance)
        except Exception as e:
            if not isinstance(e, ModerationError):
                logger.exception("[MODERATION] gate failed unexpectedly")
            if self.fail_closed:
                logger.error(f"[MODERATION] classifier failed, denying turn: {e}")
                return ModerationResult(flagged=True, denial_message=DEFAULT_DENIAL)
            logger.warning(f"[MODERATION] classifier failed, continuing unflagged: {e}")
            return ModerationResult(flagged=False)

    def _deny(self, verdict: ModerationResult) -> Iterator[StreamEvent]:
        writer = StreamWriter()
        yield writer.start()
        yield writer.text_start(DENIAL_TEXT_ID)
        yield writer.text_delta(DENIAL_TEXT_ID, verdict.denial_message or DEFAULT_DENIAL)
        yield writer.text_end(DENIAL_TEXT_ID)
        yield from writer.finish()

    def _vendor_path(self, utterance: str) -> Iterator[StreamEvent]:
        vendors: List[VendorRecord] = []
        try:
            vendors = self.retriever.search(utterance, self.top_k).vendors
            text = format_vendor_list(vendors) if vendors else NO_VENDORS_MESSAGE
        except Exception as e:
            logger.error(f"[WORKFLOW] Vendor mode error: {e}")
            vendors = []
            text = VENDOR_FAILURE_MESSAGE

        writer = StreamWriter()
        yield writer.start()
        yield writer.text_start(VENDOR_TEXT_ID)
        yield writer.text_delta(VENDOR_TEXT_ID, text)
        yield writer.text_end(VENDOR_TEXT_ID)
        if self.emit_vendor_payload and vendors:
            hits = [v.model_dump(mode="json") for v in vendors[:MAX_VENDOR_LINES]]
            yield writer.payload("vendor_hits", hits)
        yield from writer.finish()

    def _general_path(self, messages: List[Message]) -> Iterator[StreamEvent]:
        writer = StreamWriter()
        yield writer.start()
        try:
            yield from self.generator.stream_chat(messages, writer)
        except BackendStreamError as e:
            logger.error(f"[WORKFLOW] General mode backend error: {e}")
            yield from writer.close_open()
            yield writer.error(BACKEND_FAILURE_MESSAGE)
        except Exception:
            logger.exception("[WORKFLOW] General mode failed unexpectedly")
            yield from writer.close_open()
            yield writer.error(BACKEND_FAILURE_MESSAGE)
        yield from writer.finish()
