"""Message wall: turns a chat message list into the render list shown by the UI.

Each message is resolved once into one view variant (user, assistant,
reasoning, fallback) and the variant renders itself.
"""
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, Field

from ..app.config import Config
from ..schemas.io_models import ChatStatus, Message
from .sentinels import extract_payload, strip_payloads

STATUSES = ("ready", "streaming", "submitted", "error")
EMPTY_NOTICE = "No messages yet. Start the chat."


class RenderedMessage(BaseModel):
    key: str
    view: str
    text: str = ""
    payload: Optional[Dict[str, Any]] = None
    reasoning: List[str] = Field(default_factory=list)
    is_streaming: bool = False


class WallRender(BaseModel):
    items: List[RenderedMessage] = Field(default_factory=list)
    scroll_to_bottom: bool = False
    empty_notice: Optional[str] = None


class MessageView:
    view: str = "base"

    def __init__(self, message: Message, key: str, is_streaming: bool = False):
        self.message = message
        self.key = key
        self.is_streaming = is_streaming

    def visible_text(self) -> str:
        return strip_payloads(self.message.text())

    def payload(self) -> Optional[Dict[str, Any]]:
        # First-class structured-payload parts win over text sentinels
        for part in self.message.parts_of("structured-payload"):
            extra = part.model_extra or {}
            if extra.get("kind"):
                return {"kind": extra["kind"], "data": extra.get("data")}
        found = extract_payload(self.message.text())
        if found is None:
            return None
        kind, data = found
        return {"kind": kind, "data": data}

    def reasoning(self) -> List[str]:
        return [p.text for p in self.message.parts_of("reasoning") if p.text]

    def render(self) -> RenderedMessage:
        return RenderedMessage(
            key=self.key,
            view=self.view,
            text=self.visible_text(),
            payload=self.payload(),
            reasoning=self.reasoning(),
            is_streaming=self.is_streaming,
        )


class UserView(MessageView):
    view = "user"

    def payload(self) -> Optional[Dict[str, Any]]:
        return None

    def reasoning(self) -> List[str]:
        return []


class AssistantView(MessageView):
    view = "assistant"


class ReasoningView(MessageView):
    view = "reasoning"

    def visible_text(self) -> str:
        texts = [self.message.text()] + super().reasoning()
        return strip_payloads("\n\n".join(t for t in texts if t))

    def reasoning(self) -> List[str]:
        return []


class FallbackView(AssistantView):
    """Unknown roles are shown as assistant messages."""


VIEW_MAP: Dict[str, Type[MessageView]] = {
    "user": UserView,
    "assistant": AssistantView,
    "tool": AssistantView,
    "system": ReasoningView,
    "reasoning": ReasoningView,
}


def view_for(message: Message) -> Type[MessageView]:
    if message.metadata.get("reasoning"):
        return ReasoningView
    return VIEW_MAP.get(message.role, FallbackView)


class MessageWall:
    """Builds render lists and decides when the UI should scroll to the newest message."""

    def __init__(self, autoscroll: Optional[bool] = None):
        self.autoscroll = Config.WALL_AUTOSCROLL if autoscroll is None else autoscroll
        self.last_count = 0

    def render(self, messages: List[Message], status: ChatStatus = "ready",
               previous_count: Optional[int] = None) -> WallRender:
        """
        Render a message list.

        Args:
            messages: Ordered chat messages
            status: Chat stream status
            previous_count: Message count of the previous render; defaults to
                the count this wall saw last time

        Returns:
            WallRender with one item per message
        """
        if status not in STATUSES:
            raise ValueError(f"unknown chat status '{status}'")

        last_index = len(messages) - 1
        items = []
        for index, message in enumerate(messages):
            view_cls = view_for(message)
            streaming = status == "streaming" and index == last_index
            items.append(view_cls(message, message.id or f"msg-{index}", streaming).render())

        before = self.last_count if previous_count is None else previous_count
        self.last_count = len(messages)
        return WallRender(
            items=items,
            scroll_to_bottom=self.autoscroll and len(messages) != before,
            empty_notice=None if messages else EMPTY_NOTICE,
        )
