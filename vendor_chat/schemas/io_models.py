"""Pydantic models for API I/O and the chat/retrieval/session contracts."""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["user", "assistant", "system", "tool"]
ChatStatus = Literal["ready", "streaming", "submitted", "error"]


class MessagePart(BaseModel):
    """One tagged part of a chat message (text, reasoning, tool-result, ...)."""
    model_config = ConfigDict(extra="allow")

    type: str
    text: Optional[str] = None


class Message(BaseModel):
    # Roles outside Role are tolerated so the wall can render them as fallback
    id: Optional[str] = None
    role: str
    parts: List[MessagePart] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def text(self) -> str:
        """Concatenate the text of the text parts, in order."""
        return "".join(p.text or "" for p in self.parts if p.type == "text")

    def parts_of(self, part_type: str) -> List[MessagePart]:
        return [p for p in self.parts if p.type == part_type]


class VendorRecord(BaseModel):
    id: str
    score: Optional[float] = None
    name: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    price_range: Optional[str] = None
    description: Optional[str] = None
    raw_metadata: Dict[str, Any] = Field(default_factory=dict)


class SearchResult(BaseModel):
    matches: List[Dict[str, Any]] = Field(default_factory=list)
    vendors: List[VendorRecord] = Field(default_factory=list)


class ModerationResult(BaseModel):
    flagged: bool = False
    denial_message: Optional[str] = None


class SessionRecord(BaseModel):
    session_key: str
    state: Any = Field(default_factory=dict)
    last_updated: Optional[datetime] = None


class ChatRequest(BaseModel):
    messages: List[Message] = Field(default_factory=list)


class SessionCreateRequest(BaseModel):
    session_key: Optional[str] = None
    state: Any = Field(default_factory=dict)


class SessionUpdateRequest(BaseModel):
    state: Any


class RenderRequest(BaseModel):
    messages: List[Message] = Field(default_factory=list)
    status: ChatStatus = "ready"
    previous_count: Optional[int] = None


class SessionLookup(BaseModel):
    """Result of a session read that keeps not-found and store errors apart."""
    status: Literal["found", "not_found", "error"]
    record: Optional[SessionRecord] = None
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status == "found"
