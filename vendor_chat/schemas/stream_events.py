"""Stream event variants emitted to the chat UI, one model per event type.

Field aliases match the camelCase names of the UI message stream wire format.
"""
from typing import Any, Dict, Literal

from pydantic import BaseModel, ConfigDict, Field


class StreamEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Start(StreamEvent):
    type: Literal["start"] = "start"


class Finish(StreamEvent):
    type: Literal["finish"] = "finish"


class StartStep(StreamEvent):
    type: Literal["start-step"] = "start-step"


class FinishStep(StreamEvent):
    type: Literal["finish-step"] = "finish-step"


class TextStart(StreamEvent):
    type: Literal["text-start"] = "text-start"
    id: str


class TextDelta(StreamEvent):
    type: Literal["text-delta"] = "text-delta"
    id: str
    delta: str


class TextEnd(StreamEvent):
    type: Literal["text-end"] = "text-end"
    id: str


class ReasoningStart(StreamEvent):
    type: Literal["reasoning-start"] = "reasoning-start"
    id: str


class ReasoningDelta(StreamEvent):
    type: Literal["reasoning-delta"] = "reasoning-delta"
    id: str
    delta: str


class ReasoningEnd(StreamEvent):
    type: Literal["reasoning-end"] = "reasoning-end"
    id: str


class ToolInputAvailable(StreamEvent):
    type: Literal["tool-input-available"] = "tool-input-available"
    tool_call_id: str = Field(alias="toolCallId")
    tool_name: str = Field(alias="toolName")
    input: Dict[str, Any] = Field(default_factory=dict)


class ToolOutputAvailable(StreamEvent):
    type: Literal["tool-output-available"] = "tool-output-available"
    tool_call_id: str = Field(alias="toolCallId")
    output: Any = None


class ToolOutputError(StreamEvent):
    type: Literal["tool-output-error"] = "tool-output-error"
    tool_call_id: str = Field(alias="toolCallId")
    error_text: str = Field(alias="errorText")


class StructuredPayload(StreamEvent):
    """Structured data (vendor hits, details, reviews, guides) sent beside the text."""
    type: Literal["structured-payload"] = "structured-payload"
    kind: str
    data: Any = None


class ErrorEvent(StreamEvent):
    type: Literal["error"] = "error"
    error_text: str = Field(alias="errorText")
