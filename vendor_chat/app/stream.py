#!/usr/bin/env python3
"""
Stream assembly for chat responses.

StreamWriter hands out StreamEvent objects and refuses any event that would
break channel ordering: start before deltas, exactly one end per channel,
one `start` first and one `finish` last. encode_sse() turns the events into
the server-sent-events body served by the chat endpoint.
"""

import json
from typing import Any, Dict, Iterable, Iterator, List

from ..schemas.stream_events import (
    ErrorEvent,
    Finish,
    FinishStep,
    ReasoningDelta,
    ReasoningEnd,
    ReasoningStart,
    Start,
    StartStep,
    StreamEvent,
    StructuredPayload,
    TextDelta,
    TextEnd,
    TextStart,
    ToolInputAvailable,
    ToolOutputAvailable,
    ToolOutputError,
)
from ..utils.errors import StreamOrderError

STREAM_HEADERS = {
    "x-vercel-ai-ui-message-stream": "v1",
    "Cache-Control": "no-cache",
}


class StreamWriter:
    """Builds one ordered event stream for a single chat turn."""

    def __init__(self):
        self.started = False
        self.finished = False
        # channel id -> "text" | "reasoning"
        self._open: Dict[str, str] = {}

    @property
    def open_channels(self) -> List[str]:
        return list(self._open)

    def _check_live(self):
        if not self.started:
            raise StreamOrderError("stream has not been started")
        if self.finished:
            raise StreamOrderError("stream already finished")

    def _open_channel(self, channel_id: str, kind: str):
        self._check_live()
        if channel_id in self._open:
            raise StreamOrderError(f"channel '{channel_id}' is already open")
        self._open[channel_id] = kind

    def _require_open(self, channel_id: str, kind: str):
        self._check_live()
        if self._open.get(channel_id) != kind:
            raise StreamOrderError(f"{kind} channel '{channel_id}' is not open")

    def start(self) -> Start:
        if self.started:
            raise StreamOrderError("stream already started")
        self.started = True
        return Start()

    def text_start(self, channel_id: str) -> TextStart:
        self._open_channel(channel_id, "text")
        return TextStart(id=channel_id)

    def text_delta(self, channel_id: str, delta: str) -> TextDelta:
        self._require_open(channel_id, "text")
        return TextDelta(id=channel_id, delta=delta)

    def text_end(self, channel_id: str) -> TextEnd:
        self._require_open(channel_id, "text")
        del self._open[channel_id]
        return TextEnd(id=channel_id)

    def reasoning_start(self, channel_id: str) -> ReasoningStart:
        self._open_channel(channel_id, "reasoning")
        return ReasoningStart(id=channel_id)

    def reasoning_delta(self, channel_id: str, delta: str) -> ReasoningDelta:
        self._require_open(channel_id, "reasoning")
        return ReasoningDelta(id=channel_id, delta=delta)

    def reasoning_end(self, channel_id: str) -> ReasoningEnd:
        self._require_open(channel_id, "reasoning")
        del self._open[channel_id]
        return ReasoningEnd(id=channel_id)

    def start_step(self) -> StartStep:
        self._check_live()
        return StartStep()

    def finish_step(self) -> FinishStep:
        self._check_live()
        return FinishStep()

    def tool_input(self, tool_call_id: str, tool_name: str, args: Dict[str, Any]) -> ToolInputAvailable:
        self._check_live()
        return ToolInputAvailable(tool_call_id=tool_call_id, tool_name=tool_name, input=args)

    def tool_output(self, tool_call_id: str, output: Any) -> ToolOutputAvailable:
        self._check_live()
        return ToolOutputAvailable(tool_call_id=tool_call_id, output=output)

    def tool_error(self, tool_call_id: str, error_text: str) -> ToolOutputError:
        self._check_live()
        return ToolOutputError(tool_call_id=tool_call_id, error_text=error_text)

    def payload(self, kind: str, data: Any) -> StructuredPayload:
        self._check_live()
        return StructuredPayload(kind=kind, data=data)

    def error(self, error_text: str) -> ErrorEvent:
        self._check_live()
        return ErrorEvent(error_text=error_text)

    def close_open(self) -> List[StreamEvent]:
        """End every channel still open, in the order they were opened."""
        events: List[StreamEvent] = []
        for channel_id, kind in list(self._open.items()):
            if kind == "text":
                events.append(self.text_end(channel_id))
            else:
                events.append(self.reasoning_end(channel_id))
        return events

    def finish(self) -> List[StreamEvent]:
        events = self.close_open()
        self._check_live()
        self.finished = True
        events.append(Finish())
        return events


def encode_sse(events: Iterable[StreamEvent]) -> Iterator[str]:
    """Serialize events as `data:` lines, closed by the [DONE] sentinel."""
    for event in events:
        yield f"data: {json.dumps(event.to_wire(), ensure_ascii=False)}\n\n"
    yield "data: [DONE]\n\n"
