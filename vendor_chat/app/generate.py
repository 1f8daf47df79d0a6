#!/usr/bin/env python3
"""
Generation module for the vendor chat backend.

This module streams answers from the Gemini API for the general chat path.
Each step is one streamGenerateContent call; when the model asks for tools
they run one at a time, in the order requested, and their results are sent
back in the next step. The loop stops when the model answers without a tool
call or after MAX_TOOL_STEPS steps.
"""

import json
import uuid
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

import requests

from .config import Config
from .prompt_builder import PromptBuilder
from .stream import StreamWriter
from ..schemas.io_models import Message
from ..schemas.stream_events import StreamEvent
from ..tools.web_search import WEB_SEARCH_DECLARATION, web_search
from ..utils.errors import BackendStreamError
from ..utils.logger import get_logger

logger = get_logger()

ToolSpec = Tuple[Dict[str, Any], Callable[..., Any]]

DEFAULT_TOOLS: Dict[str, ToolSpec] = {
    "web_search": (WEB_SEARCH_DECLARATION, web_search),
}


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class GenerationClient:
    """Client for streaming answers using Gemini LLM API."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 tools: Optional[Dict[str, ToolSpec]] = None,
                 max_steps: int = Config.MAX_TOOL_STEPS,
                 include_thoughts: Optional[bool] = None,
                 prompt_builder: Optional[PromptBuilder] = None,
                 http: Optional[requests.Session] = None):
        """Initialize the generation client."""
        self.api_key = api_key or Config.GEMINI_API_KEY
        self.llm_model = model or Config.GEMINI_MODEL
        self.api_base_url = f"{Config.GEMINI_API_BASE}/models/{self.llm_model}:streamGenerateContent"
        self.tools = DEFAULT_TOOLS if tools is None else tools
        self.max_steps = max_steps
        self.include_thoughts = Config.GEMINI_INCLUDE_THOUGHTS if include_thoughts is None else include_thoughts
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.http = http or requests.Session()

    def _build_payload(self, system_instruction: Dict[str, Any], contents: List[Dict[str, Any]]) -> Dict[str, Any]:
        generation_config: Dict[str, Any] = {"temperature": Config.GEMINI_TEMPERATURE}
        if self.include_thoughts:
            generation_config["thinkingConfig"] = {"includeThoughts": True}

        payload: Dict[str, Any] = {
            "systemInstruction": system_instruction,
            "contents": contents,
            "generationConfig": generation_config,
        }
        if self.tools:
            payload["tools"] = [{"functionDeclarations": [spec for spec, _ in self.tools.values()]}]
            payload["toolConfig"] = {"functionCallingConfig": {"mode": "AUTO"}}
        return payload

    def _stream_step(self, payload: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
        """Yield the content parts of one streamed model response as they arrive."""
        try:
            with self.http.post(
                f"{self.api_base_url}?alt=sse&key={self.api_key}",
                json=payload,
                stream=True,
                timeout=Config.REQUEST_TIMEOUT,
            ) as response:
                if response.status_code != 200:
                    logger.error(f"[GENERATE] Gemini error {response.status_code}: {response.text[:500]}")
                    raise BackendStreamError(f"Gemini API returned status {response.status_code}")

                # text/event-stream has no charset, requests would guess ISO-8859-1
                response.encoding = "utf-8"
                for line in response.iter_lines(decode_unicode=True):
                    if not line or not line.startswith("data:"):
                        continue
                    data = line[len("data:"):].strip()
                    if not data:
                        continue
                    chunk = json.loads(data)
                    if "error" in chunk:
                        raise BackendStreamError(f"Gemini stream error: {chunk['error']}")
                    candidates = chunk.get("candidates") or []
                    if not candidates:
                        continue
                    for part in (candidates[0].get("content") or {}).get("parts") or []:
                        yield part
        except requests.exceptions.RequestException as e:
            raise BackendStreamError(f"Error streaming from Gemini: {e}") from e
        except ValueError as e:
            raise BackendStreamError(f"Error parsing Gemini stream: {e}") from e

    def _execute_tool(self, name: str, args: Dict[str, Any]) -> Any:
        if name not in self.tools:
            raise KeyError(f"unknown tool '{name}'")
        _, func = self.tools[name]
        return func(**args)

    def stream_chat(self, messages: List[Message], writer: StreamWriter) -> Iterator[StreamEvent]:
        """
        Stream a tool-augmented answer for the conversation.

        Args:
            messages: Full conversation history
            writer: Writer for the current turn; must already be started

        Yields:
            Step, text, reasoning and tool events

        Raises:
            BackendStreamError: the Gemini API failed or returned malformed data
        """
        if not self.api_key:
            raise BackendStreamError("Gemini API key is required")

        system_instruction = self.prompt_builder.build_system_instruction(messages)
        contents = self.prompt_builder.build_contents(messages)

        for step in range(1, self.max_steps + 1):
            logger.info(f"[GENERATE] Step {step}: sending {len(contents)} contents to {self.llm_model}")
            yield writer.start_step()

            calls: List[Dict[str, Any]] = []
            model_parts: List[Dict[str, Any]] = []
            current: Optional[Tuple[str, str]] = None  # (kind, channel id)

            for part in self._stream_step(self._build_payload(system_instruction, contents)):
                if "functionCall" in part:
                    calls.append(part["functionCall"])
                    model_parts.append(part)
                    continue
                text = part.get("text")
                if not text:
                    continue
                kind = "reasoning" if part.get("thought") else "text"
                if current is None or current[0] != kind:
                    if current is not None:
                        yield self._end(writer, current)
                    current = (kind, _new_id(kind))
                    yield writer.text_start(current[1]) if kind == "text" else writer.reasoning_start(current[1])
                if kind == "text":
                    model_parts.append(part)
                    yield writer.text_delta(current[1], text)
                else:
                    yield writer.reasoning_delta(current[1], text)

            if current is not None:
                yield self._end(writer, current)

            if not calls:
                yield writer.finish_step()
                return

            contents.append({"role": "model", "parts": model_parts})
            response_parts = []
            for call in calls:
                response_parts.append((yield from self._run_call(call, writer)))
            contents.append({"role": "user", "parts": response_parts})
            yield writer.finish_step()

        logger.warning(f"[GENERATE] Stopped after {self.max_steps} steps with tool calls pending")

    def _end(self, writer: StreamWriter, current: Tuple[str, str]) -> StreamEvent:
        kind, channel_id = current
        return writer.text_end(channel_id) if kind == "text" else writer.reasoning_end(channel_id)

    def _run_call(self, call: Dict[str, Any], writer: StreamWriter):
        """Run one tool call, yielding its events; returns the functionResponse part."""
        name = call.get("name", "")
        args = call.get("args") or {}
        call_id = call.get("id") or _new_id("call")
        yield writer.tool_input(call_id, name, args)
        try:
            result = self._execute_tool(name, args)
        except Exception as e:
            logger.warning(f"[GENERATE] Tool '{name}' failed: {e}")
            yield writer.tool_error(call_id, str(e))
            return {"functionResponse": {"name": name, "response": {"error": str(e)}}}

        yield writer.tool_output(call_id, result)
        return {"functionResponse": {"name": name, "response": {"result": result}}}
