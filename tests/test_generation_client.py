#!/usr/bin/env python3
"""
GenerationClient tests against canned Gemini SSE responses.
"""

import io
import json
import unittest
from unittest.mock import MagicMock

import requests

from vendor_chat.app.generate import GenerationClient
from vendor_chat.app.stream import StreamWriter
from vendor_chat.schemas.io_models import Message
from vendor_chat.utils.errors import BackendStreamError


class FakeResponse:
    def __init__(self, chunks, status_code=200, text=""):
        self.lines = [f"data: {json.dumps(c)}" for c in chunks]
        self.status_code = status_code
        self.text = text

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def iter_lines(self, decode_unicode=False):
        for line in self.lines:
            yield line
            yield ""


def chunk(*parts):
    return {"candidates": [{"content": {"role": "model", "parts": list(parts)}}]}


def user(text):
    return Message(role="user", parts=[{"type": "text", "text": text}])


class TestGenerationClient(unittest.TestCase):
    def setUp(self):
        self.http = MagicMock()
        self.search = MagicMock(return_value={"query": "q", "results": [{"title": "Trend"}]})
        self.client = GenerationClient(
            api_key="test-key",
            model="gemini-test",
            tools={"web_search": ({"name": "web_search"}, self.search)},
            max_steps=3,
            include_thoughts=True,
            http=self.http,
        )
        self.writer = StreamWriter()
        self.writer.start()

    def run_chat(self, messages):
        return list(self.client.stream_chat(messages, self.writer))

    def test_text_and_reasoning_stream_through(self):
        self.http.post.return_value = FakeResponse([
            chunk({"text": "Thinking about sangeet", "thought": True}),
            chunk({"text": "Start with "}),
            chunk({"text": "a playlist."}),
        ])
        events = self.run_chat([user("how to plan a sangeet?")])

        self.assertEqual([e.type for e in events], [
            "start-step", "reasoning-start", "reasoning-delta", "reasoning-end",
            "text-start", "text-delta", "text-delta", "text-end", "finish-step",
        ])
        self.assertEqual("".join(e.delta for e in events if e.type == "text-delta"), "Start with a playlist.")
        self.assertEqual(self.http.post.call_count, 1)

        payload = self.http.post.call_args.kwargs["json"]
        self.assertEqual(payload["contents"], [{"role": "user", "parts": [{"text": "how to plan a sangeet?"}]}])
        self.assertIn("Mumbai", payload["systemInstruction"]["parts"][0]["text"])
        self.assertEqual(payload["generationConfig"]["thinkingConfig"], {"includeThoughts": True})
        self.assertEqual(payload["tools"], [{"functionDeclarations": [{"name": "web_search"}]}])
        self.assertIn("alt=sse", self.http.post.call_args.args[0])

    def test_tool_calls_run_one_at_a_time_then_answer(self):
        self.http.post.side_effect = [
            FakeResponse([chunk(
                {"functionCall": {"name": "web_search", "args": {"query": "mehendi trends"}}},
                {"functionCall": {"name": "web_search", "args": {"query": "haldi trends"}}},
            )]),
            FakeResponse([chunk({"text": "Here is what's trending."})]),
        ]
        events = self.run_chat([user("latest trends?")])

        self.assertEqual([e.type for e in events], [
            "start-step", "tool-input-available", "tool-output-available",
            "tool-input-available", "tool-output-available", "finish-step",
            "start-step", "text-start", "text-delta", "text-end", "finish-step",
        ])
        self.assertEqual([c.kwargs for c in self.search.call_args_list],
                         [{"query": "mehendi trends"}, {"query": "haldi trends"}])

        second_contents = self.http.post.call_args_list[1].kwargs["json"]["contents"]
        self.assertEqual(second_contents[1]["role"], "model")
        responses = second_contents[2]["parts"]
        self.assertEqual([r["functionResponse"]["name"] for r in responses], ["web_search", "web_search"])
        self.assertEqual(responses[0]["functionResponse"]["response"]["result"]["results"][0]["title"], "Trend")

    def test_tool_error_is_reported_not_raised(self):
        self.search.side_effect = RuntimeError("quota exceeded")
        self.http.post.side_effect = [
            FakeResponse([chunk({"functionCall": {"name": "web_search", "args": {"query": "x"}}})]),
            FakeResponse([chunk({"text": "Sorry, search is unavailable."})]),
        ]
        events = self.run_chat([user("search something")])
        errors = [e for e in events if e.type == "tool-output-error"]
        self.assertEqual(len(errors), 1)
        self.assertIn("quota exceeded", errors[0].error_text)

    def test_step_bound_stops_the_loop(self):
        self.http.post.side_effect = lambda *a, **kw: FakeResponse(
            [chunk({"functionCall": {"name": "web_search", "args": {"query": "again"}}})]
        )
        events = self.run_chat([user("loop forever")])
        self.assertEqual(self.http.post.call_count, 3)
        self.assertEqual(sum(1 for e in events if e.type == "start-step"), 3)

    def test_http_error_raises_backend_error(self):
        self.http.post.return_value = FakeResponse([], status_code=500, text="boom")
        with self.assertRaises(BackendStreamError):
            self.run_chat([user("hi")])

    def test_connection_error_raises_backend_error(self):
        self.http.post.side_effect = requests.exceptions.ConnectionError("refused")
        with self.assertRaises(BackendStreamError):
            self.run_chat([user("hi")])

    def test_utf8_event_stream_is_decoded_as_utf8(self):
        body = f"data: {json.dumps(chunk({'text': '₹1,200 – शादी'}), ensure_ascii=False)}\n\n"
        response = requests.models.Response()
        response.status_code = 200
        response.headers["Content-Type"] = "text/event-stream"
        response.raw = io.BytesIO(body.encode("utf-8"))
        response.encoding = "ISO-8859-1"
        self.http.post.return_value = response

        events = self.run_chat([user("rate for a shaadi caterer?")])
        self.assertEqual("".join(e.delta for e in events if e.type == "text-delta"), "₹1,200 – शादी")

    def test_missing_api_key(self):
        client = GenerationClient(api_key="", http=self.http)
        client.api_key = None
        with self.assertRaises(BackendStreamError):
            list(client.stream_chat([user("hi")], self.writer))


if __name__ == "__main__":
    unittest.main()
