#!/usr/bin/env python3
"""
Chat router tests: moderation short-circuit, vendor path formatting,
general path delegation and stream termination on failures.
"""

import unittest
from unittest.mock import MagicMock

from vendor_chat.app.controller import (
    BACKEND_FAILURE_MESSAGE,
    NO_VENDORS_MESSAGE,
    VENDOR_FAILURE_MESSAGE,
    ChatRouter,
    format_vendor_line,
    latest_user_text,
)
from vendor_chat.app.moderation import DEFAULT_DENIAL, ModerationGate
from vendor_chat.schemas.io_models import Message, ModerationResult, SearchResult, VendorRecord
from vendor_chat.utils.errors import BackendStreamError, ModerationError, RetrievalError


def user(text, **kwargs):
    return Message(role="user", parts=[{"type": "text", "text": text}], **kwargs)


def vendor(i, **fields):
    return VendorRecord(id=str(i), **fields)


def types(events):
    return [e.type for e in events]


def text_of(events):
    return "".join(e.delta for e in events if e.type == "text-delta")


class TestLatestUserText(unittest.TestCase):
    def test_concatenates_text_parts_of_latest_user_message(self):
        messages = [
            user("first"),
            Message(role="assistant", parts=[{"type": "text", "text": "reply"}]),
            Message(role="user", parts=[
                {"type": "text", "text": "Suggest "},
                {"type": "reasoning", "text": "ignored"},
                {"type": "text", "text": "caterers"},
            ]),
        ]
        self.assertEqual(latest_user_text(messages), "Suggest caterers")

    def test_no_user_message(self):
        self.assertEqual(latest_user_text([]), "")
        self.assertEqual(latest_user_text([Message(role="assistant", parts=[])]), "")


class TestVendorLineFormat(unittest.TestCase):
    def test_with_price(self):
        line = format_vendor_line(1, vendor(1, name="Spice Route", category="Caterer",
                                             location="Andheri", price_range="₹1,200/plate"))
        self.assertEqual(line, "1. Spice Route – Caterer, Andheri, approx ₹1,200/plate")

    def test_without_price_and_with_fallbacks(self):
        self.assertEqual(format_vendor_line(3, vendor(3)), "3. Unnamed vendor – Vendor, Mumbai")


class TestChatRouter(unittest.TestCase):
    def setUp(self):
        self.moderation = MagicMock()
        self.moderation.classify.return_value = ModerationResult(flagged=False)
        self.retriever = MagicMock()
        self.generator = MagicMock()
        self.router = ChatRouter(moderation=self.moderation, retriever=self.retriever,
                                 generator=self.generator, fail_closed=False,
                                 emit_vendor_payload=False)

    def run_turn(self, *messages):
        return list(self.router.route(list(messages)))

    def test_flagged_message_is_denied_without_other_calls(self):
        self.moderation.classify.return_value = ModerationResult(flagged=True, denial_message="Nope.")
        events = self.run_turn(user("wedding photographer in Mumbai"))

        self.assertEqual(types(events), ["start", "text-start", "text-delta", "text-end", "finish"])
        self.assertEqual(events[1].id, "moderation-denial-text")
        self.assertEqual(text_of(events), "Nope.")
        self.retriever.search.assert_not_called()
        self.generator.stream_chat.assert_not_called()

    def test_flagged_without_message_uses_fallback(self):
        self.moderation.classify.return_value = ModerationResult(flagged=True)
        events = self.run_turn(user("something bad"))
        self.assertEqual(text_of(events), DEFAULT_DENIAL)

    def test_end_to_end_vendor_scenario(self):
        self.retriever.search.return_value = SearchResult(vendors=[
            vendor(1, name="Spice Route", category="Caterer", location="Andheri", price_range="₹1,200/plate"),
            vendor(2, name="Bombay Feast", category="Caterer", location="Dadar"),
        ])
        events = self.run_turn(user("Suggest caterers in Mumbai"))

        self.assertEqual(types(events), ["start", "text-start", "text-delta", "text-end", "finish"])
        self.assertEqual(
            text_of(events),
            "Here are some vendors in Mumbai based on your request:\n\n"
            "1. Spice Route – Caterer, Andheri, approx ₹1,200/plate\n"
            "2. Bombay Feast – Caterer, Dadar",
        )
        self.retriever.search.assert_called_once_with("Suggest caterers in Mumbai", 5)
        self.generator.stream_chat.assert_not_called()

    def test_vendor_lines_capped_at_five_in_retriever_order(self):
        names = ["E", "A", "D", "B", "C", "F", "G"]
        self.retriever.search.return_value = SearchResult(
            vendors=[vendor(i, name=n, category="Venue", location="Juhu") for i, n in enumerate(names)]
        )
        text = text_of(self.run_turn(user("venues please")))
        lines = text.split("\n\n", 1)[1].split("\n")
        self.assertEqual(len(lines), 5)
        self.assertEqual([line.split(" ")[1] for line in lines], ["E", "A", "D", "B", "C"])

    def test_no_vendors_message(self):
        self.retriever.search.return_value = SearchResult()
        events = self.run_turn(user("decorators in bombay"))
        self.assertEqual(text_of(events), NO_VENDORS_MESSAGE)
        self.assertEqual(events[-1].type, "finish")

    def test_retrieval_failure_is_a_message_not_a_stream_failure(self):
        self.retriever.search.side_effect = RetrievalError("index down")
        events = self.run_turn(user("wedding venues"))
        self.assertEqual(types(events), ["start", "text-start", "text-delta", "text-end", "finish"])
        self.assertEqual(text_of(events), VENDOR_FAILURE_MESSAGE)

    def test_vendor_payload_event_when_enabled(self):
        self.router.emit_vendor_payload = True
        self.retriever.search.return_value = SearchResult(vendors=[vendor(1, name="Spice Route")])
        events = self.run_turn(user("caterers"))
        self.assertEqual(types(events),
                         ["start", "text-start", "text-delta", "text-end", "structured-payload", "finish"])
        self.assertEqual(events[4].kind, "vendor_hits")
        self.assertEqual(events[4].data[0]["name"], "Spice Route")

    def test_general_path_delegates_full_history(self):
        def fake_stream(messages, writer):
            yield writer.text_start("t1")
            yield writer.text_delta("t1", "Hi there")
            yield writer.text_end("t1")

        self.generator.stream_chat.side_effect = fake_stream
        history = [user("hello"), Message(role="assistant", parts=[{"type": "text", "text": "hey"}]),
                   user("how do I plan a sangeet?")]
        events = self.run_turn(*history)

        self.assertEqual(types(events), ["start", "text-start", "text-delta", "text-end", "finish"])
        passed_messages = self.generator.stream_chat.call_args[0][0]
        self.assertEqual(len(passed_messages), 3)
        self.retriever.search.assert_not_called()

    def test_backend_failure_still_finishes(self):
        def failing_stream(messages, writer):
            yield writer.text_start("t1")
            yield writer.text_delta("t1", "partial")
            raise BackendStreamError("connection reset")

        self.generator.stream_chat.side_effect = failing_stream
        events = self.run_turn(user("tell me a joke"))

        self.assertEqual(types(events), ["start", "text-start", "text-delta", "text-end", "error", "finish"])
        self.assertEqual(events[4].error_text, BACKEND_FAILURE_MESSAGE)

    def test_empty_utterance_skips_moderation(self):
        self.generator.stream_chat.side_effect = lambda messages, writer: iter(())
        events = self.run_turn(Message(role="assistant", parts=[]))
        self.moderation.classify.assert_not_called()
        self.assertEqual(types(events), ["start", "finish"])

    def test_moderation_failure_fails_open_by_default(self):
        self.moderation.classify.side_effect = ModerationError("timeout")
        self.retriever.search.return_value = SearchResult()
        events = self.run_turn(user("caterers"))
        self.assertEqual(text_of(events), NO_VENDORS_MESSAGE)

    def test_malformed_moderation_body_still_finishes_the_stream(self):
        response = MagicMock()
        response.json.return_value = {"results": [None]}
        http = MagicMock()
        http.post.return_value = response
        self.router.moderation = ModerationGate(api_key="sk-test", http=http)
        self.retriever.search.return_value = SearchResult()

        events = self.run_turn(user("caterers"))
        self.assertEqual(types(events), ["start", "text-start", "text-delta", "text-end", "finish"])
        self.assertEqual(text_of(events), NO_VENDORS_MESSAGE)

    def test_unexpected_gate_error_follows_fail_closed_policy(self):
        self.router.fail_closed = True
        self.moderation.classify.side_effect = AttributeError("'NoneType' object has no attribute 'get'")
        events = self.run_turn(user("caterers"))
        self.assertEqual(types(events), ["start", "text-start", "text-delta", "text-end", "finish"])
        self.assertEqual(text_of(events), DEFAULT_DENIAL)

    def test_moderation_failure_fails_closed_when_configured(self):
        self.router.fail_closed = True
        self.moderation.classify.side_effect = ModerationError("timeout")
        events = self.run_turn(user("caterers"))
        self.assertEqual(text_of(events), DEFAULT_DENIAL)
        self.retriever.search.assert_not_called()


if __name__ == "__main__":
    unittest.main()
