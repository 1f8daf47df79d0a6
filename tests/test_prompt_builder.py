#!/usr/bin/env python3
"""
Prompt builder tests: editorial prompt templating and content conversion.
"""

import unittest

from vendor_chat.app.prompt_builder import NOT_PROVIDED, SYSTEM_PROMPT, PromptBuilder, build_editorial_prompt
from vendor_chat.schemas.io_models import Message, VendorRecord


class TestEditorialPrompt(unittest.TestCase):
    def setUp(self):
        self.vendor = {"name": "Spice Route", "category": "Caterer", "location": "Andheri",
                       "price_range": "₹1,200/plate", "short_description": "North Indian buffets."}
        self.reviews = [{"rating": 5, "text": f"Review number {i}"} for i in range(60)]

    def test_reviews_are_truncated(self):
        prompt = build_editorial_prompt(self.vendor, self.reviews)
        self.assertIn("Reviews (50 of 60)", prompt)
        self.assertIn("Review number 49", prompt)
        self.assertNotIn("Review number 50", prompt)

        short = build_editorial_prompt(self.vendor, self.reviews, max_reviews=3)
        self.assertIn("Reviews (3 of 60)", short)
        self.assertNotIn("Review number 3\"", short)

    def test_vendor_fields_are_templated(self):
        prompt = build_editorial_prompt(self.vendor, [])
        self.assertIn("### **Spice Route**", prompt)
        self.assertIn("North Indian buffets.", prompt)
        self.assertIn("Category: Caterer | Location: Andheri | Price range: ₹1,200/plate", prompt)
        self.assertIn("### **7. Reviewer Quotes**", prompt)

    def test_missing_fields_render_as_not_provided(self):
        prompt = build_editorial_prompt(VendorRecord(id="v1"), None)
        self.assertIn("### **Vendor**", prompt)
        self.assertIn("Description not provided.", prompt)
        self.assertIn(f"Category: {NOT_PROVIDED} | Location: {NOT_PROVIDED} | Price range: {NOT_PROVIDED}", prompt)
        self.assertIn("Reviews (0 of 0)", prompt)

    def test_prompt_is_deterministic(self):
        self.assertEqual(build_editorial_prompt(self.vendor, self.reviews),
                         build_editorial_prompt(dict(self.vendor), list(self.reviews)))


class TestPromptBuilder(unittest.TestCase):
    def setUp(self):
        self.builder = PromptBuilder()

    def test_contents_keep_user_and_assistant_text(self):
        messages = [
            Message(role="system", parts=[{"type": "text", "text": "Prefer vegetarian caterers."}]),
            Message(role="user", parts=[{"type": "text", "text": "Plan a haldi"}]),
            Message(role="assistant", parts=[{"type": "reasoning", "text": "hidden"},
                                             {"type": "text", "text": "Sure!"}]),
            Message(role="assistant", parts=[]),
            Message(role="tool", parts=[{"type": "text", "text": "raw tool output"}]),
        ]
        self.assertEqual(self.builder.build_contents(messages), [
            {"role": "user", "parts": [{"text": "Plan a haldi"}]},
            {"role": "model", "parts": [{"text": "Sure!"}]},
        ])

        instruction = self.builder.build_system_instruction(messages)["parts"][0]["text"]
        self.assertTrue(instruction.startswith(SYSTEM_PROMPT))
        self.assertTrue(instruction.endswith("Prefer vegetarian caterers."))


if __name__ == "__main__":
    unittest.main()
