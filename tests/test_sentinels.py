#!/usr/bin/env python3
import unittest

from vendor_chat.render.sentinels import SENTINEL_MARKERS, embed_payload, extract_payload, strip_payloads


class TestStripPayloads(unittest.TestCase):
    def test_plain_text_is_untouched(self):
        text = "  Here are some venues.\n"
        self.assertEqual(strip_payloads(text), text)
        self.assertEqual(strip_payloads(""), "")

    def test_every_marker_pair_is_removed(self):
        for kind in SENTINEL_MARKERS:
            with self.subTest(kind=kind):
                text = "Top picks:\n" + embed_payload(kind, {"items": [1, 2]}) + "\nEnjoy!"
                stripped = strip_payloads(text)
                self.assertEqual(stripped, "Top picks:\n\nEnjoy!")
                self.assertNotIn("JSON", stripped)

    def test_stripping_is_idempotent(self):
        text = "Hi " + embed_payload("guide", {"steps": []}) + " there"
        once = strip_payloads(text)
        self.assertEqual(strip_payloads(once), once)

    def test_overlapping_blocks_of_different_kinds(self):
        text = ("A __VENDOR_HITS_JSON__ x ___GUIDE_JSON___ y __END_VENDOR_HITS_JSON__ "
                "z ___END_GUIDE_JSON___ B")
        self.assertEqual(strip_payloads(text), "A  B")

    def test_mixed_kinds_and_stray_end_marker(self):
        text = ("Intro " + embed_payload("guide", {"g": 1}) + " middle "
                + embed_payload("vendor_reviews", {"r": 2}) + " outro __END_VENDOR_DETAILS_JSON__")
        stripped = strip_payloads(text)
        self.assertEqual(stripped, "Intro  middle  outro")
        for start, end in SENTINEL_MARKERS.values():
            self.assertNotIn(start, stripped)
            self.assertNotIn(end, stripped)

    def test_unterminated_block_hides_the_tail(self):
        text = 'Loading vendors __VENDOR_HITS_JSON__[{"name": "Spi'
        self.assertEqual(strip_payloads(text), "Loading vendors")


class TestExtractPayload(unittest.TestCase):
    def test_recovers_embedded_payload(self):
        data = {"vendors": [{"name": "Spice Route", "price": "₹1,200"}]}
        text = "Some text " + embed_payload("vendor_hits", data)
        self.assertEqual(extract_payload(text), ("vendor_hits", data))

    def test_earliest_block_wins(self):
        text = embed_payload("vendor_reviews", {"r": 1}) + embed_payload("vendor_details", {"d": 2})
        self.assertEqual(extract_payload(text), ("vendor_reviews", {"r": 1}))

    def test_recovers_object_from_noisy_block(self):
        text = '__VENDOR_DETAILS_JSON__```json\n{"name": "Lens & Light"}\n```__END_VENDOR_DETAILS_JSON__'
        self.assertEqual(extract_payload(text), ("vendor_details", {"name": "Lens & Light"}))

    def test_unparseable_or_incomplete_blocks(self):
        self.assertIsNone(extract_payload("no markers here"))
        self.assertIsNone(extract_payload("__VENDOR_HITS_JSON__not json__END_VENDOR_HITS_JSON__"))
        self.assertIsNone(extract_payload('__VENDOR_HITS_JSON__{"a": 1}'))
        self.assertIsNone(extract_payload(""))


if __name__ == "__main__":
    unittest.main()
