#!/usr/bin/env python3
"""
Tests for completion payload normalization and script section parsing.
"""
import unittest
import sys
from pathlib import Path

# Add the backend directory to the Python path
backend_dir = Path(__file__).parent.parent
sys.path.append(str(backend_dir))
sys.path.append(str(Path(__file__).parent))

from services.models import PayloadKind, RawCompletionPayload, ScriptSections
from services.output_parser import ScriptParser, clean_text, normalize_payload
from fakes import SCRIPT_30S

EXPECTED_30S = ScriptSections(
    hook=SCRIPT_30S["hook"],
    bridge=SCRIPT_30S["bridge"],
    golden_nugget=SCRIPT_30S["goldenNugget"],
    wta=SCRIPT_30S["wta"],
)


class TestNormalizePayload(unittest.TestCase):

    def test_empty_inputs(self):
        for content in (None, "", "   \n", {}, [], {"unrelated": "value"}, [1, 2]):
            with self.subTest(content=content):
                self.assertIs(normalize_payload(content).kind, PayloadKind.EMPTY)

    def test_text(self):
        payload = normalize_payload("Some script text.")
        self.assertIs(payload.kind, PayloadKind.TEXT)
        self.assertEqual(payload.text, "Some script text.")

    def test_structured_object(self):
        payload = normalize_payload(SCRIPT_30S)
        self.assertIs(payload.kind, PayloadKind.STRUCTURED)
        self.assertEqual(payload.sections, EXPECTED_30S)

    def test_key_aliases(self):
        payload = normalize_payload({"hook": "h", "bridge": "b", "golden_nugget": "g", "cta": "c"})
        self.assertEqual(payload.sections, ScriptSections("h", "b", "g", "c"))

        payload = normalize_payload({"hook": "h", "nugget": "g", "callToAction": "c"})
        self.assertEqual(payload.sections, ScriptSections("h", "", "g", "c"))

    def test_nested_object(self):
        for key in ("script", "elements", "content"):
            with self.subTest(key=key):
                self.assertEqual(normalize_payload({key: SCRIPT_30S}).sections, EXPECTED_30S)

    def test_array_of_fragments(self):
        fragments = [{"hook": "h"}, {"bridge": "b"}, {"goldenNugget": "g"}, {"wta": "w"}]
        self.assertEqual(normalize_payload(fragments).sections, ScriptSections("h", "b", "g", "w"))

    def test_array_of_strings(self):
        payload = normalize_payload(["one", "two"])
        self.assertIs(payload.kind, PayloadKind.TEXT)
        self.assertEqual(payload.text, "one\n\ntwo")

    def test_payload_passthrough(self):
        payload = RawCompletionPayload.from_text("already normalized")
        self.assertIs(normalize_payload(payload), payload)


class TestStructuredParsing(unittest.TestCase):

    def test_well_formed_object_is_unchanged(self):
        self.assertEqual(ScriptParser.parse(SCRIPT_30S), EXPECTED_30S)
        self.assertEqual(ScriptParser.parse(SCRIPT_30S).to_dict(), SCRIPT_30S)

    def test_markers_are_stripped(self):
        sections = ScriptParser.parse({
            "hook": "Stop (pause) scrolling (12)",
            "bridge": "Here's  why.",
            "goldenNugget": "Sleep first.",
            "wta": "Follow (PAUSE) now.",
        })
        self.assertEqual(sections, ScriptSections("Stop scrolling", "Here's why.", "Sleep first.", "Follow now."))

    def test_empty_bridge_is_accepted(self):
        sections = ScriptParser.parse({"hook": "h", "bridge": "", "goldenNugget": "g", "wta": "w"})
        self.assertEqual(sections.missing_sections(), ["bridge"])

    def test_missing_required_section(self):
        self.assertIsNone(ScriptParser.parse({"hook": "h", "bridge": "b", "wta": "w"}))


class TestTextParsing(unittest.TestCase):

    def test_inline_tags_with_run_on_first_line(self):
        # Model output where the first line is tagged (Bridge) and no (Hook) tag exists.
        text = "Is AI scary? (Bridge)\nHere's why. (Golden Nugget)\nFollow now! (CTA)"
        sections = ScriptParser.parse(text)

        self.assertEqual(sections.hook, "Is AI scary?")
        self.assertEqual(sections.bridge, "")
        self.assertEqual(sections.golden_nugget, "Here's why.")
        self.assertEqual(sections.wta, "Follow now!")

    def test_run_on_first_line_splits_at_last_sentence(self):
        text = "Is AI scary? Most people think so. (Bridge)\nHere's why. (Golden Nugget)\nFollow now! (CTA)"
        sections = ScriptParser.parse(text)

        self.assertEqual(sections.hook, "Is AI scary?")
        self.assertEqual(sections.bridge, "Most people think so.")

    def test_inline_tags_label_preceding_text(self):
        text = "Stop scrolling. (Hook) Here's why. (Bridge) Sleep before noon. (Golden Nugget) Follow for more. (CTA)"
        self.assertEqual(
            ScriptParser.parse(text),
            ScriptSections("Stop scrolling.", "Here's why.", "Sleep before noon.", "Follow for more."),
        )

    def test_untagged_trailing_text_becomes_wta(self):
        text = "Stop scrolling. (Hook) Here's why. (Bridge) Sleep before noon. (Golden Nugget) Follow for more."
        self.assertEqual(ScriptParser.parse(text).wta, "Follow for more.")

    def test_leading_tags_label_following_text(self):
        text = "(Hook) Stop scrolling. (Bridge) Here's why. (Golden Nugget) Sleep before noon. (CTA) Follow for more."
        self.assertEqual(
            ScriptParser.parse(text),
            ScriptSections("Stop scrolling.", "Here's why.", "Sleep before noon.", "Follow for more."),
        )

    def test_labeled_format(self):
        text = (
            "HOOK: Stop scrolling.\n"
            "BRIDGE: Here's why it matters.\n"
            "GOLDEN NUGGET: Sleep before noon.\n"
            "Nap for twenty minutes.\n"
            "CTA: Follow for more."
        )
        self.assertEqual(
            ScriptParser.parse(text),
            ScriptSections(
                "Stop scrolling.",
                "Here's why it matters.",
                "Sleep before noon. Nap for twenty minutes.",
                "Follow for more.",
            ),
        )

    def test_labeled_format_with_markdown_and_counts(self):
        text = (
            "**Hook (8 words):** Stop scrolling right now.\n"
            "**Bridge:** Here's why.\n"
            "- Golden_Nugget: Sleep first.\n"
            "## Call to Action: Follow."
        )
        self.assertEqual(
            ScriptParser.parse(text),
            ScriptSections("Stop scrolling right now.", "Here's why.", "Sleep first.", "Follow."),
        )

    def test_upper_case_labels_on_one_line(self):
        text = "HOOK: Is AI scary? BRIDGE: Here's why. GOLDEN NUGGET: It learns from you. CTA: Follow now!"
        self.assertEqual(
            ScriptParser.parse(text),
            ScriptSections("Is AI scary?", "Here's why.", "It learns from you.", "Follow now!"),
        )

    def test_mixed_line_and_inline_labels(self):
        text = "**Hook:** Stop scrolling. BRIDGE: Here's why.\nGolden Nugget: Sleep first.\nCTA: Follow."
        self.assertEqual(
            ScriptParser.parse(text),
            ScriptSections("Stop scrolling.", "Here's why.", "Sleep first.", "Follow."),
        )

    def test_labels_only_count_at_line_start(self):
        text = "The hook: grabs attention.\nThen the bridge: connects.\nOnly that."
        self.assertIsNone(ScriptParser.parse_labeled_format(text))

    def test_paragraph_split(self):
        text = "Stop scrolling.\n\nHere's why.\n\nSleep first.\n\nThen nap.\n\nFollow for more."
        self.assertEqual(
            ScriptParser.parse(text),
            ScriptSections("Stop scrolling.", "Here's why.", "Sleep first. Then nap.", "Follow for more."),
        )

    def test_proportional_split_is_an_approximation(self):
        text = (
            "Stop scrolling. This matters. Here's the problem. Nobody sleeps enough. "
            "Go to bed at ten. Follow for more."
        )
        sections = ScriptParser.parse(text)

        self.assertEqual(sections.hook, "Stop scrolling. This matters.")
        self.assertEqual(sections.bridge, "Here's the problem. Nobody sleeps enough.")
        self.assertEqual(sections.golden_nugget, "Go to bed at ten.")
        self.assertEqual(sections.wta, "Follow for more.")

    def test_proportional_minimum_sentences(self):
        sections = ScriptParser.parse("One. Two. Three. Four.")
        self.assertEqual(sections, ScriptSections("One.", "Two.", "Three.", "Four."))

        self.assertIsNone(ScriptParser.parse("One. Two. Three."))

    def test_unparseable_text(self):
        self.assertIsNone(ScriptParser.parse("Just one sentence here."))
        self.assertIsNone(ScriptParser.parse(""))
        self.assertIsNone(ScriptParser.parse(None))


class TestCleanText(unittest.TestCase):

    def test_clean_text(self):
        self.assertEqual(clean_text("  a (pause)  b (3)\n c "), "a b c")
        self.assertEqual(clean_text(None), "")


if __name__ == "__main__":
    unittest.main()
