"""
Output parser: turns whatever the completion service returned into the four
script sections.

normalize_payload() collapses every response shape (object, nested object,
array of fragments, plain text) into a RawCompletionPayload. ScriptParser.parse()
then tries, in order: structured object, labeled-colon text, inline tags,
paragraph split, proportional sentence split.
"""
import math
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from core.logger import logger
from services.models import PayloadKind, RawCompletionPayload, SECTION_NAMES, ScriptSections

SECTION_ALIASES: Dict[str, Tuple[str, ...]] = {
    "hook": ("hook",),
    "bridge": ("bridge",),
    "golden_nugget": ("goldenNugget", "golden_nugget", "goldennugget", "nugget"),
    "wta": ("wta", "cta", "callToAction", "call_to_action"),
}
NESTED_KEYS = ("script", "elements", "content")

_PAUSE_MARKER = re.compile(r"\(\s*pause\s*\)", re.IGNORECASE)
_COUNT_MARKER = re.compile(r"\(\d+\)")
_WHITESPACE = re.compile(r"\s+")

_LABEL_LINE = re.compile(
    r"^[ \t>*#_\-]*"
    r"(?P<label>hook|bridge|golden[ _\-]?nugget|nugget|wta|cta|call[ \-]to[ \-]action|what[ \-]to[ \-]act)"
    r"(?:[ \t]*\([^)\n]*\))?[ \t*_]*:[ \t*_]*",
    re.IGNORECASE | re.MULTILINE,
)
# Upper-case labels also count mid-line, for output that runs every section together.
_LABEL_INLINE = re.compile(
    r"(?<![A-Za-z])"
    r"(?P<label>HOOK|BRIDGE|GOLDEN[ _\-]?NUGGET|NUGGET|WTA|CTA|CALL[ \-]TO[ \-]ACTION)"
    r"(?:[ \t]*\([^)\n]*\))?[ \t*_]*:[ \t*_]*"
)
_INLINE_TAG = re.compile(r"\(\s*(?P<label>hook|bridge|golden\s+nugget|cta|wta)\s*\)", re.IGNORECASE)
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")


def clean_text(text: str) -> str:
    """Strip pause and word-count markers, collapse whitespace."""
    text = _PAUSE_MARKER.sub("", text or "")
    text = _COUNT_MARKER.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def _label_to_section(label: str) -> str:
    label = _WHITESPACE.sub(" ", label.lower().replace("_", " ").replace("-", " "))
    if label == "hook":
        return "hook"
    if label == "bridge":
        return "bridge"
    if "nugget" in label:
        return "golden_nugget"
    return "wta"


def _label_matches(text: str) -> List[re.Match]:
    matches = list(_LABEL_LINE.finditer(text))
    seen = {match.start("label") for match in matches}
    matches.extend(match for match in _LABEL_INLINE.finditer(text) if match.start("label") not in seen)
    return sorted(matches, key=lambda match: match.start("label"))


def _is_usable(sections: ScriptSections) -> bool:
    # Bridge may legitimately come back empty; the other three may not.
    return not set(sections.missing_sections()) - {"bridge"}


def _to_sections(values: Dict[str, str]) -> ScriptSections:
    return ScriptSections(
        hook=clean_text(values.get("hook", "")),
        bridge=clean_text(values.get("bridge", "")),
        golden_nugget=clean_text(values.get("golden_nugget", "")),
        wta=clean_text(values.get("wta", "")),
    )


def _sections_from_mapping(data: Mapping[str, Any]) -> Optional[ScriptSections]:
    found = {}
    for section, aliases in SECTION_ALIASES.items():
        for alias in aliases:
            value = data.get(alias)
            if isinstance(value, str) and value.strip():
                found[section] = value
                break
    if not found:
        return None
    return ScriptSections(
        hook=found.get("hook", ""),
        bridge=found.get("bridge", ""),
        golden_nugget=found.get("golden_nugget", ""),
        wta=found.get("wta", ""),
    )


def _merge_fragments(items: List[Mapping[str, Any]]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for item in items:
        for key, value in item.items():
            if value:
                merged[key] = value
    return merged


def normalize_payload(content: Any) -> RawCompletionPayload:
    """Single exhaustive mapping from a completion result to a RawCompletionPayload."""
    if isinstance(content, RawCompletionPayload):
        return content

    if content is None:
        return RawCompletionPayload.empty()

    if isinstance(content, str):
        return RawCompletionPayload.from_text(content)

    if isinstance(content, Mapping):
        sections = _sections_from_mapping(content)
        if sections is not None:
            return RawCompletionPayload.structured(sections)
        for key in NESTED_KEYS:
            if key in content:
                nested = normalize_payload(content[key])
                if nested.kind is not PayloadKind.EMPTY:
                    return nested
        return RawCompletionPayload.empty()

    if isinstance(content, (list, tuple)):
        if content and all(isinstance(item, Mapping) for item in content):
            return normalize_payload(_merge_fragments(content))
        if content and all(isinstance(item, str) for item in content):
            return RawCompletionPayload.from_text("\n\n".join(content))
        return RawCompletionPayload.empty()

    return RawCompletionPayload.from_text(str(content))


class ScriptParser:
    """Extracts hook / bridge / golden nugget / wta from a completion result."""

    @classmethod
    def parse(cls, raw: Any) -> Optional[ScriptSections]:
        payload = normalize_payload(raw)

        if payload.kind is PayloadKind.STRUCTURED:
            return cls.parse_structured(payload.sections)

        if payload.kind is PayloadKind.TEXT:
            return cls.parse_text(payload.text)

        return None

    @staticmethod
    def parse_structured(sections: ScriptSections) -> Optional[ScriptSections]:
        cleaned = _to_sections({name: getattr(sections, name) for name in SECTION_NAMES})
        if not _is_usable(cleaned):
            logger.debug(f"Structured output is missing sections: {cleaned.missing_sections()}")
            return None
        return cleaned

    @classmethod
    def parse_text(cls, text: str) -> Optional[ScriptSections]:
        if not text or not text.strip():
            return None

        for strategy in (
            cls.parse_labeled_format,
            cls.parse_inline_tags,
            cls.parse_paragraphs,
            cls.parse_proportional,
        ):
            result = strategy(text)
            if result is not None:
                logger.debug(f"Parsed script text with {strategy.__name__}")
                return result
        return None

    @staticmethod
    def parse_labeled_format(text: str) -> Optional[ScriptSections]:
        """
        HOOK: ... BRIDGE: ... GOLDEN NUGGET: ... CTA: ...

        Labels count at the start of a line in any case, and anywhere in a line
        when written in upper case.
        """
        matches = _label_matches(text)
        if not matches:
            return None

        values: Dict[str, str] = {}
        for index, match in enumerate(matches):
            end = matches[index + 1].start() if index + 1 < len(matches) else len(text)
            section = _label_to_section(match.group("label"))
            body = text[match.end():end].strip()
            if body and section not in values:
                values[section] = body

        sections = _to_sections(values)
        if not _is_usable(sections):
            return None
        return sections

    @staticmethod
    def parse_inline_tags(text: str) -> Optional[ScriptSections]:
        """
        Text with (Hook) / (Bridge) / (Golden Nugget) / (CTA) markers.

        A marker labels the text before it, back to the previous marker. Text after
        the last marker goes to wta if wta is still empty. When the text opens with
        a marker the direction flips: a marker labels the text after it.

        A first segment tagged (Bridge) with no (Hook) marker anywhere is a known
        model quirk: the hook and bridge were run together. It is split at the last
        sentence boundary; a single sentence becomes the hook and bridge stays empty.
        """
        tags = list(_INLINE_TAG.finditer(text))
        if not tags:
            return None

        values: Dict[str, str] = {}

        def assign(section: str, body: str):
            body = body.strip()
            if body and not values.get(section):
                values[section] = body

        if not text[:tags[0].start()].strip():
            for index, tag in enumerate(tags):
                end = tags[index + 1].start() if index + 1 < len(tags) else len(text)
                assign(_label_to_section(tag.group("label")), text[tag.end():end])
        else:
            has_hook_tag = any(_label_to_section(tag.group("label")) == "hook" for tag in tags)
            start = 0
            for index, tag in enumerate(tags):
                section = _label_to_section(tag.group("label"))
                body = text[start:tag.start()]
                if index == 0 and section == "bridge" and not has_hook_tag:
                    hook, bridge = _split_run_on_hook(clean_text(body))
                    assign("hook", hook)
                    assign("bridge", bridge)
                else:
                    assign(section, body)
                start = tag.end()

            trailing = text[start:]
            if trailing.strip() and not values.get("wta"):
                values["wta"] = trailing.strip()

        sections = _to_sections(values)
        if not _is_usable(sections):
            return None
        return sections

    @staticmethod
    def parse_paragraphs(text: str) -> Optional[ScriptSections]:
        """Four or more blank-line separated paragraphs: first, second, middle, last."""
        paragraphs = [p.strip() for p in _PARAGRAPH_BREAK.split(clean_paragraphs(text)) if p.strip()]
        if len(paragraphs) < 4:
            return None

        return _to_sections({
            "hook": paragraphs[0],
            "bridge": paragraphs[1],
            "golden_nugget": " ".join(paragraphs[2:-1]),
            "wta": paragraphs[-1],
        })

    @staticmethod
    def parse_proportional(text: str) -> Optional[ScriptSections]:
        """
        Last resort: allocate sentences by position. Roughly the first 20% to the hook,
        the next 20% to the bridge, the last 10-20% to the wta, the rest to the nugget.
        This is an approximation and needs at least four sentences.
        """
        sentences = [s.strip() for s in _SENTENCE_BREAK.split(clean_text(text)) if s.strip()]
        total = len(sentences)
        if total < 4:
            return None

        hook_count = max(1, min(2, math.ceil(total * 0.2)))
        bridge_count = max(1, min(2, math.ceil(total * 0.2)))
        wta_count = max(1, min(2, round(total * 0.15)))
        bridge_end = hook_count + bridge_count
        wta_start = max(bridge_end + 1, total - wta_count)

        return _to_sections({
            "hook": " ".join(sentences[:hook_count]),
            "bridge": " ".join(sentences[hook_count:bridge_end]),
            "golden_nugget": " ".join(sentences[bridge_end:wta_start]),
            "wta": " ".join(sentences[wta_start:]),
        })


def clean_paragraphs(text: str) -> str:
    """Remove pause markers but keep line structure."""
    return _PAUSE_MARKER.sub("", text).strip()


def _split_run_on_hook(line: str) -> Tuple[str, str]:
    sentences = [s for s in _SENTENCE_BREAK.split(line) if s]
    if len(sentences) < 2:
        return line, ""
    return " ".join(sentences[:-1]), sentences[-1]
