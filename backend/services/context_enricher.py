"""
Context Enricher - merges request, user context and duration budgets into the
guidelines the generator needs. Pure: no I/O, same inputs give the same output.
"""
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from services.duration_budget import get_duration_metrics
from services.models import (
    ComponentWordCounts,
    ContentGuidelines,
    EnrichedInput,
    Enrichments,
    LONG_DURATIONS,
    SHORT_DURATIONS,
    ScriptContext,
    ScriptRequest,
    VoiceGuidelines,
)

DEFAULT_STYLE = "conversational"

# tone -> (vocabulary, avoid phrases)
TONE_DEFAULTS: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    "casual": (("you know", "like", "basically", "honestly"), ()),
    "professional": (("therefore", "moreover", "specifically"), ("um", "uh", "like", "basically")),
    "energetic": (("amazing", "incredible", "mind-blowing", "game-changer"), ()),
    "educational": (("let me explain", "here's how", "the key is", "importantly"), ()),
}

# type -> (opening style, pacing, emphasis)
TYPE_CONTENT: Dict[str, Tuple[str, str, Tuple[str, ...]]] = {
    "speed": ("direct", "fast", ("brevity", "clarity", "impact")),
    "educational": ("question", "measured", ("clarity", "structure", "takeaway")),
    "viral": ("hook", "dynamic", ("surprise", "emotion", "shareability")),
}

# One step faster for energetic delivery.
_PACING_STEP_UP = {
    "measured": "medium",
    "medium": "fast",
    "dynamic": "fast",
    "fast": "fast",
}


def _unique(items) -> List[str]:
    seen = set()
    result = []
    for item in items:
        key = item.lower()
        if item and key not in seen:
            seen.add(key)
            result.append(item)
    return result


class ContextEnricher:
    """Derives word budgets, voice guidelines and content guidelines for one request."""

    @classmethod
    def enrich(cls, request: ScriptRequest, context: ScriptContext) -> EnrichedInput:
        metrics = get_duration_metrics(request.duration)

        enrichments = Enrichments(
            target_word_count=metrics.total_words,
            component_word_counts=ComponentWordCounts(
                hook=metrics.hook_words,
                bridge=metrics.bridge_words,
                golden_nugget=metrics.nugget_words,
                wta=metrics.wta_words,
            ),
            voice_guidelines=cls.extract_voice_guidelines(request, context),
            content_guidelines=cls.determine_content_guidelines(request),
        )
        return EnrichedInput(input=request, context=context, enrichments=enrichments)

    @staticmethod
    def extract_voice_guidelines(request: ScriptRequest, context: ScriptContext) -> VoiceGuidelines:
        """
        Layer voice guidance: tone defaults, then the user's voice persona, then
        negative keywords. Negative keywords always end up in avoid_phrases and
        are stripped from the vocabulary.
        """
        vocabulary, avoid = TONE_DEFAULTS.get(request.tone, ((), ()))
        vocabulary = list(vocabulary)
        avoid = list(avoid)
        style = DEFAULT_STYLE

        preferences = (context.profile or {}).get("preferences") or {}
        if preferences.get("writingStyle"):
            style = preferences["writingStyle"]

        voice = context.voice
        if voice:
            style = voice.get("style") or style
            if voice.get("vocabulary"):
                vocabulary = list(voice["vocabulary"])
            if voice.get("avoidPhrases"):
                avoid.extend(voice["avoidPhrases"])

        negative = [keyword for keyword in context.negative_keywords if keyword]
        avoid.extend(negative)

        banned = {phrase.lower() for phrase in negative}
        vocabulary = [word for word in vocabulary if word.lower() not in banned]

        return VoiceGuidelines(
            tone=request.tone,
            style=style,
            vocabulary=_unique(vocabulary),
            avoid_phrases=_unique(avoid),
        )

    @staticmethod
    def determine_content_guidelines(request: ScriptRequest) -> ContentGuidelines:
        opening_style, pacing, emphasis = TYPE_CONTENT.get(request.script_type, ("standard", "medium", ()))
        emphasis = list(emphasis)

        short = request.duration in SHORT_DURATIONS
        if short:
            pacing = "fast"
            emphasis.append("immediacy")
        elif request.duration in LONG_DURATIONS:
            emphasis.append("depth")

        if request.tone == "energetic":
            pacing = _PACING_STEP_UP.get(pacing, pacing)
        elif request.tone == "professional" and opening_style == "hook":
            opening_style = "direct"

        # Short durations stay fast whatever the tone.
        if short:
            pacing = "fast"

        return ContentGuidelines(opening_style=opening_style, pacing=pacing, emphasis=emphasis)

    @staticmethod
    def merge_enrichments(primary: Enrichments, secondary: Optional[Enrichments]) -> Enrichments:
        """Combine two enrichment sets. Scalars come from primary, lists concatenate secondary first."""
        if secondary is None:
            return primary

        voice = replace(
            primary.voice_guidelines,
            vocabulary=_unique(secondary.voice_guidelines.vocabulary + primary.voice_guidelines.vocabulary),
            avoid_phrases=_unique(secondary.voice_guidelines.avoid_phrases + primary.voice_guidelines.avoid_phrases),
        )
        content = replace(
            primary.content_guidelines,
            emphasis=_unique(secondary.content_guidelines.emphasis + primary.content_guidelines.emphasis),
        )
        return Enrichments(
            target_word_count=primary.target_word_count or secondary.target_word_count,
            component_word_counts=primary.component_word_counts,
            voice_guidelines=voice,
            content_guidelines=content,
        )
