"""
Duration budget table: target spoken duration -> word budgets per script section.

Budgets assume a speaking rate of settings.words_per_second (2.2 by default).
Section allocations follow the Speed Write structure (hook / bridge / golden nugget / call to action).
"""
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Tuple

from core.config import settings


@dataclass(frozen=True)
class DurationMetrics:
    duration: str
    total_words: int
    hook_words: int
    bridge_words: int
    nugget_words: int
    wta_words: int
    pacing: str
    focus: str
    structure_name: str
    characteristics: Tuple[str, ...]

    @property
    def seconds(self) -> int:
        return int(self.duration)

    @property
    def section_words(self) -> int:
        return self.hook_words + self.bridge_words + self.nugget_words + self.wta_words

    @property
    def hook_seconds(self) -> float:
        return round(self.hook_words / settings.words_per_second, 1)

    @property
    def bridge_seconds(self) -> float:
        return round(self.bridge_words / settings.words_per_second, 1)

    @property
    def nugget_seconds(self) -> float:
        return round(self.nugget_words / settings.words_per_second, 1)

    @property
    def wta_seconds(self) -> float:
        return round(self.wta_words / settings.words_per_second, 1)

    def word_range(self, tolerance: float) -> Tuple[int, int]:
        """Inclusive (min, max) word counts accepted at the given tolerance."""
        # Round first so float error cannot push a bound across an integer.
        low = math.ceil(round(self.total_words * (1 - tolerance), 6))
        high = math.floor(round(self.total_words * (1 + tolerance), 6))
        return low, high


DURATION_METRICS: Mapping[str, DurationMetrics] = MappingProxyType({
    "15": DurationMetrics(
        duration="15", total_words=33, hook_words=8, bridge_words=4, nugget_words=17, wta_words=4,
        pacing="ultra-fast", focus="single-point", structure_name="Streamlined",
        characteristics=("Single core point", "Immediate impact", "Perfect for trending topics"),
    ),
    "20": DurationMetrics(
        duration="20", total_words=44, hook_words=11, bridge_words=7, nugget_words=22, wta_words=4,
        pacing="fast", focus="focused", structure_name="Tight",
        characteristics=("Concise messaging", "Clear hook and CTA", "High retention rate"),
    ),
    "30": DurationMetrics(
        duration="30", total_words=66, hook_words=16, bridge_words=13, nugget_words=30, wta_words=7,
        pacing="balanced", focus="balanced", structure_name="Standard Speed Write",
        characteristics=("Complete structure", "Room for example", "Optimal engagement"),
    ),
    "45": DurationMetrics(
        duration="45", total_words=99, hook_words=20, bridge_words=20, nugget_words=50, wta_words=9,
        pacing="detailed", focus="multi-point", structure_name="Expanded",
        characteristics=("Multiple points", "Context building", "Educational value"),
    ),
    "60": DurationMetrics(
        duration="60", total_words=132, hook_words=26, bridge_words=33, nugget_words=59, wta_words=14,
        pacing="comprehensive", focus="comprehensive", structure_name="Full Development",
        characteristics=("Full development", "Multiple examples", "Authority building"),
    ),
    "90": DurationMetrics(
        duration="90", total_words=198, hook_words=40, bridge_words=50, nugget_words=89, wta_words=19,
        pacing="deep", focus="thorough", structure_name="Deep Exploration",
        characteristics=("Thorough coverage", "Complex topics", "Maximum value"),
    ),
})

_PACING_GUIDELINES = MappingProxyType({
    "ultra-fast": """ULTRA-FAST GUIDELINES:
- ONE core message only - no secondary points
- Hook must grab attention in first 2 words
- Bridge is a handful of words, straight from hook to value
- Golden nugget must be immediately actionable
- CTA should be a single short phrase
- Every word must earn its place""",
    "fast": """FAST GUIDELINES:
- Focus on ONE main point with immediate payoff
- Hook should be short and punchy
- Bridge is 1 short sentence connecting to value
- Golden nugget is specific and concrete
- CTA is clear and simple
- No fluff or filler words""",
    "balanced": """BALANCED GUIDELINES:
- Develop ONE core concept with brief supporting detail
- Hook can include a short setup or question
- Bridge provides necessary context in 1-2 sentences
- Golden nugget includes one concrete example
- CTA can include brief reasoning""",
    "detailed": """DETAILED GUIDELINES:
- Explore ONE topic with supporting details
- Hook can tell a micro-story or present data
- Bridge builds context and relevance
- Golden nugget includes examples and explanation
- CTA can include multiple related actions""",
    "comprehensive": """COMPREHENSIVE GUIDELINES:
- Cover main topic with multiple supporting points
- Hook can establish broader context or story
- Bridge connects multiple aspects of the topic
- Golden nugget provides detailed explanation with examples
- Include transitions between major points""",
    "deep": """DEEP DIVE GUIDELINES:
- Thoroughly explore topic with multiple angles
- Hook can use extended narrative or complex setup
- Bridge connects multiple concepts and provides context
- Golden nugget includes detailed explanation, examples, and nuance
- CTA can offer a comprehensive action plan""",
})


def get_duration_metrics(duration: str) -> DurationMetrics:
    """Look up the budget row for a supported duration."""
    metrics = DURATION_METRICS.get(str(duration))
    if metrics is None:
        raise KeyError(f"Unsupported duration: {duration}. Supported: {', '.join(DURATION_METRICS)}")
    return metrics


def supported_durations() -> List[str]:
    return list(DURATION_METRICS)


def calculate_duration(word_count: int) -> int:
    """Estimated spoken seconds for a word count."""
    return round(word_count / settings.words_per_second)


def _percent(words: int, total: int) -> int:
    return round(words / total * 100)


def build_duration_sub_prompt(duration: str) -> str:
    """Duration-specific instructions appended to every generation prompt."""
    metrics = get_duration_metrics(duration)
    total = metrics.total_words
    structure = "\n".join([
        f"STRUCTURE: {metrics.structure_name}",
        f"- Hook: {_percent(metrics.hook_words, total)}% ({metrics.hook_words} words)",
        f"- Bridge: {_percent(metrics.bridge_words, total)}% ({metrics.bridge_words} words)",
        f"- Golden Nugget: {_percent(metrics.nugget_words, total)}% ({metrics.nugget_words} words)",
        f"- CTA: {_percent(metrics.wta_words, total)}% ({metrics.wta_words} words)",
    ])
    content = "\n".join([
        "CONTENT REQUIREMENTS:",
        f"- Characteristics: {', '.join(metrics.characteristics)}",
        f"- Word density: Aim for {total / metrics.seconds:.1f} words per second",
        f"- Retention: Structure for {metrics.pacing} attention span",
    ])

    return f"""DURATION OPTIMIZATION FOR {metrics.duration} SECONDS:

TARGET: Exactly {total} words (+/-5 words acceptable)
PACING: {metrics.pacing.upper()}
FOCUS: {metrics.focus.upper()}

{_PACING_GUIDELINES[metrics.pacing]}

{structure}

{content}

FINAL CHECK: Ensure the script reads naturally in {metrics.duration} seconds when spoken at normal pace ({settings.words_per_second} words per second average)."""
