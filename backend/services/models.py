"""
Domain models for short-form script generation.

Request-scoped values (ScriptRequest, EnrichedInput, GenerationRules) are built
once per generation call and never shared. ScriptContext instances are shared
read-only through the context cache.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

VALID_DURATIONS = ("15", "20", "30", "45", "60", "90")
VALID_TYPES = ("speed", "educational", "viral")
VALID_TONES = ("casual", "professional", "energetic", "educational")
VALID_REFERENCE_MODES = ("inspiration", "reference", "template", "comprehensive")

SHORT_DURATIONS = ("15", "20")
LONG_DURATIONS = ("60", "90")

SECTION_NAMES = ("hook", "bridge", "golden_nugget", "wta")


def count_words(text: str) -> int:
    return len([word for word in (text or "").split() if word])


@dataclass(frozen=True)
class ReferenceContext:
    """Optional caller-supplied context for a generation request."""
    notes: Optional[str] = None
    voice_id: Optional[str] = None
    reference_mode: Optional[str] = None


@dataclass(frozen=True)
class ScriptRequest:
    """A sanitized script generation request."""
    idea: str
    duration: str
    script_type: str
    tone: str
    context: Optional[ReferenceContext] = None

    @property
    def notes(self) -> Optional[str]:
        return self.context.notes if self.context else None

    @property
    def reference_mode(self) -> Optional[str]:
        return self.context.reference_mode if self.context else None


@dataclass(frozen=True)
class ScriptContext:
    """User data needed to personalize a script."""
    user_id: str
    profile: Dict[str, Any]
    voice: Optional[Dict[str, Any]] = None
    negative_keywords: List[str] = field(default_factory=list)

    @property
    def has_custom_voice(self) -> bool:
        return bool(self.voice and self.voice.get("isCustom"))


@dataclass(frozen=True)
class ComponentWordCounts:
    hook: int
    bridge: int
    golden_nugget: int
    wta: int

    @property
    def total(self) -> int:
        return self.hook + self.bridge + self.golden_nugget + self.wta


@dataclass(frozen=True)
class VoiceGuidelines:
    tone: str
    style: str
    vocabulary: List[str]
    avoid_phrases: List[str]


@dataclass(frozen=True)
class ContentGuidelines:
    opening_style: str
    pacing: str
    emphasis: List[str]


@dataclass(frozen=True)
class Enrichments:
    target_word_count: int
    component_word_counts: ComponentWordCounts
    voice_guidelines: VoiceGuidelines
    content_guidelines: ContentGuidelines


@dataclass(frozen=True)
class EnrichedInput:
    input: ScriptRequest
    context: ScriptContext
    enrichments: Enrichments


@dataclass
class HookStrategy:
    strategy: str  # "template" | "ai" | "hybrid"
    templates: List[str] = field(default_factory=list)
    ai_prompt_style: Optional[str] = None


@dataclass
class ScriptStrategy:
    strategy: str  # "formula" | "ai" | "hybrid"
    formula: Optional[str] = None
    structure_type: Optional[str] = None


@dataclass
class EnhancementStrategy:
    use_ghost_writer: bool
    enhancement_level: str  # "light" | "medium" | "heavy"
    focus_areas: List[str] = field(default_factory=list)


@dataclass
class GeneratorSelection:
    hook: HookStrategy
    script: ScriptStrategy
    enhancement: EnhancementStrategy


@dataclass
class GenerationConstraints:
    max_retries: int = 3
    strict_word_count: bool = True
    allow_creative_deviation: bool = False
    quality_threshold: float = 0.7


@dataclass
class GenerationOptimizations:
    cache_strategy: str  # "aggressive" | "normal" | "minimal"
    parallel_generation: bool
    use_template_cache: bool


@dataclass
class GenerationRules:
    generators: GeneratorSelection
    constraints: GenerationConstraints
    optimizations: GenerationOptimizations

    @property
    def component_strategies(self) -> Dict[str, str]:
        return {
            "hook": self.generators.hook.strategy,
            "script": self.generators.script.strategy,
            "enhancement": self.generators.enhancement.enhancement_level,
        }


@dataclass(frozen=True)
class ScriptSections:
    """The four spoken sections of a script."""
    hook: str
    bridge: str
    golden_nugget: str
    wta: str

    @property
    def word_count(self) -> int:
        return sum(count_words(getattr(self, name)) for name in SECTION_NAMES)

    def missing_sections(self) -> List[str]:
        return [name for name in SECTION_NAMES if not getattr(self, name).strip()]

    def to_dict(self) -> Dict[str, str]:
        return {
            "hook": self.hook,
            "bridge": self.bridge,
            "goldenNugget": self.golden_nugget,
            "wta": self.wta,
        }


class PayloadKind(str, Enum):
    STRUCTURED = "structured"
    TEXT = "text"
    EMPTY = "empty"


@dataclass(frozen=True)
class RawCompletionPayload:
    """Normalized completion output: exactly one of `sections` or `text` is set, or neither for EMPTY."""
    kind: PayloadKind
    sections: Optional[ScriptSections] = None
    text: Optional[str] = None

    @classmethod
    def structured(cls, sections: ScriptSections) -> "RawCompletionPayload":
        return cls(kind=PayloadKind.STRUCTURED, sections=sections)

    @classmethod
    def from_text(cls, text: str) -> "RawCompletionPayload":
        if not text or not text.strip():
            return cls.empty()
        return cls(kind=PayloadKind.TEXT, text=text)

    @classmethod
    def empty(cls) -> "RawCompletionPayload":
        return cls(kind=PayloadKind.EMPTY)


@dataclass(frozen=True)
class ScriptMetadata:
    duration: str
    script_type: str
    tone: str
    word_count: int
    estimated_duration: int
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    generation_method: str = "ai_enhanced"
    strategies: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GeneratedScript:
    hook: str
    bridge: str
    golden_nugget: str
    wta: str
    metadata: ScriptMetadata

    @property
    def sections(self) -> ScriptSections:
        return ScriptSections(self.hook, self.bridge, self.golden_nugget, self.wta)

    @property
    def full_text(self) -> str:
        return " ".join(part for part in (self.hook, self.bridge, self.golden_nugget, self.wta) if part)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.sections.to_dict(),
            "metadata": {
                "duration": self.metadata.duration,
                "type": self.metadata.script_type,
                "tone": self.metadata.tone,
                "wordCount": self.metadata.word_count,
                "estimatedDuration": self.metadata.estimated_duration,
                "generatedAt": self.metadata.generated_at.isoformat(),
                "generationMethod": self.metadata.generation_method,
                "strategies": dict(self.metadata.strategies),
            },
        }
