"""
Rule Engine - selects generation strategies and constraints for a request.
Derived purely from the enriched input; holds no state between calls.
"""
from typing import Dict, List, Tuple

from services.models import (
    EnhancementStrategy,
    EnrichedInput,
    GenerationConstraints,
    GenerationOptimizations,
    GenerationRules,
    GeneratorSelection,
    HookStrategy,
    LONG_DURATIONS,
    SHORT_DURATIONS,
    ScriptStrategy,
)

QUALITY_THRESHOLD_CAP = 0.95
NOTES_QUALITY_BONUS = 0.1

HOOK_TEMPLATES: Dict[str, Tuple[str, ...]] = {
    "speed-casual": ("Here's something crazy:", "You won't believe this:", "Quick story:"),
    "speed-professional": ("Here's what you need to know:", "Let me share something important:", "Consider this:"),
    "speed-energetic": ("This is huge:", "Stop scrolling:", "Nobody expected this:"),
    "speed-educational": ("Here's the one thing to know:", "Quick lesson:", "Remember this:"),
    "educational-casual": ("Ever wondered why", "Did you know that", "Here's how to"),
    "educational-professional": ("Research shows that", "Studies indicate", "Evidence suggests"),
    "educational-educational": ("Most people get this wrong:", "The science says", "Here's how it actually works:"),
    "viral-energetic": ("STOP what you're doing!", "This changed my life:", "Nobody talks about this:"),
}
DEFAULT_TEMPLATE_KEY = "speed-casual"


def get_hook_templates(script_type: str, tone: str) -> List[str]:
    return list(HOOK_TEMPLATES.get(f"{script_type}-{tone}", HOOK_TEMPLATES[DEFAULT_TEMPLATE_KEY]))


class RuleEngine:
    """Business rules mapping an EnrichedInput to GenerationRules."""

    @classmethod
    def apply_rules(cls, enriched: EnrichedInput) -> GenerationRules:
        request = enriched.input

        rules = GenerationRules(
            generators=GeneratorSelection(
                hook=cls.determine_hook_strategy(request.script_type, request.tone),
                script=cls.determine_script_strategy(request.script_type, request.duration),
                enhancement=cls.determine_enhancement_strategy(request.script_type),
            ),
            constraints=cls.determine_constraints(request.duration, request.script_type),
            optimizations=cls.determine_optimizations(request.script_type),
        )

        cls.apply_contextual_rules(rules, enriched)
        return rules

    @staticmethod
    def determine_hook_strategy(script_type: str, tone: str) -> HookStrategy:
        if script_type == "speed":
            return HookStrategy(strategy="template", templates=get_hook_templates(script_type, tone))

        if script_type == "educational":
            return HookStrategy(
                strategy="hybrid",
                templates=get_hook_templates(script_type, tone),
                ai_prompt_style="question-based",
            )

        return HookStrategy(strategy="ai", ai_prompt_style="attention-grabbing")

    @staticmethod
    def determine_script_strategy(script_type: str, duration: str) -> ScriptStrategy:
        if duration in SHORT_DURATIONS:
            return ScriptStrategy(strategy="formula", formula="compact", structure_type="direct")

        if script_type == "educational":
            return ScriptStrategy(strategy="formula", formula="educational", structure_type="problem-solution")

        if script_type == "viral" and duration in LONG_DURATIONS:
            return ScriptStrategy(strategy="ai", structure_type="narrative")

        return ScriptStrategy(strategy="hybrid", formula="standard", structure_type="flexible")

    @staticmethod
    def determine_enhancement_strategy(script_type: str) -> EnhancementStrategy:
        if script_type == "speed":
            return EnhancementStrategy(True, "light", ["clarity", "impact"])
        if script_type == "educational":
            return EnhancementStrategy(True, "medium", ["clarity", "structure", "examples"])
        return EnhancementStrategy(True, "heavy", ["emotion", "surprise", "memorability"])

    @staticmethod
    def determine_constraints(duration: str, script_type: str) -> GenerationConstraints:
        if duration in SHORT_DURATIONS:
            return GenerationConstraints(strict_word_count=True, allow_creative_deviation=False)

        if script_type == "viral":
            return GenerationConstraints(
                strict_word_count=False,
                allow_creative_deviation=True,
                quality_threshold=0.8,
            )

        return GenerationConstraints()

    @staticmethod
    def determine_optimizations(script_type: str) -> GenerationOptimizations:
        if script_type == "speed":
            return GenerationOptimizations("aggressive", parallel_generation=True, use_template_cache=True)
        if script_type == "viral":
            return GenerationOptimizations("minimal", parallel_generation=False, use_template_cache=False)
        return GenerationOptimizations("normal", parallel_generation=True, use_template_cache=True)

    @staticmethod
    def apply_contextual_rules(rules: GenerationRules, enriched: EnrichedInput):
        """Overrides applied after the base rules, in this order."""
        request = enriched.input

        # A custom persona cannot be satisfied by fixed templates.
        if enriched.context.has_custom_voice:
            rules.generators.hook.strategy = "ai"
            rules.generators.script.strategy = "ai"

        if request.notes:
            raised = rules.constraints.quality_threshold + NOTES_QUALITY_BONUS
            rules.constraints.quality_threshold = round(min(raised, QUALITY_THRESHOLD_CAP), 2)

        if request.reference_mode == "comprehensive":
            rules.constraints.allow_creative_deviation = True
            rules.generators.enhancement.enhancement_level = "heavy"
