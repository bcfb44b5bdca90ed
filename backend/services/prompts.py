"""
Speed Write prompt assembly: Hook -> Bridge -> Golden Nugget -> WTA.

Builds the single instruction payload sent to the completion service from the
enriched input and the selected generation rules.
"""
import json
import random
from dataclasses import dataclass
from typing import Dict, List, Optional

from core.config import settings
from services.duration_budget import build_duration_sub_prompt
from services.hook_examples import format_hook_examples_for_prompt
from services.models import EnrichedInput, GenerationRules

# Markers that only appear in the instruction template. Output containing all
# of them is the template echoed back.
TEMPLATE_MARKERS = ("HOOK GUIDELINES", "BRIDGE GUIDELINES", "GOLDEN NUGGET GUIDELINES")

HOOK_GUIDELINES = """HOOK GUIDELINES:
- Start with a strong attention-grabber that makes viewers stop scrolling
- Use pattern interrupts, bold statements, or intriguing scenarios
- Keep it under 3 seconds of speaking time
- Create curiosity or urgency
- Examples: "If I had to pick one thing...", "Most people get this wrong...", "Here's what nobody tells you..." """

BRIDGE_GUIDELINES = """BRIDGE GUIDELINES:
- Smoothly transition from hook to main content
- Maintain engagement while setting up the value
- Acknowledge the problem or build context
- Keep it brief but meaningful
- Examples: "Here's why this matters...", "The reason this works is...", "Let me explain..." """

GOLDEN_NUGGET_GUIDELINES = """GOLDEN NUGGET GUIDELINES:
- Deliver the core value, insight, or teaching point
- Be specific and actionable
- Provide clear, memorable takeaways
- Make it worth the viewer's time
- Include concrete examples or steps when possible"""

WTA_GUIDELINES = """WHAT TO ACT (WTA) GUIDELINES:
- End with a clear, specific call to action
- Tell viewers exactly what to do next
- Make it feel natural, not pushy
- Align with the content's value proposition
- Examples: "Try this technique...", "Share your results...", "Follow for more tips..." """

PLATFORM_OPTIMIZATION = """PLATFORM OPTIMIZATION:
- TikTok: Fast-paced, trend-aware, younger audience, visual storytelling
- Instagram: Aesthetic-focused, lifestyle integration, hashtag-friendly
- YouTube: Educational depth, retention-focused, searchable content"""

WRITING_REQUIREMENTS = """WRITING REQUIREMENTS:
- Write in a conversational, natural speaking style
- Use short, punchy sentences that flow when spoken aloud
- Avoid jargon or overly complex language
- Make each section transition smoothly to the next
- Ensure the content feels authentic and valuable
- Stay within the target word count (+/-10%)"""

OUTPUT_FORMAT = """OUTPUT FORMAT:
Return only a JSON object with the string fields "hook", "bridge", "goldenNugget" and "wta".
Do not repeat these instructions and do not add labels or commentary inside the fields."""


@dataclass(frozen=True)
class PromptVariant:
    name: str
    system_instruction: str
    temperature: float


PROMPT_VARIANTS: Dict[str, PromptVariant] = {
    "standard": PromptVariant(
        name="standard",
        system_instruction="""You are an expert social media script writer specializing in the Speed Write formula. Your scripts consistently go viral because they:
1. Hook viewers immediately with pattern interrupts
2. Bridge smoothly to valuable content
3. Deliver genuine golden nuggets of insight
4. End with natural, compelling calls to action

You understand pacing, retention, and what makes content shareable. Write scripts that sound conversational and authentic when spoken aloud.""",
        temperature=0.8,
    ),
    "educational": PromptVariant(
        name="educational",
        system_instruction="""You are an educational content creator who makes complex topics simple and engaging. Your Speed Write scripts focus on:
1. Clear, educational hooks that promise learning value
2. Bridges that build context and prepare for learning
3. Golden nuggets that teach actionable insights with examples
4. CTAs that encourage practice and further learning

Make educational content that doesn't feel like school. Keep it engaging and practical.""",
        temperature=0.7,
    ),
    "viral": PromptVariant(
        name="viral",
        system_instruction="""You are a viral content strategist who understands what makes content shareable. Your Speed Write scripts are designed for maximum engagement:
1. Hooks that create immediate emotional response or curiosity
2. Bridges that maintain momentum and build anticipation
3. Golden nuggets that provide surprising or counterintuitive insights
4. CTAs that encourage sharing, commenting, and engagement

Write content that people can't help but share with their friends.""",
        temperature=0.9,
    ),
}

SCRIPT_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "hook": {
            "type": "string",
            "description": "Attention-grabbing opener that hooks the viewer immediately",
        },
        "bridge": {
            "type": "string",
            "description": "Transition that connects the hook to the main content",
        },
        "goldenNugget": {
            "type": "string",
            "description": "Core value, insight, or main teaching point",
        },
        "wta": {
            "type": "string",
            "description": "Clear call to action that tells viewers what to do next",
        },
    },
    "required": ["hook", "bridge", "goldenNugget", "wta"],
    "additionalProperties": False,
}

FEW_SHOT_EXAMPLES = [
    {
        "input": {"idea": "How to wake up early without feeling tired", "duration": "60", "tone": "energetic"},
        "output": {
            "hook": "If you're hitting snooze 5 times every morning, you're doing it all wrong.",
            "bridge": "Here's the one trick that changed my entire morning routine and it has nothing to do with going to bed earlier.",
            "goldenNugget": "Set your alarm for when you naturally complete a sleep cycle. Most people wake up mid-cycle feeling groggy. Use a sleep calculator to find your optimal wake time based on 90-minute cycles.",
            "wta": "Try this tonight. Calculate your sleep cycles and set just ONE alarm. Comment 'CYCLE' if this helps you wake up refreshed tomorrow!",
        },
    },
    {
        "input": {"idea": "Why most people fail at productivity", "duration": "20", "tone": "professional"},
        "output": {
            "hook": "The biggest productivity mistake? Trying to do everything.",
            "bridge": "Successful people don't do more. They do less, better.",
            "goldenNugget": "Pick your top 3 priorities daily. Everything else can wait.",
            "wta": "Start tomorrow with just 3 priorities. Trust the process.",
        },
    },
]

_REFERENCE_INTROS = {
    "inspiration": "CREATIVE INSPIRATION CONTEXT:\nThe following notes from the user's idea library are here to spark creativity and provide directional inspiration:",
    "reference": "REFERENCE MATERIAL CONTEXT:\nThe following are specific notes and references the user wants you to consider while generating content:",
    "template": "TEMPLATE & STRUCTURE CONTEXT:\nThe following are examples of successful formats, structures, and approaches from the user's library:",
    "comprehensive": "COMPREHENSIVE CONTEXT:\nThe following is the user's full background material for this script:",
}

_REFERENCE_GUIDELINES = {
    "inspiration": """INSPIRATION MODE GUIDELINES:
- Use these ideas as creative springboards, not rigid templates
- Look for themes, emotions, and approaches that resonate
- Let the context inspire tone, angle, or creative direction""",
    "reference": """REFERENCE MODE GUIDELINES:
- Treat these as factual references and specific guidance
- Incorporate relevant details, frameworks, or approaches mentioned
- Maintain accuracy to any specific information provided""",
    "template": """TEMPLATE MODE GUIDELINES:
- Analyze the structure and format patterns in these examples
- Adapt successful frameworks to the current request
- Scale and modify templates to fit the specific requirements""",
    "comprehensive": """COMPREHENSIVE MODE GUIDELINES:
- Synthesize insights across all provided context
- Balance inspiration, reference material, and structural guidance
- Use the full depth of context to inform your creative process""",
}

_INTEGRATION_STYLES = {
    "inspiration": "creative fuel and directional guidance",
    "reference": "factual foundation and specific guidance",
    "template": "structural blueprint and format reference",
    "comprehensive": "comprehensive knowledge base and creative foundation",
}

MAX_REFERENCE_NOTES_LENGTH = 2000


def get_prompt_variant(script_type: str) -> PromptVariant:
    """speed -> standard; educational and viral have their own variants."""
    return PROMPT_VARIANTS.get(script_type, PROMPT_VARIANTS["standard"])


def build_negative_keyword_instruction(keywords: List[str], limit: Optional[int] = None) -> str:
    if not keywords:
        return ""

    limit = limit or settings.negative_keyword_instruction_limit
    listing = "\n".join(f'- "{keyword}"' for keyword in keywords)
    instruction = (
        "CRITICAL CONTENT RESTRICTION:\n"
        "You MUST avoid using any of the following overused words and phrases in your response. "
        "These words make content sound robotic and AI-generated:\n"
        f"{listing}\n"
        "Use natural, conversational language instead."
    )
    if len(instruction) > limit:
        instruction = instruction[:limit - 3] + "..."
    return instruction


def build_reference_notes_block(notes: Optional[str], mode: Optional[str]) -> str:
    if not notes:
        return ""

    mode = mode or "inspiration"
    if len(notes) > MAX_REFERENCE_NOTES_LENGTH:
        notes = notes[:MAX_REFERENCE_NOTES_LENGTH - 3] + "..."

    return f"""{_REFERENCE_INTROS.get(mode, _REFERENCE_INTROS["inspiration"])}

{notes}

{_REFERENCE_GUIDELINES.get(mode, "Use the provided context to enhance and inform your response.")}

INTEGRATION INSTRUCTIONS:
- Use the provided context as {_INTEGRATION_STYLES.get(mode, "supporting context")}
- Maintain your own creative voice while leveraging these insights
- Don't copy directly. Let these ideas inform and enhance your response"""


def build_hook_guidance(enriched: EnrichedInput, rules: GenerationRules, rng: Optional[random.Random] = None) -> str:
    hook = rules.generators.hook
    request = enriched.input
    budget = enriched.enrichments.component_word_counts.hook

    lines = [f"HOOK STRATEGY ({hook.strategy.upper()}, about {budget} words):"]
    if hook.strategy == "template" and hook.templates:
        lines.append("Open with one of these proven templates, completed for this topic:")
        lines.extend(f'- "{template}"' for template in hook.templates)
    elif hook.strategy == "hybrid" and hook.templates:
        lines.append("Paraphrase one of these openers in your own words:")
        lines.extend(f'- "{template}"' for template in hook.templates)
        if hook.ai_prompt_style:
            lines.append(f"Style: {hook.ai_prompt_style}")
    else:
        lines.append(f"Write an original opener. Style: {hook.ai_prompt_style or 'attention-grabbing'}")

    examples = format_hook_examples_for_prompt(
        category=request.script_type,
        tone=request.tone,
        limit=3,
        rng=rng,
    )
    lines.append("")
    lines.append(examples)
    return "\n".join(lines)


def build_script_guidance(rules: GenerationRules) -> str:
    script = rules.generators.script
    constraints = rules.constraints
    enhancement = rules.generators.enhancement

    lines = [f"SCRIPT STRATEGY ({script.strategy.upper()}):"]
    if script.formula:
        lines.append(f"- Formula: {script.formula}")
    if script.structure_type:
        lines.append(f"- Structure: {script.structure_type}")
    if constraints.strict_word_count:
        lines.append("- Word count is strict. Do not exceed the section budgets.")
    if constraints.allow_creative_deviation:
        lines.append("- Creative deviation from the formula is allowed when it serves the idea.")
    lines.append(f"- Polish level: {enhancement.enhancement_level}, focusing on {', '.join(enhancement.focus_areas)}")
    return "\n".join(lines)


def build_voice_guidance(enriched: EnrichedInput) -> str:
    voice = enriched.enrichments.voice_guidelines
    content = enriched.enrichments.content_guidelines

    lines = [
        "VOICE & DELIVERY:",
        f"- Tone: {voice.tone}",
        f"- Style: {voice.style}",
        f"- Opening style: {content.opening_style}",
        f"- Pacing: {content.pacing}",
    ]
    if content.emphasis:
        lines.append(f"- Emphasize: {', '.join(content.emphasis)}")
    if voice.vocabulary:
        lines.append(f"- Natural vocabulary to draw on: {', '.join(voice.vocabulary)}")
    if voice.avoid_phrases:
        lines.append(f"- Never use: {', '.join(voice.avoid_phrases)}")
    return "\n".join(lines)


def build_section_budget(enriched: EnrichedInput) -> str:
    counts = enriched.enrichments.component_word_counts
    return "\n".join([
        "SECTION WORD BUDGETS:",
        f"- Hook: {counts.hook} words",
        f"- Bridge: {counts.bridge} words",
        f"- Golden Nugget: {counts.golden_nugget} words",
        f"- WTA: {counts.wta} words",
    ])


def format_few_shot_examples() -> str:
    blocks = ["EXAMPLES:"]
    for example in FEW_SHOT_EXAMPLES:
        blocks.append(f"Input: {json.dumps(example['input'])}")
        blocks.append(f"Output: {json.dumps(example['output'])}")
    return "\n".join(blocks)


def build_instruction(
    enriched: EnrichedInput,
    rules: GenerationRules,
    rng: Optional[random.Random] = None,
    platform: str = "general",
    include_examples: bool = True,
) -> str:
    """Assemble the full Speed Write instruction for one generation call."""
    request = enriched.input
    enrichments = enriched.enrichments

    header = [
        "Create a compelling video script using the Speed Write formula. Follow the exact structure and guidelines below.",
        "",
        f"TARGET: {request.duration} seconds (~{enrichments.target_word_count} words at {settings.words_per_second} words per second)",
        f"TOPIC: {request.idea}",
        f"TONE: {request.tone}",
        f"PLATFORM: {platform}",
    ]

    sections = ["\n".join(header)]

    negative = build_negative_keyword_instruction(enriched.context.negative_keywords)
    if negative:
        sections.append(negative)

    notes_block = build_reference_notes_block(request.notes, request.reference_mode)
    if notes_block:
        sections.append(notes_block)

    sections.extend([
        build_duration_sub_prompt(request.duration),
        build_section_budget(enriched),
        build_voice_guidance(enriched),
        build_hook_guidance(enriched, rules, rng),
        build_script_guidance(rules),
        HOOK_GUIDELINES,
        BRIDGE_GUIDELINES,
        GOLDEN_NUGGET_GUIDELINES,
        WTA_GUIDELINES,
    ])

    if platform != "general":
        sections.append(PLATFORM_OPTIMIZATION)

    sections.append(WRITING_REQUIREMENTS)
    if include_examples:
        sections.append(format_few_shot_examples())
    sections.append(OUTPUT_FORMAT)

    return "\n\n".join(section.strip() for section in sections)
