"""
Hook example library: curated opener patterns used to steer hook generation.

Examples are returned high -> medium -> low effectiveness, shuffled within each
tier so repeated prompts do not converge on the same openers. Pass a seeded
random.Random for deterministic output.
"""
import random
from dataclasses import dataclass
from itertools import groupby
from typing import List, Optional, Tuple

EFFECTIVENESS_ORDER = {"high": 0, "medium": 1, "low": 2}

BANNED_HOOK_OPENERS: Tuple[str, ...] = ("Want a", "Want to", "Do you want", "Would you like")

BANNED_OPENERS_RULE = (
    "HOOK RESTRICTION: Never start the hook with a generic question such as "
    + ", ".join(f'"{opener} ..."' for opener in BANNED_HOOK_OPENERS)
    + ". Open with a bold statement, a specific claim, a number, or a personal story instead."
)


@dataclass(frozen=True)
class HookExample:
    id: str
    pattern: str
    category: str
    tones: Tuple[str, ...]
    effectiveness: str
    context: str
    example: str


def _hook(id, pattern, category, tones, effectiveness, context, example) -> HookExample:
    return HookExample(id, pattern, category, tuple(tones), effectiveness, context, example)


HOOK_EXAMPLES: Tuple[HookExample, ...] = (
    # Speed / direct
    _hook("speed_knowledge_gap", "Here's something you need to know about {topic}", "speed",
          ["direct", "urgent", "matter-of-fact", "casual"], "high",
          "Direct problem statement opener",
          "Here's something you need to know about productivity"),
    _hook("speed_misconception", "Most people get {topic} completely wrong", "speed",
          ["confident", "authoritative", "casual"], "high",
          "Challenges common misconceptions",
          "Most people get networking completely wrong"),
    _hook("speed_secret_reveal", "The secret to {topic} that no one talks about", "speed",
          ["intriguing", "exclusive", "casual"], "high",
          "Creates intrigue with insider knowledge",
          "The secret to public speaking that no one talks about"),
    _hook("speed_time_waste", "Stop wasting time with {topic} - here's what actually works", "speed",
          ["urgent", "direct", "casual"], "high",
          "Creates urgency around efficiency",
          "Stop wasting time with morning routines - here's what actually works"),
    _hook("speed_uncomfortable_truth", "The uncomfortable truth about {topic} nobody mentions", "speed",
          ["direct", "honest", "casual"], "high",
          "Promises honest, unfiltered insights",
          "The uncomfortable truth about social media nobody mentions"),
    _hook("speed_critical_mistake", "Before you try {topic}, avoid this critical mistake", "speed",
          ["warning", "helpful", "casual"], "high",
          "Prevents common errors",
          "Before you try intermittent fasting, avoid this critical mistake"),
    _hook("speed_importance_reveal", "Here's why {topic} matters more than you think", "speed",
          ["urgent", "compelling", "casual"], "medium",
          "Emphasizes unexpected importance",
          "Here's why sleep matters more than you think"),
    _hook("speed_reality_check", "The reality of {topic} vs what people think", "speed",
          ["realistic", "direct", "casual"], "medium",
          "Contrasts perception with reality",
          "The reality of entrepreneurship vs what people think"),
    _hook("speed_numbers_hack", "{number} hacks to {improvement area}", "speed",
          ["direct", "practical", "casual"], "high",
          "Numbered list promise for quick value",
          "3 hacks to double your productivity"),
    _hook("speed_if_i_said", "If I said {statement about topic}, you'd think I'm crazy, but...", "speed",
          ["contrarian", "bold", "casual"], "high",
          "Contrarian opener that challenges assumptions",
          "If I said you should work less to earn more, you'd think I'm crazy, but..."),
    _hook("speed_two_things_say", "Two things you can say to get around {common problem}", "speed",
          ["practical", "solution-oriented", "casual"], "high",
          "Specific tactical solutions",
          "Two things you can say to get around price objections"),
    _hook("speed_cant_do_both", "You can't {desired outcome} and also {competing desire} at the same time", "speed",
          ["direct", "reality-check", "casual"], "high",
          "Highlights contradictory desires",
          "You can't build wealth and also avoid all financial risk at the same time"),
    _hook("speed_outperform_percentage",
          "You can outperform {percentage}% of {target audience} without {skill} by {simple action}", "speed",
          ["encouraging", "strategic", "casual"], "high",
          "Achievable advantage through simple actions",
          "You can outperform 90% of content creators without talent by just being consistent"),
    _hook("speed_one_trait_pick", "If I had to pick one {trait} for {target audience}, it would be {specific trait}",
          "speed", ["decisive", "valuable", "casual"], "high",
          "Simplified advice focusing on one key trait",
          "If I had to pick one skill for entrepreneurs, it would be resilience"),

    # Educational
    _hook("edu_curiosity_question", "Ever wondered why {topic} works the way it does?", "educational",
          ["curious", "thoughtful", "casual"], "high",
          "Curiosity-driven question opener",
          "Ever wondered why some people are naturally charismatic?"),
    _hook("edu_breakdown_promise", "Let me break down {topic} in simple terms", "educational",
          ["professional", "clear", "casual"], "high",
          "Promises clear explanation",
          "Let me break down cryptocurrency in simple terms"),
    _hook("edu_biggest_mistake", "The biggest mistake people make with {topic}", "educational",
          ["helpful", "understanding", "casual"], "high",
          "Highlights common errors",
          "The biggest mistake people make with investing"),
    _hook("edu_research_surprise", "Research shows something surprising about {topic}", "educational",
          ["authoritative", "professional", "casual"], "high",
          "Evidence-based opener",
          "Research shows something surprising about multitasking"),
    _hook("edu_hidden_understanding", "Here's what most people don't understand about {topic}", "educational",
          ["comprehensive", "professional", "casual"], "high",
          "Promises deeper understanding",
          "Here's what most people don't understand about compound interest"),
    _hook("edu_system_approach", "The step-by-step system for mastering {topic}", "educational",
          ["systematic", "clear", "casual"], "high",
          "Structured learning approach",
          "The step-by-step system for mastering public speaking"),
    _hook("edu_foundation_first", "Before you advance in {topic}, master these fundamentals", "educational",
          ["foundational", "building", "casual"], "medium",
          "Emphasizes building strong foundation",
          "Before you advance in coding, master these fundamentals"),
    _hook("edu_science_behind", "The science behind why {topic} works", "educational",
          ["scientific", "explanatory", "casual"], "medium",
          "Scientific explanation approach",
          "The science behind why meditation works"),
    _hook("edu_fastest_way_learn", "The fastest way to learn {topic} is to {specific action}", "educational",
          ["efficient", "practical", "casual"], "high",
          "Efficiency-focused learning approach",
          "The fastest way to learn public speaking is to record yourself daily"),
    _hook("edu_how_do_i_achieve", "How do I {achieve desired outcome}? Most people could do it in {timeframe}",
          "educational", ["direct", "actionable", "casual"], "high",
          "Question-answer format with timeline",
          "How do I get fit? Most people could do it in 90 days"),
    _hook("edu_lesson_wish_known", "A {life stage} lesson I wish I'd known earlier: {insight}", "educational",
          ["reflective", "wisdom", "casual"], "high",
          "Wisdom sharing from experience",
          "A business lesson I wish I'd known earlier: anything worthwhile takes 3x longer than expected"),

    # Viral / engaging
    _hook("viral_unbelievable_result", "You won't believe what happened when I tried {topic}", "viral",
          ["surprising", "dramatic", "casual"], "high",
          "Creates shock and anticipation",
          "You won't believe what happened when I tried cold showers for 30 days"),
    _hook("viral_life_changer", "This {topic} hack changed everything for me", "viral",
          ["inspiring", "dramatic", "casual"], "high",
          "Personal transformation story",
          "This productivity hack changed everything for me"),
    _hook("viral_insider_secret", "Industry insiders don't want you to know this about {topic}", "viral",
          ["exclusive", "intriguing", "casual"], "high",
          "Creates insider knowledge appeal",
          "Industry insiders don't want you to know this about social media algorithms"),
    _hook("viral_trending_missing", "Everyone's talking about {topic}, but here's what they're missing", "viral",
          ["trendy", "urgent", "casual"], "high",
          "Taps into trends with unique angle",
          "Everyone's talking about AI, but here's what they're missing"),
    _hook("viral_wrong_way", "Stop doing {topic} wrong - here's the right way", "viral",
          ["dramatic", "urgent", "casual"], "medium",
          "Dramatic correction angle",
          "Stop doing content creation wrong - here's the right way"),
    _hook("viral_mind_blown", "This {topic} discovery will blow your mind", "viral",
          ["amazing", "surprising", "casual", "energetic"], "medium",
          "Creates amazement and curiosity",
          "This psychology discovery will blow your mind"),
    _hook("viral_game_changer", "I found the {topic} method that changes everything", "viral",
          ["revolutionary", "exciting", "casual", "energetic"], "high",
          "Promises revolutionary improvement",
          "I found the learning method that changes everything"),
    _hook("viral_accident_discovery", "I discovered this {topic} secret by accident", "viral",
          ["surprising", "lucky", "casual"], "medium",
          "Accidental discovery narrative",
          "I discovered this networking secret by accident"),
    _hook("viral_learned_from_unexpected",
          "I learned this {topic} strategy from {unexpected source} that makes {outcome} way more effective",
          "viral", ["credible", "intriguing", "casual"], "high",
          "Credibility through unexpected sources",
          "I learned this negotiation strategy from a street vendor that makes closing deals way more effective"),
    _hook("viral_significant_life_event", "I just {experienced significant event} for {unexpected reason}", "viral",
          ["personal", "dramatic", "casual"], "high",
          "Personal story with surprising twist",
          "I just quit my dream job for the most unexpected reason"),
    _hook("viral_greatest_advantage",
          "When you start {activity}, you have one of the greatest advantages: {unique asset}", "viral",
          ["encouraging", "strategic", "casual"], "high",
          "Reframes beginnings as advantages",
          "When you start content creation, you have one of the greatest advantages: nobody knows you yet"),
    _hook("viral_most_adjective_noun", "What is the most {adjective} {noun} you've ever {action}?", "viral",
          ["engaging", "personal", "casual"], "high",
          "Engaging question that invites personal reflection",
          "What is the most courageous decision you've ever made?"),
    _hook("viral_never_achieved_until", "I had never achieved {result} until I {catalyst}", "viral",
          ["transformational", "personal", "casual"], "high",
          "Transformation story with turning point",
          "I had never made six figures until I stopped trying to please everyone"),
)


def get_examples(
    category: Optional[str] = None,
    tone: Optional[str] = None,
    effectiveness: Optional[str] = None,
    limit: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[HookExample]:
    """Filter the library, order by effectiveness tier and shuffle inside each tier."""
    rng = rng or random.Random()

    filtered = [
        example for example in HOOK_EXAMPLES
        if (category is None or example.category == category)
        and (tone is None or tone in example.tones)
        and (effectiveness is None or example.effectiveness == effectiveness)
    ]
    filtered.sort(key=lambda example: EFFECTIVENESS_ORDER[example.effectiveness])

    ordered: List[HookExample] = []
    for _, tier in groupby(filtered, key=lambda example: example.effectiveness):
        group = list(tier)
        rng.shuffle(group)
        ordered.extend(group)

    if limit is not None:
        return ordered[:limit]
    return ordered


def format_hook_examples_for_prompt(
    category: Optional[str] = None,
    tone: Optional[str] = None,
    limit: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """High-effectiveness examples rendered as pattern/example/context blocks, followed by the opener ban."""
    examples = get_examples(category=category, tone=tone, effectiveness="high", limit=limit, rng=rng)
    if not examples and tone is not None:
        examples = get_examples(category=category, effectiveness="high", limit=limit, rng=rng)

    lines = []
    if examples:
        category_name = category.capitalize() if category else "Various"
        lines.append(f"{category_name} Hook Examples:")
        for example in examples:
            lines.append(f'Pattern: "{example.pattern}"')
            lines.append(f'Example: "{example.example}"')
            lines.append(f"Context: {example.context}")
            lines.append("")

    lines.append(BANNED_OPENERS_RULE)
    return "\n".join(lines)


def starts_with_banned_opener(hook: str) -> bool:
    """True if the first words of a hook match a banned generic opener."""
    words = [word.strip("\"'.,!?").lower() for word in hook.split()[:4]]
    for opener in BANNED_HOOK_OPENERS:
        opener_words = opener.lower().split()
        if words[:len(opener_words)] == opener_words:
            return True
    return False
