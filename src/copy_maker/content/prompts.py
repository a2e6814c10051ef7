"""Prompt assembly for every generation mode.

Pure functions: the same configuration, mode and source node always give
the same PromptPair. Nothing here touches the network or shared state.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from ..constants import (
    SEO_H1_LIMIT,
    SEO_H2_LIMIT,
    SEO_H3_LIMIT,
    SEO_META_DESCRIPTION_LIMIT,
    SEO_OG_DESCRIPTION_LIMIT,
    SEO_OG_TITLE_LIMIT,
    SEO_URL_SLUG_LIMIT,
)
from ..errors import ValidationError
from .models import ConfigurationModel, ContentNode, CopyMode
from .styles import VoiceStyle
from .tolerance import ToleranceMode, TolerancePolicy


class PromptMode(str, Enum):
    """What a prompt asks the model to do."""

    BASE = "base"
    ALTERNATIVE = "alternative"
    STYLED = "styled"
    HUMANIZED = "humanized"
    SCORE = "score"
    SEO = "seo"
    GEO = "geo"
    EVALUATION = "evaluation"
    SUGGESTIONS = "suggestions"
    FIELD_EVALUATION = "field_evaluation"


class PromptPair(BaseModel):
    """System and user prompt for one provider request."""

    model_config = ConfigDict(frozen=True)

    system: str
    user: str


# (criterion, max points) used by GEO scoring
GEO_CRITERIA: tuple[tuple[str, int], ...] = (
    ("Direct Answer Clarity", 20),
    ("Scannable Structure", 15),
    ("Question-Based Headings", 10),
    ("Local Relevance or GEO Markers", 20),
    ("Quote-Friendly Sentences", 15),
    ("Authority Signals", 10),
    ("Optional TL;DR / Answer Box", 10),
)

SEO_FIELD_LIMITS: dict[str, int] = {
    "url_slugs": SEO_URL_SLUG_LIMIT,
    "meta_descriptions": SEO_META_DESCRIPTION_LIMIT,
    "h1_variants": SEO_H1_LIMIT,
    "h2_headings": SEO_H2_LIMIT,
    "h3_headings": SEO_H3_LIMIT,
    "og_titles": SEO_OG_TITLE_LIMIT,
    "og_descriptions": SEO_OG_DESCRIPTION_LIMIT,
}

# What the model is asked to suggest for each configuration field
SUGGESTION_FIELDS: dict[str, str] = {
    "key_message": "key messages that summarize the main point or value proposition",
    "target_audience": "target audience descriptions focusing on demographics, interests, and needs",
    "call_to_action": "effective calls to action that would motivate the target audience to take the next step",
    "desired_emotion": "emotional responses that the content should evoke in the audience",
    "brand_values": "brand values that would align with this business",
    "keywords": "SEO keywords and key phrases that would be relevant",
    "context": "contextual information that would help create more effective copy",
    "industry_niche": "specific industry niches that best match this business",
    "reader_funnel_stage": "marketing funnel stages for this content (awareness, consideration, decision)",
    "preferred_writing_style": "writing styles that would be most effective for this content",
    "target_audience_pain_points": "specific pain points or challenges the target audience likely faces",
    "competitor_copy_text": "competitor copy examples that would be relevant to analyze",
}

EVALUATION_FIELDS: tuple[str, ...] = (
    "business_description",
    "original_copy",
    "brief_description",
    *SUGGESTION_FIELDS,
)

_DERIVATION_MODES = {PromptMode.ALTERNATIVE, PromptMode.STYLED, PromptMode.HUMANIZED}
_NODE_MODES = _DERIVATION_MODES | {PromptMode.SCORE, PromptMode.SEO, PromptMode.GEO}

_OUTPUT_RULES = """OUTPUT RULES:
- Return ONLY the marketing copy
- No introductions, meta-commentary, or explanations of your approach
- No SEO metadata (URL slugs, meta descriptions, headings lists, Open Graph tags)"""

_JSON_ONLY = "You must respond with a valid JSON object only. All property names must be double-quoted."


def _quote(text: str) -> str:
    return f'"""\n{text}\n"""'


def _facts(config: ConfigurationModel) -> list[str]:
    """Non-empty business and audience facts as labelled lines."""
    fields = [
        ("Product/Service", config.product_service_name),
        ("Industry/Niche", config.industry_niche),
        ("Page type", config.page_type),
        ("Section", config.section),
        ("Brief description", config.brief_description),
        ("Key message", config.key_message),
        ("Call to action", config.call_to_action),
        ("Brand values", config.brand_values),
        ("Target audience", config.target_audience),
        ("Audience pain points", config.target_audience_pain_points),
        ("Reader funnel stage", config.reader_funnel_stage),
        ("Desired emotion", config.desired_emotion),
        ("Preferred writing style", config.preferred_writing_style),
        ("Additional context", config.context),
    ]
    return [f"- {label}: {value}" for label, value in fields if value]


def _word_count_instruction(policy: TolerancePolicy) -> str:
    if policy.mode == ToleranceMode.EXACT:
        return (
            f"WORD COUNT: The copy must be exactly {policy.target} words. "
            "Count carefully before answering."
        )
    if policy.mode == ToleranceMode.FLEXIBLE:
        return (
            f"WORD COUNT: Aim for {policy.target} words. Anything between "
            f"{policy.minimum} and {policy.maximum} words is acceptable; natural phrasing "
            "matters more than hitting the exact number."
        )
    return (
        f"WORD COUNT: Write {policy.target} words. The result must stay between "
        f"{policy.minimum} and {policy.maximum} words."
    )


def _structure_instruction(config: ConfigurationModel) -> str | None:
    if not config.output_structure:
        return None
    lines = ["STRUCTURE: Produce exactly the following sections, in this order:"]
    for i, section in enumerate(config.output_structure, 1):
        budget = f" ({section.word_count} words)" if section.word_count else ""
        lines.append(f"{i}. {section.display_name}{budget}")
    return "\n".join(lines)


def _geo_instructions(config: ConfigurationModel) -> list[str]:
    lines: list[str] = []
    if config.enhance_for_geo:
        lines.append(
            "GEO: Optimize for AI assistants. Open with a direct answer, use scannable "
            "structure with question-based headings, and write short quote-friendly sentences "
            "with concrete authority signals."
        )
        if config.location:
            lines.append(f"Mention the location naturally: {config.location}.")
        if config.geo_regions:
            lines.append(f"Reference these target regions where relevant: {config.geo_regions}.")
    if config.add_tldr_summary:
        lines.append(
            'TL;DR: Begin with "TL;DR: " followed by a 1-2 sentence summary that directly '
            "answers the main user intent, then a blank line, then the copy."
        )
    return lines


def _requirements(config: ConfigurationModel, policy: TolerancePolicy | None) -> str:
    """Every toggle of the configuration as an explicit instruction block."""
    parts: list[str] = []

    facts = _facts(config)
    if facts:
        parts.append("BRIEF:\n" + "\n".join(facts))

    keywords = config.keyword_list()
    if keywords:
        if config.force_keyword_integration:
            parts.append(
                "KEYWORDS: Integrate every listed keyword at least once, naturally: "
                + ", ".join(keywords)
            )
        else:
            parts.append("KEYWORDS: Use these keywords where they fit: " + ", ".join(keywords))

    if config.excluded_terms:
        parts.append(f"EXCLUDED TERMS: Never use these words or phrases: {config.excluded_terms}")

    if config.language_style_constraints:
        parts.append(
            "LANGUAGE STYLE CONSTRAINTS:\n"
            + "\n".join(f"- {c}" for c in config.language_style_constraints)
        )

    if config.competitor_copy_text:
        parts.append(
            "COMPETITOR COPY (differentiate from it, never copy it):\n"
            + _quote(config.competitor_copy_text)
        )

    if config.force_elaboration:
        parts.append(
            "ELABORATION: Develop every point with concrete examples, explanations, and "
            "specific details instead of short generic statements."
        )

    structure = _structure_instruction(config)
    if structure:
        parts.append(structure)

    if policy is not None:
        parts.append(_word_count_instruction(policy))

    parts.extend(_geo_instructions(config))
    return "\n\n".join(parts)


def _writer_system(config: ConfigurationModel, persona: str | None = None) -> str:
    who = (
        f"You are an expert copywriter who can perfectly mimic the voice, style, and mannerisms of {persona}."
        if persona
        else "You are an expert marketing copywriter."
    )
    return (
        f"{who}\n"
        f"Write in {config.language}. Tone: {config.tone} (intensity {config.tone_level}/100).\n\n"
        f"{_OUTPUT_RULES}"
    )


def _base_prompts(config: ConfigurationModel, policy: TolerancePolicy | None) -> PromptPair:
    if config.mode == CopyMode.IMPROVE:
        task = "Improve the following marketing copy. Keep its facts, make it clearer and more persuasive."
        source = config.original_copy
    else:
        task = "Write new marketing copy for the business described below."
        source = config.business_description
    user = f"{task}\n\n{_quote(source)}"
    requirements = _requirements(config, policy)
    if requirements:
        user += f"\n\n{requirements}"
    return PromptPair(system=_writer_system(config), user=user)


def _alternative_prompts(
    config: ConfigurationModel,
    source: ContentNode,
    policy: TolerancePolicy | None,
    index: int,
) -> PromptPair:
    user = (
        f"Here is existing marketing copy:\n\n{_quote(source.text)}\n\n"
        f"Write alternative version #{index}. Take a divergent angle: a different hook, "
        "structure, and emphasis, while keeping the key facts and every requirement below."
    )
    requirements = _requirements(config, policy)
    if requirements:
        user += f"\n\n{requirements}"
    return PromptPair(system=_writer_system(config), user=user)


def _style_prompts(
    config: ConfigurationModel,
    source: ContentNode,
    style: VoiceStyle,
) -> PromptPair:
    if style.is_humanization:
        system = _writer_system(config) + f"\n\nHUMANIZATION: {style.description}"
        directive = "Rewrite the copy below so it reads as if a person wrote it."
    else:
        system = _writer_system(config, persona=style.label) + f"\n\nVOICE: {style.description}"
        directive = (
            f"Restyle the copy below so it sounds exactly as if {style.label} wrote it. "
            "Keep all key information and meaning."
        )
    if style.traits:
        system += "\nCharacteristics:\n" + "\n".join(f"- {t}" for t in style.traits)

    user = (
        f"{directive}\n\n{_quote(source.text)}\n\n"
        f"LENGTH: Keep roughly the same length ({source.word_count} words)."
    )
    geo = _geo_instructions(config)
    if geo:
        user += "\n\n" + "\n".join(geo)
    return PromptPair(system=system, user=user)


def _score_prompts(config: ConfigurationModel, source: ContentNode) -> PromptPair:
    target = config.target_word_count()
    target_line = f"- Target word count: {target} (actual: {source.word_count})" if target else ""
    context = "\n".join(
        line
        for line in [
            f"- Tone: {config.tone}",
            f"- Target audience: {config.target_audience}" if config.target_audience else "",
            target_line,
        ]
        if line
    )
    user = (
        f"Evaluate this marketing copy:\n\n{_quote(source.text)}\n\n"
        f"CONTEXT:\n{context}\n\n"
        "Respond with JSON:\n"
        "{\n"
        '  "overall": 0-100,\n'
        '  "clarity": "assessment",\n'
        '  "persuasiveness": "assessment",\n'
        '  "tone_match": "assessment",\n'
        '  "engagement": "assessment",\n'
        '  "word_count_accuracy": 0-100,\n'
        '  "improvement_explanation": "what would make it better"\n'
        "}"
    )
    system = f"You are an expert marketing copy reviewer.\n\n{_JSON_ONLY}"
    return PromptPair(system=system, user=user)


def _seo_prompts(config: ConfigurationModel, source: ContentNode) -> PromptPair:
    counts = {
        "url_slugs": config.num_url_slugs,
        "meta_descriptions": config.num_meta_descriptions,
        "h1_variants": config.num_h1_variants,
        "h2_headings": config.num_h2_variants,
        "h3_headings": config.num_h3_variants,
        "og_titles": config.num_og_titles,
        "og_descriptions": config.num_og_descriptions,
    }
    rules = "\n".join(
        f"- {field}: {counts[field]} item(s), each at most {limit} characters"
        for field, limit in SEO_FIELD_LIMITS.items()
    )
    keywords = config.keyword_list()
    keyword_line = f"\nPrimary keywords: {', '.join(keywords)}" if keywords else ""
    user = (
        f"Create SEO metadata for this copy:\n\n{_quote(source.text)}\n{keyword_line}\n\n"
        f"Limit each SEO field to its stated character maximum:\n{rules}\n\n"
        "Respond with JSON where every field is a list of strings, for example:\n"
        '{"url_slugs": ["..."], "meta_descriptions": ["..."], "h1_variants": ["..."], '
        '"h2_headings": ["..."], "h3_headings": ["..."], "og_titles": ["..."], '
        '"og_descriptions": ["..."]}'
    )
    system = f"You are an SEO specialist writing in {config.language}.\n\n{_JSON_ONLY}"
    return PromptPair(system=system, user=user)


def _geo_prompts(config: ConfigurationModel, source: ContentNode) -> PromptPair:
    criteria = "\n".join(
        f"{i}. {name} ({points} points max)" for i, (name, points) in enumerate(GEO_CRITERIA, 1)
    )
    user = (
        f"Evaluate this content for GEO optimization:\n\n{_quote(source.text)}\n\n"
        f"SCORING CRITERIA (total 100 points):\n{criteria}\n\n"
        "CONTEXT:\n"
        f"- Language: {config.language}\n"
        f"- Target regions: {config.geo_regions or 'Not specified'}\n"
        f"- TL;DR enabled: {'Yes' if config.add_tldr_summary else 'No'}\n\n"
        "Respond with JSON:\n"
        '{"overall": 0-100, "breakdown": [{"criterion": "...", "score": 0, "max_score": 20, '
        '"detected": true, "explanation": "..."}], "suggestions": ["..."]}'
    )
    system = (
        "You are an expert in Generative Engine Optimization (GEO), the practice of "
        "optimizing content for AI assistants.\n\n" + _JSON_ONLY
    )
    return PromptPair(system=system, user=user)


def _evaluation_prompts(config: ConfigurationModel) -> PromptPair:
    facts = _facts(config)
    target = config.target_word_count()
    details = [
        f"- Mode: {config.mode.value}",
        f"- Language: {config.language}",
        f"- Tone: {config.tone}",
        f"- Target word count: {target}" if target else "- Target word count: not set",
        f"- Keywords: {', '.join(config.keyword_list()) or 'none'}",
        *facts,
    ]
    user = (
        "Evaluate the inputs of this marketing copy project: completeness, clarity, "
        "and whether they work together.\n\n"
        f"MAIN TEXT:\n{_quote(config.primary_text)}\n\n"
        "OTHER INPUTS:\n" + "\n".join(details) + "\n\n"
        'Respond with JSON: {"score": 0-100, "tips": ["specific improvement", "..."]}'
    )
    system = (
        "You are an expert marketing advisor who reviews copywriting briefs before any "
        "copy is written.\n\n" + _JSON_ONLY
    )
    return PromptPair(system=system, user=user)


def _label(field: str) -> str:
    return field.replace("_", " ")


def _suggestion_prompts(config: ConfigurationModel, field: str) -> PromptPair:
    context = [_quote(config.primary_text), *_facts(config)]
    user = (
        f"Based on the following information, suggest 6-8 relevant {SUGGESTION_FIELDS[field]}. "
        f"The suggestions should be in {config.language}.\n\n"
        "CONTEXT:\n" + "\n".join(context) + "\n\n"
        "Keep each suggestion concise and focused, with no explanations.\n"
        'Respond with JSON: {"suggestions": ["Suggestion 1", "Suggestion 2", "..."]}'
    )
    system = (
        "You are an expert marketing advisor helping to fill in a marketing copy brief. "
        "Provide practical, high-quality suggestions based on the context provided.\n\n" + _JSON_ONLY
    )
    return PromptPair(system=system, user=user)


def _field_evaluation_prompts(config: ConfigurationModel, field: str) -> PromptPair:
    user = (
        f"Evaluate this {_label(field)} written for a marketing copy brief:\n\n"
        f"{_quote(getattr(config, field))}\n\n"
        "Give a score from 0-100 and 2-3 specific improvement tips.\n"
        'Respond with JSON: {"score": 85, "tips": ["Add more details about X", "..."]}'
    )
    system = (
        "You are an expert content evaluator. Provide a focused assessment of the content "
        "quality.\n\n" + _JSON_ONLY
    )
    return PromptPair(system=system, user=user)


def _require_field(mode: PromptMode, field: str | None, allowed) -> str:
    if field is None:
        raise ValidationError(f"{mode.value} prompts need a field", field="field")
    if field not in allowed:
        raise ValidationError(
            f"{mode.value} is not available for '{field}'. Choose one of: {', '.join(allowed)}",
            field="field",
            value=field,
        )
    return field


def build_prompts(
    config: ConfigurationModel,
    mode: PromptMode,
    source: ContentNode | None = None,
    style: VoiceStyle | None = None,
    policy: TolerancePolicy | None = None,
    alternative_index: int = 1,
    field: str | None = None,
) -> PromptPair:
    """Build the prompt pair for one generation mode.

    Args:
        config: Configuration to encode.
        mode: Which prompt to build.
        source: Node whose text is transformed or assessed. Required for
            every mode except base and the configuration-side modes.
        style: Registry entry for styled and humanized modes.
        policy: Word-count policy for base and alternative modes.
        alternative_index: Number of the alternative being requested.
        field: Configuration field for suggestion and field evaluation modes.

    Returns:
        PromptPair with system and user prompt.

    Raises:
        ValidationError: A required argument for the mode is missing, or the
            field is unknown or empty.
    """
    mode = PromptMode(mode)
    if mode in _NODE_MODES and source is None:
        raise ValidationError(f"{mode.value} prompts need a source node", field="source")
    if mode in (PromptMode.STYLED, PromptMode.HUMANIZED) and style is None:
        raise ValidationError(f"{mode.value} prompts need a style", field="style")
    if mode == PromptMode.SUGGESTIONS:
        field = _require_field(mode, field, SUGGESTION_FIELDS)
    if mode == PromptMode.FIELD_EVALUATION:
        field = _require_field(mode, field, EVALUATION_FIELDS)
        if not getattr(config, field).strip():
            raise ValidationError(f"{field} is empty, nothing to evaluate", field=field, value="")

    if mode == PromptMode.BASE:
        return _base_prompts(config, policy)
    if mode == PromptMode.ALTERNATIVE:
        return _alternative_prompts(config, source, policy, alternative_index)
    if mode in (PromptMode.STYLED, PromptMode.HUMANIZED):
        return _style_prompts(config, source, style)
    if mode == PromptMode.SCORE:
        return _score_prompts(config, source)
    if mode == PromptMode.SEO:
        return _seo_prompts(config, source)
    if mode == PromptMode.GEO:
        return _geo_prompts(config, source)
    if mode == PromptMode.SUGGESTIONS:
        return _suggestion_prompts(config, field)
    if mode == PromptMode.FIELD_EVALUATION:
        return _field_evaluation_prompts(config, field)
    return _evaluation_prompts(config)


def build_revision_instruction(actual: int, policy: TolerancePolicy) -> str:
    """Corrective instruction after a draft missed the word count."""
    difference = actual - policy.target
    if difference > 0:
        direction = f"It is {difference} words too long. Shorten it by about {difference} words"
    else:
        direction = f"It is {-difference} words too short. Expand it by about {-difference} words"
    return (
        f"REVISION REQUIRED: The previous draft has {actual} words, but the requirement is "
        f"{policy.describe()}. {direction} while keeping the message, tone, and structure. "
        "Return only the revised copy."
    )


def build_revision_prompts(
    original: PromptPair,
    draft: str,
    actual: int,
    policy: TolerancePolicy,
) -> PromptPair:
    """Original prompts plus the previous draft and the corrective instruction."""
    user = (
        f"{original.user}\n\n"
        f"PREVIOUS DRAFT:\n{_quote(draft)}\n\n"
        f"{build_revision_instruction(actual, policy)}"
    )
    return PromptPair(system=original.system, user=user)
