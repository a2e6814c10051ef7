"""Voice style registry.

Every style is a data record looked up by name. Adding a style means adding
an entry to STYLES; the prompt builder and orchestrator need no changes.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from enum import Enum

from ..errors import UnknownStyleError


class StyleCategory(str, Enum):
    """Groups shown to the user when picking a style."""

    HUMANIZATION = "humanization"
    """Rewrites that make copy sound natural. Produce humanized nodes."""

    TONE = "tone"
    """Generic tone and style presets."""

    PERSONA = "persona"
    """Voices of well-known copywriters and speakers."""


@dataclass(frozen=True)
class VoiceStyle:
    """One entry of the style registry."""

    name: str
    label: str
    category: StyleCategory
    description: str
    traits: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_humanization(self) -> bool:
        return self.category == StyleCategory.HUMANIZATION


def normalize_style_name(name: str) -> str:
    """Turn a label or name into a registry key ("Brené Brown" -> "brene-brown")."""
    ascii_name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    # camelCase values like "humanizeNoAIDetection"
    ascii_name = re.sub(r"(?<=[a-z])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])", " ", ascii_name)
    return re.sub(r"[^a-z0-9]+", "-", ascii_name.lower()).strip("-")


_STYLE_LIST: list[VoiceStyle] = [
    # Humanization
    VoiceStyle(
        name="humanize",
        label="Humanize",
        category=StyleCategory.HUMANIZATION,
        description=(
            "Transform text into a warm, conversational, relatable voice while preserving "
            "meaning and structure. Use natural language patterns and keep emojis and "
            "exclamation marks to a minimum."
        ),
    ),
    VoiceStyle(
        name="humanize-no-ai-detection",
        label="Humanize (No AI Detection)",
        category=StyleCategory.HUMANIZATION,
        description=(
            "Transform text into natural, human-sounding content with imperfections, "
            "casual phrases, and conversational flow."
        ),
        traits=(
            "Natural, conversational flow with varied sentence structures",
            "Subtle imperfections and human-like inconsistencies",
            "Personal touches and relatable language",
            "Avoid overly polished or robotic phrasing",
            "Contractions, colloquialisms, and natural speech patterns",
            "Balance professionalism with authentic human expression",
        ),
    ),
    # Tone and style
    VoiceStyle(
        name="luxury-brand",
        label="Luxury Brand",
        category=StyleCategory.TONE,
        description="Sophisticated, exclusive, refined. Precise language with an air of exclusivity and timeless elegance.",
    ),
    VoiceStyle(
        name="tech-startup",
        label="Tech Startup",
        category=StyleCategory.TONE,
        description="Modern, innovative, solution-oriented. Fast-paced with technical precision and forward-thinking language.",
    ),
    VoiceStyle(
        name="professional-formal",
        label="Professional Formal",
        category=StyleCategory.TONE,
        description="Polished, authoritative, structured. Suited to corporate communications requiring credibility.",
    ),
    VoiceStyle(
        name="friendly-conversational",
        label="Friendly Conversational",
        category=StyleCategory.TONE,
        description="Warm, approachable, relatable. Casual language that builds connection and trust.",
    ),
    VoiceStyle(
        name="bold-direct",
        label="Bold Direct",
        category=StyleCategory.TONE,
        description="Straightforward, confident, no-nonsense. Gets right to the point with clear value statements.",
    ),
    VoiceStyle(
        name="cool-trendy",
        label="Cool Trendy",
        category=StyleCategory.TONE,
        description="Fresh, contemporary, culturally aware. Written for youth-oriented brands and modern audiences.",
    ),
    VoiceStyle(
        name="minimalist",
        label="Minimalist",
        category=StyleCategory.TONE,
        description="Clean, essential, focused. Fewer words with greater impact, emphasizing clarity and simplicity.",
    ),
    VoiceStyle(
        name="playful",
        label="Playful",
        category=StyleCategory.TONE,
        description="Fun, lighthearted, engaging. Humor and creativity that capture attention.",
    ),
    VoiceStyle(
        name="high-end-exclusive",
        label="High-End Exclusive",
        category=StyleCategory.TONE,
        description="Premium, select, aspirational. A sense of belonging to an elite group with privileged access.",
    ),
    VoiceStyle(
        name="soft-empathetic",
        label="Soft Empathetic",
        category=StyleCategory.TONE,
        description="Caring, understanding, supportive. Emotional connection that addresses pain points.",
    ),
    # Personas
    VoiceStyle(
        name="alex-hormozi",
        label="Alex Hormozi",
        category=StyleCategory.PERSONA,
        description="Framework-focused, value-first, direct.",
    ),
    VoiceStyle(
        name="brene-brown",
        label="Brené Brown",
        category=StyleCategory.PERSONA,
        description="Empathetic, vulnerable, emotionally intelligent.",
        traits=(
            "Vulnerable, authentic, and deeply empathetic tone",
            "Research-backed insights combined with personal storytelling",
            "Language around courage, vulnerability, and emotional intelligence",
            "Inclusive, non-judgmental language",
            "Gentle but powerful calls to action around personal growth",
        ),
    ),
    VoiceStyle(
        name="david-ogilvy",
        label="David Ogilvy",
        category=StyleCategory.PERSONA,
        description="Fact-driven, research-backed, elegant persuasion that sells through education and credibility.",
        traits=(
            "Clear, elegant, and fact-driven language",
            "Sophisticated but never pretentious vocabulary",
            "Logical progression of ideas",
            "Well-crafted, memorable phrases",
            "Respectful of the reader's intelligence",
        ),
    ),
    VoiceStyle(
        name="don-draper",
        label="Don Draper",
        category=StyleCategory.PERSONA,
        description="Emotional, cinematic, persuasion-heavy.",
    ),
    VoiceStyle(
        name="donald-miller",
        label="Donald Miller",
        category=StyleCategory.PERSONA,
        description="Clear, story-structured, benefit-driven.",
    ),
    VoiceStyle(
        name="elon-musk",
        label="Elon Musk",
        category=StyleCategory.PERSONA,
        description="Visionary, technical, future-focused.",
    ),
    VoiceStyle(
        name="gary-halbert",
        label="Gary Halbert",
        category=StyleCategory.PERSONA,
        description="Aggressive, emotional, classic direct-response copywriting.",
        traits=(
            "Direct and conversational, addressing the reader as \"you\"",
            "Strong, bold claims backed by reasoning",
            "Storytelling that draws the reader in",
            "Explicit promises and benefits to the reader",
            "Colorful expressions and memorable phrases",
        ),
    ),
    VoiceStyle(
        name="maider-tomasena",
        label="Maider Tomasena",
        category=StyleCategory.PERSONA,
        description="Authentic, strategic, purpose-driven.",
    ),
    VoiceStyle(
        name="marie-forleo",
        label="Marie Forleo",
        category=StyleCategory.PERSONA,
        description="Witty, upbeat, empowering.",
        traits=(
            "Warm, conversational and friendly tone",
            "Upbeat, positive, and encouraging language",
            "Empowering calls to action",
            "Questions that engage the reader",
            "Occasional playful humor",
        ),
    ),
    VoiceStyle(
        name="richard-branson",
        label="Richard Branson",
        category=StyleCategory.PERSONA,
        description="Bold, adventurous, customer-focused.",
    ),
    VoiceStyle(
        name="seth-godin",
        label="Seth Godin",
        category=StyleCategory.PERSONA,
        description="Punchy, metaphorical, counter-intuitive.",
        traits=(
            "Short, punchy paragraphs, often one or two sentences",
            "Thought-provoking questions",
            "Metaphors and unexpected comparisons",
            "Challenges conventional thinking",
            "Starts with a simple observation and builds to a deeper insight",
        ),
    ),
    VoiceStyle(
        name="simon-sinek",
        label="Simon Sinek",
        category=StyleCategory.PERSONA,
        description="Purpose-driven, inspirational, 'Start with Why' tone.",
        traits=(
            "Focus on \"why\" over \"what\" or \"how\"",
            "Rhetorical questions that make the reader reflect",
            "Repetition of key concepts for emphasis",
            "Simple language to explain profound concepts",
        ),
    ),
    VoiceStyle(
        name="steve-jobs",
        label="Steve Jobs",
        category=StyleCategory.PERSONA,
        description="Bold, visionary, minimalist.",
        traits=(
            "Simple, direct, and clear language",
            "Short, impactful sentences",
            "Focus on product benefits and \"why it matters\"",
            "Contrasts (\"X is good, but Y is revolutionary\")",
            "Powerful adjectives like \"incredible\" and \"revolutionary\"",
            "A sense of creating history and changing the world",
        ),
    ),
    VoiceStyle(
        name="tony-robbins",
        label="Tony Robbins",
        category=StyleCategory.PERSONA,
        description="High-energy, motivational, urgency-driven.",
    ),
]

STYLES: dict[str, VoiceStyle] = {style.name: style for style in _STYLE_LIST}


def get_style(name: str) -> VoiceStyle:
    """Look up a style by registry name or display label.

    Raises:
        UnknownStyleError: No style matches.
    """
    style = STYLES.get(normalize_style_name(name or ""))
    if style is None:
        raise UnknownStyleError(name)
    return style


def list_styles(category: StyleCategory | None = None) -> list[VoiceStyle]:
    """Registry entries in display order, optionally for one category."""
    return [s for s in _STYLE_LIST if category is None or s.category == category]
