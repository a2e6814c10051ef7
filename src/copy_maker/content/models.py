"""Pydantic models for copy generation.

ConfigurationModel is the input of every operation; ContentNode is the unit
of generated output kept in the ContentGraph.
"""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from ..constants import (
    MAX_REVISION_ATTEMPTS_LIMIT,
    SEO_VARIANTS_MAX,
    WORD_COUNT_LONG,
    WORD_COUNT_MEDIUM,
    WORD_COUNT_SHORT,
    LoopState,
    NodeKind,
)
from ..errors import ValidationError
from ..providers.config import get_engine_settings

_WORD_PATTERN = re.compile(r"\S+")


ENGINE_DEFAULT_FIELDS = (
    "max_revision_attempts",
    "short_content_threshold",
    "short_content_tolerance_percentage",
    "word_count_tolerance_percentage",
)


def _engine_default(name: str):
    return getattr(get_engine_settings(), name)


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(_WORD_PATTERN.findall(text or ""))


class CopyMode(str, Enum):
    """Whether copy is written from scratch or rewritten."""

    CREATE = "create"
    IMPROVE = "improve"


class WordCountPreset(str, Enum):
    """Length presets offered to the user."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"
    CUSTOM = "custom"


PRESET_WORD_COUNTS: dict[WordCountPreset, int] = {
    WordCountPreset.SHORT: WORD_COUNT_SHORT,
    WordCountPreset.MEDIUM: WORD_COUNT_MEDIUM,
    WordCountPreset.LONG: WORD_COUNT_LONG,
}


class OutputSection(BaseModel):
    """One named section of the requested output structure."""

    name: str
    label: str | None = None
    word_count: int | None = None

    @property
    def display_name(self) -> str:
        return self.label or self.name


class ConfigurationModel(BaseModel):
    """Everything that parameterizes a generation call.

    The orchestrator only reads this model. Helpers that need a changed
    configuration return a copy.
    """

    mode: CopyMode = CopyMode.CREATE

    # Business facts
    business_description: str = ""
    original_copy: str = ""
    product_service_name: str = ""
    industry_niche: str = ""
    page_type: str = ""
    section: str = ""
    brief_description: str = ""
    key_message: str = ""
    call_to_action: str = ""
    brand_values: str = ""
    context: str = ""
    excluded_terms: str = ""
    competitor_copy_text: str = ""

    # Audience
    target_audience: str = ""
    target_audience_pain_points: str = ""
    reader_funnel_stage: str = ""
    desired_emotion: str = ""

    # Tone and style
    language: str = "English"
    tone: str = "Professional"
    tone_level: int = Field(default=50, ge=0, le=100)
    preferred_writing_style: str = ""
    language_style_constraints: list[str] = Field(default_factory=list)

    # Keywords
    keywords: str = ""

    # Word count policy
    word_count: WordCountPreset | None = None
    custom_word_count: int | None = None
    # Unset fields take the engine defaults (COPY_MAKER_* settings)
    word_count_tolerance_percentage: float = Field(
        default_factory=lambda: _engine_default("word_count_tolerance_percentage")
    )
    strict_word_count: bool = False
    short_content_threshold: int = Field(default_factory=lambda: _engine_default("short_content_threshold"))
    short_content_tolerance_percentage: float = Field(
        default_factory=lambda: _engine_default("short_content_tolerance_percentage")
    )
    max_revision_attempts: int = Field(
        default_factory=lambda: _engine_default("max_revision_attempts"), ge=0, le=MAX_REVISION_ATTEMPTS_LIMIT
    )

    # Output structure
    output_structure: list[OutputSection] = Field(default_factory=list)

    # Feature toggles
    generate_scores: bool = False
    generate_seo_metadata: bool = False
    generate_geo_score: bool = False
    force_keyword_integration: bool = False
    force_elaboration: bool = False
    enhance_for_geo: bool = False
    add_tldr_summary: bool = False
    location: str = ""
    geo_regions: str = ""

    # SEO variant counts
    num_url_slugs: int = Field(default=1, ge=1, le=SEO_VARIANTS_MAX)
    num_meta_descriptions: int = Field(default=1, ge=1, le=SEO_VARIANTS_MAX)
    num_h1_variants: int = Field(default=1, ge=1, le=SEO_VARIANTS_MAX)
    num_h2_variants: int = Field(default=2, ge=1, le=SEO_VARIANTS_MAX)
    num_h3_variants: int = Field(default=2, ge=1, le=SEO_VARIANTS_MAX)
    num_og_titles: int = Field(default=1, ge=1, le=SEO_VARIANTS_MAX)
    num_og_descriptions: int = Field(default=1, ge=1, le=SEO_VARIANTS_MAX)

    # Provider selection
    model: str | None = None

    @property
    def primary_text(self) -> str:
        """The text generation starts from, depending on mode."""
        if self.mode == CopyMode.IMPROVE:
            return self.original_copy
        return self.business_description

    def keyword_list(self) -> list[str]:
        return [k.strip() for k in self.keywords.split(",") if k.strip()]

    def section_word_total(self) -> int:
        return sum(s.word_count or 0 for s in self.output_structure)

    def target_word_count(self) -> int | None:
        """Resolve the word count the loop should aim for.

        Custom and section totals win over presets; when both exist the
        larger one is used. Returns None when no length was requested.
        """
        custom = 0
        if self.word_count in (WordCountPreset.CUSTOM, None) and self.custom_word_count:
            custom = self.custom_word_count
        sections = self.section_word_total()

        if custom and sections:
            return max(custom, sections)
        if custom:
            return custom
        if sections:
            return sections
        return PRESET_WORD_COUNTS.get(self.word_count) if self.word_count else None

    def with_distributed_sections(self, target: int | None = None) -> ConfigurationModel:
        """Copy with the target split evenly across sections without budgets.

        Only applies when sections exist and none carries an allocation.
        """
        target = target if target is not None else self.target_word_count()
        if not self.output_structure or not target:
            return self.model_copy()
        if any(s.word_count for s in self.output_structure):
            return self.model_copy()

        share = target // len(self.output_structure)
        sections = [s.model_copy(update={"word_count": share}) for s in self.output_structure]
        return self.model_copy(update={"output_structure": sections})


def validate_configuration(config: ConfigurationModel) -> None:
    """Reject configurations that cannot produce a request.

    Raises:
        ValidationError: On the first problem found.
    """
    if not config.primary_text.strip():
        field = "original_copy" if config.mode == CopyMode.IMPROVE else "business_description"
        raise ValidationError(f"{field} must not be empty", field=field, value=getattr(config, field))

    if config.custom_word_count is not None and config.custom_word_count <= 0:
        raise ValidationError(
            "custom_word_count must be positive",
            field="custom_word_count",
            value=config.custom_word_count,
        )

    if config.word_count == WordCountPreset.CUSTOM and not config.custom_word_count and not config.section_word_total():
        raise ValidationError(
            "custom word count selected without a value",
            field="custom_word_count",
            value=config.custom_word_count,
        )

    for section in config.output_structure:
        if section.word_count is not None and section.word_count < 0:
            raise ValidationError(
                f"Section '{section.name}' has a negative word count",
                field="output_structure",
                value=section.word_count,
            )

    target = config.target_word_count()
    if target is not None and target <= 0:
        raise ValidationError("Target word count must be positive", field="word_count", value=target)

    for field in ("word_count_tolerance_percentage", "short_content_tolerance_percentage"):
        value = getattr(config, field)
        if not 0 < value <= 100:
            raise ValidationError(f"{field} must be in (0, 100]", field=field, value=value)

    if config.short_content_threshold < 0:
        raise ValidationError(
            "short_content_threshold must not be negative",
            field="short_content_threshold",
            value=config.short_content_threshold,
        )

    if not 0 <= config.max_revision_attempts <= MAX_REVISION_ATTEMPTS_LIMIT:
        raise ValidationError(
            f"max_revision_attempts must be between 0 and {MAX_REVISION_ATTEMPTS_LIMIT}",
            field="max_revision_attempts",
            value=config.max_revision_attempts,
        )


# =============================================================================
# Node annotations
# =============================================================================


class ContentScore(BaseModel):
    """Quality assessment of a piece of copy."""

    overall: int = Field(ge=0, le=100)
    clarity: str = ""
    persuasiveness: str = ""
    tone_match: str = ""
    engagement: str = ""
    word_count_accuracy: int | None = Field(default=None, ge=0, le=100)
    improvement_explanation: str = ""


class SeoItem(BaseModel):
    """One SEO text with its character budget."""

    text: str
    limit: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def char_count(self) -> int:
        return len(self.text)

    @property
    def within_limit(self) -> bool:
        return self.char_count <= self.limit


class SeoMetadata(BaseModel):
    """SEO bundle: slugs, descriptions, headings and social tags."""

    url_slugs: list[SeoItem] = Field(default_factory=list)
    meta_descriptions: list[SeoItem] = Field(default_factory=list)
    h1_variants: list[SeoItem] = Field(default_factory=list)
    h2_headings: list[SeoItem] = Field(default_factory=list)
    h3_headings: list[SeoItem] = Field(default_factory=list)
    og_titles: list[SeoItem] = Field(default_factory=list)
    og_descriptions: list[SeoItem] = Field(default_factory=list)

    def all_items(self) -> list[SeoItem]:
        return [
            *self.url_slugs,
            *self.meta_descriptions,
            *self.h1_variants,
            *self.h2_headings,
            *self.h3_headings,
            *self.og_titles,
            *self.og_descriptions,
        ]


class GeoCriterion(BaseModel):
    criterion: str
    score: int = Field(ge=0)
    max_score: int | None = None
    detected: bool = False
    explanation: str = ""


class GeoScore(BaseModel):
    """How quotable the copy is for AI assistants."""

    overall: int = Field(ge=0, le=100)
    breakdown: list[GeoCriterion] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class InputEvaluation(BaseModel):
    """Quality of the configuration itself, with tips. Not a node."""

    score: int = Field(ge=0, le=100)
    tips: list[str] = Field(default_factory=list)


# =============================================================================
# Derivation metadata
# =============================================================================


class BaseDerivation(BaseModel):
    type: Literal["base"] = "base"
    mode: CopyMode = CopyMode.CREATE
    target_word_count: int | None = None
    loop_state: LoopState | None = None
    attempts: int = 1


class AlternativeDerivation(BaseModel):
    type: Literal["alternative"] = "alternative"
    index: int = 1
    target_word_count: int | None = None
    loop_state: LoopState | None = None
    attempts: int = 1


class StyleDerivation(BaseModel):
    type: Literal["style"] = "style"
    style_name: str
    category: str


DerivationMeta = Annotated[
    Union[BaseDerivation, AlternativeDerivation, StyleDerivation],
    Field(discriminator="type"),
]


class ContentNode(BaseModel):
    """One generated or derived piece of copy.

    Nodes are immutable; annotations produce a new node with the same id.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    kind: NodeKind
    text: str
    derived_from: str | None = None
    derivation_meta: DerivationMeta = Field(default_factory=BaseDerivation)
    score: ContentScore | None = None
    seo_metadata: SeoMetadata | None = None
    geo_score: GeoScore | None = None
    tokens_used: int = 0
    created_at: datetime = Field(default_factory=datetime.now)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def word_count(self) -> int:
        return count_words(self.text)

    @model_validator(mode="after")
    def _check_provenance(self) -> ContentNode:
        if self.kind == NodeKind.BASE and self.derived_from is not None:
            raise ValueError("base nodes cannot be derived from another node")
        if self.kind != NodeKind.BASE and not self.derived_from:
            raise ValueError(f"{self.kind.value} nodes need derived_from")
        return self
