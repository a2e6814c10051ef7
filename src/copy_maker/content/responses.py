"""Pydantic response models for the JSON-returning prompts.

Models answer scoring, SEO, GEO, evaluation and suggestion prompts with JSON.
The parse_* helpers extract that JSON, validate it against these models and
convert it into the node annotation models. Anything unusable raises a
malformed_response ProviderError.
"""

from __future__ import annotations

import json
import re
from typing import Any, TypeVar

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ..errors import ProviderError, ProviderErrorKind
from .models import (
    ContentScore,
    GeoCriterion,
    GeoScore,
    InputEvaluation,
    SeoItem,
    SeoMetadata,
)
from .prompts import SEO_FIELD_LIMITS

_CODE_BLOCK_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_NUMBERED_LINE_PATTERN = re.compile(r"^\s*\d+[.)]\s*(.+?)\s*$", re.MULTILINE)

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class ScoreResponse(BaseModel):
    """Content quality score."""

    overall: float = Field(description="Overall score 0-100")
    clarity: str = Field(default="", description="Clarity assessment")
    persuasiveness: str = Field(default="", description="Persuasiveness assessment")
    tone_match: str = Field(default="", description="How well the tone matches the request")
    engagement: str = Field(default="", description="Engagement assessment")
    word_count_accuracy: float | None = Field(default=None, description="Word count accuracy 0-100")
    improvement_explanation: str = Field(default="", description="What would improve the copy")


class SeoResponse(BaseModel):
    """SEO metadata as plain string lists."""

    url_slugs: list[str] = Field(default_factory=list)
    meta_descriptions: list[str] = Field(default_factory=list)
    h1_variants: list[str] = Field(default_factory=list)
    h2_headings: list[str] = Field(default_factory=list)
    h3_headings: list[str] = Field(default_factory=list)
    og_titles: list[str] = Field(default_factory=list)
    og_descriptions: list[str] = Field(default_factory=list)


class GeoCriterionResponse(BaseModel):
    criterion: str
    score: float = 0
    max_score: int | None = None
    detected: bool = False
    explanation: str = ""


class GeoResponse(BaseModel):
    """GEO score with per-criterion breakdown."""

    overall: float = Field(description="Overall GEO score 0-100")
    breakdown: list[GeoCriterionResponse] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class EvaluationResponse(BaseModel):
    """Input quality evaluation."""

    score: float = Field(description="Input quality score 0-100")
    tips: list[str] = Field(default_factory=list, description="Concrete improvement tips")


def _malformed(message: str) -> ProviderError:
    return ProviderError(message, ProviderErrorKind.MALFORMED_RESPONSE)


def extract_json(response: str) -> dict[str, Any]:
    """Extract a JSON object from an AI response.

    Tries the whole text, then markdown code blocks, then the first
    balanced ``{ ... }`` span.

    Raises:
        ProviderError: No JSON object found (malformed_response).
    """
    text = (response or "").strip()

    try:
        data = json.loads(text)
        if isinstance(data, dict):
            return data
    except json.JSONDecodeError:
        pass

    for match in _CODE_BLOCK_PATTERN.findall(text):
        try:
            data = json.loads(match.strip())
            if isinstance(data, dict):
                return data
        except json.JSONDecodeError:
            continue

    brace_start = text.find("{")
    if brace_start != -1:
        depth = 0
        for i, char in enumerate(text[brace_start:], brace_start):
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    try:
                        return json.loads(text[brace_start:i + 1])
                    except json.JSONDecodeError:
                        break

    raise _malformed(f"No JSON object in response: {text[:100]}")


def _validate(model: type[ResponseT], response: str) -> ResponseT:
    data = extract_json(response)
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise _malformed(f"{model.__name__} did not match: {e.error_count()} error(s)") from e


def _clamp(value: float, low: int = 0, high: int = 100) -> int:
    return int(max(low, min(high, round(value))))


def parse_score(response: str) -> ContentScore:
    raw = _validate(ScoreResponse, response)
    return ContentScore(
        overall=_clamp(raw.overall),
        clarity=raw.clarity,
        persuasiveness=raw.persuasiveness,
        tone_match=raw.tone_match,
        engagement=raw.engagement,
        word_count_accuracy=_clamp(raw.word_count_accuracy) if raw.word_count_accuracy is not None else None,
        improvement_explanation=raw.improvement_explanation,
    )


def parse_seo(response: str) -> SeoMetadata:
    """Parse SEO JSON, attaching each field's character limit to its items."""
    raw = _validate(SeoResponse, response)
    fields = {
        name: [SeoItem(text=text.strip(), limit=limit) for text in getattr(raw, name) if text.strip()]
        for name, limit in SEO_FIELD_LIMITS.items()
    }
    return SeoMetadata(**fields)


def parse_geo(response: str) -> GeoScore:
    raw = _validate(GeoResponse, response)
    return GeoScore(
        overall=_clamp(raw.overall),
        breakdown=[
            GeoCriterion(
                criterion=c.criterion,
                score=_clamp(c.score, high=c.max_score or 100),
                max_score=c.max_score,
                detected=c.detected,
                explanation=c.explanation,
            )
            for c in raw.breakdown
        ],
        suggestions=raw.suggestions,
    )


def parse_evaluation(response: str) -> InputEvaluation:
    raw = _validate(EvaluationResponse, response)
    return InputEvaluation(score=_clamp(raw.score), tips=[t for t in raw.tips if t.strip()])


def parse_suggestions(response: str) -> list[str]:
    """Parse a list of field suggestions.

    Accepts {"suggestions": [...]}, any object holding a list, a bare JSON
    array, or a numbered list as a last resort.

    Raises:
        ProviderError: No suggestions found (malformed_response).
    """
    text = (response or "").strip()
    items: list[Any] | None = None

    for candidate in [text, *_CODE_BLOCK_PATTERN.findall(text)]:
        try:
            data = json.loads(candidate.strip())
        except json.JSONDecodeError:
            continue
        if isinstance(data, list):
            items = data
            break

    if items is None:
        try:
            data = extract_json(text)
        except ProviderError:
            items = _NUMBERED_LINE_PATTERN.findall(text)
        else:
            items = data.get("suggestions")
            if not isinstance(items, list):
                items = next((value for value in data.values() if isinstance(value, list)), [])

    suggestions = [item.strip() for item in items if isinstance(item, str) and item.strip()]
    if not suggestions:
        raise _malformed(f"No suggestions in response: {text[:100]}")
    return suggestions
