"""Copy-specific validators."""

from __future__ import annotations

from ...content.styles import STYLES, normalize_style_name
from ...errors import ValidationError
from ...services.persistence import validate_identifier
from ..core.types import Failure, Result, Success
from .params import CopyGenerationParams

MAX_ALTERNATIVES_PER_RUN = 5


def validate_copy_generation_params(params: CopyGenerationParams) -> Result[CopyGenerationParams]:
    """Validate copy generation parameters.

    Returns Result with params if valid, or Failure with error.
    """
    if not params.config_path.exists():
        return Failure(
            f"Configuration file not found: {params.config_path}",
            {"hint": "Pass a YAML file with the brief and generation settings"},
        )

    if params.alternatives < 0 or params.alternatives > MAX_ALTERNATIVES_PER_RUN:
        return Failure(
            f"Invalid alternatives count: {params.alternatives}",
            {"hint": f"Alternatives must be between 0 and {MAX_ALTERNATIVES_PER_RUN}"},
        )

    if params.style is not None and normalize_style_name(params.style) not in STYLES:
        return Failure(
            f"Unknown style: {params.style}",
            {"hint": "Run 'copy-maker styles' to list available styles"},
        )

    for field, value in (
        ("save_session", params.save_session),
        ("save_template", params.save_template),
        ("save_output", params.save_output),
    ):
        if value is None:
            continue
        try:
            validate_identifier(value, field)
        except ValidationError as e:
            return Failure(e.message, {"hint": "Use letters, digits, '-' and '_' only"})

    return Success(params)
