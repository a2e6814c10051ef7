"""Configuration file loading for CLI commands."""

from __future__ import annotations

from pathlib import Path

import pydantic
import yaml

from ...content.models import ConfigurationModel
from .types import Failure, Result, Success


def load_configuration(path: Path) -> Result[ConfigurationModel]:
    """Load a copy configuration from a YAML file.

    Pure function - only reads the filesystem.

    Args:
        path: YAML file with ConfigurationModel fields at the top level.

    Returns:
        Result containing the configuration or failure
    """
    path = Path(path)
    if not path.exists():
        return Failure(f"Configuration file not found: {path}", {"path": str(path)})

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        return Failure(f"Invalid YAML in {path.name}", {"error": str(e)})

    if not isinstance(data, dict):
        return Failure(f"Configuration must be a mapping: {path.name}", {"path": str(path)})

    try:
        return Success(ConfigurationModel.model_validate(data))
    except pydantic.ValidationError as e:
        details = {
            ".".join(str(part) for part in err["loc"]) or "configuration": err["msg"]
            for err in e.errors()
        }
        return Failure(f"Invalid configuration in {path.name}", details)
