"""Copy CLI commands - thin wrappers orchestrating params, validation, display, and service."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

from ...content.styles import StyleCategory, list_styles
from ..core.ai_progress import AIProgressDisplay
from ..core.console import console
from ..core.loaders import load_configuration
from ..core.types import Failure
from .display import (
    show_copy_error,
    show_evaluation,
    show_generation_config,
    show_generation_result,
    show_snapshot,
    show_styles_table,
    show_suggestions,
)
from .params import CopyGenerationParams, SnapshotLoadParams
from .service import CopyGeneratorService, SnapshotLoaderService
from .validators import validate_copy_generation_params


def generate(
    config_path: Path = typer.Argument(..., help="YAML file with the brief and settings"),
    style: Optional[str] = typer.Option(None, "--style", "-s", help="Voice style to apply to the base copy"),
    alternatives: int = typer.Option(0, "--alternatives", "-a", help="Number of alternatives to create"),
    save_session: Optional[str] = typer.Option(None, "--save-session", help="Save the session under this id"),
    save_template: Optional[str] = typer.Option(None, "--save-template", help="Save the configuration as a template"),
    save_output: Optional[str] = typer.Option(None, "--save-output", help="Save the results as a saved output"),
    store_dir: Optional[Path] = typer.Option(None, "--store", help="Snapshot directory"),
    text_ai: Optional[str] = typer.Option(None, "--text-ai", help="Text AI provider"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Hide per-call AI progress"),
) -> None:
    """Generate marketing copy from a configuration file.

    Creates the base copy first, then the requested alternatives and the
    styled version, all derived from the base.
    """
    params = CopyGenerationParams.from_cli(
        config_path=config_path,
        style=style,
        alternatives=alternatives,
        save_session=save_session,
        save_template=save_template,
        save_output=save_output,
        store_dir=store_dir,
        text_ai=text_ai,
        quiet=quiet,
    )

    validation = validate_copy_generation_params(params)
    if isinstance(validation, Failure):
        show_copy_error(console, validation.error, validation.details)
        raise typer.Exit(1)

    loaded = load_configuration(params.config_path)
    if isinstance(loaded, Failure):
        show_copy_error(console, loaded.error, loaded.details)
        raise typer.Exit(1)
    config = loaded.value

    show_generation_config(console, params, config)

    display = AIProgressDisplay(console, verbose=params.verbose)
    result = asyncio.run(CopyGeneratorService().generate(params, config, display))

    if isinstance(result, Failure):
        show_copy_error(console, result.error, result.details)
        raise typer.Exit(1)

    show_generation_result(console, result.value)
    if result.value.partial_error:
        raise typer.Exit(1)


def evaluate(
    config_path: Path = typer.Argument(..., help="YAML file with the brief and settings"),
    field: Optional[str] = typer.Option(None, "--field", "-f", help="Only rate this field (e.g. business_description)"),
    text_ai: Optional[str] = typer.Option(None, "--text-ai", help="Text AI provider"),
) -> None:
    """Rate the brief, or one field of it, and get tips to improve it before generating."""
    loaded = load_configuration(config_path)
    if isinstance(loaded, Failure):
        show_copy_error(console, loaded.error, loaded.details)
        raise typer.Exit(1)

    display = AIProgressDisplay(console, verbose=False)
    result = asyncio.run(CopyGeneratorService().evaluate(loaded.value, text_ai, display, field))

    if isinstance(result, Failure):
        show_copy_error(console, result.error, result.details)
        raise typer.Exit(1)

    show_evaluation(console, result.value, field)


def suggest(
    config_path: Path = typer.Argument(..., help="YAML file with the brief and settings"),
    field: str = typer.Argument(..., help="Field to suggest values for (e.g. key_message, keywords)"),
    text_ai: Optional[str] = typer.Option(None, "--text-ai", help="Text AI provider"),
) -> None:
    """Suggest values for one field of the brief."""
    loaded = load_configuration(config_path)
    if isinstance(loaded, Failure):
        show_copy_error(console, loaded.error, loaded.details)
        raise typer.Exit(1)

    display = AIProgressDisplay(console, verbose=False)
    result = asyncio.run(CopyGeneratorService().suggest(loaded.value, field, text_ai, display))

    if isinstance(result, Failure):
        show_copy_error(console, result.error, result.details)
        raise typer.Exit(1)

    show_suggestions(console, field, result.value)


def list_styles_command(
    category: Optional[StyleCategory] = typer.Option(None, "--category", "-c", help="Only this category"),
) -> None:
    """List the available voice styles."""
    show_styles_table(console, list_styles(category))


def load(
    session_id: Optional[str] = typer.Option(None, "--session", help="Session id"),
    template_id: Optional[str] = typer.Option(None, "--template", help="Template id"),
    saved_output_id: Optional[str] = typer.Option(None, "--saved-output", help="Saved output id"),
    store_dir: Optional[Path] = typer.Option(None, "--store", help="Snapshot directory"),
) -> None:
    """Load a stored session, template or saved output.

    Exactly one identifier must be given.
    """
    params = SnapshotLoadParams.from_cli(
        session_id=session_id,
        template_id=template_id,
        saved_output_id=saved_output_id,
        store_dir=store_dir,
    )

    result = asyncio.run(SnapshotLoaderService().load(params))

    if isinstance(result, Failure):
        show_copy_error(console, result.error, result.details)
        raise typer.Exit(1)

    show_snapshot(console, result.value)
