"""Immutable parameter dataclasses for copy commands."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _default_store_dir() -> Path:
    from ...providers.config import get_engine_settings

    return Path(get_engine_settings().snapshot_dir)


@dataclass(frozen=True)
class CopyGenerationParams:
    """Immutable parameters for copy generation."""

    config_path: Path
    style: Optional[str]
    alternatives: int
    save_session: Optional[str]
    save_template: Optional[str]
    save_output: Optional[str]
    store_dir: Path
    text_ai: Optional[str]
    verbose: bool

    @classmethod
    def from_cli(
        cls,
        config_path: Path,
        style: Optional[str] = None,
        alternatives: int = 0,
        save_session: Optional[str] = None,
        save_template: Optional[str] = None,
        save_output: Optional[str] = None,
        store_dir: Optional[Path] = None,
        text_ai: Optional[str] = None,
        quiet: bool = False,
        **kwargs,
    ) -> "CopyGenerationParams":
        """Create from CLI arguments with defaults."""
        return cls(
            config_path=Path(config_path),
            style=style,
            alternatives=alternatives,
            save_session=save_session,
            save_template=save_template,
            save_output=save_output,
            store_dir=Path(store_dir) if store_dir else _default_store_dir(),
            text_ai=text_ai,
            verbose=not quiet,
        )

    @property
    def wants_snapshot(self) -> bool:
        return any((self.save_session, self.save_template, self.save_output))


@dataclass(frozen=True)
class SnapshotLoadParams:
    """Immutable parameters for loading a stored snapshot."""

    session_id: Optional[str]
    template_id: Optional[str]
    saved_output_id: Optional[str]
    store_dir: Path

    @classmethod
    def from_cli(
        cls,
        session_id: Optional[str] = None,
        template_id: Optional[str] = None,
        saved_output_id: Optional[str] = None,
        store_dir: Optional[Path] = None,
        **kwargs,
    ) -> "SnapshotLoadParams":
        """Create from CLI arguments."""
        return cls(
            session_id=session_id,
            template_id=template_id,
            saved_output_id=saved_output_id,
            store_dir=Path(store_dir) if store_dir else _default_store_dir(),
        )
