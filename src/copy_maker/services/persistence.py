"""Snapshot persistence and identifier-based loading.

The engine only needs a SnapshotRepository with async save and load.
JsonSnapshotRepository is the file-backed implementation used by the CLI.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from pydantic import BaseModel

from ..constants import SnapshotKind
from ..content.store import SessionSnapshot
from ..errors import SnapshotNotFoundError, ValidationError

if TYPE_CHECKING:
    from ..content.orchestrator import ContentOrchestrator

_logger = logging.getLogger("copy_maker.sessions")

_IDENTIFIER_PATTERN = re.compile(r"[A-Za-z0-9_-]{1,128}")


class SnapshotRepository(Protocol):
    """Persistence collaborator for session snapshots."""

    async def save(self, snapshot: SessionSnapshot) -> None:
        ...

    async def load(self, kind: SnapshotKind, snapshot_id: str) -> SessionSnapshot:
        ...


def validate_identifier(value: str, field: str = "id") -> str:
    """Return the identifier if well formed, else raise ValidationError."""
    if not isinstance(value, str) or not _IDENTIFIER_PATTERN.fullmatch(value):
        raise ValidationError(f"Malformed identifier for {field}: {value!r}", field=field, value=value)
    return value


class JsonSnapshotRepository:
    """Stores one JSON file per snapshot.

    Storage structure:
        <base_dir>/
            session/
                3f9c2a.json
            template/
                landing-page.json
            saved_output/
                launch-final.json
    """

    def __init__(self, base_dir: Path):
        """Initialize the repository.

        Args:
            base_dir: Root directory for snapshot files.
        """
        self.base_dir = Path(base_dir)

    def _get_kind_dir(self, kind: SnapshotKind) -> Path:
        return self.base_dir / SnapshotKind(kind).value

    def _path_for(self, kind: SnapshotKind, snapshot_id: str) -> Path:
        validate_identifier(snapshot_id)
        return self._get_kind_dir(kind) / f"{snapshot_id}.json"

    async def save(self, snapshot: SessionSnapshot) -> None:
        path = self._path_for(snapshot.kind, snapshot.id)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(snapshot.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
        _logger.info(
            f"SNAPSHOT | SAVED | kind:{snapshot.kind.value} | id:{snapshot.id} | nodes:{len(snapshot.nodes)}"
        )

    async def load(self, kind: SnapshotKind, snapshot_id: str) -> SessionSnapshot:
        """Load a snapshot.

        Raises:
            SnapshotNotFoundError: No file for this kind and id.
        """
        kind = SnapshotKind(kind)
        path = self._path_for(kind, snapshot_id)
        if not path.exists():
            raise SnapshotNotFoundError(kind.value, snapshot_id)

        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        _logger.info(f"SNAPSHOT | LOADED | kind:{kind.value} | id:{snapshot_id}")
        return SessionSnapshot.model_validate(data)

    def list_ids(self, kind: SnapshotKind) -> list[str]:
        """Ids of every stored snapshot of a kind, sorted."""
        kind_dir = self._get_kind_dir(kind)
        if not kind_dir.exists():
            return []
        return sorted(p.stem for p in kind_dir.glob("*.json"))


class IdentifierRequest(BaseModel):
    """Query-style request to load one snapshot.

    Exactly one of the three identifiers must be given.
    """

    session_id: str | None = None
    template_id: str | None = None
    saved_output_id: str | None = None

    def resolve(self) -> tuple[SnapshotKind, str]:
        """The kind and id to fetch.

        Raises:
            ValidationError: None or several identifiers given, or one is
                empty or malformed.
        """
        given = [
            (kind, field, value)
            for kind, field, value in (
                (SnapshotKind.SESSION, "session_id", self.session_id),
                (SnapshotKind.TEMPLATE, "template_id", self.template_id),
                (SnapshotKind.SAVED_OUTPUT, "saved_output_id", self.saved_output_id),
            )
            if value is not None
        ]
        if not given:
            raise ValidationError("No identifier given", field="identifier")
        if len(given) > 1:
            fields = [field for _, field, _ in given]
            raise ValidationError(
                f"Only one identifier allowed, got: {', '.join(fields)}",
                field="identifier",
                value=fields,
            )
        kind, field, value = given[0]
        return kind, validate_identifier(value, field)


async def load_from_identifiers(
    request: IdentifierRequest,
    repository: SnapshotRepository,
    orchestrator: ContentOrchestrator | None = None,
) -> SessionSnapshot:
    """Fetch the identified snapshot once and restore it.

    Args:
        request: The identifiers supplied by the caller.
        repository: Where snapshots live.
        orchestrator: Restored wholesale from the snapshot when given.

    Returns:
        The loaded snapshot.
    """
    kind, snapshot_id = request.resolve()
    snapshot = await repository.load(kind, snapshot_id)
    if orchestrator is not None:
        orchestrator.restore(snapshot)
    return snapshot
