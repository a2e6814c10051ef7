"""Tests for snapshot persistence and identifier-based loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import FakeGateway
from copy_maker.constants import NodeKind, SnapshotKind
from copy_maker.content.models import ContentNode, ContentScore, StyleDerivation
from copy_maker.content.orchestrator import ContentOrchestrator
from copy_maker.content.store import SessionSnapshot
from copy_maker.errors import SnapshotNotFoundError, ValidationError
from copy_maker.services.persistence import (
    IdentifierRequest,
    JsonSnapshotRepository,
    load_from_identifiers,
    validate_identifier,
)


@pytest.fixture
def repository(tmp_path: Path) -> JsonSnapshotRepository:
    return JsonSnapshotRepository(tmp_path / "snapshots")


@pytest.fixture
def session_snapshot(base_config) -> SessionSnapshot:
    base = ContentNode(
        id="n1",
        kind=NodeKind.BASE,
        text="Bookkeeping that runs itself.",
        score=ContentScore(overall=80),
    )
    styled = ContentNode(
        id="n2",
        kind=NodeKind.STYLED,
        text="One more thing.",
        derived_from="n1",
        derivation_meta=StyleDerivation(style_name="steve-jobs", category="persona"),
    )
    return SessionSnapshot(
        kind=SnapshotKind.SESSION,
        id="launch",
        configuration=base_config,
        nodes=[base, styled],
        brief_description="Launch page",
    )


class TestValidateIdentifier:
    @pytest.mark.parametrize("value", ["launch", "tpl_01", "A-b-C", "x" * 128])
    def test_valid(self, value):
        assert validate_identifier(value) == value

    @pytest.mark.parametrize("value", ["", "../etc/passwd", "has space", "x" * 129, "dot.json"])
    def test_malformed(self, value):
        with pytest.raises(ValidationError):
            validate_identifier(value)


class TestJsonSnapshotRepository:
    """Tests for the file-backed repository."""

    @pytest.mark.asyncio
    async def test_round_trip(self, repository, session_snapshot):
        await repository.save(session_snapshot)

        loaded = await repository.load(SnapshotKind.SESSION, "launch")

        assert loaded == session_snapshot
        assert isinstance(loaded.nodes[1].derivation_meta, StyleDerivation)
        assert loaded.nodes[0].score.overall == 80

    @pytest.mark.asyncio
    async def test_stored_as_json_per_kind(self, repository, session_snapshot):
        await repository.save(session_snapshot)

        path = repository.base_dir / "session" / "launch.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["kind"] == "session"
        assert [n["id"] for n in data["nodes"]] == ["n1", "n2"]
        assert repository.list_ids(SnapshotKind.SESSION) == ["launch"]
        assert repository.list_ids(SnapshotKind.TEMPLATE) == []

    @pytest.mark.asyncio
    async def test_missing_snapshot(self, repository):
        with pytest.raises(SnapshotNotFoundError):
            await repository.load(SnapshotKind.TEMPLATE, "nope")

    @pytest.mark.asyncio
    async def test_lookups_create_no_directories(self, repository):
        with pytest.raises(SnapshotNotFoundError):
            await repository.load(SnapshotKind.SESSION, "nope")

        assert repository.list_ids(SnapshotKind.TEMPLATE) == []
        assert not repository.base_dir.exists()


class TestIdentifierRequest:
    """Tests for resolving exactly one identifier."""

    def test_resolves_single_identifier(self):
        assert IdentifierRequest(template_id="tpl").resolve() == (SnapshotKind.TEMPLATE, "tpl")
        assert IdentifierRequest(saved_output_id="out-1").resolve() == (SnapshotKind.SAVED_OUTPUT, "out-1")

    def test_no_identifier(self):
        with pytest.raises(ValidationError):
            IdentifierRequest().resolve()

    def test_two_identifiers(self):
        with pytest.raises(ValidationError) as exc_info:
            IdentifierRequest(session_id="a", template_id="b").resolve()
        assert exc_info.value.value == ["session_id", "template_id"]

    def test_empty_identifier(self):
        with pytest.raises(ValidationError) as exc_info:
            IdentifierRequest(session_id="").resolve()
        assert exc_info.value.field == "session_id"


class TestLoadFromIdentifiers:
    @pytest.mark.asyncio
    async def test_restores_orchestrator(self, repository, session_snapshot, engine_settings):
        await repository.save(session_snapshot)
        orchestrator = ContentOrchestrator(gateway=FakeGateway(), settings=engine_settings)

        snapshot = await load_from_identifiers(
            IdentifierRequest(session_id="launch"), repository, orchestrator
        )

        assert snapshot.id == "launch"
        assert orchestrator.graph.ids == ["n1", "n2"]
        assert orchestrator.configuration == session_snapshot.configuration

    @pytest.mark.asyncio
    async def test_fetches_once(self, session_snapshot):
        class CountingRepository:
            def __init__(self):
                self.loads = 0

            async def save(self, snapshot):
                pass

            async def load(self, kind, snapshot_id):
                self.loads += 1
                return session_snapshot

        repository = CountingRepository()
        await load_from_identifiers(IdentifierRequest(session_id="launch"), repository)
        assert repository.loads == 1

    @pytest.mark.asyncio
    async def test_invalid_request_never_fetches(self, repository):
        with pytest.raises(ValidationError):
            await load_from_identifiers(IdentifierRequest(session_id="a", saved_output_id="b"), repository)
