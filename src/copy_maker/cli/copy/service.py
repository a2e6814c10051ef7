"""Stateless services for copy generation, evaluation and snapshot loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pydantic

from ...constants import SnapshotKind
from ...content.models import ConfigurationModel, InputEvaluation
from ...content.orchestrator import ContentOrchestrator
from ...content.store import SessionSnapshot
from ...errors import CopyMakerError, GenerationError
from ...providers.text import ProviderGateway, TextProvider
from ...services.persistence import IdentifierRequest, JsonSnapshotRepository, load_from_identifiers
from ..core.ai_progress import AIProgressDisplay
from ..core.types import CopyRunResult, Failure, Result, Success
from .params import CopyGenerationParams, SnapshotLoadParams


def _failure_from_error(error: CopyMakerError) -> Failure:
    details: dict[str, Any] = {}
    if error.error_code:
        details["code"] = error.error_code
    if isinstance(error, GenerationError):
        details["phase"] = error.phase.value
    details.update(error.details)
    return Failure(error.message, details)


class CopyGeneratorService:
    """Stateless service for copy generation.

    All state is passed via params - no instance state besides the
    injectable gateway.
    """

    def __init__(self, gateway: ProviderGateway | None = None):
        self._gateway = gateway

    def _create_orchestrator(
        self,
        display: AIProgressDisplay | None,
        text_ai: str | None,
    ) -> ContentOrchestrator:
        gateway = self._gateway or TextProvider(
            event_callback=display.handle_event if display else None,
            provider_override=text_ai,
        )
        return ContentOrchestrator(
            gateway=gateway,
            progress_callback=display.handle_progress if display else None,
        )

    async def generate(
        self,
        params: CopyGenerationParams,
        config: ConfigurationModel,
        display: AIProgressDisplay | None = None,
    ) -> Result[CopyRunResult]:
        """Generate base copy, then alternatives and a styled version.

        A failed auxiliary phase keeps the nodes produced so far; they are
        still returned and saved.

        Returns:
            Result containing CopyRunResult or Failure
        """
        orchestrator = self._create_orchestrator(display, params.text_ai or config.model)
        partial_error: str | None = None

        try:
            base = await orchestrator.generate_base(config)
            for _ in range(params.alternatives):
                await orchestrator.create_alternative(base.id, config)
            if params.style:
                await orchestrator.apply_style(base.id, params.style, config)
        except GenerationError as e:
            if not len(orchestrator.graph):
                return _failure_from_error(e)
            partial_error = e.message
        except CopyMakerError as e:
            return _failure_from_error(e)

        snapshot_path = None
        if params.wants_snapshot:
            snapshot_path = await self._save_snapshots(orchestrator, params)

        return Success(CopyRunResult(
            nodes=orchestrator.graph.snapshot(),
            snapshot_path=snapshot_path,
            total_tokens=orchestrator.usage.total_tokens(),
            total_cost_usd=orchestrator.usage.total_cost(),
            partial_error=partial_error,
        ))

    async def _save_snapshots(
        self,
        orchestrator: ContentOrchestrator,
        params: CopyGenerationParams,
    ) -> Path:
        repository = JsonSnapshotRepository(params.store_dir)
        for kind, snapshot_id in (
            (SnapshotKind.SESSION, params.save_session),
            (SnapshotKind.TEMPLATE, params.save_template),
            (SnapshotKind.SAVED_OUTPUT, params.save_output),
        ):
            if snapshot_id:
                await repository.save(orchestrator.export_snapshot(kind, snapshot_id))
        return repository.base_dir

    async def evaluate(
        self,
        config: ConfigurationModel,
        text_ai: str | None = None,
        display: AIProgressDisplay | None = None,
        field: str | None = None,
    ) -> Result[InputEvaluation]:
        """Rate the whole brief, or one field of it, and suggest improvements."""
        orchestrator = self._create_orchestrator(display, text_ai or config.model)
        try:
            if field:
                return Success(await orchestrator.evaluate_field(config, field))
            return Success(await orchestrator.evaluate_inputs(config))
        except CopyMakerError as e:
            return _failure_from_error(e)

    async def suggest(
        self,
        config: ConfigurationModel,
        field: str,
        text_ai: str | None = None,
        display: AIProgressDisplay | None = None,
    ) -> Result[list[str]]:
        """Suggest values for one field of the brief."""
        orchestrator = self._create_orchestrator(display, text_ai or config.model)
        try:
            return Success(await orchestrator.suggest_field(config, field))
        except CopyMakerError as e:
            return _failure_from_error(e)


class SnapshotLoaderService:
    """Stateless service for loading stored snapshots."""

    def __init__(self, gateway: ProviderGateway | None = None):
        self._gateway = gateway

    async def load(self, params: SnapshotLoadParams) -> Result[SessionSnapshot]:
        """Load exactly one snapshot by identifier and restore it into a fresh session.

        Returns:
            Result containing the snapshot or Failure
        """
        repository = JsonSnapshotRepository(params.store_dir)
        orchestrator = ContentOrchestrator(gateway=self._gateway or TextProvider())
        try:
            request = IdentifierRequest(
                session_id=params.session_id,
                template_id=params.template_id,
                saved_output_id=params.saved_output_id,
            )
            snapshot = await load_from_identifiers(request, repository, orchestrator)
        except CopyMakerError as e:
            return _failure_from_error(e)
        except pydantic.ValidationError as e:
            return Failure("Stored snapshot is corrupted", {"errors": e.error_count()})
        return Success(snapshot)

