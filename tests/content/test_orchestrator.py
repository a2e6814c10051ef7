"""Tests for the content orchestrator.

Tests cover:
- Base, alternative and styled generation threaded into the graph
- Word-count loop integration
- Auxiliary score, SEO and GEO phases, including partial failure
- Cancellation, busy sessions and validation before any provider call
- Per-field suggestions and evaluation
- Snapshot export and restore
"""

from __future__ import annotations

import asyncio

import pytest

from conftest import FakeGateway, wait_until, words
from copy_maker.constants import LoopState, NodeKind, OperationStatus, SnapshotKind
from copy_maker.content.models import (
    AlternativeDerivation,
    BaseDerivation,
    StyleDerivation,
    WordCountPreset,
)
from copy_maker.content.orchestrator import ContentOrchestrator
from copy_maker.errors import (
    GenerationError,
    GenerationPhase,
    NodeNotFoundError,
    OperationCancelledError,
    ProviderError,
    ProviderErrorKind,
    SessionBusyError,
    UnknownStyleError,
    ValidationError,
)
from copy_maker.providers.config import EngineSettings


def _blocking(gateway: FakeGateway) -> asyncio.Event:
    """Make the gateway hold every call until the returned event is set."""
    release = asyncio.Event()

    async def hold():
        await release.wait()

    gateway.before_reply = hold
    return release


class TestGenerateBase:
    """Tests for base generation."""

    @pytest.mark.asyncio
    async def test_single_call_without_target(self, orchestrator, gateway, base_config):
        gateway.queue("Bookkeeping that runs itself.")

        node = await orchestrator.generate_base(base_config)

        assert node.id == "n1"
        assert node.kind == NodeKind.BASE
        assert node.derived_from is None
        assert node.text == "Bookkeeping that runs itself."
        assert isinstance(node.derivation_meta, BaseDerivation)
        assert node.derivation_meta.loop_state is None
        assert len(gateway.calls) == 1
        assert orchestrator.graph.ids == ["n1"]
        assert orchestrator.state.status == OperationStatus.SUCCEEDED
        assert orchestrator.state.nodes == [node]

    @pytest.mark.asyncio
    async def test_word_count_loop_revises_until_satisfied(self, orchestrator, gateway, base_config):
        config = base_config.model_copy(
            update={
                "word_count": WordCountPreset.CUSTOM,
                "custom_word_count": 200,
                "word_count_tolerance_percentage": 2.0,
                "max_revision_attempts": 3,
            }
        )
        gateway.queue(words(250), words(204))

        node = await orchestrator.generate_base(config)

        assert node.word_count == 204
        assert node.derivation_meta.loop_state == LoopState.SATISFIED
        assert node.derivation_meta.attempts == 2
        assert node.derivation_meta.target_word_count == 200
        assert node.tokens_used == 20
        assert "REVISION REQUIRED" in gateway.user_prompts[1]

    @pytest.mark.asyncio
    async def test_exhausted_loop_keeps_closest_draft(self, orchestrator, gateway, base_config):
        config = base_config.model_copy(
            update={"custom_word_count": 200, "max_revision_attempts": 1}
        )
        gateway.queue(words(260), words(230))

        node = await orchestrator.generate_base(config)

        assert node.word_count == 230
        assert node.derivation_meta.loop_state == LoopState.EXHAUSTED

    @pytest.mark.asyncio
    async def test_engine_settings_set_the_revision_budget(self, gateway, base_config, id_factory):
        settings = EngineSettings(retry_delay_seconds=0.0, max_revision_attempts=1)
        orchestrator = ContentOrchestrator(gateway=gateway, settings=settings, id_factory=id_factory)
        config = base_config.model_copy(update={"custom_word_count": 200})
        gateway.queue(words(260), words(230), words(200))

        node = await orchestrator.generate_base(config)

        assert len(gateway.calls) == 2
        assert node.derivation_meta.attempts == 2
        assert node.derivation_meta.loop_state == LoopState.EXHAUSTED

    @pytest.mark.asyncio
    async def test_engine_settings_set_the_short_threshold(self, gateway, base_config, id_factory):
        settings = EngineSettings(retry_delay_seconds=0.0, short_content_threshold=50)
        orchestrator = ContentOrchestrator(gateway=gateway, settings=settings, id_factory=id_factory)
        config = base_config.model_copy(update={"custom_word_count": 80, "max_revision_attempts": 0})
        gateway.queue(words(90))

        node = await orchestrator.generate_base(config)

        # 90 words is inside the 20% short band but outside the 2% band
        assert node.derivation_meta.loop_state == LoopState.EXHAUSTED

    @pytest.mark.asyncio
    async def test_input_configuration_not_mutated(self, orchestrator, gateway, base_config):
        before = base_config.model_dump()
        gateway.queue("Copy")

        await orchestrator.generate_base(base_config)

        assert base_config.model_dump() == before

    @pytest.mark.asyncio
    async def test_validation_happens_before_any_call(self, orchestrator, gateway):
        from copy_maker.content.models import ConfigurationModel

        with pytest.raises(ValidationError):
            await orchestrator.generate_base(ConfigurationModel(business_description=""))

        assert gateway.calls == []
        assert not orchestrator.session.is_busy
        assert orchestrator.state.status == OperationStatus.IDLE

    @pytest.mark.asyncio
    async def test_provider_failure_adds_no_node(self, orchestrator, gateway, base_config):
        gateway.queue(ProviderError("bad key", ProviderErrorKind.AUTH_ERROR, status_code=401))

        with pytest.raises(GenerationError) as exc_info:
            await orchestrator.generate_base(base_config)

        assert exc_info.value.phase == GenerationPhase.GENERATION
        assert exc_info.value.valid_node_ids == []
        assert isinstance(exc_info.value.cause, ProviderError)
        assert len(orchestrator.graph) == 0
        assert orchestrator.state.status == OperationStatus.FAILED
        assert orchestrator.state.error_phase == "generation"


class TestAuxiliaryPhases:
    """Tests for score, SEO and GEO generation after the main text."""

    @pytest.mark.asyncio
    async def test_all_toggles(
        self, orchestrator, gateway, base_config, sample_score_json, sample_seo_json, sample_geo_json
    ):
        config = base_config.model_copy(
            update={"generate_scores": True, "generate_seo_metadata": True, "generate_geo_score": True}
        )
        gateway.queue("Copy text", sample_score_json, sample_seo_json, sample_geo_json)

        node = await orchestrator.generate_base(config)

        assert node.score.overall == 82
        assert node.seo_metadata.url_slugs[0].text == "freelancer-bookkeeping"
        assert node.geo_score.overall == 64
        assert node.tokens_used == 40
        assert len(gateway.calls) == 4

    @pytest.mark.asyncio
    async def test_failed_scoring_keeps_the_node(self, orchestrator, gateway, base_config):
        config = base_config.model_copy(update={"generate_scores": True, "generate_seo_metadata": True})
        gateway.queue("Copy text", "this is not json")

        with pytest.raises(GenerationError) as exc_info:
            await orchestrator.generate_base(config)

        error = exc_info.value
        assert error.phase == GenerationPhase.SCORING
        assert error.node_id == "n1"
        assert error.valid_node_ids == ["n1"]
        node = orchestrator.graph.get("n1")
        assert node.text == "Copy text"
        assert node.score is None
        assert node.seo_metadata is None
        # SEO never ran after scoring failed
        assert len(gateway.calls) == 2
        assert orchestrator.state.status == OperationStatus.FAILED
        assert [n.id for n in orchestrator.state.nodes] == ["n1"]

    @pytest.mark.asyncio
    async def test_failed_seo_keeps_completed_score(
        self, orchestrator, gateway, base_config, sample_score_json
    ):
        config = base_config.model_copy(update={"generate_scores": True, "generate_seo_metadata": True})
        gateway.queue("Copy text", sample_score_json, "nope")

        with pytest.raises(GenerationError) as exc_info:
            await orchestrator.generate_base(config)

        assert exc_info.value.phase == GenerationPhase.SEO
        node = orchestrator.graph.get("n1")
        assert node.score.overall == 82
        assert node.seo_metadata is None


class TestDerivedNodes:
    """Tests for alternatives and styles."""

    @pytest.mark.asyncio
    async def test_alternatives_are_numbered(self, orchestrator, gateway, base_config):
        gateway.queue("Base", "Alt one", "Alt two")
        base = await orchestrator.generate_base(base_config)

        first = await orchestrator.create_alternative(base.id, base_config)
        second = await orchestrator.create_alternative(base.id, base_config)

        assert first.kind == NodeKind.ALTERNATIVE
        assert first.derived_from == "n1"
        assert isinstance(second.derivation_meta, AlternativeDerivation)
        assert (first.derivation_meta.index, second.derivation_meta.index) == (1, 2)
        assert "alternative version #2" in gateway.user_prompts[2]
        assert orchestrator.graph.ids == ["n1", "n2", "n3"]
        assert orchestrator.graph.get("n1") == base

    @pytest.mark.asyncio
    async def test_alternative_of_unknown_node(self, orchestrator, gateway, base_config):
        with pytest.raises(NodeNotFoundError):
            await orchestrator.create_alternative("missing", base_config)
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_apply_persona_style(self, orchestrator, gateway, base_config):
        gateway.queue("Base copy", "One more thing. Bookkeeping, reinvented.")
        base = await orchestrator.generate_base(base_config)

        styled = await orchestrator.apply_style("n1", "steve-jobs")

        assert styled.id == "n2"
        assert styled.kind == NodeKind.STYLED
        assert styled.derived_from == "n1"
        assert isinstance(styled.derivation_meta, StyleDerivation)
        assert styled.derivation_meta.style_name == "steve-jobs"
        assert orchestrator.graph.get("n1") == base
        assert len(gateway.calls) == 2

    @pytest.mark.asyncio
    async def test_humanize_makes_humanized_node(self, orchestrator, gateway, base_config):
        gateway.queue("Base copy", "Honestly, it just works.")
        await orchestrator.generate_base(base_config)

        node = await orchestrator.apply_style("n1", "humanize")

        assert node.kind == NodeKind.HUMANIZED

    @pytest.mark.asyncio
    async def test_style_of_style(self, orchestrator, gateway, base_config):
        gateway.queue("Base copy", "Styled", "Humanized")
        await orchestrator.generate_base(base_config)
        await orchestrator.apply_style("n1", "minimalist")

        node = await orchestrator.apply_style("n2", "humanize")

        assert [n.id for n in orchestrator.graph.lineage(node.id)] == ["n3", "n2", "n1"]

    @pytest.mark.asyncio
    async def test_unknown_style(self, orchestrator, gateway, base_config):
        gateway.queue("Base copy")
        await orchestrator.generate_base(base_config)

        with pytest.raises(UnknownStyleError):
            await orchestrator.apply_style("n1", "shakespeare")

        assert len(gateway.calls) == 1
        assert orchestrator.graph.ids == ["n1"]


class TestAnnotations:
    """Tests for on-demand score, SEO and GEO generation."""

    @pytest.mark.asyncio
    async def test_last_score_wins(self, orchestrator, gateway, base_config):
        gateway.queue("Base copy", '{"overall": 40}', '{"overall": 90}')
        await orchestrator.generate_base(base_config)

        await orchestrator.generate_score("n1")
        node = await orchestrator.generate_score("n1")

        assert node.score.overall == 90
        assert orchestrator.graph.get("n1").score.overall == 90
        assert node.tokens_used == 30
        assert orchestrator.graph.ids == ["n1"]

    @pytest.mark.asyncio
    async def test_seo_and_geo_on_styled_node(
        self, orchestrator, gateway, base_config, sample_seo_json, sample_geo_json
    ):
        gateway.queue("Base", "Styled", sample_seo_json, sample_geo_json)
        await orchestrator.generate_base(base_config)
        await orchestrator.apply_style("n1", "bold-direct")

        await orchestrator.generate_seo_metadata("n2")
        node = await orchestrator.generate_geo_score("n2")

        assert node.seo_metadata is not None
        assert node.geo_score.overall == 64
        assert orchestrator.graph.get("n1").seo_metadata is None

    @pytest.mark.asyncio
    async def test_malformed_score_leaves_node_untouched(self, orchestrator, gateway, base_config):
        gateway.queue("Base copy", "not json at all")
        await orchestrator.generate_base(base_config)

        with pytest.raises(GenerationError) as exc_info:
            await orchestrator.generate_score("n1")

        assert exc_info.value.phase == GenerationPhase.SCORING
        assert orchestrator.graph.get("n1").score is None


class TestCancellation:
    """Tests for cooperative cancellation."""

    @pytest.mark.asyncio
    async def test_cancel_never_appends_a_node(self, orchestrator, gateway, base_config):
        gateway.queue("Late copy")
        release = _blocking(gateway)

        task = asyncio.create_task(orchestrator.generate_base(base_config))
        await wait_until(lambda: gateway.calls)
        assert orchestrator.cancel() is True
        release.set()

        with pytest.raises(OperationCancelledError):
            await task

        assert len(orchestrator.graph) == 0
        assert orchestrator.state.status == OperationStatus.CANCELLED
        assert not orchestrator.session.is_busy

    @pytest.mark.asyncio
    async def test_cancel_during_scoring_adds_nothing(self, orchestrator, gateway, base_config):
        config = base_config.model_copy(update={"generate_scores": True})
        gateway.queue("Copy", '{"overall": 70}')
        release = asyncio.Event()

        async def hold_second_call():
            if len(gateway.calls) == 2:
                await release.wait()

        gateway.before_reply = hold_second_call
        task = asyncio.create_task(orchestrator.generate_base(config))
        await wait_until(lambda: len(gateway.calls) == 2)
        orchestrator.cancel()
        release.set()

        with pytest.raises(OperationCancelledError):
            await task
        assert len(orchestrator.graph) == 0

    @pytest.mark.asyncio
    async def test_cancel_alternative_leaves_graph_unchanged(self, orchestrator, gateway, base_config):
        gateway.queue("Base copy")
        base = await orchestrator.generate_base(base_config)
        gateway.queue("Late alternative")
        release = _blocking(gateway)

        task = asyncio.create_task(orchestrator.create_alternative(base.id, base_config))
        await wait_until(lambda: len(gateway.calls) == 2)
        assert orchestrator.cancel() is True
        release.set()

        with pytest.raises(OperationCancelledError):
            await task

        assert orchestrator.graph.ids == ["n1"]
        assert orchestrator.graph.get("n1") == base
        assert orchestrator.state.status == OperationStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_style_leaves_graph_unchanged(self, orchestrator, gateway, base_config):
        gateway.queue("Base copy")
        base = await orchestrator.generate_base(base_config)
        gateway.queue("Late styled copy")
        release = _blocking(gateway)

        task = asyncio.create_task(orchestrator.apply_style(base.id, "steve-jobs"))
        await wait_until(lambda: len(gateway.calls) == 2)
        assert orchestrator.cancel() is True
        release.set()

        with pytest.raises(OperationCancelledError):
            await task

        assert orchestrator.graph.ids == ["n1"]
        assert orchestrator.graph.get("n1") == base
        assert not orchestrator.session.is_busy

    @pytest.mark.asyncio
    async def test_task_cancellation_marks_state_cancelled(self, orchestrator, gateway, base_config):
        gateway.queue("Late copy")
        _blocking(gateway)

        task = asyncio.create_task(orchestrator.generate_base(base_config))
        await wait_until(lambda: gateway.calls)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert len(orchestrator.graph) == 0
        assert orchestrator.state.status == OperationStatus.CANCELLED
        assert not orchestrator.session.is_busy

    def test_cancel_when_idle(self, orchestrator):
        assert orchestrator.cancel() is False

    @pytest.mark.asyncio
    async def test_next_operation_after_cancel(self, orchestrator, gateway, base_config):
        gateway.queue("Late copy")
        release = _blocking(gateway)
        task = asyncio.create_task(orchestrator.generate_base(base_config))
        await wait_until(lambda: gateway.calls)
        orchestrator.cancel()
        release.set()
        with pytest.raises(OperationCancelledError):
            await task

        gateway.before_reply = None
        gateway.queue("Fresh copy")
        node = await orchestrator.generate_base(base_config)

        assert node.text == "Fresh copy"


class TestBusySession:
    """Tests for the one-operation-at-a-time rule."""

    @pytest.mark.asyncio
    async def test_second_operation_rejected(self, orchestrator, gateway, base_config):
        gateway.queue("First")
        release = _blocking(gateway)
        task = asyncio.create_task(orchestrator.generate_base(base_config))
        await wait_until(lambda: gateway.calls)

        with pytest.raises(SessionBusyError) as exc_info:
            await orchestrator.generate_base(base_config)
        with pytest.raises(SessionBusyError):
            orchestrator.clear()

        assert exc_info.value.active_operation == "generate_base"
        release.set()
        node = await task
        assert orchestrator.graph.ids == [node.id]


class TestProgress:
    """Tests for the progress log and callbacks."""

    @pytest.mark.asyncio
    async def test_log_is_cleared_per_operation(self, orchestrator, gateway, base_config):
        gateway.queue("Base", "Styled")
        await orchestrator.generate_base(base_config)
        assert any("Generating copy" in m for m in orchestrator.progress.messages)

        await orchestrator.apply_style("n1", "playful")

        messages = orchestrator.progress.messages
        assert not any("Generating copy" in m for m in messages)
        assert any("Playful" in m for m in messages)
        assert orchestrator.state.progress

    @pytest.mark.asyncio
    async def test_callback_sees_terminal_status(self, gateway, engine_settings, base_config):
        statuses: list[OperationStatus] = []

        async def on_progress(progress):
            statuses.append(progress.status)

        orchestrator = ContentOrchestrator(
            gateway=gateway, settings=engine_settings, progress_callback=on_progress
        )
        gateway.queue("Copy")
        await orchestrator.generate_base(base_config)

        assert statuses[0] == OperationStatus.RUNNING
        assert statuses[-1] == OperationStatus.SUCCEEDED

    @pytest.mark.asyncio
    async def test_usage_recorded_per_call(self, orchestrator, gateway, base_config, sample_score_json):
        config = base_config.model_copy(update={"generate_scores": True})
        gateway.queue("Copy", sample_score_json)

        await orchestrator.generate_base(config)

        phases = [r.phase for r in orchestrator.usage.records]
        assert phases == ["generation", "scoring"]
        assert orchestrator.usage.total_tokens() == 20


class TestEvaluateInputs:
    @pytest.mark.asyncio
    async def test_does_not_touch_graph(self, orchestrator, gateway, base_config):
        gateway.queue('{"score": 55, "tips": ["Name a deadline"]}')

        evaluation = await orchestrator.evaluate_inputs(base_config)

        assert evaluation.score == 55
        assert evaluation.tips == ["Name a deadline"]
        assert len(orchestrator.graph) == 0


class TestConfigurationSide:
    """Tests for per-field suggestions and evaluation."""

    @pytest.mark.asyncio
    async def test_suggestions_leave_graph_untouched(self, orchestrator, gateway, base_config):
        gateway.queue('{"suggestions": ["Start your free trial", "Book a demo"]}')

        suggestions = await orchestrator.suggest_field(base_config, "call_to_action")

        assert suggestions == ["Start your free trial", "Book a demo"]
        assert len(orchestrator.graph) == 0
        assert "calls to action" in gateway.calls[0][1]
        assert orchestrator.state.status == OperationStatus.SUCCEEDED

    @pytest.mark.asyncio
    async def test_unknown_field_rejected_before_any_call(self, orchestrator, gateway, base_config):
        with pytest.raises(ValidationError) as exc_info:
            await orchestrator.suggest_field(base_config, "shoe_size")

        assert exc_info.value.field == "field"
        assert gateway.calls == []
        assert not orchestrator.session.is_busy

    @pytest.mark.asyncio
    async def test_unusable_suggestions_fail_in_suggestions_phase(self, orchestrator, gateway, base_config):
        gateway.queue("I cannot help with that.")

        with pytest.raises(GenerationError) as exc_info:
            await orchestrator.suggest_field(base_config, "keywords")

        assert exc_info.value.phase == GenerationPhase.SUGGESTIONS
        assert not orchestrator.session.is_busy

    @pytest.mark.asyncio
    async def test_field_evaluation(self, orchestrator, gateway, base_config):
        gateway.queue('{"score": 72, "tips": ["Mention who it is for"]}')

        evaluation = await orchestrator.evaluate_field(base_config, "business_description")

        assert evaluation.score == 72
        assert evaluation.tips == ["Mention who it is for"]
        assert "Tallybook is bookkeeping software" in gateway.calls[0][1]
        assert len(orchestrator.graph) == 0

    @pytest.mark.asyncio
    async def test_empty_field_not_evaluated(self, orchestrator, gateway, base_config):
        with pytest.raises(ValidationError) as exc_info:
            await orchestrator.evaluate_field(base_config, "key_message")

        assert exc_info.value.field == "key_message"
        assert gateway.calls == []


class TestSnapshots:
    """Tests for export and restore."""

    @pytest.mark.asyncio
    async def test_session_round_trip(self, orchestrator, gateway, base_config, engine_settings):
        gateway.queue("Base", "Styled")
        await orchestrator.generate_base(base_config)
        await orchestrator.apply_style("n1", "steve-jobs")

        snapshot = orchestrator.export_snapshot(SnapshotKind.SESSION, "launch")
        restored = ContentOrchestrator(gateway=FakeGateway(), settings=engine_settings)
        restored.restore(snapshot)

        assert restored.graph.ids == ["n1", "n2"]
        assert restored.graph.get("n2").derived_from == "n1"
        assert restored.configuration == base_config
        assert restored.state.nodes == orchestrator.graph.snapshot()

    @pytest.mark.asyncio
    async def test_template_carries_configuration_only(self, orchestrator, gateway, base_config):
        gateway.queue("Base")
        await orchestrator.generate_base(base_config)

        snapshot = orchestrator.export_snapshot(SnapshotKind.TEMPLATE, "tpl")

        assert snapshot.nodes == []
        assert snapshot.configuration == base_config

    def test_template_needs_configuration(self, orchestrator):
        with pytest.raises(ValidationError):
            orchestrator.export_snapshot(SnapshotKind.TEMPLATE, "tpl")

    @pytest.mark.asyncio
    async def test_restoring_template_keeps_nodes(self, orchestrator, gateway, base_config):
        gateway.queue("Base")
        await orchestrator.generate_base(base_config)
        template = orchestrator.export_snapshot(SnapshotKind.TEMPLATE, "tpl")
        new_config = base_config.model_copy(update={"tone": "Bold"})
        orchestrator.set_configuration(new_config)

        orchestrator.restore(template)

        assert orchestrator.graph.ids == ["n1"]
        assert orchestrator.configuration.tone == "Friendly"

    @pytest.mark.asyncio
    async def test_clear(self, orchestrator, gateway, base_config):
        gateway.queue("Base")
        await orchestrator.generate_base(base_config)

        orchestrator.clear()

        assert len(orchestrator.graph) == 0
        assert orchestrator.state.nodes == []
        assert orchestrator.configuration == base_config
