"""Content orchestrator for the copy generation workflow.

This is the main entry point. It validates the configuration, builds
prompts, drives the provider gateway (through the word-count loop where a
target is set), runs the auxiliary score, SEO and GEO generations and
threads every result into the ContentGraph.

Only one operation runs at a time per orchestrator. Every operation clears
the progress log, can be cancelled with cancel(), and leaves the graph
consistent: a node is either appended complete or not at all.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, AsyncIterator, Callable

from ..constants import NodeKind, SnapshotKind
from ..errors import (
    CopyMakerError,
    GenerationError,
    GenerationPhase,
    OperationCancelledError,
    SessionBusyError,
    ValidationError,
)
from ..providers.config import EngineSettings, get_engine_settings
from ..services.progress import ProgressCallback, ProgressManager
from ..services.session import CancellationToken, SessionController
from ..services.usage import TokenUsageTracker
from .graph import ContentGraph
from .models import (
    AlternativeDerivation,
    BaseDerivation,
    ConfigurationModel,
    ContentNode,
    ENGINE_DEFAULT_FIELDS,
    InputEvaluation,
    StyleDerivation,
    validate_configuration,
)
from .prompts import PromptMode, PromptPair, build_prompts
from .responses import parse_evaluation, parse_geo, parse_score, parse_seo, parse_suggestions
from .store import (
    SessionSnapshot,
    SessionState,
    SessionStore,
    configuration_changed,
    operation_cancelled,
    operation_failed,
    operation_started,
    operation_succeeded,
    progress_recorded,
    session_cleared,
    snapshot_restored,
)
from .styles import get_style
from .tolerance import TolerancePolicy
from .word_count import WordCountLoop

if TYPE_CHECKING:
    from ..providers.text import ProviderGateway, ProviderResponse


_logger = logging.getLogger("copy_maker.orchestrator")


@dataclass
class _OperationContext:
    id: str
    name: str
    token: CancellationToken
    phase: GenerationPhase = GenerationPhase.PROMPT_BUILD


# Auxiliary chain, in the order it runs after a generation
_AUXILIARY_STEPS: tuple[tuple[GenerationPhase, PromptMode, str, str, Callable[[str], Any]], ...] = (
    (GenerationPhase.SCORING, PromptMode.SCORE, "score", "Scoring copy...", parse_score),
    (GenerationPhase.SEO, PromptMode.SEO, "seo_metadata", "Generating SEO metadata...", parse_seo),
    (GenerationPhase.GEO, PromptMode.GEO, "geo_score", "Calculating GEO score...", parse_geo),
)


class ContentOrchestrator:
    """Coordinates generation operations over one working session.

    Usage:
        orchestrator = ContentOrchestrator(gateway=TextProvider())
        base = await orchestrator.generate_base(config)
        styled = await orchestrator.apply_style(base.id, "steve-jobs")
        await orchestrator.generate_score(styled.id)
    """

    def __init__(
        self,
        gateway: ProviderGateway | None = None,
        settings: EngineSettings | None = None,
        progress_callback: ProgressCallback | None = None,
        session: SessionController | None = None,
        store: SessionStore | None = None,
        usage: TokenUsageTracker | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            gateway: Provider gateway (a TextProvider is created if not provided).
            settings: Engine settings (process-wide settings if not provided).
            progress_callback: Optional callback for progress updates.
            session: Session controller (created if not provided).
            store: Session state store (created if not provided).
            usage: Token usage tracker (created if not provided).
            id_factory: Generates node and snapshot ids. Defaults to uuid4 hex.
        """
        self.settings = settings or get_engine_settings()
        self._progress = ProgressManager(callback=progress_callback)

        if gateway is None:
            from ..providers.text import TextProvider

            gateway = TextProvider(event_callback=self._progress.handle_ai_event)
        self.gateway = gateway

        self.session = session or SessionController()
        self.store = store or SessionStore()
        self.usage = usage or TokenUsageTracker()
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)
        self._graph = ContentGraph(self.store.state.nodes)

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def graph(self) -> ContentGraph:
        return self._graph

    @property
    def state(self) -> SessionState:
        return self.store.state

    @property
    def progress(self) -> ProgressManager:
        return self._progress

    @property
    def configuration(self) -> ConfigurationModel | None:
        return self.store.state.configuration

    # -------------------------------------------------------------------------
    # Control
    # -------------------------------------------------------------------------

    def cancel(self) -> bool:
        """Cancel the running operation. Returns False when idle."""
        return self.session.cancel()

    def set_configuration(self, config: ConfigurationModel) -> None:
        self.store.dispatch(configuration_changed, config)

    def clear(self) -> None:
        """Discard every node of the session."""
        self._ensure_idle("clear")
        self._graph.clear()
        self.store.dispatch(session_cleared)
        _logger.info(f"SESSION:{self.session.session_id} | CLEARED")

    def _ensure_idle(self, requested: str) -> None:
        if self.session.is_busy:
            raise SessionBusyError(self.session.active_operation or "", requested)

    # -------------------------------------------------------------------------
    # Operation plumbing
    # -------------------------------------------------------------------------

    async def _log(self, message: str) -> None:
        await self._progress.log(message)
        self.store.dispatch(progress_recorded, message)

    @asynccontextmanager
    async def _operation(
        self,
        name: str,
        configuration: ConfigurationModel | None = None,
    ) -> AsyncIterator[_OperationContext]:
        async with self.session.operation(name) as token:
            ctx = _OperationContext(id=uuid.uuid4().hex[:8], name=name, token=token)
            self.store.dispatch(operation_started, name, ctx.id, configuration)
            await self._progress.begin(ctx.id, name)
            _logger.info(f"OP:{ctx.id} | START | name:{name} | nodes:{len(self._graph)}")
            try:
                yield ctx
            except OperationCancelledError:
                _logger.info(f"OP:{ctx.id} | CANCELLED | name:{name} | phase:{ctx.phase.value}")
                await self._progress.cancelled()
                self.store.dispatch(operation_cancelled, self._graph.snapshot())
                raise
            except asyncio.CancelledError:
                _logger.info(f"OP:{ctx.id} | TASK_CANCELLED | name:{name} | phase:{ctx.phase.value}")
                self.store.dispatch(operation_cancelled, self._graph.snapshot())
                await self._progress.cancelled()
                raise
            except Exception as e:
                phase = e.phase.value if isinstance(e, GenerationError) else None
                message = e.message if isinstance(e, CopyMakerError) else str(e)
                _logger.error(f"OP:{ctx.id} | FAILED | name:{name} | phase:{phase} | error:{message}")
                await self._progress.fail(message)
                self.store.dispatch(operation_failed, message, self._graph.snapshot(), phase)
                raise
            else:
                _logger.info(f"OP:{ctx.id} | SUCCESS | name:{name} | nodes:{len(self._graph)}")
                await self._progress.complete()
                self.store.dispatch(operation_succeeded, self._graph.snapshot())

    @asynccontextmanager
    async def _phase(
        self,
        ctx: _OperationContext,
        phase: GenerationPhase,
        message: str,
    ) -> AsyncIterator[None]:
        """Tag every failure inside the block with the phase it happened in."""
        ctx.phase = phase
        await self._progress.start_phase(phase.value)
        await self._log(message)
        try:
            yield
        except (OperationCancelledError, GenerationError):
            raise
        except Exception as e:
            detail = e.message if isinstance(e, CopyMakerError) else str(e)
            raise GenerationError(
                f"{phase.value} failed: {detail}",
                phase,
                valid_node_ids=self._graph.ids,
                cause=e,
            ) from e
        await self._progress.complete_phase(phase.value)

    def _record_usage(self, ctx: _OperationContext, response: ProviderResponse) -> None:
        self.usage.record(ctx.id, ctx.name, ctx.phase.value, response)

    async def _call(self, ctx: _OperationContext, prompts: PromptPair) -> ProviderResponse:
        """One provider request outside the word-count loop."""
        ctx.token.raise_if_cancelled(ctx.name)
        response = await self.gateway.generate(prompts.system, prompts.user, ctx.token)
        ctx.token.raise_if_cancelled(ctx.name)
        self._record_usage(ctx, response)
        return response

    async def _generate_text(
        self,
        ctx: _OperationContext,
        prompts: PromptPair,
        config: ConfigurationModel,
        policy: TolerancePolicy | None,
    ) -> dict[str, Any]:
        """Text plus loop details, through the loop when a target is set."""
        if policy is None:
            response = await self._call(ctx, prompts)
            return {
                "text": response.text,
                "tokens_used": response.tokens_used,
                "loop_state": None,
                "attempts": 1,
            }

        loop = WordCountLoop(
            self.gateway,
            policy,
            max_revisions=config.max_revision_attempts,
            retry_delay_seconds=self.settings.retry_delay_seconds,
            on_progress=self._log,
            on_response=lambda response: self._record_usage(ctx, response),
        )
        result = await loop.run(prompts, ctx.token)
        ctx.token.raise_if_cancelled(ctx.name)
        return {
            "text": result.text,
            "tokens_used": result.tokens_used,
            "loop_state": result.state,
            "attempts": result.attempts,
        }

    async def _annotation(
        self,
        ctx: _OperationContext,
        mode: PromptMode,
        node: ContentNode,
        config: ConfigurationModel,
        parser: Callable[[str], Any],
    ) -> tuple[Any, int]:
        prompts = build_prompts(config, mode, source=node)
        response = await self._call(ctx, prompts)
        return parser(response.text), response.tokens_used

    async def _append_with_auxiliary(
        self,
        ctx: _OperationContext,
        node: ContentNode,
        config: ConfigurationModel,
    ) -> ContentNode:
        """Run score, SEO and GEO per toggles, then append the node.

        If an auxiliary phase fails, the node is appended with what was
        completed and the GenerationError names it. Cancellation appends
        nothing.
        """
        enabled = {
            GenerationPhase.SCORING: config.generate_scores,
            GenerationPhase.SEO: config.generate_seo_metadata,
            GenerationPhase.GEO: config.generate_geo_score,
        }
        completed = node
        try:
            for phase, mode, field, message, parser in _AUXILIARY_STEPS:
                if not enabled[phase]:
                    continue
                ctx.token.raise_if_cancelled(ctx.name)
                async with self._phase(ctx, phase, message):
                    value, tokens = await self._annotation(ctx, mode, completed, config, parser)
                completed = completed.model_copy(
                    update={field: value, "tokens_used": completed.tokens_used + tokens}
                )
        except GenerationError as e:
            self._graph.add(completed)
            _logger.warning(
                f"OP:{ctx.id} | PARTIAL_NODE | node:{completed.id} | phase:{e.phase.value}"
            )
            raise GenerationError(
                f"{e.message} (node {completed.id} was kept)",
                e.phase,
                valid_node_ids=self._graph.ids,
                node_id=completed.id,
                cause=e.cause,
            ) from e.cause

        ctx.token.raise_if_cancelled(ctx.name)
        self._graph.add(completed)
        return completed

    def _with_engine_defaults(self, config: ConfigurationModel) -> ConfigurationModel:
        """Fill word-count fields the caller never set from this engine's settings."""
        unset = {
            name: getattr(self.settings, name)
            for name in ENGINE_DEFAULT_FIELDS
            if name not in config.model_fields_set
        }
        return config.model_copy(update=unset) if unset else config

    def _prepare(self, config: ConfigurationModel) -> tuple[ConfigurationModel, TolerancePolicy | None]:
        config = self._with_engine_defaults(config)
        validate_configuration(config)
        target = config.target_word_count()
        prepared = config.with_distributed_sections(target)
        policy = TolerancePolicy.for_target(prepared, target) if target else None
        return prepared, policy

    def _resolve_config(self, config: ConfigurationModel | None) -> ConfigurationModel:
        return config or self.configuration or ConfigurationModel()

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def generate_base(self, config: ConfigurationModel) -> ContentNode:
        """Generate a new base node from the configuration.

        Args:
            config: Configuration to generate from. Never mutated.

        Returns:
            The appended base node.

        Raises:
            ValidationError: Configuration rejected before any provider call.
            OperationCancelledError: Cancelled; no node was appended.
            GenerationError: A phase failed.
        """
        prepared, policy = self._prepare(config)

        async with self._operation("generate_base", config) as ctx:
            async with self._phase(ctx, GenerationPhase.PROMPT_BUILD, "Building prompts..."):
                prompts = build_prompts(prepared, PromptMode.BASE, policy=policy)

            target_info = f" ({policy.describe()})" if policy else ""
            async with self._phase(ctx, GenerationPhase.GENERATION, f"Generating copy{target_info}..."):
                generated = await self._generate_text(ctx, prompts, prepared, policy)

            node = ContentNode(
                id=self._id_factory(),
                kind=NodeKind.BASE,
                text=generated["text"],
                derivation_meta=BaseDerivation(
                    mode=prepared.mode,
                    target_word_count=policy.target if policy else None,
                    loop_state=generated["loop_state"],
                    attempts=generated["attempts"],
                ),
                tokens_used=generated["tokens_used"],
            )
            node = await self._append_with_auxiliary(ctx, node, prepared)
            await self._log(f"Copy ready: {node.word_count} words")
            return node

    async def create_alternative(self, parent_id: str, config: ConfigurationModel) -> ContentNode:
        """Generate a divergent alternative of an existing node.

        Returns:
            The appended alternative node, derived from parent_id.
        """
        prepared, policy = self._prepare(config)
        parent = self._graph.get(parent_id)
        index = 1 + sum(
            1 for n in self._graph.children_of(parent_id) if n.kind == NodeKind.ALTERNATIVE
        )

        async with self._operation("create_alternative", config) as ctx:
            async with self._phase(ctx, GenerationPhase.PROMPT_BUILD, "Building prompts..."):
                prompts = build_prompts(
                    prepared,
                    PromptMode.ALTERNATIVE,
                    source=parent,
                    policy=policy,
                    alternative_index=index,
                )

            async with self._phase(ctx, GenerationPhase.GENERATION, f"Generating alternative #{index}..."):
                generated = await self._generate_text(ctx, prompts, prepared, policy)

            node = ContentNode(
                id=self._id_factory(),
                kind=NodeKind.ALTERNATIVE,
                text=generated["text"],
                derived_from=parent_id,
                derivation_meta=AlternativeDerivation(
                    index=index,
                    target_word_count=policy.target if policy else None,
                    loop_state=generated["loop_state"],
                    attempts=generated["attempts"],
                ),
                tokens_used=generated["tokens_used"],
            )
            return await self._append_with_auxiliary(ctx, node, prepared)

    async def apply_style(
        self,
        parent_id: str,
        style_name: str,
        config: ConfigurationModel | None = None,
    ) -> ContentNode:
        """Rewrite a node in a registry style with a single provider call.

        Humanization styles produce ``humanized`` nodes, all others
        ``styled`` nodes.

        Raises:
            UnknownStyleError: style_name is not in the registry.
            NodeNotFoundError: parent_id is not in the graph.
        """
        style = get_style(style_name)
        parent = self._graph.get(parent_id)
        config = self._resolve_config(config)
        kind = NodeKind.HUMANIZED if style.is_humanization else NodeKind.STYLED
        mode = PromptMode.HUMANIZED if style.is_humanization else PromptMode.STYLED

        async with self._operation("apply_style") as ctx:
            async with self._phase(ctx, GenerationPhase.PROMPT_BUILD, "Building prompts..."):
                prompts = build_prompts(config, mode, source=parent, style=style)

            async with self._phase(ctx, GenerationPhase.GENERATION, f"Applying {style.label} style..."):
                response = await self._call(ctx, prompts)

            node = self._graph.add(
                ContentNode(
                    id=self._id_factory(),
                    kind=kind,
                    text=response.text,
                    derived_from=parent_id,
                    derivation_meta=StyleDerivation(
                        style_name=style.name,
                        category=style.category.value,
                    ),
                    tokens_used=response.tokens_used,
                )
            )
            await self._log(f"{style.label} version ready: {node.word_count} words")
            return node

    async def _annotate_node(
        self,
        operation: str,
        node_id: str,
        config: ConfigurationModel | None,
        phase: GenerationPhase,
    ) -> ContentNode:
        node = self._graph.get(node_id)
        config = self._resolve_config(config)
        _, mode, field, message, parser = next(s for s in _AUXILIARY_STEPS if s[0] == phase)

        async with self._operation(operation) as ctx:
            async with self._phase(ctx, phase, message):
                value, tokens = await self._annotation(ctx, mode, node, config, parser)
            current = self._graph.get(node_id)
            return self._graph.annotate(
                node_id,
                **{field: value, "tokens_used": current.tokens_used + tokens},
            )

    async def generate_score(self, node_id: str, config: ConfigurationModel | None = None) -> ContentNode:
        """Score a node. The latest score replaces any previous one."""
        return await self._annotate_node("generate_score", node_id, config, GenerationPhase.SCORING)

    async def generate_seo_metadata(
        self, node_id: str, config: ConfigurationModel | None = None
    ) -> ContentNode:
        """Generate SEO metadata for a node. The latest result replaces any previous one."""
        return await self._annotate_node("generate_seo_metadata", node_id, config, GenerationPhase.SEO)

    async def generate_geo_score(
        self, node_id: str, config: ConfigurationModel | None = None
    ) -> ContentNode:
        """Score a node for AI-assistant quotability. Last write wins."""
        return await self._annotate_node("generate_geo_score", node_id, config, GenerationPhase.GEO)

    async def evaluate_inputs(self, config: ConfigurationModel) -> InputEvaluation:
        """Rate the configuration itself and suggest improvements.

        Does not touch the graph.
        """
        validate_configuration(config)

        async with self._operation("evaluate_inputs", config) as ctx:
            async with self._phase(ctx, GenerationPhase.EVALUATION, "Evaluating inputs..."):
                prompts = build_prompts(config, PromptMode.EVALUATION)
                response = await self._call(ctx, prompts)
                evaluation = parse_evaluation(response.text)
            await self._log(f"Input score: {evaluation.score}/100")
            return evaluation

    async def suggest_field(self, config: ConfigurationModel, field: str) -> list[str]:
        """Suggest values for one configuration field from the rest of the brief.

        Does not touch the graph.

        Args:
            config: Configuration giving the context.
            field: Field to suggest values for (key_message, keywords, ...).

        Returns:
            Suggestions in the configured language.

        Raises:
            ValidationError: Unknown field or unusable configuration.
        """
        validate_configuration(config)
        prompts = build_prompts(config, PromptMode.SUGGESTIONS, field=field)

        async with self._operation("suggest_field", config) as ctx:
            async with self._phase(ctx, GenerationPhase.SUGGESTIONS, f"Generating suggestions for {field}..."):
                response = await self._call(ctx, prompts)
                suggestions = parse_suggestions(response.text)
            await self._log(f"Generated {len(suggestions)} suggestions for {field}")
            return suggestions

    async def evaluate_field(self, config: ConfigurationModel, field: str) -> InputEvaluation:
        """Rate the content of one configuration field and suggest improvements.

        Does not touch the graph.
        """
        prompts = build_prompts(config, PromptMode.FIELD_EVALUATION, field=field)

        async with self._operation("evaluate_field", config) as ctx:
            async with self._phase(ctx, GenerationPhase.EVALUATION, f"Evaluating {field}..."):
                response = await self._call(ctx, prompts)
                evaluation = parse_evaluation(response.text)
            await self._log(f"{field} score: {evaluation.score}/100")
            return evaluation

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def export_snapshot(
        self,
        kind: SnapshotKind,
        snapshot_id: str | None = None,
        brief_description: str | None = None,
    ) -> SessionSnapshot:
        """Serializable snapshot of the session.

        Templates carry the configuration only; sessions and saved outputs
        also carry every node.
        """
        kind = SnapshotKind(kind)
        config = self.configuration
        if kind == SnapshotKind.TEMPLATE and config is None:
            raise ValidationError("A template needs a configuration", field="configuration")
        nodes = [] if kind == SnapshotKind.TEMPLATE else self._graph.snapshot()
        return SessionSnapshot(
            kind=kind,
            id=snapshot_id or self._id_factory(),
            configuration=config,
            nodes=nodes,
            brief_description=brief_description or (config.brief_description if config else ""),
        )

    def restore(self, snapshot: SessionSnapshot) -> None:
        """Replace configuration and graph wholesale from a snapshot."""
        self._ensure_idle("restore")
        if snapshot.kind != SnapshotKind.TEMPLATE:
            self._graph.replace_all(snapshot.nodes)
        self.store.dispatch(snapshot_restored, snapshot)
        _logger.info(
            f"SESSION:{self.session.session_id} | RESTORED | kind:{snapshot.kind.value} | "
            f"id:{snapshot.id} | nodes:{len(self._graph)}"
        )

