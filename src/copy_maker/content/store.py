"""Serializable session state with pure transitions.

SessionState is frozen. Each transition takes a state and returns the next
one, so the whole state machine can be tested without an orchestrator.
SessionStore holds the current state and tells listeners about changes.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..constants import OperationStatus, SnapshotKind
from .models import ConfigurationModel, ContentNode

_logger = logging.getLogger("copy_maker.sessions")


class SessionState(BaseModel):
    """Everything a UI needs to render a working session."""

    model_config = ConfigDict(frozen=True)

    configuration: ConfigurationModel | None = None
    nodes: list[ContentNode] = Field(default_factory=list)
    status: OperationStatus = OperationStatus.IDLE
    operation: str | None = None
    operation_id: str | None = None
    progress: list[str] = Field(default_factory=list)
    error: str | None = None
    error_phase: str | None = None

    @property
    def is_running(self) -> bool:
        return self.status == OperationStatus.RUNNING


class SessionSnapshot(BaseModel):
    """What the persistence collaborator saves and loads.

    Templates carry only the configuration.
    """

    kind: SnapshotKind
    id: str
    configuration: ConfigurationModel | None = None
    nodes: list[ContentNode] = Field(default_factory=list)
    saved_at: datetime = Field(default_factory=datetime.now)
    brief_description: str = ""

    @model_validator(mode="after")
    def _templates_have_no_nodes(self) -> SessionSnapshot:
        if self.kind == SnapshotKind.TEMPLATE and self.nodes:
            raise ValueError("template snapshots cannot contain nodes")
        return self


# =============================================================================
# Transitions
# =============================================================================


def operation_started(
    state: SessionState,
    operation: str,
    operation_id: str,
    configuration: ConfigurationModel | None = None,
) -> SessionState:
    update: dict[str, Any] = {
        "status": OperationStatus.RUNNING,
        "operation": operation,
        "operation_id": operation_id,
        "progress": [],
        "error": None,
        "error_phase": None,
    }
    if configuration is not None:
        update["configuration"] = configuration
    return state.model_copy(update=update)


def progress_recorded(state: SessionState, message: str) -> SessionState:
    return state.model_copy(update={"progress": [*state.progress, message]})


def operation_succeeded(state: SessionState, nodes: list[ContentNode]) -> SessionState:
    return state.model_copy(update={"status": OperationStatus.SUCCEEDED, "nodes": list(nodes)})


def operation_failed(
    state: SessionState,
    error: str,
    nodes: list[ContentNode],
    phase: str | None = None,
) -> SessionState:
    """Failed operations still publish the nodes that remain valid."""
    return state.model_copy(
        update={
            "status": OperationStatus.FAILED,
            "nodes": list(nodes),
            "error": error,
            "error_phase": phase,
        }
    )


def operation_cancelled(state: SessionState, nodes: list[ContentNode]) -> SessionState:
    return state.model_copy(update={"status": OperationStatus.CANCELLED, "nodes": list(nodes)})


def configuration_changed(state: SessionState, configuration: ConfigurationModel) -> SessionState:
    return state.model_copy(update={"configuration": configuration})


def snapshot_restored(state: SessionState, snapshot: SessionSnapshot) -> SessionState:
    """Replace configuration and nodes wholesale; templates keep current nodes."""
    update: dict[str, Any] = {
        "status": OperationStatus.IDLE,
        "operation": None,
        "operation_id": None,
        "progress": [],
        "error": None,
        "error_phase": None,
    }
    if snapshot.configuration is not None:
        update["configuration"] = snapshot.configuration
    if snapshot.kind != SnapshotKind.TEMPLATE:
        update["nodes"] = list(snapshot.nodes)
    return state.model_copy(update=update)


def session_cleared(state: SessionState) -> SessionState:
    """Drop all nodes and status, keeping the configuration."""
    return SessionState(configuration=state.configuration)


StateListener = Callable[[SessionState], None]


class SessionStore:
    """Holds the current SessionState and notifies listeners.

    Usage:
        store = SessionStore()
        unsubscribe = store.subscribe(render)
        store.dispatch(operation_started, "generate_base", "op-1")
    """

    def __init__(self, state: SessionState | None = None):
        self._state = state or SessionState()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener. Returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, transition: Callable[..., SessionState], *args: Any, **kwargs: Any) -> SessionState:
        """Apply a transition to the current state and notify listeners."""
        self._state = transition(self._state, *args, **kwargs)
        _logger.debug(
            f"STATE | {transition.__name__} | status:{self._state.status.value} | nodes:{len(self._state.nodes)}"
        )
        for listener in list(self._listeners):
            listener(self._state)
        return self._state
