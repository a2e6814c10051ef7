"""Exception hierarchy for the copy generation engine.

Every failure that leaves the engine is classified:
- ValidationError: bad configuration or arguments, raised before any AI call
- ProviderError: a text provider call failed (transient, auth, malformed)
- OperationCancelledError: the user cancelled the running operation
- GenerationError: an unrecoverable failure tagged with the phase it hit
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ProviderErrorKind(str, Enum):
    """Classification of provider failures."""

    TRANSIENT = "transient"
    AUTH_ERROR = "auth_error"
    MALFORMED_RESPONSE = "malformed_response"


class GenerationPhase(str, Enum):
    """Orchestrator phase in which a failure happened."""

    PROMPT_BUILD = "prompt_build"
    GENERATION = "generation"
    SCORING = "scoring"
    SEO = "seo"
    GEO = "geo"
    EVALUATION = "evaluation"
    SUGGESTIONS = "suggestions"


class CopyMakerError(Exception):
    """Base exception for the engine."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(CopyMakerError):
    """Configuration or argument rejected before any network call."""

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        self.field = field
        self.value = value
        super().__init__(message, "VALIDATION_ERROR", {"field": field, "value": value})


class UnknownStyleError(ValidationError):
    """Requested style is not in the style registry."""

    def __init__(self, style_name: str):
        super().__init__(f"Unknown style: {style_name}", field="style_name", value=style_name)


class ProviderError(CopyMakerError):
    """A single provider request failed."""

    def __init__(
        self,
        message: str,
        kind: ProviderErrorKind = ProviderErrorKind.TRANSIENT,
        provider: str | None = None,
        status_code: int | None = None,
    ):
        self.kind = ProviderErrorKind(kind)
        self.provider = provider
        self.status_code = status_code
        super().__init__(
            message,
            "PROVIDER_ERROR",
            {"kind": self.kind.value, "provider": provider, "status_code": status_code},
        )

    @property
    def retryable(self) -> bool:
        return self.kind == ProviderErrorKind.TRANSIENT


class OperationCancelledError(CopyMakerError):
    """The running operation was cancelled by the user."""

    def __init__(self, operation: str | None = None):
        self.operation = operation
        message = f"Operation cancelled: {operation}" if operation else "Operation cancelled"
        super().__init__(message, "CANCELLED", {"operation": operation})


class GenerationError(CopyMakerError):
    """Unrecoverable failure during a specific orchestrator phase.

    ``valid_node_ids`` lists every node still valid in the graph after the
    failure. ``node_id`` is set when the failing operation still appended a
    node (an auxiliary phase failed after the text was generated).
    """

    def __init__(
        self,
        message: str,
        phase: GenerationPhase,
        valid_node_ids: list[str] | None = None,
        node_id: str | None = None,
        cause: Exception | None = None,
    ):
        self.phase = GenerationPhase(phase)
        self.valid_node_ids = list(valid_node_ids or [])
        self.node_id = node_id
        self.cause = cause
        super().__init__(
            message,
            "GENERATION_ERROR",
            {
                "phase": self.phase.value,
                "valid_node_ids": self.valid_node_ids,
                "node_id": node_id,
            },
        )


class SessionBusyError(CopyMakerError):
    """Another operation is already running in this session."""

    def __init__(self, active_operation: str, requested: str):
        self.active_operation = active_operation
        self.requested = requested
        super().__init__(
            f"Cannot start '{requested}' while '{active_operation}' is running",
            "SESSION_BUSY",
            {"active_operation": active_operation, "requested": requested},
        )


class NodeNotFoundError(CopyMakerError):
    """Referenced content node does not exist in the graph."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Content node not found: {node_id}", "NODE_NOT_FOUND", {"node_id": node_id})


class SnapshotNotFoundError(CopyMakerError):
    """Persistence collaborator has no snapshot for the identifier."""

    def __init__(self, kind: str, snapshot_id: str):
        self.kind = kind
        self.snapshot_id = snapshot_id
        super().__init__(
            f"No {kind} found with id {snapshot_id}",
            "SNAPSHOT_NOT_FOUND",
            {"kind": kind, "snapshot_id": snapshot_id},
        )
