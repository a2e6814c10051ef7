"""Status enums for the copy generation engine.

AI CONTEXT:
-----------
NodeKind is the provenance tag of a content node:
  BASE (no parent) -> ALTERNATIVE / STYLED / HUMANIZED (derived from a parent)

LoopState is the state machine of the word-count adherence loop:
  IDLE -> REQUESTING -> CHECKING -> SATISFIED
                          |
                          v
                       REVISING -> REQUESTING ... -> EXHAUSTED

MODIFICATION GUIDE:
------------------
- Add new enum values at the END to keep saved snapshots loadable
"""

from enum import Enum


# =============================================================================
# CONTENT NODE KINDS
# =============================================================================

class NodeKind(str, Enum):
    """How a content node came to exist."""

    BASE = "base"
    """Generated directly from the configuration."""

    ALTERNATIVE = "alternative"
    """A divergent alternative angle on a parent node."""

    STYLED = "styled"
    """A parent node rewritten in a named voice style."""

    HUMANIZED = "humanized"
    """A parent node rewritten to sound natural and human."""


# =============================================================================
# WORD COUNT LOOP STATES
# =============================================================================

class LoopState(str, Enum):
    """States of the word-count adherence loop."""

    IDLE = "idle"
    REQUESTING = "requesting"
    CHECKING = "checking"
    REVISING = "revising"
    SATISFIED = "satisfied"
    """Last draft is within tolerance."""

    EXHAUSTED = "exhausted"
    """Budget used up; the closest draft was returned."""


# =============================================================================
# OPERATION STATUS
# =============================================================================

class OperationStatus(str, Enum):
    """Status of the session's current or last operation."""

    IDLE = "idle"
    """No operation has run yet, or the session was cleared."""

    RUNNING = "running"
    """An operation is in flight."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


# =============================================================================
# SNAPSHOT KINDS
# =============================================================================

class SnapshotKind(str, Enum):
    """What a persisted snapshot represents."""

    SESSION = "session"
    """Working session: configuration and generated nodes."""

    TEMPLATE = "template"
    """Reusable configuration only."""

    SAVED_OUTPUT = "saved_output"
    """Full snapshot saved by the user."""
