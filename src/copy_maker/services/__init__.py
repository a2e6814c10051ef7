"""Services module for cross-cutting concerns.

- SessionController / CancellationToken: one operation at a time, cooperative cancel
- ProgressManager: progress log and event channel
- TokenUsageTracker: token and cost accounting
- JsonSnapshotRepository: file-backed persistence collaborator
"""

from .session import CancellationToken, SessionController
from .progress import GenerationProgress, ProgressManager
from .usage import TokenUsageTracker, UsageRecord
from .persistence import (
    IdentifierRequest,
    JsonSnapshotRepository,
    SnapshotRepository,
    load_from_identifiers,
    validate_identifier,
)

__all__ = [
    "CancellationToken",
    "SessionController",
    "GenerationProgress",
    "ProgressManager",
    "TokenUsageTracker",
    "UsageRecord",
    "IdentifierRequest",
    "JsonSnapshotRepository",
    "SnapshotRepository",
    "load_from_identifiers",
    "validate_identifier",
]
