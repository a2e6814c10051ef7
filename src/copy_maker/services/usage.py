"""Token usage accounting for provider calls."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime

from pydantic import BaseModel, Field

from ..providers.config import estimate_cost
from ..providers.text import ProviderResponse

_logger = logging.getLogger("ai_calls")


class UsageRecord(BaseModel):
    """Tokens spent by one provider call."""

    operation_id: str
    operation: str
    phase: str
    provider: str | None = None
    model: str | None = None
    tokens: int = 0
    cost_usd: float = 0.0
    recorded_at: datetime = Field(default_factory=datetime.now)


class TokenUsageTracker:
    """Accumulates usage records across a session's operations."""

    def __init__(self) -> None:
        self._records: list[UsageRecord] = []

    @property
    def records(self) -> list[UsageRecord]:
        return list(self._records)

    def record(
        self,
        operation_id: str,
        operation: str,
        phase: str,
        response: ProviderResponse,
    ) -> UsageRecord:
        """Record one provider response.

        Args:
            operation_id: Id of the orchestrator operation.
            operation: Operation name (generate_base, generate_score, ...).
            phase: Phase that made the call.
            response: The provider response carrying tokens and provider.

        Returns:
            The stored record.
        """
        record = UsageRecord(
            operation_id=operation_id,
            operation=operation,
            phase=phase,
            provider=response.provider,
            model=response.model,
            tokens=response.tokens_used,
            cost_usd=(
                response.cost_usd
                if response.cost_usd is not None
                else estimate_cost(response.provider, response.tokens_used)
            ),
        )
        self._records.append(record)
        _logger.debug(
            f"OP:{operation_id} | USAGE | phase:{phase} | provider:{record.provider} | "
            f"tokens:{record.tokens} | cost:${record.cost_usd:.4f}"
        )
        return record

    def total_tokens(self, operation_id: str | None = None) -> int:
        return sum(r.tokens for r in self._records if operation_id is None or r.operation_id == operation_id)

    def total_cost(self, operation_id: str | None = None) -> float:
        return sum(r.cost_usd for r in self._records if operation_id is None or r.operation_id == operation_id)

    def tokens_by_operation(self) -> dict[str, int]:
        """Total tokens per operation id, in first-seen order."""
        totals: dict[str, int] = defaultdict(int)
        for r in self._records:
            totals[r.operation_id] += r.tokens
        return dict(totals)

    def clear(self) -> None:
        self._records.clear()
