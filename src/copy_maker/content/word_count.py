"""Word-count adherence loop.

Drives the provider gateway toward a target length:

    idle -> requesting -> checking -> satisfied
                             |
                             v
                          revising -> requesting ... -> exhausted

The request budget is ``1 + max_revisions``. Transient provider errors are
retried with tenacity, and every retry spends one request of that same
budget. On exhaustion the draft closest to the target wins.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Callable

from pydantic import BaseModel, Field
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_fixed

from ..constants import RETRY_DELAY_SECONDS, LoopState
from ..errors import ProviderError
from .models import count_words
from .prompts import PromptPair, build_revision_prompts
from .tolerance import TolerancePolicy

if TYPE_CHECKING:
    from ..providers.text import ProviderGateway, ProviderResponse
    from ..services.session import CancellationToken

_logger = logging.getLogger("copy_maker.orchestrator")

ProgressHook = Callable[[str], Awaitable[None]]
ResponseHook = Callable[["ProviderResponse"], None]


class DraftRecord(BaseModel):
    """One draft returned during the loop."""

    attempt: int
    word_count: int
    satisfied: bool


class LoopResult(BaseModel):
    """Outcome of a loop run."""

    text: str
    word_count: int
    state: LoopState
    attempts: int
    tokens_used: int = 0
    history: list[DraftRecord] = Field(default_factory=list)


def _is_transient(error: BaseException) -> bool:
    return isinstance(error, ProviderError) and error.retryable


class WordCountLoop:
    """Bounded revise-and-recheck loop around a provider gateway.

    Usage:
        loop = WordCountLoop(gateway, policy, max_revisions=3)
        result = await loop.run(prompts, token)
    """

    def __init__(
        self,
        gateway: ProviderGateway,
        policy: TolerancePolicy,
        max_revisions: int,
        retry_delay_seconds: float = RETRY_DELAY_SECONDS,
        on_progress: ProgressHook | None = None,
        on_response: ResponseHook | None = None,
    ):
        """Initialize the loop.

        Args:
            gateway: Provider gateway issuing the requests.
            policy: Tolerance policy for the target.
            max_revisions: Revision requests allowed after the first draft.
            retry_delay_seconds: Wait between transient-error retries.
            on_progress: Awaited with a human-readable line at each step.
            on_response: Called with every successful provider response.
        """
        if max_revisions < 0:
            raise ValueError("max_revisions must not be negative")
        self.gateway = gateway
        self.policy = policy
        self.max_requests = 1 + max_revisions
        self.retry_delay_seconds = retry_delay_seconds
        self._on_progress = on_progress
        self._on_response = on_response
        self.state = LoopState.IDLE

    async def _progress(self, message: str) -> None:
        if self._on_progress:
            await self._on_progress(message)

    async def run(
        self,
        prompts: PromptPair,
        cancellation_token: CancellationToken | None = None,
    ) -> LoopResult:
        """Run the loop until satisfied or out of budget.

        Raises:
            OperationCancelledError: Token fired before a request.
            ProviderError: Non-transient error, or transient errors used the
                whole budget before any draft came back.
        """
        target = self.policy.target
        requests = 0
        tokens_used = 0
        history: list[DraftRecord] = []
        best: tuple[int, str, int] | None = None  # (deviation, text, word_count)
        current = prompts
        self.state = LoopState.IDLE

        while requests < self.max_requests:
            remaining = self.max_requests - requests
            try:
                async for attempt in AsyncRetrying(
                    stop=stop_after_attempt(remaining),
                    wait=wait_fixed(self.retry_delay_seconds),
                    retry=retry_if_exception(_is_transient),
                    reraise=True,
                ):
                    with attempt:
                        if cancellation_token is not None:
                            cancellation_token.raise_if_cancelled()
                        self.state = LoopState.REQUESTING
                        requests += 1
                        if attempt.retry_state.attempt_number > 1:
                            await self._progress(
                                f"Retrying after a provider error (request {requests}/{self.max_requests})..."
                            )
                        response = await self.gateway.generate(
                            current.system, current.user, cancellation_token
                        )
            except ProviderError as e:
                if not e.retryable or best is None:
                    raise
                _logger.warning(
                    f"WORD_COUNT | BUDGET_SPENT_ON_ERRORS | requests:{requests} | error:{e.message}"
                )
                break

            if self._on_response:
                self._on_response(response)
            tokens_used += response.tokens_used

            self.state = LoopState.CHECKING
            actual = count_words(response.text)
            satisfied = self.policy.is_satisfied(actual)
            history.append(DraftRecord(attempt=requests, word_count=actual, satisfied=satisfied))

            deviation = self.policy.deviation(actual)
            if best is None or deviation < best[0]:
                best = (deviation, response.text, actual)

            _logger.info(
                f"WORD_COUNT | CHECK | request:{requests}/{self.max_requests} | "
                f"actual:{actual} | target:{target} | satisfied:{satisfied}"
            )

            if satisfied:
                self.state = LoopState.SATISFIED
                await self._progress(f"Word count {actual}/{target} is within {self.policy.describe()}")
                return LoopResult(
                    text=response.text,
                    word_count=actual,
                    state=self.state,
                    attempts=requests,
                    tokens_used=tokens_used,
                    history=history,
                )

            if requests >= self.max_requests:
                break

            self.state = LoopState.REVISING
            await self._progress(
                f"Draft has {actual} words (target {target}). Revising ({requests}/{self.max_requests - 1})..."
            )
            current = build_revision_prompts(prompts, response.text, actual, self.policy)

        self.state = LoopState.EXHAUSTED
        assert best is not None
        _, text, word_count = best
        await self._progress(
            f"Revision budget used up. Keeping the closest draft ({word_count}/{target} words)"
        )
        return LoopResult(
            text=text,
            word_count=word_count,
            state=self.state,
            attempts=requests,
            tokens_used=tokens_used,
            history=history,
        )
