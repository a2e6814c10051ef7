"""Progress management service.

Keeps the progress log of the running operation and publishes every change
to callbacks and async stream subscribers.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Awaitable, Callable

from pydantic import BaseModel, Field

from ..constants import OperationStatus

# Logger for progress events
_logger = logging.getLogger("ai_calls")

_TERMINAL = {OperationStatus.SUCCEEDED, OperationStatus.FAILED, OperationStatus.CANCELLED}


class GenerationProgress(BaseModel):
    """Progress of the current operation."""

    operation_id: str = ""
    operation: str = ""
    status: OperationStatus = OperationStatus.IDLE
    phase_name: str = ""
    current_step: str = ""
    messages: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    # Latest AI event
    event_type: str = ""
    provider: str | None = None
    model: str | None = None
    failed_providers: list[str] = Field(default_factory=list)

    # Accumulated stats for this operation
    total_text_calls: int = 0
    total_tokens: int = 0
    total_cost_usd: float = 0.0


# Type for progress callback
ProgressCallback = Callable[[GenerationProgress], Awaitable[None]]


class ProgressManager:
    """Progress log and event channel for one working session.

    The log is append-only while an operation runs and is cleared by
    ``begin`` when the next operation starts.

    Usage:
        manager = ProgressManager(callback=display_progress)
        await manager.begin("op-1", "generate_base")
        await manager.log("Generating copy...")
        async for progress in manager.stream():
            ...
    """

    def __init__(self, callback: ProgressCallback | None = None):
        """Initialize the progress manager.

        Args:
            callback: Optional callback invoked with every progress update.
        """
        self.callbacks: list[ProgressCallback] = [callback] if callback else []
        self._progress = GenerationProgress()
        self._subscribers: list[asyncio.Queue[GenerationProgress | None]] = []

    @property
    def progress(self) -> GenerationProgress:
        """Get the current progress state."""
        return self._progress

    @property
    def messages(self) -> list[str]:
        """The progress log of the current (or last) operation."""
        return list(self._progress.messages)

    def add_callback(self, callback: ProgressCallback) -> None:
        self.callbacks.append(callback)

    async def stream(self) -> AsyncIterator[GenerationProgress]:
        """Yield progress updates until the current operation ends."""
        queue: asyncio.Queue[GenerationProgress | None] = asyncio.Queue()
        self._subscribers.append(queue)
        try:
            while True:
                item = await queue.get()
                if item is None:
                    break
                yield item
        finally:
            self._subscribers.remove(queue)

    async def emit(self) -> None:
        """Publish the current state to callbacks and subscribers."""
        for callback in self.callbacks:
            await callback(self._progress)
        for queue in self._subscribers:
            queue.put_nowait(self._progress)
        if self._progress.status in _TERMINAL:
            for queue in self._subscribers:
                queue.put_nowait(None)

    async def update(self, **kwargs: Any) -> None:
        """Update progress state and emit.

        Args:
            **kwargs: Fields to update on the progress model.
        """
        self._progress = self._progress.model_copy(update=kwargs)
        await self.emit()

    async def begin(self, operation_id: str, operation: str) -> None:
        """Start a new operation, clearing the previous log."""
        self._progress = GenerationProgress(
            operation_id=operation_id,
            operation=operation,
            status=OperationStatus.RUNNING,
        )
        _logger.info(f"OP:{operation_id} | OPERATION_START | name:{operation}")
        await self.emit()

    async def log(self, message: str) -> None:
        """Append a human-readable line to the progress log."""
        _logger.info(f"OP:{self._progress.operation_id} | PROGRESS | {message}")
        await self.update(
            messages=self._progress.messages + [message],
            current_step=message,
        )

    async def start_phase(self, phase_name: str, message: str | None = None) -> None:
        """Enter a named phase (generation, scoring, seo, ...)."""
        _logger.info(f"OP:{self._progress.operation_id} | PHASE_START | name:{phase_name}")
        self._progress = self._progress.model_copy(update={"phase_name": phase_name})
        if message:
            await self.log(message)
        else:
            await self.emit()

    async def complete_phase(self, phase_name: str | None = None) -> None:
        name = phase_name or self._progress.phase_name
        _logger.info(f"OP:{self._progress.operation_id} | PHASE_END | name:{name}")

    async def handle_ai_event(self, event: dict[str, Any]) -> None:
        """Handle an AI event from the text provider.

        Args:
            event: Event dictionary emitted by TextProvider.
        """
        event_type = event.get("type", "")
        update: dict[str, Any] = {
            "event_type": event_type,
            "provider": event.get("provider"),
            "model": event.get("model"),
            "failed_providers": event.get("failed_providers", []),
        }
        if event_type == "text_response":
            update["total_text_calls"] = self._progress.total_text_calls + 1
            update["total_tokens"] = self._progress.total_tokens + (event.get("tokens_used") or 0)
            update["total_cost_usd"] = self._progress.total_cost_usd + (event.get("cost_usd") or 0.0)

        await self.update(**update)
        self._log_ai_event(event)

    def _log_ai_event(self, event: dict[str, Any]) -> None:
        event_type = event.get("type", "")
        provider = event.get("provider", "unknown")
        model = event.get("model", "unknown")
        failed_providers = event.get("failed_providers", [])
        op = self._progress.operation_id

        if event_type == "text_call":
            prompt_preview = (event.get("prompt_preview", "") or "")[:150]
            failed_info = f" | failed_first:{','.join(failed_providers)}" if failed_providers else ""
            _logger.info(
                f"OP:{op} | TEXT_CALL | provider:{provider} | model:{model}{failed_info} | "
                f"prompt:{prompt_preview}..."
            )
        elif event_type == "text_response":
            duration = event.get("duration_seconds", 0) or 0
            cost = event.get("cost_usd", 0) or 0
            _logger.info(
                f"OP:{op} | TEXT_RESPONSE | provider:{provider} | model:{model} | "
                f"duration:{duration:.2f}s | tokens:{event.get('tokens_used', 0)} | cost:${cost:.4f}"
            )
        elif event_type == "text_error":
            failed_info = f" | fallback_from:{','.join(failed_providers)}" if failed_providers else ""
            _logger.error(
                f"OP:{op} | TEXT_ERROR | provider:{provider} | kind:{event.get('kind')} | "
                f"error:{event.get('error', 'unknown')}{failed_info}"
            )

    async def complete(self, message: str | None = None) -> None:
        """Mark the operation as succeeded."""
        messages = self._progress.messages + ([message] if message else [])
        _logger.info(f"OP:{self._progress.operation_id} | OPERATION_COMPLETE | name:{self._progress.operation}")
        await self.update(status=OperationStatus.SUCCEEDED, messages=messages, current_step="Done")

    async def fail(self, error: str) -> None:
        """Mark the operation as failed.

        Args:
            error: Error message.
        """
        _logger.error(f"OP:{self._progress.operation_id} | OPERATION_FAILED | error:{error}")
        await self.update(
            status=OperationStatus.FAILED,
            errors=self._progress.errors + [error],
            messages=self._progress.messages + [f"Failed: {error}"],
        )

    async def cancelled(self) -> None:
        """Mark the operation as cancelled by the user (not a failure)."""
        _logger.info(f"OP:{self._progress.operation_id} | OPERATION_CANCELLED | name:{self._progress.operation}")
        await self.update(
            status=OperationStatus.CANCELLED,
            messages=self._progress.messages + ["Operation cancelled"],
        )
