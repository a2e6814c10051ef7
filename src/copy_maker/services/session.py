"""Session and cancellation control.

One working session runs at most one operation at a time. Every operation
gets its own CancellationToken; cancel() only ever reaches the current one.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator

from ..errors import OperationCancelledError, SessionBusyError

_logger = logging.getLogger("copy_maker.sessions")


class CancellationToken:
    """Cooperative cancellation flag scoped to one operation.

    Usage:
        token = CancellationToken()
        token.raise_if_cancelled("generate_base")
        await token.wait()  # resolves once cancel() is called
    """

    def __init__(self, operation: str | None = None):
        self.operation = operation
        self._event = asyncio.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()

    def raise_if_cancelled(self, operation: str | None = None) -> None:
        """Raise OperationCancelledError if cancel() was called."""
        if self._event.is_set():
            raise OperationCancelledError(operation or self.operation)


class SessionController:
    """Tracks the single in-flight operation of a working session.

    Usage:
        controller = SessionController()
        async with controller.operation("generate_base") as token:
            ...
        controller.cancel()  # from another task
    """

    def __init__(self, session_id: str | None = None):
        """Initialize the controller.

        Args:
            session_id: Identifier used in log lines. Generated if omitted.
        """
        self.session_id = session_id or uuid.uuid4().hex[:8]
        self._active_operation: str | None = None
        self._token: CancellationToken | None = None

    @property
    def active_operation(self) -> str | None:
        """Name of the running operation, or None when idle."""
        return self._active_operation

    @property
    def is_busy(self) -> bool:
        return self._active_operation is not None

    @property
    def current_token(self) -> CancellationToken | None:
        return self._token

    @asynccontextmanager
    async def operation(self, name: str) -> AsyncIterator[CancellationToken]:
        """Claim the session for one operation.

        Args:
            name: Operation name (generate_base, apply_style, ...).

        Yields:
            A fresh CancellationToken for this operation.

        Raises:
            SessionBusyError: Another operation is still running.
        """
        if self._active_operation is not None:
            _logger.warning(
                f"SESSION:{self.session_id} | REJECTED | active:{self._active_operation} | requested:{name}"
            )
            raise SessionBusyError(self._active_operation, name)

        token = CancellationToken(name)
        self._active_operation = name
        self._token = token
        _logger.info(f"SESSION:{self.session_id} | OPERATION_START | name:{name}")

        try:
            yield token
        finally:
            _logger.info(
                f"SESSION:{self.session_id} | OPERATION_END | name:{name} | "
                f"cancelled:{token.is_cancelled}"
            )
            self._active_operation = None
            self._token = None

    def cancel(self) -> bool:
        """Cancel the current operation.

        Returns:
            True if an operation was running and got signalled.
        """
        if self._token is None:
            return False
        _logger.info(f"SESSION:{self.session_id} | CANCEL_REQUESTED | name:{self._active_operation}")
        self._token.cancel()
        return True
