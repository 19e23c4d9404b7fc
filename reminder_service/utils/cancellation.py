"""Cooperative cancellation shared by the scanner, consumers and host.

Every wait in the reminder pipeline goes through a ``CancellationToken`` so
that a single ``cancel()`` wakes all of them promptly.

Example:
    token = CancellationToken()

    while not token.is_cancelled:
        await do_work()
        if await token.sleep(60):
            break
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable

T = TypeVar("T")


class OperationCancelledError(Exception):
    """Raised by ``CancellationToken.wait_for`` when the token fires first."""


class CancellationToken:
    """Thin wrapper over ``asyncio.Event`` signalling shutdown."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Signal cancellation. Idempotent."""
        self._event.set()

    async def wait(self) -> None:
        """Block until cancellation is signalled."""
        await self._event.wait()

    async def sleep(self, seconds: float) -> bool:
        """Sleep up to ``seconds``.

        Returns:
            True if cancellation interrupted (or preceded) the sleep,
            False if the full interval elapsed.
        """
        if self.is_cancelled:
            return True
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        return self.is_cancelled

    async def wait_for(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless cancellation comes first.

        The pending operation is cancelled when the token wins.

        Raises:
            OperationCancelledError: If the token was cancelled before the
                awaitable completed.
        """
        if self.is_cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelledError

        operation = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {operation, waiter},
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            operation.cancel()
            waiter.cancel()
            raise

        if operation in done:
            waiter.cancel()
            return operation.result()

        operation.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await operation
        raise OperationCancelledError
