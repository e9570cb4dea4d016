"""Wait strategies racing work against a cancellation token.

Provides the two "first of two events" primitives the executor needs:
    - race_cancellation: an awaitable vs. a token
    - sleep_or_cancel: a delay vs. a token

Example:
    >>> outcome = await race_cancellation(fetch(), token)
    >>> if outcome is None:
    ...     print("cancelled first")
    >>> else:
    ...     value = outcome.unwrap()
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from .cancel import CancellationToken

T = TypeVar("T")

# Strong references to attempts abandoned after cancellation won the race
_detached: set[asyncio.Future[object]] = set()


class SettledStatus(StrEnum):
    """Status of a settled operation."""
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


@dataclass(slots=True, frozen=True)
class Settled(Generic[T]):
    """Result of a settled operation (success or failure).

    Attributes:
        status: 'fulfilled' or 'rejected'
        value: Result value if fulfilled
        error: Exception if rejected
    """

    status: SettledStatus
    value: T | None = None
    error: Exception | None = None

    @property
    def is_fulfilled(self) -> bool:
        return self.status == SettledStatus.FULFILLED

    @property
    def is_rejected(self) -> bool:
        return self.status == SettledStatus.REJECTED

    def unwrap(self) -> T:
        """Get value or raise stored error."""
        if self.is_rejected:
            raise self.error or RuntimeError("Rejected with no error")
        return self.value  # type: ignore[return-value]


def fulfilled(value: T) -> Settled[T]:
    return Settled(SettledStatus.FULFILLED, value=value)


def rejected(error: Exception) -> Settled[T]:
    return Settled(SettledStatus.REJECTED, error=error)


async def checkpoint() -> None:
    """Cooperative cancellation checkpoint: yield to the event loop."""
    await asyncio.sleep(0)


def detach(task: asyncio.Future[object]) -> None:
    """Let ``task`` run to completion unobserved.

    Keeps a strong reference until it finishes and retrieves its exception
    so the loop doesn't report it as never retrieved.
    """
    _detached.add(task)
    task.add_done_callback(_reap)


def _reap(task: asyncio.Future[object]) -> None:
    _detached.discard(task)
    if not task.cancelled():
        task.exception()


def _settle(task: asyncio.Future[T]) -> Settled[T]:
    try:
        return fulfilled(task.result())
    except Exception as e:
        return rejected(e)


async def race_cancellation(aw: Awaitable[T], token: CancellationToken) -> Settled[T] | None:
    """Race an awaitable against a cancellation token.

    If the awaitable is already done when the race resolves, it wins even if
    the token fired at the same time. When the token wins the awaitable is
    detached, not cancelled.

    Returns:
        Settled outcome of ``aw``, or None if the token won
    """
    if token.cancelled:
        if inspect.iscoroutine(aw):
            aw.close()  # Never started
        else:
            detach(asyncio.ensure_future(aw))
        return None
    task = asyncio.ensure_future(aw)
    waiter = asyncio.ensure_future(token.wait())

    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        # Cancel all on external cancellation
        task.cancel()
        waiter.cancel()
        raise

    if task.done():
        waiter.cancel()
        await asyncio.gather(waiter, return_exceptions=True)
        return _settle(task)

    detach(task)
    return None


async def sleep_or_cancel(delay: float, token: CancellationToken | None) -> bool:
    """Sleep for ``delay`` seconds unless the token fires first.

    Returns:
        True if the full delay elapsed, False if cancelled
    """
    if token is None:
        await asyncio.sleep(delay)
        return True
    if token.cancelled:
        return False

    sleeper = asyncio.ensure_future(asyncio.sleep(delay))
    waiter = asyncio.ensure_future(token.wait())
    try:
        done, pending = await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        sleeper.cancel()
        waiter.cancel()
        raise

    for t in pending:
        t.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
    return sleeper in done and not token.cancelled
