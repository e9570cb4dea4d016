"""Cooperative cancellation token.

A token has a single terminal transition: once cancelled it stays cancelled
and keeps the first reason it was given. It can be observed synchronously
(``cancelled``), through one-shot callbacks, or awaited.

Example:
    >>> token = CancellationToken()
    >>> token.cancel_after(5.0, reason="deadline")
    >>> await with_backoff(fetch, signal=token, is_retryable=is_network_error)
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
from typing import Callable

from backoffkit.foundation.errors import CancellationFault

CancelCallback = Callable[[object], None]

logger = logging.getLogger("backoffkit.concurrency")


class CancellationToken:
    """Shared cancel signal carrying an arbitrary reason.

    ``cancel`` is thread-safe. Awaiting ``wait`` from a loop while another
    thread cancels wakes the loop through ``call_soon_threadsafe``.
    """

    __slots__ = ("_lock", "_cancelled", "_reason", "_callbacks", "_ids")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._reason: object = None
        self._callbacks: dict[int, CancelCallback] = {}
        self._ids = itertools.count()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> object:
        """Reason passed to the first ``cancel`` call, or None."""
        return self._reason

    def cancel(self, reason: object = None) -> bool:
        """Signal cancellation.

        Every subscriber runs even if an earlier one raises; failures are
        logged, not propagated.

        Returns:
            True if this call cancelled the token, False if it already was
        """
        with self._lock:
            if self._cancelled:
                return False
            self._cancelled, self._reason = True, reason
            callbacks = list(self._callbacks.values())
            self._callbacks.clear()
        for callback in callbacks:
            try:
                callback(reason)
            except Exception:
                logger.exception(f"Cancel callback {callback!r} failed")
        return True

    def add_callback(self, callback: CancelCallback) -> Callable[[], None]:
        """Subscribe once to cancellation.

        Runs ``callback(reason)`` immediately if already cancelled.

        Returns:
            Function that removes the subscription (no-op once fired)
        """
        with self._lock:
            if not self._cancelled:
                key = next(self._ids)
                self._callbacks[key] = callback
                return lambda: self._remove(key)
        callback(self._reason)
        return _noop

    def _remove(self, key: int) -> None:
        with self._lock:
            self._callbacks.pop(key, None)

    async def wait(self) -> object:
        """Wait until cancelled and return the reason."""
        if self._cancelled:
            return self._reason
        loop = asyncio.get_running_loop()
        fut: asyncio.Future[object] = loop.create_future()

        def _resolve(reason: object) -> None:
            if not fut.done():
                fut.set_result(reason)

        unsubscribe = self.add_callback(lambda reason: loop.call_soon_threadsafe(_resolve, reason))
        try:
            return await fut
        finally:
            unsubscribe()

    def wait_sync(self, timeout: float | None = None) -> bool:
        """Block until cancelled or ``timeout`` elapses.

        Returns:
            True if the token is cancelled
        """
        if self._cancelled:
            return True
        event = threading.Event()
        unsubscribe = self.add_callback(lambda _: event.set())
        try:
            return event.wait(timeout)
        finally:
            unsubscribe()

    def raise_if_cancelled(self) -> None:
        """Raise CancellationFault if cancelled."""
        if self._cancelled:
            raise CancellationFault(self._reason)

    def cancel_after(self, seconds: float, reason: object = None) -> asyncio.TimerHandle:
        """Schedule ``cancel(reason)`` on the running loop after ``seconds``."""
        return asyncio.get_running_loop().call_later(seconds, self.cancel, reason)

    def __repr__(self) -> str:
        state = f"cancelled, reason={self._reason!r}" if self._cancelled else "active"
        return f"CancellationToken({state})"


def _noop() -> None:
    pass
