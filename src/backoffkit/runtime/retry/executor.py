"""Backoff executor: re-invoke a fallible operation on a delay schedule.

The full schedule is computed once up front and consumed one entry per retry.
Each attempt and each wait is raced against the optional cancellation token;
the ``on_retry`` observer is awaited but never raced.

State machine:
    Ready → Attempting → Succeeded
    Attempting → Retrying → Attempting   (retryable failure, budget left)
    Attempting → Failed                  (budget spent or predicate false)
    Attempting | Retrying → Cancelled    (token fired)

Operation errors are re-raised verbatim. Only cancellation is wrapped, in
CancellationFault.

Example:
    >>> token = CancellationToken()
    >>> data = await with_backoff(
    ...     lambda: client.get("/items"),
    ...     max_attempts=4,
    ...     delay=0.5,
    ...     is_retryable=is_network_error,
    ...     signal=token,
    ... )
"""

from __future__ import annotations

import inspect
import logging
import time
from collections import deque
from collections.abc import Awaitable
from datetime import datetime, timedelta
from typing import Callable, TypeVar, Union

from backoffkit.foundation.errors import CancellationFault
from backoffkit.runtime.concurrency import (
    CancellationToken,
    Settled,
    checkpoint,
    race_cancellation,
    sleep_or_cancel,
)
from backoffkit.runtime.concurrency.wait import fulfilled, rejected

from .backoff import create_delay_list
from .policy import BackoffConfig, RetryEvent

T = TypeVar("T")

Operation = Callable[[], Union[Awaitable[T], T]]

logger = logging.getLogger("backoffkit.retry")


def resolve_config(config: BackoffConfig | None, options: dict[str, object]) -> BackoffConfig:
    """Merge keyword options over ``config``; settings supply defaults when absent."""
    return BackoffConfig.from_settings(**options) if config is None else config.merge(**options)


def _schedule(cfg: BackoffConfig) -> deque[tuple[float, datetime | None]]:
    delays = create_delay_list(cfg)
    ref = cfg.relative_to
    return deque((d, ref + timedelta(seconds=d) if ref is not None else None) for d in delays)


def _cancelled(signal: CancellationToken, error: Exception | None, attempts: int, *, started: bool) -> CancellationFault:
    return CancellationFault(signal.reason, error=error, attempts=attempts, operation_started=started)


async def _maybe_await(value: object) -> object:
    return await value if inspect.isawaitable(value) else value


async def _attempt(operation: Operation[T], signal: CancellationToken | None) -> Settled[T] | None:
    """Run one attempt. None means the token won the race."""
    try:
        result = operation()
        if not inspect.isawaitable(result):
            return fulfilled(result)
        if signal is None:
            return fulfilled(await result)
    except Exception as e:
        return rejected(e)
    return await race_cancellation(result, signal)


async def with_backoff(
    operation: Operation[T],
    config: BackoffConfig | None = None,
    /,
    **options: object,
) -> T:
    """Execute ``operation`` with retries and backoff.

    Args:
        operation: Zero-argument callable returning an awaitable or a value
        config: Base configuration (default: settings-derived defaults)
        **options: BackoffConfig fields overriding ``config``

    Returns:
        The first successful result

    Raises:
        CancellationFault: The ``signal`` token fired before success
        Exception: The last operation error once retries are spent or
            disallowed, or any error raised by ``is_retryable``/``on_retry``
    """
    cfg = resolve_config(config, options)
    schedule = _schedule(cfg)
    signal = cfg.signal
    last_error: Exception | None = None
    attempt = 1

    while True:
        if signal is not None and signal.cancelled:
            raise _cancelled(signal, last_error, attempt - 1, started=False) from last_error

        outcome = await _attempt(operation, signal)
        if outcome is None:
            assert signal is not None
            logger.debug(f"Attempt {attempt}/{cfg.max_attempts} abandoned: cancelled ({signal.reason!r})")
            raise _cancelled(signal, last_error, attempt, started=True) from last_error
        if outcome.is_fulfilled:
            return outcome.value  # type: ignore[return-value]

        error = outcome.error
        assert error is not None
        last_error = error

        # Budget check first: the predicate is never consulted on the last attempt
        if attempt >= cfg.max_attempts:
            logger.debug(f"Giving up after {attempt} attempt(s): {type(error).__name__}: {error}")
            raise error
        if cfg.is_retryable is None or not await _maybe_await(cfg.is_retryable(error)):
            logger.debug(f"Attempt {attempt} failed with non-retryable {type(error).__name__}: {error}")
            raise error

        delay, deadline = schedule.popleft()
        logger.debug(
            f"Retry {attempt}/{cfg.max_retries} after {delay:.3f}s ({type(error).__name__}: {error})"
        )
        if cfg.on_retry is not None:
            await _maybe_await(cfg.on_retry(RetryEvent(attempt, delay, error, deadline)))

        if not await sleep_or_cancel(delay, signal):
            assert signal is not None
            raise _cancelled(signal, error, attempt, started=False) from error
        await checkpoint()
        attempt += 1


def _ensure_sync(value: T, what: str) -> T:
    if inspect.isawaitable(value):
        if inspect.iscoroutine(value):
            value.close()
        raise TypeError(f"{what} returned an awaitable; use with_backoff for async callables")
    return value


def with_backoff_sync(
    operation: Callable[[], T],
    config: BackoffConfig | None = None,
    /,
    **options: object,
) -> T:
    """Synchronous version of with_backoff for blocking callables.

    Cancellation is polled before each attempt and interrupts waits, but an
    attempt already running can't be raced. ``is_retryable`` and ``on_retry``
    must be synchronous.
    """
    cfg = resolve_config(config, options)
    schedule = _schedule(cfg)
    signal = cfg.signal
    last_error: Exception | None = None
    attempt = 1

    while True:
        if signal is not None and signal.cancelled:
            raise _cancelled(signal, last_error, attempt - 1, started=False) from last_error

        try:
            result = operation()
        except Exception as e:
            error = e
        else:
            return _ensure_sync(result, "operation")
        last_error = error

        if attempt >= cfg.max_attempts:
            logger.debug(f"Giving up after {attempt} attempt(s): {type(error).__name__}: {error}")
            raise error
        if cfg.is_retryable is None or not _ensure_sync(cfg.is_retryable(error), "is_retryable"):
            logger.debug(f"Attempt {attempt} failed with non-retryable {type(error).__name__}: {error}")
            raise error

        delay, deadline = schedule.popleft()
        logger.debug(
            f"Retry {attempt}/{cfg.max_retries} after {delay:.3f}s ({type(error).__name__}: {error})"
        )
        if cfg.on_retry is not None:
            _ensure_sync(cfg.on_retry(RetryEvent(attempt, delay, error, deadline)), "on_retry")

        if signal is None:
            time.sleep(delay)
        elif signal.wait_sync(delay):
            raise _cancelled(signal, error, attempt, started=False) from error
        attempt += 1
