"""Tests for the async backoff executor.

Validates:
- Attempt budget and observer bookkeeping
- Predicate handling (including budget-first precedence)
- Schedule consumption order
- Error propagation from operation, predicate and observer
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from backoffkit import BackoffConfig, RetryEvent, with_backoff


class Flaky:
    """Operation failing until ``succeed_on``; records every invocation."""

    def __init__(self, succeed_on: int | None = None, error: type[Exception] = ConnectionError) -> None:
        self.calls = 0
        self.succeed_on = succeed_on
        self.error = error
        self.raised: list[Exception] = []

    async def __call__(self) -> str:
        self.calls += 1
        if self.succeed_on is None or self.calls < self.succeed_on:
            exc = self.error(f"Attempt {self.calls} failed")
            self.raised.append(exc)
            raise exc
        return "success"


def always(_: Exception) -> bool:
    return True


# ═════════════════════════════════════════════════════════════════════════════
# Success & Exhaustion
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_succeeds_first_attempt() -> None:
    op = Flaky(succeed_on=1)
    assert await with_backoff(op, max_attempts=3, delay=0, is_retryable=always) == "success"
    assert op.calls == 1


@pytest.mark.asyncio
async def test_default_options() -> None:
    async def op() -> str:
        return "success"

    assert await with_backoff(op) == "success"


@pytest.mark.asyncio
@pytest.mark.parametrize("n,k", [(1, 1), (3, 2), (3, 3), (5, 4)])
async def test_retries_until_success(n: int, k: int) -> None:
    op = Flaky(succeed_on=k)
    events: list[RetryEvent] = []

    result = await with_backoff(op, max_attempts=n, delay=0, is_retryable=always, on_retry=events.append)

    assert result == "success"
    assert op.calls == k
    assert [e.attempt for e in events] == list(range(1, k))


@pytest.mark.asyncio
@pytest.mark.parametrize("n", [1, 2, 3, 6])
async def test_exhaustion_raises_last_error(n: int) -> None:
    op = Flaky()
    attempts: list[int] = []

    with pytest.raises(ConnectionError, match=f"Attempt {n} failed") as info:
        await with_backoff(op, max_attempts=n, delay=0, is_retryable=always,
                           on_retry=lambda e: attempts.append(e.attempt))

    assert info.value is op.raised[-1]
    assert op.calls == n
    assert attempts == list(range(1, n))


@pytest.mark.asyncio
async def test_sync_operation_inside_async_executor() -> None:
    calls = {"count": 0}

    def op() -> int:
        calls["count"] += 1
        if calls["count"] < 2:
            raise TimeoutError("slow")
        return 42

    assert await with_backoff(op, max_attempts=2, delay=0, is_retryable=always) == 42


# ═════════════════════════════════════════════════════════════════════════════
# Predicate
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_non_retryable_stops_immediately() -> None:
    op = Flaky(succeed_on=2)
    with pytest.raises(ConnectionError, match="Attempt 1 failed"):
        await with_backoff(op, max_attempts=3, delay=0, is_retryable=lambda _: False)
    assert op.calls == 1


@pytest.mark.asyncio
async def test_no_predicate_means_no_retry() -> None:
    op = Flaky(succeed_on=2)
    with pytest.raises(ConnectionError):
        await with_backoff(op, max_attempts=5, delay=0)
    assert op.calls == 1


@pytest.mark.asyncio
async def test_async_predicate() -> None:
    async def retryable(exc: Exception) -> bool:
        return isinstance(exc, ConnectionError)

    op = Flaky(succeed_on=3)
    assert await with_backoff(op, max_attempts=3, delay=0, is_retryable=retryable) == "success"


@pytest.mark.asyncio
async def test_predicate_skipped_when_budget_spent() -> None:
    seen: list[Exception] = []

    def retryable(exc: Exception) -> bool:
        seen.append(exc)
        return True

    op = Flaky()
    with pytest.raises(ConnectionError):
        await with_backoff(op, max_attempts=1, is_retryable=retryable)
    assert seen == []

    op = Flaky()
    with pytest.raises(ConnectionError):
        await with_backoff(op, max_attempts=3, delay=0, is_retryable=retryable)
    assert len(seen) == 2  # Not consulted on the third, final failure


@pytest.mark.asyncio
async def test_predicate_error_propagates() -> None:
    def broken(_: Exception) -> bool:
        raise ValueError("predicate broke")

    op = Flaky(succeed_on=2)
    with pytest.raises(ValueError, match="predicate broke"):
        await with_backoff(op, max_attempts=3, delay=0, is_retryable=broken)
    assert op.calls == 1


# ═════════════════════════════════════════════════════════════════════════════
# Observer & Schedule
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_observer_error_propagates() -> None:
    async def broken(_: RetryEvent) -> None:
        raise RuntimeError("observer broke")

    op = Flaky(succeed_on=3)
    with pytest.raises(RuntimeError, match="observer broke"):
        await with_backoff(op, max_attempts=3, delay=0, is_retryable=always, on_retry=broken)
    assert op.calls == 1


@pytest.mark.asyncio
async def test_observer_receives_triggering_error() -> None:
    op = Flaky(succeed_on=3)
    events: list[RetryEvent] = []
    await with_backoff(op, max_attempts=3, delay=0, is_retryable=always, on_retry=events.append)
    assert [e.error for e in events] == op.raised


@pytest.mark.asyncio
async def test_observer_runs_before_next_attempt() -> None:
    log: list[str] = []

    async def op() -> str:
        log.append("attempt")
        if len(log) < 5:
            raise ConnectionError("down")
        return "ok"

    async def on_retry(event: RetryEvent) -> None:
        log.append(f"retry {event.attempt}")

    await with_backoff(op, max_attempts=3, delay=0, is_retryable=always, on_retry=on_retry)
    assert log == ["attempt", "retry 1", "attempt", "retry 2", "attempt"]


@pytest.mark.asyncio
async def test_exponential_delays_reported_in_order(monkeypatch: pytest.MonkeyPatch) -> None:
    slept: list[float] = []

    async def fake_sleep(delay: float, token: object) -> bool:
        slept.append(delay)
        return True

    monkeypatch.setattr("backoffkit.runtime.retry.executor.sleep_or_cancel", fake_sleep)
    delays: list[float] = []

    await with_backoff(Flaky(succeed_on=4), max_attempts=4, delay=10, delay_factor=2, jitter=0,
                       is_retryable=always, on_retry=lambda e: delays.append(e.delay))

    assert delays == [10, 20, 40]
    assert slept == [10, 20, 40]


@pytest.mark.asyncio
async def test_linear_delays_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_sleep(delay: float, token: object) -> bool:
        return True

    monkeypatch.setattr("backoffkit.runtime.retry.executor.sleep_or_cancel", fake_sleep)
    delays: list[float] = []

    await with_backoff(Flaky(succeed_on=3), max_attempts=3, delay=10, strategy="linear",
                       is_retryable=always, on_retry=lambda e: delays.append(e.delay))

    assert delays == [10, 10]


@pytest.mark.asyncio
async def test_relative_to_is_observer_facing_only(monkeypatch: pytest.MonkeyPatch) -> None:
    slept: list[float] = []

    async def fake_sleep(delay: float, token: object) -> bool:
        slept.append(delay)
        return True

    monkeypatch.setattr("backoffkit.runtime.retry.executor.sleep_or_cancel", fake_sleep)
    base = datetime(2024, 1, 1, tzinfo=UTC)
    events: list[RetryEvent] = []

    await with_backoff(Flaky(succeed_on=2), max_attempts=2, delay=1.0, strategy="linear",
                       relative_to=base, is_retryable=always, on_retry=events.append)

    assert events[0].deadline == base + timedelta(seconds=1)
    assert events[0].delay == 1.0
    assert slept == [1.0]


@pytest.mark.asyncio
async def test_config_and_options_merge() -> None:
    config = BackoffConfig(max_attempts=2, delay=0, is_retryable=always)
    op = Flaky()
    with pytest.raises(ConnectionError):
        await with_backoff(op, config, max_attempts=4)
    assert op.calls == 4


@pytest.mark.asyncio
async def test_base_exceptions_are_not_retried() -> None:
    class Abort(BaseException):
        pass

    calls = {"count": 0}

    async def op() -> None:
        calls["count"] += 1
        raise Abort

    with pytest.raises(Abort):
        await with_backoff(op, max_attempts=3, delay=0, is_retryable=always)
    assert calls["count"] == 1
