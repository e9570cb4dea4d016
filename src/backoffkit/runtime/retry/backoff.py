"""Backoff strategies and delay schedule generation.

Provides pluggable delay calculation for retry attempts:
- ExponentialBackoff: base * multiplier^attempt, with optional additive jitter
- LinearBackoff: constant base delay, with optional additive jitter

Every delay is capped at ``MAX_DELAY``, so schedules stay finite for any
attempt count.

A schedule holds one delay per retry, so ``max_attempts - 1`` entries: no
delay precedes the first attempt and the trailing slot is never generated.

Jitter only ever adds: ``raw + raw * jitter * U`` with ``U`` uniform on
[0, 1). Values above 1 are rejected by BackoffConfig; the strategies
themselves accept them and scale the random component proportionally.
"""

from __future__ import annotations

import random
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Protocol, overload, runtime_checkable


class BackoffStrategy(StrEnum):
    """Rule mapping attempt index to delay."""
    EXPONENTIAL = "exponential"
    LINEAR = "linear"


@runtime_checkable
class Backoff(Protocol):
    """Protocol for backoff delay calculation.

    Attempt numbers are 0-indexed (first retry = attempt 0).
    """

    def delay(self, attempt: int) -> float:
        """Calculate delay in seconds for given attempt number."""
        ...


class DelayOptions(Protocol):
    """Fields the schedule generator reads (satisfied by BackoffConfig)."""
    max_attempts: int
    delay: float
    delay_factor: float
    jitter: float
    strategy: BackoffStrategy | str


# Longest single wait, accepted by asyncio, time.sleep and threading waits alike
MAX_DELAY: float = min(threading.TIMEOUT_MAX, 365 * 24 * 3600.0)


def _jittered(raw: float, jitter: float) -> float:
    raw = min(raw, MAX_DELAY)
    return min(raw + raw * jitter * random.random(), MAX_DELAY) if jitter else raw


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """Exponential backoff with optional additive jitter.

    Delay = base * (multiplier ^ attempt), plus up to ``jitter`` of itself.

    Attributes:
        base: Initial delay in seconds (default: 0.02)
        multiplier: Exponential growth factor (default: 4.0)
        jitter: Fraction of the raw delay added at random (default: 0.0)
    """

    base: float = 0.02
    multiplier: float = 4.0
    jitter: float = 0.0

    def delay(self, attempt: int) -> float:
        try:
            raw = self.base * (self.multiplier ** attempt)
        except OverflowError:
            raw = MAX_DELAY if self.base else 0.0
        return _jittered(raw, self.jitter)


@dataclass(frozen=True, slots=True)
class LinearBackoff:
    """Constant delay between retries with optional additive jitter.

    Attributes:
        base: Delay in seconds (default: 0.02)
        jitter: Fraction of the delay added at random (default: 0.0)
    """

    base: float = 0.02
    jitter: float = 0.0

    def delay(self, attempt: int) -> float:
        return _jittered(self.base, self.jitter)


def backoff_for(options: DelayOptions) -> Backoff:
    """Build the Backoff strategy object described by ``options``."""
    match BackoffStrategy(options.strategy):
        case BackoffStrategy.EXPONENTIAL:
            return ExponentialBackoff(options.delay, options.delay_factor, options.jitter)
        case BackoffStrategy.LINEAR:
            return LinearBackoff(options.delay, options.jitter)


def create_delay_list(options: DelayOptions) -> list[float]:
    """Relative delays in seconds, one per retry.

    ``max_attempts <= 0`` yields an empty list.
    """
    backoff = backoff_for(options)
    return [backoff.delay(i) for i in range(max(0, options.max_attempts - 1))]


def to_deadlines(delays: list[float], relative_to: datetime) -> list[datetime]:
    """Shift relative delays onto absolute points in time."""
    return [relative_to + timedelta(seconds=d) for d in delays]


@overload
def compute_delay_schedule(options: DelayOptions, *, relative_to: datetime) -> list[datetime]: ...
@overload
def compute_delay_schedule(options: DelayOptions, *, relative_to: None = None) -> list[float] | list[datetime]: ...


def compute_delay_schedule(
    options: DelayOptions,
    *,
    relative_to: datetime | None = None,
) -> list[float] | list[datetime]:
    """Compute the full retry schedule without executing anything.

    Args:
        options: BackoffConfig (or any object with the same delay fields)
        relative_to: Reference instant; falls back to ``options.relative_to``

    Returns:
        Delays in seconds, or absolute deadlines when a reference instant is set

    Example:
        >>> compute_delay_schedule(BackoffConfig(max_attempts=4, delay=10, delay_factor=2))
        [10.0, 20.0, 40.0]
    """
    delays = create_delay_list(options)
    reference = relative_to if relative_to is not None else getattr(options, "relative_to", None)
    return to_deadlines(delays, reference) if reference is not None else delays
