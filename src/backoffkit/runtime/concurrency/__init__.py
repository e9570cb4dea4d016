"""Concurrency primitives: cancellation token and cancellation races.

Example:
    >>> token = CancellationToken()
    >>> outcome = await race_cancellation(fetch(), token)
    >>> slept = await sleep_or_cancel(0.5, token)
"""

from .cancel import CancelCallback, CancellationToken
from .wait import (
    Settled,
    SettledStatus,
    checkpoint,
    detach,
    race_cancellation,
    sleep_or_cancel,
)

__all__ = [
    "CancelCallback",
    "CancellationToken",
    "Settled",
    "SettledStatus",
    "checkpoint",
    "detach",
    "race_cancellation",
    "sleep_or_cancel",
]
