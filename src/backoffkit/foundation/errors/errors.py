"""Fault taxonomy for the backoff executor.

Operation errors are never wrapped: the executor re-raises them verbatim.
Only cancellation gets a distinguished exception type.
"""

from __future__ import annotations

from enum import StrEnum


class FaultKind(StrEnum):
    """Kind of terminal fault surfaced by the executor."""
    OPERATION = "OPERATION"  # Operation, predicate or observer error, re-raised as-is
    CANCELLED = "CANCELLED"  # Cancellation token fired


class BackoffError(Exception):
    """Base class for errors raised by backoffkit itself."""


class CancellationFault(BackoffError):
    """Raised when a cancellation token stops the executor.

    The cancellation reason is stored, never raised, so an exception-shaped
    reason can't be mistaken for an operation fault.

    Attributes:
        reason: Opaque value passed to ``CancellationToken.cancel``
        error: Operation error in flight when cancellation won (also ``__cause__``)
        attempts: Number of attempts started before cancellation
        operation_started: Whether an attempt was outstanding when cancellation won
    """

    def __init__(
        self,
        reason: object = None,
        *,
        error: BaseException | None = None,
        attempts: int = 0,
        operation_started: bool = False,
    ) -> None:
        super().__init__(_describe(reason))
        self.reason = reason
        self.error = error
        self.attempts = attempts
        self.operation_started = operation_started

    def __repr__(self) -> str:
        return (
            f"CancellationFault(reason={self.reason!r}, attempts={self.attempts}, "
            f"operation_started={self.operation_started})"
        )


def _describe(reason: object) -> str:
    return "Operation cancelled" if reason is None else f"Operation cancelled: {reason}"


def fault_kind(exc: BaseException) -> FaultKind:
    """Classify an exception surfaced by the executor."""
    return FaultKind.CANCELLED if isinstance(exc, CancellationFault) else FaultKind.OPERATION
