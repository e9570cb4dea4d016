"""Ready-made ``on_retry`` observers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from backoffkit.runtime.observability import BoundLogger, get_logger

if TYPE_CHECKING:
    from .policy import RetryEvent


def log_retries(log: BoundLogger | None = None, *, level: str = "warning") -> Callable[[RetryEvent], None]:
    """Build an observer that writes each retry to a structured logger.

    Example:
        >>> await with_backoff(fetch, is_retryable=is_network_error, on_retry=log_retries())
        # => [warning] retrying operation attempt=1 delay=0.02 error="..." error_type="ConnectionResetError"
    """
    _log = log or get_logger("backoffkit.retry")

    def on_retry(event: RetryEvent) -> None:
        extra = {"deadline": event.deadline.isoformat()} if event.deadline is not None else {}
        _log.log(
            level, "retrying operation",
            attempt=event.attempt, delay=round(event.delay, 6),
            error=str(event.error), error_type=type(event.error).__name__, **extra,
        )

    return on_retry
