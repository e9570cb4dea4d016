"""backoffkit - Retry fallible async operations with backoff, jitter, and cancellation.

Quick Start:
    >>> from backoffkit import with_backoff, is_network_error
    >>>
    >>> data = await with_backoff(
    ...     lambda: client.get("/items"),
    ...     max_attempts=4,
    ...     delay=0.1,
    ...     is_retryable=is_network_error,
    ... )

Decorators:
    >>> from backoffkit import backoff, internal_server_error_backoff
    >>>
    >>> class Api:
    ...     @internal_server_error_backoff()
    ...     async def fetch(self, path: str) -> dict: ...
    ...
    ...     @backoff(max_attempts=3, strategy="linear", is_retryable=lambda e: isinstance(e, TimeoutError))
    ...     def ping(self) -> bool: ...

Cancellation:
    >>> token = CancellationToken()
    >>> token.cancel_after(10.0, reason="deadline")
    >>> try:
    ...     await with_backoff(fetch, signal=token, is_retryable=is_network_error)
    ... except CancellationFault as fault:
    ...     print(fault.reason)

Schedules without executing:
    >>> compute_delay_schedule(BackoffConfig(max_attempts=4, delay=10, delay_factor=2))
    [10.0, 20.0, 40.0]
"""

from __future__ import annotations

__version__ = "0.1.0"

# Errors
from .foundation.errors import BackoffError, CancellationFault, FaultKind, fault_kind

# Config
from .foundation.config import BackoffkitSettings, clear_settings_cache, get_settings

# Concurrency
from .runtime.concurrency import CancellationToken

# Logging
from .runtime.observability import configure_logging, get_logger, log_context

# Retry
from .runtime.retry import (
    NETWORK_ERROR_CODES,
    RETRYABLE_ERROR_MESSAGES,
    Backoff,
    BackoffConfig,
    BackoffStrategy,
    ExponentialBackoff,
    LinearBackoff,
    RetryEvent,
    backoff,
    compute_delay_schedule,
    connection_error_message_backoff,
    create_delay_list,
    internal_server_error_backoff,
    is_connection_error_message,
    is_internal_server_error,
    is_network_error,
    log_retries,
    network_backoff,
    with_backoff,
    with_backoff_sync,
    with_connection_error_message_backoff,
    with_internal_server_error_backoff,
    with_network_backoff,
)

__all__ = [
    "__version__",
    # Errors
    "BackoffError", "CancellationFault", "FaultKind", "fault_kind",
    # Config
    "BackoffkitSettings", "clear_settings_cache", "get_settings",
    # Concurrency
    "CancellationToken",
    # Logging
    "configure_logging", "get_logger", "log_context",
    # Schedule
    "Backoff", "BackoffConfig", "BackoffStrategy", "ExponentialBackoff", "LinearBackoff",
    "compute_delay_schedule", "create_delay_list",
    # Execution
    "RetryEvent", "with_backoff", "with_backoff_sync", "log_retries",
    # Predicates
    "NETWORK_ERROR_CODES", "RETRYABLE_ERROR_MESSAGES",
    "is_network_error", "is_internal_server_error", "is_connection_error_message",
    # Wrappers & decorators
    "with_network_backoff", "with_internal_server_error_backoff", "with_connection_error_message_backoff",
    "backoff", "network_backoff", "internal_server_error_backoff", "connection_error_message_backoff",
]
