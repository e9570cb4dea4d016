"""Runtime - Execution flow, cancellation, and monitoring.

Contains: retry, concurrency, observability.
"""

from __future__ import annotations

from .concurrency import CancellationToken, Settled, SettledStatus, race_cancellation, sleep_or_cancel
from .observability import configure_logging, get_logger, log_context
from .retry import (
    BackoffConfig,
    BackoffStrategy,
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
    # Concurrency
    "CancellationToken", "Settled", "SettledStatus", "race_cancellation", "sleep_or_cancel",
    # Observability
    "configure_logging", "get_logger", "log_context",
    # Retry
    "BackoffConfig", "BackoffStrategy", "RetryEvent",
    "compute_delay_schedule", "create_delay_list",
    "with_backoff", "with_backoff_sync",
    "is_network_error", "is_internal_server_error", "is_connection_error_message",
    "with_network_backoff", "with_internal_server_error_backoff", "with_connection_error_message_backoff",
    "backoff", "network_backoff", "internal_server_error_backoff", "connection_error_message_backoff",
    "log_retries",
]
