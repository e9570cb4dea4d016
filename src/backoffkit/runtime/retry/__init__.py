"""Retry with backoff for fallible operations.

Provides the delay schedule generator, the backoff executor, retryability
predicates and the wrappers/decorators that bind them together.

Example:
    >>> from backoffkit import with_backoff, is_network_error
    >>>
    >>> body = await with_backoff(
    ...     lambda: fetch(url),
    ...     max_attempts=5,
    ...     delay=0.1,
    ...     delay_factor=2,
    ...     jitter=0.2,
    ...     is_retryable=is_network_error,
    ... )
"""

from .backoff import (
    MAX_DELAY,
    Backoff,
    BackoffStrategy,
    ExponentialBackoff,
    LinearBackoff,
    backoff_for,
    compute_delay_schedule,
    create_delay_list,
    to_deadlines,
)
from .decorators import (
    backoff,
    connection_error_message_backoff,
    internal_server_error_backoff,
    network_backoff,
)
from .executor import with_backoff, with_backoff_sync
from .observers import log_retries
from .policy import BackoffConfig, IsRetryable, OnRetry, RetryEvent
from .predicates import (
    NETWORK_ERROR_CODES,
    RETRYABLE_ERROR_MESSAGES,
    is_connection_error_message,
    is_internal_server_error,
    is_network_error,
)
from .wrappers import (
    with_connection_error_message_backoff,
    with_internal_server_error_backoff,
    with_network_backoff,
)

__all__ = [
    # Backoff strategies
    "MAX_DELAY",
    "Backoff",
    "BackoffStrategy",
    "ExponentialBackoff",
    "LinearBackoff",
    "backoff_for",
    # Schedule
    "compute_delay_schedule",
    "create_delay_list",
    "to_deadlines",
    # Config
    "BackoffConfig",
    "RetryEvent",
    "OnRetry",
    "IsRetryable",
    # Execution
    "with_backoff",
    "with_backoff_sync",
    # Predicates
    "NETWORK_ERROR_CODES",
    "RETRYABLE_ERROR_MESSAGES",
    "is_network_error",
    "is_internal_server_error",
    "is_connection_error_message",
    # Wrappers & decorators
    "with_network_backoff",
    "with_internal_server_error_backoff",
    "with_connection_error_message_backoff",
    "backoff",
    "network_backoff",
    "internal_server_error_backoff",
    "connection_error_message_backoff",
    # Observers
    "log_retries",
]
