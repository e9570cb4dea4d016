"""Convenience wrappers binding a predicate into with_backoff.

Each uses the settings-derived default configuration.

Example:
    >>> page = await with_network_backoff(lambda: client.get(url))
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Callable, TypeVar

from .executor import with_backoff
from .policy import BackoffConfig, IsRetryable, OnRetry
from .predicates import is_connection_error_message, is_internal_server_error, is_network_error

T = TypeVar("T")


def predicate_config(is_retryable: IsRetryable, on_retry: OnRetry | None = None) -> BackoffConfig:
    """Default config with ``is_retryable`` and ``on_retry`` bound."""
    return BackoffConfig.from_settings(is_retryable=is_retryable, on_retry=on_retry)


async def with_network_backoff(operation: Callable[[], Awaitable[T]], on_retry: OnRetry | None = None) -> T:
    """Retry ``operation`` on transient network error codes."""
    return await with_backoff(operation, predicate_config(is_network_error, on_retry))


async def with_internal_server_error_backoff(
    operation: Callable[[], Awaitable[T]], on_retry: OnRetry | None = None,
) -> T:
    """Retry ``operation`` on HTTP 5xx responses."""
    return await with_backoff(operation, predicate_config(is_internal_server_error, on_retry))


async def with_connection_error_message_backoff(
    operation: Callable[[], Awaitable[T]], on_retry: OnRetry | None = None,
) -> T:
    """Retry ``operation`` when its error message names a connection failure."""
    return await with_backoff(operation, predicate_config(is_connection_error_message, on_retry))
