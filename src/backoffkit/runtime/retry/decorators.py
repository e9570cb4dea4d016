"""Decorators routing every call of a function or method through the executor.

Async callables go through with_backoff, sync ones through with_backoff_sync.
Each call binds its own arguments and runs a fresh executor. Unless a config
is passed, defaults are read from the current settings at every call. Works
on plain functions and methods alike.

Example:
    >>> class Client:
    ...     @network_backoff()
    ...     async def fetch(self, path: str) -> bytes:
    ...         ...
    ...
    ...     @backoff(max_attempts=3, delay=0.1, is_retryable=lambda e: isinstance(e, TimeoutError))
    ...     def ping(self) -> bool:
    ...         ...
"""

from __future__ import annotations

import inspect
from functools import partial, wraps
from typing import Callable, ParamSpec, TypeVar, overload

from .executor import resolve_config, with_backoff, with_backoff_sync
from .policy import BackoffConfig, OnRetry
from .predicates import is_connection_error_message, is_internal_server_error, is_network_error
from .wrappers import predicate_config

P = ParamSpec("P")
T = TypeVar("T")


def _decorate(func: Callable[P, T], resolve: Callable[[], BackoffConfig]) -> Callable[P, T]:
    if inspect.iscoroutinefunction(func):
        @wraps(func)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return await with_backoff(partial(func, *args, **kwargs), resolve())  # type: ignore[arg-type]

        return async_wrapper  # type: ignore[return-value]

    @wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        return with_backoff_sync(partial(func, *args, **kwargs), resolve())

    return wrapper


def _resolver(config: BackoffConfig | None, options: dict[str, object]) -> Callable[[], BackoffConfig]:
    """Fixed config when one is given, else settings re-read on every call."""
    resolved = resolve_config(config, options)  # Validate at decoration time
    if config is not None:
        return lambda: resolved
    return lambda: resolve_config(None, options)


@overload
def backoff(func: Callable[P, T], /) -> Callable[P, T]: ...
@overload
def backoff(config: BackoffConfig | None = None, /, **options: object) -> Callable[[Callable[P, T]], Callable[P, T]]: ...


def backoff(
    target: Callable[P, T] | BackoffConfig | None = None,
    /,
    **options: object,
) -> Callable[P, T] | Callable[[Callable[P, T]], Callable[P, T]]:
    """Retry every call of the decorated function with the given configuration.

    Usable bare (``@backoff``), with a config (``@backoff(config)``) or with
    keyword options (``@backoff(max_attempts=3, is_retryable=...)``).
    Without ``is_retryable`` nothing is retried. Without a config, defaults
    come from the current settings at each call.
    """
    if callable(target) and not isinstance(target, BackoffConfig):
        return _decorate(target, _resolver(None, {}))

    resolve = _resolver(target, options)

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        return _decorate(func, resolve)

    return decorator


def _predicate_decorator(predicate: Callable[[object], bool], on_retry: OnRetry | None) -> Callable[[Callable[P, T]], Callable[P, T]]:
    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        return _decorate(func, lambda: predicate_config(predicate, on_retry))

    return decorator


def network_backoff(on_retry: OnRetry | None = None) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Retry the decorated function on transient network error codes."""
    return _predicate_decorator(is_network_error, on_retry)


def internal_server_error_backoff(on_retry: OnRetry | None = None) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Retry the decorated function on HTTP 5xx responses."""
    return _predicate_decorator(is_internal_server_error, on_retry)


def connection_error_message_backoff(on_retry: OnRetry | None = None) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Retry the decorated function on known connection-failure messages."""
    return _predicate_decorator(is_connection_error_message, on_retry)
