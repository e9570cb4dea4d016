"""Backoff configuration and retry events.

BackoffConfig is a frozen pydantic model validated at construction:
invalid values raise ``pydantic.ValidationError`` rather than being clamped.
"""

from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Callable, Self, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from backoffkit.foundation.config import BackoffkitSettings, get_settings
from backoffkit.runtime.concurrency import CancellationToken

from .backoff import Backoff, BackoffStrategy, backoff_for


@dataclass(frozen=True, slots=True)
class RetryEvent:
    """Passed to ``on_retry`` before each wait.

    Attributes:
        attempt: The attempt that just failed (1-based)
        delay: Seconds the executor is about to wait
        error: Exception that triggered the retry
        deadline: ``relative_to + delay`` in absolute-time mode, else None
    """

    attempt: int
    delay: float
    error: Exception
    deadline: datetime | None = None


OnRetry = Callable[[RetryEvent], Union[Awaitable[None], None]]
IsRetryable = Callable[[Exception], Union[Awaitable[bool], bool]]


class BackoffConfig(BaseModel):
    """Configuration for one backoff execution.

    Attributes:
        max_attempts: Total invocations allowed, including the first (>= 1)
        delay: Initial delay in seconds; the constant delay for linear
        delay_factor: Growth factor per retry (exponential only)
        jitter: Fraction in [0, 1] of each delay added at random
        strategy: "exponential" or "linear"
        relative_to: Reference instant; surfaces absolute deadlines to observers
        on_retry: Callback awaited before each wait (default: no-op)
        is_retryable: Predicate deciding whether an error is retried (default: never)
        signal: Cancellation token raced against attempts and waits

    Example:
        >>> config = BackoffConfig(max_attempts=4, delay=0.1, delay_factor=2, is_retryable=is_network_error)
        >>> await with_backoff(fetch, config)
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,  # For CancellationToken
        validate_default=True,
        extra="forbid",
        revalidate_instances="never",
    )

    max_attempts: Annotated[int, Field(ge=1)] = 6
    delay: Annotated[float, Field(ge=0.0)] = 0.02
    delay_factor: Annotated[float, Field(ge=0.0)] = 4.0
    jitter: Annotated[float, Field(ge=0.0, le=1.0)] = 0.0
    strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    relative_to: datetime | None = None
    on_retry: OnRetry | None = Field(default=None, exclude=True, repr=False)
    is_retryable: IsRetryable | None = Field(default=None, exclude=True, repr=False)
    signal: CancellationToken | None = Field(default=None, exclude=True, repr=False)

    @field_validator("strategy", mode="before")
    @classmethod
    def _normalize_strategy(cls, v: BackoffStrategy | str) -> BackoffStrategy | str:
        """Accept strategy names in any case."""
        return v.lower() if isinstance(v, str) else v

    @computed_field
    @property
    def max_retries(self) -> int:
        """Retries available after the first attempt."""
        return self.max_attempts - 1

    @property
    def backoff(self) -> Backoff:
        """Strategy object computing each delay."""
        return backoff_for(self)

    def merge(self, **options: object) -> Self:
        """Return a validated copy with ``options`` overriding current values."""
        if not options:
            return self
        current = {name: getattr(self, name) for name in type(self).model_fields}
        return type(self)(**{**current, **options})

    @classmethod
    def from_settings(cls, settings: BackoffkitSettings | None = None, **overrides: object) -> Self:
        """Build a config whose defaults come from environment settings."""
        retry = (settings or get_settings()).retry
        return cls(**{**retry.model_dump(), **overrides})
