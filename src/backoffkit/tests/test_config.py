"""Tests for BackoffConfig validation and environment settings."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from pydantic import ValidationError

from backoffkit import BackoffConfig, BackoffStrategy, CancellationToken, clear_settings_cache, get_settings
from backoffkit.foundation.config import LoggingSettings, RetrySettings


@pytest.fixture(autouse=True)
def fresh_settings() -> Iterator[None]:
    clear_settings_cache()
    yield
    clear_settings_cache()


# ═════════════════════════════════════════════════════════════════════════════
# BackoffConfig
# ═════════════════════════════════════════════════════════════════════════════


def test_defaults() -> None:
    config = BackoffConfig()
    assert config.max_attempts == 6
    assert config.delay == 0.02
    assert config.delay_factor == 4.0
    assert config.jitter == 0.0
    assert config.strategy is BackoffStrategy.EXPONENTIAL
    assert config.is_retryable is None
    assert config.on_retry is None
    assert config.signal is None
    assert config.max_retries == 5


@pytest.mark.parametrize("field,value", [
    ("max_attempts", 0),
    ("max_attempts", -1),
    ("delay", -0.1),
    ("delay_factor", -2.0),
    ("jitter", 1.5),
    ("jitter", -0.1),
    ("strategy", "fibonacci"),
])
def test_invalid_values_rejected(field: str, value: object) -> None:
    with pytest.raises(ValidationError):
        BackoffConfig(**{field: value})


def test_unknown_option_rejected() -> None:
    with pytest.raises(ValidationError):
        BackoffConfig(retries=3)  # type: ignore[call-arg]


def test_strategy_case_insensitive() -> None:
    assert BackoffConfig(strategy="LINEAR").strategy is BackoffStrategy.LINEAR
    assert BackoffConfig(strategy="Exponential").strategy is BackoffStrategy.EXPONENTIAL


def test_frozen() -> None:
    config = BackoffConfig()
    with pytest.raises(ValidationError):
        config.max_attempts = 3  # type: ignore[misc]


def test_merge_overrides_and_keeps_callbacks() -> None:
    token = CancellationToken()
    predicate = lambda _: True  # noqa: E731
    config = BackoffConfig(max_attempts=3, is_retryable=predicate, signal=token)

    merged = config.merge(delay=1.5)
    assert merged.max_attempts == 3
    assert merged.delay == 1.5
    assert merged.is_retryable is predicate
    assert merged.signal is token
    assert config.delay == 0.02


def test_merge_without_options_returns_same_instance() -> None:
    config = BackoffConfig()
    assert config.merge() is config


def test_merge_validates() -> None:
    with pytest.raises(ValidationError):
        BackoffConfig().merge(jitter=2)


def test_dump_excludes_callables() -> None:
    dumped = BackoffConfig(is_retryable=lambda _: True).model_dump()
    assert "is_retryable" not in dumped
    assert "on_retry" not in dumped
    assert "signal" not in dumped
    assert dumped["max_retries"] == 5


def test_backoff_property() -> None:
    assert BackoffConfig(delay=2, delay_factor=3).backoff.delay(2) == 18


# ═════════════════════════════════════════════════════════════════════════════
# Settings
# ═════════════════════════════════════════════════════════════════════════════


def test_settings_defaults() -> None:
    settings = get_settings()
    assert settings.retry == RetrySettings()
    assert settings.logging.level == "INFO"
    assert settings.logging.format == "console"


def test_settings_cached() -> None:
    assert get_settings() is get_settings()


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BACKOFFKIT_RETRY_MAX_ATTEMPTS", "3")
    monkeypatch.setenv("BACKOFFKIT_RETRY_STRATEGY", "LINEAR")
    monkeypatch.setenv("BACKOFFKIT_LOG_LEVEL", "debug")
    clear_settings_cache()

    settings = get_settings()
    assert settings.retry.max_attempts == 3
    assert settings.retry.strategy == "linear"
    assert settings.logging.level == "DEBUG"


def test_invalid_environment_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BACKOFFKIT_LOG_FORMAT", "xml")
    with pytest.raises(ValidationError):
        LoggingSettings()


def test_from_settings_uses_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BACKOFFKIT_RETRY_MAX_ATTEMPTS", "2")
    monkeypatch.setenv("BACKOFFKIT_RETRY_DELAY", "0.5")
    clear_settings_cache()

    config = BackoffConfig.from_settings(delay_factor=2)
    assert config.max_attempts == 2
    assert config.delay == 0.5
    assert config.delay_factor == 2


@pytest.mark.asyncio
async def test_with_backoff_defaults_follow_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    from backoffkit import with_backoff

    monkeypatch.setenv("BACKOFFKIT_RETRY_MAX_ATTEMPTS", "2")
    monkeypatch.setenv("BACKOFFKIT_RETRY_DELAY", "0")
    clear_settings_cache()
    calls = {"count": 0}

    async def op() -> None:
        calls["count"] += 1
        raise ConnectionError("down")

    with pytest.raises(ConnectionError):
        await with_backoff(op, is_retryable=lambda _: True)
    assert calls["count"] == 2
