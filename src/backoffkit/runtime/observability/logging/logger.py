"""Structured logging for retry observers.

Loggers are immutable: ``bind()`` returns a new logger with merged context.
Entries go to a pluggable renderer: key=value lines on a console, JSON Lines
for aggregation, or nowhere.

Quick Start:
    >>> from backoffkit.runtime.observability import get_logger, configure_logging
    >>>
    >>> configure_logging(format="json")
    >>> log = get_logger("billing", service="invoices")
    >>> log.warning("retrying operation", attempt=2)
"""

from __future__ import annotations

import logging
import sys
import time
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol, TextIO, Union, runtime_checkable

import orjson

if TYPE_CHECKING:
    from types import TracebackType

JsonValue = Union[str, int, float, bool, None, list[Any], dict[str, Any]]
JsonDict = dict[str, Any]

# Scoped fields; follows async calls
_log_context: ContextVar[JsonDict] = ContextVar("log_context", default={})


@dataclass(slots=True)
class LogEntry:
    """One rendered record."""

    timestamp: float
    level: str
    event: str
    context: JsonDict

    @property
    def when(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=UTC)


@runtime_checkable
class LogRenderer(Protocol):
    def render(self, entry: LogEntry) -> None: ...


@dataclass(slots=True)
class BoundLogger:
    """Logger carrying bound context, filtered at ``_level``.

    Context precedence on each entry: scoped (``log_context``) < bound < call-site.
    """

    context: JsonDict = field(default_factory=dict)
    _renderer: LogRenderer | None = None
    _level: int = logging.DEBUG

    def bind(self, **kw: JsonValue) -> BoundLogger:
        return BoundLogger({**self.context, **kw}, self._renderer, self._level)

    def log(self, level: int | str, event: str, **kw: JsonValue) -> None:
        """Log at a numeric level or a level name ("debug", "warning", ...)."""
        number = level if isinstance(level, int) else _level_number(level)
        if number < self._level:
            return
        entry = LogEntry(time.time(), logging.getLevelName(number).lower(), event,
                         {**_log_context.get(), **self.context, **kw})
        (self._renderer or _get_renderer()).render(entry)

    def debug(self, event: str, **kw: JsonValue) -> None: self.log(logging.DEBUG, event, **kw)
    def info(self, event: str, **kw: JsonValue) -> None: self.log(logging.INFO, event, **kw)
    def warning(self, event: str, **kw: JsonValue) -> None: self.log(logging.WARNING, event, **kw)
    def error(self, event: str, **kw: JsonValue) -> None: self.log(logging.ERROR, event, **kw)


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────


_LEVEL_STYLES = {"debug": "\033[2m", "info": "\033[32m", "warning": "\033[33m", "error": "\033[31m"}
_RESET = "\033[0m"


@dataclass(slots=True)
class ConsoleRenderer:
    """``HH:MM:SS.mmm [level] event key=value ...`` lines, level tag colored on a tty."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None  # None = auto-detect
    show_timestamp: bool = True

    def __post_init__(self) -> None:
        if self.colors is None:
            self.colors = getattr(self.output, "isatty", lambda: False)()

    def render(self, entry: LogEntry) -> None:
        tag = f"[{entry.level}]"
        if self.colors and entry.level in _LEVEL_STYLES:
            tag = f"{_LEVEL_STYLES[entry.level]}{tag}{_RESET}"
        parts = [entry.when.strftime("%H:%M:%S.%f")[:-3]] if self.show_timestamp else []
        parts += [tag, entry.event, *(f"{k}={_console_value(v)}" for k, v in sorted(entry.context.items()))]
        print(" ".join(parts), file=self.output)


@dataclass(slots=True)
class JsonRenderer:
    """JSON Lines output; values orjson can't encode are stringified."""

    output: TextIO = field(default_factory=lambda: sys.stdout)

    def render(self, entry: LogEntry) -> None:
        record = {"timestamp": entry.when.isoformat(), "level": entry.level, "event": entry.event, **entry.context}
        print(orjson.dumps(record, option=orjson.OPT_NON_STR_KEYS, default=str).decode(), file=self.output)


@dataclass(slots=True)
class NoOpRenderer:
    """Discards everything."""

    def render(self, entry: LogEntry) -> None:
        pass


# ─────────────────────────────────────────────────────────────────────────────
# Global Configuration
# ─────────────────────────────────────────────────────────────────────────────


_renderer: ContextVar[LogRenderer | None] = ContextVar("log_renderer", default=None)
_default_level: ContextVar[int] = ContextVar("log_level", default=logging.INFO)


def configure_logging(
    format: str | None = None,  # noqa: A002
    level: str | None = None,
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Install the renderer and level used by ``get_logger`` loggers.

    Args:
        format: "console", "json" or "none" (default: BACKOFFKIT_LOG_FORMAT)
        level: Minimum level name (default: BACKOFFKIT_LOG_LEVEL)
        output: Stream to write to (console: stderr, json: stdout)
        colors: Force console colors on or off (default: tty detection)

    Raises:
        ValueError: Unknown format or level
    """
    if format is None or level is None:
        from backoffkit.foundation.config import get_settings
        settings = get_settings().logging
        format, level = format or settings.format, level or settings.level
    match format:
        case "console": renderer: LogRenderer = ConsoleRenderer(output=output or sys.stderr, colors=colors)
        case "json": renderer = JsonRenderer(output=output or sys.stdout)
        case "none": renderer = NoOpRenderer()
        case _: raise ValueError(f"Unknown format: {format}. Use 'console', 'json', or 'none'")
    _default_level.set(_level_number(level))
    _renderer.set(renderer)
    return renderer


def get_logger(name: str | None = None, **initial_context: JsonValue) -> BoundLogger:
    """Logger at the configured level; ``name`` is bound as ``logger``."""
    ctx = {**initial_context, **({"logger": name} if name else {})}
    return BoundLogger(context=ctx, _level=_default_level.get())


def _get_renderer() -> LogRenderer:
    if (renderer := _renderer.get()) is None:
        _renderer.set(renderer := ConsoleRenderer())
    return renderer


class log_context:
    """Add fields to every entry logged inside the ``with`` block."""

    __slots__ = ("_ctx", "_token")

    def __init__(self, **kw: JsonValue) -> None:
        self._ctx: JsonDict = dict(kw)
        self._token: object | None = None

    def __enter__(self) -> log_context:
        self._token = _log_context.set({**_log_context.get(), **self._ctx})
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None,
                 exc_tb: TracebackType | None) -> None:
        if self._token is not None:
            _log_context.reset(self._token)  # type: ignore[arg-type]


def _level_number(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def _console_value(v: object) -> str:
    match v:
        case bool(): return str(v).lower()
        case str(): return f'"{v}"'
        case _: return str(v)
