"""Retryability predicates for common transient failures.

Errors are read structurally: attributes or mapping keys named ``code``,
``cause``, ``status``/``status_code``/``statusCode`` and ``response`` are
consulted wherever present, so exceptions from any HTTP or socket library
(and plain dicts) can be classified without importing that library.
"""

from __future__ import annotations

import errno
import re
import socket
from collections.abc import Mapping

# Errno names of transient network failures
NETWORK_ERROR_CODES: frozenset[str] = frozenset({
    "ECONNRESET",    # Connection reset by peer
    "ENOTFOUND",     # DNS lookup failed
    "ETIMEDOUT",     # Operation timed out
    "EPIPE",         # Broken pipe
    "ENETUNREACH",   # Network unreachable
    "ECONNABORTED",  # Connection aborted
    "ECONNREFUSED",  # Connection refused
    "ENETDOWN",      # Network is down
    "ENETRESET",     # Connection aborted by the network
    "EALREADY",      # Connection already in progress
    "EAI_AGAIN",     # DNS lookup temporarily failed
    "EHOSTUNREACH",  # Host unreachable
})

RETRYABLE_ERROR_MESSAGES: tuple[str, ...] = (
    "ECONNREFUSED",
    "ConnectionRefused",
    "SocksClient internal error (this should not happen)",
    "Client network socket disconnected before secure TLS connection was established",
    "Received invalid Socks5 initial handshake (invalid socks version)",
    "socket hang up",
    "Socks5 proxy rejected connection - ConnectionRefused",
)

_MESSAGE_PATTERN = re.compile("|".join(f"({re.escape(m)})" for m in RETRYABLE_ERROR_MESSAGES))

# getaddrinfo failures carry EAI_* numbers in errno
_GAI_CODES: dict[int, str] = {socket.EAI_AGAIN: "EAI_AGAIN", socket.EAI_NONAME: "ENOTFOUND"}


def _field(obj: object, *names: str) -> object:
    """First present, non-None attribute or mapping key among ``names``."""
    if obj is None:
        return None
    for name in names:
        value = obj.get(name) if isinstance(obj, Mapping) else getattr(obj, name, None)
        if value is not None:
            return value
    return None


def _code_of(obj: object) -> str | None:
    if obj is None:
        return None
    if isinstance(obj, socket.gaierror):
        return _GAI_CODES.get(obj.errno)  # type: ignore[arg-type]
    code = _field(obj, "code")
    if isinstance(code, str):
        return code
    num = _field(obj, "errno")
    return errno.errorcode.get(num) if isinstance(num, int) else None


def _cause_of(err: object) -> object:
    return _field(err, "cause") or getattr(err, "__cause__", None)


def is_network_error(err: object) -> bool:
    """Whether ``err`` (or its cause) carries a transient network error code.

    The cause's code takes precedence over the error's own code. OSError
    errno numbers and getaddrinfo failures are mapped to their names.

    Example:
        >>> err = Exception("fetch failed")
        >>> err.cause = {"code": "ECONNRESET"}
        >>> is_network_error(err)
        True
    """
    code = _code_of(_cause_of(err)) or _code_of(err)
    return code in NETWORK_ERROR_CODES


def _status_of(err: object) -> object:
    return (
        _field(err, "status_code", "statusCode", "status")
        or _field(_field(err, "response"), "status_code", "statusCode", "status")
    )


def is_internal_server_error(err: object) -> bool:
    """Whether ``err`` (or its response) carries an HTTP status >= 500.

    Matches e.g. ``httpx.HTTPStatusError`` via ``err.response.status_code``.
    """
    status = _status_of(err)
    return isinstance(status, int) and not isinstance(status, bool) and status >= 500


def _message_of(err: object) -> str:
    message = _field(err, "message")
    return message if isinstance(message, str) else str(err)


def is_connection_error_message(err: object) -> bool:
    """Whether the error message contains a known connection-failure phrase (case-sensitive)."""
    return _MESSAGE_PATTERN.search(_message_of(err)) is not None
