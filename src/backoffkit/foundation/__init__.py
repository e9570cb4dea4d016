"""Foundation layer: error types and configuration."""

from .config import (
    BackoffkitSettings,
    LoggingSettings,
    RetrySettings,
    clear_settings_cache,
    get_settings,
)
from .errors import BackoffError, CancellationFault, FaultKind, fault_kind

__all__ = [
    # Errors
    "BackoffError", "CancellationFault", "FaultKind", "fault_kind",
    # Config
    "BackoffkitSettings", "LoggingSettings", "RetrySettings", "clear_settings_cache", "get_settings",
]
