"""Datadog-conventional JSON logging for the stdlib `logging` module.

Maps log entries (message, severity, timestamp, pid, attributes) to Datadog's
reserved attribute names, expands exceptions into `error.kind/message/stack`,
and normalizes duration attributes to nanoseconds.
"""

from .config import ConfigurationError, DatadogConfig, PidMode
from .logger import DatadogHandler, DatadogJsonFormatter, setup
from .mapper import apply_mapping, build_mapping, format_entry, map_entry, serialize_entry
from .models.log_entry import LogEntry, Severity

__all__ = [
    "ConfigurationError",
    "DatadogConfig",
    "DatadogHandler",
    "DatadogJsonFormatter",
    "LogEntry",
    "PidMode",
    "Severity",
    "apply_mapping",
    "build_mapping",
    "format_entry",
    "map_entry",
    "serialize_entry",
    "setup",
]
