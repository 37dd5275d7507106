"""Pydantic model for a single structured log entry before Datadog mapping.

A `LogEntry` is created per log call (either from a stdlib `logging.LogRecord`
or from a JSON line read by the CLI) and handed to the entry formatter and the
attribute mapper. The `message` is intentionally untyped: callers may log
exceptions, dicts or any other object and the formatter decides how it is
rendered.
"""
from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..mapping.time_utils import ensure_utc, format_timestamp


class Severity(str, Enum):
    """Log severities as emitted in the Datadog `status` field."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    FATAL = "FATAL"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_level(cls, levelno: int) -> "Severity":
        """Map a stdlib logging level number to a severity.

        Custom levels between the standard ones round down to the closest
        standard level; anything below DEBUG is UNKNOWN.
        """
        if levelno >= logging.CRITICAL:
            return cls.FATAL
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARN
        if levelno >= logging.INFO:
            return cls.INFO
        if levelno >= logging.DEBUG:
            return cls.DEBUG
        return cls.UNKNOWN

    @classmethod
    def parse(cls, value: Any) -> "Severity":
        """Lenient parse used for CLI input (`warning`, `critical`, level ints)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return cls.from_level(value)
        text = str(value).strip().upper()
        aliases = {"WARNING": "WARN", "CRITICAL": "FATAL"}
        text = aliases.get(text, text)
        try:
            return cls(text)
        except ValueError:
            return cls.UNKNOWN


class LogEntry(BaseModel):
    """One log call: the five standard fields plus the attribute bag."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    time: datetime
    severity: Severity = Severity.UNKNOWN
    message: Any = None
    progname: Optional[str] = None
    pid: int
    attributes: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("time", mode="after")
    @classmethod
    def _utc_time(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @field_validator("severity", mode="before")
    @classmethod
    def _lenient_severity(cls, v: Any) -> Severity:
        return Severity.parse(v)

    def named_fields(self) -> Dict[str, Any]:
        """Return the standard fields keyed by their mapping rule names."""
        return {
            "time": format_timestamp(self.time),
            "severity": self.severity.value,
            "message": self.message,
            "progname": self.progname,
            "pid": self.pid,
        }
