"""Timestamp conversion and timezone normalization for UTC enforcement.

All timestamps emitted under the Datadog `timestamp` field are timezone-aware
UTC rendered as ISO-8601 with microsecond precision. Naive datetimes are
assumed to already be UTC.

Public Functions:
    epoch_to_dt: Convert epoch seconds (float, as on `LogRecord.created`) to UTC
    ensure_utc: Attach or convert tzinfo so a datetime is UTC-aware
    format_timestamp: Render a datetime as the ISO-8601 string Datadog parses
"""
from __future__ import annotations

from datetime import datetime, timezone

__all__ = ["epoch_to_dt", "ensure_utc", "format_timestamp"]


def epoch_to_dt(seconds: float) -> datetime:
    """Convert epoch seconds to a timezone-aware UTC datetime."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """Render `dt` as ISO-8601 UTC with microseconds (e.g. 2025-01-02T03:04:05.000006+00:00)."""
    return ensure_utc(dt).isoformat(timespec="microseconds")
