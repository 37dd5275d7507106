from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest

from datadog_json_logger.mapping.time_utils import epoch_to_dt, format_timestamp
from datadog_json_logger.models.log_entry import LogEntry, Severity


@pytest.mark.parametrize(
    "level,expected",
    [
        (logging.DEBUG, Severity.DEBUG),
        (logging.INFO, Severity.INFO),
        (logging.WARNING, Severity.WARN),
        (logging.ERROR, Severity.ERROR),
        (logging.CRITICAL, Severity.FATAL),
        (25, Severity.INFO),
        (5, Severity.UNKNOWN),
    ],
)
def test_severity_from_level(level, expected):
    assert Severity.from_level(level) is expected


def test_severity_parse_is_lenient():
    assert Severity.parse("warning") is Severity.WARN
    assert Severity.parse("critical") is Severity.FATAL
    assert Severity.parse(" info ") is Severity.INFO
    assert Severity.parse(40) is Severity.ERROR
    assert Severity.parse("verbose") is Severity.UNKNOWN


def test_naive_time_is_treated_as_utc():
    entry = LogEntry(time=datetime(2025, 1, 1, 12, 0), pid=1)
    assert entry.time.tzinfo == timezone.utc
    assert entry.named_fields()["time"] == "2025-01-01T12:00:00.000000+00:00"


def test_aware_time_is_converted_to_utc():
    tz = timezone(timedelta(hours=2))
    entry = LogEntry(time=datetime(2025, 1, 1, 12, 0, tzinfo=tz), pid=1)
    assert format_timestamp(entry.time) == "2025-01-01T10:00:00.000000+00:00"


def test_epoch_seconds_to_utc():
    assert epoch_to_dt(1_700_000_000) == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
    assert epoch_to_dt(1_700_000_000.5).microsecond == 500000


def test_named_fields():
    entry = LogEntry(
        time=datetime(2025, 1, 1, tzinfo=timezone.utc),
        severity="error",
        message=ValueError("x"),
        progname="svc",
        pid=3,
        attributes={"a": 1},
    )
    fields = entry.named_fields()
    assert fields["severity"] == "ERROR"
    assert isinstance(fields["message"], ValueError)
    assert fields["progname"] == "svc"
    assert fields["pid"] == 3
