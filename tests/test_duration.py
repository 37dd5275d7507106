from __future__ import annotations

from decimal import Decimal

import pytest

from datadog_json_logger.mapper import format_entry
from datadog_json_logger.mapping.duration import to_nanoseconds


@pytest.mark.parametrize(
    "name,value,expected",
    [
        ("duration", 1.1, 1_100_000_000),
        ("duration", 1.5, 1_500_000_000),
        ("duration_ms", 1.1, 1_100_000),
        ("duration_ms", 1500, 1_500_000_000),
        ("duration_micros", 1.1, 1_100),
        ("duration_micros", 1500, 1_500_000),
        ("duration_ns", 1.1, 1),
        ("duration_ns", 1_500_000_000, 1_500_000_000),
    ],
)
def test_unit_conversion(name, value, expected):
    assert to_nanoseconds(name, value) == expected


def test_rounds_half_away_from_zero():
    assert to_nanoseconds("duration_micros", 0.0005) == 1
    assert to_nanoseconds("duration_micros", -0.0005) == -1
    assert to_nanoseconds("duration_micros", 0.0004) == 0


def test_nanoseconds_truncate_toward_zero():
    assert to_nanoseconds("duration_ns", 1.9) == 1
    assert to_nanoseconds("duration_ns", -1.9) == -1


def test_numeric_strings_and_decimals():
    assert to_nanoseconds("duration_ms", "2.5") == 2_500_000
    assert to_nanoseconds("duration", Decimal("0.000000001")) == 1


@pytest.mark.parametrize("value", ["fast", None, True, float("nan"), float("inf"), [1]])
def test_non_numeric_values_return_none(value):
    assert to_nanoseconds("duration", value) is None


@pytest.mark.parametrize(
    "name,value",
    [
        ("duration", "9e999999"),
        ("duration_ms", Decimal("1e400")),
        ("duration_ns", "1e30"),
        ("duration", 10**12),
    ],
)
def test_out_of_range_values_return_none(name, value):
    assert to_nanoseconds(name, value) is None


def test_overflowing_duration_passes_through_format_entry():
    _, attributes = format_entry("x", {"duration": "9e999999"})
    assert attributes == {"duration": "9e999999"}
