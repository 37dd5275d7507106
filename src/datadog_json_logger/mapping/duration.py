"""Normalize duration attributes to Datadog's `duration` in nanoseconds.

Source attributes and factors:
    duration          seconds       x 1_000_000_000
    duration_ms       milliseconds  x 1_000_000
    duration_micros   microseconds  x 1_000
    duration_ns       nanoseconds   truncated toward zero, no rounding

Converted values are rounded half away from zero. Arithmetic goes through
`Decimal(str(value))` so `1.1` seconds is exactly 1_100_000_000 ns rather than
whatever binary float multiplication yields.
"""
from __future__ import annotations

import logging
import math
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation, Overflow
from numbers import Real
from typing import Any, Dict, Optional

__all__ = ["DURATION_UNITS", "DURATION_KEY", "is_duration_attribute", "to_nanoseconds"]

logger = logging.getLogger(__name__)

DURATION_KEY = "duration"

# None marks the attribute that is already in nanoseconds.
DURATION_UNITS: Dict[str, Optional[int]] = {
    "duration": 1_000_000_000,
    "duration_ms": 1_000_000,
    "duration_micros": 1_000,
    "duration_ns": None,
}

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def is_duration_attribute(name: str) -> bool:
    return name in DURATION_UNITS


def _as_decimal(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, Real):
        number = float(value)
        if not math.isfinite(number):
            return None
        return Decimal(repr(number))
    if isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            return None
        return parsed if parsed.is_finite() else None
    return None


def to_nanoseconds(name: str, value: Any) -> Optional[int]:
    """Convert a duration attribute value to integer nanoseconds.

    Args:
        name: One of the `DURATION_UNITS` keys.
        value: Numeric value (int, float, Decimal or numeric string).

    Returns:
        Nanoseconds as int, or None when the value is not a finite number or
        the result does not fit Datadog's signed 64-bit `duration`.
    """
    number = _as_decimal(value)
    if number is None:
        logger.debug("Duration attribute %s=%r is not numeric; left unchanged", name, value)
        return None
    factor = DURATION_UNITS[name]
    try:
        if factor is None:
            nanos = number.to_integral_value(rounding=ROUND_DOWN)
        else:
            nanos = (number * factor).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    except (InvalidOperation, Overflow):
        nanos = None
    if nanos is None or not _INT64_MIN <= nanos <= _INT64_MAX:
        logger.debug("Duration attribute %s=%r is out of range; left unchanged", name, value)
        return None
    return int(nanos)
