"""Rewrite an entry's message and attributes before attribute mapping.

Rules, applied once per log call:
    - An exception logged as the message becomes its `repr()`, and the raw
      exception is injected as the `error` attribute, unless some attribute
      already carries an exception value.
    - Every attribute whose value is exception-like is expanded in place into
      `{kind, message, stack, ...}` under its own key.
    - `duration`, `duration_ms`, `duration_micros` and `duration_ns` are
      converted to integer nanoseconds under the single key `duration`. When
      several are present the last one in attribute order wins.
    - Everything else passes through unchanged.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from .duration import DURATION_KEY, is_duration_attribute, to_nanoseconds
from .exception_extractor import BacktraceCleaner, ExceptionAttributeExtractor, is_error_like

__all__ = ["EntryFormatter", "ERROR_KEY"]

logger = logging.getLogger(__name__)

ERROR_KEY = "error"


class EntryFormatter:
    """Per-call message/attribute rewriter.

    Args:
        backtrace_cleaner: Passed to the exception extractor.
        additional_exception_attributes: Output key -> accessor name extracted
            from exceptions in addition to kind/message/stack.
    """

    def __init__(
        self,
        backtrace_cleaner: Optional[BacktraceCleaner] = None,
        additional_exception_attributes: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.exception_extractor = ExceptionAttributeExtractor(
            backtrace_cleaner=backtrace_cleaner,
            additional_attributes=additional_exception_attributes,
        )

    def format(self, message: Any, attributes: Optional[Mapping[str, Any]]) -> Tuple[Any, Dict[str, Any]]:
        """Return the rewritten `(message, attributes)`; inputs are not mutated."""
        source: Dict[str, Any] = dict(attributes or {})

        if is_error_like(message):
            if any(is_error_like(value) for value in source.values()):
                pass
            elif ERROR_KEY in source:
                logger.debug("Explicit %r attribute kept; exception message not expanded", ERROR_KEY)
            else:
                source[ERROR_KEY] = message
            message = repr(message)

        formatted: Dict[str, Any] = {}
        duration_source: Optional[str] = None
        for name, value in source.items():
            if is_error_like(value):
                formatted[name] = self.exception_extractor(value)
            elif is_duration_attribute(name):
                nanoseconds = to_nanoseconds(name, value)
                if nanoseconds is None:
                    formatted[name] = value
                    continue
                if duration_source is not None:
                    logger.debug(
                        "Duration attribute %s overrides %s (last one wins)", name, duration_source
                    )
                duration_source = name
                formatted.pop(DURATION_KEY, None)
                formatted[DURATION_KEY] = nanoseconds
            else:
                formatted[name] = value
        return message, formatted
