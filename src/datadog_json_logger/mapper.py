"""Public facade for Datadog log entry mapping.

This module provides the stable public API for turning a `LogEntry` into a
Datadog-conventional JSON object. The rule evaluation, exception expansion
and duration normalization live in the `datadog_json_logger.mapping` package.

Public Functions:
    build_mapping: Build the immutable rule set (configuration time)
    format_entry: Rewrite message/attributes (exceptions, durations)
    apply_mapping: Evaluate a rule set against one entry's fields
    map_entry: format_entry + apply_mapping for a `LogEntry`
    serialize_entry: Render a mapped entry as a JSON document
    mapping_from_config: build_mapping driven by a `DatadogConfig`
"""
from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Tuple

from .config import DatadogConfig
from .mapping.attribute_mapper import apply_mapping
from .mapping.builder import STANDARD_ATTRIBUTE_MAPPING, PidMode, build_mapping
from .mapping.entry_formatter import EntryFormatter
from .mapping.rules import AttributeMapping, ConfigurationError, MappingRule, RuleKind
from .mapping.time_utils import format_timestamp
from .models.log_entry import LogEntry

__all__ = [
    "AttributeMapping",
    "ConfigurationError",
    "EntryFormatter",
    "MappingRule",
    "PidMode",
    "RuleKind",
    "STANDARD_ATTRIBUTE_MAPPING",
    "apply_mapping",
    "build_mapping",
    "format_entry",
    "map_entry",
    "mapping_from_config",
    "serialize_entry",
]

_DEFAULT_FORMATTER = EntryFormatter()


def format_entry(
    message: Any,
    attributes: Optional[Mapping[str, Any]],
    formatter: Optional[EntryFormatter] = None,
) -> Tuple[Any, Dict[str, Any]]:
    """Rewrite an entry's message and attributes before mapping.

    Args:
        message: Raw logged message (may be an exception or any object).
        attributes: Attribute bag; not mutated.
        formatter: Configured formatter (backtrace cleaner etc.); defaults to
            one with no cleaner.

    Returns:
        `(message, attributes)` with exceptions expanded and durations in ns.
    """
    return (formatter or _DEFAULT_FORMATTER).format(message, attributes)


def map_entry(
    entry: LogEntry,
    mapping: AttributeMapping,
    formatter: Optional[EntryFormatter] = None,
) -> Dict[str, Any]:
    """Convert a `LogEntry` into the Datadog JSON object."""
    message, attributes = format_entry(entry.message, entry.attributes, formatter)
    named_fields = entry.named_fields()
    named_fields["message"] = message
    return apply_mapping(mapping, named_fields, attributes)


def mapping_from_config(config: DatadogConfig) -> AttributeMapping:
    return build_mapping(
        pid=config.pid,
        attribute_mapping=config.attribute_mapping,
        allow_all_attributes=config.allow_all_attributes,
        max_message_length=config.max_message_length,
    )


def _json_default(obj: Any) -> Any:
    """Fallback for values `json` cannot encode: never raises."""
    if isinstance(obj, datetime):
        return format_timestamp(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    if isinstance(obj, bytes):
        return obj.decode("utf-8", errors="replace")
    try:
        return repr(obj)
    except Exception:
        return f"<unrepresentable {type(obj).__name__}>"


def serialize_entry(payload: Mapping[str, Any], pretty: bool = False) -> str:
    """Render a mapped entry as one JSON document (multi-line when pretty)."""
    return json.dumps(
        payload,
        ensure_ascii=False,
        default=_json_default,
        indent=2 if pretty else None,
    )
