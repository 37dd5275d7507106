"""Build the Datadog attribute mapping for a logger configuration.

The standard mapping follows Datadog's reserved attribute names:

    time      -> timestamp
    severity  -> status
    progname  -> logger.name
    pid       -> pid
    message   -> message (optionally truncated)

Caller overrides are merged on top (override wins), then the wildcard rule is
installed when all attributes are allowed. The result is immutable and is
built once per logger; building twice from the same arguments yields mappings
that apply identically.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .id_utils import global_pid
from .rules import WILDCARD_KEY, AttributeMapping, ConfigurationError, MappingRule

__all__ = [
    "PidMode",
    "STANDARD_ATTRIBUTE_MAPPING",
    "ELLIPSIS",
    "build_mapping",
    "truncate_message",
]

logger = logging.getLogger(__name__)

STANDARD_ATTRIBUTE_MAPPING: Mapping[str, Any] = {
    "time": "timestamp",
    "severity": "status",
    "progname": ("logger", "name"),
    "pid": "pid",
}

ELLIPSIS = "…"


class PidMode(str, Enum):
    INCLUDED = "included"
    EXCLUDED = "excluded"
    GLOBAL = "global"

    @classmethod
    def coerce(cls, value: Union["PidMode", bool, str, None]) -> "PidMode":
        """Accept `True`/`False`/`"global"` as well as the enum values."""
        if isinstance(value, cls):
            return value
        if value is True or value is None:
            return cls.INCLUDED
        if value is False:
            return cls.EXCLUDED
        if isinstance(value, str):
            text = value.strip().lower()
            if text in ("true", "1", "yes", "on"):
                return cls.INCLUDED
            if text in ("false", "0", "no", "off"):
                return cls.EXCLUDED
            try:
                return cls(text)
            except ValueError:
                pass
        raise ConfigurationError(f"pid must be True, False or 'global', got {value!r}")


def truncate_message(message: Any, max_length: int) -> str:
    """Render `message` as text and cap it at `max_length` characters.

    Non-string messages use their `repr()`. Longer text keeps the first
    `max_length - 1` characters followed by a single ellipsis character, so the
    result is exactly `max_length` long. Applying it twice is a no-op.
    """
    text = message if isinstance(message, str) else repr(message)
    if len(text) > max_length:
        text = text[: max_length - 1] + ELLIPSIS
    return text


def _truncate_message_transformer(max_length: int) -> Callable[[Any], Dict[str, str]]:
    def _transform(message: Any) -> Dict[str, str]:
        return {"message": truncate_message(message, max_length)}

    _transform.__qualname__ = f"truncate_message[{max_length}]"
    return _transform


def _global_pid_transformer(provider: Callable[[int], Any]) -> Callable[[Any], Dict[str, Any]]:
    def _transform(pid: Any) -> Dict[str, Any]:
        return {"pid": provider(pid)}

    _transform.__qualname__ = "global_pid"
    return _transform


def build_mapping(
    pid: Union[PidMode, bool, str] = PidMode.INCLUDED,
    attribute_mapping: Optional[Mapping[str, Any]] = None,
    allow_all_attributes: bool = True,
    max_message_length: Optional[int] = None,
    *,
    global_pid_provider: Callable[[int], Any] = global_pid,
) -> AttributeMapping:
    """Build the immutable Datadog mapping.

    Args:
        pid: Include the OS pid, exclude it, or emit a host-qualified global pid.
        attribute_mapping: Overrides keyed by field/attribute name. Values may be
            a name (dotted for nesting), a list of names, `True`, or a callable
            returning a scalar or a dict to merge at the root.
        allow_all_attributes: Install the wildcard rule so unmapped attributes
            are written at the root.
        max_message_length: Truncate messages longer than this many characters.
        global_pid_provider: Capability used for `pid="global"`.

    Returns:
        AttributeMapping ready for `apply_mapping`.

    Raises:
        ConfigurationError: invalid pid mode, message length or override target.
    """
    pid_mode = PidMode.coerce(pid)
    if max_message_length is not None and (
        isinstance(max_message_length, bool)
        or not isinstance(max_message_length, int)
        or max_message_length <= 0
    ):
        raise ConfigurationError("max_message_length must be a positive integer")

    rules: Dict[str, Any] = dict(STANDARD_ATTRIBUTE_MAPPING)
    if pid_mode is PidMode.GLOBAL:
        rules["pid"] = MappingRule.from_callable(_global_pid_transformer(global_pid_provider))
    elif pid_mode is PidMode.EXCLUDED:
        del rules["pid"]

    for key, target in (attribute_mapping or {}).items():
        rules[str(key)] = MappingRule.coerce(target)

    if allow_all_attributes:
        rules[WILDCARD_KEY] = MappingRule.wildcard()

    if max_message_length is None:
        rules["message"] = MappingRule.passthrough()
    else:
        rules["message"] = MappingRule.from_callable(
            _truncate_message_transformer(max_message_length)
        )

    mapping = AttributeMapping(rules)
    logger.debug("Built Datadog attribute mapping %r", mapping)
    return mapping
