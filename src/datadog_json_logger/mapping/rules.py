"""Declarative mapping rules consumed by the attribute mapper.

A rule is keyed by a source name (one of the standard fields `time`,
`severity`, `message`, `progname`, `pid`, or any attribute name) and tells the
mapper where and how that value lands in the emitted JSON object.

Rule kinds:
    CONSTANT_PATH: write the value at a fixed path (one or more segments)
    PASSTHROUGH: write the value under its own (possibly dotted) name
    TRANSFORM: call a function; a dict result is merged at the root, any
        other result is written under the source name
    WILDCARD: merge every otherwise-unmapped attribute at the root

Design Invariants:
    - At most one WILDCARD rule per mapping.
    - Rules are validated when constructed; an unrecognized target is a
      `ConfigurationError`, never a per-call failure.
    - `AttributeMapping` is read-only after construction and safe to share
      across threads.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple

__all__ = [
    "ConfigurationError",
    "RuleKind",
    "MappingRule",
    "AttributeMapping",
    "STANDARD_FIELDS",
    "WILDCARD_KEY",
    "split_path",
]

STANDARD_FIELDS: Tuple[str, ...] = ("time", "severity", "message", "progname", "pid")
# Key under which the builder installs the wildcard rule.
WILDCARD_KEY = "attributes"


class ConfigurationError(ValueError):
    """Raised at setup time for invalid logger or mapping configuration."""


class RuleKind(str, Enum):
    CONSTANT_PATH = "constant_path"
    PASSTHROUGH = "passthrough"
    TRANSFORM = "transform"
    WILDCARD = "wildcard"


def split_path(name: str) -> Tuple[str, ...]:
    """Split a dotted name into path segments, ignoring empty segments.

    `"usr.id"` -> `("usr", "id")`; a name made only of dots is kept verbatim.
    """
    segments = tuple(part for part in name.split(".") if part)
    return segments or (name,)


@dataclass(frozen=True)
class MappingRule:
    """A single mapping instruction. Use the classmethods to construct."""

    kind: RuleKind
    path: Tuple[str, ...] = ()
    transform: Optional[Callable[[Any], Any]] = None

    @classmethod
    def constant_path(cls, target: Any) -> "MappingRule":
        if isinstance(target, str):
            if not target:
                raise ConfigurationError("mapping target path must not be empty")
            return cls(RuleKind.CONSTANT_PATH, path=split_path(target))
        segments = tuple(target)
        if not segments or not all(isinstance(s, str) and s for s in segments):
            raise ConfigurationError(
                f"nested mapping target must be a non-empty sequence of names, got {target!r}"
            )
        return cls(RuleKind.CONSTANT_PATH, path=segments)

    @classmethod
    def passthrough(cls) -> "MappingRule":
        return cls(RuleKind.PASSTHROUGH)

    @classmethod
    def from_callable(cls, func: Callable[[Any], Any]) -> "MappingRule":
        if not callable(func):
            raise ConfigurationError(f"transform must be callable, got {func!r}")
        return cls(RuleKind.TRANSFORM, transform=func)

    @classmethod
    def wildcard(cls) -> "MappingRule":
        return cls(RuleKind.WILDCARD)

    @classmethod
    def coerce(cls, target: Any) -> "MappingRule":
        """Build a rule from a user-facing override value.

        Accepted values: an existing `MappingRule`, a string (dotted strings
        are nested paths), a list/tuple of strings, `True` (passthrough), or a
        callable (transform).

        Raises:
            ConfigurationError: for any other value.
        """
        if isinstance(target, MappingRule):
            return target
        if target is True:
            return cls.passthrough()
        if isinstance(target, str):
            return cls.constant_path(target)
        if isinstance(target, (list, tuple)):
            return cls.constant_path(target)
        if callable(target):
            return cls.from_callable(target)
        raise ConfigurationError(
            f"unsupported mapping target {target!r}; expected a name, a list of names, "
            "True, or a callable"
        )

    def describe(self) -> str:
        """Short human-readable form used by the CLI `show-mapping` command."""
        if self.kind is RuleKind.CONSTANT_PATH:
            return ".".join(self.path)
        if self.kind is RuleKind.TRANSFORM:
            name = getattr(self.transform, "__qualname__", None) or repr(self.transform)
            return f"<transform {name}>"
        if self.kind is RuleKind.WILDCARD:
            return "*"
        return "<passthrough>"


class AttributeMapping(Mapping[str, MappingRule]):
    """Immutable rule set keyed by source name."""

    __slots__ = ("_rules", "_wildcard")

    def __init__(self, rules: Mapping[str, Any]):
        coerced: Dict[str, MappingRule] = {}
        wildcard_keys = []
        for key, target in rules.items():
            rule = MappingRule.coerce(target)
            if rule.kind is RuleKind.WILDCARD:
                wildcard_keys.append(key)
            coerced[str(key)] = rule
        if len(wildcard_keys) > 1:
            raise ConfigurationError(
                f"only one wildcard attribute rule is allowed, found {wildcard_keys}"
            )
        self._rules = MappingProxyType(coerced)
        self._wildcard = bool(wildcard_keys)

    def __getitem__(self, key: str) -> MappingRule:
        return self._rules[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={r.describe()}" for k, r in self._rules.items())
        return f"AttributeMapping({inner})"

    @property
    def allows_all_attributes(self) -> bool:
        return self._wildcard

    def explicit_rule(self, name: str) -> Optional[MappingRule]:
        """Return the non-wildcard rule for `name`, if any."""
        rule = self._rules.get(name)
        if rule is None or rule.kind is RuleKind.WILDCARD:
            return None
        return rule
