"""Apply an `AttributeMapping` to one entry's named fields and attributes.

Evaluation order:
    1. Standard fields (time, severity, message, progname, pid) in that order,
       each only when a rule exists for it and its value is not None.
    2. Attributes in caller insertion order. An explicit rule wins; otherwise
       the wildcard rule (if installed) writes the attribute at the root under
       its own dotted name; otherwise the attribute is dropped.

Nested writes always merge into existing objects so two rules targeting
`["usr", "id"]` and `["usr", "name"]` coexist. Nothing in here raises for data
shape reasons: a failing user transform is logged and its field dropped.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence, Set, Tuple

from .rules import STANDARD_FIELDS, AttributeMapping, MappingRule, RuleKind, split_path

__all__ = ["apply_mapping", "set_path", "deep_merge", "RECURSIVE_PLACEHOLDER"]

logger = logging.getLogger(__name__)

RECURSIVE_PLACEHOLDER = "{...}"


def set_path(output: Dict[str, Any], path: Sequence[str], value: Any) -> None:
    """Write `value` at `path`, creating or reusing intermediate objects.

    A non-dict value sitting on an intermediate segment is replaced by an
    object. Mapping values are copied in and merged with any object already
    at the leaf, so caller-owned dicts are never mutated later.
    """
    node = output
    for segment in path[:-1]:
        child = node.get(segment)
        if not isinstance(child, dict):
            child = {}
            node[segment] = child
        node = child
    leaf = path[-1]
    if isinstance(value, Mapping):
        if not isinstance(node.get(leaf), dict):
            node[leaf] = {}
        deep_merge(node[leaf], value)
    else:
        node[leaf] = value


def deep_merge(
    output: Dict[str, Any],
    partial: Mapping[str, Any],
    _active: Optional[Set[int]] = None,
) -> None:
    """Merge `partial` into `output` in place, recursing into shared objects.

    A mapping that contains itself is cut at the repeated object, written as
    `"{...}"` the way `repr` renders it.
    """
    active = set() if _active is None else _active
    active.add(id(partial))
    for key, value in partial.items():
        key = str(key)
        existing = output.get(key)
        if isinstance(value, Mapping):
            if id(value) in active:
                output[key] = RECURSIVE_PLACEHOLDER
                continue
            if not isinstance(existing, dict):
                existing = output[key] = {}
            deep_merge(existing, value, active)
        else:
            output[key] = value
    active.discard(id(partial))


def _apply_rule(output: Dict[str, Any], name: str, rule: MappingRule, value: Any) -> None:
    if rule.kind is RuleKind.CONSTANT_PATH:
        set_path(output, rule.path, value)
    elif rule.kind is RuleKind.PASSTHROUGH:
        set_path(output, split_path(name), value)
    elif rule.kind is RuleKind.TRANSFORM:
        try:
            result = rule.transform(value)
        except Exception:
            logger.warning("Mapping transform for %r failed; field dropped", name, exc_info=True)
            return
        if isinstance(result, Mapping):
            deep_merge(output, result)
        else:
            set_path(output, split_path(name), result)
    # WILDCARD rules never match a single name; explicit_rule() filters them.


def _leaf_paths(obj: Mapping[str, Any], prefix: Tuple[str, ...] = ()) -> Iterator[Tuple[str, ...]]:
    for key, value in obj.items():
        path = prefix + (key,)
        if isinstance(value, dict) and value:
            yield from _leaf_paths(value, path)
        else:
            yield path


def _overlaps(a: Tuple[str, ...], b: Tuple[str, ...]) -> bool:
    n = min(len(a), len(b))
    return a[:n] == b[:n]


def apply_mapping(
    mapping: AttributeMapping,
    named_fields: Mapping[str, Any],
    attributes: Mapping[str, Any],
) -> Dict[str, Any]:
    """Produce the JSON-ready Datadog object for one entry.

    Args:
        mapping: Rule set from `build_mapping`.
        named_fields: Standard field values keyed by `STANDARD_FIELDS` names.
        attributes: Attribute bag (already rewritten by the entry formatter).

    Returns:
        A new dict; inputs are never mutated.
    """
    output: Dict[str, Any] = {}

    for name in STANDARD_FIELDS:
        rule = mapping.explicit_rule(name)
        if rule is None:
            continue
        value = named_fields.get(name)
        if value is None:
            continue
        _apply_rule(output, name, rule, value)
    reserved = list(_leaf_paths(output))

    for name, value in attributes.items():
        name = str(name)
        rule = None if name in STANDARD_FIELDS else mapping.explicit_rule(name)
        if rule is not None:
            _apply_rule(output, name, rule, value)
        elif mapping.allows_all_attributes:
            path = split_path(name)
            if any(_overlaps(path, leaf) for leaf in reserved):
                logger.debug("Attribute %r collides with a standard field; dropped", name)
                continue
            set_path(output, path, value)
        else:
            logger.debug("Attribute %r has no mapping rule; dropped", name)

    return output
