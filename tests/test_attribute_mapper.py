from __future__ import annotations

import json
import logging

from datadog_json_logger.mapper import serialize_entry
from datadog_json_logger.mapping.attribute_mapper import RECURSIVE_PLACEHOLDER, apply_mapping, set_path
from datadog_json_logger.mapping.builder import build_mapping
from datadog_json_logger.mapping.rules import AttributeMapping, MappingRule


def _fields(**overrides):
    fields = {
        "time": "2025-01-02T03:04:05.000000+00:00",
        "severity": "INFO",
        "message": "hello",
        "progname": "web",
        "pid": 4321,
    }
    fields.update(overrides)
    return fields


def test_standard_fields_use_datadog_names():
    out = apply_mapping(build_mapping(), _fields(), {})
    assert out == {
        "timestamp": "2025-01-02T03:04:05.000000+00:00",
        "status": "INFO",
        "message": "hello",
        "logger": {"name": "web"},
        "pid": 4321,
    }


def test_all_attributes_at_root_when_allowed():
    attrs = {"test": "value", "count": 3, "nested": {"a": 1}}
    out = apply_mapping(build_mapping(), _fields(), attrs)
    for key, value in attrs.items():
        assert out[key] == value


def test_only_standard_fields_when_attributes_not_allowed():
    out = apply_mapping(build_mapping(allow_all_attributes=False), _fields(), {"test": "value"})
    assert set(out) == {"timestamp", "status", "message", "logger", "pid"}


def test_explicit_rule_wins_over_wildcard():
    mapping = build_mapping(attribute_mapping={"foo": "qux"})
    out = apply_mapping(mapping, _fields(), {"test": "value", "foo": "bar"})
    assert out["test"] == "value"
    assert out["qux"] == "bar"
    assert "foo" not in out


def test_explicit_rule_applies_without_wildcard():
    mapping = build_mapping(allow_all_attributes=False, attribute_mapping={"foo": True})
    out = apply_mapping(mapping, _fields(), {"foo": "bar", "other": 1})
    assert out["foo"] == "bar"
    assert "other" not in out


def test_nested_targets_merge_without_clobbering():
    mapping = build_mapping(
        attribute_mapping={"user_id": ["usr", "id"], "user_name": "usr.name"}
    )
    out = apply_mapping(mapping, _fields(), {"user_id": 7, "user_name": "ann"})
    assert out["usr"] == {"id": 7, "name": "ann"}


def test_nested_target_merges_into_progname_object():
    mapping = build_mapping(attribute_mapping={"thread": ["logger", "thread_name"]})
    out = apply_mapping(mapping, _fields(), {"thread": "main"})
    assert out["logger"] == {"name": "web", "thread_name": "main"}


def test_wildcard_expands_dotted_attribute_names():
    out = apply_mapping(build_mapping(), _fields(), {"logger.thread_name": "worker-1"})
    assert out["logger"] == {"name": "web", "thread_name": "worker-1"}


def test_transform_returning_dict_is_merged():
    mapping = build_mapping(attribute_mapping={"test": lambda v: {"test": f"formatted_{v}"}})
    out = apply_mapping(mapping, _fields(), {"test": "value"})
    assert out["test"] == "formatted_value"


def test_transform_returning_scalar_uses_source_name():
    mapping = build_mapping(attribute_mapping={"code": lambda v: str(v).lower()})
    out = apply_mapping(mapping, _fields(), {"code": "ABC"})
    assert out["code"] == "abc"


def test_failing_transform_drops_field_and_logs(caplog):
    def boom(_value):
        raise RuntimeError("nope")

    mapping = build_mapping(attribute_mapping={"bad": boom})
    with caplog.at_level(logging.WARNING):
        out = apply_mapping(mapping, _fields(), {"bad": 1, "good": 2})
    assert "bad" not in out
    assert out["good"] == 2
    assert "bad" in caplog.text


def test_attributes_named_like_standard_fields_do_not_override():
    attrs = {"message": "sneaky", "time": "yesterday", "pid": 1, "logger": "x"}
    out = apply_mapping(build_mapping(), _fields(), attrs)
    assert out["message"] == "hello"
    assert out["timestamp"] == "2025-01-02T03:04:05.000000+00:00"
    assert out["pid"] == 4321
    assert out["logger"] == {"name": "web"}
    assert out["time"] == "yesterday"


def test_none_standard_values_are_omitted():
    out = apply_mapping(build_mapping(), _fields(progname=None), {})
    assert "logger" not in out


def test_inputs_are_not_mutated():
    user = {"id": 1}
    attrs = {"usr": user, "user_name": "ann"}
    mapping = build_mapping(attribute_mapping={"user_name": "usr.name"})
    out = apply_mapping(mapping, _fields(), attrs)
    assert out["usr"] == {"id": 1, "name": "ann"}
    assert user == {"id": 1}


def test_attributes_evaluated_in_insertion_order():
    mapping = AttributeMapping({"a": "same", "b": "same"})
    assert apply_mapping(mapping, {}, {"a": 1, "b": 2}) == {"same": 2}
    assert apply_mapping(mapping, {}, {"b": 2, "a": 1}) == {"same": 1}


def test_set_path_replaces_scalar_intermediate():
    out = {"a": 1}
    set_path(out, ("a", "b"), 2)
    assert out == {"a": {"b": 2}}


def test_mapping_built_twice_applies_identically():
    kwargs = dict(pid="global", attribute_mapping={"u": "usr.id"}, max_message_length=5)
    attrs = {"u": 1, "x": 2}
    first = apply_mapping(build_mapping(**kwargs), _fields(message="long message"), attrs)
    second = apply_mapping(build_mapping(**kwargs), _fields(message="long message"), attrs)
    assert first == second


def test_explicit_rule_object_accepted():
    mapping = AttributeMapping({"x": MappingRule.constant_path(["deep", "x"])})
    assert apply_mapping(mapping, {}, {"x": 1}) == {"deep": {"x": 1}}


def test_self_referencing_attribute_is_cut():
    looped = {"name": "a"}
    looped["self"] = looped
    out = apply_mapping(build_mapping(), _fields(), {"a": looped})
    assert out["a"] == {"name": "a", "self": RECURSIVE_PLACEHOLDER}
    assert json.loads(serialize_entry(out))["a"]["self"] == "{...}"
    assert looped["self"] is looped
