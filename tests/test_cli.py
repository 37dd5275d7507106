from __future__ import annotations

import json

from typer.testing import CliRunner

from datadog_json_logger.__main__ import app

runner = CliRunner()


def _records(*records):
    return "\n".join(json.dumps(r) for r in records) + "\n"


def _stdout_entries(result):
    # stderr may be mixed into stdout depending on the Click version.
    return [json.loads(line) for line in result.stdout.splitlines() if line.startswith("{")]


def test_format_from_stdin():
    result = runner.invoke(
        app,
        ["format"],
        input=_records(
            {
                "time": "2025-01-02T03:04:05Z",
                "severity": "warning",
                "message": "slow request",
                "progname": "web",
                "pid": 12,
                "attributes": {"duration_ms": 1.1, "path": "/x"},
            }
        ),
    )
    assert result.exit_code == 0, result.output
    (entry,) = _stdout_entries(result)
    assert entry == {
        "timestamp": "2025-01-02T03:04:05.000000+00:00",
        "status": "WARN",
        "message": "slow request",
        "logger": {"name": "web"},
        "pid": 12,
        "duration": 1_100_000,
        "path": "/x",
    }


def test_format_options(tmp_path):
    source = tmp_path / "in.jsonl"
    source.write_text(
        _records({"message": "0123456789abc", "pid": 5, "attributes": {"user_id": 7, "x": 1}}),
        encoding="utf-8",
    )
    result = runner.invoke(
        app,
        [
            "format",
            str(source),
            "--max-message-length",
            "5",
            "--no-pid",
            "--no-allow-all-attributes",
            "--remap",
            "user_id=usr.id",
        ],
    )
    assert result.exit_code == 0, result.output
    (entry,) = _stdout_entries(result)
    assert entry["message"] == "0123…"
    assert entry["usr"] == {"id": 7}
    assert "pid" not in entry
    assert "x" not in entry


def test_invalid_lines_are_skipped():
    result = runner.invoke(app, ["format"], input="not json\n" + _records({"message": "ok"}))
    assert result.exit_code == 0
    entries = _stdout_entries(result)
    assert [e["message"] for e in entries] == ["ok"]


def test_configuration_error_exit_code():
    result = runner.invoke(app, ["format", "--max-message-length", "0"], input="")
    assert result.exit_code == 2
    result = runner.invoke(app, ["format", "--remap", "broken"], input="")
    assert result.exit_code == 2


def test_show_mapping():
    result = runner.invoke(app, ["show-mapping", "--global-pid", "--remap", "user_id=usr,id"])
    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert "time -> timestamp" in lines
    assert "progname -> logger.name" in lines
    assert "pid -> <transform global_pid>" in lines
    assert "user_id -> usr.id" in lines
    assert "attributes -> *" in lines
