"""Command-line interface for datadog-json-logger.

Provides a Typer app with two commands:

1.  `format`: read JSON-lines log records (file or stdin), map each one to a
    Datadog JSON document and write it to stdout. Useful for replaying
    captured logs or piping another tool's structured output.
2.  `show-mapping`: print the resolved attribute mapping for the current
    settings and options.

Input records look like:

    {"time": "2025-01-01T00:00:00Z", "severity": "info", "message": "hi",
     "progname": "web", "pid": 12, "attributes": {"duration_ms": 3.2}}

Only `message` is required; `time` defaults to now and `pid` to this process.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

from .config import ConfigurationError, DatadogConfig, get_settings
from .mapper import map_entry, mapping_from_config, serialize_entry
from .mapping.entry_formatter import EntryFormatter
from .models.log_entry import LogEntry

app = typer.Typer(help="Datadog JSON log formatting CLI")

logger = logging.getLogger(__name__)


@app.callback()
def _main() -> None:
    # Load .env before any settings access so DATADOG_LOG_* values apply.
    env_file = find_dotenv(usecwd=True)
    if env_file:
        load_dotenv(env_file)


def _parse_remaps(remap: Optional[List[str]]) -> Dict[str, Any]:
    """Parse repeated `NAME=TARGET` options; a TARGET with commas is a nested path."""
    overrides: Dict[str, Any] = {}
    for item in remap or []:
        name, sep, target = item.partition("=")
        if not sep or not name.strip() or not target.strip():
            raise ConfigurationError(f"--remap expects NAME=TARGET, got {item!r}")
        target = target.strip()
        overrides[name.strip()] = [p.strip() for p in target.split(",")] if "," in target else target
    return overrides


def _build_config(
    max_message_length: Optional[int],
    pid: Optional[bool],
    global_pid: bool,
    allow_all_attributes: Optional[bool],
    remap: Optional[List[str]],
    pretty: Optional[bool],
) -> DatadogConfig:
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), stream=sys.stderr)
    try:
        config = DatadogConfig.from_settings(settings)
        if max_message_length is not None:
            config.max_message_length = max_message_length
        if global_pid:
            config.pid = "global"
        elif pid is not None:
            config.pid = pid
        if allow_all_attributes is not None:
            config.allow_all_attributes = allow_all_attributes
        if pretty is not None:
            config.pretty = pretty
        config.remap_attributes(_parse_remaps(remap))
        config.validate_config()
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
    return config


def _entry_from_json(obj: Any) -> LogEntry:
    if not isinstance(obj, dict):
        obj = {"message": obj}
    return LogEntry(
        time=obj.get("time") or datetime.now(timezone.utc),
        severity=obj.get("severity", "UNKNOWN"),
        message=obj.get("message"),
        progname=obj.get("progname"),
        pid=obj.get("pid") or os.getpid(),
        attributes=obj.get("attributes") or {},
    )


@app.command("format")
def format_command(
    path: Optional[Path] = typer.Argument(
        None, help="JSON-lines file to read (defaults to stdin)", exists=True, dir_okay=False
    ),
    max_message_length: Optional[int] = typer.Option(
        None, help="Truncate messages longer than this many characters"
    ),
    pid: Optional[bool] = typer.Option(None, "--pid/--no-pid", help="Include the pid field"),
    global_pid: bool = typer.Option(
        False, "--global-pid", help="Emit a host-qualified pid instead of the raw pid"
    ),
    allow_all_attributes: Optional[bool] = typer.Option(
        None,
        "--allow-all-attributes/--no-allow-all-attributes",
        help="Write unmapped attributes at the JSON root",
    ),
    remap: Optional[List[str]] = typer.Option(
        None, "--remap", help="Attribute override NAME=TARGET (dotted or comma path); repeatable"
    ),
    pretty: Optional[bool] = typer.Option(None, "--pretty/--compact", help="Pretty-print JSON"),
) -> None:
    """Map JSON-lines log records to Datadog JSON documents."""
    try:
        config = _build_config(max_message_length, pid, global_pid, allow_all_attributes, remap, pretty)
        mapping = mapping_from_config(config)
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=2)

    formatter = EntryFormatter(
        backtrace_cleaner=config.backtrace_cleaner,
        additional_exception_attributes=config.additional_exception_attributes,
    )
    source = path.open("r", encoding="utf-8") if path is not None else sys.stdin
    written = skipped = 0
    try:
        for lineno, line in enumerate(source, start=1):
            if not line.strip():
                continue
            try:
                entry = _entry_from_json(json.loads(line))
            except (json.JSONDecodeError, ValidationError) as e:
                skipped += 1
                typer.echo(f"line {lineno}: skipped invalid record ({e})", err=True)
                continue
            typer.echo(serialize_entry(map_entry(entry, mapping, formatter), pretty=config.pretty))
            written += 1
    finally:
        if path is not None:
            source.close()
    logger.debug("Formatted %d record(s), skipped %d", written, skipped)


@app.command("show-mapping")
def show_mapping(
    max_message_length: Optional[int] = typer.Option(None),
    pid: Optional[bool] = typer.Option(None, "--pid/--no-pid"),
    global_pid: bool = typer.Option(False, "--global-pid"),
    allow_all_attributes: Optional[bool] = typer.Option(
        None, "--allow-all-attributes/--no-allow-all-attributes"
    ),
    remap: Optional[List[str]] = typer.Option(None, "--remap"),
) -> None:
    """Print the resolved attribute mapping, one `name -> target` per line."""
    try:
        config = _build_config(max_message_length, pid, global_pid, allow_all_attributes, remap, None)
        mapping = mapping_from_config(config)
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=2)
    for name, rule in mapping.items():
        typer.echo(f"{name} -> {rule.describe()}")


if __name__ == "__main__":  # pragma: no cover
    app()
