"""Stdlib `logging` integration: formatter, handler and `setup()`.

`DatadogJsonFormatter` converts each `logging.LogRecord` into a `LogEntry`,
runs the entry formatter and attribute mapper, and serializes the result as
one JSON document. `extra=` values become attributes; `exc_info` becomes the
`error` attribute.

Typical use:

    logger = setup(sys.stdout, lambda config: config.remap_attributes({"user_id": "usr.id"}))
    logger.info("Checkout finished", extra={"user_id": 42, "duration_ms": 12.5})
"""
from __future__ import annotations

import logging
import os
import sys
from typing import IO, Any, Callable, Dict, Optional, Union

from pydantic import ValidationError

from .config import ConfigurationError, DatadogConfig, Settings, ThreadNameMode, get_settings
from .mapper import map_entry, mapping_from_config, serialize_entry
from .mapping import id_utils
from .mapping.entry_formatter import ERROR_KEY, EntryFormatter
from .mapping.exception_extractor import is_error_like
from .mapping.rules import AttributeMapping
from .mapping.time_utils import epoch_to_dt
from .models.log_entry import LogEntry, Severity

__all__ = ["DatadogJsonFormatter", "DatadogHandler", "THREAD_NAME_KEY", "setup"]

THREAD_NAME_KEY = "logger.thread_name"

_RESERVED_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.NOTSET, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


class DatadogJsonFormatter(logging.Formatter):
    """Format records as Datadog JSON documents.

    Args:
        config: Logger configuration; defaults to `DatadogConfig()`.
        mapping: Prebuilt mapping; built from `config` when omitted.
    """

    def __init__(
        self,
        config: Optional[DatadogConfig] = None,
        mapping: Optional[AttributeMapping] = None,
    ) -> None:
        super().__init__()
        self.config = config or DatadogConfig()
        self.mapping = mapping if mapping is not None else mapping_from_config(self.config)
        self.entry_formatter = EntryFormatter(
            backtrace_cleaner=self.config.backtrace_cleaner,
            additional_exception_attributes=self.config.additional_exception_attributes,
        )

    def _attributes(self, record: logging.LogRecord) -> Dict[str, Any]:
        attributes = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_")
        }
        if record.exc_info and record.exc_info[1] is not None:
            if ERROR_KEY not in attributes and not any(
                is_error_like(value) for value in attributes.values()
            ):
                attributes[ERROR_KEY] = record.exc_info[1]
        mode = self.config.thread_name
        if mode is ThreadNameMode.NAME:
            attributes.setdefault(THREAD_NAME_KEY, id_utils.thread_name(record.threadName))
        elif mode is ThreadNameMode.GLOBAL:
            attributes.setdefault(
                THREAD_NAME_KEY, id_utils.global_thread_id(record.process, record.thread)
            )
        return attributes

    def to_entry(self, record: logging.LogRecord) -> LogEntry:
        message = record.getMessage() if record.args else record.msg
        return LogEntry(
            time=epoch_to_dt(record.created),
            severity=Severity.from_level(record.levelno),
            message=message,
            progname=record.name,
            pid=record.process or os.getpid(),
            attributes=self._attributes(record),
        )

    def format(self, record: logging.LogRecord) -> str:
        payload = map_entry(self.to_entry(record), self.mapping, self.entry_formatter)
        return serialize_entry(payload, pretty=self.config.pretty)


class DatadogHandler(logging.StreamHandler):
    """Stream handler writing one Datadog JSON document per record.

    Without a config or mapping it uses the default Datadog mapping.
    """

    def __init__(
        self,
        stream: Optional[IO[str]] = None,
        config: Optional[DatadogConfig] = None,
        mapping: Optional[AttributeMapping] = None,
    ) -> None:
        super().__init__(sys.stdout if stream is None else stream)
        self.setFormatter(DatadogJsonFormatter(config=config, mapping=mapping))


def _build_handler(
    stream: Union[IO[str], str, os.PathLike, None], formatter: DatadogJsonFormatter
) -> logging.Handler:
    handler: logging.Handler
    if isinstance(stream, (str, os.PathLike)):
        handler = logging.FileHandler(stream, mode="a", encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stdout if stream is None else stream)
    handler.setFormatter(formatter)
    return handler


def setup(
    stream: Union[IO[str], str, os.PathLike, None] = None,
    configure: Optional[Callable[[DatadogConfig], Any]] = None,
    *,
    level: Union[int, str, None] = None,
    name: Optional[str] = None,
    propagate: bool = False,
    settings: Optional[Settings] = None,
) -> logging.Logger:
    """Configure and return a logger emitting Datadog JSON.

    Args:
        stream: Text stream (default stdout) or a file path to append to.
        configure: Callback receiving the `DatadogConfig` to customize.
        level: Logger level (name or number); defaults to `LOG_LEVEL` setting.
        name: Logger name; defaults to the `LOGGER_NAME` setting (root if unset).
        propagate: Whether records also propagate to ancestor handlers.
        settings: Explicit settings instead of the cached environment settings.

    Returns:
        The configured `logging.Logger`. Calling `setup` again for the same
        logger replaces the previously installed Datadog handler.

    Raises:
        ConfigurationError: if the configuration is invalid. Nothing is
            installed on the logger in that case.
    """
    settings = settings or get_settings()
    try:
        config = DatadogConfig.from_settings(settings)
        if configure is not None:
            configure(config)
        config.validate_config()
        mapping = mapping_from_config(config)
    except ValidationError as e:
        raise ConfigurationError(f"invalid Datadog logger configuration: {e}") from e

    formatter = DatadogJsonFormatter(config=config, mapping=mapping)
    handler = _build_handler(stream, formatter)

    logger = logging.getLogger(name if name is not None else settings.LOGGER_NAME)
    for existing in list(logger.handlers):
        if isinstance(existing.formatter, DatadogJsonFormatter):
            logger.removeHandler(existing)
            existing.close()
    logger.addHandler(handler)
    effective_level = level if level is not None else settings.LOG_LEVEL
    logger.setLevel(effective_level.upper() if isinstance(effective_level, str) else effective_level)
    logger.propagate = propagate
    return logger
