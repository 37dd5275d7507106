"""Logger configuration using Pydantic and Pydantic Settings.

Two layers:

- `DatadogConfig` is the per-logger configuration object handed to `setup`
  callbacks. It validates on construction and on every assignment, and
  `validate_config()` re-checks it before a logger is built so a misconfigured
  logger refuses to start.
- `Settings` loads defaults from environment variables (prefix
  `DATADOG_LOG_`) or a `.env` file; the CLI and `setup()` start from it via
  `DatadogConfig.from_settings`.

`get_settings` provides a cached, singleton `Settings` instance.
"""
from __future__ import annotations

import warnings
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict as _SettingsConfigDict

from .mapping.builder import PidMode
from .mapping.rules import ConfigurationError

__all__ = [
    "ConfigurationError",
    "DatadogConfig",
    "PidMode",
    "Settings",
    "ThreadNameMode",
    "get_settings",
]


class ThreadNameMode(str, Enum):
    """Deprecated `logger.thread_name` tagging."""

    OFF = "off"
    NAME = "name"
    GLOBAL = "global"

    @classmethod
    def coerce(cls, value: Union["ThreadNameMode", bool, str, None]) -> "ThreadNameMode":
        if isinstance(value, cls):
            return value
        if value is None or value is False:
            return cls.OFF
        if value is True:
            return cls.NAME
        if isinstance(value, str):
            text = value.strip().lower()
            if text in ("", "false", "0", "no"):
                return cls.OFF
            if text in ("true", "1", "yes"):
                return cls.NAME
            return cls(text)
        raise ValueError(f"thread_name must be True, False or 'global', got {value!r}")


def _check_max_message_length(v: Any) -> Optional[int]:
    if v is None:
        return None
    if isinstance(v, bool) or not isinstance(v, int) or v <= 0:
        raise ValueError("max_message_length must be a positive integer")
    return v


def _check_backtrace_cleaner(v: Any) -> Any:
    if v is None:
        return None
    if not callable(getattr(v, "clean", None)):
        raise ValueError("backtrace_cleaner must have a callable clean() method")
    return v


class DatadogConfig(BaseModel):
    """Options for a Datadog JSON logger.

    Attributes:
        max_message_length: Truncate longer messages with an ellipsis (None = off).
        backtrace_cleaner: Object with `clean(lines) -> lines` applied to stacks.
        pid: `True` (OS pid), `False` (omit) or `"global"` (host-qualified pid).
        allow_all_attributes: Write unmapped attributes at the JSON root.
        attribute_mapping: Overrides; extend with `remap_attributes`.
        additional_exception_attributes: Output key -> exception accessor name.
        pretty: Pretty-print JSON (development only).
        thread_name: Deprecated; tag entries with `logger.thread_name`.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    max_message_length: Optional[int] = None
    backtrace_cleaner: Optional[Any] = None
    pid: PidMode = PidMode.INCLUDED
    allow_all_attributes: bool = True
    attribute_mapping: Dict[str, Any] = Field(default_factory=dict)
    additional_exception_attributes: Dict[str, str] = Field(default_factory=dict)
    pretty: bool = False
    thread_name: ThreadNameMode = ThreadNameMode.OFF

    @field_validator("max_message_length", mode="before")
    @classmethod
    def _positive_length(cls, v: Any) -> Optional[int]:
        return _check_max_message_length(v)

    @field_validator("backtrace_cleaner", mode="before")
    @classmethod
    def _cleaner_has_clean(cls, v: Any) -> Any:
        return _check_backtrace_cleaner(v)

    @field_validator("pid", mode="before")
    @classmethod
    def _coerce_pid(cls, v: Any) -> PidMode:
        try:
            return PidMode.coerce(v)
        except ConfigurationError as e:
            raise ValueError(str(e)) from e

    @field_validator("thread_name", mode="before")
    @classmethod
    def _coerce_thread_name(cls, v: Any) -> ThreadNameMode:
        mode = ThreadNameMode.coerce(v)
        if mode is not ThreadNameMode.OFF:
            warnings.warn(
                "Setting thread_name through the logger config is deprecated; add a "
                "'logger.thread_name' attribute with id_utils.global_thread_id() instead.",
                DeprecationWarning,
                stacklevel=2,
            )
        return mode

    def remap_attributes(self, attribute_mapping: Dict[str, Any]) -> Dict[str, Any]:
        """Merge more attribute overrides (later calls win on key collision).

        Example:
            config.remap_attributes({"request_id": "trace_id", "user_id": "usr.id"})
        """
        self.attribute_mapping = {**self.attribute_mapping, **attribute_mapping}
        return self.attribute_mapping

    def validate_config(self) -> None:
        """Re-check fields that may have been mutated without validation.

        Raises:
            ConfigurationError: invalid max_message_length or backtrace_cleaner.
        """
        try:
            _check_max_message_length(self.max_message_length)
            _check_backtrace_cleaner(self.backtrace_cleaner)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    @classmethod
    def from_settings(cls, settings: "Settings") -> "DatadogConfig":
        try:
            return cls(
                max_message_length=settings.MAX_MESSAGE_LENGTH or None,
                pid=settings.PID,
                allow_all_attributes=settings.ALLOW_ALL_ATTRIBUTES,
                pretty=settings.PRETTY,
            )
        except ValidationError as e:
            raise ConfigurationError(f"invalid Datadog logging settings: {e}") from e


class Settings(BaseSettings):
    """Environment-driven defaults (`DATADOG_LOG_*` variables or `.env`)."""

    model_config = _SettingsConfigDict(
        env_prefix="DATADOG_LOG_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    MAX_MESSAGE_LENGTH: int = Field(
        default=0, description="Truncate messages longer than this (0 = disabled)"
    )
    PID: str = Field(default="true", description="true, false or global")
    ALLOW_ALL_ATTRIBUTES: bool = Field(
        default=True, description="Write unmapped attributes at the JSON root"
    )
    PRETTY: bool = Field(default=False, description="Pretty-print JSON output")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level for setup()")
    LOGGER_NAME: Optional[str] = Field(
        default=None, description="Logger name used by setup() (None = root logger)"
    )

    @field_validator("MAX_MESSAGE_LENGTH")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("MAX_MESSAGE_LENGTH must be >= 0")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:  # pragma: no cover - trivial
    """Return a cached, singleton instance of the settings.

    Raises:
        ConfigurationError: when environment values fail validation.
    """
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"invalid DATADOG_LOG_* environment: {e}") from e
