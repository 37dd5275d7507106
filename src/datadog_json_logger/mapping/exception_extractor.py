"""Expand exception values into Datadog's `error.*` attribute structure.

Datadog expects errors as an object with `kind`, `message` and `stack`. The
extractor works structurally on anything that looks like an exception (see
`ErrorLike`) and never raises: a missing traceback omits `stack`, and a
missing or failing accessor for an additional attribute is skipped.
"""
from __future__ import annotations

import builtins
import logging
import traceback
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

__all__ = [
    "BacktraceCleaner",
    "ErrorLike",
    "ExceptionAttributeExtractor",
    "is_error_like",
    "error_kind",
    "error_stack",
]

logger = logging.getLogger(__name__)


@runtime_checkable
class BacktraceCleaner(Protocol):
    def clean(self, lines: Sequence[str]) -> Sequence[str]: ...


@runtime_checkable
class ErrorLike(Protocol):
    """Structural check for exception values (all `BaseException`s qualify)."""

    args: Any
    __traceback__: Any


def is_error_like(value: Any) -> bool:
    # Classes expose `args`/`__traceback__` as descriptors; only instances count.
    return not isinstance(value, type) and isinstance(value, ErrorLike)


def error_kind(error: Any) -> str:
    """Return the exception's type name, module-qualified unless it is a builtin."""
    cls = type(error)
    module = getattr(cls, "__module__", None)
    if not module or module == builtins.__name__:
        return cls.__qualname__
    return f"{module}.{cls.__qualname__}"


def error_stack(error: Any) -> List[str]:
    """Return one line per traceback frame, outermost first (empty if none)."""
    tb = getattr(error, "__traceback__", None)
    if tb is None:
        return []
    return [
        f'File "{frame.filename}", line {frame.lineno}, in {frame.name}'
        for frame in traceback.extract_tb(tb)
    ]


_MISSING = object()


def _message_text(error: Any) -> str:
    try:
        return str(error)
    except Exception:
        return repr(error)


class ExceptionAttributeExtractor:
    """Callable converting an exception into `{kind, message, stack, ...}`.

    Args:
        backtrace_cleaner: Optional object with `clean(lines) -> lines`; its
            result is used verbatim as `stack`.
        additional_attributes: Output key -> accessor name on the exception.
            Callable accessors are invoked without arguments.
    """

    def __init__(
        self,
        backtrace_cleaner: Optional[BacktraceCleaner] = None,
        additional_attributes: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.backtrace_cleaner = backtrace_cleaner
        self.additional_attributes = dict(additional_attributes or {})

    def __call__(self, error: Any) -> Dict[str, Any]:
        attributes: Dict[str, Any] = {"kind": error_kind(error), "message": _message_text(error)}

        stack = error_stack(error)
        if stack:
            if self.backtrace_cleaner is not None:
                try:
                    stack = self.backtrace_cleaner.clean(stack)
                except Exception:
                    logger.debug("Backtrace cleaner failed on %s; raw stack kept", type(error), exc_info=True)
            attributes["stack"] = stack

        for key, accessor in self.additional_attributes.items():
            try:
                value = getattr(error, accessor, _MISSING)
                if value is _MISSING:
                    continue
                if callable(value):
                    value = value()
            except Exception:
                logger.debug("Accessor %r failed on %s; skipped", accessor, type(error), exc_info=True)
                continue
            attributes[str(key)] = value

        return attributes
