"""Internal mapping subpackage for the Datadog entry transformation.

All functions within this package are pure with respect to their inputs plus
explicitly injected capabilities (global pid / thread id providers, backtrace
cleaner). No I/O happens here; serialization and output belong to the
`logger` module and the CLI.

The public API lives in the top-level `mapper.py` facade. Callers should not
import directly from this package unless accessing internals for testing.

Modules:
    rules: Rule kinds, `MappingRule`, `AttributeMapping`, `ConfigurationError`
    builder: Standard Datadog mapping plus overrides, wildcard and truncation
    attribute_mapper: Evaluates a mapping against one entry
    entry_formatter: Exception expansion and duration normalization
    exception_extractor: Exception -> {kind, message, stack}
    duration: Duration unit conversion to nanoseconds
    id_utils: Host-qualified pid / thread identifiers
    time_utils: UTC timestamp normalization

Design Invariants:
    - Explicit rules take precedence over the wildcard rule
    - Nested path writes merge, never clobber sibling keys
    - Per-call formatting never raises for data-shape reasons
    - Mappings are immutable and safe to share across threads
"""
from __future__ import annotations

from . import id_utils as id_utils  # noqa: F401
from . import time_utils as time_utils  # noqa: F401

__all__ = ["time_utils", "id_utils"]
