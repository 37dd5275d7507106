"""Process and thread identity helpers injected into the mapping pipeline.

Datadog aggregates logs from many hosts, so a raw OS pid is ambiguous across
machines. The "global" variants prefix the host name so the identifier is
stable and unique across process boundaries.

ID Format:
    Global pid: f"{hostname}-{pid}"
    Global thread id: f"{hostname}-{pid}-{thread_ident}"
    Thread name: `threading.current_thread().name`, with spaces replaced by "-"

These functions are passed as explicit capabilities (`global_pid_provider`,
`thread_name_provider`) so formatting stays a pure function of its inputs.
"""
from __future__ import annotations

import os
import re
import socket
import threading
from typing import Optional

__all__ = ["hostname", "global_pid", "thread_name", "global_thread_id"]

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


def hostname() -> str:
    """Return the short host name with characters unsafe for identifiers replaced."""
    name = socket.gethostname().split(".", 1)[0] or "localhost"
    return _UNSAFE_CHARS.sub("-", name)


def global_pid(pid: Optional[int] = None) -> str:
    """Return a host-qualified process identifier.

    Args:
        pid: Process id to qualify; defaults to the current process.
    """
    if pid is None:
        pid = os.getpid()
    return f"{hostname()}-{pid}"


def thread_name(name: Optional[str] = None) -> str:
    """Return a thread name safe for use as an identifier (current thread by default)."""
    if name is None:
        name = threading.current_thread().name
    return _UNSAFE_CHARS.sub("-", name)


def global_thread_id(pid: Optional[int] = None, ident: Optional[int] = None) -> str:
    if ident is None:
        ident = threading.get_ident()
    return f"{global_pid(pid)}-{ident}"
