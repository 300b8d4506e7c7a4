"""Debug entries and the recorder handed to page handlers."""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass

_B36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _base36(n: int) -> str:
    if n <= 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_B36[r])
    return "".join(reversed(out))


def new_error_id() -> str:
    """Short id shown to users so a report can be matched to a log line."""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_B36) for _ in range(7)).lower()
    return f"ERR-{_base36(millis)}-{suffix}"


@dataclass
class DebugEntry:
    timestamp: float
    message: str
    details: str | None = None
    error_id: str | None = None


class DebugRecorder:
    def __init__(self, state) -> None:
        self._state = state

    def record(self, page: str, message: str, details: str | None = None) -> str:
        """Store an entry for `page` and return its error id."""
        error_id = new_error_id()
        self._state.add_debug(page, message, details, error_id=error_id)
        return error_id
