"""In-memory deployment log.

Entries are formatted as ``[HH:MM:SS] message`` and kept for the lifetime
of the process. There is no eviction and no size bound.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

logger = logging.getLogger(__name__)


class LogSink(Protocol):
    """Append/read contract for components that record log entries."""

    def append(self, message: str) -> str: ...

    def entries(self) -> list[str]: ...


class LogBook:
    """Append-only log buffer.

    One instance is created per process and passed to the components that
    need it.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock
        self._entries: list[str] = []

    def append(self, message: str) -> str:
        """Record a timestamped entry and return it."""
        entry = f"[{self._clock().strftime('%H:%M:%S')}] {message}"
        self._entries.append(entry)
        logger.info("%s", message)
        return entry

    def entries(self) -> list[str]:
        """Return a copy of the full ordered history."""
        return list(self._entries)

    @property
    def latest(self) -> str | None:
        return self._entries[-1] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)
