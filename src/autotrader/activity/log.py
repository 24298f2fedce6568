"""Append-only, capacity-bounded activity log.

Records every executed, rejected or skipped action with a reason code so
nothing the scheduler decides is a silent no-op. Only the scheduler
appends; readers get tuple copies (snapshot semantics).
"""

import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActivityKind(str, Enum):
    """Category of an activity entry."""

    EXECUTED = "executed"
    REJECTED = "rejected"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass(frozen=True)
class ActivityEntry:
    """One immutable activity record."""

    kind: ActivityKind
    reason: str
    symbol: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


class ActivityLog:
    """Bounded ring of ActivityEntry; oldest entries are evicted.

    Args:
        capacity: Maximum entries retained.
    """

    def __init__(self, capacity: int = 500) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._entries: deque[ActivityEntry] = deque(maxlen=capacity)
        self._total_appended = 0

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    @property
    def total_appended(self) -> int:
        """Entries appended over the log's lifetime, including evicted ones."""
        return self._total_appended

    def append(self, entry: ActivityEntry) -> None:
        self._entries.append(entry)
        self._total_appended += 1

    def extend(self, entries: list[ActivityEntry]) -> None:
        for entry in entries:
            self.append(entry)

    def entries(
        self, limit: int | None = None, kind: ActivityKind | None = None
    ) -> tuple[ActivityEntry, ...]:
        """Snapshot of retained entries, oldest first.

        Args:
            limit: Keep only the newest ``limit`` entries.
            kind: Filter to one kind.
        """
        snapshot = tuple(self._entries)
        if kind is not None:
            snapshot = tuple(e for e in snapshot if e.kind is kind)
        if limit is not None:
            snapshot = snapshot[-limit:] if limit > 0 else ()
        return snapshot

    def __len__(self) -> int:
        return len(self._entries)
