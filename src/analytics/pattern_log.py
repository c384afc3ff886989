"""Append-only logs for detected patterns and analysis history.

``AppendOnlyLog`` is the contract: entries are only ever appended, never
updated or removed, and readers get copies of the sequence rather than the
underlying storage. Appends and reads are guarded by a lock so one log may
be shared between request threads.

``PatternLog`` adds pattern-specific filters on top.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Generic, TypeVar

from src.models.common import utc_now
from src.models.patterns import PatternType, StrategicPattern

T = TypeVar("T")


@dataclass(frozen=True)
class LogEntry(Generic[T]):
    """One immutable record in an append-only log."""

    sequence: int
    key: str
    recorded_at: datetime
    item: T


class AppendOnlyLog(Generic[T]):
    """Ordered, lock-guarded, append-only sequence of keyed records."""

    def __init__(self) -> None:
        self._entries: list[LogEntry[T]] = []
        self._lock = threading.Lock()

    def append(self, key: str, item: T) -> LogEntry[T]:
        with self._lock:
            entry = LogEntry(
                sequence=len(self._entries),
                key=key,
                recorded_at=utc_now(),
                item=item,
            )
            self._entries.append(entry)
        return entry

    def extend(self, keyed_items: list[tuple[str, T]]) -> list[LogEntry[T]]:
        """Append several records atomically, preserving their order."""
        with self._lock:
            start = len(self._entries)
            now = utc_now()
            added = [
                LogEntry(sequence=start + i, key=key, recorded_at=now, item=item)
                for i, (key, item) in enumerate(keyed_items)
            ]
            self._entries.extend(added)
        return added

    def entries(self) -> list[LogEntry[T]]:
        with self._lock:
            return list(self._entries)

    def items(self) -> list[T]:
        return [e.item for e in self.entries()]

    def latest(self, n: int) -> list[T]:
        """Return the ``n`` most recently appended items, oldest first."""
        if n <= 0:
            return []
        return [e.item for e in self.entries()[-n:]]

    def since(self, timestamp: datetime) -> list[T]:
        """Items recorded at or after ``timestamp``."""
        return [e.item for e in self.entries() if e.recorded_at >= timestamp]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class PatternLog(AppendOnlyLog[StrategicPattern]):
    """Accumulating history of every pattern the engine has detected.

    Repeated detections of the same pattern are recorded again, each with
    its own ``pattern_id`` and ``detected_at``.
    """

    def record(self, patterns: list[StrategicPattern]) -> None:
        self.extend([(p.key, p) for p in patterns])

    def patterns(self) -> list[StrategicPattern]:
        return self.items()

    def by_type(self, pattern_type: PatternType | str) -> list[StrategicPattern]:
        pattern_type = PatternType(pattern_type)
        return [p for p in self.items() if p.type == pattern_type]

    def by_key(self, key: str) -> list[StrategicPattern]:
        return [p for p in self.items() if p.key == key]
