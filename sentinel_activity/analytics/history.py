"""
Temporal History Module
=======================

Bounded recency history of gesture timestamps per (gesture kind, zone).

Design:
- One TemporalEventLog per key, created lazily on first push
- Newest first; capacity-bounded deque evicts the oldest entry
- peek() is checked: returns (timestamp, ok) and never raises on empty
- Not thread-safe: owned by the single evaluation loop
"""

from collections import deque
from datetime import datetime
from typing import Deque, Dict, Iterator, List, Optional, Tuple

from sentinel_activity.types import GestureKind

DEFAULT_CAPACITY = 32

# (gesture kind, zone name)
LogKey = Tuple[GestureKind, str]


def format_key(key: LogKey) -> str:
    kind, zone = key
    return f"{kind.value}@{zone}"


class TemporalEventLog:
    """
    Most-recent-first timestamp history for one (kind, zone) pair.

    Usage:
        log = TemporalEventLog()
        log.push(t1)
        log.push(t2)
        latest, ok = log.peek()   # (t2, True)
        log.clear()
        latest, ok = log.peek()   # (None, False)
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._timestamps: Deque[datetime] = deque(maxlen=capacity)

    def push(self, timestamp: datetime) -> None:
        """
        Insert a timestamp at the front, evicting the oldest beyond capacity.

        Raises:
            ValueError: If timestamp is older than the most recent entry,
                or mixes naive and aware with the entries already held
        """
        if self._timestamps and (
            (timestamp.utcoffset() is None) != (self._timestamps[0].utcoffset() is None)
        ):
            raise ValueError(
                f"Cannot mix naive and aware timestamps: {timestamp.isoformat()} "
                f"after {self._timestamps[0].isoformat()}"
            )
        if self._timestamps and timestamp < self._timestamps[0]:
            raise ValueError(
                f"Out-of-order push: {timestamp.isoformat()} is older than "
                f"{self._timestamps[0].isoformat()}"
            )
        # appendleft on a full bounded deque drops from the right (oldest)
        self._timestamps.appendleft(timestamp)

    def peek(self) -> Tuple[Optional[datetime], bool]:
        """Most recent timestamp and whether the log is non-empty."""
        if not self._timestamps:
            return None, False
        return self._timestamps[0], True

    def clear(self) -> None:
        self._timestamps.clear()

    def count(self) -> int:
        return len(self._timestamps)

    def __len__(self) -> int:
        return len(self._timestamps)

    def __iter__(self) -> Iterator[datetime]:
        """Iterate newest first."""
        return iter(list(self._timestamps))

    def __repr__(self) -> str:
        latest, ok = self.peek()
        return f"TemporalEventLog(count={len(self)}, latest={latest.isoformat() if ok else None})"


class EventLogStore:
    """
    Keyed collection of TemporalEventLogs.

    Peeking or counting a key that was never pushed does not create it.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._logs: Dict[LogKey, TemporalEventLog] = {}

    def log(self, key: LogKey) -> TemporalEventLog:
        """Get the log for a key, creating it on first use."""
        if key not in self._logs:
            self._logs[key] = TemporalEventLog(self.capacity)
        return self._logs[key]

    def push(self, key: LogKey, timestamp: datetime) -> None:
        self.log(key).push(timestamp)

    def peek(self, key: LogKey) -> Tuple[Optional[datetime], bool]:
        log = self._logs.get(key)
        if log is None:
            return None, False
        return log.peek()

    def count(self, key: LogKey) -> int:
        log = self._logs.get(key)
        return log.count() if log is not None else 0

    def clear(self, key: LogKey) -> None:
        log = self._logs.get(key)
        if log is not None:
            log.clear()

    def clear_all(self) -> None:
        for log in self._logs.values():
            log.clear()

    def keys(self) -> List[LogKey]:
        return list(self._logs.keys())

    def snapshot(self) -> Dict[str, int]:
        """Entry count per key, formatted "Kind@Zone" (debug surface)."""
        return {format_key(key): log.count() for key, log in self._logs.items()}

    def __contains__(self, key: LogKey) -> bool:
        return key in self._logs

    def __repr__(self) -> str:
        return f"EventLogStore(keys={len(self._logs)}, capacity={self.capacity})"
