"""
SequenceCache - volatile (key, timestamp) -> value map.
"""

import threading


class SequenceCache:
    """
    Read-through cache in front of the per-key logs.

    Holds only pairs that were written or found by a scan; misses are never
    stored. Every access is guarded by a lock held just for the dict
    operation, so callers on executor threads can share one instance.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, int], str] = {}
        self._lock = threading.Lock()

    def get(self, key: str, timestamp: int) -> str | None:
        """Return the cached value, or None on a miss."""
        with self._lock:
            return self._entries.get((key, timestamp))

    def put(self, key: str, timestamp: int, value: str) -> None:
        with self._lock:
            self._entries[(key, timestamp)] = value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
