"""
Short-TTL in-memory cache for built snapshots.

Host-level optimization only: the engine produces the same output with
`DisabledCache`, which is what the tests use.
"""

import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple


class SnapshotCache:
    def __init__(self, ttl_seconds: float = 60, clock: Callable[[], float] = time.monotonic):
        self.ttl = float(ttl_seconds)
        self.clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Tuple[Any, float]]:
        """(value, age_seconds) for a fresh entry, None on miss or expiry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            at, value = entry
            age = self.clock() - at
            if age >= self.ttl:
                del self._entries[key]
                return None
            return value, age

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self.clock(), value)

    def invalidate(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)


class DisabledCache(SnapshotCache):
    def __init__(self):
        super().__init__(ttl_seconds=0)

    def get(self, key: str) -> Optional[Tuple[Any, float]]:
        return None

    def put(self, key: str, value: Any) -> None:
        return None
