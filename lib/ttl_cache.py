# =============================================================================
# lib/ttl_cache.py - Time-Bounded In-Process Cache
# =============================================================================
# A small dictionary whose entries expire a fixed number of seconds after
# they were stored. There is no size bound and no LRU eviction; expired
# entries are dropped when they are next read.
#
# Usage:
#   from lib.ttl_cache import TTLCache
#   profiles = TTLCache(ttl_seconds=300)
#   profiles.set(user_id, profile)
#   profile = profiles.get(user_id)   # None after 5 minutes
# =============================================================================

import threading
import time
from typing import Any, Callable, Hashable


class TTLCache:
    """
    Thread-safe map with per-entry expiry.

    Each process keeps its own instance, so cached values may lag behind
    the database by up to `ttl_seconds`.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Return the cached value, or `default` if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default

            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return default

            return value

    def set(self, key: Hashable, value: Any) -> None:
        """Store a value; its lifetime restarts on every set."""
        with self._lock:
            self._entries[key] = (self._clock() + self.ttl_seconds, value)

    def delete(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def __len__(self) -> int:
        now = self._clock()
        with self._lock:
            return sum(1 for expires_at, _ in self._entries.values() if now < expires_at)
