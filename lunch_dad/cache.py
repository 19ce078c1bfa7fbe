"""In-memory key/value cache with per-entry TTL and hit/miss accounting."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="cache")


@dataclass
class _CacheEntry:
    value: Any
    created_at: float
    expires_at: float


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of cache performance counters."""
    hits: int
    misses: int
    size: int

    @property
    def hit_rate(self) -> float:
        """Fraction of `get` calls that were hits (0 when nothing was requested)."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class TTLCache:
    """Lazily-expiring TTL cache.

    Expiration is checked when a key is read, so no background timer is
    needed. `has` and `sweep` never change the hit/miss counters; only `get`
    does. The clock returns seconds and defaults to `time.monotonic`.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Create an empty cache that reads time from `clock`."""
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def _fresh_entry(self, key: str) -> Optional[_CacheEntry]:
        """Return the live entry for key, evicting it if expired. Caller holds the lock."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry

    def get(self, key: str) -> Any:
        """Return the cached value, or None on a miss."""
        with self._lock:
            entry = self._fresh_entry(key)
            if entry is None:
                self._misses += 1
                logger.debug("Cache miss", extra={"key": key})
                return None
            self._hits += 1
            logger.debug("Cache hit", extra={"key": key})
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        """Store value for ttl_seconds; a non-positive TTL stores nothing and returns False."""
        if ttl_seconds <= 0:
            return False
        with self._lock:
            now = self._clock()
            self._entries[key] = _CacheEntry(value=value, created_at=now, expires_at=now + ttl_seconds)
        return True

    def has(self, key: str) -> bool:
        """Peek for a fresh entry without touching statistics."""
        with self._lock:
            return self._fresh_entry(key) is not None

    def clear(self) -> None:
        """Drop every entry and reset the counters."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def sweep(self) -> int:
        """Remove all expired entries and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Swept expired cache entries", extra={"removed": len(expired)})
        return len(expired)

    def stats(self) -> CacheStats:
        """Return the current hit/miss counters and entry count."""
        with self._lock:
            return CacheStats(hits=self._hits, misses=self._misses, size=len(self._entries))

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
