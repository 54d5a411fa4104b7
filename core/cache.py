"""
core/cache.py - Time-Bounded Response Cache
============================================

In-memory map from normalized query to the rendered answer text. Entries
expire lazily: a lookup older than the TTL behaves exactly like a miss and
drops the stale entry. There is no capacity bound; the table only shrinks
through expiry, and a process restart clears it.

The lock is held for a single get/put only, never across a whole request,
so a slow generator call cannot block other requests from reading the cache.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

# A clock returns the current time in seconds (time.time by default).
Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry:
    """A cached answer and the time it was stored."""
    text: str
    created_at: float


class ResponseCache:
    """
    Thread-safe TTL cache for rendered answers.

    Usage:
        cache = ResponseCache(ttl_seconds=6 * 60 * 60)
        cache.put("malaria", "Malaria\\n\\n...")
        cache.get("malaria")   # -> "Malaria\\n\\n..." until the TTL passes
    """

    def __init__(self, ttl_seconds: float, clock: Clock = time.time):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def _is_fresh(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at < self.ttl_seconds

    def get(self, key: str) -> Optional[str]:
        """Return the cached text for key, or None if missing or expired."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not self._is_fresh(entry, now):
                del self._entries[key]
                return None
            return entry.text

    def put(self, key: str, text: str) -> None:
        """Store text under key, replacing any previous entry."""
        entry = CacheEntry(text=text, created_at=self._clock())
        with self._lock:
            self._entries[key] = entry

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        now = self._clock()
        with self._lock:
            stale = [k for k, e in self._entries.items() if not self._is_fresh(e, now)]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
