"""Keyed TTL cache for upstream proxy endpoints.

Live scores and headlines are cached as single values (default key); graded
results are cached per date so a dashboard refresh does not re-query the
sports API for every finished fixture.

Usage:
    _cache = TTLCache(ttl=15)

    hit, data = _cache.get()
    if not hit:
        data = await fetch()
        _cache.set(data)

    hit, graded = _cache.get("2026-01-25")
    _cache.set(graded, "2026-01-25")
"""

import time
from typing import Hashable

DEFAULT_KEY = "_"


class TTLCache:
    """In-process TTL cache. Oldest entry is evicted once max_entries is reached."""

    __slots__ = ("ttl", "max_entries", "_entries")

    def __init__(self, ttl: float, max_entries: int = 64):
        self.ttl = ttl
        self.max_entries = max_entries
        self._entries: dict = {}

    def get(self, key: Hashable = DEFAULT_KEY) -> tuple[bool, object]:
        """Return (hit, data). Expired entries count as misses and are dropped."""
        entry = self._entries.get(key)
        if entry is None:
            return False, None
        stored_at, data = entry
        if time.monotonic() - stored_at >= self.ttl:
            del self._entries[key]
            return False, None
        return True, data

    def set(self, data: object, key: Hashable = DEFAULT_KEY) -> None:
        if key not in self._entries and len(self._entries) >= self.max_entries:
            oldest = min(self._entries, key=lambda k: self._entries[k][0])
            del self._entries[oldest]
        self._entries[key] = (time.monotonic(), data)

    def invalidate(self, key: Hashable = None) -> None:
        """Drop one key, or everything when no key is given."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)
