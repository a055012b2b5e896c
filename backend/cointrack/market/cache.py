"""Time-boxed in-memory cache of fetched pages."""

from __future__ import annotations

import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any

from .constants import CACHE_TTL


@dataclass(frozen=True, slots=True)
class CacheEntry:
    key: Hashable
    timestamp: float
    payload: Any


class ResponseCache:
    """Per-engine page cache with a freshness window.

    Entries are never evicted on expiry: an expired entry is still returned by
    ``get_stale`` so callers can fall back to it when a refetch fails.

    All access happens on the event loop thread, so no lock is taken.
    """

    def __init__(self, ttl: float = CACHE_TTL, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry] = {}
        self._version: int = 0  # Bumped on every set/clear

    @property
    def ttl(self) -> float:
        return self._ttl

    def set(self, key: Hashable, payload: Any) -> CacheEntry:
        """Store ``payload`` under ``key`` stamped with the current time."""
        entry = CacheEntry(key=key, timestamp=self._clock(), payload=payload)
        self._entries[key] = entry
        self._version += 1
        return entry

    def get(self, key: Hashable) -> Any | None:
        """Payload for ``key`` if it is younger than the TTL, else None."""
        entry = self._entries.get(key)
        if entry is None or not self._is_fresh(entry):
            return None
        return entry.payload

    def get_stale(self, key: Hashable) -> Any | None:
        """Last payload stored for ``key`` regardless of age, or None."""
        entry = self._entries.get(key)
        return entry.payload if entry else None

    def entry(self, key: Hashable) -> CacheEntry | None:
        return self._entries.get(key)

    def clear(self) -> None:
        self._entries.clear()
        self._version += 1

    @property
    def version(self) -> int:
        return self._version

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.timestamp < self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        """True only for fresh entries."""
        entry = self._entries.get(key)
        return entry is not None and self._is_fresh(entry)
