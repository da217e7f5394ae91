# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Process-lifetime TTL cache."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import structlog

from nomadcache.cache.types import DEFAULT_VOLATILE_TTL, CacheEntry, Clock, system_clock

logger = structlog.get_logger("nomadcache.cache")


class VolatileStore:
    """In-memory cache with lazy TTL expiry.

    Entries live as long as the store object. Stale entries are removed
    when a read discovers them or when :meth:`purge_expired` runs; there is
    no background sweep. With ``max_entries`` set, inserting a new key into
    a full store drops stale entries first and then the oldest insertion.
    """

    def __init__(
        self,
        default_ttl: timedelta = DEFAULT_VOLATILE_TTL,
        max_entries: int | None = None,
        clock: Clock = system_clock,
    ) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._default_ttl = default_ttl
        self._max_entries = max_entries
        self._clock = clock
        self._store: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._capacity_evictions = 0
        self._expirations = 0

    @property
    def default_ttl(self) -> timedelta:
        return self._default_ttl

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for *key*, or *default* if missing or stale."""
        entry = self._live_entry(key)
        if entry is None:
            self._misses += 1
            return default
        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any, ttl: timedelta | None = None) -> None:
        """Store *value*, replacing any previous entry for *key*."""
        if key in self._store:
            del self._store[key]
        elif self._max_entries is not None and len(self._store) >= self._max_entries:
            self._make_room()
        ttl = self._default_ttl if ttl is None else ttl
        self._store[key] = CacheEntry(value=value, stored_at=self._clock(), ttl=ttl)

    def has(self, key: str) -> bool:
        return self._live_entry(key) is not None

    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if the key existed."""
        return self._store.pop(key, None) is not None

    def clear(self) -> None:
        self._store.clear()

    def purge_expired(self) -> int:
        """Remove every stale entry. Returns how many were removed."""
        now = self._clock()
        stale = [key for key, entry in self._store.items() if entry.is_stale(now)]
        for key in stale:
            del self._store[key]
        self._expirations += len(stale)
        return len(stale)

    def keys(self) -> list[str]:
        """Keys of non-stale entries, oldest insertion first."""
        now = self._clock()
        return [key for key, entry in self._store.items() if not entry.is_stale(now)]

    def get_stats(self) -> dict[str, Any]:
        lookups = self._hits + self._misses
        return {
            "type": "memory",
            "size": len(self.keys()),
            "max_size": self._max_entries,
            "hits": self._hits,
            "misses": self._misses,
            "capacity_evictions": self._capacity_evictions,
            "expirations": self._expirations,
            "hit_rate": self._hits / lookups if lookups else 0.0,
        }

    def _live_entry(self, key: str) -> CacheEntry | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.is_stale(self._clock()):
            del self._store[key]
            self._expirations += 1
            return None
        return entry

    def _make_room(self) -> None:
        assert self._max_entries is not None
        self.purge_expired()
        while len(self._store) >= self._max_entries:
            oldest = next(iter(self._store))
            del self._store[oldest]
            self._capacity_evictions += 1
            logger.debug("cache_capacity_eviction", key=oldest, max_entries=self._max_entries)
