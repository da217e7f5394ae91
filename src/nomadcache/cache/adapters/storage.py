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
"""Durable TTL caches over a string storage area."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, ClassVar

import structlog

from nomadcache.cache.ports.outbound import StorageArea
from nomadcache.cache.types import (
    DEFAULT_PERSISTENT_TTL,
    DEFAULT_SESSION_TTL,
    CacheEntry,
    Clock,
    system_clock,
)
from nomadcache.kernel.exceptions import DeserializationError

logger = structlog.get_logger("nomadcache.cache.storage")

_MISSING = object()


class StorageBackedCache:
    """TTL cache that stores one JSON payload per key in a StorageArea.

    The storage area is treated as fallible on every call. Write failures
    are logged and swallowed, read failures and corrupt payloads are
    reported as misses. Only values JSON can represent round-trip; tuples
    come back as lists.
    """

    kind: ClassVar[str] = "storage"
    DEFAULT_TTL: ClassVar[timedelta] = DEFAULT_PERSISTENT_TTL

    def __init__(
        self,
        area: StorageArea,
        default_ttl: timedelta | None = None,
        clock: Clock = system_clock,
    ) -> None:
        self._area = area
        self._default_ttl = default_ttl if default_ttl is not None else self.DEFAULT_TTL
        self._clock = clock
        self._hits = 0
        self._misses = 0

    @property
    def area(self) -> StorageArea:
        return self._area

    @property
    def default_ttl(self) -> timedelta:
        return self._default_ttl

    def set(self, key: str, value: Any, ttl: timedelta | None = None) -> None:
        """Store *value* under *key*. Never raises."""
        entry = CacheEntry(
            value=value,
            stored_at=self._clock(),
            ttl=self._default_ttl if ttl is None else ttl,
        )
        try:
            payload = entry.to_payload()
        except (TypeError, ValueError) as exc:
            logger.warning("cache_value_unserializable", store=self.kind, key=key, error=str(exc))
            self._discard(key)
            return

        try:
            self._area.set_item(key, payload)
        except Exception as exc:
            logger.warning("cache_write_failed", store=self.kind, key=key, error=str(exc))
            self._discard(key)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for *key*, or *default* if missing, stale or unreadable."""
        entry = self._read(key)
        if entry is None:
            self._misses += 1
            return default
        self._hits += 1
        return entry.value

    def has(self, key: str) -> bool:
        return self._read(key) is not None

    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if the key existed."""
        try:
            existed = self._area.get_item(key) is not None
            self._area.remove_item(key)
        except Exception as exc:
            logger.warning("cache_delete_failed", store=self.kind, key=key, error=str(exc))
            return False
        return existed

    def clear(self) -> None:
        """Remove every item in the storage area."""
        try:
            self._area.clear()
        except Exception as exc:
            logger.warning("cache_clear_failed", store=self.kind, error=str(exc))

    def purge_expired(self) -> int:
        """Remove stale and corrupt entries. Returns how many were removed."""
        removed = 0
        for key in self._keys():
            if self._read(key, count_removal=True) is _MISSING:
                removed += 1
        return removed

    def keys(self) -> list[str]:
        """Keys of readable, non-stale entries."""
        return [key for key in self._keys() if self._read(key) is not None]

    def get_stats(self) -> dict[str, Any]:
        lookups = self._hits + self._misses
        return {
            "type": self.kind,
            "size": len(self.keys()),
            "max_size": None,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / lookups if lookups else 0.0,
        }

    def _keys(self) -> list[str]:
        try:
            return self._area.keys()
        except Exception as exc:
            logger.warning("cache_keys_failed", store=self.kind, error=str(exc))
            return []

    def _read(self, key: str, count_removal: bool = False) -> Any:
        """Load a live entry; evict stale or corrupt ones.

        Returns the entry, ``None`` when absent, or ``_MISSING`` when
        *count_removal* is set and an entry was evicted.
        """
        try:
            raw = self._area.get_item(key)
        except Exception as exc:
            logger.warning("cache_read_failed", store=self.kind, key=key, error=str(exc))
            return None
        if raw is None:
            return None

        try:
            entry = CacheEntry.from_payload(raw)
        except DeserializationError as exc:
            logger.warning("cache_entry_corrupt", store=self.kind, key=key, code=exc.code)
            self._discard(key)
            return _MISSING if count_removal else None

        if entry.is_stale(self._clock()):
            self._discard(key)
            return _MISSING if count_removal else None
        return entry

    def _discard(self, key: str) -> None:
        try:
            self._area.remove_item(key)
        except Exception as exc:
            logger.warning("cache_evict_failed", store=self.kind, key=key, error=str(exc))


class PersistentStore(StorageBackedCache):
    """Cache whose entries outlive the process (default TTL one hour)."""

    kind = "persistent"
    DEFAULT_TTL = DEFAULT_PERSISTENT_TTL


class SessionStore(StorageBackedCache):
    """Cache whose entries last for one session (default TTL 30 minutes)."""

    kind = "session"
    DEFAULT_TTL = DEFAULT_SESSION_TTL
