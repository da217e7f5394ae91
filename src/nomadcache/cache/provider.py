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
"""CacheProvider — the one set of cache stores an application shares."""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta
from pathlib import Path
from typing import Any

import structlog

from nomadcache.cache.adapters.areas import FileStorageArea, MemoryStorageArea, RedisStorageArea
from nomadcache.cache.adapters.memory import VolatileStore
from nomadcache.cache.adapters.storage import PersistentStore, SessionStore
from nomadcache.cache.decorators import F, cached
from nomadcache.cache.images import HttpxImageLoader
from nomadcache.cache.ports.outbound import CacheStore, ImageLoader, StorageArea
from nomadcache.cache.prefetch import Prefetcher
from nomadcache.cache.types import Clock, Durability, system_clock
from nomadcache.config.properties.cache import CacheProperties, StorageAreaProperties
from nomadcache.core.config import Config
from nomadcache.kernel.exceptions import ValidationException

logger = structlog.get_logger("nomadcache.cache.provider")


class CacheProvider:
    """Explicit holder for the volatile, persistent and session stores.

    Build one at start-up (usually with :meth:`from_config`) and pass it to
    the services that need caching instead of reaching for a global.
    Stores not passed in sit on fresh in-memory storage areas.
    """

    def __init__(
        self,
        volatile: VolatileStore | None = None,
        persistent: PersistentStore | None = None,
        session: SessionStore | None = None,
        image_loader: ImageLoader | None = None,
        on_prefetch_error: Callable[[BaseException], None] | None = None,
        clock: Clock = system_clock,
    ) -> None:
        self.volatile = volatile or VolatileStore(clock=clock)
        self.persistent = persistent or PersistentStore(MemoryStorageArea(), clock=clock)
        self.session = session or SessionStore(MemoryStorageArea(), clock=clock)
        self._image_loader = image_loader
        self.prefetcher = Prefetcher(self.volatile, image_loader=image_loader, on_error=on_prefetch_error)

    @classmethod
    def from_config(cls, config: Config, clock: Clock = system_clock) -> CacheProvider:
        """Build every store from ``nomadcache.cache.*`` settings."""
        props = config.bind(CacheProperties)
        provider = cls(
            volatile=VolatileStore(
                default_ttl=props.volatile_ttl_delta(),
                max_entries=props.max_entries,
                clock=clock,
            ),
            persistent=PersistentStore(
                _build_area(props.persistent),
                default_ttl=props.persistent_ttl_delta(),
                clock=clock,
            ),
            session=SessionStore(
                _build_area(props.session),
                default_ttl=props.session_ttl_delta(),
                clock=clock,
            ),
            image_loader=HttpxImageLoader(timeout=timedelta(seconds=props.image_timeout)),
            clock=clock,
        )
        logger.info(
            "cache_provider_configured",
            persistent=props.persistent.type,
            session=props.session.type,
            max_entries=props.max_entries,
        )
        return provider

    def store_for(self, durability: Durability | str) -> CacheStore:
        """Return the store for *durability* ("volatile", "persistent", "session").

        Raises:
            ValidationException: for an unknown durability name.
        """
        try:
            resolved = Durability.parse(durability)
        except ValueError as exc:
            raise ValidationException(
                f"Unknown cache durability '{durability}'",
                code="CACHE_DURABILITY",
                context={"durability": str(durability)},
            ) from exc

        stores: dict[Durability, CacheStore] = {
            Durability.VOLATILE: self.volatile,
            Durability.PERSISTENT: self.persistent,
            Durability.SESSION: self.session,
        }
        return stores[resolved]

    def cached(
        self,
        durability: Durability | str = Durability.VOLATILE,
        *,
        name: str | None = None,
        ttl: timedelta | None = None,
    ) -> Callable[[F], F]:
        """Memoize an async function in the store for *durability*."""
        return cached(self.store_for(durability), name=name, ttl=ttl)

    def get_stats(self) -> dict[str, dict[str, Any]]:
        return {
            "volatile": self.volatile.get_stats(),
            "persistent": self.persistent.get_stats(),
            "session": self.session.get_stats(),
        }

    async def close(self) -> None:
        """Release the HTTP client and Redis connections this provider uses."""
        if isinstance(self._image_loader, HttpxImageLoader):
            await self._image_loader.close()
        for store in (self.persistent, self.session):
            if isinstance(store.area, RedisStorageArea):
                store.area.close()


def _build_area(props: StorageAreaProperties) -> StorageArea:
    if props.type == "file":
        return FileStorageArea(Path(props.path), quota_bytes=props.quota_bytes)
    if props.type == "redis":
        return RedisStorageArea.from_url(props.redis_url, namespace=props.namespace)
    return MemoryStorageArea(quota_bytes=props.quota_bytes)
