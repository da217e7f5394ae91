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
"""nomadcache cache — TTL stores, memoization and prefetching."""

from nomadcache.cache.adapters import (
    FileStorageArea,
    MemoryStorageArea,
    PersistentStore,
    RedisStorageArea,
    SessionStore,
    StorageBackedCache,
    VolatileStore,
)
from nomadcache.cache.decorators import cached, memoize
from nomadcache.cache.images import HttpxImageLoader
from nomadcache.cache.keys import canonical_serialize, derive_key
from nomadcache.cache.ports.outbound import CacheStore, ImageLoader, StorageArea
from nomadcache.cache.prefetch import DrainResult, Prefetcher
from nomadcache.cache.provider import CacheProvider
from nomadcache.cache.types import CacheEntry, Durability

__all__ = [
    "CacheEntry",
    "CacheProvider",
    "CacheStore",
    "DrainResult",
    "Durability",
    "FileStorageArea",
    "HttpxImageLoader",
    "ImageLoader",
    "MemoryStorageArea",
    "PersistentStore",
    "Prefetcher",
    "RedisStorageArea",
    "SessionStore",
    "StorageArea",
    "StorageBackedCache",
    "VolatileStore",
    "cached",
    "canonical_serialize",
    "derive_key",
    "memoize",
]
