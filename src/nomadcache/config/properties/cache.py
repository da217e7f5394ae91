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
"""Cache subsystem configuration properties."""

from __future__ import annotations

from datetime import timedelta
from typing import Literal

from pydantic import BaseModel, Field

from nomadcache.core.config import config_properties


class StorageAreaProperties(BaseModel):
    """Backing medium for one durable store (nomadcache.cache.persistent.*)."""

    type: Literal["memory", "file", "redis"] = "memory"
    path: str = ".nomadcache/storage.json"
    redis_url: str = "redis://localhost:6379/0"
    namespace: str = "nomadcache:"
    quota_bytes: int | None = Field(default=None, gt=0)


@config_properties(prefix="nomadcache.cache")
class CacheProperties(BaseModel):
    """Configuration for the cache subsystem (nomadcache.cache.*).

    TTLs are expressed in seconds.
    """

    volatile_ttl: int = Field(default=300, gt=0)
    persistent_ttl: int = Field(default=3600, gt=0)
    session_ttl: int = Field(default=1800, gt=0)
    max_entries: int | None = Field(default=None, ge=1)
    image_timeout: float = Field(default=10.0, gt=0)
    persistent: StorageAreaProperties = Field(default_factory=lambda: StorageAreaProperties(type="file"))
    session: StorageAreaProperties = Field(default_factory=StorageAreaProperties)

    def volatile_ttl_delta(self) -> timedelta:
        return timedelta(seconds=self.volatile_ttl)

    def persistent_ttl_delta(self) -> timedelta:
        return timedelta(seconds=self.persistent_ttl)

    def session_ttl_delta(self) -> timedelta:
        return timedelta(seconds=self.session_ttl)
