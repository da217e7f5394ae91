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
"""Cache ports: the store contract and the media stores are built on."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheStore(Protocol):
    """Synchronous TTL cache contract shared by every store.

    ``get`` and ``has`` treat stale entries as absent and remove them.
    """

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any, ttl: timedelta | None = None) -> None: ...

    def has(self, key: str) -> bool: ...

    def delete(self, key: str) -> bool: ...

    def clear(self) -> None: ...


@runtime_checkable
class StorageArea(Protocol):
    """String-keyed, string-valued storage medium.

    Implementations raise ``StorageUnavailableError`` (or its quota
    subclass) when the medium cannot serve a call.
    """

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def clear(self) -> None: ...

    def keys(self) -> list[str]: ...


@runtime_checkable
class ImageLoader(Protocol):
    """Fetches an image so the next real request is served warm."""

    async def load(self, url: str) -> None: ...
