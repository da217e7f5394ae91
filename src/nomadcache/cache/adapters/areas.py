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
"""String storage areas backing the persistent and session stores."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

import structlog
from redis.exceptions import RedisError

from nomadcache.kernel.exceptions import StorageQuotaExceededError, StorageUnavailableError

logger = structlog.get_logger("nomadcache.cache.storage")


def _item_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


def _check_quota(items: dict[str, str], key: str, value: str, quota_bytes: int | None) -> None:
    if quota_bytes is None:
        return
    used = sum(_item_size(k, v) for k, v in items.items() if k != key)
    needed = used + _item_size(key, value)
    if needed > quota_bytes:
        raise StorageQuotaExceededError(
            f"Writing '{key}' needs {needed} bytes, quota is {quota_bytes}",
            code="CACHE_STORAGE_QUOTA",
            context={"key": key, "needed": needed, "quota_bytes": quota_bytes},
        )


class MemoryStorageArea:
    """Dict-backed storage area living as long as the object.

    One instance corresponds to one browsing session: hand the same
    instance to every SessionStore of that session and drop it when the
    session ends.
    """

    def __init__(self, quota_bytes: int | None = None) -> None:
        self._items: dict[str, str] = {}
        self._quota_bytes = quota_bytes

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        _check_quota(self._items, key, value, self._quota_bytes)
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()

    def keys(self) -> list[str]:
        return list(self._items)


class FileStorageArea:
    """Storage area persisted as a single JSON document on disk.

    Every mutation rewrites the document atomically, so a new instance
    pointed at the same path (for example after a restart) sees the same
    items. Instances sharing a path pick up each other's writes through
    the file's modification time.
    """

    def __init__(self, path: str | Path, quota_bytes: int | None = None) -> None:
        self._path = Path(path)
        self._quota_bytes = quota_bytes
        self._items: dict[str, str] = {}
        self._signature: tuple[int, int] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def get_item(self, key: str) -> str | None:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = dict(self._load())
        _check_quota(items, key, value, self._quota_bytes)
        items[key] = value
        self._write(items)

    def remove_item(self, key: str) -> None:
        items = self._load()
        if key in items:
            items = dict(items)
            del items[key]
            self._write(items)

    def clear(self) -> None:
        self._write({})

    def keys(self) -> list[str]:
        return list(self._load())

    def _load(self) -> dict[str, str]:
        try:
            stat = self._path.stat()
            signature = (stat.st_mtime_ns, stat.st_size)
        except FileNotFoundError:
            self._items, self._signature = {}, None
            return self._items
        except OSError as exc:
            raise StorageUnavailableError(
                f"Cannot stat storage file {self._path}", code="CACHE_STORAGE_IO", context={"path": str(self._path)}
            ) from exc

        if signature == self._signature:
            return self._items

        try:
            with open(self._path, encoding="utf-8") as f:
                data: Any = json.load(f)
        except json.JSONDecodeError:
            logger.warning("storage_file_corrupt", path=str(self._path))
            data = {}
        except OSError as exc:
            raise StorageUnavailableError(
                f"Cannot read storage file {self._path}", code="CACHE_STORAGE_IO", context={"path": str(self._path)}
            ) from exc

        if not isinstance(data, dict):
            logger.warning("storage_file_corrupt", path=str(self._path))
            data = {}
        self._items = {str(k): v for k, v in data.items() if isinstance(v, str)}
        self._signature = signature
        return self._items

    def _write(self, items: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(items, f, separators=(",", ":"))
                os.replace(tmp_name, self._path)
                stat = self._path.stat()
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageUnavailableError(
                f"Cannot write storage file {self._path}", code="CACHE_STORAGE_IO", context={"path": str(self._path)}
            ) from exc

        self._items = items
        self._signature = (stat.st_mtime_ns, stat.st_size)


class RedisStorageArea:
    """Storage area on a synchronous ``redis.Redis``-like client.

    Keys are prefixed with *namespace*; :meth:`clear` only removes keys in
    that namespace. Redis errors surface as ``StorageUnavailableError``.
    """

    def __init__(self, client: Any, namespace: str = "nomadcache:") -> None:
        self._client = client
        self._namespace = namespace

    @classmethod
    def from_url(cls, url: str, namespace: str = "nomadcache:") -> RedisStorageArea:
        import redis

        return cls(redis.Redis.from_url(url), namespace=namespace)

    @property
    def client(self) -> Any:
        return self._client

    def get_item(self, key: str) -> str | None:
        try:
            raw = self._client.get(self._namespace + key)
        except RedisError as exc:
            raise self._unavailable("GET", key) from exc
        if raw is None:
            return None
        return raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)

    def set_item(self, key: str, value: str) -> None:
        try:
            self._client.set(self._namespace + key, value.encode("utf-8"))
        except RedisError as exc:
            raise self._unavailable("SET", key) from exc

    def remove_item(self, key: str) -> None:
        try:
            self._client.delete(self._namespace + key)
        except RedisError as exc:
            raise self._unavailable("DEL", key) from exc

    def clear(self) -> None:
        keys = [self._namespace + key for key in self.keys()]
        if not keys:
            return
        try:
            self._client.delete(*keys)
        except RedisError as exc:
            raise self._unavailable("DEL", self._namespace + "*") from exc

    def keys(self) -> list[str]:
        keys: list[str] = []
        try:
            for raw in self._client.scan_iter(match=self._namespace + "*"):
                name = raw.decode("utf-8") if isinstance(raw, bytes) else raw
                keys.append(name[len(self._namespace):])
        except RedisError as exc:
            raise self._unavailable("SCAN", self._namespace + "*") from exc
        return keys

    def close(self) -> None:
        self._client.close()

    def _unavailable(self, command: str, key: str) -> StorageUnavailableError:
        return StorageUnavailableError(
            f"Redis {command} failed for '{key}'",
            code="CACHE_STORAGE_REDIS",
            context={"command": command, "key": key},
        )
