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
"""Tests for PersistentStore and SessionStore."""

import json
from datetime import timedelta

import pytest

from nomadcache.cache.adapters.areas import FileStorageArea, MemoryStorageArea
from nomadcache.cache.adapters.storage import PersistentStore, SessionStore
from nomadcache.cache.ports.outbound import CacheStore
from nomadcache.kernel.exceptions import StorageUnavailableError


class BrokenArea:
    """Storage area whose every call fails, like disabled browser storage."""

    def get_item(self, key: str) -> str | None:
        raise StorageUnavailableError("storage disabled")

    def set_item(self, key: str, value: str) -> None:
        raise StorageUnavailableError("storage disabled")

    def remove_item(self, key: str) -> None:
        raise StorageUnavailableError("storage disabled")

    def clear(self) -> None:
        raise StorageUnavailableError("storage disabled")

    def keys(self) -> list[str]:
        raise StorageUnavailableError("storage disabled")


class WriteFailingArea(MemoryStorageArea):
    """Accepts reads and removals but refuses writes once armed."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False

    def set_item(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        super().set_item(key, value)


@pytest.fixture(params=[PersistentStore, SessionStore], ids=["persistent", "session"])
def store_cls(request):
    return request.param


class TestDurableStoreBasics:
    def test_set_and_get(self, store_cls, clock):
        store = store_cls(MemoryStorageArea(), clock=clock)
        store.set("k", {"a": 1})
        assert store.get("k") == {"a": 1}

    def test_overwrite_returns_latest(self, store_cls, clock):
        store = store_cls(MemoryStorageArea(), clock=clock)
        store.set("k", "v1")
        store.set("k", "v2")
        assert store.get("k") == "v2"

    def test_has_delete_clear(self, store_cls, clock):
        store = store_cls(MemoryStorageArea(), clock=clock)
        store.set("a", 1)
        store.set("b", 2)
        assert store.has("a") is True
        assert store.delete("a") is True
        assert store.delete("a") is False
        store.clear()
        assert store.has("b") is False

    def test_falsy_values_are_present(self, store_cls, clock):
        store = store_cls(MemoryStorageArea(), clock=clock)
        store.set("zero", 0)
        store.set("none", None)
        assert store.get("zero", "default") == 0
        assert store.has("none") is True

    def test_payload_shape(self, store_cls, clock):
        area = MemoryStorageArea()
        store = store_cls(area, clock=clock)
        store.set("k", [1, 2], ttl=timedelta(seconds=90))
        payload = json.loads(area.get_item("k"))
        assert payload == {"value": [1, 2], "storedAt": int(clock.now * 1000), "ttl": 90_000}

    def test_protocol_compliance(self, store_cls, clock):
        assert isinstance(store_cls(MemoryStorageArea(), clock=clock), CacheStore)


class TestDefaultTtls:
    def test_persistent_defaults_to_one_hour(self):
        assert PersistentStore(MemoryStorageArea()).default_ttl == timedelta(hours=1)

    def test_session_defaults_to_thirty_minutes(self):
        assert SessionStore(MemoryStorageArea()).default_ttl == timedelta(minutes=30)

    def test_explicit_default_overrides_class_default(self):
        store = SessionStore(MemoryStorageArea(), default_ttl=timedelta(minutes=2))
        assert store.default_ttl == timedelta(minutes=2)

    def test_session_entry_expires_after_default(self, clock):
        store = SessionStore(MemoryStorageArea(), clock=clock)
        store.set("k", "v")
        clock.advance(timedelta(minutes=29))
        assert store.get("k") == "v"
        clock.advance(timedelta(minutes=1))
        assert store.get("k") is None


class TestDurableStoreExpiry:
    def test_stale_entry_is_absent(self, store_cls, clock):
        store = store_cls(MemoryStorageArea(), clock=clock)
        store.set("k", "v", ttl=timedelta(seconds=30))
        clock.advance(timedelta(seconds=30))
        assert store.get("k") is None

    def test_get_removes_stale_entry_from_area(self, store_cls, clock):
        area = MemoryStorageArea()
        store = store_cls(area, clock=clock)
        store.set("k", "v", ttl=timedelta(seconds=1))
        clock.advance(timedelta(seconds=2))
        assert store.get("k") is None
        assert area.get_item("k") is None

    def test_has_removes_stale_entry_from_area(self, store_cls, clock):
        area = MemoryStorageArea()
        store = store_cls(area, clock=clock)
        store.set("k", "v", ttl=timedelta(seconds=1))
        clock.advance(timedelta(seconds=2))
        assert store.has("k") is False
        assert area.get_item("k") is None

    def test_purge_expired_counts_removed(self, store_cls, clock):
        area = MemoryStorageArea()
        store = store_cls(area, clock=clock)
        store.set("old", 1, ttl=timedelta(seconds=1))
        store.set("new", 2, ttl=timedelta(hours=2))
        area.set_item("junk", "not json")
        clock.advance(timedelta(seconds=5))
        assert store.purge_expired() == 2
        assert area.keys() == ["new"]


class TestDurableRoundTrip:
    def test_fresh_instance_reads_previous_write(self, tmp_path, clock):
        path = tmp_path / "storage.json"
        PersistentStore(FileStorageArea(path), clock=clock).set("k", {"a": 1, "b": [1, 2, 3]})

        restarted = PersistentStore(FileStorageArea(path), clock=clock)
        assert restarted.get("k") == {"a": 1, "b": [1, 2, 3]}

    def test_fresh_instance_respects_original_ttl(self, tmp_path, clock):
        path = tmp_path / "storage.json"
        PersistentStore(FileStorageArea(path), clock=clock).set("k", "v", ttl=timedelta(minutes=1))
        clock.advance(timedelta(minutes=2))
        assert PersistentStore(FileStorageArea(path), clock=clock).get("k") is None

    def test_tuples_come_back_as_lists(self, store_cls, clock):
        store = store_cls(MemoryStorageArea(), clock=clock)
        store.set("k", (1, 2))
        assert store.get("k") == [1, 2]

    def test_max_ttl_survives_round_trip(self, store_cls, clock):
        store = store_cls(MemoryStorageArea(), clock=clock)
        store.set("k", "forever", ttl=timedelta.max)
        clock.advance(timedelta(days=3650))
        assert store.get("k") == "forever"
        assert store.has("k") is True
        assert store.keys() == ["k"]
        assert store.purge_expired() == 0


class TestCorruptData:
    @pytest.mark.parametrize(
        "raw",
        [
            "not json at all",
            "{",
            "[1, 2, 3]",
            '{"value": 1}',
            '{"value": 1, "storedAt": "yesterday", "ttl": 1000}',
            '{"value": 1, "storedAt": NaN, "ttl": 1000}',
            '{"value": 1, "storedAt": 0, "ttl": Infinity}',
            '{"value": 1, "storedAt": -Infinity, "ttl": 1000}',
            '{"value": 1, "storedAt": 0, "ttl": 1e300}',
            '{"value": 1, "storedAt": 1e400, "ttl": 1000}',
            '{"value": 1, "storedAt": ' + "9" * 400 + ', "ttl": 1000}',
            "[" * 100000 + "]" * 100000,
        ],
    )
    def test_corrupt_payload_is_a_miss_and_evicted(self, store_cls, clock, raw):
        area = MemoryStorageArea()
        area.set_item("k", raw)
        store = store_cls(area, clock=clock)
        assert store.get("k") is None
        assert area.get_item("k") is None

    def test_corrupt_payload_has_returns_false(self, store_cls, clock):
        area = MemoryStorageArea()
        area.set_item("k", "garbage")
        assert store_cls(area, clock=clock).has("k") is False


class TestStorageFailures:
    def test_set_on_broken_area_does_not_raise(self, store_cls, clock):
        store = store_cls(BrokenArea(), clock=clock)
        store.set("k", "v")
        assert store.get("k") is None
        assert store.has("k") is False
        assert store.delete("k") is False
        store.clear()
        assert store.purge_expired() == 0
        assert store.keys() == []

    def test_failed_overwrite_leaves_key_absent(self, store_cls, clock):
        area = WriteFailingArea()
        store = store_cls(area, clock=clock)
        store.set("k", "old")
        area.fail_writes = True
        store.set("k", "new")
        assert store.get("k") is None

    def test_quota_exceeded_is_swallowed(self, store_cls, clock):
        store = store_cls(MemoryStorageArea(quota_bytes=64), clock=clock)
        store.set("big", "x" * 500)
        assert store.get("big") is None

    def test_unserializable_value_is_swallowed(self, store_cls, clock):
        store = store_cls(MemoryStorageArea(), clock=clock)
        store.set("k", object())
        assert store.get("k") is None


class TestDurableStoreStats:
    def test_stats_report_kind_and_counts(self, clock):
        store = SessionStore(MemoryStorageArea(), clock=clock)
        store.set("a", 1)
        store.get("a")
        store.get("missing")
        stats = store.get_stats()
        assert stats["type"] == "session"
        assert stats["size"] == 1
        assert stats["hits"] == 1
        assert stats["misses"] == 1
