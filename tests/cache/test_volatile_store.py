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
"""Tests for VolatileStore."""

from datetime import timedelta

import pytest

from nomadcache.cache.adapters.memory import VolatileStore
from nomadcache.cache.ports.outbound import CacheStore


class TestVolatileStoreBasics:
    def test_set_and_get(self, clock):
        store = VolatileStore(clock=clock)
        store.set("key1", "value1")
        assert store.get("key1") == "value1"

    def test_get_missing_returns_default(self, clock):
        store = VolatileStore(clock=clock)
        assert store.get("missing") is None
        assert store.get("missing", "fallback") == "fallback"

    def test_overwrite_returns_latest(self, clock):
        store = VolatileStore(clock=clock)
        store.set("k", "v1")
        store.set("k", "v2")
        assert store.get("k") == "v2"

    def test_stores_any_python_value(self, clock):
        store = VolatileStore(clock=clock)
        marker = object()
        store.set("obj", marker)
        assert store.get("obj") is marker

    def test_cached_none_is_present(self, clock):
        store = VolatileStore(clock=clock)
        store.set("nothing", None)
        assert store.has("nothing") is True

    def test_delete(self, clock):
        store = VolatileStore(clock=clock)
        store.set("key1", "value1")
        assert store.delete("key1") is True
        assert store.get("key1") is None

    def test_delete_missing_returns_false(self, clock):
        store = VolatileStore(clock=clock)
        assert store.delete("missing") is False

    def test_clear(self, clock):
        store = VolatileStore(clock=clock)
        store.set("a", 1)
        store.set("b", 2)
        store.clear()
        assert store.get("a") is None
        assert store.get("b") is None

    def test_protocol_compliance(self, clock):
        store: CacheStore = VolatileStore(clock=clock)
        assert isinstance(store, CacheStore)


class TestVolatileStoreExpiry:
    def test_value_available_until_ttl_elapses(self, clock):
        store = VolatileStore(clock=clock)
        store.set("k", "v", ttl=timedelta(seconds=10))
        clock.advance(timedelta(seconds=9.999))
        assert store.get("k") == "v"

    def test_value_absent_once_ttl_elapsed(self, clock):
        store = VolatileStore(clock=clock)
        store.set("k", "v", ttl=timedelta(seconds=10))
        clock.advance(timedelta(seconds=10))
        assert store.get("k") is None

    def test_default_ttl_is_five_minutes(self, clock):
        store = VolatileStore(clock=clock)
        assert store.default_ttl == timedelta(minutes=5)
        store.set("k", "v")
        clock.advance(timedelta(minutes=4, seconds=59))
        assert store.get("k") == "v"
        clock.advance(timedelta(seconds=1))
        assert store.get("k") is None

    def test_zero_ttl_is_immediately_stale(self, clock):
        store = VolatileStore(clock=clock)
        store.set("k", "v", ttl=timedelta(0))
        assert store.has("k") is False

    def test_get_evicts_stale_entry(self, clock):
        store = VolatileStore(clock=clock)
        store.set("k", "v", ttl=timedelta(seconds=1))
        clock.advance(timedelta(seconds=2))
        store.get("k")
        assert "k" not in store._store

    def test_has_evicts_stale_entry(self, clock):
        store = VolatileStore(clock=clock)
        store.set("k", "v", ttl=timedelta(seconds=1))
        clock.advance(timedelta(seconds=2))
        assert store.has("k") is False
        assert "k" not in store._store

    def test_overwrite_restarts_ttl(self, clock):
        store = VolatileStore(clock=clock)
        store.set("k", "v1", ttl=timedelta(seconds=10))
        clock.advance(timedelta(seconds=8))
        store.set("k", "v2", ttl=timedelta(seconds=10))
        clock.advance(timedelta(seconds=8))
        assert store.get("k") == "v2"

    def test_purge_expired(self, clock):
        store = VolatileStore(clock=clock)
        store.set("short", 1, ttl=timedelta(seconds=1))
        store.set("long", 2, ttl=timedelta(hours=1))
        clock.advance(timedelta(seconds=5))
        assert store.purge_expired() == 1
        assert list(store._store) == ["long"]


class TestVolatileStoreCapacity:
    def test_unbounded_by_default(self, clock):
        store = VolatileStore(clock=clock)
        for i in range(1000):
            store.set(f"k{i}", i)
        assert store.get_stats()["size"] == 1000

    def test_evicts_oldest_when_full(self, clock):
        store = VolatileStore(max_entries=2, clock=clock)
        store.set("a", 1)
        store.set("b", 2)
        store.set("c", 3)
        assert store.get("a") is None
        assert store.get("b") == 2
        assert store.get("c") == 3
        assert store.get_stats()["capacity_evictions"] == 1

    def test_overwrite_does_not_evict(self, clock):
        store = VolatileStore(max_entries=2, clock=clock)
        store.set("a", 1)
        store.set("b", 2)
        store.set("a", 10)
        assert store.get("a") == 10
        assert store.get("b") == 2

    def test_overwrite_refreshes_insertion_order(self, clock):
        store = VolatileStore(max_entries=2, clock=clock)
        store.set("a", 1)
        store.set("b", 2)
        store.set("a", 10)
        store.set("c", 3)
        assert store.get("b") is None
        assert store.get("a") == 10

    def test_stale_entries_are_dropped_before_live_ones(self, clock):
        store = VolatileStore(max_entries=2, clock=clock)
        store.set("live", 1, ttl=timedelta(hours=1))
        store.set("stale", 2, ttl=timedelta(seconds=1))
        clock.advance(timedelta(seconds=5))
        store.set("new", 3)
        assert store.get("live") == 1
        assert store.get("new") == 3
        stats = store.get_stats()
        assert stats["capacity_evictions"] == 0
        assert stats["expirations"] == 1

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            VolatileStore(max_entries=0)


class TestVolatileStoreStats:
    def test_stats_empty(self, clock):
        stats = VolatileStore(clock=clock).get_stats()
        assert stats["type"] == "memory"
        assert stats["size"] == 0
        assert stats["max_size"] is None
        assert stats["hit_rate"] == 0.0

    def test_hits_and_misses(self, clock):
        store = VolatileStore(clock=clock)
        store.set("a", 1)
        store.get("a")
        store.get("a")
        store.get("b")
        stats = store.get_stats()
        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["hit_rate"] == pytest.approx(2 / 3)

    def test_expirations_count_read_and_purge_removals(self, clock):
        store = VolatileStore(clock=clock)
        store.set("a", 1, ttl=timedelta(seconds=1))
        store.set("b", 2, ttl=timedelta(seconds=1))
        store.set("c", 3, ttl=timedelta(hours=1))
        clock.advance(timedelta(seconds=2))
        assert store.get("a") is None
        assert store.purge_expired() == 1
        stats = store.get_stats()
        assert stats["expirations"] == 2
        assert stats["capacity_evictions"] == 0

    def test_keys_exclude_stale(self, clock):
        store = VolatileStore(clock=clock)
        store.set("fresh", 1, ttl=timedelta(hours=1))
        store.set("old", 2, ttl=timedelta(seconds=1))
        clock.advance(timedelta(seconds=2))
        assert store.keys() == ["fresh"]


class TestCostOfLivingScenario:
    def test_bangkok_cost_expires_after_five_minutes(self, clock):
        store = VolatileStore(clock=clock)
        store.set("city:bangkok:cost", 1450, ttl=timedelta(minutes=5))
        assert store.get("city:bangkok:cost") == 1450

        clock.advance(timedelta(minutes=6))
        assert store.get("city:bangkok:cost") is None
        assert store.has("city:bangkok:cost") is False
