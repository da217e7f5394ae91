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
"""Cache entry model and its durable JSON form."""

from __future__ import annotations

import json
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any

from nomadcache.kernel.exceptions import DeserializationError

Clock = Callable[[], float]
"""Returns wall-clock epoch seconds."""

DEFAULT_VOLATILE_TTL = timedelta(minutes=5)
DEFAULT_PERSISTENT_TTL = timedelta(hours=1)
DEFAULT_SESSION_TTL = timedelta(minutes=30)


def system_clock() -> float:
    return time.time()


class Durability(str, Enum):
    """Which store a cached value lives in."""

    VOLATILE = "volatile"
    PERSISTENT = "persistent"
    SESSION = "session"

    @classmethod
    def parse(cls, value: Durability | str) -> Durability:
        """Accept enum members, their values, or the legacy names memory/local."""
        if isinstance(value, cls):
            return value
        aliases = {"memory": cls.VOLATILE, "local": cls.PERSISTENT}
        key = str(value).strip().lower()
        if key in aliases:
            return aliases[key]
        return cls(key)


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One cached value with the time it was stored and how long it lives."""

    value: Any
    stored_at: float
    ttl: timedelta

    def is_stale(self, now: float) -> bool:
        return now - self.stored_at >= self.ttl.total_seconds()

    def expires_at(self) -> float:
        return self.stored_at + self.ttl.total_seconds()

    def to_payload(self) -> str:
        """Serialize as ``{"value", "storedAt", "ttl"}`` with millisecond times.

        Raises:
            TypeError: if the value is not JSON-serializable.
            ValueError: if the value contains circular references or NaN-like
                numbers JSON cannot carry.
        """
        return json.dumps(
            {
                "value": self.value,
                "storedAt": int(round(self.stored_at * 1000)),
                "ttl": self._ttl_ms(),
            },
            separators=(",", ":"),
            allow_nan=False,
        )

    def _ttl_ms(self) -> int:
        # timedelta.max overshoots by rounding once expressed as float milliseconds
        ms = int(round(self.ttl.total_seconds() * 1000))
        return max(-_MAX_TTL_MS, min(ms, _MAX_TTL_MS))

    @classmethod
    def from_payload(cls, raw: str) -> CacheEntry:
        """Rebuild an entry from :meth:`to_payload` output.

        Raises:
            DeserializationError: if *raw* is not a well-formed entry. Non-finite
                or out-of-range timing fields count as malformed.
        """
        try:
            data = json.loads(raw, parse_constant=_reject_constant)
        except (ValueError, TypeError, RecursionError) as exc:
            raise DeserializationError("Stored payload is not valid JSON", code="CACHE_DESERIALIZE_001") from exc

        if not isinstance(data, dict) or not {"value", "storedAt", "ttl"} <= data.keys():
            raise DeserializationError("Stored payload is not a cache entry", code="CACHE_DESERIALIZE_002")

        stored_at, ttl = data["storedAt"], data["ttl"]
        if not _is_number(stored_at) or not _is_number(ttl):
            raise DeserializationError(
                "Cache entry has non-numeric timing fields",
                code="CACHE_DESERIALIZE_003",
                context={"storedAt": stored_at, "ttl": ttl},
            )

        try:
            stored_at_seconds = stored_at / 1000
            entry_ttl = timedelta(milliseconds=ttl)
        except (OverflowError, ValueError) as exc:
            raise DeserializationError(
                "Cache entry timing fields are out of range",
                code="CACHE_DESERIALIZE_004",
                context={"storedAt": stored_at, "ttl": ttl},
            ) from exc

        return cls(value=data["value"], stored_at=stored_at_seconds, ttl=entry_ttl)


_MAX_TTL_MS = timedelta.max // timedelta(milliseconds=1)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-finite number {name} in payload")


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        return math.isfinite(value)
    return isinstance(value, int)
