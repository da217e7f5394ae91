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
"""Deterministic cache keys for memoized calls.

Keys are built by value: two calls whose arguments are structurally equal
produce the same key regardless of dict insertion order.
"""

from __future__ import annotations

import dataclasses
import datetime
import json
import uuid
from collections.abc import Mapping, Sequence
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel


def canonical_serialize(value: Any) -> str:
    """Serialize *value* to compact JSON with sorted object keys.

    Raises:
        TypeError: if *value* contains something with no canonical form.
    """
    return json.dumps(_normalize(value), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def derive_key(name: str, args: Sequence[Any], kwargs: Mapping[str, Any] | None = None) -> str:
    """Build ``name + canonical(args)``, followed by canonical kwargs if any."""
    key = name + canonical_serialize(list(args))
    if kwargs:
        key += canonical_serialize(dict(kwargs))
    return key


def _normalize(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return _normalize(value.value)
    if isinstance(value, BaseModel):
        return _normalize(value.model_dump(mode="json"))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _normalize(dataclasses.asdict(value))
    if isinstance(value, Mapping):
        return {_key(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted((_normalize(item) for item in value), key=canonical_serialize)
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, datetime.timedelta):
        return value.total_seconds()
    if isinstance(value, (uuid.UUID, Decimal)):
        return str(value)
    raise TypeError(f"Cannot build a cache key from {type(value).__name__!r}")


def _key(key: Any) -> str:
    return key if isinstance(key, str) else canonical_serialize(key)
