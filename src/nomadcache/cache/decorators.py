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
"""Memoization of async operations through any cache store."""

from __future__ import annotations

import functools
import inspect
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any, TypeVar

import structlog

from nomadcache.cache.keys import derive_key
from nomadcache.cache.ports.outbound import CacheStore
from nomadcache.kernel.exceptions import ValidationException

logger = structlog.get_logger("nomadcache.cache.memoize")

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

_MISSING = object()
_RECEIVER_NAMES = ("self", "cls")


def memoize(
    func: F,
    store: CacheStore,
    *,
    name: str | None = None,
    ttl: timedelta | None = None,
) -> F:
    """Wrap an async function so repeated calls are served from *store*.

    The cache key is ``name`` followed by the canonical JSON of the call's
    arguments (defaults applied, a leading ``self``/``cls`` left out), so
    ``f(1, b=2)`` and ``f(1, 2)`` share an entry. ``name`` defaults to the
    function's module and qualified name, which stays stable across
    restarts and makes keys reusable with durable stores.

    Exceptions raised by *func* propagate unchanged and nothing is stored
    for the failed call. Concurrent calls with the same key are not
    deduplicated; each runs *func* and the last write wins.

    Args:
        func: Coroutine function to wrap.
        store: Store the results are read from and written to.
        name: Stable operation name used as the key prefix.
        ttl: Time-to-live for stored results; the store default when ``None``.

    Raises:
        ValidationException: if *func* is not a coroutine function.
    """
    if not inspect.iscoroutinefunction(func):
        raise ValidationException(
            f"memoize() needs a coroutine function, got {func!r}",
            code="CACHE_MEMOIZE_NOT_ASYNC",
        )

    op_name = name or f"{func.__module__}.{func.__qualname__}"
    sig = inspect.signature(func)
    params = list(sig.parameters.values())
    skip_receiver = bool(params) and params[0].name in _RECEIVER_NAMES

    def cache_key(*args: Any, **kwargs: Any) -> str:
        positional, keywords = _split_arguments(sig, args, kwargs, skip_receiver)
        return derive_key(op_name, positional, keywords)

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            key = cache_key(*args, **kwargs)
        except TypeError as exc:
            logger.warning("memoize_key_unserializable", operation=op_name, error=str(exc))
            return await func(*args, **kwargs)

        cached = store.get(key, _MISSING)
        if cached is not _MISSING:
            logger.debug("memoize_hit", operation=op_name, key=key)
            return cached

        result = await func(*args, **kwargs)
        store.set(key, result, ttl=ttl)
        return result

    def invalidate(*args: Any, **kwargs: Any) -> bool:
        """Drop the stored result for these arguments."""
        return store.delete(cache_key(*args, **kwargs))

    wrapper.cache_key = cache_key  # type: ignore[attr-defined]
    wrapper.invalidate = invalidate  # type: ignore[attr-defined]
    return wrapper  # type: ignore[return-value]


def cached(
    store: CacheStore,
    *,
    name: str | None = None,
    ttl: timedelta | None = None,
) -> Callable[[F], F]:
    """Decorator form of :func:`memoize`.

    Usage:
        @cached(volatile, ttl=timedelta(minutes=5))
        async def cost_of_living(city: str) -> dict: ...
    """

    def decorator(func: F) -> F:
        return memoize(func, store, name=name, ttl=ttl)

    return decorator


def _split_arguments(
    sig: inspect.Signature,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
    skip_receiver: bool,
) -> tuple[list[Any], dict[str, Any]]:
    bound = sig.bind(*args, **kwargs)
    bound.apply_defaults()

    positional: list[Any] = []
    keywords: dict[str, Any] = {}
    for index, (param_name, value) in enumerate(bound.arguments.items()):
        if index == 0 and skip_receiver:
            continue
        kind = sig.parameters[param_name].kind
        if kind is inspect.Parameter.VAR_POSITIONAL:
            positional.extend(value)
        elif kind is inspect.Parameter.VAR_KEYWORD:
            keywords.update(value)
        elif kind is inspect.Parameter.KEYWORD_ONLY:
            keywords[param_name] = value
        else:
            positional.append(value)
    return positional, keywords
