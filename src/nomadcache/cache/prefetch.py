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
"""Best-effort warming of the volatile store."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

import structlog

from nomadcache.cache.adapters.memory import VolatileStore
from nomadcache.cache.ports.outbound import ImageLoader
from nomadcache.kernel.exceptions import ImagePreloadError

logger = structlog.get_logger("nomadcache.cache.prefetch")

Loader = Callable[[], Awaitable[Any]]
ErrorCallback = Callable[[BaseException], None]


@dataclass
class DrainResult:
    """Outcome of one :meth:`Prefetcher.drain` batch."""

    succeeded: int = 0
    failures: list[BaseException] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)


def _log_failure(exc: BaseException) -> None:
    logger.warning("prefetch_loader_failed", error=str(exc), error_type=type(exc).__name__)


class Prefetcher:
    """Queue of zero-argument loaders drained concurrently on demand.

    Loaders write their own results (usually into the volatile store).
    A failing loader never affects the others and never fails the batch;
    each failure goes to ``on_error``, which logs a warning by default.
    """

    def __init__(
        self,
        store: VolatileStore,
        image_loader: ImageLoader | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self._store = store
        self._image_loader = image_loader
        self._on_error = on_error or _log_failure
        self._queue: list[Loader] = []

    @property
    def pending(self) -> int:
        return len(self._queue)

    def enqueue(self, loader: Loader) -> None:
        self._queue.append(loader)

    def preload_data(self, key: str, loader: Loader, ttl: timedelta | None = None) -> None:
        """Queue *loader* and store its result in the volatile store under *key*."""

        async def load_into_store() -> None:
            self._store.set(key, await loader(), ttl=ttl)

        self.enqueue(load_into_store)

    async def drain(self) -> DrainResult:
        """Run every queued loader concurrently and wait for all of them.

        Loaders queued while a drain is running go to the next batch.
        """
        batch, self._queue = self._queue, []
        result = DrainResult()
        if not batch:
            return result

        outcomes = await asyncio.gather(*(self._run(loader) for loader in batch), return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                result.failures.append(outcome)
                self._report(outcome)
            else:
                result.succeeded += 1

        logger.debug("prefetch_drained", succeeded=result.succeeded, failed=result.failed)
        return result

    async def preload_image(self, url: str) -> None:
        """Load *url* through the image loader.

        Raises:
            ImagePreloadError: if the image could not be loaded or no
                loader is configured.
        """
        if self._image_loader is None:
            raise ImagePreloadError("No image loader configured", code="CACHE_IMAGE_NO_LOADER", context={"url": url})
        await self._image_loader.load(url)

    @staticmethod
    async def _run(loader: Loader) -> Any:
        return await loader()

    def _report(self, exc: BaseException) -> None:
        try:
            self._on_error(exc)
        except Exception:
            logger.exception("prefetch_error_callback_failed")
