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
"""httpx-based image loader used for warming images."""

from __future__ import annotations

from datetime import timedelta

import httpx

from nomadcache.kernel.exceptions import ImagePreloadError


class HttpxImageLoader:
    """Fetch an image over HTTP(S) and discard the body.

    The load counts as successful on a 2xx response with an ``image/*``
    content type. Anything else raises ``ImagePreloadError``. Caching is
    left to the HTTP layer in front of the image host.
    """

    def __init__(
        self,
        timeout: timedelta = timedelta(seconds=10),
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout.total_seconds(), follow_redirects=True)

    async def load(self, url: str) -> None:
        try:
            async with self._client.stream("GET", url) as response:
                if not response.is_success:
                    raise ImagePreloadError(
                        f"Image request for {url} returned {response.status_code}",
                        code="CACHE_IMAGE_STATUS",
                        context={"url": url, "status": response.status_code},
                    )
                content_type = response.headers.get("content-type", "")
                if not content_type.startswith("image/"):
                    raise ImagePreloadError(
                        f"{url} is not an image ({content_type or 'no content type'})",
                        code="CACHE_IMAGE_TYPE",
                        context={"url": url, "content_type": content_type},
                    )
                async for _ in response.aiter_bytes():
                    pass
        except httpx.HTTPError as exc:
            raise ImagePreloadError(
                f"Image request for {url} failed: {exc}",
                code="CACHE_IMAGE_TRANSPORT",
                context={"url": url},
            ) from exc

    async def close(self) -> None:
        """Close the HTTP client if this loader created it."""
        if self._owns_client:
            await self._client.aclose()
