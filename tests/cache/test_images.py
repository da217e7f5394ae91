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
"""Tests for HttpxImageLoader using httpx.MockTransport."""

import httpx
import pytest

from nomadcache.cache.images import HttpxImageLoader
from nomadcache.cache.ports.outbound import ImageLoader
from nomadcache.kernel.exceptions import ImagePreloadError


def _loader(handler) -> HttpxImageLoader:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpxImageLoader(client=client)


class TestHttpxImageLoader:
    @pytest.mark.asyncio
    async def test_loads_image(self):
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, headers={"content-type": "image/jpeg"}, content=b"\xff\xd8\xff")

        await _loader(handler).load("https://img.example/bangkok.jpg")
        assert requested == ["https://img.example/bangkok.jpg"]

    @pytest.mark.asyncio
    async def test_http_error_status_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, headers={"content-type": "text/html"})

        with pytest.raises(ImagePreloadError) as exc_info:
            await _loader(handler).load("https://img.example/missing.jpg")
        assert exc_info.value.context["status"] == 404

    @pytest.mark.asyncio
    async def test_non_image_content_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"content-type": "text/html"}, content=b"<html></html>")

        with pytest.raises(ImagePreloadError) as exc_info:
            await _loader(handler).load("https://img.example/page")
        assert exc_info.value.code == "CACHE_IMAGE_TYPE"

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ImagePreloadError) as exc_info:
            await _loader(handler).load("https://img.example/a.jpg")
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        await HttpxImageLoader(client=client).close()
        assert client.is_closed is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_close_owned_client(self):
        loader = HttpxImageLoader()
        await loader.close()
        assert loader._client.is_closed is True

    def test_protocol_compliance(self):
        assert isinstance(HttpxImageLoader(), ImageLoader)
