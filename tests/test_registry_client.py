"""Tests for the registry HTTP client."""

from __future__ import annotations

import httpx
import pytest

from skillmanager.config import RegistryConfig
from skillmanager.errors import RegistryNetworkError, RegistryNotFoundError
from skillmanager.registry.client import RegistryClient


def _client(handler) -> RegistryClient:
    return RegistryClient(
        RegistryConfig(base_url="https://registry.test/"),
        transport=httpx.MockTransport(handler),
    )


class TestFetchLatestVersion:
    @pytest.mark.asyncio
    async def test_latest(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/skills/pdf-tools"
            return httpx.Response(200, json={"skill": {"slug": "pdf-tools"}, "latestVersion": {"version": "1.3.0"}})

        assert await _client(handler).fetch_latest_version("pdf-tools") == "1.3.0"

    @pytest.mark.asyncio
    async def test_unknown_slug(self):
        client = _client(lambda request: httpx.Response(404))
        with pytest.raises(RegistryNotFoundError):
            await client.fetch_latest_version("nope")

    @pytest.mark.asyncio
    async def test_no_published_version(self):
        client = _client(lambda request: httpx.Response(200, json={"skill": {}, "latestVersion": None}))
        with pytest.raises(RegistryNotFoundError):
            await client.fetch_latest_version("draft")

    @pytest.mark.asyncio
    async def test_server_error(self):
        client = _client(lambda request: httpx.Response(503))
        with pytest.raises(RegistryNetworkError):
            await client.fetch_latest_version("pdf-tools")

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RegistryNetworkError):
            await _client(handler).fetch_latest_version("pdf-tools")


class TestDownload:
    @pytest.mark.asyncio
    async def test_download_to_temp_file(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            return httpx.Response(200, content=b"PK fake archive")

        path = await _client(handler).download("pdf-tools", "1.3.0")
        try:
            assert path.read_bytes() == b"PK fake archive"
            assert seen == {"slug": "pdf-tools", "version": "1.3.0"}
        finally:
            path.unlink()

    @pytest.mark.asyncio
    async def test_latest_omits_version(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            return httpx.Response(200, content=b"zip")

        path = await _client(handler).download("pdf-tools")
        path.unlink()
        assert "version" not in seen

    @pytest.mark.asyncio
    async def test_unknown_version(self):
        client = _client(lambda request: httpx.Response(404))
        with pytest.raises(RegistryNotFoundError):
            await client.download("pdf-tools", "9.9.9")


class TestSearch:
    @pytest.mark.asyncio
    async def test_search(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["q"] == "pdf"
            return httpx.Response(200, json={"results": [
                {"slug": "pdf-tools", "displayName": "PDF Tools", "summary": "PDFs", "version": "1.0.0", "score": 0.9},
                {"slug": "pdf-lite"},
            ]})

        results = await _client(handler).search("pdf")
        assert [r.slug for r in results] == ["pdf-tools", "pdf-lite"]
        assert results[0].display_name == "PDF Tools"
        assert results[1].display_name == "pdf-lite"
        assert results[1].version is None
