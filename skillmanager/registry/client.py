"""HTTP client for the clawdhub skill registry.

Usage::

    client = RegistryClient(cfg.registry)
    latest = await client.fetch_latest_version("pdf-tools")
    archive = await client.download("pdf-tools", latest)
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

import httpx

from skillmanager.config import RegistryConfig
from skillmanager.errors import RegistryIOError, RegistryNetworkError, RegistryNotFoundError
from skillmanager.registry.models import RemoteSkill
from skillmanager.utils import get_logger

logger = get_logger(__name__)


class RegistryClient:
    """Fetches versions and archives from the skill registry.

    Args:
        config: RegistryConfig (uses base_url, timeout_seconds).
        transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        config: RegistryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._cfg = config or RegistryConfig()
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._cfg.base_url.rstrip("/")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self._cfg.timeout_seconds,
            follow_redirects=True,
            transport=self._transport,
        )

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        try:
            async with self._client() as client:
                resp = await client.get(path, params=params)
        except httpx.RequestError as e:
            raise RegistryNetworkError(f"Registry request to {path} failed: {e}") from e

        if resp.status_code == 404:
            raise RegistryNotFoundError(f"Not found on registry: {path}")
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RegistryNetworkError(
                f"Registry returned {resp.status_code} for {path}"
            ) from e
        return resp

    async def fetch_latest_version(self, slug: str) -> str:
        """Return the latest published version of ``slug``.

        Raises:
            RegistryNotFoundError: Unknown slug, or no version published yet.
            RegistryNetworkError: Registry unreachable or returned an error.
        """
        resp = await self._get(f"/api/v1/skills/{slug}")
        try:
            data = resp.json()
        except ValueError as e:
            raise RegistryNetworkError(f"Invalid JSON from registry for {slug}") from e

        latest = (data.get("latestVersion") or {}).get("version")
        if not latest:
            raise RegistryNotFoundError(f"No published version for {slug}")
        return latest

    async def download(self, slug: str, version: str | None = None) -> Path:
        """Download the archive of ``slug`` into a temporary file.

        Args:
            slug: Registry slug.
            version: Specific version; None for the latest.

        Returns:
            Path of the downloaded zip archive. The caller owns the file.

        Raises:
            RegistryNotFoundError: Unknown slug or version.
            RegistryNetworkError: Registry unreachable or returned an error.
            RegistryIOError: The archive could not be written locally.
        """
        params = {"slug": slug}
        if version:
            params["version"] = version

        resp = await self._get("/api/v1/download", params=params)

        try:
            fd, archive_path = tempfile.mkstemp(prefix=f"{slug}-", suffix=".zip")
            with open(fd, "wb") as f:
                f.write(resp.content)
        except OSError as e:
            raise RegistryIOError(f"Failed to save archive for {slug}: {e}") from e

        logger.info(f"Downloaded {slug} {version or 'latest'} ({len(resp.content)} bytes)")
        return Path(archive_path)

    async def search(self, query: str, limit: int = 20) -> list[RemoteSkill]:
        """Search the registry.

        Args:
            query: Free-text query.
            limit: Maximum number of results.
        """
        resp = await self._get("/api/v1/search", params={"q": query, "limit": limit})
        try:
            data = resp.json()
        except ValueError as e:
            raise RegistryNetworkError("Invalid JSON from registry search") from e

        return [RemoteSkill.from_api(item) for item in data.get("results", [])]
