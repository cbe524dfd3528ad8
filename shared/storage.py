"""
Asset storage.

Downloads generated assets from expiring provider URLs and persists them to
local storage, returning the local path and the public URL they are served at.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from shared.errors import StorageError
from shared.logging import get_logger

logger = get_logger("storage")

DOWNLOAD_TIMEOUT = httpx.Timeout(120.0, connect=10.0)


@dataclass(frozen=True)
class PersistedAsset:
    path: str
    public_url: str


class AssetStore:
    """Local asset storage behind the `/assets` static mount."""

    def __init__(
        self,
        assets_dir: str,
        base_url: str,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize asset store.

        Args:
            assets_dir: Directory downloaded assets are written to
            base_url: Public base URL of this server
            http_client: Optional shared client (one is created per download otherwise)
        """
        self.assets_dir = Path(assets_dir).resolve()
        self.base_url = base_url.rstrip("/")
        self._http_client = http_client

    def public_url(self, filename: str) -> str:
        return f"{self.base_url}/assets/{filename}"

    async def persist(self, url: str, filename: str) -> PersistedAsset:
        """
        Download an asset and store it under `filename`.

        Args:
            url: Ephemeral provider URL
            filename: Local file name (no directories)

        Returns:
            PersistedAsset with local path and public URL

        Raises:
            StorageError: If the download or write fails
        """
        if not url:
            raise StorageError("Asset URL is empty")
        if Path(filename).name != filename:
            raise StorageError(f"Invalid asset filename: {filename}")

        logger.info("Downloading asset", extra={"url": url, "asset_name": filename})

        try:
            content = await self._download(url)
        except httpx.HTTPStatusError as e:
            logger.error(
                "Asset download failed",
                extra={"url": url, "status": e.response.status_code}
            )
            raise StorageError(
                f"Failed to download asset from {url}: {e.response.status_code} "
                f"{e.response.reason_phrase}"
            ) from e
        except httpx.HTTPError as e:
            logger.error("Asset download failed", extra={"url": url, "error": str(e)})
            raise StorageError(f"Failed to download asset from {url}: {str(e)}") from e

        path = self.assets_dir / filename
        try:
            await asyncio.to_thread(self._write, path, content)
        except OSError as e:
            raise StorageError(f"Failed to write asset {filename}: {str(e)}") from e

        logger.info(
            "Asset downloaded",
            extra={"url": url, "asset_name": filename, "size": len(content), "path": str(path)}
        )
        return PersistedAsset(path=str(path), public_url=self.public_url(filename))

    async def _download(self, url: str) -> bytes:
        if self._http_client is not None:
            response = await self._http_client.get(url, follow_redirects=True)
            response.raise_for_status()
            return response.content

        async with httpx.AsyncClient(timeout=DOWNLOAD_TIMEOUT, follow_redirects=True) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.content

    @staticmethod
    def _write(path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
