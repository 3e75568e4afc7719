"""Resolve stored image references into display URLs.

Lot records carry either a direct image URL (legacy data and scraped lots)
or a path inside the application's storage bucket. Storage paths have to be
exchanged for a signed URL before they can be displayed:

    GET {base_url}/storage/url?path=auction-photos/abc.jpg -> {"url": "https://..."}
"""

from __future__ import annotations

import os
from typing import Protocol, runtime_checkable

import httpx

from auctionwatch.infrastructure.observability import get_logger

logger = get_logger(__name__)

DEFAULT_STORAGE_URL = os.environ.get(
    "AUCTIONWATCH_STORAGE_URL", "http://localhost:8002")

STORAGE_PREFIXES = ("car-photos/", "event-photos/", "auction-photos/", "hero/")


def is_storage_path(ref: str) -> bool:
    """Check whether a reference points into the storage bucket."""
    return ref.startswith(STORAGE_PREFIXES)


@runtime_checkable
class ImageResolver(Protocol):
    """Turns one image reference into a display URL."""

    async def resolve(self, ref: str) -> str | None:
        ...


class StorageImageResolver:
    """Async resolver asking the storage service for signed URLs.

    References that are not storage paths are already displayable and are
    returned unchanged without a request.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_STORAGE_URL,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "StorageImageResolver":
        await self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def resolve(self, ref: str) -> str | None:
        """Return a display URL for ``ref``.

        Returns:
            The signed URL, ``ref`` itself when it is already a URL, or None
            when the service answered without a URL.

        Raises:
            httpx.HTTPError: If the storage service request fails.
        """
        if not ref:
            return None
        if not is_storage_path(ref):
            return ref

        client = await self._get_client()
        response = await client.get(f"{self.base_url}/storage/url", params={"path": ref})
        response.raise_for_status()
        data = response.json()
        url = data.get("url") if isinstance(data, dict) else None
        if not url:
            logger.debug("Storage service returned no URL for %s", ref)
            return None
        return str(url)


__all__ = [
    "DEFAULT_STORAGE_URL",
    "STORAGE_PREFIXES",
    "ImageResolver",
    "StorageImageResolver",
    "is_storage_path",
]
