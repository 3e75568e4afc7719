"""HTTP client for the lot data service.

The service exposes lots as a REST collection:

    GET    /lots?limit=500   -> {"items": [...]} or [...]
    POST   /lots             -> {"id": "..."}
    DELETE /lots/{id}

Live updates are observed by polling the collection and pushing a snapshot
whenever its fingerprint changes, so subscribers still receive full
snapshots rather than deltas.

Usage:
    feed = HttpLotFeed("https://data.example.com/api")
    async with feed:
        lots = await feed.fetch_all()
        unsubscribe = await feed.subscribe(handle_snapshot)
        ...
        await unsubscribe()
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from auctionwatch.domain.models import Lot
from auctionwatch.infrastructure.feeds.base import (
    DEFAULT_PAGE_SIZE,
    FeedError,
    LotRecord,
    SnapshotHandler,
    SubscriptionError,
    Unsubscribe,
    snapshot_fingerprint,
)
from auctionwatch.infrastructure.observability import get_logger

logger = get_logger(__name__)


def _extract_items(payload: Any) -> list[dict[str, Any]]:
    if isinstance(payload, dict):
        payload = payload.get("items", payload.get("data", []))
    if not isinstance(payload, list):
        raise FeedError("Unexpected lot list payload")
    return [item for item in payload if isinstance(item, dict)]


class HttpLotFeed:
    """Async lot feed and mutator talking to the lot data service over HTTP.

    Attributes:
        base_url: Base URL of the data service.
        page_size: Maximum number of lots requested per read.
        poll_interval: Seconds between polls of an active subscription.
        last_poll_error: Exception that ended a poll loop, if one did.
    """

    def __init__(
        self,
        base_url: str,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        poll_interval: float = 5.0,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._poll_tasks: set[asyncio.Task[None]] = set()
        self.last_poll_error: BaseException | None = None

    async def __aenter__(self) -> "HttpLotFeed":
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
        """Stop every poll loop and close the HTTP client if we created it."""
        for task in list(self._poll_tasks):
            task.cancel()
        if self._poll_tasks:
            await asyncio.gather(*self._poll_tasks, return_exceptions=True)
        self._poll_tasks.clear()
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # -------------------- reads --------------------
    async def _fetch_records(self) -> list[dict[str, Any]]:
        client = await self._get_client()
        try:
            response = await client.get(
                f"{self.base_url}/lots", params={"limit": self.page_size}
            )
            response.raise_for_status()
            return _extract_items(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            raise FeedError(f"Failed to list lots: {exc}") from exc

    async def fetch_all(self) -> list[Lot]:
        """Return the current lot collection.

        Raises:
            FeedError: If the service is unreachable or answers with an error.
        """
        records = await self._fetch_records()
        return [Lot.from_dict(record) for record in records]

    # -------------------- live updates --------------------
    async def subscribe(self, on_snapshot: SnapshotHandler) -> Unsubscribe:
        """Poll the collection and push a snapshot whenever it changes.

        The first read establishes the subscription and is delivered to
        ``on_snapshot`` from the poll loop.

        Raises:
            SubscriptionError: If the first read fails. Not retried.
        """
        try:
            records = await self._fetch_records()
        except FeedError as exc:
            raise SubscriptionError(f"Could not subscribe to lot updates: {exc}") from exc

        task = asyncio.create_task(self._poll(on_snapshot, records))
        self._poll_tasks.add(task)
        task.add_done_callback(self._poll_finished)

        async def unsubscribe() -> None:
            if task.done():
                return
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        return unsubscribe

    async def _poll(
        self, on_snapshot: SnapshotHandler, initial: list[dict[str, Any]]
    ) -> None:
        last_fingerprint = snapshot_fingerprint(initial)
        await self._push(on_snapshot, initial)

        while True:
            await asyncio.sleep(self.poll_interval)
            try:
                records = await self._fetch_records()
            except FeedError as exc:
                logger.warning("Lot poll failed, keeping previous snapshot: %s", exc)
                continue

            fingerprint = snapshot_fingerprint(records)
            if fingerprint == last_fingerprint:
                continue
            last_fingerprint = fingerprint
            logger.debug("Lot collection changed (%d lots)", len(records))
            await self._push(on_snapshot, records)

    async def _push(
        self, on_snapshot: SnapshotHandler, records: list[dict[str, Any]]
    ) -> None:
        try:
            await on_snapshot([Lot.from_dict(record) for record in records])
        except Exception:
            logger.exception("Lot snapshot subscriber failed")

    def _poll_finished(self, task: asyncio.Task[None]) -> None:
        self._poll_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.last_poll_error = exc
            logger.error("Lot poll loop stopped: %r", exc)

    # -------------------- mutations --------------------
    async def create_lot(self, record: LotRecord) -> str:
        client = await self._get_client()
        try:
            response = await client.post(f"{self.base_url}/lots", json=dict(record))
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise FeedError(f"Failed to create lot: {exc}") from exc
        return str(payload.get("id", "")) if isinstance(payload, dict) else ""

    async def delete_lot(self, lot_id: str) -> None:
        client = await self._get_client()
        try:
            response = await client.delete(f"{self.base_url}/lots/{lot_id}")
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise FeedError(f"Failed to delete lot {lot_id}: {exc}") from exc


__all__ = ["HttpLotFeed"]
