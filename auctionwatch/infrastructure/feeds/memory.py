"""In-process lot feed.

Keeps lot records in memory and pushes a full snapshot to every subscriber
after each mutation. Used by the tests and anywhere a data service is not available.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any, Iterable

from auctionwatch.domain.models import Lot
from auctionwatch.infrastructure.feeds.base import (
    DEFAULT_PAGE_SIZE,
    FeedError,
    LotRecord,
    SnapshotHandler,
    Unsubscribe,
)
from auctionwatch.infrastructure.observability import get_logger


class InMemoryLotFeed:
    """Lot feed and mutator backed by an insertion-ordered dict of records."""

    def __init__(
        self,
        records: Iterable[LotRecord] = (),
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._records: dict[str, dict[str, Any]] = {}
        for record in records:
            stored = dict(record)
            stored.setdefault("id", str(uuid.uuid4()))
            self._records[str(stored["id"])] = stored
        self._page_size = page_size
        self._subscribers: list[SnapshotHandler] = []
        self._notify_lock = asyncio.Lock()
        self._logger = get_logger(__name__)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def snapshot(self) -> list[Lot]:
        records = list(self._records.values())[: self._page_size]
        return [Lot.from_dict(record) for record in records]

    async def fetch_all(self) -> list[Lot]:
        return self.snapshot()

    async def subscribe(self, on_snapshot: SnapshotHandler) -> Unsubscribe:
        self._subscribers.append(on_snapshot)

        async def unsubscribe() -> None:
            if on_snapshot in self._subscribers:
                self._subscribers.remove(on_snapshot)

        return unsubscribe

    async def put_lot(self, record: LotRecord) -> str:
        """Insert or replace a lot record and notify subscribers."""
        stored = dict(record)
        stored.setdefault("id", str(uuid.uuid4()))
        lot_id = str(stored["id"])
        self._records[lot_id] = stored
        await self._notify()
        return lot_id

    async def create_lot(self, record: LotRecord) -> str:
        stored = dict(record)
        stored["id"] = str(uuid.uuid4())
        return await self.put_lot(stored)

    async def delete_lot(self, lot_id: str) -> None:
        if lot_id not in self._records:
            raise FeedError(f"Lot '{lot_id}' does not exist")
        del self._records[lot_id]
        await self._notify()

    async def _notify(self) -> None:
        # One snapshot at a time, one subscriber at a time.
        async with self._notify_lock:
            lots = self.snapshot()
            for handler in list(self._subscribers):
                try:
                    await handler(list(lots))
                except Exception:  # pragma: no cover - isolate subscriber errors
                    self._logger.exception("Lot snapshot subscriber failed")


__all__ = ["InMemoryLotFeed"]
