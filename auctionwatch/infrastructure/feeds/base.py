"""Contracts for reading, observing and mutating lots.

A feed exposes two channels that carry the *entire* current lot collection:
a one-shot :meth:`LotFeed.fetch_all` and a push subscription that delivers a
full snapshot after every insert, update or delete. Snapshots replace the
previous collection; they are never deltas.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from auctionwatch.domain.models import Lot

DEFAULT_PAGE_SIZE = 500

SnapshotHandler = Callable[[list[Lot]], Awaitable[None]]
Unsubscribe = Callable[[], Awaitable[None]]
LotRecord = Mapping[str, Any]


class FeedError(RuntimeError):
    """Raised when the lot data service cannot be read or mutated."""


class SubscriptionError(FeedError):
    """Raised when a live lot subscription cannot be established."""


@runtime_checkable
class LotFeed(Protocol):
    """Read and subscribe surface of the lot data service."""

    async def fetch_all(self) -> list[Lot]:
        """Return the full current lot collection."""
        ...

    async def subscribe(self, on_snapshot: SnapshotHandler) -> Unsubscribe:
        """Invoke ``on_snapshot`` with the full collection after every change.

        Raises:
            SubscriptionError: If the subscription cannot be established.
        """
        ...


@runtime_checkable
class LotMutator(Protocol):
    """Mutation surface of the lot data service."""

    async def create_lot(self, record: LotRecord) -> str:
        """Create a lot from a data-service record and return its id."""
        ...

    async def delete_lot(self, lot_id: str) -> None:
        ...


def snapshot_fingerprint(records: Sequence[LotRecord]) -> str:
    """Return a stable hash of a raw snapshot, used to detect changes."""
    canonical = json.dumps(list(records), sort_keys=True, default=str, ensure_ascii=True)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "FeedError",
    "LotFeed",
    "LotMutator",
    "LotRecord",
    "SnapshotHandler",
    "SubscriptionError",
    "Unsubscribe",
    "snapshot_fingerprint",
]
