"""Lot feed adapters: the data-service HTTP client and an in-memory store."""

from .base import (
    DEFAULT_PAGE_SIZE,
    FeedError,
    LotFeed,
    LotMutator,
    LotRecord,
    SnapshotHandler,
    SubscriptionError,
    Unsubscribe,
    snapshot_fingerprint,
)
from .http import HttpLotFeed
from .memory import InMemoryLotFeed

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "FeedError",
    "HttpLotFeed",
    "InMemoryLotFeed",
    "LotFeed",
    "LotMutator",
    "LotRecord",
    "SnapshotHandler",
    "SubscriptionError",
    "Unsubscribe",
    "snapshot_fingerprint",
]
