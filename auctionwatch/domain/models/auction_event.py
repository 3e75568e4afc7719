"""Auction event aggregate built from a snapshot of lots."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .lot import ResolvedLot, parse_timestamp


@dataclass(frozen=True)
class AuctionEvent:
    """A sale grouping every lot that shares a grouping key.

    Events are derived data: they are rebuilt from scratch for every feed
    snapshot and never mutated afterwards. Identity across rebuilds is the
    ``key``, not the object.
    """

    key: str
    name: str
    location: str
    auction_house: str
    cover_image: str
    date: str | None = None
    lots: tuple[ResolvedLot, ...] = field(default_factory=tuple)

    @property
    def lot_count(self) -> int:
        return len(self.lots)

    @property
    def has_date(self) -> bool:
        return self.starts_at is not None

    @property
    def starts_at(self) -> datetime | None:
        """Return the parsed event date, or None if absent or malformed."""
        return parse_timestamp(self.date)

    @property
    def lot_ids(self) -> list[str]:
        return [resolved.id for resolved in self.lots]


__all__ = ["AuctionEvent"]
