"""Group resolved lots into sorted auction events.

Every snapshot is aggregated from scratch. Lots are bucketed by a grouping
key derived from the auction house and the auction name (or location), each
bucket becomes one :class:`AuctionEvent`, and the events are ordered by date
with dateless events last.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from auctionwatch.domain.models import AuctionEvent, Lot, ResolvedLot

UNKNOWN_GROUP = "Unknown"
UNKNOWN_AUCTION_HOUSE = "Unknown"
DEFAULT_EVENT_NAME = "Upcoming Auction"
DEFAULT_LOCATION = "TBA"
DEFAULT_COVER_IMAGE = (
    "https://images.unsplash.com/photo-1492144534655-ae79c964c9d7?w=800&q=80"
)


def grouping_key(lot: Lot) -> str:
    """Return the event key for a lot.

    The key joins the auction house with the auction name, falling back to
    the location and then to ``"Unknown"``. A lot whose name or location is
    edited between snapshots moves to a different key.
    """
    group = lot.auction_name or lot.auction_location or UNKNOWN_GROUP
    return f"{lot.auction_house}-{group}"


@dataclass
class _EventBuilder:
    key: str
    name: str
    location: str
    auction_house: str
    date: str | None
    lots: list[ResolvedLot] = field(default_factory=list)

    @classmethod
    def from_first_lot(cls, key: str, lot: Lot) -> "_EventBuilder":
        return cls(
            key=key,
            name=lot.auction_name or lot.auction_location or DEFAULT_EVENT_NAME,
            location=lot.auction_location or DEFAULT_LOCATION,
            auction_house=lot.auction_house or UNKNOWN_AUCTION_HOUSE,
            date=lot.auction_date or None,
        )

    def build(self, placeholder_image: str) -> AuctionEvent:
        return AuctionEvent(
            key=self.key,
            name=self.name,
            location=self.location,
            auction_house=self.auction_house,
            cover_image=choose_cover_image(self.lots, placeholder_image),
            date=self.date,
            lots=tuple(self.lots),
        )


def choose_cover_image(lots: Iterable[ResolvedLot], placeholder_image: str) -> str:
    """Return the first non-empty image URL, or the placeholder."""
    for resolved in lots:
        if resolved.image_url:
            return resolved.image_url
    return placeholder_image


def _sort_key(event: AuctionEvent) -> tuple[int, float]:
    starts_at = event.starts_at
    if starts_at is None:
        return (1, 0.0)
    return (0, starts_at.timestamp())


def sort_events(events: Iterable[AuctionEvent]) -> list[AuctionEvent]:
    """Sort events by date ascending; dateless events keep their order at the end."""
    return sorted(events, key=_sort_key)


def group_lots_into_events(
    lots: Iterable[ResolvedLot],
    *,
    placeholder_image: str = DEFAULT_COVER_IMAGE,
) -> list[AuctionEvent]:
    """Aggregate a snapshot of resolved lots into ordered auction events.

    Args:
        lots: Resolved lots in snapshot order.
        placeholder_image: Cover image for events without any lot image.

    Returns:
        Events sorted by date, each listing its lots in snapshot order.
    """
    builders: dict[str, _EventBuilder] = {}
    for resolved in lots:
        key = grouping_key(resolved.lot)
        builder = builders.get(key)
        if builder is None:
            builder = _EventBuilder.from_first_lot(key, resolved.lot)
            builders[key] = builder
        builder.lots.append(resolved)

    return sort_events(builder.build(placeholder_image) for builder in builders.values())


def find_event(events: Iterable[AuctionEvent], key: str) -> AuctionEvent | None:
    for event in events:
        if event.key == key:
            return event
    return None


__all__ = [
    "DEFAULT_COVER_IMAGE",
    "DEFAULT_EVENT_NAME",
    "DEFAULT_LOCATION",
    "UNKNOWN_GROUP",
    "choose_cover_image",
    "find_event",
    "group_lots_into_events",
    "grouping_key",
    "sort_events",
]
