"""
Centralized DTOs and input/output models for Auctionwatch services.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from auctionwatch.domain.models import AuctionEvent, ResolvedLot

# --- Event Publishing Types ---
EventPayload = dict[str, object]
EventPublisher = Callable[[EventPayload], Awaitable[None]]


async def noop_event_publisher(_: EventPayload) -> None:
    """Default no-op event publisher for services that don't need events."""
    pass


# --- Lot DTOs ---
class LotCreateDTO(BaseModel):
    """A normalised lot ready to be written to the data service."""

    model_config = ConfigDict(extra="forbid")

    auction_house: str
    lot_number: str
    title: str
    description: str = ""
    image_url: str | None = None
    estimate_low: float | None = None
    estimate_high: float | None = None
    currency: str = "USD"
    current_bid: float | None = None
    sold_price: float | None = None
    reserve_status: str = "unknown"
    status: str = "upcoming"
    auction_date: str | None = None
    auction_location: str = ""
    auction_name: str = ""
    lot_url: str | None = None
    last_updated: str | None = None

    def to_record(self) -> dict[str, Any]:
        """Return the data-service record (camelCase keys, nulls dropped)."""
        return {
            "auctionHouse": self.auction_house,
            "lotNumber": self.lot_number,
            "title": self.title,
            "description": self.description,
            "imageUrl": self.image_url,
            "estimateLow": self.estimate_low,
            "estimateHigh": self.estimate_high,
            "currency": self.currency,
            "currentBid": self.current_bid,
            "soldPrice": self.sold_price,
            "reserveStatus": self.reserve_status,
            "status": self.status,
            "auctionDate": self.auction_date,
            "auctionLocation": self.auction_location,
            "auctionName": self.auction_name,
            "lotUrl": self.lot_url,
            "lastUpdated": self.last_updated,
        }


class LotView(BaseModel):
    """DTO representing a lot inside an auction event."""

    id: str
    auction_house: str
    lot_number: str | None = None
    title: str
    image_url: str | None = None
    estimate_low: float | None = None
    estimate_high: float | None = None
    currency: str = "USD"
    current_bid: float | None = None
    sold_price: float | None = None
    reserve_status: str
    status: str
    lot_url: str | None = None
    is_open: bool = False

    @classmethod
    def from_domain(cls, resolved: ResolvedLot) -> "LotView":
        lot = resolved.lot
        return cls.model_validate({
            "id": lot.id,
            "auction_house": lot.auction_house,
            "lot_number": lot.lot_number,
            "title": lot.title,
            "image_url": resolved.image_url,
            "estimate_low": lot.estimate_low,
            "estimate_high": lot.estimate_high,
            "currency": lot.currency,
            "current_bid": lot.current_bid,
            "sold_price": lot.sold_price,
            "reserve_status": lot.reserve_status.value,
            "status": lot.status.value,
            "lot_url": lot.lot_url,
            "is_open": lot.is_open,
        })


class AuctionEventView(BaseModel):
    """DTO representing an auction event for API responses."""

    key: str
    name: str
    location: str
    date: str | None = Field(default=None, description="Event date, absent when unknown.")
    auction_house: str
    cover_image: str
    lot_count: int
    lots: list[LotView] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, event: AuctionEvent, *, include_lots: bool = True) -> "AuctionEventView":
        return cls(
            key=event.key,
            name=event.name,
            location=event.location,
            date=event.date,
            auction_house=event.auction_house,
            cover_image=event.cover_image,
            lot_count=event.lot_count,
            lots=[LotView.from_domain(lot) for lot in event.lots] if include_lots else [],
        )


class SelectionView(BaseModel):
    """Current selection: its status and, when selected, the event."""

    status: str
    event: AuctionEventView | None = None
