"""Lot domain model with business logic."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping


class LotStatus(str, Enum):
    """Lifecycle of a lot at its auction."""

    UPCOMING = "upcoming"
    LIVE = "live"
    SOLD = "sold"
    NOT_SOLD = "not_sold"
    WITHDRAWN = "withdrawn"

    @classmethod
    def from_string(cls, value: str | None) -> "LotStatus":
        """Convert a free-form status label, defaulting to UPCOMING."""
        normalized = (value or "").lower().strip()
        if not normalized:
            return cls.UPCOMING
        if normalized in ("not_sold", "not sold", "notsold", "unsold") or "pass" in normalized:
            return cls.NOT_SOLD
        if "withdrawn" in normalized:
            return cls.WITHDRAWN
        if "sold" in normalized:
            return cls.SOLD
        if "live" in normalized:
            return cls.LIVE
        return cls.UPCOMING


class ReserveStatus(str, Enum):
    """Whether a lot is offered with a reserve price."""

    RESERVE = "reserve"
    NO_RESERVE = "no_reserve"
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, value: str | None) -> "ReserveStatus":
        """Convert a reserve label, defaulting to UNKNOWN."""
        normalized = (value or "").lower().strip()
        if not normalized:
            return cls.UNKNOWN
        if normalized == "no_reserve":
            return cls.NO_RESERVE
        if normalized == "reserve":
            return cls.RESERVE
        if "no" in normalized and "reserve" in normalized:
            return cls.NO_RESERVE
        if "reserve" in normalized:
            return cls.RESERVE
        return cls.UNKNOWN


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO timestamp, returning an aware datetime or None.

    Naive values are taken to be UTC so that every parsed value is comparable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        if not value.strip():
            return None
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _as_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Lot:
    """A single auction listing as read from the lot data service.

    Lots are read models: they are created, updated and deleted by other
    parts of the system and only observed here, one full snapshot at a time.
    """

    id: str
    auction_house: str
    title: str
    lot_number: str | None = None
    description: str | None = None
    image_ref: str | None = None
    estimate_low: float | None = None
    estimate_high: float | None = None
    currency: str = "USD"
    current_bid: float | None = None
    sold_price: float | None = None
    reserve_status: ReserveStatus = ReserveStatus.UNKNOWN
    status: LotStatus = LotStatus.UPCOMING
    auction_date: str | None = None
    auction_location: str | None = None
    auction_name: str | None = None
    lot_url: str | None = None
    last_updated: str | None = None

    @property
    def has_image(self) -> bool:
        return bool(self.image_ref)

    @property
    def is_open(self) -> bool:
        """Check if the lot can still be bid on."""
        return self.status in (LotStatus.UPCOMING, LotStatus.LIVE)

    @property
    def is_sold(self) -> bool:
        return self.status == LotStatus.SOLD

    @property
    def auction_datetime(self) -> datetime | None:
        """Return the parsed auction date, or None if absent or malformed."""
        return parse_timestamp(self.auction_date)

    @property
    def headline_price(self) -> float | None:
        """Return the sold price, the current bid, or the low estimate."""
        for value in (self.sold_price, self.current_bid, self.estimate_low):
            if value is not None:
                return value
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Lot":
        """Create a Lot from a data-service record.

        Accepts the service's camelCase keys as well as snake_case keys.
        Missing or malformed fields fall back to defaults.
        """
        return cls(
            id=_as_str(_pick(data, "id", "lot_id")) or "",
            auction_house=_as_str(_pick(data, "auctionHouse", "auction_house")) or "",
            title=_as_str(_pick(data, "title")) or "",
            lot_number=_as_str(_pick(data, "lotNumber", "lot_number")),
            description=_as_str(_pick(data, "description")),
            image_ref=_as_str(_pick(data, "imageUrl", "image_url", "image_ref")),
            estimate_low=_as_number(_pick(data, "estimateLow", "estimate_low")),
            estimate_high=_as_number(_pick(data, "estimateHigh", "estimate_high")),
            currency=_as_str(_pick(data, "currency")) or "USD",
            current_bid=_as_number(_pick(data, "currentBid", "current_bid")),
            sold_price=_as_number(_pick(data, "soldPrice", "sold_price")),
            reserve_status=ReserveStatus.from_string(
                _as_str(_pick(data, "reserveStatus", "reserve_status"))
            ),
            status=LotStatus.from_string(_as_str(_pick(data, "status"))),
            auction_date=_as_str(_pick(data, "auctionDate", "auction_date")),
            auction_location=_as_str(_pick(data, "auctionLocation", "auction_location")),
            auction_name=_as_str(_pick(data, "auctionName", "auction_name")),
            lot_url=_as_str(_pick(data, "lotUrl", "lot_url")),
            last_updated=_as_str(_pick(data, "lastUpdated", "last_updated")),
        )


@dataclass(frozen=True)
class ResolvedLot:
    """A lot paired with its display-ready image URL.

    ``image_url`` holds the original reference when resolution failed or was
    not needed, so it may still be empty.
    """

    lot: Lot
    image_url: str | None = None

    @property
    def id(self) -> str:
        return self.lot.id

    @property
    def has_image(self) -> bool:
        return bool(self.image_url)

    @classmethod
    def unresolved(cls, lot: Lot) -> "ResolvedLot":
        """Pass a lot through with its original image reference."""
        return cls(lot=lot, image_url=lot.image_ref)


__all__ = ["Lot", "LotStatus", "ReserveStatus", "ResolvedLot", "parse_timestamp"]
