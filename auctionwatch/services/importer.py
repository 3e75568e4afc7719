"""Normalise lot exports from the auction-house browser extension.

The extension copies lots from an auction house page as JSON in one of three
shapes:

* a bare list of lot objects;
* ``{"lots": [...], "auctionName": ..., ...}`` with auction metadata at the
  top level;
* ``{"auctions": [...], "lotsByAuctionId": {"<auctionId>": [...]}}``.

Every shape is flattened into :class:`LotCreateDTO` records that can be
written to the data service.
"""

from __future__ import annotations

import re
from typing import Any, Mapping

from auctionwatch.domain.models import LotStatus, ReserveStatus
from auctionwatch.services.dto import LotCreateDTO
from auctionwatch.utils import iso_utcnow

_NUMBER_RE = re.compile(r"[\d,.]+")
_DIGITS_RE = re.compile(r"\d+")
_SLUG_RE = re.compile(r"^[a-z]0*([0-9]+)-", re.IGNORECASE)
_INVALID_LOT_NUMBERS = {"sold", "not sold", "notsold", "closed", "withdrawn", "live", "upcoming"}


class PayloadFormatError(ValueError):
    """Raised when an extension payload does not contain any usable lots."""


def _get_str(obj: Mapping[str, Any] | None, key: str) -> str | None:
    if not obj:
        return None
    value = obj.get(key)
    return value if isinstance(value, str) and value else None


def _get_nested_str(obj: Mapping[str, Any] | None, *path: str) -> str | None:
    current: Any = obj
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current if isinstance(current, str) and current else None


def parse_money_value(value: str | None) -> float | None:
    """Parse a money string such as ``"$1,250,000"`` into a number."""
    if not value:
        return None
    cleaned = re.sub(r"[^0-9.]", "", value)
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def parse_estimate_range(estimate: str | None) -> tuple[float | None, float | None]:
    """Split estimate text like ``"$100,000 - $150,000"`` into (low, high)."""
    if not estimate:
        return None, None
    matches = _NUMBER_RE.findall(estimate)
    if not matches:
        return None, None
    low = parse_money_value(matches[0])
    high = parse_money_value(matches[1]) if len(matches) > 1 else None
    return low, high


def detect_auction_house_from_url(url: str | None) -> str:
    if not url:
        return "Unknown"
    value = url.lower()
    if "broadarrow" in value:
        return "Broad Arrow"
    if "bonhams" in value:
        return "Bonhams"
    if "rmsothebys" in value or "rmauction" in value:
        return "RM Sotheby's"
    return "Unknown"


def normalize_lot_number(raw: str | None, lot_url: str | None, index: int) -> str:
    """Derive a lot number from the raw label, the lot URL slug, or the position."""
    value = (raw or "").strip()
    if value and value.lower() not in _INVALID_LOT_NUMBERS:
        if value.isdigit():
            return value
        digits = _DIGITS_RE.search(value)
        if digits:
            return digits.group(0).lstrip("0") or digits.group(0)

    parts = [part for part in (lot_url or "").split("/") if part]
    slug = parts[-1] if parts else ""
    slug_match = _SLUG_RE.match(slug)
    if slug_match:
        return slug_match.group(1)

    return str(index + 1)


def normalize_raw_lot(
    raw: Mapping[str, Any],
    index: int,
    meta: Mapping[str, Any] | None = None,
    auction_id_fallback: str | None = None,
) -> LotCreateDTO:
    """Turn one exported lot (plus optional auction metadata) into a DTO."""
    low, high = parse_estimate_range(_get_str(raw, "estimate"))
    lot_url = _get_str(raw, "lotUrl")
    auction_url = (
        _get_str(meta, "auctionUrl") or _get_str(meta, "auctionURL") or _get_str(meta, "url")
    )
    status_label = _get_str(raw, "statusLabel") or _get_str(raw, "status")
    current_bid = parse_money_value(_get_str(raw, "currentBid"))
    sold_price = current_bid if (status_label or "").lower() == "sold" else None

    return LotCreateDTO(
        auction_house=_get_str(raw, "auctionHouse")
        or detect_auction_house_from_url(auction_url or lot_url),
        lot_number=normalize_lot_number(_get_str(raw, "lotNumber"), lot_url, index),
        title=_get_str(raw, "lotTitle") or _get_str(raw, "title") or "Unknown Vehicle",
        description=_get_str(raw, "description") or _get_str(raw, "shortDescription") or "",
        image_url=_get_str(raw, "lotCoverImageUrl") or _get_str(raw, "imageUrl"),
        estimate_low=low,
        estimate_high=high,
        currency=_get_str(raw, "currency") or "USD",
        current_bid=current_bid,
        sold_price=sold_price,
        reserve_status=ReserveStatus.from_string(_get_str(raw, "reserveStatus")).value,
        status=LotStatus.from_string(status_label).value,
        auction_date=_get_nested_str(meta, "biddingStartDateTime", "iso")
        or _get_str(meta, "auctionDate"),
        auction_location=_get_str(meta, "location") or _get_str(meta, "auctionLocation") or "",
        auction_name=_get_str(meta, "title")
        or _get_str(meta, "auctionName")
        or auction_id_fallback
        or "Upcoming Auction",
        lot_url=lot_url,
        last_updated=iso_utcnow(),
    )


def flatten_payload(payload: Any) -> list[LotCreateDTO]:
    """Flatten any supported export shape into lot DTOs (possibly empty)."""
    if not payload:
        return []

    if isinstance(payload, list):
        return [
            normalize_raw_lot(raw, index)
            for index, raw in enumerate(item for item in payload if isinstance(item, Mapping))
        ]

    if not isinstance(payload, Mapping):
        return []

    lots = payload.get("lots")
    if isinstance(lots, list):
        return [
            normalize_raw_lot(raw, index, payload, _get_str(payload, "auctionName"))
            for index, raw in enumerate(item for item in lots if isinstance(item, Mapping))
        ]

    auctions_by_id: dict[str, Mapping[str, Any]] = {}
    auctions = payload.get("auctions")
    if isinstance(auctions, list):
        for auction in auctions:
            if isinstance(auction, Mapping):
                auction_id = _get_str(auction, "auctionId")
                if auction_id:
                    auctions_by_id[auction_id] = auction

    lots_by_id = payload.get("lotsByAuctionId")
    if not isinstance(lots_by_id, Mapping):
        return []

    normalized: list[LotCreateDTO] = []
    for auction_id, lot_array in lots_by_id.items():
        if not isinstance(lot_array, list):
            continue
        meta = auctions_by_id.get(auction_id)
        for index, raw in enumerate(item for item in lot_array if isinstance(item, Mapping)):
            normalized.append(normalize_raw_lot(raw, index, meta, auction_id))
    return normalized


def _describe_empty_payload(payload: Any) -> str:
    message = "Invalid data format. "
    if not payload:
        return message + "No data found in JSON."
    if isinstance(payload, list):
        return message + "No lot objects found in the array."
    if isinstance(payload, Mapping):
        lots_by_id = payload.get("lotsByAuctionId")
        if isinstance(lots_by_id, Mapping) and lots_by_id:
            total = sum(len(lots) for lots in lots_by_id.values() if isinstance(lots, list))
            return message + (
                f"Found {len(lots_by_id)} auction(s) but {total} lots could not be processed."
            )
        if isinstance(lots_by_id, Mapping):
            return message + "No auctions found in lotsByAuctionId."
        if isinstance(payload.get("lots"), list):
            return message + (
                f'Found {len(payload["lots"])} lot(s) under "lots", but they could not be processed.'
            )
    return message + (
        "Expected an array of lots, or { lots: [...] }, "
        "or { auctions: [], lotsByAuctionId: { ... } }."
    )


def normalize_payload(payload: Any) -> list[LotCreateDTO]:
    """Flatten an extension export, failing when it yields no lots.

    Raises:
        PayloadFormatError: If the payload contains no usable lots.
    """
    lots = flatten_payload(payload)
    if not lots:
        raise PayloadFormatError(_describe_empty_payload(payload))
    return lots


__all__ = [
    "PayloadFormatError",
    "detect_auction_house_from_url",
    "flatten_payload",
    "normalize_lot_number",
    "normalize_payload",
    "normalize_raw_lot",
    "parse_estimate_range",
    "parse_money_value",
]
