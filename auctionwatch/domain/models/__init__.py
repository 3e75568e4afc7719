"""Domain models package.

This package contains domain model classes for Auctionwatch.
"""

from .auction_event import AuctionEvent
from .lot import Lot, LotStatus, ReserveStatus, ResolvedLot, parse_timestamp

__all__ = [
    "AuctionEvent",
    "Lot",
    "LotStatus",
    "ReserveStatus",
    "ResolvedLot",
    "parse_timestamp",
]
