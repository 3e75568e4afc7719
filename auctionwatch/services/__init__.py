"""Service layer modules for Auctionwatch."""

from .auction_events import AuctionEventService, AuctionViewState  # noqa: F401
from .images import resolve_lot_images  # noqa: F401
from .importer import PayloadFormatError, normalize_payload  # noqa: F401
from .lot_management import (  # noqa: F401
    BulkDeleteResult,
    ImportResult,
    LotManagementService,
)

__all__ = [
    "AuctionEventService",
    "AuctionViewState",
    "BulkDeleteResult",
    "ImportResult",
    "LotManagementService",
    "PayloadFormatError",
    "normalize_payload",
    "resolve_lot_images",
]
