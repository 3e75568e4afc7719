"""Infrastructure layer for Auctionwatch.

Holds adapters for the lot data service, the image storage service and
observability.
"""

from . import feeds, observability, storage

__all__ = ["feeds", "observability", "storage"]
