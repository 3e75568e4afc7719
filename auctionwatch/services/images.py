"""Concurrent image resolution for a lot snapshot."""

from __future__ import annotations

import asyncio
from typing import Iterable

from auctionwatch.domain.models import Lot, ResolvedLot
from auctionwatch.infrastructure.observability import get_logger, record_image_resolution
from auctionwatch.infrastructure.storage import ImageResolver

logger = get_logger(__name__)


async def _resolve_one(lot: Lot, resolver: ImageResolver) -> ResolvedLot:
    if not lot.image_ref:
        record_image_resolution("passthrough")
        return ResolvedLot.unresolved(lot)
    try:
        url = await resolver.resolve(lot.image_ref)
    except Exception as exc:
        logger.warning("Image lookup failed for lot %s (%s): %s", lot.id, lot.image_ref, exc)
        record_image_resolution("failed")
        return ResolvedLot.unresolved(lot)
    if not url:
        record_image_resolution("passthrough")
        return ResolvedLot.unresolved(lot)
    record_image_resolution("resolved")
    return ResolvedLot(lot=lot, image_url=url)


async def resolve_lot_images(
    lots: Iterable[Lot], resolver: ImageResolver
) -> list[ResolvedLot]:
    """Resolve every lot's image reference concurrently.

    All lookups are issued together and awaited as one batch. A failing or
    empty lookup keeps the lot's original reference; no lot is dropped and
    the output keeps the input order.
    """
    lots = list(lots)
    if not lots:
        return []
    results = await asyncio.gather(
        *(_resolve_one(lot, resolver) for lot in lots), return_exceptions=True
    )
    resolved: list[ResolvedLot] = []
    for lot, result in zip(lots, results):
        if isinstance(result, BaseException):
            # Cancellation of a single lookup still yields the lot.
            logger.warning("Image lookup aborted for lot %s: %r", lot.id, result)
            resolved.append(ResolvedLot.unresolved(lot))
        else:
            resolved.append(result)
    return resolved


__all__ = ["resolve_lot_images"]
