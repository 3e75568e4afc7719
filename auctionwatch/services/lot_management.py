"""Service for importing lots and deleting whole auction events."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from auctionwatch.domain.models import ResolvedLot
from auctionwatch.infrastructure.feeds import LotMutator
from auctionwatch.infrastructure.observability import (
    get_logger,
    log_context,
    record_lot_deletion,
    record_lot_import,
)
from auctionwatch.services.auction_events import AuctionEventService
from auctionwatch.services.dto import LotCreateDTO
from auctionwatch.services.importer import normalize_payload


@dataclass
class BulkDeleteResult:
    """Outcome of deleting every lot in an auction event."""

    event_key: str
    deleted: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict[str, object]:
        return {
            "event_key": self.event_key,
            "deleted": list(self.deleted),
            "failed": dict(self.failed),
            "complete": self.complete,
        }


@dataclass
class ImportResult:
    """Outcome of importing an extension payload."""

    imported: list[str] = field(default_factory=list)
    failed: int = 0

    @property
    def imported_count(self) -> int:
        return len(self.imported)

    def to_dict(self) -> dict[str, object]:
        return {
            "imported": self.imported_count,
            "failed": self.failed,
            "ids": list(self.imported),
        }


class LotManagementService:
    """Write-side operations against the lot data service.

    The event view is never edited directly: deletions and imports go to the
    data service and come back as the next snapshot.
    """

    def __init__(self, mutator: LotMutator) -> None:
        self._mutator = mutator
        self._logger = get_logger(__name__)

    async def delete_lots(self, event_key: str, lots: Iterable[ResolvedLot]) -> BulkDeleteResult:
        """Delete lots one at a time, continuing past individual failures.

        Nothing is rolled back; the next feed snapshot is the truth.
        """
        result = BulkDeleteResult(event_key=event_key)
        with log_context(event=event_key):
            for resolved in lots:
                try:
                    await self._mutator.delete_lot(resolved.id)
                except Exception as exc:
                    self._logger.error("Error deleting lot %s: %s", resolved.id, exc)
                    result.failed[resolved.id] = str(exc)
                    record_lot_deletion("failed")
                else:
                    result.deleted.append(resolved.id)
                    record_lot_deletion("deleted")
            self._logger.info(
                "Deleted %d lot(s), %d failed", len(result.deleted), len(result.failed)
            )
        return result

    async def delete_event(self, events: AuctionEventService, key: str) -> BulkDeleteResult:
        """Delete every lot of the event ``key`` and drop the selection on it.

        Deleting several lots is not one atomic snapshot, so a selection held
        on this event is cleared right away instead of waiting for the feed.

        Raises:
            EventNotFoundError: If ``key`` is not in the current view.
        """
        event = events.get_event(key)
        result = await self.delete_lots(key, event.lots)
        if events.selected_key == key:
            await events.deselect()
        return result

    async def create_lots(self, lots: Iterable[LotCreateDTO]) -> ImportResult:
        result = ImportResult()
        for lot in lots:
            try:
                lot_id = await self._mutator.create_lot(lot.to_record())
            except Exception as exc:
                self._logger.error("Error importing lot %s: %s", lot.lot_number, exc)
                result.failed += 1
                record_lot_import("failed")
            else:
                result.imported.append(lot_id)
                record_lot_import("imported")
        self._logger.info(
            "Imported %d auction lot(s), %d failed", result.imported_count, result.failed
        )
        return result

    async def import_payload(self, payload: Any) -> ImportResult:
        """Normalise an extension export and create every lot in it.

        Raises:
            PayloadFormatError: If the payload contains no usable lots.
        """
        return await self.create_lots(normalize_payload(payload))


__all__ = ["BulkDeleteResult", "ImportResult", "LotManagementService"]
