"""Live auction event view built from the lot feed.

The :class:`AuctionEventService` owns the whole derived view: it reads the
lot collection once, subscribes to live snapshots, and runs every snapshot
through the same pipeline::

    lots -> image resolution -> aggregation into events -> selection sync

Snapshots are processed one at a time. When a newer snapshot arrives while
an older one is still waiting or resolving images, the older one is dropped
so its result can never overwrite the newer view.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Literal

from auctionwatch.domain.aggregation import (
    DEFAULT_COVER_IMAGE,
    find_event,
    group_lots_into_events,
)
from auctionwatch.domain.models import AuctionEvent, Lot
from auctionwatch.domain.selection import (
    EventNotFoundError,
    SelectionStatus,
    SelectionSynchronizer,
)
from auctionwatch.infrastructure.feeds import LotFeed, SubscriptionError, Unsubscribe
from auctionwatch.infrastructure.observability import (
    get_logger,
    log_context,
    log_exception,
    record_snapshot,
)
from auctionwatch.infrastructure.storage import ImageResolver
from auctionwatch.services.dto import EventPayload, EventPublisher, noop_event_publisher
from auctionwatch.services.images import resolve_lot_images
from auctionwatch.utils import iso_utcnow

SnapshotSource = Literal["fetch", "subscription"]


@dataclass
class AuctionViewState:
    """Current state of the derived auction view."""

    events: list[AuctionEvent] = field(default_factory=list)
    loading: bool = True
    subscribed: bool = False
    snapshots_received: int = 0
    snapshots_applied: int = 0
    snapshots_dropped: int = 0
    last_updated_at: str | None = None
    last_error: str | None = None

    def to_dict(self) -> dict:
        return {
            "loading": self.loading,
            "subscribed": self.subscribed,
            "event_count": len(self.events),
            "lot_count": sum(event.lot_count for event in self.events),
            "snapshots_received": self.snapshots_received,
            "snapshots_applied": self.snapshots_applied,
            "snapshots_dropped": self.snapshots_dropped,
            "last_updated_at": self.last_updated_at,
            "last_error": self.last_error,
        }


class AuctionEventService:
    """Maintain sorted auction events and the user's selection over a live feed."""

    def __init__(
        self,
        *,
        feed: LotFeed,
        image_resolver: ImageResolver,
        event_publisher: EventPublisher = noop_event_publisher,
        placeholder_image: str = DEFAULT_COVER_IMAGE,
    ) -> None:
        self._feed = feed
        self._image_resolver = image_resolver
        self._event_publisher = event_publisher
        self._placeholder_image = placeholder_image
        self._logger = get_logger(__name__)

        self._state = AuctionViewState()
        self._selection = SelectionSynchronizer()
        self._lock = asyncio.Lock()
        self._unsubscribe: Unsubscribe | None = None

    async def __aenter__(self) -> "AuctionEventService":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    # -------------------- read side --------------------
    @property
    def state(self) -> AuctionViewState:
        return self._state

    @property
    def events(self) -> list[AuctionEvent]:
        return list(self._state.events)

    @property
    def selection_status(self) -> SelectionStatus:
        return self._selection.status

    @property
    def selected_key(self) -> str | None:
        return self._selection.selected_key

    @property
    def selected_event(self) -> AuctionEvent | None:
        return self._selection.selected_event

    def get_event(self, key: str) -> AuctionEvent:
        """Return the current event with ``key``.

        Raises:
            EventNotFoundError: If the key is not in the current view.
        """
        event = find_event(self._state.events, key)
        if event is None:
            raise EventNotFoundError(key)
        return event

    def get_status(self) -> dict:
        payload = self._state.to_dict()
        payload["selection"] = {
            "status": self._selection.status,
            "key": self._selection.selected_key,
        }
        return payload

    # -------------------- lifecycle --------------------
    async def start(self) -> AuctionViewState:
        """Load the current lots, then subscribe to live snapshots.

        A failed initial read is logged and treated as an empty collection.

        Raises:
            SubscriptionError: If the live subscription cannot be established.
            RuntimeError: If the service is already subscribed.
        """
        if self._unsubscribe is not None:
            raise RuntimeError("Auction event service is already running")

        await self.refresh()

        try:
            self._unsubscribe = await self._feed.subscribe(self._on_subscription_snapshot)
        except Exception as exc:
            log_exception(self._logger, "Failed to subscribe to lot updates", exc)
            self._state.last_error = str(exc)
            if isinstance(exc, SubscriptionError):
                raise
            raise SubscriptionError(f"Could not subscribe to lot updates: {exc}") from exc

        self._state.subscribed = True
        self._logger.info("Subscribed to lot updates")
        return self._state

    async def stop(self) -> None:
        """Release the live subscription. Safe to call more than once."""
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is None:
            return
        self._state.subscribed = False
        await unsubscribe()
        self._logger.info("Unsubscribed from lot updates")

    async def refresh(self) -> bool:
        """Run the bulk read through the snapshot pipeline once."""
        lots = await self._fetch_initial()
        return await self.handle_snapshot(lots, source="fetch")

    async def _fetch_initial(self) -> list[Lot]:
        try:
            return await self._feed.fetch_all()
        except Exception as exc:
            log_exception(self._logger, "Error loading auction lots, showing none", exc)
            self._state.last_error = str(exc)
            return []

    async def _on_subscription_snapshot(self, lots: list[Lot]) -> None:
        await self.handle_snapshot(lots, source="subscription")

    # -------------------- snapshot pipeline --------------------
    async def handle_snapshot(
        self, lots: list[Lot], *, source: SnapshotSource = "subscription"
    ) -> bool:
        """Rebuild the event view from a full lot snapshot.

        Returns:
            True if the snapshot was applied, False if a newer snapshot
            superseded it before it finished.
        """
        self._state.snapshots_received += 1
        generation = self._state.snapshots_received
        started = time.perf_counter()

        async with self._lock:
            with log_context(snapshot=generation, source=source):
                if self._is_stale(generation):
                    self._drop(source, len(lots), started)
                    return False

                resolved = await resolve_lot_images(lots, self._image_resolver)
                if self._is_stale(generation):
                    self._drop(source, len(lots), started)
                    return False

                events = group_lots_into_events(
                    resolved, placeholder_image=self._placeholder_image
                )
                previous_key = self._selection.selected_key
                self._state.events = events
                selected = self._selection.sync(events)

                self._state.loading = False
                self._state.snapshots_applied += 1
                self._state.last_updated_at = iso_utcnow()
                record_snapshot(source, "applied", len(lots), time.perf_counter() - started)
                self._logger.info(
                    "Rebuilt %d auction events from %d lots", len(events), len(lots)
                )

                await self._publish_event(
                    {
                        "type": "auction_events_updated",
                        "source": source,
                        "event_count": len(events),
                        "lot_count": len(lots),
                        "keys": [event.key for event in events],
                        "time": self._state.last_updated_at,
                    }
                )
                if previous_key is not None and selected is None:
                    self._logger.info("Selected auction event %s disappeared", previous_key)
                    await self._publish_selection(previous_key, reason="event_removed")
        return True

    def _is_stale(self, generation: int) -> bool:
        return generation != self._state.snapshots_received

    def _drop(self, source: SnapshotSource, lot_count: int, started: float) -> None:
        self._state.snapshots_dropped += 1
        record_snapshot(source, "dropped", lot_count, time.perf_counter() - started)
        self._logger.debug("Skipping snapshot superseded by a newer one")

    # -------------------- selection --------------------
    async def select(self, key: str) -> AuctionEvent:
        """Select the current event with ``key``.

        Raises:
            EventNotFoundError: If the key is not in the current view.
        """
        previous_key = self._selection.selected_key
        event = self._selection.select(key, self._state.events)
        await self._publish_selection(previous_key, reason="selected")
        return event

    async def deselect(self) -> None:
        previous_key = self._selection.selected_key
        if previous_key is None:
            return
        self._selection.deselect()
        await self._publish_selection(previous_key, reason="deselected")

    # -------------------- events --------------------
    async def _publish_selection(self, previous_key: str | None, *, reason: str) -> None:
        event = self._selection.selected_event
        await self._publish_event(
            {
                "type": "selection_changed",
                "status": self._selection.status,
                "key": event.key if event else None,
                "previous_key": previous_key,
                "lot_count": event.lot_count if event else 0,
                "reason": reason,
            }
        )

    async def _publish_event(self, payload: EventPayload) -> None:
        try:
            await self._event_publisher(payload)
        except Exception:  # pragma: no cover - isolate websocket errors
            self._logger.exception("Failed to publish auction view event")


__all__ = ["AuctionEventService", "AuctionViewState", "SnapshotSource"]
