"""Selection state that survives auction event rebuilds.

The selection references an event by grouping key. After every rebuild the
key is looked up again in the fresh event list, so the holder always sees the
newest version of the event, or no selection once the event disappears.
"""

from __future__ import annotations

from typing import Iterable, Literal

from auctionwatch.domain.aggregation import find_event
from auctionwatch.domain.models import AuctionEvent

SelectionStatus = Literal["unselected", "selected"]


class EventNotFoundError(KeyError):
    """Raised when an auction event key is not present in the current view."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Auction event '{self.key}' not found"


class SelectionSynchronizer:
    """Hold zero or one selected auction event across rebuilds.

    Transitions:
        unselected -> selected(key)     on :meth:`select`
        selected(key) -> selected(key)  on :meth:`sync` when ``key`` resolves
        selected(key) -> unselected     on :meth:`sync` when ``key`` vanished,
                                        or on :meth:`deselect`
    """

    def __init__(self) -> None:
        self._event: AuctionEvent | None = None

    @property
    def status(self) -> SelectionStatus:
        return "selected" if self._event is not None else "unselected"

    @property
    def is_selected(self) -> bool:
        return self._event is not None

    @property
    def selected_key(self) -> str | None:
        return self._event.key if self._event is not None else None

    @property
    def selected_event(self) -> AuctionEvent | None:
        return self._event

    def select(self, key: str, events: Iterable[AuctionEvent]) -> AuctionEvent:
        """Select the event with ``key`` from the current event list.

        Raises:
            EventNotFoundError: If no event in ``events`` has that key.
        """
        event = find_event(events, key)
        if event is None:
            raise EventNotFoundError(key)
        self._event = event
        return event

    def deselect(self) -> None:
        self._event = None

    def sync(self, events: Iterable[AuctionEvent]) -> AuctionEvent | None:
        """Re-resolve the held selection against a freshly built event list.

        Returns the refreshed event, or None when nothing is selected or the
        selected event no longer exists.
        """
        if self._event is None:
            return None
        self._event = find_event(events, self._event.key)
        return self._event


__all__ = ["EventNotFoundError", "SelectionStatus", "SelectionSynchronizer"]
