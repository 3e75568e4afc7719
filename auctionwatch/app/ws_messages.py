"""WebSocket message types for Auctionwatch.

All messages share one envelope with a `type` field and a typed payload.

Message Format (v1):
    {
        "version": "1",
        "type": "<event_type>",
        "timestamp": "<ISO8601>",
        "payload": { ... }
    }

Event Types:
    - auction_events_updated: The event view was rebuilt from a snapshot
    - selection_changed: The selected event was set, cleared or removed
    - connection_ready: Initial connection established
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

MESSAGE_FORMAT_VERSION = "1"


class WireMessage(BaseModel):
    """Wire format for all WebSocket messages."""

    version: str = MESSAGE_FORMAT_VERSION
    type: str
    timestamp: str
    payload: dict[str, Any]


class BaseMessage(BaseModel):
    """Base class for all WebSocket message payloads."""

    def to_wire(self) -> dict[str, Any]:
        """Convert to wire format dictionary."""
        return WireMessage(
            version=MESSAGE_FORMAT_VERSION,
            type=self._message_type,
            timestamp=datetime.now(timezone.utc).isoformat(),
            payload=self.model_dump(exclude_none=True),
        ).model_dump()

    @property
    def _message_type(self) -> str:
        """Return the message type identifier."""
        raise NotImplementedError


class AuctionEventsUpdatedMessage(BaseMessage):
    """Sent after every applied snapshot."""

    source: str
    event_count: int
    lot_count: int
    keys: list[str] = Field(default_factory=list)
    time: str | None = None

    @property
    def _message_type(self) -> str:
        return "auction_events_updated"


class SelectionChangedMessage(BaseMessage):
    """Sent when the selection is set, cleared, or its event disappears."""

    status: str
    key: str | None = None
    previous_key: str | None = None
    lot_count: int = 0
    reason: str

    @property
    def _message_type(self) -> str:
        return "selection_changed"


class ConnectionReadyMessage(BaseMessage):
    """Sent when connection is established."""

    server_version: str
    message_format_version: str = MESSAGE_FORMAT_VERSION

    @property
    def _message_type(self) -> str:
        return "connection_ready"


MESSAGE_TYPE_MAP: dict[str, type[BaseMessage]] = {
    "auction_events_updated": AuctionEventsUpdatedMessage,
    "selection_changed": SelectionChangedMessage,
    "connection_ready": ConnectionReadyMessage,
}


def message_from_event(event: dict[str, Any]) -> BaseMessage:
    """Build the typed message for a service event payload.

    The payload carries its message type under ``type``; every other field
    is validated against that type's model.

    Raises:
        ValueError: If the type is unknown or the fields do not validate.
    """
    fields = dict(event)
    msg_type = fields.pop("type", None)
    message_cls = MESSAGE_TYPE_MAP.get(str(msg_type))
    if message_cls is None:
        raise ValueError(f"Unknown message type: {msg_type!r}")
    return message_cls.model_validate(fields)


__all__ = [
    "MESSAGE_FORMAT_VERSION",
    "MESSAGE_TYPE_MAP",
    "AuctionEventsUpdatedMessage",
    "BaseMessage",
    "ConnectionReadyMessage",
    "SelectionChangedMessage",
    "WireMessage",
    "message_from_event",
]
