"""Small helpers shared across layers."""

from __future__ import annotations

from datetime import datetime, timezone


def iso_utcnow() -> str:
    """Return an ISO‑8601 timestamp in UTC with ``Z`` suffix."""

    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


__all__ = ["iso_utcnow"]
