"""CLI interface facades for Auctionwatch.

This package is the canonical home for all Click commands.
"""

from .__main__ import cli
from .delete_event import delete_event
from .events import events
from .import_lots import import_lots
from .watch import watch

__all__ = ["cli", "delete_event", "events", "import_lots", "watch"]
