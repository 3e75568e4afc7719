"""Domain layer facade for Auctionwatch.

This package groups the pure business logic and shared models that do not
concern infrastructure or interface details: the lot and event models, the
aggregation of lots into events, and the selection state machine.
"""

from . import aggregation, models, selection

__all__ = ["aggregation", "models", "selection"]
