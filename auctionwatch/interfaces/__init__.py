"""Interface layer for Auctionwatch.

Packages under ``auctionwatch.interfaces`` expose boundary adapters such as CLI
commands.
"""

from . import cli

__all__ = ["cli"]
