"""Application orchestration layer.

Coordinates configuration, the HTTP API and the websocket message format.
"""

from . import config

__all__ = ["config"]
