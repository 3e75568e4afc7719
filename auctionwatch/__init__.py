"""
Auctionwatch package initializer.

This package keeps a live, grouped view of collector-car auction lots: lots
arrive from a bulk read and a live snapshot stream, get their images resolved,
and are aggregated into auction events that a user can keep selected while
updates continue to arrive.

The package exposes a ``__version__`` attribute indicating the installed
version of Auctionwatch. The version is read from pyproject.toml via
importlib.metadata – this is the single source of truth.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("auctionwatch")
except PackageNotFoundError:
    # Package is not installed (running from source without pip install -e .)
    __version__ = "0.0.0.dev"

__all__: list[str] = ["__version__"]
