"""Configuration utilities for Auctionwatch.

Settings come from an optional JSON file and are overridden by environment
variables:

    AUCTIONWATCH_CONFIG            path to the JSON file
    AUCTIONWATCH_API_URL           base URL of the lot data service
    AUCTIONWATCH_STORAGE_URL       base URL of the image storage service
    AUCTIONWATCH_POLL_INTERVAL     seconds between live polls
    AUCTIONWATCH_PAGE_SIZE         lots requested per read
    AUCTIONWATCH_PLACEHOLDER_IMAGE cover image for events without images
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping

from auctionwatch.domain.aggregation import DEFAULT_COVER_IMAGE
from auctionwatch.infrastructure.feeds import DEFAULT_PAGE_SIZE

ENV_PREFIX = "AUCTIONWATCH_"

_ENV_FIELDS = {
    "API_URL": "api_url",
    "STORAGE_URL": "storage_url",
    "POLL_INTERVAL": "poll_interval_seconds",
    "PAGE_SIZE": "page_size",
    "PLACEHOLDER_IMAGE": "placeholder_image",
}


def load_config(path: str) -> Dict[str, Any]:
    """Load configuration from a JSON file.

    Args:
        path: Path to the JSON configuration file.

    Returns:
        A dictionary of configuration values.
    """
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the feed, image resolver and aggregation."""

    api_url: str = "http://localhost:8001"
    storage_url: str = "http://localhost:8002"
    poll_interval_seconds: float = 5.0
    page_size: int = DEFAULT_PAGE_SIZE
    placeholder_image: str = DEFAULT_COVER_IMAGE

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Settings":
        """Build settings from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        return cls(**values)._coerced()

    def with_env(self, environ: Mapping[str, str]) -> "Settings":
        """Return a copy with ``AUCTIONWATCH_*`` environment overrides applied."""
        overrides = {
            field_name: environ[ENV_PREFIX + suffix]
            for suffix, field_name in _ENV_FIELDS.items()
            if environ.get(ENV_PREFIX + suffix)
        }
        return replace(self, **overrides)._coerced()

    def _coerced(self) -> "Settings":
        try:
            poll_interval = float(self.poll_interval_seconds)
            page_size = int(self.page_size)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid numeric setting: {exc}") from exc
        if poll_interval <= 0:
            raise ValueError("poll_interval_seconds must be positive")
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        return replace(
            self,
            api_url=str(self.api_url).rstrip("/"),
            storage_url=str(self.storage_url).rstrip("/"),
            poll_interval_seconds=poll_interval,
            page_size=page_size,
        )


def load_settings(
    path: str | None = None, environ: Mapping[str, str] | None = None
) -> Settings:
    """Load settings from ``path`` (or ``AUCTIONWATCH_CONFIG``) plus the environment."""
    environ = os.environ if environ is None else environ
    config_path = path or environ.get(ENV_PREFIX + "CONFIG")
    data = load_config(config_path) if config_path else {}
    return Settings.from_mapping(data).with_env(environ)


__all__ = ["Settings", "load_config", "load_settings"]
