"""Image storage adapters."""

from .resolver import (
    DEFAULT_STORAGE_URL,
    STORAGE_PREFIXES,
    ImageResolver,
    StorageImageResolver,
    is_storage_path,
)

__all__ = [
    "DEFAULT_STORAGE_URL",
    "STORAGE_PREFIXES",
    "ImageResolver",
    "StorageImageResolver",
    "is_storage_path",
]
