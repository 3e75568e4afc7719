"""Observability and logging facades."""

from .logging import (
    ContextualFormatter,
    configure_logging,
    get_logger,
    log_context,
    log_exception,
)
from .metrics import (
    IMAGE_RESOLUTIONS,
    LOT_DELETIONS,
    LOT_IMPORTS,
    SNAPSHOT_DURATION,
    SNAPSHOT_LOTS,
    SNAPSHOTS,
    Timer,
    format_prometheus,
    get_metrics_summary,
    get_registry,
    increment_counter,
    observe_histogram,
    record_image_resolution,
    record_lot_deletion,
    record_lot_import,
    record_snapshot,
)

__all__ = [
    # Logging
    "ContextualFormatter",
    "configure_logging",
    "get_logger",
    "log_context",
    "log_exception",
    # Metrics
    "IMAGE_RESOLUTIONS",
    "LOT_DELETIONS",
    "LOT_IMPORTS",
    "SNAPSHOTS",
    "SNAPSHOT_DURATION",
    "SNAPSHOT_LOTS",
    "Timer",
    "format_prometheus",
    "get_metrics_summary",
    "get_registry",
    "increment_counter",
    "observe_histogram",
    "record_image_resolution",
    "record_lot_deletion",
    "record_lot_import",
    "record_snapshot",
]
