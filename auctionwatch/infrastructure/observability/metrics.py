"""Simple in-process metrics collection for Auctionwatch.

Counters and histograms are stored in memory and exported through the
``/metrics`` endpoint in Prometheus text format, or logged by the CLI.
"""

from __future__ import annotations

import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Mapping

LabelKey = tuple[tuple[str, str | None], ...]


def _labels_to_key(labels: Mapping[str, str | None] | None) -> LabelKey:
    if labels is None:
        return ()
    return tuple(sorted(labels.items()))


# ---------------------------------------------------------------------------
# Metric storage
# ---------------------------------------------------------------------------


@dataclass
class Counter:
    """A monotonically increasing counter."""

    name: str
    help_text: str = ""
    _values: dict[LabelKey, float] = field(default_factory=lambda: defaultdict(float))
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def inc(
        self, value: float = 1.0, labels: Mapping[str, str | None] | None = None
    ) -> None:
        """Increment the counter by the given value."""
        key = _labels_to_key(labels)
        with self._lock:
            self._values[key] += value

    def get(self, labels: Mapping[str, str | None] | None = None) -> float:
        """Get the current counter value."""
        key = _labels_to_key(labels)
        with self._lock:
            return self._values.get(key, 0.0)


# Upper bounds in seconds; a snapshot pass is dominated by image lookups.
DEFAULT_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


@dataclass
class _HistogramSeries:
    count: int
    total: float
    buckets: list[int]


@dataclass
class Histogram:
    """A cumulative histogram keeping count, sum and bucket counts per label set.

    Memory stays constant no matter how many observations are recorded.
    """

    name: str
    help_text: str = ""
    bounds: tuple[float, ...] = DEFAULT_BUCKETS
    _series: dict[LabelKey, _HistogramSeries] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def observe(
        self, value: float, labels: Mapping[str, str | None] | None = None
    ) -> None:
        """Record an observation."""
        key = _labels_to_key(labels)
        with self._lock:
            series = self._series.get(key)
            if series is None:
                series = _HistogramSeries(0, 0.0, [0] * len(self.bounds))
                self._series[key] = series
            series.count += 1
            series.total += value
            for index, bound in enumerate(self.bounds):
                if value <= bound:
                    series.buckets[index] += 1

    def label_keys(self) -> list[LabelKey]:
        with self._lock:
            return list(self._series)

    def get_stats(
        self, labels: Mapping[str, str | None] | None = None
    ) -> dict[str, float]:
        """Get summary statistics for the histogram."""
        key = _labels_to_key(labels)
        with self._lock:
            series = self._series.get(key)
            if series is None:
                return {"count": 0, "sum": 0.0, "avg": 0.0}
            return {
                "count": series.count,
                "sum": series.total,
                "avg": series.total / series.count,
            }

    def get_buckets(
        self, labels: Mapping[str, str | None] | None = None
    ) -> list[tuple[float, int]]:
        """Return ``(upper_bound, cumulative_count)`` pairs, ending with +Inf."""
        key = _labels_to_key(labels)
        with self._lock:
            series = self._series.get(key)
            if series is None:
                return []
            pairs = list(zip(self.bounds, series.buckets))
            pairs.append((float("inf"), series.count))
        return pairs


# ---------------------------------------------------------------------------
# Global metric registry
# ---------------------------------------------------------------------------


class MetricRegistry:
    """Global registry for all metrics."""

    def __init__(self) -> None:
        self._counters: dict[str, Counter] = {}
        self._histograms: dict[str, Histogram] = {}
        self._lock = threading.Lock()

    def counter(self, name: str, help_text: str = "") -> Counter:
        """Get or create a counter."""
        with self._lock:
            if name not in self._counters:
                self._counters[name] = Counter(name=name, help_text=help_text)
            return self._counters[name]

    def histogram(self, name: str, help_text: str = "") -> Histogram:
        """Get or create a histogram."""
        with self._lock:
            if name not in self._histograms:
                self._histograms[name] = Histogram(name=name, help_text=help_text)
            return self._histograms[name]

    def all_counters(self) -> dict[str, Counter]:
        with self._lock:
            return dict(self._counters)

    def all_histograms(self) -> dict[str, Histogram]:
        with self._lock:
            return dict(self._histograms)

    def clear(self) -> None:
        with self._lock:
            self._counters.clear()
            self._histograms.clear()


_registry = MetricRegistry()


def get_registry() -> MetricRegistry:
    return _registry


# ---------------------------------------------------------------------------
# Convenience functions
# ---------------------------------------------------------------------------


def increment_counter(
    name: str,
    value: float = 1.0,
    labels: Mapping[str, str | None] | None = None,
    help_text: str = "",
) -> None:
    """Increment a counter by name, creating it if needed."""
    _registry.counter(name, help_text).inc(value, labels)


def observe_histogram(
    name: str,
    value: float,
    labels: Mapping[str, str | None] | None = None,
    help_text: str = "",
) -> None:
    """Record an observation in a histogram, creating it if needed."""
    _registry.histogram(name, help_text).observe(value, labels)


class Timer:
    """Context manager for timing operations and recording to a histogram."""

    def __init__(
        self,
        histogram_name: str,
        labels: Mapping[str, str | None] | None = None,
        help_text: str = "",
    ) -> None:
        self.histogram_name = histogram_name
        self.labels = labels
        self.help_text = help_text
        self.duration: float = 0.0
        self._start: float = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args: object) -> None:
        self.duration = time.perf_counter() - self._start
        observe_histogram(self.histogram_name, self.duration, self.labels, self.help_text)


# ---------------------------------------------------------------------------
# Predefined metrics for Auctionwatch
# ---------------------------------------------------------------------------

SNAPSHOTS = "feed_snapshots_total"
SNAPSHOT_DURATION = "feed_snapshot_duration_seconds"
SNAPSHOT_LOTS = "feed_snapshot_lots_total"
IMAGE_RESOLUTIONS = "image_resolutions_total"
LOT_DELETIONS = "lot_deletions_total"
LOT_IMPORTS = "lot_imports_total"


def record_snapshot(source: str, status: str, lots: int, duration: float) -> None:
    """Record one snapshot pass through the aggregation pipeline.

    Args:
        source: 'fetch' or 'subscription'
        status: 'applied', 'dropped' or 'failed'
        lots: Number of lots in the snapshot
        duration: Seconds spent in the pass
    """
    increment_counter(
        SNAPSHOTS,
        labels={"source": source, "status": status},
        help_text="Total feed snapshots handled",
    )
    observe_histogram(
        SNAPSHOT_DURATION,
        duration,
        labels={"source": source},
        help_text="Snapshot pipeline duration in seconds",
    )
    increment_counter(
        SNAPSHOT_LOTS,
        value=float(lots),
        labels={"source": source},
        help_text="Total lots seen across snapshots",
    )


def record_image_resolution(status: str) -> None:
    """Record one image lookup: 'resolved', 'passthrough' or 'failed'."""
    increment_counter(
        IMAGE_RESOLUTIONS,
        labels={"status": status},
        help_text="Total image reference lookups",
    )


def record_lot_deletion(status: str) -> None:
    increment_counter(
        LOT_DELETIONS,
        labels={"status": status},
        help_text="Total lot deletions attempted",
    )


def record_lot_import(status: str) -> None:
    increment_counter(
        LOT_IMPORTS,
        labels={"status": status},
        help_text="Total lots imported from extension payloads",
    )


# ---------------------------------------------------------------------------
# Export utilities
# ---------------------------------------------------------------------------


def get_metrics_summary() -> dict[str, object]:
    """Return a summary of all metrics for logging or API response."""
    counters: dict[str, dict[str, float]] = {}
    histograms: dict[str, dict[str, dict[str, float]]] = {}

    for name, counter in _registry.all_counters().items():
        values = {}
        for key, value in counter._values.items():
            label_str = ",".join(f"{k}={v}" for k, v in key) if key else "default"
            values[label_str] = value
        counters[name] = values

    for name, histogram in _registry.all_histograms().items():
        stats = {}
        for key in histogram.label_keys():
            label_str = ",".join(f"{k}={v}" for k, v in key) if key else "default"
            stats[label_str] = histogram.get_stats(dict(key) if key else None)
        histograms[name] = stats

    return {"counters": counters, "histograms": histograms}


def format_prometheus() -> str:
    """Format metrics in Prometheus text exposition format."""
    lines: list[str] = []

    for name, counter in _registry.all_counters().items():
        if counter.help_text:
            lines.append(f"# HELP {name} {counter.help_text}")
        lines.append(f"# TYPE {name} counter")
        for key, value in counter._values.items():
            if key:
                label_str = ",".join(f'{k}="{v}"' for k, v in key)
                lines.append(f"{name}{{{label_str}}} {value}")
            else:
                lines.append(f"{name} {value}")

    for name, histogram in _registry.all_histograms().items():
        if histogram.help_text:
            lines.append(f"# HELP {name} {histogram.help_text}")
        lines.append(f"# TYPE {name} histogram")
        for key in histogram.label_keys():
            labels = dict(key) if key else None
            pairs = [f'{k}="{v}"' for k, v in key]
            for bound, count in histogram.get_buckets(labels):
                le = "+Inf" if bound == float("inf") else repr(bound)
                bucket_labels = ",".join([*pairs, f'le="{le}"'])
                lines.append(f"{name}_bucket{{{bucket_labels}}} {count}")
            stats = histogram.get_stats(labels)
            suffix = f"{{{','.join(pairs)}}}" if pairs else ""
            lines.append(f"{name}_count{suffix} {stats['count']}")
            lines.append(f"{name}_sum{suffix} {stats['sum']}")

    return "\n".join(lines)
