"""Tests for contextual logging and the metrics registry."""

import io
import logging

import pytest

from auctionwatch.infrastructure.observability import (
    LOT_DELETIONS,
    SNAPSHOT_DURATION,
    SNAPSHOTS,
    ContextualFormatter,
    Timer,
    format_prometheus,
    get_metrics_summary,
    get_registry,
    log_context,
    observe_histogram,
    record_lot_deletion,
    record_snapshot,
)


def _record(message, *args):
    return logging.LogRecord("auctionwatch.test", logging.INFO, __file__, 1, message, args, None)


def test_log_context_nests_and_restores():
    formatter = ContextualFormatter("%(message)s")
    with log_context(event="RM-Arizona"):
        with log_context(snapshot=3):
            assert formatter.format(_record("inner")) == "inner [event=RM-Arizona snapshot=3]"
        assert formatter.format(_record("outer")) == "outer [event=RM-Arizona]"
    assert formatter.format(_record("after")) == "after"


def test_contextual_formatter_appends_fields():
    formatter = ContextualFormatter("%(message)s")
    with log_context(snapshot=7, source="subscription"):
        formatted = formatter.format(_record("Rebuilt events"))
    assert formatted == "Rebuilt events [snapshot=7 source=subscription]"
    assert formatter.format(_record("plain")) == "plain"


def test_context_values_with_percent_signs_are_not_interpolated():
    formatter = ContextualFormatter("%(message)s")
    record = _record("Deleted %d lot(s), %d failed", 1, 0)
    with log_context(event="RM-100% Ferrari"):
        formatted = formatter.format(record)
    assert formatted == "Deleted 1 lot(s), 0 failed [event=RM-100% Ferrari]"
    assert record.msg == "Deleted %d lot(s), %d failed"


def test_context_is_appended_once_per_handler():
    first, second = io.StringIO(), io.StringIO()
    logger = logging.getLogger("auctionwatch.test.handlers")
    logger.propagate = False
    handlers = [logging.StreamHandler(first), logging.StreamHandler(second)]
    for handler in handlers:
        handler.setFormatter(ContextualFormatter("%(message)s"))
        logger.addHandler(handler)
    try:
        with log_context(snapshot=1):
            logger.warning("Snapshot dropped")
    finally:
        for handler in handlers:
            logger.removeHandler(handler)

    assert first.getvalue() == "Snapshot dropped [snapshot=1]\n"
    assert second.getvalue() == "Snapshot dropped [snapshot=1]\n"


def test_snapshot_metrics_and_prometheus_export():
    registry = get_registry()
    registry.clear()

    record_snapshot("subscription", "applied", 12, 0.25)
    record_snapshot("subscription", "dropped", 12, 0.05)
    record_lot_deletion("deleted")
    record_lot_deletion("deleted")

    counter = registry.counter(SNAPSHOTS)
    assert counter.get({"source": "subscription", "status": "applied"}) == 1
    assert counter.get({"source": "subscription", "status": "dropped"}) == 1
    assert registry.counter(LOT_DELETIONS).get({"status": "deleted"}) == 2
    stats = registry.histogram(SNAPSHOT_DURATION).get_stats({"source": "subscription"})
    assert stats["count"] == 2
    assert stats["sum"] == pytest.approx(0.3)

    text = format_prometheus()
    assert "# TYPE feed_snapshots_total counter" in text
    assert 'feed_snapshots_total{source="subscription",status="applied"} 1.0' in text
    assert 'feed_snapshot_duration_seconds_count{source="subscription"} 2' in text

    summary = get_metrics_summary()
    assert summary["counters"][LOT_DELETIONS] == {"status=deleted": 2.0}


def test_timer_records_duration():
    registry = get_registry()
    registry.clear()

    with Timer("test_duration_seconds", labels={"step": "aggregate"}) as timer:
        pass

    assert timer.duration >= 0
    assert registry.histogram("test_duration_seconds").get_stats({"step": "aggregate"})["count"] == 1


def test_histogram_keeps_bucket_counts_only():
    registry = get_registry()
    registry.clear()

    for value in (0.003, 0.2, 0.2, 30.0):
        observe_histogram("pass_duration_seconds", value, labels={"source": "fetch"})

    histogram = registry.histogram("pass_duration_seconds")
    buckets = dict(histogram.get_buckets({"source": "fetch"}))
    assert buckets[0.005] == 1
    assert buckets[0.25] == 3
    assert buckets[10.0] == 3
    assert buckets[float("inf")] == 4
    assert histogram.get_stats({"source": "fetch"})["count"] == 4
    assert histogram.get_buckets({"source": "poll"}) == []

    text = format_prometheus()
    assert 'pass_duration_seconds_bucket{source="fetch",le="0.25"} 3' in text
    assert 'pass_duration_seconds_bucket{source="fetch",le="+Inf"} 4' in text
