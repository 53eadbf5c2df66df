"""
Integration tests for salesboard/observability.py

Tests log formatting, correlation IDs, timing and the metrics collector.
"""
import json
import logging
import time as time_module
from datetime import datetime, timedelta, timezone

import pytest

from salesboard.comparison import ComparisonQuery, build_comparison
from salesboard.observability import (
    DashboardMetrics,
    JsonFormatter,
    TextFormatter,
    Timer,
    generate_correlation_id,
    get_correlation_id,
    get_logger,
    metrics,
    set_correlation_id,
    timed,
)


def _record(msg="Fetched rows", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="salesboard.datasource",
        level=logging.INFO,
        pathname="datasource.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def clean_metrics():
    metrics.reset()
    set_correlation_id(None)
    yield
    metrics.reset()


class TestCorrelationId:
    """Tests for correlation ID management."""

    def test_generate_correlation_id(self):
        """Generated IDs are short and distinct."""
        first, second = generate_correlation_id(), generate_correlation_id()
        assert len(first) == 8
        assert first != second

    def test_set_and_get_correlation_id(self):
        """Can set and retrieve correlation ID."""
        set_correlation_id("req-123")
        assert get_correlation_id() == "req-123"


class TestTimer:
    """Tests for Timer context manager."""

    def test_measures_elapsed_time(self):
        """Timer measures elapsed time correctly."""
        with Timer("sales_records") as timer:
            time_module.sleep(0.05)

        assert timer.elapsed_ms >= 45
        assert timer.elapsed_ms < 1000

    def test_records_under_feed_by_default(self):
        """Timers default to the feed category."""
        with Timer("sales_records"):
            pass
        timing = metrics.get_stats()["timing"]
        assert timing["feed"]["sales_records"]["count"] == 1
        assert timing["engine"] == {}

    def test_logs_failure(self, caplog):
        """A block that raises is logged as failed and still timed."""
        logger = get_logger("test.timer")
        with caplog.at_level(logging.DEBUG, logger="test.timer"):
            with pytest.raises(RuntimeError):
                with Timer("snapshot_load", logger):
                    raise RuntimeError("feed down")
        assert "snapshot_load failed" in caplog.text
        assert metrics.get_stats()["timing"]["feed"]["snapshot_load"]["count"] == 1


class TestTimedDecorator:
    """Tests for the timed decorator."""

    def test_sync_function(self):
        """Sync functions keep their return value and are timed as engine calls."""
        @timed("build_totals")
        def add(a, b):
            return a + b

        assert add(2, 3) == 5
        assert add.__name__ == "add"
        assert metrics.get_stats()["timing"]["engine"]["build_totals"]["count"] == 1

    @pytest.mark.asyncio
    async def test_async_function(self):
        """Async functions are awaited and timed under their own name."""
        @timed(category="feed")
        async def fetch():
            return "ok"

        assert await fetch() == "ok"
        assert metrics.get_stats()["timing"]["feed"]["fetch"]["count"] == 1

    def test_engine_builders_are_timed(self, snapshot):
        """Engine builders report their timings."""
        build_comparison(snapshot.sales, ComparisonQuery())
        assert "build_comparison" in metrics.get_stats()["timing"]["engine"]


class TestDashboardMetrics:
    """Tests for DashboardMetrics."""

    def test_record_request(self):
        """Requests are counted per route; error statuses are counted too."""
        collector = DashboardMetrics()
        collector.record_request("GET /api/summary", 200, 12.0)
        collector.record_request("GET /api/summary", 400, 3.0)

        stats = collector.get_stats()
        assert stats["requests"]["GET /api/summary"] == 2
        assert stats["errors"] == {"HTTP_400": 1}
        assert stats["timing"]["route"]["GET /api/summary"]["count"] == 2

    def test_timing_summary(self):
        """Computes timing statistics."""
        collector = DashboardMetrics()
        for value in (10, 20, 30):
            collector.record_timing("engine", "build_comparison", value)

        timing = collector.get_stats()["timing"]["engine"]["build_comparison"]
        assert timing["count"] == 3
        assert timing["avg_ms"] == 20
        assert timing["min_ms"] == 10
        assert timing["max_ms"] == 30
        assert timing["p50_ms"] == 20
        assert timing["p95_ms"] == 30

    def test_max_samples(self):
        """Only the last max_samples timings are kept."""
        collector = DashboardMetrics(max_samples=3)
        for value in range(10):
            collector.record_timing("feed", "sales_records", value)
        timing = collector.get_stats()["timing"]["feed"]["sales_records"]
        assert timing["count"] == 3
        assert timing["min_ms"] == 7

    def test_unknown_category(self):
        """Timings must name a known category."""
        with pytest.raises(ValueError):
            DashboardMetrics().record_timing("cache", "op", 1.0)

    def test_snapshot_age(self):
        """Snapshot loads, failures and age are tracked."""
        collector = DashboardMetrics()
        assert collector.snapshot_age_seconds() is None

        fetched_at = datetime(2025, 10, 3, 9, 0, tzinfo=timezone.utc)
        collector.record_snapshot_loaded(fetched_at)
        collector.record_snapshot_failed()

        assert collector.snapshot_age_seconds(fetched_at + timedelta(minutes=5)) == 300
        snapshot = collector.get_stats()["snapshot"]
        assert snapshot["loads"] == 1
        assert snapshot["failures"] == 1
        assert snapshot["fetched_at"] == "2025-10-03T09:00:00+00:00"

    def test_reset_stats(self):
        """Reset clears all stats."""
        collector = DashboardMetrics()
        collector.record_request("GET /api/health", 200, 1.0)
        collector.record_error("DataFetchError")
        collector.reset()

        stats = collector.get_stats()
        assert stats["requests"] == {}
        assert stats["errors"] == {}
        assert stats["timing"] == {"route": {}, "engine": {}, "feed": {}}
        assert stats["snapshot"]["loads"] == 0


class TestJsonFormatter:
    """Tests for JSON log formatter."""

    def test_formats_as_json(self):
        """Outputs valid JSON."""
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["message"] == "Fetched rows"
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "salesboard.datasource"
        assert "T" in parsed["timestamp"]

    def test_includes_correlation_id(self):
        """JSON includes the current correlation ID."""
        set_correlation_id("abc12345")
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["correlation_id"] == "abc12345"

    def test_includes_extra_fields(self):
        """extra= fields are emitted as keys."""
        parsed = json.loads(JsonFormatter().format(_record(table="sales_records", rows=3)))
        assert parsed["table"] == "sales_records"
        assert parsed["rows"] == 3


class TestTextFormatter:
    """Tests for plain-text log formatter."""

    def test_format(self):
        """Level, logger, correlation ID and message are included."""
        set_correlation_id("abc12345")
        output = TextFormatter().format(_record())
        assert "INFO" in output
        assert "salesboard.datasource [abc12345] Fetched rows" in output

    def test_extras_appended(self):
        """extra= fields are appended as key=value."""
        output = TextFormatter().format(_record(table="sales_records"))
        assert output.endswith("table=sales_records")
