"""
Tests for salesboard.aggregation module.
"""
import pytest

from salesboard.aggregation import (
    aggregate,
    aggregate_series,
    all_of,
    by_fields,
    constant_key,
    distinct_keys,
    field_value,
    measure,
    merge_buckets,
    total,
    where,
)
from salesboard.models import Bucket, SalesRecord
from salesboard.ranking import sort_rows


@pytest.fixture
def rows():
    """Dict rows already keyed by period."""
    return [
        {"period": "2025-09", "region": "BC", "platform": "Uber", "revenue": 1000, "orders": 10},
        {"period": "2025-09", "region": "BC", "platform": "Fantuan", "revenue": 400, "orders": 4},
        {"period": "2025-10", "region": "BC", "platform": "Uber", "revenue": 1200, "orders": 12},
        {"period": "2025-10", "region": "ON", "platform": "Uber", "revenue": 900, "orders": None},
        {"period": "2025-10", "region": "BC", "platform": "Uber", "revenue": "bad", "orders": 1},
    ]


class TestFieldAccess:
    """Tests for field_value and measure."""

    def test_dict_and_dataclass(self):
        """Fields are read from dicts and dataclasses alike."""
        record = SalesRecord(period="2025-10", region="BC")
        assert field_value(record, "region") == "BC"
        assert field_value({"region": "ON"}, "region") == "ON"
        assert field_value({}, "region", "x") == "x"

    def test_measure_coalesces_to_zero(self):
        """Missing or malformed measures count as 0."""
        assert measure({"revenue": None}, "revenue") == 0
        assert measure({"revenue": "bad"}, "revenue") == 0
        assert measure({}, "orders") == 0
        assert measure({"revenue": "12.5"}, "revenue") == 12.5


class TestKeyAndFilterBuilders:
    """Tests for by_fields, constant_key, where and all_of."""

    def test_by_fields(self, rows):
        """by_fields builds a tuple key and records its fields."""
        key_fn = by_fields("region", "platform")
        assert key_fn(rows[0]) == ("BC", "Uber")
        assert key_fn.fields == ("region", "platform")

    def test_constant_key(self, rows):
        """constant_key puts every row in one group."""
        assert constant_key(rows[0]) == constant_key(rows[3]) == ()

    def test_where_matches(self, rows):
        """where keeps rows equal on every constraint."""
        fn = where(region="BC", platform="Uber")
        assert [fn(r) for r in rows] == [True, False, True, False, True]

    @pytest.mark.parametrize("value", [None, "", "ALL", "all", "*"])
    def test_where_ignores_any_value(self, rows, value):
        """ALL and empty selectors impose no constraint."""
        fn = where(platform=value)
        assert fn.constraints == {}
        assert all(fn(r) for r in rows)

    def test_all_of(self, rows):
        """all_of combines filters and skips None."""
        fn = all_of(where(region="BC"), None, lambda r: r["platform"] == "Fantuan")
        assert [fn(r) for r in rows] == [False, True, False, False, False]


class TestAggregate:
    """Tests for aggregate function."""

    def test_sums_per_key(self, rows):
        """Rows are summed per key, malformed values as 0."""
        buckets = aggregate(rows, ["2025-10"], by_fields("region"))
        assert buckets[("BC",)].revenue == 1200
        assert buckets[("BC",)].orders == 13
        assert buckets[("BC",)].rows == 2
        assert buckets[("ON",)].orders == 0

    def test_filter(self, rows):
        """filter_fn removes rows before grouping."""
        buckets = aggregate(rows, ["2025-09", "2025-10"], by_fields("platform"), where(region="BC"))
        assert set(buckets) == {("Uber",), ("Fantuan",)}
        assert buckets[("Uber",)].revenue == 2200

    def test_first_seen_order(self, rows):
        """Buckets appear in first-seen order."""
        buckets = aggregate(rows, ["2025-09"], by_fields("platform"))
        assert list(buckets) == [("Uber",), ("Fantuan",)]

    def test_empty_periods(self, rows):
        """No periods means no buckets."""
        assert aggregate(rows, [], constant_key) == {}

    def test_unknown_period(self, rows):
        """A period without rows gives no buckets."""
        assert aggregate(rows, ["2024-01"], constant_key) == {}

    def test_window_equals_merged_series(self, rows):
        """Aggregating a range equals merging per-period aggregates."""
        periods = ["2025-09", "2025-10"]
        key_fn = by_fields("region", "platform")
        combined = aggregate(rows, periods, key_fn)
        series = aggregate_series(rows, periods, key_fn)
        merged = merge_buckets(*series.values())
        assert combined == merged


class TestHelpers:
    """Tests for aggregate_series, merge_buckets, total and distinct_keys."""

    def test_series_keeps_period_order(self, rows):
        """aggregate_series returns one map per period in the given order."""
        series = aggregate_series(rows, ["2025-10", "2025-09"], constant_key)
        assert list(series) == ["2025-10", "2025-09"]
        assert series["2025-09"][()].revenue == 1400

    def test_merge_does_not_mutate(self):
        """merge_buckets leaves its inputs untouched."""
        first = {("a",): Bucket(revenue=1)}
        second = {("a",): Bucket(revenue=2), ("b",): Bucket(revenue=3)}
        merged = merge_buckets(first, second)
        assert merged[("a",)].revenue == 3
        assert merged[("b",)].revenue == 3
        assert first[("a",)].revenue == 1

    def test_total(self, rows):
        """total collapses every bucket."""
        assert total(aggregate(rows, ["2025-10"], by_fields("region"))).revenue == 2100
        assert total({}) == Bucket()

    def test_distinct_keys_sorted(self, rows):
        """distinct_keys covers all periods and sorts by text."""
        keys = distinct_keys(rows, by_fields("region", "platform"))
        assert keys == [("BC", "Fantuan"), ("BC", "Uber"), ("ON", "Uber")]

    def test_distinct_keys_filtered(self, rows):
        """Filtered-out rows contribute no keys."""
        assert distinct_keys(rows, by_fields("region"), where(region="ON")) == [("ON",)]

    def test_distinct_keys_collate_like_ranker(self):
        """Keys sort case-insensitively, matching a name sort of the rows."""
        rows = [
            {"period": "2025-10", "store": "burnaby"},
            {"period": "2025-10", "store": "Richmond"},
            {"period": "2025-10", "store": "Abbotsford"},
        ]
        keys = distinct_keys(rows, by_fields("store"))
        assert keys == [("Abbotsford",), ("burnaby",), ("Richmond",)]
        by_name = sort_rows(rows, "store", "asc")
        assert [(r["store"],) for r in by_name] == keys
