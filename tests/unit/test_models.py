"""
Tests for salesboard.models module.
"""
import math

import pytest

from salesboard.models import (
    AdMetricRecord,
    Bucket,
    ComparisonRow,
    Kpi,
    Metric,
    Platform,
    RecordSnapshot,
    Region,
    SalesRecord,
    coerce_number,
    is_number,
)


class TestEnums:
    """Tests for Region, Platform and Metric enums."""

    def test_region_values(self):
        """Region values are the production region codes."""
        assert Region.values() == ["BC", "ON", "CA"]

    def test_platform_values(self):
        """Platform values match the feed's spelling."""
        assert Platform.values() == ["Uber", "Fantuan", "Doordash"]

    def test_metric_is_str(self):
        """Metric compares equal to its string value."""
        assert Metric.AOV == "aov"
        assert Metric("orders") is Metric.ORDERS


class TestCoerceNumber:
    """Tests for coerce_number and is_number."""

    def test_ints_kept(self):
        """Ints are returned unchanged."""
        assert coerce_number(12) == 12
        assert isinstance(coerce_number(12), int)

    def test_numeric_strings(self):
        """PostgREST numeric strings are parsed."""
        assert coerce_number("1200.50") == 1200.5

    @pytest.mark.parametrize("value", [None, True, False, "abc", float("nan"), float("inf"), [], {}])
    def test_unusable_values(self, value):
        """Booleans, NaN, infinities and junk become None."""
        assert coerce_number(value) is None

    def test_is_number(self):
        """is_number accepts only finite ints and floats."""
        assert is_number(1)
        assert is_number(1.5)
        assert not is_number(True)
        assert not is_number("1")
        assert not is_number(math.nan)


class TestSalesRecord:
    """Tests for SalesRecord model."""

    def test_from_api_aliases(self):
        """month and store_name columns map to period and store."""
        record = SalesRecord.from_api({
            "month": "2025-10-01",
            "region": " BC ",
            "platform": "Uber",
            "store_name": "Richmond",
            "revenue": "1200",
            "orders": 12,
        })
        assert record.period == "2025-10"
        assert record.region == "BC"
        assert record.store == "Richmond"
        assert record.revenue == 1200.0
        assert record.orders == 12

    def test_from_api_period_column(self):
        """A period column wins over month."""
        record = SalesRecord.from_api({"period": "2025-09", "month": "2025-10-01", "region": "ON"})
        assert record.period == "2025-09"

    def test_missing_values(self):
        """Missing dimensions are empty strings, missing measures None."""
        record = SalesRecord.from_api({"month": "2025-10-01", "region": "BC", "revenue": "n/a"})
        assert record.platform == ""
        assert record.store == ""
        assert record.revenue is None
        assert record.orders is None

    def test_to_dict(self):
        """to_dict uses canonical field names."""
        record = SalesRecord(period="2025-10", region="BC", platform="Uber", store="A", revenue=1, orders=2)
        assert record.to_dict() == {
            "period": "2025-10",
            "region": "BC",
            "platform": "Uber",
            "store": "A",
            "revenue": 1,
            "orders": 2,
        }


class TestAdMetricRecord:
    """Tests for AdMetricRecord model."""

    def test_from_api(self):
        """uber_ads_metrics columns are mapped."""
        record = AdMetricRecord.from_api({
            "month_date": "2025-10-01",
            "region": "BC",
            "store_name": "Richmond",
            "spend": "310",
            "roas": 5,
            "avg_cost_per_order": 10,
        })
        assert record.period == "2025-10"
        assert record.store == "Richmond"
        assert record.platform == "Uber"
        assert record.spend == 310.0
        assert record.sales is None


class TestRecordSnapshot:
    """Tests for RecordSnapshot model."""

    def test_from_feed(self, sales_rows, ad_rows):
        """Raw rows become typed, immutable tuples."""
        snapshot = RecordSnapshot.from_feed(sales_rows, ad_rows)
        assert len(snapshot.sales) == len(sales_rows)
        assert len(snapshot.ads) == len(ad_rows)
        assert isinstance(snapshot.sales, tuple)
        assert not snapshot.is_empty

    def test_empty(self):
        """A snapshot without rows is empty."""
        snapshot = RecordSnapshot.from_feed([])
        assert snapshot.is_empty
        assert snapshot.ads == ()

    def test_distinct(self, snapshot):
        """distinct returns sorted values of a dimension."""
        assert snapshot.distinct("region") == ["BC", "ON"]
        assert snapshot.distinct("platform") == ["Doordash", "Fantuan", "Uber"]
        assert snapshot.distinct("store") == ["Burnaby", "Richmond", "Surrey", "Toronto"]


class TestBucketAndKpi:
    """Tests for Bucket and Kpi result models."""

    def test_bucket_addition(self):
        """Buckets add field by field."""
        total = Bucket(revenue=100, orders=2, rows=1) + Bucket(revenue=50, orders=1, spend=10, rows=1)
        assert total.revenue == 150
        assert total.orders == 3
        assert total.spend == 10
        assert total.rows == 2

    def test_bucket_addition_keeps_missing_ad_measures(self):
        """Ad measures absent on both sides stay None."""
        total = Bucket(revenue=100, rows=1) + Bucket(revenue=50, rows=1)
        assert total.spend is None
        assert total.sales is None
        assert Bucket(feed_roas=2.0) + Bucket() == Bucket(feed_roas=2.0)

    def test_kpi_to_dict(self):
        """Kpi serializes all four fields."""
        assert Kpi(current=1200, previous=1000, mom=0.2).to_dict() == {
            "current": 1200,
            "previous": 1000,
            "mom": 0.2,
            "yoy": None,
        }


class TestComparisonRow:
    """Tests for ComparisonRow model."""

    def test_name_from_labels(self):
        """Name joins dimension values."""
        row = ComparisonRow(key=("BC", "Uber"), labels={"region": "BC", "platform": "Uber"})
        assert row.name == "BC / Uber"

    def test_name_without_labels(self):
        """Without labels the key is used."""
        assert ComparisonRow(key=("BC",)).name == "BC"

    def test_get(self):
        """get looks up fields, labels and extras."""
        row = ComparisonRow(
            key=("Uber",),
            labels={"platform": "Uber"},
            current=10,
            extra={"orders": 3},
        )
        assert row.get("current") == 10
        assert row.get("platform") == "Uber"
        assert row.get("orders") == 3
        assert row.get("missing", "x") == "x"

    def test_to_dict_flattens(self):
        """to_dict puts labels and extras next to the comparison fields."""
        row = ComparisonRow(key=("Uber",), labels={"platform": "Uber"}, current=10, extra={"aov": 5.0})
        data = row.to_dict()
        assert data["platform"] == "Uber"
        assert data["name"] == "Uber"
        assert data["current"] == 10
        assert data["aov"] == 5.0
        assert data["share"] is None
