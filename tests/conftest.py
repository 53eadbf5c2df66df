"""
Pytest configuration and shared fixtures.
"""
import pytest
from typing import Any, Dict, List

from salesboard.models import RecordSnapshot


def _sale(month: str, region: str, platform: str, store: str, revenue, orders) -> Dict[str, Any]:
    """Row shaped like the sales_records table."""
    return {
        "month": month,
        "region": region,
        "platform": platform,
        "store_name": store,
        "revenue": revenue,
        "orders": orders,
    }


@pytest.fixture
def bc_scenario_rows() -> List[Dict[str, Any]]:
    """One BC Uber store over two months: 1000/10 then 1200/12."""
    return [
        _sale("2025-09-01", "BC", "Uber", "Richmond", 1000, 10),
        _sale("2025-10-01", "BC", "Uber", "Richmond", 1200, 12),
    ]


@pytest.fixture
def sales_rows() -> List[Dict[str, Any]]:
    """
    Three months, two regions.

    Burnaby has no rows in 2025-10; Surrey (Doordash) only appears in 2025-10.
    """
    return [
        _sale("2025-08-01", "BC", "Uber", "Richmond", 1000, 10),
        _sale("2025-08-01", "BC", "Fantuan", "Richmond", 500, 5),
        _sale("2025-08-01", "BC", "Uber", "Burnaby", 800, 10),
        _sale("2025-08-01", "ON", "Uber", "Toronto", 2000, 20),
        _sale("2025-09-01", "BC", "Uber", "Richmond", 1100, 11),
        _sale("2025-09-01", "BC", "Fantuan", "Richmond", 400, 4),
        _sale("2025-09-01", "BC", "Uber", "Burnaby", 1000, 10),
        _sale("2025-09-01", "ON", "Uber", "Toronto", 1800, 18),
        _sale("2025-10-01", "BC", "Uber", "Richmond", 1320, 12),
        _sale("2025-10-01", "BC", "Fantuan", "Richmond", 600, 6),
        _sale("2025-10-01", "BC", "Doordash", "Surrey", 300, 3),
        _sale("2025-10-01", "ON", "Uber", "Toronto", 1800, 20),
    ]


@pytest.fixture
def yearly_rows() -> List[Dict[str, Any]]:
    """Thirteen consecutive months (2024-10 .. 2025-10) of one store, revenue 100, 200, ... 1300."""
    months = [f"2024-{m:02d}" for m in (10, 11, 12)] + [f"2025-{m:02d}" for m in range(1, 11)]
    return [
        _sale(month, "BC", "Uber", "Richmond", 100 * (i + 1), 10)
        for i, month in enumerate(months)
    ]


@pytest.fixture
def ad_rows() -> List[Dict[str, Any]]:
    """
    Rows shaped like the uber_ads_metrics table.

    Richmond has no ``sales`` column value so sales come from spend x ROAS.
    Burnaby's October row has no ROAS at all.
    """
    return [
        {"month_date": "2025-09-01", "region": "BC", "store_name": "Richmond",
         "spend": 300, "sales": None, "roas": 4, "avg_cost_per_order": 10},
        {"month_date": "2025-09-01", "region": "BC", "store_name": "Burnaby",
         "spend": 200, "sales": 500, "roas": 2.5, "avg_cost_per_order": 20},
        {"month_date": "2025-10-01", "region": "BC", "store_name": "Richmond",
         "spend": 310, "sales": None, "roas": 5, "avg_cost_per_order": 10},
        {"month_date": "2025-10-01", "region": "BC", "store_name": "Burnaby",
         "spend": 100, "sales": None, "roas": None, "avg_cost_per_order": None},
        {"month_date": "2025-10-01", "region": "ON", "store_name": "Toronto",
         "spend": 400, "sales": None, "roas": 3, "avg_cost_per_order": 8},
    ]


@pytest.fixture
def snapshot(sales_rows, ad_rows) -> RecordSnapshot:
    """Snapshot built from the sales and ad fixtures."""
    return RecordSnapshot.from_feed(sales_rows, ad_rows)
