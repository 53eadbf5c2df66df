"""
Store-level views for one region: the platform matrix and trailing trend.

The matrix compares each store's revenue, orders and AOV against the
previous period. The trend gives each store's revenue for every month of
a trailing window.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from salesboard.aggregation import aggregate, aggregate_series, by_fields, where
from salesboard.comparison import resolve_selection
from salesboard.config import config
from salesboard.deltas import delta
from salesboard.models import Bucket, Kpi
from salesboard.observability import timed
from salesboard.periods import PeriodIndex, normalize_period
from salesboard.ranking import sort_rows
from salesboard.ratios import aov

STORE_KEY = by_fields("region", "store")


@dataclass
class MatrixRow:
    """Revenue / orders / AOV comparison for one store."""
    store: str
    region: str
    revenue: Kpi
    orders: Kpi
    aov: Kpi

    def to_dict(self) -> Dict[str, Any]:
        return {
            "store": self.store,
            "region": self.region,
            "revenue": self.revenue.to_dict(),
            "orders": self.orders.to_dict(),
            "aov": self.aov.to_dict(),
        }


@dataclass
class StoreMatrix:
    current_period: Optional[str] = None
    previous_period: Optional[str] = None
    rows: List[MatrixRow] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_period": self.current_period,
            "previous_period": self.previous_period,
            "rows": [r.to_dict() for r in self.rows],
        }


@dataclass
class StoreSeries:
    store: str
    region: str
    values: List[float]


@dataclass
class TrendSeries:
    """Per-key values aligned with ``periods``."""
    periods: List[str] = field(default_factory=list)
    series: List[StoreSeries] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "periods": list(self.periods),
            "series": [
                {"store": s.store, "region": s.region, "values": list(s.values)}
                for s in self.series
            ],
        }


def _matrix_row(region: str, store: str, curr: Bucket, prev: Optional[Bucket]) -> MatrixRow:
    # A store absent last period has unknown previous values, not zeros
    prev_revenue = prev.revenue if prev is not None else None
    prev_orders = prev.orders if prev is not None else None
    curr_aov = aov(curr)
    prev_aov = aov(prev) if prev is not None and prev.orders > 0 else None

    return MatrixRow(
        store=store,
        region=region,
        revenue=Kpi(curr.revenue, prev_revenue, delta(curr.revenue, prev_revenue)),
        orders=Kpi(curr.orders, prev_orders, delta(curr.orders, prev_orders)),
        aov=Kpi(curr_aov, prev_aov, delta(curr_aov, prev_aov)),
    )


@timed("build_store_matrix")
def build_store_matrix(
    records: Iterable[Any],
    region: str,
    period: Optional[str] = None,
    platform: Optional[str] = None,
) -> StoreMatrix:
    """
    Per-store comparison for a region and month.

    Args:
        records: Sales feed rows
        region: Region to show
        period: Selected month (default: latest in feed)
        platform: Platform name, or None / "ALL" for every platform

    Returns:
        StoreMatrix sorted by store name; empty when the month is unknown
    """
    records = list(records)
    selection = resolve_selection(records, period)
    matrix = StoreMatrix(current_period=selection.current, previous_period=selection.previous)
    if not selection.is_resolved:
        return matrix

    scope = where(region=region, platform=platform)
    current = aggregate(records, selection.current_periods, STORE_KEY, scope)
    previous = aggregate(records, selection.previous_periods, STORE_KEY, scope)

    keys = list(current) + [k for k in previous if k not in current]
    rows = [
        _matrix_row(k[0], k[1], current.get(k, Bucket()), previous.get(k))
        for k in keys
    ]
    matrix.rows = sort_rows(rows, "store", "asc")
    return matrix


@timed("build_trend_series")
def build_trend_series(
    records: Iterable[Any],
    region: str,
    period: Optional[str] = None,
    platform: Optional[str] = None,
    window: Optional[int] = None,
) -> TrendSeries:
    """
    Revenue per store for each month of the trailing window.

    Stores missing in a month get 0 for it. Series are sorted by store
    name; the window is clamped at the first month of the feed.
    """
    records = list(records)
    index = PeriodIndex.from_records(records)
    target = normalize_period(period) if period else index.latest
    periods = index.window(target, window or config.engine.trend_window)
    if not periods:
        return TrendSeries()

    per_period = aggregate_series(records, periods, STORE_KEY, where(region=region, platform=platform))

    values: Dict[Any, List[float]] = {}
    for i, p in enumerate(periods):
        for key, bucket in per_period[p].items():
            values.setdefault(key, [0] * len(periods))[i] += bucket.revenue

    series = [StoreSeries(store=k[1], region=k[0], values=v) for k, v in values.items()]
    return TrendSeries(periods=periods, series=sort_rows(series, "store", "asc"))


def build_region_trend(
    records: Iterable[Any],
    region: str,
    period: Optional[str] = None,
    window: Optional[int] = None,
) -> Dict[str, Any]:
    """Total revenue of one region for each month of the trailing window."""
    records = list(records)
    index = PeriodIndex.from_records(records)
    target = normalize_period(period) if period else index.latest
    periods = index.window(target, window or config.engine.trend_window)

    per_period = aggregate_series(records, periods, by_fields("region"), where(region=region))
    return {
        "region": region,
        "periods": periods,
        "values": [per_period[p].get((region,), Bucket()).revenue for p in periods],
    }
