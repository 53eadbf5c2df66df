"""
Period-comparison engine.

Turns a feed plus a query (selected period, filters, grouping, metric,
sort) into comparison rows: current, previous, MoM, YoY and share per
dimension key. Pure and synchronous; every call recomputes from the raw
rows.

Usage:
    from salesboard.comparison import ComparisonQuery, build_comparison

    query = ComparisonQuery(
        selected_period="2025-10",
        filters={"region": "BC"},
        group_by=("platform",),
        metric="revenue",
    )
    result = build_comparison(snapshot.sales, query)
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from salesboard.aggregation import (
    aggregate,
    by_fields,
    constant_key,
    distinct_keys,
    total,
    where,
)
from salesboard.config import config
from salesboard.deltas import compare, delta, shares
from salesboard.models import Bucket, ComparisonRow, Kpi, Metric
from salesboard.observability import get_logger, timed
from salesboard.periods import PeriodIndex, PeriodSelection
from salesboard.ranking import SortDirection, sort_rows
from salesboard.ratios import aov

logger = get_logger(__name__)


def metric_value(bucket: Optional[Bucket], metric: str) -> Optional[float]:
    """Pick the metric's value out of a bucket (AOV is derived)."""
    if bucket is None:
        return None
    metric = Metric(metric)
    if metric is Metric.REVENUE:
        return bucket.revenue
    if metric is Metric.ORDERS:
        return bucket.orders
    return aov(bucket)


@dataclass(frozen=True)
class ComparisonQuery:
    """
    Parameters of one breakdown query.

    ``window`` is the number of trailing periods summed as "current";
    previous and year-ago use windows of the same length.
    """
    selected_period: Optional[str] = None
    filters: Dict[str, Any] = field(default_factory=dict)
    group_by: Tuple[str, ...] = ("platform",)
    metric: str = Metric.REVENUE.value
    sort_key: str = "current"
    sort_direction: str = SortDirection.DESC.value
    secondary_sort: Optional[str] = None
    window: int = 1

    def filter_fn(self) -> Callable[[Any], bool]:
        return where(**self.filters)

    def key_fn(self) -> Callable[[Any], Tuple[Any, ...]]:
        return by_fields(*self.group_by) if self.group_by else constant_key


@dataclass
class ComparisonResult:
    """Sorted comparison rows plus the resolved period labels."""
    selection: PeriodSelection
    metric: str
    group_by: Tuple[str, ...]
    rows: List[ComparisonRow] = field(default_factory=list)
    total: Kpi = field(default_factory=lambda: Kpi(current=None))

    @property
    def current_period(self) -> Optional[str]:
        return self.selection.current

    @property
    def previous_period(self) -> Optional[str]:
        return self.selection.previous

    @property
    def yoy_period(self) -> Optional[str]:
        return self.selection.year_ago

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.selection.to_dict(),
            "metric": self.metric,
            "group_by": list(self.group_by),
            "rows": [r.to_dict() for r in self.rows],
            "total": self.total.to_dict(),
        }


def resolve_selection(records: Sequence[Any], period: Optional[str], window: int = 1) -> PeriodSelection:
    """Resolve current / previous / year-ago periods against a feed."""
    index = PeriodIndex.from_records(records)
    return index.resolve(
        period,
        window=window,
        mom_offset=config.engine.mom_offset,
        yoy_offset=config.engine.yoy_offset,
    )


def _aggregate_or_none(records, periods, key_fn, filter_fn) -> Optional[Dict[Any, Bucket]]:
    # No baseline period at all is "unknown", not an empty bucket set
    if not periods:
        return None
    return aggregate(records, periods, key_fn, filter_fn)


@timed("build_comparison")
def build_comparison(records: Iterable[Any], query: ComparisonQuery) -> ComparisonResult:
    """
    Breakdown table for the selected period.

    Every dimension key present anywhere in the filtered feed gets a row,
    so a key with no activity this period shows current 0 rather than
    disappearing. Previous / YoY are None when the baseline period does
    not exist, and MoM / YoY are None when the baseline value is 0.
    """
    records = list(records)
    selection = resolve_selection(records, query.selected_period, query.window)
    result = ComparisonResult(selection=selection, metric=query.metric, group_by=tuple(query.group_by))

    if not selection.is_resolved:
        logger.info(
            "Selected period not in feed",
            extra={"period": selection.requested, "periods": len(records)},
        )
        return result

    key_fn = query.key_fn()
    filter_fn = query.filter_fn()

    current = aggregate(records, selection.current_periods, key_fn, filter_fn)
    previous = _aggregate_or_none(records, selection.previous_periods, key_fn, filter_fn)
    year_ago = _aggregate_or_none(records, selection.year_ago_periods, key_fn, filter_fn)

    rows: List[ComparisonRow] = []
    for key in distinct_keys(records, key_fn, filter_fn):
        bucket = current.get(key, Bucket())
        curr_val = metric_value(bucket, query.metric)
        prev_val = metric_value(previous.get(key, Bucket()), query.metric) if previous is not None else None
        yoy_val = metric_value(year_ago.get(key, Bucket()), query.metric) if year_ago is not None else None

        rows.append(ComparisonRow(
            key=key,
            labels=dict(zip(query.group_by, key)),
            current=curr_val,
            previous=prev_val,
            mom=delta(curr_val, prev_val),
            yoy=delta(curr_val, yoy_val),
            extra={
                "revenue": bucket.revenue,
                "orders": bucket.orders,
                "aov": aov(bucket),
            },
        ))

    for row, share in zip(rows, shares(r.current for r in rows)):
        row.share = share

    result.rows = sort_rows(rows, query.sort_key, query.sort_direction, secondary=query.secondary_sort)
    result.total = compare(
        metric_value(total(current), query.metric),
        metric_value(total(previous), query.metric) if previous is not None else None,
        metric_value(total(year_ago), query.metric) if year_ago is not None else None,
    )

    logger.debug(
        "Comparison built",
        extra={
            "period": selection.current,
            "group_by": list(query.group_by),
            "metric": query.metric,
            "rows": len(result.rows),
        },
    )
    return result


@timed("summary_kpis")
def summary_kpis(
    records: Iterable[Any],
    selected_period: Optional[str] = None,
    filters: Optional[Dict[str, Any]] = None,
    window: int = 1,
) -> Dict[str, Kpi]:
    """
    Revenue, orders and AOV cards for a filtered scope.

    Returns a dict with ``revenue``, ``orders`` and ``aov`` Kpis; every
    Kpi is empty (current None) when the period is not in the feed.
    """
    records = list(records)
    selection = resolve_selection(records, selected_period, window)
    if not selection.is_resolved:
        return {m.value: Kpi(current=None) for m in Metric}

    filter_fn = where(**(filters or {}))
    curr = total(aggregate(records, selection.current_periods, constant_key, filter_fn))
    prev = _aggregate_or_none(records, selection.previous_periods, constant_key, filter_fn)
    yoy = _aggregate_or_none(records, selection.year_ago_periods, constant_key, filter_fn)
    prev = total(prev) if prev is not None else None
    yoy = total(yoy) if yoy is not None else None

    return {
        m.value: compare(metric_value(curr, m), metric_value(prev, m), metric_value(yoy, m))
        for m in Metric
    }
