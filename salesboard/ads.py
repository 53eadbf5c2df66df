"""
Advertising panel: per-store spend, sales and ROAS with prior-month deltas.

Ad rows go through the dimensional aggregator keyed by (region, store).
Sales are taken from the feed when present and otherwise recovered as
spend x ROAS. Store ROAS is recomputed as sales / spend so it stays
consistent when a store has several rows in a month. Totals use
spend-weighted ROAS.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from salesboard.aggregation import aggregate, by_fields, total, where
from salesboard.comparison import resolve_selection
from salesboard.deltas import compare, delta
from salesboard.models import Bucket, Kpi
from salesboard.observability import get_logger, timed
from salesboard.ranking import SortDirection, sort_rows
from salesboard.ratios import cost_per_order, daily_spend, roas

logger = get_logger(__name__)

STORE_KEY = by_fields("region", "store")


def bucket_roas(bucket: Optional[Bucket]) -> Optional[float]:
    """Sales / spend of a bucket; a single row without spend keeps its feed ROAS."""
    if bucket is None:
        return None
    computed = roas(bucket.sales, bucket.spend)
    if computed is None and bucket.rows == 1:
        return bucket.feed_roas
    return computed


@dataclass
class AdRow:
    """One store in the ad panel."""
    store: str
    region: str
    period: str
    current: Bucket
    previous: Optional[Bucket] = None

    @property
    def spend(self) -> Optional[float]:
        return self.current.spend

    @property
    def sales(self) -> Optional[float]:
        return self.current.sales

    @property
    def roas(self) -> Optional[float]:
        return bucket_roas(self.current)

    @property
    def daily_spend(self) -> Optional[float]:
        return daily_spend(self.current.spend, self.period)

    @property
    def cost_per_order(self) -> Optional[float]:
        return cost_per_order(self.current.spend, self.current.ad_orders)

    @property
    def spend_delta(self) -> Optional[float]:
        return delta(self.current.spend, self.previous.spend if self.previous else None)

    @property
    def roas_delta(self) -> Optional[float]:
        return delta(self.roas, bucket_roas(self.previous))

    def to_dict(self) -> Dict[str, Any]:
        prev = self.previous
        return {
            "store": self.store,
            "region": self.region,
            "spend": self.spend,
            "sales": self.sales,
            "daily_spend": self.daily_spend,
            "roas": self.roas,
            "cost_per_order": self.cost_per_order,
            "spend_delta": self.spend_delta,
            "roas_delta": self.roas_delta,
            "previous_spend": prev.spend if prev else None,
            "previous_sales": prev.sales if prev else None,
            "previous_roas": bucket_roas(prev),
        }


SORT_FIELDS: Dict[str, Callable[[AdRow], Any]] = {
    "store": lambda r: r.store,
    "sales": lambda r: r.sales,
    "spend": lambda r: r.spend,
    "daily_spend": lambda r: r.daily_spend,
    "roas": lambda r: r.roas,
    "roas_delta": lambda r: r.roas_delta,
    "cost_per_order": lambda r: r.cost_per_order,
}


@dataclass
class AdsPanel:
    current_period: Optional[str] = None
    previous_period: Optional[str] = None
    rows: List[AdRow] = field(default_factory=list)
    totals: Dict[str, Kpi] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_period": self.current_period,
            "previous_period": self.previous_period,
            "rows": [r.to_dict() for r in self.rows],
            "totals": {k: v.to_dict() for k, v in self.totals.items()},
        }


def _nonzero(value: Optional[float]) -> Optional[float]:
    # Zero totals mean "no ad data" on the panel
    return value or None


def panel_totals(curr: Bucket, prev: Optional[Bucket]) -> Dict[str, Kpi]:
    """Total sales, total spend and spend-weighted ROAS."""
    return {
        "sales": compare(_nonzero(curr.sales), _nonzero(prev.sales) if prev else None),
        "spend": compare(_nonzero(curr.spend), _nonzero(prev.spend) if prev else None),
        "roas": compare(roas(curr.sales, curr.spend), roas(prev.sales, prev.spend) if prev else None),
    }


@timed("build_ads_panel")
def build_ads_panel(
    records: Iterable[Any],
    region: str,
    period: Optional[str] = None,
    sort_key: str = "spend",
    direction: str = SortDirection.DESC.value,
) -> AdsPanel:
    """
    Per-store ad metrics for one region and month.

    Args:
        records: Advertising feed rows
        region: Region to show
        period: Selected month (default: latest in the ad feed)
        sort_key: One of SORT_FIELDS
        direction: "asc" or "desc"

    Returns:
        AdsPanel; rows and totals are empty when the month is unknown
    """
    if sort_key not in SORT_FIELDS:
        raise ValueError(f"sort_key must be one of {sorted(SORT_FIELDS)}, got {sort_key!r}")

    records = list(records)
    selection = resolve_selection(records, period)
    panel = AdsPanel(current_period=selection.current, previous_period=selection.previous)
    if not selection.is_resolved:
        panel.totals = panel_totals(Bucket(), None)
        return panel

    scope = where(region=region)
    current = aggregate(records, [selection.current], STORE_KEY, scope)
    previous = None
    if selection.previous is not None:
        previous = aggregate(records, [selection.previous], STORE_KEY, scope)

    rows = [
        AdRow(
            store=key[1],
            region=key[0],
            period=selection.current,
            current=bucket,
            previous=previous.get(key) if previous is not None else None,
        )
        for key, bucket in current.items()
    ]

    panel.rows = sort_rows(rows, SORT_FIELDS[sort_key], direction)
    panel.totals = panel_totals(total(current), total(previous) if previous is not None else None)

    logger.debug(
        "Ads panel built",
        extra={"region": region, "period": selection.current, "stores": len(rows)},
    )
    return panel
