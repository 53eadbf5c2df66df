"""
Domain models for the sales and advertising feeds.

Provides dataclasses for raw feed rows, the per-query snapshot that holds
them, and the engine's result shapes (buckets, KPIs, comparison rows).
These models are the single source of truth for data structures used by
both the engine and the web API.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from salesboard.periods import normalize_period


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class Region(str, Enum):
    """Sales regions present in the production feed."""
    BC = "BC"
    ON = "ON"
    CA = "CA"

    @classmethod
    def values(cls) -> List[str]:
        return [r.value for r in cls]


class Platform(str, Enum):
    """Delivery platforms present in the production feed."""
    UBER = "Uber"
    FANTUAN = "Fantuan"
    DOORDASH = "Doordash"

    @classmethod
    def values(cls) -> List[str]:
        return [p.value for p in cls]


class Metric(str, Enum):
    """Numeric field driving a breakdown table."""
    REVENUE = "revenue"
    ORDERS = "orders"
    AOV = "aov"


# ═══════════════════════════════════════════════════════════════════════════════
# NUMERIC HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def coerce_number(value: Any) -> Optional[float]:
    """
    Convert a feed value to a finite number, or None.

    Accepts ints, floats and numeric strings (PostgREST returns numeric
    columns as strings). NaN, infinities, booleans and anything else
    unparseable become None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def field_value(row: Any, name: str, default: Any = None) -> Any:
    """Read a field from a dataclass row or a plain dict."""
    if isinstance(row, Mapping):
        return row.get(name, default)
    return getattr(row, name, default)


def add_optional(total: Optional[float], value: Optional[float]) -> Optional[float]:
    """Sum where None means "no value seen" rather than 0."""
    if value is None:
        return total
    return value if total is None else total + value


def is_number(value: Any) -> bool:
    """True for finite ints/floats (booleans excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


# ═══════════════════════════════════════════════════════════════════════════════
# FEED ROWS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SalesRecord:
    """One sales row: (period, region, platform, store) totals."""
    period: str
    region: str
    platform: str = ""
    store: str = ""
    revenue: Optional[float] = None
    orders: Optional[float] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "SalesRecord":
        """
        Create SalesRecord from a feed row.

        Column aliases follow the sales_records table: ``month`` for the
        period and ``store_name`` for the store.
        """
        period = data.get("period") or data.get("month") or data.get("month_date")
        return cls(
            period=normalize_period(period),
            region=_text(data.get("region")),
            platform=_text(data.get("platform")),
            store=_text(data.get("store") or data.get("store_name")),
            revenue=coerce_number(data.get("revenue")),
            orders=coerce_number(data.get("orders")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period,
            "region": self.region,
            "platform": self.platform,
            "store": self.store,
            "revenue": self.revenue,
            "orders": self.orders,
        }


@dataclass(frozen=True)
class AdMetricRecord:
    """
    One advertising row per (period, region, store).

    ``sales`` is optional in the feed; when absent it is derived from
    spend x ROAS by the ratio calculator.
    """
    period: str
    region: str
    store: str
    platform: str = Platform.UBER.value
    spend: Optional[float] = None
    sales: Optional[float] = None
    roas: Optional[float] = None
    avg_cost_per_order: Optional[float] = None
    daily_spend: Optional[float] = None
    spend_delta_pct: Optional[float] = None
    roas_delta_pct: Optional[float] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "AdMetricRecord":
        """Create AdMetricRecord from an uber_ads_metrics feed row."""
        period = data.get("period") or data.get("month_date") or data.get("month")
        return cls(
            period=normalize_period(period),
            region=_text(data.get("region")),
            store=_text(data.get("store") or data.get("store_name")),
            platform=_text(data.get("platform")) or Platform.UBER.value,
            spend=coerce_number(data.get("spend")),
            sales=coerce_number(data.get("sales")),
            roas=coerce_number(data.get("roas")),
            avg_cost_per_order=coerce_number(data.get("avg_cost_per_order")),
            daily_spend=coerce_number(data.get("daily_spend")),
            spend_delta_pct=coerce_number(data.get("spend_delta_pct")),
            roas_delta_pct=coerce_number(data.get("roas_delta_pct")),
        )


@dataclass(frozen=True)
class RecordSnapshot:
    """
    Immutable raw feed for one query session.

    The engine only reads from it. A reload replaces the whole snapshot.
    """
    sales: Tuple[SalesRecord, ...] = ()
    ads: Tuple[AdMetricRecord, ...] = ()
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_feed(
        cls,
        sales_rows: Iterable[Dict[str, Any]],
        ad_rows: Optional[Iterable[Dict[str, Any]]] = None,
    ) -> "RecordSnapshot":
        """Build a snapshot from raw feed dicts."""
        return cls(
            sales=tuple(SalesRecord.from_api(r) for r in sales_rows),
            ads=tuple(AdMetricRecord.from_api(r) for r in (ad_rows or [])),
        )

    @property
    def is_empty(self) -> bool:
        return not self.sales and not self.ads

    def distinct(self, dimension: str) -> List[str]:
        """Sorted distinct values of a sales dimension."""
        return sorted({getattr(r, dimension) for r in self.sales if getattr(r, dimension)})


# ═══════════════════════════════════════════════════════════════════════════════
# ENGINE RESULTS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class Bucket:
    """
    Summed measures for one dimension key over one period set.

    Sales-feed measures (revenue, orders) start at 0. Ad measures (spend,
    sales, ad_orders) stay None until some row carries a value, so "no ad
    data" is distinguishable from "zero spend". ``feed_roas`` is the ROAS
    reported by the last ad row summed.
    """
    revenue: float = 0
    orders: float = 0
    spend: Optional[float] = None
    sales: Optional[float] = None
    ad_orders: Optional[float] = None
    feed_roas: Optional[float] = None
    rows: int = 0

    def __add__(self, other: "Bucket") -> "Bucket":
        return Bucket(
            revenue=self.revenue + other.revenue,
            orders=self.orders + other.orders,
            spend=add_optional(self.spend, other.spend),
            sales=add_optional(self.sales, other.sales),
            ad_orders=add_optional(self.ad_orders, other.ad_orders),
            feed_roas=other.feed_roas if other.feed_roas is not None else self.feed_roas,
            rows=self.rows + other.rows,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "revenue": self.revenue,
            "orders": self.orders,
            "spend": self.spend,
            "sales": self.sales,
            "ad_orders": self.ad_orders,
            "rows": self.rows,
        }


@dataclass(frozen=True)
class Kpi:
    """Current value with previous / year-ago comparisons."""
    current: Optional[float]
    previous: Optional[float] = None
    mom: Optional[float] = None
    yoy: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current,
            "previous": self.previous,
            "mom": self.mom,
            "yoy": self.yoy,
        }


@dataclass
class ComparisonRow:
    """
    One row of a breakdown table.

    ``key`` is the dimension tuple the row was grouped by and ``labels``
    maps dimension names to their values. Ratio and auxiliary fields go
    into ``extra``.
    """
    key: Tuple[Any, ...]
    labels: Dict[str, Any] = field(default_factory=dict)
    current: Optional[float] = None
    previous: Optional[float] = None
    mom: Optional[float] = None
    yoy: Optional[float] = None
    share: Optional[float] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        """Display name built from the dimension values."""
        if self.labels:
            return " / ".join(str(v) for v in self.labels.values())
        return " / ".join(str(k) for k in self.key)

    def get(self, field_name: str, default: Any = None) -> Any:
        """Look up a row field, a dimension label or an extra value by name."""
        if field_name in ("key", "current", "previous", "mom", "yoy", "share", "name"):
            return getattr(self, field_name)
        if field_name in self.labels:
            return self.labels[field_name]
        return self.extra.get(field_name, default)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.labels,
            "name": self.name,
            "current": self.current,
            "previous": self.previous,
            "mom": self.mom,
            "yoy": self.yoy,
            "share": self.share,
            **self.extra,
        }
