"""
Dimensional aggregator.

Groups raw rows by a caller-supplied key function over a set of periods
and sums revenue, orders, spend and sales. Missing or malformed revenue
and orders count as 0 so one bad row cannot poison a sum. Ad measures
stay None until a row carries them; ad sales fall back to spend x ROAS.

Usage:
    from salesboard.aggregation import aggregate, by_fields, where

    buckets = aggregate(
        snapshot.sales,
        periods={"2025-08", "2025-09", "2025-10"},
        key_fn=by_fields("region", "platform"),
        filter_fn=where(region="BC"),
    )
"""
from typing import Any, Callable, Dict, Hashable, Iterable, Mapping, Optional, Tuple

from salesboard.models import Bucket, add_optional, coerce_number, field_value
from salesboard.ranking import collation_key
from salesboard.ratios import safe_divide, sales_from_roas

Row = Any
KeyFn = Callable[[Row], Hashable]
FilterFn = Callable[[Row], bool]

# Filter values meaning "no constraint" (the platform selector's ALL option)
ANY_VALUE = {None, "", "ALL", "all", "*"}


def measure(row: Row, name: str) -> float:
    """Numeric measure of a row, 0 when absent or malformed."""
    value = coerce_number(field_value(row, name))
    return 0 if value is None else value


def ad_sales(row: Row) -> Optional[float]:
    """Ad sales of one row: the feed value, else spend x ROAS."""
    sales = coerce_number(field_value(row, "sales"))
    if sales is not None:
        return sales
    return sales_from_roas(field_value(row, "spend"), field_value(row, "roas"))


def ad_orders(row: Row) -> Optional[float]:
    """Orders attributed to ads, implied by spend / cost-per-order."""
    return safe_divide(field_value(row, "spend"), field_value(row, "avg_cost_per_order"))


# ═══════════════════════════════════════════════════════════════════════════════
# KEY AND FILTER BUILDERS
# ═══════════════════════════════════════════════════════════════════════════════

def by_fields(*names: str) -> KeyFn:
    """Key function grouping by the given dimension fields, as a tuple."""
    def key_fn(row: Row) -> Tuple[Any, ...]:
        return tuple(field_value(row, n) for n in names)
    key_fn.fields = names
    return key_fn


def constant_key(row: Row) -> Tuple[()]:
    """Key function putting every row into one grand-total bucket."""
    return ()


constant_key.fields = ()


def where(**equals: Any) -> FilterFn:
    """
    Equality filter over dimension fields.

    Constraints whose value is None or "ALL" are dropped, so a query's
    optional selectors can be passed straight through.
    """
    constraints = {k: v for k, v in equals.items() if v not in ANY_VALUE}

    def filter_fn(row: Row) -> bool:
        return all(field_value(row, k) == v for k, v in constraints.items())
    filter_fn.constraints = constraints
    return filter_fn


def all_of(*filters: Optional[FilterFn]) -> FilterFn:
    """Combine filters; None entries are ignored."""
    active = [f for f in filters if f is not None]

    def filter_fn(row: Row) -> bool:
        return all(f(row) for f in active)
    return filter_fn


# ═══════════════════════════════════════════════════════════════════════════════
# AGGREGATION
# ═══════════════════════════════════════════════════════════════════════════════

def aggregate(
    rows: Iterable[Row],
    periods: Iterable[str],
    key_fn: KeyFn,
    filter_fn: Optional[FilterFn] = None,
) -> Dict[Hashable, Bucket]:
    """
    Sum measures per key over a set of periods.

    All periods passed together land in one bucket per key (a trailing
    window). Callers wanting one bucket per period use aggregate_series.
    Buckets appear in first-seen input order.

    Args:
        rows: Feed rows with a ``period`` field
        periods: Periods whose rows contribute
        key_fn: Row -> dimension key
        filter_fn: Optional row predicate

    Returns:
        Dict of dimension key -> Bucket
    """
    period_set = frozenset(periods)
    buckets: Dict[Hashable, Bucket] = {}
    if not period_set:
        return buckets

    for row in rows:
        if field_value(row, "period") not in period_set:
            continue
        if filter_fn is not None and not filter_fn(row):
            continue

        key = key_fn(row)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = Bucket()
        bucket.revenue += measure(row, "revenue")
        bucket.orders += measure(row, "orders")
        bucket.spend = add_optional(bucket.spend, coerce_number(field_value(row, "spend")))
        bucket.sales = add_optional(bucket.sales, ad_sales(row))
        bucket.ad_orders = add_optional(bucket.ad_orders, ad_orders(row))
        roas_value = coerce_number(field_value(row, "roas"))
        if roas_value is not None:
            bucket.feed_roas = roas_value
        bucket.rows += 1

    return buckets


def aggregate_series(
    rows: Iterable[Row],
    periods: Iterable[str],
    key_fn: KeyFn,
    filter_fn: Optional[FilterFn] = None,
) -> Dict[str, Dict[Hashable, Bucket]]:
    """One aggregate per period, keyed by period in the order given."""
    rows = list(rows)
    return {p: aggregate(rows, [p], key_fn, filter_fn) for p in periods}


def merge_buckets(*bucket_maps: Mapping[Hashable, Bucket]) -> Dict[Hashable, Bucket]:
    """Merge several key -> Bucket maps by summing matching keys."""
    merged: Dict[Hashable, Bucket] = {}
    for bucket_map in bucket_maps:
        for key, bucket in bucket_map.items():
            merged[key] = merged[key] + bucket if key in merged else bucket + Bucket()
    return merged


def total(buckets: Mapping[Hashable, Bucket]) -> Bucket:
    """Collapse a key -> Bucket map into one bucket."""
    result = Bucket()
    for bucket in buckets.values():
        result = result + bucket
    return result


def distinct_keys(
    rows: Iterable[Row],
    key_fn: KeyFn,
    filter_fn: Optional[FilterFn] = None,
) -> list:
    """
    Distinct keys over all periods (rows failing filter_fn skipped), in
    the same collation order the ranker uses for names.
    """
    keys = {key_fn(r) for r in rows if filter_fn is None or filter_fn(r)}
    return sorted(keys, key=_key_order)


def _key_order(key: Hashable) -> Tuple[Tuple[str, str], ...]:
    parts = key if isinstance(key, tuple) else (key,)
    return tuple(collation_key("" if v is None else str(v)) for v in parts)
