"""
Month-over-month heatmap grids for regions and stores.

Each grid row is one key (region or store) with its revenue and MoM for
every month of a trailing window. The first month of the window has no
MoM because its predecessor is outside the window.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from salesboard.aggregation import aggregate_series, by_fields, distinct_keys, where
from salesboard.config import config
from salesboard.deltas import delta
from salesboard.observability import timed
from salesboard.periods import PeriodIndex, normalize_period
from salesboard.ranking import sort_rows

DIMENSIONS = ("region", "store")


@dataclass
class HeatmapRow:
    key: str
    region: Optional[str]
    revenue: Dict[str, float] = field(default_factory=dict)
    mom: Dict[str, Optional[float]] = field(default_factory=dict)

    def latest_mom(self, periods: List[str]) -> Optional[float]:
        return self.mom.get(periods[-1]) if periods else None


@dataclass
class HeatmapGrid:
    dimension: str
    periods: List[str] = field(default_factory=list)
    rows: List[HeatmapRow] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dimension": self.dimension,
            "periods": list(self.periods),
            "rows": [
                {
                    "key": r.key,
                    "region": r.region,
                    "revenue": [r.revenue[p] for p in self.periods],
                    "mom": [r.mom[p] for p in self.periods],
                }
                for r in self.rows
            ],
        }


def _store_mom(current: float, previous: float) -> Optional[float]:
    # Store cells also blank out months where the store sold nothing
    if not current:
        return None
    return delta(current, previous)


@timed("build_mom_heatmap")
def build_mom_heatmap(
    records: Iterable[Any],
    dimension: str = "region",
    period: Optional[str] = None,
    window: Optional[int] = None,
    region: Optional[str] = None,
) -> HeatmapGrid:
    """
    Build a MoM grid.

    Args:
        records: Sales feed rows
        dimension: "region" or "store"
        period: Last month of the window (default: latest in feed)
        window: Number of months shown (default: config.engine.heatmap_window)
        region: Restrict to one region; required for the store grid

    Returns:
        HeatmapGrid. Region rows are sorted by name; store rows are ranked
        worst to best by latest MoM, with a missing MoM ranked as 0.
    """
    if dimension not in DIMENSIONS:
        raise ValueError(f"dimension must be one of {DIMENSIONS}, got {dimension!r}")

    records = list(records)
    grid = HeatmapGrid(dimension=dimension)
    index = PeriodIndex.from_records(records)
    target = normalize_period(period) if period else index.latest
    grid.periods = index.window(target, window or config.engine.heatmap_window)

    if not grid.periods or (dimension == "store" and not region):
        return grid

    key_fn = by_fields("region", dimension) if dimension == "store" else by_fields("region")
    scope = where(region=region)
    per_period = aggregate_series(records, grid.periods, key_fn, scope)
    mom_fn = _store_mom if dimension == "store" else delta

    for key in distinct_keys(records, key_fn, scope):
        row = HeatmapRow(key=key[-1], region=key[0])
        for i, p in enumerate(grid.periods):
            bucket = per_period[p].get(key)
            row.revenue[p] = bucket.revenue if bucket is not None else 0
            if i == 0:
                row.mom[p] = None
            else:
                row.mom[p] = mom_fn(row.revenue[p], row.revenue[grid.periods[i - 1]])
        grid.rows.append(row)

    if dimension == "store":
        periods = grid.periods
        grid.rows = sort_rows(
            grid.rows,
            lambda r: r.latest_mom(periods) or 0,
            "asc",
        )
    return grid
