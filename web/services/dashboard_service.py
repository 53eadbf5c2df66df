"""
Dashboard service: holds the feed snapshot and runs the engine for routes.

The snapshot is fetched once per process on first use and replaced
wholesale by reload_snapshot(). Every call re-runs the engine over the
raw rows; nothing is cached between requests.
"""
import asyncio
from typing import Any, Dict, Optional

from salesboard.ads import build_ads_panel
from salesboard.comparison import ComparisonQuery, build_comparison, resolve_selection, summary_kpis
from salesboard.datasource import fetch_snapshot
from salesboard.exceptions import SalesboardError
from salesboard.heatmap import build_mom_heatmap
from salesboard.matrix import build_region_trend, build_store_matrix, build_trend_series
from salesboard.models import RecordSnapshot
from salesboard.observability import Timer, get_logger, metrics
from salesboard.periods import PeriodIndex

logger = get_logger(__name__)

_snapshot: Optional[RecordSnapshot] = None
_snapshot_lock = asyncio.Lock()


# ─── Snapshot ──────────────────────────────────────────────────────────────────

async def _fetch() -> RecordSnapshot:
    try:
        snapshot = await fetch_snapshot()
    except SalesboardError:
        metrics.record_snapshot_failed()
        raise
    metrics.record_snapshot_loaded(snapshot.fetched_at)
    return snapshot


async def get_snapshot() -> RecordSnapshot:
    """Return the loaded snapshot, fetching it on first use."""
    global _snapshot
    if _snapshot is not None:
        return _snapshot

    async with _snapshot_lock:
        # Another request may have loaded it while we waited
        if _snapshot is None:
            with Timer("snapshot_load", logger):
                _snapshot = await _fetch()
            logger.info(
                "Snapshot loaded",
                extra={"sales_rows": len(_snapshot.sales), "ad_rows": len(_snapshot.ads)},
            )
    return _snapshot


async def reload_snapshot() -> RecordSnapshot:
    """
    Fetch a fresh snapshot and swap it in.

    The current snapshot stays in place if the fetch fails.
    """
    global _snapshot
    async with _snapshot_lock:
        with Timer("snapshot_reload", logger):
            fresh = await _fetch()
        _snapshot = fresh
    logger.info(
        "Snapshot reloaded",
        extra={"sales_rows": len(fresh.sales), "ad_rows": len(fresh.ads)},
    )
    return fresh


def set_snapshot(snapshot: Optional[RecordSnapshot]) -> None:
    """Install a snapshot directly (None forces a fetch on next use)."""
    global _snapshot
    _snapshot = snapshot


def snapshot_status() -> Dict[str, Any]:
    """Describe the loaded snapshot without triggering a fetch."""
    if _snapshot is None:
        return {"status": "not_loaded"}

    index = PeriodIndex.from_records(_snapshot.sales)
    return {
        "status": "empty" if _snapshot.is_empty else "loaded",
        "sales_rows": len(_snapshot.sales),
        "ad_rows": len(_snapshot.ads),
        "periods": len(index),
        "latest_period": index.latest,
        "fetched_at": _snapshot.fetched_at.isoformat(),
    }


# ─── Engine Views ──────────────────────────────────────────────────────────────

async def get_periods() -> Dict[str, Any]:
    snapshot = await get_snapshot()
    index = PeriodIndex.from_records(snapshot.sales)
    return {
        "periods": index.periods,
        "latest": index.latest,
        "regions": snapshot.distinct("region"),
        "platforms": snapshot.distinct("platform"),
        "stores": snapshot.distinct("store"),
        "ad_periods": PeriodIndex.from_records(snapshot.ads).periods,
    }


async def get_summary(
    period: Optional[str] = None,
    filters: Optional[Dict[str, Any]] = None,
    window: int = 1,
) -> Dict[str, Any]:
    """Summary KPI cards plus the periods they were computed over."""
    snapshot = await get_snapshot()
    selection = resolve_selection(snapshot.sales, period, window)
    kpis = summary_kpis(snapshot.sales, period, filters, window)
    return {
        **selection.to_dict(),
        **{name: kpi.to_dict() for name, kpi in kpis.items()},
    }


async def get_breakdown(query: ComparisonQuery) -> Dict[str, Any]:
    snapshot = await get_snapshot()
    return build_comparison(snapshot.sales, query).to_dict()


async def get_store_matrix(
    region: str,
    period: Optional[str] = None,
    platform: Optional[str] = None,
) -> Dict[str, Any]:
    snapshot = await get_snapshot()
    return build_store_matrix(snapshot.sales, region, period, platform).to_dict()


async def get_store_trend(
    region: str,
    period: Optional[str] = None,
    platform: Optional[str] = None,
    window: Optional[int] = None,
) -> Dict[str, Any]:
    snapshot = await get_snapshot()
    return build_trend_series(snapshot.sales, region, period, platform, window).to_dict()


async def get_region_trend(
    region: str,
    period: Optional[str] = None,
    window: Optional[int] = None,
) -> Dict[str, Any]:
    snapshot = await get_snapshot()
    return build_region_trend(snapshot.sales, region, period, window)


async def get_heatmap(
    dimension: str = "region",
    period: Optional[str] = None,
    window: Optional[int] = None,
    region: Optional[str] = None,
) -> Dict[str, Any]:
    snapshot = await get_snapshot()
    return build_mom_heatmap(snapshot.sales, dimension, period, window, region).to_dict()


async def get_ads_panel(
    region: str,
    period: Optional[str] = None,
    sort_key: str = "spend",
    direction: str = "desc",
) -> Dict[str, Any]:
    snapshot = await get_snapshot()
    return build_ads_panel(snapshot.ads, region, period, sort_key, direction).to_dict()
