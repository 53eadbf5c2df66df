"""Periods, summary, breakdown, store matrix, trend and heatmap endpoints."""
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request

from salesboard.comparison import ComparisonQuery
from salesboard.config import config
from salesboard.heatmap import DIMENSIONS
from web.services import dashboard_service
from web.schemas import (
    PeriodsResponse,
    SummaryResponse,
    BreakdownResponse,
    MatrixResponse,
    TrendResponse,
    RegionTrendResponse,
    HeatmapResponse,
)
from ._deps import (
    limiter, get_logger, RATE_LIMIT,
    validate_choice, validate_group_by, validate_metric, validate_name,
    validate_period, validate_region, validate_sort_direction, validate_window,
    ValidationError,
)

router = APIRouter()
logger = get_logger(__name__)

# Row fields a breakdown can be sorted by, besides the grouped dimensions
ROW_SORT_KEYS = ("current", "previous", "mom", "yoy", "share", "name", "revenue", "orders", "aov")


def _filters(region: Optional[str], platform: Optional[str], store: Optional[str]) -> dict:
    filters = {
        "region": validate_region(region),
        "platform": validate_name(platform, "platform"),
        "store": validate_name(store, "store"),
    }
    return {k: v for k, v in filters.items() if v is not None}


# ─── Periods ───────────────────────────────────────────────────────────────────

@router.get("/periods", response_model=PeriodsResponse)
@limiter.limit(RATE_LIMIT)
async def get_periods(request: Request):
    """Available periods and dimension values for filter dropdowns."""
    return await dashboard_service.get_periods()


# ─── Summary ───────────────────────────────────────────────────────────────────

@router.get("/summary", response_model=SummaryResponse)
@limiter.limit(RATE_LIMIT)
async def get_summary(
    request: Request,
    period: Optional[str] = Query(None, description="Month (YYYY-MM), default latest"),
    region: Optional[str] = Query(None, description="Filter by region"),
    platform: Optional[str] = Query(None, description="Filter by platform (ALL for every platform)"),
    store: Optional[str] = Query(None, description="Filter by store"),
    window: Optional[int] = Query(None, description="Trailing months summed as current"),
):
    """Revenue, orders and AOV cards with MoM and YoY."""
    try:
        period = validate_period(period)
        filters = _filters(region, platform, store)
        window = validate_window(window, default=config.engine.summary_window)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return await dashboard_service.get_summary(period, filters, window)


# ─── Breakdown ─────────────────────────────────────────────────────────────────

@router.get("/breakdown", response_model=BreakdownResponse)
@limiter.limit(RATE_LIMIT)
async def get_breakdown(
    request: Request,
    period: Optional[str] = Query(None, description="Month (YYYY-MM), default latest"),
    group_by: Optional[str] = Query("platform", description="Comma-separated: region, platform, store"),
    metric: Optional[str] = Query("revenue", description="revenue, orders or aov"),
    region: Optional[str] = Query(None, description="Filter by region"),
    platform: Optional[str] = Query(None, description="Filter by platform"),
    store: Optional[str] = Query(None, description="Filter by store"),
    sort_key: Optional[str] = Query("current", description="Row field or dimension to sort by"),
    sort_direction: Optional[str] = Query("desc", description="asc or desc"),
    secondary_sort: Optional[str] = Query(None, description="Tie-break field, always ascending"),
    window: Optional[int] = Query(None, description="Trailing months summed as current"),
):
    """Breakdown table: current, previous, MoM, YoY and share per dimension key."""
    try:
        period = validate_period(period)
        dims = validate_group_by(group_by)
        metric = validate_metric(metric)
        filters = _filters(region, platform, store)
        sortable = ROW_SORT_KEYS + dims
        sort_key = validate_choice(sort_key, sortable, "sort_key", default="current")
        secondary = validate_choice(secondary_sort, sortable, "secondary_sort", default="") or None
        sort_direction = validate_sort_direction(sort_direction)
        window = validate_window(window)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    query = ComparisonQuery(
        selected_period=period,
        filters=filters,
        group_by=dims,
        metric=metric,
        sort_key=sort_key,
        sort_direction=sort_direction,
        secondary_sort=secondary,
        window=window,
    )
    return await dashboard_service.get_breakdown(query)


# ─── Stores ────────────────────────────────────────────────────────────────────

@router.get("/stores/matrix", response_model=MatrixResponse)
@limiter.limit(RATE_LIMIT)
async def get_store_matrix(
    request: Request,
    region: str = Query(..., description="Region code, e.g. BC"),
    period: Optional[str] = Query(None, description="Month (YYYY-MM), default latest"),
    platform: Optional[str] = Query(None, description="Platform, or ALL"),
):
    """Per-store revenue, orders and AOV against the previous month."""
    try:
        region = validate_region(region, required=True)
        period = validate_period(period)
        platform = validate_name(platform, "platform")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return await dashboard_service.get_store_matrix(region, period, platform)


@router.get("/stores/trend", response_model=TrendResponse)
@limiter.limit(RATE_LIMIT)
async def get_store_trend(
    request: Request,
    region: str = Query(..., description="Region code, e.g. BC"),
    period: Optional[str] = Query(None, description="Last month of the window, default latest"),
    platform: Optional[str] = Query(None, description="Platform, or ALL"),
    window: Optional[int] = Query(None, description="Months shown"),
):
    """Revenue per store for each month of a trailing window."""
    try:
        region = validate_region(region, required=True)
        period = validate_period(period)
        platform = validate_name(platform, "platform")
        window = validate_window(window, default=config.engine.trend_window)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return await dashboard_service.get_store_trend(region, period, platform, window)


@router.get("/regions/trend", response_model=RegionTrendResponse)
@limiter.limit(RATE_LIMIT)
async def get_region_trend(
    request: Request,
    region: str = Query(..., description="Region code, e.g. BC"),
    period: Optional[str] = Query(None, description="Last month of the window, default latest"),
    window: Optional[int] = Query(None, description="Months shown"),
):
    """Total revenue of a region for each month of a trailing window."""
    try:
        region = validate_region(region, required=True)
        period = validate_period(period)
        window = validate_window(window, default=config.engine.trend_window)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return await dashboard_service.get_region_trend(region, period, window)


# ─── Heatmap ───────────────────────────────────────────────────────────────────

@router.get("/heatmap", response_model=HeatmapResponse)
@limiter.limit(RATE_LIMIT)
async def get_heatmap(
    request: Request,
    dimension: Optional[str] = Query("region", description="region or store"),
    period: Optional[str] = Query(None, description="Last month of the window, default latest"),
    window: Optional[int] = Query(None, description="Months shown"),
    region: Optional[str] = Query(None, description="Region code; required for the store grid"),
):
    """Month-over-month change per region or store."""
    try:
        dimension = validate_choice(dimension, DIMENSIONS, "dimension", default="region")
        period = validate_period(period)
        window = validate_window(window, default=config.engine.heatmap_window)
        region = validate_region(region, required=(dimension == "store"))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return await dashboard_service.get_heatmap(dimension, period, window, region)
