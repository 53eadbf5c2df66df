"""Advertising panel endpoint."""
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request

from salesboard.ads import SORT_FIELDS
from web.schemas import AdsPanelResponse
from web.services import dashboard_service
from ._deps import (
    limiter, RATE_LIMIT,
    validate_choice, validate_period, validate_region, validate_sort_direction,
    ValidationError,
)

router = APIRouter()


@router.get("/ads", response_model=AdsPanelResponse)
@limiter.limit(RATE_LIMIT)
async def get_ads_panel(
    request: Request,
    region: str = Query(..., description="Region code, e.g. BC"),
    period: Optional[str] = Query(None, description="Month (YYYY-MM), default latest in the ads feed"),
    sort_key: Optional[str] = Query("spend", description=f"One of: {', '.join(SORT_FIELDS)}"),
    sort_direction: Optional[str] = Query("desc", description="asc or desc"),
):
    """Per-store ad spend, sales and ROAS with prior-month deltas."""
    try:
        region = validate_region(region, required=True)
        period = validate_period(period)
        sort_key = validate_choice(sort_key, tuple(SORT_FIELDS), "sort_key", default="spend")
        sort_direction = validate_sort_direction(sort_direction)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return await dashboard_service.get_ads_panel(region, period, sort_key, sort_direction)
