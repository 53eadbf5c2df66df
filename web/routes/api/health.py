"""Health check and metrics endpoints."""
import time

from fastapi import APIRouter, Request

from salesboard.observability import get_correlation_id, metrics
from web.config import VERSION
from web.schemas import HealthResponse, MetricsResponse
from web.services import dashboard_service
from ._deps import limiter, get_logger, START_TIME, RATE_LIMIT

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
@limiter.limit(RATE_LIMIT)
async def health_check(request: Request):
    """Health check endpoint for Docker/load balancer monitoring."""
    snapshot = dashboard_service.snapshot_status()
    # Not loaded yet is fine: the first data request fetches the feed
    status = "degraded" if snapshot["status"] == "empty" else "healthy"

    return {
        "status": status,
        "version": VERSION,
        "uptime_seconds": int(time.time() - START_TIME),
        "correlation_id": get_correlation_id(),
        "snapshot": snapshot,
    }


@router.get("/metrics", response_model=MetricsResponse)
@limiter.limit(RATE_LIMIT)
async def get_metrics_endpoint(request: Request):
    """Get application metrics."""
    return {
        "uptime_seconds": int(time.time() - START_TIME),
        "correlation_id": get_correlation_id(),
        **metrics.get_stats(),
    }
