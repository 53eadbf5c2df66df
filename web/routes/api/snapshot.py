"""Feed snapshot management."""
from fastapi import APIRouter, Request

from web.schemas import ReloadResponse
from web.services import dashboard_service
from ._deps import limiter, RELOAD_RATE_LIMIT

router = APIRouter()


@router.post("/snapshot/reload", response_model=ReloadResponse)
@limiter.limit(RELOAD_RATE_LIMIT)
async def reload_snapshot(request: Request):
    """Re-fetch the sales and ads feeds and replace the snapshot."""
    await dashboard_service.reload_snapshot()
    return {"status": "reloaded", "snapshot": dashboard_service.snapshot_status()}
