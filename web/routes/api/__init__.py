"""
API routes split by domain.

Each sub-module defines its own APIRouter which is composed
into the top-level router exposed by this package.
"""
from fastapi import APIRouter

from .health import router as health_router
from .analytics import router as analytics_router
from .ads import router as ads_router
from .snapshot import router as snapshot_router

router = APIRouter(tags=["api"])

router.include_router(health_router)
router.include_router(analytics_router)
router.include_router(ads_router)
router.include_router(snapshot_router)
