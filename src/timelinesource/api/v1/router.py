"""API v1 Router — Session, records and health endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from timelinesource.api.v1.endpoints.health import router as health_router
from timelinesource.api.v1.endpoints.records import router as records_router
from timelinesource.api.v1.endpoints.sessions import router as sessions_router

router = APIRouter(tags=["v1"])
router.include_router(sessions_router)
router.include_router(records_router)
router.include_router(health_router)
