"""Health check endpoints — Service and gateway health monitoring."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from timelinesource import __version__
from timelinesource.api.deps import get_gateways, get_sessions
from timelinesource.core.sessions import SessionRegistry
from timelinesource.gateways.base.gateway import GatewayHealth
from timelinesource.gateways.base.registry import GatewayRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Response models ──────────────────────────────────────────────────────


class HealthResponse(BaseModel):
    """Service health check response."""

    status: str = Field(description="Health status (e.g. 'healthy')")
    version: str = Field(description="Server version")
    service: str = Field(description="Service name ('timelinesource')")
    active_gateways: list[str] = Field(description="Currently initialized gateway names")
    open_sessions: int = Field(description="Number of attached UI sessions")


class GatewayHealthResponse(BaseModel):
    """Per-gateway health check response."""

    gateways: dict[str, GatewayHealth] = Field(description="Map of gateway name to its health status")


# ── Endpoints ────────────────────────────────────────────────────────────


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service Health Check",
)
async def health_check(
    sessions: SessionRegistry = Depends(get_sessions),
    gateways: GatewayRegistry = Depends(get_gateways),
) -> HealthResponse:
    """Basic health check with gateway and session info."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        service="timelinesource",
        active_gateways=gateways.active_gateways,
        open_sessions=len(sessions),
    )


@router.get(
    "/health/gateways",
    response_model=GatewayHealthResponse,
    summary="Gateway Health Check",
    description="Run health checks on every initialized gateway.",
)
async def gateway_health(
    gateways: GatewayRegistry = Depends(get_gateways),
) -> GatewayHealthResponse:
    """Check health of all record gateways."""
    return GatewayHealthResponse(gateways=await gateways.health_check_all())
