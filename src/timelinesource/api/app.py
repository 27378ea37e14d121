"""FastAPI application factory and lifecycle management."""

from __future__ import annotations

import importlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from timelinesource import __version__
from timelinesource.api.deps import set_sessions
from timelinesource.api.v1.router import router as v1_router
from timelinesource.config.settings import Settings
from timelinesource.core.sessions import SessionRegistry
from timelinesource.gateways.base.gateway import RecordGateway
from timelinesource.gateways.base.registry import GatewayRegistry
from timelinesource.observability.logging import setup_logging

logger = logging.getLogger(__name__)

# Maps gateway names to (module_path, class_name) for lazy import
_GATEWAY_MAP: dict[str, tuple[str, str]] = {
    "webapi": ("timelinesource.gateways.webapi.gateway", "WebApiGateway"),
    "memory": ("timelinesource.gateways.memory.gateway", "MemoryGateway"),
}


def create_app(settings: Settings | None = None, gateway: RecordGateway | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.
        gateway: Pre-built gateway to use instead of the configured backend.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        yaml_path = Path("timelinesource-config.yaml")
        if yaml_path.exists():
            settings = Settings.from_yaml(yaml_path)
        else:
            settings = Settings()

    setup_logging(settings.observability)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Manage application lifecycle (startup/shutdown)."""
        logger.info("Starting timelinesource v%s", __version__)

        gateways = GatewayRegistry()
        if gateway is not None:
            gateways.add_instance(gateway.name, gateway)
            active: RecordGateway | None = gateway
        else:
            active = await _register_gateway(gateways, settings)

        sessions = SessionRegistry(settings.source, active)
        set_sessions(sessions, gateways)
        app.state.settings = settings
        app.state.sessions = sessions

        logger.info("timelinesource ready (gateway: %s)", active.name if active else "none")
        yield

        logger.info("Shutting down timelinesource...")
        await sessions.close_all()
        await gateways.shutdown_all()
        set_sessions(None)
        logger.info("timelinesource shutdown complete")

    app = FastAPI(
        title="timelinesource",
        description=(
            "Record source for timeline widgets: one backing-store fetch per attached "
            "session, then cached search, facet filtering, sorting and cursor paging."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(v1_router, prefix="/v1")

    return app


async def _register_gateway(registry: GatewayRegistry, settings: Settings) -> RecordGateway | None:
    """Register and initialise the gateway named by ``settings.gateway.backend``.

    Returns None when the backend is unknown or fails to start; sessions then
    serve empty timelines instead of failing.
    """
    name = settings.gateway.backend
    entry = _GATEWAY_MAP.get(name)
    if entry is None:
        logger.warning("Unknown gateway backend '%s'; available: %s", name, sorted(_GATEWAY_MAP))
        return None

    module_path, class_name = entry
    try:
        module = importlib.import_module(module_path)
        gateway_class = getattr(module, class_name)
    except (ImportError, AttributeError) as e:
        logger.warning("Failed to import gateway '%s': %s", name, e)
        return None

    kwargs: dict[str, object] = {}
    if name == "webapi":
        cfg = settings.gateway
        kwargs = {
            "base_url": cfg.base_url,
            "api_version": cfg.api_version,
            "access_token": cfg.access_token,
            "timeout": cfg.timeout,
            "max_page_size": cfg.max_page_size,
            "max_pages": cfg.max_pages,
        }

    registry.register(name, gateway_class)
    try:
        return await registry.initialize_gateway(name, **kwargs)
    except Exception:
        logger.warning("Failed to initialise gateway '%s'", name, exc_info=True)
        return None
