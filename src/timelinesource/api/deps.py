"""API dependencies — Dependency injection for FastAPI endpoints."""

from __future__ import annotations

from timelinesource.core.sessions import SessionRegistry
from timelinesource.gateways.base.registry import GatewayRegistry

# Set during application lifespan
_sessions: SessionRegistry | None = None
_gateways: GatewayRegistry | None = None


def set_sessions(sessions: SessionRegistry | None, gateways: GatewayRegistry | None = None) -> None:
    """Install the session and gateway registries (called during app lifespan)."""
    global _sessions, _gateways
    _sessions = sessions
    _gateways = gateways


def get_sessions() -> SessionRegistry:
    """Get the session registry.

    Raises:
        RuntimeError: If the application has not started.
    """
    if _sessions is None:
        raise RuntimeError("Session registry not initialized. Is the server running?")
    return _sessions


def get_gateways() -> GatewayRegistry:
    """Get the gateway registry.

    Raises:
        RuntimeError: If the application has not started.
    """
    if _gateways is None:
        raise RuntimeError("Gateway registry not initialized. Is the server running?")
    return _gateways
