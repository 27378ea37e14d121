"""Gateway Registry — Registration and retrieval of record gateways.

The registry maps gateway names to classes, creates the configured instance
at startup, and reports per-gateway health for the health endpoint.
"""

from __future__ import annotations

import logging
from typing import Any

from timelinesource.gateways.base.gateway import GatewayHealth, RecordGateway

logger = logging.getLogger(__name__)


class GatewayNotFoundError(Exception):
    """Raised when a requested gateway is not registered or not initialized."""


class GatewayRegistry:
    """Registry for record gateway classes and their initialized instances.

    Example:
        >>> registry = GatewayRegistry()
        >>> registry.register("webapi", WebApiGateway)
        >>> await registry.initialize_gateway("webapi", base_url="https://org.example.com")
        >>> gateway = registry.get("webapi")
    """

    def __init__(self) -> None:
        self._classes: dict[str, type[RecordGateway]] = {}
        self._instances: dict[str, RecordGateway] = {}

    def register(self, name: str, gateway_class: type[RecordGateway]) -> None:
        """Register a gateway class under ``name``."""
        if name in self._classes:
            logger.warning("Overwriting existing gateway registration: %s", name)
        self._classes[name] = gateway_class
        logger.info("Registered gateway: %s", name)

    def add_instance(self, name: str, gateway: RecordGateway) -> None:
        """Install an already constructed and initialized gateway."""
        self._instances[name] = gateway

    async def initialize_gateway(self, name: str, **kwargs: Any) -> RecordGateway:
        """Create and initialize a gateway instance.

        Args:
            name: The registered gateway name.
            **kwargs: Constructor parameters.

        Returns:
            The initialized gateway.

        Raises:
            GatewayNotFoundError: If no gateway is registered under this name.
        """
        if name not in self._classes:
            raise GatewayNotFoundError(
                f"No gateway registered with name '{name}'. "
                f"Available gateways: {list(self._classes.keys())}"
            )

        gateway = self._classes[name](**kwargs)
        await gateway.initialize()
        self._instances[name] = gateway
        logger.info("Initialized gateway: %s", name)
        return gateway

    def get(self, name: str) -> RecordGateway:
        """Get an initialized gateway by name.

        Raises:
            GatewayNotFoundError: If the gateway is not initialized.
        """
        if name not in self._instances:
            raise GatewayNotFoundError(f"Gateway '{name}' is not initialized.")
        return self._instances[name]

    async def health_check_all(self) -> dict[str, GatewayHealth]:
        """Run health checks on all initialized gateways."""
        results: dict[str, GatewayHealth] = {}
        for name, gateway in self._instances.items():
            try:
                results[name] = await gateway.health_check()
            except Exception as e:
                results[name] = GatewayHealth(status="unhealthy", message=str(e))
        return results

    async def shutdown_all(self) -> None:
        """Gracefully shut down all initialized gateways."""
        for name, gateway in self._instances.items():
            try:
                await gateway.shutdown()
                logger.info("Shut down gateway: %s", name)
            except Exception:
                logger.warning("Error shutting down gateway: %s", name, exc_info=True)
        self._instances.clear()

    @property
    def registered_gateways(self) -> list[str]:
        return list(self._classes.keys())

    @property
    def active_gateways(self) -> list[str]:
        return list(self._instances.keys())
