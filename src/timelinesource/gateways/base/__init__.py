"""Base gateway interface — Abstract class for backing-store connectors."""

from timelinesource.gateways.base.gateway import RecordGateway
from timelinesource.gateways.base.registry import GatewayRegistry

__all__ = ["GatewayRegistry", "RecordGateway"]
