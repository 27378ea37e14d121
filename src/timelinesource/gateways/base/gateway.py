"""Base record gateway — Abstract interface for backing-store connectors.

A gateway is the record source's only outbound collaborator.  It is
responsible for:
  1. Executing one query against the backing store
  2. Reporting health status

It never filters, sorts or pages on behalf of the timeline; the record source
fetches one full snapshot and does that work locally.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from pydantic import BaseModel, Field

from timelinesource.models.record import RawItem


class GatewayHealth(BaseModel):
    """Health status of a record gateway."""

    status: str = Field(description="Health status: healthy, degraded, unhealthy")
    latency_ms: int = Field(default=0, description="Latency of last health check in ms")
    last_check: str | None = Field(default=None, description="ISO timestamp of last health check")
    message: str | None = Field(default=None, description="Additional health message")


class RecordGateway(ABC):
    """Abstract base class for backing-store gateways.

    All gateways must implement:
      - fetch(): Run one query and return the raw items
      - health_check(): Report gateway health status
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique gateway name (e.g., 'webapi', 'memory')."""

    async def initialize(self) -> None:
        """Initialize the gateway (connections, pools, etc.)."""

    async def shutdown(self) -> None:
        """Release connections and other resources."""

    @abstractmethod
    async def fetch(self, source: str, select: Sequence[str], predicate: str | None = None) -> list[RawItem]:
        """Query the backing store.

        Args:
            source: Entity set / collection name.
            select: Columns to return.
            predicate: Optional OData-style filter expression
                (``eq``, ``ne`` and ``contains`` comparisons joined by ``and``).

        Returns:
            Raw items in backing-store order.

        Raises:
            TransportError: If the query could not be executed.
        """

    @abstractmethod
    async def health_check(self) -> GatewayHealth:
        """Check the health of the backing store."""
