"""Web API gateway — OData entity-set queries over HTTP.

Talks to a Dataverse style Web API using ``httpx``::

    GET {base_url}/api/data/v{api_version}/{entity_set}?$select=...&$filter=...

Server-driven paging is followed through ``@odata.nextLink`` so that one
``fetch()`` call returns the complete result set.

Usage::

    gateway = WebApiGateway(
        base_url="https://org.crm.dynamics.com",
        access_token="eyJ...",
    )
    await gateway.initialize()
    items = await gateway.fetch("emails", ["activityid", "subject"], "statecode eq 0")
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

import httpx

from timelinesource.gateways.base.exceptions import ConfigurationError, TransportError
from timelinesource.gateways.base.gateway import GatewayHealth, RecordGateway
from timelinesource.models.record import RawItem

logger = logging.getLogger(__name__)

FORMATTED_VALUE = "OData.Community.Display.V1.FormattedValue"


class WebApiGateway(RecordGateway):
    """Record gateway for an OData v4 Web API.

    Args:
        base_url: Organization root URL, e.g. ``"https://org.crm.dynamics.com"``.
        api_version: Version segment of the Web API path.
        access_token: Bearer token sent with every request.
        timeout: HTTP request timeout in seconds.
        max_page_size: Page size requested through ``Prefer: odata.maxpagesize``.
        max_pages: Upper bound on pages followed per fetch.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8081",
        api_version: str = "9.2",
        access_token: str | None = None,
        timeout: float = 30.0,
        max_page_size: int = 500,
        max_pages: int = 20,
    ) -> None:
        if not base_url:
            raise ConfigurationError("WebApiGateway requires a base_url.")
        self._base_url = base_url.rstrip("/")
        self._api_version = api_version
        self._access_token = access_token
        self._timeout = timeout
        self._max_page_size = max_page_size
        self._max_pages = max_pages
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return "webapi"

    @property
    def api_root(self) -> str:
        return f"/api/data/v{self._api_version}"

    async def initialize(self) -> None:
        """Create the ``httpx.AsyncClient``."""
        headers: dict[str, str] = {
            "Accept": "application/json",
            "OData-MaxVersion": "4.0",
            "OData-Version": "4.0",
            "Prefer": f"odata.maxpagesize={self._max_page_size},odata.include-annotations=\"{FORMATTED_VALUE}\"",
        }
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout),
            headers=headers,
        )
        logger.info("Web API gateway ready at %s%s", self._base_url, self.api_root)

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    # ── Fetch ────────────────────────────────────────────────────────────

    async def fetch(self, source: str, select: Sequence[str], predicate: str | None = None) -> list[RawItem]:
        """Retrieve every item of ``source`` matching ``predicate``.

        Raises:
            TransportError: On connection, HTTP status, or payload errors.
        """
        if not self._client:
            raise TransportError("Web API client not initialized.")

        params: dict[str, str] = {}
        if select:
            params["$select"] = ",".join(select)
        if predicate:
            params["$filter"] = predicate

        items: list[RawItem] = []
        url: str | None = f"{self.api_root}/{source}"
        pages = 0
        start = time.monotonic()

        while url is not None:
            if pages >= self._max_pages:
                logger.warning(
                    "Stopped following @odata.nextLink for %s after %d pages (%d items)",
                    source,
                    pages,
                    len(items),
                )
                break
            data = await self._get_page(url, params if pages == 0 else None)
            items.extend(data["value"])
            url = data.get("@odata.nextLink")
            pages += 1

        logger.debug(
            "Fetched %d items from %s in %d page(s), %d ms",
            len(items),
            source,
            pages,
            int((time.monotonic() - start) * 1000),
        )
        return items

    async def _get_page(self, url: str, params: dict[str, str] | None) -> dict[str, Any]:
        assert self._client is not None
        try:
            resp = await self._client.get(url, params=params)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise TransportError(f"Web API query failed: {e}") from e
        except ValueError as e:
            raise TransportError(f"Web API returned a non-JSON body: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("value"), list):
            raise TransportError("Web API response has no 'value' collection.")
        return data

    # ── Health ───────────────────────────────────────────────────────────

    async def health_check(self) -> GatewayHealth:
        """Call ``WhoAmI`` to verify connectivity and credentials."""
        if not self._client:
            return GatewayHealth(status="unhealthy", message="Client not initialized")

        try:
            start = time.monotonic()
            resp = await self._client.get(f"{self.api_root}/WhoAmI")
            latency_ms = int((time.monotonic() - start) * 1000)

            if resp.status_code == 200:
                return GatewayHealth(
                    status="healthy",
                    latency_ms=latency_ms,
                    last_check=datetime.now(UTC).isoformat(),
                    message=f"Web API {self._api_version} at {self._base_url}",
                )
            return GatewayHealth(
                status="degraded",
                latency_ms=latency_ms,
                last_check=datetime.now(UTC).isoformat(),
                message=f"Web API returned HTTP {resp.status_code}",
            )
        except Exception as e:
            return GatewayHealth(status="unhealthy", message=str(e))
