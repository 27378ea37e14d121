"""Tests for the Web API gateway."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from timelinesource.gateways.base.exceptions import ConfigurationError, TransportError
from timelinesource.gateways.webapi.gateway import WebApiGateway

BASE_URL = "https://org.example.com"

# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def gateway() -> WebApiGateway:
    return WebApiGateway(base_url=BASE_URL + "/", access_token="test-token", max_pages=3)


def _response(status: int, body: Any = None, url: str = f"{BASE_URL}/api/data/v9.2/emails") -> httpx.Response:
    request = httpx.Request("GET", url)
    if isinstance(body, str):
        return httpx.Response(status, text=body, request=request)
    return httpx.Response(status, json=body, request=request)


def _client(*responses: httpx.Response | Exception) -> AsyncMock:
    client = AsyncMock(spec=httpx.AsyncClient)
    client.get.side_effect = list(responses)
    return client


# ── Properties ───────────────────────────────────────────────────────────────


class TestWebApiProperties:
    def test_name(self, gateway: WebApiGateway) -> None:
        assert gateway.name == "webapi"

    def test_base_url_trimmed(self, gateway: WebApiGateway) -> None:
        assert gateway._base_url == BASE_URL

    def test_api_root(self) -> None:
        assert WebApiGateway(api_version="9.1").api_root == "/api/data/v9.1"

    def test_requires_base_url(self) -> None:
        with pytest.raises(ConfigurationError):
            WebApiGateway(base_url="")

    def test_rejects_unknown_options(self) -> None:
        with pytest.raises(TypeError):
            WebApiGateway(base_url=BASE_URL, page_size=50)  # type: ignore[call-arg]

    async def test_initialize_sets_headers(self, gateway: WebApiGateway) -> None:
        await gateway.initialize()
        try:
            assert gateway._client is not None
            headers = gateway._client.headers
            assert headers["Authorization"] == "Bearer test-token"
            assert headers["OData-Version"] == "4.0"
            assert "odata.maxpagesize=500" in headers["Prefer"]
            assert "FormattedValue" in headers["Prefer"]
        finally:
            await gateway.shutdown()
        assert gateway._client is None


# ── Fetch ────────────────────────────────────────────────────────────────────


class TestWebApiFetch:
    async def test_fetch_not_initialized_raises(self, gateway: WebApiGateway) -> None:
        with pytest.raises(TransportError, match="not initialized"):
            await gateway.fetch("emails", ["activityid"])

    async def test_fetch_single_page(self, gateway: WebApiGateway) -> None:
        gateway._client = _client(_response(200, {"value": [{"activityid": "e-1"}, {"activityid": "e-2"}]}))

        items = await gateway.fetch("emails", ["activityid", "subject"], "_regardingobjectid_value eq abc")

        assert [i["activityid"] for i in items] == ["e-1", "e-2"]
        args, kwargs = gateway._client.get.call_args
        assert args[0] == "/api/data/v9.2/emails"
        assert kwargs["params"] == {"$select": "activityid,subject", "$filter": "_regardingobjectid_value eq abc"}

    async def test_fetch_follows_next_link(self, gateway: WebApiGateway) -> None:
        next_link = f"{BASE_URL}/api/data/v9.2/emails?$skiptoken=abc"
        gateway._client = _client(
            _response(200, {"value": [{"activityid": "e-1"}], "@odata.nextLink": next_link}),
            _response(200, {"value": [{"activityid": "e-2"}]}, url=next_link),
        )

        items = await gateway.fetch("emails", ["activityid"])

        assert [i["activityid"] for i in items] == ["e-1", "e-2"]
        second_call = gateway._client.get.call_args_list[1]
        assert second_call.args[0] == next_link
        assert second_call.kwargs["params"] is None

    async def test_fetch_stops_at_max_pages(self, gateway: WebApiGateway) -> None:
        page = {"value": [{"activityid": "e"}], "@odata.nextLink": f"{BASE_URL}/next"}
        gateway._client = _client(*(_response(200, page) for _ in range(5)))

        items = await gateway.fetch("emails", ["activityid"])

        assert len(items) == 3
        assert gateway._client.get.await_count == 3

    async def test_http_status_error(self, gateway: WebApiGateway) -> None:
        gateway._client = _client(_response(403, {"error": {"message": "Principal user is missing privileges"}}))

        with pytest.raises(TransportError, match="Web API query failed"):
            await gateway.fetch("emails", ["activityid"])

    async def test_connection_error(self, gateway: WebApiGateway) -> None:
        gateway._client = _client(httpx.ConnectError("Connection refused"))

        with pytest.raises(TransportError):
            await gateway.fetch("emails", ["activityid"])

    async def test_non_json_body(self, gateway: WebApiGateway) -> None:
        gateway._client = _client(_response(200, "<html>login</html>"))

        with pytest.raises(TransportError, match="non-JSON"):
            await gateway.fetch("emails", ["activityid"])

    async def test_missing_value_collection(self, gateway: WebApiGateway) -> None:
        gateway._client = _client(_response(200, {"items": []}))

        with pytest.raises(TransportError, match="no 'value'"):
            await gateway.fetch("emails", ["activityid"])


# ── Health ───────────────────────────────────────────────────────────────────


class TestWebApiHealth:
    async def test_health_not_initialized(self, gateway: WebApiGateway) -> None:
        health = await gateway.health_check()
        assert health.status == "unhealthy"

    async def test_health_ok(self, gateway: WebApiGateway) -> None:
        gateway._client = _client(_response(200, {"UserId": "u"}))
        health = await gateway.health_check()
        assert health.status == "healthy"
        assert gateway._client.get.call_args.args[0] == "/api/data/v9.2/WhoAmI"

    async def test_health_degraded(self, gateway: WebApiGateway) -> None:
        gateway._client = _client(_response(401, {}))
        health = await gateway.health_check()
        assert health.status == "degraded"
        assert "401" in (health.message or "")

    async def test_health_exception(self, gateway: WebApiGateway) -> None:
        gateway._client = _client(RuntimeError("Connection refused"))
        health = await gateway.health_check()
        assert health.status == "unhealthy"
