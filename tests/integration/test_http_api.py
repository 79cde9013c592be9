"""
HTTP API Tests
==============

FastAPI routes exercised in-process:
- GET /mcp/sse streaming and headers
- POST /mcp/message routing and client id validation
- Bearer-token gate
- /health and / endpoints with the application lifespan
"""

import asyncio
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from n8n_mcp_bridge.api.main import create_app
from n8n_mcp_bridge.api.sse import MCPBridge, create_mcp_bridge

from tests.fixtures.sse_fixtures import (
    BASE_TOOLS,
    FakeToolCapability,
    FakeToolCatalog,
    drain_events,
    parse_sse_frames,
    wait_for_condition,
)


@pytest_asyncio.fixture
async def http_bridge(test_settings) -> AsyncGenerator[MCPBridge, None]:
    mcp_bridge = create_mcp_bridge(FakeToolCapability(), FakeToolCatalog(), test_settings)
    mcp_bridge.start()
    yield mcp_bridge
    await mcp_bridge.shutdown()


def build_app(settings, mcp_bridge):
    app = create_app(settings)
    app.state.mcp_bridge = mcp_bridge
    return app


@pytest_asyncio.fixture
async def client(test_settings, http_bridge) -> AsyncGenerator[httpx.AsyncClient, None]:
    app = build_app(test_settings, http_bridge)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


@pytest.mark.integration
@pytest.mark.sse
class TestEventStreamEndpoint:
    """Test GET /mcp/sse."""

    @pytest.mark.asyncio
    async def test_stream_headers_and_initial_events(self, client, http_bridge):
        request = asyncio.create_task(client.get("/mcp/sse"))
        assert await wait_for_condition(lambda: http_bridge.session_count() == 1)
        client_id = http_bridge.registry.session_ids()[0]

        # Ending the session ends the response body.
        http_bridge.close_connection(client_id)
        response = await asyncio.wait_for(request, timeout=5)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        assert response.headers["x-accel-buffering"] == "no"
        assert response.headers["x-client-id"] == client_id
        assert response.headers["access-control-allow-origin"] == "*"

        events = parse_sse_frames(response.text)
        assert events[0][0] == "connected"
        assert events[0][1]["clientId"] == client_id
        assert events[1] == ("tools", {"tools": BASE_TOOLS})

    @pytest.mark.asyncio
    async def test_admission_failure_is_500(self, client, http_bridge, monkeypatch):
        monkeypatch.setattr(http_bridge.registry, "admit", _raise_admission)
        response = await client.get("/mcp/sse")
        assert response.status_code == 500
        assert http_bridge.session_count() == 0


def _raise_admission(stream):
    raise RuntimeError("registry unavailable")


@pytest.mark.integration
class TestMessageEndpoint:
    """Test POST /mcp/message."""

    @pytest.mark.asyncio
    async def test_request_is_answered_and_mirrored(self, client, http_bridge):
        stream = http_bridge.create_stream()
        client_id = http_bridge.open_connection(stream)
        drain_events(stream)

        response = await client.post(
            "/mcp/message",
            json={"jsonrpc": "2.0", "method": "tools/list", "id": 1},
            headers={"X-Client-Id": client_id},
        )

        assert response.status_code == 200
        assert response.json() == {"jsonrpc": "2.0", "result": {"tools": BASE_TOOLS}, "id": 1}
        assert drain_events(stream) == [("message", response.json())]

    @pytest.mark.asyncio
    async def test_tool_error_is_http_200(self, client, http_bridge):
        client_id = http_bridge.open_connection(http_bridge.create_stream())
        response = await client.post(
            "/mcp/message",
            json={
                "jsonrpc": "2.0",
                "method": "tools/call",
                "params": {"name": "nope", "arguments": {}},
                "id": 2,
            },
            headers={"X-Client-Id": client_id},
        )
        assert response.status_code == 200
        assert response.json()["error"]["code"] == -32603
        assert response.json()["id"] == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("headers", [{}, {"X-Client-Id": "never-issued"}])
    async def test_missing_or_unknown_client_id(self, client, headers):
        response = await client.post(
            "/mcp/message", json={"jsonrpc": "2.0", "method": "ping", "id": 1}, headers=headers
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid or missing client ID"}

    @pytest.mark.asyncio
    async def test_malformed_json(self, client, http_bridge):
        client_id = http_bridge.open_connection(http_bridge.create_stream())
        response = await client.post(
            "/mcp/message",
            content=b"{not json",
            headers={"X-Client-Id": client_id, "Content-Type": "application/json"},
        )
        assert response.status_code == 200
        assert response.json()["error"]["code"] == -32700
        assert response.json()["id"] is None

    @pytest.mark.asyncio
    async def test_stats_and_close(self, client, http_bridge):
        client_id = http_bridge.open_connection(http_bridge.create_stream())

        stats = await client.get("/mcp/stats")
        assert stats.json()["total_connections"] == 1

        closed = await client.delete(f"/mcp/connections/{client_id}")
        assert closed.json() == {"client_id": client_id, "closed": True}
        missing = await client.delete(f"/mcp/connections/{client_id}")
        assert missing.status_code == 404
        assert missing.json()["error"] == "Connection not found"
        assert "x-request-id" in missing.headers


@pytest.mark.integration
class TestServerInfo:
    """Test GET /."""

    @pytest.mark.asyncio
    async def test_reports_the_bridge_catalog(self, client, http_bridge):
        http_bridge.dispatcher.catalog.management_enabled = True
        http_bridge.open_connection(http_bridge.create_stream())

        info = (await client.get("/")).json()

        assert info["tools"] == {
            "documentation": [tool["name"] for tool in BASE_TOOLS],
            "management": ["n8n_list_workflows"],
        }
        assert info["management_enabled"] is True
        assert info["active_sessions"] == 1


@pytest.mark.integration
class TestBearerGate:
    """Test the optional shared bearer token."""

    @pytest_asyncio.fixture
    async def secured(self, test_settings, http_bridge):
        settings = test_settings.model_copy(update={"auth_token": "tok"})
        transport = httpx.ASGITransport(app=build_app(settings, http_bridge))
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
            yield http_client

    @pytest.mark.asyncio
    async def test_missing_token(self, secured):
        response = await secured.get("/mcp/stats")
        assert response.status_code == 401
        assert response.json() == {"error": "missing_bearer"}

    @pytest.mark.asyncio
    async def test_invalid_token(self, secured):
        response = await secured.get("/mcp/stats", headers={"Authorization": "Bearer wrong"})
        assert response.status_code == 401
        assert response.json() == {"error": "invalid_token"}

    @pytest.mark.asyncio
    async def test_header_and_query_token(self, secured):
        by_header = await secured.get("/mcp/stats", headers={"Authorization": "Bearer tok"})
        by_query = await secured.get("/mcp/stats", params={"token": "tok"})
        assert by_header.status_code == 200
        assert by_query.status_code == 200

    @pytest.mark.asyncio
    async def test_health_is_open(self, secured):
        response = await secured.get("/health")
        assert response.status_code == 200
        assert response.text == "OK"


@pytest.mark.integration
class TestApplicationLifespan:
    """Test the app with its real lifespan and tool capability."""

    def test_lifespan_creates_and_stops_bridge(self, test_settings):
        app = create_app(test_settings)
        with TestClient(app) as test_client:
            assert app.state.mcp_bridge is not None
            assert test_client.get("/health").text == "OK"

            info = test_client.get("/").json()
            assert info["name"] == "n8n-documentation-mcp"
            assert "search_nodes" in info["tools"]["documentation"]
            assert info["management_enabled"] is False
            assert info["active_sessions"] == 0

            response = test_client.post(
                "/mcp/message", json={"jsonrpc": "2.0", "method": "ping", "id": 1}
            )
            assert response.status_code == 400

        assert app.state.mcp_bridge is None
