"""
SSE Session Flow Tests
======================

End-to-end session scenarios through the bridge:
- connect, list tools, call an unknown tool, disconnect
- the same flow against the real n8n tool capability
"""

import json

import pytest

from n8n_mcp_bridge.api.sse import create_mcp_bridge
from n8n_mcp_bridge.mcp_server import N8nToolCapability, N8nToolCatalog

from tests.fixtures.sse_fixtures import BASE_TOOLS, drain_events


@pytest.mark.integration
@pytest.mark.sse
class TestSessionScenario:
    """Connect, list, fail a call, disconnect."""

    @pytest.mark.asyncio
    async def test_full_session_lifecycle(self, bridge, tool_capability):
        stream = bridge.create_stream()
        client_id = bridge.open_connection(stream)

        events = drain_events(stream)
        assert events[0] == (
            "connected",
            {
                "clientId": client_id,
                "version": "2.7.4",
                "capabilities": {"tools": True, "resources": False, "prompts": False},
            },
        )
        assert events[1] == ("tools", {"tools": BASE_TOOLS})

        listed = await bridge.submit_request(
            client_id, {"jsonrpc": "2.0", "method": "tools/list", "id": 1}
        )
        assert listed == {"jsonrpc": "2.0", "result": {"tools": BASE_TOOLS}, "id": 1}

        failed = await bridge.submit_request(
            client_id,
            {
                "jsonrpc": "2.0",
                "method": "tools/call",
                "params": {"name": "nope", "arguments": {}},
                "id": 2,
            },
        )
        assert failed["error"]["code"] == -32603
        assert failed["id"] == 2
        assert [name for name, _ in drain_events(stream)] == ["message", "message"]

        session = bridge.registry.lookup(client_id)
        timer = session.keep_alive
        stream.close()

        assert bridge.registry.lookup(client_id) is None
        assert timer.cancelled and not timer.active
        assert session.stream.closed

    @pytest.mark.asyncio
    async def test_sessions_are_isolated(self, bridge, tool_capability):
        first_stream, second_stream = bridge.create_stream(), bridge.create_stream()
        first = bridge.open_connection(first_stream)
        second = bridge.open_connection(second_stream)
        drain_events(first_stream)
        drain_events(second_stream)

        await bridge.submit_request(
            first,
            {"jsonrpc": "2.0", "method": "tools/call", "params": {"name": "echo"}, "id": 1},
        )

        assert tool_capability.contexts[0].calls == [("echo", {})]
        assert tool_capability.contexts[1].calls == []
        assert drain_events(second_stream) == []

        bridge.close_connection(first)
        assert bridge.registry.lookup(second) is not None


@pytest.mark.integration
class TestRealToolCapability:
    """The same flow against the bundled n8n tools."""

    @pytest.mark.asyncio
    async def test_documentation_tools_over_the_bridge(self, test_settings):
        bridge = create_mcp_bridge(N8nToolCapability(), N8nToolCatalog(), test_settings)
        bridge.start()
        try:
            stream = bridge.create_stream()
            client_id = bridge.open_connection(stream)
            tools = drain_events(stream)[1][1]["tools"]
            assert "get_node_info" in [tool["name"] for tool in tools]
            assert not any(tool["name"].startswith("n8n_") for tool in tools)

            response = await bridge.submit_request(
                client_id,
                {
                    "jsonrpc": "2.0",
                    "method": "tools/call",
                    "params": {"name": "get_node_info", "arguments": {"nodeType": "webhook"}},
                    "id": "a",
                },
            )
            text = response["result"]["content"][0]["text"]
            assert json.loads(text)["nodeType"] == "n8n-nodes-base.webhook"
            assert response["id"] == "a"
        finally:
            await bridge.shutdown()

    @pytest.mark.asyncio
    async def test_management_tools_appear_once_configured(self, test_settings, monkeypatch):
        bridge = create_mcp_bridge(N8nToolCapability(), N8nToolCatalog(), test_settings)
        bridge.start()
        try:
            client_id = bridge.open_connection(bridge.create_stream())
            request = {"jsonrpc": "2.0", "method": "tools/list", "id": 1}

            before = await bridge.submit_request(client_id, request)
            monkeypatch.setenv("N8N_API_URL", "http://n8n.local:5678")
            monkeypatch.setenv("N8N_API_KEY", "k")
            after = await bridge.submit_request(client_id, request)

            before_names = {tool["name"] for tool in before["result"]["tools"]}
            after_names = {tool["name"] for tool in after["result"]["tools"]}
            assert "n8n_list_workflows" not in before_names
            assert "n8n_list_workflows" in after_names
            assert before_names < after_names
        finally:
            await bridge.shutdown()
