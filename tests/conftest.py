"""
Test Configuration
==================

Pytest configuration with fixtures for all test types.
Provides test settings, fake tool capabilities and wired bridge components.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio

from n8n_mcp_bridge.config.settings import Settings
from n8n_mcp_bridge.api.sse.connection_manager import SSEConnectionManager
from n8n_mcp_bridge.api.sse.dispatcher import JsonRpcDispatcher
from n8n_mcp_bridge.api.sse.mcp_bridge import MCPBridge

from tests.fixtures.sse_fixtures import FakeToolCapability, FakeToolCatalog


# Test settings override
class TestSettings(Settings):
    """Test-specific settings."""

    __test__ = False

    environment: str = "testing"
    debug: bool = True
    log_level: str = "DEBUG"
    sse_heartbeat_interval: float = 30.0
    sse_cleanup_interval: float = 60.0


@pytest.fixture
def test_settings() -> TestSettings:
    """Test settings fixture."""
    return TestSettings(_env_file=None, auth_token=None)


@pytest.fixture(autouse=True)
def no_management_api(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start every test with the n8n management API unconfigured."""
    for name in ("N8N_API_URL", "N8N_API_KEY", "N8N_MCP_AUTH_TOKEN"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def tool_capability() -> FakeToolCapability:
    return FakeToolCapability()


@pytest.fixture
def tool_catalog() -> FakeToolCatalog:
    return FakeToolCatalog()


@pytest.fixture
def dispatcher(tool_catalog: FakeToolCatalog) -> JsonRpcDispatcher:
    return JsonRpcDispatcher(
        tool_catalog,
        server_name="n8n-documentation-mcp",
        server_version="2.7.4",
        protocol_version="2024-11-05",
    )


@pytest_asyncio.fixture
async def registry(
    tool_capability: FakeToolCapability,
) -> AsyncGenerator[SSEConnectionManager, None]:
    """Session registry; every session left open is evicted on teardown."""
    manager = SSEConnectionManager(tool_capability, heartbeat_interval=30.0, buffer_size=32)
    yield manager
    manager.close_all(reason="test_teardown")
    await manager.wait_released()


@pytest_asyncio.fixture
async def bridge(
    registry: SSEConnectionManager, dispatcher: JsonRpcDispatcher
) -> AsyncGenerator[MCPBridge, None]:
    """Started bridge over the fake tool capability."""
    mcp_bridge = MCPBridge(registry, dispatcher, version="2.7.4", cleanup_interval=60.0)
    mcp_bridge.start()
    yield mcp_bridge
    await mcp_bridge.shutdown()
