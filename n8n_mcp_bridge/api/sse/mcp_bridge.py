"""
MCP Bridge
==========

Bridge between the SSE event stream and the MCP JSON-RPC protocol.
Opens sessions, routes POSTed requests to the dispatcher and mirrors every
response back onto the session's event stream.
"""

from typing import Optional, Dict, Any

from n8n_mcp_bridge.config.logging import get_logger
from n8n_mcp_bridge.config.settings import Settings, get_settings
from n8n_mcp_bridge.mcp_server.interfaces import ToolCatalogProvider, ToolExecutionCapability

from .connection_manager import Session, SSEConnectionManager
from .dispatcher import JsonRpcDispatcher, jsonrpc_error
from .events import SSEEventType, create_connected_payload, create_tools_payload, emit
from .exceptions import AdmissionError, UnknownSessionError
from .models import JsonRpcErrorCode, SessionState, SSEConnectionStats
from .scheduler import SessionReaper
from .stream import EventStream

logger = get_logger(__name__)


class MCPBridge:
    """
    Orchestrates SSE sessions.

    Session states: connecting -> open -> closing -> closed. A session is
    only reachable through ``submit_request`` while it is registered; any
    failure while connecting evicts it before ``open_connection`` returns.
    """

    def __init__(
        self,
        registry: SSEConnectionManager,
        dispatcher: JsonRpcDispatcher,
        version: str,
        cleanup_interval: float = 60.0,
    ) -> None:
        self.logger: Any = logger.bind(component="mcp_bridge")
        self.registry = registry
        self.dispatcher = dispatcher
        self.version = version
        self.reaper = SessionReaper(cleanup_interval, registry.sweep_closed)

    def start(self) -> None:
        """Start the stale-session reaper. Must be called from a running event loop."""
        self.reaper.start()
        self.logger.info("SSE bridge started", cleanup_interval=self.reaper.interval)

    async def shutdown(self) -> None:
        """Stop the reaper, evict every session and wait for their tool contexts to close."""
        self.reaper.cancel()
        await self.reaper.wait_closed()
        closed = self.registry.close_all(reason="shutdown")
        await self.registry.wait_released()
        self.logger.info("SSE bridge stopped", closed_sessions=closed)

    def create_stream(self) -> EventStream:
        return self.registry.create_stream()

    def open_connection(self, stream: EventStream) -> str:
        """
        Turn an open stream into a registered session.

        Sends ``connected`` then ``tools``. The close hook on the stream is
        wired so a transport disconnect evicts the session.

        Args:
            stream: Freshly opened event stream

        Returns:
            The new session id

        Raises:
            AdmissionError: If admission or either initial event fails
        """
        try:
            session = self.registry.admit(stream)
        except Exception as e:
            self.logger.error("Failed to establish SSE connection", error=str(e))
            raise AdmissionError(f"Failed to admit session: {e}") from e

        session_id = session.id
        try:
            if not emit(
                stream,
                SSEEventType.CONNECTED,
                create_connected_payload(session_id, self.version),
            ):
                raise AdmissionError("Failed to send connected event", session_id)

            tools = create_tools_payload(self.dispatcher.list_tools())
            if not emit(stream, SSEEventType.TOOLS, tools):
                raise AdmissionError("Failed to send tools list", session_id)
        except Exception as e:
            self.registry.evict(session_id, reason="admission_failed")
            self.logger.error(
                "Failed to establish SSE connection", session_id=session_id, error=str(e)
            )
            if isinstance(e, AdmissionError):
                raise
            raise AdmissionError(str(e), session_id) from e

        stream.on_close(lambda _: self.close_connection(session_id, reason="client_disconnected"))
        session.state = SessionState.OPEN

        self.logger.info(
            "SSE client connected", session_id=session_id, total_connections=len(self.registry)
        )
        return session_id

    async def submit_request(self, session_id: Optional[str], request: Any) -> Dict[str, Any]:
        """
        Dispatch a JSON-RPC request for a session and mirror the response.

        Args:
            session_id: Session id carried by the request channel
            request: Decoded JSON-RPC request object

        Returns:
            JSON-RPC response dictionary

        Raises:
            UnknownSessionError: If the session id is missing, unknown or evicted
        """
        session = self.registry.lookup(session_id)
        if session is None:
            raise UnknownSessionError(session_id)

        response = await self.dispatcher.dispatch(session, request)
        self._mirror(session, response)
        return response

    def reject_unparseable(self, session_id: Optional[str]) -> Dict[str, Any]:
        """
        Answer a request body that is not valid JSON.

        Raises:
            UnknownSessionError: If the session id is missing, unknown or evicted
        """
        session = self.registry.lookup(session_id)
        if session is None:
            raise UnknownSessionError(session_id)

        response = jsonrpc_error(None, JsonRpcErrorCode.PARSE_ERROR, "Parse error")
        self._mirror(session, response)
        return response

    def _mirror(self, session: Session, response: Dict[str, Any]) -> None:
        # The session may have been evicted while the tool was running.
        if self.registry.lookup(session.id) is not session:
            return
        if not emit(session.stream, SSEEventType.MESSAGE, response):
            self.registry.evict(session.id, reason="write_failed")

    def close_connection(self, session_id: str, reason: str = "closed") -> bool:
        return self.registry.evict(session_id, reason=reason)

    def session_count(self) -> int:
        return len(self.registry)

    def stats(self) -> SSEConnectionStats:
        return self.registry.stats()


def create_mcp_bridge(
    tool_capability: ToolExecutionCapability,
    catalog: ToolCatalogProvider,
    settings: Optional[Settings] = None,
) -> MCPBridge:
    """
    Build a bridge wired with its registry and dispatcher from settings.

    Args:
        tool_capability: Factory for per-session tool contexts
        catalog: Tool catalog provider
        settings: Settings override; defaults to the global settings

    Returns:
        A bridge that still needs ``start()`` inside the event loop
    """
    settings = settings or get_settings()
    registry = SSEConnectionManager(
        tool_capability,
        heartbeat_interval=settings.sse_heartbeat_interval,
        buffer_size=settings.sse_event_buffer_size,
    )
    dispatcher = JsonRpcDispatcher(
        catalog,
        server_name=settings.mcp_server_name,
        server_version=settings.app_version,
        protocol_version=settings.mcp_protocol_version,
    )
    return MCPBridge(
        registry,
        dispatcher,
        version=settings.app_version,
        cleanup_interval=settings.sse_cleanup_interval,
    )
