"""
Server-Sent Events (SSE) Infrastructure
======================================

SSE session bridge exposing MCP tools over a one-way event stream.
Requests arrive on a separate HTTP channel and responses are mirrored on the stream.

Components:
- Connection Manager: Session registry (admission, lookup, eviction)
- Scheduler: Per-session keep-alive timers and the stale-session reaper
- Event System: Event names, frame formatting and emission
- Dispatcher: JSON-RPC method routing against a session's tool context
- MCP Bridge: Connection lifecycle and request routing
- Models: Pydantic models for SSE-specific data structures
"""

from .connection_manager import SSEConnectionManager, Session
from .dispatcher import JsonRpcDispatcher
from .events import SSEEventType, emit, format_sse_event
from .exceptions import AdmissionError, BridgeError, StreamClosedError, UnknownSessionError
from .mcp_bridge import MCPBridge, create_mcp_bridge
from .models import JsonRpcErrorCode, JsonRpcRequest, SessionState
from .scheduler import KeepAliveTimer, SessionReaper
from .stream import EventStream

__all__ = [
    "SSEConnectionManager",
    "Session",
    "JsonRpcDispatcher",
    "SSEEventType",
    "emit",
    "format_sse_event",
    "AdmissionError",
    "BridgeError",
    "StreamClosedError",
    "UnknownSessionError",
    "MCPBridge",
    "create_mcp_bridge",
    "JsonRpcErrorCode",
    "JsonRpcRequest",
    "SessionState",
    "KeepAliveTimer",
    "SessionReaper",
    "EventStream",
]
