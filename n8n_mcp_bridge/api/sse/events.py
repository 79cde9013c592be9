"""
SSE Events
==========

Server-Sent Events type definitions and formatting functions.
Defines the bridge's event names, frame formatting and the emit primitive.
"""

from typing import Optional, Dict, Any, List, Protocol
from datetime import datetime
from enum import Enum
import json

from n8n_mcp_bridge.config.logging import get_logger

from .models import SSECapabilities, SSEConnectedPayload, SSEHeartbeat

logger = get_logger(__name__)


class SSEEventType(str, Enum):
    """Server-Sent Events event names."""

    CONNECTED = "connected"
    TOOLS = "tools"
    HEARTBEAT = "heartbeat"
    MESSAGE = "message"


class WritableStream(Protocol):
    """Anything the writer can put frames on."""

    def write(self, frame: str) -> None: ...

    def flush(self) -> None: ...


def _make_serializable(data: Any) -> Any:
    """Convert data to JSON-serializable format."""
    if hasattr(data, "model_dump"):
        return data.model_dump(mode="json", by_alias=True, exclude_none=True)
    elif isinstance(data, datetime):
        return data.isoformat()
    elif isinstance(data, Enum):
        return data.value
    elif isinstance(data, dict):
        return {str(k): _make_serializable(v) for k, v in data.items()}
    elif isinstance(data, (list, tuple)):
        return [_make_serializable(item) for item in data]
    else:
        return data


def format_sse_event(
    event_type: str,
    data: Any,
    event_id: Optional[str] = None,
    retry_after: Optional[int] = None,
) -> str:
    """
    Format data for Server-Sent Events protocol.

    Args:
        event_type: Event type identifier
        data: JSON-serializable event data
        event_id: Optional event ID for client-side event tracking
        retry_after: Optional retry interval in milliseconds

    Returns:
        Formatted SSE message string

    Raises:
        TypeError: If data cannot be encoded as JSON
    """
    lines: List[str] = []

    if event_id:
        lines.append(f"id: {event_id}")

    lines.append(f"event: {event_type}")

    if retry_after:
        lines.append(f"retry: {retry_after}")

    # Compact JSON is a single line; splitting keeps the frame valid regardless.
    data_json = json.dumps(_make_serializable(data), separators=(",", ":"), ensure_ascii=False)
    for line in data_json.splitlines() or [""]:
        lines.append(f"data: {line}")

    # SSE protocol requires double newline at end
    lines.append("")
    lines.append("")

    return "\n".join(lines)


def emit(stream: WritableStream, event_type: str, data: Any) -> bool:
    """
    Write one named event to a stream.

    Never raises: encoding and write failures are logged and reported as
    ``False`` so the caller can treat them as a disconnect.
    """
    name = event_type.value if isinstance(event_type, SSEEventType) else event_type
    try:
        frame = format_sse_event(name, data)
        stream.write(frame)
        stream.flush()
        return True
    except Exception as e:
        logger.warning("Failed to send SSE event", event_type=name, error=str(e))
        return False


def create_connected_payload(client_id: str, version: str) -> Dict[str, Any]:
    """Create the payload of the initial ``connected`` event."""
    payload = SSEConnectedPayload(
        client_id=client_id, version=version, capabilities=SSECapabilities()
    )
    return payload.model_dump(by_alias=True)


def create_heartbeat_payload() -> Dict[str, Any]:
    """Create heartbeat payload carrying the current UTC timestamp."""
    return SSEHeartbeat().model_dump()


def create_tools_payload(tools: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"tools": tools}
