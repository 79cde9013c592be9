"""
SSE Models
==========

Pydantic models for the SSE bridge.
Defines event payloads, JSON-RPC envelopes and session statistics.
"""

from typing import Optional, Dict, Any, Union
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator


JSONRPC_VERSION = "2.0"

RequestId = Union[int, str]


class SessionState(str, Enum):
    """Lifecycle state of a bridge session."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class JsonRpcErrorCode(int, Enum):
    """JSON-RPC 2.0 error codes used by the bridge."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


class SSECapabilities(BaseModel):
    """Capabilities advertised in the ``connected`` event."""

    tools: bool = Field(default=True, description="Tool execution is available")
    resources: bool = Field(default=False, description="Resource reads are available")
    prompts: bool = Field(default=False, description="Prompt templates are available")


class SSEConnectedPayload(BaseModel):
    """Payload of the ``connected`` event."""

    client_id: str = Field(..., alias="clientId", description="Session id for the request channel")
    version: str = Field(..., description="Server version")
    capabilities: SSECapabilities = Field(default_factory=SSECapabilities)

    model_config = ConfigDict(populate_by_name=True)


class SSEHeartbeat(BaseModel):
    """Heartbeat message to keep SSE connections alive."""

    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="Heartbeat timestamp",
    )


class JsonRpcRequest(BaseModel):
    """Inbound JSON-RPC 2.0 request object."""

    jsonrpc: str = Field(default=JSONRPC_VERSION, description="Protocol version")
    method: str = Field(..., min_length=1, description="Method name")
    params: Optional[Dict[str, Any]] = Field(default=None, description="Method parameters")
    id: Optional[RequestId] = Field(default=None, description="Request correlation id")

    model_config = ConfigDict(extra="allow")


class JsonRpcError(BaseModel):
    """JSON-RPC 2.0 error object."""

    code: int = Field(..., description="Error code")
    message: str = Field(..., description="Short error description")
    data: Optional[Any] = Field(default=None, description="Additional error information")


class ToolCallParams(BaseModel):
    """Parameters of a ``tools/call`` request."""

    name: str = Field(..., min_length=1, description="Tool name")
    arguments: Dict[str, Any] = Field(default_factory=dict, description="Tool arguments")

    @field_validator("arguments", mode="before")
    @classmethod
    def default_arguments(cls, v: Any) -> Any:
        return {} if v is None else v


class SessionInfo(BaseModel):
    """Public view of an open session."""

    session_id: str = Field(..., description="Session identifier")
    connected_at: datetime = Field(..., description="Admission timestamp")
    last_heartbeat: Optional[datetime] = Field(None, description="Last heartbeat timestamp")
    pending_frames: int = Field(default=0, description="Frames waiting to be written")


class SSEConnectionStats(BaseModel):
    """Statistics for SSE sessions."""

    total_connections: int = Field(default=0, description="Open sessions")
    sessions: list[SessionInfo] = Field(default_factory=list, description="Open session details")
    last_updated: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Last stats update"
    )
