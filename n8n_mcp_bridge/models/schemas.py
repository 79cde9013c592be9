"""
Pydantic Schemas
================

Response models shared by the HTTP routes.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    request_id: Optional[str] = Field(None, description="Request identifier for tracking")


class ServerInfo(BaseModel):
    """Service description returned by the root endpoint."""

    name: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    protocol_version: str = Field(..., description="MCP protocol version")
    endpoints: Dict[str, str] = Field(default_factory=dict, description="Endpoint map")
    tools: Dict[str, List[str]] = Field(default_factory=dict, description="Tool names by group")
    management_enabled: bool = Field(..., description="Whether management tools are listed")
    active_sessions: int = Field(default=0, description="Number of open SSE sessions")
