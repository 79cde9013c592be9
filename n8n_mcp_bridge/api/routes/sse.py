"""
SSE Routes
==========

FastAPI routes for the MCP SSE transport.

Endpoints:
- GET /mcp/sse: Open an event stream; the session id arrives in the ``connected`` event
- POST /mcp/message: Submit a JSON-RPC request for a session (``X-Client-Id`` header)
- GET /mcp/stats: Open session statistics
- DELETE /mcp/connections/{client_id}: Close a session
"""

import json
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse

from n8n_mcp_bridge.api.auth import get_request_settings, validate_bearer_token
from n8n_mcp_bridge.api.sse import AdmissionError, MCPBridge, UnknownSessionError
from n8n_mcp_bridge.api.sse.models import SSEConnectionStats
from n8n_mcp_bridge.config.logging import get_logger

logger = get_logger(__name__)

INVALID_CLIENT_ID = {"error": "Invalid or missing client ID"}

router = APIRouter(
    prefix="/mcp",
    tags=["MCP"],
    dependencies=[Depends(validate_bearer_token)],
    responses={401: {"description": "Missing or invalid bearer token"}},
)


def get_bridge(request: Request) -> MCPBridge:
    """Bridge created by the application lifespan."""
    bridge: Optional[MCPBridge] = getattr(request.app.state, "mcp_bridge", None)
    if bridge is None:
        raise HTTPException(status_code=503, detail="SSE bridge is not running")
    return bridge


@router.get("/sse")
async def connect_sse(
    request: Request, bridge: MCPBridge = Depends(get_bridge)
) -> StreamingResponse:
    """
    Establish SSE connection.

    The ``connected`` and ``tools`` events are queued before the response
    starts, so they are always the first two frames on the wire.

    Returns:
        Streaming response with SSE protocol formatted events
    """
    stream = bridge.create_stream()
    try:
        client_id = bridge.open_connection(stream)
    except AdmissionError as e:
        logger.error("Failed to establish SSE connection", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to establish SSE connection")

    settings = get_request_settings(request)
    return StreamingResponse(
        stream.frames(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable Nginx buffering
            "X-Client-Id": client_id,
            "Access-Control-Allow-Origin": settings.cors_origin,
        },
    )


@router.post("/message")
async def post_message(
    request: Request,
    bridge: MCPBridge = Depends(get_bridge),
    x_client_id: Optional[str] = Header(None),
) -> JSONResponse:
    """
    Execute a JSON-RPC request for an open session.

    The response is returned here and also mirrored as a ``message`` event.
    """
    if not x_client_id or bridge.registry.lookup(x_client_id) is None:
        return JSONResponse(status_code=400, content=INVALID_CLIENT_ID)

    try:
        body: Any = json.loads(await request.body())
    except ValueError:
        try:
            response = bridge.reject_unparseable(x_client_id)
        except UnknownSessionError:
            return JSONResponse(status_code=400, content=INVALID_CLIENT_ID)
        return JSONResponse(content=response)

    try:
        response = await bridge.submit_request(x_client_id, body)
    except UnknownSessionError:
        return JSONResponse(status_code=400, content=INVALID_CLIENT_ID)

    return JSONResponse(content=response)


@router.get("/stats", response_model=SSEConnectionStats)
async def get_stats(bridge: MCPBridge = Depends(get_bridge)) -> SSEConnectionStats:
    """Open session statistics."""
    return bridge.stats()


@router.delete("/connections/{client_id}")
async def close_connection(
    client_id: str, bridge: MCPBridge = Depends(get_bridge)
) -> Dict[str, Any]:
    """Close a session and its event stream."""
    if not bridge.close_connection(client_id, reason="closed_by_api"):
        raise HTTPException(status_code=404, detail="Connection not found")
    return {"client_id": client_id, "closed": True}
