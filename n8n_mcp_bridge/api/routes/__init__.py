"""
HTTP Routes
===========

Routers mounted by the FastAPI application.

Endpoints:
- GET /health: Liveness probe
- GET /mcp/sse: MCP event stream
- POST /mcp/message: JSON-RPC requests for an open session
"""
