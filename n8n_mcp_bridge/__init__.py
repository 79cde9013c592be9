"""
n8n MCP SSE Bridge
==================

Exposes n8n documentation and workflow-management tools to remote MCP clients
over a Server-Sent Events stream paired with an HTTP POST request channel.

This package provides:
- SSE session bridge multiplexing JSON-RPC over a one-way event stream
- FastAPI endpoints for the event stream and the request channel
- Documentation and n8n management tool implementations
"""

__version__ = "2.7.4"
__author__ = "n8n MCP Bridge Team"
