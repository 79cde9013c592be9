"""
MCP Server Tools
================

Tool descriptors advertised to MCP clients.

Two catalogs:
- Documentation tools: always available, served from the bundled node documentation
- Management tools: only advertised when the n8n management API is configured
"""

from typing import Any, Dict, List

from mcp.types import Tool

from n8n_mcp_bridge.config.settings import get_management_api_settings

from .interfaces import ToolCatalogProvider, ToolDescriptor


DOCUMENTATION_TOOLS: List[Tool] = [
    Tool(
        name="tools_documentation",
        description="Get documentation for the tools served by this MCP server",
        inputSchema={
            "type": "object",
            "properties": {
                "topic": {
                    "type": "string",
                    "description": "Tool name to document; omit for an overview",
                },
            },
        },
    ),
    Tool(
        name="list_nodes",
        description="List n8n nodes, optionally filtered by category or package",
        inputSchema={
            "type": "object",
            "properties": {
                "category": {
                    "type": "string",
                    "description": "Node category (trigger, transform, output, input)",
                },
                "package": {
                    "type": "string",
                    "description": "Node package name, e.g. n8n-nodes-base",
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of nodes to return",
                    "default": 50,
                    "minimum": 1,
                },
            },
        },
    ),
    Tool(
        name="search_nodes",
        description="Search n8n nodes by keyword in name, display name and description",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search keywords"},
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of results",
                    "default": 20,
                    "minimum": 1,
                },
            },
            "required": ["query"],
        },
    ),
    Tool(
        name="get_node_info",
        description="Get full documentation for one n8n node including its properties",
        inputSchema={
            "type": "object",
            "properties": {
                "nodeType": {
                    "type": "string",
                    "description": "Full node type, e.g. n8n-nodes-base.httpRequest",
                },
            },
            "required": ["nodeType"],
        },
    ),
]


MANAGEMENT_TOOLS: List[Tool] = [
    Tool(
        name="n8n_health_check",
        description="Check connectivity to the configured n8n instance",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="n8n_list_workflows",
        description="List workflows on the n8n instance",
        inputSchema={
            "type": "object",
            "properties": {
                "active": {"type": "boolean", "description": "Filter by active state"},
                "limit": {
                    "type": "integer",
                    "description": "Page size",
                    "default": 100,
                    "minimum": 1,
                    "maximum": 250,
                },
                "cursor": {"type": "string", "description": "Pagination cursor"},
            },
        },
    ),
    Tool(
        name="n8n_get_workflow",
        description="Get a workflow by id",
        inputSchema={
            "type": "object",
            "properties": {"id": {"type": "string", "description": "Workflow id"}},
            "required": ["id"],
        },
    ),
    Tool(
        name="n8n_create_workflow",
        description="Create a workflow from nodes and connections",
        inputSchema={
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Workflow name"},
                "nodes": {
                    "type": "array",
                    "description": "Workflow nodes",
                    "items": {"type": "object"},
                },
                "connections": {"type": "object", "description": "Node connections"},
                "settings": {"type": "object", "description": "Workflow settings"},
            },
            "required": ["name", "nodes", "connections"],
        },
    ),
    Tool(
        name="n8n_delete_workflow",
        description="Permanently delete a workflow",
        inputSchema={
            "type": "object",
            "properties": {"id": {"type": "string", "description": "Workflow id"}},
            "required": ["id"],
        },
    ),
    Tool(
        name="n8n_list_executions",
        description="List workflow executions",
        inputSchema={
            "type": "object",
            "properties": {
                "workflowId": {"type": "string", "description": "Filter by workflow id"},
                "status": {
                    "type": "string",
                    "enum": ["success", "error", "waiting"],
                    "description": "Filter by execution status",
                },
                "limit": {
                    "type": "integer",
                    "description": "Page size",
                    "default": 100,
                    "minimum": 1,
                    "maximum": 250,
                },
            },
        },
    ),
]


def _describe(tools: List[Tool]) -> List[ToolDescriptor]:
    return [tool.model_dump(mode="json", by_alias=True, exclude_none=True) for tool in tools]


def tool_names(tools: List[Tool]) -> List[str]:
    return [tool.name for tool in tools]


class N8nToolCatalog:
    """Tool catalog for the n8n documentation and management tools."""

    def list_base_tools(self) -> List[ToolDescriptor]:
        return _describe(DOCUMENTATION_TOOLS)

    def list_management_tools(self) -> List[ToolDescriptor]:
        return _describe(MANAGEMENT_TOOLS)

    def is_management_api_configured(self) -> bool:
        # Re-read on each call so credentials added after startup are honoured.
        return get_management_api_settings().configured


def describe_catalog(catalog: ToolCatalogProvider) -> Dict[str, Any]:
    """Tool names per catalog plus the current management flag."""
    return {
        "documentation": [tool["name"] for tool in catalog.list_base_tools()],
        "management": [tool["name"] for tool in catalog.list_management_tools()],
        "management_enabled": catalog.is_management_api_configured(),
    }
