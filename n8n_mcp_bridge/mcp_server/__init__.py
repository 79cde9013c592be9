"""
MCP Server Implementation
========================

Tools served to MCP clients over the SSE bridge.

Tools provided:
- Documentation: tools_documentation, list_nodes, search_nodes, get_node_info
- Management (when the n8n API is configured): n8n_health_check, n8n_list_workflows,
  n8n_get_workflow, n8n_create_workflow, n8n_delete_workflow, n8n_list_executions
"""

from .interfaces import ToolContext, ToolError, ToolExecutionCapability, ToolCatalogProvider
from .server import N8NDocumentationMCPServer, N8nToolCapability
from .tools import N8nToolCatalog

__all__ = [
    "ToolContext",
    "ToolError",
    "ToolExecutionCapability",
    "ToolCatalogProvider",
    "N8NDocumentationMCPServer",
    "N8nToolCapability",
    "N8nToolCatalog",
]
