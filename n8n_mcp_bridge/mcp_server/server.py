"""
MCP Server Implementation
========================

Per-session tool context serving the n8n documentation and workflow-management tools.
"""

import json
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from mcp.types import CallToolResult, TextContent

from n8n_mcp_bridge.config.logging import get_logger
from n8n_mcp_bridge.config.settings import ManagementApiSettings, get_management_api_settings

from .interfaces import ToolError
from .n8n_client import N8nApiClient, N8nApiError
from .node_docs import NodeDocumentationStore
from .tools import DOCUMENTATION_TOOLS, MANAGEMENT_TOOLS, tool_names

logger = get_logger(__name__)

ToolHandler = Callable[[Mapping[str, Any]], Awaitable[Any]]

_shared_store: Optional[NodeDocumentationStore] = None


def get_node_store() -> NodeDocumentationStore:
    """Get the process-wide documentation store."""
    global _shared_store
    if _shared_store is None:
        _shared_store = NodeDocumentationStore()
    return _shared_store


def _text_result(payload: Any) -> CallToolResult:
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(payload, indent=2, default=str))]
    )


def _require(arguments: Mapping[str, Any], name: str, tool: str) -> Any:
    value = arguments.get(name)
    if value is None or value == "":
        raise ToolError(f"Missing required argument: {name}", tool_name=tool)
    return value


class N8NDocumentationMCPServer:
    """Tool context owned by a single SSE session."""

    reentrant = False

    def __init__(
        self,
        store: Optional[NodeDocumentationStore] = None,
        api_settings: Callable[[], ManagementApiSettings] = get_management_api_settings,
    ) -> None:
        self.logger: Any = logger.bind(component="mcp_server")
        self.store = store or get_node_store()
        self._api_settings = api_settings
        self._client: Optional[N8nApiClient] = None
        self._handlers: Dict[str, ToolHandler] = {
            "tools_documentation": self._tools_documentation,
            "list_nodes": self._list_nodes,
            "search_nodes": self._search_nodes,
            "get_node_info": self._get_node_info,
            "n8n_health_check": self._health_check,
            "n8n_list_workflows": self._list_workflows,
            "n8n_get_workflow": self._get_workflow,
            "n8n_create_workflow": self._create_workflow,
            "n8n_delete_workflow": self._delete_workflow,
            "n8n_list_executions": self._list_executions,
        }

    async def execute(self, name: str, arguments: Mapping[str, Any]) -> CallToolResult:
        """
        Run one tool.

        Args:
            name: Tool name
            arguments: Tool arguments

        Returns:
            MCP tool result with a single JSON text block

        Raises:
            ToolError: If the tool is unknown or fails
        """
        handler = self._handlers.get(name)
        if handler is None:
            self.logger.warning("Tool not found", tool=name)
            raise ToolError(f"Unknown tool: {name}", tool_name=name)

        self.logger.info("Tool call", tool=name)
        try:
            payload = await handler(arguments or {})
        except N8nApiError as e:
            raise ToolError(str(e), tool_name=name) from e
        return _text_result(payload)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    # Documentation tools

    async def _tools_documentation(self, arguments: Mapping[str, Any]) -> Any:
        topic = arguments.get("topic")
        tools = {tool.name: tool for tool in DOCUMENTATION_TOOLS + MANAGEMENT_TOOLS}
        if not topic or topic == "overview":
            return {
                "documentation": tool_names(DOCUMENTATION_TOOLS),
                "management": tool_names(MANAGEMENT_TOOLS),
                "managementEnabled": self._api_settings().configured,
                "nodeCount": len(self.store),
            }
        tool = tools.get(topic)
        if tool is None:
            raise ToolError(f"No documentation for tool: {topic}", tool_name="tools_documentation")
        return {
            "name": tool.name,
            "description": tool.description,
            "inputSchema": tool.inputSchema,
        }

    async def _list_nodes(self, arguments: Mapping[str, Any]) -> Any:
        nodes = self.store.list(
            category=arguments.get("category"),
            package=arguments.get("package"),
            limit=int(arguments.get("limit", 50)),
        )
        return {"nodes": [node.summary() for node in nodes], "totalCount": len(nodes)}

    async def _search_nodes(self, arguments: Mapping[str, Any]) -> Any:
        query = _require(arguments, "query", "search_nodes")
        nodes = self.store.search(str(query), limit=int(arguments.get("limit", 20)))
        return {
            "query": query,
            "results": [node.summary() for node in nodes],
            "totalCount": len(nodes),
        }

    async def _get_node_info(self, arguments: Mapping[str, Any]) -> Any:
        node_type = _require(arguments, "nodeType", "get_node_info")
        node = self.store.get(str(node_type))
        if node is None:
            raise ToolError(f"Node {node_type} not found", tool_name="get_node_info")
        return node.model_dump(mode="json", by_alias=True)

    # Management tools

    def _get_client(self) -> N8nApiClient:
        settings = self._api_settings()
        if not settings.configured:
            raise ToolError("n8n API not configured; set N8N_API_URL and N8N_API_KEY")
        if self._client is None:
            self._client = N8nApiClient(settings)
        return self._client

    async def _health_check(self, arguments: Mapping[str, Any]) -> Any:
        return await self._get_client().health_check()

    async def _list_workflows(self, arguments: Mapping[str, Any]) -> Any:
        return await self._get_client().list_workflows(
            active=arguments.get("active"),
            limit=int(arguments.get("limit", 100)),
            cursor=arguments.get("cursor"),
        )

    async def _get_workflow(self, arguments: Mapping[str, Any]) -> Any:
        workflow_id = _require(arguments, "id", "n8n_get_workflow")
        return await self._get_client().get_workflow(str(workflow_id))

    async def _create_workflow(self, arguments: Mapping[str, Any]) -> Any:
        workflow = {
            "name": _require(arguments, "name", "n8n_create_workflow"),
            "nodes": _require(arguments, "nodes", "n8n_create_workflow"),
            "connections": _require(arguments, "connections", "n8n_create_workflow"),
            "settings": arguments.get("settings") or {},
        }
        return await self._get_client().create_workflow(workflow)

    async def _delete_workflow(self, arguments: Mapping[str, Any]) -> Any:
        workflow_id = _require(arguments, "id", "n8n_delete_workflow")
        return await self._get_client().delete_workflow(str(workflow_id))

    async def _list_executions(self, arguments: Mapping[str, Any]) -> Any:
        return await self._get_client().list_executions(
            workflow_id=arguments.get("workflowId"),
            status=arguments.get("status"),
            limit=int(arguments.get("limit", 100)),
        )


class N8nToolCapability:
    """Creates an isolated N8NDocumentationMCPServer for each session."""

    def __init__(self, store: Optional[NodeDocumentationStore] = None) -> None:
        self.store = store

    def create(self) -> N8NDocumentationMCPServer:
        return N8NDocumentationMCPServer(store=self.store)
