"""
JSON-RPC Dispatcher
===================

Interprets inbound JSON-RPC 2.0 requests against a session's tool context.
Every outcome, including tool failures, is returned as a JSON-RPC response
object; nothing raised here is allowed to close the session.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional
import asyncio

from pydantic import ValidationError

from n8n_mcp_bridge.config.logging import get_logger
from n8n_mcp_bridge.mcp_server.interfaces import ToolCatalogProvider, ToolDescriptor

from .connection_manager import Session
from .models import (
    JSONRPC_VERSION,
    JsonRpcError,
    JsonRpcErrorCode,
    JsonRpcRequest,
    RequestId,
    ToolCallParams,
)

logger = get_logger(__name__)

Handler = Callable[[Session, JsonRpcRequest], Awaitable[Any]]


class JsonRpcProtocolError(Exception):
    """Raised inside a handler to produce a specific JSON-RPC error."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


def jsonrpc_result(request_id: Optional[RequestId], result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "result": result, "id": request_id}


def jsonrpc_error(
    request_id: Optional[RequestId], code: int, message: str, data: Any = None
) -> Dict[str, Any]:
    error = JsonRpcError(code=int(code), message=message, data=data)
    return {
        "jsonrpc": JSONRPC_VERSION,
        "error": error.model_dump(exclude_none=True),
        "id": request_id,
    }


def extract_request_id(raw: Any) -> Optional[RequestId]:
    """Best-effort id recovery from a request that failed validation."""
    if isinstance(raw, dict):
        request_id = raw.get("id")
        if isinstance(request_id, (int, str)) and not isinstance(request_id, bool):
            return request_id
    return None


def _to_jsonable(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    return value


class JsonRpcDispatcher:
    """
    Routes JSON-RPC methods to handlers.

    Supported methods:
    - initialize: static protocol and server metadata
    - tools/list: base catalog, plus management tools when the n8n API is configured
    - tools/call: executes a tool on the session's private context
    - ping and notifications/*: acknowledged with an empty result
    """

    def __init__(
        self,
        catalog: ToolCatalogProvider,
        server_name: str,
        server_version: str,
        protocol_version: str = "2024-11-05",
    ) -> None:
        self.logger: Any = logger.bind(component="jsonrpc_dispatcher")
        self.catalog = catalog
        self.server_name = server_name
        self.server_version = server_version
        self.protocol_version = protocol_version
        self._handlers: Dict[str, Handler] = {
            "initialize": self._handle_initialize,
            "tools/list": self._handle_tools_list,
            "tools/call": self._handle_tools_call,
            "ping": self._handle_ping,
        }

    def list_tools(self) -> List[ToolDescriptor]:
        """Current tool catalog; the management flag is checked on every call."""
        tools = list(self.catalog.list_base_tools())
        if self.catalog.is_management_api_configured():
            tools.extend(self.catalog.list_management_tools())
        return tools

    async def dispatch(self, session: Session, request: Any) -> Dict[str, Any]:
        """
        Dispatch one request.

        Args:
            session: Session the request arrived for
            request: Decoded JSON request body

        Returns:
            JSON-RPC response dictionary
        """
        try:
            message = JsonRpcRequest.model_validate(request)
        except ValidationError as e:
            self.logger.info("Invalid JSON-RPC request", session_id=session.id, error=str(e))
            return jsonrpc_error(
                extract_request_id(request),
                JsonRpcErrorCode.INVALID_REQUEST,
                "Invalid request",
                e.errors(include_url=False, include_context=False, include_input=False),
            )

        self.logger.debug(
            "SSE message received", session_id=session.id, method=message.method, id=message.id
        )

        handler = self._handlers.get(message.method)
        if handler is None and message.method.startswith("notifications/"):
            handler = self._handle_ping
        if handler is None:
            return jsonrpc_error(
                message.id,
                JsonRpcErrorCode.METHOD_NOT_FOUND,
                f"Method not found: {message.method}",
            )

        try:
            result = await handler(session, message)
        except JsonRpcProtocolError as e:
            return jsonrpc_error(message.id, e.code, e.message, e.data)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.error(
                "Error processing SSE message",
                session_id=session.id,
                method=message.method,
                error=str(e),
            )
            return jsonrpc_error(
                message.id, JsonRpcErrorCode.INTERNAL_ERROR, "Internal error", str(e) or repr(e)
            )

        return jsonrpc_result(message.id, _to_jsonable(result))

    async def _handle_initialize(self, session: Session, message: JsonRpcRequest) -> Any:
        return {
            "protocolVersion": self.protocol_version,
            "capabilities": {
                "tools": {},
                "resources": {},
                "prompts": {},
            },
            "serverInfo": {
                "name": self.server_name,
                "version": self.server_version,
            },
        }

    async def _handle_tools_list(self, session: Session, message: JsonRpcRequest) -> Any:
        return {"tools": self.list_tools()}

    async def _handle_tools_call(self, session: Session, message: JsonRpcRequest) -> Any:
        try:
            params = ToolCallParams.model_validate(message.params or {})
        except ValidationError as e:
            raise JsonRpcProtocolError(
                JsonRpcErrorCode.INVALID_PARAMS,
                "Invalid params",
                e.errors(include_url=False, include_context=False, include_input=False),
            )

        context = session.tool_context
        if getattr(context, "reentrant", False):
            return await context.execute(params.name, params.arguments)

        async with session.lock:
            return await context.execute(params.name, params.arguments)

    async def _handle_ping(self, session: Session, message: JsonRpcRequest) -> Any:
        return {}
