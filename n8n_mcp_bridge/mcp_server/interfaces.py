"""
Tool Capability Interfaces
==========================

Contracts between the SSE bridge and the tool implementations it serves.
"""

from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable


ToolDescriptor = Dict[str, Any]


class ToolError(Exception):
    """Raised by a tool context when a tool cannot be executed."""

    def __init__(self, message: str, tool_name: Optional[str] = None):
        super().__init__(message)
        self.tool_name = tool_name


@runtime_checkable
class ToolContext(Protocol):
    """Per-session tool execution context."""

    # False when execute() must not run concurrently on the same context.
    reentrant: bool

    async def execute(self, name: str, arguments: Mapping[str, Any]) -> Any: ...

    async def close(self) -> None: ...


class ToolExecutionCapability(Protocol):
    """Factory for isolated tool contexts, one per session."""

    def create(self) -> ToolContext: ...


class ToolCatalogProvider(Protocol):
    """Source of the advertised tool descriptors."""

    def list_base_tools(self) -> List[ToolDescriptor]: ...

    def list_management_tools(self) -> List[ToolDescriptor]: ...

    def is_management_api_configured(self) -> bool: ...
