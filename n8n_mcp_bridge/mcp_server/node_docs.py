"""
Node Documentation Store
========================

In-memory documentation for core n8n nodes, backing the documentation tools.
"""

from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NodeProperty(BaseModel):
    """One configurable parameter of a node."""

    name: str = Field(..., description="Parameter name")
    display_name: str = Field(..., alias="displayName", description="Label shown in the editor")
    type: str = Field(..., description="Parameter type")
    required: bool = Field(default=False, description="Whether the parameter is required")
    default: Optional[Any] = Field(default=None, description="Default value")
    description: Optional[str] = Field(default=None, description="Parameter help text")

    model_config = ConfigDict(populate_by_name=True)


class NodeDocumentation(BaseModel):
    """Documentation for a single n8n node type."""

    node_type: str = Field(..., alias="nodeType", description="Full node type")
    display_name: str = Field(..., alias="displayName", description="Display name")
    package: str = Field(default="n8n-nodes-base", description="Package providing the node")
    category: str = Field(..., description="Node category")
    description: str = Field(..., description="What the node does")
    is_trigger: bool = Field(default=False, alias="isTrigger", description="Starts workflows")
    properties: List[NodeProperty] = Field(default_factory=list, description="Node parameters")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def short_name(self) -> str:
        return self.node_type.rsplit(".", 1)[-1]

    def summary(self) -> Dict[str, Any]:
        return {
            "nodeType": self.node_type,
            "displayName": self.display_name,
            "package": self.package,
            "category": self.category,
            "description": self.description,
            "isTrigger": self.is_trigger,
        }


CORE_NODES: List[NodeDocumentation] = [
    NodeDocumentation(
        node_type="n8n-nodes-base.webhook",
        display_name="Webhook",
        category="trigger",
        is_trigger=True,
        description="Starts the workflow when an HTTP request is received on a generated URL",
        properties=[
            NodeProperty(
                name="httpMethod", display_name="HTTP Method", type="options", default="GET"
            ),
            NodeProperty(name="path", display_name="Path", type="string", required=True),
            NodeProperty(
                name="responseMode",
                display_name="Respond",
                type="options",
                default="onReceived",
                description="When and how to respond to the webhook call",
            ),
        ],
    ),
    NodeDocumentation(
        node_type="n8n-nodes-base.scheduleTrigger",
        display_name="Schedule Trigger",
        category="trigger",
        is_trigger=True,
        description="Starts the workflow on a fixed interval or cron expression",
        properties=[
            NodeProperty(name="rule", display_name="Trigger Rules", type="fixedCollection"),
        ],
    ),
    NodeDocumentation(
        node_type="n8n-nodes-base.httpRequest",
        display_name="HTTP Request",
        category="output",
        description="Makes an HTTP request and returns the response data",
        properties=[
            NodeProperty(name="method", display_name="Method", type="options", default="GET"),
            NodeProperty(name="url", display_name="URL", type="string", required=True),
            NodeProperty(
                name="authentication",
                display_name="Authentication",
                type="options",
                default="none",
            ),
            NodeProperty(name="sendBody", display_name="Send Body", type="boolean", default=False),
        ],
    ),
    NodeDocumentation(
        node_type="n8n-nodes-base.set",
        display_name="Edit Fields (Set)",
        category="transform",
        description="Adds, changes or removes fields on incoming items",
        properties=[
            NodeProperty(name="mode", display_name="Mode", type="options", default="manual"),
            NodeProperty(
                name="assignments", display_name="Fields to Set", type="assignmentCollection"
            ),
        ],
    ),
    NodeDocumentation(
        node_type="n8n-nodes-base.if",
        display_name="If",
        category="transform",
        description="Routes items to a true or false branch based on conditions",
        properties=[
            NodeProperty(
                name="conditions", display_name="Conditions", type="filter", required=True
            ),
        ],
    ),
    NodeDocumentation(
        node_type="n8n-nodes-base.merge",
        display_name="Merge",
        category="transform",
        description="Combines data from two inputs by appending, matching or position",
        properties=[
            NodeProperty(name="mode", display_name="Mode", type="options", default="append"),
        ],
    ),
    NodeDocumentation(
        node_type="n8n-nodes-base.code",
        display_name="Code",
        category="transform",
        description="Runs custom JavaScript or Python code over the incoming items",
        properties=[
            NodeProperty(
                name="language", display_name="Language", type="options", default="javaScript"
            ),
            NodeProperty(name="jsCode", display_name="JavaScript", type="string"),
        ],
    ),
    NodeDocumentation(
        node_type="n8n-nodes-base.slack",
        display_name="Slack",
        category="output",
        description="Sends messages and manages channels in Slack",
        properties=[
            NodeProperty(
                name="resource", display_name="Resource", type="options", default="message"
            ),
            NodeProperty(
                name="operation", display_name="Operation", type="options", default="post"
            ),
        ],
    ),
]


class NodeDocumentationStore:
    """Lookup, listing and keyword search over node documentation."""

    def __init__(self, nodes: Optional[Iterable[NodeDocumentation]] = None) -> None:
        self._nodes: Dict[str, NodeDocumentation] = {
            node.node_type: node for node in (CORE_NODES if nodes is None else nodes)
        }

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, node_type: str) -> Optional[NodeDocumentation]:
        """Find a node by full type, short name (``httpRequest``) or ``nodes-base.`` prefix."""
        if node_type in self._nodes:
            return self._nodes[node_type]
        wanted = node_type.rsplit(".", 1)[-1].lower()
        for node in self._nodes.values():
            if node.short_name.lower() == wanted:
                return node
        return None

    def list(
        self,
        category: Optional[str] = None,
        package: Optional[str] = None,
        limit: int = 50,
    ) -> List[NodeDocumentation]:
        nodes = [
            node
            for node in self._nodes.values()
            if (category is None or node.category == category)
            and (package is None or node.package == package)
        ]
        return nodes[: max(limit, 0)]

    def search(self, query: str, limit: int = 20) -> List[NodeDocumentation]:
        """Rank nodes by how many query words hit their name, display name or description."""
        words = [word for word in query.lower().split() if word]
        if not words:
            return []

        scored = []
        for node in self._nodes.values():
            haystack = " ".join(
                [node.node_type, node.display_name, node.description]
            ).lower()
            score = sum(1 for word in words if word in haystack)
            if score:
                scored.append((score, node.display_name, node))

        scored.sort(key=lambda item: (-item[0], item[1]))
        return [node for _, _, node in scored[: max(limit, 0)]]
