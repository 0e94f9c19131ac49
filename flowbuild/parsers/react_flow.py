"""React Flow JSON parser.

Flow editors built on React Flow save their canvas as ``nodes`` and
``edges`` lists. This module turns that document into a Flow definition.
"""

import json
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from flowbuild.core.graph import Edge, Flow, FlowGraph, Vertex
from flowbuild.utils.errors import GraphValidationError


class ReactFlowNode(BaseModel):
    """Schema for a node in React Flow JSON."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    position: Optional[Dict[str, float]] = None
    parent_node: Optional[str] = Field(None, alias="parentNode")


class ReactFlowEdge(BaseModel):
    """Schema for an edge in React Flow JSON."""

    model_config = ConfigDict(populate_by_name=True)

    source: str
    target: str
    source_handle: Optional[str] = Field(None, alias="sourceHandle")
    target_handle: Optional[str] = Field(None, alias="targetHandle")


class ReactFlowJSON(BaseModel):
    """Schema for a React Flow document."""

    nodes: List[ReactFlowNode]
    edges: List[ReactFlowEdge] = Field(default_factory=list)
    viewport: Optional[Dict[str, float]] = None


class ReactFlowParser:
    """Parse React Flow JSON into a Flow.

    A node's vertex type comes from ``data.type``, then ``data.name``, then
    the node's own ``type``; ``type_map`` can rename editor types to
    registered type tags. Its config comes from ``data.node`` when that is
    a dictionary, otherwise from ``data.inputs``.

    Example:
        >>> parser = ReactFlowParser(type_map={"httpRequest": "fetch"})
        >>> flow = parser.parse(flow_json)
    """

    def __init__(self, type_map: Optional[Dict[str, str]] = None):
        """Initialize parser.

        Args:
            type_map: Optional mapping of editor node types to type tags
        """
        self.type_map = dict(type_map or {})

    def parse(self, json_data: Union[str, Dict[str, Any]], flow_id: Optional[str] = None) -> Flow:
        """Parse a React Flow document.

        Accepts the document itself, a ``{"data": {...}}`` wrapper as saved
        by some editors, or the JSON text of either.

        Args:
            json_data: React Flow document
            flow_id: Flow identifier; defaults to the document's ``id``

        Returns:
            Validated Flow

        Raises:
            GraphValidationError: If the document is not valid React Flow
                JSON or the resulting graph is invalid
        """
        if isinstance(json_data, str):
            try:
                json_data = json.loads(json_data)
            except json.JSONDecodeError as e:
                raise GraphValidationError(f"Invalid React Flow JSON: {e}") from e

        if not isinstance(json_data, dict):
            raise GraphValidationError("React Flow JSON must be an object")

        document = json_data
        if "nodes" not in document and isinstance(document.get("data"), dict):
            document = document["data"]

        try:
            flow_data = ReactFlowJSON(**document)
        except ValidationError as e:
            raise GraphValidationError(f"Invalid React Flow JSON: {e}") from e

        vertices = [self._to_vertex(node) for node in flow_data.nodes]
        edges = [Edge(source=edge.source, target=edge.target) for edge in flow_data.edges]

        flow_kwargs: Dict[str, Any] = {"vertices": vertices, "edges": edges}
        resolved_id = flow_id or json_data.get("id")
        if resolved_id:
            flow_kwargs["id"] = str(resolved_id)
        flow = Flow(**flow_kwargs)

        FlowGraph.from_flow(flow)
        return flow

    def _to_vertex(self, node: ReactFlowNode) -> Vertex:
        data = node.data
        editor_type = data.get("type") or data.get("name") or node.type
        if not editor_type:
            raise GraphValidationError(f"Node '{node.id}' has no type")
        if not isinstance(editor_type, str):
            raise GraphValidationError(
                f"Node '{node.id}' type must be a string, got {type(editor_type).__name__}"
            )

        node_config = data.get("node")
        if not isinstance(node_config, dict):
            node_config = data.get("inputs") or {}
        if not isinstance(node_config, dict):
            raise GraphValidationError(
                f"Node '{node.id}' inputs must be an object, got {type(node_config).__name__}"
            )

        try:
            return Vertex(
                id=node.id,
                type=self.type_map.get(editor_type, editor_type),
                config=dict(node_config),
            )
        except ValidationError as e:
            raise GraphValidationError(f"Invalid node '{node.id}': {e}") from e
