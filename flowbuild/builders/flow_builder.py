"""Fluent builder for flow definitions.

This module provides a chaining API for building flows programmatically
instead of writing vertex and edge dictionaries by hand.
"""

from typing import Any, Dict, List, Optional

from flowbuild.core.graph import Edge, Flow, FlowGraph, Vertex
from flowbuild.utils.errors import GraphValidationError


class FlowBuilder:
    """Declarative flow builder.

    Example:
        >>> flow = (
        ...     FlowBuilder("etl")
        ...     .add_vertex("extract", "fetch", {"url": "https://example.com"})
        ...     .add_vertex("transform", "clean")
        ...     .add_vertex("load", "store")
        ...     .add_sequence(["extract", "transform", "load"])
        ...     .build()
        ... )
    """

    def __init__(self, flow_id: Optional[str] = None):
        """Initialize empty builder.

        Args:
            flow_id: Optional flow identifier (generated when omitted)
        """
        self._flow_id = flow_id
        self._vertices: List[Vertex] = []
        self._edges: List[Edge] = []

    def add_vertex(
        self,
        vertex_id: str,
        vertex_type: str,
        config: Optional[Dict[str, Any]] = None,
    ) -> "FlowBuilder":
        """Add a vertex.

        Args:
            vertex_id: Unique identifier for the vertex
            vertex_type: Type tag resolved by the VertexRegistry
            config: Configuration handed to the vertex implementation

        Returns:
            Self for method chaining

        Raises:
            GraphValidationError: If the ID is already used
        """
        if any(vertex.id == vertex_id for vertex in self._vertices):
            raise GraphValidationError(f"Vertex '{vertex_id}' already exists")

        self._vertices.append(
            Vertex(id=vertex_id, type=vertex_type, config=dict(config or {}))
        )
        return self

    def add_edge(self, source: str, target: str) -> "FlowBuilder":
        """Make ``target`` depend on ``source``.

        Returns:
            Self for method chaining
        """
        self._edges.append(Edge(source=source, target=target))
        return self

    def add_sequence(self, vertex_ids: List[str]) -> "FlowBuilder":
        """Chain vertices so each depends on the one before it.

        Args:
            vertex_ids: Vertex IDs in execution order

        Returns:
            Self for method chaining
        """
        if len(vertex_ids) < 2:
            raise GraphValidationError("A sequence needs at least two vertices")

        for source, target in zip(vertex_ids, vertex_ids[1:]):
            self.add_edge(source, target)
        return self

    def build(self) -> Flow:
        """Build and validate the flow.

        Returns:
            Flow definition ready to submit

        Raises:
            GraphValidationError: If edges reference unknown vertices or
                form a cycle
        """
        kwargs: Dict[str, Any] = {
            "vertices": list(self._vertices),
            "edges": list(self._edges),
        }
        if self._flow_id is not None:
            kwargs["id"] = self._flow_id
        flow = Flow(**kwargs)

        FlowGraph.from_flow(flow)
        return flow

    def __repr__(self) -> str:
        return f"FlowBuilder(vertices={len(self._vertices)}, edges={len(self._edges)})"
