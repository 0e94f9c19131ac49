"""Core graph data structures for flowbuild.

This module implements the flow definition models (vertices and edges as
submitted by a caller) and the validated adjacency representation that the
scheduler and executor work from.
"""

from dataclasses import dataclass
from typing import Dict, List, Set, Any
import uuid

from pydantic import BaseModel, Field

from flowbuild.utils.errors import GraphValidationError, CycleDetectedError


class Edge(BaseModel):
    """Represents a directed dependency between two vertices.

    The target vertex depends on the source vertex: the source must finish
    before the target starts, and the source's output becomes one of the
    target's inputs.
    """

    source: str
    target: str

    def __hash__(self):
        return hash((self.source, self.target))


class Vertex(BaseModel):
    """A single unit of work in a flow.

    Attributes:
        id: Identifier, unique within its flow
        type: Tag naming the executable unit registered for this vertex
        config: Opaque configuration handed to the executable unit
    """

    id: str
    type: str
    config: Dict[str, Any] = Field(default_factory=dict)


class Flow(BaseModel):
    """A flow definition: ordered vertices plus the edges between them.

    Vertex order matters: it is the tie-break used by the scheduler, so the
    same flow always produces the same execution order.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    vertices: List[Vertex] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)

    def vertex_ids(self) -> List[str]:
        """Return vertex ids in definition order."""
        return [vertex.id for vertex in self.vertices]


@dataclass
class FlowGraph:
    """Validated, immutable adjacency view of a flow.

    Attributes:
        flow_id: ID of the flow this graph was built from
        vertices: Mapping of vertex IDs to Vertex definitions (definition order)
        vertex_ids: Vertex IDs in definition order
        edges: De-duplicated list of edges
        dependencies: Reverse adjacency, vertex ID to the IDs it depends on
        children: Forward adjacency, vertex ID to its dependents
        starting_vertices: Vertex IDs with no dependencies
        ending_vertices: Vertex IDs with no dependents
    """

    flow_id: str
    vertices: Dict[str, Vertex]
    vertex_ids: List[str]
    edges: List[Edge]
    dependencies: Dict[str, Set[str]]
    children: Dict[str, List[str]]
    starting_vertices: List[str]
    ending_vertices: List[str]

    @classmethod
    def from_flow(cls, flow: Flow) -> "FlowGraph":
        """Factory method to construct a FlowGraph from a flow definition.

        Args:
            flow: Flow definition to validate and index

        Returns:
            FlowGraph with computed adjacency

        Raises:
            GraphValidationError: If a vertex id is duplicated or an edge
                references an unknown vertex
            CycleDetectedError: If the edges form a cycle
        """
        vertices: Dict[str, Vertex] = {}
        for vertex in flow.vertices:
            if vertex.id in vertices:
                raise GraphValidationError(f"Duplicate vertex id: {vertex.id}")
            vertices[vertex.id] = vertex

        dependencies: Dict[str, Set[str]] = {vertex_id: set() for vertex_id in vertices}
        children: Dict[str, List[str]] = {vertex_id: [] for vertex_id in vertices}
        edges: List[Edge] = []
        seen: Set[Edge] = set()

        for edge in flow.edges:
            if edge.source not in vertices:
                raise GraphValidationError(
                    f"Edge references non-existent source vertex: {edge.source}"
                )
            if edge.target not in vertices:
                raise GraphValidationError(
                    f"Edge references non-existent target vertex: {edge.target}"
                )
            if edge in seen:
                continue
            seen.add(edge)
            edges.append(edge)

            dependencies[edge.target].add(edge.source)
            children[edge.source].append(edge.target)

        vertex_ids = list(vertices.keys())
        graph = cls(
            flow_id=flow.id,
            vertices=vertices,
            vertex_ids=vertex_ids,
            edges=edges,
            dependencies=dependencies,
            children=children,
            starting_vertices=[v for v in vertex_ids if not dependencies[v]],
            ending_vertices=[v for v in vertex_ids if not children[v]],
        )
        graph.validate()
        return graph

    def validate(self) -> None:
        """Reject graphs that contain a cycle.

        Uses an iterative depth-first search so deep chains don't hit the
        interpreter's recursion limit.

        Raises:
            CycleDetectedError: If any cycle exists
        """
        # 0 = unvisited, 1 = on the current path, 2 = finished
        color: Dict[str, int] = {vertex_id: 0 for vertex_id in self.vertex_ids}

        for root in self.vertex_ids:
            if color[root]:
                continue

            path: List[str] = [root]
            stack = [(root, iter(self.children[root]))]
            color[root] = 1

            while stack:
                vertex_id, pending = stack[-1]
                child_id = next(pending, None)

                if child_id is None:
                    color[vertex_id] = 2
                    stack.pop()
                    path.pop()
                    continue

                if color[child_id] == 1:
                    cycle = path[path.index(child_id):] + [child_id]
                    raise CycleDetectedError(
                        f"Graph contains a cycle: {' -> '.join(cycle)}",
                        cycle=cycle,
                    )
                if color[child_id] == 0:
                    color[child_id] = 1
                    path.append(child_id)
                    stack.append((child_id, iter(self.children[child_id])))

    def get_vertex(self, vertex_id: str) -> Vertex:
        """Get a vertex by ID.

        Raises:
            KeyError: If vertex does not exist
        """
        return self.vertices[vertex_id]

    def has_vertex(self, vertex_id: str) -> bool:
        """Check if a vertex exists in the graph."""
        return vertex_id in self.vertices

    def get_parents(self, vertex_id: str) -> Set[str]:
        """Get the IDs a vertex depends on."""
        return self.dependencies.get(vertex_id, set())

    def get_children(self, vertex_id: str) -> List[str]:
        """Get the IDs that depend on a vertex."""
        return self.children.get(vertex_id, [])

    def vertex_types(self) -> Set[str]:
        """Return the set of type tags used by this graph."""
        return {vertex.type for vertex in self.vertices.values()}

    def __len__(self) -> int:
        return len(self.vertex_ids)


def coerce_flow(flow: Any) -> Flow:
    """Accept a Flow or a plain mapping and return a Flow.

    Raises:
        GraphValidationError: If the mapping does not match the Flow schema
    """
    if isinstance(flow, Flow):
        return flow
    if not isinstance(flow, dict):
        raise GraphValidationError(
            f"Flow must be a Flow or a dictionary, got {type(flow).__name__}"
        )
    try:
        return Flow.model_validate(flow)
    except ValueError as e:
        raise GraphValidationError(f"Invalid flow definition: {e}") from e
