"""Deterministic topological ordering of a flow graph."""

import heapq
from typing import Dict, List, Tuple

from flowbuild.core.graph import FlowGraph
from flowbuild.utils.errors import CycleDetectedError


def topological_sort(graph: FlowGraph) -> List[str]:
    """Compute the execution order for a graph.

    Kahn's algorithm with a min-heap keyed on each vertex's position in the
    flow definition: whenever several vertices are ready at once, the one
    defined first runs first. The same flow therefore always yields the
    same order.

    Args:
        graph: Validated FlowGraph

    Returns:
        Vertex IDs such that every edge source precedes its target

    Raises:
        CycleDetectedError: If some vertices can never become ready
    """
    position: Dict[str, int] = {
        vertex_id: index for index, vertex_id in enumerate(graph.vertex_ids)
    }
    in_degree: Dict[str, int] = {
        vertex_id: len(graph.get_parents(vertex_id)) for vertex_id in graph.vertex_ids
    }

    ready: List[Tuple[int, str]] = [
        (position[vertex_id], vertex_id)
        for vertex_id, degree in in_degree.items()
        if degree == 0
    ]
    heapq.heapify(ready)

    order: List[str] = []
    while ready:
        _, vertex_id = heapq.heappop(ready)
        order.append(vertex_id)

        for child_id in graph.get_children(vertex_id):
            in_degree[child_id] -= 1
            if in_degree[child_id] == 0:
                heapq.heappush(ready, (position[child_id], child_id))

    if len(order) != len(graph.vertex_ids):
        unresolved = [v for v in graph.vertex_ids if in_degree[v] > 0]
        raise CycleDetectedError(
            f"Cannot schedule vertices caught in a cycle: {', '.join(unresolved)}",
            cycle=unresolved,
        )

    return order
