"""Shared helpers for flowbuild tests."""

from typing import List

from flowbuild import Flow, FlowBuilder, FlowEngine, StreamIterator


def chain_flow(vertex_ids: List[str], vertex_type: str = "constant", flow_id: str = "chain") -> Flow:
    """Build a linear flow where each vertex depends on the previous one."""
    builder = FlowBuilder(flow_id)
    for vertex_id in vertex_ids:
        builder.add_vertex(vertex_id, vertex_type, {"value": vertex_id.lower()})
    if len(vertex_ids) > 1:
        builder.add_sequence(vertex_ids)
    return builder.build()


def summarize(events) -> List[tuple]:
    """Reduce events to (type, vertex_id or status) tuples for comparisons."""
    summary = []
    for event in events:
        event_type = event.type.value
        if event_type == "vertices_sorted":
            summary.append((event_type, tuple(event.payload)))
        elif event_type == "end":
            summary.append((event_type, event.payload["status"]))
        else:
            summary.append((event_type, event.payload["id"]))
    return summary


async def collect(engine: FlowEngine, job_id: str) -> list:
    """Read a job's full event stream."""
    return await StreamIterator(engine, job_id).collect()
