"""Core job engine components."""

from flowbuild.core.graph import Flow, Vertex, Edge, FlowGraph
from flowbuild.core.scheduler import topological_sort
from flowbuild.core.events import EventType, JobEvent, EventBus, EventReader
from flowbuild.core.job import Job, JobStatus, JobSnapshot
from flowbuild.core.executor import JobExecutor
from flowbuild.core.registry import JobRegistry

__all__ = [
    "Flow",
    "Vertex",
    "Edge",
    "FlowGraph",
    "topological_sort",
    "EventType",
    "JobEvent",
    "EventBus",
    "EventReader",
    "Job",
    "JobStatus",
    "JobSnapshot",
    "JobExecutor",
    "JobRegistry",
]
