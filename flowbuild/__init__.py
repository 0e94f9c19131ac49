"""
flowbuild: Asynchronous flow-build job engine

Accepts a directed acyclic graph of vertices, runs it as a background,
cancellable job and streams progress to any number of readers as an
ordered sequence of events.

Example:
    >>> from flowbuild import FlowEngine, FlowBuilder, VertexRegistry
    >>>
    >>> registry = VertexRegistry()
    >>> registry.register("add_one", lambda inputs: sum(inputs.values()) + 1)
    >>>
    >>> flow = (
    ...     FlowBuilder()
    ...     .add_vertex("A", "constant", {"value": 1})
    ...     .add_vertex("B", "add_one")
    ...     .add_edge("A", "B")
    ...     .build()
    ... )
    >>>
    >>> async with FlowEngine(registry) as engine:
    ...     job_id = await engine.submit(flow)
    ...     async with await engine.subscribe(job_id) as events:
    ...         async for event in events:
    ...             print(event.to_json())
"""

__version__ = "0.1.0"

# Core components
from flowbuild.core.graph import Flow, Vertex, Edge, FlowGraph
from flowbuild.core.scheduler import topological_sort
from flowbuild.core.events import EventType, JobEvent, EventBus, EventReader
from flowbuild.core.job import Job, JobStatus, JobSnapshot
from flowbuild.core.executor import JobExecutor
from flowbuild.core.registry import JobRegistry

# Engine
from flowbuild.engine import FlowEngine

# Builders
from flowbuild.builders.flow_builder import FlowBuilder

# Vertex registry and capabilities
from flowbuild.utils.registry import VertexRegistry
from flowbuild.vertices import VertexExecutor, FunctionVertex

# Configuration
from flowbuild.utils.config import EngineConfig, load_env

# Errors
from flowbuild.utils.errors import (
    FlowBuildError,
    GraphValidationError,
    CycleDetectedError,
    InvalidVertexTypeError,
    JobNotFoundError,
    VertexExecutionError,
    CancellationError,
)

# Archives
from flowbuild.backends.base import JobArchive
from flowbuild.backends.memory import MemoryArchive
from flowbuild.backends.sqlite import SQLiteArchive

# Parsers
from flowbuild.parsers.react_flow import ReactFlowParser

# Streaming
from flowbuild.streaming.iterator import StreamIterator
from flowbuild.streaming.ndjson import NDJSONAdapter
from flowbuild.streaming.sse import SSEAdapter

__all__ = [
    # Version
    "__version__",
    # Core
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
    # Engine
    "FlowEngine",
    # Builders
    "FlowBuilder",
    # Vertices
    "VertexRegistry",
    "VertexExecutor",
    "FunctionVertex",
    # Configuration
    "EngineConfig",
    "load_env",
    # Errors
    "FlowBuildError",
    "GraphValidationError",
    "CycleDetectedError",
    "InvalidVertexTypeError",
    "JobNotFoundError",
    "VertexExecutionError",
    "CancellationError",
    # Archives
    "JobArchive",
    "MemoryArchive",
    "SQLiteArchive",
    # Parsers
    "ReactFlowParser",
    # Streaming
    "StreamIterator",
    "NDJSONAdapter",
    "SSEAdapter",
]
