"""Utility functions and helpers."""

from flowbuild.utils.registry import VertexRegistry
from flowbuild.utils.config import EngineConfig, load_env, get_config
from flowbuild.utils.errors import (
    FlowBuildError,
    GraphValidationError,
    CycleDetectedError,
    InvalidVertexTypeError,
    JobNotFoundError,
    VertexExecutionError,
    CancellationError,
    EventBusClosedError,
)

__all__ = [
    "VertexRegistry",
    "EngineConfig",
    "load_env",
    "get_config",
    "FlowBuildError",
    "GraphValidationError",
    "CycleDetectedError",
    "InvalidVertexTypeError",
    "JobNotFoundError",
    "VertexExecutionError",
    "CancellationError",
    "EventBusClosedError",
]
