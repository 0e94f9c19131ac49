"""Custom error classes for flowbuild."""

from typing import List, Optional


class FlowBuildError(Exception):
    """Base exception for all flowbuild errors."""

    pass


class GraphValidationError(FlowBuildError):
    """Raised when a flow cannot be turned into a valid graph."""

    pass


class CycleDetectedError(GraphValidationError):
    """Raised when a cycle is detected in the graph."""

    def __init__(self, message: str, cycle: Optional[List[str]] = None):
        self.cycle = cycle or []
        super().__init__(message)


class InvalidVertexTypeError(FlowBuildError):
    """Raised when a vertex type tag has no registered implementation."""

    pass


class JobNotFoundError(FlowBuildError):
    """Raised when a job id is unknown to the registry."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job '{job_id}' not found")


class VertexExecutionError(FlowBuildError):
    """Raised when a vertex's executable unit fails."""

    def __init__(self, vertex_id: str, message: str, original_error: Exception = None):
        self.vertex_id = vertex_id
        self.original_error = original_error
        super().__init__(f"Vertex '{vertex_id}' execution failed: {message}")


class CancellationError(FlowBuildError):
    """Raised when honoring a cancellation request itself fails."""

    def __init__(self, job_id: str, failures: List[str]):
        self.job_id = job_id
        self.failures = failures
        super().__init__(
            f"Cancellation of job '{job_id}' failed: {'; '.join(failures)}"
        )


class EventBusClosedError(FlowBuildError):
    """Raised when emitting into a bus that already carried its end event."""

    pass
