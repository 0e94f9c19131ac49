"""Job records: one asynchronous execution of a flow.

A Job carries everything its executor needs at runtime: the private flow
copy, the validated graph and its execution order, the results table and
the job's event bus.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
import time

from flowbuild.core.events import EventBus
from flowbuild.core.graph import Flow, FlowGraph


class JobStatus(str, Enum):
    """Lifecycle states of a job."""

    PENDING = "pending"
    RUNNING = "running"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    ERRORED = "errored"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.CANCELLED, JobStatus.COMPLETED, JobStatus.ERRORED)


@dataclass
class JobSnapshot:
    """Point-in-time, read-only view of a job for polling callers."""

    job_id: str
    flow_id: str
    status: JobStatus
    order: List[str]
    completed_vertices: List[str]
    error: Optional[str]
    created_at: datetime
    started_at: Optional[datetime]
    finished_at: Optional[datetime]
    event_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "flow_id": self.flow_id,
            "status": self.status.value,
            "order": list(self.order),
            "completed_vertices": list(self.completed_vertices),
            "error": self.error,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "event_count": self.event_count,
        }


@dataclass
class Job:
    """A single execution instance of a flow.

    Status, results and the event bus are written only by the job's
    executor. The one outside write is request_cancel(), which the
    registry uses to move a live job to CANCELLING.

    Attributes:
        id: Globally unique job identifier
        flow: Private copy of the submitted flow
        graph: Validated graph built from the flow
        order: Execution order computed by the scheduler
        bus: Event bus owned by this job
        status: Current lifecycle state
        results: Vertex ID to output, for vertices that succeeded
        error: Failure detail once the job errored or cancellation failed
    """

    id: str
    flow: Flow
    graph: FlowGraph
    order: List[str]
    bus: EventBus
    status: JobStatus = JobStatus.PENDING
    results: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    finished_monotonic: Optional[float] = field(default=None, repr=False)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def cancel_requested(self) -> bool:
        return self.status == JobStatus.CANCELLING

    def request_cancel(self) -> bool:
        """Mark a live job as CANCELLING.

        Returns:
            True if this call changed the status, False if the job was
            already cancelling or finished
        """
        if self.status in (JobStatus.PENDING, JobStatus.RUNNING):
            self.status = JobStatus.CANCELLING
            return True
        return False

    def mark_running(self) -> None:
        """Enter RUNNING unless a cancellation arrived while pending."""
        self.started_at = datetime.now()
        if self.status == JobStatus.PENDING:
            self.status = JobStatus.RUNNING

    def finish(self, status: JobStatus, error: Optional[str] = None) -> None:
        """Record the terminal status."""
        if not status.is_terminal:
            raise ValueError(f"{status.value} is not a terminal status")
        self.status = status
        self.error = error
        self.finished_at = datetime.now()
        self.finished_monotonic = time.monotonic()

    def inputs_for(self, vertex_id: str) -> Dict[str, Any]:
        """Collect outputs of a vertex's dependencies, keyed by dependency ID."""
        return {
            parent_id: self.results[parent_id]
            for parent_id in sorted(self.graph.get_parents(vertex_id))
            if parent_id in self.results
        }

    def snapshot(self) -> JobSnapshot:
        return JobSnapshot(
            job_id=self.id,
            flow_id=self.flow.id,
            status=self.status,
            order=list(self.order),
            completed_vertices=[v for v in self.order if v in self.results],
            error=self.error,
            created_at=self.created_at,
            started_at=self.started_at,
            finished_at=self.finished_at,
            event_count=len(self.bus),
        )

    def to_record(self) -> Dict[str, Any]:
        """Serializable summary of the job, used by job archives."""
        record = self.snapshot().to_dict()
        record["results"] = dict(self.results)
        record["events"] = [event.to_dict() for event in self.bus.history]
        return record
