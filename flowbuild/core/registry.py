"""In-memory job tracking.

The registry is the one structure shared by every actor in the engine:
submissions add jobs, callers look them up and request cancellation, and
the eviction sweep removes finished jobs. All of it goes through one lock.
"""

from typing import Dict, List
import asyncio
import logging
import time
import uuid

from flowbuild.core.events import EventBus
from flowbuild.core.graph import Flow, FlowGraph
from flowbuild.core.job import Job
from flowbuild.utils.errors import JobNotFoundError

logger = logging.getLogger(__name__)


class JobRegistry:
    """Process-wide table of live and recently finished jobs.

    Finished jobs stay available for ``retention_seconds`` so slow or late
    consumers can still replay their event stream and poll their status.
    Eviction only removes the ability to start new reads: a reader that
    is already attached holds its own reference to the job's bus.
    """

    def __init__(self, retention_seconds: float = 300.0, buffer_size: int = 64):
        """Initialize registry.

        Args:
            retention_seconds: How long finished jobs remain retrievable
            buffer_size: Event bus lag limit for jobs created here
        """
        if retention_seconds < 0:
            raise ValueError("retention_seconds must not be negative")
        self.retention_seconds = retention_seconds
        self.buffer_size = buffer_size
        self._jobs: Dict[str, Job] = {}
        self._lock = asyncio.Lock()

    async def create(self, flow: Flow, graph: FlowGraph, order: List[str]) -> Job:
        """Register a new PENDING job.

        Args:
            flow: Private flow copy owned by the job
            graph: Validated graph built from ``flow``
            order: Execution order from the scheduler

        Returns:
            The new job
        """
        async with self._lock:
            job_id = str(uuid.uuid4())
            while job_id in self._jobs:
                job_id = str(uuid.uuid4())

            job = Job(
                id=job_id,
                flow=flow,
                graph=graph,
                order=list(order),
                bus=EventBus(job_id, buffer_size=self.buffer_size),
            )
            self._jobs[job_id] = job

        logger.info("Job %s created for flow %s", job_id, flow.id)
        return job

    async def get(self, job_id: str) -> Job:
        """Look up a job.

        Raises:
            JobNotFoundError: If the job is unknown or was evicted
        """
        async with self._lock:
            job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    async def request_cancel(self, job_id: str) -> bool:
        """Ask a job to stop at its next vertex boundary.

        Idempotent: a job that is already cancelling or finished is left
        untouched.

        Returns:
            True if this call moved the job to CANCELLING

        Raises:
            JobNotFoundError: If the job is unknown
        """
        async with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise JobNotFoundError(job_id)
            changed = job.request_cancel()

        if changed:
            await job.bus.lift_backpressure()
            logger.info("Job %s cancellation requested", job_id)
        return changed

    async def evict_expired(self) -> List[str]:
        """Remove finished jobs past their retention window.

        A job is evicted only once it is terminal, its retention window has
        elapsed, and no reader is still attached to its event bus.

        Returns:
            IDs of evicted jobs
        """
        now = time.monotonic()
        async with self._lock:
            expired = [
                job_id
                for job_id, job in self._jobs.items()
                if job.is_terminal
                and job.finished_monotonic is not None
                and now - job.finished_monotonic >= self.retention_seconds
                and job.bus.reader_count == 0
            ]
            for job_id in expired:
                del self._jobs[job_id]

        if expired:
            logger.info("Evicted %d finished job(s)", len(expired))
        return expired

    async def list_jobs(self) -> List[Job]:
        """Return every registered job, oldest first."""
        async with self._lock:
            return list(self._jobs.values())

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._jobs

    def __repr__(self) -> str:
        return f"JobRegistry(jobs={len(self._jobs)}, retention={self.retention_seconds}s)"
