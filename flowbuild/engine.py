"""Engine facade: the operations exposed to an API layer.

FlowEngine wires the graph model, scheduler, job registry, executor and
event buses together behind four calls: submit, subscribe, cancel and
status.
"""

from typing import Any, Dict, List, Optional, Union
import asyncio
import logging

from flowbuild.backends.base import JobArchive
from flowbuild.backends.sqlite import SQLiteArchive
from flowbuild.core.events import EventReader
from flowbuild.core.executor import JobExecutor
from flowbuild.core.graph import Flow, FlowGraph, coerce_flow
from flowbuild.core.job import Job, JobSnapshot, JobStatus
from flowbuild.core.registry import JobRegistry
from flowbuild.core.scheduler import topological_sort
from flowbuild.utils.config import EngineConfig
from flowbuild.utils.errors import GraphValidationError
from flowbuild.utils.registry import VertexRegistry

logger = logging.getLogger(__name__)


class FlowEngine:
    """Accepts flows, runs them as background jobs and streams their events.

    Each submitted flow becomes a Job executed on its own asyncio task.
    Validation problems are raised from submit(); anything that goes wrong
    while the job runs is reported only through its event stream.

    Example:
        >>> registry = VertexRegistry()
        >>> registry.register("double", lambda inputs: sum(inputs.values()) * 2)
        >>>
        >>> async with FlowEngine(registry) as engine:
        ...     job_id = await engine.submit(flow)
        ...     async with await engine.subscribe(job_id) as events:
        ...         async for event in events:
        ...             print(event.to_json())
    """

    def __init__(
        self,
        registry: Optional[VertexRegistry] = None,
        config: Optional[EngineConfig] = None,
        archive: Optional[JobArchive] = None,
    ):
        """Initialize engine.

        Args:
            registry: VertexRegistry resolving vertex type tags
            config: Engine tunables (defaults to EngineConfig())
            archive: Optional archive for finished jobs; when omitted and
                ``config.archive_path`` is set, a SQLiteArchive is used
        """
        self.config = config or EngineConfig()
        self.vertices = registry or VertexRegistry()
        if archive is None and self.config.archive_path:
            archive = SQLiteArchive(self.config.archive_path)
        self.archive = archive
        self.jobs = JobRegistry(
            retention_seconds=self.config.retention_seconds,
            buffer_size=self.config.event_buffer_size,
        )
        self.executor = JobExecutor(self.vertices)
        self._tasks: Dict[str, asyncio.Task] = {}
        self._reaper: Optional[asyncio.Task] = None

    async def submit(self, flow: Union[Flow, Dict[str, Any]]) -> str:
        """Validate a flow and start executing it.

        Args:
            flow: Flow or a dictionary matching the Flow schema

        Returns:
            ID of the new job

        Raises:
            GraphValidationError: If the flow is malformed, cyclic or uses
                an unregistered vertex type. No job is created.
        """
        flow = coerce_flow(flow).model_copy(deep=True)
        graph = FlowGraph.from_flow(flow)

        missing = self.vertices.missing(graph.vertex_types())
        if missing:
            raise GraphValidationError(
                f"Flow '{flow.id}' uses unregistered vertex type(s): {', '.join(missing)}"
            )

        order = topological_sort(graph)
        job = await self.jobs.create(flow, graph, order)

        task = asyncio.create_task(self._run(job), name=f"flowbuild-job-{job.id}")
        self._tasks[job.id] = task
        task.add_done_callback(lambda _, job_id=job.id: self._tasks.pop(job_id, None))
        return job.id

    async def subscribe(self, job_id: str, from_seq: int = 0) -> EventReader:
        """Open a reader over a job's events, starting at ``from_seq``.

        Close the reader, or use it as an async context manager, when
        abandoning it before the ``end`` event.

        Raises:
            JobNotFoundError: If the job is unknown or was evicted
        """
        job = await self.jobs.get(job_id)
        return job.bus.subscribe(from_seq)

    async def cancel(self, job_id: str) -> bool:
        """Request cancellation. Always acknowledges for known jobs.

        The effect shows up on the event stream: the job stops before its
        next vertex and ends with a cancelled ``end`` event.

        Raises:
            JobNotFoundError: If the job is unknown
        """
        await self.jobs.request_cancel(job_id)
        return True

    async def status(self, job_id: str) -> JobStatus:
        """Current status of a job.

        Raises:
            JobNotFoundError: If the job is unknown
        """
        job = await self.jobs.get(job_id)
        return job.status

    async def snapshot(self, job_id: str) -> JobSnapshot:
        """Point-in-time view of a job."""
        job = await self.jobs.get(job_id)
        return job.snapshot()

    async def list_jobs(self) -> List[JobSnapshot]:
        """Snapshots of every registered job."""
        return [job.snapshot() for job in await self.jobs.list_jobs()]

    async def wait(self, job_id: str) -> JobStatus:
        """Wait until a job reaches a terminal status.

        Cancelling the waiter does not cancel the job.
        """
        job = await self.jobs.get(job_id)
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.wait({task})
        return job.status

    async def history(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Archived record of a finished job, or None."""
        if self.archive is None:
            return None
        return await self.archive.load(job_id)

    async def evict_expired(self) -> List[str]:
        """Run one eviction sweep now."""
        return await self.jobs.evict_expired()

    async def start(self) -> None:
        """Start the periodic eviction sweep."""
        if self._reaper is None:
            self._reaper = asyncio.create_task(
                self._evict_periodically(), name="flowbuild-eviction"
            )

    async def shutdown(self) -> None:
        """Stop the eviction sweep, cancel running jobs and wait for them.

        Jobs cancelled this way still end with a cancelled ``end`` event.
        """
        if self._reaper is not None:
            self._reaper.cancel()
            await asyncio.gather(self._reaper, return_exceptions=True)
            self._reaper = None

        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            logger.info("Shutting down with %d running job(s)", len(tasks))
            await asyncio.gather(*tasks, return_exceptions=True)

        # Tasks cancelled before their first step never ran the executor
        for job in await self.jobs.list_jobs():
            if not job.is_terminal:
                await self.executor.abandon(job)
                await self._archive(job)

    async def __aenter__(self) -> "FlowEngine":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()

    async def _run(self, job: Job) -> None:
        try:
            await self.executor.run(job)
        finally:
            await self._archive(job)

    async def _archive(self, job: Job) -> None:
        if self.archive is None or not job.is_terminal:
            return
        try:
            await self.archive.save(job.to_record())
        except Exception:
            logger.exception("Failed to archive job %s", job.id)

    async def _evict_periodically(self) -> None:
        while True:
            await asyncio.sleep(self.config.eviction_interval)
            try:
                await self.jobs.evict_expired()
            except Exception:
                logger.exception("Job eviction sweep failed")

    def __repr__(self) -> str:
        return f"FlowEngine(jobs={len(self.jobs)}, running={len(self._tasks)})"
