"""Sequential job executor with streaming events.

This module drives one job through its scheduled vertex order, invokes the
registered executable unit for each vertex, records results and publishes
progress on the job's event bus.
"""

from typing import Any, Dict, Optional
import asyncio
import logging

from flowbuild.core.events import EventType
from flowbuild.core.graph import Vertex
from flowbuild.core.job import Job, JobStatus
from flowbuild.utils.errors import (
    CancellationError,
    InvalidVertexTypeError,
    VertexExecutionError,
)
from flowbuild.utils.registry import VertexRegistry
from flowbuild.vertices.base import supports_cancel

logger = logging.getLogger(__name__)


class JobExecutor:
    """Drives jobs from PENDING to a terminal status.

    For each job the executor:
    1. Moves the job to RUNNING and emits ``vertices_sorted`` with the order
    2. For every vertex in order:
       a. Checks for a cancellation request
       b. Emits ``start``
       c. Awaits the vertex's executable unit with its dependencies' outputs
       d. Stores the output and emits ``success``, or emits ``error`` and stops
    3. Records the terminal status and emits exactly one ``end``

    Cancellation is cooperative: it is honored between vertices only, so a
    vertex that already started always runs to completion.
    """

    def __init__(self, registry: VertexRegistry):
        """Initialize executor.

        Args:
            registry: VertexRegistry resolving vertex type tags
        """
        self.registry = registry

    async def run(self, job: Job) -> JobStatus:
        """Execute a job to completion.

        Runtime failures never propagate: they end the job as ERRORED.
        The only exception re-raised is asyncio.CancelledError, after the
        job has been closed out as CANCELLED.

        Args:
            job: Job to execute, in PENDING or CANCELLING status

        Returns:
            The job's terminal status
        """
        job.mark_running()
        logger.info("Job %s started (%d vertices)", job.id, len(job.order))

        try:
            await job.bus.emit(EventType.VERTICES_SORTED, list(job.order))

            for vertex_id in job.order:
                if job.cancel_requested:
                    await self._finish_cancelled(job)
                    return job.status

                vertex = job.graph.get_vertex(vertex_id)
                await job.bus.emit(EventType.START, {"id": vertex_id})
                logger.debug("Job %s: vertex %s started", job.id, vertex_id)

                try:
                    output = await self._execute_vertex(job, vertex)
                except VertexExecutionError as e:
                    await job.bus.emit(
                        EventType.ERROR, {"id": vertex_id, "error": str(e)}
                    )
                    await self._finish(job, JobStatus.ERRORED, error=str(e))
                    return job.status

                job.results[vertex_id] = output
                await job.bus.emit(
                    EventType.SUCCESS, {"id": vertex_id, "result": output}
                )
                logger.debug("Job %s: vertex %s succeeded", job.id, vertex_id)

            await self._finish(job, JobStatus.COMPLETED)
            return job.status

        except asyncio.CancelledError:
            logger.info("Job %s task cancelled, closing out", job.id)
            if not job.is_terminal:
                await self._finish_cancelled(job)
            elif not job.bus.closed:
                await job.bus.emit(EventType.END, self._end_payload(job))
            raise
        except Exception as e:
            logger.exception("Job %s failed unexpectedly", job.id)
            if not job.is_terminal:
                await self._finish(job, JobStatus.ERRORED, error=str(e))
            elif not job.bus.closed:
                await job.bus.emit(EventType.END, self._end_payload(job))
            return job.status

    async def abandon(self, job: Job) -> None:
        """Close out a job whose task was cancelled before it ever ran.

        The stream still opens with ``vertices_sorted`` and ends with a
        cancelled ``end`` event. Jobs that already finished are left alone.
        """
        if job.is_terminal:
            return
        job.request_cancel()
        if len(job.bus) == 0:
            job.mark_running()
            await job.bus.emit(EventType.VERTICES_SORTED, list(job.order))
        await self._finish_cancelled(job)

    async def _execute_vertex(self, job: Job, vertex: Vertex) -> Any:
        """Invoke the executable unit for a vertex.

        Raises:
            VertexExecutionError: If the type tag is unknown or the unit fails
        """
        try:
            executor = self.registry.get(vertex.type)
        except InvalidVertexTypeError as e:
            raise VertexExecutionError(vertex.id, str(e), e) from e

        inputs = job.inputs_for(vertex.id)
        try:
            return await executor.execute(vertex.config, inputs)
        except Exception as e:
            raise VertexExecutionError(vertex.id, str(e) or type(e).__name__, e) from e

    async def _finish(
        self, job: Job, status: JobStatus, error: Optional[str] = None
    ) -> None:
        job.finish(status, error=error)
        await job.bus.emit(EventType.END, self._end_payload(job))
        logger.info("Job %s finished: %s", job.id, status.value)

    async def _finish_cancelled(self, job: Job) -> None:
        error = None
        try:
            await self._run_cancel_hooks(job)
        except CancellationError as e:
            logger.warning("Job %s: %s", job.id, e)
            error = str(e)

        await self._finish(job, JobStatus.CANCELLED, error=error)

    @staticmethod
    def _end_payload(job: Job) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "status": job.status.value,
            "cancelled": job.status == JobStatus.CANCELLED,
        }
        if job.error is not None:
            payload["error"] = job.error
        return payload

    async def _run_cancel_hooks(self, job: Job) -> None:
        """Call on_cancel for completed vertices, most recent first.

        Raises:
            CancellationError: If any hook failed; every hook still runs
        """
        failures = []
        completed = [vertex_id for vertex_id in job.order if vertex_id in job.results]

        for vertex_id in reversed(completed):
            vertex = job.graph.get_vertex(vertex_id)
            try:
                executor = self.registry.get(vertex.type)
                if supports_cancel(executor):
                    await executor.on_cancel(vertex.config, job.results[vertex_id])
            except Exception as e:
                failures.append(f"{vertex_id}: {e}")

        if failures:
            raise CancellationError(job.id, failures)
