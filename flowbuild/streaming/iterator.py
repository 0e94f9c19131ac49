"""AsyncIterator streaming interface for job events."""

from typing import AsyncIterator, List, Optional, TYPE_CHECKING

from flowbuild.core.events import EventType, JobEvent

if TYPE_CHECKING:
    from flowbuild.engine import FlowEngine


async def close_stream(event_stream: AsyncIterator[JobEvent]) -> None:
    """Close an event stream that supports it.

    Closing an EventReader detaches it from its bus, so an abandoned
    consumer stops holding back the job's producer.
    """
    aclose = getattr(event_stream, "aclose", None)
    if aclose is not None:
        await aclose()


class StreamIterator:
    """AsyncIterator over one job's events, by job ID.

    Every iteration opens a fresh reader, so the same StreamIterator can
    be iterated more than once; each pass starts at ``from_seq``.

    Example:
        >>> stream = StreamIterator(engine, job_id)
        >>> async for event in stream:
        ...     print(event.type, event.payload)
    """

    def __init__(self, engine: "FlowEngine", job_id: str, from_seq: int = 0):
        """Initialize stream iterator.

        Args:
            engine: FlowEngine that owns the job
            job_id: Job to stream
            from_seq: Sequence number to start from
        """
        self.engine = engine
        self.job_id = job_id
        self.from_seq = from_seq

    def __aiter__(self) -> AsyncIterator[JobEvent]:
        return self._stream()

    async def _stream(self) -> AsyncIterator[JobEvent]:
        reader = await self.engine.subscribe(self.job_id, self.from_seq)
        async with reader:
            async for event in reader:
                yield event

    async def collect(self) -> List[JobEvent]:
        """Collect all events into a list.

        Returns:
            Every event through the ``end`` event
        """
        events = []
        async for event in self:
            events.append(event)
        return events

    async def wait_for_end(self) -> Optional[JobEvent]:
        """Stream until the job finishes and return its ``end`` event."""
        end_event = None
        async for event in self:
            if event.type == EventType.END:
                end_event = event
        return end_event
