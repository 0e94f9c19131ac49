"""Server-Sent Events (SSE) adapter for web streaming.

This module converts job events into SSE frames for browser clients that
prefer EventSource over newline-delimited JSON.
"""

from typing import AsyncIterator, Optional

from flowbuild.core.events import JobEvent
from flowbuild.streaming.iterator import close_stream


class SSEAdapter:
    """Adapt job events to Server-Sent Events format.

    Each frame carries the event type as the SSE event name, the sequence
    number as the SSE id (so clients can resume with Last-Event-ID) and
    the wire-shape JSON as data.

    Example with FastAPI:
        >>> @app.get("/jobs/{job_id}/sse")
        >>> async def stream_sse(job_id: str):
        ...     reader = await engine.subscribe(job_id)
        ...     return SSEAdapter().to_sse_response(reader)
    """

    def __init__(self, event_name: Optional[str] = None):
        """Initialize SSE adapter.

        Args:
            event_name: Optional fixed event name for every frame
        """
        self.event_name = event_name

    async def event_generator(
        self, event_stream: AsyncIterator[JobEvent]
    ) -> AsyncIterator[str]:
        """Generate SSE-formatted frames, closing the stream afterwards."""
        try:
            async for event in event_stream:
                yield self.format_event(event)
        finally:
            await close_stream(event_stream)

    def format_event(self, event: JobEvent) -> str:
        """Format a single event as an SSE frame."""
        event_name = self.event_name or event.to_dict()["event"]
        lines = [
            f"id: {event.seq}",
            f"event: {event_name}",
            f"data: {event.to_json()}",
            "",
        ]
        return "\n".join(lines) + "\n"

    def to_sse_response(
        self, event_stream: AsyncIterator[JobEvent]
    ) -> "EventSourceResponse":
        """Convert an event stream to an sse-starlette response.

        Raises:
            ImportError: If sse-starlette is not installed
        """
        try:
            from sse_starlette.sse import EventSourceResponse
        except ImportError:
            raise ImportError(
                "sse-starlette not installed. "
                "Install with: pip install 'flowbuild[server]'"
            )

        async def event_generator():
            try:
                async for event in event_stream:
                    yield {
                        "id": str(event.seq),
                        "event": self.event_name or event.to_dict()["event"],
                        "data": event.to_json(),
                    }
            finally:
                await close_stream(event_stream)

        return EventSourceResponse(event_generator())
