"""Newline-delimited JSON adapter.

This is the wire format for job streams: one JSON object per line, in
sequence order, ending with the ``end`` event.
"""

from typing import AsyncIterator

from flowbuild.core.events import JobEvent
from flowbuild.streaming.iterator import close_stream


class NDJSONAdapter:
    """Adapt job events to newline-delimited JSON.

    Example with FastAPI:
        >>> @app.get("/jobs/{job_id}/events")
        >>> async def stream_events(job_id: str):
        ...     reader = await engine.subscribe(job_id)
        ...     return NDJSONAdapter().to_streaming_response(reader)
    """

    media_type = "application/x-ndjson"

    async def event_generator(
        self, event_stream: AsyncIterator[JobEvent]
    ) -> AsyncIterator[str]:
        """Generate wire lines from an event stream.

        The stream is closed when the generator finishes or is closed
        early, for example when an HTTP client disconnects.

        Args:
            event_stream: AsyncIterator of JobEvent objects

        Yields:
            One JSON object followed by a newline per event
        """
        try:
            async for event in event_stream:
                yield self.format_event(event)
        finally:
            await close_stream(event_stream)

    def format_event(self, event: JobEvent) -> str:
        """Format a single event as one NDJSON line."""
        return event.to_json() + "\n"

    def to_streaming_response(
        self, event_stream: AsyncIterator[JobEvent]
    ) -> "StreamingResponse":
        """Convert an event stream to a FastAPI StreamingResponse.

        Raises:
            ImportError: If FastAPI is not installed
        """
        try:
            from fastapi.responses import StreamingResponse
        except ImportError:
            raise ImportError(
                "FastAPI not installed. Install with: pip install 'flowbuild[server]'"
            )

        return StreamingResponse(
            self.event_generator(event_stream),
            media_type=self.media_type,
            headers={
                "Cache-Control": "no-cache",
                "X-Accel-Buffering": "no",  # Disable nginx buffering
            },
        )
