"""Event system for streaming job progress.

Every job owns one EventBus. The executor is its only producer; any number
of EventReaders consume it independently, each with its own cursor into
the job's event log.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from enum import Enum
import asyncio
import itertools
import json

from flowbuild.utils.errors import EventBusClosedError


class EventType(str, Enum):
    """Event types emitted for a job, in wire format."""

    VERTICES_SORTED = "vertices_sorted"
    START = "start"
    SUCCESS = "success"
    ERROR = "error"
    END = "end"


@dataclass
class JobEvent:
    """A single event in a job's stream.

    Attributes:
        job_id: Job that produced the event
        type: Event type tag
        seq: Position in the job's stream, starting at 0
        payload: Type-specific payload
        timestamp: When the event was emitted
    """

    job_id: str
    type: EventType
    seq: int
    payload: Any = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def vertex_id(self) -> Optional[str]:
        """Vertex the event refers to, for per-vertex events."""
        if isinstance(self.payload, dict):
            return self.payload.get("id")
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert the event to its wire shape."""
        event_type = self.type.value if isinstance(self.type, EventType) else self.type
        return {
            "job_id": self.job_id,
            "event": event_type,
            "seq": self.seq,
            "payload": self.payload,
        }

    def to_json(self) -> str:
        """Serialize to a single JSON line (without the trailing newline)."""
        return json.dumps(self.to_dict(), default=str)


class EventBus:
    """Ordered, replayable event channel for one job.

    Events are appended to an in-memory log and never dropped. Readers
    attached to the bus each track their own position; emit() waits while
    any attached reader is ``buffer_size`` or more events behind, so a
    stalled consumer slows the producer instead of losing events. With no
    reader attached, events simply accumulate in the log for late readers.
    The terminal END event is always accepted so a job can finish even
    while a reader is stalled, and lift_backpressure() drops the lag limit
    altogether once the job is cancelling.
    """

    def __init__(self, job_id: str, buffer_size: int = 64):
        if buffer_size < 1:
            raise ValueError("buffer_size must be at least 1")
        self.job_id = job_id
        self.buffer_size = buffer_size
        self._history: List[JobEvent] = []
        self._cursors: Dict[int, int] = {}
        self._tokens = itertools.count()
        self._condition = asyncio.Condition()
        self._closed = False
        self._unbounded = False

    @property
    def closed(self) -> bool:
        """Whether the END event has been emitted."""
        return self._closed

    @property
    def reader_count(self) -> int:
        """Number of readers currently attached."""
        return len(self._cursors)

    @property
    def history(self) -> List[JobEvent]:
        """Snapshot of every event emitted so far."""
        return list(self._history)

    def __len__(self) -> int:
        return len(self._history)

    async def emit(self, event_type: EventType, payload: Any = None) -> JobEvent:
        """Append an event and wake readers.

        Args:
            event_type: Type of the event
            payload: Type-specific payload

        Returns:
            The emitted event with its sequence number

        Raises:
            EventBusClosedError: If END was already emitted
        """
        async with self._condition:
            if self._closed:
                raise EventBusClosedError(
                    f"Event bus for job '{self.job_id}' is closed"
                )
            if event_type != EventType.END:
                await self._condition.wait_for(self._has_capacity)

            event = JobEvent(
                job_id=self.job_id,
                type=event_type,
                seq=len(self._history),
                payload=payload,
            )
            self._history.append(event)
            if event_type == EventType.END:
                self._closed = True
            self._condition.notify_all()
            return event

    def subscribe(self, from_seq: int = 0) -> "EventReader":
        """Create a reader starting at ``from_seq``.

        The reader attaches on its first read, so creating one and never
        iterating it does not hold back the producer.
        """
        if from_seq < 0:
            raise ValueError("from_seq must not be negative")
        return EventReader(self, from_seq)

    async def lift_backpressure(self) -> None:
        """Stop waiting on lagging readers for the rest of the stream.

        Used once a job is cancelling, so a stalled reader cannot keep
        the producer from reaching its next vertex boundary. Readers still
        receive every event.
        """
        async with self._condition:
            self._unbounded = True
            self._condition.notify_all()

    def _has_capacity(self) -> bool:
        if self._unbounded or not self._cursors:
            return True
        return len(self._history) - min(self._cursors.values()) < self.buffer_size

    def _attach(self, cursor: int) -> int:
        token = next(self._tokens)
        self._cursors[token] = cursor
        return token

    def _detach(self, token: int) -> None:
        if self._cursors.pop(token, None) is not None:
            self._condition.notify_all()


class EventReader:
    """Async iterator over one job's events.

    Yields events in sequence order and stops after the END event. Use it
    as an async context manager (or call aclose()) when abandoning a
    stream early, so the producer is no longer held back by this reader.

    Example:
        >>> async with bus.subscribe() as reader:
        ...     async for event in reader:
        ...         print(event.to_json())
    """

    def __init__(self, bus: EventBus, from_seq: int = 0):
        self._bus = bus
        self._cursor = from_seq
        self._token: Optional[int] = None
        self._done = False

    @property
    def position(self) -> int:
        """Sequence number of the next event this reader will yield."""
        return self._cursor

    def __aiter__(self) -> "EventReader":
        return self

    async def __anext__(self) -> JobEvent:
        if self._done:
            raise StopAsyncIteration

        bus = self._bus
        async with bus._condition:
            if self._token is None:
                self._token = bus._attach(self._cursor)
            try:
                await bus._condition.wait_for(
                    lambda: self._cursor < len(bus._history) or bus._closed
                )
            except asyncio.CancelledError:
                self._release()
                raise

            if self._cursor >= len(bus._history):
                self._release()
                raise StopAsyncIteration

            event = bus._history[self._cursor]
            self._cursor += 1
            if event.type == EventType.END:
                self._release()
            else:
                bus._cursors[self._token] = self._cursor
                bus._condition.notify_all()
            return event

    async def aclose(self) -> None:
        """Detach from the bus; further iteration stops immediately."""
        async with self._bus._condition:
            self._release()

    async def collect(self) -> List[JobEvent]:
        """Read every remaining event into a list."""
        return [event async for event in self]

    async def __aenter__(self) -> "EventReader":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _release(self) -> None:
        # Caller must hold the bus condition lock
        self._done = True
        if self._token is not None:
            self._bus._detach(self._token)
            self._token = None
