"""Streaming adapters for job events."""

from flowbuild.streaming.iterator import StreamIterator
from flowbuild.streaming.ndjson import NDJSONAdapter
from flowbuild.streaming.sse import SSEAdapter

__all__ = [
    "StreamIterator",
    "NDJSONAdapter",
    "SSEAdapter",
]
