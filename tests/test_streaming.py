"""Tests for stream iterators and wire adapters."""

import asyncio
import json
from contextlib import aclosing

import pytest

from flowbuild import JobStatus, NDJSONAdapter, SSEAdapter, StreamIterator
from flowbuild.core.events import EventType, JobEvent

from helpers import chain_flow


@pytest.mark.asyncio
async def test_ndjson_wire_stream(engine):
    job_id = await engine.submit(chain_flow(["A", "B"]))
    reader = await engine.subscribe(job_id)

    lines = [line async for line in NDJSONAdapter().event_generator(reader)]
    records = [json.loads(line) for line in lines]

    assert all(line.endswith("\n") and line.count("\n") == 1 for line in lines)
    assert [r["seq"] for r in records] == list(range(len(records)))
    assert {r["job_id"] for r in records} == {job_id}
    assert records[0] == {
        "job_id": job_id,
        "event": "vertices_sorted",
        "seq": 0,
        "payload": ["A", "B"],
    }
    assert records[-1]["event"] == "end"
    assert sum(1 for r in records if r["event"] == "end") == 1

    started = [r["payload"]["id"] for r in records if r["event"] == "start"]
    finished = [r["payload"]["id"] for r in records if r["event"] in ("success", "error")]
    assert started == finished == ["A", "B"]


def test_sse_frame_format():
    event = JobEvent(job_id="job-1", type=EventType.SUCCESS, seq=4, payload={"id": "A", "result": 1})

    frame = SSEAdapter().format_event(event)

    lines = frame.split("\n")
    assert lines[0] == "id: 4"
    assert lines[1] == "event: success"
    assert json.loads(lines[2][len("data: "):]) == event.to_dict()
    assert frame.endswith("\n\n")


def test_sse_fixed_event_name():
    event = JobEvent(job_id="job-1", type=EventType.END, seq=0, payload={"status": "completed"})

    assert "event: job\n" in SSEAdapter(event_name="job").format_event(event)


@pytest.mark.asyncio
async def test_stream_iterator_can_be_replayed(engine):
    job_id = await engine.submit(chain_flow(["A"]))
    stream = StreamIterator(engine, job_id)

    first = await stream.collect()
    second = await stream.collect()

    assert [e.seq for e in first] == [e.seq for e in second] == [0, 1, 2, 3]


@pytest.mark.asyncio
async def test_stream_iterator_resume_and_wait_for_end(engine):
    job_id = await engine.submit(chain_flow(["A", "B"]))

    end = await StreamIterator(engine, job_id).wait_for_end()
    tail = await StreamIterator(engine, job_id, from_seq=4).collect()

    assert end.payload == {"status": "completed", "cancelled": False}
    assert [e.type for e in tail] == [EventType.SUCCESS, EventType.END]


@pytest.mark.asyncio
async def test_abandoned_stream_detaches_reader(engine):
    job_id = await engine.submit(chain_flow(["A", "B"]))
    job = await engine.jobs.get(job_id)

    async with aclosing(aiter(StreamIterator(engine, job_id))) as events:
        async for _ in events:
            assert job.bus.reader_count == 1
            break

    await engine.wait(job_id)
    assert job.bus.reader_count == 0


@pytest.mark.asyncio
async def test_ndjson_streaming_response(engine):
    pytest.importorskip("fastapi")
    from fastapi.responses import StreamingResponse

    job_id = await engine.submit(chain_flow(["A"]))
    reader = await engine.subscribe(job_id)

    response = NDJSONAdapter().to_streaming_response(reader)

    assert isinstance(response, StreamingResponse)
    assert response.media_type == "application/x-ndjson"
    assert response.headers["cache-control"] == "no-cache"


@pytest.mark.asyncio
async def test_sse_response(engine):
    pytest.importorskip("sse_starlette")
    from sse_starlette.sse import EventSourceResponse

    job_id = await engine.submit(chain_flow(["A"]))
    reader = await engine.subscribe(job_id)

    assert isinstance(SSEAdapter().to_sse_response(reader), EventSourceResponse)


@pytest.mark.asyncio
async def test_closed_ndjson_stream_releases_job(engine):
    """A client that disconnects after one line must not stall the job."""
    vertex_ids = [f"v{i}" for i in range(20)]
    job_id = await engine.submit(chain_flow(vertex_ids))
    job = await engine.jobs.get(job_id)

    lines = NDJSONAdapter().event_generator(await engine.subscribe(job_id))
    first = await lines.__anext__()
    await lines.aclose()

    assert json.loads(first)["event"] == "vertices_sorted"
    assert job.bus.reader_count == 0
    assert await asyncio.wait_for(engine.wait(job_id), timeout=1) == JobStatus.COMPLETED

    events = await StreamIterator(engine, job_id).collect()
    assert len(events) == 2 * len(vertex_ids) + 2
    assert events[-1].type == EventType.END


@pytest.mark.asyncio
async def test_closed_sse_stream_releases_job(engine):
    job_id = await engine.submit(chain_flow([f"v{i}" for i in range(20)]))
    job = await engine.jobs.get(job_id)

    frames = SSEAdapter().event_generator(await engine.subscribe(job_id))
    first = await frames.__anext__()
    await frames.aclose()

    assert first.startswith("id: 0\n")
    assert job.bus.reader_count == 0
    assert await asyncio.wait_for(engine.wait(job_id), timeout=1) == JobStatus.COMPLETED


@pytest.mark.asyncio
async def test_fully_consumed_ndjson_stream_detaches(engine):
    job_id = await engine.submit(chain_flow(["A"]))
    job = await engine.jobs.get(job_id)

    lines = [line async for line in NDJSONAdapter().event_generator(await engine.subscribe(job_id))]

    assert json.loads(lines[-1])["event"] == "end"
    assert job.bus.reader_count == 0
