"""Tests for finished-job archives."""

import pytest

from flowbuild import EngineConfig, FlowEngine, JobArchive, MemoryArchive, SQLiteArchive

from helpers import chain_flow


def make_record(job_id="job-1", status="completed", **extra):
    record = {
        "job_id": job_id,
        "flow_id": "flow-1",
        "status": status,
        "order": ["A"],
        "results": {"A": 1},
        "events": [],
    }
    record.update(extra)
    return record


@pytest.mark.asyncio
async def test_memory_archive_save_and_load():
    archive = MemoryArchive()
    record = make_record()

    await archive.save(record)
    record["status"] = "mutated"

    loaded = await archive.load("job-1")
    assert loaded["status"] == "completed"
    assert await archive.exists("job-1")
    assert await archive.list_jobs() == ["job-1"]
    assert await archive.load("missing") is None


@pytest.mark.asyncio
async def test_memory_archive_delete_and_clear():
    archive = MemoryArchive()
    await archive.save(make_record("a"))
    await archive.save(make_record("b"))

    await archive.delete("a")
    assert not await archive.exists("a")

    archive.clear_all()
    assert await archive.list_jobs() == []


def test_archives_satisfy_protocol(tmp_path):
    assert isinstance(MemoryArchive(), JobArchive)
    assert isinstance(SQLiteArchive(str(tmp_path / "jobs.db")), JobArchive)


@pytest.mark.asyncio
async def test_sqlite_archive_roundtrip(tmp_path):
    archive = SQLiteArchive(str(tmp_path / "nested" / "jobs.db"))

    await archive.save(make_record("job-1"))
    await archive.save(make_record("job-2", status="errored", error="boom"))

    loaded = await archive.load("job-2")
    assert loaded["status"] == "errored"
    assert loaded["error"] == "boom"
    assert await archive.exists("job-1")
    assert not await archive.exists("job-3")
    assert await archive.list_jobs() == ["job-2", "job-1"]


@pytest.mark.asyncio
async def test_sqlite_archive_overwrites_and_deletes(tmp_path):
    archive = SQLiteArchive(str(tmp_path / "jobs.db"))

    await archive.save(make_record("job-1", status="cancelled"))
    await archive.save(make_record("job-1", status="completed"))
    assert (await archive.load("job-1"))["status"] == "completed"
    assert await archive.list_jobs() == ["job-1"]

    await archive.delete("job-1")
    assert await archive.load("job-1") is None


@pytest.mark.asyncio
async def test_sqlite_archive_stores_unencodable_results_as_text(tmp_path):
    archive = SQLiteArchive(str(tmp_path / "jobs.db"))

    await archive.save(make_record(results={"A": 1, "B": object()}))

    loaded = await archive.load("job-1")
    assert loaded["results"]["A"] == 1
    assert loaded["results"]["B"].startswith("<object object")


@pytest.mark.asyncio
async def test_sqlite_cleanup_keeps_recent_records(tmp_path):
    archive = SQLiteArchive(str(tmp_path / "jobs.db"))
    await archive.save(make_record())

    assert await archive.cleanup_old_jobs(max_age_days=30) == 0
    assert await archive.exists("job-1")


@pytest.mark.asyncio
async def test_engine_archives_finished_jobs(registry, config):
    archive = MemoryArchive()

    async with FlowEngine(registry, config, archive=archive) as engine:
        job_id = await engine.submit(chain_flow(["A", "B"], flow_id="archived"))
        await engine.wait(job_id)
        record = await engine.history(job_id)

    assert record["job_id"] == job_id
    assert record["flow_id"] == "archived"
    assert record["status"] == "completed"
    assert record["results"] == {"A": "a", "B": "b"}
    assert [event["event"] for event in record["events"]] == [
        "vertices_sorted",
        "start",
        "success",
        "start",
        "success",
        "end",
    ]


@pytest.mark.asyncio
async def test_engine_uses_sqlite_archive_from_config(registry, tmp_path):
    config = EngineConfig(archive_path=str(tmp_path / "history.db"))

    async with FlowEngine(registry, config) as engine:
        assert isinstance(engine.archive, SQLiteArchive)
        job_id = await engine.submit(chain_flow(["A"]))
        await engine.wait(job_id)

        record = await engine.history(job_id)

    assert record["status"] == "completed"
    assert record["events"][-1]["payload"] == {"status": "completed", "cancelled": False}


@pytest.mark.asyncio
async def test_history_without_archive(engine):
    job_id = await engine.submit(chain_flow(["A"]))
    await engine.wait(job_id)

    assert await engine.history(job_id) is None
