"""Tests for the job registry and the vertex registry."""

import pytest

from flowbuild import FunctionVertex, VertexExecutor, VertexRegistry
from flowbuild.core.events import EventType
from flowbuild.core.graph import FlowGraph
from flowbuild.core.job import JobStatus
from flowbuild.core.registry import JobRegistry
from flowbuild.utils.errors import InvalidVertexTypeError, JobNotFoundError

from helpers import chain_flow


async def create_job(registry: JobRegistry, vertex_ids=("A", "B")):
    flow = chain_flow(list(vertex_ids))
    graph = FlowGraph.from_flow(flow)
    return await registry.create(flow, graph, list(vertex_ids))


@pytest.mark.asyncio
async def test_create_and_get():
    registry = JobRegistry(buffer_size=4)

    job = await create_job(registry)

    assert job.status == JobStatus.PENDING
    assert job.bus.job_id == job.id
    assert job.bus.buffer_size == 4
    assert await registry.get(job.id) is job
    assert job.id in registry
    assert len(registry) == 1


@pytest.mark.asyncio
async def test_job_ids_are_unique():
    registry = JobRegistry()

    ids = {(await create_job(registry)).id for _ in range(50)}

    assert len(ids) == 50


@pytest.mark.asyncio
async def test_get_unknown_job():
    registry = JobRegistry()

    with pytest.raises(JobNotFoundError) as exc_info:
        await registry.get("nope")

    assert exc_info.value.job_id == "nope"


@pytest.mark.asyncio
async def test_request_cancel_transitions():
    registry = JobRegistry()
    job = await create_job(registry)

    assert await registry.request_cancel(job.id) is True
    assert job.status == JobStatus.CANCELLING
    assert await registry.request_cancel(job.id) is False

    job.finish(JobStatus.CANCELLED)
    assert await registry.request_cancel(job.id) is False
    assert job.status == JobStatus.CANCELLED

    with pytest.raises(JobNotFoundError):
        await registry.request_cancel("nope")


@pytest.mark.asyncio
async def test_running_jobs_are_never_evicted():
    registry = JobRegistry(retention_seconds=0)
    job = await create_job(registry)
    job.mark_running()

    assert await registry.evict_expired() == []
    assert job.id in registry


@pytest.mark.asyncio
async def test_finished_jobs_evicted_after_retention():
    registry = JobRegistry(retention_seconds=0)
    job = await create_job(registry)
    job.finish(JobStatus.COMPLETED)

    assert await registry.evict_expired() == [job.id]
    with pytest.raises(JobNotFoundError):
        await registry.get(job.id)


@pytest.mark.asyncio
async def test_finished_jobs_kept_within_retention():
    registry = JobRegistry(retention_seconds=3600)
    job = await create_job(registry)
    job.finish(JobStatus.ERRORED, error="boom")

    assert await registry.evict_expired() == []
    assert job.id in registry


@pytest.mark.asyncio
async def test_job_with_attached_reader_is_not_evicted():
    registry = JobRegistry(retention_seconds=0)
    job = await create_job(registry)
    await job.bus.emit(EventType.VERTICES_SORTED, job.order)
    job.finish(JobStatus.COMPLETED)

    reader = job.bus.subscribe()
    await reader.__anext__()

    assert await registry.evict_expired() == []

    await reader.aclose()
    assert await registry.evict_expired() == [job.id]


def test_negative_retention_rejected():
    with pytest.raises(ValueError):
        JobRegistry(retention_seconds=-1)


def test_vertex_registry_has_builtins():
    registry = VertexRegistry()

    assert "passthrough" in registry
    assert registry.has("constant")
    assert registry.missing(["constant", "zeta", "alpha"]) == ["alpha", "zeta"]


def test_register_function_wraps_it():
    registry = VertexRegistry()

    executor = registry.register("double", lambda inputs: sum(inputs.values()) * 2)

    assert isinstance(executor, FunctionVertex)
    assert registry.get("double") is executor
    assert "double" in registry.list_types()


def test_register_executor_object():
    class Upper:
        async def execute(self, config, inputs):
            return config["text"].upper()

    registry = VertexRegistry()
    upper = Upper()

    assert isinstance(upper, VertexExecutor)
    assert registry.register("upper", upper) is upper


def test_register_rejects_non_callables():
    with pytest.raises(TypeError):
        VertexRegistry().register("bad", 42)


def test_vertex_decorator_and_unregister():
    registry = VertexRegistry()

    @registry.vertex("greet")
    def greet(name: str = "world"):
        return f"hello {name}"

    assert greet() == "hello world"
    assert registry.has("greet")

    registry.unregister("greet")
    registry.unregister("greet")
    assert not registry.has("greet")


def test_get_unknown_type_lists_available():
    with pytest.raises(InvalidVertexTypeError, match="Vertex type 'nope' not registered"):
        VertexRegistry().get("nope")


@pytest.mark.asyncio
async def test_function_vertex_parameter_injection():
    def compute(inputs, config, factor, offset=0, **extra):
        return {
            "total": sum(inputs.values()) * factor + offset,
            "keys": sorted(config),
            "extra": extra,
        }

    vertex = FunctionVertex(compute)
    result = await vertex.execute({"factor": 3, "label": "x"}, {"a": 1, "b": 2})

    assert result == {"total": 9, "keys": ["factor", "label"], "extra": {"label": "x"}}


@pytest.mark.asyncio
async def test_function_vertex_reads_named_inputs():
    async def join(left, right):
        return f"{left}-{right}"

    vertex = FunctionVertex(join)

    assert await vertex.execute({"right": "r"}, {"left": "l", "right": "ignored"}) == "l-r"
    assert repr(vertex) == "FunctionVertex(join)"


@pytest.mark.asyncio
async def test_function_vertex_cancel_hook():
    calls = []

    async def undo(config, output):
        calls.append((config, output))

    without_hook = FunctionVertex(lambda: 1)
    with_hook = FunctionVertex(lambda: 1, on_cancel=undo)

    await without_hook.on_cancel({}, 1)
    await with_hook.on_cancel({"k": "v"}, 1)

    assert calls == [({"k": "v"}, 1)]


@pytest.mark.asyncio
async def test_builtin_vertices():
    registry = VertexRegistry()

    constant = await registry.get("constant").execute({"value": 5}, {"a": 1})
    passthrough = await registry.get("passthrough").execute({"value": 5}, {"a": 1})

    assert constant == 5
    assert passthrough == {"a": 1, "value": 5}


def test_register_rejects_executor_class():
    class Upper:
        async def execute(self, config, inputs):
            return config["text"].upper()

    registry = VertexRegistry()

    with pytest.raises(TypeError, match="got class Upper"):
        registry.register("upper", Upper)

    assert not registry.has("upper")
