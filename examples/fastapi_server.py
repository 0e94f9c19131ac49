"""FastAPI server example with streaming support.

Exposes submit, subscribe, cancel and status over HTTP. Job streams are
served as NDJSON, or as Server-Sent Events for browser clients.

Run with:
    pip install 'flowbuild[server]' uvicorn
    uvicorn examples.fastapi_server:app
"""

from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from flowbuild import (
    EngineConfig,
    FlowEngine,
    GraphValidationError,
    JobNotFoundError,
    ReactFlowParser,
    VertexRegistry,
)
from flowbuild.streaming import NDJSONAdapter, SSEAdapter
from flowbuild.utils import load_env

# Load environment variables from .env file
load_env()

registry = VertexRegistry()
registry.register("add_one", lambda inputs: sum(inputs.values()) + 1)

engine = FlowEngine(registry, EngineConfig.from_env())


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine:
        yield


app = FastAPI(
    title="flowbuild API",
    description="Run flows as background jobs and stream their events",
    version="0.1.0",
    lifespan=lifespan,
)


class SubmitResponse(BaseModel):
    job_id: str


class ReactFlowRequest(BaseModel):
    flow_json: Dict[str, Any]


@app.post("/jobs", response_model=SubmitResponse)
async def submit(flow: Dict[str, Any]):
    """Submit a flow definition as a new job."""
    try:
        job_id = await engine.submit(flow)
    except GraphValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SubmitResponse(job_id=job_id)


@app.post("/jobs/react-flow", response_model=SubmitResponse)
async def submit_react_flow(request: ReactFlowRequest):
    """Submit a flow saved by a React Flow editor."""
    try:
        flow = ReactFlowParser().parse(request.flow_json)
        job_id = await engine.submit(flow)
    except GraphValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SubmitResponse(job_id=job_id)


@app.get("/jobs/{job_id}/events")
async def events(job_id: str, from_seq: int = 0):
    """Stream a job's events as newline-delimited JSON."""
    try:
        reader = await engine.subscribe(job_id, from_seq)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return NDJSONAdapter().to_streaming_response(reader)


@app.get("/jobs/{job_id}/sse")
async def events_sse(job_id: str, from_seq: int = 0):
    """Stream a job's events as Server-Sent Events."""
    try:
        reader = await engine.subscribe(job_id, from_seq)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return SSEAdapter().to_sse_response(reader)


@app.post("/jobs/{job_id}/cancel")
async def cancel(job_id: str):
    """Request cancellation; the outcome shows up on the event stream."""
    try:
        await engine.cancel(job_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"job_id": job_id, "acknowledged": True}


@app.get("/jobs/{job_id}")
async def status(job_id: str):
    """Poll a job's status."""
    try:
        snapshot = await engine.snapshot(job_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return snapshot.to_dict()


@app.get("/jobs/{job_id}/history")
async def history(job_id: str):
    """Archived record of a finished job."""
    record = await engine.history(job_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"No archived record for job '{job_id}'")
    return record
