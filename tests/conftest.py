"""Pytest configuration and fixtures for flowbuild tests."""

from typing import Any, Dict

import pytest

from flowbuild import EngineConfig, FlowEngine, VertexRegistry


@pytest.fixture
def registry():
    """Create a vertex registry with a few test vertex types."""
    registry = VertexRegistry()

    def add_one(inputs: Dict[str, Any]) -> int:
        return sum(inputs.values()) + 1

    def fail(message: str = "boom"):
        raise RuntimeError(message)

    registry.register("add_one", add_one)
    registry.register("fail", fail)
    return registry


@pytest.fixture
def config():
    """Engine config with short timings for tests."""
    return EngineConfig(event_buffer_size=8, retention_seconds=60.0, eviction_interval=0.05)


@pytest.fixture
async def engine(registry, config):
    """Create an engine and shut it down after the test."""
    engine = FlowEngine(registry, config)
    await engine.start()
    yield engine
    await engine.shutdown()
