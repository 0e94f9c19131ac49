"""Basic flow example.

Builds a small diamond-shaped flow, runs it as a job and prints the
NDJSON event stream. Cancels a second, slower job halfway through.
"""

import asyncio
import sys

from flowbuild import FlowBuilder, FlowEngine, VertexRegistry, load_env
from flowbuild.streaming import NDJSONAdapter

load_env()

registry = VertexRegistry()


@registry.vertex("add_one")
def add_one(inputs):
    return sum(inputs.values()) + 1


async def slow(delay: float = 0.5):
    await asyncio.sleep(delay)
    return delay


def release(config, output):
    print(f"  cleanup after {output}s vertex", file=sys.stderr)


registry.register("slow", slow, on_cancel=release)


async def main():
    diamond = (
        FlowBuilder("diamond")
        .add_vertex("source", "constant", {"value": 1})
        .add_vertex("left", "add_one")
        .add_vertex("right", "add_one")
        .add_vertex("merge", "add_one")
        .add_edge("source", "left")
        .add_edge("source", "right")
        .add_edge("left", "merge")
        .add_edge("right", "merge")
        .build()
    )

    slow_chain = (
        FlowBuilder("slow-chain")
        .add_vertex("first", "slow", {"delay": 0.2})
        .add_vertex("second", "slow", {"delay": 0.2})
        .add_vertex("third", "slow", {"delay": 0.2})
        .add_sequence(["first", "second", "third"])
        .build()
    )

    adapter = NDJSONAdapter()

    async with FlowEngine(registry) as engine:
        print("=== diamond ===")
        job_id = await engine.submit(diamond)
        async for line in adapter.event_generator(await engine.subscribe(job_id)):
            print(line, end="")

        print("=== slow-chain (cancelled) ===")
        job_id = await engine.submit(slow_chain)
        await asyncio.sleep(0.3)
        await engine.cancel(job_id)
        async for line in adapter.event_generator(await engine.subscribe(job_id)):
            print(line, end="")

        print(f"final status: {(await engine.status(job_id)).value}")


if __name__ == "__main__":
    asyncio.run(main())
