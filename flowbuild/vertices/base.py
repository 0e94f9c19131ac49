"""Vertex execution protocol.

The engine never looks inside a vertex. It only needs something it can
await with the vertex's config and its dependencies' outputs. Any object
with a matching ``execute`` coroutine qualifies; no base class required.
"""

from typing import Protocol, Any, Dict, runtime_checkable


@runtime_checkable
class VertexExecutor(Protocol):
    """Protocol for the executable unit behind a vertex type tag.

    Implementations may also define an optional cleanup hook::

        async def on_cancel(self, config: Dict[str, Any], output: Any) -> None

    which the executor calls, in reverse execution order, for every vertex
    that completed before its job was cancelled.
    """

    async def execute(
        self,
        config: Dict[str, Any],
        inputs: Dict[str, Any],
    ) -> Any:
        """Run the vertex and return its output.

        Args:
            config: The vertex's configuration blob
            inputs: Outputs of the vertex's dependencies, keyed by vertex ID

        Returns:
            Output stored in the job's results table

        Raises:
            Exception: Any failure; the executor reports it as an error event
        """
        ...


def supports_cancel(executor: Any) -> bool:
    """Check whether an executor defines the on_cancel cleanup hook."""
    return callable(getattr(executor, "on_cancel", None))
