"""Vertex registry mapping type tags to executable units.

A flow refers to its vertices' implementations only by type tag. The
registry resolves those tags when a flow is submitted and again when each
vertex runs.
"""

import inspect
from typing import Any, Callable, Dict, Iterable, Optional, Union

from flowbuild.vertices.base import VertexExecutor
from flowbuild.vertices.builtin import ConstantVertex, PassthroughVertex
from flowbuild.vertices.function import FunctionVertex
from flowbuild.utils.errors import InvalidVertexTypeError


class VertexRegistry:
    """Registry of vertex implementations keyed by type tag.

    The registry allows you to:
    - Register VertexExecutor objects by type tag
    - Register plain functions (wrapped in FunctionVertex)
    - Register functions with the ``vertex`` decorator
    - Resolve type tags when a job runs

    Example:
        >>> registry = VertexRegistry()
        >>>
        >>> @registry.vertex("double")
        ... def double(inputs):
        ...     return sum(inputs.values()) * 2
        >>>
        >>> registry.get("double")
        FunctionVertex(double)
    """

    def __init__(self):
        """Initialize registry with the built-in vertex types."""
        self._executors: Dict[str, VertexExecutor] = {}
        self._register_builtin_vertices()

    def _register_builtin_vertices(self):
        self._executors["passthrough"] = PassthroughVertex()
        self._executors["constant"] = ConstantVertex()

    def register(
        self,
        type_tag: str,
        implementation: Union[VertexExecutor, Callable[..., Any]],
        on_cancel: Optional[Callable] = None,
    ) -> VertexExecutor:
        """Register an implementation for a type tag.

        Args:
            type_tag: Type identifier used by vertices (e.g., "fetch")
            implementation: VertexExecutor, or a plain function to wrap
            on_cancel: Cleanup hook, only used when wrapping a function

        Returns:
            The registered executor

        Raises:
            TypeError: If implementation is a class, or neither an executor
                nor callable
        """
        if inspect.isclass(implementation):
            raise TypeError(
                f"Vertex implementation for '{type_tag}' must be an instance or a "
                f"function, got class {implementation.__name__}"
            )
        if isinstance(implementation, VertexExecutor):
            executor = implementation
        elif callable(implementation):
            executor = FunctionVertex(implementation, on_cancel=on_cancel)
        else:
            raise TypeError(
                f"Vertex implementation for '{type_tag}' must define execute() "
                f"or be callable, got {type(implementation).__name__}"
            )
        self._executors[type_tag] = executor
        return executor

    def vertex(self, type_tag: str, on_cancel: Optional[Callable] = None) -> Callable:
        """Decorator form of register() for functions."""

        def decorator(fn: Callable) -> Callable:
            self.register(type_tag, fn, on_cancel=on_cancel)
            return fn

        return decorator

    def unregister(self, type_tag: str) -> None:
        """Remove a type tag. Unknown tags are ignored."""
        self._executors.pop(type_tag, None)

    def get(self, type_tag: str) -> VertexExecutor:
        """Get the executor for a type tag.

        Raises:
            InvalidVertexTypeError: If the tag is not registered
        """
        if type_tag not in self._executors:
            raise InvalidVertexTypeError(
                f"Vertex type '{type_tag}' not registered. "
                f"Available types: {', '.join(self._executors.keys())}"
            )
        return self._executors[type_tag]

    def has(self, type_tag: str) -> bool:
        """Check if a type tag is registered."""
        return type_tag in self._executors

    def missing(self, type_tags: Iterable[str]) -> list[str]:
        """Return the tags from ``type_tags`` that are not registered, sorted."""
        return sorted(tag for tag in set(type_tags) if tag not in self._executors)

    def list_types(self) -> list[str]:
        """List all registered type tags."""
        return list(self._executors.keys())

    def __contains__(self, type_tag: str) -> bool:
        return self.has(type_tag)

    def __repr__(self) -> str:
        return f"VertexRegistry(types={len(self._executors)})"
