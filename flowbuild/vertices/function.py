"""Function vertex for running plain Python callables.

This wraps arbitrary functions (sync or async) so they satisfy the
VertexExecutor protocol. Parameters are injected by name from the vertex
config and the dependency outputs.
"""

from typing import Callable, Any, Dict, Optional
import asyncio
import functools
import inspect


class FunctionVertex:
    """Execute a Python function as a vertex.

    Supported parameter names (auto-injected):
    - config: The whole vertex config
    - inputs: All dependency outputs, keyed by vertex ID
    - any other name: looked up in config first, then in inputs
    - **kwargs: receives every config key not bound otherwise

    Parameters that cannot be resolved keep their default value; a missing
    required parameter surfaces as a TypeError when the function is called,
    which the executor reports as a vertex failure.

    Example:
        >>> def scale(inputs, factor: int = 2):
        ...     return sum(inputs.values()) * factor
        >>>
        >>> vertex = FunctionVertex(scale)
        >>> await vertex.execute({"factor": 3}, {"a": 1, "b": 2})
        9
    """

    def __init__(self, fn: Callable, on_cancel: Optional[Callable] = None):
        """Initialize function vertex.

        Args:
            fn: Function to execute (sync or async)
            on_cancel: Optional cleanup function called with (config, output)
                when a job is cancelled after this vertex completed
        """
        self.fn = fn
        self.is_async = inspect.iscoroutinefunction(fn)
        self.signature = inspect.signature(fn)
        self.function_name = getattr(fn, "__name__", type(fn).__name__)
        self._on_cancel = on_cancel

    async def execute(self, config: Dict[str, Any], inputs: Dict[str, Any]) -> Any:
        kwargs = self._build_kwargs(config, inputs)
        if self.is_async:
            return await self.fn(**kwargs)

        # Run sync functions in the default executor to avoid blocking the loop
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(self.fn, **kwargs))

    async def on_cancel(self, config: Dict[str, Any], output: Any) -> None:
        if self._on_cancel is None:
            return
        result = self._on_cancel(config, output)
        if inspect.isawaitable(result):
            await result

    def _build_kwargs(self, config: Dict[str, Any], inputs: Dict[str, Any]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {}
        accepts_var_kwargs = False

        for param_name, param in self.signature.parameters.items():
            if param.kind == inspect.Parameter.VAR_KEYWORD:
                accepts_var_kwargs = True
                continue
            if param.kind == inspect.Parameter.VAR_POSITIONAL:
                continue

            if param_name == "config":
                kwargs["config"] = config
            elif param_name == "inputs":
                kwargs["inputs"] = inputs
            elif param_name in config:
                kwargs[param_name] = config[param_name]
            elif param_name in inputs:
                kwargs[param_name] = inputs[param_name]

        if accepts_var_kwargs:
            for key, value in config.items():
                kwargs.setdefault(key, value)

        return kwargs

    def __repr__(self) -> str:
        return f"FunctionVertex({self.function_name})"
