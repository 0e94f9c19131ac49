"""Vertex execution capabilities."""

from flowbuild.vertices.base import VertexExecutor, supports_cancel
from flowbuild.vertices.function import FunctionVertex
from flowbuild.vertices.builtin import PassthroughVertex, ConstantVertex

__all__ = [
    "VertexExecutor",
    "supports_cancel",
    "FunctionVertex",
    "PassthroughVertex",
    "ConstantVertex",
]
