"""Parsers for converting external formats to flows."""

from flowbuild.parsers.react_flow import ReactFlowParser, ReactFlowJSON

__all__ = [
    "ReactFlowParser",
    "ReactFlowJSON",
]
