"""Builders for flow definitions."""

from flowbuild.builders.flow_builder import FlowBuilder

__all__ = ["FlowBuilder"]
