"""Insights - topology drift between configured and observed nodes."""

from .drift import NodeDifferences, node_differences

__all__ = [
    "NodeDifferences",
    "node_differences",
]
