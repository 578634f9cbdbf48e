"""Topology layout - zone/role grouping and geometry for visualization."""

from .layout import (
    DEFAULT_ZONE,
    LayoutConstants,
    Point,
    Rect,
    HostPlacement,
    RoleBlock,
    ZoneColumn,
    TopologyLayout,
    TopologyLayoutEngine,
    group_nodes,
)

__all__ = [
    "DEFAULT_ZONE",
    "LayoutConstants",
    "Point",
    "Rect",
    "HostPlacement",
    "RoleBlock",
    "ZoneColumn",
    "TopologyLayout",
    "TopologyLayoutEngine",
    "group_nodes",
]
