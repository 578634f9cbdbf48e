"""Deterministic zone/role layout of cluster topology.

Nodes are grouped by zone, then by role, and placed into side-by-side zone
columns. Geometry depends only on the number of zones, roles and hosts, so
the same node set always yields the same layout regardless of input order.

Layout of one zone column (top to bottom):

    +-----------------------+  y = 0
    |      Zone: <name>     |  header allowance
    |  +-----------------+  |
    |  |  Role: <name>   |  |  role title
    |  |                 |  |  role padding
    |  |    host-a       |  |  one row per host
    |  |    host-b       |  |
    |  +-----------------+  |
    |                       |  role margin
    |  +-----------------+  |
    |  |  ...            |  |
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from ..data.models import NodeRecord

DEFAULT_ZONE = "default"


@dataclass(frozen=True)
class LayoutConstants:
    """Fixed spacing used by the layout, in pixels."""

    zone_width: float = 220
    zone_margin: float = 40  # Gap between zone columns
    zone_header: float = 40  # Space reserved for the zone title
    role_margin: float = 20  # Gap below each role block
    padding: float = 10  # Horizontal inset of role blocks inside a zone
    role_title_height: float = 20
    role_padding: float = 10  # Gap between role title and first host
    host_spacing: float = 18


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    def intersects(self, other: "Rect") -> bool:
        """True if the interiors overlap; touching edges do not count."""
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )

    def contains(self, point: Point) -> bool:
        return self.x <= point.x <= self.right and self.y <= point.y <= self.bottom


@dataclass
class HostPlacement:
    name: str
    position: Point


@dataclass
class RoleBlock:
    role: str
    rect: Rect
    label_position: Point
    hosts: List[HostPlacement] = field(default_factory=list)

    @property
    def host_names(self) -> List[str]:
        return [h.name for h in self.hosts]


@dataclass
class ZoneColumn:
    zone: str
    rect: Rect
    label_position: Point
    roles: List[RoleBlock] = field(default_factory=list)

    @property
    def role_names(self) -> List[str]:
        return [r.role for r in self.roles]


@dataclass
class TopologyLayout:
    """Computed layout for a set of nodes."""

    width: float
    height: float
    zones: List[ZoneColumn] = field(default_factory=list)

    @property
    def zone_names(self) -> List[str]:
        return [z.zone for z in self.zones]

    def host_positions(self) -> Dict[str, List[Point]]:
        """Map host name -> one point per (zone, role) it appears under."""
        positions: Dict[str, List[Point]] = {}
        for zone in self.zones:
            for role in zone.roles:
                for host in role.hosts:
                    positions.setdefault(host.name, []).append(host.position)
        return positions

    def to_dict(self) -> Dict[str, Any]:
        def rect(r: Rect) -> Dict[str, float]:
            return {"x": r.x, "y": r.y, "width": r.width, "height": r.height}

        def point(p: Point) -> Dict[str, float]:
            return {"x": p.x, "y": p.y}

        return {
            "width": self.width,
            "height": self.height,
            "zones": [
                {
                    "zone": z.zone,
                    "rect": rect(z.rect),
                    "label": point(z.label_position),
                    "roles": [
                        {
                            "role": r.role,
                            "rect": rect(r.rect),
                            "label": point(r.label_position),
                            "hosts": [
                                {"name": h.name, "position": point(h.position)}
                                for h in r.hosts
                            ],
                        }
                        for r in z.roles
                    ],
                }
                for z in self.zones
            ],
        }


def group_nodes(nodes: Iterable[NodeRecord]) -> Dict[str, Dict[str, List[str]]]:
    """Group host names by zone and role, every level sorted.

    A node with several roles is listed under each of them; a node without
    roles does not appear at all.
    """
    grouped: Dict[str, Dict[str, List[str]]] = {}
    for node in nodes:
        roles = [r.strip() for r in node.roles if r and r.strip()]
        if not roles:
            continue
        zone = (node.zone or "").strip() or DEFAULT_ZONE
        zone_roles = grouped.setdefault(zone, {})
        for role in roles:
            zone_roles.setdefault(role, []).append(node.name)

    return {
        zone: {role: sorted(grouped[zone][role]) for role in sorted(grouped[zone])}
        for zone in sorted(grouped)
    }


class TopologyLayoutEngine:
    """Computes a TopologyLayout from normalized node records."""

    def __init__(self, constants: LayoutConstants = LayoutConstants()):
        self.c = constants

    def role_block_height(self, host_count: int) -> float:
        c = self.c
        return c.role_title_height + c.role_padding + host_count * c.host_spacing

    def zone_height(self, host_counts: Iterable[int]) -> float:
        return self.c.zone_header + sum(
            self.role_block_height(n) + self.c.role_margin for n in host_counts
        )

    def layout(self, nodes: Iterable[NodeRecord]) -> TopologyLayout:
        c = self.c
        grouped = group_nodes(nodes)

        zones: List[ZoneColumn] = []
        for zone_index, (zone, roles) in enumerate(grouped.items()):
            zone_x = zone_index * (c.zone_width + c.zone_margin)
            center_x = zone_x + c.zone_width / 2
            height = self.zone_height(len(hosts) for hosts in roles.values())

            column = ZoneColumn(
                zone=zone,
                rect=Rect(zone_x, 0, c.zone_width, height),
                label_position=Point(center_x, c.zone_header / 2),
            )

            offset_y = c.zone_header
            for role, hosts in roles.items():
                block_height = self.role_block_height(len(hosts))
                block = RoleBlock(
                    role=role,
                    rect=Rect(zone_x + c.padding, offset_y, c.zone_width - 2 * c.padding, block_height),
                    label_position=Point(center_x, offset_y + c.role_title_height * 0.8),
                )
                first_host_y = offset_y + c.role_title_height + c.role_padding
                for host_index, host in enumerate(hosts):
                    block.hosts.append(HostPlacement(
                        name=host,
                        position=Point(center_x, first_host_y + host_index * c.host_spacing),
                    ))
                column.roles.append(block)
                offset_y += block_height + c.role_margin

            zones.append(column)

        return TopologyLayout(
            width=len(zones) * (c.zone_width + c.zone_margin),
            height=max((z.rect.height for z in zones), default=0),
            zones=zones,
        )

