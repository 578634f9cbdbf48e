"""Topology drift detection.

Compares the node names an operator expects (from configuration) with the
nodes the cluster actually reports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from ..data.models import NodeRecord


@dataclass
class NodeDifferences:
    """Configured-but-missing and observed-but-unexpected node names."""

    missing: List[str] = field(default_factory=list)
    extra: List[str] = field(default_factory=list)

    @property
    def has_drift(self) -> bool:
        return bool(self.missing or self.extra)

    def to_dict(self) -> Dict[str, Any]:
        return {"missing": self.missing, "extra": self.extra, "has_drift": self.has_drift}


def node_differences(configured_names: Iterable[str], actual: Iterable[NodeRecord]) -> NodeDifferences:
    """Set difference between configured names and observed node records.

    Output lists are sorted, so the result does not depend on input order.
    """
    expected = {name for name in configured_names}
    observed = {node.name for node in actual}
    return NodeDifferences(
        missing=sorted(expected - observed),
        extra=sorted(observed - expected),
    )
