"""Tests for topology drift detection."""

from search_monitor.data.models import NodeRecord, UsageStats
from search_monitor.insights.drift import NodeDifferences, node_differences


def _node(name):
    usage = UsageStats(used=0, total=0, percent=0.0)
    return NodeRecord(
        id=name, name=name, host=None, roles=[], zone=None,
        cpu_percent=0.0, mem=usage, swap=usage, fs=usage,
    )


class TestNodeDifferences:
    def test_missing_and_extra(self):
        result = node_differences(["node-a", "node-b"], [_node("node-b"), _node("node-c")])
        assert result.missing == ["node-a"]
        assert result.extra == ["node-c"]
        assert result.has_drift

    def test_no_drift(self):
        result = node_differences(["b", "a"], [_node("a"), _node("b")])
        assert result == NodeDifferences()
        assert not result.has_drift

    def test_sorted_output(self):
        result = node_differences(["z", "m", "a"], [_node("y"), _node("b")])
        assert result.missing == ["a", "m", "z"]
        assert result.extra == ["b", "y"]

    def test_duplicates_collapse(self):
        result = node_differences(["a", "a"], [_node("b"), _node("b")])
        assert result.missing == ["a"]
        assert result.extra == ["b"]

    def test_to_dict(self):
        data = node_differences(["a"], []).to_dict()
        assert data == {"missing": ["a"], "extra": [], "has_drift": True}
