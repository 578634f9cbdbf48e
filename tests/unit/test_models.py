"""Tests for data models."""

import pytest

from search_monitor.data.models import (
    ClusterHealthRecord,
    ClusterHealthStatus,
    IntervalValidationError,
    RecoveryShardRecord,
    RefreshConfig,
    SnapshotRecord,
    TelemetryKind,
    UsageStats,
    NodeRecord,
    validate_interval,
)


def _recovery(stage):
    return RecoveryShardRecord(
        index="i", shard=0, time_ms=0, type="PEER", stage=stage,
        source_host="-", source_node="-", target_host="h", target_node="n",
        files=0, files_recovered=0, files_total=0, files_percent="-",
        bytes=0, bytes_recovered=0, bytes_total=0, bytes_percent="-",
        translog_recovered=0, translog_total=0, translog_percent="-",
    )


class TestTelemetryKind:
    def test_display_names(self):
        assert TelemetryKind.NODE_STATS.display_name == "nodes data"
        assert TelemetryKind.CLUSTER_HEALTH.display_name == "cluster data"
        assert TelemetryKind.RECOVERY.display_name == "recovery data"
        assert TelemetryKind.SNAPSHOTS.display_name == "snapshot data"

    def test_from_value(self):
        assert TelemetryKind("cluster_stats") == TelemetryKind.CLUSTER_STATS


class TestNodeRecord:
    def test_to_dict(self):
        usage = UsageStats(used=1, total=2, percent=50.0)
        node = NodeRecord(
            id="x", name="node-x", host=None, roles=["data"], zone=None,
            cpu_percent=1.0, mem=usage, swap=usage, fs=usage,
        )
        data = node.to_dict()
        assert data["name"] == "node-x"
        assert data["mem"] == {"used": 1, "total": 2, "percent": 50.0}


class TestClusterHealthRecord:
    def test_to_dict(self):
        record = ClusterHealthRecord(cluster_name="c", status=ClusterHealthStatus.RED)
        data = record.to_dict()
        assert data["status"] == "red"
        assert data["unassigned_shards"] == 0


class TestRecoveryShardRecord:
    def test_is_done(self):
        assert _recovery("DONE").is_done
        assert _recovery("done").is_done
        assert not _recovery("INDEX").is_done
        assert not _recovery(None).is_done


class TestSnapshotRecord:
    def test_progress_in_dict(self):
        snap = SnapshotRecord(
            snapshot="s", repository="r", uuid="u", state="STARTED",
            shards_stats={"done": 1, "total": 4},
        )
        assert snap.to_dict()["progress_percent"] == 25.0


class TestValidateInterval:
    def test_valid(self):
        assert validate_interval(30) == 30
        assert validate_interval("45") == 45
        assert validate_interval(" 120 ") == 120

    def test_below_minimum(self):
        with pytest.raises(IntervalValidationError):
            validate_interval(29)

    def test_not_a_number(self):
        with pytest.raises(IntervalValidationError):
            validate_interval("abc")
        with pytest.raises(IntervalValidationError):
            validate_interval(None)
        with pytest.raises(IntervalValidationError):
            validate_interval(True)

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            validate_interval(0)


class TestRefreshConfig:
    def test_defaults(self):
        config = RefreshConfig()
        assert config.auto_refresh is False
        assert config.interval_seconds == 30

    def test_rejects_short_interval(self):
        with pytest.raises(IntervalValidationError):
            RefreshConfig(interval_seconds=10)
