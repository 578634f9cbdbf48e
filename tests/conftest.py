"""Pytest configuration and shared fixtures."""

import pytest
from pathlib import Path
from tempfile import TemporaryDirectory


@pytest.fixture
def temp_data_dir():
    """Create a temporary data directory for tests."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_node_stats():
    """Sample `_nodes/stats/fs,os` response with two nodes."""
    return {
        "_nodes": {"total": 2, "successful": 2, "failed": 0},
        "cluster_name": "search-prod",
        "nodes": {
            "aXk3": {
                "name": "node-a",
                "host": "10.0.0.1",
                "roles": ["data", "ingest", "data"],
                "attributes": {"zone": "us-east-1a"},
                "os": {
                    "cpu": {"percent": 12},
                    "mem": {"total_in_bytes": 1000, "used_in_bytes": 500},
                    "swap": {"total_in_bytes": 0, "used_in_bytes": 0},
                },
                "fs": {"total": {"total_in_bytes": 200, "free_in_bytes": 50}},
            },
            "bY7q": {
                "name": "node-b",
                "host": "10.0.0.2",
                "roles": ["cluster_manager"],
                "os": {
                    "cpu": {"percent": 3},
                    "mem": {"total_in_bytes": 2000, "used_in_bytes": 1900},
                    "swap": {"total_in_bytes": 100, "used_in_bytes": 10},
                },
                "fs": {"total": {"total_in_bytes": 1000, "free_in_bytes": 1000}},
            },
        },
    }


@pytest.fixture
def sample_cluster_health():
    """Sample `_cluster/health` response."""
    return {
        "cluster_name": "search-prod",
        "status": "yellow",
        "timed_out": False,
        "number_of_nodes": 3,
        "number_of_data_nodes": 2,
        "active_primary_shards": 10,
        "active_shards": 15,
        "relocating_shards": 1,
        "initializing_shards": 0,
        "unassigned_shards": 5,
        "active_shards_percent_as_number": 75.0,
    }


@pytest.fixture
def sample_cluster_stats():
    """Sample `_cluster/stats` response."""
    return {
        "cluster_name": "search-prod",
        "status": "green",
        "indices": {
            "count": 4,
            "shards": {"total": 16, "primaries": 8, "replication": 1.0},
            "docs": {"count": 12345, "deleted": 12},
            "store": {"size_in_bytes": 1048576},
            "segments": {"count": 40},
        },
        "nodes": {
            "count": {
                "total": 3,
                "cluster_manager": 1,
                "coordinating_only": 0,
                "data": 2,
                "ingest": 2,
                "master": 1,
                "remote_cluster_client": 3,
            },
            "versions": ["2.11.0"],
            "jvm": {
                "max_uptime_in_millis": 93784005,
                "mem": {"heap_used_in_bytes": 256, "heap_max_in_bytes": 1024},
                "threads": 120,
            },
            "fs": {"total_in_bytes": 4000, "free_in_bytes": 1000},
        },
    }


@pytest.fixture
def sample_recovery():
    """Sample `_recovery?detailed` response with a finished and an empty shard."""
    return {
        "logs-2024": {
            "shards": [
                {
                    "id": 0,
                    "type": "PEER",
                    "stage": "DONE",
                    "total_time_in_millis": 1500,
                    "source": {"host": "10.0.0.1", "name": "node-a"},
                    "target": {"host": "10.0.0.2", "name": "node-b"},
                    "index": {
                        "size": {
                            "total_in_bytes": 2048,
                            "recovered_in_bytes": 1024,
                            "percent": "50.0%",
                        },
                        "files": {"total": 10, "recovered": 5, "percent": "50.0%"},
                    },
                    "translog": {"recovered": 3, "total": 3, "percent": "100.0%"},
                },
                {
                    "id": 1,
                    "type": "EMPTY_STORE",
                    "stage": "INDEX",
                    "total_time_in_millis": 20,
                    "target": {"host": "10.0.0.2", "name": "node-b"},
                    "index": {
                        "size": {"total_in_bytes": 0, "recovered_in_bytes": 0, "percent": "0.0%"},
                        "files": {"total": 0, "recovered": 0, "percent": "0.0%"},
                    },
                    "translog": {"recovered": 0, "total": 0, "percent": "100.0%"},
                },
            ]
        }
    }


@pytest.fixture
def sample_snapshots():
    """Sample `_snapshot/_status` response with one running snapshot."""
    return {
        "snapshots": [
            {
                "snapshot": "nightly-1",
                "repository": "s3-backups",
                "uuid": "u-123",
                "state": "STARTED",
                "include_global_state": True,
                "shards_stats": {"initializing": 0, "started": 1, "done": 3, "total": 4},
                "stats": {"total": {"file_count": 10, "size_in_bytes": 2048}},
                "indices": {
                    "logs-2024": {
                        "shards_stats": {"done": 3, "total": 4},
                        "shards": {"0": {"stage": "DONE"}},
                    }
                },
            }
        ]
    }


@pytest.fixture
def raw_payloads(
    sample_node_stats,
    sample_cluster_health,
    sample_cluster_stats,
    sample_recovery,
    sample_snapshots,
):
    """Raw response body for every telemetry kind."""
    from search_monitor.data.models import TelemetryKind

    return {
        TelemetryKind.NODE_STATS: sample_node_stats,
        TelemetryKind.CLUSTER_HEALTH: sample_cluster_health,
        TelemetryKind.CLUSTER_STATS: sample_cluster_stats,
        TelemetryKind.RECOVERY: sample_recovery,
        TelemetryKind.SNAPSHOTS: sample_snapshots,
    }
