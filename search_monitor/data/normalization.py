"""Telemetry normalization.

This module converts the raw, deeply nested JSON documents returned by a
search cluster's REST API into the flat records defined in models.py.

Every normalizer is a pure, total mapping:
1. Optional fields default to 0, None or "-" through safe_get/safe_number
2. Usage percentages are derived (used / total * 100, 0 when total is 0)
3. A missing *required* structure raises MalformedTelemetryError

Display helpers (byte sizes, durations, usage levels) live here as well so
the presentation layer formats values the same way everywhere.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..collectors.base import MalformedTelemetryError
from .models import (
    NOT_APPLICABLE,
    ClusterHealthRecord,
    ClusterHealthStatus,
    ClusterStatsRecord,
    IndicesSummary,
    NodeRecord,
    NodeRoleCounts,
    RecoveryShardRecord,
    SnapshotRecord,
    TelemetryKind,
    UsageLevel,
    UsageStats,
)

_MISSING = object()


# =============================================================================
# Safe Access Helpers
# =============================================================================


def safe_get(obj: Any, *path: str, default: Any = None) -> Any:
    """Walk a nested mapping, returning default on any missing level.

    A level that exists but holds None also yields the default.
    """
    current = obj
    for key in path:
        if not isinstance(current, Mapping):
            return default
        current = current.get(key, _MISSING)
        if current is _MISSING or current is None:
            return default
    return current


def safe_number(value: Any, default: float = 0) -> float:
    """Coerce a JSON value to a finite number, falling back to default."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if not isinstance(value, float):
        try:
            value = float(str(value).strip().replace(",", ""))
        except (TypeError, ValueError):
            return default
    # NaN and infinity cannot be converted to int downstream
    if not math.isfinite(value):
        return default
    return value


def safe_int(value: Any, default: int = 0) -> int:
    return int(safe_number(value, default))


def derived_percent(used: float, total: float) -> float:
    """Return used/total as a percentage, 0 when total is 0."""
    if not total:
        return 0.0
    return (used / total) * 100


def _usage(used: Any, total: Any) -> UsageStats:
    used_n = safe_int(used)
    total_n = safe_int(total)
    return UsageStats(used=used_n, total=total_n, percent=derived_percent(used_n, total_n))


def require_mapping(obj: Any, kind: TelemetryKind, field_name: str) -> Mapping:
    if not isinstance(obj, Mapping):
        raise MalformedTelemetryError(kind.value, field_name)
    return obj


def require_field(obj: Any, field_name: str, kind: TelemetryKind) -> Mapping:
    """Return obj[field_name], which must be a mapping."""
    value = safe_get(obj, field_name, default=_MISSING)
    if value is _MISSING or not isinstance(value, Mapping):
        raise MalformedTelemetryError(kind.value, field_name)
    return value


# =============================================================================
# Node Stats
# =============================================================================


def _normalize_roles(raw_roles: Any) -> List[str]:
    if not isinstance(raw_roles, (list, tuple, set, frozenset)):
        return []
    roles = {str(r).strip() for r in raw_roles if r is not None}
    roles.discard("")
    return sorted(roles)


def normalize_node_stats(nodes: Any) -> List[NodeRecord]:
    """Normalize the per-node map of a `_nodes/stats/fs,os` response.

    Args:
        nodes: Mapping of node id -> node stats object

    Returns:
        One NodeRecord per node, in source order
    """
    nodes = require_mapping(nodes, TelemetryKind.NODE_STATS, "nodes")

    records: List[NodeRecord] = []
    for node_id, node in nodes.items():
        fs_total = safe_int(safe_get(node, "fs", "total", "total_in_bytes"))
        fs_free = safe_int(safe_get(node, "fs", "total", "free_in_bytes"))

        records.append(NodeRecord(
            id=str(node_id),
            name=str(safe_get(node, "name", default=node_id)),
            host=safe_get(node, "host"),
            roles=_normalize_roles(safe_get(node, "roles", default=[])),
            zone=safe_get(node, "attributes", "zone"),
            cpu_percent=safe_number(safe_get(node, "os", "cpu", "percent")),
            mem=_usage(
                safe_get(node, "os", "mem", "used_in_bytes"),
                safe_get(node, "os", "mem", "total_in_bytes"),
            ),
            swap=_usage(
                safe_get(node, "os", "swap", "used_in_bytes"),
                safe_get(node, "os", "swap", "total_in_bytes"),
            ),
            fs=_usage(fs_total - fs_free, fs_total),
        ))
    return records


# =============================================================================
# Cluster Health
# =============================================================================


def normalize_cluster_health(raw: Any) -> ClusterHealthRecord:
    """Normalize a `_cluster/health` response."""
    raw = require_mapping(raw, TelemetryKind.CLUSTER_HEALTH, "status")
    status = str(safe_get(raw, "status", default="")).strip().lower()
    try:
        health = ClusterHealthStatus(status)
    except ValueError:
        raise MalformedTelemetryError(
            TelemetryKind.CLUSTER_HEALTH.value,
            "status",
            f"unrecognized cluster status {status!r}" if status else None,
        ) from None

    return ClusterHealthRecord(
        cluster_name=safe_get(raw, "cluster_name"),
        status=health,
        number_of_nodes=safe_int(raw.get("number_of_nodes")),
        number_of_data_nodes=safe_int(raw.get("number_of_data_nodes")),
        active_primary_shards=safe_int(raw.get("active_primary_shards")),
        active_shards=safe_int(raw.get("active_shards")),
        relocating_shards=safe_int(raw.get("relocating_shards")),
        initializing_shards=safe_int(raw.get("initializing_shards")),
        unassigned_shards=safe_int(raw.get("unassigned_shards")),
        active_shards_percent=float(safe_number(raw.get("active_shards_percent_as_number"))),
    )


# =============================================================================
# Cluster Stats
# =============================================================================

_ROLE_COUNT_FIELDS = (
    "total",
    "cluster_manager",
    "coordinating_only",
    "data",
    "ingest",
    "master",
    "remote_cluster_client",
    "search",
    "warm",
)


def normalize_cluster_stats(raw: Any) -> ClusterStatsRecord:
    """Normalize a `_cluster/stats` response.

    The top-level `nodes` object is required; everything below it is
    optional and defaults to 0.
    """
    nodes = require_field(raw, "nodes", TelemetryKind.CLUSTER_STATS)

    counts = NodeRoleCounts(**{
        name: safe_int(safe_get(nodes, "count", name)) for name in _ROLE_COUNT_FIELDS
    })

    fs_total = safe_int(safe_get(nodes, "fs", "total_in_bytes"))
    fs_free = safe_int(safe_get(nodes, "fs", "free_in_bytes"))

    versions = safe_get(nodes, "versions", default=[])
    if isinstance(versions, str):
        versions = [versions]

    indices = IndicesSummary(
        count=safe_int(safe_get(raw, "indices", "count")),
        shards_total=safe_int(safe_get(raw, "indices", "shards", "total")),
        shards_primaries=safe_int(safe_get(raw, "indices", "shards", "primaries")),
        replication=float(safe_number(safe_get(raw, "indices", "shards", "replication"))),
        docs_count=safe_int(safe_get(raw, "indices", "docs", "count")),
        docs_deleted=safe_int(safe_get(raw, "indices", "docs", "deleted")),
        store_size_in_bytes=safe_int(safe_get(raw, "indices", "store", "size_in_bytes")),
        segments_count=safe_int(safe_get(raw, "indices", "segments", "count")),
    )

    return ClusterStatsRecord(
        cluster_name=safe_get(raw, "cluster_name"),
        status=safe_get(raw, "status"),
        versions=[str(v) for v in versions] if isinstance(versions, list) else [],
        uptime_ms=safe_int(safe_get(nodes, "jvm", "max_uptime_in_millis")),
        nodes=counts,
        jvm_heap=_usage(
            safe_get(nodes, "jvm", "mem", "heap_used_in_bytes"),
            safe_get(nodes, "jvm", "mem", "heap_max_in_bytes"),
        ),
        jvm_threads=safe_int(safe_get(nodes, "jvm", "threads")),
        fs=_usage(fs_total - fs_free, fs_total),
        indices=indices,
    )


# =============================================================================
# Recovery
# =============================================================================


def _recovery_percent(total: int, percent: Any) -> str:
    # The source already formats and rounds the percentage string.
    if total == 0:
        return NOT_APPLICABLE
    return str(percent) if percent is not None else "0%"


def normalize_recovery_stats(raw: Any) -> List[RecoveryShardRecord]:
    """Flatten a `_recovery?detailed` response into one record per shard.

    Args:
        raw: Mapping of index name -> {"shards": [...]}
    """
    raw = require_mapping(raw, TelemetryKind.RECOVERY, "indices")

    records: List[RecoveryShardRecord] = []
    for index_name, index_data in raw.items():
        shards = safe_get(index_data, "shards", default=[])
        if not isinstance(shards, list):
            continue
        for shard in shards:
            files_total = safe_int(safe_get(shard, "index", "files", "total"))
            bytes_total = safe_int(safe_get(shard, "index", "size", "total_in_bytes"))
            bytes_recovered = safe_int(safe_get(shard, "index", "size", "recovered_in_bytes"))
            translog_total = safe_int(safe_get(shard, "translog", "total"))
            shard_id = safe_get(shard, "id")

            records.append(RecoveryShardRecord(
                index=str(index_name),
                shard=safe_int(shard_id) if shard_id is not None else None,
                time_ms=safe_int(safe_get(shard, "total_time_in_millis")),
                type=safe_get(shard, "type"),
                stage=safe_get(shard, "stage"),
                source_host=safe_get(shard, "source", "host", default=NOT_APPLICABLE),
                source_node=safe_get(shard, "source", "name", default=NOT_APPLICABLE),
                target_host=safe_get(shard, "target", "host", default=NOT_APPLICABLE),
                target_node=safe_get(shard, "target", "name", default=NOT_APPLICABLE),
                files=files_total,
                files_recovered=safe_int(safe_get(shard, "index", "files", "recovered")),
                files_total=files_total,
                files_percent=_recovery_percent(
                    files_total, safe_get(shard, "index", "files", "percent")
                ),
                bytes=bytes_recovered,
                bytes_recovered=bytes_recovered,
                bytes_total=bytes_total,
                bytes_percent=_recovery_percent(
                    bytes_total, safe_get(shard, "index", "size", "percent")
                ),
                translog_recovered=safe_int(safe_get(shard, "translog", "recovered")),
                translog_total=translog_total,
                translog_percent=_recovery_percent(
                    translog_total, safe_get(shard, "translog", "percent")
                ),
            ))
    return records


def filter_recoveries(
    records: Iterable[RecoveryShardRecord], hide_done: bool = True
) -> List[RecoveryShardRecord]:
    """Drop finished recoveries unless hide_done is False."""
    if not hide_done:
        return list(records)
    return [r for r in records if not r.is_done]


# =============================================================================
# Snapshots
# =============================================================================


def normalize_snapshot_stats(raw: Any) -> List[SnapshotRecord]:
    """Normalize a `_snapshot/_status` response.

    No running snapshots is a normal steady state: an absent or empty
    response yields an empty list.
    """
    snapshots = safe_get(raw, "snapshots", default=[])
    if not isinstance(snapshots, list):
        return []

    records: List[SnapshotRecord] = []
    for snap in snapshots:
        if not isinstance(snap, Mapping):
            continue
        records.append(SnapshotRecord(
            snapshot=snap.get("snapshot"),
            repository=snap.get("repository"),
            uuid=snap.get("uuid"),
            state=snap.get("state"),
            include_global_state=snap.get("include_global_state"),
            shards_stats=dict(safe_get(snap, "shards_stats", default={})),
            stats=dict(safe_get(snap, "stats", default={})),
            indices=dict(safe_get(snap, "indices", default={})),
        ))
    return records


# =============================================================================
# Dispatch
# =============================================================================


def _normalize_node_stats_response(body: Any) -> List[NodeRecord]:
    return normalize_node_stats(require_field(body, "nodes", TelemetryKind.NODE_STATS))


NORMALIZERS: Dict[TelemetryKind, Callable[[Any], Any]] = {
    TelemetryKind.NODE_STATS: _normalize_node_stats_response,
    TelemetryKind.CLUSTER_HEALTH: normalize_cluster_health,
    TelemetryKind.CLUSTER_STATS: normalize_cluster_stats,
    TelemetryKind.RECOVERY: normalize_recovery_stats,
    TelemetryKind.SNAPSHOTS: normalize_snapshot_stats,
}


def normalize_response(kind: TelemetryKind, body: Any) -> Any:
    """Normalize a full response body for the given telemetry kind."""
    return NORMALIZERS[TelemetryKind(kind)](body)


# =============================================================================
# Display Helpers
# =============================================================================

_BYTE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")

_TIME_UNITS = ("d", "h", "m", "s", "ms")


def format_bytes(num_bytes: Optional[float]) -> str:
    """Format a byte count using 1024-based units, e.g. '1.5 KB'."""
    value = safe_number(num_bytes)
    if value <= 0:
        return "0 B"
    exponent = 0
    while value >= 1024 and exponent < len(_BYTE_UNITS) - 1:
        value /= 1024
        exponent += 1
    value = round(value, 2)
    if value == int(value):
        value = int(value)
    return f"{value} {_BYTE_UNITS[exponent]}"


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'}"


def format_duration(millis: Optional[float], smallest_unit: str = "ms") -> str:
    """Format milliseconds as e.g. '1 day 2 hours 5 minutes'.

    Args:
        millis: Duration in milliseconds
        smallest_unit: One of 'd', 'h', 'm', 's', 'ms'; smaller parts are dropped
    """
    if smallest_unit not in _TIME_UNITS:
        raise ValueError(f"Unknown time unit: {smallest_unit!r}")
    min_index = _TIME_UNITS.index(smallest_unit)

    millis = safe_int(millis)
    seconds = millis // 1000
    days = seconds // 86400
    hours = (seconds % 86400) // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    remaining_millis = millis % 1000

    parts = []
    if days > 0:
        parts.append(_plural(days, "day"))
    if min_index >= 1 and hours > 0:
        parts.append(_plural(hours, "hour"))
    if min_index >= 2 and minutes > 0:
        parts.append(_plural(minutes, "minute"))
    if min_index >= 3 and secs > 0:
        parts.append(_plural(secs, "second"))
    if min_index >= 4 and (remaining_millis > 0 or not parts):
        parts.append(_plural(remaining_millis, "millisecond"))

    return " ".join(parts)


def usage_level(percent: Optional[float]) -> UsageLevel:
    """Classify a usage percentage for display."""
    percent = safe_number(percent)
    if percent < 80:
        return UsageLevel.OK
    if percent < 90:
        return UsageLevel.WARNING
    return UsageLevel.CRITICAL


def _usage_display(usage: UsageStats) -> Dict[str, str]:
    return {
        "used": format_bytes(usage.used),
        "total": format_bytes(usage.total),
        "level": usage_level(usage.percent).value,
    }


def display_fields(record: Any) -> Dict[str, Any]:
    """Human-readable values for one record, keyed by the field they format.

    Returns an empty dict for records without formatted fields.
    """
    if isinstance(record, NodeRecord):
        return {
            "cpu_level": usage_level(record.cpu_percent).value,
            "mem": _usage_display(record.mem),
            "swap": _usage_display(record.swap),
            "fs": _usage_display(record.fs),
        }
    if isinstance(record, ClusterStatsRecord):
        return {
            "uptime": format_duration(record.uptime_ms, smallest_unit="m"),
            "jvm_heap": _usage_display(record.jvm_heap),
            "fs": _usage_display(record.fs),
            "store_size": format_bytes(record.indices.store_size_in_bytes),
        }
    if isinstance(record, RecoveryShardRecord):
        return {
            "time": format_duration(record.time_ms),
            "bytes_recovered": format_bytes(record.bytes_recovered),
            "bytes_total": format_bytes(record.bytes_total),
        }
    if isinstance(record, SnapshotRecord):
        return {
            "size": format_bytes(safe_get(record.stats, "total", "size_in_bytes")),
        }
    return {}


def record_to_dict(record: Any) -> Dict[str, Any]:
    """record.to_dict() plus a "display" mapping where one applies."""
    data = record.to_dict()
    display = display_fields(record)
    if display:
        data["display"] = display
    return data
