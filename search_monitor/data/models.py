"""Data models for search cluster monitoring.

This module defines the typed view-models produced by the normalization
layer, following these semantic principles:

1. DERIVED PERCENTAGES
   - Usage percentages are always computed as used / total * 100
   - A zero total yields 0, never a division error
   - Source-provided percentages are kept only where the source already
     encodes rounding (recovery progress, active shards percent)

2. EXPLICIT UNITS
   - Sizes: bytes (integers), suffix `_in_bytes` where ambiguous
   - Time: milliseconds (integers), suffix `_ms`
   - Counts: nodes, shards, documents, segments (integers)

3. NOT-APPLICABLE SENTINEL
   - Recovery percentages are the literal "-" when their total is 0,
     which distinguishes "nothing to recover" from "0% recovered"
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


NOT_APPLICABLE = "-"

MIN_REFRESH_INTERVAL_SECONDS = 30
DEFAULT_REFRESH_INTERVAL_SECONDS = 30


# =============================================================================
# Enumerations
# =============================================================================


class TelemetryKind(str, Enum):
    """Independently fetched and normalized category of monitoring data."""

    NODE_STATS = "node_stats"
    CLUSTER_HEALTH = "cluster_health"
    CLUSTER_STATS = "cluster_stats"
    RECOVERY = "recovery"
    SNAPSHOTS = "snapshots"

    @property
    def display_name(self) -> str:
        return _KIND_DISPLAY_NAMES[self]


_KIND_DISPLAY_NAMES = {
    TelemetryKind.NODE_STATS: "nodes data",
    TelemetryKind.CLUSTER_HEALTH: "cluster data",
    TelemetryKind.CLUSTER_STATS: "cluster stats",
    TelemetryKind.RECOVERY: "recovery data",
    TelemetryKind.SNAPSHOTS: "snapshot data",
}


class ClusterHealthStatus(str, Enum):
    """Cluster health as reported by the cluster itself."""

    GREEN = "green"  # All shards allocated
    YELLOW = "yellow"  # Primaries allocated, some replicas not
    RED = "red"  # At least one primary unallocated


class UsageLevel(str, Enum):
    """Display severity for a usage percentage."""

    OK = "OK"  # Below 80%
    WARNING = "WARNING"  # 80-90%
    CRITICAL = "CRITICAL"  # 90% and above


class FetchState(str, Enum):
    """Lifecycle of one telemetry kind inside the refresh controller."""

    IDLE = "IDLE"  # Never fetched
    FETCHING = "FETCHING"  # Request in flight
    READY = "READY"  # Last fetch succeeded
    FAILED = "FAILED"  # Last fetch failed; data (if any) is stale


# =============================================================================
# Node Stats
# =============================================================================


@dataclass
class UsageStats:
    """Used/total pair with a derived percentage.

    Units: bytes for used/total, percent (0-100) for percent.
    """

    used: int
    total: int
    percent: float


@dataclass
class NodeRecord:
    """Resource usage for a single cluster node."""

    id: str
    name: str
    host: Optional[str]
    roles: List[str]  # De-duplicated and sorted
    zone: Optional[str]
    cpu_percent: float
    mem: UsageStats
    swap: UsageStats
    fs: UsageStats

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =============================================================================
# Cluster Health
# =============================================================================


@dataclass
class ClusterHealthRecord:
    """Cluster health summary.

    active_shards_percent is taken verbatim from the source.
    """

    cluster_name: Optional[str]
    status: ClusterHealthStatus
    number_of_nodes: int = 0
    number_of_data_nodes: int = 0
    active_primary_shards: int = 0
    active_shards: int = 0
    relocating_shards: int = 0
    initializing_shards: int = 0
    unassigned_shards: int = 0
    active_shards_percent: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


# =============================================================================
# Cluster Stats
# =============================================================================


@dataclass
class NodeRoleCounts:
    """Number of nodes per role across the cluster."""

    total: int = 0
    cluster_manager: int = 0
    coordinating_only: int = 0
    data: int = 0
    ingest: int = 0
    master: int = 0
    remote_cluster_client: int = 0
    search: int = 0
    warm: int = 0


@dataclass
class IndicesSummary:
    """Cluster-wide index totals."""

    count: int = 0
    shards_total: int = 0
    shards_primaries: int = 0
    replication: float = 0.0
    docs_count: int = 0
    docs_deleted: int = 0
    store_size_in_bytes: int = 0
    segments_count: int = 0


@dataclass
class ClusterStatsRecord:
    """Aggregate statistics for the whole cluster."""

    cluster_name: Optional[str]
    status: Optional[str]
    versions: List[str]
    uptime_ms: int
    nodes: NodeRoleCounts
    jvm_heap: UsageStats
    jvm_threads: int
    fs: UsageStats
    indices: IndicesSummary

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =============================================================================
# Recovery
# =============================================================================


@dataclass
class RecoveryShardRecord:
    """Progress of one shard copy being recovered.

    Every *_percent field is "-" exactly when the matching *_total is 0.
    """

    index: str
    shard: Optional[int]
    time_ms: int
    type: Optional[str]
    stage: Optional[str]
    source_host: str
    source_node: str
    target_host: str
    target_node: str
    files: int
    files_recovered: int
    files_total: int
    files_percent: str
    bytes: int
    bytes_recovered: int
    bytes_total: int
    bytes_percent: str
    translog_recovered: int
    translog_total: int
    translog_percent: str

    @property
    def is_done(self) -> bool:
        return (self.stage or "").upper() == "DONE"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =============================================================================
# Snapshots
# =============================================================================


@dataclass
class SnapshotRecord:
    """Status of one running snapshot.

    shards_stats, stats and indices are passed through from the source;
    indices maps index name to its status, which itself holds per-shard
    sub-records under "shards".
    """

    snapshot: Optional[str]
    repository: Optional[str]
    uuid: Optional[str]
    state: Optional[str]
    include_global_state: Optional[bool] = None
    shards_stats: Dict[str, Any] = field(default_factory=dict)
    stats: Dict[str, Any] = field(default_factory=dict)
    indices: Dict[str, Any] = field(default_factory=dict)

    @property
    def progress_percent(self) -> float:
        """Share of shards done, as a percentage."""
        total = self.shards_stats.get("total") or 0
        if not total:
            return 0.0
        return ((self.shards_stats.get("done") or 0) / total) * 100

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["progress_percent"] = self.progress_percent
        return data


# =============================================================================
# Refresh Settings
# =============================================================================


class IntervalValidationError(ValueError):
    """Raised when a refresh interval is below the allowed minimum."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(
            f"Refresh interval must be an integer of at least "
            f"{MIN_REFRESH_INTERVAL_SECONDS} seconds (got {value!r})"
        )


def validate_interval(value: Any) -> int:
    """Return value as an int, raising IntervalValidationError if invalid."""
    if isinstance(value, bool):
        raise IntervalValidationError(value)
    try:
        seconds = int(str(value).strip())
    except (TypeError, ValueError):
        raise IntervalValidationError(value) from None
    if seconds < MIN_REFRESH_INTERVAL_SECONDS:
        raise IntervalValidationError(value)
    return seconds


@dataclass
class RefreshConfig:
    """User polling preferences.

    interval_seconds is always a valid (>= 30) interval; the raw value the
    user typed lives in the preference store.
    """

    auto_refresh: bool = False
    interval_seconds: int = DEFAULT_REFRESH_INTERVAL_SECONDS

    def __post_init__(self):
        self.interval_seconds = validate_interval(self.interval_seconds)
