"""Data layer - models, normalization and preference persistence."""

from .persistence import (
    JsonPreferenceStore,
    MemoryPreferenceStore,
    PreferenceStore,
    RefreshPreferences,
    get_data_dir,
)
from .models import (
    TelemetryKind,
    FetchState,
    UsageStats,
    NodeRecord,
    ClusterHealthStatus,
    ClusterHealthRecord,
    NodeRoleCounts,
    IndicesSummary,
    ClusterStatsRecord,
    RecoveryShardRecord,
    SnapshotRecord,
    RefreshConfig,
    IntervalValidationError,
)

__all__ = [
    "JsonPreferenceStore",
    "MemoryPreferenceStore",
    "PreferenceStore",
    "RefreshPreferences",
    "get_data_dir",
    "TelemetryKind",
    "FetchState",
    "UsageStats",
    "NodeRecord",
    "ClusterHealthStatus",
    "ClusterHealthRecord",
    "NodeRoleCounts",
    "IndicesSummary",
    "ClusterStatsRecord",
    "RecoveryShardRecord",
    "SnapshotRecord",
    "RefreshConfig",
    "IntervalValidationError",
]
