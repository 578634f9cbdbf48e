"""Configuration management for the search cluster monitor.

Supports YAML-based configuration for the monitored cluster, the expected
node set, refresh defaults and the HTTP server.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..data.models import DEFAULT_REFRESH_INTERVAL_SECONDS

DEFAULT_PLUGIN_ID = "search_monitor"


@dataclass
class ClusterConfig:
    """Connection settings for the monitored cluster."""

    url: str = "http://localhost:9200"
    timeout: int = 20
    verify: bool = True
    ca_bundle: Optional[str] = None


@dataclass
class MonitoringConfig:
    """What to monitor and how to namespace client preferences."""

    # Expected node names; empty disables drift detection
    nodes: List[str] = field(default_factory=list)
    plugin_id: str = DEFAULT_PLUGIN_ID


@dataclass
class RefreshDefaultsConfig:
    """Defaults used until the user saves their own refresh preferences."""

    auto_refresh: bool = False
    interval_seconds: int = DEFAULT_REFRESH_INTERVAL_SECONDS


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080
    url_prefix: str = ""


@dataclass
class Config:
    """Main configuration container."""

    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    refresh: RefreshDefaultsConfig = field(default_factory=RefreshDefaultsConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    # Data directory override
    data_dir: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary."""
        cluster_data = data.get("cluster") or {}
        cluster = ClusterConfig(
            url=cluster_data.get("url", "http://localhost:9200"),
            timeout=cluster_data.get("timeout", 20),
            verify=cluster_data.get("verify", True),
            ca_bundle=cluster_data.get("ca_bundle"),
        )

        monitoring_data = data.get("monitoring") or {}
        nodes = monitoring_data.get("nodes") or []
        if isinstance(nodes, str):
            nodes = [nodes]
        monitoring = MonitoringConfig(
            nodes=[str(n) for n in nodes],
            plugin_id=monitoring_data.get("plugin_id", DEFAULT_PLUGIN_ID),
        )

        refresh_data = data.get("refresh") or {}
        refresh = RefreshDefaultsConfig(
            auto_refresh=bool(refresh_data.get("auto_refresh", False)),
            interval_seconds=refresh_data.get("interval_seconds", DEFAULT_REFRESH_INTERVAL_SECONDS),
        )

        server_data = data.get("server") or {}
        server = ServerConfig(
            host=server_data.get("host", "0.0.0.0"),
            port=server_data.get("port", 8080),
            url_prefix=server_data.get("url_prefix", ""),
        )

        return cls(
            cluster=cluster,
            monitoring=monitoring,
            refresh=refresh,
            server=server,
            data_dir=data.get("data_dir"),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load config from YAML file."""
        if not path.exists():
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """Load config from path or defaults.

        Checks in order:
        1. Provided path
        2. SEARCH_MONITOR_CONFIG env var
        3. ./configs/config.yaml
        4. ./config.yaml
        5. ~/.search_monitor/config.yaml
        6. Default config
        """
        paths_to_try = []

        if config_path:
            paths_to_try.append(Path(config_path))

        if env_path := os.environ.get("SEARCH_MONITOR_CONFIG"):
            paths_to_try.append(Path(env_path))

        paths_to_try.extend([
            Path("./configs/config.yaml"),
            Path("./config.yaml"),
            Path.home() / ".search_monitor" / "config.yaml",
        ])

        for path in paths_to_try:
            if path.exists():
                return cls.from_yaml(path)

        return cls()

    @property
    def drift_detection_enabled(self) -> bool:
        return bool(self.monitoring.nodes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "cluster": {
                "url": self.cluster.url,
                "timeout": self.cluster.timeout,
                "verify": self.cluster.verify,
                "ca_bundle": self.cluster.ca_bundle,
            },
            "monitoring": {
                "nodes": list(self.monitoring.nodes),
                "plugin_id": self.monitoring.plugin_id,
            },
            "refresh": {
                "auto_refresh": self.refresh.auto_refresh,
                "interval_seconds": self.refresh.interval_seconds,
            },
            "server": {
                "host": self.server.host,
                "port": self.server.port,
                "url_prefix": self.server.url_prefix,
            },
            "data_dir": self.data_dir,
        }
