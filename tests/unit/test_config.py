"""Tests for configuration management."""

import yaml

from search_monitor.server.config import (
    ClusterConfig,
    Config,
    ServerConfig,
)


class TestConfig:
    def test_default_config(self):
        config = Config()
        assert config.cluster.url == "http://localhost:9200"
        assert config.cluster.verify is True
        assert config.monitoring.nodes == []
        assert config.monitoring.plugin_id == "search_monitor"
        assert config.refresh.interval_seconds == 30
        assert config.server.host == "0.0.0.0"
        assert config.server.port == 8080
        assert not config.drift_detection_enabled

    def test_from_dict(self):
        data = {
            "cluster": {
                "url": "https://search.internal:9200",
                "timeout": 5,
                "verify": False,
            },
            "monitoring": {
                "nodes": ["node-a", "node-b"],
                "plugin_id": "cluster_health_ui",
            },
            "refresh": {
                "auto_refresh": True,
                "interval_seconds": 60,
            },
            "server": {
                "host": "localhost",
                "port": 9000,
            },
        }
        config = Config.from_dict(data)

        assert config.cluster.url == "https://search.internal:9200"
        assert config.cluster.timeout == 5
        assert config.cluster.verify is False
        assert config.monitoring.nodes == ["node-a", "node-b"]
        assert config.monitoring.plugin_id == "cluster_health_ui"
        assert config.refresh.auto_refresh is True
        assert config.refresh.interval_seconds == 60
        assert config.server.host == "localhost"
        assert config.server.port == 9000
        assert config.drift_detection_enabled

    def test_nodes_as_string(self):
        config = Config.from_dict({"monitoring": {"nodes": "node-a"}})
        assert config.monitoring.nodes == ["node-a"]

    def test_empty_sections(self):
        config = Config.from_dict({"cluster": None, "monitoring": None})
        assert config.cluster.url == "http://localhost:9200"
        assert config.monitoring.nodes == []

    def test_to_dict_round_trip(self):
        config = Config(
            cluster=ClusterConfig(url="http://es:9200"),
            server=ServerConfig(port=9100),
        )
        restored = Config.from_dict(config.to_dict())
        assert restored.cluster.url == "http://es:9200"
        assert restored.server.port == 9100


class TestConfigLoading:
    def test_from_yaml(self, temp_data_dir):
        path = temp_data_dir / "config.yaml"
        path.write_text(yaml.safe_dump({
            "cluster": {"url": "http://yaml-cluster:9200"},
            "monitoring": {"nodes": ["n1"]},
        }))
        config = Config.from_yaml(path)
        assert config.cluster.url == "http://yaml-cluster:9200"
        assert config.monitoring.nodes == ["n1"]

    def test_from_yaml_missing_file(self, temp_data_dir):
        config = Config.from_yaml(temp_data_dir / "nope.yaml")
        assert config.cluster.url == "http://localhost:9200"

    def test_load_explicit_path(self, temp_data_dir):
        path = temp_data_dir / "custom.yaml"
        path.write_text("server:\n  port: 7000\n")
        assert Config.load(str(path)).server.port == 7000

    def test_load_env_var(self, temp_data_dir, monkeypatch):
        path = temp_data_dir / "env.yaml"
        path.write_text("server:\n  port: 7100\n")
        monkeypatch.setenv("SEARCH_MONITOR_CONFIG", str(path))
        assert Config.load().server.port == 7100
