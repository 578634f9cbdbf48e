"""Tests for preference persistence."""

import json

from search_monitor.data.persistence import (
    JsonPreferenceStore,
    MemoryPreferenceStore,
    RefreshPreferences,
    get_data_dir,
    parse_bool,
)


class TestGetDataDir:
    def test_env_override(self, temp_data_dir, monkeypatch):
        monkeypatch.setenv("SEARCH_MONITOR_DATA_DIR", str(temp_data_dir / "monitor"))
        data_dir = get_data_dir()

        assert data_dir == temp_data_dir / "monitor"
        assert (data_dir / "preferences").exists()
        assert not (data_dir / "logs").exists()


class TestParseBool:
    def test_values(self):
        assert parse_bool(True) is True
        assert parse_bool(False) is False
        assert parse_bool("false") is False
        assert parse_bool(" Yes ") is True
        assert parse_bool("0") is False
        assert parse_bool("maybe") is None
        assert parse_bool(1) is None
        assert parse_bool(None) is None


class TestMemoryPreferenceStore:
    def test_get_set(self):
        store = MemoryPreferenceStore()
        assert store.get("missing", "d") == "d"
        store.set("k", 1)
        assert store.get("k") == 1
        assert store.as_dict() == {"k": 1}

    def test_get_bool(self):
        store = MemoryPreferenceStore({"a": True, "b": "false", "c": "yes", "d": 3})
        assert store.get_bool("a") is True
        assert store.get_bool("b", default=True) is False
        assert store.get_bool("c") is True
        assert store.get_bool("d", default=True) is True
        assert store.get_bool("missing") is False

    def test_get_int(self):
        store = MemoryPreferenceStore({"a": "45", "b": "abc", "c": 60})
        assert store.get_int("a") == 45
        assert store.get_int("b", default=30) == 30
        assert store.get_int("c") == 60
        assert store.get_int("missing", default=5) == 5


class TestJsonPreferenceStore:
    def test_round_trip(self, temp_data_dir):
        path = temp_data_dir / "preferences" / "prefs.json"
        store = JsonPreferenceStore(path)
        store.set("search_monitor.intervalSeconds", 60)

        assert path.exists()
        assert json.loads(path.read_text())["search_monitor.intervalSeconds"] == 60

        reloaded = JsonPreferenceStore(path)
        assert reloaded.get("search_monitor.intervalSeconds") == 60

    def test_corrupt_file(self, temp_data_dir):
        path = temp_data_dir / "prefs.json"
        path.write_text("{not json")
        store = JsonPreferenceStore(path)
        assert store.get("anything") is None


class TestRefreshPreferences:
    def test_defaults(self):
        prefs = RefreshPreferences(MemoryPreferenceStore(), default_interval=60)
        assert prefs.load() == (False, 60)

    def test_namespaced_keys(self):
        store = MemoryPreferenceStore()
        prefs = RefreshPreferences(store, namespace="myplugin")
        prefs.save_auto_refresh(True)
        prefs.save_interval("45")

        assert store.as_dict() == {
            "myplugin.autoRefresh": True,
            "myplugin.intervalSeconds": "45",
        }
        assert prefs.load() == (True, "45")

    def test_invalid_value_kept_verbatim(self):
        store = MemoryPreferenceStore()
        prefs = RefreshPreferences(store)
        prefs.save_interval(10)
        assert prefs.load()[1] == 10
