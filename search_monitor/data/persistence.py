"""Preference persistence for the refresh controller.

Client preferences (auto-refresh flag, polling interval) are kept behind a
small key-value port so the controller can be exercised without touching
the filesystem. The JSON-backed store keeps everything in
~/.search_monitor/preferences/ to survive restarts.
"""

from __future__ import annotations

import json
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .models import DEFAULT_REFRESH_INTERVAL_SECONDS


def get_data_dir() -> Path:
    """Get user-persistent data directory.

    Returns ~/.search_monitor/ by default, or SEARCH_MONITOR_DATA_DIR env var.
    Creates the preferences subdirectory if it doesn't exist.
    """
    data_dir = Path(os.environ.get("SEARCH_MONITOR_DATA_DIR", Path.home() / ".search_monitor"))

    (data_dir / "preferences").mkdir(parents=True, exist_ok=True)

    return data_dir


_TRUE_STRINGS = ("true", "1", "yes", "on")
_FALSE_STRINGS = ("false", "0", "no", "off")


def parse_bool(value: Any) -> Optional[bool]:
    """Parse a boolean or boolean-like string; None if it is neither."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return None


class PreferenceStore(ABC):
    """Key-value storage port with typed accessors."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    def get_bool(self, key: str, default: bool = False) -> bool:
        parsed = parse_bool(self.get(key))
        return default if parsed is None else parsed

    def get_int(self, key: str, default: int = 0) -> int:
        value = self.get(key)
        if value is None or isinstance(value, bool):
            return default
        try:
            return int(str(value).strip())
        except ValueError:
            return default


class MemoryPreferenceStore(PreferenceStore):
    """In-process store; nothing survives a restart."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._data)


class JsonPreferenceStore(PreferenceStore):
    """Preference store backed by a single JSON file."""

    def __init__(self, path: Optional[Path] = None):
        self.path = path or (get_data_dir() / "preferences" / "preferences.json")
        self._lock = threading.Lock()
        self._data = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self._data, indent=2, default=str), encoding="utf-8")


class RefreshPreferences:
    """Refresh settings stored under a plugin-specific namespace."""

    AUTO_REFRESH_KEY = "autoRefresh"
    INTERVAL_KEY = "intervalSeconds"

    def __init__(
        self,
        store: PreferenceStore,
        namespace: str = "search_monitor",
        default_auto_refresh: bool = False,
        default_interval: int = DEFAULT_REFRESH_INTERVAL_SECONDS,
    ):
        self.store = store
        self.namespace = namespace
        self.default_auto_refresh = default_auto_refresh
        self.default_interval = default_interval

    def _key(self, name: str) -> str:
        return f"{self.namespace}.{name}"

    def load(self) -> Tuple[bool, Any]:
        """Return (auto_refresh, interval_as_last_typed)."""
        auto_refresh = self.store.get_bool(self._key(self.AUTO_REFRESH_KEY), self.default_auto_refresh)
        interval = self.store.get(self._key(self.INTERVAL_KEY), self.default_interval)
        return auto_refresh, interval

    def save_auto_refresh(self, enabled: bool) -> None:
        self.store.set(self._key(self.AUTO_REFRESH_KEY), bool(enabled))

    def save_interval(self, value: Any) -> None:
        self.store.set(self._key(self.INTERVAL_KEY), value)
