"""HTTP request handlers for the monitor API.

Provides JSON endpoints for normalized telemetry, refresh state and
settings, error notifications, topology drift and the topology layout.
"""

from __future__ import annotations

import json
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler
from typing import Any, Dict, Optional, TYPE_CHECKING
from urllib.parse import parse_qs, urlparse

from ..data.models import TelemetryKind
from ..data.normalization import filter_recoveries, record_to_dict
from ..data.persistence import parse_bool

if TYPE_CHECKING:
    from .config import Config
    from .workers import RefreshController

# API path -> telemetry kind
KIND_ROUTES = {
    "/api/nodes_stats": TelemetryKind.NODE_STATS,
    "/api/cluster_health": TelemetryKind.CLUSTER_HEALTH,
    "/api/cluster_stats": TelemetryKind.CLUSTER_STATS,
    "/api/recovery": TelemetryKind.RECOVERY,
    "/api/snapshots": TelemetryKind.SNAPSHOTS,
}

def serialize(data: Any) -> Any:
    """Convert records (or lists of records) to JSON-ready structures.

    Telemetry records carry an extra "display" mapping of formatted values.
    """
    if isinstance(data, list):
        return [serialize(item) for item in data]
    if hasattr(data, "to_dict"):
        return record_to_dict(data)
    return data


class MonitorRequestHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the monitor API."""

    # These will be set by the server
    controller: Optional["RefreshController"] = None
    config: Optional["Config"] = None
    url_prefix: str = ""

    def do_GET(self):
        target = self._route_path()
        if target is None:
            return
        parsed = urlparse(target)
        path = parsed.path.rstrip("/") or "/"

        if path in KIND_ROUTES:
            return self._handle_kind(KIND_ROUTES[path], parse_qs(parsed.query))
        if path == "/api/status":
            return self._handle_status()
        if path == "/api/config":
            return self._handle_config()
        if path == "/api/settings":
            return self._handle_get_settings()
        if path == "/api/drift":
            return self._handle_drift()
        if path == "/api/topology":
            return self._handle_topology()
        if path == "/api/notifications":
            return self._handle_notifications()
        self.send_error(HTTPStatus.NOT_FOUND, "Unknown endpoint")

    def do_POST(self):
        target = self._route_path()
        if target is None:
            return
        path = urlparse(target).path.rstrip("/")

        if path == "/api/refresh":
            return self._handle_refresh()
        if path == "/api/settings":
            return self._handle_update_settings()
        if path.startswith("/api/notifications/") and path.endswith("/dismiss"):
            raw_id = path[len("/api/notifications/"):-len("/dismiss")]
            return self._handle_dismiss(raw_id)
        self.send_error(HTTPStatus.NOT_FOUND, "Unknown endpoint")

    def do_OPTIONS(self):
        self.send_response(HTTPStatus.NO_CONTENT)
        self._send_cors_headers()
        self.send_header("Access-Control-Allow-Methods", "GET,POST,OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.end_headers()

    # --- API Handlers ---

    def _require_controller(self) -> Optional["RefreshController"]:
        if self.controller is None:
            self.send_error(HTTPStatus.SERVICE_UNAVAILABLE, "Server not initialized.")
        return self.controller

    def _handle_kind(self, kind: TelemetryKind, query: Dict[str, list]):
        controller = self._require_controller()
        if not controller:
            return
        state = controller.state(kind)
        if not state.has_data:
            self._send_json(
                {"error": state.error or "Data not ready yet.", "status": state.status.value},
                status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            )
            return
        data = state.data
        if kind == TelemetryKind.RECOVERY:
            hide_done = parse_bool((query.get("hide_done") or ["0"])[0]) is True
            data = filter_recoveries(data, hide_done=hide_done)
        self._send_json({
            "data": serialize(data),
            "status": state.status.value,
            "error": state.error,
            "updated_at": state.updated_at,
        })

    def _handle_status(self):
        controller = self._require_controller()
        if controller:
            self._send_json(controller.snapshot().to_dict())

    def _handle_config(self):
        nodes = list(self.config.monitoring.nodes) if self.config else []
        self._send_json({"data": {"nodes": nodes}})

    def _handle_get_settings(self):
        controller = self._require_controller()
        if controller:
            self._send_json(controller.settings.to_dict())

    def _handle_update_settings(self):
        controller = self._require_controller()
        if not controller:
            return
        body = self._read_json_body()
        if not isinstance(body, dict):
            self.send_error(HTTPStatus.BAD_REQUEST, "Expected a JSON object.")
            return

        raw_auto_refresh = body.get("autoRefresh", body.get("auto_refresh"))
        interval = body.get("intervalSeconds", body.get("interval_seconds"))
        if raw_auto_refresh is not None:
            auto_refresh = parse_bool(raw_auto_refresh)
            if auto_refresh is None:
                self.send_error(HTTPStatus.BAD_REQUEST, "autoRefresh must be true or false.")
                return
            controller.set_auto_refresh(auto_refresh)
        if interval is not None:
            controller.set_interval_seconds(interval)
        self._send_json(controller.settings.to_dict())

    def _handle_refresh(self):
        controller = self._require_controller()
        if not controller:
            return
        outcome = controller.refresh_all(blocking=True)
        status = HTTPStatus.OK if outcome.ok else HTTPStatus.SERVICE_UNAVAILABLE
        self._send_json(
            {
                "ok": outcome.ok,
                "skipped": outcome.skipped,
                "succeeded": [k.value for k in outcome.succeeded],
                "failed": {k.value: msg for k, msg in outcome.failed.items()},
            },
            status_code=status,
        )

    def _handle_drift(self):
        controller = self._require_controller()
        if not controller:
            return
        differences = controller.drift()
        if differences is None:
            self._send_json({"enabled": False})
            return
        self._send_json({"enabled": True, **differences.to_dict()})

    def _handle_topology(self):
        controller = self._require_controller()
        if controller:
            self._send_json(controller.topology().to_dict())

    def _handle_notifications(self):
        controller = self._require_controller()
        if controller:
            self._send_json({"notifications": [n.to_dict() for n in controller.notifications()]})

    def _handle_dismiss(self, raw_id: str):
        controller = self._require_controller()
        if not controller:
            return
        try:
            notification_id = int(raw_id)
        except ValueError:
            self.send_error(HTTPStatus.BAD_REQUEST, "Invalid notification id.")
            return
        if not controller.dismiss_notification(notification_id):
            self.send_error(HTTPStatus.NOT_FOUND, "Notification not found.")
            return
        self._send_json({"ok": True})

    # --- Helper Methods ---

    def _route_path(self) -> Optional[str]:
        parsed = urlparse(self.path)
        stripped = self._strip_prefix(parsed.path)
        if stripped is None:
            self.send_error(HTTPStatus.NOT_FOUND, "Invalid prefix")
            return None
        return stripped + (f"?{parsed.query}" if parsed.query else "")

    def _read_json_body(self) -> Any:
        length = int(self.headers.get("Content-Length") or 0)
        if length <= 0:
            return None
        try:
            return json.loads(self.rfile.read(length).decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None

    def _send_json(self, data: Any, *, status_code: HTTPStatus = HTTPStatus.OK):
        body = json.dumps(data, default=str).encode("utf-8")
        self.send_response(status_code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Cache-Control", "no-store, max-age=0")
        self._send_cors_headers()
        self.end_headers()
        self.wfile.write(body)

    def _send_cors_headers(self):
        self.send_header("Access-Control-Allow-Origin", "*")

    def _strip_prefix(self, path: str) -> Optional[str]:
        norm_prefix = (self.url_prefix or "").rstrip("/")
        if not norm_prefix:
            return path or "/"
        if not norm_prefix.startswith("/"):
            norm_prefix = f"/{norm_prefix}"
        if not path.startswith(norm_prefix):
            return None
        stripped = path[len(norm_prefix):] or "/"
        if not stripped.startswith("/"):
            stripped = "/" + stripped
        return stripped

    def log_message(self, format, *args):
        print(f"[server] {self.address_string()} - {format % args}", flush=True)
