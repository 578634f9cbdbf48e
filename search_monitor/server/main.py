#!/usr/bin/env python3
"""
Search Cluster Monitor - Main entry point.

Runs the monitor API server with scheduled telemetry refresh.
"""

from __future__ import annotations

import argparse
from http.server import ThreadingHTTPServer
from pathlib import Path
from typing import Optional

from .config import Config
from .routes import MonitorRequestHandler
from .workers import RefreshController
from ..collectors.opensearch import TelemetrySource
from ..data.persistence import JsonPreferenceStore, RefreshPreferences, get_data_dir


def build_controller(config: Config, data_dir: Optional[Path] = None) -> RefreshController:
    """Wire telemetry source, preference store and controller from config."""
    source = TelemetrySource.from_config(config.cluster)
    store = JsonPreferenceStore((data_dir or get_data_dir()) / "preferences" / "preferences.json")
    preferences = RefreshPreferences(
        store,
        namespace=config.monitoring.plugin_id,
        default_auto_refresh=config.refresh.auto_refresh,
        default_interval=config.refresh.interval_seconds,
    )
    return RefreshController(
        source,
        preferences,
        configured_nodes=config.monitoring.nodes,
    )


def run_server(args) -> None:
    """Run the monitor server."""
    config = Config.load(args.config)
    print(f"[config] Loaded: cluster.url={config.cluster.url!r}, "
          f"expected nodes={len(config.monitoring.nodes)}")

    # Override config with CLI args
    if args.url:
        config.cluster.url = args.url
    if args.timeout:
        config.cluster.timeout = args.timeout
    if args.insecure:
        config.cluster.verify = False
    if args.ca_bundle:
        config.cluster.ca_bundle = args.ca_bundle
    if args.host:
        config.server.host = args.host
    if args.port:
        config.server.port = args.port
    if args.url_prefix:
        config.server.url_prefix = args.url_prefix

    data_dir = Path(config.data_dir) if config.data_dir else None
    controller = build_controller(config, data_dir)

    print("[server] Loading initial data...")
    outcome = controller.start()
    if not outcome.ok:
        print(f"[server] Initial refresh incomplete: "
              f"{', '.join(k.value for k in outcome.failed) or 'skipped'}")

    MonitorRequestHandler.controller = controller
    MonitorRequestHandler.config = config
    MonitorRequestHandler.url_prefix = config.server.url_prefix

    server = ThreadingHTTPServer((config.server.host, config.server.port), MonitorRequestHandler)

    print(f"[server] Serving on http://{config.server.host}:{config.server.port}")
    if config.server.url_prefix:
        print(f"[server] URL prefix: {config.server.url_prefix}")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\n[server] Shutting down...")
    finally:
        controller.close()
        controller.source.close()
        server.server_close()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Search Cluster Monitor",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Server options
    parser.add_argument("--host", default=None, help="Bind address (overrides config)")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on (overrides config)")
    parser.add_argument("--config", type=str, help="Path to config YAML file")
    parser.add_argument(
        "--url-prefix",
        default="",
        help="Path prefix for reverse proxy setup",
    )

    # Cluster options
    parser.add_argument(
        "--url",
        default=None,
        help="Cluster REST URL (overrides config)",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=None,
        help="HTTP timeout for telemetry requests",
    )

    # TLS options
    parser.add_argument(
        "--insecure",
        action="store_true",
        default=False,
        help="Skip TLS verification",
    )
    parser.add_argument(
        "--ca-bundle",
        type=str,
        help="Path to a custom CA bundle",
    )

    return parser.parse_args(argv)


def main():
    """Entry point for the search-monitor command."""
    args = parse_args()
    run_server(args)


if __name__ == "__main__":
    main()
