"""Telemetry collectors - REST access to the search cluster."""

from .base import (
    BaseCollector,
    TelemetryError,
    TransportError,
    MalformedTelemetryError,
)
from .opensearch import (
    ClusterClient,
    TelemetryCollector,
    TelemetrySource,
    TELEMETRY_ENDPOINTS,
)

__all__ = [
    "BaseCollector",
    "TelemetryError",
    "TransportError",
    "MalformedTelemetryError",
    "ClusterClient",
    "TelemetryCollector",
    "TelemetrySource",
    "TELEMETRY_ENDPOINTS",
]
