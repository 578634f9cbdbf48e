"""Base collector interface for telemetry sources."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class BaseCollector(ABC):
    """Abstract base class for telemetry collectors.

    Each collector fetches one telemetry kind from the cluster and returns
    the decoded, still un-normalized document.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this collector.

        Returns:
            A short, lowercase identifier (e.g., 'node_stats', 'recovery')
        """
        pass

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable name for UI display.

        Returns:
            A user-friendly name (e.g., 'nodes data', 'recovery data')
        """
        pass

    @abstractmethod
    def collect(self) -> Any:
        """Fetch the current raw document from this source.

        Returns:
            Decoded JSON body. Structure varies by telemetry kind.

        Raises:
            TransportError: If the source is unreachable or answers non-2xx.
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the source can be reached.

        Returns:
            True if the collector can operate, False otherwise.
        """
        pass

    def get_status(self) -> Dict[str, Any]:
        """Get collector status information."""
        return {
            "name": self.name,
            "display_name": self.display_name,
            "available": self.is_available(),
        }


class TelemetryError(Exception):
    """Base exception for a telemetry kind that could not be produced."""

    def __init__(self, kind: str, message: str, cause: Optional[Exception] = None):
        self.kind = kind
        self.message = message
        self.cause = cause
        super().__init__(f"[{kind}] {message}")


class TransportError(TelemetryError):
    """The telemetry source is unreachable or returned a non-2xx response."""

    def __init__(
        self,
        kind: str,
        message: str,
        cause: Optional[Exception] = None,
        status_code: Optional[int] = None,
    ):
        self.status_code = status_code
        super().__init__(kind, message, cause)


class MalformedTelemetryError(TelemetryError):
    """A required top-level structure is missing from a telemetry document."""

    def __init__(self, kind: str, field_name: str, message: Optional[str] = None):
        self.field_name = field_name
        super().__init__(kind, message or f"missing required field '{field_name}'")
