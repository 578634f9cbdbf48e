"""Search cluster REST collectors.

Reads node, health, stats, recovery and snapshot telemetry from an
OpenSearch/Elasticsearch compatible REST API. All requests are read-only
GETs; every failure is raised as a TransportError tagged with the
telemetry kind that was being fetched.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Tuple, Union

import certifi
import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .base import BaseCollector, TransportError
from ..data.models import TelemetryKind

DEFAULT_CLUSTER_URL = "http://localhost:9200"

# Telemetry kind -> (path, query params)
TELEMETRY_ENDPOINTS: Dict[TelemetryKind, Tuple[str, Dict[str, str]]] = {
    TelemetryKind.NODE_STATS: ("/_nodes/stats/fs,os", {}),
    TelemetryKind.CLUSTER_HEALTH: ("/_cluster/health", {}),
    TelemetryKind.CLUSTER_STATS: ("/_cluster/stats", {}),
    TelemetryKind.RECOVERY: ("/_recovery", {"detailed": "true"}),
    TelemetryKind.SNAPSHOTS: ("/_snapshot/_status", {}),
}


class ClusterClient:
    """Thin HTTP client for a cluster's REST API.

    Holds one pooled requests session with retries, shared by all
    collectors.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_CLUSTER_URL,
        timeout: int = 20,
        verify: bool = True,
        ca_bundle: Optional[str] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._verify = self._determine_verify(verify, ca_bundle)
        self._session: Optional[requests.Session] = None

        if self._verify is False:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    @staticmethod
    def _determine_verify(verify: bool, ca_bundle: Optional[str]) -> Union[bool, str]:
        """Determine SSL verification setting."""
        if not verify:
            return False
        if ca_bundle:
            return ca_bundle
        return certifi.where()

    def _get_session(self) -> requests.Session:
        """Get or create a requests session with retry configuration."""
        if self._session is None:
            session = requests.Session()
            retry = Retry(
                total=3,
                connect=3,
                read=2,
                backoff_factor=0.5,
                status_forcelist=(429, 502, 503, 504),
                allowed_methods=("GET", "HEAD"),
                raise_on_status=False,
            )
            adapter = HTTPAdapter(
                max_retries=retry,
                pool_connections=5,
                pool_maxsize=10,
            )
            session.mount("https://", adapter)
            session.mount("http://", adapter)
            session.verify = self._verify
            session.headers.update({
                "User-Agent": "search-monitor/1.0",
                "Accept": "application/json",
            })
            self._session = session
        return self._session

    def get_json(self, kind: TelemetryKind, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        """GET a path and decode the JSON body.

        Raises:
            TransportError: On connection failure, timeout, non-2xx status
                or an undecodable body.
        """
        url = f"{self.base_url}{path}"
        try:
            resp = self._get_session().get(url, params=params or None, timeout=self.timeout)
        except requests.exceptions.SSLError as e:
            raise TransportError(
                kind.value,
                "TLS/SSL error: certificate verify failed. Consider --insecure or --ca-bundle.",
                e,
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(kind.value, f"request to {url} failed: {e}", e)

        if not 200 <= resp.status_code < 300:
            print(f"[telemetry] {kind.value}: {url} returned HTTP {resp.status_code}")
            raise TransportError(
                kind.value,
                f"{url} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(kind.value, f"{url} returned invalid JSON", e, resp.status_code)

    def ping(self) -> bool:
        """Return True if the cluster root endpoint answers below 500."""
        try:
            resp = self._get_session().head(self.base_url + "/", timeout=5)
            return resp.status_code < 500
        except requests.exceptions.RequestException as e:
            print(f"[telemetry] Cluster ping failed for {self.base_url}: {e}")
            return False

    def close(self) -> None:
        """Close the session and release pooled connections."""
        if self._session is not None:
            self._session.close()
            self._session = None


class TelemetryCollector(BaseCollector):
    """Collector for one telemetry kind."""

    def __init__(self, client: ClusterClient, kind: TelemetryKind):
        self.client = client
        self.kind = TelemetryKind(kind)
        self.path, self.params = TELEMETRY_ENDPOINTS[self.kind]

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    def display_name(self) -> str:
        return self.kind.display_name

    def is_available(self) -> bool:
        return self.client.ping()

    def collect(self) -> Any:
        return self.client.get_json(self.kind, self.path, self.params)


class TelemetrySource:
    """All telemetry collectors for one cluster, sharing a client."""

    def __init__(self, client: ClusterClient, kinds: Optional[Iterable[TelemetryKind]] = None):
        self.client = client
        self.collectors: Dict[TelemetryKind, TelemetryCollector] = {
            TelemetryKind(kind): TelemetryCollector(client, kind)
            for kind in (kinds or list(TelemetryKind))
        }

    @classmethod
    def from_config(cls, cluster_config) -> "TelemetrySource":
        client = ClusterClient(
            base_url=cluster_config.url,
            timeout=cluster_config.timeout,
            verify=cluster_config.verify,
            ca_bundle=cluster_config.ca_bundle,
        )
        return cls(client)

    def fetch(self, kind: TelemetryKind) -> Any:
        """Fetch the raw document for one kind."""
        collector = self.collectors.get(TelemetryKind(kind))
        if collector is None:
            raise TransportError(str(kind), "no collector registered for this telemetry kind")
        return collector.collect()

    def get_status(self) -> Dict[str, Any]:
        available = self.client.ping()
        return {
            kind.value: {"name": c.name, "display_name": c.display_name, "available": available}
            for kind, c in self.collectors.items()
        }

    def close(self) -> None:
        self.client.close()
