"""Background refresh of cluster telemetry.

Handles per-kind fetch state, the concurrent refresh cycle and the
recurring refresh schedule driven by user preferences.
"""

from __future__ import annotations

import itertools
import threading
import time
from collections import deque
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, Sequence

from ..collectors.base import TelemetryError
from ..data.models import (
    FetchState,
    IntervalValidationError,
    NodeRecord,
    RefreshConfig,
    TelemetryKind,
)
from ..data.normalization import normalize_response
from ..data.persistence import RefreshPreferences
from ..insights.drift import NodeDifferences, node_differences
from ..topology.layout import TopologyLayout, TopologyLayoutEngine

MAX_NOTIFICATIONS = 50
TIMER_JOIN_TIMEOUT = 2.0


def _log(msg: str) -> None:
    """Print with flush for reliable output in daemon threads."""
    print(msg, flush=True)


class ScheduleState(str, Enum):
    STOPPED = "STOPPED"
    SCHEDULED = "SCHEDULED"


@dataclass(frozen=True)
class KindState:
    """Current state of one telemetry kind.

    Replaced, never mutated. A FAILED kind keeps the data of its last
    successful fetch so stale data can still be shown.
    """

    kind: TelemetryKind
    status: FetchState = FetchState.IDLE
    data: Any = None
    error: Optional[str] = None
    updated_at: Optional[float] = None  # Time of the last successful fetch

    @property
    def has_data(self) -> bool:
        return self.updated_at is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "status": self.status.value,
            "error": self.error,
            "updated_at": self.updated_at,
            "stale": self.status == FetchState.FAILED and self.has_data,
        }


@dataclass(frozen=True)
class Notification:
    """Dismissible error notification for one failed fetch."""

    id: int
    kind: TelemetryKind
    title: str
    message: str
    created_at: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "title": self.title,
            "message": self.message,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class RefreshSettings:
    """Refresh preferences as seen by the UI.

    interval_seconds is the active (always valid) interval;
    requested_interval is whatever the user last entered.
    """

    auto_refresh: bool
    interval_seconds: int
    requested_interval: Any
    interval_valid: bool = True
    validation_message: Optional[str] = None

    @classmethod
    def from_config(
        cls,
        config: RefreshConfig,
        requested: Any,
        error: Optional[IntervalValidationError] = None,
    ) -> "RefreshSettings":
        return cls(
            auto_refresh=config.auto_refresh,
            interval_seconds=config.interval_seconds,
            requested_interval=requested,
            interval_valid=error is None,
            validation_message=str(error) if error else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "auto_refresh": self.auto_refresh,
            "interval_seconds": self.interval_seconds,
            "requested_interval": self.requested_interval,
            "interval_valid": self.interval_valid,
            "validation_message": self.validation_message,
        }


@dataclass(frozen=True)
class RefreshSnapshot:
    """Point-in-time view of all telemetry kinds."""

    states: Dict[TelemetryKind, KindState]
    last_refresh_ts: Optional[float]
    settings: RefreshSettings
    schedule: ScheduleState

    def data(self, kind: TelemetryKind) -> Any:
        state = self.states.get(TelemetryKind(kind))
        return state.data if state else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kinds": {kind.value: state.to_dict() for kind, state in self.states.items()},
            "last_refresh_epoch": self.last_refresh_ts,
            "settings": self.settings.to_dict(),
            "schedule": self.schedule.value,
        }


@dataclass
class RefreshOutcome:
    """Result of one refresh_all() call."""

    succeeded: List[TelemetryKind] = field(default_factory=list)
    failed: Dict[TelemetryKind, str] = field(default_factory=dict)
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return not self.skipped and not self.failed


class RefreshTimer(threading.Thread):
    """Recurring timer invoking a callback every `interval` seconds."""

    def __init__(self, interval: float, callback: Callable[[], Any]):
        super().__init__(name="telemetry-refresh-timer", daemon=True)
        self.interval = interval
        self.callback = callback
        self._stop_event = threading.Event()

    def run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.callback()
            except Exception as exc:
                _log(f"[scheduler] Scheduled refresh raised: {exc}")

    def stop(self) -> None:
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()


class RefreshScheduler:
    """Owns zero or one recurring RefreshTimer.

    Every start() cancels the previous timer first, so at most one timer
    is ever live.
    """

    def __init__(
        self,
        callback: Callable[[], Any],
        timer_factory: Callable[[float, Callable[[], Any]], Any] = RefreshTimer,
    ):
        self.callback = callback
        self.timer_factory = timer_factory
        self._timer = None
        self._interval: Optional[int] = None
        self._lock = threading.Lock()

    def start(self, interval: int) -> None:
        with self._lock:
            self._stop_locked()
            timer = self.timer_factory(interval, self.callback)
            timer.start()
            self._timer = timer
            self._interval = interval
        _log(f"[scheduler] Refreshing every {interval}s")

    def reschedule(self, interval: int) -> None:
        self.start(interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the live timer, waiting up to `timeout` seconds for it to exit."""
        with self._lock:
            timer = self._timer
            self._stop_locked()
        if timer is None:
            return
        if timeout is not None and timer is not threading.current_thread():
            timer.join(timeout)
        _log("[scheduler] Stopped")

    def _stop_locked(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer = None
            self._interval = None

    @property
    def is_scheduled(self) -> bool:
        return self._timer is not None

    @property
    def interval(self) -> Optional[int]:
        return self._interval

    @property
    def state(self) -> ScheduleState:
        return ScheduleState.SCHEDULED if self.is_scheduled else ScheduleState.STOPPED


class RefreshController:
    """Fetches, normalizes and caches every telemetry kind.

    Each kind is fetched concurrently and fails independently: one failed
    kind is marked FAILED and reported, the others still update. A
    scheduled refresh that fires while a cycle is running is skipped.
    """

    def __init__(
        self,
        source,
        preferences: RefreshPreferences,
        configured_nodes: Iterable[str] = (),
        kinds: Optional[Sequence[TelemetryKind]] = None,
        normalize: Callable[[TelemetryKind, Any], Any] = normalize_response,
        timer_factory: Callable[[float, Callable[[], Any]], Any] = RefreshTimer,
        layout_engine: Optional[TopologyLayoutEngine] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.source = source
        self.preferences = preferences
        self.configured_nodes = list(configured_nodes)
        self.kinds = [TelemetryKind(k) for k in (kinds or list(TelemetryKind))]
        self.normalize = normalize
        self.layout_engine = layout_engine or TopologyLayoutEngine()
        self.clock = clock
        self.scheduler = RefreshScheduler(self._on_tick, timer_factory)

        self._states: Dict[TelemetryKind, KindState] = {k: KindState(k) for k in self.kinds}
        self._last_refresh_ts: Optional[float] = None
        self._notifications: Deque[Notification] = deque(maxlen=MAX_NOTIFICATIONS)
        self._notification_ids = itertools.count(1)
        self._state_lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._settings_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=len(self.kinds), thread_name_prefix="telemetry-fetch"
        )
        self._closed = False
        self._settings = self._load_settings()

    def _load_settings(self) -> RefreshSettings:
        auto_refresh, requested = self.preferences.load()
        try:
            config = RefreshConfig(auto_refresh, requested)
        except IntervalValidationError as exc:
            return RefreshSettings.from_config(RefreshConfig(auto_refresh), requested, exc)
        return RefreshSettings.from_config(config, requested)

    # --- Lifecycle ---

    def start(self) -> RefreshOutcome:
        """Run an initial refresh, then schedule according to settings."""
        outcome = self.refresh_all()
        self._apply_schedule()
        return outcome

    def close(self) -> None:
        """Cancel the timer and discard results of in-flight fetches."""
        with self._state_lock:
            self._closed = True
        with self._settings_lock:
            self.scheduler.stop(timeout=TIMER_JOIN_TIMEOUT)
        self._executor.shutdown(wait=False, cancel_futures=True)
        _log("[refresh] Controller closed")

    def __enter__(self) -> "RefreshController":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    # --- Refresh ---

    def refresh_all(self, *, blocking: bool = True) -> RefreshOutcome:
        """Fetch every telemetry kind concurrently.

        Args:
            blocking: If False, returns immediately if a refresh is already
                in progress

        Returns:
            RefreshOutcome with per-kind success or failure
        """
        if self._closed:
            return RefreshOutcome(skipped=True)
        if not self._refresh_lock.acquire(blocking=blocking):
            _log("[refresh] Refresh already in progress; skipping")
            return RefreshOutcome(skipped=True)
        try:
            with self._state_lock:
                for kind in self.kinds:
                    self._states[kind] = replace(self._states[kind], status=FetchState.FETCHING)

            try:
                futures = {self._executor.submit(self._fetch_kind, kind): kind for kind in self.kinds}
            except RuntimeError:
                # Executor shut down by close() between the checks above
                return RefreshOutcome(skipped=True)
            wait(futures)
            if self._closed:
                return RefreshOutcome(skipped=True)

            outcome = RefreshOutcome()
            for future, kind in futures.items():
                error = future.result()
                if error is None:
                    outcome.succeeded.append(kind)
                else:
                    outcome.failed[kind] = error

            with self._state_lock:
                if self._closed:
                    return RefreshOutcome(skipped=True)
                self._last_refresh_ts = self.clock()

            if outcome.failed:
                _log(
                    f"[refresh] Completed with {len(outcome.failed)} failed kind(s): "
                    + ", ".join(k.value for k in outcome.failed)
                )
            return outcome
        finally:
            self._refresh_lock.release()

    def _fetch_kind(self, kind: TelemetryKind) -> Optional[str]:
        """Fetch and normalize one kind; returns an error message or None."""
        try:
            data = self.normalize(kind, self.source.fetch(kind))
        except TelemetryError as exc:
            return self._record_failure(kind, str(exc))
        except Exception as exc:
            return self._record_failure(kind, f"[{kind.value}] {type(exc).__name__}: {exc}")

        with self._state_lock:
            if self._closed:
                return None
            self._states[kind] = KindState(
                kind=kind,
                status=FetchState.READY,
                data=data,
                updated_at=self.clock(),
            )
        return None

    def _record_failure(self, kind: TelemetryKind, message: str) -> str:
        _log(f"[refresh] Failed to fetch {kind.display_name}: {message}")
        with self._state_lock:
            if self._closed:
                return message
            self._states[kind] = replace(self._states[kind], status=FetchState.FAILED, error=message)
            self._notifications.append(Notification(
                id=next(self._notification_ids),
                kind=kind,
                title=f"Failed to fetch {kind.display_name}",
                message=message,
                created_at=self.clock(),
            ))
        return message

    def _on_tick(self) -> None:
        self.refresh_all(blocking=False)

    # --- Settings ---

    @property
    def settings(self) -> RefreshSettings:
        return self._settings

    def set_auto_refresh(self, enabled: bool) -> None:
        enabled = bool(enabled)
        with self._settings_lock:
            self.preferences.save_auto_refresh(enabled)
            self._settings = replace(self._settings, auto_refresh=enabled)
            self._apply_schedule_locked()

    def set_interval_seconds(self, value: Any) -> bool:
        """Update the refresh interval.

        The entered value is always persisted. Values below the minimum
        only flag the settings as invalid; the active interval and
        schedule stay as they were.

        Returns:
            True if the value was accepted
        """
        with self._settings_lock:
            self.preferences.save_interval(value)
            current = self._settings
            try:
                config = RefreshConfig(current.auto_refresh, value)
            except IntervalValidationError as exc:
                self._settings = replace(
                    current,
                    requested_interval=value,
                    interval_valid=False,
                    validation_message=str(exc),
                )
                _log(f"[refresh] Rejected interval {value!r}; keeping {current.interval_seconds}s")
                return False

            self._settings = RefreshSettings.from_config(config, value)
            self._apply_schedule_locked()
        return True

    def _apply_schedule(self) -> None:
        with self._settings_lock:
            self._apply_schedule_locked()

    def _apply_schedule_locked(self) -> None:
        # Caller holds _settings_lock so settings and timer change together
        if self._closed:
            return
        if self._settings.auto_refresh:
            self.scheduler.start(self._settings.interval_seconds)
        else:
            self.scheduler.stop()

    # --- Views ---

    def snapshot(self) -> RefreshSnapshot:
        with self._state_lock:
            return RefreshSnapshot(
                states=dict(self._states),
                last_refresh_ts=self._last_refresh_ts,
                settings=self._settings,
                schedule=self.scheduler.state,
            )

    def state(self, kind: TelemetryKind) -> KindState:
        with self._state_lock:
            return self._states[TelemetryKind(kind)]

    @property
    def last_refresh_ts(self) -> Optional[float]:
        return self._last_refresh_ts

    def notifications(self) -> List[Notification]:
        with self._state_lock:
            return list(self._notifications)

    def dismiss_notification(self, notification_id: int) -> bool:
        with self._state_lock:
            for notification in self._notifications:
                if notification.id == notification_id:
                    self._notifications.remove(notification)
                    return True
        return False

    def _node_records(self) -> Optional[List[NodeRecord]]:
        with self._state_lock:
            state = self._states.get(TelemetryKind.NODE_STATS)
        if state is None or not state.has_data:
            return None
        return state.data

    def drift(self) -> Optional[NodeDifferences]:
        """Compare configured node names with the latest node stats.

        Returns None when no nodes are configured or no node stats have
        been fetched yet.
        """
        if not self.configured_nodes:
            return None
        nodes = self._node_records()
        if nodes is None:
            return None
        return node_differences(self.configured_nodes, nodes)

    def topology(self) -> TopologyLayout:
        return self.layout_engine.layout(self._node_records() or [])
