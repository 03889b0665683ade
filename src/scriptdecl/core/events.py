from __future__ import annotations

import os
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

DEFAULT_SCHEMA_VERSION = "1.0"

# Optional global bus for framework-wide access without changing signatures
_GLOBAL_BUS: Optional["EventBus"] = None


def set_global_bus(bus: Optional["EventBus"]) -> None:
    global _GLOBAL_BUS
    _GLOBAL_BUS = bus


def get_global_bus() -> Optional["EventBus"]:
    return _GLOBAL_BUS


def publish_event(
    *,
    stage: str,
    status: str,
    duration_ms: Optional[int] = None,
    counts: Optional[Dict[str, Any]] = None,
    details: Optional[Dict[str, Any]] = None,
    error: Optional[Dict[str, Any]] = None,
) -> None:
    """Publish to the global bus, if one is configured.

    Safe to call always; does nothing without a bus.
    """
    bus = _GLOBAL_BUS
    if bus is None:
        return
    bus.publish(
        stage=stage,
        status=status,
        duration_ms=duration_ms,
        counts=counts,
        details=details,
        error=error,
    )


class timed_stage:
    """Context manager that publishes started/completed/failed events for a stage.

    Usage:
        with timed_stage("declarations.register", details={"count": 3}):
            table.register_all(declarations)
    """

    def __init__(
        self,
        stage: str,
        *,
        counts: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.stage = stage
        self.counts = counts
        self.details = details
        self._start_ms: Optional[int] = None

    def __enter__(self) -> "timed_stage":
        self._start_ms = int(time.time() * 1000)
        publish_event(stage=self.stage, status="started", details=self.details)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # type: ignore
        duration_ms = int(time.time() * 1000) - (self._start_ms or 0)
        if exc_type is not None:
            publish_event(
                stage=self.stage,
                status="failed",
                duration_ms=duration_ms,
                counts=self.counts,
                details=self.details,
                error={"code": exc_type.__name__, "message": str(exc_val)},
            )
        else:
            publish_event(
                stage=self.stage,
                status="completed",
                duration_ms=duration_ms,
                counts=self.counts,
                details=self.details,
            )
        return False


@dataclass
class BuildEvent:
    """Structured event for build lifecycle, decoupled from debug logging."""

    schema_version: str = DEFAULT_SCHEMA_VERSION
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    seq_no: int = 0
    ts: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    build_id: str = "-"
    build_name: str = "-"

    stage: str = "-"  # e.g. build, declarations.load, unit.compile
    status: str = "-"  # started|completed|failed

    duration_ms: Optional[int] = None
    counts: Optional[Dict[str, Any]] = None
    details: Optional[Dict[str, Any]] = None
    error: Optional[Dict[str, Any]] = None


class EventObserver:
    """Observer interface for handling build events."""

    def handle(self, event: BuildEvent) -> None:  # pragma: no cover
        raise NotImplementedError


class StdoutObserver(EventObserver):
    """Emit concise human-readable progress to stdout (not via debug logger)."""

    def handle(self, event: BuildEvent) -> None:
        duration = f" duration_ms={event.duration_ms}" if event.duration_ms is not None else ""
        msg = f"{event.ts} | build={event.build_id} | {event.build_name} | {event.stage} {event.status}{duration}"
        if event.counts:
            msg += f" | counts={event.counts}"
        if event.details:
            brief = {k: event.details[k] for k in list(event.details.keys())[:4]}
            msg += f" | details={brief}"
        if event.error:
            msg += f" | error={event.error.get('code')}: {event.error.get('message')}"
        print(msg)


class MemoryObserver(EventObserver):
    """Keeps every event in a list; used for build summaries and tests."""

    def __init__(self) -> None:
        self.events: List[BuildEvent] = []

    def handle(self, event: BuildEvent) -> None:
        self.events.append(event)

    def stages(self, status: Optional[str] = None) -> List[str]:
        return [e.stage for e in self.events if status is None or e.status == status]


class EventBus:
    """Synchronous event bus.

    Automatically tracks duration for paired started/completed events.
    A failing observer never affects the build.
    """

    def __init__(
        self,
        *,
        build_id: str,
        build_name: str,
        observers: Optional[List[EventObserver]] = None,
    ) -> None:
        self.build_id = str(build_id)
        self.build_name = build_name
        self._observers: List[EventObserver] = list(observers or [])
        self._seq_no = 0
        self._stage_start_times: Dict[str, int] = {}

    def add_observer(self, observer: EventObserver) -> None:
        self._observers.append(observer)

    def publish(
        self,
        *,
        stage: str,
        status: str,
        duration_ms: Optional[int] = None,
        counts: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
        error: Optional[Dict[str, Any]] = None,
    ) -> BuildEvent:
        now_ms = int(time.time() * 1000)
        if status == "started":
            self._stage_start_times[stage] = now_ms
        elif status in ("completed", "failed") and duration_ms is None:
            start_ms = self._stage_start_times.pop(stage, None)
            if start_ms is not None:
                duration_ms = now_ms - start_ms

        self._seq_no += 1
        evt = BuildEvent(
            seq_no=self._seq_no,
            build_id=self.build_id,
            build_name=self.build_name,
            stage=stage,
            status=status,
            duration_ms=duration_ms,
            counts=counts,
            details=details,
            error=error,
        )
        for obs in self._observers:
            try:
                obs.handle(evt)
            except Exception:
                # Isolate observer failures
                pass
        return evt


def _env_flag(name: str, default: str) -> str:
    val = os.getenv(name)
    return val if val not in (None, "") else default


def build_default_bus(*, build_id: str, build_name: str) -> Optional[EventBus]:
    """Construct the default EventBus from environment variables.

    SCRIPTDECL_EVENTS_ENABLED: "true" | "false" (default: "false")
    SCRIPTDECL_EVENTS_TRANSPORTS: comma list (default: "stdout")
    """
    enabled = _env_flag("SCRIPTDECL_EVENTS_ENABLED", "false").lower() == "true"
    if not enabled:
        return None

    transports = [s.strip() for s in _env_flag("SCRIPTDECL_EVENTS_TRANSPORTS", "stdout").split(",") if s.strip()]
    observers: List[EventObserver] = []
    if "stdout" in transports:
        observers.append(StdoutObserver())
    if "memory" in transports:
        observers.append(MemoryObserver())
    return EventBus(build_id=build_id, build_name=build_name, observers=observers)
