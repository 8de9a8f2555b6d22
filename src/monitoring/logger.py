# JSON logger subscribing to EventBus
"""
Structured logging for navigation events.

Provides:
- JsonFileLogger: subscribes to an EventBus and appends MonitoringEvents as JSONL.
- log_event: helper that builds a MonitoringEvent and publishes it.

Usage:

    bus = EventBus()
    sink = JsonFileLogger(Path("logs/navigation/events.log"), bus)

    log_event(
        bus=bus,
        module="navigation.engine",
        event_type=EventType.NAVIGATION_STARTED,
        message="Route computed",
        payload={"route": ["lobby", "hall", "lab"]},
    )
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

from .bus import EventBus
from .events import EventType, MonitoringEvent

_log = logging.getLogger(__name__)


class JsonFileLogger:
    """Append-only JSON-lines sink for MonitoringEvents (UTF-8)."""

    def __init__(self, path: Path, bus: EventBus) -> None:
        self._path = path
        self._bus = bus
        path.parent.mkdir(parents=True, exist_ok=True)
        self._file = path.open("a", encoding="utf-8")
        bus.subscribe(self._on_event)

    @property
    def path(self) -> Path:
        return self._path

    def _on_event(self, event: MonitoringEvent) -> None:
        line = json.dumps(event.to_dict(), ensure_ascii=False, default=str)
        try:
            self._file.write(line + "\n")
            self._file.flush()
        except (OSError, ValueError):
            # full disk or closed handle: report once per event, keep navigating
            _log.warning("Could not write navigation event to %s", self._path, exc_info=True)

    def close(self) -> None:
        """Unsubscribe and close the file; call at shutdown."""
        self._bus.unsubscribe(self._on_event)
        if not self._file.closed:
            self._file.close()


def log_event(
    bus: EventBus,
    module: str,
    event_type: EventType,
    message: str,
    payload: Optional[Dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> MonitoringEvent:
    """
    Create and publish a MonitoringEvent; returns it for convenience.

    Parameters
    ----------
    bus:
        EventBus to publish on.
    module:
        Source module ("navigation.engine", "monitoring.controller", ...).
    event_type:
        EventType member.
    message:
        Short human-readable description.
    payload:
        JSON-safe structured data.
    correlation_id:
        Optional id linking the events of one navigation session.
    """
    event = MonitoringEvent(
        ts=time.time(),
        module=module,
        event_type=event_type,
        message=message,
        payload=payload or {},
        correlation_id=correlation_id,
    )
    bus.publish(event)
    return event
