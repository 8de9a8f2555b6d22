# path: src/runtime/error_handling.py

"""
Error handling helpers for the navigation runtime.

Wraps tick stepping in a guard that logs TICK_EXCEPTION events so the
monitoring stream records the failure before the runtime decides what to
do with it.
"""

from __future__ import annotations

from typing import Any, Optional

from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event
from monitoring.controller import NavigationController


def safe_tick_with_logging(
    controller: NavigationController,
    bus: EventBus,
    session_id: Optional[str] = None,
    tick_index: Optional[int] = None,
) -> Any:
    """
    Call controller.maybe_tick() inside a try/except block.

    If engine.tick() (inside the controller) throws, we:
    - Emit a LOG event with subtype "TICK_EXCEPTION".
    - Re-raise the exception so the runtime can decide whether to abort
      or continue.
    """
    try:
        return controller.maybe_tick()
    except Exception as exc:
        log_event(
            bus=bus,
            module="runtime.safe_tick",
            event_type=EventType.LOG,
            message="Navigation tick raised an exception",
            payload={
                "subtype": "TICK_EXCEPTION",
                "session_id": session_id,
                "tick_index": tick_index,
                "exception_repr": repr(exc),
            },
            correlation_id=session_id,
        )
        raise
