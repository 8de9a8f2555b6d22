# path: src/runtime/tick_loop.py

"""
Fixed-period scheduler for the navigation engine.

The engine owns no timer; TickLoop calls NavigationController.maybe_tick()
every `period_ms` milliseconds (50 ms by default), optionally publishing a
SNAPSHOT event every `snapshot_every` ticks so the dashboard can draw the
current pose. Clock and sleep are injectable so tests run instantly.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from monitoring.bus import EventBus
from monitoring.controller import NavigationController
from monitoring.events import EventType
from monitoring.logger import log_event

from .error_handling import safe_tick_with_logging

logger = logging.getLogger(__name__)

StopCondition = Callable[[], bool]


class TickLoop:
    """Drive a NavigationController at a fixed period."""

    def __init__(
        self,
        controller: NavigationController,
        bus: EventBus,
        period_ms: int = 50,
        snapshot_every: int = 0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        if period_ms <= 0:
            raise ValueError(f"period_ms must be positive, got {period_ms}")
        self._controller = controller
        self._bus = bus
        self._period = period_ms / 1000.0
        self._snapshot_every = snapshot_every
        self._clock = clock
        self._sleep = sleep or time.sleep
        self._ticks = 0
        self._stopped = False

    @property
    def ticks(self) -> int:
        return self._ticks

    def stop(self) -> None:
        """Ask run() to return after the current tick."""
        self._stopped = True

    def run_once(self) -> None:
        session_id = self._session_id()
        safe_tick_with_logging(
            controller=self._controller,
            bus=self._bus,
            session_id=session_id,
            tick_index=self._ticks,
        )
        self._ticks += 1
        if self._snapshot_every and self._ticks % self._snapshot_every == 0:
            log_event(
                bus=self._bus,
                module="runtime.tick_loop",
                event_type=EventType.SNAPSHOT,
                message="Periodic navigation snapshot",
                payload={"state": self._controller.engine.debug_state()},
                correlation_id=session_id,
            )

    def run(
        self,
        max_ticks: Optional[int] = None,
        until: Optional[StopCondition] = None,
    ) -> int:
        """
        Tick until `until()` is true, `max_ticks` ticks ran, or stop() is
        called. Returns the number of ticks run by this call.
        """
        self._stopped = False
        ran = 0
        next_deadline = self._clock()
        while not self._stopped:
            if max_ticks is not None and ran >= max_ticks:
                break
            if until is not None and until():
                break

            self.run_once()
            ran += 1

            next_deadline += self._period
            delay = next_deadline - self._clock()
            if delay > 0:
                self._sleep(delay)
            else:
                # running late; do not try to catch up with a burst of ticks
                next_deadline = self._clock()
        logger.debug("Tick loop stopped after %d ticks", ran)
        return ran

    def _session_id(self) -> Optional[str]:
        state = self._controller.engine.debug_state()
        return state.get("session_id")
