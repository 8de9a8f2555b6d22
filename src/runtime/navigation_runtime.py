# path: src/runtime/navigation_runtime.py

"""
Wiring for a complete navigation process.

Shows how the EventBus, JsonFileLogger, NavigationEngine,
NavigationController, TickLoop and the rich dashboard fit together:

- build_monitoring_stack(): bus + optional JSONL logger
- build_navigation_stack(): engine + controller bound to that bus
- start_dashboard_in_background(): NavigationDashboard on a daemon thread
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional, Tuple

from env.schema import NavigationConfig
from monitoring.bus import EventBus
from monitoring.controller import NavigationController
from monitoring.dashboard_tui import NavigationDashboard
from monitoring.logger import JsonFileLogger
from navigation.engine import NavigationEngine
from navigation.graph import GraphStore

from .tick_loop import TickLoop


def build_monitoring_stack(
    log_path: Optional[Path] = None,
) -> Tuple[EventBus, Optional[JsonFileLogger]]:
    """
    Create a private EventBus and, when `log_path` is given, a JSON-lines
    logger subscribed to it.
    """
    bus = EventBus()
    logger = JsonFileLogger(path=log_path, bus=bus) if log_path is not None else None
    return bus, logger


def build_navigation_stack(
    graph: GraphStore,
    config: NavigationConfig,
    bus: EventBus,
    snapshot_every: int = 0,
    realtime: bool = True,
) -> Tuple[NavigationEngine, NavigationController, TickLoop]:
    """
    Engine, controller and tick loop sharing one bus.

    With realtime=False the loop never sleeps, which is what tests and
    batch demos want.
    """
    engine = NavigationEngine(graph, config=config, bus=bus)
    controller = NavigationController(engine=engine, bus=bus)
    loop = TickLoop(
        controller,
        bus,
        period_ms=config.tick_period_ms,
        snapshot_every=snapshot_every,
        sleep=None if realtime else (lambda _delay: None),
    )
    return engine, controller, loop


def start_dashboard_in_background(bus: EventBus, refresh_per_second: float = 4.0) -> threading.Thread:
    """
    Start a NavigationDashboard in a separate daemon thread.

    The dashboard only listens to MonitoringEvents, so it never blocks the
    tick loop.
    """
    dashboard = NavigationDashboard(bus)

    def _run() -> None:
        dashboard.run(refresh_per_second=refresh_per_second)

    t = threading.Thread(target=_run, name="NavigationDashboardThread")
    t.daemon = True
    t.start()
    return t
