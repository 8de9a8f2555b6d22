#!/usr/bin/env python3
"""
tools/nav_demo.py

Drive the navigation engine through the bundled two-floor sample building.

Default mode:
    - automatic control with the drive button held
    - lobby -> library (crosses the stairwell connector)
    - runs without sleeping and prints the event stream

Manual mode holds UP and answers each turn prompt from --turns in order
(falling back to the correct direction once the script runs out), so a
wrong answer shows a reroute:

    python tools/nav_demo.py --mode manual --goal cafe --turns left
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# ---------------------------------------------------------------------------
# Ensure src/ is on sys.path when running as a script
# ---------------------------------------------------------------------------

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# ---------------------------------------------------------------------------
# Imports from the project
# ---------------------------------------------------------------------------

from env.loader import load_navigation_config  # type: ignore[import]
from monitoring.events import ControlCommand, EventType, MonitoringEvent  # type: ignore[import]
from navigation.testing import build_sample_building  # type: ignore[import]
from navigation.types import NavigationStatus  # type: ignore[import]
from runtime.logging_config import configure_logging  # type: ignore[import]
from runtime.navigation_runtime import (  # type: ignore[import]
    build_monitoring_stack,
    build_navigation_stack,
    start_dashboard_in_background,
)

logger = logging.getLogger("nav_demo")

_TERMINAL = (NavigationStatus.DESTINATION_REACHED, NavigationStatus.IDLE)


def _print_event(evt: MonitoringEvent) -> None:
    if evt.event_type in (EventType.SNAPSHOT, EventType.CONTROL_COMMAND):
        return
    print(f"[{evt.event_type.name:<22}] {evt.message}")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Indoor navigation demo on the sample building.")
    parser.add_argument("--start", default="lobby", help="Start node id.")
    parser.add_argument("--goal", default="library", help="Destination node id.")
    parser.add_argument(
        "--mode",
        choices=["automatic", "manual"],
        default=None,
        help="Control mode (defaults to the config profile's mode).",
    )
    parser.add_argument(
        "--turns",
        type=str,
        default="",
        help="Comma-separated turn answers (left,straight,right) for manual mode.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to navigation.yaml.")
    parser.add_argument("--profile", type=str, default=None, help="Profile name in navigation.yaml.")
    parser.add_argument("--max-ticks", type=int, default=5000, help="Give up after this many ticks.")
    parser.add_argument("--log-file", type=Path, default=None, help="Append events as JSONL here.")
    parser.add_argument("--dashboard", action="store_true", help="Show the rich dashboard.")
    parser.add_argument("--realtime", action="store_true", help="Sleep tick_period_ms between ticks.")
    parser.add_argument("--log-level", type=str, default="INFO")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    configure_logging(args.log_level)

    config = load_navigation_config(args.config, profile=args.profile)
    graph = build_sample_building(connector_cost=config.connector_cost)

    bus, event_logger = build_monitoring_stack(args.log_file)
    engine, controller, loop = build_navigation_stack(
        graph,
        config,
        bus,
        snapshot_every=10 if args.dashboard else 0,
        realtime=args.realtime or args.dashboard,
    )

    if args.dashboard:
        start_dashboard_in_background(bus)
    else:
        bus.subscribe(_print_event)

    turn_script = [t.strip() for t in args.turns.split(",") if t.strip()]

    if args.mode:
        bus.publish_command(ControlCommand.set_mode(args.mode))
    bus.publish_command(ControlCommand.navigate_to(args.start, args.goal))
    if not engine.route:
        logger.error("Could not start navigation %s -> %s", args.start, args.goal)
        return 1

    def _press_inputs() -> None:
        if engine.mode.value == "automatic":
            bus.publish_command(ControlCommand.set_drive(True))
        else:
            bus.publish_command(ControlCommand.set_direction("up", True))

    _press_inputs()

    def _done() -> bool:
        if engine.status in _TERMINAL:
            return True
        if engine.status == NavigationStatus.OFF_ROUTE or engine.dead_end_node is not None:
            return True
        prompt = engine.turn_prompt
        if prompt is not None:
            if turn_script:
                answer = turn_script.pop(0)
            elif prompt.correct_direction is not None:
                answer = prompt.correct_direction.value
            else:
                answer = "straight"
            print(f"    answering turn prompt at {prompt.node_id}: {answer}")
            bus.publish_command(ControlCommand.select_turn(answer))
            _press_inputs()
        return False

    try:
        ticks = loop.run(max_ticks=args.max_ticks, until=_done)
    except KeyboardInterrupt:
        print("Interrupted.")
        return 130
    finally:
        if event_logger is not None:
            event_logger.close()

    pos = engine.position
    print()
    print(f"Status:   {engine.status.value}")
    print(f"Ticks:    {ticks}")
    print(f"Route:    {' -> '.join(engine.route)}")
    print(f"Position: ({pos.x:.1f}, {pos.y:.1f}) floor {pos.floor}")
    if engine.last_error:
        print(f"Error:    {engine.last_error}")
    return 0 if engine.status == NavigationStatus.DESTINATION_REACHED else 2


if __name__ == "__main__":
    sys.exit(main())
