# path: src/monitoring/events.py
"""
Event and command schemas for navigation monitoring.

This module defines:
- EventType enum (everything the engine reports)
- MonitoringEvent (structured, JSON-safe record of one occurrence)
- ControlCommandType enum + ControlCommand (inputs injected by UIs/scripts)

Events are published on monitoring.bus.EventBus and persisted by
monitoring.logger.JsonFileLogger.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum, auto
from typing import Any, Dict, List, Optional


# ============================================================
# Event Types
# ============================================================

class EventType(Enum):
    """Typed monitoring events emitted by the navigation engine."""

    # Route lifecycle
    NAVIGATION_STARTED = auto()
    NAVIGATION_FAILED = auto()
    NAVIGATION_CANCELLED = auto()
    DESTINATION_REACHED = auto()

    # Motion
    SEGMENT_ADVANCED = auto()
    FLOOR_CHANGED = auto()

    # Intersections
    TURN_CHOICE_REQUIRED = auto()
    TURN_SELECTED = auto()
    DEAD_END = auto()

    # Recovery
    REROUTE_TRIGGERED = auto()
    REROUTE_FAILED = auto()

    # Full state snapshot
    SNAPSHOT = auto()

    # Control surface events
    CONTROL_COMMAND = auto()

    # Generic log messages
    LOG = auto()


# ============================================================
# Monitoring Event Structure
# ============================================================

@dataclass
class MonitoringEvent:
    """
    One thing that happened inside the engine or the control surface.

    All fields must be JSON-safe.
    """

    ts: float                   # UNIX timestamp (seconds)
    module: str                 # Source module ("navigation.engine", "monitoring.controller", ...)
    event_type: EventType
    message: str                # Short human-readable description
    payload: Dict[str, Any]     # Structured data (route, node ids, pose, ...)
    correlation_id: Optional[str] = None  # Groups events of one navigation session

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dict for loggers."""
        data = asdict(self)
        data["event_type"] = self.event_type.name
        return data


# ============================================================
# Control Commands
# ============================================================

class ControlCommandType(Enum):
    """Discrete inputs a UI, script or operator can inject."""

    NAVIGATE_TO = auto()    # args: start, goal
    FOLLOW_ROUTE = auto()   # args: route (list of node ids)
    SET_DRIVE = auto()      # args: held (automatic mode dead-man's switch)
    SET_DIRECTION = auto()  # args: direction (up|down|left|right), pressed
    SELECT_TURN = auto()    # args: direction (left|straight|right)
    SET_MODE = auto()       # args: mode (automatic|manual)
    CANCEL = auto()         # drop the active route
    RESYNC_POSITION = auto()  # args: x, y, floor (optional)
    PAUSE = auto()          # stop ticking
    RESUME = auto()
    SINGLE_STEP = auto()    # run exactly one tick, then pause
    DUMP_STATE = auto()     # emit a SNAPSHOT event


@dataclass
class ControlCommand:
    """
    External input for the engine.

    Sent through EventBus.publish_command(), interpreted by
    monitoring.controller.NavigationController.
    """

    cmd: ControlCommandType
    args: Dict[str, Any]

    @staticmethod
    def navigate_to(start: str, goal: str) -> "ControlCommand":
        return ControlCommand(ControlCommandType.NAVIGATE_TO, {"start": start, "goal": goal})

    @staticmethod
    def follow_route(route: List[str]) -> "ControlCommand":
        return ControlCommand(ControlCommandType.FOLLOW_ROUTE, {"route": list(route)})

    @staticmethod
    def set_drive(held: bool) -> "ControlCommand":
        return ControlCommand(ControlCommandType.SET_DRIVE, {"held": held})

    @staticmethod
    def set_direction(direction: str, pressed: bool) -> "ControlCommand":
        return ControlCommand(
            ControlCommandType.SET_DIRECTION, {"direction": direction, "pressed": pressed}
        )

    @staticmethod
    def select_turn(direction: str) -> "ControlCommand":
        return ControlCommand(ControlCommandType.SELECT_TURN, {"direction": direction})

    @staticmethod
    def set_mode(mode: str) -> "ControlCommand":
        return ControlCommand(ControlCommandType.SET_MODE, {"mode": mode})

    @staticmethod
    def cancel() -> "ControlCommand":
        return ControlCommand(ControlCommandType.CANCEL, {})

    @staticmethod
    def resync_position(x: float, y: float, floor: Optional[int] = None) -> "ControlCommand":
        return ControlCommand(
            ControlCommandType.RESYNC_POSITION, {"x": x, "y": y, "floor": floor}
        )

    @staticmethod
    def pause() -> "ControlCommand":
        return ControlCommand(ControlCommandType.PAUSE, {})

    @staticmethod
    def resume() -> "ControlCommand":
        return ControlCommand(ControlCommandType.RESUME, {})

    @staticmethod
    def single_step() -> "ControlCommand":
        return ControlCommand(ControlCommandType.SINGLE_STEP, {})

    @staticmethod
    def dump_state() -> "ControlCommand":
        return ControlCommand(ControlCommandType.DUMP_STATE, {})
