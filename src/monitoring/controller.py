# NavigationController linking control commands to the navigation engine
#src/monitoring/controller.py
"""
Control surface for the navigation engine.

NavigationController listens for ControlCommand messages on the EventBus,
forwards discrete inputs to the engine and gates ticks:

- NAVIGATE_TO    -> engine.navigate_to(start, goal)
- FOLLOW_ROUTE   -> engine.follow_route(route)
- RESYNC_POSITION -> engine.resync_position(x, y, floor)
- SET_DRIVE      -> engine.set_drive(held)
- SET_DIRECTION  -> engine.set_direction(direction, pressed)
- SELECT_TURN    -> engine.select_turn(direction)
- SET_MODE       -> engine.set_mode(mode)
- CANCEL         -> engine.cancel()
- PAUSE / RESUME -> stop / restart ticking
- SINGLE_STEP    -> run exactly one tick, then pause again
- DUMP_STATE     -> emit a SNAPSHOT event

The scheduler calls `maybe_tick()` instead of `engine.tick()` so that the
pause / single-step flags are respected.
"""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any, Dict, List, Optional, Protocol

from .bus import EventBus
from .events import (
    ControlCommand,
    ControlCommandType,
    EventType,
)
from .logger import log_event
from navigation.errors import NavigationError

MODULE = "monitoring.controller"


# ============================================================
# Engine interface expected by the controller
# ============================================================

class NavigationControl(Protocol):
    """What the controller needs from a navigation engine."""

    def tick(self, distance: Optional[float] = None) -> Any:
        """Advance one fixed simulation step."""

    def navigate_to(self, start_id: str, goal_id: str) -> List[str]:
        """Plan and start following a route."""

    def follow_route(self, path: List[str]) -> List[str]: ...

    def resync_position(self, x: float, y: float, floor: Optional[int] = None) -> bool: ...

    def set_drive(self, held: bool) -> None: ...

    def set_direction(self, direction: Any, pressed: bool) -> None: ...

    def select_turn(self, direction: Any) -> bool: ...

    def set_mode(self, mode: Any) -> None: ...

    def cancel(self) -> None: ...

    def debug_state(self) -> Dict[str, Any]:
        """JSON-serializable snapshot of the engine state."""
        ...


# ============================================================
# Navigation Controller
# ============================================================

class NavigationController:
    """Routes bus commands into the engine and gates stepping."""

    def __init__(self, engine: NavigationControl, bus: EventBus) -> None:
        self._engine = engine
        self._bus = bus

        self._paused: bool = False
        self._single_step: bool = False
        self._ticks: int = 0

        self._bus.subscribe_commands(self._handle_command)

    # --------------------------------------------------------
    # Command handling
    # --------------------------------------------------------

    def _handle_command(self, cmd: ControlCommand) -> None:
        """
        Apply one ControlCommand.

        Engine errors (unknown node, no path, bad argument) are reported as
        a CONTROL_COMMAND event with an "error" field instead of escaping
        into the bus.
        """
        name = cmd.cmd.name
        args = cmd.args
        try:
            result = self._dispatch(cmd.cmd, args)
        except (NavigationError, LookupError, ValueError) as exc:
            self._log_control(name, {**args, "error": str(exc)})
            return
        if cmd.cmd != ControlCommandType.DUMP_STATE:
            payload = dict(args)
            if result is not None:
                payload["result"] = result
            self._log_control(name, payload)

    def _dispatch(self, kind: ControlCommandType, args: Dict[str, Any]) -> Any:
        engine = self._engine

        if kind == ControlCommandType.NAVIGATE_TO:
            return engine.navigate_to(args["start"], args["goal"])
        if kind == ControlCommandType.FOLLOW_ROUTE:
            return engine.follow_route(args["route"])
        if kind == ControlCommandType.RESYNC_POSITION:
            return engine.resync_position(float(args["x"]), float(args["y"]), args.get("floor"))

        if kind == ControlCommandType.SET_DRIVE:
            engine.set_drive(bool(args.get("held", False)))
        elif kind == ControlCommandType.SET_DIRECTION:
            engine.set_direction(args["direction"], bool(args.get("pressed", False)))
        elif kind == ControlCommandType.SELECT_TURN:
            return engine.select_turn(args["direction"])
        elif kind == ControlCommandType.SET_MODE:
            engine.set_mode(args["mode"])
        elif kind == ControlCommandType.CANCEL:
            engine.cancel()
        elif kind == ControlCommandType.PAUSE:
            self._paused = True
            self._single_step = False
        elif kind == ControlCommandType.RESUME:
            self._paused = False
            self._single_step = False
        elif kind == ControlCommandType.SINGLE_STEP:
            # next maybe_tick() runs exactly one tick
            self._single_step = True
            self._paused = False
        elif kind == ControlCommandType.DUMP_STATE:
            self._log_snapshot(self._safe_debug_state())
        return None

    # --------------------------------------------------------
    # Stepping API for the scheduler
    # --------------------------------------------------------

    def maybe_tick(self) -> Any:
        """
        Replacement for direct engine.tick() calls.

        - paused: do nothing
        - single_step pending: tick once, then pause
        - otherwise: tick
        """
        if self._paused:
            return None

        outcome = self._engine.tick()
        self._ticks += 1

        if self._single_step:
            self._paused = True
            self._single_step = False
            self._log_control("SINGLE_STEP_COMPLETED", {"paused": True})
        return outcome

    # --------------------------------------------------------
    # Introspection helpers
    # --------------------------------------------------------

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def single_step_pending(self) -> bool:
        return self._single_step

    @property
    def ticks(self) -> int:
        return self._ticks

    @property
    def engine(self) -> NavigationControl:
        return self._engine

    # --------------------------------------------------------
    # Logging helpers
    # --------------------------------------------------------

    def _log_control(self, cmd_name: str, payload: Dict[str, Any]) -> None:
        log_event(
            bus=self._bus,
            module=MODULE,
            event_type=EventType.CONTROL_COMMAND,
            message=f"Control command: {cmd_name}",
            payload={"cmd": cmd_name, **payload},
        )

    def _log_snapshot(self, state: Dict[str, Any]) -> None:
        log_event(
            bus=self._bus,
            module=MODULE,
            event_type=EventType.SNAPSHOT,
            message="Navigation state snapshot",
            payload={"state": state},
        )

    def _safe_debug_state(self) -> Dict[str, Any]:
        state = self._engine.debug_state()
        if is_dataclass(state):
            return asdict(state)
        return state
