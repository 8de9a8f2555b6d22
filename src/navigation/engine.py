# src/navigation/engine.py
"""
NavigationEngine: the single owner of all navigation state.

Wires GraphStore, the A* planner, RouteState, MotionController,
IntersectionResolver and Rerouter together and exposes the surface that
UIs and schedulers use:

    inputs   navigate_to, follow_route, set_drive, set_direction,
             select_turn, set_mode, cancel, resync_position, tick
    outputs  status, position, route, turn_prompt, snapshot(), debug_state()
             + MonitoringEvents on the injected EventBus

The engine holds no thread or timer. An external scheduler calls tick()
at a fixed period; each call completes all of its state changes
(including intersection handling and rerouting) before returning.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple, Union

from env.schema import NavigationConfig
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event

from .errors import NoPathError, UnknownNodeError
from .graph import GraphStore
from .intersection import IntersectionResolver, ResolutionKind
from .motion import MotionController, StepOutcome
from .pathfinder import find_path
from .rerouter import Rerouter, RerouteResult
from .route import RouteState
from .types import (
    ControlMode,
    JoystickDirection,
    NavigationSnapshot,
    NavigationStatus,
    Point,
    Position,
    TurnDirection,
    TurnPrompt,
)

logger = logging.getLogger(__name__)

MODULE = "navigation.engine"


class NavigationEngine:
    """Route-following state machine driven by discrete events and ticks."""

    def __init__(
        self,
        graph: GraphStore,
        config: Optional[NavigationConfig] = None,
        bus: Optional[EventBus] = None,
    ) -> None:
        self._graph = graph
        self._config = config or NavigationConfig()
        self._bus = bus or EventBus()
        self._mode = ControlMode(self._config.mode)

        self._route = RouteState(graph, epsilon=self._config.epsilon)
        self._resolver = IntersectionResolver(
            graph,
            turn_threshold=self._config.turn_threshold_rad,
            epsilon=self._config.epsilon,
        )
        self._motion = MotionController(
            self._route,
            self._resolver,
            max_connector_hops=self._config.max_connector_hops,
            max_segment_hops=self._config.max_segment_hops,
        )
        self._rerouter = Rerouter(graph, self._route)

        # inputs
        self._drive_held = False
        self._pressed: Set[JoystickDirection] = set()

        # per-session bookkeeping
        self._turn_prompt: Optional[TurnPrompt] = None
        self._dead_end_node: Optional[str] = None
        self._last_error: Optional[str] = None
        self._arrival_announced = False
        self._session_id: Optional[str] = None
        self._tick_count = 0

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def graph(self) -> GraphStore:
        return self._graph

    @property
    def config(self) -> NavigationConfig:
        return self._config

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def mode(self) -> ControlMode:
        return self._mode

    @property
    def status(self) -> NavigationStatus:
        return self._route.status

    @property
    def position(self) -> Position:
        return self._route.position.copy()

    @property
    def route(self) -> Tuple[str, ...]:
        return tuple(self._route.route)

    @property
    def route_index(self) -> int:
        return self._route.index

    @property
    def destination_id(self) -> Optional[str]:
        return self._route.destination_id

    @property
    def turn_prompt(self) -> Optional[TurnPrompt]:
        return self._turn_prompt

    @property
    def dead_end_node(self) -> Optional[str]:
        return self._dead_end_node

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def movement_permitted(self) -> bool:
        if self._mode == ControlMode.AUTOMATIC:
            return self._drive_held
        return bool(self._pressed)

    def snapshot(self) -> NavigationSnapshot:
        return NavigationSnapshot(
            status=self.status,
            mode=self._mode,
            position=self.position,
            route=self.route,
            route_index=self._route.index,
            destination_id=self.destination_id,
            turn_prompt=self._turn_prompt,
            dead_end_node=self._dead_end_node,
            last_error=self._last_error,
            extra={"tick": self._tick_count, "session_id": self._session_id},
        )

    def debug_state(self) -> Dict[str, Any]:
        return self.snapshot().to_dict()

    # ------------------------------------------------------------------
    # Route lifecycle
    # ------------------------------------------------------------------

    def navigate_to(self, start_id: str, goal_id: str) -> List[str]:
        """
        Plan start -> goal and start following it.

        Raises UnknownNodeError / NoPathError without touching the current
        navigation state; a NAVIGATION_FAILED event is published first.
        """
        for node_id in (start_id, goal_id):
            if node_id not in self._graph:
                self._emit_failure(start_id, goal_id, "unknown_node", node_id=node_id)
                raise UnknownNodeError(node_id)

        result = find_path(self._graph, start_id, goal_id)
        if not result.success:
            reason = result.reason or "no_path_found"
            self._emit_failure(start_id, goal_id, reason)
            raise NoPathError(start_id, goal_id, reason)

        self._session_id = uuid.uuid4().hex
        self._install_route(result.path)
        self._emit(
            EventType.NAVIGATION_STARTED,
            f"Route {start_id} -> {goal_id} ({len(result.path)} nodes)",
            {
                "start": start_id,
                "goal": goal_id,
                "route": list(result.path),
                "cost": result.cost,
                "mode": self._mode.value,
            },
        )
        logger.info("Navigating %s -> %s via %s", start_id, goal_id, result.path)
        self._announce_arrival_if_needed()
        return list(result.path)

    def follow_route(self, path: Sequence[str]) -> List[str]:
        """
        Start following a caller-supplied route (e.g. a stored tour).

        Only node existence is checked. A hop that leaves a node with no
        other exit is reported as a dead end while walking; a hop that is
        not an edge anywhere else is a RouteInvariantError.
        """
        path = list(path)
        if not path:
            raise ValueError("Route must contain at least one node id")
        for node_id in path:
            if node_id not in self._graph:
                self._emit_failure(path[0], path[-1], "unknown_node", node_id=node_id)
                raise UnknownNodeError(node_id)

        self._session_id = uuid.uuid4().hex
        self._install_route(path)
        self._emit(
            EventType.NAVIGATION_STARTED,
            f"Following supplied route {path[0]} -> {path[-1]} ({len(path)} nodes)",
            {
                "start": path[0],
                "goal": path[-1],
                "route": list(path),
                "cost": None,
                "mode": self._mode.value,
            },
        )
        self._announce_arrival_if_needed()
        return list(path)

    def cancel(self) -> None:
        """Drop the active route and release all movement inputs."""
        was_active = self._route.active
        route = list(self._route.route)
        self._route.clear()
        self._release_inputs()
        self._reset_session_flags()
        if was_active:
            self._emit(EventType.NAVIGATION_CANCELLED, "Navigation cancelled", {"route": route})
        self._session_id = None

    def _install_route(self, path: List[str]) -> None:
        self._route.set_route(path)
        self._reset_session_flags()

    def _reset_session_flags(self) -> None:
        self._turn_prompt = None
        self._dead_end_node = None
        self._last_error = None
        self._arrival_announced = False

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def set_mode(self, mode: Union[ControlMode, str]) -> None:
        """
        Switch between automatic and manual control.

        A pending turn prompt is answered with the planned exit when
        switching to automatic, since automatic mode never halts.
        """
        self._mode = ControlMode(mode)
        self._release_inputs()
        if (
            self._mode == ControlMode.AUTOMATIC
            and self.status == NavigationStatus.AWAITING_TURN_CHOICE
            and self._turn_prompt is not None
        ):
            prompt = self._turn_prompt
            self._turn_prompt = None
            self._proceed_from_waypoint(prompt.node_id)

    def set_drive(self, held: bool) -> None:
        """Automatic mode dead-man's switch: movement only while held."""
        self._drive_held = bool(held)

    def set_direction(self, direction: Union[JoystickDirection, str], pressed: bool) -> None:
        if pressed and self.status == NavigationStatus.DESTINATION_REACHED:
            return
        d = JoystickDirection(direction)
        if pressed:
            self._pressed.add(d)
        else:
            self._pressed.discard(d)

    def _release_inputs(self) -> None:
        self._drive_held = False
        self._pressed.clear()

    def _manual_sign(self) -> int:
        up = JoystickDirection.UP in self._pressed
        down = JoystickDirection.DOWN in self._pressed
        if up and down:
            return 0
        if down:
            return -1
        return 1 if self._pressed else 0

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self, distance: Optional[float] = None) -> Optional[StepOutcome]:
        """
        Advance the simulation by one fixed step.

        `distance` overrides the configured speed_per_tick (magnitude only;
        the direction comes from the inputs). Returns None when nothing
        could move this tick.
        """
        self._tick_count += 1
        if self.status != NavigationStatus.FOLLOWING:
            return None
        if not self.movement_permitted:
            return None

        magnitude = abs(distance) if distance is not None else self._config.speed_per_tick
        if self._mode == ControlMode.AUTOMATIC:
            s = magnitude
        else:
            s = self._manual_sign() * magnitude
        if s == 0:
            return None

        if self._dead_end_node is not None:
            # stalled; only backing out (manual) is allowed
            if s > 0:
                return None
            self._dead_end_node = None

        index_before = self._route.index
        outcome = self._motion.step(s, self._mode)
        self._handle_outcome(outcome, index_before)
        return outcome

    def _handle_outcome(self, outcome: StepOutcome, index_before: int) -> None:
        if self._route.index != index_before:
            seg = self._route.segment
            self._emit(
                EventType.SEGMENT_ADVANCED,
                f"Now on hop {self._route.index}",
                {
                    "route_index": self._route.index,
                    "from": seg.from_id if seg else None,
                    "to": seg.to_id if seg else None,
                    "crossed": list(outcome.crossed),
                },
            )
        for floor in outcome.floors:
            self._emit(EventType.FLOOR_CHANGED, f"Entered floor {floor}", {"floor": floor})

        if outcome.destination_reached:
            self._announce_arrival_if_needed()
            return

        resolution = outcome.resolution
        if resolution is None:
            return
        if resolution.kind == ResolutionKind.AWAIT_CHOICE:
            self._turn_prompt = resolution.prompt
            payload = resolution.prompt.to_dict() if resolution.prompt else {}
            self._emit(
                EventType.TURN_CHOICE_REQUIRED,
                f"Turn choice required at {resolution.node_id}",
                payload,
            )
        elif resolution.kind == ResolutionKind.DEAD_END:
            self._handle_dead_end(resolution.node_id)

    def _announce_arrival_if_needed(self) -> None:
        if self.status != NavigationStatus.DESTINATION_REACHED or self._arrival_announced:
            return
        self._arrival_announced = True
        self._release_inputs()
        dest = self.destination_id
        name = self._graph.node(dest).name if dest is not None else None
        self._emit(
            EventType.DESTINATION_REACHED,
            f"Destination reached: {name}",
            {"destination": dest, "name": name, "floor": self._route.position.floor},
        )

    # ------------------------------------------------------------------
    # Intersections
    # ------------------------------------------------------------------

    def select_turn(self, direction: Union[TurnDirection, str]) -> bool:
        """
        Answer a pending turn prompt.

        Returns False (and changes nothing) when no prompt is pending or no
        exit matches `direction`. Returns True once the choice was applied,
        even if the reroute that a wrong choice triggers fails.
        """
        prompt = self._turn_prompt
        if self.status != NavigationStatus.AWAITING_TURN_CHOICE or prompt is None:
            logger.debug("Ignoring turn selection %r: no pending prompt", direction)
            return False
        try:
            wanted = TurnDirection(direction)
        except ValueError:
            logger.debug("Ignoring unknown turn direction %r", direction)
            return False

        selected = self._resolver.select(prompt, wanted)
        if selected is None:
            logger.debug("No %s exit at %s; selection ignored", wanted.value, prompt.node_id)
            return False

        on_plan = selected == prompt.intended_id
        self._turn_prompt = None
        self._emit(
            EventType.TURN_SELECTED,
            f"Selected {wanted.value} at {prompt.node_id}",
            {
                "node_id": prompt.node_id,
                "direction": wanted.value,
                "selected": selected,
                "intended": prompt.intended_id,
                "correct": on_plan,
            },
        )

        if on_plan:
            self._proceed_from_waypoint(prompt.node_id)
        else:
            self._route.status = NavigationStatus.OFF_ROUTE
            self._reroute(selected, anchor_id=prompt.node_id, cause="wrong_turn")
        return True

    def _proceed_from_waypoint(self, node_id: str) -> None:
        outcome = StepOutcome(requested=0.0)
        index_before = self._route.index
        self._motion.advance_segment(outcome)
        outcome.crossed.insert(0, node_id)
        self._handle_outcome(outcome, index_before)

    def _handle_dead_end(self, node_id: str) -> None:
        self._dead_end_node = node_id
        policy = self._config.dead_end_policy
        self._emit(
            EventType.DEAD_END,
            f"Dead end at {node_id}",
            {"node_id": node_id, "policy": policy},
        )
        if policy == "reroute":
            self._route.status = NavigationStatus.OFF_ROUTE
            self._reroute(node_id, anchor_id=None, cause="dead_end")
        else:
            self._release_inputs()

    # ------------------------------------------------------------------
    # Rerouting
    # ------------------------------------------------------------------

    def resync_position(self, x: float, y: float, floor: Optional[int] = None) -> bool:
        """
        Reconcile an externally measured position with the route.

        Within snap_radius of the route the pose snaps onto the closest hop
        and True is returned. Further away the agent is OFF_ROUTE and a
        reroute from the nearest node on that floor is attempted.
        A floor with no nodes raises ValueError before anything changes.
        """
        if self.status != NavigationStatus.FOLLOWING:
            return False
        floor = self._route.position.floor if floor is None else floor
        point = Point(x, y)

        proj = self._route.project_onto_route(point, floor)
        if proj is not None and proj.distance <= self._config.snap_radius:
            self._route.jump_to(proj.segment_index)
            pos = self._route.position
            pos.move_to(proj.point)
            pos.floor = floor
            heading = self._route.segment.heading if self._route.segment else None
            if heading is not None:
                pos.heading = heading
            return True

        logger.info("Drift of %s from route; rerouting", "?" if proj is None else f"{proj.distance:.1f}")
        nearest = self._graph.nearest_node(point, floor)
        self._route.status = NavigationStatus.OFF_ROUTE
        self._reroute(nearest, anchor_id=None, cause="drift")
        return False

    def _reroute(self, from_id: str, anchor_id: Optional[str], cause: str) -> RerouteResult:
        destination = self._route.destination_id
        assert destination is not None
        result = self._rerouter.reroute(from_id, destination, anchor_id=anchor_id)
        if not result.success:
            self._last_error = f"reroute_failed:{result.reason}"
            self._release_inputs()
            self._emit(
                EventType.REROUTE_FAILED,
                f"No route from {from_id} to {destination}",
                {
                    "from": from_id,
                    "destination": destination,
                    "reason": result.reason,
                    "cause": cause,
                },
            )
            return result

        self._reset_session_flags()
        self._emit(
            EventType.REROUTE_TRIGGERED,
            f"Rerouted from {from_id} ({cause})",
            {
                "from": from_id,
                "anchor": anchor_id,
                "destination": destination,
                "route": list(result.path),
                "cause": cause,
            },
        )
        self._announce_arrival_if_needed()
        return result

    # ------------------------------------------------------------------
    # Event helpers
    # ------------------------------------------------------------------

    def _emit(self, event_type: EventType, message: str, payload: Dict[str, Any]) -> None:
        log_event(
            bus=self._bus,
            module=MODULE,
            event_type=event_type,
            message=message,
            payload=payload,
            correlation_id=self._session_id,
        )

    def _emit_failure(self, start_id: str, goal_id: str, reason: str, **extra: Any) -> None:
        logger.warning("Cannot navigate %s -> %s: %s", start_id, goal_id, reason)
        self._emit(
            EventType.NAVIGATION_FAILED,
            f"Cannot navigate {start_id} -> {goal_id}",
            {"start": start_id, "goal": goal_id, "reason": reason, **extra},
        )
