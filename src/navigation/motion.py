# convert per-tick travel distance into movement along the route
# src/navigation/motion.py
"""
MotionController: advances the agent along the active route, one tick at a time.

Each call to step(s) moves the pose by |s| along the route:
- s > 0 walks toward route[index + 1]
- s < 0 (manual mode only) walks back toward route[index]

Node boundaries crossed inside a tick are handled before the tick returns:
the leftover distance ("overshoot") is carried onto the next hop so the
agent never stutters at a waypoint. Floor connectors (hops whose endpoints
share planar coordinates) are skipped in a bounded loop and never set the
heading.

Decisions at waypoints are delegated to IntersectionResolver; the caller
(NavigationEngine) turns halting resolutions into status changes, prompts
and reroutes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .geometry import distance, offset, reverse_heading
from .intersection import IntersectionResolver, Resolution, ResolutionKind
from .route import RouteState
from .types import ControlMode, NavigationStatus, Segment

logger = logging.getLogger(__name__)


@dataclass
class StepOutcome:
    """What happened during one motion step."""

    requested: float
    consumed: List[float] = field(default_factory=list)  # distance walked per hop
    crossed: List[str] = field(default_factory=list)     # waypoint ids passed
    floors: List[int] = field(default_factory=list)      # floors entered
    destination_reached: bool = False
    resolution: Optional[Resolution] = None              # set when motion halted

    @property
    def travelled(self) -> float:
        return sum(self.consumed)

    @property
    def halted(self) -> bool:
        return self.resolution is not None and not self.resolution.advances


class MotionController:
    """Per-tick movement along RouteState."""

    def __init__(
        self,
        route: RouteState,
        resolver: IntersectionResolver,
        max_connector_hops: int = 16,
        max_segment_hops: int = 64,
    ) -> None:
        self._route = route
        self._resolver = resolver
        self._max_connector_hops = max_connector_hops
        self._max_segment_hops = max_segment_hops

    def step(self, s: float, mode: ControlMode = ControlMode.MANUAL) -> StepOutcome:
        outcome = StepOutcome(requested=s)
        route = self._route
        if route.segment is None or route.status != NavigationStatus.FOLLOWING or s == 0:
            return outcome

        if s > 0:
            self._step_forward(s, mode, outcome)
        elif mode == ControlMode.MANUAL:
            self._step_backward(-s, outcome)
        return outcome

    # ------------------------------------------------------------------
    # Forward motion
    # ------------------------------------------------------------------

    def _step_forward(self, s: float, mode: ControlMode, outcome: StepOutcome) -> None:
        route = self._route
        pos = route.position
        remaining = s

        seg = route.segment
        if seg is not None and seg.is_degenerate and not route.is_last_segment:
            # route begins on a connector: change floor, no intersection stop
            pos.move_to(seg.end)
            self._sync_floor(seg.to_floor, outcome)
            outcome.crossed.append(seg.to_id)
            self.advance_segment(outcome)

        for _ in range(self._max_segment_hops):
            seg = route.segment
            assert seg is not None
            here = pos.point
            dist_to_target = distance(here, seg.end)
            proposed = offset(here, seg.direction, remaining)

            if dist_to_target > remaining and not self._passed_end(proposed, seg):
                pos.move_to(proposed)
                if seg.heading is not None:
                    pos.heading = seg.heading
                outcome.consumed.append(remaining)
                return

            # Arrived at seg.to_id during this tick.
            outcome.consumed.append(min(dist_to_target, remaining))
            remaining = max(0.0, remaining - dist_to_target)
            pos.move_to(seg.end)
            if seg.heading is not None:
                pos.heading = seg.heading
            self._sync_floor(seg.to_floor, outcome)

            if route.is_last_segment:
                self._arrive_at_destination(outcome)
                return

            intended = route.following_node_id
            assert intended is not None
            resolution = self._resolver.resolve(
                seg.to_id,
                seg.from_id,
                intended,
                mode,
                fallback_heading=pos.heading,
            )
            outcome.crossed.append(seg.to_id)

            if not resolution.advances:
                outcome.resolution = resolution
                if resolution.kind == ResolutionKind.AWAIT_CHOICE:
                    route.status = NavigationStatus.AWAITING_TURN_CHOICE
                return

            self.advance_segment(outcome)
            if remaining <= 0.0:
                return

        logger.warning(
            "Tick crossed more than %d hops; %0.3f distance dropped at %s",
            self._max_segment_hops,
            remaining,
            route.current_node_id,
        )

    @staticmethod
    def _passed_end(proposed, seg: Segment) -> bool:
        if seg.is_degenerate:
            return False
        dx, dy = seg.direction
        return (proposed.x - seg.end.x) * dx + (proposed.y - seg.end.y) * dy > 0.0

    def advance_segment(self, outcome: Optional[StepOutcome] = None) -> Segment:
        """
        Move onto the next hop, teleporting through floor connectors.

        The pose ends on the start of the first non-connector hop (or on a
        connector when the chain is the route's tail or exceeds the hop cap).
        """
        route = self._route
        pos = route.position

        seg = route.advance()
        self._sync_floor(seg.to_floor, outcome)

        hops = 0
        while seg.is_degenerate and not route.is_last_segment:
            if hops >= self._max_connector_hops:
                logger.warning(
                    "Connector chain at %s exceeds %d hops; yielding",
                    seg.from_id,
                    self._max_connector_hops,
                )
                break
            pos.move_to(seg.end)
            if outcome is not None:
                outcome.crossed.append(seg.to_id)
            seg = route.advance()
            self._sync_floor(seg.to_floor, outcome)
            hops += 1

        pos.move_to(seg.start)
        if seg.heading is not None:
            pos.heading = seg.heading
        route.status = NavigationStatus.FOLLOWING
        return seg

    # ------------------------------------------------------------------
    # Backward motion (manual only)
    # ------------------------------------------------------------------

    def _step_backward(self, s: float, outcome: StepOutcome) -> None:
        route = self._route
        pos = route.position
        remaining = s

        for _ in range(self._max_segment_hops):
            seg = route.segment
            assert seg is not None
            here = pos.point
            dist_to_start = distance(here, seg.start)

            if dist_to_start > remaining:
                pos.move_to(offset(here, seg.direction, -remaining))
                if seg.heading is not None:
                    pos.heading = reverse_heading(seg.heading)
                outcome.consumed.append(remaining)
                return

            pos.move_to(seg.start)
            outcome.consumed.append(dist_to_start)
            remaining -= dist_to_start
            if seg.heading is not None:
                pos.heading = reverse_heading(seg.heading)
            self._sync_floor(seg.from_floor, outcome)

            if route.index == 0:
                return  # clamped at the start of the route
            route.step_back()
            if remaining <= 0.0:
                return

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _sync_floor(self, floor: int, outcome: Optional[StepOutcome]) -> None:
        pos = self._route.position
        if pos.floor != floor:
            logger.debug("Floor change %d -> %d", pos.floor, floor)
            pos.floor = floor
            if outcome is not None:
                outcome.floors.append(floor)

    def _arrive_at_destination(self, outcome: StepOutcome) -> None:
        route = self._route
        if route.status == NavigationStatus.DESTINATION_REACHED:
            return
        route.status = NavigationStatus.DESTINATION_REACHED
        outcome.destination_reached = True
