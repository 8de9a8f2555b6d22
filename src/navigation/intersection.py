# src/navigation/intersection.py
"""
IntersectionResolver: what happens when the agent reaches a route node.

For a reached node n, arrived at from `incoming`, with the plan continuing
to `intended`:

- exits = neighbor ids of n minus `incoming` (parallel edges collapsed)
- no exits            -> DEAD_END
- one exit            -> PASS_THROUGH (not a real branch, never prompts)
- several, automatic  -> PROCEED along the plan
- several, manual     -> AWAIT_CHOICE with every exit classified
                         left / straight / right relative to the incoming
                         heading

The resolver only decides; RouteState and status changes are applied by
the engine so that a decision can be inspected in tests on its own.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional

from .errors import RouteInvariantError
from .geometry import DEFAULT_TURN_THRESHOLD, classify_turn, heading_between, normalize_angle
from .graph import GraphStore
from .types import ControlMode, TurnDirection, TurnOption, TurnPrompt

logger = logging.getLogger(__name__)


class ResolutionKind(Enum):
    PASS_THROUGH = auto()
    PROCEED = auto()
    AWAIT_CHOICE = auto()
    DEAD_END = auto()


@dataclass(frozen=True)
class Resolution:
    kind: ResolutionKind
    node_id: str
    exits: List[str] = field(default_factory=list)
    prompt: Optional[TurnPrompt] = None

    @property
    def advances(self) -> bool:
        return self.kind in (ResolutionKind.PASS_THROUGH, ResolutionKind.PROCEED)


class IntersectionResolver:
    """Branch detection and turn classification at route waypoints."""

    def __init__(
        self,
        graph: GraphStore,
        turn_threshold: float = DEFAULT_TURN_THRESHOLD,
        epsilon: float = 1e-6,
    ) -> None:
        self._graph = graph
        self._threshold = turn_threshold
        self._epsilon = epsilon

    def valid_exits(self, node_id: str, incoming_id: str) -> List[str]:
        return [n for n in self._graph.neighbor_ids(node_id) if n != incoming_id]

    def resolve(
        self,
        node_id: str,
        incoming_id: str,
        intended_id: str,
        mode: ControlMode,
        fallback_heading: float = 0.0,
    ) -> Resolution:
        exits = self.valid_exits(node_id, incoming_id)

        if intended_id == incoming_id:
            # planned reversal, only produced by anchored reroutes
            return Resolution(ResolutionKind.PROCEED, node_id, exits)

        if not exits:
            logger.info("Dead end at %s (arrived from %s)", node_id, incoming_id)
            return Resolution(ResolutionKind.DEAD_END, node_id, exits)

        if intended_id not in exits:
            raise RouteInvariantError(
                f"Planned exit {intended_id!r} is not adjacent to {node_id!r}"
            )

        if len(exits) == 1:
            return Resolution(ResolutionKind.PASS_THROUGH, node_id, exits)

        if mode == ControlMode.AUTOMATIC:
            return Resolution(ResolutionKind.PROCEED, node_id, exits)

        prompt = self.build_prompt(node_id, incoming_id, intended_id, exits, fallback_heading)
        logger.debug(
            "Intersection at %s: %s (correct=%s)",
            node_id,
            [(o.node_id, o.direction.value) for o in prompt.options],
            prompt.correct_direction,
        )
        return Resolution(ResolutionKind.AWAIT_CHOICE, node_id, exits, prompt)

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def incoming_angle(self, node_id: str, incoming_id: str, fallback: float = 0.0) -> float:
        a = self._graph.point(incoming_id)
        b = self._graph.point(node_id)
        if math.hypot(b.x - a.x, b.y - a.y) <= self._epsilon:
            return fallback
        return heading_between(a, b)

    def classify_exit(self, node_id: str, exit_id: str, in_angle: float) -> TurnOption:
        n = self._graph.point(node_id)
        e = self._graph.point(exit_id)
        if math.hypot(e.x - n.x, e.y - n.y) <= self._epsilon:
            # stairs / lift: no planar direction to compare against
            return TurnOption(node_id=exit_id, direction=TurnDirection.STRAIGHT, angle=0.0)
        diff = normalize_angle(heading_between(n, e) - in_angle)
        return TurnOption(
            node_id=exit_id,
            direction=classify_turn(diff, self._threshold),
            angle=diff,
        )

    def build_prompt(
        self,
        node_id: str,
        incoming_id: str,
        intended_id: str,
        exits: List[str],
        fallback_heading: float = 0.0,
    ) -> TurnPrompt:
        in_angle = self.incoming_angle(node_id, incoming_id, fallback_heading)
        options = tuple(self.classify_exit(node_id, e, in_angle) for e in exits)
        correct = next((o.direction for o in options if o.node_id == intended_id), None)
        return TurnPrompt(
            node_id=node_id,
            incoming_id=incoming_id,
            intended_id=intended_id,
            options=options,
            correct_direction=correct,
        )

    @staticmethod
    def select(prompt: TurnPrompt, direction: TurnDirection) -> Optional[str]:
        """First exit classified as `direction`, or None if nothing matches."""
        for option in prompt.options:
            if option.direction == direction:
                return option.node_id
        return None
