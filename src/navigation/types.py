# core navigation records: Node, Edge, Segment, Position, statuses
# src/navigation/types.py

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class NavigationStatus(Enum):
    """Top-level state of the navigation state machine."""

    IDLE = "idle"
    FOLLOWING = "following"
    AWAITING_TURN_CHOICE = "awaiting_turn_choice"
    OFF_ROUTE = "off_route"
    DESTINATION_REACHED = "destination_reached"


class ControlMode(str, Enum):
    """Who confirms turns at intersections."""

    AUTOMATIC = "automatic"
    MANUAL = "manual"


class TurnDirection(str, Enum):
    LEFT = "left"
    STRAIGHT = "straight"
    RIGHT = "right"


class JoystickDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


# ---------------------------------------------------------------------------
# Graph records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class Node:
    """
    Point of interest in the building.

    Coordinates use map convention (y grows downward) and are only
    comparable between nodes on the same floor.
    """

    id: str
    name: str
    x: float
    y: float
    floor: int = 0

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)


@dataclass(frozen=True)
class Edge:
    """Directed weighted connection between two node ids."""

    source: str
    target: str
    cost: float

    def mirrored(self) -> "Edge":
        return Edge(source=self.target, target=self.source, cost=self.cost)


# ---------------------------------------------------------------------------
# Route geometry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Segment:
    """
    Cached geometry of one route hop route[i] -> route[i + 1].

    A segment whose endpoints share planar coordinates (a stair/lift
    connector between floors) is "degenerate": its direction is (0, 0)
    and it carries no heading.
    """

    from_id: str
    to_id: str
    start: Point
    end: Point
    from_floor: int
    to_floor: int
    epsilon: float = 1e-6

    @property
    def length(self) -> float:
        return math.hypot(self.end.x - self.start.x, self.end.y - self.start.y)

    @property
    def is_degenerate(self) -> bool:
        return self.length <= self.epsilon

    @property
    def direction(self) -> Tuple[float, float]:
        length = self.length
        if length <= self.epsilon:
            return (0.0, 0.0)
        return (
            (self.end.x - self.start.x) / length,
            (self.end.y - self.start.y) / length,
        )

    @property
    def heading(self) -> Optional[float]:
        """Heading in radians (atan2 of the direction), None for connectors."""
        if self.is_degenerate:
            return None
        return math.atan2(self.end.y - self.start.y, self.end.x - self.start.x)

    @property
    def changes_floor(self) -> bool:
        return self.from_floor != self.to_floor


@dataclass
class Position:
    """Continuous agent pose: planar point, heading (radians) and floor."""

    x: float = 0.0
    y: float = 0.0
    heading: float = 0.0
    floor: int = 0

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)

    def move_to(self, point: Point) -> None:
        self.x = point.x
        self.y = point.y

    def copy(self) -> "Position":
        return Position(x=self.x, y=self.y, heading=self.heading, floor=self.floor)


# ---------------------------------------------------------------------------
# Intersection records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TurnOption:
    """One candidate exit at an intersection and how it reads to the operator."""

    node_id: str
    direction: TurnDirection
    angle: float  # signed relative angle, radians, in (-pi, pi]


@dataclass(frozen=True)
class TurnPrompt:
    """Choice presented to the operator while AWAITING_TURN_CHOICE."""

    node_id: str
    incoming_id: str
    intended_id: str
    options: Tuple[TurnOption, ...]
    correct_direction: Optional[TurnDirection]

    @property
    def directions(self) -> List[TurnDirection]:
        seen: List[TurnDirection] = []
        for opt in self.options:
            if opt.direction not in seen:
                seen.append(opt.direction)
        return seen

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "incoming_id": self.incoming_id,
            "intended_id": self.intended_id,
            "options": [
                {"node_id": o.node_id, "direction": o.direction.value, "angle": o.angle}
                for o in self.options
            ],
            "correct_direction": (
                self.correct_direction.value if self.correct_direction else None
            ),
        }


# ---------------------------------------------------------------------------
# Read-only view for collaborators
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NavigationSnapshot:
    """Immutable copy of the engine state handed to renderers / UIs."""

    status: NavigationStatus
    mode: ControlMode
    position: Position
    route: Tuple[str, ...]
    route_index: int
    destination_id: Optional[str]
    turn_prompt: Optional[TurnPrompt] = None
    dead_end_node: Optional[str] = None
    last_error: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "mode": self.mode.value,
            "position": {
                "x": self.position.x,
                "y": self.position.y,
                "heading": self.position.heading,
                "floor": self.position.floor,
            },
            "route": list(self.route),
            "route_index": self.route_index,
            "destination_id": self.destination_id,
            "turn_prompt": self.turn_prompt.to_dict() if self.turn_prompt else None,
            "dead_end_node": self.dead_end_node,
            "last_error": self.last_error,
            **self.extra,
        }
