# src/navigation/__init__.py
"""
Indoor route-following navigation engine.

Provides:
- GraphStore: validated, mirrored, read-only building graph
- find_path / compute_path: A* over GraphStore
- RouteState: active route, current hop and pose
- MotionController: per-tick movement with overshoot carry-over
- IntersectionResolver: branch detection and left/straight/right classification
- Rerouter: route replacement after leaving the plan
- NavigationEngine: aggregate that owns all of the above
"""

from __future__ import annotations

from .errors import (
    NavigationError,
    NoPathError,
    RerouteFailure,
    RouteInvariantError,
    UnknownNodeError,
)
from .types import (
    ControlMode,
    Edge,
    JoystickDirection,
    NavigationSnapshot,
    NavigationStatus,
    Node,
    Point,
    Position,
    Segment,
    TurnDirection,
    TurnOption,
    TurnPrompt,
)
from .graph import GraphStore
from .pathfinder import PathfindingResult, compute_path, find_path, path_cost
from .route import RouteState, RouteProjection
from .intersection import IntersectionResolver, Resolution, ResolutionKind
from .motion import MotionController, StepOutcome
from .rerouter import Rerouter, RerouteResult
from .engine import NavigationEngine

__all__ = [
    "NavigationError",
    "NoPathError",
    "RerouteFailure",
    "RouteInvariantError",
    "UnknownNodeError",
    "ControlMode",
    "Edge",
    "JoystickDirection",
    "NavigationSnapshot",
    "NavigationStatus",
    "Node",
    "Point",
    "Position",
    "Segment",
    "TurnDirection",
    "TurnOption",
    "TurnPrompt",
    "GraphStore",
    "PathfindingResult",
    "compute_path",
    "find_path",
    "path_cost",
    "RouteState",
    "RouteProjection",
    "IntersectionResolver",
    "Resolution",
    "ResolutionKind",
    "MotionController",
    "StepOutcome",
    "Rerouter",
    "RerouteResult",
    "NavigationEngine",
]
