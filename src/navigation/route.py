# src/navigation/route.py
"""
RouteState: the active route and the geometry of the hop being walked.

Holds:
- route: ordered node ids from the planner
- index: which hop route[index] -> route[index + 1] is active
- segment: cached Segment for that hop
- position: continuous agent pose
- status: NavigationStatus shared by motion, intersection and reroute code

Everything here is mutated only by the NavigationEngine and the components
it owns; collaborators read snapshots.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .errors import RouteInvariantError, UnknownNodeError
from .geometry import distance, project_point_to_segment
from .graph import GraphStore
from .types import NavigationStatus, Point, Position, Segment


@dataclass(frozen=True)
class RouteProjection:
    """Closest point on the route polyline to some query point."""

    segment_index: int
    from_id: str
    to_id: str
    point: Point
    distance: float


class RouteState:
    """Active route, current hop and pose."""

    def __init__(self, graph: GraphStore, epsilon: float = 1e-6) -> None:
        self._graph = graph
        self._epsilon = epsilon

        self.route: List[str] = []
        self.index: int = 0
        self.segment: Optional[Segment] = None
        self.position = Position()
        self.status = NavigationStatus.IDLE

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def set_route(self, ids: Sequence[str]) -> None:
        """
        Install a fresh route and reset pose to its first node.

        Unknown ids are rejected before anything is mutated. A single-node
        route is already at its destination.
        """
        if not ids:
            raise ValueError("Route must contain at least one node id")
        for node_id in ids:
            if node_id not in self._graph:
                raise UnknownNodeError(node_id)

        self.route = list(ids)
        self.index = 0

        first = self._graph.node(self.route[0])
        self.position = Position(x=first.x, y=first.y, heading=self.position.heading, floor=first.floor)

        if len(self.route) == 1:
            self.segment = None
            self.status = NavigationStatus.DESTINATION_REACHED
            return

        self.segment = self.build_segment(0)
        if self.segment.heading is not None:
            self.position.heading = self.segment.heading
        self.status = NavigationStatus.FOLLOWING

    def clear(self) -> None:
        self.route = []
        self.index = 0
        self.segment = None
        self.status = NavigationStatus.IDLE

    # ------------------------------------------------------------------
    # Segment bookkeeping
    # ------------------------------------------------------------------

    def build_segment(self, index: int) -> Segment:
        if not 0 <= index < len(self.route) - 1:
            raise RouteInvariantError(
                f"Segment index {index} outside route of length {len(self.route)}"
            )
        from_id = self.route[index]
        to_id = self.route[index + 1]
        try:
            a = self._graph.node(from_id)
            b = self._graph.node(to_id)
        except UnknownNodeError as exc:
            raise RouteInvariantError(f"Route references unknown node {exc.node_id!r}") from exc
        return Segment(
            from_id=from_id,
            to_id=to_id,
            start=a.point,
            end=b.point,
            from_floor=a.floor,
            to_floor=b.floor,
            epsilon=self._epsilon,
        )

    def advance(self) -> Segment:
        """Move to the next hop and return its segment."""
        if self.index + 2 > len(self.route) - 1:
            raise RouteInvariantError("Cannot advance past the final hop of the route")
        self.index += 1
        self.segment = self.build_segment(self.index)
        return self.segment

    def jump_to(self, index: int) -> Segment:
        """Make hop `index` active without touching the pose."""
        self.segment = self.build_segment(index)
        self.index = index
        return self.segment

    def step_back(self) -> Segment:
        """Move to the previous hop and return its segment."""
        if self.index <= 0:
            raise RouteInvariantError("Already on the first hop of the route")
        self.index -= 1
        self.segment = self.build_segment(self.index)
        return self.segment

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def active(self) -> bool:
        return bool(self.route)

    @property
    def current_node_id(self) -> Optional[str]:
        """Node the active hop departs from."""
        return self.route[self.index] if self.route else None

    @property
    def next_node_id(self) -> Optional[str]:
        """Node the active hop leads to."""
        if self.index + 1 < len(self.route):
            return self.route[self.index + 1]
        return None

    @property
    def following_node_id(self) -> Optional[str]:
        """Node after next_node_id, i.e. the planned exit at the next waypoint."""
        if self.index + 2 < len(self.route):
            return self.route[self.index + 2]
        return None

    @property
    def destination_id(self) -> Optional[str]:
        return self.route[-1] if self.route else None

    @property
    def is_last_segment(self) -> bool:
        return bool(self.route) and self.index + 1 == len(self.route) - 1

    def remaining_route(self) -> List[str]:
        return self.route[self.index:]

    def snap_to_segment(self) -> float:
        """Project the position onto the active segment; return the correction."""
        if self.segment is None:
            return 0.0
        p = self.position.point
        proj = project_point_to_segment(p, self.segment.start, self.segment.end)
        self.position.move_to(proj)
        return distance(p, proj)

    def project_onto_route(self, point: Point, floor: Optional[int] = None) -> Optional[RouteProjection]:
        """
        Best projection of `point` onto any hop of the route.

        Hops that do not touch `floor` are skipped when a floor is given.
        """
        if len(self.route) < 2:
            return None
        best: Optional[RouteProjection] = None
        best_d = math.inf
        for i in range(len(self.route) - 1):
            seg = self.build_segment(i)
            if floor is not None and floor not in (seg.from_floor, seg.to_floor):
                continue
            proj = project_point_to_segment(point, seg.start, seg.end)
            d = distance(point, proj)
            if d < best_d:
                best_d = d
                best = RouteProjection(
                    segment_index=i,
                    from_id=seg.from_id,
                    to_id=seg.to_id,
                    point=proj,
                    distance=d,
                )
        return best
