# A* pathfinding over the GraphStore
# src/navigation/pathfinder.py
"""
A* pathfinding over GraphStore.

- Planar Euclidean heuristic; the floor index is ignored.
- Edge costs come straight from the graph (parallel edges: cheapest wins
  through ordinary relaxation).
- Optional max_expansions guard for callers that must bound latency.

Known optimality caveat: connector edges carry a fixed cost that has no
relation to planar distance, and two stacked stair nodes have a Euclidean
estimate of ~0 between them. The heuristic is therefore not guaranteed to
be admissible on multi-floor graphs and a multi-floor route may come out
slightly longer than optimal. Single-floor searches are exact.
"""

from __future__ import annotations

import heapq
import itertools
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import NoPathError, UnknownNodeError
from .geometry import distance
from .graph import GraphStore


@dataclass
class PathfindingResult:
    """Structured result for a pathfinding attempt."""

    path: List[str]
    success: bool
    reason: str | None = None
    cost: float = math.inf
    expansions: int = 0


def _heuristic(graph: GraphStore, a_id: str, b_id: str) -> float:
    """Planar Euclidean distance between two nodes, floors ignored."""
    return distance(graph.point(a_id), graph.point(b_id))


def find_path(
    graph: GraphStore,
    start_id: str,
    goal_id: str,
    max_expansions: Optional[int] = None,
) -> PathfindingResult:
    """
    A* search for a path from start_id to goal_id.

    Returns a PathfindingResult with:
      - path: node ids including start and goal (empty on failure)
      - success: bool
      - reason: "unknown_node", "no_path_found" or "max_steps_exhausted"
      - cost: total edge cost of the path

    Does not mutate the graph.
    """
    if start_id not in graph or goal_id not in graph:
        return PathfindingResult(path=[], success=False, reason="unknown_node")

    if start_id == goal_id:
        return PathfindingResult(path=[start_id], success=True, cost=0.0)

    # (f_score, insertion counter, node id); the counter fixes tie order.
    counter = itertools.count()
    open_heap: List[Tuple[float, int, str]] = []
    h_start = _heuristic(graph, start_id, goal_id)
    heapq.heappush(open_heap, (h_start, next(counter), start_id))

    came_from: Dict[str, str] = {}
    g_score: Dict[str, float] = {start_id: 0.0}
    f_score: Dict[str, float] = {start_id: h_start}

    expansions = 0

    while open_heap:
        f_current, _, current = heapq.heappop(open_heap)

        # stale heap entry; a better f was pushed after this one
        if f_current > f_score.get(current, math.inf):
            continue

        if current == goal_id:
            return PathfindingResult(
                path=_reconstruct_path(came_from, current),
                success=True,
                cost=g_score[current],
                expansions=expansions,
            )

        if max_expansions is not None and expansions >= max_expansions:
            return PathfindingResult(
                path=[], success=False, reason="max_steps_exhausted", expansions=expansions
            )
        expansions += 1

        base_g = g_score[current]
        for neighbor, cost in graph.out_edges(current):
            tentative_g = base_g + cost
            if tentative_g < g_score.get(neighbor, math.inf):
                came_from[neighbor] = current
                g_score[neighbor] = tentative_g
                f_neighbor = tentative_g + _heuristic(graph, neighbor, goal_id)
                f_score[neighbor] = f_neighbor
                heapq.heappush(open_heap, (f_neighbor, next(counter), neighbor))

    return PathfindingResult(path=[], success=False, reason="no_path_found", expansions=expansions)


def compute_path(graph: GraphStore, start_id: str, goal_id: str) -> List[str]:
    """List-returning variant of find_path that raises on failure."""
    for node_id in (start_id, goal_id):
        if node_id not in graph:
            raise UnknownNodeError(node_id)
    result = find_path(graph, start_id, goal_id)
    if not result.success:
        raise NoPathError(start_id, goal_id, result.reason or "no_path_found")
    return result.path


def path_cost(graph: GraphStore, path: Sequence[str]) -> float:
    """Sum of the cheapest edge cost for every hop of `path`."""
    return sum(graph.edge_cost(a, b) for a, b in zip(path, path[1:]))


def _reconstruct_path(came_from: Dict[str, str], current: str) -> List[str]:
    """Reconstruct full path from came_from map."""
    path: List[str] = [current]
    while current in came_from:
        current = came_from[current]
        path.append(current)
    path.reverse()
    return path
