# src/navigation/rerouter.py
"""
Rerouter: replace the active route after the agent leaves the plan.

On success the new path is installed with RouteState.set_route (a full
reset, which also clears OFF_ROUTE). On failure the route is left as it
was and the status becomes OFF_ROUTE; an unknown start or destination id
changes nothing at all. No retries: the caller decides what happens next.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import RerouteFailure
from .graph import GraphStore
from .pathfinder import find_path
from .route import RouteState
from .types import NavigationStatus

logger = logging.getLogger(__name__)


@dataclass
class RerouteResult:
    success: bool
    from_id: str
    destination_id: str
    path: List[str] = field(default_factory=list)
    reason: Optional[str] = None


class Rerouter:
    def __init__(self, graph: GraphStore, route: RouteState) -> None:
        self._graph = graph
        self._route = route

    def reroute(
        self,
        from_id: str,
        destination_id: str,
        anchor_id: Optional[str] = None,
    ) -> RerouteResult:
        """
        Plan from `from_id` to `destination_id` and swap the route in.

        `anchor_id` is the node the agent is standing on when it differs
        from `from_id` (e.g. it chose an unplanned exit at an intersection):
        the new route then starts at the anchor so the pose stays
        continuous and the agent walks toward `from_id` first.
        """
        result = find_path(self._graph, from_id, destination_id)
        if not result.success:
            logger.warning(
                "Reroute %s -> %s failed: %s", from_id, destination_id, result.reason
            )
            if result.reason != "unknown_node":
                self._route.status = NavigationStatus.OFF_ROUTE
            return RerouteResult(
                success=False,
                from_id=from_id,
                destination_id=destination_id,
                reason=result.reason,
            )

        path = list(result.path)
        if anchor_id is not None and anchor_id != from_id:
            path.insert(0, anchor_id)

        self._route.set_route(path)
        logger.info("Rerouted from %s: %s", from_id, " -> ".join(path))
        return RerouteResult(
            success=True,
            from_id=from_id,
            destination_id=destination_id,
            path=path,
        )

    def reroute_or_raise(
        self,
        from_id: str,
        destination_id: str,
        anchor_id: Optional[str] = None,
    ) -> List[str]:
        result = self.reroute(from_id, destination_id, anchor_id)
        if not result.success:
            raise RerouteFailure(from_id, destination_id, result.reason)
        return result.path
