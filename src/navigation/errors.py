# src/navigation/errors.py
"""
Exception types raised by the navigation engine.

None of these are fatal to the process: callers catch NavigationError at
the edge (controller, CLI) and surface it. RouteInvariantError is the one
exception meant to blow up loudly in development, since it only happens
when a route references something a validated graph cannot contain.
"""

from __future__ import annotations

from typing import Optional


class NavigationError(Exception):
    """Base class for all navigation failures."""


class UnknownNodeError(NavigationError, KeyError):
    """A node id is not present in the GraphStore."""

    def __init__(self, node_id: str) -> None:
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"Unknown node id: {self.node_id!r}"


class NoPathError(NavigationError):
    """Start and goal are disconnected (or the search was cut short)."""

    def __init__(self, start_id: str, goal_id: str, reason: str = "no_path_found") -> None:
        super().__init__(f"No path from {start_id!r} to {goal_id!r} ({reason})")
        self.start_id = start_id
        self.goal_id = goal_id
        self.reason = reason


class RerouteFailure(NavigationError):
    """No route from the current node back to the destination."""

    def __init__(self, from_id: str, destination_id: str, reason: Optional[str] = None) -> None:
        msg = f"Reroute from {from_id!r} to {destination_id!r} failed"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)
        self.from_id = from_id
        self.destination_id = destination_id
        self.reason = reason


class RouteInvariantError(NavigationError, AssertionError):
    """Route state disagrees with the graph it was planned on."""
