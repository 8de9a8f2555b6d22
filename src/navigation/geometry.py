# planar geometry helpers shared by route, motion and intersection code
# src/navigation/geometry.py

from __future__ import annotations

import math
from typing import Tuple

from .types import Point, TurnDirection

DEFAULT_TURN_THRESHOLD = 0.5  # radians


def distance(a: Point, b: Point) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def heading_between(a: Point, b: Point) -> float:
    """atan2 heading of the vector a -> b (0 when the points coincide)."""
    return math.atan2(b.y - a.y, b.x - a.x)


def offset(p: Point, direction: Tuple[float, float], amount: float) -> Point:
    return Point(p.x + direction[0] * amount, p.y + direction[1] * amount)


def normalize_angle(angle: float) -> float:
    """Wrap an angle into (-pi, pi]."""
    wrapped = math.fmod(angle + math.pi, 2.0 * math.pi)
    if wrapped <= 0.0:
        wrapped += 2.0 * math.pi
    return wrapped - math.pi


def reverse_heading(heading: float) -> float:
    return normalize_angle(heading + math.pi)


def project_point_to_segment(p: Point, a: Point, b: Point) -> Point:
    """Closest point to p on segment a-b (a itself for a zero-length segment)."""
    dx = b.x - a.x
    dy = b.y - a.y
    len2 = dx * dx + dy * dy
    if len2 == 0.0:
        return a
    t = ((p.x - a.x) * dx + (p.y - a.y) * dy) / len2
    t = max(0.0, min(1.0, t))
    return Point(a.x + t * dx, a.y + t * dy)


def classify_turn(relative_angle: float, threshold: float = DEFAULT_TURN_THRESHOLD) -> TurnDirection:
    """
    Map a signed relative angle to a turn direction.

    Positive angles are clockwise in map coordinates (y down), i.e. right.
    """
    if relative_angle > threshold:
        return TurnDirection.RIGHT
    if relative_angle < -threshold:
        return TurnDirection.LEFT
    return TurnDirection.STRAIGHT
