# tests/test_nav_motion.py
"""
Tests for navigation.motion.MotionController.

Covers:
- overshoot carried across waypoints (Scenario A)
- distance conservation across several pass-through nodes in one tick
- floor connectors skipped without touching the heading
- halting at a real intersection in manual mode
- backward motion clamped at the route start
- destination reached once
"""

from __future__ import annotations

import math
from typing import List, Tuple

import pytest

from navigation.graph import GraphStore
from navigation.intersection import IntersectionResolver, ResolutionKind
from navigation.motion import MotionController
from navigation.route import RouteState
from navigation.testing import build_sample_building
from navigation.types import ControlMode, Edge, NavigationStatus, Node, Point


def make_abc_graph() -> GraphStore:
    nodes = [
        Node("A", "A", 0.0, 0.0),
        Node("B", "B", 10.0, 0.0),
        Node("C", "C", 10.0, 10.0),
    ]
    return GraphStore.build(nodes, [Edge("A", "B", 10.0), Edge("B", "C", 10.0)])


def make_motion(graph: GraphStore, path: List[str]) -> Tuple[RouteState, MotionController]:
    route = RouteState(graph)
    route.set_route(path)
    motion = MotionController(route, IntersectionResolver(graph))
    return route, motion


def test_overshoot_carries_onto_next_segment() -> None:
    route, motion = make_motion(make_abc_graph(), ["A", "B", "C"])

    outcome = motion.step(12.0, ControlMode.MANUAL)

    assert outcome.consumed == [pytest.approx(10.0), pytest.approx(2.0)]
    assert outcome.crossed == ["B"]
    assert route.index == 1
    assert route.position.x == pytest.approx(10.0)
    assert route.position.y == pytest.approx(2.0)
    assert route.position.heading == pytest.approx(math.pi / 2)
    assert route.status == NavigationStatus.FOLLOWING


def test_distance_is_conserved_across_many_waypoints() -> None:
    xs = [0.0, 1.0, 2.5, 3.0, 7.0, 7.5, 20.0]
    nodes = [Node(f"p{i}", f"P{i}", x, 0.0) for i, x in enumerate(xs)]
    edges = [Edge(f"p{i}", f"p{i + 1}", xs[i + 1] - xs[i]) for i in range(len(xs) - 1)]
    graph = GraphStore.build(nodes, edges)
    route, motion = make_motion(graph, [n.id for n in nodes])

    travelled = 0.0
    for s in [0.7, 2.9, 4.05, 0.35]:
        outcome = motion.step(s, ControlMode.AUTOMATIC)
        assert outcome.travelled == pytest.approx(s)
        travelled += s
        assert route.position.x == pytest.approx(travelled)
        assert route.position.y == pytest.approx(0.0)

    # 8.0 lies on hop p5 -> p6
    assert route.index == 5


def test_connector_is_crossed_within_a_tick() -> None:
    route, motion = make_motion(
        build_sample_building(), ["junction", "stairs_0", "stairs_1", "landing"]
    )

    outcome = motion.step(120.0, ControlMode.AUTOMATIC)

    assert outcome.crossed == ["stairs_0", "stairs_1"]
    assert outcome.floors == [1]
    assert outcome.travelled == pytest.approx(120.0)
    assert route.position.floor == 1
    assert route.position.point == Point(300.0, 20.0)
    assert route.position.heading == pytest.approx(math.pi / 2)
    assert route.segment is not None
    assert (route.segment.from_id, route.segment.to_id) == ("stairs_1", "landing")


def test_manual_mode_halts_at_intersection() -> None:
    route, motion = make_motion(build_sample_building(), ["lobby", "hall", "junction"])

    outcome = motion.step(150.0, ControlMode.MANUAL)

    assert outcome.halted
    assert outcome.resolution is not None
    assert outcome.resolution.kind == ResolutionKind.AWAIT_CHOICE
    assert route.status == NavigationStatus.AWAITING_TURN_CHOICE
    assert route.position.point == Point(100.0, 0.0)
    assert route.index == 0

    # no movement while waiting for the operator
    assert motion.step(5.0, ControlMode.MANUAL).consumed == []


def test_automatic_mode_proceeds_through_intersection() -> None:
    route, motion = make_motion(build_sample_building(), ["lobby", "hall", "junction"])

    outcome = motion.step(150.0, ControlMode.AUTOMATIC)

    assert not outcome.halted
    assert route.index == 1
    assert route.position.point == Point(150.0, 0.0)


def test_backward_motion_clamps_at_route_start() -> None:
    route, motion = make_motion(make_abc_graph(), ["A", "B", "C"])
    motion.step(15.0, ControlMode.MANUAL)

    outcome = motion.step(-8.0, ControlMode.MANUAL)
    assert outcome.travelled == pytest.approx(8.0)
    assert route.index == 0
    assert route.position.x == pytest.approx(7.0)
    assert route.position.heading == pytest.approx(math.pi)

    motion.step(-100.0, ControlMode.MANUAL)
    assert route.index == 0
    assert route.position.point == Point(0.0, 0.0)
    assert route.status == NavigationStatus.FOLLOWING


def test_backward_motion_ignored_in_automatic_mode() -> None:
    route, motion = make_motion(make_abc_graph(), ["A", "B", "C"])
    motion.step(4.0, ControlMode.AUTOMATIC)

    outcome = motion.step(-2.0, ControlMode.AUTOMATIC)

    assert outcome.consumed == []
    assert route.position.x == pytest.approx(4.0)


def test_destination_reached_only_once() -> None:
    route, motion = make_motion(make_abc_graph(), ["A", "B", "C"])

    first = motion.step(25.0, ControlMode.AUTOMATIC)
    assert first.destination_reached
    assert route.status == NavigationStatus.DESTINATION_REACHED
    assert route.position.point == Point(10.0, 10.0)

    again = motion.step(25.0, ControlMode.AUTOMATIC)
    assert not again.destination_reached
    assert again.consumed == []
