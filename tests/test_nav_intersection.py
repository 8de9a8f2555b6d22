# tests/test_nav_intersection.py

from __future__ import annotations

import math

import pytest

from navigation.errors import RouteInvariantError
from navigation.graph import GraphStore
from navigation.intersection import IntersectionResolver, ResolutionKind
from navigation.testing import build_sample_building
from navigation.types import ControlMode, Edge, Node, TurnDirection


def make_cross() -> GraphStore:
    """
    Four-way crossing at N, approached from W (heading east):

            L (0,-10)
               |
    W ------- N ------- S_ (10, 0)
               |
            R (0, 10)
    """
    nodes = [
        Node("W", "West", -10.0, 0.0),
        Node("N", "Crossing", 0.0, 0.0),
        Node("L", "North", 0.0, -10.0),
        Node("S_", "East", 10.0, 0.0),
        Node("R", "South", 0.0, 10.0),
    ]
    edges = [
        Edge("W", "N", 10.0),
        Edge("N", "L", 10.0),
        Edge("N", "S_", 10.0),
        Edge("N", "R", 10.0),
    ]
    return GraphStore.build(nodes, edges)


def test_true_intersection_prompts_in_manual_mode() -> None:
    resolver = IntersectionResolver(make_cross())

    res = resolver.resolve("N", "W", "S_", ControlMode.MANUAL)

    assert res.kind == ResolutionKind.AWAIT_CHOICE
    assert not res.advances
    prompt = res.prompt
    assert prompt is not None
    assert prompt.correct_direction == TurnDirection.STRAIGHT
    by_node = {o.node_id: o for o in prompt.options}
    assert by_node["L"].direction == TurnDirection.LEFT
    assert by_node["L"].angle == pytest.approx(-math.pi / 2)
    assert by_node["S_"].direction == TurnDirection.STRAIGHT
    assert by_node["R"].direction == TurnDirection.RIGHT
    assert "W" not in by_node
    assert set(prompt.directions) == {
        TurnDirection.LEFT,
        TurnDirection.STRAIGHT,
        TurnDirection.RIGHT,
    }


def test_select_maps_direction_to_exit() -> None:
    resolver = IntersectionResolver(make_cross())
    prompt = resolver.resolve("N", "W", "S_", ControlMode.MANUAL).prompt
    assert prompt is not None

    assert resolver.select(prompt, TurnDirection.LEFT) == "L"
    assert resolver.select(prompt, TurnDirection.RIGHT) == "R"


def test_automatic_mode_never_prompts() -> None:
    resolver = IntersectionResolver(make_cross())

    res = resolver.resolve("N", "W", "R", ControlMode.AUTOMATIC)

    assert res.kind == ResolutionKind.PROCEED
    assert res.prompt is None


def test_duplicate_edges_do_not_create_a_branch() -> None:
    # lobby -> hall -> junction: hall has storage as a second exit,
    # but stairs_0 only leads on to stairs_1 despite being reachable twice
    graph = build_sample_building()
    resolver = IntersectionResolver(graph)

    res = resolver.resolve("stairs_0", "junction", "stairs_1", ControlMode.MANUAL)
    assert res.kind == ResolutionKind.PASS_THROUGH

    # junction -> hall arrives over parallel edges; exits stay unique
    assert sorted(resolver.valid_exits("hall", "junction")) == ["lobby", "storage"]


def test_dead_end_and_planned_reversal() -> None:
    graph = build_sample_building()
    resolver = IntersectionResolver(graph)

    # the lab has no exit besides the corridor back to the junction
    res = resolver.resolve("lab", "junction", "cafe", ControlMode.MANUAL)
    assert res.kind == ResolutionKind.DEAD_END
    assert res.exits == []

    res = resolver.resolve("lab", "junction", "junction", ControlMode.MANUAL)
    assert res.kind == ResolutionKind.PROCEED


def test_non_adjacent_planned_exit_is_an_invariant_violation() -> None:
    resolver = IntersectionResolver(build_sample_building())

    with pytest.raises(RouteInvariantError):
        resolver.resolve("hall", "lobby", "library", ControlMode.MANUAL)


def test_connector_exit_reads_as_straight() -> None:
    graph = build_sample_building()
    resolver = IntersectionResolver(graph)

    option = resolver.classify_exit("stairs_0", "stairs_1", in_angle=0.0)
    assert option.direction == TurnDirection.STRAIGHT
    assert option.angle == 0.0

    # arriving over a connector falls back to the supplied heading
    assert resolver.incoming_angle("stairs_1", "stairs_0", fallback=1.25) == 1.25
