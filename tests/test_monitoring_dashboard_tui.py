#tests/test_monitoring_dashboard_tui.py
"""
Smoke tests for monitoring.dashboard_tui.NavigationDashboard.

Covers:
- Event updates patch internal state
- SNAPSHOT events fill in the pose without cluttering recent events
- Layout renders to a console without crashing
"""

from __future__ import annotations

import io

from rich.console import Console

from monitoring.bus import EventBus
from monitoring.dashboard_tui import NavigationDashboard
from monitoring.events import EventType, MonitoringEvent


def make_event(event_type: EventType, payload: dict, message: str = "") -> MonitoringEvent:
    return MonitoringEvent(
        ts=0.0,
        module="test",
        event_type=event_type,
        message=message,
        payload=payload,
        correlation_id=None,
    )


def make_dashboard(bus: EventBus) -> NavigationDashboard:
    console = Console(file=io.StringIO(), width=120, force_terminal=False)
    return NavigationDashboard(bus, max_events=4, console=console)


def test_dashboard_tracks_a_trip():
    bus = EventBus()
    dashboard = make_dashboard(bus)

    bus.publish(
        make_event(
            EventType.NAVIGATION_STARTED,
            {
                "start": "lobby",
                "goal": "cafe",
                "route": ["lobby", "hall", "junction", "cafe"],
                "mode": "manual",
            },
        )
    )
    st = dashboard.state
    assert st["status"] == "following"
    assert st["goal"] == "cafe"
    assert st["route_index"] == 0

    bus.publish(make_event(EventType.SEGMENT_ADVANCED, {"route_index": 2}))
    bus.publish(
        make_event(
            EventType.TURN_CHOICE_REQUIRED,
            {
                "node_id": "junction",
                "options": [
                    {"node_id": "lab", "direction": "left"},
                    {"node_id": "cafe", "direction": "right"},
                ],
            },
        )
    )
    assert st["route_index"] == 2
    assert st["status"] == "awaiting_turn_choice"
    assert st["turn_prompt"]["node_id"] == "junction"

    bus.publish(make_event(EventType.TURN_SELECTED, {"direction": "left", "correct": False}))
    bus.publish(
        make_event(
            EventType.REROUTE_TRIGGERED,
            {"route": ["junction", "lab", "junction", "cafe"]},
        )
    )
    assert st["turn_prompt"] is None
    assert st["route"][1] == "lab"
    assert st["route_index"] == 0

    bus.publish(make_event(EventType.DESTINATION_REACHED, {"floor": 0}))
    assert st["status"] == "destination_reached"
    assert st["floor"] == 0

    # deque keeps only the last max_events entries
    assert len(dashboard.recent_events) == 4
    assert dashboard.recent_events[-1].event_type == EventType.DESTINATION_REACHED


def test_snapshot_updates_pose_and_is_not_listed():
    bus = EventBus()
    dashboard = make_dashboard(bus)

    bus.publish(
        make_event(
            EventType.SNAPSHOT,
            {
                "state": {
                    "status": "following",
                    "mode": "automatic",
                    "route": ["stairs_1", "landing"],
                    "route_index": 0,
                    "position": {"x": 300.0, "y": 40.0, "heading": 1.5708, "floor": 1},
                }
            },
        )
    )

    st = dashboard.state
    assert st["mode"] == "automatic"
    assert st["floor"] == 1
    assert st["position"]["y"] == 40.0
    assert dashboard.recent_events == []


def test_failures_are_surfaced_and_close_unsubscribes():
    bus = EventBus()
    dashboard = make_dashboard(bus)

    bus.publish(make_event(EventType.REROUTE_FAILED, {"reason": "no_path_found"}))
    assert dashboard.state["status"] == "off_route"
    assert "no_path_found" in dashboard.state["last_error"]

    dashboard.close()
    bus.publish(make_event(EventType.NAVIGATION_CANCELLED, {}))
    assert dashboard.state["status"] == "off_route"


def test_layout_renders():
    bus = EventBus()
    out = io.StringIO()
    console = Console(file=out, width=120, height=40, force_terminal=False)
    dashboard = NavigationDashboard(bus, console=console)

    bus.publish(
        make_event(
            EventType.NAVIGATION_STARTED,
            {"start": "lobby", "goal": "library", "route": ["lobby", "hall"], "mode": "manual"},
            message="Route lobby -> library",
        )
    )
    bus.publish(
        make_event(
            EventType.SNAPSHOT,
            {"state": {"position": {"x": 12.0, "y": 0.0, "heading": 0.0, "floor": 0}}},
        )
    )

    layout = dashboard._build_layout()  # type: ignore[attr-defined]
    console.print(layout)

    text = out.getvalue()
    assert "Session" in text
    assert "lobby" in text
