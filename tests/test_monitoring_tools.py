#tests/test_monitoring_tools.py
"""
Tests for monitoring.tools (log inspector and state dumper).
"""

from __future__ import annotations

import json
from pathlib import Path

from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import JsonFileLogger, log_event
from monitoring.tools import (
    build_state_bundle,
    filter_events,
    load_events_from_jsonl,
    load_last_n_session_summaries,
    main,
    save_state_bundle,
)


def write_two_sessions(path: Path) -> None:
    bus = EventBus()
    logger = JsonFileLogger(path, bus)

    def emit(event_type: EventType, payload: dict, session: str) -> None:
        log_event(bus, "test", event_type, event_type.name, payload, correlation_id=session)

    emit(
        EventType.NAVIGATION_STARTED,
        {"start": "lobby", "goal": "cafe", "mode": "manual", "route": ["lobby", "hall", "junction", "cafe"]},
        "s-old",
    )
    emit(EventType.SEGMENT_ADVANCED, {"route_index": 1}, "s-old")
    emit(EventType.TURN_CHOICE_REQUIRED, {"node_id": "junction"}, "s-old")
    emit(EventType.TURN_SELECTED, {"node_id": "junction", "correct": False}, "s-old")
    emit(EventType.REROUTE_TRIGGERED, {"route": ["junction", "lab", "junction", "cafe"]}, "s-old")
    emit(EventType.DESTINATION_REACHED, {"destination": "cafe"}, "s-old")

    emit(
        EventType.NAVIGATION_STARTED,
        {"start": "lobby", "goal": "library", "mode": "automatic", "route": ["lobby", "library"]},
        "s-new",
    )
    emit(EventType.FLOOR_CHANGED, {"floor": 1}, "s-new")
    emit(EventType.DEAD_END, {"node_id": "lab"}, "s-new")
    emit(EventType.NAVIGATION_CANCELLED, {}, "s-new")
    log_event(bus, "test", EventType.LOG, "no session")
    logger.close()


def test_session_summaries_newest_first(tmp_path: Path):
    log_path = tmp_path / "events.log"
    write_two_sessions(log_path)

    summaries = load_last_n_session_summaries(log_path, last_n=5)

    assert [s.session_id for s in summaries] == ["s-new", "s-old"]
    new, old = summaries
    assert old.goal == "cafe"
    assert old.planned_route[-1] == "cafe"
    assert old.segments_advanced == 1
    assert old.turn_prompts == 1
    assert old.wrong_turns == 1
    assert old.reroutes == 1
    assert old.reached is True

    assert new.mode == "automatic"
    assert new.floors_entered == [1]
    assert new.dead_ends == ["lab"]
    assert new.cancelled is True
    assert new.reached is False

    assert len(load_last_n_session_summaries(log_path, last_n=1)) == 1


def test_loader_skips_garbage_lines(tmp_path: Path):
    log_path = tmp_path / "events.log"
    write_two_sessions(log_path)
    with log_path.open("a", encoding="utf-8") as f:
        f.write("not json\n\n[1, 2]\n")
        f.write(json.dumps({"event_type": "NOT_A_TYPE"}) + "\n")

    events = load_events_from_jsonl(log_path)

    assert len(events) == 11
    assert load_events_from_jsonl(tmp_path / "missing.log") == []


def test_filter_events_by_session_and_type(tmp_path: Path):
    log_path = tmp_path / "events.log"
    write_two_sessions(log_path)
    events = load_events_from_jsonl(log_path)

    assert len(filter_events(events, session_id="s-new")) == 4
    reroutes = filter_events(events, event_type=EventType.REROUTE_TRIGGERED)
    assert [e.correlation_id for e in reroutes] == ["s-old"]
    assert filter_events(events, session_id="s-new", event_type=EventType.REROUTE_TRIGGERED) == []


def test_state_bundle_round_trip(tmp_path: Path):
    state = {"status": "following", "route": ["lobby", "hall"], "position": {"x": 1.0}}
    bundle = build_state_bundle(state, graph_info={"nodes": 11})
    out = tmp_path / "dumps" / "state.json"

    save_state_bundle(out, bundle)

    loaded = json.loads(out.read_text(encoding="utf-8"))
    assert loaded["status"] == "following"
    assert loaded["route"] == ["lobby", "hall"]
    assert loaded["graph"] == {"nodes": 11}
    assert "built_at" in loaded["meta"]


def test_cli_events_command(tmp_path: Path, capsys):
    log_path = tmp_path / "events.log"
    write_two_sessions(log_path)

    main(["events", "--log-path", str(log_path), "--type", "DEAD_END"])

    printed = json.loads(capsys.readouterr().out)
    assert len(printed) == 1
    assert printed[0]["payload"]["node_id"] == "lab"
