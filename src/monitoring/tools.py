#src/monitoring/tools.py
"""
Human-facing utilities for navigation event logs.

Provides:

- Session inspector:
    - Load the last N navigation sessions from a monitoring JSONL log.
    - Summarize trip, hops walked, floors entered, turn prompts,
      wrong turns, reroutes and the final outcome.

- Event filter:
    - Print events of one session and/or one EventType.

- State dumper:
    - Save a debug_state() snapshot as a pretty-printed JSON bundle.

CLI:

    python -m monitoring.tools inspect-sessions -n 3
    python -m monitoring.tools events --type REROUTE_TRIGGERED
"""

from __future__ import annotations

import argparse
import json
import sys
import time
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .events import EventType, MonitoringEvent


JsonDict = Dict[str, Any]

DEFAULT_LOG_PATH = Path("logs") / "navigation" / "events.log"


# ============================================================
# Session inspector
# ============================================================

@dataclass
class SessionSummary:
    """
    Human-friendly summary of one navigation session reconstructed from logs.
    """
    session_id: str
    start: Optional[str] = None
    goal: Optional[str] = None
    mode: Optional[str] = None
    planned_route: List[str] = field(default_factory=list)
    segments_advanced: int = 0
    floors_entered: List[int] = field(default_factory=list)
    turn_prompts: int = 0
    wrong_turns: int = 0
    reroutes: int = 0
    reroute_failures: int = 0
    dead_ends: List[str] = field(default_factory=list)
    reached: bool = False
    cancelled: bool = False

    def to_dict(self) -> JsonDict:
        return asdict(self)


def load_events_from_jsonl(path: Path) -> List[MonitoringEvent]:
    """
    Load MonitoringEvents from a JSONL file produced by JsonFileLogger.

    Blank, malformed or unknown-type lines are skipped.
    """
    if not path.exists():
        return []

    events: List[MonitoringEvent] = []
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(data, dict):
                continue

            try:
                etype = EventType[data["event_type"]]
            except KeyError:
                continue

            events.append(
                MonitoringEvent(
                    ts=data.get("ts", 0.0),
                    module=data.get("module", ""),
                    event_type=etype,
                    message=data.get("message", ""),
                    payload=data.get("payload") or {},
                    correlation_id=data.get("correlation_id"),
                )
            )
    return events


def group_events_by_session(events: Iterable[MonitoringEvent]) -> Dict[str, List[MonitoringEvent]]:
    """Group events by correlation_id; events without one are dropped."""
    grouped: Dict[str, List[MonitoringEvent]] = {}
    for evt in events:
        if not evt.correlation_id:
            continue
        grouped.setdefault(evt.correlation_id, []).append(evt)
    return grouped


def build_session_summary(session_id: str, events: List[MonitoringEvent]) -> SessionSummary:
    summary = SessionSummary(session_id=session_id)

    for evt in events:
        p = evt.payload or {}
        et = evt.event_type

        if et == EventType.NAVIGATION_STARTED:
            summary.start = p.get("start")
            summary.goal = p.get("goal")
            summary.mode = p.get("mode")
            summary.planned_route = list(p.get("route") or [])

        elif et == EventType.SEGMENT_ADVANCED:
            summary.segments_advanced += 1

        elif et == EventType.FLOOR_CHANGED:
            floor = p.get("floor")
            if isinstance(floor, int):
                summary.floors_entered.append(floor)

        elif et == EventType.TURN_CHOICE_REQUIRED:
            summary.turn_prompts += 1

        elif et == EventType.TURN_SELECTED:
            if p.get("correct") is False:
                summary.wrong_turns += 1

        elif et == EventType.REROUTE_TRIGGERED:
            summary.reroutes += 1

        elif et == EventType.REROUTE_FAILED:
            summary.reroute_failures += 1

        elif et == EventType.DEAD_END:
            node_id = p.get("node_id")
            if node_id:
                summary.dead_ends.append(node_id)

        elif et == EventType.DESTINATION_REACHED:
            summary.reached = True

        elif et == EventType.NAVIGATION_CANCELLED:
            summary.cancelled = True

    return summary


def load_last_n_session_summaries(log_path: Path, last_n: int) -> List[SessionSummary]:
    """
    Load the last N sessions from a monitoring JSONL file and return summaries.

    Sessions are sorted by the timestamp of their last event, newest first;
    ties go to the session written later in the file.
    """
    events = load_events_from_jsonl(log_path)
    grouped = group_events_by_session(events)
    last_line = {evt.correlation_id: i for i, evt in enumerate(events) if evt.correlation_id}

    def session_last_ts(item: Tuple[str, List[MonitoringEvent]]) -> Tuple[float, int]:
        sid, evts = item
        return max((e.ts for e in evts), default=0.0), last_line[sid]

    sorted_items = sorted(grouped.items(), key=session_last_ts, reverse=True)
    return [build_session_summary(sid, evts) for sid, evts in sorted_items[:last_n]]


def filter_events(
    events: Iterable[MonitoringEvent],
    session_id: Optional[str] = None,
    event_type: Optional[EventType] = None,
) -> List[MonitoringEvent]:
    out: List[MonitoringEvent] = []
    for evt in events:
        if session_id is not None and evt.correlation_id != session_id:
            continue
        if event_type is not None and evt.event_type != event_type:
            continue
        out.append(evt)
    return out


# ============================================================
# State dumper
# ============================================================

def build_state_bundle(engine_state: JsonDict, graph_info: Optional[JsonDict] = None) -> JsonDict:
    """
    Construct a JSON bundle around an engine debug_state() dict.
    """
    return {
        "meta": {
            "built_at": time.time(),
        },
        "status": engine_state.get("status"),
        "route": engine_state.get("route") or [],
        "position": engine_state.get("position"),
        "engine_state": engine_state,
        "graph": graph_info or {},
    }


def save_state_bundle(path: Path, bundle: JsonDict) -> None:
    """
    Persist a state bundle as pretty-printed JSON.
    """
    if not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(bundle, f, indent=2, sort_keys=True)


# ============================================================
# CLI
# ============================================================

def _cmd_inspect_sessions(args: argparse.Namespace) -> None:
    summaries = load_last_n_session_summaries(Path(args.log_path), last_n=args.n)
    json.dump([s.to_dict() for s in summaries], sys.stdout, indent=2, sort_keys=True)
    print()


def _cmd_events(args: argparse.Namespace) -> None:
    event_type = EventType[args.type] if args.type else None
    events = filter_events(
        load_events_from_jsonl(Path(args.log_path)),
        session_id=args.session_id,
        event_type=event_type,
    )
    json.dump([e.to_dict() for e in events], sys.stdout, indent=2, sort_keys=True)
    print()


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nav-monitor",
        description="Inspect navigation monitoring logs.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_sessions = sub.add_parser("inspect-sessions", help="Summarize the last N navigation sessions.")
    p_sessions.add_argument(
        "--log-path",
        type=str,
        default=str(DEFAULT_LOG_PATH),
        help="Path to monitoring JSONL log file.",
    )
    p_sessions.add_argument(
        "-n",
        type=int,
        default=5,
        help="Number of recent sessions to show.",
    )
    p_sessions.set_defaults(func=_cmd_inspect_sessions)

    p_events = sub.add_parser("events", help="Print logged events, optionally filtered.")
    p_events.add_argument(
        "--log-path",
        type=str,
        default=str(DEFAULT_LOG_PATH),
        help="Path to monitoring JSONL log file.",
    )
    p_events.add_argument("--session-id", type=str, default=None, help="Filter by session id.")
    p_events.add_argument(
        "--type",
        type=str,
        default=None,
        choices=[e.name for e in EventType],
        help="Filter by event type.",
    )
    p_events.set_defaults(func=_cmd_events)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        sys.exit(1)
    func(args)


if __name__ == "__main__":
    main()
