# rich-based TUI dashboard
#src/monitoring/dashboard_tui.py
"""
Terminal dashboard for a running navigation session.

A lightweight terminal UI (using `rich`) that subscribes to the monitoring
EventBus and renders:

- Session:
    - Status / control mode
    - Start, goal and current floor

- Route:
    - Planned node ids with the active hop highlighted

- Pose:
    - Position and heading from the latest SNAPSHOT event

- Turn prompt:
    - Available exits while a choice is pending

- Recent events

This runs entirely offline. No web server, no external services.
"""

from __future__ import annotations

import math
import time
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .bus import EventBus
from .events import EventType, MonitoringEvent


# ============================================================
# TUI Dashboard
# ============================================================

class NavigationDashboard:
    """
    Live terminal dashboard bound to a monitoring.EventBus.

    It consumes MonitoringEvents and keeps a small in-memory state
    representation, which is rendered periodically via rich.
    """

    def __init__(self, bus: EventBus, max_events: int = 8, console: Optional[Console] = None) -> None:
        self._bus = bus
        self._console = console or Console()

        self._state: Dict[str, Any] = {
            "status": "idle",
            "mode": None,
            "start": None,
            "goal": None,
            "route": [],
            "route_index": 0,
            "floor": None,
            "position": None,      # {"x", "y", "heading", "floor"}
            "turn_prompt": None,   # TurnPrompt.to_dict()
            "last_error": None,
        }
        self._events: Deque[MonitoringEvent] = deque(maxlen=max_events)

        self._bus.subscribe(self._on_event)

    @property
    def state(self) -> Dict[str, Any]:
        return self._state

    @property
    def recent_events(self) -> List[MonitoringEvent]:
        return list(self._events)

    def close(self) -> None:
        self._bus.unsubscribe(self._on_event)

    # --------------------------------------------------------
    # Event handler
    # --------------------------------------------------------

    def _on_event(self, event: MonitoringEvent) -> None:
        """
        Update dashboard state based on a MonitoringEvent.
        This should be cheap and non-blocking.
        """
        et = event.event_type
        p = event.payload or {}
        st = self._state

        if et != EventType.SNAPSHOT:
            self._events.append(event)

        if et == EventType.NAVIGATION_STARTED:
            st["status"] = "following"
            st["mode"] = p.get("mode")
            st["start"] = p.get("start")
            st["goal"] = p.get("goal")
            st["route"] = list(p.get("route") or [])
            st["route_index"] = 0
            st["turn_prompt"] = None
            st["last_error"] = None

        elif et == EventType.NAVIGATION_FAILED:
            st["last_error"] = p.get("reason", "unknown")

        elif et == EventType.NAVIGATION_CANCELLED:
            st["status"] = "idle"
            st["route"] = []
            st["route_index"] = 0
            st["turn_prompt"] = None

        elif et == EventType.SEGMENT_ADVANCED:
            idx = p.get("route_index")
            if idx is not None:
                st["route_index"] = idx
            st["status"] = "following"

        elif et == EventType.FLOOR_CHANGED:
            st["floor"] = p.get("floor")

        elif et == EventType.TURN_CHOICE_REQUIRED:
            st["status"] = "awaiting_turn_choice"
            st["turn_prompt"] = p

        elif et == EventType.TURN_SELECTED:
            st["turn_prompt"] = None

        elif et == EventType.DEAD_END:
            st["last_error"] = f"dead end at {p.get('node_id')}"

        elif et == EventType.REROUTE_TRIGGERED:
            st["status"] = "following"
            st["route"] = list(p.get("route") or [])
            st["route_index"] = 0
            st["last_error"] = None

        elif et == EventType.REROUTE_FAILED:
            st["status"] = "off_route"
            st["last_error"] = f"reroute failed: {p.get('reason')}"

        elif et == EventType.DESTINATION_REACHED:
            st["status"] = "destination_reached"
            st["turn_prompt"] = None
            if p.get("floor") is not None:
                st["floor"] = p.get("floor")

        elif et == EventType.SNAPSHOT:
            self._apply_snapshot(p.get("state") or {})

    def _apply_snapshot(self, snap: Dict[str, Any]) -> None:
        st = self._state
        for key in ("status", "mode", "route_index", "turn_prompt", "last_error"):
            if key in snap:
                st[key] = snap[key]
        if "route" in snap:
            st["route"] = list(snap["route"])
        pos = snap.get("position")
        if pos:
            st["position"] = pos
            st["floor"] = pos.get("floor", st["floor"])

    # --------------------------------------------------------
    # Rendering helpers
    # --------------------------------------------------------

    def _render_session_panel(self) -> Panel:
        st = self._state
        txt = Text()
        txt.append("Status: ", style="bold")
        txt.append(f"{st['status']}\n")
        txt.append("Mode: ", style="bold")
        txt.append(f"{st['mode'] or '<unknown>'}\n")
        txt.append("Trip: ", style="bold")
        txt.append(f"{st['start'] or '-'} -> {st['goal'] or '-'}\n")
        txt.append("Floor: ", style="bold")
        txt.append(f"{st['floor'] if st['floor'] is not None else '-'}\n")
        if st["last_error"]:
            txt.append("Error: ", style="bold red")
            txt.append(str(st["last_error"]))
        return Panel(txt, title="Session", border_style="cyan")

    def _render_route_panel(self) -> Panel:
        route = self._state["route"]
        idx = self._state["route_index"]

        table = Table(show_header=True, header_style="bold green")
        table.add_column("#", justify="right", width=3)
        table.add_column("Node")

        if not route:
            table.add_row("-", "<no route>")
        for i, node_id in enumerate(route[:20]):
            if i == idx or i == idx + 1:
                table.add_row(str(i), f"[bold yellow]{node_id}[/bold yellow]")
            elif i < idx:
                table.add_row(str(i), f"[dim]{node_id}[/dim]")
            else:
                table.add_row(str(i), str(node_id))
        if len(route) > 20:
            table.add_row("", "…")

        return Panel(table, title="Route", border_style="green")

    def _render_pose_panel(self) -> Panel:
        pos = self._state["position"]
        table = Table.grid()
        table.add_column(justify="left")
        if not pos:
            table.add_row("[dim]No snapshot yet[/dim]")
        else:
            heading = pos.get("heading")
            deg = f"{math.degrees(heading):.0f}°" if heading is not None else "-"
            table.add_row(f"[bold]x:[/bold] {pos.get('x', 0.0):.1f}")
            table.add_row(f"[bold]y:[/bold] {pos.get('y', 0.0):.1f}")
            table.add_row(f"[bold]Heading:[/bold] {deg}")
        return Panel(table, title="Pose", border_style="blue")

    def _render_prompt_panel(self) -> Panel:
        prompt = self._state["turn_prompt"]
        table = Table.grid()
        table.add_column(justify="left")
        if not prompt:
            table.add_row("[bold green]No turn pending.[/bold green]")
        else:
            table.add_row(f"[bold]At:[/bold] {prompt.get('node_id')}")
            for opt in prompt.get("options", []):
                table.add_row(f"  {opt.get('direction')} -> {opt.get('node_id')}")
        return Panel(table, title="Turn Prompt", border_style="magenta")

    def _render_events_panel(self) -> Panel:
        table = Table.grid()
        table.add_column(justify="left")
        if not self._events:
            table.add_row("[dim]<none>[/dim]")
        for ev in self._events:
            table.add_row(f"[bold]{ev.event_type.name}[/bold] {ev.message}")
        return Panel(table, title="Recent Events", border_style="yellow")

    def _build_layout(self) -> Layout:
        layout = Layout()

        layout.split(
            Layout(name="top", size=7),
            Layout(name="middle", ratio=1),
            Layout(name="bottom", size=10),
        )
        layout["top"].update(self._render_session_panel())

        # route | pose | prompt
        layout["middle"].split_row(
            Layout(name="route"),
            Layout(name="pose"),
            Layout(name="prompt"),
        )
        layout["route"].update(self._render_route_panel())
        layout["pose"].update(self._render_pose_panel())
        layout["prompt"].update(self._render_prompt_panel())

        layout["bottom"].update(self._render_events_panel())
        return layout

    # --------------------------------------------------------
    # Main loop
    # --------------------------------------------------------

    def run(self, refresh_per_second: float = 4.0, duration: Optional[float] = None) -> None:
        """
        Run the TUI event loop.

        This blocks the current thread until `duration` seconds have passed
        (forever when None). Use a separate thread if needed.
        """
        refresh_delay = 1.0 / max(refresh_per_second, 0.1)
        deadline = None if duration is None else time.monotonic() + duration
        with Live(self._build_layout(), console=self._console, refresh_per_second=refresh_per_second) as live:
            while deadline is None or time.monotonic() < deadline:
                live.update(self._build_layout())
                time.sleep(refresh_delay)
