#tests/test_monitoring_event_bus.py
"""
Tests for monitoring.bus.EventBus

Covers:
- Publish/subscribe behavior and ordering
- Unsubscribe behavior
- A failing subscriber does not starve the others
- Command channel
- Basic thread-safety smoke check
"""

from __future__ import annotations

import threading
from typing import List

from monitoring.bus import EventBus
from monitoring.events import ControlCommand, ControlCommandType, EventType, MonitoringEvent


def make_event(ts: float, msg: str = "msg") -> MonitoringEvent:
    return MonitoringEvent(
        ts=ts,
        module="test",
        event_type=EventType.SEGMENT_ADVANCED,
        message=msg,
        payload={"route_index": int(ts)},
        correlation_id="session-1",
    )


def test_event_bus_delivers_in_publish_order():
    bus = EventBus()
    seen: List[int] = []
    bus.subscribe(lambda evt: seen.append(evt.payload["route_index"]))

    for ts in [1, 2, 3, 4, 5]:
        bus.publish(make_event(float(ts)))

    assert seen == [1, 2, 3, 4, 5]


def test_event_bus_unsubscribe_is_safe_to_repeat():
    bus = EventBus()
    received: List[MonitoringEvent] = []

    def subscriber(evt: MonitoringEvent) -> None:
        received.append(evt)

    bus.subscribe(subscriber)
    bus.unsubscribe(subscriber)
    bus.unsubscribe(subscriber)

    bus.publish(make_event(1.0))

    assert received == []


def test_failing_subscriber_does_not_block_others(caplog):
    bus = EventBus()
    received: List[MonitoringEvent] = []

    def broken(evt: MonitoringEvent) -> None:
        raise RuntimeError("renderer crashed")

    bus.subscribe(broken)
    bus.subscribe(received.append)

    bus.publish(make_event(1.0, msg="still delivered"))

    assert [e.message for e in received] == ["still delivered"]
    assert "renderer crashed" in caplog.text


def test_command_channel_is_separate_from_events():
    bus = EventBus()
    commands: List[ControlCommand] = []
    events: List[MonitoringEvent] = []
    bus.subscribe_commands(commands.append)
    bus.subscribe(events.append)

    bus.publish_command(ControlCommand.select_turn("left"))

    assert events == []
    assert commands[0].cmd == ControlCommandType.SELECT_TURN
    assert commands[0].args == {"direction": "left"}

    bus.clear()
    bus.publish_command(ControlCommand.cancel())
    assert len(commands) == 1


def test_event_to_dict_uses_enum_name():
    data = make_event(3.0).to_dict()

    assert data["event_type"] == "SEGMENT_ADVANCED"
    assert data["correlation_id"] == "session-1"
    assert data["payload"] == {"route_index": 3}


def test_event_bus_thread_safety_smoke():
    """
    Multiple threads publishing simultaneously should not crash and
    subscribers should receive every event.
    """
    bus = EventBus()
    count = 100

    received: List[MonitoringEvent] = []
    lock = threading.Lock()

    def subscriber(evt: MonitoringEvent) -> None:
        with lock:
            received.append(evt)

    bus.subscribe(subscriber)

    def publisher_thread(start: int) -> None:
        for i in range(start, start + count):
            bus.publish(make_event(float(i)))

    threads = [
        threading.Thread(target=publisher_thread, args=(0,)),
        threading.Thread(target=publisher_thread, args=(1000,)),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(received) == 2 * count
