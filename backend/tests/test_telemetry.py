from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

from study_planner.telemetry import TelemetryEvent, capture_events, clear_listeners, emit_event, register_listener


def test_listeners_receive_sanitised_payload() -> None:
    received: List[TelemetryEvent] = []
    register_listener(received.append)
    try:
        emit_event(
            "study_plan_generated",
            generated_at=datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc),
            module_ids=("b", "a"),
            tiers={"C", "A"},
            module_count=2,
        )
    finally:
        clear_listeners()

    assert len(received) == 1
    event = received[0]
    assert event.name == "study_plan_generated"
    assert event.payload == {
        "generated_at": "2025-03-01T12:00:00+00:00",
        "module_ids": ["b", "a"],
        "tiers": ["A", "C"],
        "module_count": 2,
    }


def test_failing_listener_is_logged_and_others_still_run(caplog) -> None:
    caplog.set_level(logging.ERROR, logger="study_planner.telemetry")
    received: List[str] = []

    def _broken(event: TelemetryEvent) -> None:
        raise RuntimeError("listener offline")

    register_listener(_broken)
    register_listener(lambda event: received.append(event.name))
    try:
        emit_event("catalog_checked", warnings=0)
    finally:
        clear_listeners()

    assert received == ["catalog_checked"]
    assert "Telemetry sink failed for catalog_checked" in caplog.text


def test_events_are_logged_as_json(caplog) -> None:
    caplog.set_level(logging.INFO, logger="study_planner.telemetry")
    emit_event("study_plan_generated", module_count=3)

    assert 'TELEMETRY {"event": "study_plan_generated", "module_count": 3}' in caplog.text


def test_cleared_listeners_stop_receiving_events() -> None:
    received: List[TelemetryEvent] = []
    register_listener(received.append)
    clear_listeners()

    emit_event("study_plan_generated")

    assert received == []


def test_registered_listener_can_be_removed() -> None:
    received: List[TelemetryEvent] = []
    remove = register_listener(received.append)
    emit_event("first")
    remove()
    emit_event("second")

    assert [event.name for event in received] == ["first"]


def test_capture_events_filters_by_name_and_detaches() -> None:
    with capture_events("study_plan_generated") as captured:
        emit_event("catalog_checked")
        returned = emit_event("study_plan_generated", weeks={"count": 2, "ids": ("w1", "w2")})
    emit_event("study_plan_generated")

    assert captured == [returned]
    assert captured[0].payload == {"weeks": {"count": 2, "ids": ["w1", "w2"]}}
    assert captured[0].as_record()["event"] == "study_plan_generated"
