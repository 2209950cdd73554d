from __future__ import annotations

import math

import pytest

from trace_mem.spatial.types import Position
from trace_mem.timeline import Event, OrderingViolation
from trace_mem.timeline.ingest import (
    candidates_from_payload,
    check_ordering,
    event_from_payload,
    events_from_state_payload,
)


def test_event_from_payload() -> None:
    event = event_from_payload({"step": 3, "text": "go", "locations": [{"x": 1, "y": 2}, [3, 4]]})
    assert event == Event(3, "go", (Position(1, 2), Position(3, 4)))


def test_event_defaults() -> None:
    assert event_from_payload({"step": 2.0}) == Event(2)
    assert event_from_payload({"text": None}, default_step=7) == Event(7)


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"step": None},
        {"step": True},
        {"step": 1.5},
        {"step": "abc"},
        {"step": 1, "locations": "nope"},
        {"step": 1, "locations": [{"x": 1}]},
        [1, 2],
    ],
)
def test_event_from_payload_rejects(payload) -> None:
    with pytest.raises(ValueError):
        event_from_payload(payload)


def test_candidates_from_payload_keeps_order_and_column() -> None:
    cands = candidates_from_payload(
        [
            {"location": {"x": 1, "y": 1}, "score": 0.5, "columnId": 2},
            {"location": [2, 2], "score": "0.25"},
        ]
    )
    assert [c.location for c in cands] == [Position(1, 1), Position(2, 2)]
    assert cands[0].column_id == "2"
    assert cands[1].column_id is None
    assert cands[1].score == 0.25
    assert candidates_from_payload(None) == []


@pytest.mark.parametrize(
    "raw",
    [
        [{"score": 1.0}],
        [{"location": {"x": 1, "y": 1}}],
        [{"location": {"x": 1, "y": 1}, "score": math.nan}],
        [{"location": {"x": 1, "y": 1}, "score": "high"}],
        ["bad"],
    ],
)
def test_candidates_from_payload_rejects(raw) -> None:
    with pytest.raises(ValueError):
        candidates_from_payload(raw)


def test_check_ordering() -> None:
    check_ordering([Event(1), Event(2), Event(5)])
    with pytest.raises(OrderingViolation):
        check_ordering([Event(1), Event(2), Event(2)])


def test_state_payload_history_defaults_to_index() -> None:
    events = events_from_state_payload({"history": [{"text": "a"}, {"step": 9}]})
    assert [e.step for e in events] == [0, 9]
    assert events_from_state_payload({}) == []
    with pytest.raises(ValueError):
        events_from_state_payload({"history": {"step": 1}})
