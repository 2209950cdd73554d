from __future__ import annotations

import pytest

from trace_mem.config import SessionConfig
from trace_mem.spatial.types import Position
from trace_mem.timeline import (
    Event,
    IndexOutOfRange,
    LocalizationCandidate,
    OrderingViolation,
    TimelineSession,
)


def _session(**kwargs) -> TimelineSession:
    return TimelineSession(SessionConfig(name="s", **kwargs))


def test_session_builds_reference_columns() -> None:
    session = _session()
    assert session.name == "s"
    assert session.seed_geometry == (Position(15, 14), Position(18, 16), Position(13, 18))
    col0 = session.columns[0]
    assert [s.position for s in col0.path[:3]] == [
        Position(15, 14),
        Position(14, 15),
        Position(14, 16),
    ]
    assert session.columns[1].path[1].position == Position(19, 18)


def test_pinned_focus_scenario() -> None:
    """Pinning the first state keeps the view there while new events arrive."""

    session = _session()
    for s in (1, 2, 5):
        session.append(Event(s, f"e{s}", (Position(s, s),)))
    assert session.view().step == 5
    session.set_focus(0)
    session.append(Event(6))
    view = session.view()
    assert view.index == 0
    assert view.current_locations[0] == Position(1, 1)
    session.follow_latest()
    assert session.view().step == 6
    # the newest event has no locations: every column falls back
    assert session.view().fallback_columns == (0, 1, 2)


def test_rejected_append_leaves_view_unchanged() -> None:
    session = _session()
    session.append(Event(3))
    before = session.view()
    with pytest.raises(OrderingViolation):
        session.append(Event(3))
    assert session.view() == before


def test_locations_are_wrapped_on_append() -> None:
    session = _session(grid_size=16)
    session.append(Event(1, locations=(Position(-1, 17),)))
    assert session.log.events[0].locations == (Position(15, 1),)


def test_candidate_locations_are_wrapped() -> None:
    session = _session(grid_size=8)
    session.append(Event(1))
    session.attach_candidates([LocalizationCandidate(Position(9, -1), 1.0)])
    assert session.view().best_candidate.location == Position(1, 7)


def test_empty_session_view_uses_seed_geometry() -> None:
    session = _session()
    view = session.view()
    assert view.index is None
    assert view.current_locations == session.seed_geometry
    with pytest.raises(IndexOutOfRange):
        session.view_at(0)


def test_reconfigure_rebuilds_and_clears_log() -> None:
    session = _session()
    session.append(Event(1))
    session.reconfigure(SessionConfig(name="other", grid_size=32, tokens=[1, 2, 3]))
    assert len(session.log) == 0
    assert session.grid_size == 32
    assert session.name == "s"
    assert all(len(c.path) == 3 for c in session.columns)


def test_reconfigure_rejects_bad_config() -> None:
    session = _session()
    with pytest.raises(ValueError):
        session.reconfigure({"grid_size": 0})


def test_append_payload_and_candidates() -> None:
    session = _session()
    event = session.append_payload({"step": 4, "text": "hi", "locations": [{"x": 70, "y": 2}]})
    assert event.locations == (Position(6, 2),)
    session.attach_payload_candidates(
        [{"location": {"x": 1, "y": 2}, "score": 0.4}, {"location": [3, 4], "score": 0.9}]
    )
    assert session.view().best_candidate.location == Position(3, 4)


def test_load_state_payload_replaces_log() -> None:
    session = _session()
    session.append(Event(100))
    session.load_state_payload(
        {
            "history": [{"text": "a"}, {"text": "b", "locations": [{"x": 1, "y": 1}]}],
            "localizationCandidates": [{"location": {"x": 5, "y": 5}, "score": 0.7}],
        }
    )
    assert [e.step for e in session.log.events] == [0, 1]
    view = session.view()
    assert view.step == 1
    assert view.best_candidate.location == Position(5, 5)


def test_append_accepts_location_pairs() -> None:
    session = _session(grid_size=8)
    session.append(Event(1, locations=[(9, 2)]))
    assert session.view().as_dict()["current_locations"][0] == {"x": 1, "y": 2}


def test_load_state_payload_bad_ordering_keeps_log() -> None:
    session = _session()
    session.append(Event(100))
    with pytest.raises(OrderingViolation):
        session.load_state_payload({"history": [{"step": 2}, {"step": 1}]})
    assert [e.step for e in session.log.events] == [100]


def test_log_status_reports_counters_and_cursor() -> None:
    session = _session()
    session.append(Event(1))
    session.append(Event(2))
    session.set_focus(0)
    session.view()
    status = session.log_status()
    assert status["length"] == 2
    assert status["focus"] == 0
    assert status["pinned"] is True
    assert status["appends"] == 2
    assert status["views"] == 1


def test_thread_pool_columns_match_serial() -> None:
    serial = TimelineSession(SessionConfig())
    pooled = TimelineSession(SessionConfig(), max_workers=4)
    assert serial.columns == pooled.columns
