from __future__ import annotations

import json

import pytest

from trace_mem.config import SessionConfig
from trace_mem.spatial.types import Position
from trace_mem.timeline import Event, LocalizationCandidate, OrderingViolation, TimelineSession
from trace_mem.timeline.persistence import load_timeline, save_timeline


def _filled() -> TimelineSession:
    session = TimelineSession(SessionConfig(name="p"))
    session.append(Event(1, "a", (Position(1, 2),)))
    session.append(Event(4, "b", (Position(3, 4), Position(5, 6))))
    session.attach_candidates([LocalizationCandidate(Position(7, 7), 0.6, "c0")], step=1)
    return session


def test_save_and_load_restores_views(tmp_path) -> None:
    path = tmp_path / "nested" / "timeline.jsonl"
    source = _filled()
    assert save_timeline(path, source) == 4
    kinds = [json.loads(line)["kind"] for line in path.read_text().splitlines()]
    assert kinds == ["meta", "event", "event", "candidates"]

    target = TimelineSession(SessionConfig(name="p"))
    target.append(Event(99))
    assert load_timeline(path, target) == 2
    for idx in (0, 1):
        assert target.view_at(idx) == source.view_at(idx)
    assert not list(path.parent.glob("*.tmp"))


def test_load_rejects_unknown_kind(tmp_path) -> None:
    path = tmp_path / "t.jsonl"
    path.write_text(json.dumps({"kind": "bogus"}) + "\n")
    with pytest.raises(ValueError):
        load_timeline(path, TimelineSession())


def test_load_rejects_bad_ordering_without_touching_session(tmp_path) -> None:
    path = tmp_path / "t.jsonl"
    lines = [{"kind": "event", "step": 2}, {"kind": "event", "step": 2}]
    path.write_text("\n".join(json.dumps(r) for r in lines) + "\n")
    session = TimelineSession()
    session.append(Event(7))
    with pytest.raises(OrderingViolation):
        load_timeline(path, session)
    assert [e.step for e in session.log.events] == [7]


def test_load_rejects_candidates_for_unknown_step(tmp_path) -> None:
    path = tmp_path / "t.jsonl"
    lines = [
        {"kind": "event", "step": 1},
        {"kind": "candidates", "step": 3, "candidates": []},
    ]
    path.write_text("\n".join(json.dumps(r) for r in lines) + "\n")
    with pytest.raises(ValueError):
        load_timeline(path, TimelineSession())


def test_grid_mismatch_is_logged(tmp_path, caplog) -> None:
    path = tmp_path / "t.jsonl"
    save_timeline(path, _filled())
    session = TimelineSession(SessionConfig(grid_size=32))
    with caplog.at_level("WARNING"):
        load_timeline(path, session)
    assert "grid" in caplog.text
