# Copyright (c) 2025 Arne Deutsch, itemis AG, MIT License
"""Decode backend payloads into timeline records.

The backend reports history entries as ``{"step", "text", "locations":
[{"x", "y"}, ...]}`` and query results with ``localizationCandidates`` of the
form ``{"location": {"x", "y"}, "score", "columnId"}``.  The state endpoint
may omit ``step`` on history entries; those take their list index.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, List, Mapping, Optional

from trace_mem.spatial.types import Position

from .errors import OrderingViolation
from .types import Event, LocalizationCandidate


def _locations(raw: Any) -> tuple[Position, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, (list, tuple)):
        raise ValueError(f"locations must be a list, got {type(raw).__name__}")
    return tuple(Position.from_obj(loc) for loc in raw)


def event_from_payload(payload: Mapping[str, Any], *, default_step: Optional[int] = None) -> Event:
    """Build an :class:`Event` from a history entry.

    Raises
    ------
    ValueError
        If ``step`` is missing (and no ``default_step`` is given) or malformed.
    """

    if not isinstance(payload, Mapping):
        raise ValueError(f"event payload must be a mapping, got {type(payload).__name__}")
    step = payload.get("step", default_step)
    if step is None:
        raise ValueError("event payload has no step")
    if isinstance(step, bool):
        raise ValueError(f"invalid event step: {step!r}")
    try:
        step_int = int(step)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid event step: {step!r}") from exc
    if isinstance(step, float) and step != step_int:
        raise ValueError(f"invalid event step: {step!r}")
    text = payload.get("text")
    return Event(step_int, "" if text is None else str(text), _locations(payload.get("locations")))


def candidates_from_payload(raw: Iterable[Mapping[str, Any]] | None) -> List[LocalizationCandidate]:
    """Build candidates from a ``localizationCandidates`` list, keeping order."""

    out: List[LocalizationCandidate] = []
    for item in raw or ():
        if not isinstance(item, Mapping):
            raise ValueError(f"candidate must be a mapping, got {type(item).__name__}")
        if "location" not in item or "score" not in item:
            raise ValueError(f"candidate needs location and score: {item!r}")
        try:
            score = float(item["score"])
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid candidate score: {item['score']!r}") from exc
        if math.isnan(score):
            raise ValueError("candidate score is NaN")
        column = item.get("columnId")
        out.append(
            LocalizationCandidate(
                Position.from_obj(item["location"]),
                score,
                None if column is None else str(column),
            )
        )
    return out


def check_ordering(events: Iterable[Event]) -> None:
    """Raise :class:`OrderingViolation` unless steps are strictly increasing."""

    last: Optional[int] = None
    for event in events:
        if last is not None and event.step <= last:
            raise OrderingViolation(event.step, last)
        last = event.step


def events_from_state_payload(payload: Mapping[str, Any]) -> List[Event]:
    """Return events for every ``history`` entry of a state payload."""

    history = payload.get("history") or []
    if not isinstance(history, list):
        raise ValueError("state payload history must be a list")
    return [event_from_payload(entry, default_step=i) for i, entry in enumerate(history)]


__all__ = [
    "candidates_from_payload",
    "check_ordering",
    "event_from_payload",
    "events_from_state_payload",
]
