# Copyright (c) 2025 Arne Deutsch, itemis AG, MIT License
"""Owned session state: configuration, traced columns and the event log.

A :class:`TimelineSession` replaces process-wide globals: every operation on
the timeline goes through one explicit object, which owns the read-only
configuration, the per-column paths built from it, and the event log.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Tuple

from trace_mem.common.telemetry import timeline_registry
from trace_mem.config import SessionConfig, to_session_config
from trace_mem.spatial.columns import Column, build_columns
from trace_mem.spatial.tracer import PathTracer
from trace_mem.spatial.types import Position

from .ingest import (
    candidates_from_payload,
    check_ordering,
    event_from_payload,
    events_from_state_payload,
)
from .log import EventLog
from .types import Event, LocalizationCandidate
from .view import StateView, replay_view

logger = logging.getLogger(__name__)


class TimelineSession:
    """Timeline over externally appended events for a fixed column layout."""

    def __init__(
        self,
        config: Optional[SessionConfig | Mapping[str, Any]] = None,
        *,
        max_workers: Optional[int] = None,
    ) -> None:
        self._max_workers = max_workers
        self.config = to_session_config(config if config is not None else SessionConfig())
        self.log = EventLog(self.config.name)
        self._build()

    def _build(self) -> None:
        cfg = self.config
        self.tracer = PathTracer(
            cfg.grid_size,
            cfg.max_step,
            method=cfg.method,
            context_length=cfg.context_length,
            avoid_zero_step=cfg.avoid_zero_step,
        )
        self.columns: Tuple[Column, ...] = tuple(
            build_columns(cfg.columns, cfg.tokens, tracer=self.tracer, max_workers=self._max_workers)
        )
        logger.info(
            "built %d columns over %d tokens on a %dx%d grid",
            len(self.columns),
            len(cfg.tokens),
            cfg.grid_size,
            cfg.grid_size,
        )

    @property
    def name(self) -> str:
        return self.log.name

    @property
    def grid_size(self) -> int:
        return self.config.grid_size

    @property
    def seed_geometry(self) -> Tuple[Position, ...]:
        """Start position of every column, used where events lack a location."""

        return tuple(col.start for col in self.columns)

    def reconfigure(self, config: SessionConfig | Mapping[str, Any]) -> None:
        """Swap configuration, rebuild every path from scratch and clear the log."""

        self.config = to_session_config(config)
        self._build()
        self.log.reset()

    # ------------------------------------------------------------------
    # Event log operations
    def append(self, event: Event) -> None:
        """Append ``event`` with its locations wrapped into the grid."""

        self.log.append(event.wrapped(self.grid_size))

    def append_payload(self, payload: Mapping[str, Any]) -> Event:
        """Decode a backend history entry and append it."""

        event = event_from_payload(payload).wrapped(self.grid_size)
        self.log.append(event)
        return event

    def load_state_payload(self, payload: Mapping[str, Any]) -> None:
        """Replace the log with the history carried by a backend state payload."""

        events = events_from_state_payload(payload)
        check_ordering(events)
        cands = candidates_from_payload(payload.get("localizationCandidates"))
        attached = {events[-1].step: cands} if cands and events else {}
        self.replace_timeline(events, attached)

    def replace_timeline(
        self,
        events: Iterable[Event],
        candidates: Optional[Mapping[int, Iterable[LocalizationCandidate]]] = None,
    ) -> None:
        """Swap the log for ``events`` plus per-step candidate sets in one step."""

        g = self.grid_size
        self.log.replace(
            (e.wrapped(g) for e in events),
            {step: self._wrapped_candidates(cands) for step, cands in (candidates or {}).items()},
        )

    def _wrapped_candidates(
        self, candidates: Iterable[LocalizationCandidate]
    ) -> Tuple[LocalizationCandidate, ...]:
        g = self.grid_size
        return tuple(LocalizationCandidate(c.location.wrap(g), c.score, c.column_id) for c in candidates)

    def attach_candidates(
        self, candidates: Iterable[LocalizationCandidate], step: Optional[int] = None
    ) -> None:
        self.log.attach_candidates(self._wrapped_candidates(candidates), step)

    def attach_payload_candidates(self, raw: Any, step: Optional[int] = None) -> None:
        """Decode a ``localizationCandidates`` list and attach it."""

        self.attach_candidates(candidates_from_payload(raw), step)

    def set_focus(self, index: int) -> None:
        self.log.set_focus(index)

    def follow_latest(self) -> None:
        self.log.follow_latest()

    def reset(self) -> None:
        self.log.reset()

    # ------------------------------------------------------------------
    # Views
    def view_at(self, index: Optional[int] = None) -> StateView:
        """Return the replayed view at ``index`` (default: the focus index)."""

        view = replay_view(self.log.snapshot(), index, fallback=self.seed_geometry)
        timeline_registry.increment(self.name, "views")
        return view

    def view(self) -> StateView:
        return self.view_at(None)

    def log_status(self) -> dict[str, Any]:
        """Return counters plus current log length and cursor state."""

        snap = self.log.snapshot()
        status: dict[str, Any] = dict(timeline_registry.get(self.name).snapshot())
        status.update(length=len(snap.events), focus=snap.focus, pinned=snap.pinned)
        return status


__all__ = ["TimelineSession"]
