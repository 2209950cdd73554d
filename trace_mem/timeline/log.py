# Copyright (c) 2025 Arne Deutsch, itemis AG, MIT License
"""Append-only event log with a single focus cursor.

Summary
-------
Events arrive in strictly increasing ``step`` order and are never modified
after they are stored.  The focus index selects the prefix of the log that is
considered current.  While unpinned the cursor follows the newest event; an
explicit :meth:`EventLog.set_focus` pins it so later appends do not move it
until :meth:`EventLog.follow_latest` is called.

All mutations and snapshot reads are serialised behind one lock, so readers
observe either the state before or after an append, never a partial one.

Side Effects
------------
Updates :data:`trace_mem.common.telemetry.timeline_registry` counters and logs
rejected calls at WARNING level.

Complexity
----------
``append`` and ``set_focus`` are ``O(1)``; candidate attachment by step is
``O(log n)``; :meth:`EventLog.snapshot` is ``O(n)`` only after the log changed.

Examples
--------
>>> log = EventLog()
>>> log.append(Event(1)); log.append(Event(2))
>>> log.focus
1
>>> log.set_focus(0); log.append(Event(5)); log.focus
0

See Also
--------
trace_mem.timeline.view
"""

from __future__ import annotations

import bisect
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from trace_mem.common.telemetry import timeline_registry

from .errors import EmptyLogAccess, IndexOutOfRange, OrderingViolation
from .types import Event, LocalizationCandidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogSnapshot:
    """Consistent read-only copy of the log state."""

    events: Tuple[Event, ...]
    focus: Optional[int]
    pinned: bool
    # event index -> candidate set attached for that state
    candidates: Dict[int, Tuple[LocalizationCandidate, ...]] = field(default_factory=dict)


class EventLog:
    """Append-only sequence of :class:`Event` with a focus index."""

    def __init__(self, name: str = "default") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._events: List[Event] = []
        self._steps: List[int] = []
        self._frozen: Optional[Tuple[Event, ...]] = None
        self._focus: Optional[int] = None
        self._pinned = False
        self._candidates: Dict[int, Tuple[LocalizationCandidate, ...]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    @property
    def focus(self) -> Optional[int]:
        with self._lock:
            return self._focus

    @property
    def pinned(self) -> bool:
        with self._lock:
            return self._pinned

    @property
    def last_step(self) -> Optional[int]:
        with self._lock:
            return self._steps[-1] if self._steps else None

    # ------------------------------------------------------------------
    # Mutations
    def append(self, event: Event) -> None:
        """Store ``event`` after the last one.

        Raises
        ------
        OrderingViolation
            If ``event.step`` does not exceed the last stored step.
        """

        with self._lock:
            if self._steps and event.step <= self._steps[-1]:
                last = self._steps[-1]
                timeline_registry.increment(self.name, "rejected")
                logger.warning("rejected event step %s after step %s", event.step, last)
                raise OrderingViolation(event.step, last)
            self._events.append(event)
            self._steps.append(event.step)
            self._frozen = None
            if not self._pinned:
                self._focus = len(self._events) - 1
            focus = self._focus
        timeline_registry.increment(self.name, "appends")
        logger.debug("appended step %s (focus=%s)", event.step, focus)

    def extend(self, events: Iterable[Event]) -> None:
        """Append ``events`` in order; stops at the first rejected event."""

        for event in events:
            self.append(event)

    def set_focus(self, index: int) -> None:
        """Move the cursor to ``index`` and pin it there.

        Raises
        ------
        IndexOutOfRange
            If ``index`` is outside ``[0, len - 1]`` (always on an empty log).
        """

        with self._lock:
            length = len(self._events)
            if not 0 <= index < length:
                timeline_registry.increment(self.name, "rejected")
                logger.warning("rejected focus %s for log of length %s", index, length)
                raise IndexOutOfRange(index, length)
            self._focus = index
            self._pinned = True
        timeline_registry.increment(self.name, "focus_changes")
        logger.debug("focus pinned at %s", index)

    def follow_latest(self) -> None:
        """Unpin the cursor and move it to the newest event."""

        with self._lock:
            self._pinned = False
            self._focus = len(self._events) - 1 if self._events else None
        timeline_registry.increment(self.name, "focus_changes")

    def reset(self) -> None:
        """Clear all events and candidates and unpin the cursor."""

        with self._lock:
            dropped = len(self._events)
            self._events.clear()
            self._steps.clear()
            self._candidates.clear()
            self._frozen = None
            self._focus = None
            self._pinned = False
        timeline_registry.increment(self.name, "resets")
        logger.info("timeline %s reset (%d events dropped)", self.name, dropped)

    def replace(
        self,
        events: Iterable[Event],
        candidates: Optional[Mapping[int, Iterable[LocalizationCandidate]]] = None,
    ) -> None:
        """Swap the whole log for ``events`` and per-step ``candidates`` at once.

        Readers observe either the old log or the complete new one.  The
        cursor is unpinned and follows the newest event afterwards.

        Raises
        ------
        OrderingViolation
            If ``events`` are not strictly increasing by step.
        IndexOutOfRange
            If a candidate set names a step missing from ``events``.
        """

        new_events = list(events)
        new_steps = [e.step for e in new_events]
        for prev, cur in zip(new_steps, new_steps[1:]):
            if cur <= prev:
                timeline_registry.increment(self.name, "rejected")
                logger.warning("rejected replacement: step %s after step %s", cur, prev)
                raise OrderingViolation(cur, prev)
        index = {step: i for i, step in enumerate(new_steps)}
        new_candidates: Dict[int, Tuple[LocalizationCandidate, ...]] = {}
        for step, cands in (candidates or {}).items():
            if step not in index:
                logger.warning("replacement candidate set for unknown step %s", step)
                raise IndexOutOfRange(step, len(new_events))
            new_candidates[index[step]] = tuple(cands)

        with self._lock:
            dropped = len(self._events)
            self._events = new_events
            self._steps = new_steps
            self._candidates = new_candidates
            self._frozen = None
            self._focus = len(new_events) - 1 if new_events else None
            self._pinned = False
        timeline_registry.increment(self.name, "resets")
        timeline_registry.increment(self.name, "appends", len(new_events))
        if new_candidates:
            timeline_registry.increment(self.name, "candidate_sets", len(new_candidates))
        logger.info(
            "timeline %s replaced (%d events dropped, %d loaded)",
            self.name,
            dropped,
            len(new_events),
        )

    def attach_candidates(
        self, candidates: Iterable[LocalizationCandidate], step: Optional[int] = None
    ) -> None:
        """Record a candidate set for the state at ``step`` (default: newest).

        Raises
        ------
        EmptyLogAccess
            If no event has been appended yet.
        IndexOutOfRange
            If ``step`` matches no stored event.
        """

        cands = tuple(candidates)
        with self._lock:
            if not self._events:
                logger.warning("candidate set attached to an empty log")
                raise EmptyLogAccess("cannot attach candidates to an empty log")
            if step is None:
                idx = len(self._events) - 1
            else:
                idx = bisect.bisect_left(self._steps, step)
                if idx >= len(self._steps) or self._steps[idx] != step:
                    logger.warning("candidate set for unknown step %s", step)
                    raise IndexOutOfRange(step, len(self._events))
            self._candidates[idx] = cands
        timeline_registry.increment(self.name, "candidate_sets")

    # ------------------------------------------------------------------
    # Reads
    def index_of(self, step: int) -> int:
        """Return the log index of the event with ``step``."""

        with self._lock:
            idx = bisect.bisect_left(self._steps, step)
            if idx >= len(self._steps) or self._steps[idx] != step:
                raise IndexOutOfRange(step, len(self._events))
            return idx

    def snapshot(self) -> LogSnapshot:
        """Return a consistent copy of events, cursor and candidate sets."""

        with self._lock:
            if self._frozen is None:
                self._frozen = tuple(self._events)
            return LogSnapshot(self._frozen, self._focus, self._pinned, dict(self._candidates))

    @property
    def events(self) -> Tuple[Event, ...]:
        return self.snapshot().events


__all__ = ["EventLog", "LogSnapshot"]
