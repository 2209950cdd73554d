# Copyright (c) 2025 Arne Deutsch, itemis AG, MIT License
"""Replay-based state view.

Summary
-------
Derives what the grid looked like at a given log index purely by slicing a
:class:`~trace_mem.timeline.log.LogSnapshot` and re-deriving geometry.  No
per-step grid state is stored, so the view is always consistent with the log
and calling :func:`replay_view` twice on the same snapshot yields equal
results.

Location fallback
-----------------
``current_locations`` come from the event at the viewed index.  Columns the
event carries no location for fall back to the column's seed geometry (its
start position); their indices are listed in ``StateView.fallback_columns``.
On an empty log every column uses the fallback.  Only an empty log without
any column geometry raises :class:`EmptyLogAccess`.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence, Tuple

import numpy as np

from trace_mem.spatial.types import Position

from .errors import EmptyLogAccess, IndexOutOfRange
from .log import LogSnapshot
from .types import Event, LocalizationCandidate


def best_candidate(
    candidates: Iterable[LocalizationCandidate],
) -> Optional[LocalizationCandidate]:
    """Return the highest-scoring candidate; ties keep the first seen."""

    best: Optional[LocalizationCandidate] = None
    for cand in candidates:
        if best is None or cand.score > best.score:
            best = cand
    return best


def rank_candidates(
    candidates: Iterable[LocalizationCandidate],
) -> Tuple[LocalizationCandidate, ...]:
    """Return candidates ordered by descending score (stable for ties)."""

    return tuple(sorted(candidates, key=lambda c: -c.score))


@dataclass(frozen=True)
class StateView:
    """Visible grid state at one log index."""

    index: Optional[int]
    visited_prefix: Tuple[Event, ...]
    current_locations: Tuple[Position, ...]
    best_candidate: Optional[LocalizationCandidate]
    candidates: Tuple[LocalizationCandidate, ...] = ()
    trails: Tuple[Tuple[Position, ...], ...] = ()
    fallback_columns: Tuple[int, ...] = ()

    @property
    def step(self) -> Optional[int]:
        return self.visited_prefix[-1].step if self.visited_prefix else None

    def occupancy(self, grid_size: int) -> np.ndarray:
        """Return visit counts per cell as a ``(grid_size, grid_size)`` array.

        Cells are indexed ``[y, x]``; every trail position counts once.
        """

        grid = np.zeros((grid_size, grid_size), dtype=np.int64)
        for trail in self.trails:
            if not trail:
                continue
            xs = np.fromiter((p.x for p in trail), dtype=np.int64, count=len(trail))
            ys = np.fromiter((p.y for p in trail), dtype=np.int64, count=len(trail))
            np.add.at(grid, (np.mod(ys, grid_size), np.mod(xs, grid_size)), 1)
        return grid

    def as_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "step": self.step,
            "visited": [e.as_dict() for e in self.visited_prefix],
            "current_locations": [p.as_dict() for p in self.current_locations],
            "fallback_columns": list(self.fallback_columns),
            "best_candidate": self.best_candidate.as_dict() if self.best_candidate else None,
            "candidates": [c.as_dict() for c in self.candidates],
            "trails": [[p.as_dict() for p in trail] for trail in self.trails],
        }


def _candidates_at(snapshot: LogSnapshot, index: int) -> Tuple[LocalizationCandidate, ...]:
    """Return the candidate set attached to the newest event at or before ``index``."""

    keys = sorted(snapshot.candidates)
    pos = bisect.bisect_right(keys, index)
    if pos == 0:
        return ()
    return snapshot.candidates[keys[pos - 1]]


def replay_view(
    snapshot: LogSnapshot,
    index: Optional[int] = None,
    *,
    fallback: Sequence[Position] = (),
) -> StateView:
    """Fold ``snapshot`` up to ``index`` (default: its focus) into a :class:`StateView`.

    Parameters
    ----------
    snapshot:
        Log state captured by :meth:`EventLog.snapshot`.
    index:
        Log index to view; ``None`` uses the snapshot's focus.
    fallback:
        Seed geometry per column used where events carry no location.

    Raises
    ------
    IndexOutOfRange
        If ``index`` is outside the log.
    EmptyLogAccess
        If the log is empty and ``fallback`` is empty.
    """

    events = snapshot.events
    fallback = tuple(fallback)
    if not events:
        if index is not None:
            raise IndexOutOfRange(index, 0)
        if not fallback:
            raise EmptyLogAccess("empty log and no column geometry to fall back to")
        return StateView(
            index=None,
            visited_prefix=(),
            current_locations=fallback,
            best_candidate=None,
            trails=tuple(() for _ in fallback),
            fallback_columns=tuple(range(len(fallback))),
        )

    idx = snapshot.focus if index is None else index
    if idx is None or not 0 <= idx < len(events):
        raise IndexOutOfRange(-1 if idx is None else idx, len(events))

    prefix = events[: idx + 1]
    event = prefix[-1]
    n_columns = max(len(fallback), len(event.locations))
    current = []
    used_fallback = []
    for col in range(n_columns):
        if col < len(event.locations):
            current.append(event.locations[col])
        else:
            current.append(fallback[col])
            used_fallback.append(col)

    trails = tuple(
        tuple(e.locations[col] for e in prefix if col < len(e.locations))
        for col in range(n_columns)
    )
    cands = _candidates_at(snapshot, idx)
    return StateView(
        index=idx,
        visited_prefix=prefix,
        current_locations=tuple(current),
        best_candidate=best_candidate(cands),
        candidates=rank_candidates(cands),
        trails=trails,
        fallback_columns=tuple(used_fallback),
    )


__all__ = ["StateView", "best_candidate", "rank_candidates", "replay_view"]
