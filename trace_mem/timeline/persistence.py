# Copyright (c) 2025 Arne Deutsch, itemis AG, MIT License
"""Atomic JSONL export and import of a session timeline.

Records are written one per line: a ``meta`` header, one ``event`` record
per event and one ``candidates`` record per attached candidate set.  Import
validates every record, then swaps the session log in one step.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Iterator, List

from .ingest import candidates_from_payload, check_ordering, event_from_payload
from .session import TimelineSession
from .types import LocalizationCandidate

logger = logging.getLogger(__name__)

# per-path locks to guard concurrent access within a process
_locks: Dict[str, threading.Lock] = {}
_locks_lock = threading.Lock()


def _get_lock(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _locks_lock:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.Lock()
        return lock


def _records(session: TimelineSession) -> Iterator[dict[str, Any]]:
    snap = session.log.snapshot()
    yield {"kind": "meta", "name": session.name, "grid_size": session.grid_size}
    for event in snap.events:
        yield {"kind": "event", **event.as_dict()}
    for idx in sorted(snap.candidates):
        yield {
            "kind": "candidates",
            "step": snap.events[idx].step,
            "candidates": [c.as_dict() for c in snap.candidates[idx]],
        }


def save_timeline(path: str | Path, session: TimelineSession) -> int:
    """Write ``session``'s timeline to ``path`` atomically; return the record count."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    records = list(_records(session))
    with _get_lock(target):
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, suffix=".tmp")
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                for rec in records:
                    fh.write(json.dumps(rec) + "\n")
            os.replace(tmp_path, target)
        finally:
            if tmp_path.exists():  # pragma: no cover - cleanup after failed replace
                tmp_path.unlink(missing_ok=True)
    logger.info("saved %d timeline records to %s", len(records), target)
    return len(records)


def load_timeline(path: str | Path, session: TimelineSession) -> int:
    """Replace ``session``'s log with the records in ``path``; return events loaded.

    Raises
    ------
    ValueError
        On unknown record kinds or malformed records.
    OrderingViolation
        If the stored events are not strictly increasing by step.
    """

    source = Path(path)
    with _get_lock(source):
        with open(source, "r", encoding="utf-8") as fh:
            records = [json.loads(line) for line in fh if line.strip()]

    # decode and validate everything before the session is touched
    events = []
    candidate_sets: Dict[int, List[LocalizationCandidate]] = {}
    for rec in records:
        kind = rec.get("kind")
        if kind == "meta":
            grid = rec.get("grid_size")
            if grid is not None and int(grid) != session.grid_size:
                logger.warning(
                    "timeline saved on a %sx%s grid, loading into %sx%s",
                    grid,
                    grid,
                    session.grid_size,
                    session.grid_size,
                )
        elif kind == "event":
            events.append(event_from_payload(rec))
        elif kind == "candidates":
            if "step" not in rec:
                raise ValueError(f"candidates record without step: {rec!r}")
            candidate_sets[int(rec["step"])] = candidates_from_payload(rec.get("candidates"))
        else:
            raise ValueError(f"unknown timeline record kind: {kind!r}")
    check_ordering(events)
    known = {e.step for e in events}
    for step in candidate_sets:
        if step not in known:
            raise ValueError(f"candidates record for unknown step {step}")

    session.replace_timeline(events, candidate_sets)
    logger.info("loaded %d events from %s", len(events), source)
    return len(events)


__all__ = ["load_timeline", "save_timeline"]
