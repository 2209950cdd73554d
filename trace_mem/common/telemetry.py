# Copyright (c) 2025 Arne Deutsch, itemis AG, MIT License
"""Thread-safe timeline counters."""

from __future__ import annotations

import threading
from dataclasses import dataclass, fields
from typing import Dict


@dataclass
class TimelineStats:
    """Counters for event log operations."""

    appends: int = 0
    rejected: int = 0
    focus_changes: int = 0
    views: int = 0
    resets: int = 0
    candidate_sets: int = 0

    def snapshot(self) -> Dict[str, int]:
        """Return raw counters."""

        return {f.name: getattr(self, f.name) for f in fields(self)}


class TimelineRegistry:
    """Thread-safe container for per-session :class:`TimelineStats`."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stats: Dict[str, TimelineStats] = {}

    def get(self, name: str) -> TimelineStats:
        """Return stats object for ``name`` creating it on first use."""

        with self._lock:
            stats = self._stats.get(name)
            if stats is None:
                stats = self._stats[name] = TimelineStats()
            return stats

    def increment(self, name: str, counter: str, value: int = 1) -> None:
        """Add ``value`` to ``counter`` of session ``name``."""

        stats = self.get(name)
        with self._lock:
            setattr(stats, counter, getattr(stats, counter) + value)

    def reset(self) -> None:
        """Drop all counters."""

        with self._lock:
            self._stats.clear()

    def all_snapshots(self) -> Dict[str, Dict[str, int]]:
        """Return snapshots for all registered sessions."""

        with self._lock:
            return {k: v.snapshot() for k, v in self._stats.items()}


# Shared counters for every session in the process.
timeline_registry = TimelineRegistry()

__all__ = ["TimelineRegistry", "TimelineStats", "timeline_registry"]
