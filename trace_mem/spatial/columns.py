# Copyright (c) 2025 Arne Deutsch, itemis AG, MIT License
"""Multi-column path sets.

Each column traces the same token sequence from its own start offset and
seed.  Columns share no mutable state, so they may be traced in any order or
on a thread pool with identical per-column results.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from .tracer import PathTracer
from .types import Path, Position


@dataclass
class ColumnSpec:
    """Start offset ``(x, y)`` and hash seed for one column."""

    x: int = 0
    y: int = 0
    seed: int = 0

    @property
    def start(self) -> Position:
        return Position(int(self.x), int(self.y))


@dataclass(frozen=True)
class Column:
    """A column identified by its index, owning one traced path."""

    index: int
    start: Position
    seed: int
    path: Path

    @property
    def location(self) -> Position:
        """Position after the last traced step, or the start for an empty path."""

        return self.path[-1].position if self.path else self.start


def build_columns(
    specs: Iterable[ColumnSpec],
    tokens: Sequence[int],
    *,
    tracer: Optional[PathTracer] = None,
    max_workers: Optional[int] = None,
) -> List[Column]:
    """Trace ``tokens`` once per column spec, preserving spec order.

    Parameters
    ----------
    specs:
        Column start offsets and seeds; list position becomes the column id.
    tokens:
        Shared token sequence.
    tracer:
        Tracer carrying grid and hasher settings; defaults to :class:`PathTracer`.
    max_workers:
        When greater than ``1`` the columns are traced on a thread pool.
    """

    tracer = tracer or PathTracer()
    specs = list(specs)
    toks = tuple(int(t) for t in tokens)

    def _one(idx: int) -> Column:
        spec = specs[idx]
        start = spec.start.wrap(tracer.grid_size)
        return Column(idx, start, int(spec.seed), tracer.trace(start, toks, int(spec.seed)))

    if max_workers and max_workers > 1 and len(specs) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            return list(pool.map(_one, range(len(specs))))
    return [_one(i) for i in range(len(specs))]


__all__ = ["Column", "ColumnSpec", "build_columns"]
