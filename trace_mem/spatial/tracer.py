# Copyright (c) 2025 Arne Deutsch, itemis AG, MIT License
"""Toroidal path tracing driven by token context.

Summary
-------
Starting from a seed position, each token after the first moves the cursor
by the displacement hashed from ``(previous token, current token, seed)``.
Coordinates wrap at the grid edge using a non-negative modulo, so every
position stays in ``[0, grid_size)``.  A path depends only on
``(start, tokens, seed)`` and the hasher settings.

Complexity
----------
``O(n)`` for ``n`` tokens.

Examples
--------
>>> [s.position for s in trace_path(Position(15, 14), [42, 17, 89])]
[Position(x=15, y=14), Position(x=14, y=15), Position(x=14, y=16)]

See Also
--------
trace_mem.spatial.hashing
trace_mem.spatial.columns
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from .hashing import ContextHasher
from .types import Displacement, Path, Position, Step

DEFAULT_GRID_SIZE = 64


class PathTracer:
    """Trace token sequences over a fixed-size wrap-around grid.

    Parameters
    ----------
    grid_size : int, optional
        Width and height of the square grid, by default ``64``.
    max_step : int, optional
        Displacement bound forwarded to :class:`ContextHasher`.
    method, context_length, avoid_zero_step :
        Hasher settings, see :class:`ContextHasher`.
    """

    def __init__(
        self,
        grid_size: int = DEFAULT_GRID_SIZE,
        max_step: int = 3,
        *,
        method: str = "linear",
        context_length: int = 2,
        avoid_zero_step: bool = False,
    ) -> None:
        if grid_size < 1:
            raise ValueError("grid_size must be positive")
        self.grid_size = int(grid_size)
        self.max_step = int(max_step)
        self.method = method
        self.context_length = int(context_length)
        self.avoid_zero_step = bool(avoid_zero_step)
        # validate hasher settings once up front
        self.hasher(0)

    def hasher(self, seed: int) -> ContextHasher:
        """Return a fresh hasher for ``seed`` with this tracer's settings."""

        return ContextHasher(
            self.max_step,
            seed,
            method=self.method,
            context_length=self.context_length,
            avoid_zero_step=self.avoid_zero_step,
        )

    def trace(self, start: Position, tokens: Sequence[int], seed: int = 0) -> Path:
        """Return the path traced from ``start`` over ``tokens``.

        Step ``0`` is the (wrapped) start position carrying ``tokens[0]`` and no
        displacement.  Empty input yields an empty path.
        """

        toks = [int(t) for t in tokens]
        if not toks:
            return ()
        origin = start.wrap(self.grid_size)
        steps = [Step(origin, toks[0])]
        if len(toks) == 1:
            return tuple(steps)

        dx, dy = self.hasher(seed).displacements(toks)
        # running position == start + prefix sum of displacements, reduced mod grid
        xs = np.mod(origin.x + np.cumsum(dx), self.grid_size)
        ys = np.mod(origin.y + np.cumsum(dy), self.grid_size)
        for i in range(1, len(toks)):
            steps.append(
                Step(
                    Position(int(xs[i - 1]), int(ys[i - 1])),
                    toks[i],
                    Displacement(int(dx[i - 1]), int(dy[i - 1])),
                )
            )
        return tuple(steps)


def trace_path(
    start: Position,
    tokens: Sequence[int],
    seed: int = 0,
    *,
    tracer: Optional[PathTracer] = None,
) -> Path:
    """Convenience wrapper around :meth:`PathTracer.trace` with defaults."""

    return (tracer or PathTracer()).trace(start, tokens, seed)


__all__ = ["DEFAULT_GRID_SIZE", "PathTracer", "trace_path"]
