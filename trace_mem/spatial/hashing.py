# Copyright (c) 2025 Arne Deutsch, itemis AG, MIT License
"""Deterministic context-to-displacement hashing.

Summary
-------
Maps the most recent tokens of a sequence plus a per-column seed to a bounded
displacement ``(dx, dy)``.  Two mixing methods are available:

``"linear"``
    ``mixed = (tok[i] * 31 + tok[i-1] * 17 + seed) & 0xFFFFFFFF`` with
    ``dx = mixed % (2*max_step+1) - max_step`` and
    ``dy = (mixed >> 8) % (2*max_step+1) - max_step``.  This is the reference
    encoding used for the tutorial paths and is the default.
``"murmur3"``
    Folds the last ``context_length`` tokens with MurmurHash3 x86_32 and
    hashes the folded value again; ``dy`` reads bits ``16..`` of the hash.

All arithmetic is explicit unsigned 32-bit: Python integers are masked and
numpy batches use ``int64`` lanes masked to 32 bits, so results are identical
across processes and platforms.

Complexity
----------
``O(1)`` per displacement; :meth:`ContextHasher.displacements` is ``O(n)``.

Examples
--------
>>> ContextHasher().encode([42, 17])
Displacement(dx=-1, dy=1)

See Also
--------
trace_mem.spatial.tracer
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, Sequence, Tuple

import numpy as np

from .types import Displacement

_MASK32 = 0xFFFFFFFF
_LINEAR_A = 31
_LINEAR_B = 17

METHODS = ("linear", "murmur3")
# bit offset of the dy reduction per method
_DY_SHIFT = {"linear": 8, "murmur3": 16}


def _rotl32(value: int, count: int) -> int:
    return ((value << count) | (value >> (32 - count))) & _MASK32


def _fmix32(h: int) -> int:
    h ^= h >> 16
    h = (h * 0x85EBCA6B) & _MASK32
    h ^= h >> 13
    h = (h * 0xC2B2AE35) & _MASK32
    h ^= h >> 16
    return h


def murmur3_32(data: bytes, seed: int = 0) -> int:
    """Return the MurmurHash3 x86_32 digest of ``data``."""

    c1 = 0xCC9E2D51
    c2 = 0x1B873593
    h1 = seed & _MASK32
    length = len(data)
    n_blocks = length // 4

    for i in range(n_blocks):
        k1 = int.from_bytes(data[4 * i : 4 * i + 4], "little")
        k1 = (k1 * c1) & _MASK32
        k1 = _rotl32(k1, 15)
        k1 = (k1 * c2) & _MASK32
        h1 ^= k1
        h1 = _rotl32(h1, 13)
        h1 = (h1 * 5 + 0xE6546B64) & _MASK32

    tail = data[4 * n_blocks :]
    k1 = 0
    if len(tail) >= 3:
        k1 ^= tail[2] << 16
    if len(tail) >= 2:
        k1 ^= tail[1] << 8
    if tail:
        k1 ^= tail[0]
        k1 = (k1 * c1) & _MASK32
        k1 = _rotl32(k1, 15)
        k1 = (k1 * c2) & _MASK32
        h1 ^= k1

    h1 ^= length
    return _fmix32(h1)


def murmur3_u32(value: int, seed: int = 0) -> int:
    """Hash a single unsigned 32-bit value encoded little-endian."""

    return murmur3_32((value & _MASK32).to_bytes(4, "little"), seed)


def hash_combine_u32(values: Iterable[int], seed: int = 0) -> int:
    """Fold ``values`` into one 32-bit hash, chaining each digest as the next seed."""

    h = seed & _MASK32
    for v in values:
        h = murmur3_u32(v, h)
    return h


class ContextHasher:
    """Pure mapping from a token window and seed to a :class:`Displacement`.

    Summary
    -------
    Besides the pure :meth:`encode`, the hasher offers a streaming
    :meth:`step` that keeps a rolling window of recent tokens.  Path tracing
    only uses the pure entry points.

    Parameters
    ----------
    max_step : int, optional
        Largest absolute offset per axis, by default ``3``.
    seed : int, optional
        Per-column seed mixed into every hash, by default ``0``.
    method : str, optional
        ``"linear"`` (default) or ``"murmur3"``.
    context_length : int, optional
        Window width ``W``; the linear mix requires ``W == 2``.
    avoid_zero_step : bool, optional
        Replace ``(0, 0)`` with a unit move chosen from bits ``24..25``.

    Raises
    ------
    ValueError
        On unknown ``method`` or out-of-range parameters.
    """

    def __init__(
        self,
        max_step: int = 3,
        seed: int = 0,
        *,
        method: str = "linear",
        context_length: int = 2,
        avoid_zero_step: bool = False,
    ) -> None:
        if method not in METHODS:
            raise ValueError(f"unsupported displacement method: {method!r}")
        if max_step < 0:
            raise ValueError("max_step must be non-negative")
        if avoid_zero_step and max_step < 1:
            raise ValueError("avoid_zero_step requires max_step >= 1")
        if context_length < 1:
            raise ValueError("context_length must be positive")
        if method == "linear" and context_length != 2:
            raise ValueError("linear mixing uses a context window of exactly 2 tokens")
        self.max_step = int(max_step)
        self.seed = int(seed)
        self.method = method
        self.context_length = int(context_length)
        self.avoid_zero_step = bool(avoid_zero_step)
        self._buffer: Deque[int] = deque(maxlen=self.context_length)

    # ------------------------------------------------------------------
    # Pure hashing
    def mix(self, window: Sequence[int]) -> int:
        """Return the unsigned 32-bit mix of the last tokens in ``window``.

        A window holding a single token treats the missing previous token as
        ``0``.  An empty window mixes the seed alone.
        """

        context = list(window)[-self.context_length :]
        if self.method == "linear":
            cur = context[-1] if context else 0
            prev = context[-2] if len(context) >= 2 else 0
            return (cur * _LINEAR_A + prev * _LINEAR_B + self.seed) & _MASK32
        combined = hash_combine_u32(context, self.seed)
        return murmur3_u32(combined, self.seed)

    def from_mix(self, mixed: int) -> Displacement:
        """Reduce a 32-bit mix to a bounded displacement."""

        span = 2 * self.max_step + 1
        dx = (mixed % span) - self.max_step
        dy = ((mixed >> _DY_SHIFT[self.method]) % span) - self.max_step
        if self.avoid_zero_step and dx == 0 and dy == 0:
            direction = (mixed >> 24) & 3
            if direction == 0:
                dx = 1
            elif direction == 1:
                dx = -1
            elif direction == 2:
                dy = 1
            else:
                dy = -1
        return Displacement(int(dx), int(dy))

    def encode(self, window: Sequence[int]) -> Displacement:
        """Return the displacement for ``window`` (most recent token last)."""

        return self.from_mix(self.mix(window))

    __call__ = encode

    def displacements(self, tokens: Sequence[int]) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(dx, dy)`` arrays for steps ``1..len(tokens)-1``.

        Entry ``i - 1`` holds the displacement for window ending at
        ``tokens[i]``.  The linear method is evaluated as one vectorised
        ``int64`` batch masked to 32 bits.
        """

        n = len(tokens)
        if n < 2:
            empty = np.zeros(0, dtype=np.int64)
            return empty, empty.copy()
        if self.method != "linear":
            steps = [
                self.encode(tokens[max(0, i - self.context_length + 1) : i + 1])
                for i in range(1, n)
            ]
            return (
                np.fromiter((d.dx for d in steps), dtype=np.int64, count=n - 1),
                np.fromiter((d.dy for d in steps), dtype=np.int64, count=n - 1),
            )

        toks = np.array([int(t) & _MASK32 for t in tokens], dtype=np.int64)
        mixed = (toks[1:] * _LINEAR_A + toks[:-1] * _LINEAR_B + (self.seed & _MASK32)) & _MASK32
        span = 2 * self.max_step + 1
        dx = mixed % span - self.max_step
        dy = (mixed >> _DY_SHIFT["linear"]) % span - self.max_step
        if self.avoid_zero_step:
            zero = (dx == 0) & (dy == 0)
            direction = (mixed >> 24) & 3
            dx = np.where(zero & (direction == 0), 1, np.where(zero & (direction == 1), -1, dx))
            dy = np.where(zero & (direction == 2), 1, np.where(zero & (direction == 3), -1, dy))
        return dx.astype(np.int64), dy.astype(np.int64)

    # ------------------------------------------------------------------
    # Streaming interface
    def step(self, token: int) -> Displacement:
        """Push ``token`` into the rolling window and return its displacement."""

        self._buffer.append(int(token))
        return self.encode(list(self._buffer))

    def reset(self) -> None:
        """Clear the rolling window."""

        self._buffer.clear()


__all__ = [
    "ContextHasher",
    "METHODS",
    "hash_combine_u32",
    "murmur3_32",
    "murmur3_u32",
]
