# Copyright (c) 2025 Arne Deutsch, itemis AG, MIT License
"""Value types for grid positions, displacements and traced steps.

Summary
-------
Positions live on a square toroidal grid; every coordinate is kept in
``[0, grid_size)``.  Displacements are bounded signed offsets produced by
:class:`trace_mem.spatial.hashing.ContextHasher` and are carried on steps as
annotation only.

Examples
--------
>>> Position(-1, 3).wrap(64)
Position(x=63, y=3)
>>> unpack_loc_key(pack_loc_key(5, 7))
(5, 7)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

_U16 = 0xFFFF
_U32 = 0xFFFFFFFF


def wrap_coord(value: int, grid_size: int) -> int:
    """Return ``value`` reduced into ``[0, grid_size)``."""

    return ((int(value) % grid_size) + grid_size) % grid_size


@dataclass(frozen=True)
class Displacement:
    """Signed step ``(dx, dy)`` bounded by ``max_step`` in each axis."""

    dx: int
    dy: int

    def as_dict(self) -> dict[str, int]:
        return {"dx": self.dx, "dy": self.dy}


@dataclass(frozen=True)
class Position:
    """Cell coordinate on the toroidal grid."""

    x: int
    y: int

    def wrap(self, grid_size: int) -> "Position":
        """Return the equivalent position with coordinates in ``[0, grid_size)``."""

        return Position(wrap_coord(self.x, grid_size), wrap_coord(self.y, grid_size))

    def moved(self, d: Displacement, grid_size: int) -> "Position":
        """Return the position reached by applying ``d`` with wraparound."""

        return Position(wrap_coord(self.x + d.dx, grid_size), wrap_coord(self.y + d.dy, grid_size))

    def as_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_obj(cls, obj: Any) -> "Position":
        """Build a position from ``{"x", "y"}`` mappings or ``(x, y)`` pairs.

        Raises
        ------
        ValueError
            If ``obj`` carries no integer coordinates.
        """

        if isinstance(obj, Position):
            return obj
        if isinstance(obj, Mapping):
            try:
                return cls(int(obj["x"]), int(obj["y"]))
            except (KeyError, TypeError, ValueError) as exc:
                raise ValueError(f"invalid location mapping: {obj!r}") from exc
        if isinstance(obj, (tuple, list)) and len(obj) == 2:
            try:
                return cls(int(obj[0]), int(obj[1]))
            except (TypeError, ValueError) as exc:
                raise ValueError(f"invalid location pair: {obj!r}") from exc
        raise ValueError(f"invalid location: {obj!r}")


@dataclass(frozen=True)
class Step:
    """One traced step; the seed step of a path has no displacement."""

    position: Position
    token: int
    displacement: Optional[Displacement] = None

    def as_dict(self) -> dict[str, Any]:
        rec: dict[str, Any] = {"x": self.position.x, "y": self.position.y, "token": self.token}
        if self.displacement is not None:
            rec.update(self.displacement.as_dict())
        return rec


# A path is an ordered, immutable sequence of steps.
Path = Tuple[Step, ...]


def pack_loc_key(x: int, y: int) -> int:
    """Pack ``(x, y)`` into an unsigned 32-bit location key."""

    return (((x & _U16) << 16) | (y & _U16)) & _U32


def unpack_loc_key(key: int) -> tuple[int, int]:
    """Inverse of :func:`pack_loc_key`."""

    key &= _U32
    return key >> 16, key & _U16


__all__ = [
    "Displacement",
    "Path",
    "Position",
    "Step",
    "pack_loc_key",
    "unpack_loc_key",
    "wrap_coord",
]
