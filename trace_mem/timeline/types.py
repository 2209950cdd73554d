# Copyright (c) 2025 Arne Deutsch, itemis AG, MIT License
"""Dataclasses for timeline events and localization candidates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from trace_mem.spatial.types import Position


@dataclass(frozen=True)
class Event:
    """Externally supplied timeline record.

    ``locations`` holds one position per column in column order and may be
    shorter than the number of columns.
    """

    step: int
    text: str = ""
    locations: Tuple[Position, ...] = ()

    def __post_init__(self) -> None:
        if isinstance(self.step, bool) or not isinstance(self.step, int):
            raise TypeError(f"event step must be an int, got {type(self.step).__name__}")
        # pairs and {"x", "y"} mappings become Position; anything else raises ValueError
        object.__setattr__(
            self, "locations", tuple(Position.from_obj(loc) for loc in self.locations)
        )

    def wrapped(self, grid_size: int) -> "Event":
        """Return a copy with every location reduced into the grid."""

        return Event(self.step, self.text, tuple(p.wrap(grid_size) for p in self.locations))

    def as_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "text": self.text,
            "locations": [p.as_dict() for p in self.locations],
        }


@dataclass(frozen=True)
class LocalizationCandidate:
    """Scored location guess supplied by the backend; higher is better."""

    location: Position
    score: float
    column_id: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        rec: dict[str, Any] = {"location": self.location.as_dict(), "score": self.score}
        if self.column_id is not None:
            rec["columnId"] = self.column_id
        return rec


__all__ = ["Event", "LocalizationCandidate"]
