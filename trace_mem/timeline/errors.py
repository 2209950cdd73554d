# Copyright (c) 2025 Arne Deutsch, itemis AG, MIT License
"""Recoverable timeline errors.

Every error leaves the log exactly as it was before the failing call.
"""

from __future__ import annotations


class TimelineError(Exception):
    """Base class for event log and view errors."""


class OrderingViolation(TimelineError, ValueError):
    """An appended event's step is not strictly greater than the last step."""

    def __init__(self, step: int, last_step: int) -> None:
        super().__init__(f"event step {step} must be greater than last step {last_step}")
        self.step = step
        self.last_step = last_step


class IndexOutOfRange(TimelineError, IndexError):
    """A focus index or event step lies outside the stored log."""

    def __init__(self, index: int, length: int) -> None:
        super().__init__(f"index {index} outside log of length {length}")
        self.index = index
        self.length = length


class EmptyLogAccess(TimelineError, LookupError):
    """An operation needs a stored event (or column geometry) but the log is empty."""


__all__ = ["EmptyLogAccess", "IndexOutOfRange", "OrderingViolation", "TimelineError"]
