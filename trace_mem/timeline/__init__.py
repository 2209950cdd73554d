# Copyright (c) 2025 Arne Deutsch, itemis AG, MIT License
"""Event log, focus cursor and replay-based views.

See Also
--------
trace_mem.timeline.log
trace_mem.timeline.view
trace_mem.timeline.session
"""

from .errors import EmptyLogAccess, IndexOutOfRange, OrderingViolation, TimelineError
from .log import EventLog, LogSnapshot
from .session import TimelineSession
from .types import Event, LocalizationCandidate
from .view import StateView, best_candidate, replay_view

__all__ = [
    "EmptyLogAccess",
    "Event",
    "EventLog",
    "IndexOutOfRange",
    "LocalizationCandidate",
    "LogSnapshot",
    "OrderingViolation",
    "StateView",
    "TimelineError",
    "TimelineSession",
    "best_candidate",
    "replay_view",
]
