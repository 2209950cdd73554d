# Copyright (c) 2025 Arne Deutsch, itemis AG, MIT License
"""Shared helpers for timeline sessions."""

from .telemetry import TimelineRegistry, TimelineStats, timeline_registry

__all__ = ["TimelineRegistry", "TimelineStats", "timeline_registry"]
