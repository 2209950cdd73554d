# Copyright (c) 2025 Arne Deutsch, itemis AG, MIT License
"""Spatial path encoding package.

Summary
-------
Provides the deterministic ``ContextHasher``, the toroidal ``PathTracer`` and
``build_columns`` for tracing one token sequence across several columns.

Examples
--------
>>> from trace_mem.spatial import PathTracer, Position

See Also
--------
trace_mem.spatial.hashing
trace_mem.spatial.tracer
trace_mem.spatial.columns
"""

from .columns import Column, ColumnSpec, build_columns
from .hashing import ContextHasher
from .tracer import PathTracer, trace_path
from .types import Displacement, Path, Position, Step, pack_loc_key, unpack_loc_key

__all__ = [
    "Column",
    "ColumnSpec",
    "ContextHasher",
    "Displacement",
    "Path",
    "PathTracer",
    "Position",
    "Step",
    "build_columns",
    "pack_loc_key",
    "trace_path",
    "unpack_loc_key",
]
