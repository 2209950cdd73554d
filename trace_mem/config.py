# Copyright (c) 2025 Arne Deutsch, itemis AG, MIT License
"""Structured session configuration.

Summary
-------
``SessionConfig`` holds the read-only knobs of a timeline session: grid size,
displacement bound, hashing method, the column start offsets/seeds and the
token sequence the columns trace.  Defaults reproduce the reference tutorial
geometry.  The dataclass is registered with Hydra's ``ConfigStore`` so
``configs/session.yaml`` can use it as its schema.

Examples
--------
>>> cfg = load_config(overrides=["grid_size=32"])
>>> cfg.grid_size
32
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, List, Optional, Sequence

from hydra.core.config_store import ConfigStore
from omegaconf import DictConfig, OmegaConf

from trace_mem.spatial.columns import ColumnSpec
from trace_mem.spatial.hashing import METHODS

# Sample token sequence used by the tutorial paths.
REFERENCE_TOKENS: List[int] = [
    42, 17, 89, 23, 56, 78, 34, 91, 45, 12,
    67, 88, 33, 55, 77, 99, 11, 44, 66, 22,
]  # fmt: skip


def _default_columns() -> List[ColumnSpec]:
    return [ColumnSpec(15, 14, 0), ColumnSpec(18, 16, 100), ColumnSpec(13, 18, 200)]


@dataclass
class SessionConfig:
    """Session-wide grid and hashing settings."""

    name: str = "default"
    grid_size: int = 64
    max_step: int = 3
    context_length: int = 2
    method: str = "linear"
    avoid_zero_step: bool = False
    columns: List[ColumnSpec] = field(default_factory=_default_columns)
    tokens: List[int] = field(default_factory=lambda: list(REFERENCE_TOKENS))


# Register the schema so `@hydra.main` configs can extend it.
ConfigStore.instance().store(name="session_config", node=SessionConfig)


def validate_config(cfg: SessionConfig) -> SessionConfig:
    """Return a validated copy of ``cfg`` with column starts wrapped into the grid.

    Raises
    ------
    ValueError
        If a field is outside its allowed range.
    """

    if cfg.grid_size < 1:
        raise ValueError(f"grid_size must be >= 1, got {cfg.grid_size}")
    if cfg.max_step < 0:
        raise ValueError(f"max_step must be >= 0, got {cfg.max_step}")
    if cfg.context_length < 1:
        raise ValueError(f"context_length must be >= 1, got {cfg.context_length}")
    if cfg.method not in METHODS:
        raise ValueError(f"method must be one of {METHODS}, got {cfg.method!r}")
    if cfg.method == "linear" and cfg.context_length != 2:
        raise ValueError("context_length must be 2 for the linear method")
    if cfg.avoid_zero_step and cfg.max_step < 1:
        raise ValueError("avoid_zero_step requires max_step >= 1")
    g = cfg.grid_size
    return replace(
        cfg,
        columns=[
            ColumnSpec(((c.x % g) + g) % g, ((c.y % g) + g) % g, int(c.seed)) for c in cfg.columns
        ],
        tokens=[int(t) for t in cfg.tokens],
    )


def to_session_config(cfg: Any) -> SessionConfig:
    """Convert a ``DictConfig``/mapping/``SessionConfig`` into a validated object."""

    if isinstance(cfg, SessionConfig):
        return validate_config(cfg)
    merged = OmegaConf.merge(OmegaConf.structured(SessionConfig), cfg)
    return validate_config(OmegaConf.to_object(merged))  # type: ignore[arg-type]


def load_config(
    path: Optional[str | Path] = None, overrides: Sequence[str] = ()
) -> SessionConfig:
    """Merge structured defaults, an optional YAML file and dotlist overrides."""

    base: DictConfig = OmegaConf.structured(SessionConfig)
    parts: List[Any] = [base]
    if path is not None:
        loaded = OmegaConf.load(Path(path))
        if isinstance(loaded, DictConfig):
            # hydra-only keys do not belong to the schema
            loaded = OmegaConf.masked_copy(
                loaded, [k for k in loaded.keys() if k not in ("defaults", "hydra")]
            )
        parts.append(loaded)
    if overrides:
        parts.append(OmegaConf.from_dotlist(list(overrides)))
    merged = OmegaConf.merge(*parts)
    return validate_config(OmegaConf.to_object(merged))  # type: ignore[arg-type]


__all__ = [
    "REFERENCE_TOKENS",
    "SessionConfig",
    "load_config",
    "to_session_config",
    "validate_config",
]
