# Copyright (c) 2025 Arne Deutsch, itemis AG, MIT License
"""Trace the configured token sequence for every column and print JSON.

Example::

    python scripts/trace_paths.py grid_size=32 "tokens=[1,2,3,4]"
"""

import json
import logging
import sys
from pathlib import Path

import hydra
from omegaconf import DictConfig

sys.path.append(str(Path(__file__).resolve().parent.parent))

from trace_mem.config import to_session_config
from trace_mem.spatial import PathTracer, build_columns

log = logging.getLogger(__name__)


@hydra.main(version_base=None, config_path="../configs", config_name="session")
def main(cfg: DictConfig) -> None:
    """Hydra entry point printing per-column paths."""

    session_cfg = to_session_config(cfg)
    tracer = PathTracer(
        session_cfg.grid_size,
        session_cfg.max_step,
        method=session_cfg.method,
        context_length=session_cfg.context_length,
        avoid_zero_step=session_cfg.avoid_zero_step,
    )
    columns = build_columns(session_cfg.columns, session_cfg.tokens, tracer=tracer)
    log.info("traced %d columns over %d tokens", len(columns), len(session_cfg.tokens))
    out = {
        "grid_size": session_cfg.grid_size,
        "max_step": session_cfg.max_step,
        "method": session_cfg.method,
        "columns": [
            {
                "index": col.index,
                "start": col.start.as_dict(),
                "seed": col.seed,
                "path": [step.as_dict() for step in col.path],
            }
            for col in columns
        ],
    }
    print(json.dumps(out, indent=2))


if __name__ == "__main__":
    main()
