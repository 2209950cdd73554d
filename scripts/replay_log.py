# Copyright (c) 2025 Arne Deutsch, itemis AG, MIT License
"""Replay a saved JSONL timeline and print the view at one index."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

from trace_mem.config import load_config
from trace_mem.timeline import TimelineError, TimelineSession
from trace_mem.timeline.persistence import load_timeline

log = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""

    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--log", type=Path, required=True, help="JSONL timeline file")
    parser.add_argument("--config", type=Path, default=None, help="Session YAML config")
    parser.add_argument(
        "--index", type=int, default=None, help="Log index to view; defaults to the newest"
    )
    parser.add_argument(
        "--occupancy", action="store_true", help="Include the per-cell visit count grid"
    )
    parser.add_argument(
        "overrides", nargs="*", help="Config overrides in key=value form, e.g. grid_size=32"
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = parse_args(argv)
    try:
        cfg = load_config(args.config, args.overrides)
    except ValueError as exc:
        log.error("invalid configuration: %s", exc)
        return 2
    session = TimelineSession(cfg)
    try:
        load_timeline(args.log, session)
        view = session.view_at(args.index)
    except (TimelineError, ValueError, OSError) as exc:
        log.error("cannot replay %s: %s", args.log, exc)
        return 1
    out = view.as_dict()
    if args.occupancy:
        out["occupancy"] = view.occupancy(session.grid_size).tolist()
    print(json.dumps(out, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
