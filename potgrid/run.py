"""Command line entry point for building potential files.

Usage::

    potgrid [-h] [-r] [-c N] [node]
    python -m potgrid.run --config configs/base.yml -c 3 2
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import config_utils, constants
from .chunks import validate_chunk_id
from .errors import PotGridError
from .sweep import run_node

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="potgrid",
        description="Build the potential file of one node by sweeping its grid through the engine.",
    )
    parser.add_argument(
        "-r",
        "--restart",
        action="store_true",
        help=(
            "Restart from an existing (unfinished) potential_{node}.dat file. "
            "One must be careful not to alter the grid settings during this process."
        ),
    )
    parser.add_argument(
        "-c",
        "--chunk",
        type=int,
        metavar="N",
        help=f"Enable chunking and build chunk N of chunking.total (default {constants.CHUNK_TOTAL}).",
    )
    parser.add_argument("node", nargs="?", type=int, default=1, help="Node to build (default: 1).")
    parser.add_argument("--config", type=Path, help="Path to YAML configuration")
    parser.add_argument(
        "--override",
        action="append",
        nargs="+",
        metavar="PATH=VALUE",
        help="Apply configuration overrides using dotted paths; e.g. --override grid.cpus=10",
    )
    parser.add_argument(
        "--overrides-file",
        action="append",
        type=Path,
        help="Load overrides from a file (one PATH=VALUE per line).",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a console progress bar with ETA over the owned points.",
    )
    parser.add_argument(
        "--quiet",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Suppress INFO logs and Python warnings (defaults to io.quiet).",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable DEBUG logging.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run the sweep and report; returns the exit status."""

    parser = build_parser()
    args = parser.parse_args(argv)

    override_list: List[str] = []
    try:
        if args.overrides_file:
            for override_path in args.overrides_file:
                override_list.extend(config_utils.read_overrides_file(override_path))
        if args.override:
            for group in args.override:
                override_list.extend(group)
        cfg = config_utils.load_config(args.config, overrides=override_list)
    except (PotGridError, OSError, ValueError) as exc:
        print(f"Error loading configuration: {exc}", file=sys.stderr)
        return 1

    quiet = cfg.io.quiet if args.quiet is None else bool(args.quiet)
    if args.verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    config_utils.configure_logging(level, suppress_warnings=quiet)
    if args.progress:
        cfg.io.progress = True

    try:
        if args.chunk is not None:
            validate_chunk_id(args.chunk, cfg.chunking.total)
        result = run_node(cfg, args.node, chunk_id=args.chunk, restart=args.restart)
    except PotGridError as exc:
        logger.error("%s", exc)
        return 1

    print(f"{result.output_path} constructed successfully.")
    return 0


__all__ = ["build_parser", "main"]


if __name__ == "__main__":  # pragma: no cover - standard CLI entrypoint
    sys.exit(main())
