#!/usr/bin/env python3
"""Merge finished chunk files of one node into a single potential file.

Chunk ``k`` of a node lives in ``potential_<node>.c<k>.dat``.  Every chunk
must be complete before merging; the merged file is written in chunk order,
which is also the canonical grid order.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from potgrid import config_utils
from potgrid.chunks import all_chunks, dropped_points
from potgrid.errors import PotGridError
from potgrid.io import writer
from potgrid.sweep import geometry_from_config


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description=__doc__)
    ap.add_argument("node", nargs="?", type=int, default=1)
    ap.add_argument("--config", type=Path, default=None)
    ap.add_argument("--indir", type=Path, default=None, help="Directory with chunk files (default: io.outdir)")
    ap.add_argument("--out", type=Path, default=None, help="Merged file (default: potential_<node>.dat in indir)")
    args = ap.parse_args(argv)

    config_utils.configure_logging(logging.INFO)
    try:
        cfg = config_utils.load_config(args.config)
        dims = geometry_from_config(cfg).dims
        ranges = all_chunks(dims.total, cfg.chunking.total, remainder=cfg.chunking.remainder)
        indir = args.indir or Path(cfg.io.outdir)
        paths = [indir / writer.potential_filename(args.node, rng.chunk_id) for rng in ranges]
        dest = args.out or indir / writer.potential_filename(args.node)
        written = writer.merge_chunk_files(paths, [rng.size for rng in ranges], dest)
    except (PotGridError, OSError, ValueError) as exc:
        print(f"[error] {exc}")
        return 1

    print(f"[info] wrote {written} lines to {dest}")
    if cfg.chunking.remainder == "drop":
        leftover = dropped_points(dims.total, cfg.chunking.total)
        if leftover:
            print(f"[warn] {leftover} trailing grid points are not covered by any chunk")
    return 0


if __name__ == "__main__":
    sys.exit(main())
