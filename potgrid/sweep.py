"""Sequential sweep driver.

The driver walks the slab in canonical ``(x, y, z)`` order, keeps the points
that fall inside the owned linear range and past the resume point, and sends
each ``(x, y)`` row of surviving points to the engine as one request.  The
engine must answer with one energy per point in submission order; the
converted values are appended to the potential file before the next row is
dispatched.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from . import provenance
from .chunks import ChunkRange, chunk_range, full_range
from .engine import Engine, RequestTemplates
from .errors import ConfigurationError, OutputFileError
from .extract import extract_energies
from .grid import GridDimensions, GridIndex, SlabGeometry, to_linear
from .io import writer
from .restart import ResumeGuard, RestartPlan, fresh_plan, plan_restart
from .runtime.progress import ProgressReporter
from .schema import Config

logger = logging.getLogger(__name__)

RowBatch = Tuple[int, int, List[GridIndex]]


def iter_row_batches(dims: GridDimensions, owned: ChunkRange, guard: ResumeGuard) -> Iterator[RowBatch]:
    """Yield ``(x, y, points)`` for every row holding at least one owned point.

    ``guard`` filters points until the first row is yielded and is released
    afterwards; later rows are limited by ``owned`` alone.
    """

    if owned.size == 0:
        return
    for x in range(dims.nx):
        for y in range(dims.ny):
            row_start = x * dims.plane + y * dims.nz
            if row_start > owned.end:
                return
            if row_start + dims.nz - 1 < owned.start or guard.skips_row(x, y):
                continue
            batch: List[GridIndex] = []
            for z in range(dims.nz):
                index = GridIndex(x, y, z)
                if to_linear(index, dims) in owned and guard.admits(index):
                    batch.append(index)
            if batch:
                yield x, y, batch
                guard = guard.released()


@dataclass
class SweepResult:
    output_path: Path
    solved_before: int
    points_written: int
    rows_dispatched: int
    owned_points: int

    @property
    def total_solved(self) -> int:
        return self.solved_before + self.points_written


def run_sweep(
    *,
    geometry: SlabGeometry,
    node: int,
    engine: Engine,
    output: writer.OutputFile,
    plan: RestartPlan,
    energy_factor: float,
    progress: Optional[ProgressReporter] = None,
) -> Tuple[int, int]:
    """Dispatch every remaining row; return ``(points_written, rows)``."""

    dims = geometry.dims
    points = 0
    rows = 0
    for x, y, batch in iter_row_batches(dims, plan.owned, plan.guard):
        logger.info("%d, %d.", x, y)
        coords = [geometry.coordinate_of(index, node) for index in batch]
        response = engine.run(engine.request_for(coords))
        values = extract_energies(response, len(batch), factor=energy_factor)
        output.append(values)
        points += len(values)
        rows += 1
        if progress is not None:
            progress.advance(len(values))
    return points, rows


def geometry_from_config(cfg: Config) -> SlabGeometry:
    grid_cfg = cfg.grid
    return SlabGeometry(
        numx=grid_cfg.numx,
        numy=grid_cfg.numy,
        numz=grid_cfg.numz,
        cpus=grid_cfg.cpus,
        padding=grid_cfg.padding,
        lattice_a=grid_cfg.lattice_a,
    )


def engine_from_config(cfg: Config) -> Engine:
    engine_cfg = cfg.engine
    templates = RequestTemplates.from_files(
        engine_cfg.cluster_nn,
        engine_cfg.cluster_2nn,
        header=engine_cfg.header,
        library=engine_cfg.library,
    )
    return Engine(
        templates=templates,
        command=list(engine_cfg.command),
        env=dict(engine_cfg.env),
        cwd=engine_cfg.workdir,
    )


def run_node(
    cfg: Config,
    node: int = 1,
    *,
    chunk_id: Optional[int] = None,
    restart: bool = False,
    engine: Optional[Engine] = None,
) -> SweepResult:
    """Build (or resume) the potential file of ``node``.

    ``chunk_id`` restricts the run to one chunk of ``cfg.chunking.total``;
    ``restart`` continues an existing file instead of truncating it.
    """

    if node < 1:
        raise ConfigurationError(f"node must be at least 1, got {node}")
    geometry = geometry_from_config(cfg)
    dims = geometry.dims
    chunked = chunk_id is not None
    if chunked:
        owned = chunk_range(dims.total, cfg.chunking.total, chunk_id, remainder=cfg.chunking.remainder)
    else:
        owned = full_range(dims.total)

    if engine is None:
        engine = engine_from_config(cfg)

    logger.info("Building potential file for node: %d", node)
    if chunked:
        logger.info(
            "Current job is for chunk %d of %d. Points per chunk: %d",
            owned.chunk_id,
            owned.chunk_total,
            owned.size,
        )
        logger.info("Index at start: %d, index at end: %d.", owned.start, owned.end)

    out_path = Path(cfg.io.outdir) / writer.potential_filename(node, chunk_id)
    templates = [p for p in (cfg.engine.cluster_nn, cfg.engine.cluster_2nn) if p is not None]
    manifest = provenance.build_manifest(
        dims=dims, node=node, owned=owned, chunked=chunked, templates=templates
    )
    manifest_file = provenance.manifest_path(out_path)

    if restart:
        if not out_path.exists():
            raise OutputFileError(f"Issue with {out_path}: no such file to restart from")
        solved = writer.count_solved(out_path)
        provenance.check_manifest(writer.read_manifest(manifest_file), manifest)
        plan = plan_restart(solved, dims, owned, chunked=chunked)
        output = writer.OutputFile.reopen(out_path)
    else:
        plan = fresh_plan(owned)
        output = writer.OutputFile.create(out_path)
        writer.write_manifest(manifest, manifest_file)

    progress = ProgressReporter(
        owned.size,
        initial=plan.solved,
        enabled=cfg.io.progress,
        label=out_path.name,
    )
    with output:
        if plan.complete:
            logger.info("%s already holds every owned point; nothing to do.", out_path)
            points, rows = 0, 0
        else:
            points, rows = run_sweep(
                geometry=geometry,
                node=node,
                engine=engine,
                output=output,
                plan=plan,
                energy_factor=cfg.engine.energy_factor,
                progress=progress,
            )
    progress.finish()
    return SweepResult(
        output_path=out_path,
        solved_before=plan.solved,
        points_written=points,
        rows_dispatched=rows,
        owned_points=owned.size,
    )


__all__ = [
    "RowBatch",
    "SweepResult",
    "iter_row_batches",
    "run_sweep",
    "geometry_from_config",
    "engine_from_config",
    "run_node",
]
