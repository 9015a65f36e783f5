"""Recover the resume point of an interrupted sweep.

The output file is the only persisted state: its line count is the number
of points already solved.  For unchunked runs that count is converted into
the :class:`~potgrid.grid.GridIndex` of the next unsolved point; chunked runs
simply move the start of their owned range forward, since a chunk file only
ever holds that chunk's points in linear order.

The convention used throughout is *index of the next unsolved point*:
``solved`` points cover linear indices ``0 .. solved - 1`` so the sweep
resumes at ``from_linear(solved)``.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from .chunks import ChunkRange
from .errors import RestartError
from .grid import GridDimensions, GridIndex, from_linear, iter_indices

logger = logging.getLogger(__name__)


class ResumeState(enum.Enum):
    PENDING = "pending"
    NORMAL = "normal"


@dataclass(frozen=True)
class ResumeGuard:
    """One-shot lower bound applied until the first point is dispatched.

    ``PENDING`` carries the recovered position; every point before it is
    skipped.  After the first dispatch the driver swaps in :meth:`normal`
    and iteration proceeds unfiltered.
    """

    state: ResumeState
    position: Optional[GridIndex] = None

    @classmethod
    def pending(cls, position: GridIndex) -> "ResumeGuard":
        return cls(ResumeState.PENDING, GridIndex(*position))

    @classmethod
    def normal(cls) -> "ResumeGuard":
        return cls(ResumeState.NORMAL, None)

    @property
    def is_pending(self) -> bool:
        return self.state is ResumeState.PENDING

    def skips_row(self, x: int, y: int) -> bool:
        """True when the whole ``(x, y)`` row lies before the resume point."""

        if not self.is_pending:
            return False
        assert self.position is not None
        return (x, y) < (self.position.x, self.position.y)

    def admits(self, index: GridIndex) -> bool:
        if not self.is_pending:
            return True
        assert self.position is not None
        return tuple(index) >= tuple(self.position)

    def released(self) -> "ResumeGuard":
        return ResumeGuard.normal()


def resume_position(solved: int, dims: GridDimensions) -> Optional[GridIndex]:
    """Closed-form position of the next unsolved point.

    Returns ``None`` when every point is already solved.
    """

    if solved < 0:
        raise RestartError(f"solved count cannot be negative ({solved})")
    if solved > dims.total:
        raise RestartError(
            f"{solved} solved points exceed the {dims.total} points of grid {dims.as_tuple()}; "
            "were the grid settings changed since the file was written?"
        )
    if solved == dims.total:
        return None
    x, rem = divmod(solved, dims.ny * dims.nz)
    y, z = divmod(rem, dims.nz)
    return GridIndex(x, y, z)


def scan_resume_position(solved: int, dims: GridDimensions) -> Optional[GridIndex]:
    """Walk the canonical order until ``solved`` points have been passed.

    Equivalent to :func:`resume_position`; kept as an independent cross-check.
    """

    if solved < 0 or solved > dims.total:
        raise RestartError(f"solved count {solved} is not representable on grid {dims.as_tuple()}")
    counter = 0
    for index in iter_indices(dims):
        if counter == solved:
            return index
        counter += 1
    return None


@dataclass(frozen=True)
class RestartPlan:
    """Where a (possibly restarted) run starts."""

    solved: int
    owned: ChunkRange
    guard: ResumeGuard

    @property
    def complete(self) -> bool:
        return self.owned.size == 0


def fresh_plan(owned: ChunkRange) -> RestartPlan:
    return RestartPlan(solved=0, owned=owned, guard=ResumeGuard.normal())


def plan_restart(
    solved: int,
    dims: GridDimensions,
    owned: ChunkRange,
    *,
    chunked: bool,
) -> RestartPlan:
    """Turn a solved-line count into the starting state of the sweep."""

    if chunked:
        if solved > owned.size:
            raise RestartError(
                f"chunk file holds {solved} lines but chunk {owned.chunk_id} owns only {owned.size} points"
            )
        logger.info(
            "Current potential chunk has %d of %d points already solved.", solved, owned.size
        )
        advanced = owned.advanced(solved)
        logger.info("Changed start index to: %d", advanced.start)
        return RestartPlan(solved=solved, owned=advanced, guard=ResumeGuard.normal())

    logger.info("Current potential has %d of %d points already solved.", solved, dims.total)
    position = resume_position(solved, dims)
    if position is None:
        return RestartPlan(solved=solved, owned=owned.advanced(solved), guard=ResumeGuard.normal())
    logger.info("Starting at position %s.", tuple(position))
    return RestartPlan(solved=solved, owned=owned, guard=ResumeGuard.pending(position))


__all__ = [
    "ResumeState",
    "ResumeGuard",
    "RestartPlan",
    "resume_position",
    "scan_resume_position",
    "fresh_plan",
    "plan_restart",
]
