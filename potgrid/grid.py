"""Grid utilities for the potential sweep.

A sweep covers one z-slab ("node") of a larger logical lattice.  Points are
addressed by a :class:`GridIndex` ``(x, y, z)`` and enumerated
lexicographically; the position of an index in that enumeration is its
linear index.  Every component that needs to know "how far along" a run is
(dispatch, restart, chunk bounds) goes through :func:`to_linear` and
:func:`from_linear`, so the enumeration order must never change.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, NamedTuple, Tuple

import numpy as np

from . import constants
from .errors import ConfigurationError


class GridIndex(NamedTuple):
    """Integer cell index; tuple ordering is the canonical sweep order."""

    x: int
    y: int
    z: int


@dataclass(frozen=True)
class GridDimensions:
    """Iteration bounds ``(nx, ny, nz)`` of one slab."""

    nx: int
    ny: int
    nz: int

    def __post_init__(self) -> None:
        if self.nx <= 0 or self.ny <= 0 or self.nz <= 0:
            raise ConfigurationError(
                f"grid dimensions must be positive, got ({self.nx}, {self.ny}, {self.nz})"
            )

    @property
    def total(self) -> int:
        return self.nx * self.ny * self.nz

    @property
    def plane(self) -> int:
        """Number of points sharing one x value."""
        return self.ny * self.nz

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.nx, self.ny, self.nz)

    def contains(self, index: GridIndex) -> bool:
        return 0 <= index.x < self.nx and 0 <= index.y < self.ny and 0 <= index.z < self.nz


def to_linear(index: GridIndex, dims: GridDimensions) -> int:
    """Return ``x * (ny * nz) + y * nz + z``."""

    if not dims.contains(index):
        raise ValueError(f"{tuple(index)} lies outside grid {dims.as_tuple()}")
    return index.x * dims.plane + index.y * dims.nz + index.z


def from_linear(linear: int, dims: GridDimensions) -> GridIndex:
    """Inverse of :func:`to_linear` over ``[0, dims.total)``."""

    if not 0 <= linear < dims.total:
        raise ValueError(f"linear index {linear} outside [0, {dims.total})")
    x, rem = divmod(linear, dims.plane)
    y, z = divmod(rem, dims.nz)
    return GridIndex(x, y, z)


def iter_indices(dims: GridDimensions) -> Iterator[GridIndex]:
    """Yield every index of ``dims`` in canonical order."""

    for x in range(dims.nx):
        for y in range(dims.ny):
            for z in range(dims.nz):
                yield GridIndex(x, y, z)


@dataclass(frozen=True)
class SlabGeometry:
    """Affine map from slab cells to physical coordinates.

    Parameters
    ----------
    numx, numy, numz:
        Base resolution of the full logical lattice (before padding).
    cpus:
        Number of slabs the z axis is split into.
    padding:
        Boundary cells appended to every axis.
    lattice_a:
        Lattice spacing.
    """

    numx: int = constants.NUM_X
    numy: int = constants.NUM_Y
    numz: int = constants.NUM_Z
    cpus: int = constants.CPUS
    padding: int = constants.BOUNDARY_PADDING
    lattice_a: float = constants.LATTICE_A

    def __post_init__(self) -> None:
        if min(self.numx, self.numy, self.numz) < 2:
            raise ConfigurationError("numx, numy and numz must each be at least 2")
        if self.cpus < 1 or self.cpus > self.numz:
            raise ConfigurationError(f"cpus must lie in [1, numz={self.numz}], got {self.cpus}")
        if self.padding < 0:
            raise ConfigurationError("padding must be non-negative")
        if not self.lattice_a > 0.0:
            raise ConfigurationError("lattice_a must be positive")

    @property
    def distnumz(self) -> int:
        """z cells owned by one node before padding."""
        return self.numz // self.cpus

    @property
    def dims(self) -> GridDimensions:
        return GridDimensions(
            self.numx + self.padding,
            self.numy + self.padding,
            self.distnumz + self.padding,
        )

    def coordinate_of(self, index: GridIndex, node: int) -> Tuple[float, float, float]:
        """Return the physical ``(x, y, z)`` of ``index`` on ``node``.

        The arithmetic runs in single precision with a fixed operation order,
        so repeated calls (and restarted runs) produce bit-identical values.
        """

        f32 = np.float32
        a = f32(self.lattice_a)
        a2 = a / f32(2.0)
        numx = f32(self.numx)
        numy = f32(self.numy)
        numz = f32(self.numz)
        grx = numx * a2 - a2
        gry = numy * a2 - a2
        grz = numz * a2 - a2
        one = f32(1.0)
        two = f32(2.0)
        three_a = f32(3.0) * a

        tx = -(grx + three_a) + f32(index.x) * (two * grx) / (numx - one)
        ty = -(gry + three_a) + f32(index.y) * (two * gry) / (numy - one)
        shifted_z = f32(index.z) + (f32(node) - one) * f32(self.distnumz)
        tz = -(grz + three_a) + shifted_z * (two * grz) / (numz - one)
        return float(tx), float(ty), float(tz)


__all__ = [
    "GridIndex",
    "GridDimensions",
    "SlabGeometry",
    "to_linear",
    "from_linear",
    "iter_indices",
]
