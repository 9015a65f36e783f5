"""Partition a flattened slab into equally sized chunks.

Chunk ``k`` of ``N`` owns the inclusive linear range
``[per_chunk * (k - 1), per_chunk * k - 1]`` with
``per_chunk = total_points // N``.  Integer division leaves
``total_points % N`` trailing points that no chunk owns under the default
``"drop"`` policy; ``"absorb"`` hands them to the last chunk instead.
"""
from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import List, Literal

from .errors import ConfigurationError
from .warnings import ChunkRemainderWarning

RemainderPolicy = Literal["drop", "absorb"]


@dataclass(frozen=True)
class ChunkRange:
    """Inclusive linear-index range owned by one invocation."""

    start: int
    end: int
    chunk_id: int = 1
    chunk_total: int = 1

    @property
    def size(self) -> int:
        return max(self.end - self.start + 1, 0)

    def __contains__(self, linear: object) -> bool:
        return isinstance(linear, int) and self.start <= linear <= self.end

    def advanced(self, solved: int) -> "ChunkRange":
        """Return the range left after ``solved`` points were written."""

        return ChunkRange(self.start + solved, self.end, self.chunk_id, self.chunk_total)


def validate_chunk_id(chunk_id: int, chunk_total: int) -> None:
    if chunk_total < 1:
        raise ConfigurationError(f"chunk total must be positive, got {chunk_total}")
    if chunk_id == 0:
        raise ConfigurationError("Chunk value cannot be 0.")
    if chunk_id < 0 or chunk_id > chunk_total:
        raise ConfigurationError(
            f"Chunk value: {chunk_id} is outside the valid range 1..{chunk_total}."
        )


def points_per_chunk(total_points: int, chunk_total: int) -> int:
    return total_points // chunk_total


def dropped_points(total_points: int, chunk_total: int) -> int:
    """Points left unowned by the ``"drop"`` policy."""

    return total_points - points_per_chunk(total_points, chunk_total) * chunk_total


def chunk_range(
    total_points: int,
    chunk_total: int,
    chunk_id: int,
    *,
    remainder: RemainderPolicy = "drop",
) -> ChunkRange:
    """Return the range owned by ``chunk_id`` (1-based)."""

    validate_chunk_id(chunk_id, chunk_total)
    if total_points <= 0:
        raise ConfigurationError(f"total_points must be positive, got {total_points}")
    if remainder not in ("drop", "absorb"):
        raise ConfigurationError(f"unknown chunk remainder policy {remainder!r}")
    per_chunk = points_per_chunk(total_points, chunk_total)
    start = per_chunk * (chunk_id - 1)
    end = per_chunk * chunk_id - 1
    if chunk_id == chunk_total:
        leftover = dropped_points(total_points, chunk_total)
        if leftover and remainder == "absorb":
            end = total_points - 1
        elif leftover:
            warnings.warn(
                f"{leftover} trailing points beyond index {end} belong to no chunk",
                ChunkRemainderWarning,
                stacklevel=2,
            )
    return ChunkRange(start=start, end=end, chunk_id=chunk_id, chunk_total=chunk_total)


def full_range(total_points: int) -> ChunkRange:
    """Range covering the whole slab for unchunked runs."""

    return ChunkRange(start=0, end=total_points - 1)


def all_chunks(
    total_points: int, chunk_total: int, *, remainder: RemainderPolicy = "drop"
) -> List[ChunkRange]:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", ChunkRemainderWarning)
        return [
            chunk_range(total_points, chunk_total, k, remainder=remainder)
            for k in range(1, chunk_total + 1)
        ]


__all__ = [
    "ChunkRange",
    "RemainderPolicy",
    "validate_chunk_id",
    "points_per_chunk",
    "dropped_points",
    "chunk_range",
    "full_range",
    "all_chunks",
]
