"""Structured warning classes for the :mod:`potgrid` package."""
from __future__ import annotations


class PotGridWarning(UserWarning):
    """Base warning class for potgrid."""


class RestartWarning(PotGridWarning):
    """Restart proceeded without being able to verify the previous run."""


class ChunkRemainderWarning(PotGridWarning):
    """Chunk sizing leaves trailing grid points unowned."""


__all__ = [
    "PotGridWarning",
    "RestartWarning",
    "ChunkRemainderWarning",
]
