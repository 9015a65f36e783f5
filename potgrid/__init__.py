"""Core package for resumable, chunked potential grid sweeps."""
from . import constants, grid
from .errors import PotGridError

__all__ = ["constants", "grid", "PotGridError"]
