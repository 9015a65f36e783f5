"""Configuration schema for potential grid sweeps.

The models mirror the YAML layout under ``configs/``.  Every field has a
default reproducing the production sweep, so ``Config()`` is a valid
configuration on its own.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from . import constants
from .errors import ConfigurationError


class GridConfig(BaseModel):
    """Base resolution and lattice of the logical grid."""

    numx: int = Field(constants.NUM_X, ge=2, description="Base resolution along x")
    numy: int = Field(constants.NUM_Y, ge=2, description="Base resolution along y")
    numz: int = Field(constants.NUM_Z, ge=2, description="Base resolution along z (all nodes)")
    cpus: int = Field(constants.CPUS, ge=1, description="Number of z-slabs (nodes)")
    padding: int = Field(
        constants.BOUNDARY_PADDING,
        ge=0,
        description="Boundary cells appended to every axis",
    )
    lattice_a: float = Field(constants.LATTICE_A, gt=0.0, description="Lattice spacing")

    @model_validator(mode="after")
    def _check_cpus(self) -> "GridConfig":
        if self.cpus > self.numz:
            raise ConfigurationError(f"grid.cpus ({self.cpus}) cannot exceed grid.numz ({self.numz})")
        return self


class EngineConfig(BaseModel):
    """How the external engine is launched and what every request embeds."""

    command: List[str] = Field(default_factory=lambda: ["./gulp"], description="Engine argv")
    env: Dict[str, str] = Field(
        default_factory=lambda: {"GULP_LIB": "Libraries", "GULP_DOC": "Docs"},
        description="Variables set on top of the inherited environment",
    )
    workdir: Optional[Path] = Field(None, description="Working directory of the engine process")
    header: str = Field(constants.JOB_HEADER, description="Leading job-control directive")
    library: str = Field(constants.LIBRARY, description="Potential library directive")
    cluster_nn: Path = Field(Path(constants.CLUSTER_NN_FILE), description="Nearest-neighbour cluster")
    cluster_2nn: Optional[Path] = Field(
        Path(constants.CLUSTER_2NN_FILE),
        description="Second-nearest-neighbour cluster; null drops the rigid region block",
    )
    energy_factor: float = Field(constants.ENERGY_FACTOR, description="eV conversion factor")

    @field_validator("command")
    @classmethod
    def _command_not_empty(cls, value: List[str]) -> List[str]:
        if not value or not str(value[0]).strip():
            raise ConfigurationError("engine.command must name an executable")
        return value


class ChunkingConfig(BaseModel):
    total: int = Field(constants.CHUNK_TOTAL, ge=1, description="Chunks per slab")
    remainder: Literal["drop", "absorb"] = Field(
        "drop",
        description="'drop' leaves total % chunks trailing points unowned; 'absorb' gives them to the last chunk",
    )


class IOConfig(BaseModel):
    outdir: Path = Field(Path("."), description="Directory holding potential files")
    quiet: bool = Field(False, description="Only log warnings and errors")
    progress: bool = Field(False, description="Show a progress bar with ETA")


class Config(BaseModel):
    """Top-level configuration object."""

    grid: GridConfig = Field(default_factory=GridConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    io: IOConfig = Field(default_factory=IOConfig)


__all__ = ["GridConfig", "EngineConfig", "ChunkingConfig", "IOConfig", "Config"]
