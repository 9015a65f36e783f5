"""Build-time constants for the potential grid sweep.

The defaults reproduce the production sweep: a 300³ base resolution split
over 30 z-slabs, each padded by six boundary cells per axis.  With those
numbers a slab holds ``306 * 306 * 16`` points, which 48 chunks divide
evenly.
"""
from __future__ import annotations

# Number of chunks a slab is cut into when chunking is enabled
CHUNK_TOTAL: int = 48

# Extra cells added to every axis of the base resolution
BOUNDARY_PADDING: int = 6

# Base resolution of the full logical grid
NUM_X: int = 300
NUM_Y: int = 300
NUM_Z: int = 300

# Number of z-slabs ("nodes") the logical grid is split into
CPUS: int = 30

# Lattice spacing (engine length units)
LATTICE_A: float = 0.0035

# eV -> output energy units
ENERGY_FACTOR: float = 239.2311

# Engine output line carrying one result per submitted point
FINAL_ENERGY_PATTERN: str = r"Final energy =\s+(-?\d+\.?\d+)\s+eV"

# Request vocabulary
JOB_HEADER: str = "conp opti"
LIBRARY: str = "streitzmintmire"
CLUSTER_NN_FILE: str = "clusternn.xyz"
CLUSTER_2NN_FILE: str = "cluster2nn_wo_nn.xyz"

COORD_DECIMALS: int = 5
RESULT_DECIMALS: int = 6
