"""
Pydantic schemas for simulator options and batch files.
"""

from pomdpsim.schemas.config import SimulatorConfig, BatchOptions
from pomdpsim.schemas.batch import BatchSpec, RunSpec, load_batch, build_sims

__all__ = [
    "SimulatorConfig",
    "BatchOptions",
    "BatchSpec",
    "RunSpec",
    "load_batch",
    "build_sims",
]
