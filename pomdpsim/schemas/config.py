"""Validated options for simulators and batch runs."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from pomdpsim.config import Config


class SimulatorConfig(BaseModel):
    """Options shared by the single-run drivers."""

    max_steps: Optional[int] = Field(default=None, ge=0, description="Hard step ceiling (defaults to Config.DEFAULT_MAX_STEPS)")
    seed: Optional[int] = Field(default=None, ge=0, description="Seed for the simulator's random source")
    eps: Optional[float] = Field(default=None, gt=0, description="Rollout stops once gamma^t drops below eps")
    show_progress: bool = Field(default=False, description="Render a progress bar")
    capture_exception: bool = Field(default=False, description="Store run errors on the history instead of raising")

    model_config = ConfigDict(extra="forbid")


class BatchOptions(BaseModel):
    """Execution options for batch runs."""

    n_workers: int = Field(default_factory=lambda: Config.N_WORKERS, ge=1, description="Number of workers")
    backend: Literal["sequential", "thread", "process"] = Field(
        default_factory=lambda: Config.PARALLEL_BACKEND, description="Execution backend"
    )
    show_progress: bool = Field(default_factory=lambda: Config.SHOW_PROGRESS, description="Render a progress bar")

    model_config = ConfigDict(extra="forbid")
