"""Schema and builder for YAML batch files."""

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from pomdpsim.config import Config
from pomdpsim.errors import ConfigurationError
from pomdpsim.models import (
    AlwaysFeed,
    BabyPOMDP,
    FeedWhenCrying,
    SimpleGridWorld,
    Starve,
    TigerPOMDP,
)
from pomdpsim.pomdp.interfaces import DecisionProcess, Policy, Updater
from pomdpsim.pomdp.policies import FixedPolicy, MyopicPolicy, RandomPolicy, ThresholdPolicy
from pomdpsim.pomdp.updaters import DiscreteUpdater, NothingUpdater, PreviousObservationUpdater
from pomdpsim.simulators.parallel import Sim

ProblemName = Literal["tiger", "crying_baby", "gridworld"]
PolicyName = Literal[
    "random", "fixed", "myopic", "threshold", "feed_when_crying", "always_feed", "starve"
]
UpdaterName = Literal["discrete", "nothing", "previous_observation"]


class RunSpec(BaseModel):
    """One group of runs: a problem/policy pair simulated once per seed."""
    name: Optional[str] = Field(default=None, description="Label for the group (defaults to problem_policy)")
    problem: ProblemName = Field(..., description="Predefined problem")
    problem_params: Dict[str, Any] = Field(default_factory=dict, description="Problem constructor arguments")
    policy: PolicyName = Field(..., description="Policy type")
    policy_params: Dict[str, Any] = Field(default_factory=dict, description="Policy constructor arguments")
    updater: Optional[UpdaterName] = Field(default=None, description="Belief updater (policy default if omitted)")
    max_steps: Optional[int] = Field(default=None, ge=0, description="Step ceiling (batch default if omitted)")
    seeds: List[int] = Field(default_factory=lambda: [Config.DEFAULT_RANDOM_SEED], min_length=1, description="One run per seed")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Extra columns for the result rows")

    @field_validator("seeds")
    @classmethod
    def validate_seeds(cls, v: List[int]) -> List[int]:
        if any(seed < 0 for seed in v):
            raise ValueError("seeds must be non-negative")
        return v

    @property
    def label(self) -> str:
        return self.name or f"{self.problem}_{self.policy}"


class OutputsConfig(BaseModel):
    """Output configuration."""
    out_dir: str = Field(default_factory=lambda: str(Config.RUNS_DIR), description="Output directory")
    save_csv: bool = Field(default=True, description="Save the per-run result table")


class BatchSpec(BaseModel):
    """Schema for batch files."""
    name: str = Field(..., description="Batch name")
    description: Optional[str] = Field(default=None, description="Batch description")
    max_steps: Optional[int] = Field(default=None, ge=0, description="Default step ceiling for every run")
    n_workers: int = Field(default=1, ge=1, description="Number of workers")
    backend: Literal["sequential", "thread", "process"] = Field(default="thread", description="Execution backend")
    show_progress: bool = Field(default=False, description="Render a progress bar")
    runs: List[RunSpec] = Field(..., min_length=1, description="Run groups")
    outputs: OutputsConfig = Field(default_factory=OutputsConfig, description="Output configuration")


def load_batch(path: str) -> BatchSpec:
    """Load and validate a batch from a YAML file."""
    batch_path = Path(path)
    if not batch_path.exists():
        raise FileNotFoundError(f"Batch file not found: {path}")

    with open(batch_path, "r") as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ConfigurationError(f"Batch file {path} must contain a mapping")
    return BatchSpec(**data)


def _parse_cell(key: Any) -> tuple:
    if isinstance(key, str):
        return tuple(int(part) for part in key.strip("()[] ").split(","))
    return tuple(key)


def build_problem(name: str, params: Dict[str, Any]) -> DecisionProcess:
    params = dict(params)
    if name == "tiger":
        return TigerPOMDP(**params)
    if name == "crying_baby":
        return BabyPOMDP(**params)
    if name == "gridworld":
        if "rewards" in params:
            params["rewards"] = {_parse_cell(k): float(v) for k, v in params["rewards"].items()}
        if "size" in params:
            params["size"] = tuple(params["size"])
        return SimpleGridWorld(**params)
    raise ConfigurationError(f"Unknown problem: {name}")


def build_policy(name: str, params: Dict[str, Any], problem: DecisionProcess, seed: int) -> Policy:
    if name == "random":
        return RandomPolicy(problem, seed=params.get("seed", seed))
    if name == "fixed":
        return FixedPolicy(**params)
    if name == "myopic":
        return MyopicPolicy(problem)
    if name == "threshold":
        return ThresholdPolicy(problem, **params)
    if name == "feed_when_crying":
        return FeedWhenCrying()
    if name == "always_feed":
        return AlwaysFeed()
    if name == "starve":
        return Starve()
    raise ConfigurationError(f"Unknown policy: {name}")


def build_updater(name: Optional[str], problem: DecisionProcess) -> Optional[Updater]:
    if name is None:
        return None
    if name == "discrete":
        return DiscreteUpdater(problem)
    if name == "nothing":
        return NothingUpdater()
    if name == "previous_observation":
        return PreviousObservationUpdater()
    raise ConfigurationError(f"Unknown updater: {name}")


def build_sims(spec: BatchSpec) -> List[Sim]:
    """
    Expand a batch into Sim descriptors, one per (run group, seed).

    Every Sim gets its own problem, policy and updater instances.

    Raises:
        ConfigurationError: If a group's parameters don't fit its problem or policy
    """
    sims: List[Sim] = []
    for run_spec in spec.runs:
        max_steps = spec.max_steps if run_spec.max_steps is None else run_spec.max_steps
        for seed in run_spec.seeds:
            try:
                problem = build_problem(run_spec.problem, run_spec.problem_params)
                policy = build_policy(run_spec.policy, run_spec.policy_params, problem, seed)
                updater = build_updater(run_spec.updater, problem)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"Run group '{run_spec.label}': {exc}") from exc
            metadata = {
                "run": run_spec.label,
                "problem": run_spec.problem,
                "policy": run_spec.policy,
                "seed": seed,
                **run_spec.metadata,
            }
            sims.append(
                Sim(
                    problem=problem,
                    policy=policy,
                    updater=updater,
                    max_steps=max_steps,
                    seed=seed,
                    metadata=metadata,
                )
            )
    return sims
