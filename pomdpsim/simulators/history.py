"""
History recording: run a simulation and keep every step for later replay.
"""

import traceback
from typing import Any, Iterator, List, Optional, Sequence, Union

import numpy as np
from tqdm.auto import tqdm

from pomdpsim.errors import ConfigurationError
from pomdpsim.pomdp.interfaces import DecisionProcess, Policy, Updater
from pomdpsim.schemas.config import SimulatorConfig
from pomdpsim.simulators.base import (
    Step,
    initialize,
    make_rng,
    parse_spec,
    resolve_max_steps,
    select_fields,
    simulate_steps,
)
from pomdpsim.utils.logging_utils import get_logger

logger = get_logger(__name__)


class SimHistory:
    """
    Complete, read-only record of one simulation.

    A history of n steps has n+1 states (and beliefs) but n actions,
    observations and rewards.

    Attributes:
        steps: Recorded Step records in order
        discount: Discount factor of the simulated process
        initial_state: State the run started from
        initial_belief: Belief the run started from (None for MDPs)
        exception: Exception that ended the run early, if it was captured
        backtrace: Formatted traceback of the captured exception
    """

    def __init__(
        self,
        steps: Sequence[Step],
        discount: float,
        initial_state: Any,
        initial_belief: Any = None,
        exception: Optional[BaseException] = None,
        backtrace: Optional[str] = None,
    ):
        self.steps = tuple(steps)
        self.discount = discount
        self.initial_state = initial_state
        self.initial_belief = initial_belief
        self.exception = exception
        self.backtrace = backtrace

    def __len__(self) -> int:
        return len(self.steps)

    def __getitem__(self, idx):
        return self.steps[idx]

    def __iter__(self) -> Iterator[Step]:
        return iter(self.steps)

    def __repr__(self) -> str:
        return f"SimHistory(n_steps={len(self)}, discounted_reward={self.discounted_reward():.4f})"

    @property
    def n_steps(self) -> int:
        return len(self.steps)

    @property
    def state_hist(self) -> List[Any]:
        return [self.initial_state] + [step.sp for step in self.steps]

    @property
    def belief_hist(self) -> List[Any]:
        return [self.initial_belief] + [step.bp for step in self.steps]

    @property
    def action_hist(self) -> List[Any]:
        return [step.a for step in self.steps]

    @property
    def observation_hist(self) -> List[Any]:
        return [step.o for step in self.steps]

    @property
    def reward_hist(self) -> List[float]:
        return [step.r for step in self.steps]

    def discounted_reward(self) -> float:
        """sum_t r_t * gamma^t"""
        total = 0.0
        disc = 1.0
        for step in self.steps:
            total += step.r * disc
            disc *= self.discount
        return total

    def undiscounted_reward(self) -> float:
        return float(sum(step.r for step in self.steps))

    def eachstep(self, spec: Optional[Union[str, Sequence[str]]] = None) -> Iterator[Any]:
        """
        Iterate over the recorded steps.

        Args:
            spec: Fields to yield, e.g. "s,a,r" or "bp"; full Step records if None
        """
        if spec is None:
            yield from self.steps
            return
        fields = parse_spec(spec)
        for step in self.steps:
            yield select_fields(step, fields)


def discounted_reward(history: SimHistory) -> float:
    return history.discounted_reward()


def n_steps(history: SimHistory) -> int:
    return history.n_steps


class HistoryRecorder:
    """
    Runs a simulation to termination (or the step ceiling) and returns a SimHistory.

    With a seed (or no randomness source at all) every simulate() call starts
    from a fresh generator, so repeated calls are identical. A caller-supplied
    rng is advanced across calls instead.

    Args:
        max_steps: Hard step ceiling (defaults to Config.DEFAULT_MAX_STEPS)
        seed: Seed for the simulator's random source
        rng: Explicit generator (mutually exclusive with seed)
        show_progress: Render a tqdm progress bar over steps
        capture_exception: Keep the partial history and the exception
            instead of raising
    """

    def __init__(
        self,
        max_steps: Optional[int] = None,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        show_progress: bool = False,
        capture_exception: bool = False,
    ):
        self.config = SimulatorConfig(
            max_steps=max_steps,
            seed=seed,
            show_progress=show_progress,
            capture_exception=capture_exception,
        )
        if seed is not None and rng is not None:
            raise ConfigurationError("Pass either seed or rng, not both")
        self.rng = rng

    def simulate(
        self,
        process: DecisionProcess,
        policy: Policy,
        updater: Optional[Updater] = None,
        initial_state: Any = None,
        initial_belief: Any = None,
    ) -> SimHistory:
        rng = make_rng(self.config.seed, self.rng)
        max_steps = resolve_max_steps(self.config.max_steps)
        start = initialize(process, policy, updater, rng, initial_state, initial_belief)

        steps: List[Step] = []
        exception = None
        backtrace = None
        iterator = simulate_steps(process, policy, start, max_steps, rng)
        if self.config.show_progress:
            iterator = tqdm(iterator, total=max_steps, desc="Simulating", unit="step", leave=False)
        try:
            for step in iterator:
                steps.append(step)
        except Exception as exc:
            if not self.config.capture_exception:
                raise
            exception = exc
            backtrace = traceback.format_exc()
            logger.warning(f"Simulation stopped after {len(steps)} steps: {type(exc).__name__}: {exc}")

        logger.debug(f"Recorded history of {len(steps)} steps for {type(process).__name__}")
        return SimHistory(
            steps,
            discount=process.discount(),
            initial_state=start.state,
            initial_belief=start.belief,
            exception=exception,
            backtrace=backtrace,
        )
