"""
Rollout simulator: run to the end and return only the discounted reward.
"""

from typing import Any, Optional

import numpy as np
from tqdm.auto import tqdm

from pomdpsim.errors import ConfigurationError
from pomdpsim.pomdp.interfaces import DecisionProcess, Policy, Updater
from pomdpsim.schemas.config import SimulatorConfig
from pomdpsim.simulators.base import initialize, make_rng, resolve_max_steps, simulate_steps
from pomdpsim.utils.logging_utils import get_logger

logger = get_logger(__name__)


class RolloutSimulator:
    """
    Accumulates sum_t r_t * gamma^t without keeping the steps.

    Reaching max_steps is a normal end of the rollout. For long horizons with
    gamma < 1, eps stops the run once gamma^t < eps.

    Args:
        max_steps: Hard step ceiling (defaults to Config.DEFAULT_MAX_STEPS)
        seed: Seed for the simulator's random source
        rng: Explicit generator (mutually exclusive with seed)
        eps: Optional discount cut-off
        show_progress: Render a tqdm progress bar over steps
    """

    def __init__(
        self,
        max_steps: Optional[int] = None,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        eps: Optional[float] = None,
        show_progress: bool = False,
    ):
        self.config = SimulatorConfig(max_steps=max_steps, seed=seed, eps=eps, show_progress=show_progress)
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
    ) -> float:
        rng = make_rng(self.config.seed, self.rng)
        max_steps = resolve_max_steps(self.config.max_steps)
        eps = self.config.eps
        start = initialize(process, policy, updater, rng, initial_state, initial_belief)
        gamma = process.discount()

        total = 0.0
        disc = 1.0
        n = 0
        iterator = simulate_steps(process, policy, start, max_steps, rng)
        if self.config.show_progress:
            iterator = tqdm(iterator, total=max_steps, desc="Rollout", unit="step", leave=False)
        for step in iterator:
            total += step.r * disc
            disc *= gamma
            n += 1
            if eps is not None and disc < eps:
                break

        logger.debug(f"Rollout of {type(process).__name__} finished after {n} steps: {total:.6f}")
        return total
