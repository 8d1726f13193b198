"""
Step-through driver: iterate over a simulation as it happens.
"""

from typing import Any, Iterator, Optional, Sequence, Union

import numpy as np

from pomdpsim.pomdp.interfaces import DecisionProcess, Policy, Updater
from pomdpsim.schemas.config import SimulatorConfig
from pomdpsim.simulators.base import (
    initialize,
    make_rng,
    parse_spec,
    resolve_max_steps,
    select_fields,
    simulate_steps,
)
from pomdpsim.utils.logging_utils import get_logger

logger = get_logger(__name__)


def stepthrough(
    process: DecisionProcess,
    policy: Policy,
    updater: Optional[Updater] = None,
    spec: Union[str, Sequence[str]] = "s,a,r",
    max_steps: Optional[int] = None,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    initial_state: Any = None,
    initial_belief: Any = None,
) -> Iterator[Any]:
    """
    Lazily simulate, yielding the requested fields of each step.

    Arguments are validated immediately; the simulation itself only advances
    as the caller consumes the iterator, and stopping early needs no cleanup.
    Each call starts a new run.

    Args:
        process: Problem to simulate
        policy: Policy choosing the actions
        updater: Belief updater (policy's default if omitted)
        spec: Fields to yield, e.g. "s,a,r", "(s,a,o,r)", "bp" or ["state", "reward"];
            a single field yields bare values instead of tuples
        max_steps: Hard step ceiling (defaults to Config.DEFAULT_MAX_STEPS)
        seed: Seed for the simulator's random source
        rng: Explicit generator (mutually exclusive with seed)
        initial_state: Start state (sampled from the process if omitted)
        initial_belief: Start belief (from the updater if omitted)

    Yields:
        Tuples (or bare values) of the selected step fields
    """
    config = SimulatorConfig(max_steps=max_steps, seed=seed)
    fields = parse_spec(spec)
    rng = make_rng(config.seed, rng)
    ceiling = resolve_max_steps(config.max_steps)
    start = initialize(process, policy, updater, rng, initial_state, initial_belief)
    logger.debug(f"Stepping through {type(process).__name__} with fields {fields}")
    return _iterate(process, policy, start, ceiling, rng, fields)


def _iterate(process, policy, start, max_steps, rng, fields) -> Iterator[Any]:
    for step in simulate_steps(process, policy, start, max_steps, rng):
        yield select_fields(step, fields)
