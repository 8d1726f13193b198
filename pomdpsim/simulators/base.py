"""
Shared simulation loop used by every driver.

Step-through, rollout, history recording and batch runs all iterate
simulate_steps(), so for the same inputs they consume random numbers in the
same order and produce the same trajectory.
"""

from dataclasses import dataclass
from typing import Any, Iterator, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np

from pomdpsim.config import Config
from pomdpsim.errors import ConfigurationError
from pomdpsim.pomdp.interfaces import DecisionProcess, Policy, Updater
from pomdpsim.utils.logging_utils import get_logger

logger = get_logger(__name__)


class Step(NamedTuple):
    """
    One interaction tick.

    Attributes:
        s: State before acting
        a: Action taken
        sp: State after acting
        o: Observation received (None for MDPs)
        r: Reward received
        b: Belief the action was chosen from (None for MDPs)
        bp: Belief after the update (None for MDPs)
        t: Zero-based step index
    """
    s: Any
    a: Any
    sp: Any
    o: Any
    r: float
    b: Any
    bp: Any
    t: int


FIELD_ALIASES = {
    "state": "s",
    "action": "a",
    "next_state": "sp",
    "observation": "o",
    "reward": "r",
    "belief": "b",
    "next_belief": "bp",
    "step": "t",
}


def parse_spec(spec: Union[str, Sequence[str]]) -> Tuple[str, ...]:
    """
    Turn a field selection such as "s,a,r", "(s, a, r)" or ["state", "reward"]
    into canonical Step field names.

    Raises:
        ConfigurationError: If the spec is empty or names an unknown field
    """
    if isinstance(spec, str):
        names = [part.strip() for part in spec.strip().strip("()").split(",")]
    else:
        names = [str(part).strip() for part in spec]
    names = [n for n in names if n]
    if not names:
        raise ConfigurationError("Step spec must name at least one field")

    fields = []
    for name in names:
        canonical = FIELD_ALIASES.get(name, name)
        if canonical not in Step._fields:
            raise ConfigurationError(
                f"Unknown step field {name!r}; expected one of {Step._fields} "
                f"or {tuple(FIELD_ALIASES)}"
            )
        fields.append(canonical)
    return tuple(fields)


def select_fields(step: Step, fields: Tuple[str, ...]) -> Any:
    """Project a Step onto the requested fields; a single field is returned bare."""
    if len(fields) == 1:
        return getattr(step, fields[0])
    return tuple(getattr(step, f) for f in fields)


def make_rng(
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> np.random.Generator:
    """Return the caller's generator, or a fresh one seeded with seed (or the default seed)."""
    if rng is not None and seed is not None:
        raise ConfigurationError("Pass either seed or rng, not both")
    if rng is not None:
        return rng
    return np.random.default_rng(Config.DEFAULT_RANDOM_SEED if seed is None else seed)


def resolve_max_steps(max_steps: Optional[int]) -> int:
    """Every run has a finite ceiling; None falls back to Config.DEFAULT_MAX_STEPS."""
    return Config.DEFAULT_MAX_STEPS if max_steps is None else max_steps


@dataclass
class RunStart:
    """Resolved starting point of one simulation."""
    state: Any
    belief: Any
    updater: Optional[Updater]


def initialize(
    process: DecisionProcess,
    policy: Policy,
    updater: Optional[Updater],
    rng: np.random.Generator,
    initial_state: Any = None,
    initial_belief: Any = None,
) -> RunStart:
    """
    Pick the updater, sample the initial state and build the initial belief.

    The initial state is drawn from the process's initial distribution with
    rng unless given explicitly.
    """
    if not isinstance(process, DecisionProcess):
        raise ConfigurationError(f"Expected a DecisionProcess, got {type(process).__name__}")
    if not isinstance(policy, Policy):
        raise ConfigurationError(f"Expected a Policy, got {type(policy).__name__}")
    if updater is not None and not isinstance(updater, Updater):
        raise ConfigurationError(f"Expected an Updater, got {type(updater).__name__}")

    state = process.sample_initial_state(rng) if initial_state is None else initial_state

    if process.is_observable:
        return RunStart(state=state, belief=None, updater=None)

    if updater is None:
        updater = policy.default_updater(process)
    belief = updater.initial_belief(process) if initial_belief is None else initial_belief
    return RunStart(state=state, belief=belief, updater=updater)


def simulate_steps(
    process: DecisionProcess,
    policy: Policy,
    start: RunStart,
    max_steps: Optional[int],
    rng: np.random.Generator,
) -> Iterator[Step]:
    """
    Yield Steps until the state is terminal or max_steps steps have been taken.

    No action is taken from a terminal state, so a run of n steps visits n+1
    states.
    """
    observable = process.is_observable
    state, belief, updater = start.state, start.belief, start.updater
    t = 0
    while not process.is_terminal(state) and (max_steps is None or t < max_steps):
        action = policy.action(state if observable else belief)
        next_state, observation, reward = process.step(state, action, rng)
        next_belief = None if observable else updater.update(belief, action, observation)
        yield Step(state, action, next_state, observation, float(reward), belief, next_belief, t)
        state, belief = next_state, next_belief
        t += 1
