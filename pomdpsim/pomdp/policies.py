"""
Policies mapping beliefs (or states, for MDPs) to actions.
"""

from typing import Any, Callable, Hashable, Optional

import numpy as np

from pomdpsim.config import Config
from pomdpsim.pomdp.belief import DiscreteBelief
from pomdpsim.pomdp.interfaces import DecisionProcess, Policy, Updater
from pomdpsim.pomdp.schema import TabularPOMDP
from pomdpsim.pomdp.updaters import DiscreteUpdater, NothingUpdater, PreviousObservationUpdater
from pomdpsim.utils.logging_utils import get_logger

logger = get_logger(__name__)


class FunctionPolicy(Policy):
    """
    Policy defined by a plain callable.

    By default the callable receives the previous observation (None on the
    first step) for POMDPs, or the state for MDPs.
    """

    def __init__(self, fn: Callable[[Any], Any]):
        self.fn = fn

    def action(self, belief_or_state: Any) -> Any:
        return self.fn(belief_or_state)

    def default_updater(self, process: DecisionProcess) -> Updater:
        return PreviousObservationUpdater()


class FixedPolicy(Policy):
    """Always takes the same action."""

    def __init__(self, action: Hashable):
        self.fixed_action = action

    def action(self, belief_or_state: Any) -> Hashable:
        return self.fixed_action


class RandomPolicy(Policy):
    """
    Uniformly random action.

    The policy owns its generator; two policies built with the same seed
    produce the same action sequence.
    """

    def __init__(
        self,
        process: DecisionProcess,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.process = process
        self._actions = list(process.actions())
        if rng is None:
            rng = np.random.default_rng(Config.DEFAULT_RANDOM_SEED if seed is None else seed)
        self.rng = rng

    def action(self, belief_or_state: Any) -> Hashable:
        return self._actions[int(self.rng.integers(len(self._actions)))]

    def default_updater(self, process: DecisionProcess) -> Updater:
        return NothingUpdater()


class MyopicPolicy(Policy):
    """
    Myopic policy: choose action maximizing expected immediate reward.

    E[R | b, a] = sum_{s,s'} b[s] * T[a][s,s'] * R[a][s,s']
    """

    def __init__(self, pomdp: TabularPOMDP):
        if not isinstance(pomdp, TabularPOMDP):
            raise ValueError(f"MyopicPolicy needs a TabularPOMDP, got {type(pomdp).__name__}")
        self.pomdp = pomdp

    def action(self, belief: DiscreteBelief) -> Hashable:
        best_action = None
        best_value = -np.inf

        for a in self.pomdp.A:
            expected_reward = self.pomdp.expected_reward(belief.probs, a)
            if expected_reward > best_value:
                best_value = expected_reward
                best_action = a

        return best_action

    def default_updater(self, process: DecisionProcess) -> Updater:
        return DiscreteUpdater(self.pomdp)


class ThresholdPolicy(Policy):
    """
    Threshold policy: if P(state) > threshold take action_above, else action_below.

    Args:
        pomdp: POMDP whose beliefs are fed to the policy
        state: State whose belief mass is compared against the threshold
        threshold: Probability threshold
        action_above: Action to take if threshold exceeded
        action_below: Action to take otherwise
    """

    def __init__(
        self,
        pomdp: DecisionProcess,
        state: Hashable,
        action_above: Hashable,
        action_below: Hashable,
        threshold: float = 0.5,
    ):
        if state not in pomdp.states():
            raise ValueError(f"State {state} not in POMDP states")
        for a in (action_above, action_below):
            if a not in pomdp.actions():
                raise ValueError(f"Action {a} not in POMDP actions")
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be in [0, 1], got {threshold}")
        self.pomdp = pomdp
        self.state = state
        self.threshold = threshold
        self.action_above = action_above
        self.action_below = action_below

    def action(self, belief: DiscreteBelief) -> Hashable:
        if belief.pdf(self.state) > self.threshold:
            return self.action_above
        return self.action_below

    def default_updater(self, process: DecisionProcess) -> Updater:
        return DiscreteUpdater(self.pomdp)
