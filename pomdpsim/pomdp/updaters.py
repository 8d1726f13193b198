"""
Belief updaters.
"""

from typing import Any, Optional

import numpy as np

from pomdpsim.errors import DomainError
from pomdpsim.pomdp.belief import DiscreteBelief, belief_update
from pomdpsim.pomdp.interfaces import DecisionProcess, POMDP, Updater
from pomdpsim.pomdp.schema import TabularPOMDP
from pomdpsim.utils.logging_utils import get_logger

logger = get_logger(__name__)


class DiscreteUpdater(Updater):
    """
    Exact Bayesian filter over a finite state space.

    b'(s') ∝ Z(o | a, s') * sum_s T(s' | s, a) b(s)

    Tabular models take the matrix path (belief_update); any other POMDP must
    implement transition() and observation().
    """

    def __init__(self, pomdp: POMDP):
        self.pomdp = pomdp
        self._states = list(pomdp.states())
        self._state_index = {s: i for i, s in enumerate(self._states)}

    def initial_belief(self, process: Optional[DecisionProcess] = None) -> DiscreteBelief:
        dist = (process or self.pomdp).initial_state_distribution()
        return DiscreteBelief(self._states, [dist.pdf(s) for s in self._states])

    def update(self, belief: DiscreteBelief, action: Any, observation: Any) -> DiscreteBelief:
        if isinstance(self.pomdp, TabularPOMDP):
            probs = belief_update(self.pomdp, belief.probs, action, observation)
            return DiscreteBelief(self._states, probs)
        return DiscreteBelief(self._states, self._generic_update(belief, action, observation))

    def _generic_update(self, belief: DiscreteBelief, action: Any, observation: Any) -> np.ndarray:
        if action not in self.pomdp.actions():
            raise DomainError(f"Action {action} not in POMDP actions")
        if observation not in self.pomdp.observations():
            raise DomainError(f"Observation {observation} not in POMDP observations")

        predicted = np.zeros(len(self._states))
        for s, p in zip(belief.labels, belief.probs):
            if p == 0.0:
                continue
            next_dist = self.pomdp.transition(s, action)
            for sp in next_dist.support():
                predicted[self._state_index[sp]] += p * next_dist.pdf(sp)

        likelihood = np.array(
            [self.pomdp.observation(action, sp).pdf(observation) for sp in self._states]
        )
        new_belief = likelihood * predicted
        norm = new_belief.sum()
        if norm <= 0.0:
            raise DomainError(
                f"Observation {observation} has zero probability after action {action}; "
                "belief cannot be updated"
            )
        return new_belief / norm


class NothingUpdater(Updater):
    """Keeps no belief at all; for policies that ignore their input."""

    def initial_belief(self, process: Optional[DecisionProcess] = None) -> None:
        return None

    def update(self, belief: Any, action: Any, observation: Any) -> None:
        return None


class PreviousObservationUpdater(Updater):
    """The belief is simply the most recent observation (None before the first)."""

    def initial_belief(self, process: Optional[DecisionProcess] = None) -> None:
        return None

    def update(self, belief: Any, action: Any, observation: Any) -> Any:
        return observation
