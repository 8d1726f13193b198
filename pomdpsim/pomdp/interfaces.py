"""
Abstract interfaces for decision processes, policies and belief updaters.

Every problem model, policy and updater in the toolkit implements one of the
classes below; the simulators only talk to these methods.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Hashable, List, Optional, Tuple

import numpy as np

from pomdpsim.pomdp.belief import DiscreteBelief


class DecisionProcess(ABC):
    """Sequential decision process: the contract every problem model satisfies."""

    #: True when the policy acts on the true state rather than a belief
    is_observable: bool = False

    @abstractmethod
    def states(self) -> List[Hashable]:
        """Enumerate the state space."""

    @abstractmethod
    def actions(self) -> List[Hashable]:
        """Enumerate the action space."""

    def observations(self) -> List[Hashable]:
        return []

    @abstractmethod
    def discount(self) -> float:
        """Discount factor in (0, 1]."""

    @abstractmethod
    def initial_state_distribution(self) -> DiscreteBelief:
        """Distribution the initial state is drawn from."""

    def sample_initial_state(self, rng: np.random.Generator) -> Any:
        return self.initial_state_distribution().sample(rng)

    @abstractmethod
    def step(
        self,
        state: Any,
        action: Any,
        rng: np.random.Generator,
    ) -> Tuple[Any, Any, float]:
        """
        Advance one tick.

        Must be a pure function of (state, action, rng).

        Returns:
            (next_state, observation, reward)

        Raises:
            DomainError: If state or action is outside the declared spaces
        """

    def is_terminal(self, state: Any) -> bool:
        return False


class MDP(DecisionProcess):
    """Fully observable process; step() returns None as the observation."""

    is_observable = True


class POMDP(DecisionProcess):
    """
    Partially observable process.

    Models that support exact filtering also implement transition() and
    observation(), which DiscreteUpdater relies on.
    """

    @abstractmethod
    def observations(self) -> List[Hashable]:
        """Enumerate the observation space."""

    def transition(self, state: Any, action: Any) -> DiscreteBelief:
        raise NotImplementedError(f"{type(self).__name__} has no explicit transition model")

    def observation(self, action: Any, next_state: Any) -> DiscreteBelief:
        raise NotImplementedError(f"{type(self).__name__} has no explicit observation model")


class Updater(ABC):
    """Produces the next belief from (belief, action, observation)."""

    @abstractmethod
    def initial_belief(self, process: DecisionProcess) -> Any:
        """Belief before any action is taken."""

    @abstractmethod
    def update(self, belief: Any, action: Any, observation: Any) -> Any:
        """Return the posterior belief; must not mutate the prior."""


class Policy(ABC):
    """Maps a belief (or state, for MDPs) to an action."""

    @abstractmethod
    def action(self, belief_or_state: Any) -> Any:
        """Choose an action."""

    def default_updater(self, process: DecisionProcess) -> Optional[Updater]:
        """Updater used by the simulators when the caller supplies none."""
        from pomdpsim.pomdp.updaters import NothingUpdater

        return NothingUpdater()
