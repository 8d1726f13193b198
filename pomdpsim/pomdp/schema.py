"""
Tabular POMDP and MDP definitions.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Optional, Tuple
import numpy as np

from pomdpsim.errors import DomainError
from pomdpsim.pomdp.belief import DiscreteBelief, sample_index
from pomdpsim.pomdp.interfaces import MDP, POMDP


def _check_gamma(gamma: float) -> None:
    if not 0.0 < gamma <= 1.0:
        raise ValueError(f"gamma must be in (0, 1], got {gamma}")


def _check_square(name: str, mats: Dict[Hashable, np.ndarray], actions: List[Hashable], n: int, stochastic: bool) -> None:
    for a in actions:
        if a not in mats:
            raise ValueError(f"Missing {name} matrix for action {a}")
        mat = mats[a]
        if mat.shape != (n, n):
            raise ValueError(f"{name}[{a}] has shape {mat.shape}, expected ({n}, {n})")
        if stochastic and (np.any(mat < 0) or not np.allclose(mat.sum(axis=1), 1.0, atol=1e-6)):
            raise ValueError(f"{name}[{a}] rows do not sum to 1")


def _initial_vector(b0: Optional[np.ndarray], n: int) -> np.ndarray:
    if b0 is None:
        return np.full(n, 1.0 / n)
    b0 = np.asarray(b0, dtype=float)
    if b0.shape != (n,):
        raise ValueError(f"b0 has shape {b0.shape}, expected ({n},)")
    return b0


@dataclass(eq=False)
class TabularPOMDP(POMDP):
    """
    Partially Observable Markov Decision Process given by explicit tables.

    Attributes:
        S: List of state labels
        A: List of action labels
        O: List of observation labels
        T: Transition probabilities T[a][s, s'] = P(s' | s, a)
        Z: Observation probabilities Z[a][s', o] = P(o | s', a)
        R: Reward function R[a][s, s'] = reward for transition s -> s' under action a
        gamma: Discount factor
        b0: Initial state distribution (uniform if omitted)
        terminal: States in which the simulation stops
    """
    S: List[Hashable]
    A: List[Hashable]
    O: List[Hashable]
    T: Dict[Hashable, np.ndarray]  # T[a] is |S| x |S| matrix
    Z: Dict[Hashable, np.ndarray]  # Z[a] is |S| x |O| matrix
    R: Dict[Hashable, np.ndarray]  # R[a] is |S| x |S| matrix
    gamma: float = 0.95
    b0: Optional[np.ndarray] = None
    terminal: List[Hashable] = field(default_factory=list)

    def __post_init__(self):
        """Validate POMDP structure."""
        n_states = len(self.S)
        n_obs = len(self.O)
        _check_gamma(self.gamma)

        _check_square("T", self.T, self.A, n_states, stochastic=True)
        _check_square("R", self.R, self.A, n_states, stochastic=False)

        for a in self.A:
            if a not in self.Z:
                raise ValueError(f"Missing emission matrix for action {a}")
            Z_a = self.Z[a]
            if Z_a.shape != (n_states, n_obs):
                raise ValueError(
                    f"Z[{a}] has shape {Z_a.shape}, expected ({n_states}, {n_obs})"
                )
            if np.any(Z_a < 0) or not np.allclose(Z_a.sum(axis=1), 1.0, atol=1e-6):
                raise ValueError(f"Z[{a}] rows do not sum to 1")

        self.b0 = _initial_vector(self.b0, n_states)
        for s in self.terminal:
            if s not in self.S:
                raise ValueError(f"Terminal state {s} not in POMDP states")

        self._s_index = {s: i for i, s in enumerate(self.S)}
        self._a_index = {a: i for i, a in enumerate(self.A)}
        self._T_cdf = {a: np.cumsum(self.T[a], axis=1) for a in self.A}
        self._Z_cdf = {a: np.cumsum(self.Z[a], axis=1) for a in self.A}
        self._terminal = set(self.terminal)

    def states(self) -> List[Hashable]:
        return self.S

    def actions(self) -> List[Hashable]:
        return self.A

    def observations(self) -> List[Hashable]:
        return self.O

    def discount(self) -> float:
        return self.gamma

    def initial_state_distribution(self) -> DiscreteBelief:
        return DiscreteBelief(self.S, self.b0)

    def is_terminal(self, state: Any) -> bool:
        return state in self._terminal

    def _indices(self, state: Any, action: Any) -> Tuple[int, int]:
        if action not in self._a_index:
            raise DomainError(f"Action {action} not in POMDP actions")
        if state not in self._s_index:
            raise DomainError(f"State {state} not in POMDP states")
        return self._s_index[state], self._a_index[action]

    def step(self, state: Any, action: Any, rng: np.random.Generator) -> Tuple[Any, Any, float]:
        s_idx, _ = self._indices(state, action)
        sp_idx = sample_index(self._T_cdf[action][s_idx], rng)
        o_idx = sample_index(self._Z_cdf[action][sp_idx], rng)
        reward = float(self.R[action][s_idx, sp_idx])
        return self.S[sp_idx], self.O[o_idx], reward

    def transition(self, state: Any, action: Any) -> DiscreteBelief:
        s_idx, _ = self._indices(state, action)
        return DiscreteBelief(self.S, self.T[action][s_idx])

    def observation(self, action: Any, next_state: Any) -> DiscreteBelief:
        sp_idx, _ = self._indices(next_state, action)
        return DiscreteBelief(self.O, self.Z[action][sp_idx])

    def expected_reward(self, belief: np.ndarray, action: Any) -> float:
        """E[R | b, a] = sum_{s,s'} b[s] * T[a][s,s'] * R[a][s,s']"""
        return float(np.sum(belief[:, None] * self.T[action] * self.R[action]))


@dataclass(eq=False)
class TabularMDP(MDP):
    """
    Fully observable Markov Decision Process given by explicit tables.

    Attributes:
        S: List of state labels
        A: List of action labels
        T: Transition probabilities T[a][s, s'] = P(s' | s, a)
        R: Reward function R[a][s, s']
        gamma: Discount factor
        s0: Initial state distribution (uniform if omitted)
        terminal: States in which the simulation stops
    """
    S: List[Hashable]
    A: List[Hashable]
    T: Dict[Hashable, np.ndarray]
    R: Dict[Hashable, np.ndarray]
    gamma: float = 0.95
    s0: Optional[np.ndarray] = None
    terminal: List[Hashable] = field(default_factory=list)

    def __post_init__(self):
        n_states = len(self.S)
        _check_gamma(self.gamma)
        _check_square("T", self.T, self.A, n_states, stochastic=True)
        _check_square("R", self.R, self.A, n_states, stochastic=False)
        self.s0 = _initial_vector(self.s0, n_states)
        for s in self.terminal:
            if s not in self.S:
                raise ValueError(f"Terminal state {s} not in MDP states")

        self._s_index = {s: i for i, s in enumerate(self.S)}
        self._T_cdf = {a: np.cumsum(self.T[a], axis=1) for a in self.A}
        self._terminal = set(self.terminal)

    def states(self) -> List[Hashable]:
        return self.S

    def actions(self) -> List[Hashable]:
        return self.A

    def discount(self) -> float:
        return self.gamma

    def initial_state_distribution(self) -> DiscreteBelief:
        return DiscreteBelief(self.S, self.s0)

    def is_terminal(self, state: Any) -> bool:
        return state in self._terminal

    def step(self, state: Any, action: Any, rng: np.random.Generator) -> Tuple[Any, None, float]:
        if action not in self.T:
            raise DomainError(f"Action {action} not in MDP actions")
        if state not in self._s_index:
            raise DomainError(f"State {state} not in MDP states")
        s_idx = self._s_index[state]
        sp_idx = sample_index(self._T_cdf[action][s_idx], rng)
        return self.S[sp_idx], None, float(self.R[action][s_idx, sp_idx])
