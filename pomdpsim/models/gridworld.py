"""
Simple grid world MDP.

The agent moves on a grid of 1-based (x, y) cells. The intended move succeeds
with probability tprob; each of the other three directions happens with
probability (1 - tprob) / 3. Moves into a wall leave the agent in place.
Reward cells pay out when the agent acts in them and then end the episode.
"""

from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from pomdpsim.errors import DomainError
from pomdpsim.pomdp.belief import DiscreteBelief, sample_index
from pomdpsim.pomdp.interfaces import MDP

Cell = Tuple[int, int]

TERMINAL: Cell = (-1, -1)

DIRECTIONS: Dict[str, Cell] = {
    "up": (0, 1),
    "down": (0, -1),
    "left": (-1, 0),
    "right": (1, 0),
}

DEFAULT_REWARDS: Dict[Cell, float] = {
    (4, 3): -10.0,
    (4, 6): -5.0,
    (9, 3): 10.0,
    (8, 8): 3.0,
}


class SimpleGridWorld(MDP):
    """
    Grid world with stochastic moves and absorbing reward cells.

    Args:
        size: (width, height) of the grid
        rewards: Reward per cell; every rewarding cell is also an exit.
            Defaults to the DEFAULT_REWARDS cells that fit inside the grid.
        tprob: Probability the intended move succeeds
        discount: Discount factor
    """

    def __init__(
        self,
        size: Tuple[int, int] = (10, 10),
        rewards: Optional[Dict[Cell, float]] = None,
        tprob: float = 0.7,
        discount: float = 0.95,
    ):
        if not 0.0 <= tprob <= 1.0:
            raise ValueError(f"tprob must be in [0, 1], got {tprob}")
        if not 0.0 < discount <= 1.0:
            raise ValueError(f"discount must be in (0, 1], got {discount}")
        self.size = size
        if rewards is None:
            rewards = {cell: r for cell, r in DEFAULT_REWARDS.items() if self._in_bounds(cell)}
        self.rewards = dict(rewards)
        self.tprob = tprob
        self._discount = discount
        self._cells: List[Cell] = [
            (x, y) for x in range(1, size[0] + 1) for y in range(1, size[1] + 1)
        ]
        for cell in self.rewards:
            if not self._in_bounds(cell):
                raise ValueError(f"Reward cell {cell} lies outside a {size} grid")
        self._actions = list(DIRECTIONS)
        self._move_cdf = {
            a: np.cumsum(self._move_probs(a)) for a in self._actions
        }

    def _in_bounds(self, cell: Cell) -> bool:
        return 1 <= cell[0] <= self.size[0] and 1 <= cell[1] <= self.size[1]

    def _move_probs(self, action: str) -> np.ndarray:
        slip = (1.0 - self.tprob) / (len(DIRECTIONS) - 1)
        return np.array([self.tprob if d == action else slip for d in self._actions])

    def _move(self, cell: Cell, direction: str) -> Cell:
        dx, dy = DIRECTIONS[direction]
        dest = (cell[0] + dx, cell[1] + dy)
        return dest if self._in_bounds(dest) else cell

    def _check(self, state: Any, action: Any) -> None:
        if action not in DIRECTIONS:
            raise DomainError(f"Action {action} not in grid world actions")
        if state != TERMINAL and (not isinstance(state, tuple) or not self._in_bounds(state)):
            raise DomainError(f"State {state} not in grid world states")

    def states(self) -> List[Cell]:
        return self._cells + [TERMINAL]

    def actions(self) -> List[str]:
        return list(self._actions)

    def discount(self) -> float:
        return self._discount

    def initial_state_distribution(self) -> DiscreteBelief:
        return DiscreteBelief.uniform(self._cells)

    def is_terminal(self, state: Any) -> bool:
        return state == TERMINAL

    def reward(self, state: Cell) -> float:
        return float(self.rewards.get(state, 0.0))

    def transition(self, state: Cell, action: str) -> DiscreteBelief:
        """Explicit next-state distribution (useful for checking the dynamics)."""
        self._check(state, action)
        states = self.states()
        probs = np.zeros(len(states))
        index = {s: i for i, s in enumerate(states)}
        if state == TERMINAL or state in self.rewards:
            probs[index[TERMINAL]] = 1.0
        else:
            for direction, p in zip(self._actions, self._move_probs(action)):
                probs[index[self._move(state, direction)]] += p
        return DiscreteBelief(states, probs)

    def step(self, state: Cell, action: str, rng: np.random.Generator) -> Tuple[Cell, None, float]:
        self._check(state, action)
        reward = self.reward(state)
        if state == TERMINAL or state in self.rewards:
            return TERMINAL, None, reward
        direction = self._actions[sample_index(self._move_cdf[action], rng)]
        return self._move(state, direction), None, reward
