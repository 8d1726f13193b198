"""
The classic tiger problem.

A tiger hides behind one of two doors. The agent may listen (small cost,
noisy hint) or open a door: opening the tiger's door is heavily penalised,
opening the other is rewarded, and either way the tiger is re-hidden
uniformly at random.
"""

import numpy as np

from pomdpsim.pomdp.schema import TabularPOMDP

TIGER_LEFT = "tiger_left"
TIGER_RIGHT = "tiger_right"
OPEN_LEFT = "open_left"
OPEN_RIGHT = "open_right"
LISTEN = "listen"


class TigerPOMDP(TabularPOMDP):
    """
    Tiger POMDP.

    Args:
        r_listen: Reward for listening
        r_findtiger: Reward for opening the door the tiger is behind
        r_escapetiger: Reward for opening the other door
        p_listen_correctly: Probability the hint names the right door
        discount: Discount factor
    """

    def __init__(
        self,
        r_listen: float = -1.0,
        r_findtiger: float = -100.0,
        r_escapetiger: float = 10.0,
        p_listen_correctly: float = 0.85,
        discount: float = 0.95,
    ):
        if not 0.0 <= p_listen_correctly <= 1.0:
            raise ValueError(f"p_listen_correctly must be in [0, 1], got {p_listen_correctly}")
        self.r_listen = r_listen
        self.r_findtiger = r_findtiger
        self.r_escapetiger = r_escapetiger
        self.p_listen_correctly = p_listen_correctly

        p = p_listen_correctly
        reset = np.full((2, 2), 0.5)
        T = {
            OPEN_LEFT: reset,
            OPEN_RIGHT: reset.copy(),
            LISTEN: np.eye(2),
        }
        Z = {
            OPEN_LEFT: np.full((2, 2), 0.5),
            OPEN_RIGHT: np.full((2, 2), 0.5),
            LISTEN: np.array([[p, 1.0 - p], [1.0 - p, p]]),
        }
        # Rewards depend only on where the tiger was when acting
        R = {
            OPEN_LEFT: np.array([[r_findtiger] * 2, [r_escapetiger] * 2], dtype=float),
            OPEN_RIGHT: np.array([[r_escapetiger] * 2, [r_findtiger] * 2], dtype=float),
            LISTEN: np.full((2, 2), r_listen, dtype=float),
        }
        super().__init__(
            S=[TIGER_LEFT, TIGER_RIGHT],
            A=[OPEN_LEFT, OPEN_RIGHT, LISTEN],
            O=[TIGER_LEFT, TIGER_RIGHT],
            T=T,
            Z=Z,
            R=R,
            gamma=discount,
        )
