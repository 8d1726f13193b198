"""
The crying baby problem and a few hand-written policies for it.

The baby is either hungry or full. Feeding always leaves it full; ignoring a
full baby lets it become hungry with a small probability each step. The
caregiver only hears whether the baby is crying, which is far more likely
when it is hungry.
"""

from typing import Any

import numpy as np

from pomdpsim.pomdp.interfaces import DecisionProcess, Policy, Updater
from pomdpsim.pomdp.policies import FixedPolicy
from pomdpsim.pomdp.schema import TabularPOMDP
from pomdpsim.pomdp.updaters import PreviousObservationUpdater

HUNGRY = "hungry"
FULL = "full"
FEED = "feed"
IGNORE = "ignore"
CRYING = "crying"
QUIET = "quiet"


class BabyPOMDP(TabularPOMDP):
    """
    Crying baby POMDP.

    Args:
        r_hungry: Reward for each step the baby is hungry
        r_feed: Reward (cost) of feeding
        p_become_hungry: Probability a full, ignored baby becomes hungry
        p_cry_when_hungry: Probability of crying when hungry
        p_cry_when_not_hungry: Probability of crying when full
        discount: Discount factor
    """

    def __init__(
        self,
        r_hungry: float = -10.0,
        r_feed: float = -5.0,
        p_become_hungry: float = 0.1,
        p_cry_when_hungry: float = 0.8,
        p_cry_when_not_hungry: float = 0.1,
        discount: float = 0.9,
    ):
        self.r_hungry = r_hungry
        self.r_feed = r_feed
        self.p_become_hungry = p_become_hungry
        self.p_cry_when_hungry = p_cry_when_hungry
        self.p_cry_when_not_hungry = p_cry_when_not_hungry

        T = {
            FEED: np.array([[0.0, 1.0], [0.0, 1.0]]),
            IGNORE: np.array([[1.0, 0.0], [p_become_hungry, 1.0 - p_become_hungry]]),
        }
        Z_shared = np.array([
            [p_cry_when_hungry, 1.0 - p_cry_when_hungry],
            [p_cry_when_not_hungry, 1.0 - p_cry_when_not_hungry],
        ])
        Z = {FEED: Z_shared, IGNORE: Z_shared.copy()}
        R = {
            FEED: np.array([[r_hungry + r_feed] * 2, [r_feed] * 2], dtype=float),
            IGNORE: np.array([[r_hungry] * 2, [0.0] * 2], dtype=float),
        }
        super().__init__(
            S=[HUNGRY, FULL],
            A=[FEED, IGNORE],
            O=[CRYING, QUIET],
            T=T,
            Z=Z,
            R=R,
            gamma=discount,
            b0=np.array([0.0, 1.0]),
        )


class FeedWhenCrying(Policy):
    """Feed if the baby cried at the last step, otherwise ignore it."""

    def action(self, previous_observation: Any) -> str:
        if previous_observation == CRYING:
            return FEED
        return IGNORE

    def default_updater(self, process: DecisionProcess) -> Updater:
        return PreviousObservationUpdater()


class AlwaysFeed(FixedPolicy):
    def __init__(self):
        super().__init__(FEED)


class Starve(FixedPolicy):
    def __init__(self):
        super().__init__(IGNORE)
