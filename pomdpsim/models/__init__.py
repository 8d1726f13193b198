"""
Predefined problem models.
"""

from pomdpsim.models.tiger import TigerPOMDP
from pomdpsim.models.crying_baby import BabyPOMDP, FeedWhenCrying, AlwaysFeed, Starve
from pomdpsim.models.gridworld import SimpleGridWorld

__all__ = [
    "TigerPOMDP",
    "BabyPOMDP",
    "FeedWhenCrying",
    "AlwaysFeed",
    "Starve",
    "SimpleGridWorld",
]
