"""
Decision-process, policy and belief-updater interfaces with tabular implementations.
"""

from pomdpsim.pomdp.belief import DiscreteBelief, belief_update
from pomdpsim.pomdp.interfaces import DecisionProcess, MDP, POMDP, Policy, Updater
from pomdpsim.pomdp.schema import TabularPOMDP, TabularMDP
from pomdpsim.pomdp.updaters import DiscreteUpdater, NothingUpdater, PreviousObservationUpdater
from pomdpsim.pomdp.policies import (
    FunctionPolicy,
    FixedPolicy,
    RandomPolicy,
    MyopicPolicy,
    ThresholdPolicy,
)

__all__ = [
    "DiscreteBelief",
    "belief_update",
    "DecisionProcess",
    "MDP",
    "POMDP",
    "Policy",
    "Updater",
    "TabularPOMDP",
    "TabularMDP",
    "DiscreteUpdater",
    "NothingUpdater",
    "PreviousObservationUpdater",
    "FunctionPolicy",
    "FixedPolicy",
    "RandomPolicy",
    "MyopicPolicy",
    "ThresholdPolicy",
]
