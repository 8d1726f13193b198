"""
Simulation drivers: step-through, rollout, history recording and batch runs.
"""

from pomdpsim.simulators.base import Step, parse_spec, simulate_steps
from pomdpsim.simulators.stepthrough import stepthrough
from pomdpsim.simulators.rollout import RolloutSimulator
from pomdpsim.simulators.history import HistoryRecorder, SimHistory, discounted_reward, n_steps
from pomdpsim.simulators.parallel import Sim, run_parallel, run, default_analysis

__all__ = [
    "Step",
    "parse_spec",
    "simulate_steps",
    "stepthrough",
    "RolloutSimulator",
    "HistoryRecorder",
    "SimHistory",
    "discounted_reward",
    "n_steps",
    "Sim",
    "run_parallel",
    "run",
    "default_analysis",
]
