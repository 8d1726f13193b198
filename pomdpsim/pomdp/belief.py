"""
Discrete distributions and the exact Bayesian belief update.
"""

from typing import Any, Dict, Hashable, List, Optional, Sequence

import numpy as np

from pomdpsim.errors import DomainError
from pomdpsim.utils.data_validation import validate_probabilities
from pomdpsim.utils.logging_utils import get_logger

logger = get_logger(__name__)


def sample_index(cdf: np.ndarray, rng: np.random.Generator) -> int:
    """
    Draw an index from a cumulative distribution using exactly one uniform draw.

    Args:
        cdf: Cumulative probabilities (last entry ~1)
        rng: Random number generator

    Returns:
        Sampled index
    """
    idx = int(np.searchsorted(cdf, rng.random(), side="right"))
    # Guard against round-off when the last cumulative entry is slightly below 1
    return min(idx, len(cdf) - 1)


class DiscreteBelief:
    """
    Immutable categorical distribution over a finite list of labels.

    Used both for initial-state distributions and for beliefs maintained by
    DiscreteUpdater.

    Attributes:
        labels: Support labels (states or observations)
        probs: Probability of each label, same order as labels
    """

    __slots__ = ("labels", "probs", "_index", "_cdf")

    def __init__(self, labels: Sequence[Hashable], probs: Sequence[float]):
        labels = list(labels)
        probs = np.array(probs, dtype=float)
        if probs.shape != (len(labels),):
            raise ValueError(
                f"probs has shape {probs.shape}, expected ({len(labels)},)"
            )
        validate_probabilities(probs, name="belief")
        probs.setflags(write=False)
        self.labels: List[Hashable] = labels
        self.probs: np.ndarray = probs
        self._index: Dict[Hashable, int] = {x: i for i, x in enumerate(labels)}
        self._cdf: np.ndarray = np.cumsum(probs)

    @classmethod
    def uniform(cls, labels: Sequence[Hashable]) -> "DiscreteBelief":
        labels = list(labels)
        return cls(labels, np.full(len(labels), 1.0 / len(labels)))

    @classmethod
    def deterministic(cls, labels: Sequence[Hashable], value: Hashable) -> "DiscreteBelief":
        labels = list(labels)
        if value not in labels:
            raise DomainError(f"{value!r} is not one of {labels}")
        probs = np.zeros(len(labels))
        probs[labels.index(value)] = 1.0
        return cls(labels, probs)

    def pdf(self, x: Hashable) -> float:
        """Probability of label x (0.0 for labels outside the support)."""
        idx = self._index.get(x)
        if idx is None:
            return 0.0
        return float(self.probs[idx])

    def sample(self, rng: np.random.Generator) -> Any:
        return self.labels[sample_index(self._cdf, rng)]

    def support(self) -> List[Hashable]:
        return [x for x, p in zip(self.labels, self.probs) if p > 0.0]

    def mode(self) -> Any:
        return self.labels[int(np.argmax(self.probs))]

    def as_dict(self) -> Dict[Hashable, float]:
        return {x: float(p) for x, p in zip(self.labels, self.probs)}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DiscreteBelief):
            return NotImplemented
        return self.labels == other.labels and np.array_equal(self.probs, other.probs)

    def __hash__(self) -> int:
        return hash((tuple(self.labels), self.probs.tobytes()))

    def __repr__(self) -> str:
        body = ", ".join(f"{x!r}: {p:.4f}" for x, p in zip(self.labels, self.probs))
        return f"DiscreteBelief({{{body}}})"


def belief_update(
    pomdp: Any,
    belief: np.ndarray,
    action: Hashable,
    observation: Hashable,
    T: Optional[np.ndarray] = None,
    Z: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Update belief state: b' ∝ Z[a][:,o] * (T[a].T @ b)

    Args:
        pomdp: POMDP model exposing S, A, O, T and Z (see TabularPOMDP)
        belief: Current belief vector (|S|,)
        action: Action taken
        observation: Observation received
        T: Transition matrix for the action (looked up on the model if omitted)
        Z: Emission matrix for the action (looked up on the model if omitted)

    Returns:
        Updated belief vector (normalized)

    Raises:
        DomainError: If the action or observation is unknown, or the
            observation has zero likelihood under the predicted belief
    """
    if action not in pomdp.A:
        raise DomainError(f"Action {action} not in POMDP actions")

    if observation not in pomdp.O:
        raise DomainError(f"Observation {observation} not in POMDP observations")

    o_idx = pomdp.O.index(observation)
    T_a = pomdp.T[action] if T is None else T
    Z_a = pomdp.Z[action] if Z is None else Z

    # Predict, then weight by the observation likelihood
    predicted_belief = T_a.T @ belief
    new_belief = Z_a[:, o_idx] * predicted_belief

    norm = new_belief.sum()
    if norm <= 0.0:
        raise DomainError(
            f"Observation {observation} has zero probability after action {action}; "
            "belief cannot be updated"
        )

    return new_belief / norm
