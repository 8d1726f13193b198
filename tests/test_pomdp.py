"""
Tests for the POMDP interfaces, beliefs, updaters and policies.
"""

import pytest
import numpy as np

from pomdpsim.errors import DomainError
from pomdpsim.models import BabyPOMDP, SimpleGridWorld, TigerPOMDP
from pomdpsim.pomdp import (
    POMDP,
    DiscreteBelief,
    DiscreteUpdater,
    FixedPolicy,
    FunctionPolicy,
    MyopicPolicy,
    NothingUpdater,
    PreviousObservationUpdater,
    RandomPolicy,
    TabularPOMDP,
    ThresholdPolicy,
    belief_update,
)


def _maintenance_pomdp(**overrides) -> TabularPOMDP:
    kwargs = dict(
        S=["healthy", "failed"],
        A=["ignore", "repair"],
        O=["obs1", "obs2"],
        T={
            "ignore": np.array([[0.9, 0.1], [0.1, 0.9]]),
            "repair": np.array([[0.5, 0.5], [0.8, 0.2]]),
        },
        Z={
            "ignore": np.array([[0.8, 0.2], [0.2, 0.8]]),
            "repair": np.array([[0.9, 0.1], [0.3, 0.7]]),
        },
        R={
            "ignore": np.array([[10.0, -100.0], [-100.0, 10.0]]),
            "repair": np.array([[5.0, -50.0], [-50.0, 5.0]]),
        },
        gamma=0.95,
    )
    kwargs.update(overrides)
    return TabularPOMDP(**kwargs)


class DelegatingTiger(POMDP):
    """Tiger exposed only through the generic interface (not a TabularPOMDP)."""

    def __init__(self):
        self.inner = TigerPOMDP()

    def states(self):
        return self.inner.states()

    def actions(self):
        return self.inner.actions()

    def observations(self):
        return self.inner.observations()

    def discount(self):
        return self.inner.discount()

    def initial_state_distribution(self):
        return self.inner.initial_state_distribution()

    def step(self, state, action, rng):
        return self.inner.step(state, action, rng)

    def transition(self, state, action):
        return self.inner.transition(state, action)

    def observation(self, action, next_state):
        return self.inner.observation(action, next_state)


def test_belief_update_normalized():
    """Test that belief update returns normalized distribution."""
    pomdp = _maintenance_pomdp()
    belief = np.array([0.7, 0.3])

    new_belief = belief_update(pomdp, belief, "ignore", "obs1")

    assert np.isclose(new_belief.sum(), 1.0), "Belief should be normalized"
    assert np.all(new_belief >= 0), "Belief should be non-negative"
    assert len(new_belief) == len(pomdp.S), "Belief should have correct length"


def test_belief_update_nonnegativity():
    """Test that belief update returns non-negative values."""
    pomdp = TabularPOMDP(
        S=["healthy", "failed"],
        A=["ignore"],
        O=["obs1"],
        T={"ignore": np.array([[0.5, 0.5], [0.5, 0.5]])},
        Z={"ignore": np.array([[1.0], [1.0]])},
        R={"ignore": np.array([[0.0, 0.0], [0.0, 0.0]])},
    )

    new_belief = belief_update(pomdp, np.array([0.5, 0.5]), "ignore", "obs1")

    assert np.all(new_belief >= 0), "Belief should be non-negative"
    assert np.all(new_belief <= 1.0 + 1e-6), "Belief probabilities should be <= 1"


def test_belief_update_rejects_unknown_observation():
    """Unknown observations are a domain error, not silently replaced."""
    pomdp = _maintenance_pomdp()
    with pytest.raises(DomainError):
        belief_update(pomdp, np.array([0.5, 0.5]), "ignore", "obs3")
    with pytest.raises(DomainError):
        belief_update(pomdp, np.array([0.5, 0.5]), "replace", "obs1")


def test_belief_update_rejects_impossible_observation():
    """An observation with zero likelihood cannot be conditioned on."""
    pomdp = _maintenance_pomdp(
        Z={
            "ignore": np.array([[1.0, 0.0], [1.0, 0.0]]),
            "repair": np.array([[1.0, 0.0], [1.0, 0.0]]),
        }
    )
    with pytest.raises(DomainError, match="zero probability"):
        belief_update(pomdp, np.array([0.5, 0.5]), "ignore", "obs2")


def test_tabular_pomdp_validation():
    """Malformed tables are rejected at construction."""
    with pytest.raises(ValueError, match="rows do not sum to 1"):
        _maintenance_pomdp(T={
            "ignore": np.array([[0.9, 0.2], [0.1, 0.9]]),
            "repair": np.array([[0.5, 0.5], [0.8, 0.2]]),
        })
    with pytest.raises(ValueError, match="Missing emission matrix"):
        _maintenance_pomdp(Z={"ignore": np.array([[0.8, 0.2], [0.2, 0.8]])})
    with pytest.raises(ValueError, match="gamma"):
        _maintenance_pomdp(gamma=0.0)
    with pytest.raises(ValueError, match="Terminal state"):
        _maintenance_pomdp(terminal=["exploded"])


def test_tabular_step_is_reproducible_and_checks_domain():
    """Same (state, action, seed) gives the same outcome; bad inputs raise."""
    pomdp = _maintenance_pomdp()
    outcomes = [
        pomdp.step("healthy", "repair", np.random.default_rng(11)) for _ in range(3)
    ]
    assert outcomes[0] == outcomes[1] == outcomes[2]

    sp, o, r = outcomes[0]
    assert sp in pomdp.S and o in pomdp.O
    assert isinstance(r, float)

    with pytest.raises(DomainError):
        pomdp.step("healthy", "replace", np.random.default_rng(0))
    with pytest.raises(DomainError):
        pomdp.step("broken", "ignore", np.random.default_rng(0))


def test_discrete_belief_basics():
    """Uniform/deterministic constructors, pdf, support and sampling."""
    uniform = DiscreteBelief.uniform(["a", "b", "c", "d"])
    assert uniform.pdf("a") == pytest.approx(0.25)
    assert uniform.pdf("z") == 0.0
    assert uniform.support() == ["a", "b", "c", "d"]

    point = DiscreteBelief.deterministic(["a", "b"], "b")
    rng = np.random.default_rng(0)
    assert all(point.sample(rng) == "b" for _ in range(20))
    assert point.mode() == "b"
    assert point.support() == ["b"]
    assert point.as_dict() == {"a": 0.0, "b": 1.0}

    with pytest.raises(ValueError):
        DiscreteBelief(["a", "b"], [0.7, 0.7])
    with pytest.raises(ValueError):
        DiscreteBelief(["a", "b"], [1.0])
    with pytest.raises(DomainError):
        DiscreteBelief.deterministic(["a", "b"], "c")


def test_discrete_belief_is_immutable():
    """Beliefs handed to policies cannot be modified in place."""
    belief = DiscreteBelief.uniform(["x", "y"])
    with pytest.raises(ValueError):
        belief.probs[0] = 1.0


def test_tiger_listen_posterior():
    """Exact Bayesian filtering on the tiger problem."""
    tiger = TigerPOMDP()
    updater = DiscreteUpdater(tiger)

    b0 = updater.initial_belief(tiger)
    assert b0.pdf("tiger_left") == pytest.approx(0.5)

    b1 = updater.update(b0, "listen", "tiger_left")
    assert b1.pdf("tiger_left") == pytest.approx(0.85)

    b2 = updater.update(b1, "listen", "tiger_left")
    expected = 0.85 ** 2 / (0.85 ** 2 + 0.15 ** 2)
    assert b2.pdf("tiger_left") == pytest.approx(expected)

    # Opening a door re-hides the tiger and the observation carries no information
    b3 = updater.update(b2, "open_left", "tiger_right")
    assert b3.pdf("tiger_left") == pytest.approx(0.5)

    # The prior is never mutated
    assert b0.pdf("tiger_left") == pytest.approx(0.5)


def test_generic_updater_matches_tabular_path():
    """Models without tables are filtered through transition()/observation()."""
    tabular = DiscreteUpdater(TigerPOMDP())
    generic = DiscreteUpdater(DelegatingTiger())

    b_tab = tabular.initial_belief()
    b_gen = generic.initial_belief()
    for action, obs in [("listen", "tiger_left"), ("listen", "tiger_right"),
                        ("listen", "tiger_right"), ("open_right", "tiger_left")]:
        b_tab = tabular.update(b_tab, action, obs)
        b_gen = generic.update(b_gen, action, obs)
        assert np.allclose(b_tab.probs, b_gen.probs)

    with pytest.raises(DomainError):
        generic.update(b_gen, "listen", "growl")


def test_simple_updaters():
    """NothingUpdater keeps nothing; PreviousObservationUpdater keeps the last observation."""
    tiger = TigerPOMDP()

    nothing = NothingUpdater()
    assert nothing.initial_belief(tiger) is None
    assert nothing.update(None, "listen", "tiger_left") is None

    previous = PreviousObservationUpdater()
    assert previous.initial_belief(tiger) is None
    assert previous.update(None, "listen", "tiger_left") == "tiger_left"
    assert previous.update("tiger_left", "listen", "tiger_right") == "tiger_right"


def test_fixed_and_function_policies():
    """Fixed and function policies and their default updaters."""
    tiger = TigerPOMDP()

    fixed = FixedPolicy("listen")
    assert fixed.action(None) == "listen"
    assert isinstance(fixed.default_updater(tiger), NothingUpdater)

    fn = FunctionPolicy(lambda o: "open_right" if o == "tiger_left" else "listen")
    assert fn.action("tiger_left") == "open_right"
    assert fn.action(None) == "listen"
    assert isinstance(fn.default_updater(tiger), PreviousObservationUpdater)


def test_random_policy_is_seeded_and_in_domain():
    """Random policies with the same seed agree and stay inside the action space."""
    tiger = TigerPOMDP()
    first = RandomPolicy(tiger, seed=3)
    second = RandomPolicy(tiger, seed=3)

    actions_first = [first.action(None) for _ in range(50)]
    actions_second = [second.action(None) for _ in range(50)]

    assert actions_first == actions_second
    assert set(actions_first) <= set(tiger.actions())
    assert len(set(actions_first)) > 1, "50 uniform draws over 3 actions should not all agree"


def test_myopic_policy():
    """Myopic policy listens when unsure and opens the safe door when confident."""
    tiger = TigerPOMDP()
    policy = MyopicPolicy(tiger)

    assert policy.action(DiscreteBelief.uniform(tiger.S)) == "listen"
    confident_left = DiscreteBelief(tiger.S, [0.99, 0.01])
    assert policy.action(confident_left) == "open_right"
    assert isinstance(policy.default_updater(tiger), DiscreteUpdater)

    with pytest.raises(ValueError):
        MyopicPolicy(SimpleGridWorld())


def test_threshold_policy():
    """Threshold policy on the crying baby problem."""
    baby = BabyPOMDP()
    policy = ThresholdPolicy(baby, state="hungry", action_above="feed", action_below="ignore")

    assert policy.action(DiscreteBelief(baby.S, [0.7, 0.3])) == "feed"
    assert policy.action(DiscreteBelief(baby.S, [0.2, 0.8])) == "ignore"
    assert isinstance(policy.default_updater(baby), DiscreteUpdater)

    with pytest.raises(ValueError):
        ThresholdPolicy(baby, state="sleepy", action_above="feed", action_below="ignore")
    with pytest.raises(ValueError):
        ThresholdPolicy(baby, state="hungry", action_above="sing", action_below="ignore")
    with pytest.raises(ValueError):
        ThresholdPolicy(baby, state="hungry", action_above="feed", action_below="ignore", threshold=1.5)
