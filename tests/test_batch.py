from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest
import yaml
from pydantic import ValidationError

from pomdpsim.errors import ConfigurationError
from pomdpsim.models import BabyPOMDP, SimpleGridWorld, TigerPOMDP
from pomdpsim.pomdp import DiscreteUpdater, RandomPolicy, ThresholdPolicy
from pomdpsim.schemas import BatchSpec, build_sims, load_batch
from pomdpsim.utils import validate_results_table
from scripts.run_batch import run_batch, summarize_results


def _write_batch(tmp_path: Path, data: dict) -> Path:
    path = tmp_path / "batch.yaml"
    with open(path, "w") as f:
        yaml.safe_dump(data, f)
    return path


def _small_batch() -> dict:
    return {
        "name": "small",
        "max_steps": 15,
        "n_workers": 2,
        "backend": "thread",
        "runs": [
            {"name": "tiger_random", "problem": "tiger", "policy": "random", "seeds": [1, 2]},
            {
                "problem": "crying_baby",
                "policy": "threshold",
                "policy_params": {"state": "hungry", "action_above": "feed", "action_below": "ignore"},
                "updater": "discrete",
                "max_steps": 5,
                "seeds": [3],
                "metadata": {"variant": "default"},
            },
        ],
    }


def test_load_batch(tmp_path):
    """Batch files are parsed and defaults filled in."""
    spec = load_batch(str(_write_batch(tmp_path, _small_batch())))

    assert spec.name == "small"
    assert len(spec.runs) == 2
    assert spec.runs[0].label == "tiger_random"
    assert spec.runs[1].label == "crying_baby_threshold"
    assert spec.outputs.save_csv is True


def test_load_batch_errors(tmp_path):
    """Missing files, non-mapping files and bad fields are rejected."""
    with pytest.raises(FileNotFoundError):
        load_batch(str(tmp_path / "missing.yaml"))

    path = tmp_path / "list.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigurationError):
        load_batch(str(path))

    data = _small_batch()
    data["runs"][0]["problem"] = "mountain_car"
    with pytest.raises(ValidationError):
        load_batch(str(_write_batch(tmp_path, data)))

    data = _small_batch()
    data["runs"][0]["seeds"] = [-1]
    with pytest.raises(ValidationError):
        BatchSpec(**data)


def test_build_sims():
    """One Sim per (group, seed) with fresh instances and tagged metadata."""
    sims = build_sims(BatchSpec(**_small_batch()))

    assert len(sims) == 3
    assert [s.metadata["run"] for s in sims] == ["tiger_random", "tiger_random", "crying_baby_threshold"]
    assert [s.seed for s in sims] == [1, 2, 3]
    assert [s.max_steps for s in sims] == [15, 15, 5]

    assert isinstance(sims[0].problem, TigerPOMDP)
    assert isinstance(sims[0].policy, RandomPolicy)
    assert sims[0].problem is not sims[1].problem
    assert sims[0].updater is None

    assert isinstance(sims[2].problem, BabyPOMDP)
    assert isinstance(sims[2].policy, ThresholdPolicy)
    assert isinstance(sims[2].updater, DiscreteUpdater)
    assert sims[2].metadata["variant"] == "default"


def test_build_sims_rejects_bad_params():
    """Parameters that don't fit the problem or policy are configuration errors."""
    data = _small_batch()
    data["runs"][1]["policy_params"]["state"] = "sleepy"
    with pytest.raises(ConfigurationError):
        build_sims(BatchSpec(**data))

    data = _small_batch()
    data["runs"][0]["problem_params"] = {"r_roar": -3}
    with pytest.raises(ConfigurationError):
        build_sims(BatchSpec(**data))


def test_gridworld_params_from_yaml():
    """Grid sizes and reward cells written as YAML strings become tuples."""
    data = {
        "name": "grid",
        "runs": [{
            "problem": "gridworld",
            "problem_params": {"size": [4, 4], "rewards": {"4,4": 1.0, "(1, 4)": -1.0}},
            "policy": "random",
        }],
    }
    sims = build_sims(BatchSpec(**data))
    grid = sims[0].problem

    assert isinstance(grid, SimpleGridWorld)
    assert grid.size == (4, 4)
    assert grid.rewards == {(4, 4): 1.0, (1, 4): -1.0}


def test_run_batch_writes_outputs(tmp_path):
    """Smoke test: run a batch file end to end and verify outputs."""
    batch_path = _write_batch(tmp_path, _small_batch())
    output_base = tmp_path / "runs"

    results = run_batch(batch_path, output_base)

    assert len(results) == 3
    assert results["error"].isna().all(), results["error"].tolist()
    assert results["reward"].notna().all()

    run_dirs = list((output_base / "small").iterdir())
    assert len(run_dirs) == 1
    saved = pd.read_csv(run_dirs[0] / "results.csv")
    assert saved["seed"].tolist() == [1, 2, 3]

    with open(run_dirs[0] / "summary.json") as f:
        summary = json.load(f)
    assert set(summary) == {"tiger_random", "crying_baby_threshold"}
    assert summary["tiger_random"]["n_runs"] == 2
    assert summary["tiger_random"]["n_failed"] == 0


def test_summarize_results_counts_failures():
    """Failed runs are excluded from the reward statistics."""
    results = pd.DataFrame({
        "run": ["a", "a", "a", "b"],
        "reward": [1.0, 3.0, None, -2.0],
        "error": [None, None, "DomainError: boom", None],
    })
    summary = summarize_results(results)

    assert summary["a"]["n_runs"] == 3
    assert summary["a"]["n_failed"] == 1
    assert summary["a"]["mean_reward"] == pytest.approx(2.0)
    assert summary["b"]["std_reward"] == 0.0


def test_validate_results_table():
    """Result tables must be non-empty and carry the required columns."""
    df = pd.DataFrame({"run": ["a"], "seed": [1], "error": [None]})
    assert validate_results_table(df, required_columns=["run", "seed", "error"])

    with pytest.raises(ValueError, match="Missing required columns"):
        validate_results_table(df, required_columns=["reward"])
    with pytest.raises(ValueError):
        validate_results_table(df.iloc[0:0])
    with pytest.raises(ValueError):
        validate_results_table([{"run": "a"}])
