#!/usr/bin/env python3
from __future__ import annotations

import json
from pathlib import Path
from datetime import datetime
from typing import Dict, Optional

import pandas as pd

from pomdpsim.config import Config
from pomdpsim.schemas.batch import load_batch, build_sims
from pomdpsim.simulators.parallel import run_parallel
from pomdpsim.utils.data_validation import validate_results_table
from pomdpsim.utils.logging_utils import get_logger

logger = get_logger(__name__)


def summarize_results(results: pd.DataFrame) -> Dict[str, Dict[str, float]]:
    """Mean/std reward and failure count per run group."""
    summary: Dict[str, Dict[str, float]] = {}
    for run_name, group in results.groupby("run", sort=False):
        ok = group[group["error"].isna()]
        rewards = ok["reward"] if "reward" in ok.columns else pd.Series(dtype=float)
        summary[str(run_name)] = {
            "n_runs": int(len(group)),
            "n_failed": int(len(group) - len(ok)),
            "mean_reward": float(rewards.mean()) if len(rewards) else float("nan"),
            "std_reward": float(rewards.std(ddof=1)) if len(rewards) > 1 else 0.0,
        }
    return summary


def run_batch(batch_path: Path, output_base: Optional[Path] = None) -> pd.DataFrame:
    """
    Run every simulation described in a batch file and write its outputs.

    Args:
        batch_path: YAML batch file
        output_base: Base directory for outputs (defaults to the batch's outputs.out_dir)

    Returns:
        DataFrame with one row per simulation
    """
    spec = load_batch(str(batch_path))
    sims = build_sims(spec)

    results = run_parallel(
        sims,
        n_workers=spec.n_workers,
        backend=spec.backend,
        show_progress=spec.show_progress,
    )
    validate_results_table(results, required_columns=["run", "seed", "error"])

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    base = output_base if output_base is not None else Path(spec.outputs.out_dir)
    out_dir = base / spec.name / timestamp
    out_dir.mkdir(parents=True, exist_ok=True)

    if spec.outputs.save_csv:
        results.to_csv(out_dir / "results.csv", index=False)
    with open(out_dir / "summary.json", "w", encoding="utf-8") as f:
        json.dump(summarize_results(results), f, indent=2, sort_keys=True)

    logger.info(f"Batch '{spec.name}' complete: {len(results)} simulations, outputs in {out_dir}")
    return results


def main() -> int:
    """Main entrypoint for the batch runner."""
    import argparse

    parser = argparse.ArgumentParser(description="Run a batch of POMDP/MDP simulations from a YAML file.")
    parser.add_argument("--batch", required=True, help="Path to batch YAML.")
    parser.add_argument("--output-dir", type=str, default=None,
                        help="Base output directory (defaults to outputs.out_dir in the batch file)")
    args = parser.parse_args()

    output_base = Path(args.output_dir) if args.output_dir else None
    if output_base is None:
        Config.ensure_directories()

    results = run_batch(Path(args.batch), output_base)

    print("\n=== Results ===")
    print(results.to_string(index=False))

    return 0 if results["error"].isna().all() else 1


if __name__ == "__main__":
    raise SystemExit(main())
