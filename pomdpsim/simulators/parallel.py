"""
Batch execution of independent simulations.

Each Sim describes one self-contained run. run_parallel() executes a list of
them, sequentially or on a pool of workers, and collects one row per Sim into
a pandas DataFrame whose row order always matches the input order.
"""

from __future__ import annotations

import copy
import numbers
import threading
import time
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd
from tqdm.auto import tqdm

from pomdpsim.errors import ConfigurationError
from pomdpsim.pomdp.interfaces import DecisionProcess, Policy, Updater
from pomdpsim.schemas.config import BatchOptions
from pomdpsim.simulators.history import HistoryRecorder, SimHistory
from pomdpsim.utils.logging_utils import get_logger

logger = get_logger(__name__)

AnalysisFn = Callable[["Sim", SimHistory], Mapping[str, Any]]


def _is_non_negative_int(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool) and value >= 0


@dataclass
class Sim:
    """
    Descriptor of one simulation in a batch.

    Attributes:
        problem: Process to simulate
        policy: Policy to evaluate
        updater: Belief updater (policy's default if None)
        max_steps: Hard step ceiling (defaults to Config.DEFAULT_MAX_STEPS)
        seed: Seed for this run's simulator random source
        initial_state: Fixed start state (sampled if None)
        metadata: Caller tags copied into this run's result row
    """
    problem: DecisionProcess
    policy: Policy
    updater: Optional[Updater] = None
    max_steps: Optional[int] = None
    seed: Optional[int] = None
    initial_state: Any = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.problem, DecisionProcess):
            raise ConfigurationError(f"Sim.problem must be a DecisionProcess, got {type(self.problem).__name__}")
        if not isinstance(self.policy, Policy):
            raise ConfigurationError(f"Sim.policy must be a Policy, got {type(self.policy).__name__}")
        if self.updater is not None and not isinstance(self.updater, Updater):
            raise ConfigurationError(f"Sim.updater must be an Updater, got {type(self.updater).__name__}")
        if self.max_steps is not None and not _is_non_negative_int(self.max_steps):
            raise ConfigurationError(f"Sim.max_steps must be a non-negative int, got {self.max_steps!r}")
        if self.seed is not None and not _is_non_negative_int(self.seed):
            raise ConfigurationError(f"Sim.seed must be a non-negative int, got {self.seed!r}")
        if not isinstance(self.metadata, dict):
            raise ConfigurationError("Sim.metadata must be a dict")
        if "error" in self.metadata:
            raise ConfigurationError("'error' is reserved for the result table and cannot be a metadata key")

    def simulate(self) -> SimHistory:
        max_steps = None if self.max_steps is None else int(self.max_steps)
        seed = None if self.seed is None else int(self.seed)
        recorder = HistoryRecorder(max_steps=max_steps, seed=seed)
        return recorder.simulate(self.problem, self.policy, self.updater, initial_state=self.initial_state)


def default_analysis(sim: Sim, history: SimHistory) -> Dict[str, Any]:
    return {"reward": history.discounted_reward()}


def _run_indexed(index: int, sim: Sim, analyze: Optional[AnalysisFn]) -> Tuple[int, Dict[str, Any]]:
    """
    Run one Sim on a private copy and build its row.

    Errors are turned into a row-level marker so sibling runs are unaffected.
    """
    row: Dict[str, Any] = dict(sim.metadata)
    try:
        # Runs never share policies, updaters or problem state
        own = copy.deepcopy(sim)
        history = own.simulate()
        stats = (analyze or default_analysis)(own, history)
        if not isinstance(stats, Mapping):
            raise TypeError(f"analysis function must return a mapping, got {type(stats).__name__}")
        clashes = sorted(set(stats) & set(sim.metadata))
        if clashes:
            raise ConfigurationError(f"analysis fields {clashes} collide with metadata keys")
        row.update(stats)
        row["error"] = None
    except Exception as exc:
        logger.warning(f"Simulation {index} failed: {type(exc).__name__}: {exc}")
        row["error"] = f"{type(exc).__name__}: {exc}"
    return index, row


class _BatchProgress:
    """
    Process-wide progress bar for a batch.

    Created when the batch starts and closed when it ends; updates from
    concurrent workers are serialized through a shared lock.
    """

    _lock = threading.Lock()

    def __init__(self, total: int, enabled: bool):
        self.total = total
        self.enabled = enabled
        self._bar = None

    def __enter__(self) -> "_BatchProgress":
        with self._lock:
            self._bar = tqdm(total=self.total, desc="Simulations", unit="sim", disable=not self.enabled)
        return self

    def update(self, n: int = 1) -> None:
        with self._lock:
            self._bar.update(n)

    def __exit__(self, *exc_info) -> None:
        with self._lock:
            self._bar.close()
            self._bar = None


def _run_sequential(
    pending: Sequence[int],
    sims: Sequence[Sim],
    analyze: Optional[AnalysisFn],
    rows: List[Optional[Dict[str, Any]]],
    progress: _BatchProgress,
) -> None:
    for i in pending:
        _, rows[i] = _run_indexed(i, sims[i], analyze)
        progress.update()


def _run_with_executor(
    executor: Executor,
    sims: Sequence[Sim],
    analyze: Optional[AnalysisFn],
    rows: List[Optional[Dict[str, Any]]],
    progress: _BatchProgress,
) -> None:
    future_to_index = {
        executor.submit(_run_indexed, i, sim, analyze): i for i, sim in enumerate(sims)
    }
    for future in as_completed(future_to_index):
        i = future_to_index[future]
        try:
            _, rows[i] = future.result()
        except Exception as exc:
            # Failures outside the run itself (e.g. pickling for a worker process)
            logger.warning(f"Simulation {i} failed in worker: {type(exc).__name__}: {exc}")
            rows[i] = dict(sims[i].metadata)
            rows[i]["error"] = f"{type(exc).__name__}: {exc}"
        progress.update()


def run_parallel(
    sims: Sequence[Sim],
    analyze: Optional[AnalysisFn] = None,
    n_workers: Optional[int] = None,
    backend: Optional[str] = None,
    show_progress: Optional[bool] = None,
) -> pd.DataFrame:
    """
    Run a batch of simulations and collect one row per Sim.

    Args:
        sims: Simulation descriptors
        analyze: Per-run function (sim, history) -> mapping of named fields;
            defaults to {"reward": discounted reward}. Must not mutate shared state.
        n_workers: Number of workers (defaults to Config.N_WORKERS)
        backend: "sequential", "thread" or "process" (defaults to Config.PARALLEL_BACKEND)
        show_progress: Render a progress bar (defaults to Config.SHOW_PROGRESS)

    Returns:
        DataFrame with the metadata columns, the analysis columns and an
        "error" column (None for successful runs), in input order
    """
    overrides = {
        key: value
        for key, value in {"n_workers": n_workers, "backend": backend, "show_progress": show_progress}.items()
        if value is not None
    }
    options = BatchOptions(**overrides)
    sims = list(sims)
    for i, sim in enumerate(sims):
        if not isinstance(sim, Sim):
            raise ConfigurationError(f"Item {i} of the batch is not a Sim: {type(sim).__name__}")

    rows: List[Optional[Dict[str, Any]]] = [None] * len(sims)
    use_pool = options.backend != "sequential" and options.n_workers > 1 and len(sims) > 1
    logger.info(
        f"Running {len(sims)} simulations "
        f"({options.backend if use_pool else 'sequential'}, workers={options.n_workers if use_pool else 1})"
    )
    start = time.time()

    with _BatchProgress(len(sims), options.show_progress) as progress:
        if use_pool and options.backend == "thread":
            with ThreadPoolExecutor(max_workers=options.n_workers) as executor:
                _run_with_executor(executor, sims, analyze, rows, progress)
        elif use_pool:
            try:
                with ProcessPoolExecutor(max_workers=options.n_workers) as executor:
                    _run_with_executor(executor, sims, analyze, rows, progress)
            except (PermissionError, NotImplementedError, OSError) as exc:
                logger.warning(f"Process pool unavailable ({exc}), falling back to sequential execution")
                pending = [i for i, row in enumerate(rows) if row is None]
                _run_sequential(pending, sims, analyze, rows, progress)
        else:
            _run_sequential(range(len(sims)), sims, analyze, rows, progress)

    n_failed = sum(1 for row in rows if row["error"] is not None)
    logger.info(f"Completed {len(sims)} simulations in {time.time() - start:.2f}s ({n_failed} failed)")

    df = pd.DataFrame(rows)
    if "error" not in df.columns:
        df["error"] = pd.Series(dtype=object)
    # Keep the error marker as the last column
    return df[[c for c in df.columns if c != "error"] + ["error"]]


def run(
    sims: Sequence[Sim],
    analyze: Optional[AnalysisFn] = None,
    show_progress: Optional[bool] = None,
) -> pd.DataFrame:
    """Sequential counterpart of run_parallel with the same output."""
    return run_parallel(sims, analyze=analyze, backend="sequential", show_progress=show_progress)
