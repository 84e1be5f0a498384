"""
Monte Carlo runner for the deployment outage model.

Runs many independent one-year trials, in parallel if requested, and reduces
their downtime into exact totals. Average downtime and availability are kept
as exact rationals so that ten million trials do not accumulate floating
point error.
"""

import logging
import math
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Callable

import numpy as np
from scipy import stats as scipy_stats

from .simulation.simulator import TrialConfig, run_trial
from .simulation.timeunits import Minutes, YEAR_TIME

logger = logging.getLogger(__name__)


@dataclass
class MonteCarloConfig:
    """Configuration for a Monte Carlo run.

    Attributes:
        num_trials: Number of independent trials to run.
        parallel_workers: Number of worker processes (1 = sequential).
        chunk_size: Trials per unit of work handed to a worker. Each chunk
            gets its own random generator, so results for a given seed do
            not depend on the number of workers.
        base_seed: Seed for reproducibility (None draws fresh entropy).
    """

    num_trials: int = 10_000_000
    parallel_workers: int = 1
    chunk_size: int = 100_000
    base_seed: int | None = None

    def __post_init__(self) -> None:
        if self.num_trials < 1:
            raise ValueError(f"num_trials must be >= 1, got {self.num_trials}")
        if self.parallel_workers < 1:
            raise ValueError(
                f"parallel_workers must be >= 1, got {self.parallel_workers}"
            )
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {self.chunk_size}")

    def chunk_sizes(self) -> list[int]:
        """Split num_trials into chunks of at most chunk_size trials."""
        full, rest = divmod(self.num_trials, self.chunk_size)
        sizes = [self.chunk_size] * full
        if rest:
            sizes.append(rest)
        return sizes


@dataclass
class MonteCarloResults:
    """Aggregated results from a Monte Carlo run.

    Per-trial downtime is a small integer, so instead of keeping every
    sample the results hold an exact histogram of them.

    Attributes:
        num_trials: Number of trials aggregated.
        downtime_sum: Total downtime in minutes across all trials.
        downtime_counts: ``downtime_counts[m]`` is the number of trials with
            exactly ``m`` minutes of downtime.
        horizon: Length of one trial in minutes.
    """

    num_trials: int = 0
    downtime_sum: int = 0
    downtime_counts: np.ndarray = field(
        default_factory=lambda: np.zeros(0, dtype=np.int64), compare=False
    )
    horizon: Minutes = YEAR_TIME

    @classmethod
    def from_samples(
        cls, samples: np.ndarray, horizon: Minutes = YEAR_TIME
    ) -> "MonteCarloResults":
        """Build results from an array of per-trial downtimes."""
        samples = np.asarray(samples, dtype=np.int64)
        return cls(
            num_trials=int(samples.size),
            downtime_sum=int(samples.sum()),
            downtime_counts=np.bincount(samples),
            horizon=horizon,
        )

    def merge(self, other: "MonteCarloResults") -> None:
        """Fold another partial result into this one."""
        if other.horizon != self.horizon:
            raise ValueError(
                f"Cannot merge results with different horizons: "
                f"{self.horizon} vs {other.horizon}"
            )
        size = max(len(self.downtime_counts), len(other.downtime_counts))
        counts = np.zeros(size, dtype=np.int64)
        counts[: len(self.downtime_counts)] += self.downtime_counts
        counts[: len(other.downtime_counts)] += other.downtime_counts

        self.num_trials += other.num_trials
        self.downtime_sum += other.downtime_sum
        self.downtime_counts = counts

    def average_downtime(self) -> Fraction:
        """Exact mean downtime per trial, in minutes."""
        if self.num_trials == 0:
            return Fraction(0)
        return Fraction(self.downtime_sum, self.num_trials)

    def availability_percent(self) -> Fraction:
        """Exact availability percentage: 100 * (1 - average / horizon)."""
        return 100 * (1 - self.average_downtime() / self.horizon)

    def downtime_std(self) -> float:
        """Sample standard deviation of per-trial downtime."""
        if self.num_trials < 2:
            return 0.0
        values = np.arange(len(self.downtime_counts))
        mean = self.downtime_sum / self.num_trials
        squared = float(np.sum(self.downtime_counts * (values - mean) ** 2))
        return math.sqrt(squared / (self.num_trials - 1))

    def downtime_percentile(self, p: float) -> int:
        """Nearest-rank percentile of per-trial downtime.

        Args:
            p: Percentile (0-100).

        Returns:
            Smallest downtime such that at least p% of trials are at or
            below it.
        """
        if not 0 <= p <= 100:
            raise ValueError(f"Percentile must be in [0, 100], got {p}")
        if self.num_trials == 0:
            return 0
        cumulative = np.cumsum(self.downtime_counts)
        rank = max(1, math.ceil(p / 100 * self.num_trials))
        return int(np.searchsorted(cumulative, rank))

    def min_downtime(self) -> int | None:
        """Smallest per-trial downtime observed."""
        observed = np.flatnonzero(self.downtime_counts)
        return int(observed[0]) if observed.size else None

    def max_downtime(self) -> int | None:
        """Largest per-trial downtime observed."""
        observed = np.flatnonzero(self.downtime_counts)
        return int(observed[-1]) if observed.size else None

    def ci_average_downtime(
        self, confidence_level: float = 0.95
    ) -> tuple[float, float] | None:
        """Confidence interval for the mean downtime per trial.

        Uses the t-distribution for the CI.

        Args:
            confidence_level: Desired confidence level (e.g., 0.95 for 95% CI).

        Returns:
            Tuple of (lower_bound, upper_bound) in minutes, or None if fewer
            than 2 trials were run.
        """
        n = self.num_trials
        if n < 2:
            return None
        mean = float(self.average_downtime())
        alpha = 1.0 - confidence_level
        t_crit = scipy_stats.t.ppf(1 - alpha / 2, df=n - 1)
        margin = t_crit * self.downtime_std() / math.sqrt(n)
        return (mean - margin, mean + margin)

    def summary(self) -> str:
        """Generate a text summary of results."""
        average = self.average_downtime()
        lines = [
            f"Monte Carlo Results ({self.num_trials} trials)",
            f"  Mean downtime: {float(average):.4f} min/year "
            f"(std: {self.downtime_std():.4f})",
        ]
        ci = self.ci_average_downtime()
        if ci is not None:
            lines.append(f"  95% CI: [{ci[0]:.4f}, {ci[1]:.4f}] min/year")
        if self.num_trials:
            lines.append(
                f"  Range: [{self.min_downtime()}, {self.max_downtime()}] min, "
                f"median {self.downtime_percentile(50)}, "
                f"p99 {self.downtime_percentile(99)}"
            )
        lines.append(f"  Availability: {float(self.availability_percent()):.6f}%")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"MonteCarloResults(n={self.num_trials}, "
            f"availability={float(self.availability_percent()):.6f}%)"
        )


def _run_trial_chunk(
    num_trials: int,
    seed: np.random.SeedSequence,
    trial_config: TrialConfig,
) -> MonteCarloResults:
    """Run a chunk of trials on one generator (used for parallel execution).

    This is a module-level function to support multiprocessing.
    """
    rng = np.random.default_rng(seed)
    samples = np.fromiter(
        (run_trial(rng, trial_config) for _ in range(num_trials)),
        dtype=np.int64,
        count=num_trials,
    )
    return MonteCarloResults.from_samples(samples, horizon=trial_config.schedule.horizon)


class MonteCarloRunner:
    """Runs many independent trials and aggregates their downtime.

    Supports parallel execution for faster results on multi-core systems.
    """

    def __init__(self, config: MonteCarloConfig):
        """Initialize the runner.

        Args:
            config: Monte Carlo configuration.
        """
        self.config = config

    def run(
        self,
        trial_config: TrialConfig | None = None,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> MonteCarloResults:
        """Run all trials.

        Args:
            trial_config: Configuration for each trial (defaults to the
                standard A/B/C setup).
            progress_callback: Optional callback(completed, total) for
                progress updates, in trials.

        Returns:
            Aggregated MonteCarloResults.
        """
        if trial_config is None:
            trial_config = TrialConfig()

        sizes = self.config.chunk_sizes()
        seeds = np.random.SeedSequence(self.config.base_seed).spawn(len(sizes))
        results = MonteCarloResults(horizon=trial_config.schedule.horizon)

        logger.info(
            "Running %d trials in %d chunks on %d worker(s)",
            self.config.num_trials,
            len(sizes),
            self.config.parallel_workers,
        )

        if self.config.parallel_workers > 1:
            self._run_parallel(sizes, seeds, trial_config, results, progress_callback)
        else:
            self._run_sequential(sizes, seeds, trial_config, results, progress_callback)

        return results

    def _run_sequential(
        self,
        sizes: list[int],
        seeds: list[np.random.SeedSequence],
        trial_config: TrialConfig,
        results: MonteCarloResults,
        progress_callback: Callable[[int, int], None] | None,
    ) -> None:
        """Run chunks one after another in this process."""
        for size, seed in zip(sizes, seeds):
            partial = _run_trial_chunk(size, seed, trial_config)
            self._collect_result(partial, results, progress_callback)

    def _run_parallel(
        self,
        sizes: list[int],
        seeds: list[np.random.SeedSequence],
        trial_config: TrialConfig,
        results: MonteCarloResults,
        progress_callback: Callable[[int, int], None] | None,
    ) -> None:
        """Run chunks in parallel using ProcessPoolExecutor."""
        with ProcessPoolExecutor(max_workers=self.config.parallel_workers) as executor:
            futures = [
                executor.submit(_run_trial_chunk, size, seed, trial_config)
                for size, seed in zip(sizes, seeds)
            ]

            for future in as_completed(futures):
                self._collect_result(future.result(), results, progress_callback)

    def _collect_result(
        self,
        partial: MonteCarloResults,
        results: MonteCarloResults,
        progress_callback: Callable[[int, int], None] | None,
    ) -> None:
        """Merge a finished chunk into the aggregated results."""
        results.merge(partial)
        logger.info(
            "Completed %d/%d trials", results.num_trials, self.config.num_trials
        )
        if progress_callback:
            progress_callback(results.num_trials, self.config.num_trials)


def run_monte_carlo(
    num_trials: int = 10_000_000,
    trial_config: TrialConfig | None = None,
    parallel_workers: int = 1,
    chunk_size: int = 100_000,
    seed: int | None = None,
) -> MonteCarloResults:
    """Convenience function to run a Monte Carlo estimate.

    Args:
        num_trials: Number of independent trials.
        trial_config: Configuration for each trial.
        parallel_workers: Number of parallel workers.
        chunk_size: Trials per unit of work.
        seed: Base random seed.

    Returns:
        MonteCarloResults with aggregated statistics.
    """
    config = MonteCarloConfig(
        num_trials=num_trials,
        parallel_workers=parallel_workers,
        chunk_size=chunk_size,
        base_seed=seed,
    )

    runner = MonteCarloRunner(config)
    return runner.run(trial_config=trial_config)
