"""
Release schedule generation for the deployment outage simulator.

Each node deploys a fixed number of releases per year at random minutes,
never two within ``min_gap`` minutes of each other. A few of those releases
are "bad" and take the node down for a while after they land.
"""

from dataclasses import dataclass

import numpy as np

from .timeunits import Minutes, YEAR_TIME


class ScheduleGenerationError(RuntimeError):
    """Raised when the spacing constraint cannot be satisfied in time."""


@dataclass
class ScheduleConfig:
    """Parameters for one node's yearly release schedule.

    Attributes:
        horizon: Length of the simulated window in minutes. Release times
            are drawn from ``[0, horizon)``.
        release_count: Number of releases per node per window.
        bad_release_count: How many of those releases cause an outage.
        min_gap: Two releases must be strictly more than this many minutes
            apart.
        max_attempts: Upper bound on candidate draws before giving up with
            ScheduleGenerationError.
    """

    horizon: Minutes = YEAR_TIME
    release_count: int = 30
    bad_release_count: int = 3
    min_gap: Minutes = Minutes(60)
    max_attempts: int = 1_000_000

    def __post_init__(self) -> None:
        if self.horizon <= 0:
            raise ValueError(f"horizon must be positive, got {self.horizon}")
        if self.release_count < 1:
            raise ValueError(
                f"release_count must be >= 1, got {self.release_count}"
            )
        if not 0 <= self.bad_release_count <= self.release_count:
            raise ValueError(
                f"bad_release_count must be in [0, release_count], "
                f"got {self.bad_release_count}"
            )
        if self.min_gap < 0:
            raise ValueError(f"min_gap must be >= 0, got {self.min_gap}")
        if self.max_attempts < self.release_count:
            raise ValueError(
                f"max_attempts ({self.max_attempts}) must be >= "
                f"release_count ({self.release_count})"
            )
        # Tightest packing puts releases exactly min_gap + 1 apart.
        span_needed = (self.release_count - 1) * (self.min_gap + 1)
        if span_needed >= self.horizon:
            raise ValueError(
                f"{self.release_count} releases spaced more than "
                f"{self.min_gap} minutes apart cannot fit in {self.horizon} minutes"
            )


@dataclass(frozen=True)
class ReleaseSchedule:
    """One node's releases for a simulated year.

    Attributes:
        releases: All release times, strictly ascending.
        bad_releases: The subset of ``releases`` that cause an outage,
            ascending.
    """

    releases: tuple[Minutes, ...]
    bad_releases: tuple[Minutes, ...]

    def is_bad(self, time: Minutes) -> bool:
        """Check whether the release at ``time`` is a bad one."""
        return time in self.bad_releases

    def __repr__(self) -> str:
        return (
            f"ReleaseSchedule({len(self.releases)} releases, "
            f"bad={list(self.bad_releases)})"
        )


def _is_spaced(accepted: list[int], candidate: int, min_gap: int) -> bool:
    return all(abs(candidate - t) > min_gap for t in accepted)


def generate_release_times(
    rng: np.random.Generator, config: ScheduleConfig
) -> list[Minutes]:
    """Draw release times by rejection sampling.

    Candidates are drawn uniformly from ``[0, horizon)`` and rejected if
    they fall within ``min_gap`` minutes of an already accepted time.

    Args:
        rng: NumPy random number generator for reproducibility.
        config: Schedule parameters.

    Returns:
        ``release_count`` release times, sorted ascending.

    Raises:
        ScheduleGenerationError: If ``max_attempts`` candidates were drawn
            without accepting enough releases.
    """
    accepted: list[int] = []
    attempts = 0

    while len(accepted) < config.release_count:
        # Draw in blocks; per-call overhead dominates single draws.
        block = rng.integers(0, config.horizon, size=config.release_count)
        for candidate in block.tolist():
            if attempts >= config.max_attempts:
                raise ScheduleGenerationError(
                    f"cannot satisfy spacing constraint: accepted "
                    f"{len(accepted)} of {config.release_count} releases "
                    f"after {attempts} attempts (min_gap={config.min_gap}, "
                    f"horizon={config.horizon})"
                )
            attempts += 1
            if _is_spaced(accepted, candidate, config.min_gap):
                accepted.append(candidate)
                if len(accepted) == config.release_count:
                    break

    accepted.sort()
    return [Minutes(t) for t in accepted]


def choose_bad_releases(
    rng: np.random.Generator,
    releases: list[Minutes],
    config: ScheduleConfig,
) -> list[Minutes]:
    """Pick the bad releases uniformly at random without replacement.

    Args:
        rng: NumPy random number generator for reproducibility.
        releases: The node's full release schedule.
        config: Schedule parameters.

    Returns:
        ``bad_release_count`` distinct release times, sorted ascending.
    """
    indices = rng.choice(len(releases), size=config.bad_release_count, replace=False)
    return sorted(releases[i] for i in indices.tolist())


def generate_schedule(
    rng: np.random.Generator, config: ScheduleConfig | None = None
) -> ReleaseSchedule:
    """Generate one node's full schedule and its bad-release subset."""
    if config is None:
        config = ScheduleConfig()

    releases = generate_release_times(rng, config)
    bad_releases = choose_bad_releases(rng, releases, config)

    assert len(set(bad_releases)) == config.bad_release_count
    assert set(bad_releases) <= set(releases)

    return ReleaseSchedule(releases=tuple(releases), bad_releases=tuple(bad_releases))
