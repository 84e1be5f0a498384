"""
Downtime accounting for the deployment outage simulator.

Tracks the intervals during which the whole system was unavailable in one
trial.
"""

from dataclasses import dataclass, field

from .timeunits import Minutes


@dataclass
class DowntimeAccumulator:
    """Collects downtime intervals during a trial.

    Each node's bad release contributes at most one down/up transition, and
    overlapping outages only merge intervals, so a trial never closes more
    than ``capacity`` intervals.

    Attributes:
        capacity: Upper bound on closed intervals (nodes x bad releases).
        intervals: Closed ``(start, end)`` downtime intervals, in order.
    """

    capacity: int = 9
    intervals: list[tuple[Minutes, Minutes]] = field(default_factory=list)

    _open_since: Minutes | None = None

    @property
    def is_open(self) -> bool:
        return self._open_since is not None

    def record(self, time: Minutes, available_before: bool, available_after: bool) -> bool:
        """Record a possible availability transition at ``time``.

        Args:
            time: Time of the batch of events just applied.
            available_before: System availability before the batch.
            available_after: System availability after the batch.

        Returns:
            True if an interval was opened or closed.
        """
        if available_before and not available_after:
            self.open(time)
            return True
        if not available_before and available_after:
            self.close(time)
            return True
        return False

    def open(self, time: Minutes) -> None:
        if self._open_since is not None:
            raise ValueError(f"Downtime already open since {self._open_since}")
        self._open_since = time

    def close(self, time: Minutes) -> None:
        if self._open_since is None:
            raise ValueError(f"No open downtime to close at {time}")
        if time < self._open_since:
            raise ValueError(f"Time went backwards: {self._open_since} -> {time}")
        self.intervals.append((self._open_since, time))
        self._open_since = None
        assert len(self.intervals) <= self.capacity

    def total(self) -> int:
        """Sum of closed interval durations in minutes."""
        return sum(end - start for start, end in self.intervals)

    def availability_fraction(self, horizon: Minutes) -> float:
        """Fraction of ``horizon`` during which the system was up."""
        if horizon <= 0:
            return 1.0
        return 1.0 - self.total() / horizon

    def __repr__(self) -> str:
        return (
            f"DowntimeAccumulator({len(self.intervals)} intervals, "
            f"total={self.total()}m)"
        )
