"""
Node model for the deployment outage simulator.

Defines node configuration (static outage and cache parameters) and node
state (release cursors and timers that change during a trial).
"""

from dataclasses import dataclass, field

from .schedule import ReleaseSchedule
from .timeunits import Minutes


@dataclass
class NodeConfig:
    """Static configuration for a node.

    Attributes:
        name: Node name ("A", "B" or "C").
        outage_duration: Minutes a node is unavailable after a bad release.
        cache_warmup: Minutes the node's cache stays cold after the origin
            node has a bad release. None means the node has no cache to fall
            back on.
    """

    name: str
    outage_duration: Minutes = Minutes(9)
    cache_warmup: Minutes | None = None

    def __post_init__(self) -> None:
        if self.outage_duration <= 0:
            raise ValueError(
                f"outage_duration must be positive, got {self.outage_duration}"
            )
        if self.cache_warmup is not None and self.cache_warmup <= 0:
            raise ValueError(
                f"cache_warmup must be positive or None, got {self.cache_warmup}"
            )

    @property
    def has_cache(self) -> bool:
        return self.cache_warmup is not None


class ReleaseCursor:
    """Lookahead slot over an ascending sequence of release times.

    ``peek()`` returns the next pending time, or None once the sequence is
    exhausted.
    """

    __slots__ = ("_times", "_index")

    def __init__(self, times: tuple[Minutes, ...]):
        self._times = times
        self._index = 0

    def peek(self) -> Minutes | None:
        if self._index < len(self._times):
            return self._times[self._index]
        return None

    def consume_if(self, time: Minutes) -> bool:
        """Advance past the pending value if it equals ``time``."""
        if self.peek() == time:
            self._index += 1
            return True
        return False

    def __len__(self) -> int:
        return len(self._times) - self._index

    def __repr__(self) -> str:
        return f"ReleaseCursor(next={self.peek()}, remaining={len(self)})"


@dataclass
class NodeState:
    """Dynamic state of a node during one trial.

    Attributes:
        config: Static configuration for the node.
        schedule: The node's releases for this trial.
        unavailable_until: End of the current outage, or None if serving.
        cache_cold_until: End of the current cache warm-up, or None if the
            cache is warm (always None for nodes without a cache).
    """

    config: NodeConfig
    schedule: ReleaseSchedule
    unavailable_until: Minutes | None = None
    cache_cold_until: Minutes | None = None
    releases: ReleaseCursor = field(init=False, repr=False)
    bad_releases: ReleaseCursor = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.releases = ReleaseCursor(self.schedule.releases)
        self.bad_releases = ReleaseCursor(self.schedule.bad_releases)

    @property
    def name(self) -> str:
        return self.config.name

    def is_available(self) -> bool:
        return self.unavailable_until is None

    def cache_is_warm(self) -> bool:
        return self.config.has_cache and self.cache_cold_until is None

    def can_serve(self) -> bool:
        """Check if requests routed to this node are answered.

        A node in outage still serves from a warm cache, if it has one.
        """
        return self.is_available() or self.cache_is_warm()

    def pending_times(self) -> list[Minutes]:
        """All pending cursor values and armed timers."""
        candidates = [
            self.releases.peek(),
            self.bad_releases.peek(),
            self.unavailable_until,
            self.cache_cold_until,
        ]
        return [t for t in candidates if t is not None]

    def start_outage(self, time: Minutes) -> None:
        self.unavailable_until = Minutes(time + self.config.outage_duration)

    def cool_cache(self, time: Minutes) -> None:
        """Restart the cache warm-up, overwriting any in progress."""
        if self.config.cache_warmup is not None:
            self.cache_cold_until = Minutes(time + self.config.cache_warmup)

    def __repr__(self) -> str:
        status = []
        if self.unavailable_until is not None:
            status.append(f"down until {self.unavailable_until}")
        if self.cache_cold_until is not None:
            status.append(f"cache cold until {self.cache_cold_until}")
        status_str = ", ".join(status) if status else "healthy"
        return f"NodeState({self.name}, {status_str})"
