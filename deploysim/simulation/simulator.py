"""
Discrete-event trial simulator for the deployment outage model.

One trial simulates a year of releases on nodes A, B and C. Instead of a
priority queue, the simulator keeps a lookahead slot per release stream and
per timer, and repeatedly jumps to the smallest pending time. Everything due
at that minute is applied as one batch before availability is re-evaluated.
"""

import logging
from dataclasses import dataclass, field

import numpy as np

from .cluster import ClusterState, default_node_configs
from .events import Event, EventType
from .metrics import DowntimeAccumulator
from .node import NodeConfig, NodeState
from .schedule import ScheduleConfig, generate_schedule
from .timeunits import Minutes

logger = logging.getLogger(__name__)


@dataclass
class TrialConfig:
    """Configuration shared by every trial of a run.

    Attributes:
        schedule: Release schedule parameters, used for every node.
        nodes: Configs for A, B and C, in that order.
        warm_caches_at_start: If False, B's and C's caches start cold and
            warm up over their usual warm-up time.
    """

    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    nodes: tuple[NodeConfig, NodeConfig, NodeConfig] = field(
        default_factory=default_node_configs
    )
    warm_caches_at_start: bool = False

    def __post_init__(self) -> None:
        if len(self.nodes) != 3:
            raise ValueError(f"nodes must hold exactly 3 configs, got {len(self.nodes)}")

    @property
    def min_downtime(self) -> int:
        """Smallest possible downtime per trial: A's outages alone."""
        origin = self.nodes[0]
        if self.schedule.bad_release_count == 0:
            return 0
        if self.schedule.min_gap < origin.outage_duration:
            # A's own outages may overlap
            return origin.outage_duration
        return self.schedule.bad_release_count * origin.outage_duration

    @property
    def max_downtime(self) -> int:
        """Largest possible downtime per trial: every outage disjoint."""
        return self.schedule.bad_release_count * sum(
            node.outage_duration for node in self.nodes
        )


@dataclass
class TrialResult:
    """Result of one trial.

    Attributes:
        downtime: Total minutes the system was unavailable.
        intervals: Closed downtime intervals, in order.
        end_time: Time of the last processed event.
        event_log: Every event processed (if logging enabled).
    """

    downtime: int
    intervals: list[tuple[Minutes, Minutes]]
    end_time: Minutes
    event_log: list[Event] = field(default_factory=list)


class TrialSimulator:
    """Runs one trial over a prepared cluster state.

    The simulator maintains:
    - The cluster state (release cursors and timers per node)
    - A downtime accumulator
    - An optional event log

    Each step:
    1. Finds the earliest pending release or timer across all nodes
    2. Applies every release, bad release and timer expiry at that minute
    3. Records a downtime transition if system availability changed
    """

    def __init__(self, cluster: ClusterState, log_events: bool = False):
        """Initialize the simulator.

        Args:
            cluster: Initial cluster state with schedules attached.
            log_events: Whether to keep a log of all events.
        """
        self.cluster = cluster
        self.log_events = log_events
        self.downtime = DowntimeAccumulator(
            capacity=sum(len(node.bad_releases) for node in cluster.nodes)
        )
        self.event_log: list[Event] = []
        self._trace = logger.isEnabledFor(logging.DEBUG)

    @classmethod
    def from_config(
        cls,
        rng: np.random.Generator,
        config: TrialConfig,
        log_events: bool = False,
    ) -> "TrialSimulator":
        """Draw fresh schedules for A, B and C and build a simulator."""
        schedules = tuple(generate_schedule(rng, config.schedule) for _ in config.nodes)
        if logger.isEnabledFor(logging.DEBUG):
            for node_config, schedule in zip(config.nodes, schedules):
                logger.debug(
                    "%s releases: %s, bad: %s",
                    node_config.name,
                    list(schedule.releases),
                    list(schedule.bad_releases),
                )
        cluster = ClusterState.from_schedules(
            config.nodes, schedules, warm_caches=config.warm_caches_at_start
        )
        return cls(cluster, log_events=log_events)

    def _log(self, time: Minutes, event_type: EventType, node: str) -> None:
        if self.log_events:
            self.event_log.append(Event(time=time, event_type=event_type, node=node))

    def _expire_timers(self, node: NodeState, time: Minutes) -> None:
        if node.unavailable_until == time:
            node.unavailable_until = None
            self._log(time, EventType.OUTAGE_END, node.name)
        if node.cache_cold_until == time:
            node.cache_cold_until = None
            self._log(time, EventType.CACHE_WARM, node.name)

    def _apply_bad_release(self, node: NodeState, time: Minutes) -> None:
        if self._trace:
            logger.debug("%s bad release at %d", node.name, time)
        self._log(time, EventType.BAD_RELEASE, node.name)
        node.start_outage(time)
        if node is self.cluster.origin:
            # Replicas cache A, so their caches must refill from scratch.
            for replica in self.cluster.replicas:
                replica.cool_cache(time)

    def _apply_batch(self, time: Minutes) -> None:
        """Apply everything due at ``time`` before availability is checked."""
        nodes = self.cluster.nodes

        for node in nodes:
            if node.releases.consume_if(time):
                self._log(time, EventType.RELEASE, node.name)

        for node in nodes:
            self._expire_timers(node, time)

        for node in nodes:
            if node.bad_releases.consume_if(time):
                self._apply_bad_release(node, time)

        self.cluster.current_time = time

    def step(self) -> bool:
        """Process the next batch of events.

        Returns:
            False if there was nothing left to process.
        """
        time = self.cluster.next_event_time()
        if time is None:
            return False

        available_before = self.cluster.is_available()
        self._apply_batch(time)
        available_after = self.cluster.is_available()

        if self.downtime.record(time, available_before, available_after):
            if available_after:
                if self._trace:
                    logger.debug("Up at %d", time)
                self._log(time, EventType.SYSTEM_UP, "system")
            else:
                if self._trace:
                    logger.debug("Down at %d", time)
                self._log(time, EventType.SYSTEM_DOWN, "system")
        return True

    def run(self) -> TrialResult:
        """Run until no releases or timers remain.

        Returns:
            TrialResult with total downtime and its intervals.
        """
        if self._trace:
            logger.debug("Start simulation")
        while self.step():
            pass
        if self._trace:
            logger.debug("End of the simulation, downs: %s", self.downtime.intervals)

        # Every timer expires eventually, so the last transition is always up.
        assert not self.downtime.is_open

        return TrialResult(
            downtime=self.downtime.total(),
            intervals=list(self.downtime.intervals),
            end_time=self.cluster.current_time,
            event_log=self.event_log if self.log_events else [],
        )


def run_trial(rng: np.random.Generator, config: TrialConfig | None = None) -> int:
    """Run one trial with fresh schedules and return its total downtime.

    Args:
        rng: NumPy random number generator owned by the caller.
        config: Trial configuration (defaults to the standard A/B/C setup).

    Returns:
        Minutes of downtime in the simulated year.
    """
    if config is None:
        config = TrialConfig()
    result = TrialSimulator.from_config(rng, config).run()
    assert config.min_downtime <= result.downtime <= config.max_downtime, (
        f"downtime {result.downtime} outside "
        f"[{config.min_downtime}, {config.max_downtime}]"
    )
    return result.downtime
