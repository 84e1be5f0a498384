"""
Cluster state for the deployment outage simulator.

The service runs on three nodes. A is the origin of truth; B and C answer
from their own caches of A when they are down themselves. A bad release on
A therefore also cools B's and C's caches.
"""

from dataclasses import dataclass, field

from .node import NodeConfig, NodeState
from .schedule import ReleaseSchedule
from .timeunits import Minutes


def default_node_configs() -> tuple[NodeConfig, NodeConfig, NodeConfig]:
    """The standard A/B/C setup: 9 minute outages, 30/40 minute warm-ups."""
    return (
        NodeConfig(name="A", outage_duration=Minutes(9)),
        NodeConfig(name="B", outage_duration=Minutes(9), cache_warmup=Minutes(30)),
        NodeConfig(name="C", outage_duration=Minutes(9), cache_warmup=Minutes(40)),
    )


@dataclass
class ClusterState:
    """Complete state of the three-node service during one trial.

    Attributes:
        origin: Node A. Has no cache; the system is down whenever it is.
        replicas: Nodes B and C, each with a cache of A.
        current_time: Time of the last processed event.
    """

    origin: NodeState
    replicas: tuple[NodeState, NodeState]
    current_time: Minutes = field(default_factory=lambda: Minutes(0))

    def __post_init__(self) -> None:
        if self.origin.config.has_cache:
            raise ValueError(f"origin node {self.origin.name} must not have a cache")
        for node in self.replicas:
            if not node.config.has_cache:
                raise ValueError(f"replica node {node.name} must have a cache")

    @classmethod
    def from_schedules(
        cls,
        configs: tuple[NodeConfig, NodeConfig, NodeConfig],
        schedules: tuple[ReleaseSchedule, ReleaseSchedule, ReleaseSchedule],
        warm_caches: bool = False,
    ) -> "ClusterState":
        """Build the initial state of a trial.

        Args:
            configs: Configs for A, B and C, in that order.
            schedules: Schedules for A, B and C, in that order.
            warm_caches: If False, replica caches start cold and warm up
                over their usual warm-up time, as after a fresh start.

        Returns:
            ClusterState at time 0 with every node serving.
        """
        origin_config, *replica_configs = configs
        origin_schedule, *replica_schedules = schedules

        origin = NodeState(config=origin_config, schedule=origin_schedule)
        replicas = tuple(
            NodeState(config=config, schedule=schedule)
            for config, schedule in zip(replica_configs, replica_schedules)
        )
        cluster = cls(origin=origin, replicas=replicas)
        if not warm_caches:
            for node in cluster.replicas:
                node.cool_cache(Minutes(0))
        return cluster

    @property
    def nodes(self) -> tuple[NodeState, ...]:
        return (self.origin, *self.replicas)

    def get_node(self, name: str) -> NodeState | None:
        for node in self.nodes:
            if node.name == name:
                return node
        return None

    def is_available(self) -> bool:
        """Check whether the system as a whole is serving.

        Up iff A is available and each of B and C is either available or
        has a warm cache.
        """
        return self.origin.is_available() and all(
            node.can_serve() for node in self.replicas
        )

    def next_event_time(self) -> Minutes | None:
        """Earliest pending release or armed timer across all nodes."""
        candidates = [t for node in self.nodes for t in node.pending_times()]
        if not candidates:
            return None
        return min(candidates)

    def __repr__(self) -> str:
        state = "up" if self.is_available() else "down"
        return f"ClusterState(t={self.current_time}, {state}, {list(self.nodes)})"
