"""
Discrete-event simulation of deployment-induced outages.

This package simulates one year of releases on a three-node service and
records the intervals during which the whole service was unavailable.
"""

from .timeunits import Minutes, hours, days, YEAR_TIME
from .schedule import (
    ScheduleConfig,
    ReleaseSchedule,
    ScheduleGenerationError,
    generate_release_times,
    choose_bad_releases,
    generate_schedule,
)
from .node import NodeConfig, NodeState, ReleaseCursor
from .events import EventType, Event
from .cluster import ClusterState, default_node_configs
from .metrics import DowntimeAccumulator
from .simulator import TrialConfig, TrialResult, TrialSimulator, run_trial

__all__ = [
    # Time units
    "Minutes",
    "hours",
    "days",
    "YEAR_TIME",
    # Schedules
    "ScheduleConfig",
    "ReleaseSchedule",
    "ScheduleGenerationError",
    "generate_release_times",
    "choose_bad_releases",
    "generate_schedule",
    # Node
    "NodeConfig",
    "NodeState",
    "ReleaseCursor",
    # Events
    "EventType",
    "Event",
    # Cluster
    "ClusterState",
    "default_node_configs",
    # Metrics
    "DowntimeAccumulator",
    # Simulator
    "TrialConfig",
    "TrialResult",
    "TrialSimulator",
    "run_trial",
]
