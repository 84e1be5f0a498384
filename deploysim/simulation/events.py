"""
Event types for the deployment outage simulator.

The trial simulator does not queue events; it merges sorted release streams
and timers directly. These types describe what happened at each step so a
trial can be traced after the fact.
"""

from dataclasses import dataclass, field
from enum import Enum

from .timeunits import Minutes


class EventType(Enum):
    """Kinds of things that can happen during a trial."""

    # Node events
    RELEASE = "release"  # Any deployment, good or bad
    BAD_RELEASE = "bad_release"  # Deployment that takes the node down
    OUTAGE_END = "outage_end"  # Node serves again
    CACHE_WARM = "cache_warm"  # Cache can serve as fallback again

    # System events
    SYSTEM_DOWN = "system_down"
    SYSTEM_UP = "system_up"


@dataclass(order=True)
class Event:
    """Something that happened at a specific minute.

    Events are ordered by time only.

    Attributes:
        time: When the event occurred (in minutes).
        event_type: Type of event (not used for ordering).
        node: Name of the affected node, or "system" for system events.
    """

    time: Minutes
    event_type: EventType = field(compare=False)
    node: str = field(compare=False)

    def __repr__(self) -> str:
        return f"Event({self.time}m, {self.event_type.value}, {self.node})"
