"""
Time units for the deployment outage simulator.

All time values are integer minutes from the start of the simulated year.
Helper functions provide readable constructors for larger units.
"""

from typing import NewType

# Explicit time unit - all times are whole minutes
Minutes = NewType("Minutes", int)


def hours(h: int) -> Minutes:
    """Convert hours to minutes."""
    return Minutes(h * 60)


def days(d: int) -> Minutes:
    """Convert days to minutes."""
    return Minutes(d * 24 * 60)


YEAR_TIME: Minutes = days(365)
