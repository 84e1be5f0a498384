"""
Monte Carlo estimator for deployment-induced downtime.

Simulates a year of releases on a three-node service, where B and C can
fall back on caches of the origin node A, and aggregates millions of such
years into an expected downtime and availability percentage.
"""

__version__ = "0.1.0"
