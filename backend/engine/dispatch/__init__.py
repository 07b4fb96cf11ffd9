"""Dispatch engine for the zonal grid simulation.

* **merit_order** -- greedy per-zone thermal dispatch by variable cost.
* **renewables** -- zonal solar and wind output from weather samples.
"""

from .merit_order import dispatch_thermal, determine_unit_target, merit_order, reserve_shortfall
from .renewables import zone_renewable_output

__all__ = [
    "dispatch_thermal",
    "determine_unit_target",
    "merit_order",
    "reserve_shortfall",
    "zone_renewable_output",
]
