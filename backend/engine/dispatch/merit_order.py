"""Merit-order thermal dispatch with ramp and minimum-output constraints.

Within each zone, units are ranked from cheapest to most expensive
variable cost and walked in that order, each taking as much of the zone's
remaining net load as its constraints allow:

**Outaged unit:** contributes nothing; operator toggle disabled.
**Commanded off, already at zero:** stays at zero and decommits.
**Commanded off, still generating:** ramps down by one ramp step; the
  ramp-down output still serves load.
**Commanded on:** targets ``min(output + ramp, pmax)`` capped at the
  remaining load, but never below ``min(pmin, max_output)`` while there
  is load to serve; unused headroom (up to ``reserve_cap``) is spinning
  reserve.

This is a greedy single pass per zone.  It does not co-optimise across
zones; transmission balancing settles inter-zone imbalances afterwards.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from engine.generator.thermal_unit import OFF_OUTPUT_EPSILON_MW, ThermalUnit
from engine.simulation.state import ZoneAllocation, ZoneTick

logger = logging.getLogger(__name__)


def merit_order(
    units: Sequence[ThermalUnit],
    fuel_price_override: Optional[float] = None,
) -> list[ThermalUnit]:
    """Units sorted by ascending variable cost (stable for ties)."""
    return sorted(units, key=lambda u: u.variable_cost(fuel_price_override))


def determine_unit_target(
    unit: ThermalUnit,
    load_remaining: float,
    allocation: ZoneAllocation,
) -> float:
    """Set ``unit.target_output`` for this tick and book it to *allocation*.

    Returns
    -------
    float
        Load served by the unit (MW).
    """
    if unit.on_outage:
        unit.target_output = 0.0
        unit.toggle_allowed = False
        unit.toggle_reason = "Outage"
        return 0.0

    unit.toggle_allowed = True
    unit.toggle_reason = ""

    if not unit.command_on and unit.output <= OFF_OUTPUT_EPSILON_MW:
        unit.target_output = 0.0
        unit.committed = False
        return 0.0

    spec = unit.spec
    if not unit.command_on:
        # Shutting down: follow the ramp toward zero.
        unit.target_output = max(0.0, unit.output - spec.ramp)
        allocation.output += unit.target_output
        return unit.target_output

    max_output = min(spec.pmax, unit.output + spec.ramp)
    min_output = min(spec.pmin, max_output)

    desired = min(max_output, load_remaining)
    if desired < min_output and load_remaining > 0:
        desired = min(max_output, max(min_output, load_remaining))

    unit.target_output = desired
    reserve = max(0.0, min(spec.reserve_cap, max_output - desired))
    allocation.output += desired
    allocation.reserve += reserve
    return desired


def dispatch_thermal(
    zones: Sequence[ZoneTick],
    units: Sequence[ThermalUnit],
    fuel_price_override: Optional[float] = None,
) -> dict[str, ZoneAllocation]:
    """Run merit-order dispatch in every zone.

    Each zone's ``net_load`` is replaced by the load left over after its
    own units (the shortfall carried into transmission balancing).

    Parameters
    ----------
    zones : sequence of ZoneTick
        Per-zone working figures; ``net_load`` must already account for
        renewables and the battery.
    units : sequence of ThermalUnit
        All thermal units; updated in place.
    fuel_price_override : float, optional
        Replaces every unit's fuel price when set.

    Returns
    -------
    dict[str, ZoneAllocation]
        Scheduled thermal output and reserve keyed by zone id.
    """
    allocations: dict[str, ZoneAllocation] = {}
    for zone in zones:
        allocation = ZoneAllocation()
        allocations[zone.id] = allocation
        zone_units = [u for u in units if u.zone == zone.id]

        load_remaining = zone.net_load
        for unit in merit_order(zone_units, fuel_price_override):
            served = determine_unit_target(unit, load_remaining, allocation)
            load_remaining = max(0.0, load_remaining - served)
        zone.net_load = load_remaining

        logger.debug(
            "Zone %s: thermal %.1f MW, reserve %.1f MW, shortfall %.1f MW",
            zone.id, allocation.output, allocation.reserve, load_remaining,
        )
    return allocations


def reserve_shortfall(zone: ZoneTick, allocation: ZoneAllocation, reserve_percent: float) -> float:
    """Spinning reserve below ``load * reserve_percent / 100`` (MW)."""
    requirement = zone.load * reserve_percent / 100.0
    return max(0.0, requirement - allocation.reserve)
