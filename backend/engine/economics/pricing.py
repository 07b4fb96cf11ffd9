"""Zonal clearing prices.

A zone's price is set by the most expensive of its units scheduled this
tick (floored at :data:`PRICE_FLOOR`), plus any congestion adder, capped
at the scenario price cap.  Whenever load is shed anywhere on the system,
every zone clears at the cap.
"""

from __future__ import annotations

from typing import Optional, Sequence

from engine.generator.thermal_unit import ThermalUnit
from engine.simulation.state import ZoneTick

PRICE_FLOOR: float = 30.0


def marginal_cost(
    zone_id: str,
    units: Sequence[ThermalUnit],
    fuel_price_override: Optional[float] = None,
) -> float:
    """Highest variable cost among the zone's dispatched units, floored."""
    cost = PRICE_FLOOR
    for unit in units:
        if unit.zone == zone_id and unit.target_output > 0:
            cost = max(cost, unit.variable_cost(fuel_price_override))
    return cost


def zone_price(
    zone: ZoneTick,
    units: Sequence[ThermalUnit],
    price_cap: float,
    load_shed: bool,
    fuel_price_override: Optional[float] = None,
) -> float:
    """Clearing price for *zone* this tick, never above *price_cap*."""
    if load_shed:
        return price_cap
    price = marginal_cost(zone.id, units, fuel_price_override) + zone.congestion_adder
    return min(price, price_cap)
