"""Per-tick cost accounting and end-of-run settlement.

Fuel, VOM and emissions are charged on each unit's realised output after
its ramp-limited move toward the dispatch target; energy revenue is paid
on load actually served at each zone's clearing price.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from engine.generator.thermal_unit import ThermalUnit
from engine.simulation.state import DayAheadContract, KpiTotals, ZoneTick


@dataclass(frozen=True)
class TickCosts:
    fuel_expense: float = 0.0
    vom_expense: float = 0.0
    emissions: float = 0.0
    revenue: float = 0.0


def compute_tick_costs(
    zones: Sequence[ZoneTick],
    units: Sequence[ThermalUnit],
    tick_hours: float,
    fuel_price_override: Optional[float] = None,
) -> TickCosts:
    """Move every unit toward its target and cost the resulting output.

    Side effect: ``unit.output`` (and commitment) advance by one ramp step.
    """
    fuel_expense = 0.0
    vom_expense = 0.0
    emissions = 0.0
    revenue = 0.0

    for unit in units:
        actual = unit.update_output(unit.target_output or 0.0)
        cost = unit.variable_cost(fuel_price_override)
        fuel_expense += actual * (cost - unit.spec.vom) * tick_hours
        vom_expense += unit.spec.vom * actual * tick_hours
        emissions += unit.spec.emissions * actual * tick_hours

    for zone in zones:
        served = max(0.0, zone.load - zone.net_load)
        revenue += served * zone.price * tick_hours

    return TickCosts(
        fuel_expense=fuel_expense,
        vom_expense=vom_expense,
        emissions=emissions,
        revenue=revenue,
    )


def accumulate_tick(
    kpis: KpiTotals,
    zones: Sequence[ZoneTick],
    costs: TickCosts,
    tick_hours: float,
    congested: bool,
    battery_throughput: float,
) -> float:
    """Fold one tick into the running totals.

    Returns
    -------
    float
        System unmet load for the tick (MW).
    """
    unmet_mw = sum(max(0.0, z.net_load) for z in zones)
    served_mw = sum(max(0.0, z.load - z.net_load) for z in zones)

    kpis.unmet += unmet_mw * tick_hours
    kpis.price_sum += sum(z.price for z in zones) / len(zones)
    kpis.price_count += 1
    kpis.total_load += sum(z.load for z in zones) * tick_hours
    kpis.load_served += served_mw * tick_hours
    kpis.reserve_shortfall += sum(z.reserve_short for z in zones) * tick_hours

    kpis.cash += costs.revenue - costs.fuel_expense - costs.vom_expense
    kpis.energy_revenue += costs.revenue
    kpis.fuel_expense += costs.fuel_expense
    kpis.vom_expense += costs.vom_expense
    kpis.emissions += costs.emissions

    if congested:
        kpis.congested_ticks += 1
    kpis.battery_throughput += battery_throughput
    return unmet_mw


def settle_day_ahead(
    kpis: KpiTotals,
    contract: DayAheadContract,
    duration_hours: float,
) -> Optional[float]:
    """Settle the forward contract against the realised average price.

    Pays ``(contract_price - avg_price) * quantity * duration_hours`` into
    cash exactly once.

    Returns
    -------
    float or None
        The settlement amount, or ``None`` if already settled.
    """
    kpis.avg_price = kpis.running_avg_price()
    if contract.settled:
        return None
    settlement = (contract.price - kpis.avg_price) * contract.quantity * duration_hours
    kpis.cash += settlement
    contract.settled = True
    return settlement
