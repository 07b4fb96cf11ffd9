"""Zonal renewable output from weather samples."""

from __future__ import annotations

from engine.simulation.scenario import Renewables
from engine.wind.power_curve import capacity_factor_from_wind


def zone_renewable_output(
    zone_id: str,
    renewables: Renewables,
    solar_fraction: float,
    wind_speed: float,
) -> float:
    """Total solar plus wind output (MW) of the plants sited in *zone_id*.

    Each plant's output is clamped to its own nameplate.
    """
    total = 0.0
    daylight = max(0.0, solar_fraction)
    for plant in renewables.solar:
        if plant.zone == zone_id:
            total += min(plant.pmax, plant.pmax * daylight)
    cf = capacity_factor_from_wind(wind_speed)
    for plant in renewables.wind:
        if plant.zone == zone_id:
            total += min(plant.pmax, plant.pmax * cf)
    return total
