"""Zonal load model for tick-based grid simulations.

Zone demand is built from the zone's base load, a shared diurnal
time-of-day swing, a linear temperature response, and a Gaussian noise
term drawn from the simulation RNG.
"""

from __future__ import annotations

import math

from engine.weather.rng import DeterministicRNG

# Amplitude of the diurnal load swing (MW).
TIME_OF_DAY_AMPLITUDE_MW: float = 40.0

# Standard deviation of per-tick load noise (MW).
LOAD_NOISE_STD_MW: float = 8.0

# Demand never drops below this floor (MW).
MIN_ZONE_LOAD_MW: float = 50.0


def time_of_day_curve(tick: int, total_ticks: int) -> float:
    """Diurnal load deviation in MW: trough at the start, peak at the midpoint."""
    day_fraction = tick / total_ticks
    return TIME_OF_DAY_AMPLITUDE_MW * math.sin(2.0 * math.pi * (day_fraction - 0.25))


def zone_load(
    base_load: float,
    temp_sensitivity: float,
    temperature: float,
    reference_temperature: float,
    tick: int,
    total_ticks: int,
    rng: DeterministicRNG,
) -> float:
    """Sample the demand of one zone for one tick.

    Draws exactly one Gaussian from *rng*.

    Parameters
    ----------
    base_load : float
        Zone base load (MW).
    temp_sensitivity : float
        MW of additional load per degree above *reference_temperature*.
    temperature : float
        Ambient temperature for the tick.
    reference_temperature : float
        Scenario base temperature.
    tick, total_ticks : int
        Position in the horizon, used for the time-of-day curve.
    rng : DeterministicRNG
        Simulation random source.

    Returns
    -------
    float
        Zone load in MW, floored at :data:`MIN_ZONE_LOAD_MW`.
    """
    base = base_load + time_of_day_curve(tick, total_ticks)
    noise = rng.normal(0.0, LOAD_NOISE_STD_MW)
    load = base + temp_sensitivity * (temperature - reference_temperature) + noise
    return max(MIN_ZONE_LOAD_MW, load)
