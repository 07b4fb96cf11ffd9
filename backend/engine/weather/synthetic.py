"""Full-horizon synthetic weather generation.

All temperature, wind and solar samples for a run are produced in one pass
at reset time.  Drawing the whole horizon up front fixes the order in which
the RNG is consumed, so pausing, resuming or single-stepping a run can never
change the weather it sees.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from engine.solar.irradiance import solar_envelope
from engine.weather.rng import DeterministicRNG

logger = logging.getLogger(__name__)

# Noise applied on top of the deterministic base curves.
TEMPERATURE_NOISE_STD: float = 1.5
SOLAR_NOISE_STD: float = 0.05


@dataclass
class WeatherSeries:
    """Per-tick weather arrays, each of length ``total_ticks``."""

    temperature: NDArray[np.float64]
    wind_speed: NDArray[np.float64]
    solar: NDArray[np.float64]

    def __len__(self) -> int:
        return len(self.temperature)

    def at(self, tick: int) -> tuple[float, float, float]:
        """Return ``(temperature, wind_speed, solar_fraction)`` for *tick*."""
        return (
            float(self.temperature[tick]),
            float(self.wind_speed[tick]),
            float(self.solar[tick]),
        )


def generate_weather_series(
    rng: DeterministicRNG,
    total_ticks: int,
    temperature_base: float,
    temperature_amplitude: float,
    wind_mean: float,
    wind_variance: float,
    solar_peak: float,
) -> WeatherSeries:
    """Sample the weather for every tick of the horizon.

    For each tick the RNG is consumed in a fixed order: temperature noise,
    wind noise, solar noise.

    Parameters
    ----------
    rng : DeterministicRNG
        Simulation random source, freshly seeded.
    total_ticks : int
        Horizon length in ticks.
    temperature_base, temperature_amplitude : float
        Diurnal temperature sinusoid (degC), minimum at the start.
    wind_mean, wind_variance : float
        Wind speed mean (m/s) and variance; speed is floored at 0.
    solar_peak : float
        Midday irradiance fraction.

    Returns
    -------
    WeatherSeries
        Solar values are clamped to [0, 1].
    """
    temperature = np.empty(total_ticks, dtype=np.float64)
    wind_speed = np.empty(total_ticks, dtype=np.float64)
    solar = np.empty(total_ticks, dtype=np.float64)
    wind_std = math.sqrt(wind_variance)

    for i in range(total_ticks):
        temp = (
            temperature_base
            + temperature_amplitude * math.sin((2.0 * math.pi * i) / total_ticks - math.pi / 2.0)
            + rng.normal(0.0, TEMPERATURE_NOISE_STD)
        )
        wind = max(0.0, wind_mean + rng.normal(0.0, wind_std))
        sun = max(0.0, solar_envelope(i, total_ticks, solar_peak) + rng.normal(0.0, SOLAR_NOISE_STD))
        temperature[i] = temp
        wind_speed[i] = wind
        solar[i] = min(1.0, sun)

    logger.debug(
        "Generated %d ticks of weather (T %.1f..%.1f, wind mean %.2f)",
        total_ticks,
        float(temperature.min()) if total_ticks else 0.0,
        float(temperature.max()) if total_ticks else 0.0,
        float(wind_speed.mean()) if total_ticks else 0.0,
    )
    return WeatherSeries(temperature=temperature, wind_speed=wind_speed, solar=solar)
