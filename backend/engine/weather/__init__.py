"""Weather module (seeded RNG and full-horizon synthetic series)."""

from .rng import DeterministicRNG
from .synthetic import WeatherSeries, generate_weather_series

__all__ = [
    "DeterministicRNG",
    "WeatherSeries",
    "generate_weather_series",
]
