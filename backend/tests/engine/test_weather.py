"""Tests for full-horizon synthetic weather and the zonal load model."""

from __future__ import annotations

import numpy as np
import pytest

from engine.load.load_model import MIN_ZONE_LOAD_MW, time_of_day_curve, zone_load
from engine.solar.irradiance import solar_envelope
from engine.weather.rng import DeterministicRNG
from engine.weather.synthetic import generate_weather_series


def _series(seed: int = 42, total_ticks: int = 96, **kwargs):
    params = dict(
        temperature_base=20.0,
        temperature_amplitude=5.0,
        wind_mean=8.0,
        wind_variance=9.0,
        solar_peak=0.9,
    )
    params.update(kwargs)
    return generate_weather_series(DeterministicRNG(seed), total_ticks, **params)


# ======================================================================
# Weather series
# ======================================================================

class TestWeatherSeries:
    def test_full_horizon_length(self):
        weather = _series(total_ticks=96)
        assert len(weather) == 96
        assert weather.temperature.shape == (96,)
        assert weather.wind_speed.shape == (96,)
        assert weather.solar.shape == (96,)

    def test_solar_clamped(self):
        weather = _series(solar_peak=1.0)
        assert np.all(weather.solar >= 0.0)
        assert np.all(weather.solar <= 1.0)

    def test_wind_non_negative(self):
        weather = _series(wind_mean=0.5, wind_variance=25.0)
        assert np.all(weather.wind_speed >= 0.0)

    def test_deterministic(self):
        a = _series(seed=3)
        b = _series(seed=3)
        np.testing.assert_array_equal(a.temperature, b.temperature)
        np.testing.assert_array_equal(a.wind_speed, b.wind_speed)
        np.testing.assert_array_equal(a.solar, b.solar)

    def test_diurnal_temperature_shape(self):
        """Coolest near the start of the horizon, warmest near the middle."""
        weather = _series(total_ticks=96, temperature_amplitude=10.0)
        assert weather.temperature[:8].mean() < weather.temperature[44:52].mean()
        assert weather.temperature.mean() == pytest.approx(20.0, abs=1.0)

    def test_consumes_three_gaussians_per_tick(self):
        """Weather draws 3 normals per tick, so the RNG ends where 3*n draws leave it."""
        rng = DeterministicRNG(77)
        generate_weather_series(rng, 10, 20.0, 5.0, 8.0, 4.0, 0.9)
        reference = DeterministicRNG(77)
        for _ in range(30):
            reference.normal()
        assert rng.next() == reference.next()

    def test_at_returns_floats(self):
        weather = _series()
        temperature, wind, solar = weather.at(10)
        assert isinstance(temperature, float)
        assert wind == weather.wind_speed[10]
        assert solar == weather.solar[10]


class TestSolarEnvelope:
    def test_dark_at_start(self):
        assert solar_envelope(0, 96, 0.9) == 0.0

    def test_peak_at_midpoint(self):
        assert solar_envelope(48, 96, 0.9) == pytest.approx(0.9)


# ======================================================================
# Load model
# ======================================================================

class TestLoadModel:
    def test_time_of_day_trough_and_peak(self):
        assert time_of_day_curve(0, 24) == pytest.approx(-40.0)
        assert time_of_day_curve(12, 24) == pytest.approx(40.0)

    def test_floor(self):
        rng = DeterministicRNG(1)
        for tick in range(24):
            load = zone_load(10.0, 0.0, 20.0, 20.0, tick, 24, rng)
            assert load >= MIN_ZONE_LOAD_MW

    def test_temperature_sensitivity(self):
        hot = zone_load(500.0, 10.0, 30.0, 20.0, 6, 24, DeterministicRNG(4))
        mild = zone_load(500.0, 10.0, 20.0, 20.0, 6, 24, DeterministicRNG(4))
        assert hot - mild == pytest.approx(100.0)

    def test_noise_is_one_draw(self):
        rng = DeterministicRNG(9)
        reference = DeterministicRNG(9)
        load = zone_load(500.0, 0.0, 20.0, 20.0, 6, 24, rng)
        expected = 500.0 + time_of_day_curve(6, 24) + reference.normal(0.0, 8.0)
        assert load == pytest.approx(expected)
