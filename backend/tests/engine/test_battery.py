"""Tests for engine.battery — SOC tracking and the grid battery controller."""

from __future__ import annotations

import math

import pytest

from engine.battery.battery_system import HEADROOM_EPSILON, GridBattery
from engine.battery.soc_tracker import SOCTracker
from engine.simulation.scenario import BatterySpec
from engine.simulation.state import ZoneTick


def _battery(**overrides) -> GridBattery:
    params = dict(zone="B", power=50.0, duration_hours=2.0, round_trip_eff=0.81, initial_soc=0.5)
    params.update(overrides)
    return GridBattery(BatterySpec(**params))


def _anchor(load: float, net_load: float) -> ZoneTick:
    return ZoneTick(id="B", name="B", load=load, net_load=net_load)


# ======================================================================
# SOC tracker
# ======================================================================

class TestSOCTracker:
    def test_efficiency_split_evenly(self):
        tracker = SOCTracker(capacity_mwh=100.0, efficiency=0.81, initial_soc=0.5)
        stored = tracker.charge(10.0, 1.0)
        assert stored == pytest.approx(9.0)
        assert tracker.soc_mwh == pytest.approx(59.0)
        released = tracker.discharge(9.0, 1.0)
        assert released == pytest.approx(10.0)
        assert tracker.soc_mwh == pytest.approx(49.0)

    def test_bounds(self):
        tracker = SOCTracker(capacity_mwh=10.0, efficiency=1.0, initial_soc=0.9)
        tracker.charge(100.0, 1.0)
        assert tracker.soc_mwh == 10.0
        tracker.discharge(100.0, 1.0)
        assert tracker.soc_mwh == 0.0

    def test_headroom(self):
        tracker = SOCTracker(capacity_mwh=100.0, initial_soc=0.25)
        assert tracker.charge_headroom_mw(0.5) == pytest.approx(150.0)
        assert tracker.discharge_headroom_mw(0.5) == pytest.approx(50.0)

    @pytest.mark.parametrize("capacity, efficiency", [(0.0, 0.9), (10.0, 0.0), (10.0, 1.2)])
    def test_invalid_parameters(self, capacity, efficiency):
        with pytest.raises(ValueError):
            SOCTracker(capacity_mwh=capacity, efficiency=efficiency)


# ======================================================================
# Battery controller
# ======================================================================

class TestBatteryModes:
    def test_unknown_mode_refused(self):
        battery = _battery()
        assert battery.set_mode("turbo") == "Unknown battery mode 'turbo'."
        assert battery.mode_setting == "auto"

    def test_charge_refused_when_full(self):
        battery = _battery(initial_soc=1.0)
        assert battery.set_mode("charge") == "Battery mode change blocked by SOC limits."
        assert battery.mode_setting == "auto"

    def test_discharge_refused_when_empty(self):
        battery = _battery(initial_soc=0.0)
        assert battery.set_mode("discharge") == "Battery mode change blocked by SOC limits."

    def test_valid_change(self):
        battery = _battery()
        assert battery.set_mode("charge") is None
        assert battery.mode_setting == "charge"
        assert battery.display_mode == "charge"


class TestBatteryDispatch:
    def test_auto_discharges_on_high_net_load(self):
        battery = _battery()
        anchor = _anchor(load=500.0, net_load=500.0)
        dispatch = battery.dispatch(anchor, 1.0)
        assert dispatch.mode == "discharge"
        assert dispatch.discharge_mw == pytest.approx(50.0)
        assert anchor.net_load == pytest.approx(450.0)
        assert dispatch.throughput == pytest.approx(50.0)

    def test_auto_charges_on_low_net_load(self):
        battery = _battery()
        anchor = _anchor(load=500.0, net_load=300.0)
        dispatch = battery.dispatch(anchor, 1.0)
        assert dispatch.mode == "charge"
        assert anchor.net_load == pytest.approx(350.0)

    def test_auto_idles_in_band(self):
        battery = _battery()
        anchor = _anchor(load=500.0, net_load=455.0)
        dispatch = battery.dispatch(anchor, 1.0)
        assert dispatch.mode == "idle"
        assert anchor.net_load == 455.0

    def test_discharge_limited_by_energy(self):
        battery = _battery(initial_soc=0.1)  # 10 MWh stored
        battery.set_mode("discharge")
        dispatch = battery.dispatch(_anchor(500.0, 500.0), 1.0)
        assert dispatch.discharge_mw == pytest.approx(10.0)
        assert battery.soc_mwh == 0.0

    def test_soc_bounds_hold(self):
        battery = _battery()
        battery.set_mode("charge")
        for _ in range(20):
            battery.dispatch(_anchor(500.0, 500.0), 0.25)
            assert 0.0 <= battery.soc_mwh <= battery.energy_capacity
        # Charging stops once headroom falls to the epsilon, short of exactly full.
        assert battery.soc_fraction == pytest.approx(1.0, abs=1e-3)
        assert battery.energy_capacity - battery.soc_mwh <= HEADROOM_EPSILON * 0.25

        battery.set_mode("discharge")
        for _ in range(40):
            battery.dispatch(_anchor(500.0, 500.0), 0.25)
            assert 0.0 <= battery.soc_mwh <= battery.energy_capacity
        assert battery.soc_mwh == pytest.approx(0.0, abs=0.05)

    def test_display_mode_reports_realised_mode_in_auto(self):
        battery = _battery()
        battery.dispatch(_anchor(500.0, 500.0), 1.0)
        assert battery.display_mode == "discharge"

    def test_missing_anchor_idles(self):
        battery = _battery()
        dispatch = battery.dispatch(None, 1.0)
        assert dispatch.mode == "idle"
        assert math.isclose(battery.soc_fraction, 0.5)
