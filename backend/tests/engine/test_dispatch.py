"""Tests for engine.dispatch.merit_order — zonal thermal dispatch."""

from __future__ import annotations

import pytest

from engine.dispatch.merit_order import (
    determine_unit_target,
    dispatch_thermal,
    merit_order,
    reserve_shortfall,
)
from engine.generator.thermal_unit import ThermalUnit
from engine.simulation.scenario import ThermalUnitSpec
from engine.simulation.state import ZoneAllocation, ZoneTick


def _unit(unit_id: str, zone: str = "A", **overrides) -> ThermalUnit:
    params = dict(
        id=unit_id, name=unit_id, zone=zone,
        pmax=300.0, pmin=50.0, ramp=300.0,
        heat_rate=70.0, fuel_price=4.0, vom=2.0,
        emissions=0.4, reserve_cap=40.0,
    )
    params.update(overrides)
    return ThermalUnit(ThermalUnitSpec(**params))


def _zone(zone_id: str = "A", load: float = 200.0) -> ZoneTick:
    return ZoneTick(id=zone_id, name=zone_id, load=load, net_load=load)


# ======================================================================
# Merit order
# ======================================================================

class TestMeritOrder:
    def test_sorted_by_variable_cost(self):
        cheap = _unit("cheap", heat_rate=50.0)
        mid = _unit("mid", heat_rate=70.0)
        dear = _unit("dear", heat_rate=110.0)
        assert [u.id for u in merit_order([dear, cheap, mid])] == ["cheap", "mid", "dear"]

    def test_stable_for_ties(self):
        a = _unit("a")
        b = _unit("b")
        assert [u.id for u in merit_order([b, a])] == ["b", "a"]

    def test_gas_override_can_reorder(self):
        """A common fuel price makes heat rate, then VOM, decide the order."""
        efficient_dear_fuel = _unit("ccgt", heat_rate=60.0, fuel_price=9.0, vom=1.0)
        inefficient_cheap_fuel = _unit("coal", heat_rate=100.0, fuel_price=2.0, vom=1.0)
        assert merit_order([efficient_dear_fuel, inefficient_cheap_fuel])[0].id == "coal"
        assert merit_order([efficient_dear_fuel, inefficient_cheap_fuel], 3.0)[0].id == "ccgt"


# ======================================================================
# Unit targets
# ======================================================================

class TestDetermineUnitTarget:
    def test_ramp_limits_target(self):
        unit = _unit("g", ramp=60.0)
        allocation = ZoneAllocation()
        served = determine_unit_target(unit, 250.0, allocation)
        assert served == 60.0
        assert unit.target_output == 60.0
        assert allocation.output == 60.0

    def test_pmin_respected_with_small_load(self):
        unit = _unit("g", pmin=100.0, ramp=300.0)
        served = determine_unit_target(unit, 10.0, ZoneAllocation())
        assert served == 100.0

    def test_no_load_no_output(self):
        unit = _unit("g", pmin=100.0)
        assert determine_unit_target(unit, 0.0, ZoneAllocation()) == 0.0

    def test_reserve_capped(self):
        unit = _unit("g", pmax=300.0, ramp=300.0, reserve_cap=40.0)
        allocation = ZoneAllocation()
        determine_unit_target(unit, 100.0, allocation)
        assert allocation.reserve == 40.0

    def test_commanded_off_ramps_down(self):
        unit = _unit("g", ramp=100.0)
        unit.output = 250.0
        unit.command_on = False
        served = determine_unit_target(unit, 400.0, ZoneAllocation())
        assert served == 150.0

    def test_commanded_off_at_zero_decommits(self):
        unit = _unit("g")
        unit.committed = True
        unit.command_on = False
        assert determine_unit_target(unit, 400.0, ZoneAllocation()) == 0.0
        assert not unit.committed

    def test_outaged_unit_blocked(self):
        unit = _unit("g")
        unit.outage_ticks = 2
        assert determine_unit_target(unit, 400.0, ZoneAllocation()) == 0.0
        assert not unit.toggle_allowed
        assert unit.toggle_reason == "Outage"


# ======================================================================
# Zonal dispatch
# ======================================================================

class TestDispatchThermal:
    def test_cheapest_first(self):
        cheap = _unit("cheap", heat_rate=50.0, pmax=150.0)
        dear = _unit("dear", heat_rate=110.0, pmax=300.0)
        zone = _zone(load=250.0)
        allocations = dispatch_thermal([zone], [dear, cheap])
        assert cheap.target_output == 150.0
        assert dear.target_output == 100.0
        assert allocations["A"].output == pytest.approx(250.0)
        assert zone.net_load == 0.0

    def test_shortfall_left_in_net_load(self):
        unit = _unit("g", pmax=300.0)
        zone = _zone(load=420.0)
        dispatch_thermal([zone], [unit])
        assert zone.net_load == pytest.approx(120.0)

    def test_units_only_serve_their_zone(self):
        a = _unit("a", zone="A")
        b = _unit("b", zone="B")
        zone_a = _zone("A", 100.0)
        zone_b = _zone("B", 0.0)
        dispatch_thermal([zone_a, zone_b], [a, b])
        assert a.target_output == 100.0
        assert b.target_output == 0.0

    def test_ramp_bound_over_ticks(self):
        """Realised output never moves more than one ramp step per tick."""
        unit = _unit("g", pmax=300.0, pmin=0.0, ramp=40.0)
        previous = unit.output
        for load in [300.0, 300.0, 20.0, 300.0, 0.0, 150.0]:
            dispatch_thermal([_zone(load=load)], [unit])
            unit.update_output(unit.target_output)
            assert abs(unit.output - previous) <= 40.0 + 1e-9
            assert unit.output <= 300.0
            previous = unit.output


class TestReserveShortfall:
    def test_shortfall(self):
        zone = _zone(load=500.0)
        assert reserve_shortfall(zone, ZoneAllocation(reserve=20.0), 10.0) == pytest.approx(30.0)

    def test_met(self):
        zone = _zone(load=500.0)
        assert reserve_shortfall(zone, ZoneAllocation(reserve=80.0), 10.0) == 0.0
