"""Shared test fixtures for grid engine and API tests."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from engine.simulation.scenario import Scenario


# ======================================================================
# Scenario builders
# ======================================================================

def _thermal_unit(unit_id: str, zone: str, **overrides: Any) -> dict[str, Any]:
    unit = {
        "id": unit_id,
        "name": f"Unit {unit_id}",
        "zone": zone,
        "pmax": 600,
        "pmin": 100,
        "ramp": 600,
        "heatRate": 70,
        "fuelPrice": 4,
        "vom": 2,
        "emissions": 0.4,
        "reserveCap": 50,
        "poissonRate": 0,
        "repairHours": [2, 4],
    }
    unit.update(overrides)
    return unit


def build_flat_scenario() -> dict[str, Any]:
    """Three 500 MW zones, one 600 MW unit each, no renewables, loose links.

    Seed 42, 24 hours of 60-minute ticks.  With outages disabled the units
    can always cover demand.
    """
    return {
        "meta": {
            "region": "Flat Test Grid",
            "seed": 42,
            "reservePercent": 5,
            "priceCap": 500,
            "dayAheadDefaultPrice": 40,
        },
        "clock": {
            "start": "2024-01-01T00:00:00Z",
            "durationHours": 24,
            "tickMinutes": 60,
        },
        "zones": [
            {"id": "A", "name": "Zone A", "baseLoad": 500, "tempSensitivity": 0},
            {"id": "B", "name": "Zone B", "baseLoad": 500, "tempSensitivity": 0},
            {"id": "C", "name": "Zone C", "baseLoad": 500, "tempSensitivity": 0},
        ],
        "transmission": [
            {"id": "AB", "from": "A", "to": "B", "limit": 10_000},
            {"id": "BC", "from": "B", "to": "C", "limit": 10_000},
        ],
        "thermalUnits": [
            _thermal_unit("G1", "A"),
            _thermal_unit("G2", "B"),
            _thermal_unit("G3", "C"),
        ],
        "renewables": {"solar": [], "wind": []},
        "battery": {
            "zone": "B",
            "power": 50,
            "durationHours": 2,
            "roundTripEff": 0.9,
            "initialSoc": 0.5,
        },
        "weather": {
            "temperature": {"base": 20, "amplitude": 4},
            "wind": {"mean": 8, "variance": 4},
            "solar": {"peak": 0.9},
        },
    }


def build_mixed_scenario() -> dict[str, Any]:
    """A busier grid with renewables, outages, merit-order stacks and a 15-minute clock."""
    data = build_flat_scenario()
    data["meta"]["region"] = "Mixed Test Grid"
    data["meta"]["seed"] = 7
    data["clock"]["tickMinutes"] = 15
    data["zones"][0]["tempSensitivity"] = 8
    data["zones"][1]["baseLoad"] = 700
    data["transmission"][0]["limit"] = 120
    data["transmission"][1]["limit"] = 80
    data["thermalUnits"] = [
        _thermal_unit("A-coal", "A", pmax=450, pmin=150, ramp=60, heatRate=100, fuelPrice=2.0,
                      emissions=0.95, poissonRate=0.05, repairHours=[1, 3]),
        _thermal_unit("B-ccgt", "B", pmax=500, pmin=150, ramp=100, poissonRate=0.05),
        _thermal_unit("B-peak", "B", pmax=250, pmin=20, ramp=250, heatRate=105, vom=6,
                      emissions=0.6, poissonRate=0.1, repairHours=[0.5, 2]),
        _thermal_unit("C-ccgt", "C", pmax=420, pmin=120, ramp=90, poissonRate=0.05),
    ]
    data["renewables"] = {
        "solar": [{"zone": "C", "pmax": 150}],
        "wind": [{"zone": "A", "pmax": 200}],
    }
    return data


# ======================================================================
# Fixtures
# ======================================================================

@pytest.fixture
def flat_scenario_data() -> dict[str, Any]:
    return build_flat_scenario()


@pytest.fixture
def flat_scenario(flat_scenario_data) -> Scenario:
    return Scenario.from_dict(flat_scenario_data)


@pytest.fixture
def mixed_scenario_data() -> dict[str, Any]:
    return build_mixed_scenario()


@pytest.fixture
def zero_link_scenario_data() -> dict[str, Any]:
    """Flat scenario with link ``AB`` limited to 0 MW and an import-dependent zone A."""
    data = copy.deepcopy(build_flat_scenario())
    data["transmission"][0]["limit"] = 0
    data["thermalUnits"][0]["pmax"] = 200
    data["thermalUnits"][0]["pmin"] = 50
    return data
