"""Built-in scenario presets.

The default preset is a three-zone island grid used whenever no scenario
file is configured.  Presets are stored in the same camelCase shape a
scenario JSON file uses, so they pass through :func:`validate_scenario`
and :meth:`Scenario.from_dict` like any other input.
"""

from __future__ import annotations

import copy
from typing import Any

from engine.simulation.scenario import Scenario

# ======================================================================
# Default three-zone preset
# ======================================================================

DEFAULT_SCENARIO: dict[str, Any] = {
    "meta": {
        "region": "Tri-Zone Island Grid",
        "seed": 20240601,
        "reservePercent": 10,
        "priceCap": 1000,
        "dayAheadDefaultPrice": 55,
        "scoreWeights": {"reliability": 0.5, "cost": 0.3, "emissions": 0.2},
    },
    "clock": {
        "start": "2024-06-01T00:00:00Z",
        "durationHours": 24,
        "tickMinutes": 15,
    },
    "zones": [
        {"id": "north", "name": "North Hills", "baseLoad": 420, "tempSensitivity": 6},
        {"id": "central", "name": "Central City", "baseLoad": 780, "tempSensitivity": 12},
        {"id": "south", "name": "South Coast", "baseLoad": 360, "tempSensitivity": 5},
    ],
    "transmission": [
        {"id": "north-central", "from": "north", "to": "central", "limit": 250},
        {"id": "central-south", "from": "central", "to": "south", "limit": 200},
    ],
    "thermalUnits": [
        # Baseload coal in the north, cheap but dirty and slow.
        {
            "id": "n-coal", "name": "North Coal", "zone": "north",
            "pmax": 500, "pmin": 200, "ramp": 60,
            "heatRate": 100, "fuelPrice": 2.2, "vom": 4,
            "emissions": 0.95, "reserveCap": 40,
            "poissonRate": 0.004, "repairHours": [6, 12],
        },
        # Combined cycle in the city carries most of the swing.
        {
            "id": "c-ccgt", "name": "Central CCGT", "zone": "central",
            "pmax": 650, "pmin": 180, "ramp": 120,
            "heatRate": 70, "fuelPrice": 4.0, "vom": 3,
            "emissions": 0.37, "reserveCap": 80,
            "poissonRate": 0.006, "repairHours": [4, 8],
        },
        {
            "id": "c-peaker", "name": "Central Peaker", "zone": "central",
            "pmax": 200, "pmin": 20, "ramp": 200,
            "heatRate": 105, "fuelPrice": 4.0, "vom": 6,
            "emissions": 0.55, "reserveCap": 100,
            "poissonRate": 0.01, "repairHours": [2, 6],
        },
        {
            "id": "s-ccgt", "name": "South CCGT", "zone": "south",
            "pmax": 380, "pmin": 100, "ramp": 90,
            "heatRate": 72, "fuelPrice": 4.0, "vom": 3,
            "emissions": 0.38, "reserveCap": 60,
            "poissonRate": 0.006, "repairHours": [4, 8],
        },
    ],
    "renewables": {
        "solar": [
            {"zone": "south", "pmax": 160},
            {"zone": "central", "pmax": 90},
        ],
        "wind": [
            {"zone": "north", "pmax": 220},
        ],
    },
    "battery": {
        "zone": "central",
        "power": 100,
        "durationHours": 4,
        "roundTripEff": 0.88,
        "initialSoc": 0.5,
    },
    "weather": {
        "temperature": {"base": 24, "amplitude": 6},
        "wind": {"mean": 9, "variance": 9},
        "solar": {"peak": 0.95},
    },
}

PRESETS: dict[str, dict[str, Any]] = {
    "default": DEFAULT_SCENARIO,
}


# ======================================================================
# Utility functions
# ======================================================================

def preset_names() -> list[str]:
    return sorted(PRESETS)


def get_preset(name: str = "default") -> dict[str, Any]:
    """Return a deep copy of the named preset mapping.

    Raises
    ------
    KeyError
        If no preset has that name.
    """
    return copy.deepcopy(PRESETS[name])


def default_scenario() -> Scenario:
    """The default preset built into an immutable :class:`Scenario`."""
    return Scenario.from_dict(get_preset("default"))
