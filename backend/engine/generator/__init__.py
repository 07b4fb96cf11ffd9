"""Thermal generation engine module."""

from .thermal_unit import ThermalUnit, UnitCommand
from .outage import OutageTransition, apply_outage, outage_probability

__all__ = [
    "ThermalUnit",
    "UnitCommand",
    "OutageTransition",
    "apply_outage",
    "outage_probability",
]
