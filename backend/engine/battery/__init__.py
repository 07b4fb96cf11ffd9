"""Battery storage engine -- SOC tracking and the grid battery controller."""

from .soc_tracker import SOCTracker
from .battery_system import BatteryDispatch, GridBattery, MODE_SETTINGS

__all__ = [
    "SOCTracker",
    "BatteryDispatch",
    "GridBattery",
    "MODE_SETTINGS",
]
