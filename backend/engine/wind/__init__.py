"""Wind resource module.

Submodules
----------
power_curve
    Capacity-factor curve interpolation for wind plants.
"""

from engine.wind.power_curve import (
    WIND_CAPACITY_CURVE,
    PowerCurve,
    capacity_factor_from_wind,
    linear_power_curve,
)

__all__ = [
    "capacity_factor_from_wind",
    "linear_power_curve",
    "PowerCurve",
    "WIND_CAPACITY_CURVE",
]
