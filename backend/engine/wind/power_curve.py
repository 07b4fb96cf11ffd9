"""Wind plant capacity-factor curve.

Provides the :class:`PowerCurve` class for mapping wind speeds to a
fraction of plant nameplate, and the linear curve used by the grid
simulation (cut-in 3 m/s, rated 12 m/s, cut-out 25 m/s, 0.9 at rated).
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray


# ---------------------------------------------------------------------------
# PowerCurve class
# ---------------------------------------------------------------------------

@dataclass
class PowerCurve:
    """Lookup table that maps wind speed to capacity factor.

    Internally stores sorted (wind_speed, capacity_factor) pairs and uses
    :func:`numpy.interp` with zero output outside the operational range
    (cut-in to cut-out).

    Parameters
    ----------
    wind_speeds : array-like
        Reference wind speeds (m/s) in ascending order.
    capacity_factors : array-like
        Corresponding fraction of nameplate output.  Must have the same
        length as *wind_speeds*.
    """

    wind_speeds: NDArray[np.floating] = field(repr=False)
    capacity_factors: NDArray[np.floating] = field(repr=False)

    # Derived attributes (set in __post_init__).
    cut_in: float = field(init=False, repr=True)
    cut_out: float = field(init=False, repr=True)
    rated_factor: float = field(init=False, repr=True)

    def __post_init__(self) -> None:
        self.wind_speeds = np.asarray(self.wind_speeds, dtype=np.float64)
        self.capacity_factors = np.asarray(self.capacity_factors, dtype=np.float64)

        if self.wind_speeds.shape != self.capacity_factors.shape:
            raise ValueError(
                "wind_speeds and capacity_factors must have the same length, "
                f"got {self.wind_speeds.shape} vs {self.capacity_factors.shape}"
            )
        if len(self.wind_speeds) < 2:
            raise ValueError("At least two data points are required.")

        # Ensure ascending order.
        order = np.argsort(self.wind_speeds)
        self.wind_speeds = self.wind_speeds[order]
        self.capacity_factors = self.capacity_factors[order]

        self.cut_in = float(self.wind_speeds[0])
        self.cut_out = float(self.wind_speeds[-1])
        self.rated_factor = float(np.max(self.capacity_factors))

    def interpolate(self, wind_speeds: NDArray[np.floating]) -> NDArray[np.floating]:
        """Evaluate capacity factor for an array of wind speeds.

        Values below cut-in or above cut-out are zero.
        """
        ws = np.asarray(wind_speeds, dtype=np.float64)

        cf = np.interp(ws, self.wind_speeds, self.capacity_factors)

        cf = np.where(ws < self.cut_in, 0.0, cf)
        cf = np.where(ws > self.cut_out, 0.0, cf)

        return cf

    def capacity_factor(self, wind_speed: float) -> float:
        """Scalar convenience wrapper around :meth:`interpolate`."""
        return float(self.interpolate(np.asarray([wind_speed]))[0])


# ---------------------------------------------------------------------------
# Simulation curve
# ---------------------------------------------------------------------------

def linear_power_curve(
    cut_in: float = 3.0,
    rated_speed: float = 12.0,
    cut_out: float = 25.0,
    rated_factor: float = 0.9,
) -> PowerCurve:
    """Piecewise-linear curve: 0 at cut-in, *rated_factor* from rated to cut-out.

    Raises
    ------
    ValueError
        If the speed relationships ``0 < cut_in < rated_speed < cut_out``
        are not satisfied.
    """
    if not (0 < cut_in < rated_speed < cut_out):
        raise ValueError(
            "Speeds must satisfy 0 < cut_in < rated_speed < cut_out, "
            f"got cut_in={cut_in}, rated_speed={rated_speed}, cut_out={cut_out}"
        )
    return PowerCurve(
        wind_speeds=[cut_in, rated_speed, cut_out],
        capacity_factors=[0.0, rated_factor, rated_factor],
    )


WIND_CAPACITY_CURVE: PowerCurve = linear_power_curve()


def capacity_factor_from_wind(speed: float) -> float:
    """Capacity factor of a wind plant at *speed* m/s."""
    return WIND_CAPACITY_CURVE.capacity_factor(speed)
