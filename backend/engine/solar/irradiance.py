"""Clear-sky solar envelope for synthetic irradiance series.

The envelope is a half-sine over the simulated horizon, zero for the
first and last quarters and peaking at the midpoint.  Values are
expressed as a fraction of plant nameplate (0 -- ``peak``).
"""

from __future__ import annotations

import numpy as np


def solar_envelope(tick: int, total_ticks: int, peak: float) -> float:
    """Deterministic irradiance fraction for a single tick.

    Parameters
    ----------
    tick : int
        0-based tick index.
    total_ticks : int
        Number of ticks in the horizon.
    peak : float
        Midday irradiance fraction (typically <= 1).

    Returns
    -------
    float
        ``min(peak, max(0, sin(phase - pi/2)) * peak)``.
    """
    phase = (tick / total_ticks) * np.pi * 2.0
    daylight = max(0.0, float(np.sin(phase - np.pi / 2.0)))
    return min(peak, daylight * peak)

