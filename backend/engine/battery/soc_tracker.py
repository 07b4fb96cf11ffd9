"""
State of Charge (SOC) tracker using energy counting in MWh.

Tracks energy flowing in and out of a battery while applying round-trip
efficiency losses symmetrically to charge and discharge.  Stored energy
is always kept within ``[0, capacity_mwh]``.
"""

from __future__ import annotations

import numpy as np


class SOCTracker:
    """Energy-counting SOC tracker with efficiency and hard bounds.

    Efficiency convention
    ---------------------
    The round-trip efficiency ``eta`` is split equally across charge and
    discharge using ``sqrt(eta)``:

    * **Charging** -- of ``P`` MW drawn for ``h`` hours, ``P * h * sqrt(eta)``
      MWh is stored.
    * **Discharging** -- to deliver ``P`` MW for ``h`` hours, the battery
      releases ``P * h / sqrt(eta)`` MWh.

    Parameters
    ----------
    capacity_mwh : float
        Usable energy capacity in MWh.
    efficiency : float
        Round-trip efficiency in (0, 1].  Default 0.90.
    initial_soc : float
        Starting SOC as a fraction of capacity.  Default 0.50.
    """

    def __init__(
        self,
        capacity_mwh: float,
        efficiency: float = 0.90,
        initial_soc: float = 0.50,
    ) -> None:
        if capacity_mwh <= 0:
            raise ValueError(f"capacity_mwh must be positive, got {capacity_mwh}")
        if not 0 < efficiency <= 1.0:
            raise ValueError(f"efficiency must be in (0, 1], got {efficiency}")

        self.capacity_mwh: float = capacity_mwh
        self.efficiency: float = efficiency

        # Precompute one-way efficiency factor.
        self._eta_one_way: float = float(np.sqrt(efficiency))

        self._soc_mwh: float = float(np.clip(initial_soc, 0.0, 1.0)) * capacity_mwh

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def soc_mwh(self) -> float:
        return self._soc_mwh

    def get_soc(self) -> float:
        """Return the current state of charge as a fraction in [0, 1]."""
        return self._soc_mwh / self.capacity_mwh

    def charge_headroom_mw(self, dt_hours: float) -> float:
        """Power that would fill the remaining capacity in one step."""
        return max(0.0, self.capacity_mwh - self._soc_mwh) / dt_hours

    def discharge_headroom_mw(self, dt_hours: float) -> float:
        """Power that would empty the stored energy in one step."""
        return self._soc_mwh / dt_hours

    def charge(self, power_mw: float, dt_hours: float) -> float:
        """Store ``power_mw`` for ``dt_hours``; returns energy stored (MWh)."""
        energy_stored = abs(power_mw) * dt_hours * self._eta_one_way
        self._soc_mwh = min(self.capacity_mwh, self._soc_mwh + energy_stored)
        return energy_stored

    def discharge(self, power_mw: float, dt_hours: float) -> float:
        """Deliver ``power_mw`` for ``dt_hours``; returns energy released (MWh)."""
        energy_released = abs(power_mw) * dt_hours / self._eta_one_way
        self._soc_mwh = max(0.0, self._soc_mwh - energy_released)
        return energy_released

    # ------------------------------------------------------------------
    # Dunder
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"SOCTracker(capacity_mwh={self.capacity_mwh}, "
            f"efficiency={self.efficiency}, soc_mwh={self._soc_mwh:.3f})"
        )
