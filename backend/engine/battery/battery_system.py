"""
Grid battery controller: operator mode, auto heuristic and SOC bookkeeping.

``GridBattery`` is the primary entry point for the simulation runner.  It
wraps :class:`SOCTracker` with the operator-facing mode setting and the
auto-mode heuristic, and reports each tick's charge/discharge power so the
runner can adjust the anchor zone's net load.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from engine.simulation.scenario import BatterySpec
from engine.simulation.state import ZoneTick

from .soc_tracker import SOCTracker

logger = logging.getLogger(__name__)

MODE_SETTINGS: tuple[str, ...] = ("auto", "charge", "discharge")

# Auto mode compares net load with this share of gross load (MW band).
AUTO_REFERENCE_SHARE: float = 0.9
AUTO_DEADBAND_MW: float = 20.0

# Headroom below this is treated as "full" / "empty".
HEADROOM_EPSILON: float = 0.01


@dataclass(frozen=True)
class BatteryDispatch:
    """Battery action for one tick.

    ``throughput`` is the energy moved through the terminals (MWh).
    """

    charge_mw: float = 0.0
    discharge_mw: float = 0.0
    mode: str = "idle"
    throughput: float = 0.0

    @property
    def net_injection_mw(self) -> float:
        """Positive when the battery supplies the grid."""
        return self.discharge_mw - self.charge_mw


class GridBattery:
    """Single battery attached to one zone.

    Parameters
    ----------
    spec : BatterySpec
        Immutable battery parameters from the scenario.
    """

    def __init__(self, spec: BatterySpec) -> None:
        self.spec = spec
        self.zone: str = spec.zone
        self.power: float = spec.power
        self.energy_capacity: float = spec.energy_capacity
        self._soc = SOCTracker(
            capacity_mwh=self.energy_capacity,
            efficiency=spec.round_trip_eff or 0.9,
            initial_soc=spec.initial_soc,
        )
        self.mode_setting: str = "auto"
        self.mode: str = "idle"

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def soc_mwh(self) -> float:
        return self._soc.soc_mwh

    @property
    def soc_fraction(self) -> float:
        return self._soc.get_soc()

    @property
    def display_mode(self) -> str:
        """Realised mode under auto control, else the operator setting."""
        return self.mode if self.mode_setting == "auto" else self.mode_setting

    # ------------------------------------------------------------------
    # Operator control
    # ------------------------------------------------------------------

    def mode_change_error(self, mode: str) -> Optional[str]:
        """Reason a switch to *mode* would be refused, or ``None``."""
        if mode not in MODE_SETTINGS:
            return f"Unknown battery mode '{mode}'."
        if mode == "charge" and self.soc_mwh >= self.energy_capacity - HEADROOM_EPSILON:
            return "Battery mode change blocked by SOC limits."
        if mode == "discharge" and self.soc_mwh <= HEADROOM_EPSILON:
            return "Battery mode change blocked by SOC limits."
        return None

    def set_mode(self, mode: str) -> Optional[str]:
        """Switch the operator mode; returns the refusal reason if any."""
        if mode == self.mode_setting:
            return None
        error = self.mode_change_error(mode)
        if error is not None:
            logger.warning("Battery mode change to %s refused: %s", mode, error)
            return error
        logger.info("Battery mode %s -> %s", self.mode_setting, mode)
        self.mode_setting = mode
        return None

    # ------------------------------------------------------------------
    # Tick dispatch
    # ------------------------------------------------------------------

    def auto_decision(self, anchor: Optional[ZoneTick]) -> str:
        if anchor is None:
            return "idle"
        deviation = anchor.net_load - anchor.load * AUTO_REFERENCE_SHARE
        if deviation > AUTO_DEADBAND_MW:
            return "discharge"
        if deviation < -AUTO_DEADBAND_MW:
            return "charge"
        return "idle"

    def dispatch(self, anchor: Optional[ZoneTick], dt_hours: float) -> BatteryDispatch:
        """Decide and apply this tick's action, adjusting *anchor* in place.

        The anchor zone's ``net_load`` becomes
        ``max(0, net_load + charge - discharge)``.
        """
        desired = self.auto_decision(anchor) if self.mode_setting == "auto" else self.mode_setting
        available_charge = self._soc.charge_headroom_mw(dt_hours)
        available_discharge = self._soc.discharge_headroom_mw(dt_hours)

        charge_mw = 0.0
        discharge_mw = 0.0
        if desired == "charge" and available_charge > HEADROOM_EPSILON:
            charge_mw = min(self.power, available_charge)
            self._soc.charge(charge_mw, dt_hours)
            self.mode = "charge"
        elif desired == "discharge" and available_discharge > HEADROOM_EPSILON:
            discharge_mw = min(self.power, available_discharge)
            self._soc.discharge(discharge_mw, dt_hours)
            self.mode = "discharge"
        else:
            self.mode = "idle"

        if anchor is not None:
            anchor.net_load = max(0.0, anchor.net_load + charge_mw - discharge_mw)

        return BatteryDispatch(
            charge_mw=charge_mw,
            discharge_mw=discharge_mw,
            mode=self.mode,
            throughput=(charge_mw + discharge_mw) * dt_hours,
        )

    # ------------------------------------------------------------------
    # Dunder
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"GridBattery(zone={self.zone!r}, soc={self.soc_fraction:.3f}, "
            f"mode_setting={self.mode_setting!r}, mode={self.mode!r})"
        )
