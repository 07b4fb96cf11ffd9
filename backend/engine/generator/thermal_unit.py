"""Thermal unit runtime state, cost model and ramp-limited output tracking.

Provides a stateful unit model that enforces ramp and nameplate limits on
every output change, tracks commitment, and exposes the command snapshot
used to undo an operator toggle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from engine.simulation.scenario import ThermalUnitSpec

# A unit commanded off is considered fully down below this output (MW).
SHUTDOWN_THRESHOLD_MW: float = 0.1

# Output at or below this level counts as "already off" for dispatch (MW).
OFF_OUTPUT_EPSILON_MW: float = 0.001


@dataclass(frozen=True)
class UnitCommand:
    """Fields affected by an operator toggle, captured for undo.

    Parameters
    ----------
    command_on : bool
        Operator command before the toggle.
    committed : bool
        Commitment status before the toggle.
    output : float
        Output in MW before the toggle.
    tick_index : int
        Tick at which the toggle was issued.
    """

    command_on: bool
    committed: bool
    output: float
    tick_index: int = 0


@dataclass
class ThermalUnit:
    """Dispatchable thermal unit with operational constraints.

    Parameters
    ----------
    spec : ThermalUnitSpec
        Immutable unit parameters from the scenario.
    """

    spec: ThermalUnitSpec

    # --- Runtime state (not constructor parameters) ----------------------
    committed: bool = field(default=False, init=False)
    command_on: bool = field(default=False, init=False)
    output: float = field(default=0.0, init=False)
    target_output: float = field(default=0.0, init=False)
    outage_ticks: int = field(default=0, init=False)
    toggle_allowed: bool = field(default=True, init=False)
    toggle_reason: str = field(default="", init=False)

    def __post_init__(self) -> None:
        if self.spec.pmax <= 0:
            raise ValueError(f"pmax must be > 0, got {self.spec.pmax}")
        if self.spec.ramp <= 0:
            raise ValueError(f"ramp must be > 0, got {self.spec.ramp}")
        if not 0 <= self.spec.pmin <= self.spec.pmax:
            raise ValueError(
                f"pmin must be in [0, pmax], got pmin={self.spec.pmin}, pmax={self.spec.pmax}"
            )
        self.command_on = self.spec.initial_on

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self.spec.id

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def zone(self) -> str:
        return self.spec.zone

    @property
    def on_outage(self) -> bool:
        """Whether the unit is currently forced out."""
        return self.outage_ticks > 0

    # ------------------------------------------------------------------
    # Cost model
    # ------------------------------------------------------------------

    def variable_cost(self, fuel_price_override: Optional[float] = None) -> float:
        """Marginal cost in $/MWh: ``heat_rate * fuel_price / 10 + vom``."""
        fuel_price = self.spec.fuel_price if fuel_price_override is None else fuel_price_override
        return (self.spec.heat_rate * fuel_price) / 10.0 + self.spec.vom

    # ------------------------------------------------------------------
    # Output tracking
    # ------------------------------------------------------------------

    def update_output(self, target: float) -> float:
        """Move the output toward *target* by at most one ramp step.

        Returns
        -------
        float
            New output (MW).
        """
        ramp = self.spec.ramp
        if target > self.output:
            new_output = min(self.output + ramp, min(self.spec.pmax, target))
        else:
            new_output = max(self.output - ramp, target)

        if not self.command_on and new_output <= SHUTDOWN_THRESHOLD_MW:
            new_output = 0.0
            self.committed = False
        elif self.command_on and new_output >= self.spec.pmin - ramp:
            self.committed = True

        self.output = new_output
        return new_output

    def force_off(self) -> None:
        """Drop the unit to zero immediately (forced outage)."""
        self.command_on = False
        self.committed = False
        self.output = 0.0
        self.target_output = 0.0

    # ------------------------------------------------------------------
    # Operator commands
    # ------------------------------------------------------------------

    def capture_command(self, tick_index: int) -> UnitCommand:
        return UnitCommand(
            command_on=self.command_on,
            committed=self.committed,
            output=self.output,
            tick_index=tick_index,
        )

    def restore_command(self, command: UnitCommand) -> None:
        self.command_on = command.command_on
        self.committed = command.committed
        self.output = command.output
