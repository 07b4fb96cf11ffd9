"""Simulation orchestrator for the multi-zone grid game.

``SimulationRunner`` owns every piece of mutable simulation state and
advances it one tick per :meth:`SimulationRunner.step` call.  Each tick it
looks up the pre-generated weather, samples zonal load, computes renewable
output, lets the battery act, advances the outage process, dispatches
thermal units in merit order, balances the two transmission links, clears
zonal prices and folds the results into the running KPIs and the tick log.

The runner never schedules itself: a timer, an API client or
:meth:`SimulationRunner.run_headless` decides when the next tick happens.
Given the same scenario and the same operator actions at the same tick
indices, two runners produce identical tick logs.
"""

from __future__ import annotations

import copy
import enum
import logging
import math
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Mapping, Optional

from engine.battery.battery_system import BatteryDispatch, GridBattery
from engine.dispatch.merit_order import dispatch_thermal, reserve_shortfall
from engine.dispatch.renewables import zone_renewable_output
from engine.economics.metrics import accumulate_tick, compute_tick_costs, settle_day_ahead
from engine.economics.pricing import zone_price
from engine.economics.scoring import Scorecard, compute_score
from engine.generator.outage import apply_outage
from engine.generator.thermal_unit import ThermalUnit, UnitCommand
from engine.load.load_model import zone_load
from engine.network.transmission import balance_transmission
from engine.reporting.csv_export import export_tick_log_csv
from engine.simulation.errors import InvalidTransitionError
from engine.simulation.scenario import Scenario, format_clock, format_iso
from engine.simulation.snapshot import build_snapshot
from engine.simulation.state import (
    DayAheadContract,
    GridEvent,
    LinkState,
    RunState,
    TickRecord,
    ZoneState,
    ZoneTick,
    ZoneTickRecord,
)
from engine.weather.rng import DeterministicRNG
from engine.weather.synthetic import WeatherSeries, generate_weather_series

logger = logging.getLogger(__name__)


# ======================================================================
# Result types
# ======================================================================

class RunStatus(str, enum.Enum):
    PRE_RUN = "pre-run"
    RUNNING = "running"
    PAUSED = "paused"
    DONE = "done"


@dataclass(frozen=True)
class ActionResult:
    """Outcome of an operator action that may be refused without raising.

    ``previous`` carries the unit command captured before a toggle so the
    caller can undo it with :meth:`SimulationRunner.restore_unit_state`.
    """

    ok: bool
    reason: str = ""
    previous: Optional[UnitCommand] = None


def _is_number(value: Optional[float]) -> bool:
    return value is not None and not (isinstance(value, float) and math.isnan(value))


# ======================================================================
# Runner
# ======================================================================

class SimulationRunner:
    """Tick-based simulation engine and run-lifecycle state machine.

    Parameters
    ----------
    scenario : Scenario or mapping
        Immutable scenario, or a camelCase mapping to build one from.
    headless : bool
        When ``True``, :meth:`step` advances even if the run has not been
        started or is paused (used for deterministic verification).
    """

    def __init__(self, scenario: Scenario | Mapping[str, Any], headless: bool = False) -> None:
        if not isinstance(scenario, Scenario):
            scenario = Scenario.from_dict(scenario)
        self.scenario: Scenario = scenario
        self.headless: bool = headless

        self.tick_minutes: float = scenario.clock.tick_minutes
        self.tick_hours: float = scenario.clock.tick_hours
        self.total_ticks: int = scenario.clock.total_ticks

        self.pre_run: bool = True
        self.running: bool = False
        self.reset()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Rebuild all runtime state from the scenario and reseed the RNG."""
        scenario = self.scenario
        self.rng = DeterministicRNG(scenario.meta.seed)
        self.units: list[ThermalUnit] = [ThermalUnit(spec) for spec in scenario.thermal_units]
        self.battery = GridBattery(scenario.battery)
        self.state = RunState(
            tick_index=0,
            current_time=scenario.clock.start,
            zones=[ZoneState(id=z.id, name=z.name) for z in scenario.zones],
            links=[
                LinkState(id=t.id, from_zone=t.from_zone, to_zone=t.to_zone, limit=t.limit)
                for t in scenario.transmission
            ],
            day_ahead=DayAheadContract(price=scenario.meta.day_ahead_default_price),
        )
        self.weather: WeatherSeries = generate_weather_series(
            self.rng,
            self.total_ticks,
            temperature_base=scenario.weather.temperature_base,
            temperature_amplitude=scenario.weather.temperature_amplitude,
            wind_mean=scenario.weather.wind_mean,
            wind_variance=scenario.weather.wind_variance,
            solar_peak=scenario.weather.solar_peak,
        )
        self.pre_run = True
        self.running = False
        self._latest_snapshot: Optional[dict[str, Any]] = None
        logger.info(
            "Reset scenario '%s' (seed %d, %d ticks of %.0f min)",
            scenario.meta.region, scenario.meta.seed, self.total_ticks, self.tick_minutes,
        )

    @property
    def status(self) -> RunStatus:
        if self.state.done:
            return RunStatus.DONE
        if self.pre_run:
            return RunStatus.PRE_RUN
        if self.running:
            return RunStatus.RUNNING
        return RunStatus.PAUSED

    def start_run(self, quantity: float = 0.0, price: Optional[float] = None) -> None:
        """Fix the day-ahead contract and start ticking.

        Raises
        ------
        InvalidTransitionError
            If the run has already been started.
        """
        if not self.pre_run:
            raise InvalidTransitionError("Run already started.")
        self.state.day_ahead.quantity = float(quantity)
        self.state.day_ahead.price = (
            float(price) if _is_number(price) else self.scenario.meta.day_ahead_default_price
        )
        self.pre_run = False
        self.running = True
        logger.info(
            "Run started: day-ahead %.1f MW @ %.2f",
            self.state.day_ahead.quantity, self.state.day_ahead.price,
        )

    def pause(self) -> None:
        if self.running:
            self.running = False
            logger.info("Run paused at tick %d", self.state.tick_index)

    def can_resume(self) -> bool:
        return not self.pre_run and not self.running and not self.state.done

    def resume(self) -> None:
        if self.can_resume():
            self.running = True
            logger.info("Run resumed at tick %d", self.state.tick_index)

    def run_headless(self) -> Scorecard:
        """Start with the default contract, tick to the end, return the score.

        No snapshot is built per tick; the next :meth:`step` or
        :meth:`current_snapshot` call builds the final one.
        """
        self.start_run(0.0, self.scenario.meta.day_ahead_default_price)
        while self.advance():
            pass
        return self.compute_score()

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    def advance(self) -> bool:
        """Run one tick if the run is live; return whether a tick ran."""
        if self.state.done or (not self.running and not self.headless):
            return False
        if self._execute_tick():
            self.running = False
        self._latest_snapshot = None
        return True

    def step(self) -> dict[str, Any]:
        """Advance one tick if the run is live; return a snapshot copy."""
        self.advance()
        if self._latest_snapshot is None:
            self._latest_snapshot = self._build_snapshot()
        return copy.deepcopy(self._latest_snapshot)

    def _execute_tick(self) -> bool:
        state = self.state
        scenario = self.scenario
        idx = state.tick_index
        if idx >= self.total_ticks:
            if not state.done:
                self._finalize_run()
            return True

        current_time = state.current_time
        temperature, wind_speed, solar = self.weather.at(idx)
        overrides = state.overrides

        # Load and renewables
        zones = [ZoneTick(id=z.id, name=z.name) for z in scenario.zones]
        for zone, cfg in zip(zones, scenario.zones):
            zone.load = zone_load(
                cfg.base_load,
                cfg.temp_sensitivity,
                temperature,
                scenario.weather.temperature_base,
                idx,
                self.total_ticks,
                self.rng,
            )
            zone.renewable = zone_renewable_output(zone.id, scenario.renewables, solar, wind_speed)
            zone.net_load = max(0.0, zone.load - zone.renewable)

        # Battery acts on the anchor zone's net load before thermal dispatch.
        anchor = next((z for z in zones if z.id == self.battery.zone), None)
        battery_dispatch = self.battery.dispatch(anchor, self.tick_hours)

        # Forced outages
        for unit in self.units:
            transition = apply_outage(unit, self.rng, self.tick_hours, overrides.outage)
            if transition.kind is not None:
                self._log_event(transition.message)
            if unit.on_outage:
                unit.force_off()

        allocations = dispatch_thermal(zones, self.units, overrides.gas)
        congested = balance_transmission(
            zones, state.links, allocations, self.battery.zone, battery_dispatch
        )
        load_shed = any(z.net_load > 0 for z in zones)

        # Pricing
        reserve_percent = (
            overrides.reserve if overrides.reserve is not None else scenario.meta.reserve_percent
        )
        for zone in zones:
            zone.reserve_short = reserve_shortfall(zone, allocations[zone.id], reserve_percent)
            zone.price = zone_price(
                zone, self.units, scenario.meta.price_cap, load_shed, overrides.gas
            )

        state.price_history.append({zone.id: zone.price for zone in zones})
        if len(state.price_history) > self.total_ticks:
            state.price_history.pop(0)

        # Costs and KPIs
        costs = compute_tick_costs(zones, self.units, self.tick_hours, overrides.gas)
        unmet_mw = accumulate_tick(
            state.kpis, zones, costs, self.tick_hours, congested, battery_dispatch.throughput
        )
        if unmet_mw > 0:
            logger.debug("Tick %d: %.1f MW unmet", idx, unmet_mw)

        state.zones = [
            ZoneState(
                id=zone.id,
                name=zone.name,
                load=zone.load,
                price=zone.price,
                renewable=zone.renewable,
                net_load=zone.net_load,
                congested=zone.congested,
            )
            for zone in zones
        ]
        self._record_tick(idx, zones, congested, battery_dispatch)

        state.tick_index += 1
        state.current_time = current_time + timedelta(minutes=self.tick_minutes)

        if state.tick_index >= self.total_ticks:
            self._finalize_run()
            return True
        return False

    def _record_tick(
        self,
        idx: int,
        zones: list[ZoneTick],
        congested: bool,
        battery_dispatch: BatteryDispatch,
    ) -> None:
        kpis = self.state.kpis
        self.state.tick_log.append(
            TickRecord(
                timestamp=format_iso(self.state.current_time),
                temperature=float(self.weather.temperature[idx]),
                zones={
                    zone.id: ZoneTickRecord(
                        load=zone.load,
                        price=zone.price,
                        renewable=zone.renewable,
                        net_load=zone.net_load,
                        congested=zone.congested,
                        reserve_short=zone.reserve_short,
                    )
                    for zone in zones
                },
                battery_soc=self.battery.soc_fraction,
                battery_mode=self.battery.mode,
                battery_charge_mw=battery_dispatch.charge_mw,
                battery_discharge_mw=battery_dispatch.discharge_mw,
                congestion=congested,
                unmet=kpis.unmet,
                cash=kpis.cash,
            )
        )

    def _finalize_run(self) -> None:
        self.state.done = True
        self.running = False
        settlement = settle_day_ahead(
            self.state.kpis, self.state.day_ahead, self.scenario.clock.duration_hours
        )
        if settlement is not None:
            self._log_event(f"Day ahead contract settled: {settlement:.0f}$")
            logger.info(
                "Run finished after %d ticks; avg price %.2f, settlement %.0f",
                self.state.tick_index, self.state.kpis.avg_price, settlement,
            )

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------

    def _find_unit(self, unit_id: str) -> Optional[ThermalUnit]:
        return next((u for u in self.units if u.id == unit_id), None)

    def toggle_unit(self, unit_id: str) -> ActionResult:
        """Flip a unit's on/off command, effective from the next tick."""
        unit = self._find_unit(unit_id)
        if unit is None:
            logger.warning("Toggle refused: unknown unit %s", unit_id)
            return ActionResult(False, "Unit not found.")
        if unit.on_outage:
            logger.warning("Toggle refused: unit %s is on forced outage", unit.id)
            return ActionResult(False, "Unit is on forced outage.")
        previous = unit.capture_command(self.state.tick_index)
        unit.command_on = not unit.command_on
        logger.info("Unit %s commanded %s", unit.id, "on" if unit.command_on else "off")
        return ActionResult(True, previous=previous)

    def restore_unit_state(self, unit_id: str, previous: UnitCommand) -> ActionResult:
        """Reinstate the command fields captured by :meth:`toggle_unit`."""
        unit = self._find_unit(unit_id)
        if unit is None:
            return ActionResult(False, "Unit not found.")
        unit.restore_command(previous)
        logger.info("Unit %s restored to command_on=%s", unit.id, previous.command_on)
        return ActionResult(True)

    def can_undo(self, previous: UnitCommand) -> bool:
        """Whether *previous* was captured in the current simulated hour."""
        ticks_per_hour = 60.0 / self.tick_minutes
        current_hour = math.floor(self.state.tick_index / ticks_per_hour)
        action_hour = math.floor(previous.tick_index / ticks_per_hour)
        return current_hour == action_hour

    def set_battery_mode(self, mode: str) -> ActionResult:
        """Select ``auto``, ``charge`` or ``discharge`` battery control."""
        error = self.battery.set_mode(mode)
        if error is not None:
            self._log_event(error)
            return ActionResult(False, error)
        return ActionResult(True)

    def apply_overrides(
        self,
        gas: Optional[float] = None,
        reserve: Optional[float] = None,
        outage: Optional[float] = None,
        tx: Optional[float] = None,
    ) -> None:
        """Apply operator overrides; ``None``/NaN leaves a value unchanged.

        ``tx`` rewrites every link limit immediately.
        """
        overrides = self.state.overrides
        if _is_number(gas):
            overrides.gas = float(gas)
        if _is_number(reserve):
            overrides.reserve = float(reserve)
        if _is_number(outage):
            overrides.outage = float(outage)
        if _is_number(tx):
            overrides.tx = float(tx)
            for link in self.state.links:
                link.limit = float(tx)
        logger.info("Overrides now %s", overrides)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _log_event(self, message: str) -> GridEvent:
        event = GridEvent(
            id=self.state.event_counter,
            time=format_clock(self.state.current_time),
            message=message,
        )
        self.state.event_counter += 1
        self.state.events.append(event)
        self.state.last_event = event
        return event

    @property
    def events(self) -> list[GridEvent]:
        return list(self.state.events)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def _build_snapshot(self) -> dict[str, Any]:
        return build_snapshot(
            self.state,
            self.units,
            self.battery,
            self.status.value,
            self.total_ticks,
            self.tick_minutes,
        )

    def current_snapshot(self) -> dict[str, Any]:
        return self._build_snapshot()

    def compute_score(self) -> Scorecard:
        return compute_score(
            self.state.kpis,
            self.scenario.meta.score_weights,
            self.battery.energy_capacity,
        )

    def export_csv(self) -> str:
        return export_tick_log_csv(self.state.tick_log)

    @property
    def tick_log(self) -> list[TickRecord]:
        return list(self.state.tick_log)

    def __repr__(self) -> str:
        return (
            f"SimulationRunner(region={self.scenario.meta.region!r}, "
            f"tick={self.state.tick_index}/{self.total_ticks}, status={self.status.value!r})"
        )
