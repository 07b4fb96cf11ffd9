"""Immutable scenario records and presence validation.

A scenario arrives as a JSON-shaped mapping with camelCase keys.  It is
converted once into a tree of frozen dataclasses; nothing in the runtime
state ever holds a reference into the caller's mapping.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from engine.simulation.errors import ScenarioValidationError

logger = logging.getLogger(__name__)

ZONE_COUNT: int = 3
LINK_COUNT: int = 2

DEFAULT_SCORE_WEIGHTS: dict[str, float] = {
    "reliability": 0.5,
    "cost": 0.3,
    "emissions": 0.2,
}

_REQUIRED_META = ("region", "seed", "reservePercent", "priceCap")
_REQUIRED_CLOCK = ("start", "durationHours", "tickMinutes")


# ======================================================================
# Records
# ======================================================================

@dataclass(frozen=True)
class ScoreWeights:
    reliability: float = DEFAULT_SCORE_WEIGHTS["reliability"]
    cost: float = DEFAULT_SCORE_WEIGHTS["cost"]
    emissions: float = DEFAULT_SCORE_WEIGHTS["emissions"]


@dataclass(frozen=True)
class Meta:
    region: str
    seed: int
    reserve_percent: float
    price_cap: float
    day_ahead_default_price: float = 0.0
    score_weights: ScoreWeights = field(default_factory=ScoreWeights)


@dataclass(frozen=True)
class Clock:
    start: datetime
    duration_hours: float
    tick_minutes: float

    @property
    def tick_hours(self) -> float:
        return self.tick_minutes / 60.0

    @property
    def total_ticks(self) -> int:
        """Horizon length, ``round(duration_hours * 60 / tick_minutes)``."""
        return int(round(self.duration_hours * 60.0 / self.tick_minutes))


@dataclass(frozen=True)
class Zone:
    id: str
    name: str
    base_load: float
    temp_sensitivity: float = 0.0


@dataclass(frozen=True)
class TransmissionLink:
    id: str
    from_zone: str
    to_zone: str
    limit: float


@dataclass(frozen=True)
class ThermalUnitSpec:
    """Static parameters of one dispatchable thermal unit.

    Heat rate is in MMBtu/MWh x 10 so that ``heat_rate * fuel_price / 10``
    gives $/MWh; emissions are tonnes per MWh.
    """

    id: str
    name: str
    zone: str
    pmax: float
    pmin: float
    ramp: float
    heat_rate: float
    fuel_price: float
    vom: float = 0.0
    emissions: float = 0.0
    reserve_cap: float = 0.0
    poisson_rate: float = 0.0
    repair_hours: tuple[float, float] = (1.0, 1.0)
    initial_on: bool = True


@dataclass(frozen=True)
class RenewablePlant:
    zone: str
    pmax: float


@dataclass(frozen=True)
class Renewables:
    solar: tuple[RenewablePlant, ...] = ()
    wind: tuple[RenewablePlant, ...] = ()


@dataclass(frozen=True)
class BatterySpec:
    zone: str
    power: float
    duration_hours: float
    round_trip_eff: float = 0.9
    initial_soc: float = 0.5

    @property
    def energy_capacity(self) -> float:
        return self.power * self.duration_hours


@dataclass(frozen=True)
class WeatherSpec:
    temperature_base: float
    temperature_amplitude: float
    wind_mean: float
    wind_variance: float
    solar_peak: float


@dataclass(frozen=True)
class Scenario:
    """Complete immutable simulation input."""

    meta: Meta
    clock: Clock
    zones: tuple[Zone, ...]
    transmission: tuple[TransmissionLink, ...]
    thermal_units: tuple[ThermalUnitSpec, ...]
    renewables: Renewables
    battery: BatterySpec
    weather: WeatherSpec

    def __post_init__(self) -> None:
        if len(self.zones) != ZONE_COUNT:
            raise ValueError(f"Scenario needs exactly {ZONE_COUNT} zones, got {len(self.zones)}")
        if len(self.transmission) != LINK_COUNT:
            raise ValueError(
                f"Scenario needs exactly {LINK_COUNT} transmission links, got {len(self.transmission)}"
            )
        if not self.thermal_units:
            raise ValueError("Scenario needs at least one thermal unit")
        if self.clock.tick_minutes <= 0:
            raise ValueError(f"tick_minutes must be > 0, got {self.clock.tick_minutes}")
        if self.clock.total_ticks <= 0:
            raise ValueError("Scenario horizon must contain at least one tick")

        zone_ids = {z.id for z in self.zones}
        for link in self.transmission:
            if link.from_zone not in zone_ids or link.to_zone not in zone_ids:
                raise ValueError(f"Link {link.id} references an unknown zone")
        for unit in self.thermal_units:
            if unit.zone not in zone_ids:
                raise ValueError(f"Thermal unit {unit.id} references unknown zone {unit.zone}")
        if self.battery.zone not in zone_ids:
            raise ValueError(f"Battery references unknown zone {self.battery.zone}")
        if self.battery.energy_capacity <= 0:
            raise ValueError("Battery energy capacity must be > 0")

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Scenario":
        """Build a scenario from a camelCase JSON-shaped mapping.

        Raises
        ------
        ScenarioValidationError
            If required fields are missing (see :func:`validate_scenario`).
        ValueError
            If the fields are present but structurally inconsistent.
        """
        missing = validate_scenario(data)
        if missing:
            raise ScenarioValidationError(missing)

        try:
            return cls._build(data)
        except (KeyError, TypeError, IndexError, AttributeError) as exc:
            raise ValueError(f"Malformed scenario field: {exc}") from exc

    @classmethod
    def _build(cls, data: Mapping[str, Any]) -> "Scenario":
        meta = data["meta"]
        weights = meta.get("scoreWeights") or {}
        clock = data["clock"]
        weather = data["weather"]
        battery = data["battery"]
        renewables = data["renewables"]

        return cls(
            meta=Meta(
                region=str(meta["region"]),
                seed=int(meta["seed"]),
                reserve_percent=float(meta["reservePercent"]),
                price_cap=float(meta["priceCap"]),
                day_ahead_default_price=float(meta.get("dayAheadDefaultPrice", 0.0)),
                score_weights=ScoreWeights(
                    reliability=float(weights.get("reliability", DEFAULT_SCORE_WEIGHTS["reliability"])),
                    cost=float(weights.get("cost", DEFAULT_SCORE_WEIGHTS["cost"])),
                    emissions=float(weights.get("emissions", DEFAULT_SCORE_WEIGHTS["emissions"])),
                ),
            ),
            clock=Clock(
                start=parse_timestamp(clock["start"]),
                duration_hours=float(clock["durationHours"]),
                tick_minutes=float(clock["tickMinutes"]),
            ),
            zones=tuple(
                Zone(
                    id=str(z["id"]),
                    name=str(z.get("name", z["id"])),
                    base_load=float(z["baseLoad"]),
                    temp_sensitivity=float(z.get("tempSensitivity", 0.0)),
                )
                for z in data["zones"]
            ),
            transmission=tuple(
                TransmissionLink(
                    id=str(t["id"]),
                    from_zone=str(t["from"]),
                    to_zone=str(t["to"]),
                    limit=float(t["limit"]),
                )
                for t in data["transmission"]
            ),
            thermal_units=tuple(_thermal_unit_from_dict(u) for u in data["thermalUnits"]),
            renewables=Renewables(
                solar=tuple(
                    RenewablePlant(zone=str(p["zone"]), pmax=float(p["pmax"]))
                    for p in renewables.get("solar", [])
                ),
                wind=tuple(
                    RenewablePlant(zone=str(p["zone"]), pmax=float(p["pmax"]))
                    for p in renewables.get("wind", [])
                ),
            ),
            battery=BatterySpec(
                zone=str(battery["zone"]),
                power=float(battery["power"]),
                duration_hours=float(battery["durationHours"]),
                round_trip_eff=float(battery.get("roundTripEff") or 0.9),
                initial_soc=float(battery.get("initialSoc", 0.5)),
            ),
            weather=WeatherSpec(
                temperature_base=float(weather["temperature"]["base"]),
                temperature_amplitude=float(weather["temperature"]["amplitude"]),
                wind_mean=float(weather["wind"]["mean"]),
                wind_variance=float(weather["wind"]["variance"]),
                solar_peak=float(weather["solar"]["peak"]),
            ),
        )


def _thermal_unit_from_dict(u: Mapping[str, Any]) -> ThermalUnitSpec:
    repair = u.get("repairHours") or (1.0, 1.0)
    return ThermalUnitSpec(
        id=str(u["id"]),
        name=str(u.get("name", u["id"])),
        zone=str(u["zone"]),
        pmax=float(u["pmax"]),
        pmin=float(u.get("pmin", 0.0)),
        ramp=float(u["ramp"]),
        heat_rate=float(u["heatRate"]),
        fuel_price=float(u["fuelPrice"]),
        vom=float(u.get("vom", 0.0)),
        emissions=float(u.get("emissions", 0.0)),
        reserve_cap=float(u.get("reserveCap", 0.0)),
        poisson_rate=float(u.get("poissonRate", 0.0)),
        repair_hours=(float(repair[0]), float(repair[1])),
        initial_on=bool(u.get("initialOn", True)),
    )


# ======================================================================
# Validation and loading
# ======================================================================

def validate_scenario(data: Any) -> list[str]:
    """Check a raw scenario mapping for required fields.

    Presence only: values are not range-checked here.

    Returns
    -------
    list[str]
        Missing-field identifiers; empty when the scenario is complete.
    """
    if not isinstance(data, Mapping):
        return ["meta", "clock", f"zones[{ZONE_COUNT}]", f"transmission[{LINK_COUNT}]",
                "thermalUnits", "renewables", "battery", "weather"]

    errors: list[str] = []
    meta = data.get("meta")
    clock = data.get("clock")
    zones = data.get("zones")
    links = data.get("transmission")
    units = data.get("thermalUnits")

    if not meta:
        errors.append("meta")
    if not clock:
        errors.append("clock")
    if not isinstance(zones, list) or len(zones) != ZONE_COUNT:
        errors.append(f"zones[{ZONE_COUNT}]")
    if not isinstance(links, list) or len(links) != LINK_COUNT:
        errors.append(f"transmission[{LINK_COUNT}]")
    if not isinstance(units, list) or not units:
        errors.append("thermalUnits")
    if not data.get("renewables"):
        errors.append("renewables")
    if not data.get("battery"):
        errors.append("battery")
    if not data.get("weather"):
        errors.append("weather")

    if isinstance(meta, Mapping):
        for name in _REQUIRED_META:
            if meta.get(name) is None:
                errors.append(f"meta.{name}")
    if isinstance(clock, Mapping):
        for name in _REQUIRED_CLOCK:
            # A zero/empty clock field is as unusable as a missing one.
            if not clock.get(name):
                errors.append(f"clock.{name}")

    return errors


def load_scenario(path: str | Path) -> Scenario:
    """Read, validate and build a scenario from a JSON file."""
    path = Path(path)
    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    scenario = Scenario.from_dict(data)
    logger.info("Loaded scenario '%s' (seed %d) from %s", scenario.meta.region, scenario.meta.seed, path)
    return scenario


# ======================================================================
# Time helpers
# ======================================================================

def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_clock(dt: datetime) -> str:
    """``HH:MM`` label in UTC."""
    return dt.astimezone(timezone.utc).strftime("%H:%M")


def format_iso(dt: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"
