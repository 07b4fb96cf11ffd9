"""Mutable runtime records owned by the simulation runner."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class ZoneTick:
    """Working figures for one zone during one tick.

    ``net_load`` is progressively reduced by renewables, the battery and
    thermal dispatch; after transmission balancing it holds the zone's
    unmet load in MW.
    """

    id: str
    name: str
    load: float = 0.0
    renewable: float = 0.0
    net_load: float = 0.0
    price: float = 0.0
    net_supply: float = 0.0
    balance: float = 0.0
    congested: bool = False
    congestion_adder: float = 0.0
    reserve_short: float = 0.0


@dataclass
class ZoneAllocation:
    """Thermal output and spinning reserve scheduled in one zone."""

    output: float = 0.0
    reserve: float = 0.0


@dataclass
class ZoneState:
    """Last completed tick's figures for a zone."""

    id: str
    name: str
    load: float = 0.0
    price: float = 0.0
    renewable: float = 0.0
    net_load: float = 0.0
    congested: bool = False


@dataclass
class LinkState:
    id: str
    from_zone: str
    to_zone: str
    limit: float
    flow: float = 0.0
    congested: bool = False


@dataclass
class KpiTotals:
    """Cumulative run accounting."""

    unmet: float = 0.0
    avg_price: float = 0.0
    price_sum: float = 0.0
    price_count: int = 0
    emissions: float = 0.0
    cash: float = 0.0
    energy_revenue: float = 0.0
    fuel_expense: float = 0.0
    vom_expense: float = 0.0
    congested_ticks: int = 0
    battery_throughput: float = 0.0
    load_served: float = 0.0
    total_load: float = 0.0
    reserve_shortfall: float = 0.0

    def running_avg_price(self) -> float:
        return self.price_sum / self.price_count if self.price_count else 0.0


@dataclass(frozen=True)
class GridEvent:
    id: int
    time: str
    message: str


@dataclass(frozen=True)
class ZoneTickRecord:
    load: float
    price: float
    renewable: float
    net_load: float
    congested: bool
    reserve_short: float = 0.0


@dataclass(frozen=True)
class TickRecord:
    """One completed tick, as exported to CSV and charted."""

    timestamp: str
    temperature: float
    zones: dict[str, ZoneTickRecord]
    battery_soc: float
    battery_mode: str
    battery_charge_mw: float
    battery_discharge_mw: float
    congestion: bool
    unmet: float
    cash: float


@dataclass
class DayAheadContract:
    quantity: float = 0.0
    price: float = 0.0
    settled: bool = False


@dataclass
class Overrides:
    """Operator overrides; ``None`` means "use the scenario value"."""

    gas: Optional[float] = None
    reserve: Optional[float] = None
    outage: Optional[float] = None
    tx: Optional[float] = None


@dataclass
class RunState:
    """Everything the runner mutates between ticks."""

    tick_index: int
    current_time: datetime
    zones: list[ZoneState]
    links: list[LinkState]
    kpis: KpiTotals = field(default_factory=KpiTotals)
    events: list[GridEvent] = field(default_factory=list)
    tick_log: list[TickRecord] = field(default_factory=list)
    price_history: list[dict[str, float]] = field(default_factory=list)
    day_ahead: DayAheadContract = field(default_factory=DayAheadContract)
    overrides: Overrides = field(default_factory=Overrides)
    done: bool = False
    last_event: Optional[GridEvent] = None
    event_counter: int = 0
