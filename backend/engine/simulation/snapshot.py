"""Read-only views of the runner state for UIs and API clients.

Every function here builds fresh plain ``dict``/``list`` structures; no
returned object aliases live engine state.
"""

from __future__ import annotations

import math
from typing import Any, Sequence

from engine.battery.battery_system import GridBattery
from engine.generator.thermal_unit import ThermalUnit
from engine.simulation.scenario import format_clock
from engine.simulation.state import GridEvent, RunState, TickRecord


def ticks_per_hour(tick_minutes: float) -> int:
    """Whole ticks per simulated hour (at least one)."""
    return max(1, int(math.floor(60.0 / tick_minutes + 0.5)))


def event_to_dict(event: GridEvent | None) -> dict[str, Any] | None:
    if event is None:
        return None
    return {"id": event.id, "time": event.time, "message": event.message}


def build_dispatch_stack(
    tick_log: Sequence[TickRecord],
    tick_index: int,
    tick_minutes: float,
) -> dict[str, Any]:
    """Resource stack for the ticks of the previous simulated hour.

    Each bar holds MW served by renewables, by thermal generation and imports
    (served load net of renewables), and the battery's discharged energy.
    """
    per_hour = ticks_per_hour(tick_minutes)
    tick_hours = tick_minutes / 60.0
    current_hour = tick_index // per_hour
    start = max(0, current_hour * per_hour - per_hour)

    bars: list[dict[str, float]] = []
    for entry in tick_log[start:start + per_hour]:
        renewables = sum(z.renewable for z in entry.zones.values())
        served = sum(z.load - z.net_load for z in entry.zones.values())
        bars.append({
            "renewables": renewables,
            "thermal": max(0.0, served - renewables),
            "battery": entry.battery_discharge_mw * tick_hours,
        })

    peak = max([1.0] + [b["renewables"] + b["thermal"] + abs(b["battery"]) for b in bars])
    return {"bars": bars, "max": peak}


def build_snapshot(
    state: RunState,
    units: Sequence[ThermalUnit],
    battery: GridBattery,
    status: str,
    total_ticks: int,
    tick_minutes: float,
) -> dict[str, Any]:
    """Assemble the full read-only snapshot of the current state."""
    kpis = state.kpis
    return {
        "time_label": format_clock(state.current_time),
        "tick": state.tick_index,
        "total_ticks": total_ticks,
        "status": status,
        "zones": [
            {
                "id": zone.id,
                "name": zone.name,
                "load": zone.load,
                "price": zone.price,
                "congested": zone.congested,
            }
            for zone in state.zones
        ],
        "links": [
            {
                "id": link.id,
                "from": link.from_zone,
                "to": link.to_zone,
                "flow": link.flow,
                "limit": link.limit,
                "congested": link.congested,
            }
            for link in state.links
        ],
        "kpis": {
            "unmet": kpis.unmet,
            "avg_price": kpis.running_avg_price(),
            "emissions": kpis.emissions,
            "cash": kpis.cash,
        },
        "last_event": event_to_dict(state.last_event),
        "dispatch_stack": build_dispatch_stack(state.tick_log, state.tick_index, tick_minutes),
        "price_history": [dict(sample) for sample in state.price_history[-total_ticks:]],
        "battery": {
            "soc": battery.soc_fraction,
            "mode": battery.display_mode,
        },
        "units": [
            {
                "id": unit.id,
                "name": unit.name,
                "committed": unit.command_on or unit.committed,
                "toggle_allowed": not unit.on_outage,
                "toggle_reason": "Outage" if unit.on_outage else "",
                "output": unit.output,
            }
            for unit in units
        ],
        "done": state.done,
    }
