"""CSV export of the per-tick simulation log."""

from __future__ import annotations

import csv
import io
from typing import Sequence

from engine.simulation.state import TickRecord

CSV_HEADER: tuple[str, ...] = (
    "timestamp",
    "temperature",
    "zone",
    "load",
    "price",
    "renewable",
    "netLoad",
    "batterySOC",
    "batteryMode",
    "cash",
)


def export_tick_log_csv(tick_log: Sequence[TickRecord]) -> str:
    """Serialise the tick log, one row per zone per tick.

    Energy and price columns carry two decimals, SOC (a fraction) three.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for entry in tick_log:
        for zone_id, zone in entry.zones.items():
            writer.writerow([
                entry.timestamp,
                f"{entry.temperature:.2f}",
                zone_id,
                f"{zone.load:.2f}",
                f"{zone.price:.2f}",
                f"{zone.renewable:.2f}",
                f"{zone.net_load:.2f}",
                f"{entry.battery_soc:.3f}",
                entry.battery_mode,
                f"{entry.cash:.2f}",
            ])
    return buf.getvalue()
