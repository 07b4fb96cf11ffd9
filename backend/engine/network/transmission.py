"""Two-link transmission balancing with congestion detection.

Each zone's balance is its scheduled supply (thermal + renewables + net
battery injection) minus its load.  Links are visited in scenario order;
a link moves power only from a surplus endpoint to a deficit endpoint,
limited by the smaller imbalance and the link's thermal limit.  Flow is
signed positive in the ``from -> to`` direction.

A link running within :data:`CONGESTION_TOLERANCE_MW` of its limit is
congested and applies :data:`CONGESTION_ADDER` to both endpoint zones.
A zone touching two congested links keeps the larger adder; adders are
never summed.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from engine.battery.battery_system import BatteryDispatch
from engine.simulation.state import LinkState, ZoneAllocation, ZoneTick

logger = logging.getLogger(__name__)

CONGESTION_TOLERANCE_MW: float = 0.01
CONGESTION_ADDER: float = 15.0

# Residual imbalance below this is rounding noise, not shed load (MW).
UNMET_TOLERANCE_MW: float = 1e-6


def resolve_link_flow(link: LinkState, from_zone: ZoneTick, to_zone: ZoneTick) -> float:
    """Move power across *link* and update both zone balances.

    Returns
    -------
    float
        Signed flow (MW), ``|flow| <= link.limit``.
    """
    flow = 0.0
    limit = max(0.0, link.limit)
    if from_zone.balance > 0 and to_zone.balance < 0:
        flow = min(from_zone.balance, -to_zone.balance, limit)
        from_zone.balance -= flow
        to_zone.balance += flow
    elif to_zone.balance > 0 and from_zone.balance < 0:
        transfer = min(to_zone.balance, -from_zone.balance, limit)
        flow = -transfer
        from_zone.balance += transfer
        to_zone.balance -= transfer
    link.flow = flow
    link.congested = abs(flow) >= link.limit - CONGESTION_TOLERANCE_MW
    return flow


def balance_transmission(
    zones: Sequence[ZoneTick],
    links: Sequence[LinkState],
    allocations: Mapping[str, ZoneAllocation],
    battery_zone: Optional[str] = None,
    battery_dispatch: Optional[BatteryDispatch] = None,
) -> bool:
    """Resolve inter-zone flows and set each zone's unmet load.

    On return every zone's ``net_load`` holds its unmet load (MW) and its
    ``congested``/``congestion_adder`` flags are set.

    Parameters
    ----------
    zones : sequence of ZoneTick
        Per-zone working figures for the tick; updated in place.
    links : sequence of LinkState
        Runtime links; ``flow`` and ``congested`` are updated in place.
    allocations : mapping
        Thermal schedule per zone id from :func:`dispatch_thermal`.
    battery_zone : str, optional
        Zone hosting the battery.
    battery_dispatch : BatteryDispatch, optional
        This tick's battery action.

    Returns
    -------
    bool
        Whether any link was congested.
    """
    by_id = {zone.id: zone for zone in zones}

    for zone in zones:
        allocation = allocations.get(zone.id)
        zone.net_supply = (allocation.output if allocation else 0.0) + zone.renewable
        if battery_dispatch is not None and zone.id == battery_zone:
            zone.net_supply += battery_dispatch.net_injection_mw
        zone.balance = zone.net_supply - zone.load
        zone.congested = False
        zone.congestion_adder = 0.0

    any_congested = False
    for link in links:
        from_zone = by_id[link.from_zone]
        to_zone = by_id[link.to_zone]
        resolve_link_flow(link, from_zone, to_zone)
        if link.congested:
            any_congested = True
            for zone in (from_zone, to_zone):
                zone.congested = True
                zone.congestion_adder = max(zone.congestion_adder, CONGESTION_ADDER)
            logger.debug("Link %s congested at %.1f / %.1f MW", link.id, link.flow, link.limit)

    for zone in zones:
        unmet = max(0.0, -zone.balance)
        zone.net_load = unmet if unmet > UNMET_TOLERANCE_MW else 0.0

    return any_congested
