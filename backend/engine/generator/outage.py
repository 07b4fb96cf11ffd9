"""Forced-outage process for thermal units.

Each available unit faces, every tick, a trip probability derived from a
Poisson arrival rate discretised over the tick length:

.. math::

    p = 1 - e^{-\\lambda m h}

where :math:`\\lambda` is the unit's outage rate (per hour), :math:`m` an
optional global multiplier and :math:`h` the tick length in hours.  A
tripped unit stays out for a repair time drawn uniformly from its
``repair_hours`` range, rounded up to whole ticks.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from engine.generator.thermal_unit import ThermalUnit
from engine.weather.rng import DeterministicRNG

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutageTransition:
    """Result of one outage-process step for one unit.

    ``kind`` is ``"trip"`` when the unit was forced out this tick,
    ``"recovered"`` when it came back, or ``None``.
    """

    kind: Optional[str]
    message: str = ""
    hours: float = 0.0


def outage_probability(rate_per_hour: float, tick_hours: float, multiplier: float = 1.0) -> float:
    """Probability of at least one forced outage within one tick."""
    return 1.0 - math.exp(-rate_per_hour * multiplier * tick_hours)


def repair_ticks(hours: float, tick_hours: float) -> int:
    """Repair duration converted to whole ticks (ceiling)."""
    return max(1, int(math.ceil(hours / tick_hours)))


def apply_outage(
    unit: ThermalUnit,
    rng: DeterministicRNG,
    tick_hours: float,
    multiplier: Optional[float] = None,
) -> OutageTransition:
    """Advance the outage process for *unit* by one tick.

    A unit already on outage counts down without consuming the RNG.  An
    available unit consumes exactly one uniform draw, plus one more for
    the repair time if it trips.

    Parameters
    ----------
    unit : ThermalUnit
        Unit to update in place.
    rng : DeterministicRNG
        Simulation random source.
    tick_hours : float
        Tick length in hours.
    multiplier : float, optional
        Global outage-rate multiplier; ``None`` or ``0`` means 1.

    Returns
    -------
    OutageTransition
    """
    if unit.outage_ticks > 0:
        unit.outage_ticks -= 1
        if unit.outage_ticks == 0:
            logger.info("Unit %s returned from outage", unit.id)
            return OutageTransition("recovered", f"{unit.name} returned from outage.")
        return OutageTransition(None)

    probability = outage_probability(unit.spec.poisson_rate, tick_hours, multiplier or 1.0)
    if rng.next() < probability:
        min_hours, max_hours = unit.spec.repair_hours
        hours = rng.next_range(min_hours, max_hours)
        unit.outage_ticks = repair_ticks(hours, tick_hours)
        unit.output = 0.0
        unit.committed = False
        unit.target_output = 0.0
        logger.warning("Unit %s forced out for %.1f h (%d ticks)", unit.id, hours, unit.outage_ticks)
        return OutageTransition("trip", f"{unit.name} forced outage for {hours:.1f} hours.", hours)

    return OutageTransition(None)
