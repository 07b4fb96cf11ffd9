"""End-of-run scorecard with weighted components and badges.

Three component scores in [0, 1] are combined with the scenario's score
weights:

* reliability = ``1 - unmet / total_load`` (clamped at 0)
* cost score = ``1 - cash / 100000`` (clamped to [0, 1])
* emissions score = ``1 - emissions / 1000`` (clamped to [0, 1])
"""
from __future__ import annotations

from dataclasses import dataclass, field

from engine.simulation.scenario import ScoreWeights
from engine.simulation.state import KpiTotals

COST_NORMALISER: float = 100_000.0
EMISSIONS_NORMALISER: float = 1_000.0

ZERO_SHED_THRESHOLD_MWH: float = 0.01
CONGESTION_BADGE_MAX_TICKS: int = 10
MIN_BADGES: int = 3
FILLER_BADGE: str = "Market Explorer"


@dataclass(frozen=True)
class Scorecard:
    reliability: float
    cost_score: float
    emissions_score: float
    total: float
    badges: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "reliability": self.reliability,
            "cost_score": self.cost_score,
            "emissions_score": self.emissions_score,
            "total": self.total,
            "badges": list(self.badges),
        }


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def award_badges(kpis: KpiTotals, battery_energy_capacity: float) -> list[str]:
    """Badges earned by the run, padded with a generic one up to three."""
    badges: list[str] = []
    if kpis.unmet < ZERO_SHED_THRESHOLD_MWH:
        badges.append("Zero Shed Day")
    if kpis.congested_ticks < CONGESTION_BADGE_MAX_TICKS:
        badges.append("Congestion Manager")
    if kpis.battery_throughput > battery_energy_capacity:
        badges.append("Battery Hero")
    if len(badges) < MIN_BADGES:
        badges.append(FILLER_BADGE)
    return badges


def compute_score(
    kpis: KpiTotals,
    weights: ScoreWeights,
    battery_energy_capacity: float,
) -> Scorecard:
    """Score a run from its cumulative KPIs.

    Parameters
    ----------
    kpis : KpiTotals
        Run totals (after day-ahead settlement for a finished run).
    weights : ScoreWeights
        Component weights from the scenario.
    battery_energy_capacity : float
        Battery capacity in MWh, the "Battery Hero" throughput threshold.

    Returns
    -------
    Scorecard
    """
    reliability = max(0.0, 1.0 - kpis.unmet / max(1.0, kpis.total_load))
    cost_score = clamp01(1.0 - kpis.cash / COST_NORMALISER)
    emissions_score = clamp01(1.0 - kpis.emissions / EMISSIONS_NORMALISER)
    total = (
        reliability * weights.reliability
        + cost_score * weights.cost
        + emissions_score * weights.emissions
    )
    return Scorecard(
        reliability=reliability,
        cost_score=cost_score,
        emissions_score=emissions_score,
        total=total,
        badges=award_badges(kpis, battery_energy_capacity),
    )
