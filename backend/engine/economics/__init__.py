"""Market and scoring module."""

from .metrics import accumulate_tick, compute_tick_costs, settle_day_ahead
from .pricing import zone_price
from .scoring import Scorecard, compute_score

__all__ = [
    "accumulate_tick",
    "compute_tick_costs",
    "settle_day_ahead",
    "zone_price",
    "Scorecard",
    "compute_score",
]
