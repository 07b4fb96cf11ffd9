"""Zonal transmission module.

Provides surplus/deficit balancing across the two inter-zone links,
congestion detection and congestion price adders.
"""

from .transmission import CONGESTION_ADDER, balance_transmission, resolve_link_flow

__all__ = ["CONGESTION_ADDER", "balance_transmission", "resolve_link_flow"]
