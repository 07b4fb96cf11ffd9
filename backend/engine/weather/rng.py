"""Seeded pseudo-random generator for reproducible grid simulations.

Implements the mulberry32 32-bit mixing generator so that a given integer
seed always yields the same sequence of uniform draws, independent of
platform or interpreter.  Gaussian variates use the polar Box--Muller
method and cache the second variate of each pair.
"""

from __future__ import annotations

import math

_MASK32 = 0xFFFFFFFF
_GOLDEN_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    """32-bit integer multiply, result as unsigned."""
    return (a * b) & _MASK32


class DeterministicRNG:
    """Mulberry32 uniform generator with Gaussian sampling.

    Parameters
    ----------
    seed : int
        Integer seed.  Only the low 32 bits are significant.
    """

    def __init__(self, seed: int) -> None:
        self.seed: int = int(seed)
        self._state: int = self.seed & _MASK32
        self._cached_gaussian: float | None = None

    # ------------------------------------------------------------------
    # Uniform draws
    # ------------------------------------------------------------------

    def next(self) -> float:
        """Return a uniform double in [0, 1)."""
        self._state = (self._state + _GOLDEN_INCREMENT) & _MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / _TWO_POW_32

    def next_range(self, low: float, high: float) -> float:
        """Uniform draw in [low, high)."""
        return low + (high - low) * self.next()

    def next_int(self, low: int, high: int) -> int:
        """Uniform integer draw in [low, high], both ends inclusive."""
        return int(math.floor(self.next_range(low, high + 1)))

    # ------------------------------------------------------------------
    # Gaussian draws
    # ------------------------------------------------------------------

    def normal(self, mean: float = 0.0, std: float = 1.0) -> float:
        """Gaussian draw via polar Box--Muller.

        Each accepted pair of uniforms produces two independent standard
        normals; the second is returned by the following call.
        """
        if self._cached_gaussian is not None:
            value = self._cached_gaussian
            self._cached_gaussian = None
            return mean + std * value

        u = v = s = 0.0
        while s == 0.0 or s >= 1.0:
            u = self.next() * 2.0 - 1.0
            v = self.next() * 2.0 - 1.0
            s = u * u + v * v
        mul = math.sqrt((-2.0 * math.log(s)) / s)
        self._cached_gaussian = v * mul
        return mean + std * u * mul

    def __repr__(self) -> str:
        return f"DeterministicRNG(seed={self.seed})"
