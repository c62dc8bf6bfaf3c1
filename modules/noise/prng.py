"""
Pseudo-Random Source - Reproducible Uniform and Gaussian Draws

A 32-bit linear congruential generator. Identical seed plus identical call
sequence reproduces identical output, which is what makes fills and
extensions byte-for-byte repeatable.
"""

import math

_MULTIPLIER = 1664525
_INCREMENT = 1013904223
_MODULUS = 2 ** 32


class PseudoRandomSource:
    """
    Low-state LCG with Box-Muller gaussian.

    Not thread-safe. One instance is created per synthesis call.
    """

    def __init__(self, seed: int = 42):
        self._state = seed % _MODULUS

    def reseed(self, seed: int) -> None:
        self._state = seed % _MODULUS

    def uniform(self) -> float:
        """Next value in [0, 1)."""
        self._state = (self._state * _MULTIPLIER + _INCREMENT) % _MODULUS
        return self._state / _MODULUS

    def gaussian(self) -> float:
        """
        Standard normal variate from two uniform draws.

        1 - u keeps the log argument in (0, 1].
        """
        u = 1.0 - self.uniform()
        v = self.uniform()
        return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)
