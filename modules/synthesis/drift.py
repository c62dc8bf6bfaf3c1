"""
Drift State - Call-Scoped Cumulative Drift and Its Correction

Each synthesis call creates its own DriftState; it is never stored on the
synthesizer, which keeps concurrent calls on one instance independent.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass
class DriftState:
    """Per-axis displacement of the latest point from its reference."""
    cumulative_e: float = 0.0
    cumulative_n: float = 0.0
    cumulative_h: float = 0.0

    def reset(self) -> None:
        self.cumulative_e = 0.0
        self.cumulative_n = 0.0
        self.cumulative_h = 0.0

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.cumulative_e, self.cumulative_n, self.cumulative_h)

    def correct(
        self,
        position: Tuple[float, float, float],
        reference: Tuple[float, float, float],
        threshold: float,
        strength: float,
    ) -> Tuple[float, float, float]:
        """
        Record drift of `position` from `reference` and pull it back if needed.

        Any axis whose drift exceeds the threshold gets -drift * strength added
        to both the returned coordinate and the stored drift.
        """
        corrected = []
        drifts = []
        for value, ref in zip(position, reference):
            drift = value - ref
            if abs(drift) > threshold:
                correction = -drift * strength
                value += correction
                drift += correction
            corrected.append(value)
            drifts.append(drift)

        self.cumulative_e, self.cumulative_n, self.cumulative_h = drifts
        return corrected[0], corrected[1], corrected[2]
