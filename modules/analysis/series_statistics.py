"""
Series Statistics - Dispersion, Conservative Variance, Thresholds

Per-axis statistics over a window of real samples. Every value is floored to
a realistic minimum so synthetic data is never generated with zero noise.
"""

import statistics
from dataclasses import dataclass
from typing import List, Optional, Sequence

from config.presets import StatisticsConfig
from modules.analysis.station_profiler import SolutionType
from modules.series.sample import Sample


@dataclass(frozen=True)
class Dispersion:
    """Per-axis sample standard deviation, meters."""
    e_std: float
    n_std: float
    h_std: float

    @property
    def mean_std(self) -> float:
        return (self.e_std + self.n_std + self.h_std) / 3.0

    @property
    def horizontal_std(self) -> float:
        return (self.e_std + self.n_std) / 2.0


@dataclass(frozen=True)
class ConservativeVariance:
    """Robust per-axis step scale used for long extensions."""
    e_var: float
    n_var: float
    h_var: float


@dataclass(frozen=True)
class ReferencePoint:
    e: float
    n: float
    h: float


def _axes(samples: Sequence[Sample]) -> List[List[float]]:
    return [
        [s.e for s in samples],
        [s.n for s in samples],
        [s.h for s in samples],
    ]


class SeriesStatistics:
    """Stateless statistics over sample windows."""

    def __init__(self, config: Optional[StatisticsConfig] = None):
        self.config = config or StatisticsConfig()

    def dispersion(self, samples: Sequence[Sample]) -> Dispersion:
        """
        Sample standard deviation (n-1) per axis.

        Fewer than 2 samples yields the default dispersion; otherwise each
        axis is floored to its minimum.
        """
        cfg = self.config
        if len(samples) < 2:
            return Dispersion(*cfg.default_std)

        values = [
            max(statistics.stdev(axis), floor)
            for axis, floor in zip(_axes(samples), cfg.min_std)
        ]
        return Dispersion(*values)

    def conservative_variance(self, samples: Sequence[Sample]) -> ConservativeVariance:
        """
        Median absolute first difference over the recent window, scaled down.

        The median of steps ignores the occasional outlier that would inflate
        a standard deviation over a long extension.
        """
        cfg = self.config
        if len(samples) < cfg.conservative_min_samples:
            return ConservativeVariance(*cfg.conservative_default)

        window = list(samples)[-cfg.conservative_window:]
        values = []
        for axis, floor in zip(_axes(window), cfg.conservative_floor):
            steps = [abs(b - a) for a, b in zip(axis, axis[1:])]
            values.append(max(statistics.median(steps), floor) * cfg.conservative_scale)
        return ConservativeVariance(*values)

    def discontinuity_threshold(
        self, samples: Sequence[Sample], solution_type: SolutionType
    ) -> float:
        """
        Jump size above which a synthetic/real boundary needs blending.

        max(base, min(cap, multiplier * mean axis std)). Windows too short to
        estimate dispersion fall back to the solution-type base.
        """
        cfg = self.config
        base = (
            cfg.static_threshold_base
            if solution_type == SolutionType.STATIC
            else cfg.kinematic_threshold_base
        )
        if len(samples) < cfg.threshold_min_samples:
            return base

        mean_std = self.dispersion(samples).mean_std
        return max(base, min(cfg.threshold_cap, cfg.threshold_std_multiplier * mean_std))

    @staticmethod
    def median_reference(samples: Sequence[Sample]) -> ReferencePoint:
        if not samples:
            return ReferencePoint(0.0, 0.0, 0.0)
        return ReferencePoint(*(statistics.median(axis) for axis in _axes(samples)))
