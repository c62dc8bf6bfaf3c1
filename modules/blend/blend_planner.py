"""
Blend Planner - Discontinuity Detection and Transition Sizing

Measures the jump between the end of a synthetic segment and the start of the
following real segment, and sizes a transition long enough to hide it.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from config.presets import TransitionConfig
from modules.analysis.series_statistics import SeriesStatistics
from modules.analysis.station_profiler import StationProfiler
from modules.series.sample import Sample
from utils.logger import get_logger

logger = get_logger("blend.blend_planner")


@dataclass(frozen=True)
class BlendPlan:
    max_discontinuity: float
    average_discontinuity: float
    threshold: float
    transition_steps: int
    needed: bool

    def to_dict(self) -> dict:
        return {
            "max_discontinuity": self.max_discontinuity,
            "average_discontinuity": self.average_discontinuity,
            "threshold": self.threshold,
            "transition_steps": self.transition_steps,
            "needed": self.needed,
        }


class BlendPlanner:
    """Stateless planner; statistics and profiler are injected."""

    def __init__(
        self,
        statistics: Optional[SeriesStatistics] = None,
        profiler: Optional[StationProfiler] = None,
        config: Optional[TransitionConfig] = None,
        sample_interval_minutes: int = 10,
    ):
        self.statistics = statistics or SeriesStatistics()
        self.profiler = profiler or StationProfiler()
        self.config = config or TransitionConfig()
        self.sample_interval_minutes = sample_interval_minutes

    def plan(self, generated: Sequence[Sample], real: Sequence[Sample]) -> BlendPlan:
        """
        Compare the last generated sample with the first real one.

        The threshold is computed over a local window spanning the boundary:
        the generated tail plus the real head.
        """
        if not generated or not real:
            return BlendPlan(0.0, 0.0, 0.0, 0, False)

        cfg = self.config
        last, first = generated[-1], real[0]
        deltas = (abs(first.e - last.e), abs(first.n - last.n), abs(first.h - last.h))
        max_delta = max(deltas)
        average_delta = sum(deltas) / 3.0

        window = list(generated[-cfg.local_window:]) + list(real[:cfg.local_window])
        solution_type = self.profiler.detect_solution_type(window)
        threshold = self.statistics.discontinuity_threshold(window, solution_type)

        needed = max_delta > threshold
        steps = 0
        if needed:
            duration_hours = len(generated) * self.sample_interval_minutes / 60.0
            steps = self.adaptive_transition_steps(max_delta, threshold, duration_hours)

        logger.debug(
            f"BLEND_PLAN | max={max_delta:.4f} | avg={average_delta:.4f} | "
            f"threshold={threshold:.4f} | solution={solution_type.value} | "
            f"steps={steps} | needed={needed}"
        )
        return BlendPlan(max_delta, average_delta, threshold, steps, needed)

    def adaptive_transition_steps(
        self,
        max_delta: float,
        threshold: float,
        duration_hours: float,
        min_steps: Optional[int] = None,
        max_steps: Optional[int] = None,
        multiplier: Optional[float] = None,
        long_threshold_hours: Optional[float] = None,
    ) -> int:
        """
        ceil(max_delta / threshold * multiplier) plus a duration bonus, clamped.

        Syntheses longer than long_threshold_hours earn
        min(12, ceil(duration / long_threshold)) extra steps.
        """
        cfg = self.config
        min_steps = cfg.min_steps if min_steps is None else min_steps
        max_steps = cfg.max_steps if max_steps is None else max_steps
        multiplier = cfg.multiplier if multiplier is None else multiplier
        long_threshold_hours = (
            cfg.long_generation_hours if long_threshold_hours is None else long_threshold_hours
        )

        base = math.ceil(max_delta / threshold * multiplier) if threshold > 0 else max_steps

        bonus = 0
        if duration_hours > long_threshold_hours:
            bonus = min(cfg.max_duration_bonus, math.ceil(duration_hours / long_threshold_hours))

        return min(max_steps, max(min_steps, base + bonus))
