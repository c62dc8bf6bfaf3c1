"""
Series Gap Filler - Fill Missing Intervals and Extend to Now

Walks a time-ordered series of real samples, synthesizes points wherever
consecutive samples are more than one interval apart, then extends the series
up to the reference instant. Real samples are never altered or reordered.
"""

import math
from datetime import datetime
from typing import List, Optional

import config.settings as settings
from config.presets import load_configured_preset
from modules.series.sample import Sample
from modules.synthesis.series_synthesizer import SeriesSynthesizer
from utils.logger import get_logger
from utils.time_utils import (
    assign_sequential_timestamps,
    ceil_to_interval,
    ensure_aware,
    get_reference_time,
    intervals_between,
    next_start,
)

logger = get_logger("interpolation.gap_fill")


class GapFiller:
    """
    Fills gaps in a station series using a SeriesSynthesizer.

    Holds no mutable state beyond its collaborators.
    """

    def __init__(
        self,
        synthesizer: Optional[SeriesSynthesizer] = None,
        fill_window: Optional[int] = None,
        baseline_window: Optional[int] = None,
        seamless: Optional[bool] = None,
    ):
        self.synthesizer = synthesizer or SeriesSynthesizer(load_configured_preset())
        self.interval = self.synthesizer.config.sample_interval_minutes
        self.fill_window = fill_window or settings.FILL_WINDOW_SAMPLES
        self.baseline_window = baseline_window or settings.EXTENSION_BASELINE_SAMPLES
        self.seamless = settings.SEAMLESS_BLEND_ENABLED if seamless is None else seamless

    def fill_gaps(self, samples: List[Sample]) -> List[Sample]:
        """
        Synthesize floor(gap / interval) - 1 points inside every oversized gap.

        Args:
            samples: Real samples, ordered by timestamp.

        Returns:
            The real samples with synthetic points inserted between them.
        """
        if not samples:
            return []

        result = [samples[0]]
        for i in range(1, len(samples)):
            previous, current = samples[i - 1], samples[i]
            gap_intervals = intervals_between(previous.timestamp, current.timestamp, self.interval)

            if gap_intervals > 1:
                missing = math.floor(gap_intervals - 1)
                window = samples[max(0, i - self.fill_window):i]

                if self.seamless:
                    generated = self._blended_fill(window, missing, current)
                else:
                    generated = self.synthesizer.generate_fill(window, missing)
                result.extend(generated)

                logger.info(
                    f"GAP_FILL | after={ensure_aware(previous.timestamp).isoformat()} | "
                    f"before={ensure_aware(current.timestamp).isoformat()} | "
                    f"missing={missing} | generated={len(generated)} | "
                    f"window={len(window)} | seamless={self.seamless}"
                )

            result.append(current)

        return result

    def _blended_fill(self, window: List[Sample], missing: int, following: Sample) -> List[Sample]:
        """
        Fill one gap and ease its tail into the following real sample.

        The transition replaces the last points of the fill rather than being
        appended, so the gap keeps exactly `missing` points on the sample grid.
        At least one filled point is kept to start the transition from.
        """
        fill = self.synthesizer.generate_fill(window, missing)
        plan = self.synthesizer.compatibility_report(fill, [following])
        steps = min(plan.transition_steps, missing - 1)
        if not plan.needed or steps <= 0:
            return fill

        head = fill[:missing - steps]
        transition = self.synthesizer.generate_transition(head, [following], steps)
        assign_sequential_timestamps(transition, next_start(head, self.interval), self.interval)
        logger.debug(
            f"GAP_BLEND | planned={plan.transition_steps} | steps={steps} | "
            f"max_discontinuity={plan.max_discontinuity:.4f}"
        )
        return head + transition

    def extend_to_now(
        self,
        series: List[Sample],
        real_samples: List[Sample],
        now: Optional[datetime] = None,
    ) -> List[Sample]:
        """
        Append conservative extension points from the series' end up to now.

        `now` is rounded up to the next interval boundary. The baseline is the
        most recent real samples; the series' last point anchors timestamps.
        """
        if not series:
            return []

        target = ceil_to_interval(get_reference_time(now), self.interval)
        last_point = series[-1]
        gap_intervals = intervals_between(last_point.timestamp, target, self.interval)

        if target <= ensure_aware(last_point.timestamp) or gap_intervals <= 1:
            return list(series)

        count = math.floor(gap_intervals)
        baseline = real_samples[-self.baseline_window:] if real_samples else [last_point]
        generated = self.synthesizer.generate_extension(baseline, count, last_point)

        logger.info(
            f"EXTEND_TO_NOW | target={target.isoformat()} | "
            f"last={ensure_aware(last_point.timestamp).isoformat()} | "
            f"count={count} | hours={count * self.interval / 60:.1f} | "
            f"baseline={len(baseline)}"
        )
        return list(series) + generated

    def interpolate(self, samples: List[Sample], now: Optional[datetime] = None) -> List[Sample]:
        """fill_gaps() followed by extend_to_now()."""
        filled = self.fill_gaps(samples)
        return self.extend_to_now(filled, samples, now)
