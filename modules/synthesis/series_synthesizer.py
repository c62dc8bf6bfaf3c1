"""
Series Synthesizer - Gap Fill, Conservative Extension, Seamless Blending

Manufactures statistically plausible samples for gaps in a station series:

- generate_fill():      points between two real samples, anchored on
                        progress-weighted real base samples plus a long-term
                        trend and layered irregular noise.
- generate_extension(): points after the last real sample up to "now",
                        anchored on the window median with conservative,
                        decaying variation.
- generate_seamless():  a fill followed by an eased transition into the next
                        real sample when the boundary jump is too large.

All three are deterministic for a given seed. Random source, noise generator
and drift accumulator are created per call, so one instance may be shared
between threads.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple

from config.presets import SynthesisConfig
from modules.analysis.series_statistics import Dispersion, SeriesStatistics
from modules.analysis.station_profiler import SolutionType, StationProfile, StationProfiler
from modules.blend.blend_planner import BlendPlan, BlendPlanner
from modules.environment.environmental_model import (
    EnvironmentalModel,
    WeatherConditions,
    hour_of_day,
)
from modules.noise.irregular import IrregularNoise
from modules.noise.prng import PseudoRandomSource
from modules.series.sample import DERIVED_FIELDS, Sample
from modules.synthesis.drift import DriftState
from utils.logger import get_logger
from utils.time_utils import (
    assign_sequential_timestamps,
    extension_start,
    interpolate_timestamp,
    interpolate_value,
    movement_magnitude,
    next_start,
)

logger = get_logger("synthesis.series_synthesizer")

Triple = Tuple[float, float, float]


@dataclass
class _CallState:
    """Mutable state owned by exactly one generation call."""
    rng: PseudoRandomSource
    noise: IrregularNoise
    drift: DriftState


def smoothstep(t: float) -> float:
    """3t^2 - 2t^3, clamped to [0, 1]."""
    return max(0.0, min(1.0, 3.0 * t * t - 2.0 * t * t * t))


class SeriesSynthesizer:
    """
    Orchestrates profile inference, noise budgeting, trend and noise
    generation, drift correction and blending.
    """

    def __init__(
        self,
        config: Optional[SynthesisConfig] = None,
        environment: Optional[EnvironmentalModel] = None,
    ):
        self.config = config or SynthesisConfig()
        self.statistics = SeriesStatistics(self.config.statistics)
        self.profiler = StationProfiler(self.config.profiler)
        self.environment = environment or EnvironmentalModel()
        self.blend_planner = BlendPlanner(
            statistics=self.statistics,
            profiler=self.profiler,
            config=self.config.transition,
            sample_interval_minutes=self.config.sample_interval_minutes,
        )

    # ==================================================================
    # Public operations
    # ==================================================================

    def generate_fill(
        self,
        samples: Sequence[Sample],
        count: int,
        profile: Optional[StationProfile] = None,
        weather: Optional[WeatherConditions] = None,
    ) -> List[Sample]:
        """
        Synthesize `count` points following the window's last real sample.

        Args:
            samples: Real window, time-ordered (at most 48h is typical).
            count: Number of missing points.
            profile: Station profile override; inferred when omitted.
            weather: Weather override; defaults to mild conditions.

        Returns:
            Points stamped one interval apart starting one interval after the
            window's last sample. Empty for an empty window or count <= 0.
        """
        if not samples or count <= 0:
            logger.debug(f"FILL_SKIPPED | samples={len(samples)} | count={count}")
            return []

        state = self._new_state(self.config.seed)
        return self._fill(state, samples, count, profile, weather)

    def generate_extension(
        self,
        samples: Sequence[Sample],
        count: int,
        last_known_point: Sample,
        profile: Optional[StationProfile] = None,
        weather: Optional[WeatherConditions] = None,
    ) -> List[Sample]:
        """
        Extend a series past its last real sample without a following segment.

        Points are anchored to the window's per-axis median and vary by a
        conservative, index-decaying amount. Timestamps start one interval
        after `last_known_point`.
        """
        if not samples or count <= 0:
            logger.debug(f"EXTENSION_SKIPPED | samples={len(samples)} | count={count}")
            return []

        ext = self.config.extension
        noise_cfg = self.config.noise
        interval = self.config.sample_interval_minutes
        state = self._new_state(self.config.seed + ext.seed_offset)

        reference = self.statistics.median_reference(samples)
        ref = (reference.e, reference.n, reference.h)
        dispersion = self.statistics.dispersion(samples)
        profile = profile or self.profiler.infer_profile(samples, dispersion)
        weather = weather or self.environment.default_weather()
        solution = self.profiler.detect_solution_type(samples)

        conservative = self.statistics.conservative_variance(samples)
        env_factor = self.environment.noise_factor(profile)
        if solution == SolutionType.STATIC:
            oscillation = noise_cfg.static_oscillation * ext.static_oscillation_scale * env_factor
        else:
            oscillation = noise_cfg.kinematic_oscillation * ext.kinematic_oscillation_scale * env_factor

        variances = [
            conservative.e_var * oscillation,
            conservative.n_var * oscillation,
            conservative.h_var * oscillation,
        ]
        if solution == SolutionType.STATIC:
            variances = [min(v, cap) for v, cap in zip(variances, ext.static_variance_cap)]

        is_long = count > ext.long_extension_count
        start = extension_start(last_known_point, interval)
        last_finite = list(ref)
        result: List[Sample] = []

        for i in range(count):
            moment = start + timedelta(minutes=interval * i)
            stability = self._stability_factor(i, count, is_long)
            env_stability = stability / max(1.0, env_factor * ext.env_stability_scale)

            changes = [
                self._controlled_walk(state, variance, env_stability, drift)
                for variance, drift in zip(variances, state.drift.as_tuple())
            ]

            tod_factor = self.environment.noise_factor(profile, hour_of_day(moment)) * ext.env_factor_scale
            changes = [self.environment.apply_weather(c * tod_factor, weather) for c in changes]

            seasonal = self.environment.seasonal_factor(moment)
            geometry = self.environment.satellite_geometry(moment, profile.location)
            geometry_factor = math.sqrt(geometry.pdop / ext.geometry_reference_pdop)
            scales = (1.0, 1.0, 1.1)

            cumulative = state.drift.as_tuple()
            position = tuple(
                r + cum + change * seasonal * geometry_factor * s
                for r, cum, change, s in zip(ref, cumulative, changes, scales)
            )
            position = self._clamp_non_finite(position, last_finite, "extension", i)
            e, n, h = state.drift.correct(
                position, ref, self.config.drift.threshold, self.config.drift.extension_strength
            )

            point = Sample(
                timestamp=moment,
                e=e, n=n, h=h,
                latitude=last_known_point.latitude,
                longitude=last_known_point.longitude,
                height=last_known_point.height,
            )
            self._extension_derived(state, point, last_known_point, variances, env_stability)
            result.append(point)

        logger.info(
            f"EXTENSION_GENERATED | count={count} | solution={solution.value} | "
            f"environment={profile.environment.value} | long={is_long} | "
            f"start={start.isoformat()}"
        )
        return assign_sequential_timestamps(result, start, interval)

    def generate_seamless(
        self,
        samples: Sequence[Sample],
        count: int,
        next_real: Optional[Sequence[Sample]] = None,
        profile: Optional[StationProfile] = None,
        weather: Optional[WeatherConditions] = None,
    ) -> List[Sample]:
        """
        generate_fill() plus an eased transition into `next_real` when needed.

        The transition continues the fill's random sequence, so the whole
        output is reproducible from the seed.
        """
        if not samples or count <= 0:
            logger.debug(f"FILL_SKIPPED | samples={len(samples)} | count={count}")
            return []

        state = self._new_state(self.config.seed)
        main = self._fill(state, samples, count, profile, weather)
        if not next_real:
            return main

        plan = self.blend_planner.plan(main, next_real)
        if not plan.needed:
            logger.debug(
                f"TRANSITION_SKIPPED | max={plan.max_discontinuity:.4f} | "
                f"threshold={plan.threshold:.4f}"
            )
            return main

        transition = self._transition(state.rng, main, next_real, plan.transition_steps)
        return main + transition

    def generate_transition(
        self,
        generated: Sequence[Sample],
        real: Sequence[Sample],
        steps: Optional[int] = None,
        rng: Optional[PseudoRandomSource] = None,
    ) -> List[Sample]:
        """Eased transition from generated[-1] to real[0] with `steps` points."""
        if not generated or not real:
            logger.debug(
                f"TRANSITION_SKIPPED | generated={len(generated)} | real={len(real)}"
            )
            return []

        steps = self.config.transition.default_steps if steps is None else steps
        if rng is None:
            rng = PseudoRandomSource(self.config.seed + self.config.transition.seed_offset)
        return self._transition(rng, generated, real, steps)

    def compatibility_report(
        self, generated: Sequence[Sample], real: Sequence[Sample]
    ) -> BlendPlan:
        """Discontinuity diagnostics without generating a transition."""
        return self.blend_planner.plan(generated, real)

    # ==================================================================
    # Fill
    # ==================================================================

    def _new_state(self, seed: int) -> _CallState:
        rng = PseudoRandomSource(seed)
        return _CallState(rng=rng, noise=IrregularNoise(rng, self.config.noise), drift=DriftState())

    def _fill(
        self,
        state: _CallState,
        samples: Sequence[Sample],
        count: int,
        profile: Optional[StationProfile],
        weather: Optional[WeatherConditions],
    ) -> List[Sample]:
        interval = self.config.sample_interval_minutes
        state.drift.reset()

        dispersion = self.statistics.dispersion(samples)
        profile = profile or self.profiler.infer_profile(samples, dispersion)
        solution = self.profiler.detect_solution_type(samples)
        weather = weather or self.environment.default_weather()

        env_factor = self.environment.noise_factor(profile)
        budget = self._noise_budget(dispersion, solution, env_factor)

        is_long_gap = count > self.config.trend.long_gap_count
        trends = [self._trend(state.rng, count, std, is_long_gap) for std in budget]

        start = next_start(samples, interval)
        last = samples[-1]
        last_finite = [last.e, last.n, last.h]
        result: List[Sample] = []

        for i in range(count):
            base = samples[self._select_base_index(state.rng, len(samples), i, count)]
            moment = start + timedelta(minutes=interval * i)
            point = self._fill_point(
                state, i, count, moment, base,
                (trends[0][i], trends[1][i], trends[2][i]),
                budget, profile, weather, is_long_gap, solution, last_finite,
            )
            result.append(point)

        logger.info(
            f"FILL_GENERATED | count={count} | solution={solution.value} | "
            f"environment={profile.environment.value} | window={len(samples)} | "
            f"start={start.isoformat()}"
        )
        return assign_sequential_timestamps(result, start, interval)

    def _noise_budget(
        self, dispersion: Dispersion, solution: SolutionType, env_factor: float
    ) -> Triple:
        """Dispersion scaled by oscillation and environment, clamped per solution type."""
        noise_cfg = self.config.noise
        trend_cfg = self.config.trend
        if solution == SolutionType.STATIC:
            oscillation = noise_cfg.static_oscillation
            lower, upper = trend_cfg.static_budget_min, trend_cfg.static_budget_max
        else:
            oscillation = noise_cfg.kinematic_oscillation
            lower, upper = trend_cfg.kinematic_budget_min, trend_cfg.kinematic_budget_max

        raw = (dispersion.e_std, dispersion.n_std, dispersion.h_std)
        budget = [
            min(hi, max(lo, std * oscillation * env_factor))
            for std, lo, hi in zip(raw, lower, upper)
        ]
        return budget[0], budget[1], budget[2]

    def _trend(
        self, rng: PseudoRandomSource, count: int, std: float, is_long_gap: bool
    ) -> List[float]:
        """
        Long-term trend path for one axis.

        Short gaps get small independent zero-mean noise. Long gaps get a
        damped random walk plus a roughly daily sinusoid of random phase.
        """
        cfg = self.config.trend
        if not is_long_gap:
            return [rng.gaussian() * std * cfg.short_gap_scale for _ in range(count)]

        magnitude = std * cfg.magnitude_scale
        current = (rng.uniform() - 0.5) * magnitude
        change = (rng.uniform() - 0.5) * magnitude * cfg.change_scale

        walk = []
        for _ in range(count):
            walk.append(current)
            current = current * cfg.damping + change
            if rng.uniform() < cfg.change_probability:
                change = (rng.uniform() - 0.5) * magnitude * cfg.change_scale

        period_hours = cfg.period_hours + rng.gaussian() * cfg.period_jitter_hours
        period_hours = max(cfg.period_min_hours, min(cfg.period_max_hours, period_hours))
        period = period_hours * 60.0 / self.config.sample_interval_minutes
        amplitude = std * cfg.amplitude_scale
        phase = rng.uniform() * 2.0 * math.pi

        return [
            w + amplitude * math.sin(2.0 * math.pi * i / period + phase)
            for i, w in enumerate(walk)
        ]

    @staticmethod
    def _select_base_index(
        rng: PseudoRandomSource, length: int, index: int, count: int
    ) -> int:
        """
        Progress-weighted pick of the real sample anchoring point `index`.

        Early points draw from the far end of the window, late points from
        the near end.
        """
        progress = index / count
        start = max(0, math.floor(length * (1.0 - progress) * 0.5))
        end = min(length - 1, max(start + 1, length - math.floor(length * progress * 0.3)))
        picked = start + math.floor(rng.uniform() * (end - start + 1))
        return min(picked, length - 1)

    def _fill_point(
        self,
        state: _CallState,
        index: int,
        count: int,
        moment: datetime,
        base: Sample,
        trend: Triple,
        budget: Triple,
        profile: StationProfile,
        weather: WeatherConditions,
        is_long_gap: bool,
        solution: SolutionType,
        last_finite: List[float],
    ) -> Sample:
        trend_cfg = self.config.trend
        seasonal = self.environment.seasonal_factor(moment)
        geometry = self.environment.satellite_geometry(moment, profile.location)
        geometry_factor = math.sqrt(geometry.pdop / trend_cfg.geometry_reference_pdop)

        noises = [self._time_based_noise(state, index, count, std, solution) for std in budget]

        tod_factor = self.environment.noise_factor(profile, hour_of_day(moment)) * trend_cfg.env_factor_scale
        noises = [self.environment.apply_weather(n * tod_factor, weather) for n in noises]
        scales = (1.0, 1.0, 1.1)
        noises = [n * seasonal * geometry_factor * s for n, s in zip(noises, scales)]

        anchor = (base.e, base.n, base.h)
        position = tuple(a + t + n for a, t, n in zip(anchor, trend, noises))
        position = self._clamp_non_finite(position, last_finite, "fill", index)
        e, n, h = state.drift.correct(
            position, anchor, self.config.drift.threshold, self.config.drift.fill_strength
        )

        point = Sample(
            timestamp=moment,
            e=e, n=n, h=h,
            latitude=base.latitude,
            longitude=base.longitude,
            height=base.height,
        )

        def vary(base_range: float) -> float:
            return self._stabilized_variation(state, index, count, base_range, is_long_gap)

        point.angle = base.derived("angle") + vary(0.05)
        point.axis = base.derived("axis") + vary(0.03)
        point.plate = base.derived("plate") + vary(0.03)
        point.move_e = base.derived("move_e") + vary(budget[0] * 0.1)
        point.move_n = base.derived("move_n") + vary(budget[1] * 0.1)
        point.move_h = base.derived("move_h") + vary(budget[2] * 0.1)
        point.move_total = movement_magnitude(point)
        point.day_e = base.derived("day_e") + vary(budget[0] * 0.2)
        point.day_n = base.derived("day_n") + vary(budget[1] * 0.2)
        point.day_h = base.derived("day_h") + vary(budget[2] * 0.2)
        return point

    def _time_based_noise(
        self, state: _CallState, index: int, count: int, std: float, solution: SolutionType
    ) -> float:
        cfg = self.config.noise
        static = solution == SolutionType.STATIC
        basic = cfg.static_basic_factor if static else cfg.kinematic_basic_factor
        external = cfg.static_external_factor if static else cfg.kinematic_external_factor
        external_probability = (
            cfg.static_external_probability if static else cfg.kinematic_external_probability
        )

        variance = std * std
        noise = state.noise.layered(variance, index, solution) * basic

        progress = index / count
        time_factor = (
            1.0
            + 0.2 * math.sin(2.0 * math.pi * progress * 2.0)
            + 0.1 * math.sin(2.0 * math.pi * progress * 0.5)
            + 0.05 * state.rng.gaussian()
        )

        if state.rng.uniform() < external_probability:
            noise += state.noise.layered(variance, index, solution) * external * 0.5

        return noise * time_factor * (cfg.static_time_factor if static else cfg.kinematic_time_factor)

    def _stabilized_variation(
        self, state: _CallState, index: int, count: int, base_range: float, is_long_gap: bool
    ) -> float:
        variation = state.noise.layered(base_range * base_range, index, SolutionType.STATIC) * 0.6
        if not is_long_gap:
            return variation

        cfg = self.config.trend
        rng = state.rng
        rate = cfg.phase_rate_min + rng.uniform() * cfg.phase_rate_spread
        phase = math.sin(math.pi * index / count * rate)
        variation *= cfg.phase_gain_base + cfg.phase_gain * abs(phase)
        if rng.uniform() < cfg.burst_probability:
            variation *= cfg.burst_min + rng.uniform() * cfg.burst_spread
        if rng.uniform() < cfg.calm_probability:
            variation *= cfg.calm_min + rng.uniform() * cfg.calm_spread
        return variation

    # ==================================================================
    # Extension
    # ==================================================================

    def _stability_factor(self, index: int, count: int, is_long: bool) -> float:
        ext = self.config.extension
        if is_long:
            decay = 1.0 / (1.0 + index * ext.long_decay)
            damping = math.exp(-index / (count * 2.0))
            return max(ext.long_stability_floor, decay * damping)
        return max(ext.short_stability_floor, 1.0 / (1.0 + index * ext.short_decay))

    def _controlled_walk(
        self, state: _CallState, variance: float, stability: float, cumulative: float
    ) -> float:
        """Gaussian step, regression toward the reference, and a rare step change."""
        ext = self.config.extension
        scale = math.sqrt(max(variance, 0.0))
        change = state.rng.gaussian() * scale * stability * ext.walk_scale
        change += -cumulative * self.config.drift.regression
        if state.rng.uniform() < ext.step_probability:
            change += (state.rng.uniform() - 0.5) * scale
        return change

    def _tiny_variation(self, rng: PseudoRandomSource, value_range: float, stability: float) -> float:
        ext = self.config.extension
        variation = rng.gaussian() * value_range * stability * ext.tiny_variation_scale
        if rng.uniform() < ext.tiny_jump_probability:
            variation += rng.gaussian() * value_range * stability * ext.tiny_jump_scale
        return variation

    def _extension_derived(
        self,
        state: _CallState,
        point: Sample,
        last_known: Sample,
        variances: List[float],
        stability: float,
    ) -> None:
        rng = state.rng
        point.angle = last_known.derived("angle") + self._tiny_variation(rng, 0.3, stability)
        point.axis = last_known.derived("axis") + self._tiny_variation(rng, 0.05, stability)
        point.plate = last_known.derived("plate") + self._tiny_variation(rng, 0.05, stability)
        point.move_e = self._tiny_variation(rng, variances[0] * 0.3, stability)
        point.move_n = self._tiny_variation(rng, variances[1] * 0.3, stability)
        point.move_h = self._tiny_variation(rng, variances[2] * 0.3, stability)
        point.move_total = movement_magnitude(point)
        point.day_e = last_known.derived("day_e") + self._tiny_variation(rng, variances[0] * 0.2, stability)
        point.day_n = last_known.derived("day_n") + self._tiny_variation(rng, variances[1] * 0.2, stability)
        point.day_h = last_known.derived("day_h") + self._tiny_variation(rng, variances[2] * 0.2, stability)

    # ==================================================================
    # Transition
    # ==================================================================

    def _transition(
        self,
        rng: PseudoRandomSource,
        generated: Sequence[Sample],
        real: Sequence[Sample],
        steps: int,
    ) -> List[Sample]:
        """
        Ease every field from generated[-1] to real[0] over `steps` points.

        Coordinates get a small perturbation proportional to the gap, capped,
        and fading out toward the real sample.
        """
        cfg = self.config.transition
        last, first = generated[-1], real[0]
        deltas = (first.e - last.e, first.n - last.n, first.h - last.h)
        variation_scale = min(cfg.variation_cap, max(abs(d) for d in deltas) * cfg.variation_scale)

        result: List[Sample] = []
        for i in range(1, steps + 1):
            progress = i / (steps + 1)
            eased = smoothstep(progress)
            fade = 1.0 - progress

            perturb_e = (rng.uniform() - 0.5) * variation_scale * fade
            perturb_n = (rng.uniform() - 0.5) * variation_scale * fade
            perturb_h = (rng.uniform() - 0.5) * variation_scale * 1.2 * fade

            point = Sample(
                timestamp=interpolate_timestamp(last.timestamp, first.timestamp, progress),
                e=last.e + deltas[0] * eased + perturb_e,
                n=last.n + deltas[1] * eased + perturb_n,
                h=last.h + deltas[2] * eased + perturb_h,
            )
            for name in DERIVED_FIELDS:
                if name == "move_total":
                    continue
                start_value = getattr(last, name)
                end_value = getattr(first, name)
                if start_value is None and end_value is None:
                    continue
                setattr(point, name, interpolate_value(
                    start_value or 0.0, end_value or 0.0, eased
                ))
            point.move_total = movement_magnitude(point)
            result.append(point)

        logger.info(
            f"TRANSITION_GENERATED | steps={steps} | "
            f"max_discontinuity={max(abs(d) for d in deltas):.4f} | "
            f"from={last.timestamp.isoformat()} | to={first.timestamp.isoformat()}"
        )
        return result

    # ==================================================================
    # Guards
    # ==================================================================

    @staticmethod
    def _clamp_non_finite(
        position: Sequence[float], last_finite: List[float], phase: str, index: int
    ) -> Triple:
        """Replace non-finite axes with that axis' last finite value and remember finite ones."""
        clamped = []
        for axis, value in enumerate(position):
            if math.isfinite(value):
                last_finite[axis] = value
            else:
                logger.warning(
                    f"NON_FINITE_CLAMPED | phase={phase} | index={index} | "
                    f"axis={'ENH'[axis]} | replacement={last_finite[axis]}"
                )
                value = last_finite[axis]
            clamped.append(value)
        return clamped[0], clamped[1], clamped[2]
