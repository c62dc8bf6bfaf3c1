"""
Irregular Noise - Layered Bursty Variation

A single gaussian draw produces visibly over-smooth synthetic data. This
module stacks six layers on top of it to reproduce the bursty,
non-stationary character of real receiver noise.

Draw order per call to layered() (changing it changes every seeded output):
    1. gaussian()                 base draw (two uniforms)
    2. uniform()                  jump test
       uniform()                  jump size, only if the jump fired
    3. uniform()                  cluster period
       uniform()                  cluster scale, only if |phase| is past a band
    4. uniform()                  burst test
       uniform()                  burst intensity, only if the burst fired
    5. (no draw)                  fixed-period sinusoids
    6. uniform()                  final weight
"""

import math
from typing import Optional

from config.presets import NoiseConfig
from modules.analysis.station_profiler import SolutionType
from modules.noise.prng import PseudoRandomSource


class IrregularNoise:
    """Layered noise generator bound to one PseudoRandomSource."""

    def __init__(self, rng: PseudoRandomSource, config: Optional[NoiseConfig] = None):
        self.rng = rng
        self.config = config or NoiseConfig()

    def layered(self, variance: float, index: int, solution_type: SolutionType) -> float:
        """
        One irregular variation with the given target variance.

        Args:
            variance: Target variance (std squared) of the base draw.
            index: Position within the generated segment; drives the
                   clustering and periodic layers.
            solution_type: Kinematic solutions get larger jumps.
        """
        cfg = self.config
        rng = self.rng
        scale = math.sqrt(max(variance, 0.0))

        # 1. base
        variation = rng.gaussian() * scale

        # 2. jump
        if rng.uniform() < cfg.jump_probability:
            magnitude = (
                cfg.jump_magnitude_static
                if solution_type == SolutionType.STATIC
                else cfg.jump_magnitude_kinematic
            )
            variation += (rng.uniform() - 0.5) * scale * magnitude

        # 3. clustering
        period = cfg.cluster_period_min + rng.uniform() * cfg.cluster_period_spread
        phase = abs(math.sin(2.0 * math.pi * index / period))
        if phase > cfg.cluster_high:
            variation *= 1.3 + rng.uniform() * 0.4
        elif phase < cfg.cluster_low:
            variation *= 0.5 + rng.uniform() * 0.3

        # 4. burst
        if rng.uniform() < cfg.burst_probability:
            variation *= cfg.burst_intensity + rng.uniform() * cfg.burst_spread

        # 5. multi-scale periodicity
        periodic = sum(
            math.sin(2.0 * math.pi * index / p) * a
            for p, a in zip(cfg.periodic_periods, cfg.periodic_amplitudes)
        )
        periodic *= scale * cfg.periodic_scale

        # 6. weight
        weight = cfg.weight_base + rng.uniform() * cfg.weight_spread

        return (variation + periodic) * weight
