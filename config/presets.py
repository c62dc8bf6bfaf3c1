"""
Synthesis Presets - Immutable Tuning Bundles

Every numeric constant the synthesis engine relies on lives here as a field
default of a frozen dataclass. Components receive their slice at construction
so alternate presets can be injected in tests without touching module globals.

Named presets mirror the oscillation levels operators choose between:
    low-oscillation    -> stable output for high-precision consumers
    medium-oscillation -> default balance of stability and natural variation
    high-oscillation   -> more variation for complex environments
    natural            -> closest to observed receiver behaviour
"""

from dataclasses import asdict, dataclass, field, replace
from typing import Dict, Tuple

from config.settings import RANDOM_SEED, SAMPLE_INTERVAL_MINUTES, SYNTHESIS_PRESET


@dataclass(frozen=True)
class StatisticsConfig:
    """Dispersion floors and discontinuity threshold constants."""
    default_std: Tuple[float, float, float] = (0.002, 0.002, 0.005)
    min_std: Tuple[float, float, float] = (0.001, 0.001, 0.002)
    conservative_window: int = 144  # 24h at 10-min cadence
    conservative_min_samples: int = 10
    conservative_default: Tuple[float, float, float] = (0.0003, 0.0003, 0.0008)
    conservative_floor: Tuple[float, float, float] = (0.0002, 0.0002, 0.0005)
    conservative_scale: float = 0.3
    static_threshold_base: float = 0.005
    kinematic_threshold_base: float = 0.02
    threshold_cap: float = 0.05
    threshold_std_multiplier: float = 4.0
    threshold_min_samples: int = 10


@dataclass(frozen=True)
class ProfilerConfig:
    """Thresholds calibrated for mountain monitoring stations."""
    min_samples_for_detection: int = 10
    static_mean_movement: float = 0.01
    static_max_movement: float = 0.05

    mountain_altitude: float = 500.0
    urban_dispersion: float = 0.005
    coastal_altitude: float = 100.0
    coastal_dispersion: float = 0.002
    forest_height_dispersion: float = 0.01
    forest_altitude: float = 200.0

    multipath_low: float = 0.002
    multipath_high: float = 0.004
    atmosphere_extreme: float = 0.015
    installation_excellent: float = 0.005
    installation_good: float = 0.012

    default_latitude: float = 24.0
    default_longitude: float = 121.0
    default_altitude: float = 2000.0


@dataclass(frozen=True)
class NoiseConfig:
    """
    Layered irregular-noise parameters.

    Static and kinematic amplitudes are kept separate; the preset table below
    only varies the static ones and the event frequencies.
    """
    static_oscillation: float = 0.30
    static_basic_factor: float = 0.15
    static_external_factor: float = 0.30
    kinematic_oscillation: float = 0.5
    kinematic_basic_factor: float = 0.6
    kinematic_external_factor: float = 1.2

    static_external_probability: float = 0.02
    kinematic_external_probability: float = 0.04
    static_time_factor: float = 0.6
    kinematic_time_factor: float = 0.8

    jump_probability: float = 0.06
    jump_magnitude_static: float = 1.2
    jump_magnitude_kinematic: float = 2.0

    cluster_period_min: float = 8.0
    cluster_period_spread: float = 12.0
    cluster_high: float = 0.7
    cluster_low: float = 0.3

    burst_probability: float = 0.02
    burst_intensity: float = 1.2
    burst_spread: float = 1.0

    periodic_periods: Tuple[float, float, float] = (4.0, 20.0, 60.0)
    periodic_amplitudes: Tuple[float, float, float] = (0.3, 0.5, 0.4)
    periodic_scale: float = 0.5

    weight_base: float = 0.8
    weight_spread: float = 0.3


@dataclass(frozen=True)
class DriftConfig:
    """Drift-correction threshold and strength for fills and extensions."""
    threshold: float = 0.008
    fill_strength: float = 0.3
    extension_strength: float = 0.4
    regression: float = 0.01


@dataclass(frozen=True)
class TrendConfig:
    """Fill tuning: long-term trend, noise-budget clamps and per-point scaling."""
    long_gap_count: int = 12
    short_gap_scale: float = 0.15
    magnitude_scale: float = 0.5
    change_scale: float = 0.05
    change_probability: float = 0.05
    damping: float = 0.95
    period_hours: float = 24.0
    period_jitter_hours: float = 4.0
    period_min_hours: float = 20.0
    period_max_hours: float = 30.0
    amplitude_scale: float = 0.2

    static_budget_min: Tuple[float, float, float] = (0.001, 0.001, 0.002)
    static_budget_max: Tuple[float, float, float] = (0.01, 0.01, 0.02)
    kinematic_budget_min: Tuple[float, float, float] = (0.002, 0.002, 0.004)
    kinematic_budget_max: Tuple[float, float, float] = (0.02, 0.02, 0.03)

    geometry_reference_pdop: float = 2.5
    env_factor_scale: float = 0.8

    # derived-field variation on long gaps
    phase_rate_min: float = 1.5
    phase_rate_spread: float = 0.5
    phase_gain_base: float = 1.1
    phase_gain: float = 0.4
    burst_probability: float = 0.08
    burst_min: float = 1.5
    burst_spread: float = 1.5
    calm_probability: float = 0.05
    calm_min: float = 0.3
    calm_spread: float = 0.2


@dataclass(frozen=True)
class ExtensionConfig:
    """Conservative extension tuning."""
    seed_offset: int = 999
    long_extension_count: int = 432
    static_oscillation_scale: float = 0.8
    kinematic_oscillation_scale: float = 0.5
    static_variance_cap: Tuple[float, float, float] = (0.01, 0.01, 0.02)
    long_decay: float = 0.005
    short_decay: float = 0.02
    long_stability_floor: float = 0.2
    short_stability_floor: float = 0.1
    env_stability_scale: float = 0.3
    walk_scale: float = 0.2
    step_probability: float = 0.04
    env_factor_scale: float = 0.3
    geometry_reference_pdop: float = 4.0
    tiny_variation_scale: float = 0.1
    tiny_jump_probability: float = 0.05
    tiny_jump_scale: float = 0.15


@dataclass(frozen=True)
class TransitionConfig:
    """Blend sizing and transition perturbation."""
    default_steps: int = 72
    min_steps: int = 36
    max_steps: int = 288
    multiplier: float = 4.0
    long_generation_hours: float = 12.0
    max_duration_bonus: int = 12
    local_window: int = 10
    variation_scale: float = 0.01
    variation_cap: float = 0.0005
    seed_offset: int = 7


@dataclass(frozen=True)
class SynthesisConfig:
    """Complete tuning bundle handed to SeriesSynthesizer."""
    name: str = "medium-oscillation"
    seed: int = 42
    sample_interval_minutes: int = 10
    statistics: StatisticsConfig = field(default_factory=StatisticsConfig)
    profiler: ProfilerConfig = field(default_factory=ProfilerConfig)
    noise: NoiseConfig = field(default_factory=NoiseConfig)
    drift: DriftConfig = field(default_factory=DriftConfig)
    trend: TrendConfig = field(default_factory=TrendConfig)
    extension: ExtensionConfig = field(default_factory=ExtensionConfig)
    transition: TransitionConfig = field(default_factory=TransitionConfig)

    def to_dict(self) -> dict:
        return asdict(self)


# (static_osc, static_basic, static_external, jump_freq,
#  jump_static, jump_kinematic, burst_freq, burst_intensity)
_PRESET_TABLE: Dict[str, Tuple[float, ...]] = {
    "low-oscillation":    (0.15, 0.08, 0.15, 0.02, 0.8, 1.2, 0.01, 1.0),
    "medium-oscillation": (0.30, 0.15, 0.30, 0.06, 1.2, 2.0, 0.02, 1.2),
    "high-oscillation":   (0.50, 0.25, 0.50, 0.12, 1.8, 2.8, 0.05, 1.8),
    "natural":            (0.35, 0.20, 0.40, 0.08, 1.5, 2.3, 0.03, 1.5),
}

PRESET_NAMES = tuple(_PRESET_TABLE)


def get_preset(name: str, seed: int = 42) -> SynthesisConfig:
    """
    Build the named tuning bundle.

    Raises:
        ValueError: if the preset name is unknown.
    """
    if name not in _PRESET_TABLE:
        raise ValueError(
            f"Unknown synthesis preset '{name}'. "
            f"Expected one of: {', '.join(PRESET_NAMES)}"
        )

    (osc, basic, external, jump_freq,
     jump_static, jump_kinematic, burst_freq, burst_intensity) = _PRESET_TABLE[name]

    noise = replace(
        NoiseConfig(),
        static_oscillation=osc,
        static_basic_factor=basic,
        static_external_factor=external,
        jump_probability=jump_freq,
        jump_magnitude_static=jump_static,
        jump_magnitude_kinematic=jump_kinematic,
        burst_probability=burst_freq,
        burst_intensity=burst_intensity,
    )
    return SynthesisConfig(name=name, seed=seed, noise=noise)


def load_configured_preset() -> SynthesisConfig:
    """Resolve the preset named by SYNTHESIS_PRESET with the deployment seed and interval."""
    return replace(
        get_preset(SYNTHESIS_PRESET, seed=RANDOM_SEED),
        sample_interval_minutes=SAMPLE_INTERVAL_MINUTES,
    )
