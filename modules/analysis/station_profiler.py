"""
Station Profiler - Environment and Solution-Type Inference

Infers a station's setting (environment, multipath, atmosphere, installation
quality) from the dispersion of its real samples, and classifies the
monitoring solution as static or kinematic from point-to-point movement.

Thresholds are calibrated for mountain monitoring stations; see
config.presets.ProfilerConfig.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Sequence

from config.presets import ProfilerConfig
from modules.series.sample import Sample

if TYPE_CHECKING:
    from modules.analysis.series_statistics import Dispersion


class SolutionType(Enum):
    STATIC = "static"
    KINEMATIC = "kinematic"


class Environment(Enum):
    URBAN = "urban"
    RURAL = "rural"
    COASTAL = "coastal"
    MOUNTAIN = "mountain"
    FOREST = "forest"


class MultipathLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AtmosphericVariability(Enum):
    STABLE = "stable"
    VARIABLE = "variable"
    EXTREME = "extreme"


class InstallationQuality(Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    altitude: float


@dataclass(frozen=True)
class StationProfile:
    """Inferred station setting. Derived fresh per call, never mutated."""
    station_id: str
    location: Location
    environment: Environment
    multipath: MultipathLevel
    atmospheric_variability: AtmosphericVariability
    installation_quality: InstallationQuality
    antenna_type: str = "survey_grade"
    receiver_model: str = "dual_frequency"

    def to_dict(self) -> dict:
        return {
            "station_id": self.station_id,
            "latitude": self.location.latitude,
            "longitude": self.location.longitude,
            "altitude": self.location.altitude,
            "environment": self.environment.value,
            "multipath": self.multipath.value,
            "atmospheric_variability": self.atmospheric_variability.value,
            "installation_quality": self.installation_quality.value,
            "antenna_type": self.antenna_type,
            "receiver_model": self.receiver_model,
        }


def step_movements(samples: Sequence[Sample]) -> List[float]:
    """3D distance between each pair of consecutive samples."""
    return [
        math.sqrt((b.e - a.e) ** 2 + (b.n - a.n) ** 2 + (b.h - a.h) ** 2)
        for a, b in zip(samples, samples[1:])
    ]


class StationProfiler:
    """Stateless profile and solution-type inference."""

    def __init__(self, config: Optional[ProfilerConfig] = None):
        self.config = config or ProfilerConfig()

    def default_profile(self) -> StationProfile:
        """Mountain monitoring station used when no samples are available."""
        cfg = self.config
        return StationProfile(
            station_id="default_mountain_station",
            location=Location(cfg.default_latitude, cfg.default_longitude, cfg.default_altitude),
            environment=Environment.MOUNTAIN,
            multipath=MultipathLevel.MEDIUM,
            atmospheric_variability=AtmosphericVariability.VARIABLE,
            installation_quality=InstallationQuality.EXCELLENT,
        )

    def infer_profile(
        self, samples: Sequence[Sample], dispersion: "Dispersion"
    ) -> StationProfile:
        """
        Infer the station profile from the window and its dispersion.

        Location comes from the first sample's geodetic fields.
        """
        if not samples:
            return self.default_profile()

        first = samples[0]
        latitude = first.derived("latitude")
        longitude = first.derived("longitude")
        altitude = first.derived("height")

        horizontal = dispersion.horizontal_std
        vertical = dispersion.h_std

        return StationProfile(
            station_id=f"auto_inferred_{latitude:.3f}_{longitude:.3f}",
            location=Location(latitude, longitude, altitude),
            environment=self._infer_environment(altitude, horizontal, vertical),
            multipath=self._infer_multipath(horizontal),
            atmospheric_variability=self._infer_atmosphere(vertical),
            installation_quality=self._infer_installation(horizontal, vertical),
        )

    def detect_solution_type(self, samples: Sequence[Sample]) -> SolutionType:
        """
        Static iff mean step < static_mean_movement and max step < static_max_movement.

        Windows shorter than min_samples_for_detection default to static
        unless a single step already exceeds the static maximum.
        """
        cfg = self.config
        movements = step_movements(samples)
        if not movements:
            return SolutionType.STATIC

        max_movement = max(movements)
        if len(samples) < cfg.min_samples_for_detection:
            if max_movement >= cfg.static_max_movement:
                return SolutionType.KINEMATIC
            return SolutionType.STATIC

        mean_movement = sum(movements) / len(movements)
        if mean_movement < cfg.static_mean_movement and max_movement < cfg.static_max_movement:
            return SolutionType.STATIC
        return SolutionType.KINEMATIC

    # ------------------------------------------------------------------
    # Tiers
    # ------------------------------------------------------------------

    def _infer_environment(self, altitude: float, horizontal: float, vertical: float) -> Environment:
        cfg = self.config
        if altitude > cfg.mountain_altitude:
            return Environment.MOUNTAIN
        if horizontal > cfg.urban_dispersion:
            return Environment.URBAN
        if abs(altitude) < cfg.coastal_altitude and horizontal > cfg.coastal_dispersion:
            return Environment.COASTAL
        if vertical > cfg.forest_height_dispersion and altitude > cfg.forest_altitude:
            return Environment.FOREST
        return Environment.MOUNTAIN

    def _infer_multipath(self, horizontal: float) -> MultipathLevel:
        if horizontal < self.config.multipath_low:
            return MultipathLevel.LOW
        if horizontal > self.config.multipath_high:
            return MultipathLevel.HIGH
        return MultipathLevel.MEDIUM

    def _infer_atmosphere(self, vertical: float) -> AtmosphericVariability:
        # Mountain stations never report a stable atmosphere.
        if vertical > self.config.atmosphere_extreme:
            return AtmosphericVariability.EXTREME
        return AtmosphericVariability.VARIABLE

    def _infer_installation(self, horizontal: float, vertical: float) -> InstallationQuality:
        # Tier order is inherited from the calibration: the noisiest stations
        # rank "good", the middle band "fair".
        overall = horizontal + vertical
        if overall < self.config.installation_excellent:
            return InstallationQuality.EXCELLENT
        if overall > self.config.installation_good:
            return InstallationQuality.GOOD
        return InstallationQuality.FAIR
