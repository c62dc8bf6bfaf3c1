"""
Environmental Model - Multiplicative Noise Scaling

Turns the inferred station setting, weather, season and a synthetic
satellite-geometry proxy into factors that scale synthetic noise amplitude.
None of this is an ephemeris or atmosphere computation; the factors only keep
noise plausible for the station's surroundings.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from modules.analysis.station_profiler import (
    AtmosphericVariability,
    Environment,
    InstallationQuality,
    Location,
    MultipathLevel,
    StationProfile,
)
from utils.time_utils import to_station_time

STANDARD_PRESSURE_HPA = 1013.25

ENVIRONMENT_FACTORS: Dict[Environment, float] = {
    Environment.URBAN: 1.5,     # reflections, interference
    Environment.RURAL: 1.0,
    Environment.COASTAL: 1.2,   # water-surface reflection
    Environment.MOUNTAIN: 1.4,
    Environment.FOREST: 2.0,    # canopy attenuation
}

MULTIPATH_FACTORS: Dict[MultipathLevel, float] = {
    MultipathLevel.LOW: 1.0,
    MultipathLevel.MEDIUM: 1.3,
    MultipathLevel.HIGH: 1.8,
}

INSTALLATION_FACTORS: Dict[InstallationQuality, float] = {
    InstallationQuality.EXCELLENT: 0.8,
    InstallationQuality.GOOD: 1.0,
    InstallationQuality.FAIR: 1.4,
}

ATMOSPHERE_FACTORS: Dict[AtmosphericVariability, float] = {
    AtmosphericVariability.STABLE: 1.0,
    AtmosphericVariability.VARIABLE: 1.2,
    AtmosphericVariability.EXTREME: 1.6,
}


@dataclass(frozen=True)
class WeatherConditions:
    temperature: float = 20.0       # C
    humidity: float = 60.0          # %
    pressure: float = STANDARD_PRESSURE_HPA
    precipitation: bool = False
    cloud_cover: float = 0.3        # 0-1
    visibility: float = 15.0        # km

    def to_dict(self) -> dict:
        return {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "pressure": self.pressure,
            "precipitation": self.precipitation,
            "cloud_cover": self.cloud_cover,
            "visibility": self.visibility,
        }


@dataclass(frozen=True)
class SatelliteGeometry:
    pdop: float
    hdop: float
    vdop: float


def hour_of_day(dt: datetime) -> float:
    local = to_station_time(dt)
    return local.hour + local.minute / 60.0


class EnvironmentalModel:
    """Stateless factor calculator."""

    @staticmethod
    def default_weather() -> WeatherConditions:
        return WeatherConditions()

    def noise_factor(
        self, profile: Optional[StationProfile], time_of_day: Optional[float] = None
    ) -> float:
        """
        Product of the four profile factors.

        Optionally modulated by a diurnal ionospheric sinusoid, and always by
        a tropospheric surcharge for stations above 1000 m.
        """
        if profile is None:
            return 1.0

        factor = ENVIRONMENT_FACTORS.get(profile.environment, 1.0)
        factor *= MULTIPATH_FACTORS.get(profile.multipath, 1.0)
        factor *= INSTALLATION_FACTORS.get(profile.installation_quality, 1.0)
        factor *= ATMOSPHERE_FACTORS.get(profile.atmospheric_variability, 1.0)

        if time_of_day is not None:
            factor *= 1.0 + 0.3 * math.sin(2.0 * math.pi * time_of_day / 24.0)

        altitude = profile.location.altitude
        if altitude > 1000.0:
            factor *= 1.0 + (altitude - 1000.0) / 10000.0 * 0.2

        return factor

    def apply_weather(self, noise: float, weather: Optional[WeatherConditions]) -> float:
        if weather is None:
            return noise

        factor = 1.0
        if weather.precipitation:
            factor *= 1.5
        factor *= 1.0 + weather.cloud_cover * 0.2
        factor *= 1.0 + abs(weather.pressure - STANDARD_PRESSURE_HPA) / STANDARD_PRESSURE_HPA * 0.1
        factor *= 1.0 + max(0.0, weather.humidity - 50.0) / 50.0 * 0.15
        if weather.visibility < 10.0:
            factor *= 1.0 + (10.0 - weather.visibility) / 10.0 * 0.3

        return noise * factor

    def seasonal_factor(self, dt: datetime) -> float:
        """Ionospheric (summer peak) times tropospheric (winter stable) term."""
        day_of_year = to_station_time(dt).timetuple().tm_yday
        ionospheric = 1.0 + 0.2 * math.sin(2.0 * math.pi * (day_of_year - 80) / 365.25)
        tropospheric = 1.0 + 0.15 * math.cos(2.0 * math.pi * (day_of_year - 20) / 365.25)
        return ionospheric * tropospheric

    def satellite_geometry(
        self, dt: datetime, location: Optional[Location] = None
    ) -> SatelliteGeometry:
        """Synthetic DOP values from 12h and 24h cycles, clamped to [1, 6]."""
        hours = hour_of_day(dt)
        pdop = 1.5 + 0.5 * math.sin(2.0 * math.pi * hours / 12.0)
        pdop += 0.2 * math.sin(2.0 * math.pi * hours / 24.0)

        if location is not None:
            pdop += abs(location.latitude) / 90.0 * 0.4
            if abs(location.latitude) < 30.0:
                pdop += 0.1

        pdop = max(1.0, min(6.0, pdop))
        return SatelliteGeometry(pdop=pdop, hdop=pdop * 0.8, vdop=pdop * 1.2)
