from datetime import datetime, timedelta, timezone

from modules.analysis.series_statistics import Dispersion
from modules.analysis.station_profiler import (
    AtmosphericVariability,
    Environment,
    InstallationQuality,
    MultipathLevel,
    SolutionType,
    StationProfiler,
)
from modules.series.sample import Sample

T0 = datetime(2025, 7, 1, tzinfo=timezone.utc)


def located(altitude, latitude=24.0, longitude=121.0):
    return [Sample(timestamp=T0, e=0.0, n=0.0, h=0.0,
                   latitude=latitude, longitude=longitude, height=altitude)]


def steps(step, count):
    return [
        Sample(timestamp=T0 + timedelta(minutes=10 * i), e=step * i, n=0.0, h=0.0)
        for i in range(count)
    ]


def test_default_profile_for_empty_window():
    profiler = StationProfiler()
    profile = profiler.infer_profile([], Dispersion(0.002, 0.002, 0.005))

    assert profile.environment == Environment.MOUNTAIN
    assert profile.multipath == MultipathLevel.MEDIUM
    assert profile.atmospheric_variability == AtmosphericVariability.VARIABLE
    assert profile.installation_quality == InstallationQuality.EXCELLENT
    assert (profile.location.latitude, profile.location.longitude, profile.location.altitude) == (24.0, 121.0, 2000.0)


def test_high_altitude_is_mountain_regardless_of_dispersion():
    profiler = StationProfiler()
    profile = profiler.infer_profile(located(800.0), Dispersion(0.009, 0.009, 0.02))

    assert profile.environment == Environment.MOUNTAIN
    assert profile.multipath == MultipathLevel.HIGH
    assert profile.atmospheric_variability == AtmosphericVariability.EXTREME


def test_urban_from_horizontal_dispersion():
    profiler = StationProfiler()
    profile = profiler.infer_profile(located(50.0), Dispersion(0.006, 0.006, 0.002))

    assert profile.environment == Environment.URBAN
    assert profile.multipath == MultipathLevel.HIGH
    assert profile.installation_quality == InstallationQuality.FAIR


def test_coastal_near_sea_level():
    profiler = StationProfiler()
    profile = profiler.infer_profile(located(50.0), Dispersion(0.003, 0.003, 0.002))

    assert profile.environment == Environment.COASTAL
    assert profile.multipath == MultipathLevel.MEDIUM
    assert profile.atmospheric_variability == AtmosphericVariability.VARIABLE


def test_forest_from_height_dispersion():
    profiler = StationProfiler()
    profile = profiler.infer_profile(located(300.0), Dispersion(0.001, 0.001, 0.02))

    assert profile.environment == Environment.FOREST
    assert profile.multipath == MultipathLevel.LOW
    assert profile.atmospheric_variability == AtmosphericVariability.EXTREME
    # Noisiest band ranks "good" in the calibrated tiers.
    assert profile.installation_quality == InstallationQuality.GOOD


def test_quiet_low_station_falls_back_to_mountain():
    profiler = StationProfiler()
    profile = profiler.infer_profile(located(150.0), Dispersion(0.001, 0.001, 0.002))

    assert profile.environment == Environment.MOUNTAIN
    assert profile.installation_quality == InstallationQuality.EXCELLENT


def test_station_id_and_equipment():
    profiler = StationProfiler()
    profile = profiler.infer_profile(located(800.0, 24.12345, 121.4567), Dispersion(0.001, 0.001, 0.002))

    assert profile.station_id == "auto_inferred_24.123_121.457"
    record = profile.to_dict()
    assert record["antenna_type"] == "survey_grade"
    assert record["receiver_model"] == "dual_frequency"
    assert record["environment"] == "mountain"


def test_detect_static_for_millimeter_steps():
    assert StationProfiler().detect_solution_type(steps(0.001, 20)) == SolutionType.STATIC


def test_detect_kinematic_for_large_mean_step():
    assert StationProfiler().detect_solution_type(steps(0.02, 20)) == SolutionType.KINEMATIC


def test_detect_kinematic_for_single_large_step():
    samples = steps(0.001, 20)
    samples[10].e += 0.06
    assert StationProfiler().detect_solution_type(samples) == SolutionType.KINEMATIC


def test_short_window_defaults_to_static():
    profiler = StationProfiler()
    assert profiler.detect_solution_type([]) == SolutionType.STATIC
    assert profiler.detect_solution_type(steps(0.02, 5)) == SolutionType.STATIC


def test_short_window_with_large_jump_is_kinematic():
    assert StationProfiler().detect_solution_type(steps(3.0, 2)) == SolutionType.KINEMATIC
