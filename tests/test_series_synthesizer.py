import math
import statistics
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from config.presets import get_preset
from modules.environment.environmental_model import EnvironmentalModel
from modules.series.sample import Sample
from modules.synthesis.series_synthesizer import SeriesSynthesizer, smoothstep

T0 = datetime(2025, 7, 1, tzinfo=timezone.utc)
INTERVAL = timedelta(minutes=10)


def static_window(count=50):
    """Millimetre-level static station, std about 2 mm per axis."""
    return [
        Sample(
            timestamp=T0 + INTERVAL * i,
            e=1000.0 + 0.0028 * math.sin(1.3 * i),
            n=2000.0 + 0.0028 * math.sin(0.7 * i + 1.0),
            h=50.0 + 0.0028 * math.sin(2.1 * i + 2.0),
            latitude=24.0,
            longitude=121.0,
            height=1500.0,
            angle=12.0,
            day_e=0.001,
        )
        for i in range(count)
    ]


def axis_means(samples):
    return (
        statistics.mean(s.e for s in samples),
        statistics.mean(s.n for s in samples),
        statistics.mean(s.h for s in samples),
    )


def all_finite(samples):
    return all(math.isfinite(v) for s in samples for v in (s.e, s.n, s.h))


def distance(a, b):
    return math.sqrt((a.e - b.e) ** 2 + (a.n - b.n) ** 2 + (a.h - b.h) ** 2)


class NaNWeatherModel(EnvironmentalModel):
    def apply_weather(self, noise, weather):
        return float("nan")


# ----------------------------------------------------------------------
# Fill
# ----------------------------------------------------------------------

def test_fill_is_deterministic():
    window = static_window()
    first = SeriesSynthesizer().generate_fill(window, 30)
    second = SeriesSynthesizer().generate_fill(window, 30)

    assert [s.to_dict() for s in first] == [s.to_dict() for s in second]


def test_fill_static_window_stays_within_a_centimetre():
    window = static_window(50)
    mean_e, mean_n, mean_h = axis_means(window)

    result = SeriesSynthesizer().generate_fill(window, 6)

    assert len(result) == 6
    for s in result:
        assert abs(s.e - mean_e) <= 0.01
        assert abs(s.n - mean_n) <= 0.01
        assert abs(s.h - mean_h) <= 0.01


def test_fill_timestamps_follow_window_at_nominal_interval():
    window = static_window(20)
    result = SeriesSynthesizer().generate_fill(window, 40)

    assert result[0].timestamp == window[-1].timestamp + INTERVAL
    for a, b in zip(result, result[1:]):
        assert b.timestamp - a.timestamp == INTERVAL


def test_fill_empty_input_or_non_positive_count():
    synth = SeriesSynthesizer()
    assert synth.generate_fill([], 5) == []
    assert synth.generate_fill(static_window(5), 0) == []
    assert synth.generate_fill(static_window(5), -3) == []


def test_fill_single_sample_window_is_finite():
    window = static_window(1)
    result = SeriesSynthesizer().generate_fill(window, 50)

    assert len(result) == 50
    assert all_finite(result)


def test_fill_long_gap_stays_bounded():
    window = static_window(100)
    mean_e, mean_n, mean_h = axis_means(window)

    result = SeriesSynthesizer().generate_fill(window, 288)

    assert all_finite(result)
    assert max(abs(s.e - mean_e) for s in result) < 0.05
    assert max(abs(s.n - mean_n) for s in result) < 0.05
    assert max(abs(s.h - mean_h) for s in result) < 0.05


def test_fill_drift_is_bounded_over_long_runs():
    synth = SeriesSynthesizer()
    window = static_window(100)
    means = axis_means(window)
    limit = 5 * synth.config.drift.threshold

    result = synth.generate_fill(window, 1000)

    assert len(result) == 1000
    assert all_finite(result)
    for axis, mean in zip("enh", means):
        assert max(abs(getattr(s, axis) - mean) for s in result) < limit


def test_fill_scaling_follows_config():
    window = static_window()
    default = SeriesSynthesizer().generate_fill(window, 20)
    config = get_preset("medium-oscillation")
    tuned = replace(config, trend=replace(config.trend, env_factor_scale=1.6))
    scaled = SeriesSynthesizer(tuned).generate_fill(window, 20)

    assert [s.e for s in scaled] != [s.e for s in default]


def test_fill_carries_derived_fields_from_base_samples():
    result = SeriesSynthesizer().generate_fill(static_window(), 10)

    for s in result:
        assert s.latitude == 24.0
        assert s.height == 1500.0
        assert abs(s.angle - 12.0) < 1.0
        expected_total = math.sqrt(s.move_e ** 2 + s.move_n ** 2 + s.move_h ** 2)
        assert s.move_total == pytest.approx(expected_total)


def test_fill_logs_event():
    with patch("modules.synthesis.series_synthesizer.logger") as mock_logger:
        SeriesSynthesizer().generate_fill(static_window(), 3)

    message = mock_logger.info.call_args[0][0]
    assert message.startswith("FILL_GENERATED")
    assert "count=3" in message
    assert "solution=static" in message


def test_non_finite_values_are_clamped_and_logged():
    synth = SeriesSynthesizer(environment=NaNWeatherModel())
    window = static_window(20)

    with patch("modules.synthesis.series_synthesizer.logger") as mock_logger:
        filled = synth.generate_fill(window, 5)
        extended = synth.generate_extension(window, 5, window[-1])

    assert all_finite(filled)
    assert all_finite(extended)
    assert filled[0].e == window[-1].e
    warnings = [c[0][0] for c in mock_logger.warning.call_args_list]
    assert warnings
    assert all(w.startswith("NON_FINITE_CLAMPED") for w in warnings)


def test_presets_change_output():
    window = static_window()
    low = SeriesSynthesizer(get_preset("low-oscillation")).generate_fill(window, 30)
    high = SeriesSynthesizer(get_preset("high-oscillation")).generate_fill(window, 30)

    assert [s.e for s in low] != [s.e for s in high]


def test_seed_changes_output():
    window = static_window()
    a = SeriesSynthesizer(replace(get_preset("medium-oscillation"), seed=1)).generate_fill(window, 10)
    b = SeriesSynthesizer(replace(get_preset("medium-oscillation"), seed=2)).generate_fill(window, 10)

    assert [s.e for s in a] != [s.e for s in b]


def test_shared_instance_is_safe_across_threads():
    synth = SeriesSynthesizer()
    window = static_window()
    expected = [s.to_dict() for s in synth.generate_fill(window, 50)]

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda _: synth.generate_fill(window, 50), range(8)))

    for result in results:
        assert [s.to_dict() for s in result] == expected


# ----------------------------------------------------------------------
# Extension
# ----------------------------------------------------------------------

def test_extension_empty_cases():
    synth = SeriesSynthesizer()
    window = static_window(1)

    assert synth.generate_extension(window, 0, window[-1]) == []
    assert synth.generate_extension([], 10, window[-1]) == []


def test_extension_is_deterministic():
    window = static_window()
    first = SeriesSynthesizer().generate_extension(window, 100, window[-1])
    second = SeriesSynthesizer().generate_extension(window, 100, window[-1])

    assert [s.to_dict() for s in first] == [s.to_dict() for s in second]


def test_extension_drift_is_bounded_over_long_runs():
    synth = SeriesSynthesizer()
    window = static_window()
    reference = synth.statistics.median_reference(window)
    limit = 5 * synth.config.drift.threshold

    result = synth.generate_extension(window, 1000, window[-1])

    assert len(result) == 1000
    assert all_finite(result)
    assert max(abs(s.e - reference.e) for s in result) < limit
    assert max(abs(s.n - reference.n) for s in result) < limit
    assert max(abs(s.h - reference.h) for s in result) < limit


def test_extension_timestamps_start_after_last_known_point():
    window = static_window(30)
    last_known = replace(window[-1], timestamp=window[-1].timestamp + INTERVAL * 5)

    result = SeriesSynthesizer().generate_extension(window, 12, last_known)

    assert result[0].timestamp == last_known.timestamp + INTERVAL
    for a, b in zip(result, result[1:]):
        assert b.timestamp - a.timestamp == INTERVAL


def test_extension_single_sample_is_finite():
    window = static_window(1)
    result = SeriesSynthesizer().generate_extension(window, 500, window[0])

    assert len(result) == 500
    assert all_finite(result)


def test_extension_derived_fields_stay_near_last_known():
    window = static_window()
    result = SeriesSynthesizer().generate_extension(window, 20, window[-1])

    for s in result:
        assert s.latitude == 24.0
        assert abs(s.angle - 12.0) < 0.5
        assert abs(s.day_e - 0.001) < 0.01


# ----------------------------------------------------------------------
# Seamless blending
# ----------------------------------------------------------------------

def jump_after(window, count, offset_e):
    mean_e, mean_n, mean_h = axis_means(window)
    return Sample(
        timestamp=window[-1].timestamp + INTERVAL * (count + 1),
        e=mean_e + offset_e, n=mean_n, h=mean_h,
    )


def test_seamless_inserts_transition_for_large_jump():
    synth = SeriesSynthesizer()
    window = static_window()
    real = jump_after(window, 12, 0.3)

    fill = synth.generate_fill(window, 12)
    result = synth.generate_seamless(window, 12, next_real=[real])

    assert [s.to_dict() for s in result[:12]] == [s.to_dict() for s in fill]
    transition = result[12:]
    assert len(transition) == 36

    last_synthetic = result[11]
    gap = distance(last_synthetic, real)
    assert distance(transition[-1], real) <= gap
    assert distance(transition[0], last_synthetic) < 0.1 * gap

    stamps = [last_synthetic.timestamp] + [s.timestamp for s in transition] + [real.timestamp]
    assert all(a < b for a, b in zip(stamps, stamps[1:]))


def test_seamless_without_next_real_is_plain_fill():
    synth = SeriesSynthesizer()
    window = static_window()

    plain = synth.generate_fill(window, 6)
    seamless = synth.generate_seamless(window, 6)

    assert [s.to_dict() for s in seamless] == [s.to_dict() for s in plain]


def test_seamless_skips_transition_when_boundary_is_continuous():
    synth = SeriesSynthesizer()
    window = static_window()
    fill = synth.generate_fill(window, 6)
    next_real = replace(fill[-1], timestamp=fill[-1].timestamp + INTERVAL)

    result = synth.generate_seamless(window, 6, next_real=[next_real])

    assert len(result) == 6


def test_generate_transition_defaults():
    synth = SeriesSynthesizer()
    start = Sample(timestamp=T0, e=0.0, n=0.0, h=0.0, angle=1.0)
    end = Sample(timestamp=T0 + timedelta(hours=12), e=1.0, n=-1.0, h=0.5, angle=3.0)

    transition = synth.generate_transition([start], [end])

    assert len(transition) == 72
    assert transition == synth.generate_transition([start], [end])
    assert all(start.timestamp < s.timestamp < end.timestamp for s in transition)
    assert all(1.0 <= s.angle <= 3.0 for s in transition)
    # Perturbation never exceeds the absolute cap.
    midpoint = transition[35]
    progress = 36 / 73
    assert abs(midpoint.e - smoothstep(progress)) <= 0.0005


def test_generate_transition_empty_input():
    synth = SeriesSynthesizer()
    assert synth.generate_transition([], static_window(1)) == []
    assert synth.generate_transition(static_window(1), []) == []


def test_compatibility_report():
    synth = SeriesSynthesizer()
    window = static_window()
    real = jump_after(window, 6, 0.3)
    fill = synth.generate_fill(window, 6)

    report = synth.compatibility_report(fill, [real])

    assert report.needed is True
    assert report.max_discontinuity == pytest.approx(abs(real.e - fill[-1].e))

    empty = synth.compatibility_report([], [real])
    assert empty.needed is False


def test_smoothstep_endpoints():
    assert smoothstep(0.0) == 0.0
    assert smoothstep(1.0) == 1.0
    assert smoothstep(0.5) == pytest.approx(0.5)
