"""
End-to-end checks across the forecasting pipeline.

Run with: python -m pytest tests/test_integration.py -v
"""

import pytest

from forecasting import (
    PersonalBests,
    PhysiologyMeasurement,
    RunnerType,
    blend_predictions,
    classify_runner,
    compute_ratio,
    derive_paces,
    estimate_fade_exponent,
    expected_at,
    forecast,
    generate_trajectory,
    initialize_tracking,
    record_measurement,
    to_fitness_index,
)


class TestPredictionPipeline:
    """PBs -> fade exponent -> runner type -> blend -> paces -> forecast."""

    def test_five_and_ten_k(self):
        b = estimate_fade_exponent(PersonalBests(k5=1200, k10=2520))
        assert 1.0 < b < 1.2

    def test_five_k_and_marathon(self):
        b = estimate_fade_exponent(PersonalBests(k5=1200, marathon=210 * 60))
        assert 0.9 < b < 1.3
        assert classify_runner(b) in set(RunnerType)

    def test_blend_to_forecast(self):
        pbs = PersonalBests(k5=1200, k10=2520, half=5600)
        b = estimate_fade_exponent(pbs)
        runner_type = classify_runner(b)

        blended = blend_predictions('half', pbs, lt_pace=262, vo2max=51, fade_exponent=b)
        vdot = to_fitness_index(21097, blended)
        paces = derive_paces(vdot, lt_pace=262)
        result = forecast(vdot, 'half', 12, 5, runner_type)

        assert paces.r < paces.i < paces.t < paces.m < paces.e
        assert result.forecast_vdot > vdot
        assert result.forecast_time < blended

    def test_fitter_runner_faster_paces(self):
        slow = derive_paces(40.0)
        fast = derive_paces(55.0)
        for zone in ('e', 'm', 't', 'i', 'r'):
            assert getattr(fast, zone) < getattr(slow, zone)


class TestTrackingPipeline:
    """Trajectory -> measurements -> ratio -> forecast."""

    def test_low_band_improves_more_than_advanced(self):
        low = generate_trajectory(360.0, 40.0, 16, 32.0)[-1]
        advanced = generate_trajectory(360.0, 40.0, 16, 55.0)[-1]

        low_lt_pct = (360.0 - low.expected_lt) / 360.0 * 100
        low_vo2_pct = (low.expected_vo2 - 40.0) / 40.0 * 100
        advanced_lt_pct = (360.0 - advanced.expected_lt) / 360.0 * 100
        advanced_vo2_pct = (advanced.expected_vo2 - 40.0) / 40.0 * 100

        assert low_lt_pct > 8
        assert low_vo2_pct > 6
        assert low_lt_pct > advanced_lt_pct
        assert low_vo2_pct > advanced_vo2_pct

    def test_matching_measurement_on_track(self):
        expected = expected_at(300.0, 45.0, 6, 45.0)
        m = PhysiologyMeasurement(6, expected.expected_lt, expected.expected_vo2)
        assert compute_ratio([m], 300.0, 45.0, 45.0) == pytest.approx(1.0, abs=0.1)

    def test_ahead_of_expected(self):
        """LT 5s faster and VO2 +2 above expected."""
        expected = expected_at(300.0, 45.0, 6, 45.0)
        m = PhysiologyMeasurement(6, expected.expected_lt - 5, expected.expected_vo2 + 2)
        assert compute_ratio([m], 300.0, 45.0, 45.0) > 1.0

    @pytest.mark.parametrize("lt,vo2", [(1.0, 200.0), (1000.0, 1.0), (-50.0, 0.0)])
    def test_extreme_measurements_stay_bounded(self, lt, vo2):
        m = PhysiologyMeasurement(8, lt, vo2)
        assert 0.3 <= compute_ratio([m], 300.0, 45.0, 45.0) <= 2.0

    def test_ratio_feeds_forecast(self):
        """A 1.5 adaptation ratio gives ~1.5x the time gain."""
        state = initialize_tracking(300.0, 45.0, 45.0)
        for week in (4, 6, 8):
            expected = expected_at(300.0, 45.0, week, 45.0)
            state = record_measurement(state, PhysiologyMeasurement(
                week,
                300.0 - 1.5 * (300.0 - expected.expected_lt),
                45.0 + 1.5 * (expected.expected_vo2 - 45.0),
            ))
        assert 1.2 < state.current_adaptation_ratio < 1.5

        baseline = forecast(45.0, 'half', 12, 4, 'Balanced')
        scaled = forecast(45.0, 'half', 12, 4, 'Balanced', adaptation_ratio=1.5)
        start_time = forecast(45.0, 'half', 0, 4, 'Balanced').forecast_time
        assert (start_time - scaled.forecast_time) == pytest.approx(
            1.5 * (start_time - baseline.forecast_time), rel=0.05)
