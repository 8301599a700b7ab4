"""
Tests for adaptation tracking.

Tests cover:
1. Per-measurement ratios
2. Smoothed, clamped ratio over a history
3. Status assessment
4. Tracking state updates
5. Observed-vs-expected comparison and projection

Run with: python -m pytest tests/test_adaptation.py -v
"""

import math
import random
from dataclasses import replace

import pytest

from forecasting.adaptation import (
    assess,
    classify_ratio,
    clamp_ratio,
    compare_physiology,
    compute_ratio,
    initialize_tracking,
    measurement_ratios,
    project_physiology,
    record_measurement,
)
from forecasting.params import ADAPTATION_MESSAGES, AdaptationParams
from forecasting.physiology import expected_at
from forecasting.types import AdaptationStatus, PhysiologyMeasurement

INITIAL_LT = 300.0
INITIAL_VO2 = 45.0
BASELINE = 45.0     # Intermediate band


def responding_at(week, lt_ratio=None, vo2_ratio=None):
    """Measurement whose improvement is `ratio` times the expected improvement."""
    expected = expected_at(INITIAL_LT, INITIAL_VO2, week, BASELINE)
    lt = vo2 = None
    if lt_ratio is not None:
        lt = INITIAL_LT - lt_ratio * (INITIAL_LT - expected.expected_lt)
    if vo2_ratio is not None:
        vo2 = INITIAL_VO2 + vo2_ratio * (expected.expected_vo2 - INITIAL_VO2)
    return PhysiologyMeasurement(week=week, lt_pace_sec_per_km=lt, vo2max=vo2)


def ratio_of(measurements, params=None):
    return compute_ratio(measurements, INITIAL_LT, INITIAL_VO2, BASELINE, params)


# =============================================================================
# Measurement Ratios
# =============================================================================

class TestMeasurementRatios:
    """Tests for the per-metric ratios of one measurement."""

    def test_both_metrics(self):
        m = responding_at(6, lt_ratio=1.2, vo2_ratio=0.8)
        expected = expected_at(INITIAL_LT, INITIAL_VO2, 6, BASELINE)
        lt, vo2 = measurement_ratios(m, expected, INITIAL_LT, INITIAL_VO2)
        assert lt == pytest.approx(1.2)
        assert vo2 == pytest.approx(0.8)

    def test_week_one_has_no_expected_change(self):
        """Zero expected improvement gives no ratio."""
        m = PhysiologyMeasurement(week=1, lt_pace_sec_per_km=290.0, vo2max=46.0)
        expected = expected_at(INITIAL_LT, INITIAL_VO2, 1, BASELINE)
        assert measurement_ratios(m, expected, INITIAL_LT, INITIAL_VO2) == (None, None)

    def test_missing_baseline(self):
        m = PhysiologyMeasurement(week=6, lt_pace_sec_per_km=290.0)
        expected = expected_at(None, INITIAL_VO2, 6, BASELINE)
        assert measurement_ratios(m, expected, None, INITIAL_VO2) == (None, None)


# =============================================================================
# Ratio Computation
# =============================================================================

class TestComputeRatio:
    """Tests for the smoothed adaptation ratio."""

    def test_no_measurements(self):
        assert ratio_of([]) == 1.0

    def test_on_trajectory(self):
        assert ratio_of([responding_at(5, 1.0, 1.0)]) == pytest.approx(1.0)

    def test_single_fast_measurement(self):
        """0.4 * 2.0 + 0.6 * 1.0"""
        assert ratio_of([responding_at(5, lt_ratio=2.0)]) == pytest.approx(1.4)

    def test_metrics_averaged(self):
        """Mean of 2.0 and 1.0 is 1.5; smoothed gives 1.2."""
        assert ratio_of([responding_at(5, 2.0, 1.0)]) == pytest.approx(1.2)

    def test_fold_over_history(self):
        history = [responding_at(3, lt_ratio=2.0), responding_at(5, lt_ratio=2.0)]
        assert ratio_of(history) == pytest.approx(0.4 * 2.0 + 0.6 * 1.4)

    def test_order_independent_across_weeks(self):
        history = [responding_at(w, lt_ratio=r)
                   for w, r in [(2, 0.6), (4, 1.3), (6, 1.1), (8, 0.9), (10, 1.4)]]
        shuffled = list(history)
        random.Random(7).shuffle(shuffled)
        assert ratio_of(shuffled) == pytest.approx(ratio_of(history))

    def test_same_week_kept_in_supplied_order(self):
        fast, slow = responding_at(6, lt_ratio=2.0), responding_at(6, lt_ratio=0.5)
        assert ratio_of([fast, slow]) == pytest.approx(0.4 * 0.5 + 0.6 * 1.4)
        assert ratio_of([slow, fast]) == pytest.approx(0.4 * 2.0 + 0.6 * 0.8)

    def test_clamped_high(self):
        assert ratio_of([responding_at(5, lt_ratio=10.0)]) == 2.0

    def test_clamped_low(self):
        assert ratio_of([responding_at(5, lt_ratio=-10.0)]) == 0.3

    def test_unusable_measurement_keeps_ratio(self):
        history = [
            responding_at(3, lt_ratio=2.0),
            PhysiologyMeasurement(week=5, lt_pace_sec_per_km=math.nan),
            PhysiologyMeasurement(week=1, lt_pace_sec_per_km=280.0),
        ]
        assert ratio_of(history) == pytest.approx(1.4)

    def test_custom_smoothing(self):
        params = AdaptationParams(smoothing_factor=1.0)
        assert ratio_of([responding_at(5, lt_ratio=1.7)], params) == pytest.approx(1.7)

    def test_clamp_ratio(self):
        assert clamp_ratio(5.0) == 2.0
        assert clamp_ratio(0.0) == 0.3
        assert clamp_ratio(1.1) == 1.1


# =============================================================================
# Assessment
# =============================================================================

class TestAssessment:
    """Tests for the user-facing status."""

    @pytest.mark.parametrize("ratio,status", [
        (1.6, AdaptationStatus.EXCELLENT),
        (1.5, AdaptationStatus.EXCELLENT),
        (1.4, AdaptationStatus.GOOD),
        (1.3, AdaptationStatus.GOOD),
        (1.29, AdaptationStatus.ON_TRACK),
        (1.0, AdaptationStatus.ON_TRACK),
        (0.71, AdaptationStatus.ON_TRACK),
        (0.7, AdaptationStatus.SLOW),
        (0.5, AdaptationStatus.SLOW),
        (0.49, AdaptationStatus.CONCERNING),
    ])
    def test_status_thresholds(self, ratio, status):
        assert classify_ratio(ratio) is status

    def test_no_baseline(self):
        state = initialize_tracking(None, None, BASELINE)
        result = assess(state, 10)
        assert result.status is AdaptationStatus.NEEDS_DATA
        assert not result.has_sufficient_data
        assert result.message == ADAPTATION_MESSAGES['noBaseline']

    def test_too_early(self, intermediate_state):
        """Intermediate athletes need 4 weeks before change shows."""
        result = assess(replace(intermediate_state, current_adaptation_ratio=1.8), 3)
        assert result.status is AdaptationStatus.NEEDS_DATA
        assert result.message == ADAPTATION_MESSAGES['needsMoreData']
        assert result.adaptation_ratio == 1.8

    def test_no_measurements_yet(self, intermediate_state):
        result = assess(intermediate_state, 10)
        assert result.status is AdaptationStatus.NEEDS_DATA
        assert not result.has_sufficient_data
        assert result.message == ADAPTATION_MESSAGES['needsMoreData']

    def test_sufficient_data(self, intermediate_state):
        state = replace(
            intermediate_state,
            measurements=(responding_at(4, lt_ratio=0.6),),
            current_adaptation_ratio=0.6,
        )
        result = assess(state, 4)
        assert result.status is AdaptationStatus.SLOW
        assert result.has_sufficient_data
        assert result.deviation_pct == pytest.approx(-40.0)
        assert result.message == ADAPTATION_MESSAGES['slow']

    def test_latest_metric_ratios_reported(self, intermediate_state):
        state = record_measurement(intermediate_state, responding_at(6, 1.2, 0.9))
        result = assess(state, 6)
        assert result.lt_adaptation_ratio == pytest.approx(1.2)
        assert result.vo2_adaptation_ratio == pytest.approx(0.9)


# =============================================================================
# Tracking State
# =============================================================================

class TestTrackingState:
    """Tests for recording measurements into a tracking state."""

    def test_initial_state(self, intermediate_state):
        assert intermediate_state.current_adaptation_ratio == 1.0
        assert intermediate_state.measurements == ()
        assert intermediate_state.last_assessment is None

    def test_record_returns_new_state(self, intermediate_state):
        m = responding_at(5, lt_ratio=2.0)
        updated = record_measurement(intermediate_state, m)
        assert updated is not intermediate_state
        assert intermediate_state.measurements == ()
        assert updated.measurements == (m,)
        assert updated.current_adaptation_ratio == pytest.approx(1.4)
        assert updated.last_assessment.status is AdaptationStatus.GOOD

    def test_replay_is_deterministic(self, intermediate_state):
        history = [responding_at(w, lt_ratio=1.3, vo2_ratio=1.1) for w in (2, 4, 6, 8)]
        state = intermediate_state
        for m in history:
            state = record_measurement(state, m)
        assert state.current_adaptation_ratio == pytest.approx(ratio_of(history))


# =============================================================================
# Comparison and Projection
# =============================================================================

class TestComparison:
    """Tests for observed-vs-expected deviations."""

    @pytest.fixture
    def expected(self):
        return expected_at(INITIAL_LT, INITIAL_VO2, 8, BASELINE)

    def test_faster_lt_is_ahead(self, expected):
        observed = PhysiologyMeasurement(8, lt_pace_sec_per_km=expected.expected_lt * 0.95)
        lt, vo2 = compare_physiology(observed, expected)
        assert lt.direction == 'ahead'
        assert lt.pct == pytest.approx(5.0)
        assert vo2 is None

    def test_small_deviation_on_track(self, expected):
        observed = PhysiologyMeasurement(8, lt_pace_sec_per_km=expected.expected_lt * 1.01)
        lt, _ = compare_physiology(observed, expected)
        assert lt.direction == 'onTrack'

    def test_low_vo2_is_behind(self, expected):
        observed = PhysiologyMeasurement(8, vo2max=expected.expected_vo2 * 0.97)
        _, vo2 = compare_physiology(observed, expected)
        assert vo2.direction == 'behind'
        assert vo2.value == pytest.approx(expected.expected_vo2 * 0.03)


class TestProjection:
    """Tests for ratio-scaled physiology projection."""

    def test_neutral_ratio_matches_expected(self, intermediate_state):
        projected = project_physiology(intermediate_state, 12)
        expected = expected_at(INITIAL_LT, INITIAL_VO2, 12, BASELINE)
        assert projected.projected_lt == pytest.approx(expected.expected_lt)
        assert projected.projected_vo2 == pytest.approx(expected.expected_vo2)

    def test_fast_responder_projects_further(self, intermediate_state):
        fast = replace(intermediate_state, current_adaptation_ratio=1.5)
        assert project_physiology(fast, 12).projected_lt < \
            project_physiology(intermediate_state, 12).projected_lt

    def test_missing_metric(self):
        state = initialize_tracking(None, 45.0, BASELINE)
        assert project_physiology(state, 8).projected_lt is None
