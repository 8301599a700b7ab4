"""
Tests for the race-time prediction blender.

Tests cover:
1. Recency decay and weight redistribution
2. Per-source estimates
3. Index-space blending
4. Adherence penalty

Run with: python -m pytest tests/test_predictions.py -v
"""

import math

import pytest

from forecasting.params import BlendParams
from forecasting.performance import to_fitness_index, to_time
from forecasting.predictions import (
    SkipSummary,
    blend_predictions,
    blended_fitness_index,
    calculate_adherence_penalty,
    candidate_estimates,
    predict_from_lt,
    predict_from_pbs,
    recency_factor,
    source_weights,
)
from forecasting.types import (
    PersonalBests,
    PredictionSource,
    RaceDistance,
    RecentRace,
    RunnerType,
)


# =============================================================================
# Recency and Weights
# =============================================================================

class TestRecency:
    """Tests for recent-race confidence decay."""

    @pytest.mark.parametrize("weeks,factor", [
        (0, 1.0), (2, 1.0), (3, 0.85), (4, 0.85), (6, 0.65), (8, 0.40), (9, 0.15), (30, 0.15),
    ])
    def test_step_function(self, weeks, factor):
        assert recency_factor(weeks) == factor

    def test_missing_age_is_fresh(self):
        assert recency_factor(None) == 1.0


class TestSourceWeights:
    """Tests for per-source base weights."""

    def test_without_recent_uses_table(self):
        weights = source_weights(RaceDistance.MARATHON, None)
        assert weights == {
            PredictionSource.PB: 0.10,
            PredictionSource.LT: 0.70,
            PredictionSource.VO2: 0.20,
        }

    def test_fresh_recent_race(self):
        weights = source_weights(RaceDistance.K5, RecentRace(5, 1200, weeks_ago=1))
        assert weights[PredictionSource.RECENT] == pytest.approx(0.30)
        assert weights[PredictionSource.PB] == pytest.approx(0.10)

    def test_stale_weight_moves_to_lt_and_pb(self):
        """Decayed recent weight is split 70/30 between LT and PBs."""
        weights = source_weights(RaceDistance.K5, RecentRace(5, 1200, weeks_ago=6))
        removed = 0.30 * 0.35
        assert weights[PredictionSource.RECENT] == pytest.approx(0.30 - removed)
        assert weights[PredictionSource.LT] == pytest.approx(0.35 + 0.7 * removed)
        assert weights[PredictionSource.PB] == pytest.approx(0.10 + 0.3 * removed)

    @pytest.mark.parametrize("weeks_ago", [0, 3, 5, 7, 12])
    def test_weights_sum_to_one(self, weeks_ago):
        for distance in RaceDistance:
            weights = source_weights(distance, RecentRace(10, 2500, weeks_ago))
            assert sum(weights.values()) == pytest.approx(1.0)

    def test_unusable_recent_race_ignored(self):
        weights = source_weights(RaceDistance.K10, RecentRace(10, math.nan, 1))
        assert PredictionSource.RECENT not in weights


# =============================================================================
# Source Estimates
# =============================================================================

class TestSourceEstimates:
    """Tests for the individual prediction sources."""

    def test_pb_projection_caps_fade(self):
        """PB projections never use b above the cap."""
        pbs = PersonalBests(k5=1200)
        capped = predict_from_pbs(10000, pbs, b=1.30)[RaceDistance.K5]
        assert capped == pytest.approx(1200 * 2 ** 1.15)

    def test_lt_uses_distance_and_type_multiplier(self):
        assert predict_from_lt(21097, 300, RunnerType.BALANCED) == pytest.approx(
            300 * 21.097 * 1.045)

    def test_lt_unusable(self):
        assert predict_from_lt(5000, None, RunnerType.SPEED) is None
        assert predict_from_lt(5000, math.nan, RunnerType.SPEED) is None

    def test_pb_weight_split_by_proximity(self, balanced_pbs):
        """PB sub-weights sum to the PB weight and favour nearby distances."""
        candidates = candidate_estimates('10k', balanced_pbs, vo2max=48)
        pb = {c.label: c.weight for c in candidates if c.source is PredictionSource.PB}
        assert sum(pb.values()) == pytest.approx(0.20)
        assert pb['10k PB'] > pb['5k PB'] > pb['marathon PB']

    def test_vo2_index_is_vo2max(self):
        candidates = candidate_estimates('half', None, vo2max=51.5)
        assert len(candidates) == 1
        assert candidates[0].fitness_index == 51.5


# =============================================================================
# Blending
# =============================================================================

class TestBlend:
    """Tests for the index-space blend."""

    def test_no_sources(self):
        assert blend_predictions('5k', None) is None
        assert blend_predictions('5k', PersonalBests()) is None

    def test_single_vo2_source(self):
        assert blend_predictions('5k', None, vo2max=50) == to_time(5000, 50)

    def test_pb_at_target_round_trips(self):
        pbs = PersonalBests(k5=1200)
        assert blend_predictions(RaceDistance.K5, pbs) == pytest.approx(1200, abs=0.05)

    def test_blend_between_candidates(self, balanced_pbs, fresh_recent_race):
        candidates = candidate_estimates(
            'half', balanced_pbs, lt_pace=270, vo2max=52, recent_race=fresh_recent_race)
        blended = blend_predictions(
            'half', balanced_pbs, lt_pace=270, vo2max=52, recent_race=fresh_recent_race)
        times = [c.time_seconds for c in candidates]
        assert min(times) <= blended <= max(times)

    def test_blend_is_weighted_index_mean(self, balanced_pbs):
        candidates = candidate_estimates('10k', balanced_pbs, lt_pace=280, vo2max=50)
        expected = (sum(c.fitness_index * c.weight for c in candidates)
                    / sum(c.weight for c in candidates))
        assert blended_fitness_index(candidates) == pytest.approx(expected)

    def test_fast_recent_race_speeds_prediction(self):
        """A recent race faster than every other source pulls the blend faster."""
        pbs = PersonalBests(k5=1320)
        fast = RecentRace(distance_km=5, time_seconds=1150, weeks_ago=1)
        without = blend_predictions('5k', pbs, vo2max=44)
        with_recent = blend_predictions('5k', pbs, vo2max=44, recent_race=fast)
        assert with_recent < without

    def test_nan_lt_same_as_missing(self, balanced_pbs):
        assert blend_predictions('10k', balanced_pbs, lt_pace=math.nan, vo2max=50) == \
            blend_predictions('10k', balanced_pbs, vo2max=50)

    def test_runner_type_string(self, balanced_pbs):
        by_enum = blend_predictions('half', balanced_pbs, lt_pace=290,
                                    runner_type=RunnerType.SPEED)
        by_key = blend_predictions('half', balanced_pbs, lt_pace=290, runner_type='speed')
        assert by_enum == by_key

    def test_custom_distance_in_meters(self, balanced_pbs):
        """Arbitrary distances use the nearest distance's weights."""
        prediction = blend_predictions(15000, balanced_pbs, vo2max=50)
        assert to_time(10000, 49) < prediction < to_time(21097, 49)

    def test_custom_params(self):
        params = BlendParams(pb_fade_cap=1.0)
        prediction = blend_predictions('marathon', PersonalBests(k5=1200), params=params)
        assert prediction == pytest.approx(
            to_time(42195, to_fitness_index(42195, 1200 * 42195 / 5000)), abs=0.05)


# =============================================================================
# Adherence Penalty
# =============================================================================

class TestAdherencePenalty:
    """Tests for the skipped-training multiplier."""

    def test_no_skips(self):
        assert calculate_adherence_penalty(SkipSummary()) == 1.0

    def test_per_workout_penalties(self):
        summary = SkipSummary(missed_long_runs=2, missed_quality_workouts=1,
                              completed_workouts=9, total_workouts=10)
        assert calculate_adherence_penalty(summary) == pytest.approx(1.013)

    def test_low_adherence(self):
        summary = SkipSummary(missed_long_runs=2, missed_quality_workouts=1,
                              completed_workouts=7, total_workouts=10)
        assert calculate_adherence_penalty(summary) == pytest.approx(1.033)
