"""
Tests for the performance model and fade-exponent fitting.

Tests cover:
1. Fitness index from a race performance
2. Numeric inverse (index -> time) and bracket clamping
3. Threshold pace at a fixed duration
4. Fade exponent estimation and runner classification

Run with: python -m pytest tests/test_performance.py -v
"""

import math

import pytest

from forecasting.fatigue import (
    DEFAULT_FADE_EXPONENT,
    classify_runner,
    estimate_fade_exponent,
    riegel_projection,
)
from forecasting.performance import (
    distance_key_to_meters,
    pace_at_duration,
    resolve_distance_meters,
    to_fitness_index,
    to_time,
)
from forecasting.types import PersonalBests, RaceDistance, RunnerType


# =============================================================================
# Fitness Index Tests
# =============================================================================

class TestFitnessIndex:
    """Tests for race performance -> fitness index."""

    def test_known_performance(self):
        """A 20:00 5K is an index of about 49.8."""
        assert to_fitness_index(5000, 1200) == pytest.approx(49.8, abs=0.1)

    def test_faster_time_higher_index(self):
        """Faster times give higher indices."""
        assert to_fitness_index(5000, 1100) > to_fitness_index(5000, 1200)

    def test_invalid_input_is_nan(self):
        """Non-positive or non-finite input gives NaN."""
        assert math.isnan(to_fitness_index(0, 1200))
        assert math.isnan(to_fitness_index(5000, -1))
        assert math.isnan(to_fitness_index(5000, math.nan))
        assert math.isnan(to_fitness_index(5000, None))


class TestInverse:
    """Tests for fitness index -> race time."""

    @pytest.mark.parametrize("distance,seconds", [
        (5000, 1200),
        (10000, 2700),
        (21097, 5400),
        (42195, 14400),
    ])
    def test_inverse_recovers_time(self, distance, seconds):
        """Inverting the index lands within half a second of the input time."""
        index = to_fitness_index(distance, seconds)
        assert to_time(distance, index) == pytest.approx(seconds, abs=0.5)

    def test_higher_index_faster_time(self):
        """Time decreases as the index rises."""
        times = [to_time(10000, v) for v in (35, 45, 55, 65)]
        assert times == sorted(times, reverse=True)

    def test_clamps_to_bracket(self):
        """Indices outside the pace bracket clamp to its edges."""
        assert to_time(5000, 200) == pytest.approx(600.0)     # 2:00/km
        assert to_time(5000, 1) == pytest.approx(6000.0)      # 20:00/km

    def test_non_finite_index_is_nan(self):
        assert math.isnan(to_time(5000, math.nan))
        assert math.isnan(to_time(5000, None))


class TestPaceAtDuration:
    """Tests for the pace sustainable for a fixed duration."""

    def test_one_hour_pace_consistent_with_index(self):
        """The distance covered in an hour at threshold pace scores the same index."""
        pace = pace_at_duration(50.0, 60)
        meters = 3600 / pace * 1000
        assert to_fitness_index(meters, 3600) == pytest.approx(50.0, abs=1e-6)

    def test_shorter_duration_faster_pace(self):
        assert pace_at_duration(50.0, 20) < pace_at_duration(50.0, 60)

    def test_invalid_index_is_nan(self):
        assert math.isnan(pace_at_duration(math.nan))


class TestDistances:
    """Tests for distance key resolution."""

    def test_keys_and_aliases(self):
        assert distance_key_to_meters('half') == 21097
        assert distance_key_to_meters('HM') == 21097
        assert distance_key_to_meters('k10') == 10000
        assert RaceDistance.from_key(RaceDistance.MARATHON) is RaceDistance.MARATHON

    def test_resolve_accepts_meters(self):
        assert resolve_distance_meters(8000) == 8000.0
        assert resolve_distance_meters(RaceDistance.K5) == 5000.0

    def test_unknown_key_raises(self):
        with pytest.raises(ValueError):
            RaceDistance.from_key('ultra')

    def test_nearest(self):
        assert RaceDistance.nearest(15000) is RaceDistance.K10
        assert RaceDistance.nearest(30000) is RaceDistance.HALF


# =============================================================================
# Fade Exponent Tests
# =============================================================================

class TestFadeExponent:
    """Tests for fitting the fade exponent from PBs."""

    def test_two_pbs(self):
        """Two PBs give the exact log-log slope."""
        pbs = PersonalBests(k5=1200, marathon=12600)
        expected = math.log(12600 / 1200) / math.log(42195 / 5000)
        assert estimate_fade_exponent(pbs) == pytest.approx(expected)

    @pytest.mark.parametrize("b", [1.03, 1.06, 1.09, 1.15])
    def test_recovers_riegel_exponent(self, b):
        """PBs generated with a known exponent fit back to it."""
        pbs = PersonalBests(
            k5=1200,
            k10=riegel_projection(1200, 5000, 10000, b),
            half=riegel_projection(1200, 5000, 21097, b),
            marathon=riegel_projection(1200, 5000, 42195, b),
        )
        assert estimate_fade_exponent(pbs) == pytest.approx(b, abs=1e-9)

    def test_default_with_too_few_pbs(self):
        assert estimate_fade_exponent(None) == DEFAULT_FADE_EXPONENT
        assert estimate_fade_exponent(PersonalBests()) == DEFAULT_FADE_EXPONENT
        assert estimate_fade_exponent(PersonalBests(k5=1200)) == DEFAULT_FADE_EXPONENT

    def test_unusable_entries_ignored(self):
        """Zero and NaN entries do not count as PBs."""
        pbs = PersonalBests(k5=1200, k10=0, half=math.nan)
        assert estimate_fade_exponent(pbs) == DEFAULT_FADE_EXPONENT


class TestRunnerType:
    """Tests for fade exponent -> runner type."""

    def test_speed(self):
        assert classify_runner(1.15) is RunnerType.SPEED

    def test_endurance(self):
        assert classify_runner(1.03) is RunnerType.ENDURANCE

    def test_balanced_including_boundaries(self):
        assert classify_runner(1.09) is RunnerType.BALANCED
        assert classify_runner(1.12) is RunnerType.BALANCED
        assert classify_runner(1.06) is RunnerType.BALANCED

    def test_missing_is_balanced(self):
        assert classify_runner(None) is RunnerType.BALANCED
        assert classify_runner(0) is RunnerType.BALANCED
        assert classify_runner(math.nan) is RunnerType.BALANCED

    def test_riegel_projection(self):
        assert riegel_projection(1200, 5000, 10000, 1.06) == pytest.approx(1200 * 2 ** 1.06)
