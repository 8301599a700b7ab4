"""
Expected physiological trajectory across a training cycle.

Projects LT pace and VO2max week by week from ability-band gain rates:
- LT pace improves geometrically: LT_w = LT_1 * (1 - g_lt)^(w - 1)
- VO2max rises geometrically:     VO2_w = VO2_1 * (1 + g_vo2)^(w - 1)

Confidence bounds widen the expected value by the band's confidence
interval, oriented so the lower LT bound and the upper VO2 bound are the
favourable side.
"""

from collections.abc import Sequence
from typing import Optional, Iterator, Tuple

from .params import ABILITY_BAND_THRESHOLDS, PHYSIOLOGY_GAINS, PhysiologyGains
from .types import AbilityBand, ExpectedPhysiologyPoint


def ability_band(vdot: float) -> AbilityBand:
    """
    Ability band for a fitness index.

    elite >= 60, advanced [52, 60), intermediate [45, 52), novice [38, 45),
    beginner below 38.
    """
    for lower_bound, band in ABILITY_BAND_THRESHOLDS:
        if vdot >= lower_bound:
            return band
    return AbilityBand.BEGINNER


def gains_for(baseline_vdot: float) -> PhysiologyGains:
    """Weekly gain rates for the band of `baseline_vdot`."""
    return PHYSIOLOGY_GAINS[ability_band(baseline_vdot)]


def expected_at(
    initial_lt: Optional[float],
    initial_vo2: Optional[float],
    week: int,
    baseline_vdot: float
) -> ExpectedPhysiologyPoint:
    """
    Expected LT pace and VO2max at `week`.

    Week 1 is the starting point, so expected values equal the initials.
    A missing initial value gives None for that metric and its bounds.

    Args:
        initial_lt: LT pace at week 1 (s/km)
        initial_vo2: VO2max at week 1
        week: Training week (1-based)
        baseline_vdot: Baseline fitness index, selects the ability band

    Returns:
        ExpectedPhysiologyPoint
    """
    gains = gains_for(baseline_vdot)
    weeks_elapsed = max(0, week - 1)
    ci = gains.confidence_interval / 100.0

    expected_lt = lt_lower = lt_upper = None
    if initial_lt is not None:
        expected_lt = initial_lt * (1 - gains.lt_weekly_gain) ** weeks_elapsed
        lt_lower, lt_upper = _bounds(expected_lt, ci)

    expected_vo2 = vo2_lower = vo2_upper = None
    if initial_vo2 is not None:
        expected_vo2 = initial_vo2 * (1 + gains.vo2_weekly_gain) ** weeks_elapsed
        vo2_lower, vo2_upper = _bounds(expected_vo2, ci)

    return ExpectedPhysiologyPoint(
        week=week,
        expected_lt=expected_lt,
        expected_vo2=expected_vo2,
        lt_lower_bound=lt_lower,
        lt_upper_bound=lt_upper,
        vo2_lower_bound=vo2_lower,
        vo2_upper_bound=vo2_upper,
    )


class ExpectedTrajectory(Sequence):
    """
    Expected physiology for weeks 1..total_weeks.

    Points are computed on access; iterating again starts over from week 1.
    """

    def __init__(
        self,
        initial_lt: Optional[float],
        initial_vo2: Optional[float],
        total_weeks: int,
        baseline_vdot: float
    ):
        self.initial_lt = initial_lt
        self.initial_vo2 = initial_vo2
        self.total_weeks = max(0, int(total_weeks))
        self.baseline_vdot = baseline_vdot

    def __len__(self) -> int:
        return self.total_weeks

    def __getitem__(self, index):
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(len(self)))]
        if index < 0:
            index += len(self)
        if not 0 <= index < len(self):
            raise IndexError("trajectory index out of range")
        return expected_at(self.initial_lt, self.initial_vo2, index + 1, self.baseline_vdot)

    def __iter__(self) -> Iterator[ExpectedPhysiologyPoint]:
        for week in range(1, self.total_weeks + 1):
            yield expected_at(self.initial_lt, self.initial_vo2, week, self.baseline_vdot)

    def __repr__(self) -> str:
        return (f"ExpectedTrajectory(weeks={self.total_weeks}, "
                f"band={ability_band(self.baseline_vdot).value})")


def generate_trajectory(
    initial_lt: Optional[float],
    initial_vo2: Optional[float],
    total_weeks: int,
    baseline_vdot: float
) -> ExpectedTrajectory:
    """Expected physiology for every week of a plan."""
    return ExpectedTrajectory(initial_lt, initial_vo2, total_weeks, baseline_vdot)


def _bounds(value: float, ci: float) -> Tuple[float, float]:
    return value * (1 - ci), value * (1 + ci)
