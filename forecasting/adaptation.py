"""
Adaptation tracking: observed physiology versus the expected trajectory.

adaptation ratio = actual improvement / expected improvement
- 1.0 = on track
- > 1.0 = improving faster than expected (fast responder)
- < 1.0 = improving slower than expected (slow responder)

Measurements are folded oldest to newest with exponential smoothing and the
result is clamped, so one noisy watch reading cannot swing the forecast.
"""

from dataclasses import dataclass, replace
from functools import reduce
from typing import Optional, Iterable, List, Tuple
import logging
import math

import numpy as np

from .params import ADAPTATION_MESSAGES, AdaptationParams
from .physiology import expected_at, gains_for
from .types import (
    AdaptationStatus,
    AssessmentResult,
    ExpectedPhysiologyPoint,
    PhysiologyMeasurement,
    PhysiologyTrackingState,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Deviation:
    """Observed minus expected for one metric."""
    value: float        # Absolute difference
    pct: float          # Absolute difference as % of expected
    direction: str      # 'ahead', 'behind' or 'onTrack'


@dataclass(frozen=True)
class ProjectedPhysiology:
    """Physiology projected with the current adaptation ratio."""
    week: int
    projected_lt: Optional[float]
    projected_vo2: Optional[float]


def measurement_ratios(
    measurement: PhysiologyMeasurement,
    expected: ExpectedPhysiologyPoint,
    initial_lt: Optional[float],
    initial_vo2: Optional[float],
    params: Optional[AdaptationParams] = None
) -> Tuple[Optional[float], Optional[float]]:
    """
    Per-metric adaptation ratios for one measurement.

    A metric is None when it was not observed, has no baseline, or its
    expected improvement is ~0.

    Returns:
        (lt_ratio, vo2_ratio)
    """
    if params is None:
        params = AdaptationParams()

    lt_ratio = None
    if _finite(measurement.lt_pace_sec_per_km) and _finite(initial_lt) \
            and expected.expected_lt is not None:
        expected_gain = initial_lt - expected.expected_lt
        if abs(expected_gain) > params.denominator_epsilon:
            lt_ratio = (initial_lt - measurement.lt_pace_sec_per_km) / expected_gain

    vo2_ratio = None
    if _finite(measurement.vo2max) and _finite(initial_vo2) \
            and expected.expected_vo2 is not None:
        expected_gain = expected.expected_vo2 - initial_vo2
        if abs(expected_gain) > params.denominator_epsilon:
            vo2_ratio = (measurement.vo2max - initial_vo2) / expected_gain

    return lt_ratio, vo2_ratio


def compute_ratio(
    measurements: Iterable[PhysiologyMeasurement],
    initial_lt: Optional[float],
    initial_vo2: Optional[float],
    baseline_vdot: float,
    params: Optional[AdaptationParams] = None
) -> float:
    """
    Smoothed, clamped adaptation ratio over a measurement history.

    ratio_0 = default; ratio_i = a * m_i + (1 - a) * ratio_(i-1)

    where m_i is the mean of the available metric ratios for measurement i.
    Measurements are ordered by week; same-week entries keep their supplied
    order. A measurement with no usable metric leaves the ratio unchanged.

    Args:
        measurements: Measurement history
        initial_lt: LT pace at week 1 (s/km)
        initial_vo2: VO2max at week 1
        baseline_vdot: Baseline fitness index
        params: Adaptation parameters (uses defaults if None)

    Returns:
        Ratio within [min_ratio, max_ratio]
    """
    if params is None:
        params = AdaptationParams()

    ordered = sorted(measurements, key=lambda m: m.week)
    if not ordered:
        return params.default_ratio

    def step(previous: float, measurement: PhysiologyMeasurement) -> float:
        expected = expected_at(initial_lt, initial_vo2, measurement.week, baseline_vdot)
        ratios = [r for r in measurement_ratios(
            measurement, expected, initial_lt, initial_vo2, params
        ) if r is not None and math.isfinite(r)]
        if not ratios:
            logger.debug("Week %d measurement has no usable metric", measurement.week)
            return previous
        latest = float(np.mean(ratios))
        return params.smoothing_factor * latest + (1 - params.smoothing_factor) * previous

    smoothed = reduce(step, ordered, params.default_ratio)
    return clamp_ratio(smoothed, params)


def clamp_ratio(ratio: float, params: Optional[AdaptationParams] = None) -> float:
    """Clamp to [min_ratio, max_ratio]."""
    if params is None:
        params = AdaptationParams()
    return float(np.clip(ratio, params.min_ratio, params.max_ratio))


def classify_ratio(ratio: float, params: Optional[AdaptationParams] = None) -> AdaptationStatus:
    """Status for an adaptation ratio."""
    if params is None:
        params = AdaptationParams()

    if ratio >= params.excellent_threshold:
        return AdaptationStatus.EXCELLENT
    if ratio >= params.good_threshold:
        return AdaptationStatus.GOOD
    if ratio > params.slow_threshold:
        return AdaptationStatus.ON_TRACK
    if ratio >= params.concerning_threshold:
        return AdaptationStatus.SLOW
    return AdaptationStatus.CONCERNING


def assess(
    state: PhysiologyTrackingState,
    current_week: int,
    params: Optional[AdaptationParams] = None
) -> AssessmentResult:
    """
    User-facing adaptation status.

    Rules, in priority order:
    1. No initial LT or VO2 -> needsData (no baseline)
    2. No measurements yet, or fewer weeks than the band needs to show
       change -> needsData
    3. Otherwise map the current ratio to a status

    Args:
        state: Tracking state snapshot
        current_week: Current training week
        params: Adaptation parameters (uses defaults if None)

    Returns:
        AssessmentResult
    """
    if params is None:
        params = AdaptationParams()

    if state.initial_lt is None and state.initial_vo2 is None:
        return AssessmentResult(
            status=AdaptationStatus.NEEDS_DATA,
            has_sufficient_data=False,
            message=ADAPTATION_MESSAGES['noBaseline'],
            adaptation_ratio=params.default_ratio,
        )

    gains = gains_for(state.baseline_vdot)
    if current_week < gains.min_weeks_for_change or not state.measurements:
        return AssessmentResult(
            status=AdaptationStatus.NEEDS_DATA,
            has_sufficient_data=False,
            message=ADAPTATION_MESSAGES['needsMoreData'],
            adaptation_ratio=state.current_adaptation_ratio,
        )

    ratio = state.current_adaptation_ratio
    status = classify_ratio(ratio, params)

    lt_ratio = vo2_ratio = None
    latest = _latest_measurement(state.measurements)
    if latest is not None:
        expected = expected_at(
            state.initial_lt, state.initial_vo2, latest.week, state.baseline_vdot
        )
        lt_ratio, vo2_ratio = measurement_ratios(
            latest, expected, state.initial_lt, state.initial_vo2, params
        )

    return AssessmentResult(
        status=status,
        has_sufficient_data=True,
        message=ADAPTATION_MESSAGES[status.value],
        adaptation_ratio=ratio,
        lt_adaptation_ratio=lt_ratio,
        vo2_adaptation_ratio=vo2_ratio,
        deviation_pct=(ratio - 1) * 100,
    )


def initialize_tracking(
    initial_lt: Optional[float],
    initial_vo2: Optional[float],
    baseline_vdot: float,
    params: Optional[AdaptationParams] = None
) -> PhysiologyTrackingState:
    """Fresh tracking state for a new training cycle."""
    if params is None:
        params = AdaptationParams()
    return PhysiologyTrackingState(
        initial_lt=initial_lt,
        initial_vo2=initial_vo2,
        baseline_vdot=baseline_vdot,
        measurements=(),
        current_adaptation_ratio=params.default_ratio,
        last_assessment=None,
    )


def record_measurement(
    state: PhysiologyTrackingState,
    measurement: PhysiologyMeasurement,
    params: Optional[AdaptationParams] = None
) -> PhysiologyTrackingState:
    """
    New state with `measurement` appended.

    The ratio is recomputed over the full history, so replaying the same
    measurements always lands on the same ratio.
    """
    measurements = tuple(state.measurements) + (measurement,)
    ratio = compute_ratio(
        measurements, state.initial_lt, state.initial_vo2, state.baseline_vdot, params
    )
    updated = replace(state, measurements=measurements, current_adaptation_ratio=ratio)
    return replace(updated, last_assessment=assess(updated, measurement.week, params))


def compare_physiology(
    observed: PhysiologyMeasurement,
    expected: ExpectedPhysiologyPoint,
    params: Optional[AdaptationParams] = None
) -> Tuple[Optional[Deviation], Optional[Deviation]]:
    """
    Observed versus expected, per metric.

    Lower LT pace and higher VO2max count as ahead. Deviations under the
    meaningful threshold are reported as on track.

    Returns:
        (lt_deviation, vo2_deviation)
    """
    if params is None:
        params = AdaptationParams()

    lt_deviation = None
    if _finite(observed.lt_pace_sec_per_km) and expected.expected_lt:
        diff = observed.lt_pace_sec_per_km - expected.expected_lt
        lt_deviation = _deviation(diff, expected.expected_lt, ahead=diff < 0, params=params)

    vo2_deviation = None
    if _finite(observed.vo2max) and expected.expected_vo2:
        diff = observed.vo2max - expected.expected_vo2
        vo2_deviation = _deviation(diff, expected.expected_vo2, ahead=diff > 0, params=params)

    return lt_deviation, vo2_deviation


def project_physiology(state: PhysiologyTrackingState, week: int) -> ProjectedPhysiology:
    """Expected physiology at `week` with weekly gains scaled by the current ratio."""
    gains = gains_for(state.baseline_vdot)
    weeks_elapsed = max(0, week - 1)
    ratio = state.current_adaptation_ratio

    projected_lt = None
    if state.initial_lt is not None:
        projected_lt = state.initial_lt * (1 - gains.lt_weekly_gain * ratio) ** weeks_elapsed

    projected_vo2 = None
    if state.initial_vo2 is not None:
        projected_vo2 = state.initial_vo2 * (1 + gains.vo2_weekly_gain * ratio) ** weeks_elapsed

    return ProjectedPhysiology(week, projected_lt, projected_vo2)


def _latest_measurement(
    measurements: Iterable[PhysiologyMeasurement]
) -> Optional[PhysiologyMeasurement]:
    ordered: List[PhysiologyMeasurement] = sorted(measurements, key=lambda m: m.week)
    return ordered[-1] if ordered else None


def _deviation(diff: float, expected: float, ahead: bool, params: AdaptationParams) -> Deviation:
    pct = diff / expected * 100
    if abs(pct) < params.meaningful_deviation_pct:
        direction = 'onTrack'
    elif ahead:
        direction = 'ahead'
    else:
        direction = 'behind'
    return Deviation(value=abs(diff), pct=abs(pct), direction=direction)


def _finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)
