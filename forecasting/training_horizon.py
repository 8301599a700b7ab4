"""
Non-linear training-horizon forecast.

Projects how much the fitness index can rise before race day:

    gain% = max_gain[d][band] * type_mod[d][type] * week_factor * session_factor
            + taper_bonus - undertrain_penalty

- week_factor:    1 - exp(-weeks_eff / tau[d][band])      (saturating)
- session_factor: 1 / (1 + exp(-k (sessions - ref[d][band])))  (logistic)

The gain is clamped to [-max_slowdown_pct, +max_gain_cap_pct], scaled by the
measured adaptation ratio, and clamped again.
"""

from dataclasses import dataclass, field
from typing import Optional, Union
import logging
import math

import numpy as np

from .params import (
    BARRIER_MARGIN,
    DEFAULT_SKIP_IMPACT,
    EXPERIENCE_FACTORS,
    EXPERIENCE_RANK,
    SKIP_TIME_IMPACT,
    TIME_BARRIERS,
    HorizonParams,
)
from .performance import to_time
from .physiology import ability_band as band_for
from .types import AbilityBand, ForecastResult, RaceDistance, RunnerType

logger = logging.getLogger(__name__)

TAPER_FRACTION = 0.15   # Share of the remaining weeks used as taper in live forecasts


@dataclass(frozen=True)
class HorizonComponents:
    """Factor breakdown of a horizon calculation."""
    week_factor: float = 0.0
    session_factor: float = 0.0
    type_modifier: float = 1.0
    experience_factor: float = 1.0
    undertrain_penalty: float = 0.0
    taper_bonus: float = 0.0


@dataclass(frozen=True)
class HorizonResult:
    """Projected improvement over the remaining plan."""
    vdot_gain: float
    improvement_pct: float
    components: HorizonComponents = field(default_factory=HorizonComponents)


def apply_training_horizon(
    baseline_vdot: float,
    target_distance: Union[RaceDistance, str],
    weeks_remaining: float,
    sessions_per_week: float,
    runner_type: Union[RunnerType, str],
    ability_band: Optional[AbilityBand] = None,
    adaptation_ratio: Optional[float] = None,
    taper_weeks: float = 0,
    experience_level: Optional[str] = None,
    hm_pb_seconds: Optional[float] = None,
    params: Optional[HorizonParams] = None
) -> HorizonResult:
    """
    Projected fitness-index gain with its factor breakdown.

    Args:
        baseline_vdot: Current fitness index
        target_distance: Target race distance
        weeks_remaining: Weeks until race day
        sessions_per_week: Planned running sessions per week
        runner_type: Runner type (Speed / Balanced / Endurance)
        ability_band: Ability band (derived from baseline_vdot if None)
        adaptation_ratio: Measured adaptation ratio, scales the gain
        taper_weeks: Taper length; excluded from building weeks
        experience_level: Enables the experience factor and time-barrier caps
        hm_pb_seconds: Half-marathon PB, can waive the sub-3 marathon cap
        params: Horizon parameters (uses defaults if None)

    Returns:
        HorizonResult
    """
    if params is None:
        params = HorizonParams()

    if weeks_remaining <= 0:
        return HorizonResult(
            vdot_gain=0.0,
            improvement_pct=0.0,
            components=HorizonComponents(),
        )

    distance = RaceDistance.from_key(target_distance)
    runner_type = RunnerType.from_key(runner_type)
    if ability_band is None:
        ability_band = band_for(baseline_vdot)

    max_gain = params.max_gain_pct[distance][ability_band]
    tau = params.tau_weeks[distance][ability_band]
    ref_sessions = params.ref_sessions[distance][ability_band]
    type_mod = params.type_modifier[distance][runner_type]

    taper = max(0.0, taper_weeks or 0.0)
    weeks_eff = max(0.0, weeks_remaining - taper)

    week_factor = 1 - math.exp(-weeks_eff / tau) if weeks_eff > 0 else 0.0
    session_factor = 1 / (1 + math.exp(-params.k_sessions * (sessions_per_week - ref_sessions)))

    exp_factor = 1.0
    if experience_level is not None:
        exp_factor = EXPERIENCE_FACTORS.get(experience_level, 1.0)

    improvement_pct = max_gain * type_mod * week_factor * session_factor * exp_factor

    undertrain_penalty = 0.0
    if sessions_per_week < params.min_sessions[distance]:
        undertrain_penalty = params.undertrain_penalty_pct[distance]

    taper_ratio = min(taper / params.taper_nominal_weeks[distance], 1.0) if taper > 0 else 0.0
    taper_bonus = params.taper_bonus_pct[distance] * taper_ratio

    improvement_pct = _clamp_pct(improvement_pct + taper_bonus - undertrain_penalty, params)

    if adaptation_ratio is not None and math.isfinite(adaptation_ratio):
        improvement_pct = _clamp_pct(improvement_pct * adaptation_ratio, params)

    if experience_level is not None:
        improvement_pct = apply_guardrails(
            baseline_vdot, improvement_pct, distance, experience_level, hm_pb_seconds
        )

    return HorizonResult(
        vdot_gain=baseline_vdot * improvement_pct / 100,
        improvement_pct=improvement_pct,
        components=HorizonComponents(
            week_factor=week_factor,
            session_factor=session_factor,
            type_modifier=type_mod,
            experience_factor=exp_factor,
            undertrain_penalty=undertrain_penalty,
            taper_bonus=taper_bonus,
        ),
    )


def apply_guardrails(
    baseline_vdot: float,
    improvement_pct: float,
    distance: RaceDistance,
    experience_level: str,
    hm_pb_seconds: Optional[float] = None
) -> float:
    """
    Cap the projected index below time barriers the experience level does
    not support.

    A barrier is skipped when the baseline is already within BARRIER_MARGIN
    of its ceiling. A half-marathon PB under the waiver time lifts the
    sub-3 marathon barrier.
    """
    rank = EXPERIENCE_RANK.get(experience_level, EXPERIENCE_RANK['intermediate'])
    hm_pb = hm_pb_seconds if hm_pb_seconds else math.inf
    projected = baseline_vdot * (1 + improvement_pct / 100)

    for required_rank, ceiling, waiver in TIME_BARRIERS[distance]:
        if rank >= required_rank:
            continue
        if waiver is not None and hm_pb <= waiver:
            continue
        if baseline_vdot >= ceiling - BARRIER_MARGIN or projected <= ceiling:
            continue
        max_pct = (ceiling - baseline_vdot) / baseline_vdot * 100
        capped = min(improvement_pct, max(0.0, max_pct))
        if capped < improvement_pct:
            logger.debug("Capped %s projection at index %.1f (%s)",
                         distance.value, ceiling, experience_level)
        improvement_pct = capped

    return improvement_pct


def forecast(
    baseline_vdot: float,
    target_distance: Union[RaceDistance, str],
    weeks_remaining: float,
    sessions_per_week: float,
    runner_type: Union[RunnerType, str],
    ability_band: Optional[AbilityBand] = None,
    adaptation_ratio: Optional[float] = None,
    taper_weeks: float = 0,
    experience_level: Optional[str] = None,
    hm_pb_seconds: Optional[float] = None,
    params: Optional[HorizonParams] = None
) -> ForecastResult:
    """
    Forecast fitness index and race time at the end of the plan.

    A non-finite baseline gives NaN for both fields.
    """
    distance = RaceDistance.from_key(target_distance)
    if baseline_vdot is None or not math.isfinite(baseline_vdot):
        return ForecastResult(forecast_vdot=math.nan, forecast_time=math.nan)

    horizon = apply_training_horizon(
        baseline_vdot, distance, weeks_remaining, sessions_per_week, runner_type,
        ability_band=ability_band,
        adaptation_ratio=adaptation_ratio,
        taper_weeks=taper_weeks,
        experience_level=experience_level,
        hm_pb_seconds=hm_pb_seconds,
        params=params,
    )
    forecast_vdot = baseline_vdot * (1 + horizon.improvement_pct / 100)
    return ForecastResult(
        forecast_vdot=forecast_vdot,
        forecast_time=to_time(distance.meters, forecast_vdot),
    )


def live_forecast(
    current_vdot: float,
    target_distance: Union[RaceDistance, str],
    weeks_remaining: float,
    sessions_per_week: float,
    runner_type: Union[RunnerType, str],
    adaptation_ratio: Optional[float] = None,
    experience_level: Optional[str] = None,
    hm_pb_seconds: Optional[float] = None,
    params: Optional[HorizonParams] = None
) -> ForecastResult:
    """Forecast mid-plan with a taper of 15% of the remaining weeks (at least 1)."""
    taper = max(1, math.ceil(weeks_remaining * TAPER_FRACTION)) if weeks_remaining > 0 else 0
    return forecast(
        current_vdot, target_distance, weeks_remaining, sessions_per_week, runner_type,
        adaptation_ratio=adaptation_ratio,
        taper_weeks=taper,
        experience_level=experience_level,
        hm_pb_seconds=hm_pb_seconds,
        params=params,
    )


def calculate_skip_penalty(
    workout_type: str,
    distance: Union[RaceDistance, str],
    weeks_remaining: int,
    total_weeks: int,
    cumulative_skips: int
) -> int:
    """
    Seconds added to the forecast for skipping a workout.

    Skips close to race day and repeated skips cost more.

    Args:
        workout_type: Workout type ('long', 'threshold', ...)
        distance: Target race distance
        weeks_remaining: Weeks until race day
        total_weeks: Plan length
        cumulative_skips: Skips so far, including this one

    Returns:
        Penalty in whole seconds
    """
    distance = RaceDistance.from_key(distance)
    base = SKIP_TIME_IMPACT[distance].get(workout_type, DEFAULT_SKIP_IMPACT)

    weeks_out = min(weeks_remaining, total_weeks)
    if weeks_out >= 10:
        proximity = 0.5
    elif weeks_out >= 6:
        proximity = 0.8
    elif weeks_out >= 3:
        proximity = 1.2
    else:
        proximity = 1.5

    if cumulative_skips >= 4:
        skip_factor = 2.0 + (cumulative_skips - 4) * 0.3
    elif cumulative_skips == 3:
        skip_factor = 1.7
    elif cumulative_skips == 2:
        skip_factor = 1.3
    else:
        skip_factor = 1.0

    return int(math.floor(base * proximity * skip_factor + 0.5))


def _clamp_pct(pct: float, params: HorizonParams) -> float:
    return float(np.clip(pct, -params.max_slowdown_pct, params.max_gain_cap_pct))
