"""
Race-time prediction from heterogeneous fitness signals.

Blends four kinds of evidence into one estimate for the target distance:
- Personal bests, projected with the athlete's fade exponent
- A recent race or time trial, discounted as it ages
- Lactate-threshold pace, scaled by a distance/runner-type multiplier
- VO2max, read directly as a fitness index

Candidates are averaged in fitness-index space and the mean index is turned
back into a time, so that averaging does not bias toward slow estimates.
"""

from dataclasses import dataclass
from typing import Optional, Dict, List, Union
import logging
import math

import numpy as np

from .fatigue import classify_runner, estimate_fade_exponent, riegel_projection
from .params import BlendParams
from .performance import resolve_distance_meters, to_fitness_index, to_time
from .types import (
    PersonalBests,
    PredictionSource,
    RaceDistance,
    RecentRace,
    RunnerType,
    is_usable,
)

logger = logging.getLogger(__name__)

DistanceLike = Union[RaceDistance, str, float, int]


@dataclass(frozen=True)
class Candidate:
    """One source's estimate at the target distance."""
    source: PredictionSource
    label: str
    time_seconds: float
    fitness_index: float
    weight: float


@dataclass(frozen=True)
class SkipSummary:
    """Workout adherence over a training block."""
    missed_long_runs: int = 0
    missed_quality_workouts: int = 0
    completed_workouts: int = 0
    total_workouts: int = 0


def recency_factor(weeks_ago: float, params: Optional[BlendParams] = None) -> float:
    """Confidence multiplier for a recent race that is `weeks_ago` old."""
    if params is None:
        params = BlendParams()
    weeks_ago = weeks_ago or 0
    for max_weeks, factor in params.recency_steps:
        if weeks_ago <= max_weeks:
            return factor
    return params.stale_recency_factor


def source_weights(
    target: RaceDistance,
    recent_race: Optional[RecentRace],
    params: Optional[BlendParams] = None
) -> Dict[PredictionSource, float]:
    """
    Base weight per source for the target distance.

    When a recent race is present its weight decays with age; the removed
    share moves to LT (70%) and PBs (30%).
    """
    if params is None:
        params = BlendParams()

    has_recent = _has_recent(recent_race)
    table = params.weights_with_recent if has_recent else params.weights_without_recent
    weights = dict(table[target])

    if has_recent:
        factor = recency_factor(recent_race.weeks_ago, params)
        if factor < 1.0:
            removed = weights[PredictionSource.RECENT] * (1 - factor)
            weights[PredictionSource.RECENT] -= removed
            weights[PredictionSource.LT] += removed * params.recency_share_to_lt
            weights[PredictionSource.PB] += removed * (1 - params.recency_share_to_lt)

    return weights


def predict_from_pbs(
    target_meters: float,
    pbs: Optional[PersonalBests],
    b: float,
    params: Optional[BlendParams] = None
) -> Dict[RaceDistance, float]:
    """Every PB projected to the target distance, keyed by PB distance."""
    if params is None:
        params = BlendParams()
    if pbs is None:
        return {}
    safe_b = min(b, params.pb_fade_cap)
    return {
        distance: riegel_projection(seconds, distance.meters, target_meters, safe_b)
        for distance, seconds in pbs.present()
    }


def predict_from_recent(
    target_meters: float,
    recent_race: Optional[RecentRace],
    b: float,
    params: Optional[BlendParams] = None
) -> Optional[float]:
    """Recent race projected to the target distance."""
    if params is None:
        params = BlendParams()
    if not _has_recent(recent_race):
        return None
    safe_b = min(b, params.recent_fade_cap)
    return riegel_projection(
        recent_race.time_seconds, recent_race.distance_meters, target_meters, safe_b
    )


def predict_from_lt(
    target_meters: float,
    lt_pace: Optional[float],
    runner_type: RunnerType,
    params: Optional[BlendParams] = None
) -> Optional[float]:
    """Race time from LT pace: pace x km x distance/type multiplier."""
    if params is None:
        params = BlendParams()
    if not is_usable(lt_pace):
        return None
    multiplier = params.lt_multipliers[RaceDistance.nearest(target_meters)][runner_type]
    return lt_pace * (target_meters / 1000.0) * multiplier


def predict_from_vo2(target_meters: float, vo2max: Optional[float]) -> Optional[float]:
    """Race time treating VO2max as the fitness index."""
    if not is_usable(vo2max):
        return None
    return to_time(target_meters, vo2max)


def candidate_estimates(
    target_distance: DistanceLike,
    pbs: Optional[PersonalBests],
    lt_pace: Optional[float] = None,
    vo2max: Optional[float] = None,
    fade_exponent: Optional[float] = None,
    runner_type: Optional[Union[RunnerType, str]] = None,
    recent_race: Optional[RecentRace] = None,
    params: Optional[BlendParams] = None
) -> List[Candidate]:
    """
    Per-source estimates at the target distance with their blend weights.

    The PB weight is split across PBs in proportion to how close each PB
    distance is to the target (in log distance).
    """
    if params is None:
        params = BlendParams()

    target_meters = resolve_distance_meters(target_distance)
    target = RaceDistance.nearest(target_meters)

    b = fade_exponent if is_usable(fade_exponent) else estimate_fade_exponent(pbs)
    if runner_type is None:
        runner_type = classify_runner(b)
    else:
        runner_type = RunnerType.from_key(runner_type)

    weights = source_weights(target, recent_race, params)
    candidates: List[Candidate] = []

    pb_times = predict_from_pbs(target_meters, pbs, b, params)
    if pb_times:
        proximity = {
            d: 1.0 / (1.0 + abs(math.log(target_meters / d.meters)))
            for d in pb_times
        }
        total = sum(proximity.values())
        for distance, seconds in pb_times.items():
            candidates.append(_candidate(
                PredictionSource.PB, f"{distance.value} PB", target_meters, seconds,
                weights[PredictionSource.PB] * proximity[distance] / total,
            ))

    recent_time = predict_from_recent(target_meters, recent_race, b, params)
    if recent_time is not None:
        candidates.append(_candidate(
            PredictionSource.RECENT, "recent race", target_meters, recent_time,
            weights[PredictionSource.RECENT],
        ))

    lt_time = predict_from_lt(target_meters, lt_pace, runner_type, params)
    if lt_time is not None:
        candidates.append(_candidate(
            PredictionSource.LT, "LT pace", target_meters, lt_time,
            weights[PredictionSource.LT],
        ))

    vo2_time = predict_from_vo2(target_meters, vo2max)
    if vo2_time is not None:
        candidates.append(Candidate(
            PredictionSource.VO2, "VO2max", vo2_time, float(vo2max),
            weights[PredictionSource.VO2],
        ))

    return [c for c in candidates if math.isfinite(c.fitness_index) and c.weight > 0]


def blend_predictions(
    target_distance: DistanceLike,
    pbs: Optional[PersonalBests],
    lt_pace: Optional[float] = None,
    vo2max: Optional[float] = None,
    fade_exponent: Optional[float] = None,
    runner_type: Optional[Union[RunnerType, str]] = None,
    recent_race: Optional[RecentRace] = None,
    params: Optional[BlendParams] = None
) -> Optional[float]:
    """
    Blend every available source into one race-time estimate.

    Args:
        target_distance: RaceDistance, distance key, or meters
        pbs: Personal bests
        lt_pace: LT pace (s/km)
        vo2max: VO2max (ml/kg/min), read as a fitness index
        fade_exponent: Individual fade exponent (estimated from PBs if None)
        runner_type: Runner type (classified from the fade exponent if None)
        recent_race: Recent race or time trial
        params: Blend parameters (uses defaults if None)

    Returns:
        Predicted time in seconds, or None when no source is usable
    """
    candidates = candidate_estimates(
        target_distance, pbs, lt_pace, vo2max, fade_exponent,
        runner_type, recent_race, params,
    )
    if not candidates:
        logger.debug("No usable prediction source for %s", target_distance)
        return None

    blended_index = blended_fitness_index(candidates)
    return to_time(resolve_distance_meters(target_distance), blended_index)


def blended_fitness_index(candidates: List[Candidate]) -> float:
    """Confidence-weighted mean fitness index of the candidates."""
    if not candidates:
        return math.nan
    return float(np.average(
        [c.fitness_index for c in candidates],
        weights=[c.weight for c in candidates],
    ))


def calculate_adherence_penalty(summary: SkipSummary) -> float:
    """
    Race-time multiplier for skipped training.

    Long runs: +0.5% per miss. Quality workouts: +0.3% per miss.
    Adherence below 80%: +2% overall.

    Returns:
        Multiplier on predicted time (e.g. 1.02 = 2% slower)
    """
    penalty_pct = summary.missed_long_runs * 0.5
    penalty_pct += summary.missed_quality_workouts * 0.3

    if summary.total_workouts > 0:
        adherence = summary.completed_workouts / summary.total_workouts
        if adherence < 0.8:
            penalty_pct += 2.0

    return 1 + penalty_pct / 100


def _has_recent(recent_race: Optional[RecentRace]) -> bool:
    return (recent_race is not None
            and is_usable(recent_race.time_seconds)
            and is_usable(recent_race.distance_km))


def _candidate(
    source: PredictionSource,
    label: str,
    target_meters: float,
    seconds: float,
    weight: float
) -> Candidate:
    return Candidate(
        source=source,
        label=label,
        time_seconds=seconds,
        fitness_index=to_fitness_index(target_meters, seconds),
        weight=weight,
    )
