"""
Synthetic athlete generation for auditing the forecasting engine.

Every athlete is derived from a single anchor fitness index with explicit,
checkable formulas:
- PBs: T(d) = T_anchor * (d / d_anchor)^b   (Riegel power law)
- LT pace: one-hour race pace at base index + LT offset
- VO2max: base index + VO2 offset (the engine reads VO2max as an index)
- Recent race: race time at base index + recent offset
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
import math

import numpy as np

from forecasting.fatigue import (
    ENDURANCE_THRESHOLD,
    SPEED_THRESHOLD,
    classify_runner,
    estimate_fade_exponent,
    riegel_projection,
)
from forecasting.performance import pace_at_duration, to_fitness_index, to_time
from forecasting.types import PersonalBests, RaceDistance, RecentRace, RunnerType

B_TOLERANCE = 0.01
VDOT_TOLERANCE = 0.5
LT_DURATION_MINUTES = 60.0


@dataclass(frozen=True)
class RecentRaceConfig:
    """Recent race placed relative to the base index."""
    distance_km: float
    vdot_diff: float = 0.0
    weeks_ago: float = 0.0


@dataclass(frozen=True)
class SyntheticAthleteConfig:
    """Inputs that fully determine a synthetic athlete."""
    base_vdot: float
    b_target: float
    anchor_distance_km: float = 5.0
    lt_vdot_diff: Optional[float] = 0.0      # None: no LT measurement
    vo2_vdot_diff: Optional[float] = 0.0     # None: no VO2max measurement
    recent_race: Optional[RecentRaceConfig] = None


@dataclass
class SyntheticAthlete:
    """Generated athlete with the derivation of each value."""
    config: SyntheticAthleteConfig
    pbs: PersonalBests
    b_estimated: float
    runner_type: RunnerType
    lt_pace_sec_per_km: Optional[float]
    vo2max: Optional[float]
    recent_race: Optional[RecentRace]
    derivations: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CoherenceCheck:
    name: str
    passed: bool
    expected: Any
    actual: Any
    message: str
    tolerance: Optional[float] = None


@dataclass
class CoherenceReport:
    """Internal consistency of a synthetic athlete."""
    is_coherent: bool
    checks: List[CoherenceCheck]
    summary: str

    def failed(self) -> List[CoherenceCheck]:
        return [c for c in self.checks if not c.passed]


# ═══════════════════════════════════════════════════════════════════════════════
# ATHLETE GENERATION
# ═══════════════════════════════════════════════════════════════════════════════

def generate_pbs_from_anchor(
    anchor_time: float,
    anchor_distance_meters: float,
    b_target: float
) -> PersonalBests:
    """All four PBs projected from one anchor time with exponent b_target."""
    times = {
        distance: riegel_projection(anchor_time, anchor_distance_meters, distance.meters, b_target)
        for distance in RaceDistance
    }
    return PersonalBests(
        k5=times[RaceDistance.K5],
        k10=times[RaceDistance.K10],
        half=times[RaceDistance.HALF],
        marathon=times[RaceDistance.MARATHON],
    )


def create_synthetic_athlete(config: SyntheticAthleteConfig) -> SyntheticAthlete:
    """
    Build an athlete whose every input traces back to `config`.

    Args:
        config: Synthetic athlete configuration

    Returns:
        SyntheticAthlete with a derivation trail
    """
    derivations: Dict[str, str] = {}
    anchor_meters = config.anchor_distance_km * 1000

    anchor_time = to_time(anchor_meters, config.base_vdot)
    derivations['anchor_time'] = (
        f"to_time({anchor_meters:.0f}m, {config.base_vdot}) = {anchor_time:.2f}s"
    )

    pbs = generate_pbs_from_anchor(anchor_time, anchor_meters, config.b_target)
    for distance, seconds in pbs.present():
        derivations[f"pb_{distance.value}"] = (
            f"{anchor_time:.2f} * ({distance.meters:.0f}/{anchor_meters:.0f})"
            f"^{config.b_target} = {seconds:.2f}s"
        )

    b_estimated = estimate_fade_exponent(pbs)
    derivations['b_estimated'] = f"estimate_fade_exponent(pbs) = {b_estimated:.4f}"

    runner_type = classify_runner(b_estimated)
    derivations['runner_type'] = f"classify_runner({b_estimated:.4f}) = {runner_type.value}"

    lt_pace = None
    if config.lt_vdot_diff is not None:
        lt_vdot = config.base_vdot + config.lt_vdot_diff
        lt_pace = pace_at_duration(lt_vdot, LT_DURATION_MINUTES)
        derivations['lt_pace'] = (
            f"{LT_DURATION_MINUTES:.0f}min race pace at {lt_vdot} = {lt_pace:.2f}s/km"
        )

    vo2max = None
    if config.vo2_vdot_diff is not None:
        vo2max = config.base_vdot + config.vo2_vdot_diff
        derivations['vo2max'] = f"{config.base_vdot} + {config.vo2_vdot_diff} = {vo2max}"

    recent_race = None
    if config.recent_race is not None:
        recent = config.recent_race
        recent_vdot = config.base_vdot + recent.vdot_diff
        recent_time = to_time(recent.distance_km * 1000, recent_vdot)
        recent_race = RecentRace(
            distance_km=recent.distance_km,
            time_seconds=recent_time,
            weeks_ago=recent.weeks_ago,
        )
        derivations['recent_race'] = (
            f"to_time({recent.distance_km}km, {recent_vdot}) = {recent_time:.2f}s, "
            f"{recent.weeks_ago} weeks ago"
        )

    return SyntheticAthlete(
        config=config,
        pbs=pbs,
        b_estimated=b_estimated,
        runner_type=runner_type,
        lt_pace_sec_per_km=lt_pace,
        vo2max=vo2max,
        recent_race=recent_race,
        derivations=derivations,
    )


def coherence_report(athlete: SyntheticAthlete) -> CoherenceReport:
    """
    Check that a synthetic athlete is internally consistent.

    Checks:
    1. Estimated b within B_TOLERANCE of the target
    2. Index implied by the 5K PB within VDOT_TOLERANCE of the base
    3. Runner type agrees with the fade exponent (high fade = Speed)

    Implied indices for the other PBs are reported for information only.
    """
    config = athlete.config
    checks: List[CoherenceCheck] = []

    b_diff = abs(athlete.b_estimated - config.b_target)
    checks.append(CoherenceCheck(
        name='b_estimation',
        passed=b_diff <= B_TOLERANCE,
        expected=config.b_target,
        actual=athlete.b_estimated,
        tolerance=B_TOLERANCE,
        message=f"b estimated {athlete.b_estimated:.4f} vs target {config.b_target} "
                f"(diff {b_diff:.4f})",
    ))

    vdot_5k = to_fitness_index(RaceDistance.K5.meters, athlete.pbs.k5)
    vdot_diff = abs(vdot_5k - config.base_vdot)
    checks.append(CoherenceCheck(
        name='vdot_5k_coherence',
        passed=vdot_diff <= VDOT_TOLERANCE,
        expected=config.base_vdot,
        actual=vdot_5k,
        tolerance=VDOT_TOLERANCE,
        message=f"Index from 5K PB {vdot_5k:.2f} vs base {config.base_vdot} "
                f"(diff {vdot_diff:.2f})",
    ))

    for distance, seconds in athlete.pbs.present():
        if distance is RaceDistance.K5:
            continue
        implied = to_fitness_index(distance.meters, seconds)
        checks.append(CoherenceCheck(
            name=f"vdot_{distance.value}_implied",
            passed=True,
            expected=config.base_vdot,
            actual=implied,
            message=f"Index implied by {distance.value} PB: {implied:.2f} "
                    f"(diff {implied - config.base_vdot:+.2f})",
        ))

    expected_type = _semantic_type(athlete.b_estimated)
    checks.append(CoherenceCheck(
        name='runner_type_semantics',
        passed=expected_type is athlete.runner_type,
        expected=expected_type.value,
        actual=athlete.runner_type.value,
        message=f"b={athlete.b_estimated:.4f} classified as {athlete.runner_type.value}",
    ))

    failed = [c.name for c in checks if not c.passed]
    is_coherent = not failed
    summary = ("Synthetic athlete is coherent" if is_coherent
               else "Coherence issues: " + ", ".join(failed))
    return CoherenceReport(is_coherent=is_coherent, checks=checks, summary=summary)


def _semantic_type(b: float) -> RunnerType:
    # More fade means relatively stronger over short races
    if b > SPEED_THRESHOLD:
        return RunnerType.SPEED
    if b < ENDURANCE_THRESHOLD:
        return RunnerType.ENDURANCE
    return RunnerType.BALANCED


# ═══════════════════════════════════════════════════════════════════════════════
# RANDOM CONFIGURATIONS
# ═══════════════════════════════════════════════════════════════════════════════

def generate_athlete_configs(
    n: int = 20,
    seed: Optional[int] = None,
    vdot_range: tuple = (32.0, 65.0),
    b_range: tuple = (1.02, 1.18)
) -> List[SyntheticAthleteConfig]:
    """
    Random synthetic athlete configurations.

    Args:
        n: Number of configurations
        seed: Random seed for reproducibility
        vdot_range: Uniform range for the base index
        b_range: Uniform range for the fade exponent

    Returns:
        List of SyntheticAthleteConfig
    """
    rng = np.random.default_rng(seed)
    configs = []

    for _ in range(n):
        recent = None
        if rng.random() < 0.5:
            recent = RecentRaceConfig(
                distance_km=float(rng.choice([5.0, 10.0, 21.097])),
                vdot_diff=round(float(rng.normal(0, 1.5)), 1),
                weeks_ago=float(rng.integers(0, 12)),
            )

        configs.append(SyntheticAthleteConfig(
            base_vdot=round(float(rng.uniform(*vdot_range)), 1),
            b_target=round(float(rng.uniform(*b_range)), 3),
            lt_vdot_diff=round(float(rng.normal(0, 1.5)), 1),
            vo2_vdot_diff=round(float(rng.normal(0, 2.0)), 1),
            recent_race=recent,
        ))

    return configs


def format_time(seconds: Optional[float]) -> str:
    """Seconds as m:ss or h:mm:ss; 'N/A' for missing or non-finite input."""
    if seconds is None or not math.isfinite(seconds):
        return "N/A"
    total = int(seconds)
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)
    if h > 0:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"
