"""
Forecast matrix: scenario grid run through the real blender and forecaster.

Axes:
1. Fade exponent b: 1.03 (low fade), 1.09 (balanced), 1.15 (high fade)
2. LT index offset: -2, 0, +2
3. Recent race: none, fresh (2 weeks) at -2/0/+2, stale (6 weeks) at 0

Each scenario is forecast at 8, 12 and 16 weeks.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Dict, Any, Tuple

import pandas as pd

from forecasting.params import HorizonParams
from forecasting.performance import to_fitness_index, to_time
from forecasting.physiology import ability_band
from forecasting.predictions import blend_predictions, candidate_estimates
from forecasting.training_horizon import HorizonComponents, apply_training_horizon
from forecasting.types import RaceDistance

from .synthetic import (
    CoherenceReport,
    RecentRaceConfig,
    SyntheticAthlete,
    SyntheticAthleteConfig,
    coherence_report,
    create_synthetic_athlete,
)

FORECAST_WEEKS = (8, 12, 16)

B_TARGETS = ((1.03, 'low_fade'), (1.09, 'balanced'), (1.15, 'high_fade'))
LT_DIFFS = (-2, 0, 2)
RECENT_CONFIGS = (
    None,
    RecentRaceConfig(distance_km=10, vdot_diff=0, weeks_ago=2),
    RecentRaceConfig(distance_km=10, vdot_diff=2, weeks_ago=2),
    RecentRaceConfig(distance_km=10, vdot_diff=-2, weeks_ago=2),
    RecentRaceConfig(distance_km=10, vdot_diff=0, weeks_ago=6),
)


@dataclass(frozen=True)
class ForecastOutput:
    """Forecast for one plan length."""
    weeks_remaining: int
    vdot_gain: float
    improvement_pct: float
    forecast_vdot: float
    forecast_time: float
    components: HorizonComponents


@dataclass
class ScenarioResult:
    """One scenario through the full prediction pipeline."""
    scenario_id: str
    config: SyntheticAthleteConfig
    athlete: SyntheticAthlete
    coherence: CoherenceReport
    target_distance: RaceDistance
    blended_time: Optional[float]
    start_vdot: Optional[float]
    predictor_times: Dict[str, float] = field(default_factory=dict)
    forecasts: Dict[int, ForecastOutput] = field(default_factory=dict)


@dataclass
class MatrixOutput:
    """Complete matrix run."""
    timestamp: str
    target_distance: RaceDistance
    base_vdot: float
    sessions_per_week: float
    experience_level: str
    scenarios: List[ScenarioResult]


def generate_scenario_configs(base_vdot: float) -> List[Tuple[str, SyntheticAthleteConfig]]:
    """Every (b, LT offset, recent race) combination as (scenario_id, config)."""
    scenarios = []
    for b_target, b_label in B_TARGETS:
        for lt_diff in LT_DIFFS:
            for recent in RECENT_CONFIGS:
                if recent is None:
                    recent_label = 'no_recent'
                else:
                    recent_label = f"recent_{recent.weeks_ago:g}wk_diff{recent.vdot_diff:+g}"
                scenario_id = f"{b_label}_lt{lt_diff:+d}_{recent_label}"
                scenarios.append((scenario_id, SyntheticAthleteConfig(
                    base_vdot=base_vdot,
                    b_target=b_target,
                    lt_vdot_diff=lt_diff,
                    vo2_vdot_diff=0,
                    recent_race=recent,
                )))
    return scenarios


def run_forecast(
    start_vdot: float,
    target_distance: RaceDistance,
    weeks_remaining: int,
    sessions_per_week: float,
    runner_type,
    experience_level: str,
    params: Optional[HorizonParams] = None
) -> ForecastOutput:
    """Forecast with the distance's nominal taper length."""
    if params is None:
        params = HorizonParams()

    horizon = apply_training_horizon(
        start_vdot,
        target_distance,
        weeks_remaining,
        sessions_per_week,
        runner_type,
        ability_band=ability_band(start_vdot),
        taper_weeks=params.taper_nominal_weeks[target_distance],
        experience_level=experience_level,
        params=params,
    )
    forecast_vdot = start_vdot + horizon.vdot_gain
    return ForecastOutput(
        weeks_remaining=weeks_remaining,
        vdot_gain=horizon.vdot_gain,
        improvement_pct=horizon.improvement_pct,
        forecast_vdot=forecast_vdot,
        forecast_time=to_time(target_distance.meters, forecast_vdot),
        components=horizon.components,
    )


def run_scenario(
    scenario_id: str,
    config: SyntheticAthleteConfig,
    target_distance: RaceDistance,
    sessions_per_week: float,
    experience_level: str
) -> ScenarioResult:
    """
    Run one scenario: synthetic athlete -> blend -> start index -> forecasts.

    Args:
        scenario_id: Label for the scenario
        config: Synthetic athlete configuration
        target_distance: Target race distance
        sessions_per_week: Planned sessions per week
        experience_level: Experience level for the horizon guardrails

    Returns:
        ScenarioResult
    """
    target_distance = RaceDistance.from_key(target_distance)
    athlete = create_synthetic_athlete(config)

    inputs = dict(
        pbs=athlete.pbs,
        lt_pace=athlete.lt_pace_sec_per_km,
        vo2max=athlete.vo2max,
        fade_exponent=athlete.b_estimated,
        runner_type=athlete.runner_type,
        recent_race=athlete.recent_race,
    )
    blended = blend_predictions(target_distance, **inputs)
    predictor_times = {
        c.label: c.time_seconds for c in candidate_estimates(target_distance, **inputs)
    }

    start_vdot = None
    forecasts = {}
    if blended is not None:
        start_vdot = to_fitness_index(target_distance.meters, blended)
        forecasts = {
            weeks: run_forecast(start_vdot, target_distance, weeks, sessions_per_week,
                                athlete.runner_type, experience_level)
            for weeks in FORECAST_WEEKS
        }

    return ScenarioResult(
        scenario_id=scenario_id,
        config=config,
        athlete=athlete,
        coherence=coherence_report(athlete),
        target_distance=target_distance,
        blended_time=blended,
        start_vdot=start_vdot,
        predictor_times=predictor_times,
        forecasts=forecasts,
    )


def run_matrix(
    target_distance: RaceDistance = RaceDistance.K5,
    base_vdot: float = 45.0,
    sessions_per_week: float = 4,
    experience_level: str = 'intermediate',
    verbose: bool = False
) -> MatrixOutput:
    """Run every scenario in the grid."""
    target_distance = RaceDistance.from_key(target_distance)
    configs = generate_scenario_configs(base_vdot)

    if verbose:
        print(f"Running {len(configs)} scenarios for {target_distance.value} "
              f"at base index {base_vdot}")

    scenarios = [
        run_scenario(scenario_id, config, target_distance, sessions_per_week, experience_level)
        for scenario_id, config in configs
    ]

    return MatrixOutput(
        timestamp=datetime.now().isoformat(timespec='seconds'),
        target_distance=target_distance,
        base_vdot=base_vdot,
        sessions_per_week=sessions_per_week,
        experience_level=experience_level,
        scenarios=scenarios,
    )


def matrix_to_frame(output: MatrixOutput) -> pd.DataFrame:
    """One row per scenario with inputs, blend and forecasts."""
    rows = []
    for s in output.scenarios:
        row: Dict[str, Any] = {
            'scenario': s.scenario_id,
            'b_target': s.config.b_target,
            'b_estimated': s.athlete.b_estimated,
            'runner_type': s.athlete.runner_type.value,
            'lt_vdot_diff': s.config.lt_vdot_diff,
            'recent_weeks_ago': s.config.recent_race.weeks_ago if s.config.recent_race else None,
            'recent_vdot_diff': s.config.recent_race.vdot_diff if s.config.recent_race else None,
            'pb_5k': s.athlete.pbs.k5,
            'lt_pace': s.athlete.lt_pace_sec_per_km,
            'blended_time': s.blended_time,
            'start_vdot': s.start_vdot,
            'coherent': s.coherence.is_coherent,
        }
        for weeks in FORECAST_WEEKS:
            fc = s.forecasts.get(weeks)
            row[f'forecast_vdot_{weeks}w'] = fc.forecast_vdot if fc else None
            row[f'forecast_time_{weeks}w'] = fc.forecast_time if fc else None
        rows.append(row)

    return pd.DataFrame(rows)
