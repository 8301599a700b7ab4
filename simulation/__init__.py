"""Synthetic athletes, adaptation simulation and forecast auditing."""

from .synthetic import (
    SyntheticAthleteConfig,
    SyntheticAthlete,
    RecentRaceConfig,
    create_synthetic_athlete,
    coherence_report,
    generate_athlete_configs,
    format_time,
)
from .engine import (
    ResponderProfile,
    AdaptationSimulator,
    SimulationResult,
    generate_responder_profiles,
    aggregate_results,
)
from .forecast_matrix import (
    MatrixOutput,
    run_scenario,
    run_matrix,
    matrix_to_frame,
)
from .sensitivity import run_sensitivity_analysis, sweep_values

__all__ = [
    'SyntheticAthleteConfig',
    'SyntheticAthlete',
    'RecentRaceConfig',
    'create_synthetic_athlete',
    'coherence_report',
    'generate_athlete_configs',
    'format_time',
    'ResponderProfile',
    'AdaptationSimulator',
    'SimulationResult',
    'generate_responder_profiles',
    'aggregate_results',
    'MatrixOutput',
    'run_scenario',
    'run_matrix',
    'matrix_to_frame',
    'run_sensitivity_analysis',
    'sweep_values',
]
