"""
Adaptive fitness forecasting for runners.

This package turns sparse performance inputs into:
- A single fitness index (VDOT-equivalent) blended from PBs, recent races, LT and VO2max
- Per-zone training paces
- An expected physiological trajectory for the training cycle
- A measured-vs-expected adaptation ratio and status
- A non-linear race-time forecast for the end of the plan

Every function is pure; tunable constants live in `params`.
"""

# Records and enums
from .types import (
    RaceDistance,
    RunnerType,
    AbilityBand,
    MeasurementSource,
    AdaptationStatus,
    PredictionSource,
    PersonalBests,
    RecentRace,
    Paces,
    PhysiologyMeasurement,
    ExpectedPhysiologyPoint,
    AssessmentResult,
    PhysiologyTrackingState,
    ForecastResult,
    is_usable,
)

# Parameters
from .params import (
    PaceZoneRatios,
    BlendParams,
    PhysiologyGains,
    AdaptationParams,
    HorizonParams,
    EngineParams,
    PHYSIOLOGY_GAINS,
    ADAPTATION_MESSAGES,
    PARAM_BOUNDS,
    load_params,
)

# Performance model
from .performance import (
    oxygen_cost,
    sustainable_fraction,
    to_fitness_index,
    to_time,
    pace_at_duration,
    resolve_distance_meters,
)

# Fade exponent and runner type
from .fatigue import (
    DEFAULT_FADE_EXPONENT,
    estimate_fade_exponent,
    classify_runner,
    riegel_projection,
)

# Pace zones
from .paces import (
    derive_paces,
    pace_for_zone,
)

# Prediction blending
from .predictions import (
    Candidate,
    SkipSummary,
    candidate_estimates,
    blend_predictions,
    blended_fitness_index,
    calculate_adherence_penalty,
)

# Physiology trajectory
from .physiology import (
    ability_band,
    expected_at,
    ExpectedTrajectory,
    generate_trajectory,
)

# Adaptation tracking
from .adaptation import (
    Deviation,
    ProjectedPhysiology,
    compute_ratio,
    classify_ratio,
    assess,
    initialize_tracking,
    record_measurement,
    compare_physiology,
    project_physiology,
)

# Training horizon
from .training_horizon import (
    HorizonComponents,
    HorizonResult,
    apply_training_horizon,
    forecast,
    live_forecast,
    calculate_skip_penalty,
)

__all__ = [
    # Records
    'RaceDistance',
    'RunnerType',
    'AbilityBand',
    'MeasurementSource',
    'AdaptationStatus',
    'PredictionSource',
    'PersonalBests',
    'RecentRace',
    'Paces',
    'PhysiologyMeasurement',
    'ExpectedPhysiologyPoint',
    'AssessmentResult',
    'PhysiologyTrackingState',
    'ForecastResult',
    'is_usable',
    # Parameters
    'PaceZoneRatios',
    'BlendParams',
    'PhysiologyGains',
    'AdaptationParams',
    'HorizonParams',
    'EngineParams',
    'PHYSIOLOGY_GAINS',
    'ADAPTATION_MESSAGES',
    'PARAM_BOUNDS',
    'load_params',
    # Performance
    'oxygen_cost',
    'sustainable_fraction',
    'to_fitness_index',
    'to_time',
    'pace_at_duration',
    'resolve_distance_meters',
    # Fatigue
    'DEFAULT_FADE_EXPONENT',
    'estimate_fade_exponent',
    'classify_runner',
    'riegel_projection',
    # Paces
    'derive_paces',
    'pace_for_zone',
    # Predictions
    'Candidate',
    'SkipSummary',
    'candidate_estimates',
    'blend_predictions',
    'blended_fitness_index',
    'calculate_adherence_penalty',
    # Physiology
    'ability_band',
    'expected_at',
    'ExpectedTrajectory',
    'generate_trajectory',
    # Adaptation
    'Deviation',
    'ProjectedPhysiology',
    'compute_ratio',
    'classify_ratio',
    'assess',
    'initialize_tracking',
    'record_measurement',
    'compare_physiology',
    'project_physiology',
    # Horizon
    'HorizonComponents',
    'HorizonResult',
    'apply_training_horizon',
    'forecast',
    'live_forecast',
    'calculate_skip_penalty',
]
