"""
Simulation Engine: week-by-week replay of adaptation tracking.

Simulates athletes whose true response to training is known, feeds noisy
LT/VO2max measurements through the tracker, and records how the adaptation
ratio, assessment status and live forecast evolve.
"""

from dataclasses import dataclass
from typing import List, Optional, Dict, Any
from collections import Counter

import numpy as np

from forecasting.adaptation import initialize_tracking, record_measurement
from forecasting.params import AdaptationParams, HorizonParams
from forecasting.performance import pace_at_duration
from forecasting.physiology import expected_at, gains_for
from forecasting.training_horizon import live_forecast
from forecasting.types import (
    AdaptationStatus,
    MeasurementSource,
    PhysiologyMeasurement,
    RaceDistance,
    RunnerType,
)


@dataclass
class ResponderProfile:
    """
    Athlete with a known training response.

    `responsiveness` scales the band's expected weekly gains: 1.0 adapts
    exactly as expected, 1.5 adapts 50% faster.
    """
    id: str
    name: str
    baseline_vdot: float
    responsiveness: float
    initial_lt: Optional[float] = None      # s/km; derived from baseline if None
    initial_vo2: Optional[float] = None     # derived from baseline if None
    lt_noise_pct: float = 1.0               # Measurement noise (1 SD, % of value)
    vo2_noise_pct: float = 1.5
    measurement_interval: int = 2           # Weeks between measurements
    target_distance: RaceDistance = RaceDistance.HALF
    sessions_per_week: float = 4
    runner_type: RunnerType = RunnerType.BALANCED

    def __post_init__(self):
        if self.initial_lt is None:
            self.initial_lt = pace_at_duration(self.baseline_vdot, 60.0)
        if self.initial_vo2 is None:
            self.initial_vo2 = self.baseline_vdot


@dataclass
class WeeklySnapshot:
    """Tracking state for one week."""
    week: int
    true_lt: float
    true_vo2: float
    expected_lt: Optional[float]
    expected_vo2: Optional[float]
    measured_lt: Optional[float]        # None on weeks without a measurement
    measured_vo2: Optional[float]
    adaptation_ratio: float
    status: AdaptationStatus
    forecast_vdot: float
    forecast_time: float


@dataclass
class SimulationResult:
    """Complete results from one simulation run."""
    profile_id: str
    profile_name: str
    true_responsiveness: float
    weeks: List[WeeklySnapshot]

    final_ratio: float
    ratio_error: float                  # final ratio - clamped true responsiveness
    final_status: AdaptationStatus
    n_measurements: int

    initial_forecast_vdot: float
    final_forecast_vdot: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for analysis."""
        return {
            'profile_id': self.profile_id,
            'profile_name': self.profile_name,
            'true_responsiveness': self.true_responsiveness,
            'final_ratio': self.final_ratio,
            'ratio_error': self.ratio_error,
            'final_status': self.final_status.value,
            'n_measurements': self.n_measurements,
            'initial_forecast_vdot': self.initial_forecast_vdot,
            'final_forecast_vdot': self.final_forecast_vdot,
            'weeks_simulated': len(self.weeks),
        }

    def get_ratio_trajectory(self) -> np.ndarray:
        """Get array of weekly adaptation ratios."""
        return np.array([w.adaptation_ratio for w in self.weeks])

    def get_forecast_trajectory(self) -> np.ndarray:
        """Get array of weekly forecast indices."""
        return np.array([w.forecast_vdot for w in self.weeks])


class AdaptationSimulator:
    """
    Engine for replaying adaptation tracking.

    Randomness is confined to measurement noise; the tracker and the
    forecaster see only the noisy measurements.
    """

    def __init__(
        self,
        params: Optional[AdaptationParams] = None,
        verbose: bool = False,
        horizon_params: Optional[HorizonParams] = None
    ):
        """
        Initialize simulator.

        Args:
            params: Adaptation parameters (uses defaults if None)
            verbose: Print progress during simulation
            horizon_params: Forecast parameters (uses defaults if None)
        """
        self.params = params or AdaptationParams()
        self.horizon_params = horizon_params or HorizonParams()
        self.verbose = verbose

    def run_simulation(
        self,
        profile: ResponderProfile,
        num_weeks: int = 16,
        seed: Optional[int] = None
    ) -> SimulationResult:
        """
        Run full simulation for one athlete.

        Args:
            profile: Athlete to simulate
            num_weeks: Plan length in weeks
            seed: Random seed for reproducibility

        Returns:
            SimulationResult with weekly snapshots
        """
        rng = np.random.default_rng(seed)
        gains = gains_for(profile.baseline_vdot)
        state = initialize_tracking(
            profile.initial_lt, profile.initial_vo2, profile.baseline_vdot, self.params
        )
        snapshots = []

        if self.verbose:
            print(f"Simulating {profile.name}: {num_weeks} weeks")
            print(f"  Baseline: {profile.baseline_vdot:.1f}, "
                  f"true responsiveness: {profile.responsiveness:.2f}")

        for week in range(1, num_weeks + 1):
            elapsed = week - 1
            true_lt = profile.initial_lt * (1 - gains.lt_weekly_gain * profile.responsiveness) ** elapsed
            true_vo2 = profile.initial_vo2 * (1 + gains.vo2_weekly_gain * profile.responsiveness) ** elapsed

            measured_lt = measured_vo2 = None
            if week > 1 and week % profile.measurement_interval == 0:
                measured_lt = true_lt * (1 + rng.normal(0, profile.lt_noise_pct / 100))
                measured_vo2 = true_vo2 * (1 + rng.normal(0, profile.vo2_noise_pct / 100))
                state = record_measurement(state, PhysiologyMeasurement(
                    week=week,
                    lt_pace_sec_per_km=measured_lt,
                    vo2max=measured_vo2,
                    source=MeasurementSource.WATCH,
                ), self.params)

            expected = expected_at(
                profile.initial_lt, profile.initial_vo2, week, profile.baseline_vdot
            )
            status = (state.last_assessment.status if state.last_assessment is not None
                      else AdaptationStatus.NEEDS_DATA)
            # Race-day forecast for the full plan, moved only by the ratio
            result = live_forecast(
                profile.baseline_vdot,
                profile.target_distance,
                num_weeks,
                profile.sessions_per_week,
                profile.runner_type,
                adaptation_ratio=state.current_adaptation_ratio,
                params=self.horizon_params,
            )

            snapshots.append(WeeklySnapshot(
                week=week,
                true_lt=true_lt,
                true_vo2=true_vo2,
                expected_lt=expected.expected_lt,
                expected_vo2=expected.expected_vo2,
                measured_lt=measured_lt,
                measured_vo2=measured_vo2,
                adaptation_ratio=state.current_adaptation_ratio,
                status=status,
                forecast_vdot=result.forecast_vdot,
                forecast_time=result.forecast_time,
            ))

            if self.verbose and measured_lt is not None and week % 4 == 0:
                print(f"  Week {week}: ratio={state.current_adaptation_ratio:.2f} "
                      f"({status.value}), forecast={result.forecast_vdot:.1f}")

        return self._calculate_summary(profile, snapshots, len(state.measurements))

    def _calculate_summary(
        self,
        profile: ResponderProfile,
        weeks: List[WeeklySnapshot],
        n_measurements: int
    ) -> SimulationResult:
        """Calculate summary metrics from weekly data."""
        final = weeks[-1] if weeks else None
        final_ratio = final.adaptation_ratio if final else self.params.default_ratio
        attainable = float(np.clip(
            profile.responsiveness, self.params.min_ratio, self.params.max_ratio
        ))

        return SimulationResult(
            profile_id=profile.id,
            profile_name=profile.name,
            true_responsiveness=profile.responsiveness,
            weeks=weeks,
            final_ratio=final_ratio,
            ratio_error=final_ratio - attainable,
            final_status=final.status if final else AdaptationStatus.NEEDS_DATA,
            n_measurements=n_measurements,
            initial_forecast_vdot=weeks[0].forecast_vdot if weeks else float('nan'),
            final_forecast_vdot=final.forecast_vdot if final else float('nan'),
        )

    def run_batch(
        self,
        profiles: List[ResponderProfile],
        num_weeks: int = 16,
        seed: Optional[int] = None
    ) -> List[SimulationResult]:
        """
        Run simulations for multiple athletes.

        Args:
            profiles: Athletes to simulate
            num_weeks: Weeks per simulation
            seed: Base random seed

        Returns:
            List of SimulationResult objects
        """
        results = []
        for i, profile in enumerate(profiles):
            profile_seed = seed + i if seed is not None else None
            results.append(self.run_simulation(profile, num_weeks, seed=profile_seed))
        return results


def generate_responder_profiles(
    n_profiles: int = 20,
    seed: Optional[int] = None
) -> List[ResponderProfile]:
    """
    Athletes spread across ability bands and response rates.

    Responsiveness is log-normal around 1.0 so slow and fast responders are
    equally likely.
    """
    rng = np.random.default_rng(seed)
    profiles = []

    for i in range(n_profiles):
        baseline = round(float(rng.uniform(32.0, 65.0)), 1)
        responsiveness = round(float(np.exp(rng.normal(0, 0.35))), 2)
        profiles.append(ResponderProfile(
            id=f"R{i + 1:03d}",
            name=f"Responder {i + 1}",
            baseline_vdot=baseline,
            responsiveness=responsiveness,
            target_distance=list(RaceDistance)[int(rng.integers(len(RaceDistance)))],
            sessions_per_week=int(rng.integers(3, 7)),
        ))

    return profiles


def aggregate_results(results: List[SimulationResult]) -> Dict[str, Any]:
    """
    Aggregate metrics across multiple simulation results.

    Args:
        results: List of SimulationResult objects

    Returns:
        Dictionary of aggregated metrics
    """
    if not results:
        return {}

    n = len(results)
    final_ratios = [r.final_ratio for r in results]
    errors = [r.ratio_error for r in results]
    statuses = Counter(r.final_status.value for r in results)

    # Ratio lands on the same side of 1.0 as the true responsiveness
    direction_hits = sum(
        1 for r in results
        if np.sign(r.final_ratio - 1.0) == np.sign(r.true_responsiveness - 1.0)
    )

    return {
        'n_simulations': n,

        # Ratio recovery
        'mean_final_ratio': float(np.mean(final_ratios)),
        'std_final_ratio': float(np.std(final_ratios)),
        'mean_abs_ratio_error': float(np.mean(np.abs(errors))),
        'max_abs_ratio_error': float(np.max(np.abs(errors))),
        'pct_direction_correct': direction_hits / n * 100,

        # Status distribution
        'status_counts': dict(statuses),

        # Forecast movement
        'mean_forecast_shift': float(np.mean(
            [r.final_forecast_vdot - r.initial_forecast_vdot for r in results]
        )),
    }
