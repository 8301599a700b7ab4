"""
Visualization utilities for forecasting analysis.

Provides charts for:
- Expected physiology trajectory with measurements
- Forecast index versus plan length
- Adaptation ratio trajectories from simulations
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np
import matplotlib.pyplot as plt

from forecasting.physiology import ExpectedTrajectory
from forecasting.training_horizon import forecast
from forecasting.types import PhysiologyMeasurement, RaceDistance, RunnerType
from simulation.engine import SimulationResult


def plot_physiology_trajectory(
    trajectory: ExpectedTrajectory,
    measurements: Optional[Sequence[PhysiologyMeasurement]] = None,
    metric: str = 'lt',
    title: Optional[str] = None,
    figsize: Tuple[int, int] = (10, 6),
    ax: Optional[plt.Axes] = None
) -> plt.Figure:
    """
    Plot the expected trajectory band for one metric, with measurements.

    Args:
        trajectory: Expected trajectory
        measurements: Observed measurements to overlay
        metric: 'lt' (pace, s/km) or 'vo2'
        title: Plot title
        figsize: Figure size
        ax: Optional existing axes

    Returns:
        Matplotlib figure
    """
    if metric not in ('lt', 'vo2'):
        raise ValueError(f"metric must be 'lt' or 'vo2', got '{metric}'")

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.get_figure()

    points = list(trajectory)
    weeks = np.array([p.week for p in points])

    def column(attr):
        return np.array([getattr(p, attr) if getattr(p, attr) is not None else np.nan
                         for p in points], dtype=float)

    expected = column(f'expected_{metric}')
    lower = column(f'{metric}_lower_bound')
    upper = column(f'{metric}_upper_bound')

    ax.fill_between(weeks, lower, upper, alpha=0.2, color='blue', label='Confidence band')
    ax.plot(weeks, expected, 'b-', linewidth=2, label='Expected')

    if measurements:
        attr = 'lt_pace_sec_per_km' if metric == 'lt' else 'vo2max'
        observed = [(m.week, getattr(m, attr)) for m in measurements
                    if getattr(m, attr) is not None]
        if observed:
            mw, mv = zip(*observed)
            ax.scatter(mw, mv, color='black', zorder=3, label='Measured')

    if metric == 'lt':
        ax.set_ylabel('LT pace (s/km)')
        ax.invert_yaxis()
    else:
        ax.set_ylabel('VO2max (ml/kg/min)')

    ax.set_xlabel('Week')
    ax.set_title(title or f"Expected {metric.upper()} trajectory")
    ax.legend(loc='best')
    ax.grid(True, alpha=0.3)

    return fig


def plot_forecast_curve(
    baseline_vdot: float,
    target_distance: RaceDistance,
    sessions_per_week: float = 4,
    runner_type: RunnerType = RunnerType.BALANCED,
    max_weeks: int = 24,
    adaptation_ratios: Sequence[float] = (0.7, 1.0, 1.5),
    title: Optional[str] = None,
    figsize: Tuple[int, int] = (10, 6),
    ax: Optional[plt.Axes] = None
) -> plt.Figure:
    """
    Plot forecast index against plan length for several adaptation ratios.

    Args:
        baseline_vdot: Current fitness index
        target_distance: Target race distance
        sessions_per_week: Planned sessions per week
        runner_type: Runner type
        max_weeks: Longest plan to plot
        adaptation_ratios: One curve per ratio
        title: Plot title
        figsize: Figure size
        ax: Optional existing axes

    Returns:
        Matplotlib figure
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.get_figure()

    weeks = np.arange(1, max_weeks + 1)
    for ratio in adaptation_ratios:
        vdots = [
            forecast(baseline_vdot, target_distance, w, sessions_per_week, runner_type,
                     adaptation_ratio=ratio).forecast_vdot
            for w in weeks
        ]
        ax.plot(weeks, vdots, linewidth=2, label=f'ratio {ratio:.1f}')

    ax.axhline(baseline_vdot, color='gray', linestyle='--', linewidth=1, label='Baseline')
    ax.set_xlabel('Weeks to race')
    ax.set_ylabel('Forecast index')
    ax.set_title(title or f"Forecast for {RaceDistance.from_key(target_distance).value}")
    ax.legend(loc='lower right')
    ax.grid(True, alpha=0.3)

    return fig


def plot_ratio_trajectories(
    results: List[SimulationResult],
    title: str = "Adaptation Ratio Over Time",
    figsize: Tuple[int, int] = (12, 6),
    show_zones: bool = True,
    ax: Optional[plt.Axes] = None
) -> plt.Figure:
    """
    Plot adaptation ratio trajectories with status zones.

    Args:
        results: Simulation results
        title: Plot title
        figsize: Figure size
        show_zones: Shade the status bands
        ax: Optional existing axes

    Returns:
        Matplotlib figure
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.get_figure()

    if show_zones:
        ax.axhspan(0.3, 0.5, alpha=0.1, color='red', label='Concerning')
        ax.axhspan(0.5, 0.7, alpha=0.1, color='orange', label='Slow')
        ax.axhspan(0.7, 1.3, alpha=0.1, color='green', label='On track')
        ax.axhspan(1.3, 1.5, alpha=0.1, color='cyan', label='Good')
        ax.axhspan(1.5, 2.0, alpha=0.1, color='blue', label='Excellent')

    for result in results:
        traj = result.get_ratio_trajectory()
        ax.plot(range(1, len(traj) + 1), traj, alpha=0.6, linewidth=1)

    ax.set_xlabel('Week')
    ax.set_ylabel('Adaptation ratio')
    ax.set_title(title)
    ax.set_ylim(0.3, 2.0)
    ax.legend(loc='upper right')
    ax.grid(True, alpha=0.3)

    return fig
