"""Analysis and visualization utilities."""

from .visualizations import (
    plot_physiology_trajectory,
    plot_forecast_curve,
    plot_ratio_trajectories,
)
from .reports import generate_matrix_report, generate_simulation_report

__all__ = [
    'plot_physiology_trajectory',
    'plot_forecast_curve',
    'plot_ratio_trajectories',
    'generate_matrix_report',
    'generate_simulation_report',
]
