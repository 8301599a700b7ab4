"""
One-at-a-time parameter sensitivity for adaptation tracking and forecasting.

Sweeps a single adaptation or horizon parameter across its PARAM_BOUNDS range,
replays a fixed set of responders for each value, and scores how well the
tracker recovers the true responsiveness and how far the forecast moves.
"""

from dataclasses import fields, replace
from typing import List, Optional, Dict, Any, Sequence

import numpy as np

from forecasting.params import PARAM_BOUNDS, AdaptationParams, EngineParams, HorizonParams

from .engine import (
    AdaptationSimulator,
    ResponderProfile,
    aggregate_results,
    generate_responder_profiles,
)


def param_group(param_name: str) -> str:
    """Parameter group ('adaptation' or 'horizon') that owns `param_name`."""
    for group, cls in (('adaptation', AdaptationParams), ('horizon', HorizonParams)):
        if param_name in {f.name for f in fields(cls)}:
            return group
    raise ValueError(f"Unknown sensitivity parameter '{param_name}'")


def sweep_values(param_name: str, n_points: int = 5) -> List[float]:
    """Evenly spaced values across the parameter's bounds."""
    if param_name not in PARAM_BOUNDS:
        raise ValueError(f"No bounds defined for '{param_name}'")
    low, high = PARAM_BOUNDS[param_name]
    return [float(v) for v in np.linspace(low, high, n_points)]


def run_sensitivity_analysis(
    param_name: str,
    values: Optional[Sequence[float]] = None,
    profiles: Optional[List[ResponderProfile]] = None,
    base_params: Optional[EngineParams] = None,
    num_weeks: int = 16,
    seed: int = 42
) -> List[Dict[str, Any]]:
    """
    Run sensitivity analysis for a single parameter.

    Args:
        param_name: Name of parameter to vary
        values: Values to test (evenly spaced over PARAM_BOUNDS if None)
        profiles: Responders to replay (20 generated from `seed` if None)
        base_params: Base parameter set
        num_weeks: Simulation weeks
        seed: Random seed

    Returns:
        List of results for each value
    """
    base_params = base_params or EngineParams()
    group = param_group(param_name)
    if values is None:
        values = sweep_values(param_name)
    if profiles is None:
        profiles = generate_responder_profiles(20, seed=seed)

    results = []
    for value in values:
        params = replace(base_params, **{
            group: replace(getattr(base_params, group), **{param_name: value})
        })

        valid, msg = params.validate()
        if not valid:
            results.append({
                'value': value,
                'valid': False,
                'message': msg,
            })
            continue

        simulator = AdaptationSimulator(params.adaptation, horizon_params=params.horizon)
        sim_results = simulator.run_batch(profiles, num_weeks, seed)
        agg = aggregate_results(sim_results)

        results.append({
            'value': value,
            'valid': True,
            'mean_abs_ratio_error': agg['mean_abs_ratio_error'],
            'pct_direction_correct': agg['pct_direction_correct'],
            'mean_final_forecast_vdot': float(np.mean(
                [r.final_forecast_vdot for r in sim_results]
            )),
            'mean_forecast_shift': agg['mean_forecast_shift'],
        })

    return results
