#!/usr/bin/env python3
"""
Adaptive Fitness Forecasting - CLI Entry Point

Usage:
    python main.py predict ATHLETE.json [--json]
    python main.py trajectory --vdot V [--lt P] [--vo2 X] [--weeks W] [--plot OUT]
    python main.py matrix [--distance D] [--vdot V] [--sessions S] [--experience E] [--csv OUT]
    python main.py simulate [--profiles N] [--weeks W] [--seed S]
    python main.py sensitivity PARAM [--points N] [--profiles N] [--seed S]
    python main.py test

Global options:
    --params FILE   JSON parameter overrides
    --verbose       Debug logging
"""

import argparse
import json
import logging
import math
from dataclasses import asdict
from enum import Enum

from forecasting import (
    EngineParams,
    PersonalBests,
    RecentRace,
    PhysiologyMeasurement,
    MeasurementSource,
    blend_predictions,
    candidate_estimates,
    classify_runner,
    derive_paces,
    estimate_fade_exponent,
    forecast,
    generate_trajectory,
    initialize_tracking,
    load_params,
    record_measurement,
    to_fitness_index,
    resolve_distance_meters,
)
from simulation.synthetic import format_time

logger = logging.getLogger(__name__)


def _jsonable(value):
    """asdict() output with enums as their values and NaN as None."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {(k.value if isinstance(k, Enum) else k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _measurement_from_dict(d: dict) -> PhysiologyMeasurement:
    d = dict(d)
    if 'source' in d:
        d['source'] = MeasurementSource(d['source'])
    return PhysiologyMeasurement(**d)


def predict_athlete(athlete: dict, params: EngineParams) -> dict:
    """
    Full prediction for one athlete record.

    Expected keys: pbs, lt_pace, vo2max, recent_race, target, weeks,
    sessions, experience_level. Only `target` is required.
    """
    if 'target' not in athlete:
        raise ValueError("Athlete record needs a 'target' distance")

    pbs = PersonalBests.from_dict(athlete.get('pbs'))
    recent = athlete.get('recent_race')
    recent_race = RecentRace(**recent) if recent else None
    lt_pace = athlete.get('lt_pace')
    vo2max = athlete.get('vo2max')
    target = athlete['target']

    b = estimate_fade_exponent(pbs)
    runner_type = classify_runner(b)

    blended = blend_predictions(
        target, pbs, lt_pace, vo2max, b, runner_type, recent_race, params.blend
    )
    result = {
        'fade_exponent': b,
        'runner_type': runner_type.value,
        'target': target,
        'blended_time': blended,
        'candidates': [
            {'label': c.label, 'time': c.time_seconds, 'index': c.fitness_index, 'weight': c.weight}
            for c in candidate_estimates(target, pbs, lt_pace, vo2max, b, runner_type,
                                         recent_race, params.blend)
        ],
    }
    if blended is None:
        return result

    vdot = to_fitness_index(resolve_distance_meters(target), blended)
    result['vdot'] = vdot
    result['paces'] = asdict(derive_paces(vdot, lt_pace, params.paces))

    weeks = athlete.get('weeks')
    if weeks:
        fc = forecast(
            vdot, target, weeks, athlete.get('sessions', 4), runner_type,
            taper_weeks=athlete.get('taper_weeks', 0),
            experience_level=athlete.get('experience_level'),
            hm_pb_seconds=pbs.half,
            params=params.horizon,
        )
        result['forecast'] = asdict(fc)

    return result


def run_predict(path: str, params: EngineParams, as_json: bool = False):
    """Predict race time, paces and forecast from an athlete JSON file."""
    with open(path) as f:
        athlete = json.load(f)

    result = predict_athlete(athlete, params)

    if as_json:
        print(json.dumps(_jsonable(result), indent=2))
        return result

    print(f"Fade exponent:  {result['fade_exponent']:.3f} ({result['runner_type']})")
    for c in result['candidates']:
        print(f"  {c['label']:<14} {format_time(c['time']):>8}  "
              f"index {c['index']:.1f}  weight {c['weight']:.3f}")
    print(f"Blended {result['target']}: {format_time(result['blended_time'])}")

    if 'vdot' in result:
        print(f"Fitness index:  {result['vdot']:.1f}")
        print("Paces (/km): " + ", ".join(
            f"{zone.upper()} {format_time(pace)}" for zone, pace in result['paces'].items()
        ))
    if 'forecast' in result:
        fc = result['forecast']
        print(f"Forecast:       {fc['forecast_vdot']:.1f} -> {format_time(fc['forecast_time'])}")

    return result


def run_trajectory(
    vdot: float,
    lt: float = None,
    vo2: float = None,
    weeks: int = 16,
    measurements: str = None,
    plot: str = None,
    params: EngineParams = None,
    as_json: bool = False
):
    """Print the expected physiology trajectory, optionally with measurements."""
    params = params or EngineParams()
    trajectory = generate_trajectory(lt, vo2, weeks, vdot)

    state = initialize_tracking(lt, vo2, vdot, params.adaptation)
    observed = []
    if measurements:
        with open(measurements) as f:
            observed = [_measurement_from_dict(m) for m in json.load(f)]
        for m in observed:
            state = record_measurement(state, m, params.adaptation)

    if as_json:
        print(json.dumps(_jsonable({
            'trajectory': [asdict(p) for p in trajectory],
            'adaptation_ratio': state.current_adaptation_ratio,
            'assessment': asdict(state.last_assessment) if state.last_assessment else None,
        }), indent=2))
    else:
        print(f"{'Week':>4} {'LT':>8} {'LT band':>17} {'VO2':>6} {'VO2 band':>13}")
        for p in trajectory:
            lt_txt = format_time(p.expected_lt)
            band = (f"{format_time(p.lt_lower_bound)}-{format_time(p.lt_upper_bound)}"
                    if p.expected_lt is not None else "N/A")
            vo2_txt = f"{p.expected_vo2:.1f}" if p.expected_vo2 is not None else "N/A"
            vo2_band = (f"{p.vo2_lower_bound:.1f}-{p.vo2_upper_bound:.1f}"
                        if p.expected_vo2 is not None else "N/A")
            print(f"{p.week:>4} {lt_txt:>8} {band:>17} {vo2_txt:>6} {vo2_band:>13}")

        if state.last_assessment is not None:
            a = state.last_assessment
            print(f"\nAdaptation ratio: {state.current_adaptation_ratio:.2f} "
                  f"({a.status.value}) - {a.message}")

    if plot:
        from analysis.visualizations import plot_physiology_trajectory
        metric = 'lt' if lt is not None else 'vo2'
        fig = plot_physiology_trajectory(trajectory, observed, metric=metric)
        fig.savefig(plot, dpi=120, bbox_inches='tight')
        print(f"\nPlot saved to: {plot}")

    return trajectory, state


def run_matrix_audit(
    distance: str = '5k',
    vdot: float = 45.0,
    sessions: float = 4,
    experience: str = 'intermediate',
    csv: str = None,
    as_json: bool = False
):
    """Run the forecast matrix and print the audit report."""
    from simulation.forecast_matrix import run_matrix, matrix_to_frame
    from analysis.reports import generate_matrix_report

    output = run_matrix(distance, vdot, sessions, experience, verbose=not as_json)
    frame = matrix_to_frame(output)

    if as_json:
        print(frame.to_json(orient='records', indent=2))
    else:
        print(generate_matrix_report(output))

    if csv:
        frame.to_csv(csv, index=False)
        print(f"Matrix saved to: {csv}")

    return output


def run_simulation(n_profiles: int = 20, n_weeks: int = 16, seed: int = 42,
                   params: EngineParams = None):
    """Simulate adaptation tracking for synthetic responders."""
    from simulation.engine import AdaptationSimulator, generate_responder_profiles
    from analysis.reports import generate_simulation_report

    print(f"Simulating {n_profiles} athletes over {n_weeks} weeks...")

    params = params or EngineParams()
    profiles = generate_responder_profiles(n_profiles, seed=seed)
    simulator = AdaptationSimulator(
        params.adaptation, verbose=True, horizon_params=params.horizon
    )
    results = simulator.run_batch(profiles, n_weeks, seed=seed)

    print(generate_simulation_report(results))
    return results


def run_sensitivity(param: str, n_points: int = 5, n_profiles: int = 20,
                    seed: int = 42, params: EngineParams = None):
    """Sweep one parameter across its bounds and print the scores."""
    from simulation.sensitivity import run_sensitivity_analysis, sweep_values
    from simulation.engine import generate_responder_profiles

    values = sweep_values(param, n_points)
    profiles = generate_responder_profiles(n_profiles, seed=seed)
    results = run_sensitivity_analysis(param, values, profiles, params, seed=seed)

    print(f"Sensitivity of {param} ({n_profiles} athletes)")
    print(f"{'Value':>8} {'Abs err':>8} {'Dir %':>6} {'Forecast':>9}")
    for r in results:
        if not r['valid']:
            print(f"{r['value']:>8.3f}  invalid: {r['message']}")
            continue
        print(f"{r['value']:>8.3f} {r['mean_abs_ratio_error']:>8.3f} "
              f"{r['pct_direction_correct']:>6.1f} {r['mean_final_forecast_vdot']:>9.2f}")

    return results


def run_tests():
    """Quick smoke checks of every model."""
    print("Running smoke checks...\n")

    print("Testing performance model...")
    vdot = to_fitness_index(5000, 1200)
    assert 49 < vdot < 50.5, f"20:00 5K should be ~49.8, got {vdot:.2f}"
    print(f"  20:00 5K -> index {vdot:.2f}")

    print("\nTesting fade exponent...")
    b = estimate_fade_exponent(PersonalBests(k5=1200, marathon=12600))
    assert 1.05 < b < 1.15, f"b should be ~1.10, got {b:.3f}"
    print(f"  b = {b:.3f} ({classify_runner(b).value})")

    print("\nTesting blend...")
    t = blend_predictions('half', PersonalBests(k5=1200, k10=2500), lt_pace=255, vo2max=50)
    assert t is not None and 5000 < t < 7000, f"Half prediction out of range: {t}"
    print(f"  Half marathon: {format_time(t)}")

    print("\nTesting adaptation tracking...")
    state = initialize_tracking(300.0, 45.0, 45.0)
    state = record_measurement(state, PhysiologyMeasurement(week=5, lt_pace_sec_per_km=294.0))
    assert 0.3 <= state.current_adaptation_ratio <= 2.0
    print(f"  Ratio after one measurement: {state.current_adaptation_ratio:.2f}")

    print("\nTesting forecast...")
    fc = forecast(45.0, 'half', 12, 4, 'Balanced')
    assert fc.forecast_vdot > 45.0, "Forecast should improve with training"
    print(f"  12 weeks: {fc.forecast_vdot:.1f} -> {format_time(fc.forecast_time)}")

    print("\n" + "=" * 50)
    print("ALL CHECKS PASSED!")
    print("=" * 50)


def main():
    parser = argparse.ArgumentParser(description='Adaptive Fitness Forecasting')
    parser.add_argument('--params', help='JSON parameter overrides')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Predict command
    pred_parser = subparsers.add_parser('predict', help='Predict from an athlete JSON file')
    pred_parser.add_argument('athlete', help='Athlete JSON file')
    pred_parser.add_argument('--json', action='store_true', help='Emit JSON')

    # Trajectory command
    traj_parser = subparsers.add_parser('trajectory', help='Expected physiology trajectory')
    traj_parser.add_argument('--vdot', type=float, required=True, help='Baseline index')
    traj_parser.add_argument('--lt', type=float, help='Initial LT pace (s/km)')
    traj_parser.add_argument('--vo2', type=float, help='Initial VO2max')
    traj_parser.add_argument('--weeks', type=int, default=16, help='Plan weeks')
    traj_parser.add_argument('--measurements', help='JSON list of measurements')
    traj_parser.add_argument('--plot', help='Save a trajectory plot to this path')
    traj_parser.add_argument('--json', action='store_true', help='Emit JSON')

    # Matrix command
    mat_parser = subparsers.add_parser('matrix', help='Run the forecast audit matrix')
    mat_parser.add_argument('--distance', default='5k', help='Target distance')
    mat_parser.add_argument('--vdot', type=float, default=45.0, help='Base index')
    mat_parser.add_argument('--sessions', type=float, default=4, help='Sessions per week')
    mat_parser.add_argument('--experience', default='intermediate', help='Experience level')
    mat_parser.add_argument('--csv', help='Save the matrix as CSV')
    mat_parser.add_argument('--json', action='store_true', help='Emit JSON')

    # Simulate command
    sim_parser = subparsers.add_parser('simulate', help='Simulate adaptation tracking')
    sim_parser.add_argument('--profiles', type=int, default=20, help='Number of athletes')
    sim_parser.add_argument('--weeks', type=int, default=16, help='Plan weeks')
    sim_parser.add_argument('--seed', type=int, default=42, help='Random seed')

    # Sensitivity command
    sens_parser = subparsers.add_parser('sensitivity', help='Sweep one parameter')
    sens_parser.add_argument('param', help='Parameter name (see PARAM_BOUNDS)')
    sens_parser.add_argument('--points', type=int, default=5, help='Values to test')
    sens_parser.add_argument('--profiles', type=int, default=20, help='Number of athletes')
    sens_parser.add_argument('--seed', type=int, default=42, help='Random seed')

    # Test command
    subparsers.add_parser('test', help='Run smoke checks')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )
    params = EngineParams()
    if args.params:
        params = load_params(args.params)
        logger.debug("Loaded parameter overrides from %s", args.params)

    if args.command == 'predict':
        run_predict(args.athlete, params, args.json)
    elif args.command == 'trajectory':
        run_trajectory(args.vdot, args.lt, args.vo2, args.weeks,
                       args.measurements, args.plot, params, args.json)
    elif args.command == 'matrix':
        run_matrix_audit(args.distance, args.vdot, args.sessions,
                         args.experience, args.csv, args.json)
    elif args.command == 'simulate':
        run_simulation(args.profiles, args.weeks, args.seed, params)
    elif args.command == 'sensitivity':
        run_sensitivity(args.param, args.points, args.profiles, args.seed, params)
    elif args.command == 'test':
        run_tests()
    else:
        parser.print_help()


if __name__ == '__main__':
    main()
