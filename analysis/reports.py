"""
Report generation for forecast audits and adaptation simulations.

Generates plain-text summaries of forecast-matrix runs and simulation batches.
"""

from typing import List, Optional
from datetime import datetime

import numpy as np

from simulation.engine import SimulationResult, aggregate_results
from simulation.forecast_matrix import FORECAST_WEEKS, MatrixOutput
from simulation.synthetic import format_time


def generate_matrix_report(
    output: MatrixOutput,
    detailed: int = 3,
    title: str = "Forecast Matrix Audit"
) -> str:
    """
    Generate text report from a forecast-matrix run.

    Args:
        output: Matrix run
        detailed: Number of scenarios to break down in full
        title: Report title

    Returns:
        Formatted report string
    """
    coherent = sum(1 for s in output.scenarios if s.coherence.is_coherent)

    report = f"""
{'='*110}
{title}
{'='*110}
Generated: {output.timestamp}
Target distance:  {output.target_distance.value}
Base index:       {output.base_vdot}
Sessions/week:    {output.sessions_per_week}
Experience:       {output.experience_level}
Scenarios:        {len(output.scenarios)} ({coherent} coherent)

"""

    header = (f"{'Scenario':<40} {'b':>5} {'b est':>6} {'Type':<10} {'5K PB':>8} "
              f"{'LT/km':>6} {'Blend':>8} {'Start':>5}")
    for weeks in FORECAST_WEEKS:
        header += f" {f'{weeks}w':>8}"
    report += header + "\n" + "-" * len(header) + "\n"

    for s in output.scenarios:
        row = (f"{s.scenario_id[:40]:<40} "
               f"{s.config.b_target:>5.2f} "
               f"{s.athlete.b_estimated:>6.3f} "
               f"{s.athlete.runner_type.value:<10} "
               f"{format_time(s.athlete.pbs.k5):>8} "
               f"{format_time(s.athlete.lt_pace_sec_per_km):>6} "
               f"{format_time(s.blended_time):>8} "
               f"{s.start_vdot if s.start_vdot is not None else float('nan'):>5.1f}")
        for weeks in FORECAST_WEEKS:
            fc = s.forecasts.get(weeks)
            row += f" {format_time(fc.forecast_time if fc else None):>8}"
        report += row + "\n"

    report += "-" * len(header) + "\n"

    if detailed > 0:
        report += f"\nDETAILED BREAKDOWN (first {detailed} scenarios)\n"
        for s in output.scenarios[:detailed]:
            report += f"\n--- {s.scenario_id} ---\n"
            report += (f"  Config: b={s.config.b_target}, lt_diff={s.config.lt_vdot_diff}, "
                       f"vo2_diff={s.config.vo2_vdot_diff}\n")
            report += "  PBs: " + ", ".join(
                f"{d.value}={format_time(t)}" for d, t in s.athlete.pbs.present()
            ) + "\n"
            report += (f"  Derived: b={s.athlete.b_estimated:.4f}, "
                       f"type={s.athlete.runner_type.value}\n")
            for label, seconds in s.predictor_times.items():
                report += f"  {label:<14} {format_time(seconds)}\n"
            report += f"  Blended: {format_time(s.blended_time)}\n"

            for weeks, fc in s.forecasts.items():
                c = fc.components
                report += (f"  {weeks:>2}w: {fc.vdot_gain:+.2f} ({fc.improvement_pct:.1f}%) "
                           f"-> {fc.forecast_vdot:.1f} -> {format_time(fc.forecast_time)}\n")
                report += (f"       week={c.week_factor:.3f} sess={c.session_factor:.3f} "
                           f"type={c.type_modifier:.2f} under={c.undertrain_penalty:.2f} "
                           f"taper={c.taper_bonus:.2f}\n")

            report += f"  Coherence: {'PASS' if s.coherence.is_coherent else 'FAIL'}\n"
            for check in s.coherence.checks:
                mark = "ok" if check.passed else "FAIL"
                report += f"    [{mark}] {check.name}: {check.message}\n"

    report += "\n" + "=" * 110 + "\n"
    return report


def generate_simulation_report(
    results: List[SimulationResult],
    title: str = "Adaptation Tracking Simulation",
    timestamp: Optional[str] = None
) -> str:
    """
    Generate text report from adaptation simulation results.

    Args:
        results: Simulation results
        title: Report title
        timestamp: Report timestamp (now if None)

    Returns:
        Formatted report string
    """
    if not results:
        return f"{title}\nNo simulations.\n"

    agg = aggregate_results(results)
    timestamp = timestamp or datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    report = f"""
{'='*70}
{title}
{'='*70}
Generated: {timestamp}
Simulations: {agg['n_simulations']}
Weeks per simulation: {len(results[0].weeks)}

RATIO RECOVERY
--------------
Final ratio (mean):        {agg['mean_final_ratio']:>8.2f}
Final ratio (std):         {agg['std_final_ratio']:>8.2f}
Abs error (mean):          {agg['mean_abs_ratio_error']:>8.3f}
Abs error (max):           {agg['max_abs_ratio_error']:>8.3f}
Direction correct:         {agg['pct_direction_correct']:>8.1f}%

FORECAST
--------
Mean forecast shift:       {agg['mean_forecast_shift']:>+8.2f}

STATUS DISTRIBUTION
-------------------
"""
    for status, count in sorted(agg['status_counts'].items()):
        report += f"{status:<14} {count:>4d}  ({count / agg['n_simulations'] * 100:5.1f}%)\n"

    report += """
PER-ATHLETE BREAKDOWN
---------------------
"""
    report += f"{'Athlete':<20} {'True':>6} {'Ratio':>6} {'Error':>7} {'Status':<11} {'Fcst':>6}\n"
    report += "-" * 70 + "\n"

    for r in results:
        report += (f"{r.profile_name[:20]:<20} "
                   f"{r.true_responsiveness:>6.2f} "
                   f"{r.final_ratio:>6.2f} "
                   f"{r.ratio_error:>+7.3f} "
                   f"{r.final_status.value:<11} "
                   f"{r.final_forecast_vdot:>6.1f}\n")

    errors = np.abs([r.ratio_error for r in results])
    report += f"\nWithin 0.1 of truth: {np.mean(errors <= 0.1) * 100:.1f}%\n"
    report += "=" * 70 + "\n"
    return report
