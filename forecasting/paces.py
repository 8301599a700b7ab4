"""
Training pace zones derived from threshold pace.
"""

from typing import Optional

from .params import PaceZoneRatios
from .performance import pace_at_duration
from .types import Paces, is_usable


def derive_paces(
    fitness_index: float,
    lt_pace: Optional[float] = None,
    ratios: Optional[PaceZoneRatios] = None
) -> Paces:
    """
    Expand a fitness index, or a measured threshold pace, into pace zones.

    Threshold pace is the measured LT pace when supplied, otherwise the pace
    sustainable for a one-hour race at `fitness_index`. Every other zone is a
    fixed multiple of threshold.

    Args:
        fitness_index: Current fitness index (VDOT)
        lt_pace: Measured LT pace (s/km), optional
        ratios: Zone ratios (uses defaults if None)

    Returns:
        Paces in seconds per km
    """
    if ratios is None:
        ratios = PaceZoneRatios()

    if is_usable(lt_pace):
        threshold = float(lt_pace)
    else:
        threshold = pace_at_duration(fitness_index, ratios.threshold_minutes)

    return Paces(
        e=threshold * ratios.easy,
        t=threshold,
        i=threshold * ratios.interval,
        m=threshold * ratios.marathon,
        r=threshold * ratios.rep,
    )


def pace_for_zone(zone: str, paces: Paces) -> float:
    """
    Pace for a named zone ('easy', 'tempo', '5k', 'mp', ...).

    Unknown zones fall back to easy pace.
    """
    zone_map = {
        'easy': paces.e,
        'e': paces.e,
        'threshold': paces.t,
        'tempo': paces.t,
        't': paces.t,
        '5k': paces.i,
        'i': paces.i,
        'r': paces.r,
        '10k': paces.m * 0.95,     # Slightly faster than marathon
        'hm': paces.m * 0.97,      # Between threshold and marathon
        'mp': paces.m,
        'm': paces.m,
    }
    return zone_map.get(zone.strip().lower(), paces.e)
