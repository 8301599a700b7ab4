"""
Fade exponent estimation and runner classification.

Based on:
- Riegel (1981): T(d) = T0 * d^b power law for race times

The fade exponent b describes how much an individual slows as race distance
grows. It is fitted per athlete from their personal bests and bucketed into a
runner type.
"""

from typing import Optional
import math

import numpy as np
from scipy import stats

from .types import PersonalBests, RunnerType

DEFAULT_FADE_EXPONENT = 1.06    # Population default

SPEED_THRESHOLD = 1.12          # b above: more fade, stronger at short races
ENDURANCE_THRESHOLD = 1.06      # b below: less fade, stronger at long races


def estimate_fade_exponent(pbs: Optional[PersonalBests]) -> float:
    """
    Fit the fade exponent from personal bests.

    Ordinary least squares on ln(time) = ln(T0) + b * ln(distance) over every
    supplied PB, unweighted.

    Args:
        pbs: Personal bests (any subset)

    Returns:
        Fade exponent b, or the population default with fewer than 2 PBs
    """
    if pbs is None:
        return DEFAULT_FADE_EXPONENT

    points = list(pbs.present())
    if len(points) < 2:
        return DEFAULT_FADE_EXPONENT

    ln_d = np.log([d.meters for d, _ in points])
    ln_t = np.log([t for _, t in points])

    if np.ptp(ln_d) == 0:
        return DEFAULT_FADE_EXPONENT

    return float(stats.linregress(ln_d, ln_t).slope)


def classify_runner(b: Optional[float]) -> RunnerType:
    """
    Bucket a fade exponent into a runner type.

    - b > 1.12: Speed (fades more, relatively stronger at short distances)
    - b < 1.06: Endurance (fades less, relatively stronger at long distances)
    - otherwise Balanced; missing, zero or NaN also give Balanced
    """
    if not b or math.isnan(b):
        return RunnerType.BALANCED
    if b > SPEED_THRESHOLD:
        return RunnerType.SPEED
    if b < ENDURANCE_THRESHOLD:
        return RunnerType.ENDURANCE
    return RunnerType.BALANCED


def riegel_projection(time_seconds: float, from_meters: float, to_meters: float, b: float) -> float:
    """Project a race time to another distance: T2 = T1 * (d2 / d1)^b."""
    return time_seconds * (to_meters / from_meters) ** b
