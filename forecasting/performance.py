"""
Performance model: race performance <-> fitness index (VDOT).

Based on:
- Daniels & Gilbert (1979): oxygen cost of running and the fraction of
  VO2max sustainable for a given race duration

The fitness index is the oxygen cost of race pace divided by the fraction of
maximal aerobic power that can be held for the race duration.
"""

from typing import Union
import logging
import math

from scipy.optimize import brentq

from .types import RaceDistance

logger = logging.getLogger(__name__)

# Pace bracket for the numeric inverse, in meters per minute
MAX_VELOCITY = 500.0    # 2:00/km
MIN_VELOCITY = 50.0     # 20:00/km

INVERSE_TOLERANCE_SEC = 0.01
INVERSE_MAX_ITERATIONS = 60


def oxygen_cost(velocity: float) -> float:
    """
    Oxygen cost of running at a given velocity.

    VO2 = -4.60 + 0.182258 v + 0.000104 v^2

    Args:
        velocity: Running velocity (m/min)

    Returns:
        Oxygen cost (ml/kg/min)
    """
    return -4.60 + 0.182258 * velocity + 0.000104 * velocity * velocity


def sustainable_fraction(minutes: float) -> float:
    """
    Fraction of VO2max sustainable for a race lasting `minutes`.

    %VO2max = 0.8 + 0.1894393 e^(-0.012778 t) + 0.2989558 e^(-0.1932605 t)
    """
    return (0.8
            + 0.1894393 * math.exp(-0.012778 * minutes)
            + 0.2989558 * math.exp(-0.1932605 * minutes))


def to_fitness_index(distance_meters: float, time_seconds: float) -> float:
    """
    Calculate the fitness index (VDOT) for a race performance.

    Args:
        distance_meters: Race distance (m)
        time_seconds: Finish time (s)

    Returns:
        Fitness index, or NaN for non-positive / non-finite input
    """
    if not (_positive(distance_meters) and _positive(time_seconds)):
        return math.nan

    minutes = time_seconds / 60.0
    velocity = distance_meters / minutes
    return oxygen_cost(velocity) / sustainable_fraction(minutes)


def to_time(distance_meters: float, index: float) -> float:
    """
    Race time at `distance_meters` for a given fitness index.

    The cost curve has no closed-form inverse once the duration term is
    included, so the time is found by bracketed root finding between the
    2:00/km and 20:00/km paces. Indices outside that bracket clamp to its
    edges.

    Args:
        distance_meters: Race distance (m)
        index: Fitness index (VDOT)

    Returns:
        Time in seconds, or NaN for non-finite input
    """
    if not (_positive(distance_meters) and index is not None and math.isfinite(index)):
        return math.nan

    t_fast = distance_meters / MAX_VELOCITY * 60.0
    t_slow = distance_meters / MIN_VELOCITY * 60.0

    def residual(t: float) -> float:
        return to_fitness_index(distance_meters, t) - index

    if residual(t_fast) <= 0:
        logger.debug("Index %.2f above bracket for %.0fm; clamping", index, distance_meters)
        return t_fast
    if residual(t_slow) >= 0:
        logger.debug("Index %.2f below bracket for %.0fm; clamping", index, distance_meters)
        return t_slow

    return brentq(
        residual, t_fast, t_slow,
        xtol=INVERSE_TOLERANCE_SEC,
        maxiter=INVERSE_MAX_ITERATIONS,
        disp=False,
    )


def pace_at_duration(index: float, minutes: float = 60.0) -> float:
    """
    Pace (s/km) that a runner of `index` can hold for `minutes`.

    At a fixed duration the sustainable fraction is constant, so the cost
    quadratic solves directly for velocity.
    """
    if index is None or not math.isfinite(index) or not _positive(minutes):
        return math.nan

    target_cost = index * sustainable_fraction(minutes)
    a, b, c = 0.000104, 0.182258, -4.60 - target_cost
    discriminant = b * b - 4 * a * c
    if discriminant < 0:
        return math.nan
    velocity = (-b + math.sqrt(discriminant)) / (2 * a)
    if velocity <= 0:
        return math.nan
    return 60000.0 / velocity


def distance_key_to_meters(key: Union[str, RaceDistance]) -> float:
    """Race distance in meters from a distance key ('5k', 'half', 'm', ...)."""
    return RaceDistance.from_key(key).meters


def resolve_distance_meters(distance: Union[float, int, str, RaceDistance]) -> float:
    """Meters for a RaceDistance, a distance key, or a raw distance in meters."""
    if isinstance(distance, RaceDistance):
        return distance.meters
    if isinstance(distance, str):
        return distance_key_to_meters(distance)
    return float(distance)


def _positive(value: float) -> bool:
    return value is not None and math.isfinite(value) and value > 0
