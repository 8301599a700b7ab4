"""
Tunable constants for the forecasting models.

The pace-zone ratios, blend weights, physiology gain rates and training-horizon
tables are empirically tuned. They are kept here as configuration data and
must be preserved exactly; override them through `load_params` rather than
editing the models.
"""

from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Optional, Dict, Any, Tuple, Mapping, Type
from enum import Enum
import json

from .types import (
    AbilityBand,
    AdaptationStatus,
    PredictionSource,
    RaceDistance,
    RunnerType,
)


def _frozen(d: Dict) -> Mapping:
    return MappingProxyType(dict(d))


def _table(rows: Dict) -> Mapping:
    """Two-level immutable table."""
    return MappingProxyType({k: MappingProxyType(dict(v)) for k, v in rows.items()})


def _table_to_dict(table: Mapping) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in table.items():
        name = key.value if isinstance(key, Enum) else key
        out[name] = _table_to_dict(value) if isinstance(value, Mapping) else value
    return out


def _table_from_dict(
    d: Dict[str, Any],
    outer: Type[Enum],
    inner: Optional[Type[Enum]] = None
) -> Mapping:
    rows = {}
    for key, value in d.items():
        outer_key = _parse_key(outer, key)
        if inner is None:
            rows[outer_key] = float(value)
        else:
            rows[outer_key] = {_parse_key(inner, k): float(v) for k, v in value.items()}
    return _table(rows) if inner is not None else _frozen(rows)


def _parse_key(enum_cls: Type[Enum], key: Any) -> Enum:
    if hasattr(enum_cls, 'from_key'):
        return enum_cls.from_key(key)
    try:
        return enum_cls(key)
    except ValueError:
        raise ValueError(f"Unknown {enum_cls.__name__} key '{key}'") from None


class _ParamsMixin:
    """Shared dict round-tripping for the frozen parameter dataclasses."""

    # Maps field name -> (outer enum, inner enum or None) for table fields
    _TABLES: Dict[str, Tuple[Type[Enum], Optional[Type[Enum]]]] = {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to a JSON-friendly dictionary."""
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Mapping):
                out[f.name] = _table_to_dict(value)
            elif isinstance(value, tuple):
                out[f.name] = [list(v) if isinstance(v, tuple) else v for v in value]
            else:
                out[f.name] = value
        return out

    @classmethod
    def from_dict(cls, d: Dict[str, Any]):
        """Create parameters from a (possibly partial) dictionary."""
        known = {f.name for f in fields(cls)}
        unknown = set(d) - known
        if unknown:
            raise ValueError(f"Unknown {cls.__name__} fields: {sorted(unknown)}")

        kwargs: Dict[str, Any] = {}
        for name, value in d.items():
            if name in cls._TABLES:
                outer, inner = cls._TABLES[name]
                kwargs[name] = _table_from_dict(value, outer, inner)
            elif isinstance(value, list):
                kwargs[name] = tuple(tuple(v) if isinstance(v, list) else v for v in value)
            else:
                kwargs[name] = value
        return cls(**kwargs)


# ═══════════════════════════════════════════════════════════════════════════════
# PACE ZONES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PaceZoneRatios(_ParamsMixin):
    """Zone paces as multiples of threshold pace."""
    easy: float = 1.15
    marathon: float = 1.05
    interval: float = 0.93
    rep: float = 0.88
    threshold_minutes: float = 60.0   # Race duration that defines threshold pace

    def validate(self) -> Tuple[bool, str]:
        if not (0 < self.rep < self.interval < 1.0 < self.marathon < self.easy):
            return False, "Zone ratios must satisfy rep < interval < 1 < marathon < easy"
        if self.threshold_minutes <= 0:
            return False, "threshold_minutes must be positive"
        return True, "Valid"


# ═══════════════════════════════════════════════════════════════════════════════
# PREDICTION BLENDING
# ═══════════════════════════════════════════════════════════════════════════════

_WEIGHTS_WITH_RECENT = _table({
    RaceDistance.K5: {PredictionSource.RECENT: 0.30, PredictionSource.PB: 0.10,
                      PredictionSource.LT: 0.35, PredictionSource.VO2: 0.25},
    RaceDistance.K10: {PredictionSource.RECENT: 0.30, PredictionSource.PB: 0.10,
                       PredictionSource.LT: 0.40, PredictionSource.VO2: 0.20},
    RaceDistance.HALF: {PredictionSource.RECENT: 0.30, PredictionSource.PB: 0.10,
                        PredictionSource.LT: 0.45, PredictionSource.VO2: 0.15},
    RaceDistance.MARATHON: {PredictionSource.RECENT: 0.25, PredictionSource.PB: 0.05,
                            PredictionSource.LT: 0.55, PredictionSource.VO2: 0.15},
})

_WEIGHTS_WITHOUT_RECENT = _table({
    RaceDistance.K5: {PredictionSource.PB: 0.20, PredictionSource.LT: 0.40,
                      PredictionSource.VO2: 0.40},
    RaceDistance.K10: {PredictionSource.PB: 0.20, PredictionSource.LT: 0.45,
                       PredictionSource.VO2: 0.35},
    RaceDistance.HALF: {PredictionSource.PB: 0.15, PredictionSource.LT: 0.60,
                        PredictionSource.VO2: 0.25},
    RaceDistance.MARATHON: {PredictionSource.PB: 0.10, PredictionSource.LT: 0.70,
                            PredictionSource.VO2: 0.20},
})

# Race time = LT pace x km x multiplier
_LT_MULTIPLIERS = _table({
    RaceDistance.K5: {RunnerType.SPEED: 0.95, RunnerType.BALANCED: 0.935,
                      RunnerType.ENDURANCE: 0.92},
    RaceDistance.K10: {RunnerType.SPEED: 1.01, RunnerType.BALANCED: 0.995,
                       RunnerType.ENDURANCE: 0.98},
    RaceDistance.HALF: {RunnerType.SPEED: 1.06, RunnerType.BALANCED: 1.045,
                        RunnerType.ENDURANCE: 1.03},
    RaceDistance.MARATHON: {RunnerType.SPEED: 1.14, RunnerType.BALANCED: 1.115,
                            RunnerType.ENDURANCE: 1.09},
})


@dataclass(frozen=True)
class BlendParams(_ParamsMixin):
    """Weights and caps for the prediction blender."""
    weights_with_recent: Mapping = field(default_factory=lambda: _WEIGHTS_WITH_RECENT)
    weights_without_recent: Mapping = field(default_factory=lambda: _WEIGHTS_WITHOUT_RECENT)
    lt_multipliers: Mapping = field(default_factory=lambda: _LT_MULTIPLIERS)

    # (max weeks ago, confidence factor), checked in order
    recency_steps: Tuple[Tuple[float, float], ...] = (
        (2, 1.0), (4, 0.85), (6, 0.65), (8, 0.40),
    )
    stale_recency_factor: float = 0.15
    recency_share_to_lt: float = 0.7    # Remainder of decayed weight goes to PBs

    pb_fade_cap: float = 1.15           # Cap extreme fade exponents
    recent_fade_cap: float = 1.08

    _TABLES = {
        'weights_with_recent': (RaceDistance, PredictionSource),
        'weights_without_recent': (RaceDistance, PredictionSource),
        'lt_multipliers': (RaceDistance, RunnerType),
    }

    def validate(self) -> Tuple[bool, str]:
        issues = []
        for name in ('weights_with_recent', 'weights_without_recent'):
            for distance in RaceDistance:
                row = getattr(self, name).get(distance)
                if row is None:
                    issues.append(f"{name} missing {distance.value}")
                elif abs(sum(row.values()) - 1.0) > 1e-6:
                    issues.append(f"{name}[{distance.value}] must sum to 1")
        if not 0 <= self.recency_share_to_lt <= 1:
            issues.append("recency_share_to_lt must be in [0, 1]")
        if any(not 0 <= f <= 1 for _, f in self.recency_steps):
            issues.append("Recency factors must be in [0, 1]")
        if issues:
            return False, "; ".join(issues)
        return True, "Valid"


# ═══════════════════════════════════════════════════════════════════════════════
# PHYSIOLOGY GAINS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PhysiologyGains:
    """Expected weekly physiological response for one ability band."""
    vo2_weekly_gain: float      # Fractional, e.g. 0.005 = 0.5%/week
    lt_weekly_gain: float       # Fractional pace improvement per week
    min_weeks_for_change: int   # Weeks before change is detectable
    confidence_interval: float  # +/- percent around the expected value


# LT gains run 1.5-2x VO2 gains; LT is the more trainable metric.
PHYSIOLOGY_GAINS: Mapping[AbilityBand, PhysiologyGains] = _frozen({
    AbilityBand.BEGINNER: PhysiologyGains(0.006, 0.008, 2, 40),
    AbilityBand.NOVICE: PhysiologyGains(0.0055, 0.007, 3, 35),
    AbilityBand.INTERMEDIATE: PhysiologyGains(0.00175, 0.00275, 4, 25),
    AbilityBand.ADVANCED: PhysiologyGains(0.001, 0.00165, 5, 20),
    AbilityBand.ELITE: PhysiologyGains(0.0005, 0.00075, 6, 15),
})

# Lower VDOT bound for each band, highest first
ABILITY_BAND_THRESHOLDS: Tuple[Tuple[float, AbilityBand], ...] = (
    (60.0, AbilityBand.ELITE),
    (52.0, AbilityBand.ADVANCED),
    (45.0, AbilityBand.INTERMEDIATE),
    (38.0, AbilityBand.NOVICE),
)


# ═══════════════════════════════════════════════════════════════════════════════
# ADAPTATION RATIO AND ASSESSMENT
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AdaptationParams(_ParamsMixin):
    """
    Bounds, smoothing and status thresholds for the adaptation ratio.

    adaptation ratio = actual improvement / expected improvement
    """
    min_ratio: float = 0.3
    max_ratio: float = 2.0
    default_ratio: float = 1.0
    smoothing_factor: float = 0.4       # Weight of the newest measurement

    excellent_threshold: float = 1.5    # ratio >= -> excellent
    good_threshold: float = 1.3         # ratio >= -> good
    slow_threshold: float = 0.7         # ratio <= -> slow
    concerning_threshold: float = 0.5   # ratio < -> concerning

    meaningful_deviation_pct: float = 1.5
    denominator_epsilon: float = 1e-9

    def validate(self) -> Tuple[bool, str]:
        issues = []
        if not (0 < self.min_ratio <= self.default_ratio <= self.max_ratio):
            issues.append("Require 0 < min_ratio <= default_ratio <= max_ratio")
        if not (0 < self.smoothing_factor <= 1):
            issues.append("smoothing_factor must be in (0, 1]")
        if not (self.concerning_threshold <= self.slow_threshold
                < self.good_threshold <= self.excellent_threshold):
            issues.append("Status thresholds must be in ascending order")
        if issues:
            return False, "; ".join(issues)
        return True, "Valid"


ADAPTATION_MESSAGES: Mapping[str, str] = _frozen({
    AdaptationStatus.EXCELLENT.value:
        "Excellent progress! You're responding very well to training.",
    AdaptationStatus.GOOD.value:
        "You're improving slightly faster than average. Great work!",
    AdaptationStatus.ON_TRACK.value:
        "Your fitness is tracking as expected. Keep up the consistency!",
    AdaptationStatus.SLOW.value:
        "Progress is slightly slower than expected. This is normal - stay consistent.",
    AdaptationStatus.CONCERNING.value:
        "Progress is slower than expected. Consider: more recovery, nutrition check, or deload.",
    'needsMoreData': "Complete more weeks to see meaningful physiology trends.",
    'noBaseline': "Update your current LT/VO2 values to enable physiology tracking.",
})


# ═══════════════════════════════════════════════════════════════════════════════
# TRAINING HORIZON
# ═══════════════════════════════════════════════════════════════════════════════

def _by_band(beginner, novice, intermediate, advanced, elite) -> Dict[AbilityBand, float]:
    return {
        AbilityBand.BEGINNER: beginner,
        AbilityBand.NOVICE: novice,
        AbilityBand.INTERMEDIATE: intermediate,
        AbilityBand.ADVANCED: advanced,
        AbilityBand.ELITE: elite,
    }


def _by_type(speed, balanced, endurance) -> Dict[RunnerType, float]:
    return {
        RunnerType.SPEED: speed,
        RunnerType.BALANCED: balanced,
        RunnerType.ENDURANCE: endurance,
    }


def _by_distance(k5, k10, half, marathon) -> Dict[RaceDistance, Any]:
    return {
        RaceDistance.K5: k5,
        RaceDistance.K10: k10,
        RaceDistance.HALF: half,
        RaceDistance.MARATHON: marathon,
    }


_MAX_GAIN_PCT = _table(_by_distance(
    _by_band(10.0, 8.0, 6.0, 4.0, 2.5),
    _by_band(11.0, 9.0, 7.0, 5.0, 3.0),
    _by_band(12.0, 10.0, 8.0, 6.0, 3.5),
    _by_band(8.0, 7.0, 6.0, 6.5, 4.0),
))

# Time constant of the saturating week factor; higher bands respond slower
_TAU_WEEKS = _table(_by_distance(
    _by_band(4.0, 5.0, 6.0, 7.0, 8.0),
    _by_band(5.0, 6.0, 7.0, 8.0, 9.0),
    _by_band(6.0, 7.0, 8.0, 9.0, 10.0),
    _by_band(7.0, 8.0, 9.0, 10.0, 11.0),
))

# Centre of the logistic session curve
_REF_SESSIONS = _table(_by_distance(
    _by_band(3.0, 3.5, 4.0, 5.0, 6.0),
    _by_band(3.0, 4.0, 4.5, 5.5, 6.5),
    _by_band(3.5, 4.0, 5.0, 6.0, 7.0),
    _by_band(4.0, 4.5, 5.5, 6.5, 7.5),
))

# Train the weakness: endurance runners gain most at short races, speed
# runners at long ones.
_TYPE_MODIFIER = _table(_by_distance(
    _by_type(0.90, 1.00, 1.15),
    _by_type(0.95, 1.00, 1.10),
    _by_type(1.10, 1.00, 0.95),
    _by_type(1.15, 1.00, 0.90),
))


@dataclass(frozen=True)
class HorizonParams(_ParamsMixin):
    """Non-linear training-horizon model constants."""
    max_gain_pct: Mapping = field(default_factory=lambda: _MAX_GAIN_PCT)
    tau_weeks: Mapping = field(default_factory=lambda: _TAU_WEEKS)
    ref_sessions: Mapping = field(default_factory=lambda: _REF_SESSIONS)
    type_modifier: Mapping = field(default_factory=lambda: _TYPE_MODIFIER)

    k_sessions: float = 1.0     # Logistic steepness
    min_sessions: Mapping = field(
        default_factory=lambda: _frozen(_by_distance(2.0, 2.5, 3.0, 3.5)))
    undertrain_penalty_pct: Mapping = field(
        default_factory=lambda: _frozen(_by_distance(2.0, 2.5, 3.0, 4.0)))
    taper_bonus_pct: Mapping = field(
        default_factory=lambda: _frozen(_by_distance(0.8, 1.0, 1.2, 1.5)))
    taper_nominal_weeks: Mapping = field(
        default_factory=lambda: _frozen(_by_distance(1.0, 2.0, 2.0, 3.0)))

    max_gain_cap_pct: float = 15.0
    max_slowdown_pct: float = 3.0

    _TABLES = {
        'max_gain_pct': (RaceDistance, AbilityBand),
        'tau_weeks': (RaceDistance, AbilityBand),
        'ref_sessions': (RaceDistance, AbilityBand),
        'type_modifier': (RaceDistance, RunnerType),
        'min_sessions': (RaceDistance, None),
        'undertrain_penalty_pct': (RaceDistance, None),
        'taper_bonus_pct': (RaceDistance, None),
        'taper_nominal_weeks': (RaceDistance, None),
    }

    def validate(self) -> Tuple[bool, str]:
        issues = []
        for name, (_, inner) in self._TABLES.items():
            table = getattr(self, name)
            missing = [d.value for d in RaceDistance if d not in table]
            if missing:
                issues.append(f"{name} missing distances {missing}")
                continue
            if inner is not None:
                for distance in RaceDistance:
                    if set(table[distance]) != set(inner):
                        issues.append(f"{name}[{distance.value}] incomplete")
        if any(v <= 0 for row in self.tau_weeks.values() for v in row.values()):
            issues.append("tau_weeks must be positive")
        if self.k_sessions <= 0:
            issues.append("k_sessions must be positive")
        if self.max_gain_cap_pct <= 0 or self.max_slowdown_pct < 0:
            issues.append("Gain cap must be positive and slowdown non-negative")
        if issues:
            return False, "; ".join(issues)
        return True, "Valid"


# Experience multipliers on projected gain
EXPERIENCE_FACTORS: Mapping[str, float] = _frozen({
    'total_beginner': 0.75,
    'beginner': 0.80,
    'novice': 0.90,
    'intermediate': 1.0,
    'advanced': 1.05,
    'competitive': 1.05,
    'returning': 1.15,
    'hybrid': 1.10,
})

# Higher rank = more experienced; gates the time-barrier guardrails
EXPERIENCE_RANK: Mapping[str, int] = _frozen({
    'total_beginner': 0,
    'beginner': 1,
    'novice': 2,
    'intermediate': 3,
    'advanced': 4,
    'competitive': 5,
    'returning': 5,
    'hybrid': 3,
})

# (required rank, VDOT ceiling, half-marathon PB in seconds that waives the cap)
# Checked in order, loosest barrier first.
TIME_BARRIERS: Mapping[RaceDistance, Tuple[Tuple[int, float, Optional[float]], ...]] = _frozen({
    RaceDistance.MARATHON: ((4, 53.5, 5280.0), (3, 47.5, None), (2, 42.5, None)),
    RaceDistance.HALF: ((4, 53.5, None), (3, 46.5, None), (2, 40.5, None)),
    RaceDistance.K10: ((3, 52.5, None), (2, 42.5, None)),
    RaceDistance.K5: ((3, 51.5, None),),
})
BARRIER_MARGIN = 2.0    # Baselines within this of a ceiling are not capped

# Seconds lost per skipped workout, by distance and workout type
SKIP_TIME_IMPACT: Mapping[RaceDistance, Mapping[str, float]] = _table(_by_distance(
    {'easy': 5, 'vo2': 20, 'threshold': 15, 'intervals': 20, 'long': 10},
    {'easy': 8, 'vo2': 18, 'threshold': 15, 'intervals': 18, 'race_pace': 15, 'long': 15},
    {'easy': 10, 'vo2': 15, 'threshold': 25, 'race_pace': 20, 'mixed': 18, 'long': 30,
     'progressive': 25},
    {'easy': 15, 'threshold': 30, 'marathon_pace': 35, 'mixed': 25, 'long': 60,
     'progressive': 35},
))
DEFAULT_SKIP_IMPACT = 20.0


# ═══════════════════════════════════════════════════════════════════════════════
# BUNDLE AND LOADING
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class EngineParams:
    """All tunable parameter groups."""
    paces: PaceZoneRatios = field(default_factory=PaceZoneRatios)
    blend: BlendParams = field(default_factory=BlendParams)
    adaptation: AdaptationParams = field(default_factory=AdaptationParams)
    horizon: HorizonParams = field(default_factory=HorizonParams)

    _GROUPS = {
        'paces': PaceZoneRatios,
        'blend': BlendParams,
        'adaptation': AdaptationParams,
        'horizon': HorizonParams,
    }

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name).to_dict() for name in self._GROUPS}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'EngineParams':
        unknown = set(d) - set(cls._GROUPS)
        if unknown:
            raise ValueError(f"Unknown parameter groups: {sorted(unknown)}")
        return cls(**{
            name: group.from_dict(d[name])
            for name, group in cls._GROUPS.items() if name in d
        })

    def validate(self) -> Tuple[bool, str]:
        issues = []
        for name in self._GROUPS:
            ok, message = getattr(self, name).validate()
            if not ok:
                issues.append(f"{name}: {message}")
        if issues:
            return False, "; ".join(issues)
        return True, "Valid"


def load_params(path: str) -> EngineParams:
    """
    Load parameter overrides from a JSON file.

    Groups and fields missing from the file keep their defaults.

    Raises:
        ValueError: if the file holds unknown keys or fails validation
    """
    with open(path) as f:
        raw = json.load(f)
    params = EngineParams.from_dict(raw)
    ok, message = params.validate()
    if not ok:
        raise ValueError(f"Invalid parameters in {path}: {message}")
    return params


# ═══════════════════════════════════════════════════════════════════════════════
# PARAMETER BOUNDS (for sensitivity analysis)
# ═══════════════════════════════════════════════════════════════════════════════

PARAM_BOUNDS = {
    # Adaptation
    'smoothing_factor': (0.1, 0.9),
    'min_ratio': (0.2, 0.5),
    'max_ratio': (1.5, 3.0),

    # Horizon
    'k_sessions': (0.5, 2.0),
    'max_gain_cap_pct': (10.0, 20.0),
    'max_slowdown_pct': (1.0, 5.0),
}
