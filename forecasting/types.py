"""
Value records and enums shared by every forecasting model.

All records are frozen dataclasses: each calculation returns a fresh record
and nothing is mutated across calls.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, Iterator, Tuple
import math


class RaceDistance(Enum):
    """Canonical race distances."""
    K5 = "5k"
    K10 = "10k"
    HALF = "half"
    MARATHON = "marathon"

    @property
    def meters(self) -> float:
        return _DISTANCE_METERS[self]

    @property
    def km(self) -> float:
        return _DISTANCE_METERS[self] / 1000.0

    @classmethod
    def from_key(cls, key: str) -> 'RaceDistance':
        """
        Parse a distance key.

        Accepts the canonical values ('5k', '10k', 'half', 'marathon') and the
        short personal-best aliases ('k5', 'k10', 'h', 'm').
        """
        if isinstance(key, cls):
            return key
        normalized = str(key).strip().lower()
        if normalized in _DISTANCE_ALIASES:
            return _DISTANCE_ALIASES[normalized]
        raise ValueError(f"Unknown race distance '{key}'")

    @classmethod
    def nearest(cls, meters: float) -> 'RaceDistance':
        """Closest canonical distance to an arbitrary distance in meters."""
        return min(cls, key=lambda d: abs(d.meters - meters))


_DISTANCE_METERS = {
    RaceDistance.K5: 5000.0,
    RaceDistance.K10: 10000.0,
    RaceDistance.HALF: 21097.0,
    RaceDistance.MARATHON: 42195.0,
}

_DISTANCE_ALIASES = {
    '5k': RaceDistance.K5, 'k5': RaceDistance.K5,
    '10k': RaceDistance.K10, 'k10': RaceDistance.K10,
    'half': RaceDistance.HALF, 'h': RaceDistance.HALF, 'hm': RaceDistance.HALF,
    'marathon': RaceDistance.MARATHON, 'm': RaceDistance.MARATHON,
}


class RunnerType(Enum):
    """Runner profile derived from the fade exponent."""
    SPEED = "Speed"             # High fade: relatively stronger at short distances
    BALANCED = "Balanced"
    ENDURANCE = "Endurance"     # Low fade: relatively stronger at long distances

    @classmethod
    def from_key(cls, key: str) -> 'RunnerType':
        if isinstance(key, cls):
            return key
        normalized = str(key).strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValueError(f"Unknown runner type '{key}'")


class AbilityBand(Enum):
    """Fitness-index band used to select training-response tables."""
    BEGINNER = "beginner"
    NOVICE = "novice"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    ELITE = "elite"


class MeasurementSource(Enum):
    """How a physiology measurement was obtained."""
    WATCH = "watch"
    MANUAL = "manual"
    TEST = "test"


class AdaptationStatus(Enum):
    """User-facing adaptation status."""
    NEEDS_DATA = "needsData"
    EXCELLENT = "excellent"
    GOOD = "good"
    ON_TRACK = "onTrack"
    SLOW = "slow"
    CONCERNING = "concerning"


class PredictionSource(Enum):
    """Inputs the prediction blender can draw on."""
    RECENT = "recent"
    PB = "pb"
    LT = "lt"
    VO2 = "vo2"


def is_usable(value: Optional[float]) -> bool:
    """True for a present, finite, strictly positive number."""
    return value is not None and math.isfinite(value) and value > 0


@dataclass(frozen=True)
class PersonalBests:
    """
    Sparse personal-best times in seconds.

    Any subset of the four canonical distances may be present.
    """
    k5: Optional[float] = None
    k10: Optional[float] = None
    half: Optional[float] = None
    marathon: Optional[float] = None

    def get(self, distance: RaceDistance) -> Optional[float]:
        return {
            RaceDistance.K5: self.k5,
            RaceDistance.K10: self.k10,
            RaceDistance.HALF: self.half,
            RaceDistance.MARATHON: self.marathon,
        }[distance]

    def present(self) -> Iterator[Tuple[RaceDistance, float]]:
        """Yield (distance, seconds) for every usable entry, shortest first."""
        for distance in RaceDistance:
            seconds = self.get(distance)
            if is_usable(seconds):
                yield distance, float(seconds)

    def __len__(self) -> int:
        return sum(1 for _ in self.present())

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {d.value: self.get(d) for d in RaceDistance}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'PersonalBests':
        """Build from a mapping keyed by canonical or short distance keys."""
        values: Dict[str, Optional[float]] = {}
        attr = {
            RaceDistance.K5: 'k5',
            RaceDistance.K10: 'k10',
            RaceDistance.HALF: 'half',
            RaceDistance.MARATHON: 'marathon',
        }
        for key, seconds in (d or {}).items():
            distance = RaceDistance.from_key(key)
            values[attr[distance]] = None if seconds is None else float(seconds)
        return cls(**values)


@dataclass(frozen=True)
class RecentRace:
    """A recent non-PB race or time trial."""
    distance_km: float
    time_seconds: float
    weeks_ago: float = 0.0

    @property
    def distance_meters(self) -> float:
        return self.distance_km * 1000.0


@dataclass(frozen=True)
class Paces:
    """Training pace zones in seconds per km (r < i < t < m < e)."""
    e: float
    t: float
    i: float
    m: float
    r: float


@dataclass(frozen=True)
class PhysiologyMeasurement:
    """A single LT / VO2max observation."""
    week: int
    lt_pace_sec_per_km: Optional[float] = None
    vo2max: Optional[float] = None
    source: MeasurementSource = MeasurementSource.WATCH
    timestamp: Optional[str] = None


@dataclass(frozen=True)
class ExpectedPhysiologyPoint:
    """Expected LT pace and VO2max at one week, with confidence bounds."""
    week: int
    expected_lt: Optional[float]
    expected_vo2: Optional[float]
    lt_lower_bound: Optional[float]
    lt_upper_bound: Optional[float]
    vo2_lower_bound: Optional[float]
    vo2_upper_bound: Optional[float]


@dataclass(frozen=True)
class AssessmentResult:
    """Outcome of an adaptation assessment."""
    status: AdaptationStatus
    has_sufficient_data: bool
    message: str
    adaptation_ratio: float = 1.0
    lt_adaptation_ratio: Optional[float] = None
    vo2_adaptation_ratio: Optional[float] = None
    deviation_pct: float = 0.0


@dataclass(frozen=True)
class PhysiologyTrackingState:
    """
    Snapshot of physiology tracking for one training cycle.

    Owned and persisted by the caller; the engine only returns updated copies.
    """
    initial_lt: Optional[float]
    initial_vo2: Optional[float]
    baseline_vdot: float
    measurements: Tuple[PhysiologyMeasurement, ...] = field(default_factory=tuple)
    current_adaptation_ratio: float = 1.0
    last_assessment: Optional[AssessmentResult] = None


@dataclass(frozen=True)
class ForecastResult:
    """Forecast fitness index and race time at the target distance."""
    forecast_vdot: float
    forecast_time: float
