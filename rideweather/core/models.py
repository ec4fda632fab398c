"""
Ride analysis data models.

Immutable value types shared by every analysis component. Internally all
quantities are canonical SI: metres, metres per second, degrees Celsius,
seconds, decimal grade (0.05 == 5%), probabilities in [0, 1] and watts.
Conversion to the rider's display units happens only where thresholds or
sentences are unit-specific (see core/units.py).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


class _StrEnum(str, Enum):
    """String enum that serializes to its lowercase value."""

    def __str__(self) -> str:
        return self.value


class UnitSystem(_StrEnum):
    METRIC = 'metric'
    IMPERIAL = 'imperial'


class HazardTier(_StrEnum):
    """Classification tiers, declared in evaluation priority order."""
    DANGEROUS = 'dangerous'
    CAUTIONARY = 'cautionary'
    OPTIMAL = 'optimal'


class WeatherRating(_StrEnum):
    SAFE = 'safe'
    CAUTIONARY = 'cautionary'
    DANGEROUS = 'dangerous'


class InsightCategory(_StrEnum):
    PACING = 'pacing'
    STRATEGY = 'strategy'
    SAFETY = 'safety'
    NUTRITION = 'nutrition'


class Impact(_StrEnum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    CRITICAL = 'critical'

    @property
    def rank(self) -> int:
        """Sort key: 0 for critical through 3 for low."""
        return _IMPACT_RANK[self]


_IMPACT_RANK = {Impact.CRITICAL: 0, Impact.HIGH: 1, Impact.MEDIUM: 2, Impact.LOW: 3}


class SafetyLevel(_StrEnum):
    EXCELLENT = 'excellent'
    GOOD = 'good'
    FAIR = 'fair'
    POOR = 'poor'
    DANGEROUS = 'dangerous'


class Visibility(_StrEnum):
    POOR = 'poor'
    FAIR = 'fair'
    GOOD = 'good'
    EXCELLENT = 'excellent'


class WindEffect(_StrEnum):
    HEADWIND = 'headwind'
    TAILWIND = 'tailwind'
    NEUTRAL = 'neutral'


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


class Exportable:
    """Adds a JSON-ready ``to_dict`` to frozen dataclasses."""

    def to_dict(self) -> Dict[str, Any]:
        out = {f.name: _jsonable(getattr(self, f.name)) for f in fields(self)}
        for name in getattr(self, "_derived", ()):
            out[name] = _jsonable(getattr(self, name))
        return out


# ---------- Inputs ----------

@dataclass(frozen=True)
class RouteWeatherSample(Exportable):
    """Forecast conditions at one point along the route."""
    distance: float                        # metres from route start
    timestamp: datetime                    # expected arrival, timezone-aware
    temperature: float                     # °C
    feels_like: float                      # °C
    wind_speed: float                      # m/s
    wind_direction: float = 0.0            # degrees, meteorological
    humidity: float = 50.0                 # %
    precipitation_probability: float = 0.0  # 0..1
    condition: str = ""                    # e.g. "rain", "snow", "thunderstorm"
    uv_index: Optional[float] = None


@dataclass(frozen=True)
class PowerSegment(Exportable):
    """One stretch of the upstream pacing plan with its physics breakdown."""
    start_distance: float                  # metres
    end_distance: float                    # metres
    duration: float                        # seconds
    grade: float                           # decimal
    headwind: float = 0.0                  # m/s, + headwind / - tailwind
    crosswind: float = 0.0                 # m/s, signed
    temperature: float = 20.0              # °C
    humidity: float = 50.0                 # %
    power: float = 0.0                     # W
    speed: float = 0.0                     # m/s

    _derived = ("distance",)

    @property
    def distance(self) -> float:
        return max(0.0, self.end_distance - self.start_distance)


@dataclass(frozen=True)
class PacedSegment(Exportable):
    start_distance: float
    end_distance: float
    target_power: float                    # W
    duration: float                        # seconds


@dataclass(frozen=True)
class PacingPlan(Exportable):
    segments: Tuple[PacedSegment, ...]

    _derived = ("total_duration",)

    @property
    def total_duration(self) -> float:
        return sum(s.duration for s in self.segments)


@dataclass(frozen=True)
class RiderSettings(Exportable):
    """
    Rider preferences.

    ``hazard_thresholds`` overrides rulebook thresholds by name, expressed in
    the display units of ``unit_system`` (e.g. ``{"extreme_wind": 40}`` means
    40 km/h for metric riders).
    """
    unit_system: UnitSystem = UnitSystem.METRIC
    ftp: float = 250.0
    hazard_thresholds: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "unit_system", UnitSystem(self.unit_system))

    @property
    def is_metric(self) -> bool:
        return self.unit_system is UnitSystem.METRIC


@dataclass(frozen=True)
class Coordinate(Exportable):
    latitude: float
    longitude: float


@dataclass(frozen=True)
class SunEvents(Exportable):
    """Already-resolved sun events for the ride date and location."""
    sunrise: Optional[datetime] = None
    sunset: Optional[datetime] = None


@dataclass(frozen=True)
class HourlyConditions(Exportable):
    """One hour of a forecast timeline, used to re-time the route."""
    time: datetime
    temperature: float
    feels_like: float
    wind_speed: float                      # m/s
    humidity: float = 50.0
    precipitation_probability: float = 0.0
    condition: str = ""
    uv_index: Optional[float] = None


# ---------- Segments ----------

@dataclass(frozen=True)
class Segment(Exportable):
    """
    Contiguous run over an ordered sequence sharing one classification tag.

    ``end_index`` is inclusive. ``severity`` is always >= 0.
    """
    tag: str
    start_index: int
    end_index: int
    start_distance: float
    end_distance: float
    duration: float
    severity: float

    _derived = ("distance",)

    @property
    def distance(self) -> float:
        return max(0.0, self.end_distance - self.start_distance)


@dataclass(frozen=True)
class HazardSegment(Segment):
    tier: HazardTier
    hazard: str
    rule_id: str
    title: str
    description: str
    recommendation: str


@dataclass(frozen=True)
class Climb(Segment):
    gain: float                            # metres
    max_grade: float                       # decimal
    average_power: float                   # W, time-weighted
    average_intensity: float               # % FTP
    average_headwind: float                # m/s, time-weighted
    wind_effect: WindEffect


@dataclass(frozen=True)
class DaylightSegment(Exportable):
    label: str
    kind: str                              # "dark" | "golden"
    start: datetime
    end: datetime
    distance: float                        # metres

    _derived = ("duration",)

    @property
    def duration(self) -> float:
        return max(0.0, (self.end - self.start).total_seconds())


# ---------- Results ----------

@dataclass(frozen=True)
class HazardAnalysis(Exportable):
    dangerous: Tuple[HazardSegment, ...]
    cautionary: Tuple[HazardSegment, ...]
    optimal: Tuple[HazardSegment, ...]
    weather_rating: WeatherRating

    def segments(self, tier: HazardTier) -> Tuple[HazardSegment, ...]:
        return getattr(self, HazardTier(tier).value)

    def distance(self, tier: HazardTier) -> float:
        return sum(s.distance for s in self.segments(tier))


@dataclass(frozen=True)
class Insight(Exportable):
    category: InsightCategory
    title: str
    rationale: str
    action_items: Tuple[str, ...]
    impact: Impact
    rule_id: str


@dataclass(frozen=True)
class SafetyScore(Exportable):
    score: float
    level: SafetyLevel
    factors: Tuple[str, ...]


@dataclass(frozen=True)
class DaylightAnalysis(Exportable):
    sunrise: Optional[datetime]
    sunset: Optional[datetime]
    ride_start: datetime
    ride_end: datetime
    total_distance: float
    dark_segments: Tuple[DaylightSegment, ...]
    golden_segments: Tuple[DaylightSegment, ...]
    visibility: Visibility
    sun_data_available: bool

    _derived = ("dark_distance", "golden_distance", "dark_fraction", "golden_fraction")

    @property
    def dark_distance(self) -> float:
        return sum(s.distance for s in self.dark_segments)

    @property
    def golden_distance(self) -> float:
        return sum(s.distance for s in self.golden_segments)

    @property
    def dark_fraction(self) -> float:
        return self.dark_distance / self.total_distance if self.total_distance > 0 else 0.0

    @property
    def golden_fraction(self) -> float:
        return self.golden_distance / self.total_distance if self.total_distance > 0 else 0.0


@dataclass(frozen=True)
class OptimalDepartureTime(Exportable):
    start_time: datetime
    score: float
    factor_scores: Mapping[str, float]
    improvement_pct: float
    most_improved_factor: str
    primary_benefit: str
    window_start: datetime
    window_end: datetime


@dataclass(frozen=True)
class CriticalSegment(Exportable):
    """A power segment whose combined conditions warrant a specific callout."""
    index: int
    start_distance: float
    end_distance: float
    severity: int
    conditions: Tuple[str, ...]
    power_note: str
    notes: Tuple[str, ...]


@dataclass(frozen=True)
class RouteAggregates(Exportable):
    """Route-wide statistics computed before any segment-local flag."""
    total_distance: float                  # metres
    total_gain: float                      # metres
    gain_density: float                    # m gained per km
    total_time: float                      # seconds
    headwind_share: float                  # share of ride time, 0..1
    tailwind_share: float
    headwind_time: float                   # seconds
    tailwind_time: float
    first_half_headwind_share: float
    second_half_headwind_share: float
    first_half_tailwind_share: float
    second_half_tailwind_share: float
    average_headwind: float                # m/s over significant headwind time
    average_tailwind: float                # m/s over significant tailwind time, positive
    average_temperature: float             # °C
    max_temperature: float
    min_temperature: float
    max_crosswind: float                   # m/s, absolute
    max_precipitation_probability: float
    max_uv_index: Optional[float]
    max_heat_index_f: float
    average_power: float


@dataclass(frozen=True)
class InsightReport(Exportable):
    insights: Tuple[Insight, ...]
    critical_segments: Tuple[CriticalSegment, ...]
    synthesis: str
    aggregates: RouteAggregates


@dataclass(frozen=True)
class PacingSummary(Exportable):
    """Whole-ride power statistics over the power segments."""
    total_time: float                      # seconds
    total_energy_kj: float
    average_power: float                   # W, time-weighted
    normalized_power: float                # W
    intensity_factor: float                # NP / FTP
    variability_index: float               # NP / average power
    terrain: Mapping[str, Mapping[str, float]]
    zone_time: Mapping[str, float]         # seconds per power zone
