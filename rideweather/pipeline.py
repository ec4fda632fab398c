"""
Ride analysis pipeline.

One call turns a RideRequest into a RideAnalysis by running every component
in dependency order. Nothing is cached between calls: any input change is
handled by recomputing the whole analysis.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from rideweather import rulebook
from rideweather.core.climbs import detect_climbs
from rideweather.core.daylight import SunLookup, analyze_daylight
from rideweather.core.departure import find_optimal_start_times
from rideweather.core.hazards import classify_hazards
from rideweather.core.insights import generate_insights
from rideweather.core.models import (
    Climb,
    Coordinate,
    DaylightAnalysis,
    Exportable,
    HazardAnalysis,
    HourlyConditions,
    Insight,
    InsightReport,
    OptimalDepartureTime,
    PacingPlan,
    PacingSummary,
    PowerSegment,
    RiderSettings,
    RouteWeatherSample,
    SafetyScore,
    SunEvents,
)
from rideweather.core.pacing import summarize_pacing
from rideweather.core.safety import safety_recommendations, score_ride
from rideweather.utils.error_handling import safe_divide

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RideRequest(Exportable):
    """Immutable snapshot of everything one analysis needs."""
    samples: Tuple[RouteWeatherSample, ...]
    power_segments: Tuple[PowerSegment, ...] = ()
    settings: RiderSettings = field(default_factory=RiderSettings)
    start_time: Optional[datetime] = None       # defaults to the first sample's timestamp
    cruise_speed: Optional[float] = None        # m/s; defaults to distance / power-plan time
    coordinate: Optional[Coordinate] = None
    sun_events: Optional[SunEvents] = None
    pacing_plan: Optional[PacingPlan] = None
    hourly_forecast: Tuple[HourlyConditions, ...] = ()
    elevation_gain: Optional[float] = None      # metres; derived from grades when absent
    now: Optional[datetime] = None

    @property
    def total_distance(self) -> float:
        distance = 0.0
        if self.samples:
            distance = self.samples[-1].distance - self.samples[0].distance
        if self.power_segments:
            distance = max(distance, self.power_segments[-1].end_distance - self.power_segments[0].start_distance)
        return max(0.0, distance)

    def resolved_speed(self) -> float:
        if self.cruise_speed is not None:
            return max(0.0, self.cruise_speed)
        ride_time = sum(max(0.0, s.duration) for s in self.power_segments)
        return safe_divide(self.total_distance, ride_time)


@dataclass(frozen=True)
class RideAnalysis(Exportable):
    rulebook_version: str
    total_distance: float
    hazards: HazardAnalysis
    climbs: Tuple[Climb, ...]
    daylight: DaylightAnalysis
    safety: SafetyScore
    safety_recommendations: Tuple[Insight, ...]
    insights: Optional[InsightReport]
    pacing: Optional[PacingSummary]
    departures: Tuple[OptimalDepartureTime, ...]


def analyze_ride(
    request: RideRequest,
    sun_lookup: Optional[SunLookup] = None,
    rulebook_path: Optional[str] = None,
) -> Optional[RideAnalysis]:
    """
    Run the full analysis.

    Returns None for an empty sample list. Missing power segments, pacing
    plan, sun data or hourly forecast only blank out the parts that need them.
    """
    if not request.samples:
        logger.warning("Empty sample list; nothing to analyze")
        return None

    settings = request.settings
    total = request.total_distance
    speed = request.resolved_speed()
    start = request.start_time or request.samples[0].timestamp
    logger.info(
        f"Analyzing ride: {len(request.samples)} samples, {len(request.power_segments)} power segments, "
        f"{total / 1000:.1f} km at {speed:.1f} m/s"
    )

    hazards = classify_hazards(request.samples, settings, rulebook_path)
    climbs = detect_climbs(request.power_segments, settings)
    daylight = analyze_daylight(
        start,
        speed,
        total,
        sun_events=request.sun_events,
        coordinate=request.coordinate,
        sun_lookup=sun_lookup,
        path=rulebook_path,
    )
    safety = score_ride(daylight, hazards, total, rulebook_path)
    insights = generate_insights(
        request.samples,
        request.power_segments,
        climbs,
        hazards,
        settings,
        pacing_plan=request.pacing_plan,
        elevation_gain=request.elevation_gain,
    )
    departures = find_optimal_start_times(
        request.samples,
        start,
        speed,
        settings,
        request.hourly_forecast,
        now=request.now,
    )

    return RideAnalysis(
        rulebook_version=rulebook.version(rulebook_path),
        total_distance=total,
        hazards=hazards,
        climbs=climbs,
        daylight=daylight,
        safety=safety,
        safety_recommendations=safety_recommendations(daylight, hazards, settings),
        insights=insights,
        pacing=summarize_pacing(request.power_segments, settings.ftp, request.pacing_plan),
        departures=departures,
    )
