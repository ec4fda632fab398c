"""
Pydantic models for analysis payloads.

Defines the JSON shape accepted by the loader and CLI and converts it into
the engine's immutable domain types. All quantities are SI: metres, m/s, °C,
seconds, decimal grade, probability 0..1.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from rideweather.core.models import (
    Coordinate,
    HourlyConditions,
    PacedSegment,
    PacingPlan,
    PowerSegment,
    RiderSettings,
    RouteWeatherSample,
    SunEvents,
    UnitSystem,
)
from rideweather.pipeline import RideRequest


class WeatherSampleModel(BaseModel):
    """
    One forecast point along the route.

    Attributes:
        distance: Metres from route start
        timestamp: Expected arrival time (ISO 8601, with offset)
        feels_like: Defaults to ``temperature`` when omitted
    """
    distance: float = Field(..., ge=0)
    timestamp: datetime
    temperature: float
    feels_like: Optional[float] = None
    wind_speed: float = Field(0.0, ge=0, description="m/s")
    wind_direction: float = Field(0.0, ge=0, le=360)
    humidity: float = Field(50.0, ge=0, le=100)
    precipitation_probability: float = Field(0.0, ge=0, le=1)
    condition: str = ""
    uv_index: Optional[float] = Field(None, ge=0)

    @field_validator('condition')
    @classmethod
    def validate_condition(cls, v: str) -> str:
        """Normalize condition code to lowercase."""
        return v.strip().lower()

    def to_domain(self) -> RouteWeatherSample:
        return RouteWeatherSample(
            distance=self.distance,
            timestamp=self.timestamp,
            temperature=self.temperature,
            feels_like=self.temperature if self.feels_like is None else self.feels_like,
            wind_speed=self.wind_speed,
            wind_direction=self.wind_direction,
            humidity=self.humidity,
            precipitation_probability=self.precipitation_probability,
            condition=self.condition,
            uv_index=self.uv_index,
        )


class PowerSegmentModel(BaseModel):
    start_distance: float = Field(..., ge=0)
    end_distance: float = Field(..., ge=0)
    duration: float = Field(..., ge=0, description="seconds")
    grade: float = Field(0.0, ge=-1, le=1, description="decimal grade")
    headwind: float = 0.0
    crosswind: float = 0.0
    temperature: float = 20.0
    humidity: float = Field(50.0, ge=0, le=100)
    power: float = Field(0.0, ge=0)
    speed: float = Field(0.0, ge=0)

    @model_validator(mode='after')
    def check_span(self):
        if self.end_distance < self.start_distance:
            raise ValueError("end_distance must not be before start_distance")
        return self

    def to_domain(self) -> PowerSegment:
        return PowerSegment(**self.model_dump())


class PacedSegmentModel(BaseModel):
    start_distance: float = Field(..., ge=0)
    end_distance: float = Field(..., ge=0)
    target_power: float = Field(..., ge=0)
    duration: float = Field(..., ge=0)

    def to_domain(self) -> PacedSegment:
        return PacedSegment(**self.model_dump())


class RiderSettingsModel(BaseModel):
    unit_system: Literal['metric', 'imperial'] = 'metric'
    ftp: float = Field(250.0, gt=0, description="Functional threshold power in watts")
    hazard_thresholds: Dict[str, float] = Field(default_factory=dict)

    @field_validator('unit_system', mode='before')
    @classmethod
    def validate_unit_system(cls, v):
        """Accept any casing."""
        return v.lower() if isinstance(v, str) else v

    def to_domain(self) -> RiderSettings:
        return RiderSettings(
            unit_system=UnitSystem(self.unit_system),
            ftp=self.ftp,
            hazard_thresholds=dict(self.hazard_thresholds),
        )


class CoordinateModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class SunEventsModel(BaseModel):
    sunrise: Optional[datetime] = None
    sunset: Optional[datetime] = None


class HourlyConditionsModel(BaseModel):
    time: datetime
    temperature: float
    feels_like: Optional[float] = None
    wind_speed: float = Field(0.0, ge=0)
    humidity: float = Field(50.0, ge=0, le=100)
    precipitation_probability: float = Field(0.0, ge=0, le=1)
    condition: str = ""
    uv_index: Optional[float] = Field(None, ge=0)

    def to_domain(self) -> HourlyConditions:
        data = self.model_dump()
        if data["feels_like"] is None:
            data["feels_like"] = self.temperature
        data["condition"] = self.condition.lower()
        return HourlyConditions(**data)


class AnalyzeRequest(BaseModel):
    """
    Full analysis payload.

    Only ``samples`` is needed for hazards, daylight and safety; power
    segments unlock climbs and insights, a pacing plan unlocks the zone
    summary, and an hourly forecast unlocks the departure search.
    """
    samples: List[WeatherSampleModel] = Field(default_factory=list)
    power_segments: List[PowerSegmentModel] = Field(default_factory=list)
    settings: RiderSettingsModel = Field(default_factory=RiderSettingsModel)
    start_time: Optional[datetime] = None
    cruise_speed: Optional[float] = Field(None, ge=0, description="m/s")
    coordinate: Optional[CoordinateModel] = None
    sun_events: Optional[SunEventsModel] = None
    pacing_plan: Optional[List[PacedSegmentModel]] = None
    hourly_forecast: List[HourlyConditionsModel] = Field(default_factory=list)
    elevation_gain: Optional[float] = Field(None, ge=0, description="metres")
    now: Optional[datetime] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "samples": [
                    {"distance": 0, "timestamp": "2026-06-01T07:00:00+00:00", "temperature": 18,
                     "wind_speed": 2.0, "precipitation_probability": 0.0},
                ],
                "settings": {"unit_system": "metric", "ftp": 250},
                "sun_events": {"sunrise": "2026-06-01T05:30:00+00:00",
                               "sunset": "2026-06-01T21:10:00+00:00"},
            }
        }
    }

    @model_validator(mode='after')
    def check_ordering(self):
        distances = [s.distance for s in self.samples]
        if any(b < a for a, b in zip(distances, distances[1:])):
            raise ValueError("samples must be ordered by non-decreasing distance")
        starts = [s.start_distance for s in self.power_segments]
        if any(b < a for a, b in zip(starts, starts[1:])):
            raise ValueError("power_segments must be ordered by start_distance")
        return self

    def to_request(self) -> RideRequest:
        return RideRequest(
            samples=tuple(s.to_domain() for s in self.samples),
            power_segments=tuple(s.to_domain() for s in self.power_segments),
            settings=self.settings.to_domain(),
            start_time=self.start_time,
            cruise_speed=self.cruise_speed,
            coordinate=Coordinate(**self.coordinate.model_dump()) if self.coordinate else None,
            sun_events=SunEvents(**self.sun_events.model_dump()) if self.sun_events else None,
            pacing_plan=(
                PacingPlan(segments=tuple(s.to_domain() for s in self.pacing_plan))
                if self.pacing_plan is not None else None
            ),
            hourly_forecast=tuple(h.to_domain() for h in self.hourly_forecast),
            elevation_gain=self.elevation_gain,
            now=self.now,
        )
