"""
Shared builders for rideweather tests.

All inputs are SI: metres, m/s, °C, seconds, decimal grade.
"""

from datetime import datetime, timedelta, timezone

import pytest

from rideweather import rulebook
from rideweather.core.models import PowerSegment, RouteWeatherSample

T0 = datetime(2026, 6, 1, 6, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def fresh_rulebook():
    """Each test sees the packaged rulebook unless it patches one in."""
    rulebook.clear_caches()
    yield
    rulebook.clear_caches()


def make_sample(distance, speed=8.0, temperature=20.0, wind=1.0, pop=0.0, condition="",
                humidity=50.0, feels_like=None, uv=None, start=T0):
    return RouteWeatherSample(
        distance=float(distance),
        timestamp=start + timedelta(seconds=distance / speed),
        temperature=temperature,
        feels_like=temperature if feels_like is None else feels_like,
        wind_speed=wind,
        humidity=humidity,
        precipitation_probability=pop,
        condition=condition,
        uv_index=uv,
    )


def flat_samples(km=50, step=1000.0, **kwargs):
    """One sample every ``step`` metres from 0 to ``km`` kilometres inclusive."""
    count = int(km * 1000 / step) + 1
    return [make_sample(i * step, **kwargs) for i in range(count)]


def make_segments(layout, speed=8.0, power=180.0, temperature=20.0, headwind=0.0, crosswind=0.0):
    """
    Power segments from ``(length_m, grade)`` tuples or dicts of overrides.

    Dict entries need ``length`` and may override any PowerSegment field.
    """
    out = []
    position = 0.0
    for entry in layout:
        if isinstance(entry, dict):
            fields = dict(entry)
            length = fields.pop("length")
        else:
            length, grade = entry
            fields = {"grade": grade}
        seg_speed = fields.pop("speed", speed)
        values = {
            "grade": 0.0,
            "headwind": headwind,
            "crosswind": crosswind,
            "temperature": temperature,
            "power": power,
            "speed": seg_speed,
            "duration": length / seg_speed,
        }
        values.update(fields)
        out.append(PowerSegment(start_distance=position, end_distance=position + length, **values))
        position += length
    return out


@pytest.fixture
def scenario_a():
    """50 km flat route, light wind, 18-22°C, dry."""
    samples = [
        make_sample(i * 1000.0, temperature=18.0 + (i % 5), wind=1.2)
        for i in range(51)
    ]
    segments = make_segments([(1000.0, 0.0)] * 50, headwind=0.5)
    return samples, segments
