"""
Unit tests for rideweather/core/daylight.py (Scenario D and fallbacks).
"""
from datetime import datetime, timedelta, timezone

import pytest

from rideweather.core.daylight import analyze_daylight
from rideweather.core.models import Coordinate, SunEvents, Visibility

DAY = datetime(2026, 3, 20, tzinfo=timezone.utc)
SUN = SunEvents(sunrise=DAY.replace(hour=6), sunset=DAY.replace(hour=20))
HERE = Coordinate(latitude=45.5, longitude=-73.6)


class TestScenarioD:
    """Start one hour before sunrise, finish well before sunset."""

    def _analysis(self):
        # 100 km at 8 m/s = 12500 s, finishing 08:28:20
        return analyze_daylight(DAY.replace(hour=5), 8.0, 100000.0, sun_events=SUN)

    def test_single_predawn_segment(self):
        result = self._analysis()
        assert len(result.dark_segments) == 1
        seg = result.dark_segments[0]
        assert seg.label == "Pre-dawn darkness"
        assert seg.duration == pytest.approx(3600.0)
        assert seg.distance == pytest.approx(seg.duration * 8.0)

    def test_no_evening_darkness(self):
        labels = [s.label for s in self._analysis().dark_segments]
        assert "Evening darkness" not in labels

    def test_morning_golden_hour_after_sunrise_only(self):
        result = self._analysis()
        assert [s.label for s in result.golden_segments] == ["Morning golden hour"]
        golden = result.golden_segments[0]
        assert golden.start == SUN.sunrise
        assert golden.end == SUN.sunrise + timedelta(minutes=60)

    def test_totals_and_visibility(self):
        result = self._analysis()
        assert result.ride_end == DAY.replace(hour=8, minute=28, second=20)
        assert result.dark_distance + result.golden_distance <= result.total_distance
        assert result.dark_fraction == pytest.approx(0.288)
        assert result.visibility is Visibility.FAIR
        assert result.sun_data_available


def test_evening_ride():
    # 19:00 to 21:00 at 5 m/s with sunset 20:00
    result = analyze_daylight(DAY.replace(hour=19), 5.0, 36000.0, sun_events=SUN)
    assert [s.label for s in result.dark_segments] == ["Evening darkness"]
    assert result.dark_distance == pytest.approx(18000.0)
    assert [s.label for s in result.golden_segments] == ["Evening golden hour"]
    assert result.golden_distance == pytest.approx(18000.0)
    assert result.visibility is Visibility.FAIR


def test_missing_sun_data_is_fully_daylit():
    result = analyze_daylight(DAY.replace(hour=3), 8.0, 50000.0)
    assert result.dark_segments == ()
    assert result.golden_segments == ()
    assert result.sunrise is None and result.sunset is None
    assert not result.sun_data_available
    assert result.visibility is Visibility.GOOD


def test_failing_lookup_falls_back_to_daylight():
    def broken(coord, when):
        raise TimeoutError("rate limited")

    result = analyze_daylight(DAY.replace(hour=3), 8.0, 50000.0, coordinate=HERE, sun_lookup=broken)
    assert result.dark_segments == ()
    assert not result.sun_data_available


def test_lookup_is_used_when_no_events_given():
    calls = []

    def lookup(coord, when):
        calls.append((coord, when))
        return SUN

    result = analyze_daylight(DAY.replace(hour=5), 8.0, 100000.0, coordinate=HERE, sun_lookup=lookup)
    assert calls == [(HERE, DAY.replace(hour=5))]
    assert len(result.dark_segments) == 1


def test_zero_speed_and_distance_are_guarded():
    still = analyze_daylight(DAY.replace(hour=5), 0.0, 10000.0, sun_events=SUN)
    assert still.ride_end == still.ride_start
    assert still.dark_distance == 0.0
    empty = analyze_daylight(DAY.replace(hour=5), 8.0, 0.0, sun_events=SUN)
    assert empty.visibility is Visibility.EXCELLENT


@pytest.mark.parametrize("hour", [0, 4, 5, 6, 12, 18, 19, 20, 22])
def test_dark_plus_golden_never_exceeds_total(hour):
    result = analyze_daylight(DAY.replace(hour=hour), 7.0, 120000.0, sun_events=SUN)
    assert result.dark_distance + result.golden_distance <= result.total_distance + 1e-3
