"""
Unit tests for rideweather/core/pacing.py
"""
import pytest
from conftest import make_segments

from rideweather.core.models import PacedSegment, PacingPlan
from rideweather.core.pacing import (
    normalized_power,
    summarize_pacing,
    terrain_breakdown,
    terrain_type,
    zone_distribution,
    zone_for,
)


@pytest.mark.parametrize("pct,zone", [
    (0.0, "Recovery"), (54.9, "Recovery"), (55.0, "Endurance"), (89.9, "Tempo"),
    (90.0, "Threshold"), (110.0, "VO2 Max"), (150.0, "Anaerobic"),
])
def test_zone_for(pct, zone):
    assert zone_for(pct) == zone


def test_zone_distribution_sums_time_per_zone():
    plan = [
        PacedSegment(0.0, 1.0, target_power=100.0, duration=600.0),
        PacedSegment(1.0, 2.0, target_power=200.0, duration=300.0),
        PacedSegment(2.0, 3.0, target_power=100.0, duration=60.0),
    ]
    zones = zone_distribution(plan, ftp=250.0)
    assert list(zones.index) == ["Recovery", "Endurance", "Tempo", "Threshold", "VO2 Max", "Anaerobic"]
    assert zones["Recovery"] == 660.0
    assert zones["Tempo"] == 300.0
    assert zones["Anaerobic"] == 0.0


def test_normalized_power_of_steady_ride_equals_power():
    segments = make_segments([(8000.0, 0.0)], power=200.0)   # 1000 s at 200 W
    assert normalized_power(segments) == pytest.approx(200.0)


def test_normalized_power_rewards_variability():
    varied = make_segments([{"length": 2400.0, "power": p} for p in (100.0, 300.0, 100.0, 300.0)])
    assert normalized_power(varied) > 200.0


def test_terrain_breakdown():
    segments = make_segments([(1000.0, 0.05), (1000.0, -0.04), (1000.0, 0.02), (1000.0, 0.0)])
    terrain = terrain_breakdown(segments)
    assert set(terrain) == {"climb", "descent", "rolling", "flat"}
    assert terrain["climb"]["distance"] == 1000.0
    assert terrain["flat"]["average_power"] == pytest.approx(180.0)
    assert terrain_type(0.03) == "rolling"


def test_summarize_pacing():
    segments = make_segments([(8000.0, 0.0)], power=200.0)
    plan = PacingPlan(segments=(PacedSegment(0.0, 8000.0, target_power=200.0, duration=1000.0),))
    summary = summarize_pacing(segments, 250.0, plan)
    assert summary.total_energy_kj == pytest.approx(200.0)
    assert summary.intensity_factor == pytest.approx(0.8)
    assert summary.variability_index == pytest.approx(1.0)
    assert summary.zone_time["Tempo"] == pytest.approx(1000.0)
    assert summarize_pacing([], 250.0) is None
