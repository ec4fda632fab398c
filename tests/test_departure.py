"""
Unit tests for rideweather/core/departure.py
"""
from datetime import datetime, timedelta, timezone

import pytest
from conftest import make_sample

from rideweather.core.departure import factor_scores, find_optimal_start_times, retime_samples
from rideweather.core.models import HourlyConditions, RiderSettings

START = datetime(2026, 6, 1, 6, 0, tzinfo=timezone.utc)
NOW = datetime(2026, 6, 1, 5, 30, tzinfo=timezone.utc)
SPEED = 10.0
TEMPS = {6: 10.0, 7: 12.0, 8: 21.0, 9: 21.0, 10: 21.0}


def _forecast(temps=None, default=30.0):
    temps = TEMPS if temps is None else temps
    out = []
    for hour in range(4, 15):
        t = temps.get(hour, default)
        out.append(HourlyConditions(
            time=datetime(2026, 6, 1, hour, 0, tzinfo=timezone.utc),
            temperature=t, feels_like=t, wind_speed=2.0,
        ))
    return out


def _samples():
    # 10 km at 10 m/s, every sample within the 06:00 forecast hour
    return [make_sample(i * 1000.0, speed=SPEED, start=START) for i in range(11)]


class TestRetime:
    """Samples take the forecast hour nearest their new arrival time."""

    def test_retime_uses_nearest_hour(self):
        later = retime_samples(_samples(), START + timedelta(hours=2), SPEED, _forecast())
        assert all(s.temperature == 21.0 for s in later)
        assert later[-1].timestamp == START + timedelta(hours=2, seconds=1000)

    def test_factor_scores_at_current_start(self):
        current = retime_samples(_samples(), START, SPEED, _forecast())
        scores = factor_scores(current, RiderSettings())
        assert scores["temperature"] == pytest.approx(78.0)
        assert scores["wind"] == pytest.approx(78.4)
        assert scores["precipitation"] == pytest.approx(100.0)
        assert scores["comfort"] == pytest.approx(100.0)


class TestOptimalStartTimes:
    """Search over hour offsets from the planned start."""

    def test_best_three_are_mild_hours(self):
        results = find_optimal_start_times(_samples(), START, SPEED, RiderSettings(), _forecast(), now=NOW)
        assert [r.start_time.hour for r in results] == [8, 9, 10]
        best = results[0]
        assert best.score == pytest.approx(94.6)
        assert best.improvement_pct == pytest.approx(7.5)
        assert best.most_improved_factor == "temperature"
        assert best.primary_benefit == "More comfortable temperatures"
        assert best.window_start == best.start_time - timedelta(minutes=30)
        assert best.window_end == best.start_time + timedelta(minutes=30)

    def test_results_sorted_and_capped(self):
        results = find_optimal_start_times(_samples(), START, SPEED, RiderSettings(), _forecast(), now=NOW)
        assert len(results) == 3
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)

    def test_past_candidates_skipped(self):
        late = datetime(2026, 6, 1, 11, 0, tzinfo=timezone.utc)
        assert find_optimal_start_times(_samples(), START, SPEED, RiderSettings(), _forecast(), now=late) == ()

    def test_no_improvement_returns_empty(self):
        flat = _forecast(temps={}, default=21.0)
        assert find_optimal_start_times(_samples(), START, SPEED, RiderSettings(), flat, now=NOW) == ()

    def test_missing_inputs(self):
        assert find_optimal_start_times([], START, SPEED, RiderSettings(), _forecast(), now=NOW) == ()
        assert find_optimal_start_times(_samples(), START, SPEED, RiderSettings(), [], now=NOW) == ()
