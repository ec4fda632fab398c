"""
Unit tests for rideweather/core/insights.py

Scenario A (endurance profile), Scenario C (asymmetric wind), the danger
zone, power zones, route-wide suppression and synthesis.
"""
import re

import pytest
from conftest import make_sample, make_segments

from rideweather.core.climbs import detect_climbs
from rideweather.core.insights import compute_aggregates, generate_insights, route_profile_insight, synthesize
from rideweather.core.models import (
    Impact,
    PacedSegment,
    PacingPlan,
    RiderSettings,
    UnitSystem,
)

METRIC = RiderSettings(ftp=250.0)
IMPERIAL = RiderSettings(unit_system=UnitSystem.IMPERIAL, ftp=250.0)


def _ids(report):
    return [i.rule_id for i in report.insights]


def _by_id(report, rule_id):
    return next(i for i in report.insights if i.rule_id == rule_id)


def _sentences(text):
    return text.split(". ")


def test_no_power_segments_is_absence(scenario_a):
    samples, _ = scenario_a
    assert generate_insights(samples, [], (), None, METRIC) is None


class TestScenarioA:
    """50 km flat route, light wind, mild and dry."""

    def test_endurance_profile(self, scenario_a):
        samples, segments = scenario_a
        report = generate_insights(samples, segments, detect_climbs(segments, METRIC), None, METRIC)
        profile = _by_id(report, "route_profile")
        assert profile.title == "Endurance Route Profile"
        assert "50.0 km" in profile.rationale

    def test_quiet_route_has_no_weather_insights(self, scenario_a):
        samples, segments = scenario_a
        report = generate_insights(samples, segments, (), None, METRIC)
        for rule_id in ("asymmetric_wind", "danger_zone", "heat_management", "rain", "cold_weather",
                        "multi_climb", "single_climb", "power_zones"):
            assert rule_id not in _ids(report)
        assert report.critical_segments == ()

    def test_neutral_synthesis(self, scenario_a):
        samples, segments = scenario_a
        report = generate_insights(samples, segments, (), None, METRIC)
        assert len(_sentences(report.synthesis)) == 2
        assert report.synthesis.endswith("Weather should not require any pacing adjustment.")


def _wind_route(pattern):
    """40 x 1 km flat segments; ``pattern(i)`` gives the headwind component in m/s."""
    return make_segments([{"length": 1000.0, "grade": 0.0, "headwind": pattern(i)} for i in range(40)])


class TestScenarioC:
    """Headwind above 25 km/h for more than 60% of ride time."""

    def test_headwind_first_half(self):
        segments = _wind_route(lambda i: 8.0 if i < 28 else 0.0)   # 28.8 km/h, 70% of time
        report = generate_insights([], segments, (), None, METRIC)
        wind = _by_id(report, "asymmetric_wind")
        assert wind.title == "Headwind-Dominated Ride"
        assert "70%" in wind.rationale
        assert "in the first half" in wind.rationale

    def test_tailwind_second_half(self):
        segments = _wind_route(lambda i: -8.0 if i >= 10 else 0.0)   # 75% of time
        wind = _by_id(generate_insights([], segments, (), None, METRIC), "asymmetric_wind")
        assert wind.title == "Tailwind-Assisted Ride"
        assert "in the second half" in wind.rationale

    def test_headwind_throughout(self):
        segments = _wind_route(lambda i: 8.0)
        wind = _by_id(generate_insights([], segments, (), None, METRIC), "asymmetric_wind")
        assert "throughout the ride" in wind.rationale

    def test_balanced_wind_does_not_fire(self):
        segments = _wind_route(lambda i: 8.0 if i % 2 else -8.0)
        assert "asymmetric_wind" not in _ids(generate_insights([], segments, (), None, METRIC))

    def test_headwind_strategy_and_synthesis(self):
        segments = _wind_route(lambda i: 8.0 if i < 28 else 0.0)
        report = generate_insights([], segments, (), None, METRIC)
        assert "headwind_strategy" in _ids(report)
        assert "Headwinds cover 70% of ride time" in report.synthesis


class TestDangerZone:
    def test_steep_descent_with_crosswind(self):
        segments = make_segments([
            (1000.0, 0.0),
            {"length": 1000.0, "grade": -0.08, "crosswind": 8.0},   # 28.8 km/h
            {"length": 1000.0, "grade": -0.08, "crosswind": 5.0},   # 18 km/h
            {"length": 1000.0, "grade": -0.02, "crosswind": 9.0},
        ])
        report = generate_insights([], segments, (), None, METRIC)
        zone = _by_id(report, "danger_zone")
        assert zone.impact is Impact.CRITICAL
        assert len(zone.action_items) == 1
        assert zone.action_items[0].startswith("1.0 km")
        assert report.insights[0].impact is Impact.CRITICAL

    def test_imperial_threshold_uses_mph(self):
        segments = make_segments([{"length": 1000.0, "grade": -0.08, "crosswind": 10.0}])   # 22.4 mph
        settings = RiderSettings(unit_system=UnitSystem.IMPERIAL)
        assert "danger_zone" not in _ids(generate_insights([], segments, (), None, settings))


class TestPowerZones:
    SEGMENTS = make_segments([(1000.0, 0.0)] * 10)

    def _plan(self, parts):
        return PacingPlan(segments=tuple(
            PacedSegment(start_distance=0.0, end_distance=1.0, target_power=p, duration=d) for p, d in parts
        ))

    def test_varied_mix_reported(self):
        plan = self._plan([(160.0, 1800.0), (210.0, 1080.0), (240.0, 720.0)])
        report = generate_insights([], self.SEGMENTS, (), None, METRIC, pacing_plan=plan)
        zones = _by_id(report, "power_zones")
        assert zones.impact is Impact.MEDIUM
        assert zones.action_items[0] == "Endurance: 30 min (50%)"

    def test_high_intensity_reported(self):
        plan = self._plan([(160.0, 2400.0), (260.0, 1200.0)])
        zones = _by_id(generate_insights([], self.SEGMENTS, (), None, METRIC, pacing_plan=plan), "power_zones")
        assert zones.impact is Impact.HIGH

    def test_steady_plan_not_reported(self):
        plan = self._plan([(160.0, 3600.0)])
        assert "power_zones" not in _ids(generate_insights([], self.SEGMENTS, (), None, METRIC, pacing_plan=plan))

    def test_no_plan_no_summary(self):
        assert "power_zones" not in _ids(generate_insights([], self.SEGMENTS, (), None, METRIC))


class TestSuppression:
    """Local temperature callouts only where a segment departs from the route average."""

    def test_uniformly_hot_route_has_no_local_heat(self):
        segments = make_segments([(1000.0, 0.0)] * 10, temperature=33.0, headwind=5.0)
        report = generate_insights([], segments, (), None, METRIC)
        assert report.critical_segments
        for seg in report.critical_segments:
            assert not any(c.startswith("local heat") for c in seg.conditions)
        assert "heat_management" in _ids(report)

    def test_local_hot_spot_is_flagged(self):
        layout = [(1000.0, 0.0)] * 10 + [{"length": 1000.0, "grade": 0.0, "temperature": 38.0}]
        segments = make_segments(layout, temperature=25.0, headwind=5.0)
        report = generate_insights([], segments, (), None, METRIC)
        flagged = [s.index for s in report.critical_segments if any(c.startswith("local heat") for c in s.conditions)]
        assert flagged == [10]
        assert report.critical_segments[0].index == 10


class TestWeatherRules:
    def test_rain_critical_above_seventy_percent(self):
        samples = [make_sample(i * 1000.0, pop=0.8) for i in range(11)]
        segments = make_segments([(1000.0, 0.0)] * 10)
        rain = _by_id(generate_insights(samples, segments, (), None, METRIC), "rain")
        assert rain.impact is Impact.CRITICAL
        assert "80%" in rain.rationale

    def test_uv_and_cold(self):
        samples = [make_sample(i * 1000.0, temperature=2.0, uv=7.0, wind=5.0) for i in range(11)]
        segments = make_segments([(1000.0, 0.0)] * 10, temperature=2.0)
        report = generate_insights(samples, segments, (), None, METRIC)
        assert "uv_exposure" in _ids(report)
        assert "cold_weather" in _ids(report)

    def test_insights_sorted_by_impact(self):
        samples = [make_sample(i * 1000.0, temperature=36.0, humidity=70.0, pop=0.5, uv=11.0) for i in range(41)]
        segments = _wind_route(lambda i: 8.0 if i < 28 else 0.0)
        report = generate_insights(samples, segments, (), None, METRIC)
        ranks = [i.impact.rank for i in report.insights]
        assert ranks == sorted(ranks)
        assert "heat_index" in _ids(report)


def test_synthesis_caps_at_four_sentences():
    segments = make_segments(
        [{"length": 1000.0, "grade": 0.0, "headwind": 8.0, "crosswind": 9.0}] * 10,
        temperature=34.0,
    )
    agg = compute_aggregates([], segments, METRIC)
    text = synthesize(agg, METRIC)
    parts = _sentences(text)
    assert len(parts) == 4
    assert parts[1].startswith("Headwinds cover")
    assert parts[2].startswith("Temperatures peak")
    assert parts[3].startswith("Crosswinds reach")


def test_aggregates_guard_zero_distance():
    segments = make_segments([{"length": 0.0, "grade": 0.0, "speed": 8.0}])
    agg = compute_aggregates([], segments, METRIC)
    assert agg.gain_density == 0.0
    assert agg.headwind_share == 0.0


class TestRouteProfile:
    """Profile labels are the same for metric and imperial riders."""

    @pytest.mark.parametrize("settings", [METRIC, IMPERIAL], ids=["metric", "imperial"])
    @pytest.mark.parametrize("km,grade,gain,title", [
        (40, 0.0, 1200.0, "Mountain Route Profile"),
        (40, 0.0, 800.0, "Hilly Route Profile"),
        (100, 0.0, 1100.0, "Long Route with Concentrated Climbs Route Profile"),
        (80, 0.006, None, "Endurance Route Profile"),
        (20, 0.0, 600.0, "Mountain Route Profile"),
        (20, 0.0, 400.0, None),
    ])
    def test_profile_label(self, settings, km, grade, gain, title):
        segments = make_segments([(1000.0, grade)] * km)
        agg = compute_aggregates([], segments, settings, elevation_gain=gain)
        insight = route_profile_insight(agg, settings)
        if title is None:
            assert insight is None
        else:
            assert insight.title == title

    def test_density_is_metres_per_km(self):
        segments = make_segments([(1000.0, 0.006)] * 80)
        assert compute_aggregates([], segments, IMPERIAL).gain_density == pytest.approx(6.0)

    def test_imperial_text_uses_feet_per_mile(self):
        segments = make_segments([(1000.0, 0.006)] * 80)
        insight = route_profile_insight(compute_aggregates([], segments, IMPERIAL), IMPERIAL)
        assert insight.rationale.startswith("49.7 mi with 1575 ft of climbing")
        assert "32 ft/mi" in insight.rationale


class TestLocalCallouts:
    """Crosswind drag and dehydration notes on critical segments."""

    def test_gusty_crosswind_reports_drag(self):
        segments = make_segments([(1000.0, 0.0)] * 4, headwind=5.0, crosswind=5.0)
        report = generate_insights([], segments, (), None, METRIC)
        seg = report.critical_segments[0]
        assert any(c.startswith("gusty crosswind 18 km/h") for c in seg.conditions)
        assert "Crosswind creates ~5 km/h of extra apparent wind" in seg.notes

    def test_humid_hot_spot_escalates(self):
        layout = [(1000.0, 0.0)] * 10 + [{"length": 1000.0, "grade": 0.0, "temperature": 38.0, "humidity": 50.0}]
        report = generate_insights([], make_segments(layout, temperature=25.0, headwind=5.0), (), None, METRIC)
        hot = next(s for s in report.critical_segments if s.index == 10)
        assert "high dehydration risk" in hot.conditions
        assert hot.severity == 11

    def test_dry_hot_spot_not_escalated(self):
        layout = [(1000.0, 0.0)] * 10 + [{"length": 1000.0, "grade": 0.0, "temperature": 38.0, "humidity": 0.0}]
        report = generate_insights([], make_segments(layout, temperature=25.0, headwind=5.0), (), None, METRIC)
        hot = next(s for s in report.critical_segments if s.index == 10)
        assert "high dehydration risk" not in hot.conditions
        assert hot.severity == 9


def test_headwind_cost_follows_air_density():
    def cost(temperature):
        segments = make_segments([{"length": 1000.0, "grade": 0.0, "headwind": 8.0}] * 40, temperature=temperature)
        insight = _by_id(generate_insights([], segments, (), None, METRIC), "headwind_strategy")
        return int(re.search(r"cost about (\d+) W", insight.rationale).group(1))

    assert cost(0.0) > cost(35.0)


def test_temperature_extremes_come_from_samples():
    samples = [make_sample(i * 1000.0, temperature=10.0 + (i % 3)) for i in range(11)]
    segments = make_segments([(1000.0, 0.0)] * 10)   # segment temperature 20°C
    agg = compute_aggregates(samples, segments, METRIC)
    assert agg.max_temperature == 12.0
    assert agg.min_temperature == 10.0
