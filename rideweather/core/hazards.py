"""
Hazard classification over route weather samples.

Each sample is matched against the rulebook tier by tier in strict priority
(dangerous, then cautionary, then optimal), so a sample carries at most one
tag. Each tier's tags are then segmented independently and every segment
keeps the text of the rule that opened it.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from rideweather import rulebook
from rideweather.constants import HAZARD_MIN_EXTENT_M
from rideweather.core import units
from rideweather.core.models import (
    HazardAnalysis,
    HazardSegment,
    HazardTier,
    RiderSettings,
    RouteWeatherSample,
    WeatherRating,
)
from rideweather.core.segments import scan_segments
from rideweather.rulebook import HazardRule

logger = logging.getLogger(__name__)

Match = Optional[Tuple[HazardTier, HazardRule]]

CAUTIONARY_RATING_COUNT = 2       # more cautionary segments than this -> cautionary rating


def sample_context(sample: RouteWeatherSample, settings: RiderSettings) -> Dict[str, Any]:
    """Rule evaluation and template context for one sample, in display units."""
    system = settings.unit_system
    ctx: Dict[str, Any] = {
        "wind": units.speed(sample.wind_speed, system),
        "temperature": units.temperature(sample.temperature, system),
        "feels_like": units.temperature(sample.feels_like, system),
        "humidity": sample.humidity,
        "precipitation_probability": sample.precipitation_probability,
        "pop_pct": sample.precipitation_probability * 100.0,
        "uv_index": sample.uv_index,
        "condition": (sample.condition or "").lower(),
        "distance": units.distance(sample.distance, system),
    }
    ctx.update(units.labels(system))
    return ctx


def classify_sample(
    sample: RouteWeatherSample,
    settings: RiderSettings,
    thresholds: Optional[Dict[str, float]] = None,
    path: Optional[str] = None,
) -> Match:
    """Highest-priority (tier, rule) matching a sample, or None."""
    if thresholds is None:
        thresholds = rulebook.get_thresholds(settings.unit_system, settings.hazard_thresholds, path)
    ctx = sample_context(sample, settings)
    for tier in rulebook.iter_tiers():
        rule = rulebook.first_match(tier, ctx, thresholds, path)
        if rule is not None:
            return tier, rule
    return None


def _weather_rating(dangerous: Sequence[HazardSegment], cautionary: Sequence[HazardSegment]) -> WeatherRating:
    if dangerous:
        return WeatherRating.DANGEROUS
    if len(cautionary) > CAUTIONARY_RATING_COUNT:
        return WeatherRating.CAUTIONARY
    return WeatherRating.SAFE


def _run_severity(matches: Sequence[Match], run) -> float:
    """Highest rule severity among the samples of a run."""
    return max(matches[i][1].severity for i in run)


def classify_hazards(
    samples: Sequence[RouteWeatherSample],
    settings: RiderSettings,
    path: Optional[str] = None,
    min_extent: float = HAZARD_MIN_EXTENT_M,
) -> Optional[HazardAnalysis]:
    """
    Classify the route into dangerous, cautionary and optimal segments.

    Args:
        samples: Distance-ordered weather samples
        settings: Rider settings (unit system selects the threshold table)
        path: Optional rulebook path
        min_extent: Minimum segment extent in metres

    Returns:
        HazardAnalysis, or None when there are no samples.
    """
    if not samples:
        logger.warning("No weather samples supplied; skipping hazard classification")
        return None

    thresholds = rulebook.get_thresholds(settings.unit_system, settings.hazard_thresholds, path)
    matches: List[Match] = [classify_sample(s, settings, thresholds, path) for s in samples]
    origin = samples[0].timestamp

    def position(i: int):
        return samples[i].distance, samples[i].distance

    def elapsed(i: int):
        t = (samples[i].timestamp - origin).total_seconds()
        return t, t

    by_tier: Dict[HazardTier, Tuple[HazardSegment, ...]] = {}
    for tier in rulebook.iter_tiers():
        def classify(i: int, tier=tier) -> Optional[str]:
            m = matches[i]
            return m[1].hazard if m is not None and m[0] is tier else None

        def severity(run, tier=tier) -> float:
            extent_km = (samples[run[-1]].distance - samples[run[0]].distance) / 1000.0
            return _run_severity(matches, run) * max(1.0, extent_km)

        tier_segments = []
        for seg in scan_segments(
            range(len(samples)),
            classify,
            position,
            elapsed,
            min_extent=min_extent,
            severity=severity,
            closes_at_next=True,
        ):
            rule = matches[seg.start_index][1]
            title, description, recommendation = rule.render(sample_context(samples[seg.start_index], settings))
            tier_segments.append(HazardSegment(
                tag=seg.tag,
                start_index=seg.start_index,
                end_index=seg.end_index,
                start_distance=seg.start_distance,
                end_distance=seg.end_distance,
                duration=seg.duration,
                severity=seg.severity,
                tier=tier,
                hazard=rule.hazard,
                rule_id=rule.rule_id,
                title=title,
                description=description,
                recommendation=recommendation,
            ))
        by_tier[tier] = tuple(tier_segments)

    analysis = HazardAnalysis(
        dangerous=by_tier[HazardTier.DANGEROUS],
        cautionary=by_tier[HazardTier.CAUTIONARY],
        optimal=by_tier[HazardTier.OPTIMAL],
        weather_rating=_weather_rating(by_tier[HazardTier.DANGEROUS], by_tier[HazardTier.CAUTIONARY]),
    )
    logger.info(
        f"Hazard classification: {len(analysis.dangerous)} dangerous, "
        f"{len(analysis.cautionary)} cautionary, {len(analysis.optimal)} optimal segments"
    )
    return analysis
