"""
Ride safety scoring and safety recommendations.

The score is an additive penalty model over shares of the route distance:
darkness, dangerous weather and cautionary weather each subtract
independently. Locations that are both dark and dangerous are penalised
twice; the result is clamped to [0, 100].
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from rideweather import rulebook
from rideweather.constants import CAUTIONARY_PENALTY, DANGEROUS_PENALTY, DARKNESS_PENALTY
from rideweather.core import units
from rideweather.core.models import (
    DaylightAnalysis,
    HazardAnalysis,
    HazardTier,
    Impact,
    Insight,
    InsightCategory,
    RiderSettings,
    SafetyScore,
)
from rideweather.utils.error_handling import clamp, safe_divide

logger = logging.getLogger(__name__)

_HAZARD_FACTORS = {
    "wind": "high_winds",
    "heat": "extreme_temperature",
    "cold": "extreme_temperature",
    "ice": "ice",
    "storm": "storm",
}


def score_safety(
    total_distance: float,
    dark_distance: float = 0.0,
    dangerous_distance: float = 0.0,
    cautionary_distance: float = 0.0,
    extra_factors: Iterable[str] = (),
    path: Optional[str] = None,
) -> SafetyScore:
    """
    Combine risk distances into a 0-100 safety score.

    ``score = 100 - 40*dark% - 50*dangerous% - 25*cautionary%`` with shares
    of ``total_distance``. A zero total yields a perfect score.

    Examples:
        >>> score_safety(1000.0, dark_distance=500.0).score
        80.0
    """
    if total_distance <= 0:
        return SafetyScore(score=100.0, level=rulebook.classify_safety(100.0, path), factors=())

    dark = max(0.0, dark_distance)
    dangerous = max(0.0, dangerous_distance)
    cautionary = max(0.0, cautionary_distance)
    raw = (
        100.0
        - DARKNESS_PENALTY * safe_divide(dark, total_distance)
        - DANGEROUS_PENALTY * safe_divide(dangerous, total_distance)
        - CAUTIONARY_PENALTY * safe_divide(cautionary, total_distance)
    )
    score = clamp(raw, 0.0, 100.0)

    factors: List[str] = []
    if dark > 0:
        factors.append("darkness")
    if dangerous > 0:
        factors.append("severe_weather")
    for tag in extra_factors:
        if tag not in factors:
            factors.append(tag)

    return SafetyScore(score=score, level=rulebook.classify_safety(score, path), factors=tuple(factors))


def score_ride(
    daylight: Optional[DaylightAnalysis],
    hazards: Optional[HazardAnalysis],
    total_distance: float,
    path: Optional[str] = None,
) -> SafetyScore:
    """Score a ride from its daylight and hazard analyses (either may be absent)."""
    dark = daylight.dark_distance if daylight else 0.0
    dangerous = hazards.distance(HazardTier.DANGEROUS) if hazards else 0.0
    cautionary = hazards.distance(HazardTier.CAUTIONARY) if hazards else 0.0
    extra = []
    if hazards:
        extra = [_HAZARD_FACTORS[s.hazard] for s in hazards.dangerous if s.hazard in _HAZARD_FACTORS]
    result = score_safety(total_distance, dark, dangerous, cautionary, extra, path)
    logger.info(f"Safety score {result.score:.0f} ({result.level}), factors: {', '.join(result.factors) or 'none'}")
    return result


def safety_recommendations(
    daylight: Optional[DaylightAnalysis],
    hazards: Optional[HazardAnalysis],
    settings: RiderSettings,
) -> Tuple[Insight, ...]:
    """Lighting and dangerous-weather recommendations for the ride."""
    out: List[Insight] = []
    system = settings.unit_system
    lbl = units.labels(system)

    if daylight and daylight.dark_distance > 0:
        dark_km = units.distance(daylight.dark_distance, system)
        if daylight.dark_fraction > 0.5:
            out.append(Insight(
                category=InsightCategory.SAFETY,
                title="Major Darkness Concerns",
                rationale=(
                    f"{daylight.dark_fraction:.0%} of the ride ({dark_km:.1f} {lbl['distance_unit']})"
                    " happens in darkness."
                ),
                action_items=(
                    "Consider moving the start time into daylight",
                    "Run a bright front light and a flashing rear light",
                    "Wear reflective clothing",
                ),
                impact=Impact.CRITICAL,
                rule_id="major_darkness",
            ))
        else:
            out.append(Insight(
                category=InsightCategory.SAFETY,
                title="Lighting Required",
                rationale=f"{dark_km:.1f} {lbl['distance_unit']} of the ride is ridden in the dark.",
                action_items=tuple(
                    f"{s.label}: {s.start:%H:%M} to {s.end:%H:%M}, lights on" for s in daylight.dark_segments
                ),
                impact=Impact.HIGH,
                rule_id="lighting_required",
            ))

    if hazards:
        for seg in hazards.dangerous:
            out.append(Insight(
                category=InsightCategory.SAFETY,
                title=seg.title,
                rationale=(
                    f"{seg.description} ({units.distance(seg.start_distance, system):.1f} to"
                    f" {units.distance(seg.end_distance, system):.1f} {lbl['distance_unit']})"
                ),
                action_items=(seg.recommendation,),
                impact=Impact.CRITICAL,
                rule_id=f"hazard_{seg.rule_id}",
            ))

    if daylight and daylight.golden_fraction > 0.3:
        out.append(Insight(
            category=InsightCategory.SAFETY,
            title="Perfect Lighting",
            rationale=f"{daylight.golden_fraction:.0%} of the ride falls in golden-hour light.",
            action_items=("Good visibility to drivers; bring sunglasses for low sun",),
            impact=Impact.LOW,
            rule_id="golden_light",
        ))
    return tuple(out)
