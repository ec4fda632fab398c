"""
Climb detection and climb pacing guidance.

A climb is a maximal run of power segments steeper than 2.5%, kept only when
its cumulative gain clears the significance floor (100 m, or 300 ft for
imperial riders).
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from rideweather.constants import (
    CLIMB_MIN_GAIN_FT,
    CLIMB_MIN_GAIN_M,
    CLIMB_MIN_GRADE,
    CLIMB_WIND_THRESHOLD_MS,
)
from rideweather.core import units
from rideweather.core.models import (
    Climb,
    Impact,
    Insight,
    InsightCategory,
    PowerSegment,
    RiderSettings,
    WindEffect,
)
from rideweather.core.segments import scan_segments
from rideweather.utils.error_handling import safe_divide

logger = logging.getLogger(__name__)


def gain_floor_m(settings: RiderSettings) -> float:
    """Retention floor in metres for the rider's unit system."""
    if settings.is_metric:
        return CLIMB_MIN_GAIN_M
    return units.elevation_to_m(CLIMB_MIN_GAIN_FT, settings.unit_system)


def _gain(items: Sequence[PowerSegment]) -> float:
    return sum(max(0.0, s.grade) * s.distance for s in items)


def _time_weighted(items: Sequence[PowerSegment], attr: str) -> float:
    total = sum(s.duration for s in items)
    if total > 0:
        return sum(getattr(s, attr) * s.duration for s in items) / total
    return safe_divide(sum(getattr(s, attr) for s in items), len(items))


def _wind_effect(avg_headwind: float) -> WindEffect:
    if avg_headwind > CLIMB_WIND_THRESHOLD_MS:
        return WindEffect.HEADWIND
    if avg_headwind < -CLIMB_WIND_THRESHOLD_MS:
        return WindEffect.TAILWIND
    return WindEffect.NEUTRAL


def detect_climbs(power_segments: Sequence[PowerSegment], settings: RiderSettings) -> Tuple[Climb, ...]:
    """
    Detect significant climbs in route order.

    Deterministic: identical input always yields identical climbs.
    """
    if not power_segments:
        return ()
    floor = gain_floor_m(settings)

    offsets: List[float] = []
    clock = 0.0
    for seg in power_segments:
        offsets.append(clock)
        clock += max(0.0, seg.duration)

    runs = scan_segments(
        power_segments,
        lambda s: "climb" if s.grade > CLIMB_MIN_GRADE else None,
        lambda s: (s.start_distance, s.end_distance),
        is_significant=lambda items, seg: _gain(items) > floor,
    )

    climbs = []
    for run in runs:
        items = power_segments[run.start_index:run.end_index + 1]
        gain = _gain(items)
        avg_power = _time_weighted(items, "power")
        intensity = safe_divide(avg_power, settings.ftp) * 100.0
        avg_headwind = _time_weighted(items, "headwind")
        duration = offsets[run.end_index] + max(0.0, items[-1].duration) - offsets[run.start_index]
        climbs.append(Climb(
            tag=run.tag,
            start_index=run.start_index,
            end_index=run.end_index,
            start_distance=run.start_distance,
            end_distance=run.end_distance,
            duration=duration,
            severity=gain / 100.0 * intensity / 100.0,
            gain=gain,
            max_grade=max(s.grade for s in items),
            average_power=avg_power,
            average_intensity=intensity,
            average_headwind=avg_headwind,
            wind_effect=_wind_effect(avg_headwind),
        ))
    logger.info(f"Detected {len(climbs)} significant climbs (floor {floor:.0f} m)")
    return tuple(climbs)


def climb_descriptor(max_grade: float) -> str:
    pct = max_grade * 100.0
    if pct > 12:
        return "very steep"
    if pct > 10:
        return "steep"
    if pct > 7:
        return "challenging"
    return "moderate"


def _wind_note(climb: Climb) -> Optional[str]:
    if climb.wind_effect is WindEffect.HEADWIND:
        return "headwind on the climb compounds the effort; stay seated and hold power steady"
    if climb.wind_effect is WindEffect.TAILWIND:
        return "tailwind assistance on this climb; a good place to gain time"
    return None


def _describe(index: int, climb: Climb, settings: RiderSettings) -> str:
    lbl = units.labels(settings.unit_system)
    system = settings.unit_system
    text = (
        f"Climb {index}: {units.distance(climb.start_distance, system):.1f}"
        f" to {units.distance(climb.end_distance, system):.1f} {lbl['distance_unit']},"
        f" {units.elevation(climb.gain, system):.0f} {lbl['elevation_unit']} gain,"
        f" max {climb.max_grade * 100:.1f}%, target {climb.average_power:.0f} W"
        f" ({climb.average_intensity:.0f}% FTP)"
    )
    note = _wind_note(climb)
    return f"{text}; {note}" if note else text


def climb_guidance(climbs: Sequence[Climb], settings: RiderSettings) -> Optional[Insight]:
    """Multi-climb insight for two or more climbs, single-climb for one, None for zero."""
    if not climbs:
        return None
    system = settings.unit_system
    lbl = units.labels(system)

    if len(climbs) == 1:
        climb = climbs[0]
        descriptor = climb_descriptor(climb.max_grade)
        return Insight(
            category=InsightCategory.PACING,
            title="Key Climb Strategy",
            rationale=(
                f"One significant {descriptor} climb of {units.elevation(climb.gain, system):.0f}"
                f" {lbl['elevation_unit']} starting at {units.distance(climb.start_distance, system):.1f}"
                f" {lbl['distance_unit']}, averaging {climb.average_intensity:.0f}% FTP."
            ),
            action_items=(
                _describe(1, climb, settings),
                "Start the climb conservatively and build power over the final third",
                "Eat and drink in the 15 minutes before the climb starts",
            ),
            impact=Impact.MEDIUM,
            rule_id="single_climb",
        )

    hardest_pos = max(range(len(climbs)), key=lambda i: (climbs[i].average_intensity, -i))
    hardest = climbs[hardest_pos]
    total_gain = sum(c.gain for c in climbs)
    items = [_describe(i + 1, c, settings) for i, c in enumerate(climbs)]
    items.append(f"Save matches for climb {hardest_pos + 1}, the hardest effort of the day")
    return Insight(
        category=InsightCategory.PACING,
        title="Multi-Climb Pacing Strategy",
        rationale=(
            f"{len(climbs)} significant climbs totalling {units.elevation(total_gain, system):.0f}"
            f" {lbl['elevation_unit']}. Climb {hardest_pos + 1} is the hardest at"
            f" {hardest.average_intensity:.0f}% FTP over"
            f" {units.distance(hardest.distance, system):.1f} {lbl['distance_unit']}."
        ),
        action_items=tuple(items),
        impact=Impact.HIGH,
        rule_id="multi_climb",
    )
