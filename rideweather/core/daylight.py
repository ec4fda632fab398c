"""
Daylight exposure for a ride.

Sun events are resolved outside the engine; this module only consumes them.
When they are unavailable the ride is treated as fully daylit.

Distances are elapsed time multiplied by the constant cruise speed, so a
slow climb in the dark is under-counted. Callers wanting per-segment
accuracy must supply their own timing.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from rideweather import rulebook
from rideweather.constants import (
    GOLDEN_EVENING_AFTER_MIN,
    GOLDEN_EVENING_BEFORE_MIN,
    GOLDEN_MORNING_AFTER_MIN,
    GOLDEN_MORNING_BEFORE_MIN,
)
from rideweather.core.models import (
    Coordinate,
    DaylightAnalysis,
    DaylightSegment,
    SunEvents,
    Visibility,
)
from rideweather.utils.error_handling import safe_divide

logger = logging.getLogger(__name__)

SunLookup = Callable[[Coordinate, datetime], Optional[SunEvents]]


def _overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime):
    start, end = max(a_start, b_start), min(a_end, b_end)
    return (start, end) if end > start else None


def _segment(label: str, kind: str, start: datetime, end: datetime, speed: float, total: float) -> DaylightSegment:
    return DaylightSegment(
        label=label,
        kind=kind,
        start=start,
        end=end,
        distance=min(total, (end - start).total_seconds() * speed),
    )


def resolve_sun_events(
    coordinate: Optional[Coordinate],
    start_time: datetime,
    sun_lookup: Optional[SunLookup],
) -> Optional[SunEvents]:
    """Call an external sun lookup, degrading to None on any failure."""
    if sun_lookup is None or coordinate is None:
        return None
    try:
        return sun_lookup(coordinate, start_time)
    except Exception as e:
        logger.warning(f"Sun event lookup failed for {coordinate}: {type(e).__name__}: {e}; assuming daylight")
        return None


def analyze_daylight(
    start_time: datetime,
    cruise_speed: float,
    total_distance: float,
    sun_events: Optional[SunEvents] = None,
    coordinate: Optional[Coordinate] = None,
    sun_lookup: Optional[SunLookup] = None,
    path: Optional[str] = None,
) -> DaylightAnalysis:
    """
    Darkness and golden-hour exposure over the ride window.

    Args:
        start_time: Ride start, timezone-aware
        cruise_speed: Constant average speed in m/s (0 means a zero-length window)
        total_distance: Route length in metres
        sun_events: Already-resolved sunrise/sunset
        coordinate: Start coordinate, used only with ``sun_lookup``
        sun_lookup: Optional callable resolving sun events when none are given
        path: Optional rulebook path for visibility bands

    Returns:
        DaylightAnalysis. Dark plus golden distance never exceeds the total.
    """
    speed = max(0.0, cruise_speed)
    total = max(0.0, total_distance)
    end_time = start_time + timedelta(seconds=safe_divide(total, speed))

    if sun_events is None:
        sun_events = resolve_sun_events(coordinate, start_time, sun_lookup)
    sunrise = sun_events.sunrise if sun_events else None
    sunset = sun_events.sunset if sun_events else None
    available = sunrise is not None or sunset is not None
    if not available:
        logger.warning("No sun events available; treating ride as fully daylit")

    dark: List[DaylightSegment] = []
    if sunrise is not None and start_time < sunrise:
        window = _overlap(start_time, end_time, start_time, sunrise)
        if window:
            dark.append(_segment("Pre-dawn darkness", "dark", *window, speed, total))
    if sunset is not None and end_time > sunset:
        window = _overlap(start_time, end_time, sunset, end_time)
        if window and not (dark and window[0] < dark[-1].end):
            dark.append(_segment("Evening darkness", "dark", *window, speed, total))

    # Golden light only counts while the sun is up so it never double-counts darkness.
    light_start = max(start_time, sunrise) if sunrise else start_time
    light_end = min(end_time, sunset) if sunset else end_time

    golden: List[DaylightSegment] = []
    morning_end = None
    if sunrise is not None:
        morning_start = sunrise - timedelta(minutes=GOLDEN_MORNING_BEFORE_MIN)
        morning_end = sunrise + timedelta(minutes=GOLDEN_MORNING_AFTER_MIN)
        window = _overlap(morning_start, morning_end, light_start, light_end)
        if window:
            golden.append(_segment("Morning golden hour", "golden", *window, speed, total))
    if sunset is not None:
        evening_start = sunset - timedelta(minutes=GOLDEN_EVENING_BEFORE_MIN)
        evening_end = sunset + timedelta(minutes=GOLDEN_EVENING_AFTER_MIN)
        if morning_end is None or evening_start >= morning_end:
            window = _overlap(evening_start, evening_end, light_start, light_end)
            if window:
                golden.append(_segment("Evening golden hour", "golden", *window, speed, total))

    dark_share = safe_divide(sum(s.distance for s in dark), total)
    golden_share = safe_divide(sum(s.distance for s in golden), total)
    if total > 0:
        visibility = rulebook.classify_visibility(dark_share, golden_share, path)
    else:
        visibility = Visibility.EXCELLENT

    analysis = DaylightAnalysis(
        sunrise=sunrise,
        sunset=sunset,
        ride_start=start_time,
        ride_end=end_time,
        total_distance=total,
        dark_segments=tuple(dark),
        golden_segments=tuple(golden),
        visibility=visibility,
        sun_data_available=available,
    )
    logger.info(
        f"Daylight: {analysis.dark_fraction:.0%} dark, {analysis.golden_fraction:.0%} golden, "
        f"visibility {analysis.visibility}"
    )
    return analysis
