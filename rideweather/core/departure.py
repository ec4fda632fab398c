"""
Alternative departure time search.

Each candidate start re-times the route against an hourly forecast and is
scored on temperature, wind, precipitation and feels-like comfort. Only
candidates that beat the current start are returned.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from rideweather.constants import (
    DEPARTURE_MAX_RESULTS,
    DEPARTURE_OFFSETS_H,
    DEPARTURE_WEIGHTS,
    DEPARTURE_WINDOW_MIN,
    IDEAL_TEMP_C,
    IDEAL_TEMP_F,
)
from rideweather.core import units
from rideweather.core.models import (
    HourlyConditions,
    OptimalDepartureTime,
    RiderSettings,
    RouteWeatherSample,
)
from rideweather.utils.error_handling import safe_divide

logger = logging.getLogger(__name__)

_BENEFITS = {
    "temperature": "More comfortable temperatures",
    "wind": "Lighter winds",
    "precipitation": "Lower chance of rain",
    "comfort": "Feels-like temperature closer to actual",
}


def _nearest(forecast: Sequence[HourlyConditions], at: datetime) -> HourlyConditions:
    return min(forecast, key=lambda h: abs((h.time - at).total_seconds()))


def retime_samples(
    samples: Sequence[RouteWeatherSample],
    start: datetime,
    cruise_speed: float,
    forecast: Sequence[HourlyConditions],
) -> List[RouteWeatherSample]:
    """Samples as they would be met when starting at ``start``."""
    origin = samples[0].distance
    out = []
    for s in samples:
        arrival = start + timedelta(seconds=safe_divide(s.distance - origin, cruise_speed))
        hour = _nearest(forecast, arrival)
        out.append(RouteWeatherSample(
            distance=s.distance,
            timestamp=arrival,
            temperature=hour.temperature,
            feels_like=hour.feels_like,
            wind_speed=hour.wind_speed,
            wind_direction=s.wind_direction,
            humidity=hour.humidity,
            precipitation_probability=hour.precipitation_probability,
            condition=hour.condition,
            uv_index=hour.uv_index,
        ))
    return out


def factor_scores(samples: Sequence[RouteWeatherSample], settings: RiderSettings) -> Dict[str, float]:
    """Per-factor 0-100 scores averaged over the samples, in display units."""
    system = settings.unit_system
    ideal = IDEAL_TEMP_C if settings.is_metric else IDEAL_TEMP_F
    temp = np.array([units.temperature(s.temperature, system) for s in samples])
    feels = np.array([units.temperature(s.feels_like, system) for s in samples])
    wind = np.array([units.speed(s.wind_speed, system) for s in samples])
    pop = np.array([s.precipitation_probability for s in samples])
    return {
        "temperature": float(np.clip(100 - np.abs(temp - ideal) * 2, 0, None).mean()),
        "wind": float(np.clip(100 - wind * 3, 0, None).mean()),
        "precipitation": float(np.clip(100 - pop * 100, 0, None).mean()),
        "comfort": float(np.clip(100 - np.abs(feels - temp) * 4, 0, None).mean()),
    }


def overall_score(scores: Dict[str, float]) -> float:
    return sum(DEPARTURE_WEIGHTS[k] * scores[k] for k in DEPARTURE_WEIGHTS)


def find_optimal_start_times(
    samples: Sequence[RouteWeatherSample],
    current_start: datetime,
    cruise_speed: float,
    settings: RiderSettings,
    forecast: Sequence[HourlyConditions],
    now: Optional[datetime] = None,
    offsets: Sequence[int] = DEPARTURE_OFFSETS_H,
) -> Tuple[OptimalDepartureTime, ...]:
    """
    Up to three departure times that score better than ``current_start``.

    Args:
        samples: Route samples (only distances and wind direction are reused)
        current_start: Planned start
        cruise_speed: Constant average speed in m/s
        settings: Rider settings
        forecast: Hourly forecast timeline covering the candidate windows
        now: Reference instant; candidates at or before it are skipped
        offsets: Hour offsets from ``current_start`` to try

    Returns:
        Candidates sorted by score, best first. Empty when inputs are missing
        or nothing improves on the current start.
    """
    if not samples or not forecast:
        logger.warning("Departure search skipped: no samples or no hourly forecast")
        return ()
    now = now or datetime.now(current_start.tzinfo)

    current = factor_scores(retime_samples(samples, current_start, cruise_speed, forecast), settings)
    current_score = overall_score(current)

    candidates: List[OptimalDepartureTime] = []
    for hours in offsets:
        start = current_start + timedelta(hours=hours)
        if start <= now:
            continue
        scores = factor_scores(retime_samples(samples, start, cruise_speed, forecast), settings)
        score = overall_score(scores)
        if score <= current_score:
            continue
        deltas = {k: scores[k] - current[k] for k in scores}
        best_factor = max(deltas, key=deltas.get)
        candidates.append(OptimalDepartureTime(
            start_time=start,
            score=score,
            factor_scores=scores,
            improvement_pct=safe_divide(score - current_score, current_score, default=1.0) * 100.0,
            most_improved_factor=best_factor,
            primary_benefit=_BENEFITS[best_factor],
            window_start=start - timedelta(minutes=DEPARTURE_WINDOW_MIN),
            window_end=start + timedelta(minutes=DEPARTURE_WINDOW_MIN),
        ))

    candidates.sort(key=lambda c: c.score, reverse=True)
    logger.info(f"Departure search: current score {current_score:.1f}, {len(candidates)} better candidates")
    return tuple(candidates[:DEPARTURE_MAX_RESULTS])
