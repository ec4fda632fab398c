"""
Power statistics over a pacing plan.

Zone bucketing, normalized power and terrain breakdown. These feed the
power-zone insight and the pacing summary in the ride analysis.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd

from rideweather.constants import NORMALIZED_POWER_WINDOW_S, POWER_ZONES
from rideweather.core.models import PacedSegment, PacingPlan, PacingSummary, PowerSegment
from rideweather.utils.error_handling import safe_divide

logger = logging.getLogger(__name__)

ZONE_NAMES = [name for name, _ in POWER_ZONES]

# Terrain classes by decimal grade
CLIMB_GRADE = 0.035
DESCENT_GRADE = -0.025
ROLLING_GRADE = 0.015


def zone_for(pct_ftp: float) -> str:
    """
    Name of the power zone for a % FTP value.

    Examples:
        >>> zone_for(60.0)
        'Endurance'
        >>> zone_for(130.0)
        'Anaerobic'
    """
    for name, upper in POWER_ZONES:
        if pct_ftp < upper:
            return name
    return POWER_ZONES[-1][0]


def zone_distribution(segments: Sequence[PacedSegment], ftp: float) -> pd.Series:
    """Seconds spent in each power zone, indexed by zone name in zone order."""
    if not segments or ftp <= 0:
        return pd.Series(0.0, index=ZONE_NAMES)
    df = pd.DataFrame({
        "pct": [s.target_power / ftp * 100.0 for s in segments],
        "duration": [max(0.0, s.duration) for s in segments],
    })
    bins = [-np.inf] + [upper for _, upper in POWER_ZONES]
    df["zone"] = pd.cut(df["pct"], bins=bins, labels=ZONE_NAMES, right=False)
    sums = df.groupby("zone", observed=False)["duration"].sum()
    sums.index = sums.index.astype(str)
    return sums.reindex(ZONE_NAMES, fill_value=0.0)


def _per_second_power(segments: Sequence[PowerSegment]) -> np.ndarray:
    seconds = np.array([max(0, int(round(s.duration))) for s in segments])
    powers = np.array([max(0.0, s.power) for s in segments], dtype=float)
    return np.repeat(powers, seconds)


def normalized_power(segments: Sequence[PowerSegment]) -> float:
    """
    Normalized power: 4th-root of the mean 4th power of the 30 s rolling average.

    Rides shorter than the rolling window fall back to the plain mean.
    """
    series = _per_second_power(segments)
    if series.size == 0:
        return 0.0
    if series.size < NORMALIZED_POWER_WINDOW_S:
        return float(series.mean())
    rolling = pd.Series(series).rolling(NORMALIZED_POWER_WINDOW_S).mean().dropna().to_numpy()
    return float(np.mean(rolling ** 4) ** 0.25)


def terrain_type(grade: float) -> str:
    if grade > CLIMB_GRADE:
        return "climb"
    if grade < DESCENT_GRADE:
        return "descent"
    if abs(grade) > ROLLING_GRADE:
        return "rolling"
    return "flat"


def terrain_breakdown(segments: Sequence[PowerSegment]) -> Dict[str, Dict[str, float]]:
    """Distance, time and time-weighted power per terrain type."""
    if not segments:
        return {}
    df = pd.DataFrame({
        "terrain": [terrain_type(s.grade) for s in segments],
        "distance": [s.distance for s in segments],
        "time": [max(0.0, s.duration) for s in segments],
        "work": [max(0.0, s.duration) * s.power for s in segments],
    })
    grouped = df.groupby("terrain")[["distance", "time", "work"]].sum()
    return {
        terrain: {
            "distance": float(row["distance"]),
            "time": float(row["time"]),
            "average_power": safe_divide(float(row["work"]), float(row["time"])),
        }
        for terrain, row in grouped.iterrows()
    }


def summarize_pacing(
    segments: Sequence[PowerSegment],
    ftp: float,
    plan: Optional[PacingPlan] = None,
) -> Optional[PacingSummary]:
    """Whole-ride power statistics, or None without power segments."""
    if not segments:
        return None
    total_time = sum(max(0.0, s.duration) for s in segments)
    work = sum(max(0.0, s.duration) * s.power for s in segments)
    avg_power = safe_divide(work, total_time)
    np_watts = normalized_power(segments)
    zones = zone_distribution(plan.segments, ftp) if plan else pd.Series(dtype=float)
    summary = PacingSummary(
        total_time=total_time,
        total_energy_kj=work / 1000.0,
        average_power=avg_power,
        normalized_power=np_watts,
        intensity_factor=safe_divide(np_watts, ftp),
        variability_index=safe_divide(np_watts, avg_power),
        terrain=terrain_breakdown(segments),
        zone_time={str(k): float(v) for k, v in zones.items()},
    )
    logger.info(f"Pacing: NP {np_watts:.0f} W, IF {summary.intensity_factor:.2f}, {summary.total_energy_kj:.0f} kJ")
    return summary
