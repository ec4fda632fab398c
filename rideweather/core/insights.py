"""
Strategic insight generation.

Runs in two passes. Pass 1 reduces the power segments and weather samples to
route-wide aggregates (RouteAggregates). Pass 2 applies independently gated
rules against those aggregates and, for segment-local callouts, flags only
deviations from the route-wide picture so the same fact is not repeated on
every segment.

Output insights are ordered by impact (critical first); ties keep rule order.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from rideweather.constants import (
    ASYMMETRIC_WIND_SHARE,
    COLD_ROUTE_AVG_C,
    COLD_STRATEGY_C,
    CONCENTRATED_CLIMB_GAIN,
    CRITICAL_SEGMENT_LIMIT,
    CRITICAL_SEGMENT_MIN_SEVERITY,
    DANGER_CROSSWIND,
    DANGER_DESCENT_GRADE,
    DANGEROUS_HEAT_INDEX_F,
    DEHYDRATION_ESCALATION_RISK,
    HALF_MOSTLY_SHARE,
    HEADWIND_DOMINATED_SHARE,
    HEADWIND_STRATEGY_MIN_S,
    HEAT_STRESS_C,
    HIGH_INTENSITY_PCT_FTP,
    HIGH_INTENSITY_SHARE,
    HILLY_DENSITY,
    HOT_ROUTE_AVG_C,
    LOCAL_TEMP_DELTA_C,
    MOUNTAIN_DENSITY,
    NUTRITION_MIN_RIDE_S,
    POWER_ZONES,
    PROFILE_MIN_DISTANCE,
    PROFILE_MIN_GAIN,
    RAIN_CRITICAL_POP,
    RAIN_INSIGHT_POP,
    SIGNIFICANT_WIND_COMPONENT_MS,
    SYNTHESIS_MAX_SENTENCES,
    TAILWIND_RECOVERY_MIN_S,
    UV_HIGH_INDEX,
    UV_INSIGHT_INDEX,
    ZONE_MIN_COUNT,
    ZONE_MIN_SHARE,
)
from rideweather.core import physics, units
from rideweather.core.climbs import climb_guidance
from rideweather.core.models import (
    Climb,
    CriticalSegment,
    HazardAnalysis,
    HazardTier,
    Impact,
    Insight,
    InsightCategory,
    InsightReport,
    PacingPlan,
    PowerSegment,
    RiderSettings,
    RouteAggregates,
    RouteWeatherSample,
)
from rideweather.core.pacing import zone_distribution
from rideweather.utils.error_handling import clamp, safe_divide

logger = logging.getLogger(__name__)

# Wind strength bands in display speed units (km/h or mph)
STRONG_WIND = 15.0
VERY_STRONG_WIND = 25.0
GUSTY_CROSSWIND = 15.0

STEEP_CLIMB_GRADE = 0.08
HEAVY_RAIN_POP = 0.6
RAIN_RISK_POP = 0.3


# ---------- Pass 1: route aggregates ----------

def segment_frame(power_segments: Sequence[PowerSegment]) -> pd.DataFrame:
    """One row per power segment with cumulative ride-time columns."""
    df = pd.DataFrame([{
        "start_distance": s.start_distance,
        "end_distance": s.end_distance,
        "distance": s.distance,
        "duration": max(0.0, s.duration),
        "grade": s.grade,
        "headwind": s.headwind,
        "crosswind": s.crosswind,
        "temperature": s.temperature,
        "humidity": s.humidity,
        "power": s.power,
        "speed": s.speed,
    } for s in power_segments])
    df["t_start"] = df["duration"].cumsum() - df["duration"]
    df["t_mid"] = df["t_start"] + df["duration"] / 2.0
    return df


def _weighted_mean(values: pd.Series, weights: pd.Series) -> float:
    total = float(weights.sum())
    if total <= 0:
        return float(values.mean()) if len(values) else 0.0
    return float((values * weights).sum() / total)


def _half_share(df: pd.DataFrame, mask: pd.Series, first: bool, total_time: float) -> float:
    half = df["t_mid"] < total_time / 2.0 if first else df["t_mid"] >= total_time / 2.0
    return safe_divide(float(df.loc[half & mask, "duration"].sum()), float(df.loc[half, "duration"].sum()))


def compute_aggregates(
    samples: Sequence[RouteWeatherSample],
    power_segments: Sequence[PowerSegment],
    settings: RiderSettings,
    elevation_gain: Optional[float] = None,
) -> RouteAggregates:
    """Route-wide statistics; requires at least one power segment."""
    df = segment_frame(power_segments)
    total_time = float(df["duration"].sum())
    distance = float(df["end_distance"].max() - df["start_distance"].min())
    if samples:
        distance = max(distance, samples[-1].distance - samples[0].distance)
    gain = elevation_gain if elevation_gain is not None else float((df["grade"].clip(lower=0) * df["distance"]).sum())

    density = safe_divide(gain, distance / units.M_PER_KM)

    head = df["headwind"] > SIGNIFICANT_WIND_COMPONENT_MS
    tail = df["headwind"] < -SIGNIFICANT_WIND_COMPONENT_MS
    head_time = float(df.loc[head, "duration"].sum())
    tail_time = float(df.loc[tail, "duration"].sum())

    if samples:
        temps = pd.Series([s.temperature for s in samples], dtype=float)
        avg_temp = float(temps.mean())
        heat_indices = [physics.heat_index(units.c_to_f(s.temperature), s.humidity) for s in samples]
        pops = [s.precipitation_probability for s in samples]
        uvs = [s.uv_index for s in samples if s.uv_index is not None]
    else:
        temps = df["temperature"]
        avg_temp = _weighted_mean(df["temperature"], df["duration"])
        heat_indices = [physics.heat_index(units.c_to_f(t), h) for t, h in zip(df["temperature"], df["humidity"])]
        pops, uvs = [], []
    max_temp = float(temps.max())
    min_temp = float(temps.min())

    return RouteAggregates(
        total_distance=distance,
        total_gain=gain,
        gain_density=density,
        total_time=total_time,
        headwind_share=safe_divide(head_time, total_time),
        tailwind_share=safe_divide(tail_time, total_time),
        headwind_time=head_time,
        tailwind_time=tail_time,
        first_half_headwind_share=_half_share(df, head, True, total_time),
        second_half_headwind_share=_half_share(df, head, False, total_time),
        first_half_tailwind_share=_half_share(df, tail, True, total_time),
        second_half_tailwind_share=_half_share(df, tail, False, total_time),
        average_headwind=_weighted_mean(df.loc[head, "headwind"], df.loc[head, "duration"]) if head.any() else 0.0,
        average_tailwind=-_weighted_mean(df.loc[tail, "headwind"], df.loc[tail, "duration"]) if tail.any() else 0.0,
        average_temperature=avg_temp,
        max_temperature=max_temp,
        min_temperature=min_temp,
        max_crosswind=float(df["crosswind"].abs().max()),
        max_precipitation_probability=float(max(pops)) if pops else 0.0,
        max_uv_index=float(max(uvs)) if uvs else None,
        max_heat_index_f=float(max(heat_indices)),
        average_power=_weighted_mean(df["power"], df["duration"]),
    )


# ---------- Pass 2: gated rules ----------

def _fmt_duration(seconds: float) -> str:
    minutes = int(round(seconds / 60.0))
    if minutes < 60:
        return f"{minutes} min"
    return f"{minutes // 60}h{minutes % 60:02d}"


def _dominant_half(first_share: float, second_share: float) -> str:
    """Which half of the ride a wind direction dominates."""
    first_mostly = first_share > HALF_MOSTLY_SHARE
    second_mostly = second_share > HALF_MOSTLY_SHARE
    if first_mostly and second_mostly:
        if first_share - second_share > 0.25:
            return "first half"
        if second_share - first_share > 0.25:
            return "second half"
        return "throughout"
    if first_mostly:
        return "first half"
    if second_mostly:
        return "second half"
    return "throughout"


def route_profile_insight(agg: RouteAggregates, settings: RiderSettings) -> Optional[Insight]:
    """Describe the route's character when it is long or hilly enough to matter."""
    system = settings.unit_system
    lbl = units.labels(system)
    # Gates compare km and m regardless of the display units
    if not (agg.total_distance / units.M_PER_KM > PROFILE_MIN_DISTANCE or agg.total_gain > PROFILE_MIN_GAIN):
        return None

    dist = units.distance(agg.total_distance, system)
    gain = units.elevation(agg.total_gain, system)
    density_text = f"{safe_divide(gain, dist):.0f} {lbl['elevation_unit']}/{lbl['distance_unit']}"
    if agg.gain_density > MOUNTAIN_DENSITY:
        kind, advice = "Mountain", (
            "Pace every climb below threshold; the route rewards patience",
            "Use the descents to recover and refuel",
        )
    elif agg.gain_density > HILLY_DENSITY:
        kind, advice = "Hilly", (
            "Ride the rises steadily instead of attacking each one",
            "Shift early to keep cadence up on repeated short climbs",
        )
    elif agg.total_gain > CONCENTRATED_CLIMB_GAIN:
        kind, advice = "Long Route with Concentrated Climbs", (
            "Ride the flat sections at endurance pace to save energy for the climbs",
            "Fuel before each major climb",
        )
    else:
        kind, advice = "Endurance", (
            "Hold a steady endurance effort and avoid surges",
            "Keep fueling on a schedule; the distance is the challenge",
        )
    return Insight(
        category=InsightCategory.STRATEGY,
        title=f"{kind} Route Profile",
        rationale=(
            f"{dist:.1f} {lbl['distance_unit']} with {gain:.0f} {lbl['elevation_unit']} of climbing"
            f" ({density_text})."
        ),
        action_items=advice,
        impact=Impact.MEDIUM,
        rule_id="route_profile",
    )


def asymmetric_wind_insight(agg: RouteAggregates, settings: RiderSettings) -> Optional[Insight]:
    """Fires when headwind or tailwind covers more than 60% of ride time."""
    system = settings.unit_system
    lbl = units.labels(system)
    threshold = units.speed(SIGNIFICANT_WIND_COMPONENT_MS, system)
    if agg.headwind_share > ASYMMETRIC_WIND_SHARE:
        half = _dominant_half(agg.first_half_headwind_share, agg.second_half_headwind_share)
        return Insight(
            category=InsightCategory.STRATEGY,
            title="Headwind-Dominated Ride",
            rationale=(
                f"{agg.headwind_share:.0%} of ride time faces headwinds above {threshold:.0f}"
                f" {lbl['speed_unit']} (average {units.speed(agg.average_headwind, system):.0f}"
                f" {lbl['speed_unit']}), concentrated {_half_phrase(half)}."
            ),
            action_items=(
                f"Expect slower splits {_half_phrase(half)}; pace by power, not speed",
                "Get low on the bike and shelter behind other riders where possible",
            ),
            impact=Impact.HIGH,
            rule_id="asymmetric_wind",
        )
    if agg.tailwind_share > ASYMMETRIC_WIND_SHARE:
        half = _dominant_half(agg.first_half_tailwind_share, agg.second_half_tailwind_share)
        return Insight(
            category=InsightCategory.STRATEGY,
            title="Tailwind-Assisted Ride",
            rationale=(
                f"{agg.tailwind_share:.0%} of ride time has tailwinds above {threshold:.0f}"
                f" {lbl['speed_unit']} (average {units.speed(agg.average_tailwind, system):.0f}"
                f" {lbl['speed_unit']}), concentrated {_half_phrase(half)}."
            ),
            action_items=(
                f"Bank time {_half_phrase(half)} without raising power",
                "Check the return leg; a tailwind out often means a headwind back",
            ),
            impact=Impact.MEDIUM,
            rule_id="asymmetric_wind",
        )
    return None


def _half_phrase(half: str) -> str:
    return "throughout the ride" if half == "throughout" else f"in the {half}"


def danger_zone_insight(df: pd.DataFrame, settings: RiderSettings) -> Optional[Insight]:
    """Steep descent and strong crosswind on the same segment."""
    system = settings.unit_system
    lbl = units.labels(system)
    cross_display = df["crosswind"].abs() * (units.speed(1.0, system))
    zone = df[(df["grade"] < DANGER_DESCENT_GRADE) & (cross_display > DANGER_CROSSWIND)]
    if zone.empty:
        return None
    items = [
        f"{units.distance(row.start_distance, system):.1f} {lbl['distance_unit']}:"
        f" {row.grade * 100:.0f}% descent with {abs(units.speed(row.crosswind, system)):.0f}"
        f" {lbl['speed_unit']} crosswind; brake before the descent and keep both hands on the bars"
        for row in zone.head(5).itertuples()
    ]
    return Insight(
        category=InsightCategory.SAFETY,
        title="Crosswind Descent Danger Zone",
        rationale=(
            f"{len(zone)} descent section(s) steeper than {abs(DANGER_DESCENT_GRADE) * 100:.0f}%"
            f" with crosswinds over {DANGER_CROSSWIND:.0f} {lbl['speed_unit']} risk being blown off line."
        ),
        action_items=tuple(items),
        impact=Impact.CRITICAL,
        rule_id="danger_zone",
    )


def power_zone_insight(plan: Optional[PacingPlan], settings: RiderSettings) -> Optional[Insight]:
    """Summarize time in zone when the plan mix is varied or intense."""
    if plan is None or not plan.segments or settings.ftp <= 0:
        return None
    zones = zone_distribution(plan.segments, settings.ftp)
    total = float(zones.sum())
    if total <= 0:
        return None
    shares = zones / total
    varied = int((shares >= ZONE_MIN_SHARE).sum()) >= ZONE_MIN_COUNT
    high_time = sum(
        max(0.0, s.duration) for s in plan.segments
        if s.target_power / settings.ftp * 100.0 >= HIGH_INTENSITY_PCT_FTP
    )
    high_share = high_time / total
    if not (varied or high_share > HIGH_INTENSITY_SHARE):
        return None
    items = [
        f"{name}: {_fmt_duration(float(zones[name]))} ({float(shares[name]):.0%})"
        for name, _ in POWER_ZONES if zones[name] > 0
    ]
    return Insight(
        category=InsightCategory.PACING,
        title="Power Zone Distribution",
        rationale=(
            f"{high_share:.0%} of planned time is at or above {HIGH_INTENSITY_PCT_FTP:.0f}% FTP"
            f" across {int((shares > 0).sum())} zones."
        ),
        action_items=tuple(items),
        impact=Impact.HIGH if high_share > HIGH_INTENSITY_SHARE else Impact.MEDIUM,
        rule_id="power_zones",
    )


def _air_density(df: pd.DataFrame, mask: pd.Series) -> float:
    """Air density at the time-weighted temperature and humidity of the masked segments."""
    weights = df.loc[mask, "duration"]
    return physics.air_density(
        _weighted_mean(df.loc[mask, "temperature"], weights),
        _weighted_mean(df.loc[mask, "humidity"], weights),
    )


def headwind_strategy_insight(agg: RouteAggregates, df: pd.DataFrame, settings: RiderSettings) -> Optional[Insight]:
    if agg.headwind_time <= HEADWIND_STRATEGY_MIN_S:
        return None
    system = settings.unit_system
    lbl = units.labels(system)
    head = df["headwind"] > SIGNIFICANT_WIND_COMPONENT_MS
    speed = _weighted_mean(df.loc[head, "speed"], df.loc[head, "duration"])
    aero_cost = physics.aerodynamic_power_delta(speed, agg.average_headwind, air_density=_air_density(df, head))
    headwind_display = units.speed(agg.average_headwind, system)
    headroom = max(0.0, 0.95 * settings.ftp - agg.average_power)
    boost = clamp(headwind_display / 3.0 / 100.0 * agg.average_power, 0.0, headroom)
    return Insight(
        category=InsightCategory.PACING,
        title="Headwind Power Strategy",
        rationale=(
            f"{_fmt_duration(agg.headwind_time)} into an average {headwind_display:.0f} {lbl['speed_unit']}"
            f" headwind; holding speed would cost about {aero_cost:.0f} W extra."
        ),
        action_items=(
            f"Raise power by about {boost:.0f} W into the wind and accept the slower speed",
            "Tuck low to cut drag rather than chasing speed",
        ),
        impact=Impact.HIGH,
        rule_id="headwind_strategy",
    )


def tailwind_recovery_insight(agg: RouteAggregates, df: pd.DataFrame, settings: RiderSettings) -> Optional[Insight]:
    if agg.tailwind_time <= TAILWIND_RECOVERY_MIN_S:
        return None
    tail = df["headwind"] < -SIGNIFICANT_WIND_COMPONENT_MS
    speed = _weighted_mean(df.loc[tail, "speed"], df.loc[tail, "duration"])
    saving = physics.tailwind_power_saving(speed, agg.average_tailwind, air_density=_air_density(df, tail))
    return Insight(
        category=InsightCategory.PACING,
        title="Tailwind Recovery Windows",
        rationale=(
            f"{_fmt_duration(agg.tailwind_time)} of tailwind saves roughly {saving:.0f} W at the same speed."
        ),
        action_items=(
            "Ease to endurance power and let the wind carry you",
            "Use these stretches to eat and drink",
        ),
        impact=Impact.MEDIUM,
        rule_id="tailwind_recovery",
    )


def heat_management_insight(agg: RouteAggregates, settings: RiderSettings) -> Optional[Insight]:
    if agg.max_temperature <= HEAT_STRESS_C:
        return None
    system = settings.unit_system
    lbl = units.labels(system)
    route_hot = agg.average_temperature > HOT_ROUTE_AVG_C
    return Insight(
        category=InsightCategory.NUTRITION,
        title="Heat Management",
        rationale=(
            f"Temperatures peak at {units.temperature(agg.max_temperature, system):.0f}{lbl['temp_unit']}"
            f" (average {units.temperature(agg.average_temperature, system):.0f}{lbl['temp_unit']})"
            + ("; heat is a factor for the whole ride." if route_hot else ".")
        ),
        action_items=(
            "Drink 750 ml per hour with electrolytes",
            "Reduce target power by 5% in the hottest hours",
            "Pour water over your head and neck at stops",
        ),
        impact=Impact.HIGH,
        rule_id="heat_management",
    )


def rain_insight(agg: RouteAggregates, settings: RiderSettings) -> Optional[Insight]:
    if agg.max_precipitation_probability < RAIN_INSIGHT_POP:
        return None
    critical = agg.max_precipitation_probability > RAIN_CRITICAL_POP
    return Insight(
        category=InsightCategory.SAFETY,
        title="Rain During Ride",
        rationale=f"Precipitation chance reaches {agg.max_precipitation_probability:.0%} along the route.",
        action_items=(
            "Pack a waterproof jacket",
            "Lower tyre pressure slightly and brake earlier on wet roads",
            "Avoid painted lines and metal covers in corners",
        ),
        impact=Impact.CRITICAL if critical else Impact.MEDIUM,
        rule_id="rain",
    )


def heat_index_insight(agg: RouteAggregates, settings: RiderSettings) -> Optional[Insight]:
    if agg.max_heat_index_f < DANGEROUS_HEAT_INDEX_F:
        return None
    system = settings.unit_system
    lbl = units.labels(system)
    hi = agg.max_heat_index_f if not settings.is_metric else units.f_to_c(agg.max_heat_index_f)
    return Insight(
        category=InsightCategory.SAFETY,
        title="Dangerous Heat Index",
        rationale=f"Heat index reaches {hi:.0f}{lbl['temp_unit']}; heat illness is likely with sustained effort.",
        action_items=(
            "Shorten the ride or start before the heat builds",
            "Stop at the first sign of dizziness, chills or nausea",
        ),
        impact=Impact.CRITICAL,
        rule_id="heat_index",
    )


def uv_insight(agg: RouteAggregates, settings: RiderSettings) -> Optional[Insight]:
    if agg.max_uv_index is None or agg.max_uv_index < UV_INSIGHT_INDEX:
        return None
    return Insight(
        category=InsightCategory.SAFETY,
        title="UV Exposure",
        rationale=f"UV index reaches {agg.max_uv_index:.0f}.",
        action_items=("Apply SPF 50 sunscreen before the start and reapply every two hours",),
        impact=Impact.HIGH if agg.max_uv_index >= UV_HIGH_INDEX else Impact.MEDIUM,
        rule_id="uv_exposure",
    )


def cold_insight(agg: RouteAggregates, samples: Sequence[RouteWeatherSample], settings: RiderSettings) -> Optional[Insight]:
    if agg.min_temperature >= COLD_STRATEGY_C:
        return None
    system = settings.unit_system
    lbl = units.labels(system)
    max_wind = max((s.wind_speed for s in samples), default=0.0)
    chill_f = physics.wind_chill(units.c_to_f(agg.min_temperature), units.ms_to_mph(max_wind))
    chill = chill_f if not settings.is_metric else units.f_to_c(chill_f)
    route_cold = agg.average_temperature < COLD_ROUTE_AVG_C
    return Insight(
        category=InsightCategory.STRATEGY,
        title="Cold Weather Strategy",
        rationale=(
            f"Temperatures drop to {units.temperature(agg.min_temperature, system):.0f}{lbl['temp_unit']}"
            f" with wind chill near {chill:.0f}{lbl['temp_unit']}"
            + ("; dress for cold from the start." if route_cold else ".")
        ),
        action_items=(
            "Layer up with a windproof shell you can vent",
            "Warm up indoors before the start and keep the first 15 minutes easy",
        ),
        impact=Impact.MEDIUM,
        rule_id="cold_weather",
    )


def nutrition_insight(agg: RouteAggregates, settings: RiderSettings) -> Optional[Insight]:
    if agg.total_time <= NUTRITION_MIN_RIDE_S:
        return None
    hours = agg.total_time / 3600.0
    return Insight(
        category=InsightCategory.NUTRITION,
        title="Fueling Plan",
        rationale=f"About {hours:.1f} hours of riding at an average {agg.average_power:.0f} W.",
        action_items=(
            f"Eat 60 to 90 g of carbohydrate per hour ({60 * hours:.0f} to {90 * hours:.0f} g total)",
            "Start eating within the first 30 minutes",
        ),
        impact=Impact.LOW,
        rule_id="nutrition_plan",
    )


def cautionary_stretches_insight(hazards: Optional[HazardAnalysis], settings: RiderSettings) -> Optional[Insight]:
    """List the cautionary weather stretches so they can be planned around."""
    if hazards is None or not hazards.cautionary:
        return None
    system = settings.unit_system
    lbl = units.labels(system)
    km = units.distance(hazards.distance(HazardTier.CAUTIONARY), system)
    return Insight(
        category=InsightCategory.STRATEGY,
        title="Weather Caution Zones",
        rationale=f"{len(hazards.cautionary)} stretch(es) covering {km:.1f} {lbl['distance_unit']} need extra care.",
        action_items=tuple(
            f"{s.title} from {units.distance(s.start_distance, system):.1f} to"
            f" {units.distance(s.end_distance, system):.1f} {lbl['distance_unit']}: {s.recommendation}"
            for s in hazards.cautionary
        ),
        impact=Impact.MEDIUM,
        rule_id="caution_zones",
    )


# ---------- Segment-local callouts ----------

def _nearest_sample(samples: Sequence[RouteWeatherSample], distances: np.ndarray, at: float) -> Optional[RouteWeatherSample]:
    if not samples:
        return None
    return samples[int(np.argmin(np.abs(distances - at)))]


def critical_segments(
    df: pd.DataFrame,
    agg: RouteAggregates,
    samples: Sequence[RouteWeatherSample],
    settings: RiderSettings,
) -> Tuple[CriticalSegment, ...]:
    """
    Power segments whose combined conditions warrant a callout.

    Temperature flags fire only when the segment both crosses the absolute
    threshold and departs from the route average by more than the delta.
    """
    system = settings.unit_system
    lbl = units.labels(system)
    distances = np.array([s.distance for s in samples], dtype=float)
    found: List[CriticalSegment] = []

    for i, row in enumerate(df.itertuples()):
        severity = 0
        conditions: List[str] = []
        notes: List[str] = []
        headwind = units.speed(row.headwind, system)
        crosswind = abs(units.speed(row.crosswind, system))

        if headwind > VERY_STRONG_WIND:
            severity += 9
            conditions.append(f"very strong headwind {headwind:.0f} {lbl['speed_unit']}")
            notes.append("Tuck in and hold power; ignore speed")
        elif headwind > STRONG_WIND:
            severity += 5
            conditions.append(f"strong headwind {headwind:.0f} {lbl['speed_unit']}")
            notes.append("Hold steady power into the wind")
        elif -headwind > STRONG_WIND:
            severity += 2
            conditions.append(f"tailwind {-headwind:.0f} {lbl['speed_unit']}")
            notes.append("Recover while the wind helps")

        if crosswind > VERY_STRONG_WIND:
            severity += 7
            conditions.append(f"dangerous crosswind {crosswind:.0f} {lbl['speed_unit']}")
            notes.append("Keep a firm grip and leave room on the windward side")
        elif crosswind > GUSTY_CROSSWIND:
            severity += 4
            conditions.append(f"gusty crosswind {crosswind:.0f} {lbl['speed_unit']}")
            drag = units.speed(physics.effective_crosswind_drag(row.crosswind, row.speed), system)
            notes.append(f"Crosswind creates ~{drag:.0f} {lbl['speed_unit']} of extra apparent wind")

        if row.grade > STEEP_CLIMB_GRADE:
            severity += 4
            conditions.append(f"steep climb {row.grade * 100:.0f}%")
        elif row.grade < DANGER_DESCENT_GRADE:
            severity += 3
            conditions.append(f"fast descent {row.grade * 100:.0f}%")
            notes.append("Brake before corners, not in them")

        if row.temperature > HEAT_STRESS_C and row.temperature - agg.average_temperature > LOCAL_TEMP_DELTA_C:
            severity += 4
            conditions.append(f"local heat {units.temperature(row.temperature, system):.0f}{lbl['temp_unit']}")
            notes.append("Hotter than the rest of the route; drink before this section")
            if physics.dehydration_risk(row.temperature, row.humidity) > DEHYDRATION_ESCALATION_RISK:
                severity += 2
                conditions.append("high dehydration risk")
                notes.append("Increase fluid intake by half and ease power 5-8%")
        elif row.temperature < COLD_STRATEGY_C and agg.average_temperature - row.temperature > LOCAL_TEMP_DELTA_C:
            severity += 4
            conditions.append(f"local cold {units.temperature(row.temperature, system):.0f}{lbl['temp_unit']}")
            notes.append("Colder than the rest of the route; add a layer beforehand")

        sample = _nearest_sample(samples, distances, (row.start_distance + row.end_distance) / 2.0)
        if sample is not None:
            pop = sample.precipitation_probability
            if pop >= HEAVY_RAIN_POP:
                severity += 6
                conditions.append(f"heavy rain risk {pop:.0%}")
                notes.append("Wet roads: brake early and corner upright")
            elif pop >= RAIN_RISK_POP:
                severity += 3
                conditions.append(f"rain risk {pop:.0%}")

        if severity < CRITICAL_SEGMENT_MIN_SEVERITY:
            continue
        pct = safe_divide(row.power, settings.ftp) * 100.0
        found.append(CriticalSegment(
            index=i,
            start_distance=float(row.start_distance),
            end_distance=float(row.end_distance),
            severity=severity,
            conditions=tuple(conditions),
            power_note=f"Target {row.power:.0f} W ({pct:.0f}% FTP)",
            notes=tuple(notes),
        ))

    found.sort(key=lambda c: (-c.severity, c.index))
    return tuple(found[:CRITICAL_SEGMENT_LIMIT])


# ---------- Synthesis ----------

def synthesize(agg: RouteAggregates, settings: RiderSettings) -> str:
    """
    Two to four sentences: an opening, then in fixed order a headwind, heat
    and crosswind clause when each is triggered.
    """
    system = settings.unit_system
    lbl = units.labels(system)
    sentences = [
        f"This {units.distance(agg.total_distance, system):.0f} {lbl['distance_unit']} ride with"
        f" {units.elevation(agg.total_gain, system):.0f} {lbl['elevation_unit']} of climbing takes about"
        f" {_fmt_duration(agg.total_time)}."
    ]
    if agg.headwind_share > HEADWIND_DOMINATED_SHARE:
        sentences.append(
            f"Headwinds cover {agg.headwind_share:.0%} of ride time, so pace by power and budget extra effort."
        )
    if agg.max_temperature > HEAT_STRESS_C:
        sentences.append(
            f"Temperatures peak at {units.temperature(agg.max_temperature, system):.0f}{lbl['temp_unit']};"
            " start hydrating early to manage heat stress."
        )
    max_cross = units.speed(agg.max_crosswind, system)
    if max_cross > DANGER_CROSSWIND:
        sentences.append(
            f"Crosswinds reach {max_cross:.0f} {lbl['speed_unit']}; hold a firm grip on exposed sections."
        )
    if len(sentences) == 1:
        sentences.append("Weather should not require any pacing adjustment.")
    return " ".join(sentences[:SYNTHESIS_MAX_SENTENCES])


# ---------- Entry point ----------

def generate_insights(
    samples: Sequence[RouteWeatherSample],
    power_segments: Sequence[PowerSegment],
    climbs: Sequence[Climb],
    hazards: Optional[HazardAnalysis],
    settings: RiderSettings,
    pacing_plan: Optional[PacingPlan] = None,
    elevation_gain: Optional[float] = None,
) -> Optional[InsightReport]:
    """
    Prioritized insights, critical segments and a short synthesis.

    Returns None when no power analysis is available.
    """
    if not power_segments:
        logger.warning("No power segments supplied; insights unavailable")
        return None

    agg = compute_aggregates(samples, power_segments, settings, elevation_gain)
    df = segment_frame(power_segments)

    rules: List[Callable[[], Optional[Insight]]] = [
        lambda: route_profile_insight(agg, settings),
        lambda: climb_guidance(climbs, settings),
        lambda: asymmetric_wind_insight(agg, settings),
        lambda: danger_zone_insight(df, settings),
        lambda: power_zone_insight(pacing_plan, settings),
        lambda: headwind_strategy_insight(agg, df, settings),
        lambda: tailwind_recovery_insight(agg, df, settings),
        lambda: heat_management_insight(agg, settings),
        lambda: rain_insight(agg, settings),
        lambda: heat_index_insight(agg, settings),
        lambda: uv_insight(agg, settings),
        lambda: cold_insight(agg, samples, settings),
        lambda: nutrition_insight(agg, settings),
        lambda: cautionary_stretches_insight(hazards, settings),
    ]
    insights = [insight for insight in (rule() for rule in rules) if insight is not None]
    insights.sort(key=lambda ins: ins.impact.rank)

    report = InsightReport(
        insights=tuple(insights),
        critical_segments=critical_segments(df, agg, samples, settings),
        synthesis=synthesize(agg, settings),
        aggregates=agg,
    )
    logger.info(f"Generated {len(report.insights)} insights, {len(report.critical_segments)} critical segments")
    return report
