"""
Aerodynamic and thermal formulas.

Pure functions over canonical units (m/s, °C, watts) except where the
published formula is defined in °F/mph (heat index, wind chill). Formulas
outside their valid domain return their input unchanged instead of
extrapolating, and no function returns NaN or infinity for finite input.
"""

import math

from rideweather.constants import (
    APPARENT_SPEED_EPSILON,
    DEFAULT_CDA,
    HEAT_INDEX_MIN_F,
    KELVIN_OFFSET,
    SEA_LEVEL_AIR_DENSITY,
    STANDARD_TEMPERATURE_K,
    WIND_CHILL_MAX_F,
    WIND_CHILL_MIN_MPH,
)
from rideweather.core.units import c_to_f


def aerodynamic_power_delta(
    speed: float,
    wind_component: float,
    cda: float = DEFAULT_CDA,
    air_density: float = SEA_LEVEL_AIR_DENSITY,
) -> float:
    """
    Extra aerodynamic power (W) needed to hold ``speed`` against a wind component.

    Drag power is 0.5·CdA·ρ·v³ on the apparent speed. The still-air case
    uses v = speed; the with-wind case uses v = speed + wind_component
    (positive = headwind). A tailwind stronger than the rider's speed would
    leave a non-positive apparent speed, so it is clamped to a small epsilon.

    Args:
        speed: Ground speed in m/s
        wind_component: Headwind component in m/s (negative for tailwind)
        cda: Drag area in m²
        air_density: kg/m³

    Returns:
        Signed delta in watts: positive costs power, negative saves it.

    Examples:
        >>> aerodynamic_power_delta(8.0, 0.0)
        0.0
    """
    if wind_component == 0 or speed <= 0:
        return 0.0
    still_air = speed
    with_wind = max(APPARENT_SPEED_EPSILON, speed + wind_component)
    k = 0.5 * cda * air_density
    return k * (with_wind ** 3 - still_air ** 3)


def tailwind_power_saving(speed: float, tailwind: float, cda: float = DEFAULT_CDA,
                          air_density: float = SEA_LEVEL_AIR_DENSITY) -> float:
    """Watts saved by a tailwind of ``tailwind`` m/s (always >= 0)."""
    return max(0.0, -aerodynamic_power_delta(speed, -abs(tailwind), cda, air_density))


def effective_crosswind_drag(crosswind: float, rider_speed: float) -> float:
    """Increase in apparent air speed (m/s) caused by a crosswind."""
    v = abs(rider_speed)
    return math.hypot(v, crosswind) - v


def heat_index(temp_f: float, humidity_pct: float) -> float:
    """
    NWS heat index (Rothfusz regression) in °F.

    Only valid at or above 80°F; below that the input temperature is
    returned unchanged.

    Examples:
        >>> heat_index(79.9, 40.0)
        79.9
    """
    if not math.isfinite(temp_f) or temp_f < HEAT_INDEX_MIN_F:
        return temp_f
    t = temp_f
    rh = min(100.0, max(0.0, humidity_pct if math.isfinite(humidity_pct) else 0.0))
    return (
        -42.379
        + 2.04901523 * t
        + 10.14333127 * rh
        - 0.22475541 * t * rh
        - 0.00683783 * t * t
        - 0.05481717 * rh * rh
        + 0.00122874 * t * t * rh
        + 0.00085282 * t * rh * rh
        - 0.00000199 * t * t * rh * rh
    )


def wind_chill(temp_f: float, wind_mph: float) -> float:
    """
    NWS wind chill in °F.

    Only valid at or below 50°F with wind of at least 3 mph; otherwise the
    input temperature is returned unchanged.

    Examples:
        >>> wind_chill(60.0, 20.0)
        60.0
    """
    if not (math.isfinite(temp_f) and math.isfinite(wind_mph)):
        return temp_f
    if temp_f > WIND_CHILL_MAX_F or wind_mph < WIND_CHILL_MIN_MPH:
        return temp_f
    v = wind_mph ** 0.16
    return 35.74 + 0.6215 * temp_f - 35.75 * v + 0.4275 * temp_f * v


def dehydration_risk(temp_c: float, humidity_pct: float) -> float:
    """Bucketed dehydration risk (0.2 / 0.5 / 0.8 / 1.0) from the heat index."""
    hi = heat_index(c_to_f(temp_c), humidity_pct)
    if hi > 105:
        return 1.0
    if hi > 95:
        return 0.8
    if hi > 85:
        return 0.5
    return 0.2


def air_density(temp_c: float, humidity_pct: float = 50.0,
                base_density: float = SEA_LEVEL_AIR_DENSITY) -> float:
    """Air density corrected for temperature and (approximately) humidity."""
    temp_k = temp_c + KELVIN_OFFSET
    if temp_k <= 0:
        return base_density
    return base_density * (STANDARD_TEMPERATURE_K / temp_k) * (1 - humidity_pct / 100.0 * 0.02)
