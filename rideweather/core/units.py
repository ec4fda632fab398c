"""
Unit conversion between canonical SI values and rider display units.

Threshold tables and rendered sentences are expressed in display units
(km, km/h, m, °C for metric riders; mi, mph, ft, °F for imperial riders).
"""

from rideweather.core.models import UnitSystem

M_PER_KM = 1000.0
M_PER_MI = 1609.344
FT_PER_M = 3.280839895
MS_TO_KMH = 3.6
MS_TO_MPH = 2.2369362920544


def c_to_f(celsius: float) -> float:
    return celsius * 9.0 / 5.0 + 32.0


def f_to_c(fahrenheit: float) -> float:
    return (fahrenheit - 32.0) * 5.0 / 9.0


def ms_to_mph(speed_ms: float) -> float:
    return speed_ms * MS_TO_MPH


def speed(speed_ms: float, unit_system: UnitSystem) -> float:
    """m/s to km/h or mph."""
    return speed_ms * (MS_TO_KMH if unit_system is UnitSystem.METRIC else MS_TO_MPH)


def temperature(celsius: float, unit_system: UnitSystem) -> float:
    return celsius if unit_system is UnitSystem.METRIC else c_to_f(celsius)


def distance(metres: float, unit_system: UnitSystem) -> float:
    """Metres to km or mi."""
    return metres / (M_PER_KM if unit_system is UnitSystem.METRIC else M_PER_MI)


def elevation(metres: float, unit_system: UnitSystem) -> float:
    """Metres to m or ft."""
    return metres if unit_system is UnitSystem.METRIC else metres * FT_PER_M


def elevation_to_m(value: float, unit_system: UnitSystem) -> float:
    return value if unit_system is UnitSystem.METRIC else value / FT_PER_M


def labels(unit_system: UnitSystem) -> dict:
    """Display unit labels used in rendered text."""
    if unit_system is UnitSystem.METRIC:
        return {"speed_unit": "km/h", "temp_unit": "°C", "distance_unit": "km", "elevation_unit": "m"}
    return {"speed_unit": "mph", "temp_unit": "°F", "distance_unit": "mi", "elevation_unit": "ft"}
