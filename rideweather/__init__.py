"""
rideweather: ride condition analytics and insight engine.

Turns a route's weather samples, power breakdown and rider settings into
hazard segments, climbs, daylight exposure, a safety score, strategic
insights and alternative departure times.
"""

__version__ = "1.0.0"
