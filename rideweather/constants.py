"""
Engine-wide constants.

Threshold tables that riders may tune live in config/hazard_rulebook.yml;
the values here are physical constants and fixed detection parameters.
"""

# Aerodynamics
DEFAULT_CDA = 0.32                    # m², road bike on the hoods
SEA_LEVEL_AIR_DENSITY = 1.225         # kg/m³ at 15°C
APPARENT_SPEED_EPSILON = 0.1          # m/s floor for tailwind apparent speed
STANDARD_TEMPERATURE_K = 288.15       # ISA sea-level temperature
KELVIN_OFFSET = 273.15

# Thermal formula domains (°F / mph)
HEAT_INDEX_MIN_F = 80.0
WIND_CHILL_MAX_F = 50.0
WIND_CHILL_MIN_MPH = 3.0

# Segmentation
HAZARD_MIN_EXTENT_M = 500.0           # hazard runs shorter than this are dropped
CLIMB_MIN_GRADE = 0.025               # grade strictly above this opens a climb
CLIMB_MIN_GAIN_M = 100.0              # metric retention floor
CLIMB_MIN_GAIN_FT = 300.0             # imperial retention floor
CLIMB_WIND_THRESHOLD_MS = 3.0         # avg headwind component for a climb wind flag

# Wind component classification for insights
SIGNIFICANT_WIND_COMPONENT_MS = 3.0
HEADWIND_STRATEGY_MIN_S = 600.0       # 10 minutes
TAILWIND_RECOVERY_MIN_S = 900.0       # 15 minutes
ASYMMETRIC_WIND_SHARE = 0.60
HEADWIND_DOMINATED_SHARE = 0.40
HALF_MOSTLY_SHARE = 0.30

# Route profile gates (km and m in every unit system)
PROFILE_MIN_DISTANCE = 30.0
PROFILE_MIN_GAIN = 500.0
MOUNTAIN_DENSITY = 25.0               # m gained per km
HILLY_DENSITY = 15.0
CONCENTRATED_CLIMB_GAIN = 1000.0

# Danger zone: fast descent with strong crosswind
DANGER_DESCENT_GRADE = -0.06
DANGER_CROSSWIND = 25.0               # display speed units

# Temperature gates for insights (°C)
HEAT_STRESS_C = 30.0
COLD_STRATEGY_C = 5.0
HOT_ROUTE_AVG_C = 28.0
COLD_ROUTE_AVG_C = 10.0
LOCAL_TEMP_DELTA_C = 5.0              # equals 9°F
DEHYDRATION_ESCALATION_RISK = 0.7
DANGEROUS_HEAT_INDEX_F = 105.0

RAIN_INSIGHT_POP = 0.4
RAIN_CRITICAL_POP = 0.7
UV_INSIGHT_INDEX = 6.0
UV_HIGH_INDEX = 10.0
NUTRITION_MIN_RIDE_S = 5400.0         # 90 minutes

# Power zones (% FTP upper bounds)
POWER_ZONES = (
    ("Recovery", 55.0),
    ("Endurance", 75.0),
    ("Tempo", 90.0),
    ("Threshold", 105.0),
    ("VO2 Max", 120.0),
    ("Anaerobic", float("inf")),
)
ZONE_MIN_SHARE = 0.10
ZONE_MIN_COUNT = 3
HIGH_INTENSITY_PCT_FTP = 90.0
HIGH_INTENSITY_SHARE = 0.20
NORMALIZED_POWER_WINDOW_S = 30

# Critical segment scoring
CRITICAL_SEGMENT_MIN_SEVERITY = 5
CRITICAL_SEGMENT_LIMIT = 10

# Daylight (minutes around sun events)
GOLDEN_MORNING_BEFORE_MIN = 30
GOLDEN_MORNING_AFTER_MIN = 60
GOLDEN_EVENING_BEFORE_MIN = 60
GOLDEN_EVENING_AFTER_MIN = 30

# Safety score penalty weights (per unit share of total distance)
DARKNESS_PENALTY = 40.0
DANGEROUS_PENALTY = 50.0
CAUTIONARY_PENALTY = 25.0

# Departure search
DEPARTURE_OFFSETS_H = (-2, -1, 1, 2, 3, 4)
DEPARTURE_MAX_RESULTS = 3
DEPARTURE_WINDOW_MIN = 30
IDEAL_TEMP_C = 21.0
IDEAL_TEMP_F = 70.0
DEPARTURE_WEIGHTS = {
    "temperature": 0.30,
    "wind": 0.25,
    "precipitation": 0.25,
    "comfort": 0.20,
}

# Insight synthesis
SYNTHESIS_MAX_SENTENCES = 4
