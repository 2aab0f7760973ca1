"""
Calculation Constants for tripstats

Centralized location for thresholds, weights and bucket definitions used by
the analytics engine. Deployment-tunable values come from Config.
"""

from ..config import Config

# Trip Classification
UNKNOWN_BUCKET_KEY = "unknown"  # Month/day key for trips without dates

# Efficiency Constants
MAX_SCATTER_EFFICIENCY = 50.0  # kWh/100km; above this is sensor noise
HIGHWAY_CONSUMPTION_FACTOR = 1.2  # Highway consumption vs average
CITY_CONSUMPTION_FACTOR = 0.8  # City consumption vs average

# Records
TOP_RECORDS_LIMIT = Config.TOP_RECORDS_LIMIT  # Trips kept per records list

# Distribution buckets: (label, inclusive upper bound in km)
TRIP_DISTANCE_RANGES = [
    ("0-5", 5.0),
    ("5-15", 15.0),
    ("15-30", 30.0),
    ("30-50", 50.0),
    ("50+", None),
]

WEEKDAY_KEYS = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]  # Monday-first
HOURS_PER_DAY = 24

# Battery Constants
DEFAULT_BATTERY_CAPACITY_KWH = Config.DEFAULT_BATTERY_SIZE_KWH  # Fallback net capacity
DEFAULT_SOH_PERCENT = 100.0  # Manual SoH when none is configured

# Charging efficiency (wall-to-battery)
SLOW_CHARGING_EFFICIENCY = 0.85  # Below SLOW_CHARGING_MAX_KW
DEFAULT_CHARGING_EFFICIENCY = 0.95  # Everything else

# Charging speed buckets (kW, inclusive upper bounds)
SLOW_CHARGING_MAX_KW = 3.5  # Domestic socket
AC_CHARGING_MAX_KW = 22.0  # Wallbox / public AC
DC_CHARGING_MAX_KW = 70.0  # DC fast charging; above = HPC

# Charging stress weights per speed bucket
STRESS_WEIGHT_SLOW = 0.9
STRESS_WEIGHT_AC = 1.0
STRESS_WEIGHT_DC = 1.2
STRESS_WEIGHT_HPC = 2.8

# Degradation model
SEI_MAX_LOSS_PERCENT = 2.0  # SEI layer formation loss, reached at SEI_FORMATION_CYCLES
SEI_FORMATION_CYCLES = 50.0
CYCLE_AGING_RATE = 0.00005  # Fraction lost per real cycle at stress 1.0
CALENDAR_AGING_PERCENT_PER_YEAR = 0.75
FULL_CHARGE_PERCENT = 99.0  # Sessions ending at or above this calibrate the BMS
CALIBRATION_MIN_RATIO = 0.1  # Below this share of full charges, warn

# Validation Thresholds
MIN_PERCENTAGE = 0.0
MAX_PERCENTAGE = 100.0
