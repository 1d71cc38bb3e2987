"""Ski band table (snow reports and weather forecasts).

Fresh snow prefers the 24-hour total and only falls back to the 48-hour
total when neither 24-hour band applies.
"""

from swellstrike.cache.models import BASE_DEPTH, SNOWFALL_24H, SNOWFALL_48H, TEMPERATURE, WIND_SPEED
from swellstrike.scoring.bands import Band, BandTable, Factor
from swellstrike.utils.units import celsius_to_fahrenheit, metres_to_inches, ms_to_mph

FRESH_SNOW_FACTOR = Factor(
    "fresh_snow",
    (
        Band(SNOWFALL_24H, 40, low=12, convert=metres_to_inches),
        Band(SNOWFALL_24H, 25, low=6, high=12, convert=metres_to_inches),
        Band(SNOWFALL_48H, 30, low=18, convert=metres_to_inches),
    ),
)

TEMPERATURE_FACTOR = Factor(
    "temperature",
    (
        Band(TEMPERATURE, 20, low=10, high=32, low_inclusive=False, convert=celsius_to_fahrenheit),
        Band(TEMPERATURE, 15, high=10, convert=celsius_to_fahrenheit),
    ),
)

WIND_FACTOR = Factor(
    "wind",
    (
        Band(WIND_SPEED, 20, high=20, convert=ms_to_mph),
        Band(WIND_SPEED, 10, low=20, high=30, convert=ms_to_mph),
    ),
)

BASE_DEPTH_FACTOR = Factor(
    "base_depth",
    (
        Band(BASE_DEPTH, 20, low=60, convert=metres_to_inches),
        Band(BASE_DEPTH, 10, low=40, high=60, convert=metres_to_inches),
    ),
)

SKI_TABLE = BandTable(
    "ski",
    (FRESH_SNOW_FACTOR, TEMPERATURE_FACTOR, WIND_FACTOR, BASE_DEPTH_FACTOR),
)
