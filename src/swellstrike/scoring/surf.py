"""Surf band table (NDBC buoy readings)."""

from swellstrike.cache.models import AVERAGE_PERIOD, DOMINANT_PERIOD, WAVE_HEIGHT, WIND_SPEED
from swellstrike.scoring.bands import Band, BandTable, Factor
from swellstrike.utils.units import metres_to_feet, ms_to_mph

WAVE_HEIGHT_FACTOR = Factor(
    "wave_height",
    (
        Band(WAVE_HEIGHT, 40, low=4, high=10, high_inclusive=True, convert=metres_to_feet),
        Band(WAVE_HEIGHT, 25, low=2, high=4, convert=metres_to_feet),
        Band(
            WAVE_HEIGHT,
            30,
            low=10,
            high=15,
            low_inclusive=False,
            high_inclusive=True,
            convert=metres_to_feet,
        ),
    ),
)

DOMINANT_PERIOD_FACTOR = Factor(
    "dominant_period",
    (
        Band(DOMINANT_PERIOD, 30, low=12),
        Band(DOMINANT_PERIOD, 20, low=10, high=12),
        Band(DOMINANT_PERIOD, 10, low=8, high=10),
    ),
)

WIND_FACTOR = Factor(
    "wind",
    (
        Band(WIND_SPEED, 20, high=10, convert=ms_to_mph),
        Band(WIND_SPEED, 10, low=10, high=15, convert=ms_to_mph),
        Band(WIND_SPEED, -10, low=15, convert=ms_to_mph),
    ),
)

AVERAGE_PERIOD_FACTOR = Factor(
    "average_period",
    (Band(AVERAGE_PERIOD, 10, low=8),),
)

SURF_TABLE = BandTable(
    "surf",
    (WAVE_HEIGHT_FACTOR, DOMINANT_PERIOD_FACTOR, WIND_FACTOR, AVERAGE_PERIOD_FACTOR),
)
