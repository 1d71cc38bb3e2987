"""Shared utilities for swellstrike."""

from .units import (
    FEET_PER_METRE,
    MM_PER_INCH,
    MPH_PER_MS,
    celsius_to_fahrenheit,
    kmh_to_ms,
    metres_to_feet,
    metres_to_inches,
    mm_to_metres,
    ms_to_mph,
)

__all__ = [
    "FEET_PER_METRE",
    "MM_PER_INCH",
    "MPH_PER_MS",
    "celsius_to_fahrenheit",
    "kmh_to_ms",
    "metres_to_feet",
    "metres_to_inches",
    "mm_to_metres",
    "ms_to_mph",
]
