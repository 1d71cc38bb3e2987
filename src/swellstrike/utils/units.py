"""Unit conversions between provider-native, canonical and display units.

Canonical (internal) units for every Reading metric:
    lengths      metres   (wave height, snowfall, base depth)
    periods      seconds
    speeds       m/s
    temperatures degrees Celsius

Adapters convert provider-native values into canonical units at ingestion.
Band tables convert canonical values into the display units the bands are
written in (feet, mph, inches, Fahrenheit).
"""

FEET_PER_METRE = 3.28084
MPH_PER_MS = 2.237
MM_PER_INCH = 25.4
KMH_PER_MS = 3.6


def metres_to_feet(value: float) -> float:
    return value * FEET_PER_METRE


def ms_to_mph(value: float) -> float:
    return value * MPH_PER_MS


def kmh_to_ms(value: float) -> float:
    return value / KMH_PER_MS


def mm_to_metres(value: float) -> float:
    return value / 1000.0


def metres_to_inches(value: float) -> float:
    """Metres to inches, via millimetres to match provider snowfall totals."""
    return (value * 1000.0) / MM_PER_INCH


def celsius_to_fahrenheit(value: float) -> float:
    return value * 9 / 5 + 32


def identity(value: float) -> float:
    return value
