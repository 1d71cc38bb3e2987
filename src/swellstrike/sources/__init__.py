"""Source adapters for upstream condition providers.

Each adapter is responsible for exactly one wire format:

- ndbc: NOAA NDBC realtime buoy feed (fixed-width text)
- nws: weather.gov gridpoint forecast (two-step JSON)
- openweather: OpenWeather current + forecast (JSON, API key)

The resolver tries adapters in a region-aware preference order.
"""

from .base import (
    AdapterDisabled,
    FetchOutcome,
    MalformedPayload,
    RateLimited,
    SourceAdapter,
    SourceError,
    Unavailable,
)
from .ndbc import NDBCAdapter
from .nws import NWSAdapter
from .openweather import OpenWeatherAdapter
from .resolver import FallbackResolver, NoSourceAvailable, default_preference_order

__all__ = [
    "AdapterDisabled",
    "FallbackResolver",
    "FetchOutcome",
    "MalformedPayload",
    "NDBCAdapter",
    "NWSAdapter",
    "NoSourceAvailable",
    "OpenWeatherAdapter",
    "RateLimited",
    "SourceAdapter",
    "SourceError",
    "Unavailable",
    "default_preference_order",
]
