"""OpenWeather current + 5-day forecast adapter (global coverage).

Endpoints (metric units, API key in the `appid` query parameter):
    https://api.openweathermap.org/data/2.5/weather?lat=..&lon=..
    https://api.openweathermap.org/data/2.5/forecast?lat=..&lon=..

Forecast items carry `dt` (unix seconds) and an optional `snow["3h"]`
accumulation in mm. Snowfall totals are summed over items due within the
next 24 and 48 hours.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from swellstrike.cache.models import (
    SNOWFALL_24H,
    SNOWFALL_48H,
    TEMPERATURE,
    WIND_SPEED,
    Location,
    Reading,
)
from swellstrike.sources.base import (
    AdapterDisabled,
    MalformedPayload,
    SourceAdapter,
    parse_float,
)
from swellstrike.utils.units import mm_to_metres

logger = logging.getLogger(__name__)

OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"
OPENWEATHER_CURRENT_URL = f"{OPENWEATHER_BASE_URL}/weather"
OPENWEATHER_FORECAST_URL = f"{OPENWEATHER_BASE_URL}/forecast"


class OpenWeatherAdapter(SourceAdapter):
    """Adapter for OpenWeather current conditions and forecast.

    Without an API key the adapter stays registered but every fetch raises
    AdapterDisabled, so the resolver moves on to the next provider.
    """

    source_id = "openweather"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 15.0,
        user_agent: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(timeout=timeout, user_agent=user_agent)
        self.api_key = api_key
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        if not api_key:
            logger.warning("OpenWeather API key not set; adapter disabled")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def fetch(self, location: Location) -> Reading:
        if not self.enabled:
            raise AdapterDisabled(self.source_id, "API key not configured")

        params = {
            "lat": location.lat,
            "lon": location.lon,
            "appid": self.api_key,
            "units": "metric",
        }
        current = self._get_json(OPENWEATHER_CURRENT_URL, params=params)
        forecast = self._get_json(OPENWEATHER_FORECAST_URL, params=params)
        return self.parse(current, forecast, location.location_id)

    def parse(self, current: dict, forecast: dict, location_id: str) -> Reading:
        """Combine current and forecast payloads into a Reading.

        Snowfall is reported only for windows that at least one dated
        forecast item falls in; an item without a `snow` block counts as
        no snow.

        Raises:
            MalformedPayload: If the forecast has no item list, a node has
                the wrong type, or neither snowfall nor temperature parses
        """
        items = forecast.get("list") if isinstance(forecast, dict) else None
        if not isinstance(items, list):
            raise MalformedPayload(self.source_id, f"{location_id}: forecast has no list")
        if not all(isinstance(item, dict) for item in items):
            raise MalformedPayload(
                self.source_id, f"{location_id}: forecast items are not objects"
            )

        now = self._clock()
        now_ts = now.timestamp()
        windows = {SNOWFALL_24H: 24, SNOWFALL_48H: 48}
        totals = {}
        for item in items:
            dt = parse_float(item.get("dt"))
            if dt is None:
                continue
            snow_mm = parse_float(_section(item, "snow", self.source_id).get("3h")) or 0.0
            hours = (dt - now_ts) / 3600
            for metric, limit in windows.items():
                if hours <= limit:
                    totals[metric] = totals.get(metric, 0.0) + snow_mm

        metrics = {metric: mm_to_metres(total) for metric, total in totals.items()}

        first = items[0] if items else {}
        current = current if isinstance(current, dict) else {}
        temperature = _pick(current, first, "main", "temp", self.source_id)
        if temperature is not None:
            metrics[TEMPERATURE] = temperature
        wind = _pick(current, first, "wind", "speed", self.source_id)
        if wind is not None:
            metrics[WIND_SPEED] = wind

        if not any(metric in metrics for metric in (SNOWFALL_24H, SNOWFALL_48H, TEMPERATURE)):
            raise MalformedPayload(
                self.source_id, f"{location_id}: no parseable snowfall or temperature"
            )

        return Reading(
            location_id=location_id,
            observed_at=now,
            source_id=self.source_id,
            metrics=metrics,
        )


def _section(payload: dict, name: str, source_id: str) -> dict:
    """A nested object of a payload, empty if absent."""
    node = payload.get(name)
    if node is None:
        return {}
    if not isinstance(node, dict):
        raise MalformedPayload(source_id, f"field {name} is not an object")
    return node


def _pick(current: dict, fallback: dict, section: str, key: str, source_id: str) -> Optional[float]:
    """Value from the current payload, else from the first forecast item."""
    for payload in (current, fallback):
        value = parse_float(_section(payload, section, source_id).get(key))
        if value is not None:
            return value
    return None
