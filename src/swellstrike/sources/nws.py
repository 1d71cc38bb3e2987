"""National Weather Service (weather.gov) grid forecast adapter.

Resolution is two-step: the points endpoint maps a lat/lon to a forecast
office grid, and the grid data endpoint returns hourly quantitative layers.

    GET https://api.weather.gov/points/{lat},{lon}
        -> properties.forecastGridData
    GET {forecastGridData}
        -> properties.snowfallAmount / temperature / windSpeed

Layer values look like:
    {"validTime": "2024-01-15T18:00:00+00:00/PT6H", "value": 25.4}

Units: snowfallAmount in mm, temperature in degC, windSpeed in km/h.
Coverage is US only.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
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
    MalformedPayload,
    SourceAdapter,
    Unavailable,
    parse_float,
)
from swellstrike.utils.units import kmh_to_ms, mm_to_metres

logger = logging.getLogger(__name__)

NWS_POINTS_URL = "https://api.weather.gov/points/{lat:.4f},{lon:.4f}"

# A grid must carry at least one of these layers, and yield one of these metrics
REQUIRED_LAYERS = ("snowfallAmount", "temperature")
REQUIRED_METRICS = (SNOWFALL_24H, SNOWFALL_48H, TEMPERATURE)


class NWSAdapter(SourceAdapter):
    """Adapter for weather.gov gridpoint forecasts."""

    source_id = "nws"

    def __init__(
        self,
        timeout: float = 15.0,
        user_agent: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(timeout=timeout, user_agent=user_agent)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def fetch(self, location: Location) -> Reading:
        points = self._get_json(NWS_POINTS_URL.format(lat=location.lat, lon=location.lon))
        grid_url = _require(points, ("properties", "forecastGridData"), self.source_id)

        grid = self._get_json(grid_url)
        properties = _require(grid, ("properties",), self.source_id)
        return self.parse_grid(properties, location.location_id)

    def parse_grid(self, properties: dict, location_id: str) -> Reading:
        """Turn gridpoint properties into a Reading.

        Raises:
            Unavailable: If the grid has neither a snowfall nor a temperature layer
            MalformedPayload: If a layer has the wrong shape or none of its
                values parse
        """
        if not isinstance(properties, dict):
            raise MalformedPayload(
                self.source_id, f"{location_id}: grid properties is not an object"
            )
        if all(properties.get(layer) is None for layer in REQUIRED_LAYERS):
            raise Unavailable(
                self.source_id, f"{location_id}: grid has no snowfallAmount or temperature layer"
            )

        now = self._clock()
        metrics = {}

        snowfall = _layer_values(properties, "snowfallAmount", self.source_id)
        for metric, hours in ((SNOWFALL_24H, 24), (SNOWFALL_48H, 48)):
            total = _accumulate(snowfall, now, hours=hours)
            if total is not None:
                metrics[metric] = mm_to_metres(total)

        temperature = _first_value(_layer_values(properties, "temperature", self.source_id))
        if temperature is not None:
            metrics[TEMPERATURE] = temperature

        wind = _first_value(_layer_values(properties, "windSpeed", self.source_id))
        if wind is not None:
            metrics[WIND_SPEED] = kmh_to_ms(wind)

        if not any(metric in metrics for metric in REQUIRED_METRICS):
            raise MalformedPayload(
                self.source_id, f"{location_id}: no parseable snowfall or temperature"
            )

        return Reading(
            location_id=location_id,
            observed_at=now,
            source_id=self.source_id,
            metrics=metrics,
        )


def _require(payload, path: tuple, source_id: str):
    """Walk a JSON path, raising Unavailable when a field is missing."""
    node = payload
    for key in path:
        if not isinstance(node, dict) or node.get(key) is None:
            raise Unavailable(source_id, f"response missing field {'.'.join(path)}")
        node = node[key]
    return node


def _layer_values(properties: dict, layer: str, source_id: str) -> list[dict]:
    """The `values` list of a grid layer, empty if the layer is absent.

    Raises:
        MalformedPayload: If the layer, its values or any item has the wrong type
    """
    node = properties.get(layer)
    if node is None:
        return []
    if not isinstance(node, dict):
        raise MalformedPayload(source_id, f"layer {layer} is not an object")

    values = node.get("values")
    if values is None:
        return []
    if not isinstance(values, list) or not all(isinstance(item, dict) for item in values):
        raise MalformedPayload(source_id, f"layer {layer} values are not a list of objects")
    return values


_DURATION_RE = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?)?$")


def _parse_valid_time(valid_time: str) -> Optional[tuple[datetime, datetime]]:
    """Parse an interval like '2024-01-15T18:00:00+00:00/PT6H' into (start, end)."""
    try:
        start_raw, duration_raw = valid_time.split("/")
        start = datetime.fromisoformat(start_raw)
    except (AttributeError, ValueError):
        return None

    match = _DURATION_RE.match(duration_raw)
    if match is None:
        return None
    days, hours, minutes = (int(part or 0) for part in match.groups())

    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    return start, start + timedelta(days=days, hours=hours, minutes=minutes)


def _accumulate(values: list, now: datetime, hours: int) -> Optional[float]:
    """Sum layer values whose interval overlaps the next `hours` hours.

    Returns None when no parseable value overlaps the window.
    """
    horizon = now + timedelta(hours=hours)
    total = None
    for item in values:
        interval = _parse_valid_time(item.get("validTime"))
        amount = parse_float(item.get("value"))
        if interval is None or amount is None:
            continue
        start, end = interval
        if end > now and start < horizon:
            total = (total or 0.0) + amount
    return total


def _first_value(values: list) -> Optional[float]:
    for item in values:
        value = parse_float(item.get("value"))
        if value is not None:
            return value
    return None
