"""NDBC realtime buoy feed adapter.

The National Data Buoy Center publishes the last 45 days of standard
meteorological observations per station as whitespace-separated text:

    #YY  MM DD hh mm WDIR WSPD GST  WVHT   DPD   APD MWD   PRES  ATMP  WTMP ...
    #yr  mo dy hr mn degT m/s  m/s     m   sec   sec degT   hPa  degC  degC ...
    2024 01 15 18 40 290  5.0  7.0   1.8    14   9.1 285 1015.2  14.1  15.3 ...

The first line is the header, `#` lines after it are unit rows, and the
first data line is the latest observation. `MM` marks a missing value.

Data source: https://www.ndbc.noaa.gov/data/realtime2/{station}.txt
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from swellstrike.cache.models import (
    AIR_TEMP,
    AVERAGE_PERIOD,
    DOMINANT_PERIOD,
    PRESSURE,
    WATER_TEMP,
    WAVE_DIRECTION,
    WAVE_HEIGHT,
    WIND_DIRECTION,
    WIND_SPEED,
    Location,
    Reading,
)
from swellstrike.sources.base import MalformedPayload, SourceAdapter, parse_float

logger = logging.getLogger(__name__)

NDBC_REALTIME_URL = "https://www.ndbc.noaa.gov/data/realtime2/{station}.txt"

# Header token -> canonical metric. Feed units are already canonical.
NDBC_COLUMNS = {
    "WVHT": WAVE_HEIGHT,
    "DPD": DOMINANT_PERIOD,
    "APD": AVERAGE_PERIOD,
    "MWD": WAVE_DIRECTION,
    "WSPD": WIND_SPEED,
    "WDIR": WIND_DIRECTION,
    "PRES": PRESSURE,
    "WTMP": WATER_TEMP,
    "ATMP": AIR_TEMP,
}

# A reading needs wave height in the header and at least one of these parsed
REQUIRED_HEADER = "WVHT"
REQUIRED_METRICS = (WAVE_HEIGHT, DOMINANT_PERIOD)


class NDBCAdapter(SourceAdapter):
    """Adapter for the NDBC realtime2 fixed-width text feed.

    Example:
        >>> adapter = NDBCAdapter()
        >>> reading = adapter.fetch(location)
        >>> reading.metrics["wave_height"]
        1.8
    """

    source_id = "ndbc"

    def fetch(self, location: Location) -> Reading:
        url = NDBC_REALTIME_URL.format(station=location.location_id)
        response = self._get(url)
        return self.parse(response.text, location.location_id)

    def parse(
        self,
        text: str,
        location_id: str,
        fetched_at: Optional[datetime] = None,
    ) -> Reading:
        """Parse a realtime2 payload into a Reading.

        Args:
            text: Raw feed body
            location_id: Station ID the payload belongs to
            fetched_at: Fallback observation time if the row has no timestamp

        Raises:
            MalformedPayload: Missing header/data rows, no wave height column,
                or no required metric parseable
        """
        lines = [line for line in text.splitlines() if line.strip()]
        if len(lines) < 2:
            raise MalformedPayload(self.source_id, f"{location_id}: fewer than 2 lines")

        headers = lines[0].lstrip("#").split()
        if REQUIRED_HEADER not in headers:
            raise MalformedPayload(
                self.source_id, f"{location_id}: header lacks {REQUIRED_HEADER}"
            )

        data_lines = [line for line in lines[1:] if not line.lstrip().startswith("#")]
        if not data_lines:
            raise MalformedPayload(self.source_id, f"{location_id}: no observation rows")

        values = data_lines[0].split()
        row = {header: values[i] for i, header in enumerate(headers) if i < len(values)}

        metrics = {}
        for column, metric in NDBC_COLUMNS.items():
            value = parse_float(row.get(column))
            if value is not None:
                metrics[metric] = value

        if not any(metric in metrics for metric in REQUIRED_METRICS):
            raise MalformedPayload(
                self.source_id, f"{location_id}: no parseable wave height or period"
            )

        observed_at = _parse_timestamp(row) or fetched_at or datetime.now(timezone.utc)
        logger.debug(f"{location_id}: parsed {len(metrics)} metrics at {observed_at}")

        return Reading(
            location_id=location_id,
            observed_at=observed_at,
            source_id=self.source_id,
            metrics=metrics,
        )


def _parse_timestamp(row: dict) -> Optional[datetime]:
    """Build a UTC timestamp from the YY MM DD hh mm columns."""
    year = row.get("YY") or row.get("YYYY")
    try:
        return datetime(
            int(year),
            int(row["MM"]),
            int(row["DD"]),
            int(row["hh"]),
            int(row["mm"]),
            tzinfo=timezone.utc,
        )
    except (KeyError, TypeError, ValueError):
        return None
