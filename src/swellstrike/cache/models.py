"""Data models for the condition cache and strike tracking."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from swellstrike.config import STRIKE_THRESHOLD


class Domain(str, Enum):
    """Activity domain a location is scored for."""

    SURF = "surf"
    SKI = "ski"


# Metric names (canonical units in comments)
WAVE_HEIGHT = "wave_height"  # m
DOMINANT_PERIOD = "dominant_period"  # s
AVERAGE_PERIOD = "average_period"  # s
WAVE_DIRECTION = "wave_direction"  # deg
WIND_SPEED = "wind_speed"  # m/s
WIND_DIRECTION = "wind_direction"  # deg
PRESSURE = "pressure"  # hPa
WATER_TEMP = "water_temp"  # degC
AIR_TEMP = "air_temp"  # degC
SNOWFALL_24H = "snowfall_24h"  # m
SNOWFALL_48H = "snowfall_48h"  # m
BASE_DEPTH = "base_depth"  # m
TEMPERATURE = "temperature"  # degC

# Value reported for a metric the source could not parse. Absent metrics
# never contribute points; the neutral value is only used for display.
NEUTRAL_VALUES: dict[str, float] = {
    WAVE_HEIGHT: 0.0,
    DOMINANT_PERIOD: 0.0,
    AVERAGE_PERIOD: 0.0,
    WAVE_DIRECTION: 0.0,
    WIND_SPEED: 0.0,
    WIND_DIRECTION: 0.0,
    PRESSURE: 0.0,
    WATER_TEMP: 0.0,
    AIR_TEMP: 0.0,
    SNOWFALL_24H: 0.0,
    SNOWFALL_48H: 0.0,
    BASE_DEPTH: 0.0,
    TEMPERATURE: 0.0,
}


@dataclass(frozen=True)
class Location:
    """Reference data for a scored location (buoy or ski resort)."""

    location_id: str
    name: str
    lat: float
    lon: float
    domain: Domain
    region: str
    country: str = "US"


@dataclass(frozen=True)
class Reading:
    """A normalized observation from one source at one time.

    Metrics are stored in canonical SI units. Metrics that could not be
    parsed are simply absent.

    Raises:
        ValueError: If constructed without any metrics.
    """

    location_id: str
    observed_at: datetime
    source_id: str
    metrics: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        if not self.metrics:
            raise ValueError(
                f"Reading for {self.location_id} from {self.source_id} has no metrics"
            )
        object.__setattr__(self, "metrics", MappingProxyType(dict(self.metrics)))

    def has(self, metric: str) -> bool:
        return metric in self.metrics

    def value(self, metric: str) -> float:
        """Metric value, or its neutral value when the source lacked it."""
        return self.metrics.get(metric, NEUTRAL_VALUES.get(metric, 0.0))


@dataclass(frozen=True)
class ScoredReading:
    """A Reading with its quality score."""

    reading: Reading
    score: int
    domain: Domain

    @property
    def location_id(self) -> str:
        return self.reading.location_id

    @property
    def is_strike(self) -> bool:
        return self.score >= STRIKE_THRESHOLD


@dataclass(frozen=True)
class StrikeEvent:
    """A contiguous interval where a location stayed at or above threshold.

    Attributes:
        location_id: Location the strike belongs to
        domain: Domain of the location
        started_at: Time of the first score at/above threshold
        peak_score: Highest score seen during the interval
        peak_at: Time the peak was first reached
        score: Most recent score
        last_seen_at: Time of the most recent score
        ended_at: When the strike ended, None while open
        close_reason: 'resolved' (score dropped) or 'silence' (no data)
    """

    location_id: str
    domain: Domain
    started_at: datetime
    peak_score: int
    peak_at: datetime
    score: int
    last_seen_at: datetime
    ended_at: Optional[datetime] = None
    close_reason: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.ended_at is None


# Built-in reference locations (buoys and resorts from the original service)
LOCATIONS_DATA = [
    # NOAA buoys - Southern California
    Location("46221", "Santa Barbara", 34.274, -119.863, Domain.SURF, "Southern CA"),
    Location("46222", "San Pedro", 33.618, -118.317, Domain.SURF, "Southern CA"),
    Location("46025", "Santa Monica Basin", 33.749, -119.053, Domain.SURF, "Southern CA"),
    Location("46086", "San Clemente", 32.491, -118.034, Domain.SURF, "Southern CA"),
    # Ski resorts - North America
    Location("whistler", "Whistler Blackcomb", 50.116, -122.949, Domain.SKI, "BC", "CA"),
    Location("baker", "Mt. Baker", 48.859, -121.686, Domain.SKI, "WA"),
    Location("stevens", "Stevens Pass", 47.745, -121.089, Domain.SKI, "WA"),
    Location("jackson", "Jackson Hole", 43.588, -110.828, Domain.SKI, "WY"),
    Location("alta", "Alta", 40.588, -111.638, Domain.SKI, "UT"),
    Location("snowbird", "Snowbird", 40.583, -111.657, Domain.SKI, "UT"),
    Location("brighton", "Brighton", 40.598, -111.583, Domain.SKI, "UT"),
    Location("solitude", "Solitude", 40.619, -111.592, Domain.SKI, "UT"),
    Location("vail", "Vail", 39.640, -106.374, Domain.SKI, "CO"),
    Location("aspen", "Aspen", 39.191, -106.818, Domain.SKI, "CO"),
    Location("telluride", "Telluride", 37.938, -107.812, Domain.SKI, "CO"),
    Location("crested", "Crested Butte", 38.900, -106.966, Domain.SKI, "CO"),
    Location("mammoth", "Mammoth", 37.631, -119.033, Domain.SKI, "CA"),
    Location("squaw", "Palisades Tahoe", 39.197, -120.235, Domain.SKI, "CA"),
    Location("heavenly", "Heavenly", 38.935, -119.940, Domain.SKI, "CA"),
    # Ski resorts - South America
    Location("valle_nevado", "Valle Nevado", -33.350, -70.250, Domain.SKI, "Andes", "CL"),
    Location("portillo", "Portillo", -32.835, -70.137, Domain.SKI, "Andes", "CL"),
    Location("las_lenas", "Las Leñas", -35.148, -70.078, Domain.SKI, "Andes", "AR"),
    Location("cerro_catedral", "Cerro Catedral", -41.163, -71.408, Domain.SKI, "Andes", "AR"),
]
