"""Shared pytest fixtures for swellstrike tests.

Test Tiers:
- unit: Fast tests with fixtures, no network (default)
- live: Real provider calls, slow, requires network and may need credentials

Run live tests with: pytest -m live --run-live
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from swellstrike.cache.models import (
    AVERAGE_PERIOD,
    DOMINANT_PERIOD,
    WAVE_HEIGHT,
    WIND_SPEED,
    Domain,
    Location,
    Reading,
    ScoredReading,
)
from swellstrike.sources.base import SourceAdapter, Unavailable


def pytest_addoption(parser):
    """Add command line options for test configuration."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run live provider tests (slow, requires network)",
    )


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: fast unit tests using fixtures")
    config.addinivalue_line("markers", "live: real provider tests (slow, requires network)")


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is specified."""
    if config.getoption("--run-live"):
        return

    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def t0() -> datetime:
    return datetime(2024, 1, 15, 18, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(t0) -> FakeClock:
    return FakeClock(t0)


@pytest.fixture
def surf_location() -> Location:
    return Location("46221", "Santa Barbara", 34.274, -119.863, Domain.SURF, "Southern CA")


@pytest.fixture
def ski_location() -> Location:
    return Location("alta", "Alta", 40.588, -111.638, Domain.SKI, "UT")


@pytest.fixture
def foreign_ski_location() -> Location:
    return Location("portillo", "Portillo", -32.835, -70.137, Domain.SKI, "Andes", "CL")


@pytest.fixture
def make_reading(t0):
    """Factory for readings with sensible defaults."""

    def _make(location_id="46221", source_id="ndbc", observed_at=None, **metrics):
        return Reading(
            location_id=location_id,
            observed_at=observed_at or t0,
            source_id=source_id,
            metrics=metrics or {WAVE_HEIGHT: 1.0},
        )

    return _make


@pytest.fixture
def epic_surf_metrics() -> dict:
    """Buoy conditions that hit every top surf band (score 100)."""
    return {
        WAVE_HEIGHT: 2.0,
        DOMINANT_PERIOD: 14.0,
        AVERAGE_PERIOD: 10.0,
        WIND_SPEED: 2.0,
    }


@pytest.fixture
def flat_surf_metrics() -> dict:
    """Small short-period windy conditions (score clamps to 0)."""
    return {
        WAVE_HEIGHT: 0.5,
        DOMINANT_PERIOD: 6.0,
        WIND_SPEED: 10.0,
    }


@pytest.fixture
def make_scored(make_reading):
    def _make(location_id="46221", score=50, domain=Domain.SURF, **metrics):
        return ScoredReading(
            reading=make_reading(location_id=location_id, **metrics),
            score=score,
            domain=domain,
        )

    return _make


NDBC_SAMPLE = """\
#YY  MM DD hh mm WDIR WSPD GST  WVHT   DPD   APD MWD   PRES  ATMP  WTMP  DEWP  VIS PTDY  TIDE
#yr  mo dy hr mn degT m/s  m/s     m   sec   sec degT   hPa  degC  degC  degC  nmi  hPa    ft
2024 01 15 18 40 290  5.0  7.0   1.8    14   9.1 285 1015.2  14.1  15.3   MM   MM   MM    MM
2024 01 15 18 10 280  4.0  6.0   1.7    13   8.9 280 1015.0  14.0  15.3   MM   MM   MM    MM
"""


@pytest.fixture
def ndbc_text() -> str:
    """Realtime2 payload excerpt for one buoy."""
    return NDBC_SAMPLE


class StubAdapter(SourceAdapter):
    """Adapter returning canned readings or raising canned errors per location.

    `responses` maps location_id to either a metrics dict, a SourceError
    instance, or a callable taking the location.
    """

    def __init__(self, source_id, responses=None, default=None, clock=None):
        super().__init__()
        self.source_id = source_id
        self.responses = dict(responses or {})
        self.default = default
        self.clock = clock
        self.calls = []
        self._lock = threading.Lock()

    def fetch(self, location):
        with self._lock:
            self.calls.append(location.location_id)
        response = self.responses.get(location.location_id, self.default)
        if callable(response):
            response = response(location)
        if response is None:
            raise Unavailable(self.source_id, f"no stub for {location.location_id}")
        if isinstance(response, Exception):
            raise response
        observed_at = self.clock() if self.clock else datetime(2024, 1, 15, 18, 0, tzinfo=timezone.utc)
        return Reading(location.location_id, observed_at, self.source_id, response)


@pytest.fixture
def stub_adapter():
    return StubAdapter
