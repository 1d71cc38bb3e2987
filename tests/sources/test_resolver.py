"""Tests for fallback resolution across adapters."""

from unittest.mock import MagicMock, patch

import pytest

from swellstrike.cache.models import WAVE_HEIGHT, Domain, Location
from swellstrike.sources.base import MalformedPayload, RateLimited, Unavailable
from swellstrike.sources.nws import NWSAdapter
from swellstrike.sources.resolver import (
    FallbackResolver,
    NoSourceAvailable,
    default_preference_order,
)


class TestPreferenceOrder:
    """Region-aware default chains."""

    def test_surf_uses_buoys(self, surf_location):
        assert default_preference_order(surf_location) == ["ndbc"]

    def test_domestic_ski(self, ski_location):
        assert default_preference_order(ski_location) == ["nws", "openweather"]

    def test_international_ski(self, foreign_ski_location):
        assert default_preference_order(foreign_ski_location) == ["openweather"]

    def test_domestic_country_configurable(self):
        whistler = Location("whistler", "Whistler", 50.1, -122.9, Domain.SKI, "BC", "CA")
        assert default_preference_order(whistler, domestic_country="CA") == [
            "nws",
            "openweather",
        ]


class TestResolve:
    """Tests for FallbackResolver.resolve."""

    def test_first_source_wins(self, stub_adapter, ski_location):
        nws = stub_adapter("nws", default={"temperature": -4.0})
        openweather = stub_adapter("openweather", default={"temperature": -6.0})
        resolver = FallbackResolver([nws, openweather])

        reading = resolver.resolve(ski_location)

        assert reading.source_id == "nws"
        assert openweather.calls == []

    @pytest.mark.parametrize(
        "error",
        [
            Unavailable("nws", "HTTP 500"),
            MalformedPayload("nws", "grid has no snowfall or temperature"),
            RateLimited("nws", "rate limited"),
        ],
    )
    def test_falls_back_on_any_adapter_error(self, stub_adapter, ski_location, error):
        nws = stub_adapter("nws", default=error)
        openweather = stub_adapter("openweather", default={"temperature": -6.0})
        resolver = FallbackResolver([nws, openweather])

        reading = resolver.resolve(ski_location)

        assert reading.source_id == "openweather"
        assert nws.calls == ["alta"]
        assert openweather.calls == ["alta"]

    def test_all_sources_fail(self, stub_adapter, ski_location):
        resolver = FallbackResolver(
            [
                stub_adapter("nws", default=Unavailable("nws", "HTTP 503")),
                stub_adapter("openweather", default=RateLimited("openweather", "429")),
            ]
        )

        with pytest.raises(NoSourceAvailable) as exc_info:
            resolver.resolve(ski_location)

        err = exc_info.value
        assert err.location_id == "alta"
        assert [o.source_id for o in err.outcomes] == ["nws", "openweather"]
        assert "HTTP 503" in str(err)

    def test_no_registered_adapter(self, stub_adapter, surf_location):
        resolver = FallbackResolver([stub_adapter("openweather", default={"temperature": 1.0})])

        with pytest.raises(NoSourceAvailable, match="tried none"):
            resolver.resolve(surf_location)

    def test_explicit_order(self, stub_adapter, ski_location):
        nws = stub_adapter("nws", default={"temperature": -4.0})
        openweather = stub_adapter("openweather", default={"temperature": -6.0})
        resolver = FallbackResolver([nws, openweather])

        reading = resolver.resolve(ski_location, preference_order=["openweather", "nws"])

        assert reading.source_id == "openweather"
        assert nws.calls == []

    def test_chain_skips_unregistered(self, stub_adapter, ski_location):
        openweather = stub_adapter("openweather")
        resolver = FallbackResolver([openweather])

        assert resolver.chain(ski_location) == [openweather]

    def test_unexpected_exception_propagates(self, stub_adapter, surf_location):
        """Only adapter errors are recovered; bugs surface to the caller."""
        resolver = FallbackResolver([stub_adapter("ndbc", default=KeyError("boom"))])

        with pytest.raises(KeyError):
            resolver.resolve(surf_location)

    @patch("swellstrike.sources.base.requests.get")
    def test_malformed_grid_falls_through(self, mock_get, stub_adapter, clock, ski_location):
        """A grid layer of the wrong shape is an adapter failure, not a crash."""
        points = MagicMock(status_code=200)
        points.json.return_value = {
            "properties": {"forecastGridData": "https://api.weather.gov/gridpoints/SLC/1,1"}
        }
        grid = MagicMock(status_code=200)
        grid.json.return_value = {"properties": {"snowfallAmount": {"values": [1.0]}}}
        mock_get.side_effect = [points, grid]
        openweather = stub_adapter("openweather", default={"temperature": -6.0})
        nws = NWSAdapter(user_agent="swellstrike-tests", clock=clock)
        resolver = FallbackResolver([nws, openweather])

        reading = resolver.resolve(ski_location)

        assert reading.source_id == "openweather"
        assert openweather.calls == ["alta"]

    def test_reading_metrics_pass_through(self, stub_adapter, surf_location):
        resolver = FallbackResolver([stub_adapter("ndbc", default={WAVE_HEIGHT: 1.2})])
        assert resolver.resolve(surf_location).metrics[WAVE_HEIGHT] == 1.2
