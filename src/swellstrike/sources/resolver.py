"""Fallback resolution across source adapters.

Each location has an ordered chain of providers. Providers are tried one at
a time, and the first usable Reading wins. Individual provider failures are
logged and discarded; only exhaustion of the whole chain is reported.
"""

import logging
from typing import Iterable, Optional, Sequence

from swellstrike.cache.models import Domain, Location, Reading
from swellstrike.config import DOMESTIC_COUNTRY
from swellstrike.sources.base import FetchOutcome, SourceAdapter

logger = logging.getLogger(__name__)


class NoSourceAvailable(Exception):
    """Every adapter in a location's fallback chain failed."""

    def __init__(self, location_id: str, outcomes: Sequence[FetchOutcome]):
        tried = ", ".join(f"{o.source_id} ({o.error})" for o in outcomes) or "none"
        super().__init__(f"{location_id}: no source available; tried {tried}")
        self.location_id = location_id
        self.outcomes = list(outcomes)


def default_preference_order(
    location: Location, domestic_country: str = DOMESTIC_COUNTRY
) -> list[str]:
    """Region-aware provider order for a location.

    Surf reads the NDBC buoy feed. Domestic ski resorts try weather.gov
    first and OpenWeather second; resorts elsewhere only have OpenWeather.
    """
    if location.domain == Domain.SURF:
        return ["ndbc"]
    if location.country == domestic_country:
        return ["nws", "openweather"]
    return ["openweather"]


class FallbackResolver:
    """Resolves a Reading for a location from an ordered adapter chain.

    Example:
        >>> resolver = FallbackResolver([NWSAdapter(), OpenWeatherAdapter(key)])
        >>> reading = resolver.resolve(alta)
        >>> reading.source_id
        'nws'
    """

    def __init__(
        self,
        adapters: Iterable[SourceAdapter],
        domestic_country: str = DOMESTIC_COUNTRY,
    ):
        self.adapters = {adapter.source_id: adapter for adapter in adapters}
        self.domestic_country = domestic_country

    def preference_order(self, location: Location) -> list[str]:
        return default_preference_order(location, self.domestic_country)

    def chain(
        self, location: Location, preference_order: Optional[Sequence[str]] = None
    ) -> list[SourceAdapter]:
        """Registered adapters for a location, in preference order."""
        order = preference_order if preference_order is not None else self.preference_order(location)
        return [self.adapters[source_id] for source_id in order if source_id in self.adapters]

    def resolve(
        self, location: Location, preference_order: Optional[Sequence[str]] = None
    ) -> Reading:
        """Try each adapter in order and return the first successful Reading.

        Args:
            location: Location to fetch
            preference_order: Source IDs to try, defaults to the region-aware order

        Returns:
            Reading from the first adapter that succeeded

        Raises:
            NoSourceAvailable: If every adapter failed (or none is registered)
        """
        failures: list[FetchOutcome] = []

        for adapter in self.chain(location, preference_order):
            outcome = adapter.try_fetch(location)
            if outcome.ok:
                if failures:
                    logger.info(
                        f"{location.location_id}: served by {adapter.source_id} "
                        f"after {len(failures)} failed source(s)"
                    )
                return outcome.reading

            logger.warning(f"{location.location_id}: {outcome.error}")
            failures.append(outcome)

        raise NoSourceAvailable(location.location_id, failures)
