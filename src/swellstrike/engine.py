"""Query interface over the condition cache and strike detector.

Read queries never trigger a fetch; they only read state populated by the
refresh scheduler.

Example:
    >>> from swellstrike.engine import build_engine
    >>> engine = build_engine()
    >>> engine.run_cycle()
    >>> engine.get_active_strikes(Domain.SURF)
    [StrikeEvent(location_id='46221', ...)]
"""

import logging
from typing import Iterable, Optional

from swellstrike.cache.conditions import ConditionCache
from swellstrike.cache.database import StrikeSink
from swellstrike.cache.models import LOCATIONS_DATA, Domain, Location, ScoredReading, StrikeEvent
from swellstrike.cache.refresh import RefreshResult, RefreshScheduler
from swellstrike.cache.strikes import StrikeDetector
from swellstrike.config import EngineSettings
from swellstrike.sources import (
    FallbackResolver,
    NDBCAdapter,
    NWSAdapter,
    OpenWeatherAdapter,
    SourceAdapter,
)

logger = logging.getLogger(__name__)


class LocationNotFound(LookupError):
    """No cached reading exists (yet) for the requested location."""


class ConditionEngine:
    """Read-side facade plus lifecycle control for the refresh scheduler."""

    def __init__(
        self,
        scheduler: RefreshScheduler,
        cache: ConditionCache,
        detector: StrikeDetector,
    ):
        self.scheduler = scheduler
        self.cache = cache
        self.detector = detector
        self.locations = {loc.location_id: loc for loc in scheduler.locations}

    def get_current_conditions(self, domain: Optional[Domain] = None) -> dict[str, ScoredReading]:
        """Latest scored reading per location for a domain."""
        return self.cache.get_all(domain)

    def get_location(self, location_id: str) -> ScoredReading:
        """Latest scored reading for one location.

        Raises:
            LocationNotFound: If the location has never been fetched successfully
        """
        scored = self.cache.get(location_id)
        if scored is None:
            raise LocationNotFound(location_id)
        return scored

    def get_active_strikes(self, domain: Optional[Domain] = None) -> list[StrikeEvent]:
        """Open strikes, highest score first."""
        return self.detector.active_events(domain)

    def health(self) -> dict:
        result = self.scheduler.last_result
        return {
            "status": "healthy",
            "state": self.scheduler.state.value,
            "last_cycle_completed_at": self.cache.last_cycle_completed_at,
            "locations": len(self.locations),
            "cached": len(self.cache),
            "active_strikes": len(self.detector.active_events()),
            "last_cycle_failed": result.failed if result else None,
        }

    def run_cycle(self) -> Optional[RefreshResult]:
        return self.scheduler.run_cycle()

    def start(self) -> None:
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()


def default_adapters(settings: EngineSettings) -> list[SourceAdapter]:
    """One adapter per provider family, configured from settings."""
    return [
        NDBCAdapter(timeout=settings.call_timeout, user_agent=settings.user_agent),
        NWSAdapter(timeout=settings.call_timeout, user_agent=settings.user_agent),
        OpenWeatherAdapter(
            api_key=settings.openweather_api_key,
            timeout=settings.call_timeout,
            user_agent=settings.user_agent,
        ),
    ]


def build_engine(
    settings: Optional[EngineSettings] = None,
    locations: Optional[Iterable[Location]] = None,
    sink: Optional[StrikeSink] = None,
    adapters: Optional[Iterable[SourceAdapter]] = None,
) -> ConditionEngine:
    """Wire adapters, resolver, cache, detector and scheduler together.

    Raises:
        ConfigurationError: If settings are invalid or no locations are given
    """
    settings = (settings or EngineSettings()).validate()

    resolver = FallbackResolver(adapters if adapters is not None else default_adapters(settings))
    cache = ConditionCache()
    detector = StrikeDetector(max_silence=settings.max_silence)
    scheduler = RefreshScheduler(
        locations=locations if locations is not None else LOCATIONS_DATA,
        resolver=resolver,
        cache=cache,
        detector=detector,
        sink=sink,
        max_workers=settings.max_workers,
        cycle_deadline=settings.cycle_deadline,
        interval=settings.refresh_interval,
    )
    logger.info(
        f"Engine ready: {len(scheduler.locations)} locations, "
        f"sources={sorted(resolver.adapters)}"
    )
    return ConditionEngine(scheduler, cache, detector)
