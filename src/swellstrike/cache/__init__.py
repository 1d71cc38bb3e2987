"""Condition cache, strike tracking and refresh scheduling for swellstrike.

A refresh cycle can be run once via:
    python -m swellstrike.cache.refresh

or kept running on a fixed interval:
    python -m swellstrike.cache.refresh --loop
"""

from swellstrike.cache.conditions import ConditionCache
from swellstrike.cache.database import StrikeDatabase, StrikeSink
from swellstrike.cache.models import (
    LOCATIONS_DATA,
    Domain,
    Location,
    Reading,
    ScoredReading,
    StrikeEvent,
)
from swellstrike.cache.strikes import StrikeDetector, StrikeTransition, TransitionKind


# The scheduler pulls in the source adapters, which themselves import
# cache.models, so it is loaded on first access.
def __getattr__(name):
    if name in ("CycleState", "RefreshResult", "RefreshScheduler"):
        from swellstrike.cache import refresh

        return getattr(refresh, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "ConditionCache",
    "CycleState",
    "Domain",
    "LOCATIONS_DATA",
    "Location",
    "Reading",
    "RefreshResult",
    "RefreshScheduler",
    "ScoredReading",
    "StrikeDatabase",
    "StrikeDetector",
    "StrikeEvent",
    "StrikeSink",
    "StrikeTransition",
    "TransitionKind",
]
