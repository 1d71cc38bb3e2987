"""In-memory condition cache with per-location locking.

Holds the latest ScoredReading per location plus the completion time of the
last refresh cycle. Entries are frozen dataclasses replaced whole on every
put, so a reader sees either the previous or the new entry for a location,
never a mix. Entries are never evicted: a location whose sources fail keeps
serving its last good reading.
"""

import logging
import threading
from datetime import datetime
from typing import Optional

from swellstrike.cache.models import Domain, ScoredReading

logger = logging.getLogger(__name__)


class ConditionCache:
    """Latest scored reading per location.

    Each location has its own lock; the registry lock only guards creation
    of new per-location locks, so writes to different locations never
    contend with each other or with readers of other locations.

    Example:
        >>> cache = ConditionCache()
        >>> cache.put("46221", scored)
        >>> cache.get("46221").score
        85
    """

    def __init__(self):
        self._entries: dict[str, ScoredReading] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._cycle_lock = threading.Lock()
        self._last_cycle_completed_at: Optional[datetime] = None

    def _lock_for(self, location_id: str) -> threading.Lock:
        lock = self._locks.get(location_id)
        if lock is None:
            with self._registry_lock:
                lock = self._locks.setdefault(location_id, threading.Lock())
        return lock

    def get(self, location_id: str) -> Optional[ScoredReading]:
        """Current entry for a location, or None if never fetched."""
        lock = self._locks.get(location_id)
        if lock is None:
            return None
        with lock:
            return self._entries.get(location_id)

    def put(self, location_id: str, scored: ScoredReading) -> None:
        """Replace the entry for a location.

        Raises:
            ValueError: If the reading belongs to a different location
        """
        if scored.location_id != location_id:
            raise ValueError(
                f"Cannot store reading for {scored.location_id} under {location_id}"
            )
        with self._lock_for(location_id):
            self._entries[location_id] = scored

    def get_all(self, domain: Optional[Domain] = None) -> dict[str, ScoredReading]:
        """Snapshot of all entries, optionally filtered by domain."""
        with self._registry_lock:
            location_ids = list(self._locks)

        snapshot = {}
        for location_id in location_ids:
            entry = self.get(location_id)
            if entry is None:
                continue
            if domain is not None and entry.domain != domain:
                continue
            snapshot[location_id] = entry
        return snapshot

    def __len__(self) -> int:
        return len(self.get_all())

    def __contains__(self, location_id: str) -> bool:
        return self.get(location_id) is not None

    @property
    def last_cycle_completed_at(self) -> Optional[datetime]:
        with self._cycle_lock:
            return self._last_cycle_completed_at

    def mark_cycle_completed(self, at: datetime) -> None:
        with self._cycle_lock:
            self._last_cycle_completed_at = at
        logger.debug(f"Cycle completed at {at}")
