"""Strike lifecycle tracking.

Per location the detector is either idle (no open strike) or holds one open
StrikeEvent. Transitions, evaluated once per successful score:

    idle   --score >= threshold-------------------> open     (OPENED)
    open   --score >= threshold, above peak-------> open     (PEAK)
    open   --score >= threshold, not above peak---> open     (HELD)
    open   --score <  threshold-------------------> idle     (CLOSED, resolved)
    idle   --score <  threshold-------------------> idle     (NONE)

A location without new data keeps its state, except that an open strike
whose last score is older than `max_silence` is closed with reason
'silence' and `ended_at` set to the last time it was seen.
"""

import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from swellstrike.cache.models import Domain, StrikeEvent
from swellstrike.config import MAX_SILENCE_MINUTES, STRIKE_THRESHOLD

logger = logging.getLogger(__name__)

CLOSE_RESOLVED = "resolved"
CLOSE_SILENCE = "silence"


class TransitionKind(str, Enum):
    NONE = "none"
    OPENED = "opened"
    PEAK = "peak"
    HELD = "held"
    CLOSED = "closed"


@dataclass(frozen=True)
class StrikeTransition:
    """Result of feeding one score to the detector."""

    kind: TransitionKind
    location_id: str
    event: Optional[StrikeEvent] = None

    @property
    def closed(self) -> bool:
        return self.kind == TransitionKind.CLOSED


class StrikeDetector:
    """Tracks open strikes and emits onset, peak and resolution transitions.

    At most one open event exists per location. Events are immutable; each
    update stores a new StrikeEvent under the location's lock.
    """

    def __init__(
        self,
        threshold: int = STRIKE_THRESHOLD,
        max_silence: timedelta = timedelta(minutes=MAX_SILENCE_MINUTES),
    ):
        self.threshold = threshold
        self.max_silence = max_silence
        self._open: dict[str, StrikeEvent] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, location_id: str) -> threading.Lock:
        lock = self._locks.get(location_id)
        if lock is None:
            with self._registry_lock:
                lock = self._locks.setdefault(location_id, threading.Lock())
        return lock

    def observe(
        self, location_id: str, domain: Domain, score: int, at: datetime
    ) -> StrikeTransition:
        """Apply one successful score for a location."""
        with self._lock_for(location_id):
            event = self._open.get(location_id)

            if event is None:
                if score < self.threshold:
                    return StrikeTransition(TransitionKind.NONE, location_id)
                event = StrikeEvent(
                    location_id=location_id,
                    domain=domain,
                    started_at=at,
                    peak_score=score,
                    peak_at=at,
                    score=score,
                    last_seen_at=at,
                )
                self._open[location_id] = event
                logger.info(f"{location_id}: strike started (score={score})")
                return StrikeTransition(TransitionKind.OPENED, location_id, event)

            if score < self.threshold:
                closed = replace(
                    event,
                    score=score,
                    last_seen_at=at,
                    ended_at=at,
                    close_reason=CLOSE_RESOLVED,
                )
                del self._open[location_id]
                logger.info(
                    f"{location_id}: strike ended (score={score}, peak={event.peak_score})"
                )
                return StrikeTransition(TransitionKind.CLOSED, location_id, closed)

            if score > event.peak_score:
                event = replace(event, peak_score=score, peak_at=at, score=score, last_seen_at=at)
                self._open[location_id] = event
                logger.info(f"{location_id}: strike peaked (score={score})")
                return StrikeTransition(TransitionKind.PEAK, location_id, event)

            event = replace(event, score=score, last_seen_at=at)
            self._open[location_id] = event
            return StrikeTransition(TransitionKind.HELD, location_id, event)

    def check_silence(self, location_id: str, now: datetime) -> Optional[StrikeEvent]:
        """Close an open strike that has gone without data for too long.

        Returns:
            The closed event, or None if nothing was closed
        """
        with self._lock_for(location_id):
            event = self._open.get(location_id)
            if event is None or now - event.last_seen_at < self.max_silence:
                return None

            closed = replace(event, ended_at=event.last_seen_at, close_reason=CLOSE_SILENCE)
            del self._open[location_id]

        logger.warning(
            f"{location_id}: strike closed after {now - event.last_seen_at} without data"
        )
        return closed

    def get_open(self, location_id: str) -> Optional[StrikeEvent]:
        with self._lock_for(location_id):
            return self._open.get(location_id)

    def active_events(self, domain: Optional[Domain] = None) -> list[StrikeEvent]:
        """Open events, highest current score first."""
        with self._registry_lock:
            location_ids = list(self._locks)

        events = []
        for location_id in location_ids:
            event = self.get_open(location_id)
            if event is not None and (domain is None or event.domain == domain):
                events.append(event)
        return sorted(events, key=lambda e: (-e.score, e.started_at, e.location_id))
