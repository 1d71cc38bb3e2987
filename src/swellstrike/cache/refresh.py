"""Refresh cycles for the condition cache.

One cycle fetches every location through its fallback chain, scores the
reading, replaces the cache entry and advances the strike detector. A
location that fails is logged and skipped; its cache entry and strike state
are left as they were.

Fetches run concurrently in a bounded thread pool. Results are applied on
the scheduler thread as they complete, so the cache has a single writer.
Fetches still running at the cycle deadline are abandoned.

Usage:
    python -m swellstrike.cache.refresh               # One cycle, all locations
    python -m swellstrike.cache.refresh --domain surf # Summary for surf only
    python -m swellstrike.cache.refresh --loop        # Keep refreshing
"""

import argparse
import logging
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Mapping, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from swellstrike.cache.conditions import ConditionCache
from swellstrike.cache.database import StrikeSink
from swellstrike.cache.models import Domain, Location, ScoredReading, StrikeEvent
from swellstrike.cache.strikes import StrikeDetector
from swellstrike.config import (
    CYCLE_DEADLINE_SECONDS,
    MAX_WORKERS,
    REFRESH_MINUTES,
    ConfigurationError,
)
from swellstrike.scoring import BandTable, score_reading
from swellstrike.sources.resolver import FallbackResolver, NoSourceAvailable

logger = logging.getLogger(__name__)

JOB_ID = "swellstrike-refresh"


class CycleState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    PARTIALLY_FAILED = "partially_failed"


@dataclass
class RefreshResult:
    """Result of one refresh cycle."""

    total: int
    success: int
    failed: int
    duration_ms: int
    state: CycleState
    completed_at: datetime
    failures: dict[str, str] = field(default_factory=dict)
    closed_strikes: list[StrikeEvent] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        """Percentage of locations refreshed."""
        if self.total == 0:
            return 0.0
        return (self.success / self.total) * 100

    def __str__(self) -> str:
        return (
            f"Refresh {self.state.value}: {self.success}/{self.total} successful, "
            f"{self.failed} failed, {len(self.closed_strikes)} strike(s) closed "
            f"({self.duration_ms}ms)"
        )


class RefreshScheduler:
    """Drives non-overlapping refresh cycles over a fixed location set.

    `run_cycle()` can be called directly (tests, CLI) or on an interval via
    `start()`. A call made while a cycle is running is skipped.

    Raises:
        ConfigurationError: On construction with no locations, no adapters
            or non-positive limits
    """

    def __init__(
        self,
        locations: Iterable[Location],
        resolver: FallbackResolver,
        cache: ConditionCache,
        detector: StrikeDetector,
        sink: Optional[StrikeSink] = None,
        tables: Optional[Mapping[Domain, BandTable]] = None,
        max_workers: int = MAX_WORKERS,
        cycle_deadline: float = CYCLE_DEADLINE_SECONDS,
        interval: timedelta = timedelta(minutes=REFRESH_MINUTES),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.locations = list(locations)
        if not self.locations:
            raise ConfigurationError("No locations configured for refresh")
        if not resolver.adapters:
            raise ConfigurationError("No source adapters registered with the resolver")
        if max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {max_workers}")
        if cycle_deadline <= 0:
            raise ConfigurationError(f"cycle_deadline must be positive, got {cycle_deadline}")
        if interval.total_seconds() <= 0:
            raise ConfigurationError(f"interval must be positive, got {interval}")

        self.resolver = resolver
        self.cache = cache
        self.detector = detector
        self.sink = sink
        self.tables = tables
        self.max_workers = max_workers
        self.cycle_deadline = cycle_deadline
        self.interval = interval
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self.state = CycleState.IDLE
        self.last_result: Optional[RefreshResult] = None
        self._run_lock = threading.Lock()
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def _fetch_and_score(self, location: Location) -> ScoredReading:
        reading = self.resolver.resolve(location)
        return score_reading(reading, location.domain, self.tables)

    def run_cycle(self) -> Optional[RefreshResult]:
        """Run one refresh cycle over all locations.

        Returns:
            RefreshResult, or None if another cycle was already running
        """
        if not self._run_lock.acquire(blocking=False):
            logger.warning("Refresh cycle already running; skipping this trigger")
            return None

        try:
            self.state = CycleState.RUNNING
            result = self._run_cycle()
            self.state = result.state
            self.last_result = result
            return result
        except Exception:
            self.state = CycleState.PARTIALLY_FAILED
            raise
        finally:
            self._run_lock.release()

    def _run_cycle(self) -> RefreshResult:
        start_time = time.time()
        total = len(self.locations)
        refreshed: set[str] = set()
        failures: dict[str, str] = {}
        closed: list[StrikeEvent] = []

        logger.info(f"Starting refresh cycle for {total} locations...")

        executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="swellstrike-fetch"
        )
        futures = {
            executor.submit(self._fetch_and_score, location): location
            for location in self.locations
        }
        try:
            for i, future in enumerate(
                as_completed(futures, timeout=self.cycle_deadline), 1
            ):
                location = futures[future]
                try:
                    scored = future.result()
                except NoSourceAvailable as e:
                    logger.warning(f"[{i}/{total}] {e}")
                    failures[location.location_id] = str(e)
                    continue
                except Exception as e:
                    logger.error(f"[{i}/{total}] {location.name}: failed - {e}")
                    failures[location.location_id] = f"unexpected error: {e}"
                    continue

                event = self._apply(scored)
                if event is not None:
                    closed.append(event)
                refreshed.add(location.location_id)
                logger.info(
                    f"[{i}/{total}] {location.name}: score={scored.score} "
                    f"via {scored.reading.source_id}"
                )
        except FuturesTimeoutError:
            abandoned = 0
            for future, location in futures.items():
                if not future.done():
                    future.cancel()
                    failures[location.location_id] = "abandoned at cycle deadline"
                    abandoned += 1
            logger.error(
                f"Cycle deadline of {self.cycle_deadline}s exceeded; "
                f"abandoned {abandoned} location(s)"
            )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        # Locations without new data keep their state unless silent too long
        now = self._clock()
        for location in self.locations:
            if location.location_id in refreshed:
                continue
            failures.setdefault(location.location_id, "no result")
            event = self.detector.check_silence(location.location_id, now)
            if event is not None:
                self._emit("record_strike", event)
                closed.append(event)

        completed_at = self._clock()
        self.cache.mark_cycle_completed(completed_at)

        result = RefreshResult(
            total=total,
            success=len(refreshed),
            failed=len(failures),
            duration_ms=int((time.time() - start_time) * 1000),
            state=CycleState.COMPLETED if not failures else CycleState.PARTIALLY_FAILED,
            completed_at=completed_at,
            failures=failures,
            closed_strikes=closed,
        )
        self._emit("log_cycle", result)
        logger.info(str(result))
        return result

    def _apply(self, scored: ScoredReading) -> Optional[StrikeEvent]:
        """Store a scored reading and advance its strike state.

        Returns:
            The strike event closed by this score, if any
        """
        now = self._clock()
        self.cache.put(scored.location_id, scored)
        self._emit("record_snapshot", scored)

        transition = self.detector.observe(scored.location_id, scored.domain, scored.score, now)
        if transition.closed:
            self._emit("record_strike", transition.event)
            return transition.event
        return None

    def _emit(self, method: str, payload) -> None:
        """Hand a fact to the sink; storage failures never abort a cycle."""
        if self.sink is None:
            return
        try:
            getattr(self.sink, method)(payload)
        except Exception as e:
            logger.error(f"Failed to persist {type(payload).__name__}: {e}")

    # -------------------------------------------------------------------------
    # Periodic driver
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Run cycles on the configured interval in a background thread."""
        if self._scheduler is not None:
            return

        self._scheduler = BackgroundScheduler(daemon=True, timezone="UTC")
        self._scheduler.add_job(
            self.run_cycle,
            "interval",
            seconds=self.interval.total_seconds(),
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=int(self.interval.total_seconds()),
            next_run_time=datetime.now(timezone.utc),
        )
        self._scheduler.start()
        logger.info(f"Refresh scheduler started (every {self.interval})")

    def stop(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Refresh scheduler stopped")


def print_summary(engine, result: RefreshResult, domain: Optional[Domain] = None) -> None:
    """Print a refresh result and the active strikes in human-readable format."""
    strikes = engine.get_active_strikes(domain)

    print()
    print("=" * 60)
    print("Swell Strike Summary")
    print("=" * 60)
    print(str(result))
    print(f"Completed at: {result.completed_at:%Y-%m-%d %H:%M:%S} UTC")

    if result.failures:
        print()
        print("Failed locations:")
        for location_id, reason in sorted(result.failures.items()):
            print(f"  {location_id:<16} {reason}")

    print()
    print(f"Active strikes: {len(strikes)}")
    print("-" * 60)
    if not strikes:
        print("  No active strikes. Keep checking!")
    for i, event in enumerate(strikes, 1):
        location = engine.locations.get(event.location_id)
        name = location.name if location else event.location_id
        print(
            f"  {i}. {name:<25} {event.domain.value:<5} "
            f"score {event.score}/100 (peak {event.peak_score})"
        )
    print("=" * 60)


def main():
    """CLI entry point: run one refresh cycle and print a strike summary."""
    parser = argparse.ArgumentParser(
        description="Refresh surf and ski conditions and report active strikes",
        epilog="""
Examples:
  python -m swellstrike.cache.refresh               # One cycle
  python -m swellstrike.cache.refresh --domain ski  # Ski summary only
  python -m swellstrike.cache.refresh --loop        # Refresh until interrupted
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--domain",
        choices=[d.value for d in Domain],
        default=None,
        help="Only refresh and report this domain",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="DuckDB path for persisted readings and strikes",
    )
    parser.add_argument(
        "--no-db",
        action="store_true",
        help="Do not persist anything",
    )
    parser.add_argument(
        "--loop",
        action="store_true",
        help="Keep running cycles on the configured interval",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress output except errors",
    )

    args = parser.parse_args()

    if args.quiet:
        level = logging.ERROR
    elif args.verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    from swellstrike.cache.database import StrikeDatabase
    from swellstrike.cache.models import LOCATIONS_DATA
    from swellstrike.config import EngineSettings
    from swellstrike.engine import build_engine

    domain = Domain(args.domain) if args.domain else None
    locations = [loc for loc in LOCATIONS_DATA if domain is None or loc.domain == domain]

    try:
        settings = EngineSettings.from_env()
        if args.db:
            settings.db_path = args.db
        sink = None if args.no_db else StrikeDatabase(settings.db_path)
        engine = build_engine(settings, locations=locations, sink=sink)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    try:
        if args.loop:
            engine.start()
            try:
                while True:
                    time.sleep(1)
            except KeyboardInterrupt:
                logger.info("Interrupted, shutting down")
            finally:
                engine.stop()
            return 0

        result = engine.run_cycle()
        print_summary(engine, result, domain)
        return 0 if result.failed == 0 else 1

    except Exception as e:
        logger.error(f"Refresh failed: {e}")
        return 1

    finally:
        if sink is not None:
            sink.close()


if __name__ == "__main__":
    sys.exit(main())
