"""DuckDB persistence sink for readings, strike events and refresh cycles.

The engine keeps current state in memory. This module stores the
append-only facts the engine produces: scored reading snapshots, closed
strike events and one log row per refresh cycle.
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import duckdb
import pandas as pd

from swellstrike.cache.models import Domain, ScoredReading, StrikeEvent
from swellstrike.config import DEFAULT_DB_PATH

if TYPE_CHECKING:
    from swellstrike.cache.refresh import RefreshResult

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE SEQUENCE IF NOT EXISTS seq_reading_id START 1;
CREATE SEQUENCE IF NOT EXISTS seq_strike_id START 1;
CREATE SEQUENCE IF NOT EXISTS seq_cycle_id START 1;

-- Scored reading snapshots (time series)
CREATE TABLE IF NOT EXISTS readings (
    id INTEGER DEFAULT nextval('seq_reading_id') PRIMARY KEY,
    observed_at TIMESTAMP NOT NULL,
    recorded_at TIMESTAMP NOT NULL,
    location_id VARCHAR NOT NULL,
    domain VARCHAR NOT NULL,
    source_id VARCHAR NOT NULL,
    score INTEGER NOT NULL,
    metrics VARCHAR NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_readings_location_time ON readings(location_id, observed_at);

-- Closed strike events
CREATE TABLE IF NOT EXISTS strike_events (
    id INTEGER DEFAULT nextval('seq_strike_id') PRIMARY KEY,
    location_id VARCHAR NOT NULL,
    domain VARCHAR NOT NULL,
    started_at TIMESTAMP NOT NULL,
    ended_at TIMESTAMP NOT NULL,
    peak_score INTEGER NOT NULL,
    peak_at TIMESTAMP NOT NULL,
    score INTEGER NOT NULL,
    last_seen_at TIMESTAMP NOT NULL,
    close_reason VARCHAR
);

CREATE INDEX IF NOT EXISTS idx_strike_events_domain_time ON strike_events(domain, started_at);

-- Refresh cycle log for monitoring
CREATE TABLE IF NOT EXISTS refresh_log (
    id INTEGER DEFAULT nextval('seq_cycle_id') PRIMARY KEY,
    completed_at TIMESTAMP NOT NULL,
    state VARCHAR NOT NULL,
    total INTEGER NOT NULL,
    success INTEGER NOT NULL,
    failed INTEGER NOT NULL,
    duration_ms INTEGER NOT NULL
);
"""


def _to_db_time(value: datetime) -> datetime:
    """Store timestamps as naive UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _from_db_time(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc)


class StrikeSink(ABC):
    """Receiver for the facts produced by refresh cycles."""

    @abstractmethod
    def record_snapshot(self, scored: ScoredReading) -> None:
        pass

    @abstractmethod
    def record_strike(self, event: StrikeEvent) -> None:
        pass

    @abstractmethod
    def log_cycle(self, result: "RefreshResult") -> None:
        pass


class StrikeDatabase(StrikeSink):
    """DuckDB-backed StrikeSink.

    Example:
        >>> db = StrikeDatabase(Path("data/swellstrike.duckdb"))
        >>> db.closed_strikes(Domain.SURF)
        [StrikeEvent(...)]
    """

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize database connection.

        Args:
            db_path: Path to DuckDB file. Creates if doesn't exist.
        """
        self.db_path = Path(db_path or DEFAULT_DB_PATH)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # DuckDB connections are not safe to share across threads
        self._lock = threading.Lock()
        self._conn: Optional[duckdb.DuckDBPyConnection] = None
        self._init_schema()

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            self._conn = duckdb.connect(str(self.db_path))
        return self._conn

    def _init_schema(self) -> None:
        with self._lock:
            for statement in SCHEMA_SQL.split(";"):
                statement = statement.strip()
                if statement:
                    self.conn.execute(statement)
        logger.info(f"Strike database initialized at {self.db_path}")

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    # -------------------------------------------------------------------------
    # Sink operations
    # -------------------------------------------------------------------------

    def record_snapshot(self, scored: ScoredReading) -> None:
        reading = scored.reading
        with self._lock:
            self.conn.execute(
                """
                INSERT INTO readings
                (observed_at, recorded_at, location_id, domain, source_id, score, metrics)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    _to_db_time(reading.observed_at),
                    _to_db_time(datetime.now(timezone.utc)),
                    reading.location_id,
                    scored.domain.value,
                    reading.source_id,
                    scored.score,
                    json.dumps(dict(reading.metrics), sort_keys=True),
                ],
            )

    def record_strike(self, event: StrikeEvent) -> None:
        """Persist a closed strike event.

        Raises:
            ValueError: If the event is still open
        """
        if event.is_open:
            raise ValueError(f"Strike for {event.location_id} is still open")

        with self._lock:
            self.conn.execute(
                """
                INSERT INTO strike_events
                (location_id, domain, started_at, ended_at, peak_score, peak_at,
                 score, last_seen_at, close_reason)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    event.location_id,
                    event.domain.value,
                    _to_db_time(event.started_at),
                    _to_db_time(event.ended_at),
                    event.peak_score,
                    _to_db_time(event.peak_at),
                    event.score,
                    _to_db_time(event.last_seen_at),
                    event.close_reason,
                ],
            )
        logger.debug(f"Recorded strike for {event.location_id} (peak={event.peak_score})")

    def log_cycle(self, result: "RefreshResult") -> None:
        with self._lock:
            self.conn.execute(
                """
                INSERT INTO refresh_log
                (completed_at, state, total, success, failed, duration_ms)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    _to_db_time(result.completed_at),
                    result.state.value,
                    result.total,
                    result.success,
                    result.failed,
                    result.duration_ms,
                ],
            )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def closed_strikes(self, domain: Optional[Domain] = None) -> list[StrikeEvent]:
        """Closed strike events, newest first."""
        query = """
            SELECT location_id, domain, started_at, ended_at, peak_score, peak_at,
                   score, last_seen_at, close_reason
            FROM strike_events
        """
        params: list = []
        if domain is not None:
            query += " WHERE domain = ?"
            params.append(domain.value)
        query += " ORDER BY started_at DESC"

        with self._lock:
            rows = self.conn.execute(query, params).fetchall()

        return [
            StrikeEvent(
                location_id=row[0],
                domain=Domain(row[1]),
                started_at=_from_db_time(row[2]),
                ended_at=_from_db_time(row[3]),
                peak_score=row[4],
                peak_at=_from_db_time(row[5]),
                score=row[6],
                last_seen_at=_from_db_time(row[7]),
                close_reason=row[8],
            )
            for row in rows
        ]

    def reading_history(self, location_id: str, limit: int = 500) -> pd.DataFrame:
        """Recent snapshots for a location, one column per metric.

        Returns:
            DataFrame indexed by observed_at with score, source_id and metrics
        """
        with self._lock:
            df = self.conn.execute(
                """
                SELECT observed_at, source_id, score, metrics
                FROM readings
                WHERE location_id = ?
                ORDER BY observed_at DESC
                LIMIT ?
                """,
                [location_id, limit],
            ).df()

        if df.empty:
            return df

        metrics = pd.DataFrame([json.loads(m) for m in df["metrics"]], index=df.index)
        df = pd.concat([df.drop(columns=["metrics"]), metrics], axis=1)
        return df.set_index("observed_at").sort_index()

    def get_stats(self) -> dict:
        """Row counts and the last logged cycle."""
        with self._lock:
            reading_count = self.conn.execute("SELECT COUNT(*) FROM readings").fetchone()[0]
            strike_count = self.conn.execute("SELECT COUNT(*) FROM strike_events").fetchone()[0]
            last_cycle = self.conn.execute(
                "SELECT MAX(completed_at) FROM refresh_log"
            ).fetchone()[0]

        return {
            "reading_count": reading_count,
            "strike_count": strike_count,
            "last_cycle_completed_at": _from_db_time(last_cycle),
            "db_path": str(self.db_path),
        }
