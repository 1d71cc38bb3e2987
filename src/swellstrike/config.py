"""Centralised configuration for swellstrike.

Environment variables are loaded once (including a `.env` file if present)
and exposed as module-level defaults. `EngineSettings` bundles them for the
engine and validates them so a misconfigured process fails at startup
instead of running a scheduler that never does anything.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------
OPENWEATHER_API_KEY: Optional[str] = os.getenv("OPENWEATHER_API_KEY") or None

# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------
_PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_DB_PATH = Path(
    os.getenv("SWELLSTRIKE_DB_PATH", str(_PROJECT_ROOT / "data" / "swellstrike.duckdb"))
)

# ---------------------------------------------------------------------------
# Refresh cycle
# ---------------------------------------------------------------------------
REFRESH_MINUTES: float = float(os.getenv("SWELLSTRIKE_REFRESH_MINUTES", "5"))
MAX_WORKERS: int = int(os.getenv("SWELLSTRIKE_MAX_WORKERS", "4"))
CALL_TIMEOUT_SECONDS: float = float(os.getenv("SWELLSTRIKE_CALL_TIMEOUT", "15"))
CYCLE_DEADLINE_SECONDS: float = float(os.getenv("SWELLSTRIKE_CYCLE_DEADLINE", "120"))
MAX_SILENCE_MINUTES: float = float(os.getenv("SWELLSTRIKE_MAX_SILENCE_MINUTES", "60"))

# weather.gov rejects requests without a User-Agent
USER_AGENT: str = os.getenv(
    "SWELLSTRIKE_USER_AGENT", "swellstrike/0.1 (condition aggregation)"
)

# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------
STRIKE_THRESHOLD: int = 70
DOMESTIC_COUNTRY: str = "US"


class ConfigurationError(ValueError):
    """Raised when the engine cannot be started with the given settings."""


@dataclass
class EngineSettings:
    """Runtime settings for the refresh engine.

    Attributes:
        refresh_interval: Time between refresh cycle starts
        max_workers: Maximum concurrent location fetches
        call_timeout: Per-request HTTP timeout in seconds
        cycle_deadline: Overall budget for one cycle in seconds
        max_silence: How long an open strike survives without new data
        openweather_api_key: Optional OpenWeather key (adapter disabled if None)
        db_path: DuckDB file for the persistence sink
        user_agent: User-Agent sent to upstream providers
    """

    refresh_interval: timedelta = timedelta(minutes=REFRESH_MINUTES)
    max_workers: int = MAX_WORKERS
    call_timeout: float = CALL_TIMEOUT_SECONDS
    cycle_deadline: float = CYCLE_DEADLINE_SECONDS
    max_silence: timedelta = timedelta(minutes=MAX_SILENCE_MINUTES)
    openweather_api_key: Optional[str] = OPENWEATHER_API_KEY
    db_path: Path = DEFAULT_DB_PATH
    user_agent: str = USER_AGENT

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """Build settings from the current environment."""
        return cls(
            refresh_interval=timedelta(
                minutes=float(os.getenv("SWELLSTRIKE_REFRESH_MINUTES", REFRESH_MINUTES))
            ),
            max_workers=int(os.getenv("SWELLSTRIKE_MAX_WORKERS", MAX_WORKERS)),
            call_timeout=float(os.getenv("SWELLSTRIKE_CALL_TIMEOUT", CALL_TIMEOUT_SECONDS)),
            cycle_deadline=float(
                os.getenv("SWELLSTRIKE_CYCLE_DEADLINE", CYCLE_DEADLINE_SECONDS)
            ),
            max_silence=timedelta(
                minutes=float(
                    os.getenv("SWELLSTRIKE_MAX_SILENCE_MINUTES", MAX_SILENCE_MINUTES)
                )
            ),
            openweather_api_key=os.getenv("OPENWEATHER_API_KEY") or None,
            db_path=Path(os.getenv("SWELLSTRIKE_DB_PATH", str(DEFAULT_DB_PATH))),
            user_agent=os.getenv("SWELLSTRIKE_USER_AGENT", USER_AGENT),
        )

    def validate(self) -> "EngineSettings":
        """Check settings, raising ConfigurationError on the first problem."""
        if self.refresh_interval.total_seconds() <= 0:
            raise ConfigurationError(
                f"refresh_interval must be positive, got {self.refresh_interval}"
            )
        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.call_timeout <= 0:
            raise ConfigurationError(f"call_timeout must be positive, got {self.call_timeout}")
        if self.cycle_deadline < self.call_timeout:
            raise ConfigurationError(
                f"cycle_deadline ({self.cycle_deadline}s) is shorter than "
                f"call_timeout ({self.call_timeout}s)"
            )
        if self.max_silence.total_seconds() <= 0:
            raise ConfigurationError(f"max_silence must be positive, got {self.max_silence}")
        return self


__all__ = [
    "CALL_TIMEOUT_SECONDS",
    "CYCLE_DEADLINE_SECONDS",
    "ConfigurationError",
    "DEFAULT_DB_PATH",
    "DOMESTIC_COUNTRY",
    "EngineSettings",
    "MAX_SILENCE_MINUTES",
    "MAX_WORKERS",
    "OPENWEATHER_API_KEY",
    "REFRESH_MINUTES",
    "STRIKE_THRESHOLD",
    "USER_AGENT",
]
