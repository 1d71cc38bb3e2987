"""Pydantic schemas for API responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from swellstrike.cache.models import Location, ScoredReading, StrikeEvent


class ConditionResponse(BaseModel):
    """Latest scored reading for a location.

    Attributes:
        location_id: Buoy station ID or resort slug
        name: Display name (None if the location is not in the engine's set)
        domain: 'surf' or 'ski'
        source_id: Adapter that produced the reading
        observed_at: Observation time (UTC)
        score: Quality score 0-100
        is_strike: Whether the score meets the strike threshold
        metrics: Metric values in SI units
    """

    location_id: str
    name: Optional[str] = None
    domain: str
    source_id: str
    observed_at: datetime
    score: int = Field(..., ge=0, le=100)
    is_strike: bool
    metrics: dict[str, float]

    @classmethod
    def from_scored(
        cls, scored: ScoredReading, location: Optional[Location] = None
    ) -> "ConditionResponse":
        reading = scored.reading
        return cls(
            location_id=reading.location_id,
            name=location.name if location else None,
            domain=scored.domain.value,
            source_id=reading.source_id,
            observed_at=reading.observed_at,
            score=scored.score,
            is_strike=scored.is_strike,
            metrics=dict(reading.metrics),
        )


class ConditionsResponse(BaseModel):
    conditions: dict[str, ConditionResponse]
    count: int
    updated: Optional[datetime] = None


class StrikeResponse(BaseModel):
    """An open strike."""

    location_id: str
    name: Optional[str] = None
    domain: str
    lat: Optional[float] = None
    lon: Optional[float] = None
    score: int
    peak_score: int
    started_at: datetime
    peak_at: datetime

    @classmethod
    def from_event(
        cls, event: StrikeEvent, location: Optional[Location] = None
    ) -> "StrikeResponse":
        return cls(
            location_id=event.location_id,
            name=location.name if location else None,
            domain=event.domain.value,
            lat=location.lat if location else None,
            lon=location.lon if location else None,
            score=event.score,
            peak_score=event.peak_score,
            started_at=event.started_at,
            peak_at=event.peak_at,
        )


class StrikesResponse(BaseModel):
    strikes: list[StrikeResponse]
    updated: Optional[datetime] = None


class HealthResponse(BaseModel):
    status: str = Field(..., description="Service health status")
    state: str = Field(..., description="State of the last refresh cycle")
    last_cycle_completed_at: Optional[datetime] = None
    locations: int
    cached: int
    active_strikes: int


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
