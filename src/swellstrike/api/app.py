"""FastAPI application exposing current conditions and strikes.

Endpoints:
- GET /api/health
- GET /api/strikes?domain=surf
- GET /api/conditions/{domain}
- GET /api/locations/{location_id}

Example:
    >>> from swellstrike.api import create_app
    >>> app = create_app()
    >>> # Run with: uvicorn --factory swellstrike.api.app:create_app
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from swellstrike.api.schemas import (
    ConditionResponse,
    ConditionsResponse,
    ErrorResponse,
    HealthResponse,
    StrikeResponse,
    StrikesResponse,
)
from swellstrike.cache.models import Domain
from swellstrike.engine import ConditionEngine, LocationNotFound, build_engine

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


def create_app(
    engine: Optional[ConditionEngine] = None,
    start_scheduler: bool = True,
) -> FastAPI:
    """Create FastAPI application.

    Args:
        engine: Engine to serve; built from environment settings if omitted
        start_scheduler: Whether to start periodic refresh on startup

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Swell Strike API",
        description="Current surf and ski conditions and active strikes",
        version=API_VERSION,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    engine = engine or build_engine()
    app.state.engine = engine

    @app.on_event("startup")
    async def startup_event():
        if start_scheduler:
            engine.start()
        else:
            logger.info("Serving cached conditions without a refresh scheduler")

    @app.on_event("shutdown")
    async def shutdown_event():
        engine.stop()

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=f"HTTP_{exc.status_code}",
                message=str(exc.detail),
            ).model_dump(),
        )

    @app.get("/api/health", response_model=HealthResponse, tags=["info"])
    async def health_check():
        health = engine.health()
        return HealthResponse(
            status=health["status"],
            state=health["state"],
            last_cycle_completed_at=health["last_cycle_completed_at"],
            locations=health["locations"],
            cached=health["cached"],
            active_strikes=health["active_strikes"],
        )

    @app.get("/api/strikes", response_model=StrikesResponse, tags=["strikes"])
    async def strikes(domain: Optional[Domain] = None):
        """Open strikes, highest score first."""
        events = engine.get_active_strikes(domain)
        return StrikesResponse(
            strikes=[
                StrikeResponse.from_event(e, engine.locations.get(e.location_id))
                for e in events
            ],
            updated=engine.cache.last_cycle_completed_at,
        )

    @app.get("/api/conditions/{domain}", response_model=ConditionsResponse, tags=["conditions"])
    async def conditions(domain: Domain):
        current = engine.get_current_conditions(domain)
        return ConditionsResponse(
            conditions={
                location_id: ConditionResponse.from_scored(
                    scored, engine.locations.get(location_id)
                )
                for location_id, scored in current.items()
            },
            count=len(current),
            updated=engine.cache.last_cycle_completed_at,
        )

    @app.get(
        "/api/locations/{location_id}",
        response_model=ConditionResponse,
        responses={404: {"model": ErrorResponse, "description": "No data for location"}},
        tags=["conditions"],
    )
    async def location(location_id: str):
        try:
            scored = engine.get_location(location_id)
        except LocationNotFound:
            raise HTTPException(status_code=404, detail=f"Location not found: {location_id}")
        return ConditionResponse.from_scored(scored, engine.locations.get(location_id))

    return app
