"""HTTP API for swellstrike.

Note: create_app is lazy-loaded so schemas can be imported without
building an engine or importing FastAPI.
"""

from swellstrike.api.schemas import (
    ConditionResponse,
    ConditionsResponse,
    ErrorResponse,
    HealthResponse,
    StrikeResponse,
    StrikesResponse,
)


def __getattr__(name):
    """Lazy load FastAPI-dependent components."""
    if name == "create_app":
        from swellstrike.api.app import create_app

        return create_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "ConditionResponse",
    "ConditionsResponse",
    "ErrorResponse",
    "HealthResponse",
    "StrikeResponse",
    "StrikesResponse",
    "create_app",
]
