"""API Pydantic models."""

from .responses import (
    CalendarEventModel,
    ErrorCodes,
    ErrorResponse,
    EventsResponse,
    HealthResponse,
    MutationResponse,
    ViewStateModel,
    WindowResponse,
)

__all__ = [
    "HealthResponse",
    "ErrorResponse",
    "ErrorCodes",
    "CalendarEventModel",
    "WindowResponse",
    "EventsResponse",
    "ViewStateModel",
    "MutationResponse",
]
