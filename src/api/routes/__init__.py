"""API route modules."""

from .calendar import router as calendar_router
from .health import router as health_router
from .mutations import router as mutations_router

__all__ = ["health_router", "calendar_router", "mutations_router"]
