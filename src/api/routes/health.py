"""Health check endpoint."""

import sqlite3
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_conn_factory
from api.models.responses import HealthResponse
from core.config import API_VERSION

router = APIRouter()


def database_available(conn_factory) -> bool:
    try:
        conn = conn_factory()
    except (sqlite3.Error, OSError):
        return False
    try:
        conn.execute("SELECT 1")
        return True
    except sqlite3.Error:
        return False
    finally:
        conn.close()


@router.get("/health", response_model=HealthResponse)
async def health_check(conn_factory=Depends(get_conn_factory)):
    """
    Health check endpoint for monitoring.

    Returns 200 if healthy, 503 if the view-state database is unreachable.
    """
    available = database_available(conn_factory)
    timestamp = datetime.now(timezone.utc).isoformat()

    if available:
        return HealthResponse(
            status="healthy",
            version=API_VERSION,
            database_available=True,
            timestamp=timestamp,
        )
    return JSONResponse(
        status_code=503,
        content=HealthResponse(
            status="unhealthy",
            version=API_VERSION,
            database_available=False,
            timestamp=timestamp,
            error="View state database unavailable",
        ).model_dump(),
    )
