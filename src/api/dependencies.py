"""FastAPI dependencies for authentication and shared resources."""

import secrets
import sqlite3
from typing import Callable

import httpx
from fastapi import Header, HTTPException, status

from core.config import CALENDAR_API_KEY
from core.database import get_connection
from core.source_client import get_source_client


async def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> str:
    """
    Verify API key from X-API-Key header.

    Raises:
        HTTPException: 401 if key is missing or invalid
    """
    if not CALENDAR_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "API key not configured on server",
                "code": "INTERNAL_ERROR",
                "details": [],
            },
        )

    if not secrets.compare_digest(x_api_key, CALENDAR_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Invalid or missing API key",
                "code": "UNAUTHORIZED",
                "details": [],
            },
        )

    return x_api_key


def get_client() -> httpx.AsyncClient:
    """Shared client for the source systems."""
    return get_source_client()


def get_conn_factory() -> Callable[[], sqlite3.Connection]:
    """Connection factory for view state and request logs."""
    return get_connection
