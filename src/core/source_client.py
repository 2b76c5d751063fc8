"""
HTTP client for the source systems, with lazy initialization.
"""

import httpx

from core.config import CALENDAR_API_BASE_URL, CALENDAR_API_TOKEN, HTTP_TIMEOUT_SECONDS

_source_client: httpx.AsyncClient | None = None


def get_source_client() -> httpx.AsyncClient:
    """Get or create the shared source-system client (lazy initialization)."""
    global _source_client
    if _source_client is None:
        headers = {"Content-Type": "application/json"}
        if CALENDAR_API_TOKEN:
            headers["Authorization"] = f"Bearer {CALENDAR_API_TOKEN}"
        _source_client = httpx.AsyncClient(
            base_url=CALENDAR_API_BASE_URL,
            headers=headers,
            timeout=HTTP_TIMEOUT_SECONDS,
        )
    return _source_client


async def close_source_client():
    """Close the shared client (application shutdown)."""
    global _source_client
    if _source_client is not None:
        await _source_client.aclose()
        _source_client = None
