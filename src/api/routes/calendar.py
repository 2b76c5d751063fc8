"""Calendar read endpoints and view-state management."""

import time
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from api.dependencies import get_client, get_conn_factory, verify_api_key
from api.logging import RequestLog, log_request
from api.models.responses import (
    CalendarEventModel,
    ErrorCodes,
    EventsResponse,
    FiltersResponse,
    ViewStateModel,
    WindowResponse,
)
from core.errors import SourceFetchError
from core.filters import reconcile_filters
from core.windows import resolve_window
from models.events import ViewFilters, ViewMode, ViewState
from services.calendar import fetch_filter_options
from services.session import CalendarSession
from services.view_state import ViewStateStore

router = APIRouter(prefix="/v1/calendar", dependencies=[Depends(verify_api_key)])


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def safe_log(request_log: RequestLog, conn_factory) -> None:
    try:
        log_request(request_log, conn_factory)
    except Exception as e:
        # Don't fail the request if logging fails
        print(f"  Request log not written: {e}")


@router.get("/window", response_model=WindowResponse)
async def get_window(
    mode: ViewMode = ViewMode.MONTH,
    anchor: date | None = None,
    show_weekends: bool = True,
):
    """Date window displayed by a view mode around an anchor date."""
    anchor = anchor or date.today()
    return WindowResponse.from_window(resolve_window(mode, anchor, show_weekends), anchor)


@router.get("/events", response_model=EventsResponse)
async def get_events(
    request: Request,
    session: str = Query(..., min_length=1),
    client=Depends(get_client),
    conn_factory=Depends(get_conn_factory),
):
    """
    Unified, filtered events for the session's current window.

    Sources that fail are listed in `failed_sources`; the others still return.
    """
    start_time = time.time()
    request_log = RequestLog(
        endpoint="/v1/calendar/events",
        method="GET",
        client_ip=get_client_ip(request),
    )

    try:
        calendar = CalendarSession(ViewStateStore(session, conn_factory), client)
        view = await calendar.refresh()
        if view is None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "error": "View changed while loading",
                    "code": ErrorCodes.CONFLICT,
                    "details": [],
                },
            )

        request_log.status_code = 200
        request_log.events_returned = len(view.events)
        for source in view.failed_sources:
            request_log.details.append(("source_failure", source))
        for diagnostic in view.diagnostics:
            request_log.details.append(
                ("warning", f"{diagnostic.source.value} {diagnostic.record_id}: {diagnostic.message}")
            )

        return EventsResponse(
            window=WindowResponse.from_window(view.window, calendar.store.state.anchor_date),
            events=[CalendarEventModel.from_event(event) for event in view.events],
            failed_sources=view.failed_sources,
            skipped_records=len(view.diagnostics),
        )

    except HTTPException as e:
        request_log.status_code = e.status_code
        if isinstance(e.detail, dict):
            request_log.error_code = e.detail.get("code")
            request_log.error_message = e.detail.get("error")
        raise

    except Exception as e:
        request_log.status_code = 500
        request_log.error_code = ErrorCodes.INTERNAL_ERROR
        request_log.error_message = str(e)
        raise

    finally:
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)
        safe_log(request_log, conn_factory)


@router.get("/filters", response_model=FiltersResponse)
async def get_filters(client=Depends(get_client)):
    """Teams, users and memberships for the filter pickers."""
    try:
        options = await fetch_filter_options(client)
    except SourceFetchError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "error": "Filter options unavailable",
                "code": ErrorCodes.UPSTREAM_ERROR,
                "details": [e.message],
            },
        )
    return FiltersResponse.from_options(options)


# =============================================================================
# VIEW STATE
# =============================================================================


@router.get("/view-state/{session}", response_model=ViewStateModel)
async def get_view_state(session: str, conn_factory=Depends(get_conn_factory)):
    return ViewStateModel.from_state(ViewStateStore(session, conn_factory).state)


@router.put("/view-state/{session}", response_model=ViewStateModel)
async def put_view_state(
    session: str,
    body: ViewStateModel,
    client=Depends(get_client),
    conn_factory=Depends(get_conn_factory),
):
    """
    Replace the stored view state for a session.

    A user filter outside the selected team is cleared before saving.
    """
    filters = ViewFilters(body.team_id, body.user_id, body.project_id)
    if filters.team_id is not None and filters.user_id is not None:
        try:
            options = await fetch_filter_options(client)
        except SourceFetchError as e:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail={
                    "error": "Team memberships unavailable",
                    "code": ErrorCodes.UPSTREAM_ERROR,
                    "details": [e.message],
                },
            )
        filters = reconcile_filters(filters, options)

    store = ViewStateStore(session, conn_factory)
    state = store.replace(
        ViewState(
            mode=body.mode,
            anchor_date=body.anchor_date,
            filters=filters,
            hidden_types=set(body.hidden_types),
            show_weekends=body.show_weekends,
        )
    )
    return ViewStateModel.from_state(state)


@router.delete("/view-state/{session}", response_model=ViewStateModel)
async def delete_view_state(session: str, conn_factory=Depends(get_conn_factory)):
    """Forget a session's view state; returns the defaults now in effect."""
    return ViewStateModel.from_state(ViewStateStore(session, conn_factory).reset())
