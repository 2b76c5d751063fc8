"""Move/resize endpoints: reschedule an event in its origin system."""

import time

from fastapi import APIRouter, Depends, HTTPException, Request, status

from api.dependencies import get_client, get_conn_factory, verify_api_key
from api.logging import RequestLog
from api.models.responses import (
    CalendarEventModel,
    ErrorCodes,
    MoveRequest,
    MutationResponse,
    ResizeRequest,
)
from api.routes.calendar import get_client_ip, safe_log
from core.errors import GestureRejected, MutationFailed
from models.events import CalendarEvent, DropTarget
from services.mutations import WriteRequest
from services.session import CalendarSession
from services.view_state import ViewStateStore

router = APIRouter(prefix="/v1/calendar/events", dependencies=[Depends(verify_api_key)])


async def _load_event(calendar: CalendarSession, event_id: str) -> CalendarEvent:
    """Fetch the session's window and find the event being changed."""
    await calendar.refresh()
    event = calendar.find_event(event_id)
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "Event not found in the current calendar window",
                "code": ErrorCodes.NOT_FOUND,
                "details": [event_id],
            },
        )
    return event


def _rejected(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={
            "error": "Change rejected",
            "code": ErrorCodes.VALIDATION_ERROR,
            "details": [message],
        },
    )


async def _dispatch(calendar: CalendarSession, target: DropTarget, request_log: RequestLog) -> WriteRequest:
    """Finish the started gesture over `target` and send the resulting write."""
    try:
        intent = calendar.controller.pointer_up(target)
        if intent is None:
            raise GestureRejected("Invalid drop target")
        write = await calendar.dispatcher.dispatch(intent)
    except GestureRejected as e:
        request_log.details.append(("validation_error", str(e)))
        raise _rejected(str(e))
    except MutationFailed as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "error": "Origin system rejected the update",
                "code": ErrorCodes.UPSTREAM_ERROR,
                "details": [str(e)],
            },
        )

    request_log.details.append(("write_request", f"{write.method} {write.path} {dict(write.body)}"))
    return write


def _response(calendar: CalendarSession, event: CalendarEvent, write: WriteRequest) -> MutationResponse:
    refreshed = calendar.find_event(event.id)
    return MutationResponse(
        event_id=event.id,
        source=write.source.value,
        method=write.method,
        path=write.path,
        body=dict(write.body),
        event=CalendarEventModel.from_event(refreshed) if refreshed else None,
    )


def _record_error(request_log: RequestLog, e: Exception) -> None:
    if not isinstance(e, HTTPException):
        # Unexpected errors
        request_log.status_code = 500
        request_log.error_code = ErrorCodes.INTERNAL_ERROR
        request_log.error_message = str(e)
        return
    request_log.status_code = e.status_code
    if isinstance(e.detail, dict):
        request_log.error_code = e.detail.get("code")
        request_log.error_message = e.detail.get("error")


@router.post("/move", response_model=MutationResponse)
async def move_event(
    request: Request,
    body: MoveRequest,
    client=Depends(get_client),
    conn_factory=Depends(get_conn_factory),
):
    """
    Move an event to another day, optionally to a given hour.

    Without `new_hour` the event keeps its time of day (month view drop).
    """
    start_time = time.time()
    request_log = RequestLog(
        endpoint="/v1/calendar/events/move",
        method="POST",
        client_ip=get_client_ip(request),
        event_id=body.event_id,
    )

    try:
        calendar = CalendarSession(ViewStateStore(body.session, conn_factory), client)
        event = await _load_event(calendar, body.event_id)
        request_log.event_type = event.type.value

        if not calendar.begin_drag(event):
            raise _rejected("Cannot move this event type")

        write = await _dispatch(calendar, DropTarget(body.new_date, body.new_hour), request_log)
        request_log.status_code = 200
        return _response(calendar, event, write)

    except Exception as e:
        _record_error(request_log, e)
        raise

    finally:
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)
        safe_log(request_log, conn_factory)


@router.post("/resize", response_model=MutationResponse)
async def resize_event(
    request: Request,
    body: ResizeRequest,
    client=Depends(get_client),
    conn_factory=Depends(get_conn_factory),
):
    """Move one edge of a booking, external task or time block to an hour slot."""
    start_time = time.time()
    request_log = RequestLog(
        endpoint="/v1/calendar/events/resize",
        method="POST",
        client_ip=get_client_ip(request),
        event_id=body.event_id,
    )

    try:
        calendar = CalendarSession(ViewStateStore(body.session, conn_factory), client)
        event = await _load_event(calendar, body.event_id)
        request_log.event_type = event.type.value

        if not calendar.begin_resize(event, body.edge):
            raise _rejected("Cannot resize this event type")

        write = await _dispatch(calendar, DropTarget(body.new_date, body.new_hour), request_log)
        request_log.status_code = 200
        return _response(calendar, event, write)

    except Exception as e:
        _record_error(request_log, e)
        raise

    finally:
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)
        safe_log(request_log, conn_factory)
