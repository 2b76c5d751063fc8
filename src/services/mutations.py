"""
Translation of move/resize intents into origin-system writes.

Every mutable event type has one encoder in ENCODERS. Each encoder knows
how its origin system represents time: the external task system takes a
start plus an "Xh Ym" duration string, blocks and bookings take explicit
start/end timestamps, work items only have a due date.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable

import httpx

from core.config import EXTERNAL_TASK_TIME_FORMAT, LOCAL_TIME_FORMAT, WRITE_PATHS
from core.durations import format_duration
from core.errors import MutationFailed, UnsupportedMutation
from models.events import (
    SOURCE_PREFIXES,
    CalendarEvent,
    EventType,
    Intent,
    MoveIntent,
    ResizeIntent,
    WriteBody,
)


@dataclass(frozen=True)
class WriteRequest:
    """One partial update against an origin system."""

    source: EventType
    path: str
    body: WriteBody
    method: str = "PATCH"


def _local_id(event: CalendarEvent, metadata_key: str) -> str:
    """Origin-system id of an event, preferring the explicit metadata field."""
    value = event.metadata.get(metadata_key)
    if value not in (None, ""):
        return str(value)
    prefix = SOURCE_PREFIXES[event.type] + "-"
    if not event.id.startswith(prefix):
        raise UnsupportedMutation(f"Cannot resolve the source id of {event.id}")
    return event.id[len(prefix):]


def _path(event: CalendarEvent, metadata_key: str) -> str:
    return WRITE_PATHS[event.type.value].format(id=_local_id(event, metadata_key))


# =============================================================================
# ENCODERS
# =============================================================================


def encode_task_move(intent: MoveIntent) -> WriteRequest:
    # Duration is unchanged by a move; it is re-sent in the task system's encoding
    event = intent.event
    return WriteRequest(
        source=event.type,
        path=_path(event, "taskId"),
        body={
            "start": intent.new_start.strftime(EXTERNAL_TASK_TIME_FORMAT),
            "duration": format_duration(event.duration),
        },
    )


def encode_task_resize(intent: ResizeIntent) -> WriteRequest:
    event = intent.event
    return WriteRequest(
        source=event.type,
        path=_path(event, "taskId"),
        body={
            "start": intent.new_start.strftime(EXTERNAL_TASK_TIME_FORMAT),
            "duration": format_duration(intent.new_end - intent.new_start),
        },
    )


def _encode_span(intent: Intent, metadata_key: str) -> WriteRequest:
    event = intent.event
    return WriteRequest(
        source=event.type,
        path=_path(event, metadata_key),
        body={
            "start": intent.new_start.strftime(LOCAL_TIME_FORMAT),
            "end": intent.new_end.strftime(LOCAL_TIME_FORMAT),
        },
    )


def encode_block(intent: Intent) -> WriteRequest:
    return _encode_span(intent, "blockId")


def encode_booking(intent: Intent) -> WriteRequest:
    return _encode_span(intent, "bookingId")


def encode_work_item_move(intent: MoveIntent) -> WriteRequest:
    # Work items are date-only; the drop hour is ignored
    event = intent.event
    return WriteRequest(
        source=event.type,
        path=_path(event, "workItemId"),
        body={"dueDate": intent.new_anchor.isoformat()},
    )


@dataclass(frozen=True)
class MutationEncoder:
    encode_move: Callable[[MoveIntent], WriteRequest]
    encode_resize: Callable[[ResizeIntent], WriteRequest] | None = None


ENCODERS: dict[EventType, MutationEncoder] = {
    EventType.EXTERNAL_TASK: MutationEncoder(encode_task_move, encode_task_resize),
    EventType.TIME_BLOCK: MutationEncoder(encode_block, encode_block),
    EventType.BOOKING: MutationEncoder(encode_booking, encode_booking),
    EventType.WORK_ITEM: MutationEncoder(encode_work_item_move),
}


def build_write(intent: Intent) -> WriteRequest:
    """Encode an intent for its event's origin system."""
    encoder = ENCODERS.get(intent.event.type)
    if encoder is None:
        raise UnsupportedMutation(f"Cannot move this event type ({intent.event.type.value})")
    if isinstance(intent, ResizeIntent):
        if encoder.encode_resize is None:
            raise UnsupportedMutation(f"Cannot resize this event type ({intent.event.type.value})")
        return encoder.encode_resize(intent)
    return encoder.encode_move(intent)


# =============================================================================
# DISPATCH
# =============================================================================


class MutationDispatcher:
    """
    Sends encoded writes and invalidates the calendar on success.

    Nothing is updated locally before the origin system confirms; after a
    successful write the `on_success` callback (typically a re-fetch of the
    current window) brings the canonical record back.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        on_success: Callable[[WriteRequest], Awaitable[None]] | None = None,
    ):
        self.client = client
        self.on_success = on_success

    async def dispatch(self, intent: Intent) -> WriteRequest:
        request = build_write(intent)
        try:
            response = await self.client.request(request.method, request.path, json=dict(request.body))
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise MutationFailed(
                f"{request.source.value} rejected the update: {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise MutationFailed(f"Could not reach {request.source.value}: {e}") from e

        if self.on_success is not None:
            await self.on_success(request)
        return request
