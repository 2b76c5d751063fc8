"""Tests for intent encoding and dispatch to origin systems."""

import asyncio
from datetime import date, datetime

import pytest

from core.errors import GestureRejected, MutationFailed, UnsupportedMutation
from models.events import Edge, EventType, MoveIntent, ResizeIntent
from services.mutations import ENCODERS, MutationDispatcher, build_write

DAY = date(2025, 12, 9)


@pytest.fixture
def task(make_event):
    return make_event("task-42", metadata={"taskId": "42"})


def test_every_mutable_type_has_an_encoder():
    assert set(ENCODERS) == {EventType.EXTERNAL_TASK, EventType.TIME_BLOCK, EventType.BOOKING, EventType.WORK_ITEM}


def test_task_move_keeps_duration(task):
    write = build_write(MoveIntent(task, DAY, 15))

    assert write.method == "PATCH"
    assert write.path == "/calendar/tasks/42"
    assert write.body == {"start": "2025-12-09 15:00:00", "duration": "1h"}


def test_task_resize_recomputes_duration(make_event):
    task = make_event("task-42", end=datetime(2025, 12, 9, 14, 30), metadata={"taskId": "42"})
    write = build_write(ResizeIntent(task, Edge.END, datetime(2025, 12, 9, 21, 30)))

    assert write.body == {"start": "2025-12-09 13:00:00", "duration": "8h 30m"}


def test_block_move_shifts_both_ends(make_event):
    block = make_event(
        "block-17",
        EventType.TIME_BLOCK,
        datetime(2025, 12, 9, 8, 0),
        datetime(2025, 12, 9, 9, 30),
        metadata={"blockId": "17"},
    )
    write = build_write(MoveIntent(block, date(2025, 12, 11), 10))

    assert write.path == "/calendar/blocks/17"
    assert write.body == {"start": "2025-12-11T10:00:00", "end": "2025-12-11T11:30:00"}


def test_booking_resize_start(make_event):
    booking = make_event("booking-5", EventType.BOOKING, metadata={"bookingId": "5"})
    write = build_write(ResizeIntent(booking, Edge.START, datetime(2025, 12, 9, 11, 0)))

    assert write.path == "/bookings/appointments/5"
    assert write.body == {"start": "2025-12-09T11:00:00", "end": "2025-12-09T14:00:00"}


def test_work_item_move_sends_due_date_only(make_event):
    item = make_event("work-item-9", EventType.WORK_ITEM, datetime(2025, 12, 9), datetime(2025, 12, 9), all_day=True)
    write = build_write(MoveIntent(item, date(2025, 12, 12), 15))

    assert write.path == "/work-items/9"
    assert write.body == {"dueDate": "2025-12-12"}


def test_work_item_resize_is_unsupported(make_event):
    item = make_event("work-item-9", EventType.WORK_ITEM, metadata={"workItemId": "9"})
    with pytest.raises(UnsupportedMutation):
        build_write(ResizeIntent(item, Edge.END, datetime(2025, 12, 9, 16)))


def test_display_only_type_is_unsupported(make_event):
    leave = make_event("leave-3", EventType.LEAVE_REQUEST)
    with pytest.raises(GestureRejected):
        build_write(MoveIntent(leave, DAY))


def test_dispatch_sends_patch_then_invalidates(source_system, task):
    invalidated = []

    async def on_success(request):
        invalidated.append(request.path)

    async def run():
        async with source_system.client() as client:
            return await MutationDispatcher(client, on_success).dispatch(MoveIntent(task, DAY, 15))

    write = asyncio.run(run())

    assert source_system.writes == [
        ("PATCH", "/calendar/tasks/42", {"start": "2025-12-09 15:00:00", "duration": "1h"})
    ]
    assert invalidated == [write.path]


def test_dispatch_failure_raises_and_skips_invalidation(source_system, task):
    source_system.patch_status = 500
    invalidated = []

    async def on_success(request):
        invalidated.append(request)

    async def run():
        async with source_system.client() as client:
            await MutationDispatcher(client, on_success).dispatch(MoveIntent(task, DAY, 15))

    with pytest.raises(MutationFailed) as exc_info:
        asyncio.run(run())

    assert exc_info.value.status_code == 500
    assert invalidated == []


def test_rejected_intent_never_reaches_the_network(source_system, make_event):
    leave = make_event("leave-3", EventType.LEAVE_REQUEST)

    async def run():
        async with source_system.client() as client:
            await MutationDispatcher(client).dispatch(MoveIntent(leave, DAY, 9))

    with pytest.raises(UnsupportedMutation):
        asyncio.run(run())
    assert source_system.writes == []
