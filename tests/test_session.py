"""Tests for the calendar page session: gestures through to re-fetch."""

import asyncio
from datetime import date

import pytest

from models.events import DropTarget, Edge, EventType, ViewMode
from services.geometry import WEEK_GRID
from services.session import CalendarSession
from services.view_state import ViewStateStore

DAY = date(2025, 12, 9)


@pytest.fixture
def store(db_factory):
    store = ViewStateStore("alice", db_factory)
    store.set_mode(ViewMode.WEEK)
    store.go_to(DAY)
    return store


@pytest.fixture
def loaded(source_system, sample_records, filters_payload):
    source_system.records.update(sample_records)
    source_system.filters = filters_payload
    return source_system


def run_session(loaded, store, steps):
    async def run():
        async with loaded.client() as client:
            calendar = CalendarSession(store, client)
            await calendar.refresh()
            result = await steps(calendar)
            return calendar, result

    return asyncio.run(run())


def test_refresh_notices_failed_sources(loaded, store):
    loaded.failing[EventType.BOOKING] = 500

    async def steps(calendar):
        return calendar.view

    calendar, view = run_session(loaded, store, steps)

    assert view.failed_sources == ["booking"]
    assert calendar.notices[0].level == "error"
    assert "booking" in calendar.notices[0].text


def test_drag_drop_writes_and_refetches(loaded, store):
    gets = []

    async def steps(calendar):
        calendar.begin_drag(calendar.find_event("task-42"))
        loaded.on_get = gets.append
        # Row 9 of the week grid is 15:00
        return await calendar.drop_on_grid(DAY, 9 * WEEK_GRID.row_height + 5)

    calendar, request = run_session(loaded, store, steps)

    assert request.body == {"start": "2025-12-09 15:00:00", "duration": "1h"}
    assert calendar.notices[-1].text == "Event updated"
    # The whole window was re-fetched after the write
    assert len(gets) == len(EventType)


def test_display_only_event_gives_notice(loaded, store):
    async def steps(calendar):
        return calendar.begin_drag(calendar.find_event("leave-3"))

    calendar, started = run_session(loaded, store, steps)

    assert not started
    assert calendar.notices[-1].text == "Cannot move this event type"
    assert loaded.writes == []


def test_short_resize_gives_notice_and_sends_nothing(loaded, store):
    async def steps(calendar):
        calendar.begin_resize(calendar.find_event("booking-5"), Edge.END)
        return await calendar.drop(DropTarget(DAY, 10))

    calendar, request = run_session(loaded, store, steps)

    assert request is None
    assert calendar.notices[-1].level == "error"
    assert loaded.writes == []


def test_failed_write_leaves_view_untouched(loaded, store):
    loaded.patch_status = 500

    async def steps(calendar):
        before = calendar.view
        calendar.begin_drag(calendar.find_event("block-17"))
        await calendar.drop(DropTarget(DAY, 12))
        return before

    calendar, before = run_session(loaded, store, steps)

    assert calendar.view is before
    assert calendar.notices[-1].text.startswith("Failed to update event")


def test_navigate_persists_and_loads_next_window(loaded, store, db_factory):
    async def steps(calendar):
        return await calendar.navigate(1)

    calendar, view = run_session(loaded, store, steps)

    assert view.events == []
    assert ViewStateStore("alice", db_factory).state.anchor_date == date(2025, 12, 16)
