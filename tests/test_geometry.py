"""Tests for hour grid, roadmap and month cell geometry."""

from datetime import date, datetime, timedelta

import pytest

from core.windows import resolve_window
from models.events import DropTarget, EventType, ViewMode
from services.geometry import (
    DAY_GRID,
    WEEK_GRID,
    events_for_day,
    group_roadmap_lanes,
    layout_hour_grid,
    layout_month,
    layout_roadmap_lane,
    slot_at_offset,
    split_all_day,
    summarize_day_cell,
    time_at_offset,
)

DAY = date(2025, 12, 9)


def at(hour, minute=0, day=DAY):
    return datetime.combine(day, datetime.min.time()).replace(hour=hour, minute=minute)


def test_box_position_and_height(make_event):
    events = [
        make_event("block-1", EventType.TIME_BLOCK, at(9, 30), at(10, 30)),
        make_event("block-2", EventType.TIME_BLOCK, at(13), at(15)),
    ]
    boxes = {b.event_id: b for b in layout_hour_grid(events, DAY, WEEK_GRID)}

    assert boxes["block-1"].hour == 9
    assert boxes["block-1"].top == 24
    assert boxes["block-1"].height == 44
    assert boxes["block-2"].top == 0
    assert boxes["block-2"].height == 92


def test_short_event_gets_minimum_height(make_event):
    events = [make_event("task-1", start=at(8), end=at(8, 15))]
    (box,) = layout_hour_grid(events, DAY, DAY_GRID)
    assert box.height == DAY_GRID.min_height


def test_overlapping_events_share_lanes(make_event):
    events = [
        make_event("task-1", start=at(9), end=at(11)),
        make_event("task-2", start=at(10), end=at(12)),
        make_event("task-3", start=at(14), end=at(15)),
    ]
    boxes = {b.event_id: b for b in layout_hour_grid(events, DAY)}

    assert (boxes["task-1"].lane, boxes["task-1"].lane_count) == (0, 2)
    assert (boxes["task-2"].lane, boxes["task-2"].lane_count) == (1, 2)
    assert (boxes["task-3"].lane, boxes["task-3"].lane_count) == (0, 1)


def test_grid_skips_all_day_and_hidden_hours(make_event):
    events = [
        make_event("leave-1", EventType.LEAVE_REQUEST, datetime(2025, 12, 9), datetime(2025, 12, 9), all_day=True),
        make_event("task-1", start=at(5), end=at(6)),
        make_event("task-2", start=at(22), end=at(23)),
        make_event("task-3", start=at(21), end=at(22)),
    ]
    assert [b.event_id for b in layout_hour_grid(events, DAY)] == ["task-3"]


def test_split_all_day(make_event):
    all_day_event = make_event("work-item-1", EventType.WORK_ITEM, datetime(2025, 12, 9), datetime(2025, 12, 9), all_day=True)
    timed = make_event("task-1")

    assert split_all_day([all_day_event, timed]) == ([all_day_event], [timed])


@pytest.mark.parametrize(
    "offset, expected",
    [
        (0, at(6)),
        (72, at(7, 30)),
        (10, at(6, 15)),
        (-30, at(6)),
        (10_000, at(22)),
    ],
)
def test_time_at_offset_snaps_and_clamps(offset, expected):
    assert time_at_offset(DAY, offset, WEEK_GRID) == expected


def test_slot_at_offset():
    assert slot_at_offset(DAY, 100) == DropTarget(DAY, 8)
    assert slot_at_offset(DAY, 0) == DropTarget(DAY, 6)
    assert slot_at_offset(DAY, -1) is None
    assert slot_at_offset(DAY, 16 * WEEK_GRID.row_height) is None


def test_multi_day_event_appears_on_each_day(make_event):
    leave = make_event("leave-1", EventType.LEAVE_REQUEST, datetime(2025, 12, 8), datetime(2025, 12, 10), all_day=True)

    assert events_for_day([leave], date(2025, 12, 8)) == [leave]
    assert events_for_day([leave], date(2025, 12, 10)) == [leave]
    assert events_for_day([leave], date(2025, 12, 11)) == []


def test_day_cell_caps_and_counts_overflow(make_event):
    events = [make_event(f"task-{i}", start=at(8 + i), end=at(9 + i)) for i in range(5)]

    cell = summarize_day_cell(events, DAY)

    assert [e.id for e in cell.events] == ["task-0", "task-1", "task-2"]
    assert cell.overflow == 2


def test_month_layout_has_a_cell_per_day(make_event):
    window = resolve_window(ViewMode.MONTH, DAY)
    cells = layout_month([make_event()], window)

    assert [c.day for c in cells] == list(window.days)
    assert sum(len(c.events) for c in cells) == 1


def test_roadmap_lanes_group_by_owner(make_event):
    events = [
        make_event("task-2", start=at(9, day=date(2025, 12, 3)), end=at(10, day=date(2025, 12, 3)), owner_id=10),
        make_event("task-1", owner_id=10),
        make_event("block-1", EventType.TIME_BLOCK, owner_id=11),
        make_event("public-holiday-1", EventType.PUBLIC_HOLIDAY),
    ]
    lanes = group_roadmap_lanes(events)

    assert set(lanes) == {10, 11}
    assert [e.id for e in lanes[10]] == ["task-2", "task-1"]


def test_roadmap_bars_are_clipped_and_at_least_a_day(make_event):
    window = resolve_window(ViewMode.ROADMAP, date(2025, 11, 1))  # 92 days
    events = [
        make_event("leave-1", EventType.LEAVE_REQUEST, datetime(2025, 10, 25), datetime(2025, 11, 2), all_day=True),
        make_event("task-1", start=datetime(2025, 12, 1, 9), end=datetime(2025, 12, 1, 10)),
        make_event("task-2", start=datetime(2026, 3, 1, 9), end=datetime(2026, 3, 1, 10)),
    ]
    bars = {b.event_id: b for b in layout_roadmap_lane(events, window)}

    assert set(bars) == {"leave-1", "task-1"}
    assert bars["leave-1"].left_percent == 0
    assert bars["leave-1"].width_percent == pytest.approx(2 / 92 * 100)
    assert bars["task-1"].left_percent == pytest.approx(
        (timedelta(days=30, hours=9).total_seconds() / timedelta(days=92).total_seconds()) * 100
    )
    assert bars["task-1"].width_percent == pytest.approx(1 / 92 * 100)


def test_roadmap_drops_event_ending_at_window_start(make_event):
    window = resolve_window(ViewMode.ROADMAP, date(2025, 11, 1))
    events = [
        make_event("task-1", start=datetime(2025, 10, 31, 22), end=datetime(2025, 11, 1)),
        make_event("task-2", start=datetime(2025, 11, 1), end=datetime(2025, 11, 1)),
    ]

    bars = layout_roadmap_lane(events, window)

    assert [b.event_id for b in bars] == ["task-2"]
    assert bars[0].left_percent == 0
