"""Tests for filtering and per-type visibility."""

from datetime import datetime

import pytest

from core.filters import apply_filters, is_hidden, reconcile_filters, team_members, visibility_group
from models.events import EventType, ViewFilters


@pytest.fixture
def events(make_event):
    day = datetime(2025, 12, 9)
    return [
        make_event("task-1", EventType.EXTERNAL_TASK, owner_id=10, metadata={"projectId": 7}),
        make_event("task-2", EventType.EXTERNAL_TASK, owner_id=11, metadata={"projectId": None}),
        make_event("task-3", EventType.EXTERNAL_TASK, owner_id=12, metadata={"projectId": 0}),
        make_event("work-item-1", EventType.WORK_ITEM, day, day, all_day=True, owner_id=11),
        make_event("leave-1", EventType.LEAVE_REQUEST, day, day, all_day=True, owner_id=12),
        make_event("public-holiday-1", EventType.PUBLIC_HOLIDAY, day, day, all_day=True),
        make_event("block-1", EventType.TIME_BLOCK, owner_id=10),
        make_event("booking-1", EventType.BOOKING, owner_id=12),
    ]


def ids(events):
    return [e.id for e in events]


def test_visibility_groups():
    assert visibility_group(EventType.EXTERNAL_TASK) == "synced"
    assert visibility_group(EventType.BOOKING) == "synced"
    assert visibility_group(EventType.PUBLIC_HOLIDAY) == "leave"
    assert visibility_group(EventType.TIME_BLOCK) == "block"


def test_hidden_group_hides_all_its_types(events):
    kept = apply_filters(events, ViewFilters(), {"leave"})
    assert "leave-1" not in ids(kept)
    assert "public-holiday-1" not in ids(kept)
    assert len(kept) == len(events) - 2


def test_raw_type_value_is_accepted(make_event):
    assert is_hidden(make_event(event_type=EventType.BOOKING), {"booking"})
    assert not is_hidden(make_event(event_type=EventType.EXTERNAL_TASK), {"booking"})


def test_team_filter_uses_memberships(events, filter_options):
    kept = apply_filters(events, ViewFilters(team_id=1), set(), filter_options)

    assert ids(kept) == ["task-1", "task-2", "work-item-1", "public-holiday-1", "block-1"]


def test_team_filter_without_options_keeps_only_org_wide(events):
    kept = apply_filters(events, ViewFilters(team_id=1), set())
    assert ids(kept) == ["public-holiday-1"]


def test_user_filter(events, filter_options):
    kept = apply_filters(events, ViewFilters(user_id=12), set(), filter_options)
    assert ids(kept) == ["task-3", "leave-1", "public-holiday-1", "booking-1"]


def test_project_filter_only_applies_to_tasks(events):
    kept = apply_filters(events, ViewFilters(project_id=7), set())

    assert "task-1" in ids(kept)
    assert "task-2" not in ids(kept)
    assert "booking-1" in ids(kept)


def test_project_none_matches_tasks_without_project(events):
    kept = apply_filters(events, ViewFilters(project_id="none"), set())

    task_ids = [i for i in ids(kept) if i.startswith("task-")]
    assert task_ids == ["task-2", "task-3"]


def test_filters_are_idempotent(events, filter_options):
    filters = ViewFilters(team_id=1, project_id=7)
    hidden = {"block"}

    once = apply_filters(events, filters, hidden, filter_options)
    twice = apply_filters(once, filters, hidden, filter_options)

    assert once == twice


def test_reconcile_clears_user_outside_team(filter_options):
    filters = ViewFilters(team_id=2, user_id=10, project_id=7)

    reconciled = reconcile_filters(filters, filter_options)

    assert reconciled == ViewFilters(team_id=2, user_id=None, project_id=7)
    assert filters.user_id == 10


def test_reconcile_keeps_member(filter_options):
    filters = ViewFilters(team_id=1, user_id=11)
    assert reconcile_filters(filters, filter_options) == filters


def test_team_members(filter_options):
    assert [u.name for u in team_members(1, filter_options)] == ["Alice", "Bob"]
    assert len(team_members(None, filter_options)) == 3
