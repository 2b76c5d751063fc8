"""
Normalization of raw source records into CalendarEvent objects.

Each source system has its own parser; a record that cannot be parsed is
dropped and reported as a diagnostic without aborting the rest of the batch.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable
from zoneinfo import ZoneInfo

from core.config import CALENDAR_TIMEZONE
from core.durations import parse_duration
from core.windows import ViewWindow
from models.events import (
    SOURCE_PREFIXES,
    CalendarEvent,
    EventType,
    FilterOptions,
    ParseDiagnostic,
)

DEFAULT_TITLES = {
    EventType.EXTERNAL_TASK: "External Task",
    EventType.WORK_ITEM: "Work Item",
    EventType.LEAVE_REQUEST: "Leave",
    EventType.PUBLIC_HOLIDAY: "Public Holiday",
    EventType.TIME_BLOCK: "Time Block",
    EventType.BOOKING: "Booking",
}

DEFAULT_TASK_TIME = "09:00"


@dataclass
class NormalizationResult:
    events: list[CalendarEvent] = field(default_factory=list)
    diagnostics: list[ParseDiagnostic] = field(default_factory=list)


# =============================================================================
# VALUE PARSING
# =============================================================================


def to_local(value: Any) -> datetime:
    """
    Parse a timestamp into naive wall-clock time in CALENDAR_TIMEZONE.

    Accepts ISO 8601 (with or without offset/"Z") and "YYYY-MM-DD HH:MM:SS".
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value or "").strip()
        if not text:
            raise ValueError("Missing timestamp")
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(ZoneInfo(CALENDAR_TIMEZONE)).replace(tzinfo=None)
    return parsed


def to_day(value: Any) -> datetime:
    """Parse a calendar date (or a timestamp) into midnight of that date."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, datetime.min.time())
    return datetime.combine(to_local(value).date(), datetime.min.time())


def _int_or_none(value: Any) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _require_id(record: dict) -> str:
    record_id = record.get("id")
    if record_id in (None, ""):
        raise ValueError("Missing required field 'id'")
    return str(record_id)


def _check_span(start: datetime, end: datetime) -> None:
    if end < start:
        raise ValueError(f"Ends before it starts ({start.isoformat()} > {end.isoformat()})")


def make_event_id(event_type: EventType, local_id: str) -> str:
    return f"{SOURCE_PREFIXES[event_type]}-{local_id}"


def leave_days(start: date, end: date, half_day_start: bool = False, half_day_end: bool = False) -> float:
    """
    Days consumed by a leave request.

    Straight calendar-day count, inclusive of both ends, minus half a day
    per half-day flag. Weekends and public holidays are not excluded.
    """
    days = float((end - start).days + 1)
    if half_day_start:
        days -= 0.5
    if half_day_end:
        days -= 0.5
    return days


# =============================================================================
# PER-SOURCE PARSERS
# =============================================================================


def _task_span(record: dict) -> tuple[datetime, datetime]:
    """Start and end of an external task from either of its schedule encodings."""
    if record.get("scheduled_from"):
        start = to_local(record["scheduled_from"])
        raw_duration = record.get("formatted_duration")
        span = parse_duration(raw_duration) if raw_duration else timedelta(hours=1)
    elif record.get("scheduled_date"):
        scheduled_time = record.get("scheduled_time") or DEFAULT_TASK_TIME
        start = to_local(f"{record['scheduled_date']}T{scheduled_time}")
        hours = record.get("scheduled_duration_hours")
        minutes = record.get("scheduled_duration_minutes")
        span = timedelta(
            hours=1 if hours in (None, "") else int(hours),
            minutes=0 if minutes in (None, "") else int(minutes),
        )
    else:
        raise ValueError("Task is not scheduled")
    return start, start + span


def _task_admin_id(record: dict) -> int | None:
    """
    Administrator a task is assigned to.

    The task system stores the assignment kind in 'assigned_to' and the id in
    'assignee'; older payloads carry the admin id directly.
    """
    assigned_to = record.get("assigned_to")
    if assigned_to == "assigned_to_administrator":
        return _int_or_none(record.get("assignee"))
    if assigned_to in ("assigned_to_team", "assigned_to_anyone"):
        return None
    return _int_or_none(assigned_to) or _int_or_none(record.get("assigned_admin_id"))


def parse_external_task(record: dict, options: FilterOptions) -> CalendarEvent:
    task_id = _require_id(record)
    start, end = _task_span(record)

    admin_id = _task_admin_id(record)
    owner_id = options.user_for_admin(admin_id)
    owner_name = options.admin_names.get(admin_id) if admin_id else None
    if admin_id and not owner_name:
        owner_name = options.user_name(owner_id) or f"Admin {admin_id}"

    workflow_status = record.get("workflow_status_id")
    status = record.get("status") or (str(workflow_status) if workflow_status else None)

    return CalendarEvent(
        id=make_event_id(EventType.EXTERNAL_TASK, task_id),
        title=record.get("title") or record.get("description") or DEFAULT_TITLES[EventType.EXTERNAL_TASK],
        start=start,
        end=end,
        all_day=False,
        type=EventType.EXTERNAL_TASK,
        status=status,
        owner_id=owner_id,
        owner_name=owner_name,
        metadata={
            "taskId": task_id,
            "adminId": admin_id,
            "projectId": _int_or_none(record.get("project_id")),
            "customerId": _int_or_none(record.get("related_customer_id") or record.get("customer_id")),
            "location": record.get("address") or record.get("location"),
            "workflowStatusId": workflow_status,
        },
    )


def parse_work_item(record: dict, options: FilterOptions) -> CalendarEvent:
    item_id = _require_id(record)
    if not record.get("dueDate"):
        raise ValueError("Work item has no due date")
    due = to_day(record["dueDate"])
    owner_id = _int_or_none(record.get("assignedTo"))

    return CalendarEvent(
        id=make_event_id(EventType.WORK_ITEM, item_id),
        title=record.get("title") or DEFAULT_TITLES[EventType.WORK_ITEM],
        start=due,
        end=due,
        all_day=True,
        type=EventType.WORK_ITEM,
        status=record.get("status"),
        owner_id=owner_id,
        owner_name=options.user_name(owner_id),
        metadata={
            "workItemId": item_id,
            "teamId": _int_or_none(record.get("teamId")),
            "workItemType": record.get("workItemType"),
            "workflowTemplateId": record.get("workflowTemplateId"),
            "description": record.get("description"),
        },
    )


def parse_leave_request(record: dict, options: FilterOptions) -> CalendarEvent:
    request_id = _require_id(record)
    start = to_day(record.get("startDate"))
    end = to_day(record.get("endDate") or record.get("startDate"))
    _check_span(start, end)

    owner_id = _int_or_none(record.get("userId"))
    owner_name = options.user_name(owner_id) or record.get("userName")
    leave_type = record.get("holidayType") or "Leave"

    days_count = record.get("daysCount")
    if days_count in (None, ""):
        days_count = leave_days(
            start.date(),
            end.date(),
            bool(record.get("isHalfDayStart")),
            bool(record.get("isHalfDayEnd")),
        )

    return CalendarEvent(
        id=make_event_id(EventType.LEAVE_REQUEST, request_id),
        title=f"{owner_name or 'User'} - {leave_type}",
        start=start,
        end=end,
        all_day=True,
        type=EventType.LEAVE_REQUEST,
        status=record.get("status"),
        owner_id=owner_id,
        owner_name=owner_name,
        metadata={
            "holidayType": record.get("holidayType"),
            "daysCount": float(days_count),
            "notes": record.get("notes"),
        },
    )


def parse_public_holiday(record: dict, options: FilterOptions) -> CalendarEvent:
    holiday_id = _require_id(record)
    day = to_day(record.get("date"))

    return CalendarEvent(
        id=make_event_id(EventType.PUBLIC_HOLIDAY, holiday_id),
        title=record.get("name") or DEFAULT_TITLES[EventType.PUBLIC_HOLIDAY],
        start=day,
        end=day,
        all_day=True,
        type=EventType.PUBLIC_HOLIDAY,
        metadata={"region": record.get("region"), "country": record.get("country")},
    )


def parse_time_block(record: dict, options: FilterOptions) -> CalendarEvent:
    block_id = _require_id(record)
    all_day = bool(record.get("isAllDay"))
    if all_day:
        start = to_day(record.get("startDatetime"))
        end = to_day(record.get("endDatetime") or record.get("startDatetime"))
    else:
        start = to_local(record.get("startDatetime"))
        end = to_local(record.get("endDatetime"))
    _check_span(start, end)

    owner_id = _int_or_none(record.get("userId"))
    return CalendarEvent(
        id=make_event_id(EventType.TIME_BLOCK, block_id),
        title=record.get("title") or record.get("blockType") or DEFAULT_TITLES[EventType.TIME_BLOCK],
        start=start,
        end=end,
        all_day=all_day,
        type=EventType.TIME_BLOCK,
        owner_id=owner_id,
        owner_name=options.user_name(owner_id),
        metadata={
            "blockId": block_id,
            "blockType": record.get("blockType"),
            "isRecurring": bool(record.get("isRecurring")),
            "description": record.get("description"),
        },
    )


def parse_booking(record: dict, options: FilterOptions) -> CalendarEvent:
    booking_id = _require_id(record)
    start = to_local(record.get("scheduledStart"))
    end = to_local(record.get("scheduledEnd"))
    _check_span(start, end)

    owner_id = _int_or_none(record.get("assignedUserId"))
    return CalendarEvent(
        id=make_event_id(EventType.BOOKING, booking_id),
        title=record.get("title") or DEFAULT_TITLES[EventType.BOOKING],
        start=start,
        end=end,
        all_day=False,
        type=EventType.BOOKING,
        status=record.get("status"),
        owner_id=owner_id,
        owner_name=options.user_name(owner_id),
        metadata={
            "bookingId": booking_id,
            "customerId": _int_or_none(record.get("customerId")),
            "workItemId": _int_or_none(record.get("workItemId")),
        },
    )


PARSERS: dict[EventType, Callable[[dict, FilterOptions], CalendarEvent]] = {
    EventType.EXTERNAL_TASK: parse_external_task,
    EventType.WORK_ITEM: parse_work_item,
    EventType.LEAVE_REQUEST: parse_leave_request,
    EventType.PUBLIC_HOLIDAY: parse_public_holiday,
    EventType.TIME_BLOCK: parse_time_block,
    EventType.BOOKING: parse_booking,
}


# =============================================================================
# BATCH
# =============================================================================


def normalize_batch(
    records_by_type: dict[EventType, list[dict]],
    window: ViewWindow,
    options: FilterOptions | None = None,
) -> NormalizationResult:
    """
    Normalize every source's records for one window.

    Records outside the window are skipped; unparseable records are dropped
    with a diagnostic. Output is ordered by (start, id).
    """
    options = options or FilterOptions()
    result = NormalizationResult()

    for event_type, records in records_by_type.items():
        parser = PARSERS[EventType(event_type)]
        for record in records:
            try:
                event = parser(record, options)
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                record_id = record.get("id") if isinstance(record, dict) else None
                result.diagnostics.append(
                    ParseDiagnostic(
                        source=EventType(event_type),
                        record_id=None if record_id is None else str(record_id),
                        message=str(e),
                    )
                )
                continue

            if event.overlaps(window.start_at, window.end_at):
                result.events.append(event)

    result.events.sort(key=lambda e: (e.start, e.id))
    return result
