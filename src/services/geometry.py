"""
Layout geometry for the hour grid, roadmap lanes and month cells.

Pure functions producing position/size numbers; painting them is the
caller's job. The hour grid also provides the inverse mapping used when a
pointer is released over the grid.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from core.config import FIRST_VISIBLE_HOUR, LAST_VISIBLE_HOUR, MONTH_CELL_CAP, SNAP_MINUTES
from core.windows import ViewWindow
from models.events import CalendarEvent, DropTarget


@dataclass(frozen=True)
class HourGrid:
    """Hour-row constants of a grid (pixels)."""

    row_height: float = 48
    min_height: float = 44
    gutter: float = 4
    first_hour: int = FIRST_VISIBLE_HOUR
    last_hour: int = LAST_VISIBLE_HOUR

    @property
    def hours(self) -> list[int]:
        return list(range(self.first_hour, self.last_hour + 1))


WEEK_GRID = HourGrid(row_height=48, min_height=44, gutter=4)
DAY_GRID = HourGrid(row_height=56, min_height=48, gutter=8)


@dataclass(frozen=True)
class EventBox:
    """Placement of a timed event inside its starting hour row."""

    event_id: str
    hour: int
    top: float
    height: float
    lane: int
    lane_count: int


@dataclass(frozen=True)
class RoadmapBar:
    event_id: str
    left_percent: float
    width_percent: float


@dataclass(frozen=True)
class DayCell:
    """Month-grid cell: the first N events and how many were left out."""

    day: date
    events: list[CalendarEvent]
    overflow: int


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, datetime.min.time())
    return start, start + timedelta(days=1)


def events_for_day(events: list[CalendarEvent], day: date) -> list[CalendarEvent]:
    """Events occupying any part of the day."""
    start, end = _day_bounds(day)
    return [e for e in events if e.overlaps(start, end)]


def split_all_day(events: list[CalendarEvent]) -> tuple[list[CalendarEvent], list[CalendarEvent]]:
    """(all-day lane events, timed hour-grid events)."""
    all_day = [e for e in events if e.all_day]
    timed = [e for e in events if not e.all_day]
    return all_day, timed


# =============================================================================
# HOUR GRID
# =============================================================================


def _assign_lanes(events: list[CalendarEvent]) -> dict[str, tuple[int, int]]:
    """
    Side-by-side lanes for overlapping events.

    Greedy interval partitioning; each cluster of transitively overlapping
    events shares one lane count.
    """
    placement: dict[str, tuple[int, int]] = {}
    cluster: list[tuple[CalendarEvent, int]] = []
    lane_ends: list[datetime] = []
    cluster_end: datetime | None = None

    def close_cluster():
        width = len(lane_ends)
        for event, lane in cluster:
            placement[event.id] = (lane, width)

    for event in sorted(events, key=lambda e: (e.start, -e.duration, e.id)):
        if cluster_end is not None and event.start >= cluster_end:
            close_cluster()
            cluster, lane_ends, cluster_end = [], [], None

        for lane, lane_end in enumerate(lane_ends):
            if lane_end <= event.start:
                lane_ends[lane] = event.end
                break
        else:
            lane = len(lane_ends)
            lane_ends.append(event.end)

        cluster.append((event, lane))
        # Zero-length events still occupy their row
        end = max(event.end, event.start + timedelta(minutes=1))
        cluster_end = end if cluster_end is None else max(cluster_end, end)

    if cluster:
        close_cluster()
    return placement


def layout_hour_grid(events: list[CalendarEvent], day: date, grid: HourGrid = WEEK_GRID) -> list[EventBox]:
    """
    Position the timed events that start on a visible hour of one day.

    top = minute-of-hour / 60 * row_height
    height = max(min_height, duration_hours * row_height - gutter)
    """
    day_start, day_end = _day_bounds(day)
    timed = [
        e for e in events
        if not e.all_day
        and day_start <= e.start < day_end
        and grid.first_hour <= e.start.hour <= grid.last_hour
    ]
    lanes = _assign_lanes(timed)

    boxes = []
    for event in timed:
        hours = event.duration.total_seconds() / 3600
        lane, lane_count = lanes[event.id]
        boxes.append(
            EventBox(
                event_id=event.id,
                hour=event.start.hour,
                top=round(event.start.minute / 60 * grid.row_height),
                height=max(grid.min_height, round(hours * grid.row_height) - grid.gutter),
                lane=lane,
                lane_count=lane_count,
            )
        )
    return boxes


def time_at_offset(day: date, offset_px: float, grid: HourGrid = WEEK_GRID) -> datetime:
    """
    Inverse of the hour grid: vertical pixel offset -> time on that day.

    Offset 0 is the top of the first visible hour. The result is snapped to
    SNAP_MINUTES and clamped to the visible rows.
    """
    minutes = offset_px / grid.row_height * 60
    snapped = round(minutes / SNAP_MINUTES) * SNAP_MINUTES
    visible_minutes = (grid.last_hour - grid.first_hour + 1) * 60
    snapped = min(max(snapped, 0), visible_minutes)
    return datetime.combine(day, datetime.min.time()) + timedelta(hours=grid.first_hour, minutes=snapped)


def slot_at_offset(day: date, offset_px: float, grid: HourGrid = WEEK_GRID) -> DropTarget | None:
    """Hour slot under a pointer, or None when outside the grid."""
    if offset_px < 0:
        return None
    row = int(offset_px // grid.row_height)
    hour = grid.first_hour + row
    if hour > grid.last_hour:
        return None
    return DropTarget(day=day, hour=hour)


# =============================================================================
# ROADMAP
# =============================================================================


def group_roadmap_lanes(events: list[CalendarEvent]) -> dict[int, list[CalendarEvent]]:
    """One lane per person; events without an owner have no lane."""
    lanes: dict[int, list[CalendarEvent]] = defaultdict(list)
    for event in events:
        if event.owner_id is not None:
            lanes[event.owner_id].append(event)
    for lane in lanes.values():
        lane.sort(key=lambda e: (e.start, e.id))
    return dict(lanes)


def layout_roadmap_lane(events: list[CalendarEvent], window: ViewWindow) -> list[RoadmapBar]:
    """
    Horizontal bars for one person's lane.

    Spans are clipped to the window; the part outside is not shown. Bars are
    at least one day wide.
    """
    window_start, window_end = window.start_at, window.end_at
    total = window.length.total_seconds()
    bars = []
    for event in events:
        if not event.overlaps(window_start, window_end):
            continue
        start = max(event.start, window_start)
        end = min(event.span_end, window_end)
        clipped = max(end - start, timedelta(days=1))
        bars.append(
            RoadmapBar(
                event_id=event.id,
                left_percent=(start - window_start).total_seconds() / total * 100,
                width_percent=clipped.total_seconds() / total * 100,
            )
        )
    return bars


# =============================================================================
# MONTH GRID
# =============================================================================


def summarize_day_cell(events: list[CalendarEvent], day: date, cap: int = MONTH_CELL_CAP) -> DayCell:
    """First `cap` events of the day plus the "+K more" count."""
    day_events = events_for_day(events, day)
    return DayCell(day=day, events=day_events[:cap], overflow=max(len(day_events) - cap, 0))


def layout_month(events: list[CalendarEvent], window: ViewWindow, cap: int = MONTH_CELL_CAP) -> list[DayCell]:
    return [summarize_day_cell(events, day, cap) for day in window.days]
