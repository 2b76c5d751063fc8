"""
Data models for calendar events, view state and gestures.

Events are frozen dataclasses: they are rebuilt on every fetch and never
mutated. Gesture sessions form a single tagged union owned by the
interaction controller.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, TypedDict, Union


class EventType(str, Enum):
    """Origin system of a calendar event."""

    EXTERNAL_TASK = "external_task"
    WORK_ITEM = "work_item"
    LEAVE_REQUEST = "leave_request"
    PUBLIC_HOLIDAY = "public_holiday"
    TIME_BLOCK = "time_block"
    BOOKING = "booking"


# Id namespace per origin; "{prefix}-{local id}"
SOURCE_PREFIXES = {
    EventType.EXTERNAL_TASK: "task",
    EventType.WORK_ITEM: "work-item",
    EventType.LEAVE_REQUEST: "leave",
    EventType.PUBLIC_HOLIDAY: "public-holiday",
    EventType.TIME_BLOCK: "block",
    EventType.BOOKING: "booking",
}

MUTABLE_TYPES = frozenset(
    {EventType.EXTERNAL_TASK, EventType.TIME_BLOCK, EventType.BOOKING, EventType.WORK_ITEM}
)
RESIZABLE_TYPES = frozenset({EventType.EXTERNAL_TASK, EventType.TIME_BLOCK, EventType.BOOKING})


class ViewMode(str, Enum):
    MONTH = "month"
    WEEK = "week"
    DAY = "day"
    ROADMAP = "roadmap"


class Edge(str, Enum):
    START = "start"
    END = "end"


@dataclass(frozen=True)
class CalendarEvent:
    """Unified event built from one source record."""

    id: str
    title: str
    start: datetime
    end: datetime
    all_day: bool
    type: EventType
    status: str | None = None
    owner_id: int | None = None
    owner_name: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict, hash=False)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def span_end(self) -> datetime:
        """Exclusive end of the occupied span (all-day end dates are inclusive)."""
        if self.all_day:
            return datetime.combine(self.end.date(), datetime.min.time()) + timedelta(days=1)
        return self.end

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """True if the event occupies any part of [start, end)."""
        if self.all_day:
            return self.start < end and self.span_end > start
        if self.start == self.end:
            return start <= self.start < end
        return self.start < end and self.end > start


@dataclass
class ViewFilters:
    team_id: int | None = None
    user_id: int | None = None
    # int project id, or config.PROJECT_NONE for "tasks without a project"
    project_id: int | str | None = None


@dataclass
class ViewState:
    """Persisted per-user calendar preferences."""

    mode: ViewMode = ViewMode.MONTH
    anchor_date: date = field(default_factory=date.today)
    filters: ViewFilters = field(default_factory=ViewFilters)
    hidden_types: set[str] = field(default_factory=set)
    show_weekends: bool = True


@dataclass(frozen=True)
class TeamInfo:
    id: int
    name: str


@dataclass(frozen=True)
class UserInfo:
    id: int
    name: str
    email: str | None = None
    external_admin_id: int | None = None


@dataclass
class FilterOptions:
    """Teams, users and team membership used by the filter engine."""

    teams: list[TeamInfo] = field(default_factory=list)
    users: list[UserInfo] = field(default_factory=list)
    memberships: list[tuple[int, int]] = field(default_factory=list)  # (team_id, user_id)
    admin_names: dict[int, str] = field(default_factory=dict)

    def members_of(self, team_id: int) -> set[int]:
        return {user_id for tid, user_id in self.memberships if tid == team_id}

    def user_name(self, user_id: int | None) -> str | None:
        for user in self.users:
            if user.id == user_id:
                return user.name
        return None

    def user_for_admin(self, admin_id: int | None) -> int | None:
        """Local user linked to an external task system administrator."""
        if not admin_id:
            return None
        for user in self.users:
            if user.external_admin_id == admin_id:
                return user.id
        return None


@dataclass(frozen=True)
class ParseDiagnostic:
    """One source record dropped during normalization."""

    source: EventType
    record_id: str | None
    message: str


@dataclass(frozen=True)
class Notice:
    """User-facing message (toast)."""

    level: str  # "info" or "error"
    text: str


# =============================================================================
# GESTURES
# =============================================================================


@dataclass(frozen=True)
class Pointer:
    x: float
    y: float


@dataclass(frozen=True)
class DropTarget:
    """A day cell (hour is None) or a day+hour slot."""

    day: date
    hour: int | None = None


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    event: CalendarEvent
    origin_pointer: Pointer | None = None


@dataclass(frozen=True)
class Resizing:
    event: CalendarEvent
    edge: Edge
    origin_pointer: Pointer | None = None


GestureState = Union[Idle, Dragging, Resizing]


@dataclass(frozen=True)
class MoveIntent:
    """Requested move of a whole event to another day (and optionally hour)."""

    event: CalendarEvent
    new_anchor: date
    new_hour: int | None = None

    @property
    def new_start(self) -> datetime:
        if self.new_hour is not None:
            return datetime.combine(self.new_anchor, datetime.min.time()).replace(hour=self.new_hour)
        # Month view drop: keep the original time of day
        return datetime.combine(self.new_anchor, self.event.start.time())

    @property
    def new_end(self) -> datetime:
        return self.new_start + self.event.duration


@dataclass(frozen=True)
class ResizeIntent:
    """Requested change of one edge of an event."""

    event: CalendarEvent
    edge: Edge
    new_time: datetime

    @property
    def new_start(self) -> datetime:
        return self.new_time if self.edge == Edge.START else self.event.start

    @property
    def new_end(self) -> datetime:
        return self.new_time if self.edge == Edge.END else self.event.end


Intent = Union[MoveIntent, ResizeIntent]


class WriteBody(TypedDict, total=False):
    """Partial-update payload sent to an origin system."""

    start: str
    end: str
    duration: str
    dueDate: str
