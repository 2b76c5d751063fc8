"""Pydantic request/response models for API endpoints."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from core.config import PROJECT_NONE
from core.windows import ViewWindow, window_label
from models.events import CalendarEvent, Edge, FilterOptions, ViewMode, ViewState


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy" or "unhealthy"
    version: str
    database_available: bool
    timestamp: str  # ISO 8601 UTC
    error: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    details: list[str] = []


class ErrorCodes:
    """Error code constants."""

    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# CALENDAR
# =============================================================================


class CalendarEventModel(BaseModel):
    id: str
    title: str
    start: datetime
    end: datetime
    all_day: bool
    type: str
    status: str | None = None
    owner_id: int | None = None
    owner_name: str | None = None
    metadata: dict[str, Any] = {}

    @classmethod
    def from_event(cls, event: CalendarEvent) -> "CalendarEventModel":
        return cls(
            id=event.id,
            title=event.title,
            start=event.start,
            end=event.end,
            all_day=event.all_day,
            type=event.type.value,
            status=event.status,
            owner_id=event.owner_id,
            owner_name=event.owner_name,
            metadata=dict(event.metadata),
        )


class WindowResponse(BaseModel):
    mode: str
    start: date
    end: date  # exclusive
    days: list[date]
    label: str

    @classmethod
    def from_window(cls, window: ViewWindow, anchor: date) -> "WindowResponse":
        return cls(
            mode=window.mode.value,
            start=window.start,
            end=window.end,
            days=list(window.days),
            label=window_label(window, anchor),
        )


class EventsResponse(BaseModel):
    window: WindowResponse
    events: list[CalendarEventModel]
    failed_sources: list[str] = []
    skipped_records: int = 0


class TeamModel(BaseModel):
    id: int
    name: str


class UserModel(BaseModel):
    id: int
    name: str
    email: str | None = None


class FiltersResponse(BaseModel):
    teams: list[TeamModel]
    users: list[UserModel]
    memberships: list[tuple[int, int]]

    @classmethod
    def from_options(cls, options: FilterOptions) -> "FiltersResponse":
        return cls(
            teams=[TeamModel(id=t.id, name=t.name) for t in options.teams],
            users=[UserModel(id=u.id, name=u.name, email=u.email) for u in options.users],
            memberships=list(options.memberships),
        )


class ViewStateModel(BaseModel):
    mode: ViewMode = ViewMode.MONTH
    anchor_date: date = Field(default_factory=date.today)
    team_id: int | None = None
    user_id: int | None = None
    project_id: int | str | None = None
    hidden_types: list[str] = []
    show_weekends: bool = True

    @field_validator("project_id")
    @classmethod
    def check_project_id(cls, value):
        if isinstance(value, str) and value != PROJECT_NONE:
            if not value.isdigit():
                raise ValueError(f"project_id must be an integer or '{PROJECT_NONE}'")
            return int(value)
        return value

    @classmethod
    def from_state(cls, state: ViewState) -> "ViewStateModel":
        return cls(
            mode=state.mode,
            anchor_date=state.anchor_date,
            team_id=state.filters.team_id,
            user_id=state.filters.user_id,
            project_id=state.filters.project_id,
            hidden_types=sorted(state.hidden_types),
            show_weekends=state.show_weekends,
        )


# =============================================================================
# MUTATIONS
# =============================================================================


class MoveRequest(BaseModel):
    session: str
    event_id: str
    new_date: date
    new_hour: int | None = Field(default=None, ge=0, le=23)


class ResizeRequest(BaseModel):
    session: str
    event_id: str
    edge: Edge
    new_date: date
    new_hour: int = Field(ge=0, le=23)


class MutationResponse(BaseModel):
    event_id: str
    source: str
    method: str
    path: str
    body: dict[str, str]
    event: CalendarEventModel | None = None  # re-fetched record, when still in the window
