"""
Pytest configuration and shared fixtures.
"""

import json
import sqlite3
import sys
from datetime import datetime
from pathlib import Path

import httpx
import pytest

# Add src (and tests, for fixtures/) to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from core.config import FILTERS_ENDPOINT, SOURCE_ENDPOINTS
from models.events import CalendarEvent, EventType, FilterOptions, TeamInfo, UserInfo

BASE_URL = "http://calendar.test"


class FakeSourceSystem:
    """
    In-memory stand-in for every origin system behind one base URL.

    GETs serve `records[event_type]` wrapped under the endpoint's key;
    PATCHes are recorded in `writes` and answered with `patch_status`.
    """

    def __init__(self):
        self.records: dict[EventType, list[dict]] = {event_type: [] for event_type in EventType}
        self.failing: dict[EventType, int | None] = {}  # status code, or None for a connect error
        self.filters: dict = {"teams": [], "users": [], "memberships": [], "admins": []}
        self.filters_status = 200
        self.writes: list[tuple[str, str, dict]] = []
        self.patch_status = 200
        self.on_get = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path

        if request.method != "GET":
            self.writes.append((request.method, path, json.loads(request.content or b"{}")))
            return httpx.Response(self.patch_status, json={"ok": self.patch_status < 400})

        if self.on_get is not None:
            self.on_get(path)

        if path == FILTERS_ENDPOINT:
            return httpx.Response(self.filters_status, json={"filters": self.filters})

        for event_type, (endpoint, key) in SOURCE_ENDPOINTS.items():
            if path != endpoint:
                continue
            event_type = EventType(event_type)
            if event_type in self.failing:
                status_code = self.failing[event_type]
                if status_code is None:
                    raise httpx.ConnectError("connection refused", request=request)
                return httpx.Response(status_code, json={"error": "unavailable"})
            return httpx.Response(200, json={key: self.records[event_type]})

        return httpx.Response(404, json={"error": "not found"})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler), base_url=BASE_URL)


@pytest.fixture
def source_system():
    return FakeSourceSystem()


@pytest.fixture
def db_factory(tmp_path):
    """Connection factory for a throwaway database."""
    db_path = tmp_path / "team-calendar.db"
    return lambda: sqlite3.connect(db_path)


@pytest.fixture
def filter_options():
    """Two teams: Field (Alice, Bob) and Office (Carol)."""
    return FilterOptions(
        teams=[TeamInfo(1, "Field"), TeamInfo(2, "Office")],
        users=[
            UserInfo(10, "Alice", "alice@example.com", external_admin_id=501),
            UserInfo(11, "Bob", "bob@example.com"),
            UserInfo(12, "Carol", "carol@example.com"),
        ],
        memberships=[(1, 10), (1, 11), (2, 12)],
        admin_names={501: "Alice A."},
    )


@pytest.fixture
def filters_payload():
    """Filters endpoint body matching `filter_options`."""
    return {
        "teams": [{"id": 1, "name": "Field"}, {"id": 2, "name": "Office"}],
        "users": [
            {"id": 10, "name": "Alice", "email": "alice@example.com", "externalAdminId": 501},
            {"id": 11, "name": "Bob", "email": "bob@example.com"},
            {"id": 12, "name": "Carol", "email": "carol@example.com"},
        ],
        "memberships": [
            {"teamId": 1, "userId": 10},
            {"teamId": 1, "userId": 11},
            {"teamId": 2, "userId": 12},
        ],
        "admins": [{"id": 501, "name": "Alice A."}],
    }


@pytest.fixture
def make_event():
    """Factory for CalendarEvent with sensible defaults."""

    def _make(
        event_id="task-1",
        event_type=EventType.EXTERNAL_TASK,
        start=datetime(2025, 12, 9, 13, 0),
        end=datetime(2025, 12, 9, 14, 0),
        all_day=False,
        owner_id=None,
        metadata=None,
        title="Event",
    ):
        return CalendarEvent(
            id=event_id,
            title=title,
            start=start,
            end=end,
            all_day=all_day,
            type=event_type,
            owner_id=owner_id,
            metadata=metadata or {},
        )

    return _make


@pytest.fixture
def sample_records():
    """One valid record per source, all on Tuesday 2025-12-09."""
    return {
        EventType.EXTERNAL_TASK: [
            {
                "id": 42,
                "title": "Boiler service",
                "scheduled_from": "2025-12-09 13:00:00",
                "formatted_duration": "1h",
                "assigned_to": "assigned_to_administrator",
                "assignee": 501,
                "project_id": 7,
            }
        ],
        EventType.WORK_ITEM: [
            {"id": 9, "title": "Quote follow-up", "dueDate": "2025-12-09", "assignedTo": 11}
        ],
        EventType.LEAVE_REQUEST: [
            {
                "id": 3,
                "userId": 12,
                "startDate": "2025-12-08",
                "endDate": "2025-12-10",
                "holidayType": "Vacation",
                "status": "approved",
            }
        ],
        EventType.PUBLIC_HOLIDAY: [{"id": 1, "name": "Founders Day", "date": "2025-12-09"}],
        EventType.TIME_BLOCK: [
            {
                "id": 17,
                "userId": 10,
                "title": "Admin time",
                "startDatetime": "2025-12-09T08:00:00",
                "endDatetime": "2025-12-09T09:30:00",
            }
        ],
        EventType.BOOKING: [
            {
                "id": 5,
                "title": "Site visit",
                "scheduledStart": "2025-12-09T10:00:00",
                "scheduledEnd": "2025-12-09T11:00:00",
                "assignedUserId": 11,
                "customerId": 300,
            }
        ],
    }
