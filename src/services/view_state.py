"""
Persisted per-session calendar preferences.

The store is the single writer of a session's ViewState: every mutator
updates the in-memory state and saves it immediately.
"""

import json
import sqlite3
from datetime import date
from typing import Callable

from core.config import PROJECT_NONE
from core.database import (
    create_schema,
    delete_view_state_payload,
    get_connection,
    load_view_state_payload,
    save_view_state_payload,
)
from core.filters import reconcile_filters
from core.windows import shift_anchor
from models.events import FilterOptions, ViewFilters, ViewMode, ViewState


def view_state_to_dict(state: ViewState) -> dict:
    return {
        "mode": state.mode.value,
        "anchorDate": state.anchor_date.isoformat(),
        "filters": {
            "teamId": state.filters.team_id,
            "userId": state.filters.user_id,
            "projectId": state.filters.project_id,
        },
        "hiddenTypes": sorted(state.hidden_types),
        "showWeekends": state.show_weekends,
    }


def _project_value(value) -> int | str | None:
    if value is None or value == PROJECT_NONE:
        return value
    return int(value)


def view_state_from_dict(data: dict) -> ViewState:
    """
    Rebuild a ViewState from its stored form.

    Raises ValueError/KeyError/TypeError on malformed input.
    """
    filters = data.get("filters") or {}
    team_id = filters.get("teamId")
    user_id = filters.get("userId")
    return ViewState(
        mode=ViewMode(data["mode"]),
        anchor_date=date.fromisoformat(data["anchorDate"]),
        filters=ViewFilters(
            team_id=None if team_id is None else int(team_id),
            user_id=None if user_id is None else int(user_id),
            project_id=_project_value(filters.get("projectId")),
        ),
        hidden_types=set(data.get("hiddenTypes") or []),
        show_weekends=bool(data.get("showWeekends", True)),
    )


class ViewStateStore:
    """Durable ViewState for one session key."""

    def __init__(self, session_key: str, conn_factory: Callable[[], sqlite3.Connection] = get_connection):
        self.session_key = session_key
        self.conn_factory = conn_factory
        self.state = self.load()

    def load(self) -> ViewState:
        """Stored state, or defaults when nothing (or nothing readable) is stored."""
        conn = self.conn_factory()
        try:
            create_schema(conn)
            payload = load_view_state_payload(conn, self.session_key)
        finally:
            conn.close()

        if payload is None:
            return ViewState()

        try:
            return view_state_from_dict(json.loads(payload))
        except (ValueError, KeyError, TypeError) as e:
            print(f"  Ignoring unreadable view state for {self.session_key}: {e}")
            return ViewState()

    def save(self) -> None:
        conn = self.conn_factory()
        try:
            create_schema(conn)
            save_view_state_payload(conn, self.session_key, json.dumps(view_state_to_dict(self.state)))
        finally:
            conn.close()

    def replace(self, state: ViewState) -> ViewState:
        self.state = state
        self.save()
        return self.state

    # =========================================================================
    # NAVIGATION
    # =========================================================================

    def set_mode(self, mode: ViewMode | str) -> ViewState:
        self.state.mode = ViewMode(mode)
        self.save()
        return self.state

    def navigate(self, step: int) -> ViewState:
        """Previous (-1) or next (+1) page in the current mode."""
        self.state.anchor_date = shift_anchor(self.state.mode, self.state.anchor_date, step)
        self.save()
        return self.state

    def go_to(self, day: date) -> ViewState:
        self.state.anchor_date = day
        self.save()
        return self.state

    def go_to_today(self) -> ViewState:
        return self.go_to(date.today())

    # =========================================================================
    # FILTERS
    # =========================================================================

    def select_team(self, team_id: int | None, options: FilterOptions | None = None) -> ViewState:
        """Select a team; a selected user outside it is cleared."""
        filters = ViewFilters(team_id, self.state.filters.user_id, self.state.filters.project_id)
        if options is not None:
            filters = reconcile_filters(filters, options)
        self.state.filters = filters
        self.save()
        return self.state

    def select_user(self, user_id: int | None) -> ViewState:
        self.state.filters.user_id = user_id
        self.save()
        return self.state

    def select_project(self, project_id: int | str | None) -> ViewState:
        self.state.filters.project_id = _project_value(project_id)
        self.save()
        return self.state

    def toggle_type(self, key: str) -> ViewState:
        """Flip one visibility group (or raw type value)."""
        if key in self.state.hidden_types:
            self.state.hidden_types.discard(key)
        else:
            self.state.hidden_types.add(key)
        self.save()
        return self.state

    def toggle_weekends(self) -> ViewState:
        self.state.show_weekends = not self.state.show_weekends
        self.save()
        return self.state

    def reset(self) -> ViewState:
        """Forget the stored state and return to defaults."""
        conn = self.conn_factory()
        try:
            create_schema(conn)
            delete_view_state_payload(conn, self.session_key)
        finally:
            conn.close()
        self.state = ViewState()
        return self.state
