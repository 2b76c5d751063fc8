"""
Source fetching and the combined calendar feed.

Every source is fetched concurrently for the current window and may fail on
its own; the other sources still render. Results that arrive after the user
has navigated to another window are discarded.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Callable

import httpx

from core.config import FILTERS_ENDPOINT, SOURCE_ENDPOINTS
from core.errors import SourceFetchError
from core.filters import apply_filters
from core.windows import ViewWindow, resolve_window
from models.events import (
    CalendarEvent,
    EventType,
    FilterOptions,
    ParseDiagnostic,
    TeamInfo,
    UserInfo,
    ViewState,
)
from services.normalizer import normalize_batch


@dataclass
class SourceBatch:
    """Raw records per source, and the sources that could not be read."""

    records: dict[EventType, list[dict]] = field(default_factory=dict)
    failures: dict[EventType, str] = field(default_factory=dict)


@dataclass
class CalendarView:
    """Everything one render of the calendar needs."""

    window: ViewWindow
    events: list[CalendarEvent]
    failed_sources: list[str] = field(default_factory=list)
    diagnostics: list[ParseDiagnostic] = field(default_factory=list)


def _extract_records(payload, key: str) -> list[dict]:
    """Record list from a bare JSON list or an envelope object."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for candidate in (key, "items", "data"):
            if isinstance(payload.get(candidate), list):
                return payload[candidate]
    raise ValueError(f"Expected a list under '{key}'")


async def fetch_source(client: httpx.AsyncClient, source: EventType, window: ViewWindow) -> list[dict]:
    """
    Fetch one source's raw records for a window.

    Raises:
        SourceFetchError: on transport errors, HTTP errors or an unexpected body
    """
    path, key = SOURCE_ENDPOINTS[source.value]
    params = {"startDate": window.start.isoformat(), "endDate": window.last_day.isoformat()}

    try:
        response = await client.get(path, params=params)
        response.raise_for_status()
        return _extract_records(response.json(), key)
    except httpx.HTTPStatusError as e:
        raise SourceFetchError(source.value, f"HTTP {e.response.status_code}") from e
    except httpx.RequestError as e:
        raise SourceFetchError(source.value, str(e) or type(e).__name__) from e
    except ValueError as e:
        raise SourceFetchError(source.value, f"Invalid response: {e}") from e


async def fetch_window_records(
    client: httpx.AsyncClient,
    window: ViewWindow,
    sources: list[EventType] | None = None,
) -> SourceBatch:
    """
    Fetch all sources concurrently and wait for every one to settle.

    A failing source contributes no records and is listed in `failures`;
    it never prevents the others from being returned.
    """
    sources = list(sources or EventType)
    results = await asyncio.gather(
        *(fetch_source(client, source, window) for source in sources),
        return_exceptions=True,
    )

    batch = SourceBatch()
    for source, result in zip(sources, results):
        if isinstance(result, SourceFetchError):
            batch.failures[source] = result.message
            print(f"  Error fetching {source.value}: {result.message}")
        elif isinstance(result, Exception):
            batch.failures[source] = str(result) or type(result).__name__
            print(f"  Error fetching {source.value}: {result!r}")
        elif isinstance(result, BaseException):
            raise result
        else:
            batch.records[source] = result
    return batch


def parse_filter_options(payload: dict) -> FilterOptions:
    """Build FilterOptions from the filters endpoint body."""
    body = payload.get("filters", payload) if isinstance(payload, dict) else {}

    teams = [TeamInfo(id=int(t["id"]), name=t.get("name") or "") for t in body.get("teams", [])]
    users = [
        UserInfo(
            id=int(u["id"]),
            name=u.get("name") or u.get("email") or "",
            email=u.get("email"),
            external_admin_id=int(u["externalAdminId"]) if u.get("externalAdminId") else None,
        )
        for u in body.get("users", [])
    ]
    memberships = [(int(m["teamId"]), int(m["userId"])) for m in body.get("memberships", [])]
    admin_names = {int(a["id"]): a.get("name") or "" for a in body.get("admins", [])}

    return FilterOptions(teams=teams, users=users, memberships=memberships, admin_names=admin_names)


async def fetch_filter_options(client: httpx.AsyncClient) -> FilterOptions:
    """Fetch teams, users and memberships used by the filter engine."""
    try:
        response = await client.get(FILTERS_ENDPOINT)
        response.raise_for_status()
        return parse_filter_options(response.json())
    except httpx.HTTPStatusError as e:
        raise SourceFetchError("filters", f"HTTP {e.response.status_code}") from e
    except httpx.RequestError as e:
        raise SourceFetchError("filters", str(e) or type(e).__name__) from e
    except (ValueError, KeyError, TypeError) as e:
        raise SourceFetchError("filters", f"Invalid response: {e}") from e


def build_view(
    batch: SourceBatch,
    window: ViewWindow,
    state: ViewState,
    options: FilterOptions | None = None,
) -> CalendarView:
    """Normalize and filter a fetched batch."""
    normalized = normalize_batch(batch.records, window, options)
    events = apply_filters(normalized.events, state.filters, state.hidden_types, options)
    return CalendarView(
        window=window,
        events=events,
        failed_sources=sorted(source.value for source in batch.failures),
        diagnostics=normalized.diagnostics,
    )


def window_for(state: ViewState) -> ViewWindow:
    return resolve_window(state.mode, state.anchor_date, state.show_weekends)


class CalendarFeed:
    """
    Window-keyed loader for one calendar page.

    `current_state` returns the live ViewState; a fetch whose window no
    longer matches it when the results arrive is dropped.
    """

    def __init__(self, client: httpx.AsyncClient, current_state: Callable[[], ViewState]):
        self.client = client
        self.current_state = current_state
        self.options: FilterOptions | None = None

    async def load_options(self) -> FilterOptions:
        """Fetch filter options once; an unavailable endpoint means no team data."""
        if self.options is None:
            try:
                self.options = await fetch_filter_options(self.client)
            except SourceFetchError as e:
                print(f"  Error fetching filters: {e.message}")
                return FilterOptions()
        return self.options

    async def load(self) -> CalendarView | None:
        """Fetch the current window; None if the window changed while fetching."""
        window = window_for(self.current_state())
        batch, options = await asyncio.gather(
            fetch_window_records(self.client, window),
            self.load_options(),
        )

        state = self.current_state()
        if window_for(state).key != window.key:
            print(f"  Discarding results for stale window {window.start} - {window.last_day}")
            return None

        return build_view(batch, window, state, options)
