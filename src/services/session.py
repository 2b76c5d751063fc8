"""
One user's calendar page: view state, feed, gestures and writes.
"""

from datetime import date

import httpx

from core.errors import GestureRejected, MutationFailed
from core.windows import ViewWindow
from models.events import (
    CalendarEvent,
    DropTarget,
    Edge,
    Intent,
    Notice,
    Pointer,
)
from services.calendar import CalendarFeed, CalendarView, window_for
from services.geometry import WEEK_GRID, HourGrid, slot_at_offset
from services.interaction import InteractionController
from services.mutations import MutationDispatcher, WriteRequest
from services.view_state import ViewStateStore


class CalendarSession:
    """
    Owns every piece of mutable state behind one calendar page.

    Writes go to the origin system first; the page only changes after the
    re-fetch that follows a successful write.
    """

    def __init__(self, store: ViewStateStore, client: httpx.AsyncClient):
        self.store = store
        self.feed = CalendarFeed(client, lambda: self.store.state)
        self.controller = InteractionController()
        self.dispatcher = MutationDispatcher(client, on_success=self._after_write)
        self.view: CalendarView | None = None
        self.notices: list[Notice] = []

    @property
    def window(self) -> ViewWindow:
        return window_for(self.store.state)

    def notify(self, level: str, text: str) -> None:
        self.notices.append(Notice(level, text))

    async def refresh(self) -> CalendarView | None:
        """Re-fetch the current window; stale results leave the page untouched."""
        view = await self.feed.load()
        if view is None:
            return None
        if view.failed_sources:
            self.notify("error", f"Some calendars could not be loaded: {', '.join(view.failed_sources)}")
        self.view = view
        return view

    async def _after_write(self, request: WriteRequest) -> None:
        await self.refresh()

    def find_event(self, event_id: str) -> CalendarEvent | None:
        if self.view is None:
            return None
        for event in self.view.events:
            if event.id == event_id:
                return event
        return None

    async def navigate(self, step: int) -> CalendarView | None:
        self.store.navigate(step)
        return await self.refresh()

    # =========================================================================
    # GESTURES
    # =========================================================================

    def begin_drag(self, event: CalendarEvent, pointer: Pointer | None = None) -> bool:
        started = self.controller.pointer_down(event, pointer)
        if not started:
            self.notify("info", "Cannot move this event type")
        return started

    def begin_resize(self, event: CalendarEvent, edge: Edge, pointer: Pointer | None = None) -> bool:
        started = self.controller.pointer_down_on_handle(event, edge, pointer)
        if not started:
            self.notify("info", "Cannot resize this event type")
        return started

    def cancel_gesture(self) -> None:
        self.controller.cancel()

    async def drop(self, target: DropTarget | None) -> WriteRequest | None:
        """Finish the gesture; dispatches the resulting intent, if any."""
        try:
            intent = self.controller.pointer_up(target)
        except GestureRejected as e:
            self.notify("error", str(e))
            return None
        if intent is None:
            return None
        return await self.apply(intent)

    async def drop_on_grid(self, day: date, offset_px: float, grid: HourGrid = WEEK_GRID) -> WriteRequest | None:
        return await self.drop(slot_at_offset(day, offset_px, grid))

    async def apply(self, intent: Intent) -> WriteRequest | None:
        """Send an intent to its origin system and report the outcome."""
        try:
            request = await self.dispatcher.dispatch(intent)
        except GestureRejected as e:
            self.notify("error", str(e))
            return None
        except MutationFailed as e:
            self.notify("error", f"Failed to update event: {e}")
            return None
        self.notify("info", "Event updated")
        return request
