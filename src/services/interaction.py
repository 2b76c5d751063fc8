"""
Drag and resize gesture state machine.

Idle -> Dragging -> Idle and Idle -> Resizing -> Idle. At most one session
exists at a time; it is discarded at the end of every gesture whatever the
outcome. Dropping produces an intent; dispatching it is someone else's job.
"""

from datetime import datetime, timedelta

from core.config import MIN_DURATION_MINUTES
from core.errors import GestureRejected
from models.events import (
    MUTABLE_TYPES,
    RESIZABLE_TYPES,
    CalendarEvent,
    DropTarget,
    Dragging,
    Edge,
    GestureState,
    Idle,
    Intent,
    MoveIntent,
    Pointer,
    ResizeIntent,
    Resizing,
)

MIN_DURATION = timedelta(minutes=MIN_DURATION_MINUTES)


def can_drag(event: CalendarEvent) -> bool:
    return event.type in MUTABLE_TYPES


def can_resize(event: CalendarEvent) -> bool:
    return event.type in RESIZABLE_TYPES


def validate_resize(intent: ResizeIntent) -> None:
    """Raise GestureRejected if the resized event would be shorter than the floor."""
    if intent.new_end - intent.new_start < MIN_DURATION:
        raise GestureRejected(f"Event must be at least {MIN_DURATION_MINUTES} minutes long")


class InteractionController:
    """Owns the single in-progress gesture of one calendar page."""

    def __init__(self):
        self.state: GestureState = Idle()

    @property
    def active_event(self) -> CalendarEvent | None:
        if isinstance(self.state, (Dragging, Resizing)):
            return self.state.event
        return None

    def pointer_down(self, event: CalendarEvent, pointer: Pointer | None = None) -> bool:
        """
        Start dragging an event.

        Display-only types are ignored: the state is left unchanged and
        False is returned.
        """
        if not can_drag(event):
            return False
        self.state = Dragging(event=event, origin_pointer=pointer)
        return True

    def pointer_down_on_handle(self, event: CalendarEvent, edge: Edge, pointer: Pointer | None = None) -> bool:
        """Start resizing one edge of an event (bookings, external tasks, blocks only)."""
        if not can_resize(event):
            return False
        self.state = Resizing(event=event, edge=Edge(edge), origin_pointer=pointer)
        return True

    def cancel(self) -> None:
        """Escape, or pointer released outside the calendar."""
        self.state = Idle()

    def pointer_up(self, target: DropTarget | None) -> Intent | None:
        """
        Finish the gesture over a drop target.

        Returns the move/resize intent, or None when there is nothing to do
        (no gesture, no valid target). Raises GestureRejected when a resize
        would break the minimum duration.
        """
        state = self.state
        self.state = Idle()

        if target is None:
            return None

        if isinstance(state, Dragging):
            return MoveIntent(event=state.event, new_anchor=target.day, new_hour=target.hour)

        if isinstance(state, Resizing):
            # Resizing needs an hour slot; a bare day cell is not a valid target
            if target.hour is None:
                return None
            new_time = datetime.combine(target.day, datetime.min.time()).replace(hour=target.hour)
            intent = ResizeIntent(event=state.event, edge=state.edge, new_time=new_time)
            validate_resize(intent)
            return intent

        return None
