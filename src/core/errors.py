"""
Exception types raised by the calendar engine.
"""


class CalendarError(Exception):
    """Base class for calendar engine errors."""


class SourceFetchError(CalendarError):
    """A single source system could not be read."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


class GestureRejected(ValueError):
    """Local validation failure; nothing was sent to an origin system."""


class UnsupportedMutation(GestureRejected):
    """The event type has no write encoding for the requested change."""


class MutationFailed(CalendarError):
    """The origin system rejected or never received a write."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
