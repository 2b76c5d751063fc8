"""
View window resolution: (mode, anchor date) -> concrete date window.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from core.config import CALENDAR_WEEK_START, ROADMAP_MONTHS
from models.events import ViewMode

WEEK_START_DAYS = {"monday": 0, "sunday": 6}


@dataclass(frozen=True)
class ViewWindow:
    """Half-open date window [start, end) plus the ordered days to render."""

    mode: ViewMode
    start: date
    end: date
    days: tuple[date, ...] = ()

    @property
    def key(self) -> tuple[str, date, date]:
        """Identity used to tag in-flight fetches."""
        return (self.mode.value, self.start, self.end)

    @property
    def last_day(self) -> date:
        return self.end - timedelta(days=1)

    @property
    def start_at(self) -> datetime:
        return datetime.combine(self.start, datetime.min.time())

    @property
    def end_at(self) -> datetime:
        return datetime.combine(self.end, datetime.min.time())

    @property
    def length(self) -> timedelta:
        return self.end_at - self.start_at

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end


def week_start_index(name: str = CALENDAR_WEEK_START) -> int:
    """Python weekday number (Monday=0) the locale week starts on."""
    return WEEK_START_DAYS.get(name, WEEK_START_DAYS["sunday"])


def start_of_week(day: date, week_start: int) -> date:
    return day - timedelta(days=(day.weekday() - week_start) % 7)


def add_months(day: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    _, last_day = calendar.monthrange(year, month)
    return date(year, month, min(day.day, last_day))


def _day_range(start: date, end: date) -> list[date]:
    return [start + timedelta(days=i) for i in range((end - start).days)]


def resolve_window(
    mode: ViewMode,
    anchor: date,
    show_weekends: bool = True,
    week_start: int | None = None,
) -> ViewWindow:
    """
    Resolve the date window a view mode displays around an anchor date.

    - day: the anchor day
    - week: the calendar week holding the anchor (5 days when weekends are hidden)
    - month: whole weeks tiling the anchor's month (always a multiple of 7 days)
    - roadmap: anchor's month plus the two following months, no day list
    """
    if week_start is None:
        week_start = week_start_index()

    if mode == ViewMode.DAY:
        return ViewWindow(mode, anchor, anchor + timedelta(days=1), (anchor,))

    if mode == ViewMode.WEEK:
        start = start_of_week(anchor, week_start)
        end = start + timedelta(days=7)
        days = _day_range(start, end)
        if not show_weekends:
            days = [d for d in days if d.weekday() < 5]
        return ViewWindow(mode, start, end, tuple(days))

    first_of_month = anchor.replace(day=1)

    if mode == ViewMode.ROADMAP:
        return ViewWindow(mode, first_of_month, add_months(first_of_month, ROADMAP_MONTHS))

    # Month grid: start-of-week of the 1st through end-of-week of the last day
    _, last = calendar.monthrange(anchor.year, anchor.month)
    start = start_of_week(first_of_month, week_start)
    end = start_of_week(anchor.replace(day=last), week_start) + timedelta(days=7)
    return ViewWindow(mode, start, end, tuple(_day_range(start, end)))


def shift_anchor(mode: ViewMode, anchor: date, step: int) -> date:
    """Move the anchor one page backwards (-1) or forwards (+1)."""
    if mode in (ViewMode.MONTH, ViewMode.ROADMAP):
        return add_months(anchor, step)
    if mode == ViewMode.WEEK:
        return anchor + timedelta(weeks=step)
    return anchor + timedelta(days=step)


def window_label(window: ViewWindow, anchor: date) -> str:
    """Header label for the current window (platform-safe, no zero-padding)."""
    if window.mode == ViewMode.ROADMAP:
        end_month = add_months(anchor, ROADMAP_MONTHS - 1)
        return f"{anchor.strftime('%b')} - {end_month.strftime('%b')} {end_month.year}"
    if window.mode == ViewMode.MONTH:
        return anchor.strftime("%B %Y")
    if window.mode == ViewMode.WEEK:
        first, last = window.start, window.last_day
        return f"{first.strftime('%b')} {first.day} - {last.strftime('%b')} {last.day}, {last.year}"
    return f"{anchor.strftime('%A')}, {anchor.strftime('%B')} {anchor.day}, {anchor.year}"
