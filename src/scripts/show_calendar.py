#!/usr/bin/env python3
"""
Print the unified calendar for a view window.

Uses the stored view state of a session (filters, hidden types, weekends);
--mode and --date override the stored navigation for this run only.

Usage:
    uv run python src/scripts/show_calendar.py --mode week --date 2025-12-09
    uv run python src/scripts/show_calendar.py --session alice --mode roadmap
"""

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.durations import format_duration
from core.source_client import close_source_client, get_source_client
from core.windows import resolve_window, window_label
from models.events import CalendarEvent, ViewMode
from services.calendar import CalendarFeed, CalendarView
from services.geometry import events_for_day, group_roadmap_lanes, layout_roadmap_lane
from services.view_state import ViewStateStore


def describe(event: CalendarEvent) -> str:
    if event.all_day:
        when = "all day"
    else:
        when = f"{event.start:%H:%M}-{event.end:%H:%M} ({format_duration(event.duration)})"
    owner = f" [{event.owner_name}]" if event.owner_name else ""
    return f"{when:<24} {event.type.value:<15} {event.title}{owner}"


def print_days(view: CalendarView):
    for day in view.window.days:
        day_events = events_for_day(view.events, day)
        if not day_events:
            continue
        print(f"\n{day:%a %Y-%m-%d}")
        for event in day_events:
            print(f"  {describe(event)}")


def print_roadmap(view: CalendarView):
    for owner_id, events in group_roadmap_lanes(view.events).items():
        name = events[0].owner_name or f"User {owner_id}"
        print(f"\n{name}")
        for bar in layout_roadmap_lane(events, view.window):
            print(f"  {bar.left_percent:5.1f}% +{bar.width_percent:5.1f}%  {bar.event_id}")


async def main(args):
    store = ViewStateStore(args.session)
    state = store.state
    if args.mode:
        state.mode = ViewMode(args.mode)
    if args.date:
        state.anchor_date = datetime.strptime(args.date, "%Y-%m-%d").date()

    window = resolve_window(state.mode, state.anchor_date, state.show_weekends)
    print(f"Calendar: {window_label(window, state.anchor_date)}")
    print(f"Fetching {window.start} to {window.last_day}...")

    feed = CalendarFeed(get_source_client(), lambda: state)
    try:
        view = await feed.load()
    finally:
        await close_source_client()

    print(f"  {len(view.events)} events")
    for diagnostic in view.diagnostics:
        print(f"  Skipped {diagnostic.source.value} record {diagnostic.record_id}: {diagnostic.message}")
    if view.failed_sources:
        print(f"  Unavailable: {', '.join(view.failed_sources)}")

    if window.mode == ViewMode.ROADMAP:
        print_roadmap(view)
    else:
        print_days(view)

    return 1 if view.failed_sources else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Print the unified calendar")
    parser.add_argument("--session", default="cli", help="View state session key (default: cli)")
    parser.add_argument("--mode", choices=[m.value for m in ViewMode], help="View mode")
    parser.add_argument("--date", help="Anchor date (YYYY-MM-DD), defaults to the stored anchor")
    sys.exit(asyncio.run(main(parser.parse_args())))
