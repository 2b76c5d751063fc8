#!/usr/bin/env python3
"""
Reschedule one calendar event from the command line.

Runs the same gesture checks and origin-system writes as the calendar page.

Usage:
    uv run python src/scripts/move_event.py task-1042 --date 2025-12-09 --hour 15
    uv run python src/scripts/move_event.py block-17 --date 2025-12-09 --hour 17 --resize end
"""

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.source_client import close_source_client, get_source_client
from models.events import DropTarget, Edge
from services.session import CalendarSession
from services.view_state import ViewStateStore


async def main(args) -> int:
    new_date = datetime.strptime(args.date, "%Y-%m-%d").date()

    store = ViewStateStore(args.session)
    calendar = CalendarSession(store, get_source_client())
    request = None

    try:
        # Not saved: only this run looks at the anchor window
        store.state.anchor_date = (
            datetime.strptime(args.anchor, "%Y-%m-%d").date() if args.anchor else new_date
        )
        print(f"Loading calendar around {store.state.anchor_date}...")
        await calendar.refresh()

        event = calendar.find_event(args.event_id)
        if event is None:
            print(f"Event {args.event_id} not found in the loaded window")
            return 1
        print(f"  {event.title}: {event.start:%Y-%m-%d %H:%M} - {event.end:%Y-%m-%d %H:%M}")

        if args.resize:
            started = calendar.begin_resize(event, Edge(args.resize))
        else:
            started = calendar.begin_drag(event)
        if not started:
            calendar.cancel_gesture()
        else:
            request = await calendar.drop(DropTarget(new_date, args.hour))
            if request is not None:
                print(f"  {request.method} {request.path} {dict(request.body)}")
    finally:
        await close_source_client()

    for notice in calendar.notices:
        print(f"  [{notice.level}] {notice.text}")

    return 0 if request is not None else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Move or resize a calendar event")
    parser.add_argument("event_id", help="Unified event id, e.g. task-1042")
    parser.add_argument("--date", required=True, help="Target day (YYYY-MM-DD)")
    parser.add_argument("--hour", type=int, choices=range(24), metavar="HOUR", help="Target hour slot (0-23)")
    parser.add_argument("--resize", choices=[e.value for e in Edge], help="Resize this edge instead of moving")
    parser.add_argument("--anchor", help="Day whose window holds the event today (default: --date)")
    parser.add_argument("--session", default="cli", help="View state session key (default: cli)")
    return parser


if __name__ == "__main__":
    sys.exit(asyncio.run(main(build_parser().parse_args())))
