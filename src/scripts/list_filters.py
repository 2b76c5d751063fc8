#!/usr/bin/env python3
"""
List teams, their members and all users known to the calendar.

Usage:
    uv run python src/scripts/list_filters.py
"""

import asyncio
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.errors import SourceFetchError
from core.filters import team_members
from core.source_client import close_source_client, get_source_client
from services.calendar import fetch_filter_options


async def main():
    """Print filter options as the calendar pickers would offer them."""
    client = get_source_client()
    print("Fetching filter options...\n")

    try:
        options = await fetch_filter_options(client)
    except SourceFetchError as e:
        print(f"Error fetching filters: {e.message}")
        return 1
    finally:
        await close_source_client()

    print(f"Found {len(options.teams)} teams and {len(options.users)} users\n")
    print("=" * 80)

    for team in options.teams:
        members = team_members(team.id, options)
        print(f"\nTeam: {team.name} (ID: {team.id})")
        if members:
            print(f"  Members ({len(members)}):")
            for user in members:
                print(f"    - {user.name}")
        else:
            print("  Members: None")
        print("-" * 80)

    print("\nAll users:")
    for user in options.users:
        linked = f", task admin {user.external_admin_id}" if user.external_admin_id else ""
        print(f"  {user.id}: {user.name} <{user.email or '-'}>{linked}")

    print("\nDone!")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
