"""
Configuration constants and environment setup.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
DB_PATH = Path(os.environ.get("CALENDAR_DB_PATH", PROJECT_ROOT / "data" / "db" / "team-calendar.db"))

# =============================================================================
# CALENDAR CONFIGURATION
# =============================================================================

# Wall-clock zone every instant is converted into before it reaches the grid
CALENDAR_TIMEZONE = os.environ.get("CALENDAR_TIMEZONE", "UTC")

# First day of the week: "sunday" or "monday"
CALENDAR_WEEK_START = os.environ.get("CALENDAR_WEEK_START", "sunday").lower()

MIN_DURATION_MINUTES = 15
SNAP_MINUTES = 15

# Hour rows rendered by the week/day grids (06:00 through 21:00)
FIRST_VISIBLE_HOUR = 6
LAST_VISIBLE_HOUR = 21

# Month cells render the first N events then "+K more"
MONTH_CELL_CAP = 3

# Roadmap shows the anchor month plus the two following months
ROADMAP_MONTHS = 3

# Sentinel for the "tasks without a project" filter value
PROJECT_NONE = "none"

# Hidden-type toggles: one user-facing group per key
VISIBILITY_GROUPS = {
    "synced": {"external_task", "booking"},
    "work": {"work_item"},
    "leave": {"leave_request", "public_holiday"},
    "block": {"time_block"},
}

# =============================================================================
# SOURCE SYSTEMS
# =============================================================================

CALENDAR_API_BASE_URL = os.environ.get("CALENDAR_API_BASE_URL", "http://localhost:5000/api")
CALENDAR_API_TOKEN = os.environ.get("CALENDAR_API_TOKEN", "")
HTTP_TIMEOUT_SECONDS = float(os.environ.get("HTTP_TIMEOUT_SECONDS", "15"))

# Read endpoint per event type, and the response key holding the record list
SOURCE_ENDPOINTS = {
    "external_task": ("/calendar/tasks", "tasks"),
    "work_item": ("/calendar/work-items", "workItems"),
    "leave_request": ("/calendar/holidays/requests", "requests"),
    "public_holiday": ("/calendar/public-holidays", "holidays"),
    "time_block": ("/calendar/blocks", "blocks"),
    "booking": ("/bookings/appointments", "bookings"),
}

FILTERS_ENDPOINT = "/calendar/filters"

# Partial-update (PATCH) path per event type
WRITE_PATHS = {
    "external_task": "/calendar/tasks/{id}",
    "time_block": "/calendar/blocks/{id}",
    "booking": "/bookings/appointments/{id}",
    "work_item": "/work-items/{id}",
}

# External task system expects "2025-12-09 13:00:00"
EXTERNAL_TASK_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
LOCAL_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

# =============================================================================
# API CONFIGURATION
# =============================================================================

CALENDAR_API_KEY = os.environ.get("CALENDAR_API_KEY", "")
API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
API_VERSION = "1.0.0"
