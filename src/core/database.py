"""
SQLite storage for persisted view state and API request logs.
"""

import sqlite3

from core.config import DB_PATH


def get_connection() -> sqlite3.Connection:
    """Get a database connection."""
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    return sqlite3.connect(DB_PATH)


def create_schema(conn: sqlite3.Connection):
    """Create tables and indexes if they don't exist."""
    cursor = conn.cursor()

    # Per-session calendar preferences (JSON payload)
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS view_states (
            session_key TEXT PRIMARY KEY,
            payload TEXT NOT NULL,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # API request logging
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS api_requests (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            request_id TEXT UNIQUE NOT NULL,
            timestamp TEXT NOT NULL,
            endpoint TEXT NOT NULL,
            method TEXT NOT NULL,
            client_ip TEXT,
            event_id TEXT,
            event_type TEXT,
            status_code INTEGER NOT NULL,
            error_code TEXT,
            error_message TEXT,
            processing_time_ms INTEGER NOT NULL,
            events_returned INTEGER
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS api_request_details (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            request_id TEXT NOT NULL,
            detail_type TEXT NOT NULL CHECK(detail_type IN ('validation_error', 'source_failure', 'write_request', 'warning')),
            message TEXT NOT NULL,
            FOREIGN KEY (request_id) REFERENCES api_requests(request_id)
        )
    """)

    cursor.execute(
        "CREATE INDEX IF NOT EXISTS idx_api_requests_timestamp ON api_requests(timestamp)"
    )
    cursor.execute(
        "CREATE INDEX IF NOT EXISTS idx_api_request_details_request ON api_request_details(request_id)"
    )
    conn.commit()


def load_view_state_payload(conn: sqlite3.Connection, session_key: str) -> str | None:
    """Return the stored JSON payload for a session, or None."""
    cursor = conn.cursor()
    cursor.execute("SELECT payload FROM view_states WHERE session_key = ?", (session_key,))
    row = cursor.fetchone()
    return row[0] if row else None


def save_view_state_payload(conn: sqlite3.Connection, session_key: str, payload: str):
    """Insert or replace the stored payload for a session."""
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO view_states (session_key, payload, updated_at)
        VALUES (?, ?, CURRENT_TIMESTAMP)
        ON CONFLICT(session_key) DO UPDATE SET
            payload = excluded.payload,
            updated_at = excluded.updated_at
        """,
        (session_key, payload),
    )
    conn.commit()


def delete_view_state_payload(conn: sqlite3.Connection, session_key: str):
    cursor = conn.cursor()
    cursor.execute("DELETE FROM view_states WHERE session_key = ?", (session_key,))
    conn.commit()
