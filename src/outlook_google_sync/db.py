"""
SQLite persistence for the event mirror.
"""

import logging
import sqlite3
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from outlook_google_sync.models import CalendarEventRecord
from outlook_google_sync.models import MirrorStoreError

logger = logging.getLogger(__name__)


def _to_record(row: sqlite3.Row) -> CalendarEventRecord:
    return CalendarEventRecord(
        id=row["id"],
        calendar_uid=row["calendar_uid"],
        remote_id=row["remote_id"],
        summary=row["summary"],
        description=row["description"],
        start=datetime.fromisoformat(row["start_at"]),
        end=datetime.fromisoformat(row["end_at"]),
        is_recurring=bool(row["is_recurring"]),
    )


class MirrorDatabase:
    """Manages the SQLite mirror of events pushed to the remote calendar.

    Every write commits immediately; there is no batching.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.conn: sqlite3.Connection | None = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def connect(self):
        """Initialize and connect to the mirror database."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self.conn = sqlite3.connect(str(self.db_path))
            self.conn.row_factory = sqlite3.Row  # Enable column access by name
            self._init_schema()
        except sqlite3.Error as e:
            raise MirrorStoreError(f"Cannot open mirror database {self.db_path}: {e}") from e

    def _init_schema(self):
        """Create the mirror_events table if it doesn't exist."""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS mirror_events (
                id TEXT PRIMARY KEY,
                calendar_uid TEXT NOT NULL UNIQUE,
                remote_id TEXT NOT NULL DEFAULT '',
                summary TEXT NOT NULL DEFAULT '',
                description TEXT NOT NULL DEFAULT '',
                start_at TEXT NOT NULL,
                end_at TEXT NOT NULL,
                is_recurring INTEGER NOT NULL DEFAULT 0,
                created_at INTEGER NOT NULL,
                last_sync_at INTEGER NOT NULL
            )
        """)
        self.conn.commit()

    @contextmanager
    def _write(self, what: str):
        """Commit on success, roll back and raise MirrorStoreError on failure."""
        if self.conn is None:
            raise MirrorStoreError("Mirror database not connected")
        try:
            yield self.conn
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise MirrorStoreError(f"Failed to {what}: {e}") from e

    # ------------------------------------------------------------------ #
    # Queries                                                              #
    # ------------------------------------------------------------------ #

    def query_active_or_recurring(self, today: datetime) -> list[CalendarEventRecord]:
        """Return recurring records and records starting on or after ``today``."""
        if self.conn is None:
            raise MirrorStoreError("Mirror database not connected")
        try:
            cursor = self.conn.execute(
                "SELECT * FROM mirror_events WHERE is_recurring = 1 OR start_at >= ? "
                "ORDER BY start_at",
                (today.isoformat(),),
            )
            return [_to_record(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise MirrorStoreError(f"Failed to query mirror: {e}") from e

    def all_records(self) -> list[CalendarEventRecord]:
        """Return every record regardless of the sync window (used by clear)."""
        if self.conn is None:
            raise MirrorStoreError("Mirror database not connected")
        try:
            cursor = self.conn.execute("SELECT * FROM mirror_events ORDER BY start_at")
            return [_to_record(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise MirrorStoreError(f"Failed to query mirror: {e}") from e

    def get_by_calendar_uid(self, calendar_uid: str) -> CalendarEventRecord | None:
        if self.conn is None:
            raise MirrorStoreError("Mirror database not connected")
        try:
            cursor = self.conn.execute(
                "SELECT * FROM mirror_events WHERE calendar_uid = ? LIMIT 1", (calendar_uid,)
            )
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise MirrorStoreError(f"Failed to look up mirror record {calendar_uid}: {e}") from e
        return _to_record(row) if row else None

    # ------------------------------------------------------------------ #
    # Writes                                                               #
    # ------------------------------------------------------------------ #

    def add(self, record: CalendarEventRecord):
        """Insert a new mirror record."""
        timestamp = int(time.time())
        with self._write(f"add mirror record {record.calendar_uid}") as conn:
            conn.execute(
                "INSERT INTO mirror_events "
                "(id, calendar_uid, remote_id, summary, description, "
                " start_at, end_at, is_recurring, created_at, last_sync_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    record.id,
                    record.calendar_uid,
                    record.remote_id,
                    record.summary,
                    record.description,
                    record.start.isoformat(),
                    record.end.isoformat(),
                    int(record.is_recurring),
                    timestamp,
                    timestamp,
                ),
            )

    def update(self, record: CalendarEventRecord):
        """Overwrite the mutable fields of an existing record (matched by id)."""
        with self._write(f"update mirror record {record.calendar_uid}") as conn:
            cursor = conn.execute(
                "UPDATE mirror_events "
                "SET remote_id = ?, summary = ?, description = ?, start_at = ?, end_at = ?, "
                "    is_recurring = ?, last_sync_at = ? "
                "WHERE id = ?",
                (
                    record.remote_id,
                    record.summary,
                    record.description,
                    record.start.isoformat(),
                    record.end.isoformat(),
                    int(record.is_recurring),
                    int(time.time()),
                    record.id,
                ),
            )
            if cursor.rowcount == 0:
                logger.warning(f"Mirror record {record.id} ({record.calendar_uid}) not found")

    def remove(self, record: CalendarEventRecord):
        """Delete a mirror record by id."""
        with self._write(f"remove mirror record {record.calendar_uid}") as conn:
            conn.execute("DELETE FROM mirror_events WHERE id = ?", (record.id,))

    def close(self):
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None


def query_status(db_path: Path) -> sqlite3.Row | None:
    """
    Return an aggregate row for the mirror: total, recurring, last_sync_at.

    Returns None when the DB file does not exist or has no mirror_events table yet.
    """
    if not db_path.exists():
        return None
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        tables = {
            row["name"]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        }
        if "mirror_events" not in tables:
            return None
        return conn.execute("""
            SELECT
                COUNT(*)                          AS total,
                COALESCE(SUM(is_recurring), 0)    AS recurring,
                MAX(last_sync_at)                 AS last_sync_at
            FROM mirror_events
        """).fetchone()
    finally:
        conn.close()
