from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from models.history import (
    TIMESTAMP_FORMAT,
    CompletionStats,
    PlayHistoryRecord,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS meditations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    filename TEXT NOT NULL,
    played_at DATETIME NOT NULL,
    update_at DATETIME,
    duration INTEGER,
    entry_type TEXT DEFAULT 'start'
);
"""

# Columns added after the first release, applied to older database files.
UPGRADE_COLUMNS = {
    "update_at": "ALTER TABLE meditations ADD COLUMN update_at DATETIME",
    "duration": "ALTER TABLE meditations ADD COLUMN duration INTEGER",
    "entry_type": "ALTER TABLE meditations ADD COLUMN entry_type TEXT DEFAULT 'start'",
}


class HistoryStoreError(Exception):
    """Raised when the play history database cannot be read or written."""
    pass


def _now() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def _to_record(row: sqlite3.Row) -> PlayHistoryRecord:
    return PlayHistoryRecord(
        id=row["id"],
        filename=row["filename"],
        played_at=parse_timestamp(row["played_at"]),
        completed_at=parse_timestamp(row["update_at"]),
        duration=row["duration"],
        entry_type=row["entry_type"] or "start",
    )


class HistoryStore:
    """SQLite log of meditation sessions.

    Every method raises HistoryStoreError on database failure; callers in
    the playback path downgrade that to a logged warning. A single
    connection is shared across threads behind a lock.
    """

    def __init__(self, db_path: Path | str = ":memory:"):
        self.db_path = str(db_path)
        self._lock = threading.RLock()
        self._db: Optional[sqlite3.Connection] = None
        self._initialize()

    def _initialize(self) -> None:
        try:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            db = sqlite3.connect(self.db_path, check_same_thread=False)
            db.row_factory = sqlite3.Row
            db.executescript(SCHEMA_SQL)

            existing = {row["name"] for row in db.execute("PRAGMA table_info(meditations)")}
            for column, statement in UPGRADE_COLUMNS.items():
                if column not in existing:
                    logger.info(f"Upgrading history database: adding column {column}")
                    db.execute(statement)
            db.commit()
            self._db = db
        except (sqlite3.Error, OSError) as e:
            raise HistoryStoreError(f"Database initialization failed: {e}") from e

    def _connection(self) -> sqlite3.Connection:
        if self._db is None:
            raise HistoryStoreError("History database is closed")
        return self._db

    def record_start(self, filename: str, duration: Optional[float] = None) -> int:
        """Record that ``filename`` started playing and return the record id.

        An existing open start record for the same file is reused, with its
        timestamp refreshed, rather than adding a duplicate.
        """
        with self._lock:
            try:
                db = self._connection()
                row = db.execute(
                    "SELECT id FROM meditations "
                    "WHERE filename = ? AND update_at IS NULL AND entry_type = 'start' "
                    "ORDER BY played_at DESC, id DESC LIMIT 1",
                    (filename,),
                ).fetchone()

                if row is not None:
                    db.execute("UPDATE meditations SET played_at = ? WHERE id = ?", (_now(), row["id"]))
                    db.commit()
                    return row["id"]

                cursor = db.execute(
                    "INSERT INTO meditations (filename, played_at, duration, entry_type) VALUES (?, ?, ?, 'start')",
                    (filename, _now(), int(duration) if duration else None),
                )
                db.commit()
                return cursor.lastrowid
            except sqlite3.Error as e:
                raise HistoryStoreError(f"Failed to record playback start: {e}") from e

    def record_completion(self, filename: str) -> int:
        """Mark the most recent open start record for ``filename`` complete.

        Returns the number of rows updated (0 when no record was open).
        """
        with self._lock:
            try:
                db = self._connection()
                row = db.execute(
                    "SELECT id FROM meditations "
                    "WHERE filename = ? AND update_at IS NULL AND entry_type = 'start' "
                    "ORDER BY played_at DESC, id DESC LIMIT 1",
                    (filename,),
                ).fetchone()
                if row is None:
                    return 0
                cursor = db.execute("UPDATE meditations SET update_at = ? WHERE id = ?", (_now(), row["id"]))
                db.commit()
                return cursor.rowcount
            except sqlite3.Error as e:
                raise HistoryStoreError(f"Failed to record playback completion: {e}") from e

    def record_recent_play(self, filename: str, duration: Optional[float] = None) -> int:
        """Log that ``filename`` was meaningfully listened to."""
        with self._lock:
            try:
                db = self._connection()
                cursor = db.execute(
                    "INSERT INTO meditations (filename, played_at, duration, entry_type) VALUES (?, ?, ?, 'recent')",
                    (filename, _now(), int(duration) if duration else None),
                )
                db.commit()
                return cursor.lastrowid
            except sqlite3.Error as e:
                raise HistoryStoreError(f"Failed to record recent play: {e}") from e

    def completion_stats(self) -> CompletionStats:
        with self._lock:
            try:
                db = self._connection()
                row = db.execute(
                    "SELECT COUNT(*) AS total, COUNT(update_at) AS completed "
                    "FROM meditations WHERE entry_type = 'start'"
                ).fetchone()
                return CompletionStats(total=row["total"], completed=row["completed"])
            except sqlite3.Error as e:
                raise HistoryStoreError(f"Failed to get completion stats: {e}") from e

    def recent_history(self, limit: int = 10) -> list[PlayHistoryRecord]:
        """Most recent meaningfully-listened entries, newest first."""
        with self._lock:
            try:
                rows = self._connection().execute(
                    "SELECT * FROM meditations WHERE entry_type = 'recent' "
                    "ORDER BY played_at DESC, id DESC LIMIT ?",
                    (limit,),
                ).fetchall()
                return [_to_record(row) for row in rows]
            except sqlite3.Error as e:
                raise HistoryStoreError(f"Failed to read recent history: {e}") from e

    def file_history(self, filename: str) -> list[PlayHistoryRecord]:
        """All start records for ``filename``, newest first."""
        with self._lock:
            try:
                rows = self._connection().execute(
                    "SELECT * FROM meditations WHERE filename = ? AND entry_type = 'start' "
                    "ORDER BY played_at DESC, id DESC",
                    (filename,),
                ).fetchall()
                return [_to_record(row) for row in rows]
            except sqlite3.Error as e:
                raise HistoryStoreError(f"Failed to read history for {filename}: {e}") from e

    def close(self) -> None:
        with self._lock:
            if self._db is not None:
                self._db.close()
                self._db = None
