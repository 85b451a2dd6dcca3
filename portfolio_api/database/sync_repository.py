"""
Sync run repository - history of Medium synchronization runs.
"""

from .connection import DatabaseConnection
from .converters import row_to_sync_run, to_iso, utcnow
from .models import DBSyncRun


class SyncRunRepository:
    """Repository for sync run bookkeeping."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def start(self, source_url: str) -> int:
        """Record the start of a run. Returns run ID."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                "INSERT INTO sync_runs (source_url, status, started_at) VALUES (?, 'running', ?)",
                (source_url, to_iso(utcnow()))
            )
            return cursor.lastrowid

    def finish(
        self,
        run_id: int,
        status: str,
        synced_count: int = 0,
        error_count: int = 0,
        total_processed: int = 0,
        error: str | None = None,
    ):
        """Record the outcome of a run."""
        with self._db.conn() as conn:
            conn.execute(
                """UPDATE sync_runs SET status = ?, synced_count = ?, error_count = ?,
                   total_processed = ?, error = ?, finished_at = ?
                   WHERE id = ?""",
                (status, synced_count, error_count, total_processed, error,
                 to_iso(utcnow()), run_id)
            )

    def get(self, run_id: int) -> DBSyncRun | None:
        with self._db.conn() as conn:
            row = conn.execute("SELECT * FROM sync_runs WHERE id = ?", (run_id,)).fetchone()
            return row_to_sync_run(row) if row else None

    def get_latest(self, source_url: str | None = None) -> DBSyncRun | None:
        """Most recently started run, optionally for one feed URL."""
        query = "SELECT * FROM sync_runs"
        params: list = []
        if source_url is not None:
            query += " WHERE source_url = ?"
            params.append(source_url)
        query += " ORDER BY started_at DESC, id DESC LIMIT 1"
        with self._db.conn() as conn:
            row = conn.execute(query, params).fetchone()
            return row_to_sync_run(row) if row else None

    def get_recent(self, limit: int = 10) -> list[DBSyncRun]:
        with self._db.conn() as conn:
            rows = conn.execute(
                "SELECT * FROM sync_runs ORDER BY started_at DESC, id DESC LIMIT ?", (limit,)
            ).fetchall()
            return [row_to_sync_run(row) for row in rows]
