"""
Contact message repository - storage for contact form submissions.
"""

from .connection import DatabaseConnection
from .converters import row_to_contact_message, to_iso, utcnow
from .models import DBContactMessage
from .query import ListParams, Page, WhereClause, fetch_page, order_by, update_row

SORT_FIELDS = {
    "created_at": "created_at",
    "updated_at": "updated_at",
    "name": "name",
    "email": "email",
    "status": "status",
}


class ContactRepository:
    """Repository for contact message operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def add(
        self,
        name: str,
        email: str,
        message: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
        status: str = "new",
    ) -> int:
        """Store a new contact message. Returns message ID."""
        now = to_iso(utcnow())
        with self._db.conn() as conn:
            cursor = conn.execute(
                """INSERT INTO contact_messages
                   (name, email, message, status, ip_address, user_agent, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (name, email, message, status, ip_address, user_agent, now, now)
            )
            return cursor.lastrowid

    def get(self, message_id: int) -> DBContactMessage | None:
        """Get single message by ID."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM contact_messages WHERE id = ?", (message_id,)
            ).fetchone()
            return row_to_contact_message(row) if row else None

    def get_many(self, params: ListParams, status: str | None = None) -> Page[DBContactMessage]:
        """Get messages with optional status filter, search and pagination."""
        where = WhereClause()
        if status is not None:
            where.add("status = ?", status)
        where.add_search(params.search, ["name", "email", "message"])

        with self._db.conn() as conn:
            return fetch_page(
                conn, "contact_messages", where, params,
                order_by(params.sort, SORT_FIELDS, "-created_at"),
                row_to_contact_message,
            )

    def update(self, message_id: int, fields: dict) -> bool:
        """Update message fields. Returns True if the message exists."""
        if not fields:
            return self.get(message_id) is not None
        with self._db.conn() as conn:
            return update_row(conn, "contact_messages", message_id, fields)

    def mark_read(self, message_id: int):
        """Move a new message to read."""
        with self._db.conn() as conn:
            conn.execute(
                "UPDATE contact_messages SET status = 'read', updated_at = ? "
                "WHERE id = ? AND status = 'new'",
                (to_iso(utcnow()), message_id)
            )

    def delete(self, message_id: int) -> bool:
        """Delete a message. Returns True if it existed."""
        with self._db.conn() as conn:
            cursor = conn.execute("DELETE FROM contact_messages WHERE id = ?", (message_id,))
            return cursor.rowcount > 0

    def count(self, status: str | None = None, replied: bool | None = None) -> int:
        where = WhereClause()
        if status is not None:
            where.add("status = ?", status)
        if replied is not None:
            where.add("replied = ?", replied)
        with self._db.conn() as conn:
            return conn.execute(
                f"SELECT COUNT(*) FROM contact_messages{where.sql}", where.params
            ).fetchone()[0]

    def count_by_status(self) -> dict[str, int]:
        with self._db.conn() as conn:
            rows = conn.execute(
                "SELECT status, COUNT(*) AS count FROM contact_messages GROUP BY status ORDER BY status"
            ).fetchall()
            return {row["status"]: row["count"] for row in rows}
