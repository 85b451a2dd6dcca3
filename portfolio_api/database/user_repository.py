"""
Repository for user operations.
"""

from datetime import datetime, timedelta

from .connection import DatabaseConnection
from .converters import row_to_user, to_iso, utcnow
from .models import DBUser


class UserRepository:
    """Repository for user CRUD and login bookkeeping."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def create(
        self,
        username: str,
        password_hash: str,
        email: str | None = None,
        role: str = "admin",
    ) -> int:
        """Create a user. Returns user ID."""
        now = to_iso(utcnow())
        with self._db.conn() as conn:
            cursor = conn.execute(
                """INSERT INTO users (username, email, password_hash, role, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (username, email, password_hash, role, now, now)
            )
            return cursor.lastrowid

    def get_by_id(self, user_id: int) -> DBUser | None:
        """Get user by ID."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE id = ?", (user_id,)
            ).fetchone()
            return row_to_user(row) if row else None

    def get_by_username(self, username: str) -> DBUser | None:
        """Get user by username."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE username = ?", (username,)
            ).fetchone()
            return row_to_user(row) if row else None

    def record_failed_login(
        self,
        user: DBUser,
        max_attempts: int,
        lock_duration: timedelta,
        now: datetime | None = None,
    ) -> DBUser:
        """
        Count a failed login, locking the account once max_attempts is reached.

        An expired lock restarts the count at one.
        """
        now = now or utcnow()
        if user.lock_until is not None and user.lock_until <= now:
            attempts = 1
            lock_until = None
        else:
            attempts = user.login_attempts + 1
            lock_until = user.lock_until
            if attempts >= max_attempts and not user.is_locked(now):
                lock_until = now + lock_duration

        with self._db.conn() as conn:
            conn.execute(
                "UPDATE users SET login_attempts = ?, lock_until = ?, updated_at = ? WHERE id = ?",
                (attempts, to_iso(lock_until), to_iso(now), user.id)
            )
        user.login_attempts = attempts
        user.lock_until = lock_until
        return user

    def record_successful_login(self, user_id: int):
        """Reset failed attempts and stamp last login."""
        now = to_iso(utcnow())
        with self._db.conn() as conn:
            conn.execute(
                """UPDATE users SET login_attempts = 0, lock_until = NULL,
                   last_login = ?, updated_at = ? WHERE id = ?""",
                (now, now, user_id)
            )

    def update_email(self, user_id: int, email: str | None):
        with self._db.conn() as conn:
            conn.execute(
                "UPDATE users SET email = ?, updated_at = ? WHERE id = ?",
                (email, to_iso(utcnow()), user_id)
            )

    def update_password(self, user_id: int, password_hash: str):
        with self._db.conn() as conn:
            conn.execute(
                "UPDATE users SET password_hash = ?, updated_at = ? WHERE id = ?",
                (password_hash, to_iso(utcnow()), user_id)
            )

    def set_active(self, user_id: int, is_active: bool):
        with self._db.conn() as conn:
            conn.execute(
                "UPDATE users SET is_active = ?, updated_at = ? WHERE id = ?",
                (is_active, to_iso(utcnow()), user_id)
            )
