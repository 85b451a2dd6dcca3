"""
Database facade - provides unified access to all repositories.
"""

from pathlib import Path

from .connection import DatabaseConnection
from .blog_repository import BlogPostRepository
from .contact_repository import ContactRepository
from .project_repository import ProjectRepository
from .sync_repository import SyncRunRepository
from .user_repository import UserRepository


class Database:
    """
    Unified database access facade.

    Each resource gets its own repository; all share one connection manager.
    """

    def __init__(self, db_path: Path):
        self._connection = DatabaseConnection(db_path)

        self.users = UserRepository(self._connection)
        self.projects = ProjectRepository(self._connection)
        self.messages = ContactRepository(self._connection)
        self.posts = BlogPostRepository(self._connection)
        self.sync_runs = SyncRunRepository(self._connection)

    def ping(self) -> bool:
        """Check that the database answers a trivial query."""
        try:
            with self._connection.conn() as conn:
                conn.execute("SELECT 1").fetchone()
            return True
        except Exception:
            return False
