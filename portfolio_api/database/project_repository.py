"""
Project repository - CRUD operations for portfolio projects.
"""

import json

from .connection import DatabaseConnection
from .converters import row_to_project, to_iso, utcnow
from .models import DBProject
from .query import ListParams, Page, WhereClause, fetch_page, order_by, update_row

SORT_FIELDS = {
    "created_at": "created_at",
    "updated_at": "updated_at",
    "title": "title",
    "order": "sort_order",
    "featured": "featured",
}

# Public field name -> column name where they differ
COLUMNS = {"order": "sort_order"}


class ProjectRepository:
    """Repository for project operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def add(
        self,
        title: str,
        description: str,
        image_url: str,
        tech_stack: list[str],
        github_url: str,
        live_demo_url: str | None = None,
        featured: bool = False,
        order: int = 0,
        status: str = "active",
    ) -> int:
        """Add a new project. Returns project ID."""
        now = to_iso(utcnow())
        with self._db.conn() as conn:
            cursor = conn.execute(
                """INSERT INTO projects
                   (title, description, image_url, tech_stack, github_url, live_demo_url,
                    featured, sort_order, status, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (title, description, image_url, json.dumps(tech_stack), github_url,
                 live_demo_url, featured, order, status, now, now)
            )
            return cursor.lastrowid

    def get(self, project_id: int) -> DBProject | None:
        """Get single project by ID."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM projects WHERE id = ?", (project_id,)
            ).fetchone()
            return row_to_project(row) if row else None

    def get_many(
        self,
        params: ListParams,
        status: str | None = None,
        featured: bool | None = None,
    ) -> Page[DBProject]:
        """Get projects with optional filters, search and pagination."""
        where = WhereClause()
        if status is not None:
            where.add("status = ?", status)
        if featured is not None:
            where.add("featured = ?", featured)
        where.add_search(params.search, ["title", "description"], ["tech_stack"])

        with self._db.conn() as conn:
            return fetch_page(
                conn, "projects", where, params,
                order_by(params.sort, SORT_FIELDS, "-created_at"),
                row_to_project,
            )

    def update(self, project_id: int, fields: dict) -> bool:
        """Update project fields. Returns True if the project exists."""
        if not fields:
            return self.get(project_id) is not None
        with self._db.conn() as conn:
            return update_row(conn, "projects", project_id, fields, COLUMNS)

    def delete(self, project_id: int) -> bool:
        """Delete a project. Returns True if it existed."""
        with self._db.conn() as conn:
            cursor = conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
            return cursor.rowcount > 0

    def count(self, status: str | None = None, featured: bool | None = None) -> int:
        """Count projects matching the optional filters."""
        where = WhereClause()
        if status is not None:
            where.add("status = ?", status)
        if featured is not None:
            where.add("featured = ?", featured)
        with self._db.conn() as conn:
            return conn.execute(
                f"SELECT COUNT(*) FROM projects{where.sql}", where.params
            ).fetchone()[0]

    def count_by_status(self) -> dict[str, int]:
        """Project counts keyed by status."""
        with self._db.conn() as conn:
            rows = conn.execute(
                "SELECT status, COUNT(*) AS count FROM projects GROUP BY status ORDER BY status"
            ).fetchall()
            return {row["status"]: row["count"] for row in rows}
