"""
Blog post repository - storage and queries for posts synced from Medium.
"""

from typing import Any

from .connection import DatabaseConnection
from .converters import row_to_blog_post, to_iso, utcnow
from .models import DBBlogPost
from .query import ListParams, Page, WhereClause, encode_value, fetch_page, order_by, update_row

SORT_FIELDS = {
    "published_at": "published_at",
    "created_at": "created_at",
    "title": "title",
    "views": "views",
    "likes": "likes",
    "reading_time": "reading_time",
}

# Columns writable through add()/update()
WRITABLE_COLUMNS = (
    "medium_id", "slug", "title", "description", "content", "excerpt", "author",
    "tags", "categories", "medium_url", "image_url", "published_at", "reading_time",
    "status", "featured", "views", "likes", "meta_title", "meta_description",
    "last_synced_at", "sync_status",
)


def _check_columns(fields: dict[str, Any]):
    unknown = set(fields) - set(WRITABLE_COLUMNS)
    if unknown:
        raise ValueError(f"Unknown blog post fields: {sorted(unknown)}")


class BlogPostRepository:
    """Repository for blog post operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def add(self, fields: dict[str, Any]) -> int:
        """Insert a post from a field mapping. Returns post ID."""
        _check_columns(fields)
        now = to_iso(utcnow())
        names = list(fields) + ["created_at", "updated_at"]
        values = [encode_value(fields[name]) for name in fields] + [now, now]
        with self._db.conn() as conn:
            cursor = conn.execute(
                f"INSERT INTO blog_posts ({', '.join(names)}) "
                f"VALUES ({', '.join('?' * len(names))})",
                values
            )
            return cursor.lastrowid

    def get(self, post_id: int) -> DBBlogPost | None:
        """Get single post by ID."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM blog_posts WHERE id = ?", (post_id,)
            ).fetchone()
            return row_to_blog_post(row) if row else None

    def get_by_slug(self, slug: str, status: str | None = None) -> DBBlogPost | None:
        """Get post by slug, optionally requiring a status."""
        query = "SELECT * FROM blog_posts WHERE slug = ?"
        params: list = [slug]
        if status is not None:
            query += " AND status = ?"
            params.append(status)
        with self._db.conn() as conn:
            row = conn.execute(query, params).fetchone()
            return row_to_blog_post(row) if row else None

    def get_by_medium_id(self, medium_id: str) -> DBBlogPost | None:
        """Get post by its Medium identifier."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM blog_posts WHERE medium_id = ?", (medium_id,)
            ).fetchone()
            return row_to_blog_post(row) if row else None

    def slug_exists(self, slug: str) -> bool:
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT 1 FROM blog_posts WHERE slug = ?", (slug,)
            ).fetchone()
            return row is not None

    def get_many(
        self,
        params: ListParams,
        status: str | None = None,
        featured: bool | None = None,
        tags: list[str] | None = None,
        categories: list[str] | None = None,
    ) -> Page[DBBlogPost]:
        """Get posts with filters, regex search and pagination."""
        where = WhereClause()
        if status is not None:
            where.add("status = ?", status)
        if featured is not None:
            where.add("featured = ?", featured)
        where.add_any_of("tags", tags)
        where.add_any_of("categories", categories)
        where.add_search(params.search, ["title", "description", "content"], ["tags"])

        with self._db.conn() as conn:
            return fetch_page(
                conn, "blog_posts", where, params,
                order_by(params.sort, SORT_FIELDS, "-published_at"),
                row_to_blog_post,
            )

    def get_featured(self, limit: int = 3) -> list[DBBlogPost]:
        """Newest featured published posts."""
        with self._db.conn() as conn:
            rows = conn.execute(
                """SELECT * FROM blog_posts
                   WHERE status = 'published' AND featured = 1
                   ORDER BY published_at DESC LIMIT ?""",
                (limit,)
            ).fetchall()
            return [row_to_blog_post(row) for row in rows]

    def get_related(self, post: DBBlogPost, limit: int = 3) -> list[DBBlogPost]:
        """Published posts sharing a tag or category with post, newest first."""
        if not post.tags and not post.categories:
            return []
        where = WhereClause().add("id != ?", post.id).add("status = 'published'")
        ors = []
        params: list = []
        for column, values in (("tags", post.tags), ("categories", post.categories)):
            if values:
                placeholders = ",".join("?" * len(values))
                ors.append(
                    f"EXISTS (SELECT 1 FROM json_each({column}) "
                    f"WHERE json_each.value IN ({placeholders}))"
                )
                params.extend(values)
        where.add(f"({' OR '.join(ors)})", *params)

        with self._db.conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM blog_posts{where.sql} ORDER BY published_at DESC LIMIT ?",
                [*where.params, limit]
            ).fetchall()
            return [row_to_blog_post(row) for row in rows]

    def increment_views(self, post_id: int) -> bool:
        """Atomically add one view."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                "UPDATE blog_posts SET views = views + 1 WHERE id = ?", (post_id,)
            )
            return cursor.rowcount > 0

    def update(self, post_id: int, fields: dict[str, Any]) -> bool:
        """Update post fields. Returns True if the post exists."""
        _check_columns(fields)
        if not fields:
            return self.get(post_id) is not None
        with self._db.conn() as conn:
            return update_row(conn, "blog_posts", post_id, fields)

    def mark_sync_failed(self, medium_id: str) -> bool:
        """Flag a post as failed to sync. Does nothing if it does not exist."""
        now = to_iso(utcnow())
        with self._db.conn() as conn:
            cursor = conn.execute(
                """UPDATE blog_posts SET sync_status = 'failed', last_synced_at = ?, updated_at = ?
                   WHERE medium_id = ?""",
                (now, now, medium_id)
            )
            return cursor.rowcount > 0

    def delete(self, post_id: int) -> bool:
        with self._db.conn() as conn:
            cursor = conn.execute("DELETE FROM blog_posts WHERE id = ?", (post_id,))
            return cursor.rowcount > 0

    def count(self, status: str | None = None, featured: bool | None = None) -> int:
        where = WhereClause()
        if status is not None:
            where.add("status = ?", status)
        if featured is not None:
            where.add("featured = ?", featured)
        with self._db.conn() as conn:
            return conn.execute(
                f"SELECT COUNT(*) FROM blog_posts{where.sql}", where.params
            ).fetchone()[0]

    def total_counters(self, status: str = "published") -> dict[str, int]:
        """Sum of views and likes across posts with the given status."""
        with self._db.conn() as conn:
            row = conn.execute(
                """SELECT COALESCE(SUM(views), 0) AS views, COALESCE(SUM(likes), 0) AS likes
                   FROM blog_posts WHERE status = ?""",
                (status,)
            ).fetchone()
            return {"views": row["views"], "likes": row["likes"]}

    def get_recent(self, limit: int = 5) -> list[DBBlogPost]:
        with self._db.conn() as conn:
            rows = conn.execute(
                """SELECT * FROM blog_posts WHERE status = 'published'
                   ORDER BY published_at DESC LIMIT ?""",
                (limit,)
            ).fetchall()
            return [row_to_blog_post(row) for row in rows]

    def get_top_tags(self, limit: int = 10) -> list[tuple[str, int]]:
        """Most frequent tags across published posts."""
        with self._db.conn() as conn:
            rows = conn.execute(
                """SELECT json_each.value AS tag, COUNT(*) AS count
                   FROM blog_posts, json_each(blog_posts.tags)
                   WHERE blog_posts.status = 'published'
                   GROUP BY json_each.value
                   ORDER BY count DESC, tag ASC
                   LIMIT ?""",
                (limit,)
            ).fetchall()
            return [(row["tag"], row["count"]) for row in rows]

    def get_last_synced(self) -> DBBlogPost | None:
        """Post with the most recent sync timestamp."""
        with self._db.conn() as conn:
            row = conn.execute(
                """SELECT * FROM blog_posts WHERE last_synced_at IS NOT NULL
                   ORDER BY last_synced_at DESC LIMIT 1"""
            ).fetchone()
            return row_to_blog_post(row) if row else None
