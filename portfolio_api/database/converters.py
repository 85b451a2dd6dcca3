"""
Database row converters - convert SQLite rows to dataclasses.
"""

import json
import sqlite3
from datetime import datetime, timezone

from .models import DBBlogPost, DBContactMessage, DBProject, DBSyncRun, DBUser


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: datetime | None) -> str | None:
    """Serialize a datetime for storage, normalizing naive values to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_datetime(value: str | None) -> datetime | None:
    """Parse a stored timestamp. Naive values are treated as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_list(value: str | None) -> list[str]:
    """Parse a JSON array column."""
    if not value:
        return []
    try:
        items = json.loads(value)
    except json.JSONDecodeError:
        return []
    return [str(item) for item in items] if isinstance(items, list) else []


def row_to_user(row: sqlite3.Row) -> DBUser:
    """Convert a database row to a DBUser."""
    return DBUser(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=row["role"],
        is_active=bool(row["is_active"]),
        login_attempts=row["login_attempts"] or 0,
        lock_until=parse_datetime(row["lock_until"]),
        last_login=parse_datetime(row["last_login"]),
        created_at=parse_datetime(row["created_at"]) or utcnow(),
        updated_at=parse_datetime(row["updated_at"]) or utcnow(),
    )


def row_to_project(row: sqlite3.Row) -> DBProject:
    """Convert a database row to a DBProject."""
    return DBProject(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        image_url=row["image_url"],
        tech_stack=parse_list(row["tech_stack"]),
        github_url=row["github_url"],
        live_demo_url=row["live_demo_url"],
        featured=bool(row["featured"]),
        order=row["sort_order"] or 0,
        status=row["status"],
        created_at=parse_datetime(row["created_at"]) or utcnow(),
        updated_at=parse_datetime(row["updated_at"]) or utcnow(),
    )


def row_to_contact_message(row: sqlite3.Row) -> DBContactMessage:
    """Convert a database row to a DBContactMessage."""
    return DBContactMessage(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        message=row["message"],
        status=row["status"],
        ip_address=row["ip_address"],
        user_agent=row["user_agent"],
        replied=bool(row["replied"]),
        replied_at=parse_datetime(row["replied_at"]),
        notes=row["notes"],
        created_at=parse_datetime(row["created_at"]) or utcnow(),
        updated_at=parse_datetime(row["updated_at"]) or utcnow(),
    )


def row_to_blog_post(row: sqlite3.Row) -> DBBlogPost:
    """Convert a database row to a DBBlogPost."""
    return DBBlogPost(
        id=row["id"],
        medium_id=row["medium_id"],
        slug=row["slug"],
        title=row["title"],
        description=row["description"],
        content=row["content"],
        excerpt=row["excerpt"],
        author=row["author"],
        tags=parse_list(row["tags"]),
        categories=parse_list(row["categories"]),
        medium_url=row["medium_url"],
        image_url=row["image_url"],
        published_at=parse_datetime(row["published_at"]) or utcnow(),
        reading_time=row["reading_time"] or 0,
        status=row["status"],
        featured=bool(row["featured"]),
        views=row["views"] or 0,
        likes=row["likes"] or 0,
        meta_title=row["meta_title"],
        meta_description=row["meta_description"],
        last_synced_at=parse_datetime(row["last_synced_at"]),
        sync_status=row["sync_status"],
        created_at=parse_datetime(row["created_at"]) or utcnow(),
        updated_at=parse_datetime(row["updated_at"]) or utcnow(),
    )


def row_to_sync_run(row: sqlite3.Row) -> DBSyncRun:
    """Convert a database row to a DBSyncRun."""
    return DBSyncRun(
        id=row["id"],
        source_url=row["source_url"],
        status=row["status"],
        synced_count=row["synced_count"] or 0,
        error_count=row["error_count"] or 0,
        total_processed=row["total_processed"] or 0,
        error=row["error"],
        started_at=parse_datetime(row["started_at"]) or utcnow(),
        finished_at=parse_datetime(row["finished_at"]),
    )
