"""
Database connection management and schema initialization.
"""

import re
import sqlite3
from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from typing import Iterator


@lru_cache(maxsize=128)
def _compile_pattern(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


def _regexp(pattern: str | None, value: str | None) -> bool:
    """SQLite REGEXP implementation: case-insensitive search."""
    if pattern is None or value is None:
        return False
    return _compile_pattern(pattern).search(str(value)) is not None


class DatabaseConnection:
    """Manages database connection and schema."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @contextmanager
    def conn(self) -> Iterator[sqlite3.Connection]:
        """Get database connection with row factory."""
        connection = sqlite3.connect(self.db_path)
        connection.row_factory = sqlite3.Row
        connection.create_function("REGEXP", 2, _regexp, deterministic=True)
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _init_schema(self):
        """Initialize database schema."""
        with self.conn() as connection:
            connection.executescript("""
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    username TEXT UNIQUE NOT NULL,
                    email TEXT,
                    password_hash TEXT NOT NULL,
                    role TEXT CHECK(role IN ('admin', 'user')) DEFAULT 'admin',
                    is_active BOOLEAN DEFAULT TRUE,
                    login_attempts INTEGER DEFAULT 0,
                    lock_until TIMESTAMP,
                    last_login TIMESTAMP,
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                );

                CREATE TABLE IF NOT EXISTS projects (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL,
                    image_url TEXT NOT NULL,
                    tech_stack TEXT NOT NULL,
                    github_url TEXT NOT NULL,
                    live_demo_url TEXT,
                    featured BOOLEAN DEFAULT FALSE,
                    sort_order INTEGER DEFAULT 0,
                    status TEXT CHECK(status IN ('active', 'archived', 'draft')) DEFAULT 'active',
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                );

                CREATE TABLE IF NOT EXISTS contact_messages (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL,
                    message TEXT NOT NULL,
                    status TEXT CHECK(status IN ('new', 'read', 'replied', 'archived')) DEFAULT 'new',
                    ip_address TEXT,
                    user_agent TEXT,
                    replied BOOLEAN DEFAULT FALSE,
                    replied_at TIMESTAMP,
                    notes TEXT,
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                );

                CREATE TABLE IF NOT EXISTS blog_posts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    medium_id TEXT UNIQUE NOT NULL,
                    slug TEXT UNIQUE NOT NULL,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL,
                    content TEXT NOT NULL,
                    excerpt TEXT,
                    author TEXT,
                    tags TEXT NOT NULL DEFAULT '[]',
                    categories TEXT NOT NULL DEFAULT '[]',
                    medium_url TEXT NOT NULL,
                    image_url TEXT,
                    published_at TIMESTAMP NOT NULL,
                    reading_time INTEGER DEFAULT 5,
                    status TEXT CHECK(status IN ('published', 'draft', 'archived')) DEFAULT 'published',
                    featured BOOLEAN DEFAULT FALSE,
                    views INTEGER DEFAULT 0,
                    likes INTEGER DEFAULT 0,
                    meta_title TEXT,
                    meta_description TEXT,
                    last_synced_at TIMESTAMP,
                    sync_status TEXT CHECK(sync_status IN ('synced', 'pending', 'failed')) DEFAULT 'synced',
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                );

                CREATE TABLE IF NOT EXISTS sync_runs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    source_url TEXT NOT NULL,
                    status TEXT CHECK(status IN ('running', 'completed', 'failed', 'cancelled')) DEFAULT 'running',
                    synced_count INTEGER DEFAULT 0,
                    error_count INTEGER DEFAULT 0,
                    total_processed INTEGER DEFAULT 0,
                    error TEXT,
                    started_at TIMESTAMP NOT NULL,
                    finished_at TIMESTAMP
                );

                CREATE INDEX IF NOT EXISTS idx_projects_status_order ON projects(status, sort_order);
                CREATE INDEX IF NOT EXISTS idx_projects_featured ON projects(featured, created_at DESC);
                CREATE INDEX IF NOT EXISTS idx_contact_status ON contact_messages(status, created_at DESC);
                CREATE INDEX IF NOT EXISTS idx_contact_email ON contact_messages(email);
                CREATE INDEX IF NOT EXISTS idx_posts_published ON blog_posts(published_at DESC, status);
                CREATE INDEX IF NOT EXISTS idx_posts_featured ON blog_posts(featured, published_at DESC);
                CREATE INDEX IF NOT EXISTS idx_sync_runs_started ON sync_runs(started_at DESC);
            """)
