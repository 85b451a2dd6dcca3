"""
Database models - dataclasses for database entities.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class DBUser:
    id: int
    username: str
    email: str | None
    password_hash: str
    role: str
    is_active: bool
    login_attempts: int
    lock_until: datetime | None
    last_login: datetime | None
    created_at: datetime
    updated_at: datetime

    def is_locked(self, now: datetime) -> bool:
        return self.lock_until is not None and self.lock_until > now


@dataclass
class DBProject:
    id: int
    title: str
    description: str
    image_url: str
    tech_stack: list[str]
    github_url: str
    live_demo_url: str | None
    featured: bool
    order: int
    status: str
    created_at: datetime
    updated_at: datetime


@dataclass
class DBContactMessage:
    id: int
    name: str
    email: str
    message: str
    status: str
    ip_address: str | None
    user_agent: str | None
    replied: bool
    replied_at: datetime | None
    notes: str | None
    created_at: datetime
    updated_at: datetime


@dataclass
class DBBlogPost:
    id: int
    medium_id: str
    slug: str
    title: str
    description: str
    content: str
    excerpt: str | None
    author: str | None
    medium_url: str
    image_url: str | None
    published_at: datetime
    reading_time: int
    status: str
    featured: bool
    views: int
    likes: int
    created_at: datetime
    updated_at: datetime
    tags: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    meta_title: str | None = None
    meta_description: str | None = None
    last_synced_at: datetime | None = None
    sync_status: str = "synced"


@dataclass
class DBSyncRun:
    id: int
    source_url: str
    status: str  # running, completed, failed, cancelled
    synced_count: int
    error_count: int
    total_processed: int
    error: str | None
    started_at: datetime
    finished_at: datetime | None
