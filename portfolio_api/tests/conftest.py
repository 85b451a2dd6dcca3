"""
Pytest fixtures for portfolio API tests.
"""

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from portfolio_api.auth import create_access_token, hash_password
from portfolio_api.config import state
from portfolio_api.database import Database
from portfolio_api.feeds import Feed, FeedItem
from portfolio_api.rate_limit import limiter
from portfolio_api.server import app
from portfolio_api.services.blog_sync import MediumSyncService

FEED_URL = "https://medium.com/feed/@tester"
ADMIN_PASSWORD = "Secret123"


def make_item(
    post_id: str = "1a2b3c4d5e6f",
    title: str = "Building APIs",
    content: str = "<p>Hello world from the test suite.</p>",
    published: datetime | None = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc),
    categories: list[str] | None = None,
    **overrides,
) -> FeedItem:
    """Build a Medium-style feed entry."""
    fields = dict(
        guid=f"https://medium.com/p/{post_id}",
        url=f"https://medium.com/@tester/post-{post_id}",
        title=title,
        author="Tester",
        published=published,
        content=content,
        summary=None,
        categories=categories if categories is not None else ["Python", "APIs"],
    )
    fields.update(overrides)
    return FeedItem(**fields)


def make_feed(items: list[FeedItem]) -> Feed:
    return Feed(
        url=FEED_URL,
        title="Tester on Medium",
        description=None,
        items=items,
        last_fetched=datetime.now(timezone.utc),
    )


def add_post(db: Database, medium_id: str, **fields) -> int:
    """Insert a blog post row directly."""
    values = dict(
        medium_id=medium_id,
        slug=f"post-{medium_id}",
        title=f"Post {medium_id}",
        description="A post description",
        content="<p>Body</p>",
        medium_url=f"https://medium.com/p/{medium_id}",
        published_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        tags=["python"],
        categories=["python"],
    )
    values.update(fields)
    return db.posts.add(values)


@pytest.fixture
def temp_db_path():
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        yield Path(f.name)
    # Cleanup
    if os.path.exists(f.name):
        os.unlink(f.name)


@pytest.fixture
def test_db(temp_db_path):
    """Create a test database instance."""
    db = Database(temp_db_path)
    yield db


@pytest.fixture
def feed_parser():
    """Feed parser whose fetch() returns an empty feed unless told otherwise."""
    parser = MagicMock()
    parser.fetch = AsyncMock(return_value=make_feed([]))
    return parser


@pytest.fixture
def sync_service(test_db, feed_parser):
    return MediumSyncService(
        db=test_db,
        feed_parser=feed_parser,
        feed_url=FEED_URL,
        default_author="Portfolio Author",
    )


@pytest.fixture
def client(test_db, feed_parser, sync_service):
    """Create a test client with an isolated database and a mocked feed."""
    # Store original state
    original_db = state.db
    original_feed_parser = state.feed_parser
    original_sync_service = state.sync_service

    # Set up test state with fresh instances
    state.db = test_db
    state.feed_parser = feed_parser
    state.sync_service = sync_service
    limiter.reset()

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    # Restore original state
    state.db = original_db
    state.feed_parser = original_feed_parser
    state.sync_service = original_sync_service
    limiter.reset()


@pytest.fixture
def admin_user(test_db):
    """An active admin account."""
    user_id = test_db.users.create(
        username="admin",
        password_hash=hash_password(ADMIN_PASSWORD),
        email="admin@example.com",
        role="admin",
    )
    return test_db.users.get_by_id(user_id)


@pytest.fixture
def auth_headers(admin_user):
    """Bearer headers for the admin account."""
    return {"Authorization": f"Bearer {create_access_token(admin_user)}"}


@pytest.fixture
def user_headers(test_db):
    """Bearer headers for a non-admin account."""
    user_id = test_db.users.create(
        username="visitor",
        password_hash=hash_password(ADMIN_PASSWORD),
        role="user",
    )
    return {"Authorization": f"Bearer {create_access_token(test_db.users.get_by_id(user_id))}"}
