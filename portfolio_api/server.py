"""
Portfolio API Server

FastAPI application providing endpoints for:
- Projects (public listing, admin management)
- Contact messages (public form, admin inbox)
- Blog posts synced from Medium
- Authentication
- Health check
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import config, state
from .database import Database
from .exceptions import setup_error_handlers
from .feeds import FeedParser
from .rate_limit import setup_rate_limiting
from .routes import (
    auth_router,
    blog_router,
    contact_router,
    misc_router,
    projects_router,
)
from .services.auth_service import ensure_admin_user
from .services.blog_sync import MediumSyncService

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup application resources."""
    # Startup - skip if already initialized (e.g., by tests)
    if state.db is None:
        state.db = Database(config.DB_PATH)
        state.feed_parser = FeedParser(timeout=config.FEED_TIMEOUT)
        state.sync_service = MediumSyncService(
            db=state.db,
            feed_parser=state.feed_parser,
            feed_url=config.MEDIUM_RSS_URL,
            default_author=config.DEFAULT_AUTHOR,
        )
        ensure_admin_user(state.db)
        logger.info(f"Portfolio API started ({config.ENVIRONMENT}), database at {config.DB_PATH}")

    yield

    # Shutdown
    if state.sync_service and state.sync_service.is_running():
        logger.warning("Shutting down with a Medium sync in progress")


app = FastAPI(
    title="Portfolio API",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_rate_limiting(app)
setup_error_handlers(app)

# Include routers
app.include_router(misc_router, prefix="/api")
app.include_router(auth_router, prefix="/api")
app.include_router(projects_router, prefix="/api")
app.include_router(contact_router, prefix="/api")
app.include_router(blog_router, prefix="/api")
