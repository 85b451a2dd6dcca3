"""
Configuration and application state management.
"""

import os
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from fastapi import HTTPException

if TYPE_CHECKING:
    from .database import Database
    from .feeds import FeedParser
    from .services.blog_sync import MediumSyncService

# Load environment variables
load_dotenv()


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse boolean from environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


class Config:
    """Application configuration from environment."""
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DB_PATH: Path = Path(os.getenv("DB_PATH", "./data/portfolio.db"))
    PORT: int = int(os.getenv("PORT", "5000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # JWT signing. An empty secret means a random one is generated at startup.
    JWT_SECRET: str = os.getenv("JWT_SECRET", "")
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = int(os.getenv("JWT_EXPIRES_MINUTES", str(60 * 24 * 7)))

    # Admin account created on first startup
    ADMIN_USERNAME: str = os.getenv("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "admin123")
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "admin@portfolio.com")
    BOOTSTRAP_ADMIN: bool = _parse_bool(os.getenv("BOOTSTRAP_ADMIN"), default=True)

    # Medium sync
    MEDIUM_RSS_URL: str = os.getenv("MEDIUM_RSS_URL", "https://medium.com/feed/@yourusername")
    DEFAULT_AUTHOR: str = os.getenv("DEFAULT_AUTHOR", "Portfolio Author")
    FEED_TIMEOUT: int = int(os.getenv("FEED_TIMEOUT", "30"))  # seconds

    # Rate limiting (per client IP)
    RATE_LIMIT_WINDOW_MINUTES: int = int(os.getenv("RATE_LIMIT_WINDOW_MINUTES", "15"))
    RATE_LIMIT_MAX_REQUESTS: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
    CONTACT_RATE_LIMIT: str = os.getenv("CONTACT_RATE_LIMIT", "5/15minutes")

    # Take the client address from X-Forwarded-For (one trusted proxy hop)
    TRUST_PROXY: bool = _parse_bool(os.getenv("TRUST_PROXY"), default=True)

    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "")

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT.lower() == "production"

    @classmethod
    def cors_origins(cls) -> list[str]:
        """Origins allowed to call the API from a browser."""
        origins = ["http://localhost:3000", "http://localhost:5173"]
        if cls.FRONTEND_URL:
            origins.append(cls.FRONTEND_URL)
        return origins


config = Config()


class AppState:
    """Shared application state."""
    db: "Database | None" = None
    feed_parser: "FeedParser | None" = None
    sync_service: "MediumSyncService | None" = None


state = AppState()


def get_db() -> "Database":
    """Dependency to get database instance."""
    if not state.db:
        raise HTTPException(status_code=500, detail="Database not initialized")
    return state.db
