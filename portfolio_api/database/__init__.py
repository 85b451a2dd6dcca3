"""
Database module - SQLite storage for projects, contact messages, users and blog posts.

Uses repository pattern for better separation of concerns.
"""

from .connection import DatabaseConnection
from .models import DBBlogPost, DBContactMessage, DBProject, DBSyncRun, DBUser
from .query import ListParams, Page
from .blog_repository import BlogPostRepository
from .contact_repository import ContactRepository
from .project_repository import ProjectRepository
from .sync_repository import SyncRunRepository
from .user_repository import UserRepository
from .database import Database

__all__ = [
    "Database",
    "DatabaseConnection",
    "DBBlogPost",
    "DBContactMessage",
    "DBProject",
    "DBSyncRun",
    "DBUser",
    "ListParams",
    "Page",
    "BlogPostRepository",
    "ContactRepository",
    "ProjectRepository",
    "SyncRunRepository",
    "UserRepository",
]
