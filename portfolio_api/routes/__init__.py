"""
API route modules.
"""

from .auth import router as auth_router
from .blog import router as blog_router
from .contact import router as contact_router
from .misc import router as misc_router
from .projects import router as projects_router

__all__ = [
    "auth_router",
    "blog_router",
    "contact_router",
    "misc_router",
    "projects_router",
]
