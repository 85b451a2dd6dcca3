"""
Service layer for business logic.

Services encapsulate business logic, keeping routes as thin HTTP adapters.
Each service receives its dependencies via constructor injection.

Usage in routes:
    from ..services import ProjectServiceDep

    @router.get("")
    async def list_projects(service: ProjectServiceDep):
        return service.list_projects(ListParams())
"""

from typing import Annotated

from fastapi import Depends, HTTPException

from ..config import get_db, state
from ..database import Database

from .auth_service import AuthService
from .blog_service import BlogService
from .blog_sync import MediumSyncService, SyncResult
from .contact_service import ContactService
from .project_service import ProjectService

__all__ = [
    # Services
    "AuthService",
    "BlogService",
    "ContactService",
    "MediumSyncService",
    "ProjectService",
    "SyncResult",
    # Dependency factories
    "get_auth_service",
    "get_blog_service",
    "get_contact_service",
    "get_project_service",
    "get_sync_service",
    # Type aliases for dependency injection
    "AuthServiceDep",
    "BlogServiceDep",
    "ContactServiceDep",
    "ProjectServiceDep",
    "SyncServiceDep",
]


def get_project_service(db: Annotated[Database, Depends(get_db)]) -> ProjectService:
    """Dependency to get ProjectService instance."""
    return ProjectService(db=db)


def get_contact_service(db: Annotated[Database, Depends(get_db)]) -> ContactService:
    """Dependency to get ContactService instance."""
    return ContactService(db=db)


def get_blog_service(db: Annotated[Database, Depends(get_db)]) -> BlogService:
    """Dependency to get BlogService instance."""
    return BlogService(db=db)


def get_auth_service(db: Annotated[Database, Depends(get_db)]) -> AuthService:
    """Dependency to get AuthService instance."""
    return AuthService(db=db)


def get_sync_service() -> MediumSyncService:
    """
    Dependency to get the shared MediumSyncService.

    The sync service is a process-wide singleton because it owns the
    registry of running sync tasks.
    """
    if not state.sync_service:
        raise HTTPException(status_code=500, detail="Sync service not initialized")
    return state.sync_service


ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]
ContactServiceDep = Annotated[ContactService, Depends(get_contact_service)]
BlogServiceDep = Annotated[BlogService, Depends(get_blog_service)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
SyncServiceDep = Annotated[MediumSyncService, Depends(get_sync_service)]
