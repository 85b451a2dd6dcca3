"""
Project service: business logic for portfolio projects.
"""

import logging

from ..database import Database, DBProject, DBUser, ListParams, Page
from ..exceptions import require_project
from ..schemas import ProjectRequest
from ..validators import require_valid_search

logger = logging.getLogger(__name__)

PUBLIC_STATUS = "active"
FEATURED_ORDER = 1000


def _apply_featured_order(fields: dict) -> dict:
    """Featured projects saved without an explicit order float to the top."""
    if fields.get("featured") and fields.get("order", 0) == 0:
        fields["order"] = FEATURED_ORDER
    return fields


class ProjectService:
    """Service for project-related business logic."""

    def __init__(self, db: Database):
        self.db = db

    def list_projects(self, params: ListParams, featured: bool | None = None) -> Page[DBProject]:
        """List active projects for the public site."""
        params.search = require_valid_search(params.search)
        return self.db.projects.get_many(
            params,
            status=PUBLIC_STATUS,
            featured=True if featured else None,
        )

    def get_public_project(self, project_id: int) -> DBProject:
        """
        Get an active project.

        Raises:
            HTTPException: 404 if missing or not active
        """
        project = self.db.projects.get(project_id)
        if project is not None and project.status != PUBLIC_STATUS:
            project = None
        return require_project(project)

    def create_project(self, request: ProjectRequest, actor: DBUser) -> DBProject:
        fields = _apply_featured_order(request.model_dump())
        project_id = self.db.projects.add(**fields)
        project = require_project(self.db.projects.get(project_id))
        logger.info(f"New project created: {project.title} by user {actor.username}")
        return project

    def update_project(self, project_id: int, request: ProjectRequest, actor: DBUser) -> DBProject:
        require_project(self.db.projects.get(project_id))
        fields = _apply_featured_order(request.model_dump())
        self.db.projects.update(project_id, fields)
        project = require_project(self.db.projects.get(project_id))
        logger.info(f"Project updated: {project.title} by user {actor.username}")
        return project

    def delete_project(self, project_id: int, actor: DBUser) -> None:
        project = require_project(self.db.projects.get(project_id))
        self.db.projects.delete(project_id)
        logger.info(f"Project deleted: {project.title} by user {actor.username}")

    def get_stats(self) -> dict:
        repo = self.db.projects
        return {
            "total_projects": repo.count(),
            "featured_projects": repo.count(featured=True),
            "active_projects": repo.count(status=PUBLIC_STATUS),
            "status_breakdown": repo.count_by_status(),
        }
