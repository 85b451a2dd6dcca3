"""
Project routes: public portfolio listing and admin management.
"""

from fastapi import APIRouter

from ..auth import AdminUser
from ..exceptions import parse_id
from ..schemas import ProjectRequest, ProjectResponse, envelope, paginated
from ..services import ProjectServiceDep
from ..validators import ListParamsDep

router = APIRouter(prefix="/projects", tags=["projects"])


# ─────────────────────────────────────────────────────────────
# Public
# ─────────────────────────────────────────────────────────────

@router.get("")
async def list_projects(
    service: ProjectServiceDep,
    params: ListParamsDep,
    featured: bool | None = None,
) -> dict:
    """List active projects."""
    page = service.list_projects(params, featured=featured)
    items = [ProjectResponse.from_db(p).model_dump() for p in page.items]
    return paginated(page, "projects", items)


@router.get("/stats")
async def project_stats(service: ProjectServiceDep, admin: AdminUser) -> dict:
    """Project counts for the admin dashboard."""
    return envelope(service.get_stats())


@router.get("/{project_id}")
async def get_project(project_id: str, service: ProjectServiceDep) -> dict:
    """Get a single active project."""
    project = service.get_public_project(parse_id(project_id, "Project not found"))
    return envelope({"project": ProjectResponse.from_db(project).model_dump()})


# ─────────────────────────────────────────────────────────────
# Admin
# ─────────────────────────────────────────────────────────────

@router.post("", status_code=201)
async def create_project(
    request: ProjectRequest,
    service: ProjectServiceDep,
    admin: AdminUser,
) -> dict:
    project = service.create_project(request, admin)
    return envelope(
        {"project": ProjectResponse.from_db(project).model_dump()},
        message="Project created successfully",
    )


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    request: ProjectRequest,
    service: ProjectServiceDep,
    admin: AdminUser,
) -> dict:
    project = service.update_project(parse_id(project_id, "Project not found"), request, admin)
    return envelope(
        {"project": ProjectResponse.from_db(project).model_dump()},
        message="Project updated successfully",
    )


@router.delete("/{project_id}")
async def delete_project(project_id: str, service: ProjectServiceDep, admin: AdminUser) -> dict:
    service.delete_project(parse_id(project_id, "Project not found"), admin)
    return envelope(message="Project deleted successfully")
