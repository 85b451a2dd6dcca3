"""
Blog routes: public posts, admin post management and Medium sync.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..auth import AdminUser
from ..exceptions import parse_id
from ..schemas import (
    PostDetailResponse,
    PostSummaryResponse,
    PostUpdateRequest,
    envelope,
    paginated,
)
from ..services import BlogServiceDep, SyncResult, SyncServiceDep
from ..validators import ListParamsDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blog", tags=["blog"])


def _sync_response(result: SyncResult) -> JSONResponse | dict:
    if result.success:
        return envelope(result.to_dict(), message=result.message)
    return JSONResponse(
        status_code=500,
        content={"status": "error", "message": result.message, "data": result.to_dict()},
    )


# ─────────────────────────────────────────────────────────────
# Admin: stats and sync
# ─────────────────────────────────────────────────────────────

@router.get("/admin/stats")
async def blog_stats(service: BlogServiceDep, admin: AdminUser) -> dict:
    return envelope(service.get_stats())


@router.post("/sync")
async def sync_medium(sync_service: SyncServiceDep, admin: AdminUser):
    """Pull the Medium feed. Reports "Sync already in progress" while one runs."""
    logger.info(f"Medium sync initiated by user {admin.username}")
    result = await sync_service.sync()
    return _sync_response(result)


@router.post("/sync/force")
async def force_sync_medium(sync_service: SyncServiceDep, admin: AdminUser):
    """Cancel any running sync and start a fresh one."""
    logger.info(f"Forced Medium sync initiated by user {admin.username}")
    result = await sync_service.force_sync()
    return _sync_response(result)


@router.get("/sync/status")
async def sync_status(sync_service: SyncServiceDep, admin: AdminUser) -> dict:
    return envelope(sync_service.status())


# ─────────────────────────────────────────────────────────────
# Public
# ─────────────────────────────────────────────────────────────

@router.get("")
async def list_posts(
    service: BlogServiceDep,
    params: ListParamsDep,
    featured: bool | None = None,
    tags: str | None = None,
    categories: str | None = None,
) -> dict:
    """List published posts, with featured posts on an unfiltered first page."""
    page, featured_posts = service.list_posts(params, featured=featured, tags=tags, categories=categories)
    items = [PostSummaryResponse.from_db(p).model_dump() for p in page.items]
    featured_items = [PostSummaryResponse.from_db(p).model_dump() for p in featured_posts]
    return paginated(page, "posts", items, featured_posts=featured_items or None)


@router.get("/{slug}")
async def get_post(slug: str, service: BlogServiceDep) -> dict:
    """Get a published post by slug. Each call counts one view."""
    post, related = service.view_post(slug)
    return envelope({
        "post": PostDetailResponse.from_db(post).model_dump(),
        "related_posts": [PostSummaryResponse.from_db(p).model_dump() for p in related],
    })


# ─────────────────────────────────────────────────────────────
# Admin: post management
# ─────────────────────────────────────────────────────────────

@router.put("/{post_id}")
async def update_post(
    post_id: str,
    body: PostUpdateRequest,
    service: BlogServiceDep,
    admin: AdminUser,
) -> dict:
    post = service.update_post(parse_id(post_id, "Blog post not found"), body, admin)
    return envelope(
        {"post": PostDetailResponse.from_db(post).model_dump()},
        message="Blog post updated successfully",
    )


@router.delete("/{post_id}")
async def delete_post(post_id: str, service: BlogServiceDep, admin: AdminUser) -> dict:
    service.delete_post(parse_id(post_id, "Blog post not found"), admin)
    return envelope(message="Blog post deleted successfully")
