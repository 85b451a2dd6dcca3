"""
Blog service: public post queries and admin post management.
"""

import logging

from ..database import Database, DBBlogPost, DBUser, ListParams, Page
from ..exceptions import require_post
from ..schemas import PostUpdateRequest
from ..validators import require_valid_search, split_csv

logger = logging.getLogger(__name__)

PUBLIC_STATUS = "published"
FEATURED_LIMIT = 3
RELATED_LIMIT = 3


class BlogService:
    """Service for blog post business logic."""

    def __init__(self, db: Database):
        self.db = db

    def list_posts(
        self,
        params: ListParams,
        featured: bool | None = None,
        tags: str | None = None,
        categories: str | None = None,
    ) -> tuple[Page[DBBlogPost], list[DBBlogPost]]:
        """
        List published posts.

        Returns:
            The requested page, plus the featured posts when the request is an
            unfiltered first page (empty list otherwise)
        """
        params.search = require_valid_search(params.search)
        tag_list = split_csv(tags)
        category_list = split_csv(categories)

        page = self.db.posts.get_many(
            params,
            status=PUBLIC_STATUS,
            featured=True if featured else None,
            tags=tag_list,
            categories=category_list,
        )

        unfiltered = not (featured or tag_list or category_list or params.search)
        featured_posts: list[DBBlogPost] = []
        if unfiltered and page.page == 1:
            featured_posts = self.db.posts.get_featured(FEATURED_LIMIT)
        return page, featured_posts

    def view_post(self, slug: str) -> tuple[DBBlogPost, list[DBBlogPost]]:
        """
        Get a published post by slug, counting the view.

        Returns:
            The post (with the view included) and up to three related posts

        Raises:
            HTTPException: 404 if no published post has this slug
        """
        post = require_post(self.db.posts.get_by_slug(slug, status=PUBLIC_STATUS))
        self.db.posts.increment_views(post.id)
        post.views += 1
        related = self.db.posts.get_related(post, RELATED_LIMIT)
        return post, related

    def update_post(self, post_id: int, request: PostUpdateRequest, actor: DBUser) -> DBBlogPost:
        require_post(self.db.posts.get(post_id))
        fields = request.model_dump(exclude_none=True)
        self.db.posts.update(post_id, fields)
        post = require_post(self.db.posts.get(post_id))
        logger.info(f"Blog post updated: {post.title} by user {actor.username}")
        return post

    def delete_post(self, post_id: int, actor: DBUser) -> None:
        post = require_post(self.db.posts.get(post_id))
        self.db.posts.delete(post_id)
        logger.info(f"Blog post deleted: {post.title} by user {actor.username}")

    def get_stats(self) -> dict:
        repo = self.db.posts
        counters = repo.total_counters(PUBLIC_STATUS)
        return {
            "total_posts": repo.count(status=PUBLIC_STATUS),
            "featured_posts": repo.count(status=PUBLIC_STATUS, featured=True),
            "draft_posts": repo.count(status="draft"),
            "total_views": counters["views"],
            "total_likes": counters["likes"],
            "recent_posts": [
                {
                    "id": p.id,
                    "title": p.title,
                    "published_at": p.published_at.isoformat(),
                    "views": p.views,
                }
                for p in repo.get_recent(5)
            ],
            "top_tags": [{"tag": tag, "count": count} for tag, count in repo.get_top_tags(10)],
        }
