"""
Medium sync service: pulls the Medium RSS feed into the blog_posts table.

Each feed entry is normalized into a post record and reconciled by its
Medium identifier. Content fields are refreshed when the entry is newer,
when the stored row previously failed to sync, or when the stored row has
not been synced for a day. Views, likes, the featured flag, status and slug
belong to this site and are never written by a sync.

Runs are single-flight per feed URL. A second request while a run is
active returns immediately; a forced request cancels the active run, waits
for it to wind down and then starts a fresh one.
"""

import asyncio
import base64
import logging
import math
import re
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup

from ..database import Database, DBBlogPost
from ..database.converters import utcnow

if TYPE_CHECKING:
    from ..feeds import FeedItem, FeedParser

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200
MAX_TAGS = 10
MAX_CATEGORIES = 5
DESCRIPTION_LIMIT = 500
EXCERPT_LIMIT = 300
META_TITLE_LIMIT = 60
META_DESCRIPTION_LIMIT = 160
RESYNC_AFTER = timedelta(hours=24)

_HEX_ID = re.compile(r"/([a-f0-9]+)$")
_FIRST_IMAGE = re.compile(r'<img[^>]+src="([^">]+)"')
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")
_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


# ─────────────────────────────────────────────────────────────
# Normalization
# ─────────────────────────────────────────────────────────────

def html_to_text(html: str | None) -> str:
    """Strip markup and collapse whitespace."""
    if not html:
        return ""
    text = BeautifulSoup(html, "html.parser").get_text(separator=" ")
    return " ".join(text.split())


def estimate_reading_time(text: str) -> int:
    """Minutes to read text at 200 words per minute, rounded up."""
    word_count = len(text.split())
    return max(1, math.ceil(word_count / WORDS_PER_MINUTE))


def extract_first_image(html: str | None) -> str | None:
    """URL of the first <img> in the markup."""
    if not html:
        return None
    match = _FIRST_IMAGE.search(html)
    return match.group(1) if match else None


def derive_medium_id(identifier: str | None) -> str | None:
    """
    Stable external id for a feed entry.

    Medium guids end in a hex post id (https://medium.com/p/1a2b3c4d5e6f);
    anything else is base64-encoded and shortened to a 12 character token.
    """
    if not identifier:
        return None
    match = _HEX_ID.search(identifier)
    if match:
        return match.group(1)
    encoded = base64.b64encode(identifier.encode("utf-8")).decode("ascii")
    token = _NON_ALNUM.sub("", encoded)[:12]
    return token or None


def normalize_tags(categories: list[str]) -> list[str]:
    """Lower-case, trimmed, de-duplicated tags, capped at MAX_TAGS."""
    tags: list[str] = []
    for category in categories:
        if not isinstance(category, str):
            continue
        tag = category.strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags[:MAX_TAGS]


def slugify(title: str) -> str:
    return _SLUG_SEPARATORS.sub("-", title.lower()).strip("-")


@dataclass
class NormalizedPost:
    """A feed entry mapped onto blog post fields."""
    medium_id: str | None
    title: str
    description: str
    content: str
    excerpt: str
    author: str
    medium_url: str
    image_url: str | None
    published_at: datetime
    reading_time: int
    tags: list[str]
    categories: list[str]
    # False when the feed gave no date and published_at is the sync time
    dated: bool = True

    def content_fields(self, synced_at: datetime) -> dict:
        """Fields a sync is allowed to write."""
        fields = asdict(self)
        del fields["dated"]
        fields["last_synced_at"] = synced_at
        fields["sync_status"] = "synced"
        return fields


def normalize_entry(item: "FeedItem", default_author: str, now: datetime | None = None) -> NormalizedPost:
    """
    Map a feed entry onto post fields.

    Raises:
        ValueError: If the entry has no usable URL
    """
    now = now or utcnow()
    content = item.content or ""
    plain_text = html_to_text(content)

    snippet = html_to_text(item.summary) if item.summary and item.summary != content else ""
    description = (snippet or plain_text)[:DESCRIPTION_LIMIT]

    medium_url = item.url or (item.guid if item.guid and item.guid.startswith("http") else "")
    if not medium_url:
        raise ValueError("Feed entry has no URL")

    tags = normalize_tags(item.categories)

    return NormalizedPost(
        medium_id=derive_medium_id(item.guid or item.url),
        title=(item.title or "").strip() or "Untitled",
        description=description,
        content=content,
        excerpt=plain_text[:EXCERPT_LIMIT],
        author=item.author or default_author,
        medium_url=medium_url,
        image_url=extract_first_image(content),
        published_at=item.published or now,
        reading_time=estimate_reading_time(plain_text),
        tags=tags,
        categories=tags[:MAX_CATEGORIES],
        dated=item.published is not None,
    )


def needs_refresh(existing: DBBlogPost, incoming: NormalizedPost, now: datetime) -> bool:
    """Whether a stored post should take the incoming content."""
    if incoming.dated and incoming.published_at > existing.published_at:
        return True
    if existing.sync_status == "failed":
        return True
    if existing.last_synced_at is None:
        return True
    return now - existing.last_synced_at > RESYNC_AFTER


# ─────────────────────────────────────────────────────────────
# Sync
# ─────────────────────────────────────────────────────────────

@dataclass
class SyncResult:
    """Outcome of one sync request. Never raised, always returned."""
    success: bool
    message: str
    synced_count: int = 0
    error_count: int = 0
    skipped_count: int = 0
    total_processed: int = 0
    error: str | None = None
    run_id: int | None = None

    def to_dict(self) -> dict:
        return asdict(self)


class MediumSyncService:
    """Synchronizes posts from a Medium RSS feed."""

    def __init__(
        self,
        db: Database,
        feed_parser: "FeedParser",
        feed_url: str,
        default_author: str = "Portfolio Author",
    ):
        self.db = db
        self.feed_parser = feed_parser
        self.feed_url = feed_url
        self.default_author = default_author
        self._tasks: dict[str, asyncio.Task] = {}
        self._start_lock = asyncio.Lock()

    def is_running(self, feed_url: str | None = None) -> bool:
        task = self._tasks.get(feed_url or self.feed_url)
        return task is not None and not task.done()

    async def sync(self, force: bool = False) -> SyncResult:
        """
        Run a sync of the configured feed and wait for its result.

        Args:
            force: Cancel an active run for the same feed instead of
                returning "Sync already in progress"
        """
        url = self.feed_url

        # Serializes check-and-start so two forced requests cannot both start a run
        async with self._start_lock:
            running = self._tasks.get(url)

            if running is not None and not running.done():
                if not force:
                    logger.warning("Sync already in progress, skipping")
                    return SyncResult(success=False, message="Sync already in progress")

                logger.warning(f"Force sync requested; cancelling active sync of {url}")
                running.cancel()
                # The run records its own cancellation and returns a result
                await asyncio.wait([running])

            task = asyncio.create_task(self._run(url))
            self._tasks[url] = task
            task.add_done_callback(lambda t: self._forget(url, t))

        # Shielded so a disconnecting client does not abort the run
        return await asyncio.shield(task)

    async def force_sync(self) -> SyncResult:
        return await self.sync(force=True)

    def _forget(self, url: str, task: asyncio.Task):
        if self._tasks.get(url) is task:
            del self._tasks[url]

    async def _run(self, url: str) -> SyncResult:
        run_id = None
        synced = errors = skipped = total = 0

        try:
            run_id = self.db.sync_runs.start(url)
            logger.info(f"Starting Medium articles sync from {url}")

            feed = await self.feed_parser.fetch(url)
            total = len(feed.items)

            for item in feed.items:
                try:
                    outcome = self.sync_item(item)
                except Exception as e:
                    errors += 1
                    logger.error(f"Error syncing article: {item.title}: {e}")
                    self._mark_failed(item)
                else:
                    if outcome in ("created", "updated"):
                        synced += 1
                    elif outcome == "skipped":
                        skipped += 1
                # Let a forced restart interrupt between entries
                await asyncio.sleep(0)

            logger.info(f"Sync completed: {synced} synced, {errors} errors")
            self._finish(run_id, "completed", synced, errors, total)
            return SyncResult(
                success=True,
                message="Medium articles synced successfully",
                synced_count=synced,
                error_count=errors,
                skipped_count=skipped,
                total_processed=total,
                run_id=run_id,
            )

        except asyncio.CancelledError:
            logger.warning(f"Sync of {url} cancelled after {synced} synced entries")
            self._finish(run_id, "cancelled", synced, errors, total, "Cancelled by forced sync")
            return SyncResult(
                success=False,
                message="Sync cancelled by a forced sync",
                synced_count=synced,
                error_count=errors,
                skipped_count=skipped,
                total_processed=total,
                run_id=run_id,
            )

        except Exception as e:
            logger.error(f"Error during Medium sync: {e}")
            error = f"Failed to fetch Medium articles: {e}"
            self._finish(run_id, "failed", synced, errors, total, error)
            return SyncResult(
                success=False,
                message="Failed to sync Medium articles",
                synced_count=synced,
                error_count=errors,
                skipped_count=skipped,
                total_processed=total,
                error=error,
                run_id=run_id,
            )

    def sync_item(self, item: "FeedItem", now: datetime | None = None) -> str:
        """
        Reconcile one feed entry with the stored posts.

        Returns:
            "created", "updated", "unchanged" or "skipped"
        """
        now = now or utcnow()
        if not derive_medium_id(item.guid or item.url):
            logger.warning(f"Skipping article without Medium ID: {item.title}")
            return "skipped"

        post = normalize_entry(item, self.default_author, now)
        existing = self.db.posts.get_by_medium_id(post.medium_id)

        if existing is None:
            fields = post.content_fields(now)
            fields["slug"] = self._unique_slug(post.title, post.medium_id)
            fields["meta_title"] = post.title[:META_TITLE_LIMIT]
            fields["meta_description"] = post.description[:META_DESCRIPTION_LIMIT]
            self.db.posts.add(fields)
            logger.info(f"Created new article: {post.title}")
            return "created"

        if not needs_refresh(existing, post, now):
            return "unchanged"

        # medium_id is the lookup key; views, likes, featured, status and slug stay local
        fields = post.content_fields(now)
        del fields["medium_id"]
        if not post.dated:
            del fields["published_at"]
        self.db.posts.update(existing.id, fields)
        logger.info(f"Updated article: {post.title}")
        return "updated"

    def _unique_slug(self, title: str, medium_id: str) -> str:
        base = slugify(title) or medium_id.lower()
        candidate = base
        suffix = 2
        while self.db.posts.slug_exists(candidate):
            candidate = f"{base}-{suffix}"
            suffix += 1
        return candidate

    def _mark_failed(self, item: "FeedItem"):
        """Best-effort flag of the stored post behind a failed entry."""
        try:
            medium_id = derive_medium_id(item.guid or item.url)
            if medium_id:
                self.db.posts.mark_sync_failed(medium_id)
        except Exception as e:
            logger.error(f"Error marking article as failed: {e}")

    def _finish(
        self,
        run_id: int | None,
        status: str,
        synced: int,
        errors: int,
        total: int,
        error: str | None = None,
    ):
        if run_id is None:
            return
        try:
            self.db.sync_runs.finish(run_id, status, synced, errors, total, error)
        except Exception as e:
            logger.error(f"Could not record sync run {run_id}: {e}")

    def status(self) -> dict:
        """Current and most recent sync state."""
        last_post = self.db.posts.get_last_synced()
        last_run = self.db.sync_runs.get_latest(self.feed_url)
        return {
            "in_progress": self.is_running(),
            "feed_url": self.feed_url,
            "last_sync": last_post.last_synced_at.isoformat() if last_post and last_post.last_synced_at else None,
            "last_sync_status": last_post.sync_status if last_post else None,
            "last_run": _run_to_dict(last_run) if last_run else None,
            "recent_runs": [_run_to_dict(run) for run in self.db.sync_runs.get_recent(5)],
        }


def _run_to_dict(run) -> dict:
    return {
        "id": run.id,
        "status": run.status,
        "synced_count": run.synced_count,
        "error_count": run.error_count,
        "total_processed": run.total_processed,
        "error": run.error,
        "started_at": run.started_at.isoformat(),
        "finished_at": run.finished_at.isoformat() if run.finished_at else None,
    }
