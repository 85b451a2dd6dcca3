"""
Tests for Medium feed normalization, reconciliation and sync concurrency.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import aiohttp
import pytest

from conftest import FEED_URL, make_feed, make_item
from portfolio_api.feeds import FeedParser
from portfolio_api.services.blog_sync import (
    MediumSyncService,
    derive_medium_id,
    estimate_reading_time,
    extract_first_image,
    html_to_text,
    normalize_entry,
    normalize_tags,
    slugify,
)

NOW = datetime(2024, 2, 1, 12, 0, tzinfo=timezone.utc)


class TestNormalizationHelpers:
    """Tests for the pure normalization helpers."""

    def test_reading_time_for_400_words(self):
        """400 words at 200 words per minute is two minutes."""
        assert estimate_reading_time(" ".join(["word"] * 400)) == 2

    def test_reading_time_rounds_up(self):
        assert estimate_reading_time(" ".join(["word"] * 401)) == 3

    def test_reading_time_minimum_one_minute(self):
        assert estimate_reading_time("") == 1

    def test_html_to_text_strips_markup(self):
        assert html_to_text("<p>Hello <b>big</b>\n\n world</p>") == "Hello big world"

    def test_extract_first_image(self):
        html = '<p>Intro</p><img alt="a" src="https://cdn.example.com/1.png"><img src="https://cdn.example.com/2.png">'
        assert extract_first_image(html) == "https://cdn.example.com/1.png"

    def test_extract_first_image_none(self):
        assert extract_first_image("<p>No images</p>") is None

    def test_medium_id_from_hex_guid(self):
        assert derive_medium_id("https://medium.com/p/1a2b3c4d5e6f") == "1a2b3c4d5e6f"

    def test_medium_id_fallback_token(self):
        """Non-Medium identifiers become a 12 character alphanumeric token."""
        token = derive_medium_id("https://example.com/posts/my-post")
        assert len(token) == 12
        assert token.isalnum()
        assert token == derive_medium_id("https://example.com/posts/my-post")

    def test_medium_id_missing(self):
        assert derive_medium_id(None) is None
        assert derive_medium_id("") is None

    def test_normalize_tags(self):
        assert normalize_tags(["Python", " python ", "AI", ""]) == ["python", "ai"]

    def test_normalize_tags_capped(self):
        tags = normalize_tags([f"tag{i}" for i in range(15)])
        assert len(tags) == 10

    def test_slugify(self):
        assert slugify("Hello, World: Python 3!") == "hello-world-python-3"


class TestNormalizeEntry:
    """Tests for mapping a feed entry onto post fields."""

    def test_basic_fields(self):
        item = make_item(content='<p>Some text</p><img src="https://img.example.com/a.png">')
        post = normalize_entry(item, "Default Author", NOW)
        assert post.medium_id == "1a2b3c4d5e6f"
        assert post.title == "Building APIs"
        assert post.author == "Tester"
        assert post.image_url == "https://img.example.com/a.png"
        assert post.tags == ["python", "apis"]
        assert post.categories == ["python", "apis"]
        assert post.excerpt == "Some text"

    def test_blank_title_becomes_untitled(self):
        post = normalize_entry(make_item(title="   "), "Default Author", NOW)
        assert post.title == "Untitled"

    def test_missing_author_uses_default(self):
        post = normalize_entry(make_item(author=None), "Default Author", NOW)
        assert post.author == "Default Author"

    def test_missing_date_uses_now(self):
        post = normalize_entry(make_item(published=None), "Default Author", NOW)
        assert post.published_at == NOW

    def test_description_and_excerpt_limits(self):
        body = "<p>" + "x" * 1000 + "</p>"
        post = normalize_entry(make_item(content=body), "Default Author", NOW)
        assert len(post.description) == 500
        assert len(post.excerpt) == 300

    def test_categories_are_first_five_tags(self):
        post = normalize_entry(make_item(categories=[f"t{i}" for i in range(8)]), "A", NOW)
        assert post.tags == [f"t{i}" for i in range(8)]
        assert post.categories == ["t0", "t1", "t2", "t3", "t4"]

    def test_entry_without_url_is_rejected(self):
        with pytest.raises(ValueError):
            normalize_entry(make_item(guid="urn:post:1", url=""), "A", NOW)


class TestSyncItem:
    """Tests for reconciling single entries with stored posts."""

    def test_creates_post(self, sync_service, test_db):
        assert sync_service.sync_item(make_item(), NOW) == "created"
        post = test_db.posts.get_by_medium_id("1a2b3c4d5e6f")
        assert post.slug == "building-apis"
        assert post.status == "published"
        assert post.sync_status == "synced"
        assert post.meta_title == "Building APIs"
        assert post.last_synced_at == NOW

    def test_rerun_is_idempotent(self, sync_service, test_db):
        """Syncing an unchanged entry again leaves the row untouched."""
        sync_service.sync_item(make_item(), NOW)
        post = test_db.posts.get_by_medium_id("1a2b3c4d5e6f")
        test_db.posts.update(post.id, {"views": 7, "likes": 3, "featured": True})

        assert sync_service.sync_item(make_item(), NOW + timedelta(hours=1)) == "unchanged"

        after = test_db.posts.get(post.id)
        assert after.views == 7
        assert after.likes == 3
        assert after.featured is True
        assert after.last_synced_at == NOW
        assert test_db.posts.count() == 1

    def test_newer_entry_updates_content_only(self, sync_service, test_db):
        sync_service.sync_item(make_item(), NOW)
        post = test_db.posts.get_by_medium_id("1a2b3c4d5e6f")
        test_db.posts.update(post.id, {"views": 12, "likes": 4, "featured": True, "status": "draft"})

        newer = make_item(
            title="Building Better APIs",
            content="<p>Rewritten body</p>",
            published=datetime(2024, 1, 20, tzinfo=timezone.utc),
        )
        assert sync_service.sync_item(newer, NOW + timedelta(hours=1)) == "updated"

        after = test_db.posts.get(post.id)
        assert after.title == "Building Better APIs"
        assert after.content == "<p>Rewritten body</p>"
        assert after.views == 12
        assert after.likes == 4
        assert after.featured is True
        assert after.status == "draft"
        assert after.slug == "building-apis"

    def test_older_entry_does_not_change_content(self, sync_service, test_db):
        sync_service.sync_item(make_item(), NOW)
        older = make_item(
            title="Old Title",
            published=datetime(2023, 12, 1, tzinfo=timezone.utc),
        )
        assert sync_service.sync_item(older, NOW + timedelta(hours=1)) == "unchanged"
        assert test_db.posts.get_by_medium_id("1a2b3c4d5e6f").title == "Building APIs"

    def test_failed_post_is_refreshed(self, sync_service, test_db):
        sync_service.sync_item(make_item(), NOW)
        test_db.posts.mark_sync_failed("1a2b3c4d5e6f")
        assert sync_service.sync_item(make_item(title="Fixed"), NOW + timedelta(hours=1)) == "updated"
        post = test_db.posts.get_by_medium_id("1a2b3c4d5e6f")
        assert post.title == "Fixed"
        assert post.sync_status == "synced"

    def test_stale_post_is_refreshed(self, sync_service, test_db):
        """Rows not synced for more than a day take the feed content again."""
        sync_service.sync_item(make_item(), NOW)
        later = NOW + timedelta(hours=25)
        assert sync_service.sync_item(make_item(title="Refreshed"), later) == "updated"
        assert test_db.posts.get_by_medium_id("1a2b3c4d5e6f").last_synced_at == later

    def test_undated_entry_is_not_newer_on_rerun(self, sync_service, test_db):
        sync_service.sync_item(make_item(published=None), NOW)
        assert test_db.posts.get_by_medium_id("1a2b3c4d5e6f").published_at == NOW

        later = NOW + timedelta(hours=1)
        assert sync_service.sync_item(make_item(published=None), later) == "unchanged"
        assert test_db.posts.get_by_medium_id("1a2b3c4d5e6f").published_at == NOW

    def test_stale_undated_entry_keeps_publish_date(self, sync_service, test_db):
        sync_service.sync_item(make_item(published=None), NOW)

        later = NOW + timedelta(hours=25)
        assert sync_service.sync_item(make_item(published=None, title="Refreshed"), later) == "updated"
        post = test_db.posts.get_by_medium_id("1a2b3c4d5e6f")
        assert post.title == "Refreshed"
        assert post.published_at == NOW
        assert post.last_synced_at == later

    def test_entry_without_identifier_is_skipped(self, sync_service, test_db):
        assert sync_service.sync_item(make_item(guid=None, url=""), NOW) == "skipped"
        assert test_db.posts.count() == 0

    def test_slug_collision_gets_suffix(self, sync_service, test_db):
        sync_service.sync_item(make_item(post_id="aaa111"), NOW)
        sync_service.sync_item(make_item(post_id="bbb222"), NOW)
        sync_service.sync_item(make_item(post_id="ccc333"), NOW)
        assert test_db.posts.get_by_medium_id("aaa111").slug == "building-apis"
        assert test_db.posts.get_by_medium_id("bbb222").slug == "building-apis-2"
        assert test_db.posts.get_by_medium_id("ccc333").slug == "building-apis-3"


class TestSyncRun:
    """Tests for a full sync run against a mocked feed."""

    @pytest.mark.asyncio
    async def test_sync_creates_posts_and_records_run(self, sync_service, feed_parser, test_db):
        feed_parser.fetch.return_value = make_feed([
            make_item(post_id="aaa111", title="First"),
            make_item(post_id="bbb222", title="Second"),
        ])

        result = await sync_service.sync()

        assert result.success is True
        assert result.synced_count == 2
        assert result.error_count == 0
        assert result.total_processed == 2
        feed_parser.fetch.assert_awaited_once_with(FEED_URL)

        run = test_db.sync_runs.get(result.run_id)
        assert run.status == "completed"
        assert run.synced_count == 2
        assert run.finished_at is not None

    @pytest.mark.asyncio
    async def test_sync_twice_is_idempotent(self, sync_service, feed_parser, test_db):
        feed_parser.fetch.return_value = make_feed([make_item()])
        await sync_service.sync()
        second = await sync_service.sync()
        assert second.success is True
        assert second.synced_count == 0
        assert test_db.posts.count() == 1

    @pytest.mark.asyncio
    async def test_undated_feed_resync_is_idempotent(self, sync_service, feed_parser, test_db):
        feed_parser.fetch.return_value = make_feed([make_item(published=None)])
        first = await sync_service.sync()
        published_at = test_db.posts.get_by_medium_id("1a2b3c4d5e6f").published_at

        second = await sync_service.sync()

        assert first.synced_count == 1
        assert second.synced_count == 0
        assert test_db.posts.get_by_medium_id("1a2b3c4d5e6f").published_at == published_at

    @pytest.mark.asyncio
    async def test_network_error_fails_run_after_one_request(self, test_db):
        service = MediumSyncService(db=test_db, feed_parser=FeedParser(timeout=5), feed_url=FEED_URL)
        refused = aiohttp.ClientConnectionError("connection refused")

        with patch.object(aiohttp.ClientSession, "get", side_effect=refused) as get:
            result = await service.sync()

        assert get.call_count == 1
        assert result.success is False
        assert result.error == "Failed to fetch Medium articles: connection refused"
        assert test_db.sync_runs.get(result.run_id).status == "failed"

    @pytest.mark.asyncio
    async def test_entries_without_identifier_are_counted_as_skipped(self, sync_service, feed_parser, test_db):
        feed_parser.fetch.return_value = make_feed([make_item(), make_item(guid=None, url="")])

        result = await sync_service.sync()

        assert result.success is True
        assert result.synced_count == 1
        assert result.skipped_count == 1
        assert result.error_count == 0
        assert result.total_processed == 2

    @pytest.mark.asyncio
    async def test_duplicate_entries_produce_one_post(self, sync_service, feed_parser, test_db):
        feed_parser.fetch.return_value = make_feed([make_item(), make_item()])
        result = await sync_service.sync()
        assert result.success is True
        assert test_db.posts.count() == 1

    @pytest.mark.asyncio
    async def test_fetch_failure_is_reported_not_raised(self, sync_service, feed_parser, test_db):
        feed_parser.fetch.side_effect = RuntimeError("connection refused")

        result = await sync_service.sync()

        assert result.success is False
        assert result.error == "Failed to fetch Medium articles: connection refused"
        assert test_db.sync_runs.get(result.run_id).status == "failed"

    @pytest.mark.asyncio
    async def test_bad_entry_counts_as_error_and_batch_continues(self, sync_service, feed_parser, test_db):
        feed_parser.fetch.return_value = make_feed([
            make_item(post_id="aaa111"),
            make_item(guid="urn:post:broken", url=""),
            make_item(post_id="ccc333", title="Third"),
        ])

        result = await sync_service.sync()

        assert result.success is True
        assert result.synced_count == 2
        assert result.error_count == 1
        assert result.total_processed == 3

    @pytest.mark.asyncio
    async def test_entry_error_marks_stored_post_failed(self, sync_service, feed_parser, test_db):
        sync_service.sync_item(make_item(), NOW)
        feed_parser.fetch.return_value = make_feed([
            make_item(published=datetime(2024, 3, 1, tzinfo=timezone.utc)),
        ])

        with patch.object(test_db.posts, "update", side_effect=RuntimeError("disk full")):
            result = await sync_service.sync()

        assert result.error_count == 1
        assert test_db.posts.get_by_medium_id("1a2b3c4d5e6f").sync_status == "failed"


class TestSyncConcurrency:
    """Tests for single-flight and forced syncs."""

    @pytest.mark.asyncio
    async def test_second_sync_reports_in_progress(self, sync_service, feed_parser):
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_fetch(url):
            started.set()
            await release.wait()
            return make_feed([make_item()])

        feed_parser.fetch.side_effect = slow_fetch

        first = asyncio.create_task(sync_service.sync())
        await started.wait()
        assert sync_service.is_running()

        second = await sync_service.sync()
        assert second.success is False
        assert second.message == "Sync already in progress"

        release.set()
        result = await first
        assert result.success is True
        assert result.synced_count == 1
        assert not sync_service.is_running()

    @pytest.mark.asyncio
    async def test_force_sync_cancels_running_sync(self, sync_service, feed_parser, test_db):
        started = asyncio.Event()
        active = 0
        max_active = 0
        calls = 0

        async def fetch(url):
            nonlocal active, max_active, calls
            calls += 1
            active += 1
            max_active = max(max_active, active)
            try:
                if calls == 1:
                    started.set()
                    await asyncio.Event().wait()  # blocks until cancelled
                return make_feed([make_item()])
            finally:
                active -= 1

        feed_parser.fetch.side_effect = fetch

        first = asyncio.create_task(sync_service.sync())
        await started.wait()

        forced = await sync_service.force_sync()
        cancelled = await first

        assert forced.success is True
        assert forced.synced_count == 1
        assert cancelled.success is False
        assert cancelled.message == "Sync cancelled by a forced sync"
        assert max_active == 1

        assert test_db.sync_runs.get(cancelled.run_id).status == "cancelled"
        assert test_db.sync_runs.get(forced.run_id).status == "completed"

    @pytest.mark.asyncio
    async def test_status_reports_last_run(self, sync_service, feed_parser):
        feed_parser.fetch.return_value = make_feed([make_item()])
        await sync_service.sync()

        status = sync_service.status()
        assert status["in_progress"] is False
        assert status["feed_url"] == FEED_URL
        assert status["last_sync_status"] == "synced"
        assert status["last_sync"] is not None
        assert status["last_run"]["status"] == "completed"
        assert [run["status"] for run in status["recent_runs"]] == ["completed"]
