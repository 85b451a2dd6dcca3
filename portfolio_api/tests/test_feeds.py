"""
Tests for RSS parsing of Medium feeds.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from portfolio_api.feeds import FeedParser, parse_feed_sync

MEDIUM_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:dc="http://purl.org/dc/elements/1.1/"
     xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>Stories by Tester on Medium</title>
    <link>https://medium.com/@tester</link>
    <description>Stories by Tester on Medium</description>
    <item>
      <title><![CDATA[Async Python in Practice]]></title>
      <link>https://medium.com/@tester/async-python-in-practice-1a2b3c4d5e6f</link>
      <guid isPermaLink="false">https://medium.com/p/1a2b3c4d5e6f</guid>
      <category><![CDATA[python]]></category>
      <category><![CDATA[asyncio]]></category>
      <dc:creator><![CDATA[Tester]]></dc:creator>
      <pubDate>Wed, 10 Jan 2024 12:00:00 GMT</pubDate>
      <content:encoded><![CDATA[<p>Event loops <img src="https://cdn-images.medium.com/a.png"> everywhere.</p>]]></content:encoded>
    </item>
    <item>
      <title>Second Story</title>
      <link>https://medium.com/@tester/second-story-abcdef123456</link>
      <guid isPermaLink="false">https://medium.com/p/abcdef123456</guid>
      <pubDate>Thu, 11 Jan 2024 08:30:00 GMT</pubDate>
      <description>Plain description only</description>
    </item>
  </channel>
</rss>
"""


class TestParseFeed:
    """Tests for parse_feed_sync."""

    def test_feed_metadata(self):
        feed = parse_feed_sync(MEDIUM_RSS, "https://medium.com/feed/@tester")
        assert feed.title == "Stories by Tester on Medium"
        assert feed.url == "https://medium.com/feed/@tester"
        assert len(feed.items) == 2

    def test_item_fields(self):
        item = parse_feed_sync(MEDIUM_RSS).items[0]
        assert item.title == "Async Python in Practice"
        assert item.guid == "https://medium.com/p/1a2b3c4d5e6f"
        assert item.url == "https://medium.com/@tester/async-python-in-practice-1a2b3c4d5e6f"
        assert item.author == "Tester"
        assert item.categories == ["python", "asyncio"]
        assert item.published == datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)

    def test_prefers_encoded_content(self):
        item = parse_feed_sync(MEDIUM_RSS).items[0]
        assert "cdn-images.medium.com/a.png" in item.content

    def test_falls_back_to_description(self):
        item = parse_feed_sync(MEDIUM_RSS).items[1]
        assert item.content == "Plain description only"
        assert item.categories == []

    def test_unparseable_content_raises(self):
        with pytest.raises(ValueError):
            parse_feed_sync("this is not a feed <<<")


class TestFetch:
    """Tests for FeedParser.fetch with the download stubbed out."""

    @pytest.mark.asyncio
    async def test_fetch_parses_downloaded_body(self):
        parser = FeedParser(timeout=5)
        with patch.object(parser, "_download", AsyncMock(return_value=MEDIUM_RSS)) as download:
            feed = await parser.fetch("https://medium.com/feed/@tester")
        download.assert_awaited_once_with("https://medium.com/feed/@tester")
        assert [item.title for item in feed.items] == ["Async Python in Practice", "Second Story"]

    @pytest.mark.asyncio
    async def test_connection_error_is_not_retried(self):
        parser = FeedParser(timeout=5)
        refused = aiohttp.ClientConnectionError("connection refused")

        with patch.object(aiohttp.ClientSession, "get", side_effect=refused) as get:
            with pytest.raises(aiohttp.ClientConnectionError):
                await parser.fetch("https://medium.com/feed/@tester")

        assert get.call_count == 1
