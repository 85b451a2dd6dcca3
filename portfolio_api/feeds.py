"""
Medium RSS client.

Downloads the author feed with aiohttp and maps its entries with feedparser.
Medium publishes RSS 2.0 with the full post body in content:encoded, the
author in dc:creator and one <category> per tag.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

import aiohttp
import feedparser

logger = logging.getLogger(__name__)


@dataclass
class FeedItem:
    """One feed entry, before normalization into a blog post."""
    guid: str | None
    url: str
    title: str
    author: str | None
    published: datetime | None
    content: str
    summary: str | None = None
    categories: list[str] = field(default_factory=list)


@dataclass
class Feed:
    url: str
    title: str
    description: str | None
    items: list[FeedItem]
    last_fetched: datetime


def _struct_to_datetime(value) -> datetime | None:
    """feedparser normalizes dates to UTC time structs."""
    if not value:
        return None
    try:
        return datetime(*value[:6], tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None


def _entry_body(entry) -> str:
    """content:encoded when present, else the summary or description."""
    if entry.get("content"):
        return entry.content[0].value
    return entry.get("summary") or entry.get("description") or ""


def _entry_link(entry) -> str:
    link = entry.get("link", "")
    if link:
        return link
    for candidate in entry.get("links", []):
        if candidate.get("rel") == "alternate" or candidate.get("type") == "text/html":
            return candidate.get("href", "")
    return ""


def _entry_to_item(entry) -> FeedItem:
    return FeedItem(
        guid=entry.get("id") or None,
        url=_entry_link(entry),
        title=entry.get("title", ""),
        author=entry.get("author"),
        published=(
            _struct_to_datetime(entry.get("published_parsed"))
            or _struct_to_datetime(entry.get("updated_parsed"))
        ),
        content=_entry_body(entry),
        summary=entry.get("summary"),
        categories=[
            tag.get("term") for tag in entry.get("tags", [])
            if isinstance(tag.get("term"), str)
        ],
    )


class FeedParser:
    """Fetches and parses the Medium feed."""

    def __init__(self, timeout: int = 30, user_agent: str | None = None):
        self.timeout = timeout
        self.user_agent = user_agent or "Portfolio API/1.0 (+feed sync)"

    async def fetch(self, url: str) -> Feed:
        """Download and parse a feed URL."""
        body = await self._download(url)
        feed = self._parse(url, body)
        logger.info(f"Fetched {len(feed.items)} entries from {url}")
        return feed

    async def _download(self, url: str) -> str:
        """GET the feed body. A failed request is not retried."""
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url, headers={"User-Agent": self.user_agent}) as resp:
                resp.raise_for_status()
                return await resp.text()

    def _parse(self, url: str, body: str) -> Feed:
        """
        Map a feed document onto Feed/FeedItem.

        Raises:
            ValueError: If the document is malformed and yields no entries
        """
        parsed = feedparser.parse(body)
        if parsed.bozo and not parsed.entries:
            raise ValueError(f"Failed to parse feed: {parsed.bozo_exception}")

        return Feed(
            url=url,
            title=parsed.feed.get("title", "Unknown Feed"),
            description=parsed.feed.get("description") or parsed.feed.get("subtitle"),
            items=[_entry_to_item(entry) for entry in parsed.entries],
            last_fetched=datetime.now(timezone.utc),
        )


def parse_feed_sync(content: str, url: str = "") -> Feed:
    """Parse an already-downloaded feed document."""
    return FeedParser()._parse(url, content)
