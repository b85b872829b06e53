"""RSS/Atom news feed adapter."""

from __future__ import annotations

import logging

import feedparser
import httpx

from gamewire.ingestion.adapter import SourceAdapter
from gamewire.ingestion.normalize import (
    extract_image,
    parse_timestamp,
    truncate_text,
)
from gamewire.ingestion.records import STATUS_PUBLISHED, CandidateRecord
from gamewire.ingestion.slug import slugify

logger = logging.getLogger(__name__)

_FEED_ACCEPT = "application/rss+xml, application/xml, text/xml, */*"
_EXCERPT_LENGTH = 200
_BODY_LENGTH = 1500


def _entry_text(entry: dict) -> str:
    """Best available HTML body: description, then summary, then content:encoded."""
    text = entry.get("description") or entry.get("summary")
    if text:
        return text
    content = entry.get("content")
    if content:
        return content[0].get("value", "")
    return ""


def _entry_link(entry: dict) -> str:
    link = entry.get("link") or ""
    if link:
        return link
    for candidate in entry.get("links", []):
        if candidate.get("href"):
            return candidate["href"]
    return ""


def _entry_category(entry: dict) -> str:
    tags = entry.get("tags") or []
    if tags and tags[0].get("term"):
        return tags[0]["term"].strip()
    return ""


def _entry_published(entry: dict) -> str | None:
    return parse_timestamp(entry.get("published") or entry.get("updated"))


async def fetch_feed(
    client: httpx.AsyncClient,
    url: str,
    *,
    timeout: float,
    user_agent: str,
) -> feedparser.FeedParserDict:
    """GET a feed with a bounded timeout and parse it. Raises on HTTP or parse failure."""
    response = await client.get(
        url,
        headers={"User-Agent": user_agent, "Accept": _FEED_ACCEPT},
        timeout=timeout,
        follow_redirects=True,
    )
    response.raise_for_status()
    feed = feedparser.parse(response.text)
    if feed.bozo and not feed.entries:
        raise ValueError(f"Unparseable feed: {feed.get('bozo_exception')}")
    return feed


class RSSAdapter(SourceAdapter):
    """Editorial news feeds into ``news_articles``, published immediately."""

    def __init__(self, config, images=None) -> None:
        super().__init__(config, images)
        self._feeds: list[dict] = []
        self._max_items_per_feed = 10

    @property
    def name(self) -> str:
        return "rss"

    def configure(self, settings: dict) -> None:
        """Accept feed configuration.

        Expected format:
        {
            "feeds": [{"url": "...", "source": "IGN", "category": "IGN News"}, ...],
            "max_items_per_feed": 10
        }
        """
        self._feeds = settings.get("feeds", [])
        self._max_items_per_feed = settings.get("max_items_per_feed", 10)
        if settings.get("limit"):
            self._max_items_per_feed = int(settings["limit"])

    async def fetch_batch(self, client: httpx.AsyncClient, errors: list[str]) -> list[dict]:
        """Poll each feed in turn; a failing feed contributes nothing and is recorded."""
        raw_items: list[dict] = []
        for feed_config in self._feeds:
            source = feed_config.get("source", "unknown")
            try:
                raw_items.extend(await self._fetch_one(client, feed_config))
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("Failed to fetch feed %s (%s): %s", source, feed_config.get("url"), exc)
                errors.append(f"Error fetching {source}: {exc}")
        return raw_items

    async def _fetch_one(self, client: httpx.AsyncClient, feed_config: dict) -> list[dict]:
        url = feed_config["url"]
        source = feed_config["source"]
        feed = await fetch_feed(
            client,
            url,
            timeout=self._config.feed_timeout_seconds,
            user_agent=self._config.user_agent,
        )
        entries = feed.entries[: self._max_items_per_feed]
        logger.info("Fetched %d entries from %s", len(entries), source)
        return [
            {
                "title": (entry.get("title") or "").strip(),
                "link": _entry_link(entry),
                "description": _entry_text(entry),
                "published_at": _entry_published(entry),
                "source": source,
                "category": feed_config.get("category") or _entry_category(entry) or source,
            }
            for entry in entries
        ]

    def normalize(self, raw: dict) -> list[CandidateRecord]:
        source = raw["source"]
        title = raw["title"]
        if not title or not raw["link"]:
            raise ValueError("feed entry has no title or link")
        description = raw["description"]
        excerpt = truncate_text(description, _EXCERPT_LENGTH)
        body = truncate_text(description, _BODY_LENGTH)
        return [
            CandidateRecord(
                content_type="news_article",
                title=title,
                slug=slugify(title),
                excerpt=excerpt or f"Latest gaming news from {source}",
                body=body or (
                    f"Read more about {title} at {source}. This story is developing "
                    "and more information will be added as it becomes available."
                ),
                image_url=extract_image(description) or self._images.for_source(source),
                category=raw["category"],
                source_label=source,
                source_identifier=raw["link"],
                published_at=raw["published_at"],
                status=STATUS_PUBLISHED,
            )
        ]

