"""Console platform blog feeds (PlayStation Blog, Xbox Wire, Nintendo)."""

from __future__ import annotations

import logging

import httpx

from gamewire.ingestion.normalize import parse_timestamp, truncate_text
from gamewire.ingestion.records import STATUS_PUBLISHED, CandidateRecord, PostDetails
from gamewire.ingestion.rss_adapter import RSSAdapter, fetch_feed
from gamewire.ingestion.slug import slugify

logger = logging.getLogger(__name__)

_EXCERPT_LENGTH = 260
_UPDATE_KEYWORDS = ("patch", "update", "hotfix", "version")


def classify_post_type(title: str) -> str:
    """Posts about patches and updates are game updates; everything else is an announcement."""
    lower = title.lower()
    if any(keyword in lower for keyword in _UPDATE_KEYWORDS):
        return "game-update"
    return "studio-announcement"


def _entry_image(entry: dict) -> str | None:
    for enclosure in entry.get("enclosures") or []:
        if enclosure.get("href"):
            return enclosure["href"]
    for media in entry.get("media_content") or []:
        if media.get("url"):
            return media["url"]
    return None


class PlatformNewsAdapter(RSSAdapter):
    """First-party platform news into ``news_posts``, deduplicated by post URL."""

    @property
    def name(self) -> str:
        return "platform_news"

    def configure(self, settings: dict) -> None:
        """Accept platform feeds: {"feeds": [{"url", "source", "platform"}, ...]}.

        The Nintendo feed has no stable public URL, so it is only polled when
        NINTENDO_FEED_URL is set.
        """
        feeds = list(settings.get("feeds", []))
        if self._config.nintendo_feed_url:
            feeds.append({
                "url": self._config.nintendo_feed_url,
                "source": "nintendo",
                "platform": "nintendo",
            })
        super().configure({**settings, "feeds": feeds})
        self._max_items_per_feed = int(settings.get("limit") or settings.get("max_items_per_feed", 20))

    async def _fetch_one(self, client: httpx.AsyncClient, feed_config: dict) -> list[dict]:
        feed = await fetch_feed(
            client,
            feed_config["url"],
            timeout=self._config.feed_timeout_seconds,
            user_agent=self._config.user_agent,
        )
        entries = feed.entries[: self._max_items_per_feed]
        logger.info("Fetched %d posts from %s", len(entries), feed_config["source"])
        raw_items = []
        for entry in entries:
            content = entry.get("content")
            raw_items.append({
                "title": (entry.get("title") or "").strip(),
                "link": entry.get("link") or "",
                "body": content[0].get("value", "") if content else "",
                "snippet": entry.get("summary") or "",
                "image": _entry_image(entry),
                "published_at": parse_timestamp(entry.get("published") or entry.get("updated")),
                "source": feed_config["source"],
                "platform": feed_config.get("platform", "other"),
            })
        return raw_items

    def normalize(self, raw: dict) -> list[CandidateRecord]:
        title = raw["title"]
        link = raw["link"]
        if not title or not link:
            raise ValueError("post has no title or link")
        body = raw["body"] or raw["snippet"] or title
        excerpt = truncate_text(raw["snippet"] or body, _EXCERPT_LENGTH)
        return [
            CandidateRecord(
                content_type="news_post",
                title=title,
                slug=slugify(title),
                excerpt=excerpt,
                body=body,
                image_url=raw["image"],
                category=raw["source"],
                source_label=raw["source"],
                source_identifier=link,
                published_at=raw["published_at"],
                status=STATUS_PUBLISHED,
                details=PostDetails(
                    platform=raw["platform"],
                    post_type=classify_post_type(title),
                    source_url=link,
                ),
            )
        ]
