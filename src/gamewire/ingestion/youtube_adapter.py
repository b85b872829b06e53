"""YouTube Data API adapter: latest uploads of the platform holders' channels."""

from __future__ import annotations

import logging
from html import escape

import httpx

from gamewire.ingestion.adapter import SourceAdapter
from gamewire.ingestion.normalize import parse_timestamp, truncate_text
from gamewire.ingestion.records import STATUS_PUBLISHED, CandidateRecord, PostDetails
from gamewire.ingestion.slug import slugify

logger = logging.getLogger(__name__)

SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
WATCH_URL = "https://www.youtube.com/watch?v={}"

_EXCERPT_LENGTH = 260
_THUMBNAIL_PREFERENCE = ("maxres", "standard", "high", "medium", "default")


def best_thumbnail(thumbnails: dict) -> str | None:
    """Highest-resolution thumbnail URL available."""
    for key in _THUMBNAIL_PREFERENCE:
        url = (thumbnails.get(key) or {}).get("url")
        if url:
            return url
    return None


def video_body(title: str, description: str, video_url: str) -> str:
    return (
        '<div class="youtube-video">\n'
        f"  <h2>{escape(title)}</h2>\n"
        f"  <p>{escape(description)}</p>\n"
        f'  <p><a href="{video_url}" target="_blank" rel="noopener noreferrer">'
        "Watch on YouTube</a></p>\n"
        "</div>"
    )


class YouTubeAdapter(SourceAdapter):
    """Channel uploads into ``news_posts``, all tagged as studio announcements."""

    def __init__(self, config, images=None) -> None:
        super().__init__(config, images)
        self._channels: list[dict] = []
        self._max_results = 10

    @property
    def name(self) -> str:
        return "youtube"

    def configure(self, settings: dict) -> None:
        """Expected format: {"channels": [{"id", "label", "platform"}, ...], "max_results": 10}."""
        self._channels = settings.get("channels", [])
        self._max_results = int(settings.get("maxResults") or settings.get("max_results", 10))

    def missing_settings(self) -> list[str]:
        return [] if self._config.youtube_api_key else ["YOUTUBE_API_KEY"]

    async def search_channel(self, client: httpx.AsyncClient, channel_id: str) -> list[dict]:
        resp = await client.get(
            SEARCH_URL,
            params={
                "key": self._config.youtube_api_key,
                "channelId": channel_id,
                "part": "snippet",
                "order": "date",
                "type": "video",
                "maxResults": self._max_results,
            },
        )
        resp.raise_for_status()
        return resp.json().get("items", [])

    async def fetch_batch(self, client: httpx.AsyncClient, errors: list[str]) -> list[dict]:
        raw_items: list[dict] = []
        for channel in self._channels:
            try:
                items = await self.search_channel(client, channel["id"])
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("YouTube search failed for %s: %s", channel["label"], exc)
                errors.append(f"Error fetching YouTube channel {channel['label']}: {exc}")
                continue
            logger.info("Fetched %d video(s) from %s", len(items), channel["label"])
            for item in items:
                video_id = (item.get("id") or {}).get("videoId")
                if not video_id:
                    continue
                raw_items.append({
                    "video_id": video_id,
                    "snippet": item.get("snippet") or {},
                    "channel": channel,
                })
        return raw_items

    def describe(self, raw: dict) -> str:
        return str(raw["snippet"].get("title") or raw["video_id"])

    def normalize(self, raw: dict) -> list[CandidateRecord]:
        snippet = raw["snippet"]
        channel = raw["channel"]
        title = (snippet.get("title") or "").strip()
        description = snippet.get("description") or ""
        video_url = WATCH_URL.format(raw["video_id"])
        source = channel["label"].lower()
        return [
            CandidateRecord(
                content_type="news_post",
                title=title,
                slug=slugify(title, suffix=raw["video_id"]),
                excerpt=truncate_text(description, _EXCERPT_LENGTH),
                body=video_body(title, description, video_url),
                image_url=best_thumbnail(snippet.get("thumbnails") or {}),
                category=source,
                source_label=source,
                source_identifier=video_url,
                published_at=parse_timestamp(snippet.get("publishedAt")),
                status=STATUS_PUBLISHED,
                details=PostDetails(
                    platform=channel.get("platform", "other"),
                    post_type="studio-announcement",
                    source_url=video_url,
                ),
            )
        ]
