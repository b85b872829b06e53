"""Steam store adapter.

Two-stage fetch: the most-played chart gives app ids, then each app's store
details and news are fetched one app at a time with a fixed delay between
apps. One app yields several content types: a review (when it has a
Metacritic score), gallery screenshots, trailer videos and news articles.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from gamewire.ingestion.adapter import SourceAdapter
from gamewire.ingestion.normalize import from_unix, strip_html, truncate_text
from gamewire.ingestion.records import (
    STATUS_PUBLISHED,
    CandidateRecord,
    GalleryDetails,
    ReviewDetails,
    VideoDetails,
)
from gamewire.ingestion.slug import slugify

logger = logging.getLogger(__name__)

MOST_PLAYED_URL = "https://api.steampowered.com/ISteamChartsService/GetMostPlayedGames/v1/"
APP_DETAILS_URL = "https://store.steampowered.com/api/appdetails"
APP_NEWS_URL = "https://api.steampowered.com/ISteamNews/GetNewsForApp/v2/"

_CHART_SIZE = 20
_EXCERPT_LENGTH = 200


def _platforms(details: dict) -> str:
    flags = details.get("platforms") or {}
    names = [label for key, label in (("windows", "PC"), ("mac", "Mac"), ("linux", "Linux")) if flags.get(key)]
    return ", ".join(names) or "PC"


class SteamAdapter(SourceAdapter):
    """Most-played Steam games into reviews, gallery images, videos and news."""

    def __init__(self, config, images=None) -> None:
        super().__init__(config, images)
        self._max_apps = 10
        self._max_screenshots = 3
        self._max_movies = 2
        self._max_news = 2
        self._delay = config.steam_request_delay_seconds

    @property
    def name(self) -> str:
        return "steam"

    def configure(self, settings: dict) -> None:
        self._max_apps = int(settings.get("limit") or settings.get("max_apps", 10))
        self._max_screenshots = int(settings.get("max_screenshots", 3))
        self._max_movies = int(settings.get("max_movies", 2))
        self._max_news = int(settings.get("max_news", 2))
        self._delay = float(settings.get("request_delay", self._config.steam_request_delay_seconds))

    async def top_app_ids(self, client: httpx.AsyncClient) -> list[int]:
        resp = await client.get(MOST_PLAYED_URL)
        resp.raise_for_status()
        ranks = resp.json().get("response", {}).get("ranks", [])
        return [rank["appid"] for rank in ranks[:_CHART_SIZE] if rank.get("appid")]

    async def app_details(self, client: httpx.AsyncClient, app_id: int) -> dict | None:
        """Store details for one app, or None unless it is a game."""
        resp = await client.get(APP_DETAILS_URL, params={"appids": app_id})
        resp.raise_for_status()
        entry = resp.json().get(str(app_id)) or {}
        data = entry.get("data")
        if not entry.get("success") or not data or data.get("type") != "game":
            return None
        return data

    async def app_news(self, client: httpx.AsyncClient, app_id: int) -> list[dict]:
        resp = await client.get(APP_NEWS_URL, params={"appid": app_id, "count": 3})
        resp.raise_for_status()
        return resp.json().get("appnews", {}).get("newsitems", [])

    async def fetch_batch(self, client: httpx.AsyncClient, errors: list[str]) -> list[dict]:
        app_ids = (await self.top_app_ids(client))[: self._max_apps]
        logger.info("Steam chart returned %d app(s)", len(app_ids))

        raw_items = []
        for index, app_id in enumerate(app_ids):
            # Consecutive store requests are spaced out to stay under Steam's rate limit
            if index:
                await asyncio.sleep(self._delay)
            try:
                details = await self.app_details(client, app_id)
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("Steam details failed for app %s: %s", app_id, exc)
                errors.append(f"Error fetching Steam app {app_id}: {exc}")
                continue
            if details is None:
                continue
            try:
                news = await self.app_news(client, app_id)
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("Steam news failed for app %s: %s", app_id, exc)
                errors.append(f"Error fetching Steam news for {details.get('name', app_id)}: {exc}")
                news = []
            raw_items.append({"app_id": app_id, "details": details, "news": news})
        return raw_items

    def describe(self, raw: dict) -> str:
        return str(raw["details"].get("name") or raw["app_id"])

    def normalize(self, raw: dict) -> list[CandidateRecord]:
        app_id = raw["app_id"]
        details = raw["details"]
        name = details["name"]
        header = details.get("header_image") or self._images.for_source("Steam")

        records = []
        review = self._review(app_id, name, details, header)
        if review is not None:
            records.append(review)
        for shot in (details.get("screenshots") or [])[: self._max_screenshots]:
            records.append(self._screenshot(name, shot))
        for movie in (details.get("movies") or [])[: self._max_movies]:
            video = self._movie(name, movie)
            if video is not None:
                records.append(video)
        for item in raw["news"][: self._max_news]:
            records.append(self._news(app_id, item, header))
        return records

    def _review(self, app_id: int, name: str, details: dict, header: str) -> CandidateRecord | None:
        metacritic = details.get("metacritic") or {}
        if not metacritic.get("score"):
            return None
        genres = [g["description"] for g in details.get("genres") or [] if g.get("description")]
        short = details.get("short_description") or ""
        return CandidateRecord(
            content_type="game_review",
            title=name,
            slug=slugify(f"{name}-steam-{app_id}"),
            excerpt=truncate_text(short, _EXCERPT_LENGTH),
            body=strip_html(details.get("detailed_description") or "") or strip_html(short) or name,
            image_url=header,
            category=genres[0] if genres else "Game",
            source_label="Steam Editorial",
            source_identifier=f"steam-review-{app_id}",
            status=STATUS_PUBLISHED,
            details=ReviewDetails(
                platform=_platforms(details),
                genre=", ".join(genres) or "Game",
                developer=(details.get("developers") or ["Unknown"])[0],
                publisher=(details.get("publishers") or ["Unknown"])[0],
                release_date=(details.get("release_date") or {}).get("date"),
                rating=metacritic["score"] / 10,
            ),
        )

    def _screenshot(self, name: str, shot: dict) -> CandidateRecord:
        return CandidateRecord(
            content_type="gallery_image",
            title=f"{name} - Screenshot",
            slug=slugify(f"{name}-screenshot-{shot['id']}"),
            excerpt=f"Screenshot from {name}",
            body=f"Screenshot from {name}",
            image_url=shot["path_full"],
            category="Screenshots",
            source_label="Steam",
            status=STATUS_PUBLISHED,
            details=GalleryDetails(thumbnail_url=shot.get("path_thumbnail"), game_title=name),
        )

    def _movie(self, name: str, movie: dict) -> CandidateRecord | None:
        mp4 = movie.get("mp4") or {}
        video_url = mp4.get("480") or mp4.get("max")
        if not video_url:
            return None
        title = movie.get("name") or f"{name} - Trailer"
        return CandidateRecord(
            content_type="video",
            title=title,
            slug=slugify(f"{name}-video-{movie['id']}"),
            excerpt=f"Watch the official trailer for {name}",
            body=f"Watch the official trailer for {name}",
            image_url=movie.get("thumbnail"),
            category="Trailer",
            source_label="Steam",
            status=STATUS_PUBLISHED,
            details=VideoDetails(video_url=video_url),
        )

    def _news(self, app_id: int, item: dict, header: str) -> CandidateRecord:
        title = item["title"]
        contents = item.get("contents") or ""
        return CandidateRecord(
            content_type="news_article",
            title=title,
            slug=slugify(title, suffix=str(item["gid"])),
            excerpt=truncate_text(contents, _EXCERPT_LENGTH, strip_bbcode=True),
            body=strip_html(contents, strip_bbcode=True) or title,
            image_url=header,
            category="Steam News",
            source_label=item.get("author") or "Steam",
            source_identifier=item.get("url") or f"steam-news-{app_id}-{item['gid']}",
            published_at=from_unix(item.get("date")),
            status=STATUS_PUBLISHED,
        )
