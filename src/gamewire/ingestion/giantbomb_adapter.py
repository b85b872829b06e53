"""Giant Bomb API adapter.

Recently updated games become reviews plus a few gallery images each (one
image lookup per game, spaced out like the Steam store requests), and the
latest videos land in ``videos``.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from gamewire.ingestion.adapter import SourceAdapter
from gamewire.ingestion.normalize import format_duration, parse_timestamp, strip_html, truncate_text
from gamewire.ingestion.records import (
    STATUS_PUBLISHED,
    CandidateRecord,
    GalleryDetails,
    ReviewDetails,
    VideoDetails,
)
from gamewire.ingestion.slug import slugify

logger = logging.getLogger(__name__)

API_URL = "https://www.giantbomb.com/api"

_SOURCE_LABEL = "Giant Bomb"
_PAGE_SIZE = 20
_EXCERPT_LENGTH = 200


def _names(entries: list[dict] | None, default: str) -> str:
    return ", ".join(e["name"] for e in entries or [] if e.get("name")) or default


class GiantBombAdapter(SourceAdapter):
    """Giant Bomb games into reviews and gallery images, and its videos into ``videos``."""

    def __init__(self, config, images=None) -> None:
        super().__init__(config, images)
        self._max_games = 10
        self._max_images = 3
        self._max_videos = 15
        self._delay = 1.0

    @property
    def name(self) -> str:
        return "giantbomb"

    def configure(self, settings: dict) -> None:
        self._max_games = int(settings.get("limit") or settings.get("max_games", 10))
        self._max_images = int(settings.get("max_images", 3))
        self._max_videos = int(settings.get("max_videos", 15))
        self._delay = float(settings.get("request_delay", 1.0))

    def missing_settings(self) -> list[str]:
        return [] if self._config.giantbomb_api_key else ["GIANTBOMB_API_KEY"]

    async def _get(self, client: httpx.AsyncClient, path: str, **params) -> dict:
        resp = await client.get(
            f"{API_URL}/{path}",
            params={"api_key": self._config.giantbomb_api_key, "format": "json", **params},
        )
        resp.raise_for_status()
        return resp.json()

    async def game_images(self, client: httpx.AsyncClient, game_id: int) -> list[dict]:
        data = await self._get(client, f"game/{game_id}/", field_list="images")
        return (data.get("results") or {}).get("images") or []

    async def fetch_batch(self, client: httpx.AsyncClient, errors: list[str]) -> list[dict]:
        raw_items = []
        try:
            data = await self._get(
                client, "games/", sort="date_last_updated:desc", limit=_PAGE_SIZE
            )
            games = [
                g for g in (data.get("results") or [])[: self._max_games]
                if g.get("deck") or g.get("description")
            ]
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Giant Bomb games failed: %s", exc)
            errors.append(f"Error fetching Giant Bomb games: {exc}")
            games = []
        logger.info("Giant Bomb returned %d game(s)", len(games))

        for index, game in enumerate(games):
            if index:
                await asyncio.sleep(self._delay)
            try:
                images = await self.game_images(client, game["id"])
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("Giant Bomb images failed for %s: %s", game.get("name"), exc)
                images = []
            raw_items.append({"kind": "game", "game": game, "images": images})

        try:
            data = await self._get(client, "videos/", sort="publish_date:desc", limit=_PAGE_SIZE)
            videos = (data.get("results") or [])[: self._max_videos]
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Giant Bomb videos failed: %s", exc)
            errors.append(f"Error fetching Giant Bomb videos: {exc}")
            videos = []
        raw_items.extend({"kind": "video", "video": video} for video in videos)
        return raw_items

    def describe(self, raw: dict) -> str:
        item = raw.get("game") or raw.get("video") or {}
        return str(item.get("name") or item.get("id") or "unknown")

    def normalize(self, raw: dict) -> list[CandidateRecord]:
        if raw["kind"] == "video":
            return [self._video(raw["video"])]
        game = raw["game"]
        records = [self._review(game)]
        for image in raw["images"][: self._max_images]:
            shot = self._screenshot(game["name"], image)
            if shot is not None:
                records.append(shot)
        return records

    def _review(self, game: dict) -> CandidateRecord:
        name = game["name"]
        summary = game.get("deck") or game.get("description") or ""
        image = game.get("image") or {}
        genres = [g["name"] for g in game.get("genres") or [] if g.get("name")]
        return CandidateRecord(
            content_type="game_review",
            title=name,
            slug=slugify(name, suffix=f"giantbomb-{game['id']}"),
            excerpt=truncate_text(summary, _EXCERPT_LENGTH),
            body=strip_html(game.get("description") or game.get("deck") or "") or name,
            image_url=(
                image.get("super_url")
                or image.get("original_url")
                or image.get("screen_large_url")
                or self._images.for_source(_SOURCE_LABEL)
            ),
            category=genres[0] if genres else "Game",
            source_label=_SOURCE_LABEL,
            source_identifier=game.get("site_detail_url") or f"giantbomb-game-{game['id']}",
            status=STATUS_PUBLISHED,
            details=ReviewDetails(
                platform=_names(game.get("platforms"), "Multiple Platforms"),
                genre=", ".join(genres) or "Various",
                developer=_names(game.get("developers"), "Unknown"),
                publisher=_names(game.get("publishers"), "Unknown"),
                release_date=game.get("original_release_date") or None,
            ),
        )

    def _screenshot(self, name: str, image: dict) -> CandidateRecord | None:
        url = image.get("original") or image.get("screen_large")
        if not url:
            return None
        description = f"Official image from {name} via Giant Bomb"
        return CandidateRecord(
            content_type="gallery_image",
            title=f"{name} - Screenshot",
            slug=slugify(name, suffix=f"giantbomb-{image['id']}"),
            excerpt=description,
            body=description,
            image_url=url,
            category="Screenshots",
            source_label=_SOURCE_LABEL,
            source_identifier=url,
            status=STATUS_PUBLISHED,
            details=GalleryDetails(thumbnail_url=image.get("thumb"), game_title=name),
        )

    def _video(self, video: dict) -> CandidateRecord:
        title = (video.get("name") or "").strip()
        image = video.get("image") or {}
        description = truncate_text(video.get("deck") or "Gaming video from Giant Bomb", 300)
        return CandidateRecord(
            content_type="video",
            title=title,
            slug=slugify(title, suffix=f"giantbomb-{video['id']}"),
            excerpt=description,
            body=description,
            image_url=(
                image.get("super_url")
                or image.get("screen_large_url")
                or self._images.for_source(_SOURCE_LABEL)
            ),
            category="Giant Bomb",
            source_label=video.get("user") or _SOURCE_LABEL,
            source_identifier=video["site_detail_url"],
            published_at=parse_timestamp(video.get("publish_date")),
            status=STATUS_PUBLISHED,
            details=VideoDetails(
                video_url=video["site_detail_url"],
                duration=format_duration(video.get("length_seconds")),
            ),
        )
