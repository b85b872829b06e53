"""Twitch Helix adapter: clips and past broadcasts for the most-watched games."""

from __future__ import annotations

import logging
import re

import httpx

from gamewire.ingestion.igdb import TwitchAppAdapter
from gamewire.ingestion.normalize import format_duration, parse_timestamp, truncate_text
from gamewire.ingestion.records import STATUS_PUBLISHED, CandidateRecord, VideoDetails
from gamewire.ingestion.slug import slugify

logger = logging.getLogger(__name__)

HELIX_URL = "https://api.twitch.tv/helix"

_SOURCE_LABEL = "Twitch"
_HELIX_DURATION_RE = re.compile(r"^(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?$")


def helix_duration(value: str) -> str:
    """Helix "1h2m3s" durations as "1:02:03". Unrecognized values pass through."""
    match = _HELIX_DURATION_RE.match(value or "")
    if not value or match is None:
        return value or ""
    hours, minutes, seconds = (int(part or 0) for part in match.groups())
    return format_duration(hours * 3600 + minutes * 60 + seconds)


def broadcast_thumbnail(template: str | None) -> str | None:
    """Fill the ``%{width}x%{height}`` placeholders of a VOD thumbnail at 1280x720."""
    if not template:
        return None
    return template.replace("%{width}", "1280").replace("%{height}", "720")


class TwitchAdapter(TwitchAppAdapter):
    """Top clips and archived broadcasts of the top games into ``videos``."""

    def __init__(self, config, images=None) -> None:
        super().__init__(config, images)
        self._max_games = 5
        self._max_clips = 3
        self._max_videos = 2

    @property
    def name(self) -> str:
        return "twitch"

    def configure(self, settings: dict) -> None:
        self._max_games = int(settings.get("limit") or settings.get("max_games", 5))
        self._max_clips = int(settings.get("max_clips", 3))
        self._max_videos = int(settings.get("max_videos", 2))

    async def _helix(self, client: httpx.AsyncClient, path: str, params: dict, token: str) -> list[dict]:
        resp = await client.get(
            f"{HELIX_URL}/{path}",
            params=params,
            headers={
                "Client-ID": self._config.igdb_client_id,
                "Authorization": f"Bearer {token}",
            },
        )
        resp.raise_for_status()
        return resp.json().get("data") or []

    async def fetch_batch(self, client: httpx.AsyncClient, errors: list[str]) -> list[dict]:
        token = await self.access_token(client)
        games = (await self._helix(client, "games/top", {"first": 20}, token))[: self._max_games]
        logger.info("Twitch top games: %d", len(games))

        raw_items = []
        for game in games:
            game_name = game.get("name") or "Unknown game"
            try:
                clips = await self._helix(
                    client, "clips", {"game_id": game["id"], "first": 10}, token
                )
                raw_items.extend(
                    {"kind": "clip", "game": game_name, "item": clip}
                    for clip in clips[: self._max_clips]
                )
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("Twitch clips failed for %s: %s", game_name, exc)
                errors.append(f"Error fetching Twitch clips for {game_name}: {exc}")
            try:
                videos = await self._helix(
                    client, "videos", {"game_id": game["id"], "type": "archive", "first": 5}, token
                )
                raw_items.extend(
                    {"kind": "video", "game": game_name, "item": video}
                    for video in videos[: self._max_videos]
                )
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("Twitch videos failed for %s: %s", game_name, exc)
                errors.append(f"Error fetching Twitch videos for {game_name}: {exc}")
        return raw_items

    def describe(self, raw: dict) -> str:
        item = raw["item"]
        return str(item.get("title") or item.get("id") or "unknown")

    def normalize(self, raw: dict) -> list[CandidateRecord]:
        if raw["kind"] == "clip":
            return [self._clip(raw["game"], raw["item"])]
        return [self._broadcast(raw["game"], raw["item"])]

    def _clip(self, game: str, clip: dict) -> CandidateRecord:
        title = (clip.get("title") or "").strip()
        summary = f"{game} clip by {clip.get('creator_name') or 'a Twitch creator'}"
        return CandidateRecord(
            content_type="video",
            title=title,
            slug=slugify(title, suffix=clip["id"]),
            excerpt=summary,
            body=summary,
            image_url=clip.get("thumbnail_url") or self._images.for_source(_SOURCE_LABEL),
            category="Clips",
            source_label=_SOURCE_LABEL,
            source_identifier=clip["url"],
            published_at=parse_timestamp(clip.get("created_at")),
            status=STATUS_PUBLISHED,
            details=VideoDetails(
                video_url=clip["url"],
                duration=format_duration(clip.get("duration")),
            ),
        )

    def _broadcast(self, game: str, video: dict) -> CandidateRecord:
        title = (video.get("title") or "").strip()
        description = (video.get("description") or "").strip() or (
            f"{game} gameplay by {video.get('user_name') or 'a Twitch streamer'}"
        )
        return CandidateRecord(
            content_type="video",
            title=title,
            slug=slugify(title, suffix=video["id"]),
            excerpt=truncate_text(description, 300),
            body=description,
            image_url=(
                broadcast_thumbnail(video.get("thumbnail_url"))
                or self._images.for_source(_SOURCE_LABEL)
            ),
            category="Gameplay",
            source_label=_SOURCE_LABEL,
            source_identifier=video["url"],
            published_at=parse_timestamp(video.get("published_at")),
            status=STATUS_PUBLISHED,
            details=VideoDetails(
                video_url=video["url"],
                duration=helix_duration(video.get("duration") or ""),
            ),
        )
