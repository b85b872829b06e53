"""IGDB catalog adapters: recently released top-rated games, and upcoming release dates."""

from __future__ import annotations

import logging
import time

import httpx

from gamewire.ingestion.adapter import POLICY_UPSERT
from gamewire.ingestion.igdb import TwitchAppAdapter, cover_url, igdb_query
from gamewire.ingestion.normalize import from_unix, truncate_text
from gamewire.ingestion.records import (
    STATUS_DRAFT,
    STATUS_PUBLISHED,
    CandidateRecord,
    ReleaseDetails,
    ReviewDetails,
)
from gamewire.ingestion.slug import slugify
from gamewire.ingestion.sources import REGION_NAMES

logger = logging.getLogger(__name__)

_DAY_SECONDS = 86400
_SOURCE_LABEL = "IGDB"


def _unix_date(seconds: int | None) -> str | None:
    """Unix timestamp to a bare YYYY-MM-DD date."""
    iso = from_unix(seconds)
    return iso[:10] if iso else None


def _company(game: dict, role: str) -> str:
    for involved in game.get("involved_companies") or []:
        if involved.get(role) and involved.get("company", {}).get("name"):
            return involved["company"]["name"]
    return "Various"


def _platform_ids(value) -> list[int]:
    """Accept [6, 48] or "6,48"; drop anything non-numeric."""
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    ids = []
    for item in value:
        try:
            ids.append(int(item))
        except (TypeError, ValueError):
            continue
    return ids


class _IGDBAdapter(TwitchAppAdapter):
    """Token exchange plus one Apicalypse query per run."""

    async def _query(self, client: httpx.AsyncClient, endpoint: str, body: str) -> list[dict]:
        token = await self.access_token(client)
        rows = await igdb_query(
            client, endpoint, body,
            token=token,
            client_id=self._config.igdb_client_id,
        )
        logger.info("Fetched %d %s from IGDB", len(rows), endpoint)
        return rows


class IGDBGamesAdapter(_IGDBAdapter):
    """Top-rated recent releases: one review plus one release news article per game."""

    def __init__(self, config, images=None) -> None:
        super().__init__(config, images)
        self._days = 30
        self._min_rating = 70
        self._limit = 10

    @property
    def name(self) -> str:
        return "igdb_games"

    def configure(self, settings: dict) -> None:
        self._days = int(settings.get("days", 30))
        self._min_rating = settings.get("min_rating", 70)
        self._limit = int(settings.get("limit", 10))

    def build_query(self, now: int | None = None) -> str:
        now = int(time.time()) if now is None else now
        start = now - self._days * _DAY_SECONDS
        return (
            "fields name, summary, cover.url, cover.image_id, rating, first_release_date, "
            "genres.name, platforms.name, involved_companies.company.name, "
            "involved_companies.developer, involved_companies.publisher; "
            f"where first_release_date >= {start} & first_release_date <= {now} "
            f"& rating >= {self._min_rating}; "
            "sort rating desc; "
            f"limit {self._limit};"
        )

    async def fetch_batch(self, client: httpx.AsyncClient, errors: list[str]) -> list[dict]:
        return await self._query(client, "games", self.build_query())

    def normalize(self, raw: dict) -> list[CandidateRecord]:
        name = raw["name"]
        summary = (raw.get("summary") or "").strip()
        genre = ((raw.get("genres") or [{}])[0]).get("name") or "Adventure"
        platform = ", ".join(
            p["name"] for p in raw.get("platforms") or [] if p.get("name")
        ) or "Multi-platform"
        developer = _company(raw, "developer")
        publisher = _company(raw, "publisher")
        rating = round(raw["rating"] / 10, 1) if raw.get("rating") else 8.0
        released = raw.get("first_release_date")
        image = (
            cover_url((raw.get("cover") or {}).get("image_id"))
            or self._images.for_source(_SOURCE_LABEL)
        )

        review = CandidateRecord(
            content_type="game_review",
            title=name,
            slug=slugify(name),
            excerpt=summary[:200] or f"An exciting {genre} game that has garnered positive reviews.",
            body=summary or (
                f"{name} is a {genre} game developed by {developer} and published by "
                f"{publisher}. Released for {platform}, it offers an engaging experience "
                "for players."
            ),
            image_url=image,
            category=genre,
            source_label="IGDB Reviews",
            source_identifier=f"igdb-game-{raw['id']}" if raw.get("id") else None,
            status=STATUS_PUBLISHED,
            details=ReviewDetails(
                platform=platform,
                genre=genre,
                developer=developer,
                publisher=publisher,
                release_date=_unix_date(released),
                rating=rating,
            ),
        )
        article = CandidateRecord(
            content_type="news_article",
            title=f"{name} Now Available",
            slug=slugify(f"{name} released"),
            excerpt=truncate_text(f"{name} has been released for {platform}.", 300),
            body=(
                f"{name}, the highly anticipated {genre} title from {developer}, is now "
                f"available on {platform}. "
                f"{summary or 'The game promises an exciting experience for players.'}"
            ),
            image_url=image,
            category="Game Releases",
            source_label=_SOURCE_LABEL,
            published_at=from_unix(released),
            status=STATUS_PUBLISHED,
        )
        return [review, article]


class IGDBReleasesAdapter(_IGDBAdapter):
    """Upcoming release dates, re-synced in place by slug on every run."""

    policy = POLICY_UPSERT

    def __init__(self, config, images=None) -> None:
        super().__init__(config, images)
        self._days = 90
        self._limit = 50
        self._platforms: list[int] = []

    @property
    def name(self) -> str:
        return "igdb_releases"

    def configure(self, settings: dict) -> None:
        self._days = int(settings.get("days", 90))
        self._limit = int(settings.get("limit", 50))
        self._platforms = _platform_ids(settings.get("platforms"))

    def build_query(self, now: int | None = None) -> str:
        now = int(time.time()) if now is None else now
        end = now + self._days * _DAY_SECONDS
        where = [f"date >= {now}", f"date < {end}", "game != null", "platform != null"]
        if self._platforms:
            where.append(f"platform = ({','.join(str(p) for p in self._platforms)})")
        return (
            "fields id, date, platform.name, region, game.id, game.name, game.slug, "
            "game.summary, game.cover.image_id; "
            f"where {' & '.join(where)}; "
            "sort date asc; "
            f"limit {self._limit};"
        )

    async def fetch_batch(self, client: httpx.AsyncClient, errors: list[str]) -> list[dict]:
        return await self._query(client, "release_dates", self.build_query())

    def describe(self, raw: dict) -> str:
        return str((raw.get("game") or {}).get("name") or raw.get("id") or "unknown")

    def normalize(self, raw: dict) -> list[CandidateRecord]:
        game = raw.get("game") or {}
        name = game.get("name")
        if not name or not raw.get("date"):
            raise ValueError("release has no game name or date")
        platform = (raw.get("platform") or {}).get("name") or "Unknown"
        region = REGION_NAMES.get(raw.get("region"), "Unknown")
        release_date = _unix_date(raw["date"])
        summary = (game.get("summary") or "").strip()
        image = (
            cover_url((game.get("cover") or {}).get("image_id"))
            or self._images.for_source(_SOURCE_LABEL)
        )
        status = STATUS_PUBLISHED if self._config.auto_publish_igdb else STATUS_DRAFT
        return [
            CandidateRecord(
                content_type="game_release",
                title=name,
                slug=slugify(name, suffix=platform),
                excerpt=truncate_text(summary, 200)
                or f"{name} releases on {platform} on {release_date}.",
                body=summary or f"{name} is scheduled to release on {platform} ({region}) on {release_date}.",
                image_url=image,
                category="Upcoming Releases",
                source_label=_SOURCE_LABEL,
                status=status,
                details=ReleaseDetails(
                    release_date=release_date,
                    platform=platform,
                    region=region,
                    source_url=(
                        f"https://www.igdb.com/games/{game['slug']}" if game.get("slug") else None
                    ),
                ),
            )
        ]
