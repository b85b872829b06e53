"""Game deals adapter: CheapShark price comparison API."""

from __future__ import annotations

import logging

import httpx

from gamewire.ingestion.adapter import SourceAdapter
from gamewire.ingestion.records import STATUS_PUBLISHED, CandidateRecord
from gamewire.ingestion.slug import slugify
from gamewire.ingestion.sources import STORE_NAMES

logger = logging.getLogger(__name__)

_DEALS_URL = "https://www.cheapshark.com/api/1.0/deals"
_UNKNOWN_STORE = "Online Store"


def store_name(store_id: str, stores: dict[str, str] | None = None) -> str:
    """Map a numeric store ID to a display name, with a generic fallback."""
    return (stores or STORE_NAMES).get(str(store_id), _UNKNOWN_STORE)


def savings_percent(deal: dict) -> int:
    """Discount as a rounded whole percentage. Raises ValueError if unparseable."""
    return round(float(deal.get("savings", "")))


def _positive_int(value) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def deal_body(title: str, store: str, sale: float, normal: float, pct: int, deal: dict) -> str:
    """Compose article text from the structured price and rating fields."""
    lines = [
        f"{title} is currently on sale at {store} with a massive {pct}% discount!",
        "",
        "**Deal Details:**",
        f"- Sale Price: ${sale:.2f}",
        f"- Regular Price: ${normal:.2f}",
        f"- You Save: ${normal - sale:.2f} ({pct}%)",
        f"- Store: {store}",
        "",
    ]
    ratings = []
    metacritic = _positive_int(deal.get("metacriticScore"))
    if metacritic > 0:
        ratings.append(f"This title has a Metacritic score of {metacritic}/100.")
    steam_pct = _positive_int(deal.get("steamRatingPercent"))
    if steam_pct > 0:
        ratings.append(
            f"Steam users have given it a {steam_pct}% positive rating "
            f"based on {deal.get('steamRatingCount', '0')} reviews."
        )
    if ratings:
        lines.append(" ".join(ratings))
        lines.append("")
    lines.append("Don't miss out on this incredible deal! Prices may change at any time.")
    return "\n".join(lines)


class DealsAdapter(SourceAdapter):
    """Deep discounts sorted by savings into ``news_articles`` ("Game Deals")."""

    def __init__(self, config, images=None) -> None:
        super().__init__(config, images)
        self._page_size = 15
        self._min_metacritic = 70
        self._min_savings = config.min_deal_savings
        self._stores = dict(STORE_NAMES)

    @property
    def name(self) -> str:
        return "deals"

    def configure(self, settings: dict) -> None:
        self._page_size = int(settings.get("limit") or settings.get("page_size", 15))
        self._min_metacritic = settings.get("min_metacritic", 70)
        self._min_savings = settings.get("min_savings", self._config.min_deal_savings)
        self._stores.update(settings.get("stores", {}))

    async def fetch_batch(self, client: httpx.AsyncClient, errors: list[str]) -> list[dict]:
        resp = await client.get(
            _DEALS_URL,
            params={
                "sortBy": "Savings",
                "desc": 1,
                "pageSize": self._page_size,
                "metacritic": self._min_metacritic,
            },
        )
        resp.raise_for_status()
        deals = resp.json()
        if not isinstance(deals, list):
            raise ValueError("unexpected deals payload")
        logger.info("Fetched %d deals from CheapShark", len(deals))
        return deals

    def normalize(self, raw: dict) -> list[CandidateRecord]:
        pct = savings_percent(raw)
        if pct < self._min_savings:
            return []

        title = raw["title"]
        store = store_name(raw.get("storeID", ""), self._stores)
        sale = float(raw["salePrice"])
        normal = float(raw["normalPrice"])
        slug = slugify(f"{title} deal {store}")
        return [
            CandidateRecord(
                content_type="news_article",
                title=f"Hot Deal: {title} {pct}% Off at {store}",
                slug=slug,
                excerpt=(
                    f"Save {pct}% on {title}! Now only ${sale:.2f} "
                    f"(was ${normal:.2f}) at {store}."
                ),
                body=deal_body(title, store, sale, normal, pct, raw),
                image_url=raw.get("thumb") or self._images.for_source("CheapShark"),
                category="Game Deals",
                source_label="CheapShark",
                source_identifier=slug,
                status=STATUS_PUBLISHED,
            )
        ]
