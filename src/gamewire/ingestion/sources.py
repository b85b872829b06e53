"""Default source settings: feeds, channels, lookup tables, fallback images.

Any adapter section can be overridden by the JSON file at
``SOURCES_CONFIG_PATH``; see ``load_sources``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from gamewire.ingestion.normalize import ImageDefaults

logger = logging.getLogger(__name__)

_PEXELS = "https://images.pexels.com/photos/{0}/pexels-photo-{0}.jpeg"

DEFAULT_IMAGES = {
    "IGN": _PEXELS.format(7915286),
    "GameSpot": _PEXELS.format(3945683),
    "Polygon": _PEXELS.format(371924),
    "PC Gamer": _PEXELS.format(2923034),
    "Kotaku": _PEXELS.format(4009599),
    "Eurogamer": _PEXELS.format(3945683),
    "Destructoid": _PEXELS.format(1174746),
    "Giant Bomb": _PEXELS.format(442576),
    "Rock Paper Shotgun": _PEXELS.format(2923034),
    "GamesRadar": _PEXELS.format(3945683),
    "VideoGamer": _PEXELS.format(7915286),
    "VG247": _PEXELS.format(371924),
    "GamesIndustry.biz": _PEXELS.format(1174746),
    "TheGamer": _PEXELS.format(4009599),
    "Dexerto": _PEXELS.format(3945683),
    "Dot Esports": _PEXELS.format(7915286),
    "PCGamesN": _PEXELS.format(2923034),
    "Game Informer": _PEXELS.format(371924),
    "Shacknews": _PEXELS.format(442576),
    "TechRadar Gaming": _PEXELS.format(3945683),
    "CheapShark": _PEXELS.format(2923034),
    "IGDB": _PEXELS.format(442576),
    "Twitch": _PEXELS.format(7915286),
}

DEFAULT_FEEDS = [
    {"url": "https://feeds.ign.com/ign/all", "source": "IGN", "category": "IGN News"},
    {"url": "https://www.gamespot.com/feeds/news/", "source": "GameSpot", "category": "GameSpot News"},
    {"url": "https://www.polygon.com/rss/index.xml", "source": "Polygon", "category": "Polygon"},
    {"url": "https://www.pcgamer.com/rss/", "source": "PC Gamer", "category": "PC Gaming"},
    {"url": "https://kotaku.com/rss", "source": "Kotaku", "category": "Kotaku"},
    {"url": "https://www.eurogamer.net/?format=rss", "source": "Eurogamer", "category": "Eurogamer"},
    {"url": "https://www.destructoid.com/feed/", "source": "Destructoid", "category": "Destructoid"},
    {"url": "https://www.giantbomb.com/feeds/news/", "source": "Giant Bomb", "category": "Giant Bomb"},
    {"url": "https://www.rockpapershotgun.com/feed", "source": "Rock Paper Shotgun", "category": "PC Gaming"},
    {"url": "https://www.gamesradar.com/feeds/all/", "source": "GamesRadar", "category": "Gaming News"},
    {"url": "https://www.videogamer.com/feed/", "source": "VideoGamer", "category": "Gaming News"},
    {"url": "https://www.vg247.com/feed", "source": "VG247", "category": "Gaming News"},
    {"url": "https://www.gamesindustry.biz/feed", "source": "GamesIndustry.biz", "category": "Industry News"},
    {"url": "https://www.thegamer.com/feed/", "source": "TheGamer", "category": "Gaming News"},
    {"url": "https://www.dexerto.com/feed/", "source": "Dexerto", "category": "Esports"},
    {"url": "https://dotesports.com/feed", "source": "Dot Esports", "category": "Esports"},
    {"url": "https://www.pcgamesn.com/feed", "source": "PCGamesN", "category": "PC Gaming"},
    {"url": "https://www.gameinformer.com/feeds/thefeed.aspx", "source": "Game Informer", "category": "Gaming News"},
    {"url": "https://www.shacknews.com/feed/rss", "source": "Shacknews", "category": "Gaming News"},
    {"url": "https://www.techradar.com/rss/gaming/news", "source": "TechRadar Gaming", "category": "Gaming News"},
]

STORE_NAMES = {
    "1": "Steam",
    "2": "GamersGate",
    "3": "GreenManGaming",
    "7": "GOG",
    "8": "Origin",
    "11": "Humble Store",
    "13": "Uplay",
    "15": "Fanatical",
    "25": "Epic Games Store",
    "27": "Gamesplanet",
    "28": "Gamesload",
    "29": "PlayStation Store",
    "30": "Microsoft Store",
}

REGION_NAMES = {
    1: "Europe",
    2: "North America",
    3: "Australia",
    4: "New Zealand",
    5: "Japan",
    6: "China",
    7: "Asia",
    8: "Worldwide",
}

YOUTUBE_CHANNELS = [
    {"id": "UC-2Y8dQb0S6DtpxNgAKoJKA", "label": "PlayStation", "platform": "ps"},
    {"id": "UCjBp_7RuDBUYbd1LegWEJ8g", "label": "Xbox", "platform": "xbox"},
    {"id": "UCGIY_O-8vW4rfX98KlMkvRg", "label": "Nintendo", "platform": "nintendo"},
]

PLATFORM_FEEDS = [
    {"url": "https://blog.playstation.com/feed", "source": "playstation", "platform": "ps"},
    {"url": "https://news.xbox.com/en-us/feed/", "source": "xbox", "platform": "xbox"},
]

AI_TOPICS = [
    "upcoming game releases this month",
]

DEFAULT_SOURCES: dict[str, dict] = {
    "rss": {"feeds": DEFAULT_FEEDS, "max_items_per_feed": 10},
    "platform_news": {"feeds": PLATFORM_FEEDS},
    "deals": {"page_size": 15, "min_metacritic": 70},
    "igdb_games": {"days": 30, "min_rating": 70, "limit": 10},
    "igdb_releases": {"days": 90, "limit": 50},
    "steam": {"max_apps": 10, "max_screenshots": 3, "max_movies": 2, "max_news": 2},
    "youtube": {"channels": YOUTUBE_CHANNELS, "max_results": 10},
    "ai_writer": {"topics": AI_TOPICS},
    "twitch": {"max_games": 5, "max_clips": 3, "max_videos": 2},
    "giantbomb": {"max_games": 10, "max_images": 3, "max_videos": 15, "request_delay": 1.0},
}


def load_sources(path: str | Path | None) -> dict[str, dict]:
    """Merge per-adapter overrides from a JSON file onto the defaults.

    A missing file is not an error; a malformed one raises ValueError.
    Expected format: {"rss": {"feeds": [...]}, "deals": {"page_size": 20}, ...}
    """
    sources = {name: dict(settings) for name, settings in DEFAULT_SOURCES.items()}
    if path is None or not Path(path).is_file():
        return sources
    try:
        with open(path) as f:
            overrides = json.load(f)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid sources config {path}: {exc}") from exc
    if not isinstance(overrides, dict):
        raise ValueError(f"Invalid sources config {path}: expected a JSON object")
    for name, settings in overrides.items():
        sources.setdefault(name, {}).update(settings)
    logger.info("Loaded source overrides from %s", path)
    return sources


def image_defaults(extra: dict[str, str] | None = None) -> ImageDefaults:
    """Build the fallback-image map shared by all adapters."""
    by_source = dict(DEFAULT_IMAGES)
    if extra:
        by_source.update(extra)
    return ImageDefaults(by_source=by_source)
