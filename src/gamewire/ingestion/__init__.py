"""Ingestion pipeline: source adapters, normalization, and admission into the content store."""

from gamewire.ingestion.ai_writer_adapter import AIWriterAdapter
from gamewire.ingestion.deals_adapter import DealsAdapter
from gamewire.ingestion.giantbomb_adapter import GiantBombAdapter
from gamewire.ingestion.igdb_adapter import IGDBGamesAdapter, IGDBReleasesAdapter
from gamewire.ingestion.platform_news_adapter import PlatformNewsAdapter
from gamewire.ingestion.registry import register_adapter
from gamewire.ingestion.rss_adapter import RSSAdapter
from gamewire.ingestion.steam_adapter import SteamAdapter
from gamewire.ingestion.twitch_adapter import TwitchAdapter
from gamewire.ingestion.youtube_adapter import YouTubeAdapter

register_adapter("rss", RSSAdapter)
register_adapter("platform_news", PlatformNewsAdapter)
register_adapter("deals", DealsAdapter)
register_adapter("igdb_games", IGDBGamesAdapter)
register_adapter("igdb_releases", IGDBReleasesAdapter)
register_adapter("steam", SteamAdapter)
register_adapter("youtube", YouTubeAdapter)
register_adapter("ai_writer", AIWriterAdapter)
register_adapter("twitch", TwitchAdapter)
register_adapter("giantbomb", GiantBombAdapter)
