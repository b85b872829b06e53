"""Tests for gamewire.jobs: named pipeline runs and the execution log."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from gamewire.config import Config
from gamewire.execution_log import list_runs
from gamewire.jobs import JOBS, SetupError, run_job, run_scheduled_job
from gamewire.storage.connection import get_connection
from gamewire.storage.schema import init_db

SAMPLE_RSS = """\
<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Test Feed</title>
    <item>
      <title>Patch Notes Released</title>
      <link>https://example.com/patch-notes</link>
      <description>All the changes in this week's patch.</description>
      <pubDate>Sun, 15 Jun 2025 10:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""


def _deal(title: str, **overrides) -> dict:
    deal = {
        "title": title,
        "storeID": "1",
        "salePrice": "4.99",
        "normalPrice": "19.99",
        "savings": "75.0",
        "metacriticScore": "88",
        "thumb": "https://cdn.example.com/thumb.jpg",
        "dealID": title.lower(),
    }
    deal.update(overrides)
    return deal


DEALS = [_deal("Celeste"), _deal("Bad Game"), _deal("Inside")]
del DEALS[1]["salePrice"]


def _make_config(tmp_path, **overrides) -> Config:
    """Create a test Config pointing at a temp database and sources file."""
    db_path = str(tmp_path / "test.db")
    sources_path = str(tmp_path / "sources.json")
    sources = overrides.pop("_sources", {
        "rss": {"feeds": [{"url": "https://feeds.example.com/news", "source": "IGN",
                           "category": "IGN News"}]},
    })
    with open(sources_path, "w") as f:
        json.dump(sources, f)
    init_db(db_path)
    defaults = {"database_path": db_path, "sources_config_path": sources_path}
    defaults.update(overrides)
    return Config(**defaults)


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.host == "www.cheapshark.com":
        return httpx.Response(200, json=DEALS)
    return httpx.Response(200, text=SAMPLE_RSS, headers={"Content-Type": "application/rss+xml"})


def _down(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, text="unavailable")


def _run(config, job_name, params=None, handler=_handler):
    return asyncio.run(
        run_job(config, job_name, params, transport=httpx.MockTransport(handler))
    )


def _count(db_path, table="news_articles") -> int:
    with get_connection(db_path) as conn:
        return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]  # noqa: S608


class TestJobs:
    def test_all_named_jobs_defined(self):
        assert set(JOBS) == {
            "fetch-gaming-news", "fetch-game-deals", "fetch-igdb-games",
            "sync-igdb-releases", "fetch-steam-content", "sync-youtube-news",
            "sync-platform-news", "generate-ai-content", "fetch-twitch-videos",
            "fetch-giantbomb-content", "fetch-all-gaming-content",
        }

    def test_unknown_job_raises_key_error(self, tmp_path):
        with pytest.raises(KeyError):
            _run(_make_config(tmp_path), "nope")


class TestRunJob:
    def test_one_bad_item_does_not_block_the_rest(self, tmp_path):
        config = _make_config(tmp_path)
        summary = _run(config, "fetch-game-deals")

        assert summary.success is True
        assert summary.total_items == 2
        assert summary.by_category == {"Game Deals": 2}
        assert len(summary.errors) == 1
        assert summary.errors[0].startswith("Error processing Bad Game")
        assert summary.message == "Game deals fetch completed. Added 2 items."
        assert _count(config.database_path) == 2

    def test_second_run_adds_nothing(self, tmp_path):
        config = _make_config(tmp_path)
        _run(config, "fetch-game-deals")
        summary = _run(config, "fetch-game-deals")

        assert summary.total_items == 0
        assert summary.sources[0].items_skipped == 2
        assert _count(config.database_path) == 2

    def test_execution_log_written_once_on_success(self, tmp_path):
        config = _make_config(tmp_path)
        summary = _run(config, "fetch-game-deals")

        runs, total = list_runs(config.database_path)
        assert total == 1
        run = runs[0]
        assert run["execution_id"] == summary.execution_id
        assert run["status"] == "success"
        assert run["items_processed"] == 2
        assert run["items_failed"] == 1
        assert run["details"]["by_category"] == {"Game Deals": 2}

    def test_all_sources_down_still_completes(self, tmp_path):
        config = _make_config(tmp_path)
        summary = _run(config, "fetch-all-gaming-content", handler=_down)

        assert summary.success is True
        assert summary.total_items == 0
        assert summary.errors
        names = {s.name: s for s in summary.sources}
        assert names["deals"].success is False
        assert names["igdb_games"].configured is False
        assert any(e.startswith("Error fetching IGN") for e in summary.errors)

    def test_combined_run_merges_categories(self, tmp_path):
        config = _make_config(tmp_path)
        summary = _run(config, "fetch-all-gaming-content")

        assert summary.by_category == {"IGN News": 1, "Game Deals": 2}
        assert summary.total_items == 3
        assert summary.message == "Gaming content fetch completed. Added 3 items."

    def test_params_override_source_settings(self, tmp_path):
        config = _make_config(tmp_path)
        seen = {}

        def handler(request):
            seen["pageSize"] = request.url.params.get("pageSize")
            return httpx.Response(200, json=[])

        _run(config, "fetch-game-deals", {"limit": 5}, handler=handler)
        assert seen["pageSize"] == "5"

    def test_strict_job_without_credentials_raises(self, tmp_path):
        config = _make_config(tmp_path)
        with pytest.raises(SetupError, match="YOUTUBE_API_KEY"):
            _run(config, "sync-youtube-news")

        runs, total = list_runs(config.database_path)
        assert total == 1
        assert runs[0]["status"] == "failed"
        assert "YOUTUBE_API_KEY" in runs[0]["error_message"]

    def test_fatal_error_recorded_once_and_reraised(self, tmp_path):
        config = _make_config(tmp_path)
        with patch("gamewire.jobs.run_pipeline", new=AsyncMock(side_effect=RuntimeError("boom"))):
            with pytest.raises(RuntimeError, match="boom"):
                _run(config, "fetch-gaming-news", {"limit": 3})

        runs, total = list_runs(config.database_path)
        assert total == 1
        assert runs[0]["status"] == "failed"
        assert runs[0]["error_message"] == "boom"
        assert runs[0]["details"] == {"params": {"limit": 3}}


class TestScheduledJob:
    def test_never_raises_on_unknown_job(self, tmp_path):
        run_scheduled_job(_make_config(tmp_path), "nope")

    def test_never_raises_on_setup_error(self, tmp_path):
        config = _make_config(tmp_path)
        run_scheduled_job(config, "generate-ai-content")
        runs, _ = list_runs(config.database_path)
        assert runs[0]["status"] == "failed"

    def test_defaults_to_configured_job(self, tmp_path):
        config = _make_config(tmp_path, schedule_job="fetch-game-deals")
        with patch("gamewire.jobs.run_job", new=AsyncMock()) as mock_run:
            run_scheduled_job(config)
        assert mock_run.call_args.args[1] == "fetch-game-deals"


class TestRecurringTitles:
    def test_same_title_uploads_are_both_stored(self, tmp_path):
        config = _make_config(
            tmp_path,
            youtube_api_key="yt-key",
            _sources={"youtube": {"channels": [{"id": "UC-ps", "label": "PlayStation",
                                                "platform": "ps"}]}},
        )

        def handler(request):
            items = [
                {
                    "id": {"videoId": video_id},
                    "snippet": {
                        "title": "PlayStation Plus Monthly Games",
                        "description": "This month's lineup.",
                        "publishedAt": "2025-06-15T17:00:00Z",
                        "thumbnails": {"high": {"url": f"https://i.ytimg.com/vi/{video_id}/hq.jpg"}},
                    },
                }
                for video_id in ("aaa111", "bbb222")
            ]
            return httpx.Response(200, json={"items": items})

        summary = _run(config, "sync-youtube-news", handler=handler)

        assert summary.total_items == 2
        assert summary.sources[0].items_skipped == 0
        assert _count(config.database_path, "news_posts") == 2


class TestGiantBombJob:
    @staticmethod
    def _handler(request):
        path = request.url.path
        if path == "/api/games/":
            game = {"id": 3030, "name": "Elden Ring", "deck": "Rise, Tarnished.",
                    "site_detail_url": "https://www.giantbomb.com/elden-ring/3030-1/"}
            return httpx.Response(200, json={"results": [game]})
        if path == "/api/game/3030/":
            images = [{"id": 9000, "original": "https://gb.example/img.jpg"}]
            return httpx.Response(200, json={"results": {"images": images}})
        video = {"id": 77, "name": "Quick Look", "length_seconds": 60,
                 "publish_date": "2025-06-14 10:30:00",
                 "site_detail_url": "https://www.giantbomb.com/shows/quick-look/2300-77/"}
        return httpx.Response(200, json={"results": [video]})

    def test_stores_reviews_gallery_and_videos_once(self, tmp_path):
        config = _make_config(
            tmp_path,
            giantbomb_api_key="gb-key",
            _sources={"giantbomb": {"request_delay": 0}},
        )

        summary = _run(config, "fetch-giantbomb-content", handler=self._handler)
        assert summary.total_items == 3
        assert _count(config.database_path, "game_reviews") == 1
        assert _count(config.database_path, "gallery_images") == 1
        assert _count(config.database_path, "videos") == 1

        again = _run(config, "fetch-giantbomb-content", handler=self._handler)
        assert again.total_items == 0
        assert again.sources[0].items_skipped == 3

    def test_requires_api_key(self, tmp_path):
        config = _make_config(tmp_path)
        with pytest.raises(SetupError, match="GIANTBOMB_API_KEY"):
            _run(config, "fetch-giantbomb-content")
