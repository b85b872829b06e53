"""Tests for gamewire.ingestion.giantbomb_adapter."""

from __future__ import annotations

import asyncio
import dataclasses
from unittest.mock import AsyncMock, patch

import httpx

from gamewire.config import Config
from gamewire.ingestion.giantbomb_adapter import GiantBombAdapter

CONFIG = Config(database_path=":memory:", giantbomb_api_key="gb-key")

GAMES = [
    {
        "id": 3030,
        "name": "Elden Ring",
        "deck": "A vast <i>open-world</i> action RPG.",
        "description": "<p>Rise, Tarnished.</p>",
        "image": {"super_url": "https://gb.example/er_super.jpg",
                  "original_url": "https://gb.example/er.jpg"},
        "original_release_date": "2022-02-25",
        "platforms": [{"name": "PC"}, {"name": "PlayStation 5"}],
        "genres": [{"name": "Role-Playing"}, {"name": "Action"}],
        "developers": [{"name": "FromSoftware"}],
        "publishers": [{"name": "Bandai Namco"}],
        "site_detail_url": "https://www.giantbomb.com/elden-ring/3030-1/",
    },
    {"id": 3031, "name": "No Blurb", "deck": "", "description": None,
     "site_detail_url": "https://www.giantbomb.com/no-blurb/3030-2/"},
    {
        "id": 3032,
        "name": "Bare Game",
        "deck": "Just a deck.",
        "image": {},
        "site_detail_url": "https://www.giantbomb.com/bare-game/3030-3/",
    },
]

IMAGES = [
    {"id": 9000 + i, "original": f"https://gb.example/img_{i}.jpg",
     "thumb": f"https://gb.example/img_{i}_thumb.jpg"}
    for i in range(5)
]

VIDEOS = [
    {"id": 77, "name": "Quick Look: Elden Ring", "deck": "We take a look.",
     "image": {"screen_large_url": "https://gb.example/v77.jpg"},
     "length_seconds": 3725, "publish_date": "2025-06-14 10:30:00",
     "site_detail_url": "https://www.giantbomb.com/shows/quick-look-elden-ring/2300-77/",
     "user": "jeff"},
    {"id": 78, "name": "Untitled Stream", "deck": None, "image": None,
     "length_seconds": 59, "publish_date": "2025-06-13 09:00:00",
     "site_detail_url": "https://www.giantbomb.com/shows/untitled/2300-78/"},
]


class FakeGiantBomb:
    def __init__(self, games=GAMES, videos_status=200):
        self.games = games
        self.videos_status = videos_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api/games/":
            return httpx.Response(200, json={"results": self.games})
        if path.startswith("/api/game/"):
            return httpx.Response(200, json={"results": {"images": IMAGES}})
        if path == "/api/videos/":
            if self.videos_status != 200:
                return httpx.Response(self.videos_status)
            return httpx.Response(200, json={"results": VIDEOS})
        return httpx.Response(404)


def _adapter(config=CONFIG, **settings) -> GiantBombAdapter:
    adapter = GiantBombAdapter(config)
    adapter.configure({"request_delay": 0, **settings})
    return adapter


def _collect(adapter, handler):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await adapter.collect(client)

    return asyncio.run(go())


def _by_type(records) -> dict[str, list]:
    grouped: dict[str, list] = {}
    for record in records:
        grouped.setdefault(record.content_type, []).append(record)
    return grouped


def test_unconfigured_without_api_key():
    fake = FakeGiantBomb()
    batch = _collect(_adapter(dataclasses.replace(CONFIG, giantbomb_api_key=None)), fake)
    assert batch.configured is False
    assert fake.requests == []
    assert batch.errors == ["giantbomb: not configured (missing GIANTBOMB_API_KEY)"]


def test_requests_carry_api_key_and_json_format():
    fake = FakeGiantBomb()
    _collect(_adapter(), fake)
    for request in fake.requests:
        assert request.url.params["api_key"] == "gb-key"
        assert request.url.params["format"] == "json"
    games_request = fake.requests[0]
    assert games_request.url.params["sort"] == "date_last_updated:desc"
    image_request = fake.requests[1]
    assert image_request.url.path == "/api/game/3030/"
    assert image_request.url.params["field_list"] == "images"


def test_games_without_text_are_skipped():
    fake = FakeGiantBomb()
    records = _collect(_adapter(), fake).records
    reviews = _by_type(records)["game_review"]
    assert [r.title for r in reviews] == ["Elden Ring", "Bare Game"]
    image_calls = [r.url.path for r in fake.requests if r.url.path.startswith("/api/game/")]
    assert image_calls == ["/api/game/3030/", "/api/game/3032/"]


def test_review_fields():
    review = _by_type(_collect(_adapter(), FakeGiantBomb()).records)["game_review"][0]
    assert review.slug == "elden-ring-giantbomb-3030"
    assert review.excerpt == "A vast open-world action RPG."
    assert review.body == "Rise, Tarnished."
    assert review.image_url == "https://gb.example/er_super.jpg"
    assert review.category == "Role-Playing"
    assert review.source_label == "Giant Bomb"
    assert review.source_identifier == "https://www.giantbomb.com/elden-ring/3030-1/"
    assert review.details.platform == "PC, PlayStation 5"
    assert review.details.genre == "Role-Playing, Action"
    assert review.details.developer == "FromSoftware"
    assert review.details.publisher == "Bandai Namco"
    assert review.details.release_date == "2022-02-25"
    assert review.details.rating is None


def test_review_defaults_for_sparse_game():
    bare = _by_type(_collect(_adapter(), FakeGiantBomb()).records)["game_review"][1]
    assert bare.details.platform == "Multiple Platforms"
    assert bare.details.genre == "Various"
    assert bare.details.developer == "Unknown"
    assert bare.body == "Just a deck."
    assert bare.image_url.startswith("https://images.pexels.com/")


def test_gallery_images_capped_per_game():
    shots = _by_type(_collect(_adapter(), FakeGiantBomb()).records)["gallery_image"]
    assert len(shots) == 2 * 3
    first = shots[0]
    assert first.title == "Elden Ring - Screenshot"
    assert first.slug == "elden-ring-giantbomb-9000"
    assert first.image_url == "https://gb.example/img_0.jpg"
    assert first.details.thumbnail_url == "https://gb.example/img_0_thumb.jpg"
    assert first.details.game_title == "Elden Ring"
    assert first.category == "Screenshots"


def test_video_fields():
    quick_look, untitled = _by_type(_collect(_adapter(), FakeGiantBomb()).records)["video"]
    assert quick_look.slug == "quick-look-elden-ring-giantbomb-77"
    assert quick_look.category == "Giant Bomb"
    assert quick_look.details.video_url == VIDEOS[0]["site_detail_url"]
    assert quick_look.details.duration == "1:02:05"
    assert quick_look.source_label == "jeff"
    assert quick_look.image_url == "https://gb.example/v77.jpg"
    assert quick_look.published_at == "2025-06-14T10:30:00+00:00"
    assert untitled.excerpt == "Gaming video from Giant Bomb"
    assert untitled.details.duration == "0:59"
    assert untitled.source_label == "Giant Bomb"


def test_video_failure_keeps_game_records():
    batch = _collect(_adapter(), FakeGiantBomb(videos_status=502))
    grouped = _by_type(batch.records)
    assert "video" not in grouped
    assert len(grouped["game_review"]) == 2
    assert batch.errors[0].startswith("Error fetching Giant Bomb videos")
    assert batch.failed is False


def test_waits_between_image_lookups():
    adapter = GiantBombAdapter(CONFIG)
    adapter.configure({})
    with patch("gamewire.ingestion.giantbomb_adapter.asyncio.sleep", new=AsyncMock()) as sleep:
        _collect(adapter, FakeGiantBomb())
    assert sleep.await_count == 1
    sleep.assert_awaited_with(1.0)
