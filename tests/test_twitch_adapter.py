"""Tests for gamewire.ingestion.twitch_adapter."""

from __future__ import annotations

import asyncio
import dataclasses

import httpx

from gamewire.config import Config
from gamewire.ingestion.twitch_adapter import TwitchAdapter, broadcast_thumbnail, helix_duration

CONFIG = Config(
    database_path=":memory:",
    igdb_client_id="client-123",
    igdb_client_secret="secret-456",
)

TOP_GAMES = [
    {"id": "32982", "name": "Grand Theft Auto V"},
    {"id": "21779", "name": "League of Legends"},
]

CLIPS = [
    {"id": f"Clip{i}", "url": f"https://clips.twitch.tv/Clip{i}", "title": f"Huge play {i}",
     "creator_name": "clipper", "thumbnail_url": f"https://clips-media.example/{i}.jpg",
     "created_at": "2025-06-15T10:00:00Z", "duration": 29.9}
    for i in range(5)
]

VIDEOS = [
    {"id": "2001", "url": "https://www.twitch.tv/videos/2001", "title": "Ranked grind",
     "description": "", "user_name": "streamer_one",
     "thumbnail_url": "https://static-cdn.example/2001-%{width}x%{height}.jpg",
     "published_at": "2025-06-14T18:00:00Z", "duration": "3h2m5s"},
    {"id": "2002", "url": "https://www.twitch.tv/videos/2002", "title": "Heist night",
     "description": "Full heist run", "user_name": "streamer_two",
     "thumbnail_url": "", "published_at": "2025-06-14T20:00:00Z", "duration": "45m"},
    {"id": "2003", "url": "https://www.twitch.tv/videos/2003", "title": "Third VOD",
     "description": "", "user_name": "s3", "thumbnail_url": "",
     "published_at": "2025-06-14T21:00:00Z", "duration": "10s"},
]


class FakeHelix:
    """MockTransport handler standing in for Twitch auth and the Helix API."""

    def __init__(self, games=TOP_GAMES, failing_clip_game=None):
        self.games = games
        self.failing_clip_game = failing_clip_game
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "id.twitch.tv":
            return httpx.Response(200, json={"access_token": "tok-789", "expires_in": 3600})
        path = request.url.path
        if path == "/helix/games/top":
            return httpx.Response(200, json={"data": self.games})
        if path == "/helix/clips":
            if request.url.params["game_id"] == self.failing_clip_game:
                return httpx.Response(503)
            return httpx.Response(200, json={"data": CLIPS})
        if path == "/helix/videos":
            return httpx.Response(200, json={"data": VIDEOS})
        return httpx.Response(404)


def _adapter(config=CONFIG, **settings) -> TwitchAdapter:
    adapter = TwitchAdapter(config)
    adapter.configure(settings)
    return adapter


def _collect(adapter, handler):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await adapter.collect(client)

    return asyncio.run(go())


def test_helix_duration():
    assert helix_duration("3h2m5s") == "3:02:05"
    assert helix_duration("45m") == "45:00"
    assert helix_duration("10s") == "0:10"
    assert helix_duration("") == ""


def test_broadcast_thumbnail_fills_size():
    assert broadcast_thumbnail("https://x/a-%{width}x%{height}.jpg") == "https://x/a-1280x720.jpg"
    assert broadcast_thumbnail("") is None


def test_unconfigured_without_app_credentials():
    fake = FakeHelix()
    batch = _collect(_adapter(dataclasses.replace(CONFIG, igdb_client_id=None)), fake)
    assert batch.configured is False
    assert fake.requests == []
    assert "IGDB_CLIENT_ID" in batch.errors[0]


def test_helix_requests_carry_app_token():
    fake = FakeHelix()
    _collect(_adapter(), fake)
    token_request = fake.requests[0]
    assert token_request.url.params["grant_type"] == "client_credentials"
    helix = [r for r in fake.requests if r.url.host == "api.twitch.tv"]
    assert helix
    for request in helix:
        assert request.headers["Authorization"] == "Bearer tok-789"
        assert request.headers["Client-ID"] == "client-123"
    videos = next(r for r in helix if r.url.path == "/helix/videos")
    assert videos.url.params["type"] == "archive"


def test_caps_clips_and_videos_per_game():
    batch = _collect(_adapter(), FakeHelix())
    clips = [r for r in batch.records if r.category == "Clips"]
    vods = [r for r in batch.records if r.category == "Gameplay"]
    assert len(clips) == 2 * 3
    assert len(vods) == 2 * 2
    assert batch.errors == []


def test_caps_games_processed():
    fake = FakeHelix(games=[{"id": str(i), "name": f"Game {i}"} for i in range(10)])
    _collect(_adapter(max_games=2), fake)
    clip_calls = [r for r in fake.requests if r.url.path == "/helix/clips"]
    assert [r.url.params["game_id"] for r in clip_calls] == ["0", "1"]


def test_clip_fields():
    clip = next(r for r in _collect(_adapter(), FakeHelix()).records if r.category == "Clips")
    assert clip.content_type == "video"
    assert clip.title == "Huge play 0"
    assert clip.slug == "huge-play-0-clip0"
    assert clip.body == "Grand Theft Auto V clip by clipper"
    assert clip.image_url == "https://clips-media.example/0.jpg"
    assert clip.source_label == "Twitch"
    assert clip.source_identifier == "https://clips.twitch.tv/Clip0"
    assert clip.details.video_url == "https://clips.twitch.tv/Clip0"
    assert clip.details.duration == "0:29"
    assert clip.published_at == "2025-06-15T10:00:00+00:00"


def test_broadcast_fields():
    vods = [r for r in _collect(_adapter(), FakeHelix()).records if r.category == "Gameplay"]
    grind, heist = vods[:2]
    assert grind.body == "Grand Theft Auto V gameplay by streamer_one"
    assert grind.image_url == "https://static-cdn.example/2001-1280x720.jpg"
    assert grind.details.duration == "3:02:05"
    assert grind.slug == "ranked-grind-2001"
    assert heist.body == "Full heist run"
    assert heist.image_url.startswith("https://images.pexels.com/")


def test_failed_clip_lookup_keeps_other_games():
    batch = _collect(_adapter(), FakeHelix(failing_clip_game="32982"))
    assert len([r for r in batch.records if r.category == "Clips"]) == 3
    assert len([r for r in batch.records if r.category == "Gameplay"]) == 4
    assert batch.errors[0].startswith("Error fetching Twitch clips for Grand Theft Auto V")
    assert batch.failed is False


def test_top_games_failure_fails_batch():
    def handler(request):
        if request.url.host == "id.twitch.tv":
            return httpx.Response(200, json={"access_token": "tok-789"})
        return httpx.Response(500)

    batch = _collect(_adapter(), handler)
    assert batch.failed is True
    assert batch.records == []
