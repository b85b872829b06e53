"""Twitch app credentials, IGDB Apicalypse queries and cover image URLs."""

from __future__ import annotations

import logging

import httpx

from gamewire.ingestion.adapter import SourceAdapter

logger = logging.getLogger(__name__)

IGDB_API_URL = "https://api.igdb.com/v4"
IGDB_IMAGE_URL = "https://images.igdb.com/igdb/image/upload/{size}/{image_id}.jpg"


async def get_access_token(
    client: httpx.AsyncClient,
    *,
    token_url: str,
    client_id: str,
    client_secret: str,
) -> str:
    """Exchange client credentials for an app access token.

    Nothing is cached: every run authenticates afresh.
    """
    resp = await client.post(
        token_url,
        params={
            "client_id": client_id,
            "client_secret": client_secret,
            "grant_type": "client_credentials",
        },
    )
    resp.raise_for_status()
    token = resp.json().get("access_token")
    if not token:
        raise ValueError("token response has no access_token")
    logger.debug("Obtained IGDB access token")
    return token


async def igdb_query(
    client: httpx.AsyncClient,
    endpoint: str,
    body: str,
    *,
    token: str,
    client_id: str,
) -> list[dict]:
    """POST an Apicalypse query to ``/v4/{endpoint}`` and return the result rows."""
    resp = await client.post(
        f"{IGDB_API_URL}/{endpoint}",
        content=body,
        headers={
            "Client-ID": client_id,
            "Authorization": f"Bearer {token}",
            "Content-Type": "text/plain",
        },
    )
    resp.raise_for_status()
    rows = resp.json()
    if not isinstance(rows, list):
        raise ValueError(f"unexpected IGDB {endpoint} payload")
    return rows


def cover_url(image_id: str | None, size: str = "t_cover_big") -> str | None:
    """CDN URL for an IGDB image id at the given size variant."""
    if not image_id:
        return None
    return IGDB_IMAGE_URL.format(size=size, image_id=image_id)


class TwitchAppAdapter(SourceAdapter):
    """Base for adapters authenticated with the Twitch app credentials (IGDB and Helix)."""

    def missing_settings(self) -> list[str]:
        missing = []
        if not self._config.igdb_client_id:
            missing.append("IGDB_CLIENT_ID")
        if not self._config.igdb_client_secret:
            missing.append("IGDB_CLIENT_SECRET")
        return missing

    async def access_token(self, client: httpx.AsyncClient) -> str:
        return await get_access_token(
            client,
            token_url=self._config.twitch_token_url,
            client_id=self._config.igdb_client_id,
            client_secret=self._config.igdb_client_secret,
        )
