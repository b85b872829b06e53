"""FastAPI application factory for the Gamewire web API."""

from __future__ import annotations

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gamewire.config import Config
from gamewire.web.ratelimit import RateLimiter
from gamewire.web.routes import functions_router, health_router, router

CORS_METHODS = ["GET", "POST", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization", "X-Client-Info", "Apikey"]


def create_app(
    config: Config,
    lifespan=None,
    rate_limiter: RateLimiter | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build and return a configured FastAPI application.

    ``transport`` replaces the network for outbound source requests (tests).
    """
    app = FastAPI(title="Gamewire", docs_url="/api/docs", lifespan=lifespan)
    app.state.config = config
    app.state.database_path = config.database_path
    app.state.rate_limiter = rate_limiter or RateLimiter(
        config.trigger_rate_limit, config.trigger_rate_window_seconds
    )
    app.state.http_transport = transport

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )

    app.include_router(health_router)
    app.include_router(functions_router)
    app.include_router(router, prefix="/api/v1")
    return app
