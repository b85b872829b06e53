"""API route handlers for the Gamewire web API."""

from __future__ import annotations

import json
import logging
import math
import sqlite3
from datetime import datetime, timezone

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from gamewire.execution_log import list_runs
from gamewire.jobs import JOBS, SetupError, run_job
from gamewire.storage.connection import get_connection
from gamewire.web.models import (
    ErrorResponse,
    RunExecutionListResponse,
    RunParams,
    RunResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()
functions_router = APIRouter()
health_router = APIRouter()


def _error(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    body = ErrorResponse(error=message, timestamp=datetime.now(timezone.utc).isoformat())
    return JSONResponse(body.model_dump(), status_code=status_code, headers=headers)


async def _read_params(request: Request) -> RunParams:
    """Merge query-string and JSON-body overrides; the body wins."""
    raw: dict = dict(request.query_params)
    body = await request.body()
    if body.strip():
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON body: {exc}") from exc
        if not isinstance(payload, dict):
            raise ValueError("JSON body must be an object")
        raw.update(payload)
    return RunParams.model_validate(raw)


@health_router.get("/health")
def health(request: Request) -> JSONResponse:
    """Check database connectivity and return health status."""
    database_path = request.app.state.database_path
    try:
        with get_connection(database_path) as conn:
            conn.execute("SELECT 1")
        return JSONResponse({"status": "healthy", "database": "ok"})
    except (sqlite3.Error, OSError) as exc:
        logger.warning("Health check failed: %s", exc)
        return JSONResponse(
            {"status": "unhealthy", "database": "error", "detail": str(exc)},
            status_code=503,
        )


@functions_router.options("/functions/{job_name}")
def trigger_options(job_name: str) -> Response:
    """Answer bare OPTIONS requests; CORS preflights are handled by the middleware."""
    return Response(status_code=200)


@functions_router.api_route("/functions/{job_name}", methods=["GET", "POST"])
async def trigger_job(request: Request, job_name: str) -> JSONResponse:
    """Run a pipeline job now and return its summary."""
    if job_name not in JOBS:
        return _error(404, f"Unknown job '{job_name}'")

    try:
        params = await _read_params(request)
    except (ValueError, ValidationError) as exc:
        return _error(400, str(exc))

    client = request.client.host if request.client else "unknown"
    allowed, retry_after = request.app.state.rate_limiter.check(f"{job_name}:{client}")
    if not allowed:
        logger.warning("Rate limited trigger of %s from %s", job_name, client)
        return _error(
            429,
            "Too many requests. Please try again later.",
            headers={"Retry-After": str(retry_after)},
        )

    try:
        summary = await run_job(
            request.app.state.config,
            job_name,
            params.overrides(),
            transport=request.app.state.http_transport,
        )
    except SetupError as exc:
        return _error(500, str(exc))
    except Exception as exc:
        logger.exception("Triggered run of %s failed", job_name)
        return _error(500, str(exc) or exc.__class__.__name__)

    return JSONResponse(RunResponse.from_summary(summary).model_dump())


@router.get("/runs", response_model=RunExecutionListResponse)
def runs(
    request: Request,
    job_name: str | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
) -> RunExecutionListResponse:
    database_path = request.app.state.database_path
    rows, total = list_runs(database_path, job_name=job_name, page=page, per_page=per_page)
    pages = math.ceil(total / per_page) if total else 0
    return RunExecutionListResponse(
        runs=rows,
        total=total,
        page=page,
        per_page=per_page,
        pages=pages,
    )
