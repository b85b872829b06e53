"""Pipeline jobs: run named groups of source adapters and log each run once."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import time
import uuid
from collections import Counter
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone

import httpx

import gamewire.ingestion  # noqa: F401  triggers adapter registration
from gamewire.config import Config
from gamewire.execution_log import (
    STATUS_FAILED,
    STATUS_SUCCESS,
    RunExecutionRecord,
    record_run,
)
from gamewire.ingestion.adapter import SourceAdapter
from gamewire.ingestion.admit import INSERTED, UPDATED, admit
from gamewire.ingestion.registry import build_adapter
from gamewire.ingestion.sources import image_defaults, load_sources
from gamewire.storage.connection import get_connection

logger = logging.getLogger(__name__)


class SetupError(Exception):
    """The run cannot do anything useful, e.g. its only source has no credentials."""


@dataclass(frozen=True)
class JobSpec:
    """A named entry point: legs run concurrently, adapters within a leg in order."""

    name: str
    title: str
    legs: tuple[tuple[str, ...], ...]
    strict: bool = False


JOBS: dict[str, JobSpec] = {
    spec.name: spec
    for spec in (
        JobSpec("fetch-gaming-news", "Gaming news fetch", (("rss",),)),
        JobSpec("fetch-game-deals", "Game deals fetch", (("deals",),)),
        JobSpec("fetch-igdb-games", "IGDB games fetch", (("igdb_games",),), strict=True),
        JobSpec("sync-igdb-releases", "IGDB release sync", (("igdb_releases",),), strict=True),
        JobSpec("fetch-steam-content", "Steam content fetch", (("steam",),)),
        JobSpec("sync-youtube-news", "YouTube news sync", (("youtube",),), strict=True),
        JobSpec("sync-platform-news", "Platform news sync", (("platform_news",),)),
        JobSpec("generate-ai-content", "AI content generation", (("ai_writer",),), strict=True),
        JobSpec("fetch-twitch-videos", "Twitch videos fetch", (("twitch",),), strict=True),
        JobSpec("fetch-giantbomb-content", "Giant Bomb content fetch", (("giantbomb",),), strict=True),
        JobSpec(
            "fetch-all-gaming-content",
            "Gaming content fetch",
            (("rss",), ("deals",), ("igdb_games",)),
        ),
    )
}


@dataclass
class AdapterOutcome:
    """What one adapter contributed to a run."""

    name: str
    configured: bool = True
    success: bool = False
    items_added: int = 0
    items_updated: int = 0
    items_skipped: int = 0
    by_category: dict[str, int] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)


@dataclass
class RunSummary:
    """Consolidated result of one run.

    ``success`` means the run completed; per-source and per-item problems
    are listed in ``errors`` and do not flip it.
    """

    job_name: str
    execution_id: str
    success: bool
    message: str
    total_items: int
    by_category: dict[str, int]
    sources: list[AdapterOutcome]
    errors: list[str]
    duration_ms: int
    timestamp: str

    def details(self) -> dict:
        """Execution-log payload."""
        return {
            "by_category": self.by_category,
            "sources": [asdict(s) for s in self.sources],
            "errors": self.errors,
        }


async def run_adapter(
    adapter: SourceAdapter,
    client: httpx.AsyncClient,
    database_path: str,
) -> AdapterOutcome:
    """Collect from one adapter and admit its records one at a time."""
    batch = await adapter.collect(client)
    outcome = AdapterOutcome(
        name=adapter.name,
        configured=batch.configured,
        errors=list(batch.errors),
    )
    if not batch.configured or batch.failed:
        return outcome

    categories: Counter[str] = Counter()
    for record in batch.records:
        try:
            result = await asyncio.to_thread(admit, record, database_path, adapter.policy)
        except (sqlite3.Error, ValueError) as exc:
            logger.warning("Could not store %s '%s': %s", record.content_type, record.title, exc)
            outcome.errors.append(f"Error adding {record.title}: {exc}")
            continue
        if result == INSERTED:
            outcome.items_added += 1
            categories[record.category] += 1
        elif result == UPDATED:
            outcome.items_updated += 1
            categories[record.category] += 1
        else:
            outcome.items_skipped += 1

    outcome.success = True
    outcome.by_category = dict(categories)
    logger.info(
        "Adapter '%s': %d added, %d updated, %d skipped, %d error(s)",
        adapter.name, outcome.items_added, outcome.items_updated,
        outcome.items_skipped, len(outcome.errors),
    )
    return outcome


async def _run_leg(
    adapters: list[SourceAdapter],
    client: httpx.AsyncClient,
    database_path: str,
) -> list[AdapterOutcome]:
    return [await run_adapter(adapter, client, database_path) for adapter in adapters]


@asynccontextmanager
async def _http_client(config: Config, transport: httpx.AsyncBaseTransport | None):
    async with httpx.AsyncClient(
        transport=transport,
        timeout=config.http_timeout_seconds,
        headers={"User-Agent": config.user_agent},
        follow_redirects=True,
    ) as client:
        yield client


def _check_store(database_path: str) -> None:
    """Fail fast when the store is unreachable; nothing else can work without it."""
    with get_connection(database_path) as conn:
        conn.execute("SELECT 1 FROM cron_executions LIMIT 1")


async def run_pipeline(
    config: Config,
    legs: tuple[tuple[str, ...], ...],
    *,
    job_name: str,
    title: str = "Pipeline run",
    params: dict | None = None,
    strict: bool = False,
    execution_id: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RunSummary:
    """Run every adapter named in ``legs`` and aggregate the outcomes.

    Raises SetupError when ``strict`` and no adapter is configured. Any other
    exception escaping here is fatal for the run.
    """
    started = time.monotonic()
    execution_id = execution_id or str(uuid.uuid4())
    _check_store(config.database_path)

    sources = load_sources(config.sources_config_path)
    images = image_defaults()
    overrides = params or {}
    adapter_legs = [
        [build_adapter(t, config, images, {**sources.get(t, {}), **overrides}) for t in leg]
        for leg in legs
    ]

    if strict:
        missing = [
            name for leg in adapter_legs for adapter in leg for name in adapter.missing_settings()
        ]
        configured = [adapter for leg in adapter_legs for adapter in leg if not adapter.missing_settings()]
        if not configured:
            raise SetupError(f"{job_name}: not configured (missing {', '.join(missing)})")

    logger.info("Run %s (%s) started with %d leg(s)", job_name, execution_id, len(adapter_legs))
    async with _http_client(config, transport) as client:
        leg_results = await asyncio.gather(
            *(_run_leg(leg, client, config.database_path) for leg in adapter_legs)
        )

    outcomes = [outcome for leg in leg_results for outcome in leg]
    by_category: Counter[str] = Counter()
    errors: list[str] = []
    for outcome in outcomes:
        by_category.update(outcome.by_category)
        errors.extend(outcome.errors)
    total = sum(o.items_added + o.items_updated for o in outcomes)

    summary = RunSummary(
        job_name=job_name,
        execution_id=execution_id,
        success=True,
        message=f"{title} completed. Added {total} items.",
        total_items=total,
        by_category=dict(by_category),
        sources=outcomes,
        errors=errors,
        duration_ms=int((time.monotonic() - started) * 1000),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    logger.info("Run %s finished: %d item(s), %d error(s)", job_name, total, len(errors))
    return summary


def _record_failure(database_path: str, record: RunExecutionRecord) -> None:
    """Write the failed-run record. Never raises, so the original error surfaces."""
    try:
        record_run(database_path, record)
    except Exception:
        logger.exception("Failed to record failed run of %s", record.job_name)


async def run_job(
    config: Config,
    job_name: str,
    params: dict | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RunSummary:
    """Run a named job and write exactly one execution-log record for it.

    Raises KeyError for an unknown job. SetupError and fatal errors are
    re-raised after the failed run is recorded.
    """
    spec = JOBS[job_name]
    execution_id = str(uuid.uuid4())
    started = time.monotonic()
    try:
        summary = await run_pipeline(
            config,
            spec.legs,
            job_name=spec.name,
            title=spec.title,
            params=params,
            strict=spec.strict,
            execution_id=execution_id,
            transport=transport,
        )
        record_run(
            config.database_path,
            RunExecutionRecord(
                execution_id=execution_id,
                job_name=spec.name,
                status=STATUS_SUCCESS,
                items_processed=summary.total_items,
                items_failed=len(summary.errors),
                duration_ms=summary.duration_ms,
                details=summary.details(),
            ),
        )
    except Exception as exc:
        logger.exception("Run %s failed", spec.name)
        _record_failure(
            config.database_path,
            RunExecutionRecord(
                execution_id=execution_id,
                job_name=spec.name,
                status=STATUS_FAILED,
                duration_ms=int((time.monotonic() - started) * 1000),
                error_message=str(exc),
                details={"params": params or {}},
            ),
        )
        raise
    return summary


def run_scheduled_job(config: Config, job_name: str | None = None) -> None:
    """Blocking entry point for the background scheduler. Never raises."""
    job_name = job_name or config.schedule_job
    try:
        summary = asyncio.run(run_job(config, job_name))
    except Exception:
        logger.exception("Scheduled run of %s failed", job_name)
        return
    logger.info("Scheduled run of %s: %s", job_name, summary.message)
