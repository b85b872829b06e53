"""Application entry point: scheduler and web server in a single process."""

from __future__ import annotations

import json
import logging
import sys
import threading
from contextlib import asynccontextmanager

import uvicorn
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from gamewire.config import Config, load_config
from gamewire.jobs import JOBS, run_scheduled_job
from gamewire.storage import init_db
from gamewire.web.app import create_app
from gamewire.web.ratelimit import RateLimiter

logger = logging.getLogger("gamewire")


def _setup_logging(log_level: str, log_format: str) -> None:
    """Configure root logger based on config."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps(
                {
                    "time": "%(asctime)s",
                    "level": "%(levelname)s",
                    "logger": "%(name)s",
                    "message": "%(message)s",
                }
            )
        )
    else:
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def _build_scheduler(config: Config, rate_limiter: RateLimiter) -> BackgroundScheduler:
    """Create a BackgroundScheduler with the ingestion job and the rate-limiter sweep."""
    scheduler = BackgroundScheduler()

    if config.schedule_enabled:
        scheduler.add_job(
            run_scheduled_job,
            trigger=IntervalTrigger(minutes=config.fetch_interval_minutes),
            args=[config, config.schedule_job],
            id="ingestion",
            name=f"Scheduled {config.schedule_job}",
            max_instances=1,
            coalesce=True,
        )

    scheduler.add_job(
        rate_limiter.sweep,
        trigger=IntervalTrigger(minutes=1),
        id="rate_limit_sweep",
        name="Rate limiter sweep",
    )
    return scheduler


def main() -> None:
    """Load config, set up logging, and start scheduler + web server."""
    config = load_config()
    _setup_logging(config.log_level, config.log_format)

    if config.schedule_job not in JOBS:
        raise ValueError(
            f"SCHEDULE_JOB '{config.schedule_job}' is not one of: {', '.join(sorted(JOBS))}"
        )

    logger.info(
        "Gamewire starting (env=%s, db=%s, job=%s every %dm)",
        config.app_env,
        config.database_path,
        config.schedule_job,
        config.fetch_interval_minutes,
    )

    init_db(config.database_path)

    rate_limiter = RateLimiter(config.trigger_rate_limit, config.trigger_rate_window_seconds)
    scheduler = _build_scheduler(config, rate_limiter)

    def _initial_run():
        """Run the scheduled job once at startup in a background thread."""
        logger.info("Running initial %s", config.schedule_job)
        run_scheduled_job(config, config.schedule_job)

    @asynccontextmanager
    async def lifespan(app):
        logger.info("Scheduler starting")
        scheduler.start()
        if config.schedule_enabled:
            # Run in background so the web server is available immediately
            threading.Thread(target=_initial_run, daemon=True).start()
        yield
        logger.info("Scheduler shutting down")
        scheduler.shutdown(wait=False)

    app = create_app(config, lifespan=lifespan, rate_limiter=rate_limiter)

    uvicorn.run(app, host=config.web_host, port=config.web_port)


if __name__ == "__main__":
    main()
