"""Execution log: one append-only row per pipeline run."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from gamewire.storage.connection import get_connection

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"


@dataclass
class RunExecutionRecord:
    job_name: str
    status: str
    duration_ms: int
    items_processed: int = 0
    items_failed: int = 0
    error_message: str | None = None
    details: dict = field(default_factory=dict)
    execution_id: str = field(default_factory=lambda: str(uuid.uuid4()))


def record_run(database_path: str, record: RunExecutionRecord) -> None:
    """Insert a run record into the cron_executions table."""
    with get_connection(database_path) as conn:
        conn.execute(
            "INSERT INTO cron_executions "
            "(execution_id, job_name, status, items_processed, items_failed, "
            "duration_ms, error_message, details, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.execution_id,
                record.job_name,
                record.status,
                record.items_processed,
                record.items_failed,
                record.duration_ms,
                record.error_message,
                json.dumps(record.details, default=str),
                datetime.now(timezone.utc).isoformat(),
            ),
        )
    logger.info(
        "Recorded %s run of %s (%d processed, %d failed, %dms)",
        record.status, record.job_name, record.items_processed,
        record.items_failed, record.duration_ms,
    )


def list_runs(
    database_path: str,
    job_name: str | None = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[dict], int]:
    """Return a paginated list of runs, newest first, optionally for one job."""
    offset = (page - 1) * per_page
    where = "WHERE job_name = ?" if job_name else ""
    params: tuple = (job_name,) if job_name else ()

    with get_connection(database_path) as conn:
        total = conn.execute(
            f"SELECT COUNT(*) FROM cron_executions {where}", params  # noqa: S608
        ).fetchone()[0]
        rows = conn.execute(
            "SELECT execution_id, job_name, status, items_processed, items_failed, "
            "duration_ms, error_message, details, created_at "
            f"FROM cron_executions {where} "  # noqa: S608
            "ORDER BY created_at DESC LIMIT ? OFFSET ?",
            (*params, per_page, offset),
        ).fetchall()

    runs = []
    for r in rows:
        run = dict(r)
        run["details"] = json.loads(r["details"])
        runs.append(run)
    return runs, total
