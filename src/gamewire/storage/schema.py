"""Database schema definition and initialization."""

from __future__ import annotations

import logging

from gamewire.storage.connection import get_connection

logger = logging.getLogger(__name__)

# Columns shared by every content table. slug and source_key are both unique:
# slug for URLs, source_key for idempotent ingestion across runs.
_CONTENT_COLUMNS = """\
    id              TEXT PRIMARY KEY,
    title           TEXT NOT NULL,
    slug            TEXT NOT NULL UNIQUE,
    excerpt         TEXT NOT NULL,
    body            TEXT NOT NULL,
    image_url       TEXT,
    category        TEXT NOT NULL,
    source_label    TEXT NOT NULL,
    source_key      TEXT NOT NULL UNIQUE,
    published_at    TEXT NOT NULL,
    status          TEXT NOT NULL CHECK (status IN ('draft', 'published')),
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL"""

# table name -> type-specific column definitions
_CONTENT_TABLES = {
    "news_articles": "",
    "game_reviews": """,
    platform        TEXT NOT NULL,
    genre           TEXT NOT NULL,
    developer       TEXT NOT NULL,
    publisher       TEXT NOT NULL,
    release_date    TEXT,
    rating          REAL""",
    "gallery_images": """,
    thumbnail_url   TEXT,
    game_title      TEXT""",
    "videos": """,
    video_url       TEXT NOT NULL,
    duration        TEXT NOT NULL DEFAULT ''""",
    "news_posts": """,
    source_url      TEXT NOT NULL,
    platform        TEXT NOT NULL CHECK (platform IN ('ps', 'xbox', 'nintendo', 'other')),
    post_type       TEXT NOT NULL CHECK (post_type IN (
                        'game-update', 'studio-announcement'
                    ))""",
    "game_releases": """,
    release_date    TEXT NOT NULL,
    platform        TEXT NOT NULL,
    region          TEXT NOT NULL,
    source_url      TEXT""",
}

_EXECUTION_LOG_SQL = """\
-- One row per pipeline run, written once at completion (success or failure)
CREATE TABLE IF NOT EXISTS cron_executions (
    execution_id    TEXT PRIMARY KEY,
    job_name        TEXT NOT NULL,
    status          TEXT NOT NULL CHECK (status IN ('success', 'failed')),
    items_processed INTEGER NOT NULL DEFAULT 0,
    items_failed    INTEGER NOT NULL DEFAULT 0,
    duration_ms     INTEGER NOT NULL,
    error_message   TEXT,
    details         TEXT NOT NULL,      -- JSON object
    created_at      TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_cron_executions_job_name ON cron_executions(job_name);
CREATE INDEX IF NOT EXISTS idx_cron_executions_created_at ON cron_executions(created_at);
"""


def _content_table_sql(table: str, extra_columns: str) -> str:
    return (
        f"CREATE TABLE IF NOT EXISTS {table} (\n"
        f"{_CONTENT_COLUMNS}{extra_columns}\n);\n"
        f"CREATE INDEX IF NOT EXISTS idx_{table}_published_at ON {table}(published_at);\n"
        f"CREATE INDEX IF NOT EXISTS idx_{table}_category ON {table}(category);\n"
        f"CREATE INDEX IF NOT EXISTS idx_{table}_status ON {table}(status);\n"
    )


def content_tables() -> list[str]:
    """Return the names of all content tables."""
    return list(_CONTENT_TABLES)


def init_db(database_path: str) -> None:
    """Create all tables and indexes if they do not already exist."""
    script = "".join(
        _content_table_sql(table, extra) for table, extra in _CONTENT_TABLES.items()
    )
    with get_connection(database_path) as conn:
        conn.executescript(script + _EXECUTION_LOG_SQL)
    logger.info("Database initialized at %s", database_path)
