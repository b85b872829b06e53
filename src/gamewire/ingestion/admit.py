"""Admission of candidate records into the content store (dedup + upsert)."""

from __future__ import annotations

import dataclasses
import hashlib
import logging
import uuid
from datetime import datetime, timezone

from gamewire.ingestion.adapter import POLICY_INSERT, POLICY_UPSERT
from gamewire.ingestion.records import CandidateRecord, to_row
from gamewire.ingestion.slug import slugify
from gamewire.storage.connection import get_connection

logger = logging.getLogger(__name__)

INSERTED = "inserted"
UPDATED = "updated"
SKIPPED = "skipped"

# Columns an upsert never overwrites on an existing row
_IMMUTABLE_COLUMNS = frozenset({"id", "slug", "created_at"})


def _insert_sql(table: str, columns: list[str], conflict_clause: str) -> str:
    placeholders = ", ".join("?" for _ in columns)
    return (
        f"INSERT INTO {table} ({', '.join(columns)}) "  # noqa: S608
        f"VALUES ({placeholders}) {conflict_clause}"
    )


def _new_row(record: CandidateRecord) -> dict:
    now = datetime.now(timezone.utc).isoformat()
    row = to_row(record, now)
    row["id"] = str(uuid.uuid4())
    row["created_at"] = now
    return row


def disambiguated_slug(record: CandidateRecord) -> str:
    """Slug with a short, stable suffix derived from the record's dedup key."""
    digest = hashlib.sha1(record.dedup_key.encode("utf-8")).hexdigest()[:8]
    return slugify(record.slug, suffix=digest)


def admit_if_absent(record: CandidateRecord, database_path: str) -> str:
    """Insert the record unless its dedup key is already stored.

    Existing rows are never touched. When the record has a stable source
    identifier and only its slug is taken by a different item, it is stored
    under a disambiguated slug. Without one the slug is the dedup key, so a
    slug match means the item is already stored.

    The unique indexes on ``source_key`` and ``slug`` back up the pre-insert
    lookup, so two overlapping runs admitting the same candidate still
    produce a single row.
    """
    table = record.table
    with get_connection(database_path) as conn:
        existing = conn.execute(
            f"SELECT id FROM {table} WHERE source_key = ?",  # noqa: S608
            (record.dedup_key,),
        ).fetchone()
        if existing is None and not record.source_identifier:
            existing = conn.execute(
                f"SELECT id FROM {table} WHERE slug = ?",  # noqa: S608
                (record.slug,),
            ).fetchone()
        if existing is not None:
            logger.debug("Skipping existing %s '%s'", record.content_type, record.slug)
            return SKIPPED

        taken = conn.execute(
            f"SELECT id FROM {table} WHERE slug = ?",  # noqa: S608
            (record.slug,),
        ).fetchone()
        if taken is not None:
            slug = disambiguated_slug(record)
            logger.info("Slug '%s' already taken, storing as '%s'", record.slug, slug)
            record = dataclasses.replace(record, slug=slug)

        row = _new_row(record)
        columns = list(row)
        cursor = conn.execute(
            _insert_sql(table, columns, "ON CONFLICT DO NOTHING"),
            [row[c] for c in columns],
        )
    if cursor.rowcount != 1:
        logger.info("Lost insert race for %s '%s'", record.content_type, record.slug)
        return SKIPPED

    logger.info("Inserted %s '%s' (%s)", record.content_type, record.title, record.status)
    return INSERTED


def upsert_by_slug(record: CandidateRecord, database_path: str) -> str:
    """Insert the record, or refresh the row that already has its slug."""
    table = record.table
    with get_connection(database_path) as conn:
        existing = conn.execute(
            f"SELECT id FROM {table} WHERE slug = ?",  # noqa: S608
            (record.slug,),
        ).fetchone()

        row = _new_row(record)
        columns = list(row)
        updates = ", ".join(
            f"{c} = excluded.{c}" for c in columns if c not in _IMMUTABLE_COLUMNS
        )
        conn.execute(
            _insert_sql(table, columns, f"ON CONFLICT(slug) DO UPDATE SET {updates}"),
            [row[c] for c in columns],
        )

    outcome = UPDATED if existing is not None else INSERTED
    logger.info("Upserted %s '%s' (%s)", record.content_type, record.slug, outcome)
    return outcome


def admit(record: CandidateRecord, database_path: str, policy: str = POLICY_INSERT) -> str:
    """Admit one candidate under the adapter's policy.

    Returns "inserted", "updated" or "skipped". Store errors propagate so the
    caller can record them against this record and move on.
    """
    if policy == POLICY_UPSERT:
        return upsert_by_slug(record, database_path)
    if policy == POLICY_INSERT:
        return admit_if_absent(record, database_path)
    raise ValueError(f"Unknown admission policy '{policy}'")
