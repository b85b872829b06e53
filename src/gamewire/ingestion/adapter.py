"""Source adapter interface."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import httpx

from gamewire.config import Config
from gamewire.ingestion.normalize import ImageDefaults
from gamewire.ingestion.records import CandidateRecord, ensure_valid

logger = logging.getLogger(__name__)

POLICY_INSERT = "insert_if_absent"
POLICY_UPSERT = "upsert_by_slug"


@dataclass
class SourceBatch:
    """Everything one adapter produced in one run."""

    records: list[CandidateRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    configured: bool = True
    failed: bool = False


class SourceAdapter(ABC):
    """Abstract base class for source adapters.

    Every adapter knows how to fetch raw payloads from one external system
    and turn each payload into CandidateRecords. ``collect`` is the adapter
    boundary: nothing raised by fetching or normalizing escapes it.
    """

    #: How admitted records are written; see gamewire.ingestion.admit.
    policy: str = POLICY_INSERT

    def __init__(self, config: Config, images: ImageDefaults | None = None) -> None:
        self._config = config
        self._images = images or ImageDefaults()

    @property
    @abstractmethod
    def name(self) -> str:
        """Adapter type name."""

    @abstractmethod
    def configure(self, settings: dict) -> None:
        """Accept adapter-specific settings (sources config merged with request params)."""

    @abstractmethod
    async def fetch_batch(self, client: httpx.AsyncClient, errors: list[str]) -> list[dict]:
        """Fetch raw external records.

        Raising means the whole source failed for this run. Adapters that poll
        several independent sub-sources append per-sub-source failures to
        ``errors`` and keep going instead.
        """

    @abstractmethod
    def normalize(self, raw: dict) -> list[CandidateRecord]:
        """Turn one raw external record into zero or more CandidateRecords."""

    def missing_settings(self) -> list[str]:
        """Names of required credentials that are absent. Empty means configured."""
        return []

    def describe(self, raw: dict) -> str:
        """Short label identifying a raw record in error messages."""
        return str(raw.get("title") or raw.get("name") or raw.get("id") or "unknown")

    async def collect(self, client: httpx.AsyncClient) -> SourceBatch:
        """Fetch, normalize and validate. Never raises."""
        batch = SourceBatch()

        missing = self.missing_settings()
        if missing:
            logger.warning(
                "Adapter '%s' not configured (missing %s), skipping",
                self.name, ", ".join(missing),
            )
            batch.configured = False
            batch.errors.append(f"{self.name}: not configured (missing {', '.join(missing)})")
            return batch

        try:
            raw_items = await self.fetch_batch(client, batch.errors)
        except Exception as exc:
            logger.exception("Adapter '%s' fetch failed", self.name)
            batch.failed = True
            batch.errors.append(f"{self.name}: fetch failed: {exc}")
            return batch

        for raw in raw_items:
            try:
                for record in self.normalize(raw):
                    batch.records.append(ensure_valid(record))
            except Exception as exc:
                label = self.describe(raw)
                logger.warning("Adapter '%s' could not normalize %s: %s", self.name, label, exc)
                batch.errors.append(f"Error processing {label}: {exc}")

        logger.info(
            "Adapter '%s' produced %d candidate(s) from %d raw record(s)",
            self.name, len(batch.records), len(raw_items),
        )
        return batch
