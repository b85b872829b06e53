"""Pydantic v2 request and response models for the Gamewire web API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from gamewire.jobs import RunSummary


# ---------------------------------------------------------------------------
# Trigger parameters
# ---------------------------------------------------------------------------
class RunParams(BaseModel):
    """Optional per-run overrides, from the JSON body or the query string."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    max_results: int | None = Field(None, alias="maxResults", ge=1, le=50)
    limit: int | None = Field(None, ge=1, le=200)
    days: int | None = Field(None, ge=1, le=365)
    platforms: list[int] | str | None = None
    topics: list[str] | str | None = None

    def overrides(self) -> dict:
        """Adapter setting overrides, keyed the way the adapters read them."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Run results
# ---------------------------------------------------------------------------
class SourceResult(BaseModel):
    name: str
    configured: bool
    success: bool
    items_added: int
    items_updated: int
    items_skipped: int
    by_category: dict[str, int]
    errors: list[str]


class RunResults(BaseModel):
    total_items: int
    by_category: dict[str, int]
    sources: list[SourceResult]


class RunResponse(BaseModel):
    success: bool
    message: str
    execution_id: str
    results: RunResults
    errors: list[str]
    timestamp: str

    @classmethod
    def from_summary(cls, summary: RunSummary) -> RunResponse:
        return cls(
            success=summary.success,
            message=summary.message,
            execution_id=summary.execution_id,
            results=RunResults(
                total_items=summary.total_items,
                by_category=summary.by_category,
                sources=[SourceResult(**vars(s)) for s in summary.sources],
            ),
            errors=summary.errors,
            timestamp=summary.timestamp,
        )


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    timestamp: str


# ---------------------------------------------------------------------------
# Execution log
# ---------------------------------------------------------------------------
class RunExecution(BaseModel):
    execution_id: str
    job_name: str
    status: str
    items_processed: int
    items_failed: int
    duration_ms: int
    error_message: str | None
    details: dict
    created_at: str


class RunExecutionListResponse(BaseModel):
    runs: list[RunExecution]
    total: int
    page: int
    per_page: int
    pages: int
