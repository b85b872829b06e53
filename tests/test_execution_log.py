"""Tests for gamewire.execution_log."""

from __future__ import annotations

import pytest

from gamewire.execution_log import RunExecutionRecord, list_runs, record_run
from gamewire.storage.schema import init_db


@pytest.fixture()
def db_path(tmp_path):
    path = str(tmp_path / "test.db")
    init_db(path)
    return path


def test_record_and_list_round_trip(db_path):
    record = RunExecutionRecord(
        job_name="fetch-gaming-news",
        status="success",
        duration_ms=1234,
        items_processed=7,
        items_failed=1,
        details={"by_category": {"IGN News": 7}},
    )
    record_run(db_path, record)

    runs, total = list_runs(db_path)
    assert total == 1
    run = runs[0]
    assert run["execution_id"] == record.execution_id
    assert run["status"] == "success"
    assert run["items_processed"] == 7
    assert run["details"] == {"by_category": {"IGN News": 7}}
    assert run["error_message"] is None


def test_list_filters_by_job_and_paginates(db_path):
    for i in range(3):
        record_run(db_path, RunExecutionRecord(job_name="fetch-game-deals", status="success", duration_ms=i))
    record_run(db_path, RunExecutionRecord(job_name="sync-youtube-news", status="failed",
                                           duration_ms=5, error_message="boom"))

    runs, total = list_runs(db_path, job_name="fetch-game-deals", page=1, per_page=2)
    assert total == 3
    assert len(runs) == 2
    assert all(r["job_name"] == "fetch-game-deals" for r in runs)

    runs, total = list_runs(db_path, job_name="fetch-game-deals", page=2, per_page=2)
    assert len(runs) == 1

    runs, total = list_runs(db_path)
    assert total == 4


def test_execution_ids_are_unique():
    a = RunExecutionRecord(job_name="j", status="success", duration_ms=0)
    b = RunExecutionRecord(job_name="j", status="success", duration_ms=0)
    assert a.execution_id != b.execution_id
