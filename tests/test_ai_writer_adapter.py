"""Tests for gamewire.ingestion.ai_writer_adapter."""

from __future__ import annotations

import asyncio
import dataclasses
import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from gamewire.config import Config
from gamewire.ingestion.ai_writer_adapter import AIWriterAdapter, _parse_json

CONFIG = Config(database_path=":memory:", llm_api_key="sk-test")

REPLY = json.dumps({
    "title": "Five Games To Watch This Month",
    "excerpt": "A quick look at the month's biggest launches.",
    "content": "First paragraph.\n\nSecond paragraph.",
    "category": "Game Releases",
})


def _adapter(config=CONFIG, topics=("upcoming releases",)) -> AIWriterAdapter:
    adapter = AIWriterAdapter(config)
    adapter.configure({"topics": list(topics)})
    return adapter


def _collect(adapter):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(404))) as client:
            return await adapter.collect(client)

    return asyncio.run(go())


def test_parse_json_strips_code_fences():
    assert _parse_json('```json\n{"a": 1}\n```') == {"a": 1}
    assert _parse_json('{"a": 1}') == {"a": 1}


def test_parse_json_rejects_invalid():
    with pytest.raises(ValueError, match="Invalid JSON"):
        _parse_json("not json")
    with pytest.raises(ValueError):
        _parse_json("[1, 2]")


def test_unconfigured_without_llm_key():
    with patch("gamewire.ingestion.ai_writer_adapter._call_llm") as call:
        batch = _collect(_adapter(dataclasses.replace(CONFIG, llm_api_key=None)))
    assert batch.configured is False
    call.assert_not_called()


def test_drafts_one_article_per_topic():
    with patch("gamewire.ingestion.ai_writer_adapter._call_llm", return_value=REPLY) as call:
        batch = _collect(_adapter(topics=["esports", "hardware"]))

    assert call.await_count == 2
    assert "esports" in call.await_args_list[0].kwargs["user_prompt"]
    assert call.await_args_list[0].kwargs["model"] == CONFIG.llm_model
    assert len(batch.records) == 2
    record = batch.records[0]
    assert record.status == "draft"
    assert record.slug == "five-games-to-watch-this-month"
    assert record.category == "Game Releases"
    assert record.body == "First paragraph.\n\nSecond paragraph."


def test_unknown_category_falls_back():
    reply = json.dumps({"title": "T", "content": "Body", "category": "Gossip"})
    with patch("gamewire.ingestion.ai_writer_adapter._call_llm", return_value=reply):
        record = _collect(_adapter()).records[0]
    assert record.category == "Industry News"
    assert record.excerpt == "Body"


def test_unparseable_reply_is_a_per_item_error():
    with patch("gamewire.ingestion.ai_writer_adapter._call_llm", return_value="Sorry, I can't."):
        batch = _collect(_adapter())
    assert batch.records == []
    assert batch.errors[0].startswith("Error processing article on 'upcoming releases'")


def test_one_client_per_batch_and_closed():
    factory = MagicMock()
    llm = factory.return_value
    with patch("gamewire.ingestion.ai_writer_adapter.anthropic.AsyncAnthropic", factory), \
            patch("gamewire.ingestion.ai_writer_adapter._call_llm", return_value=REPLY) as call:
        _collect(_adapter(topics=["esports", "hardware", "retro"]))

    factory.assert_called_once_with(
        api_key="sk-test",
        max_retries=CONFIG.llm_max_retries,
        timeout=CONFIG.llm_timeout_seconds,
    )
    llm.__aexit__.assert_awaited_once()
    entered = llm.__aenter__.return_value
    assert call.await_count == 3
    assert all(c.args[0] is entered for c in call.await_args_list)
