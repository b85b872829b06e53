"""Tests for gamewire.ingestion.sources: defaults and JSON overrides."""

from __future__ import annotations

import json

import pytest

from gamewire.ingestion.sources import DEFAULT_FEEDS, image_defaults, load_sources


def test_missing_file_returns_defaults(tmp_path):
    sources = load_sources(tmp_path / "absent.json")
    assert sources["rss"]["feeds"] == DEFAULT_FEEDS
    assert sources["deals"]["page_size"] == 15
    assert sources["igdb_releases"]["days"] == 90


def test_overrides_merge_per_adapter(tmp_path):
    path = tmp_path / "sources.json"
    path.write_text(json.dumps({"deals": {"page_size": 30}, "steam": {"max_apps": 2}}))
    sources = load_sources(path)
    assert sources["deals"] == {"page_size": 30, "min_metacritic": 70}
    assert sources["steam"]["max_apps"] == 2
    assert sources["steam"]["max_screenshots"] == 3


def test_malformed_file_raises(tmp_path):
    path = tmp_path / "sources.json"
    path.write_text("{not json")
    with pytest.raises(ValueError, match="Invalid sources config"):
        load_sources(path)


def test_overrides_do_not_leak_into_defaults(tmp_path):
    path = tmp_path / "sources.json"
    path.write_text(json.dumps({"deals": {"page_size": 99}}))
    load_sources(path)
    assert load_sources(None)["deals"]["page_size"] == 15


def test_image_defaults_shared_map():
    images = image_defaults({"Custom": "https://img/custom.jpg"})
    assert images.for_source("IGN").startswith("https://images.pexels.com/")
    assert images.for_source("Custom") == "https://img/custom.jpg"
