"""Gamewire: gaming content ingestion service."""
