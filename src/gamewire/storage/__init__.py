"""Storage layer: SQLite content store and execution log schema."""

from gamewire.storage.connection import get_connection
from gamewire.storage.schema import init_db

__all__ = ["get_connection", "init_db"]
