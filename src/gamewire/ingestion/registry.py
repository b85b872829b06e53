"""Adapter registry: maps type names to adapter classes and builds instances."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gamewire.config import Config
    from gamewire.ingestion.adapter import SourceAdapter
    from gamewire.ingestion.normalize import ImageDefaults

_REGISTRY: dict[str, type[SourceAdapter]] = {}


def register_adapter(type_name: str, cls: type[SourceAdapter]) -> None:
    """Register an adapter class under a type name (later registrations win)."""
    _REGISTRY[type_name] = cls


def get_adapter_class(type_name: str) -> type[SourceAdapter] | None:
    """Look up an adapter class by type name. Returns None if not found."""
    return _REGISTRY.get(type_name)


def registered_types() -> list[str]:
    """Return a sorted list of all registered adapter type names."""
    return sorted(_REGISTRY)


def build_adapter(
    type_name: str,
    config: Config,
    images: ImageDefaults,
    settings: dict | None = None,
) -> SourceAdapter:
    """Instantiate and configure the adapter registered under ``type_name``.

    Raises KeyError for an unknown type name.
    """
    cls = _REGISTRY.get(type_name)
    if cls is None:
        raise KeyError(f"Unknown adapter type '{type_name}'")
    adapter = cls(config, images)
    adapter.configure(settings or {})
    return adapter
