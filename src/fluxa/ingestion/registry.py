"""Adapter registry — maps source keys to adapter classes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fluxa.ingestion.errors import AdapterExpired, AdapterNotFound

if TYPE_CHECKING:
    from fluxa.ingestion.adapter import AdapterOptions, ContentAdapter
    from fluxa.ingestion.credentials import Credentials

_REGISTRY: dict[str, type[ContentAdapter]] = {}
_RETIRED: dict[str, str | None] = {}


def register_adapter(source_key: str, cls: type[ContentAdapter]) -> None:
    """Register an adapter class for a given source key."""
    _REGISTRY[source_key] = cls


def retire_source(source_key: str, replacement: str | None = None) -> None:
    """Mark a source key as permanently retired, optionally naming its successor."""
    _REGISTRY.pop(source_key, None)
    _RETIRED[source_key] = replacement


def get_adapter_class(source_key: str) -> type[ContentAdapter] | None:
    """Look up an adapter class by source key. Returns None if not found."""
    return _REGISTRY.get(source_key)


def get_adapter(
    source_key: str,
    options: AdapterOptions,
    credentials: Credentials | None = None,
) -> ContentAdapter:
    """Construct the adapter for ``source_key``.

    Construction performs no I/O; credential problems surface on ``fetch``.
    Raises AdapterExpired for retired keys and AdapterNotFound for unknown ones.
    """
    if source_key in _RETIRED:
        raise AdapterExpired(source_key, _RETIRED[source_key])
    cls = _REGISTRY.get(source_key)
    if cls is None:
        raise AdapterNotFound(source_key)
    return cls(options, credentials)


def registered_types() -> list[str]:
    """Return a sorted list of all registered source keys."""
    return sorted(_REGISTRY)


def retired_types() -> dict[str, str | None]:
    """Return retired source keys mapped to their replacement, if any."""
    return dict(_RETIRED)
