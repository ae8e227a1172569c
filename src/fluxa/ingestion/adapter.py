"""Content adapter interface and per-adapter options."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from fluxa.ingestion.credentials import Credentials, override_name
from fluxa.ingestion.errors import ConfigurationError
from fluxa.ingestion.normalize import NormalizedItem


@dataclass(frozen=True)
class AdapterOptions:
    """Configuration owned by one adapter instance.

    ``settings`` holds source-specific query parameter overrides; they are
    merged over the adapter's defaults and win on conflict.
    """

    max_items_per_run: int
    api_key: str | None = None
    base_url: str | None = None
    host: str | None = None
    timeout: float | None = None
    settings: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "max_items_per_run", max(0, int(self.max_items_per_run)))
        object.__setattr__(self, "settings", MappingProxyType(dict(self.settings)))

    def merged_settings(self, defaults: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType({**defaults, **self.settings})


class ContentAdapter(ABC):
    """Abstract base class for content adapters.

    Callers invoke ``fetch`` then ``parse`` in sequence. ``fetch`` talks to
    the upstream API; ``parse`` is pure and never raises on malformed input.
    """

    @property
    @abstractmethod
    def source_key(self) -> str:
        """Stable key selecting this adapter."""

    @abstractmethod
    def fetch(self) -> Any:
        """Fetch the raw payload from the upstream API."""

    @abstractmethod
    def parse(self, raw: Any) -> list[NormalizedItem]:
        """Normalize a raw payload, capped at ``max_items_per_run`` items."""


def resolve_api_key(
    options: AdapterOptions,
    credentials: Credentials,
    source_key: str,
    shared_names: tuple[str, ...],
) -> str:
    """Explicit option first, then the configured credentials.

    Raises ConfigurationError naming the expected variable when nothing is set.
    """
    if options.api_key:
        return options.api_key
    api_key = credentials.lookup(source_key, shared_names)
    if not api_key:
        expected = shared_names[0] if shared_names else override_name(source_key)
        raise ConfigurationError(f"{expected} is not configured")
    return api_key


def cap_limit(value: Any, cap: int) -> int:
    """Clamp a page-size setting to the per-run cap; unusable values become the cap."""
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return cap
    return max(0, min(limit, cap))
